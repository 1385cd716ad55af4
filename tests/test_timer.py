import threading
import time

from zinxtools.delayfunc import DelayFunc
from zinxtools.timer import Timer, unix_milli


def test_unix_milli_matches_wall_clock():
    before = int(time.time() * 1000)
    value = unix_milli()
    after = int(time.time() * 1000)
    assert before - 1 <= value <= after + 1


def test_at_converts_nanoseconds_to_milliseconds():
    df = DelayFunc(lambda: None)
    timer = Timer.at(df, 1_500_000_123)
    assert timer.unix_ts == 1500
    assert timer.delay_func is df


def test_after_is_relative_to_now():
    start = unix_milli()
    timer = Timer.after(DelayFunc(lambda: None), 2.0)
    assert start + 1990 <= timer.unix_ts <= unix_milli() + 2000


def test_run_calls_function_after_delay():
    calls = []
    timer = Timer.after(DelayFunc(lambda *a: calls.append(a), [1, 2]), 0.05)
    started = time.monotonic()
    timer.run().join(timeout=2)
    elapsed = time.monotonic() - started
    assert calls == [(1, 2)]
    assert elapsed >= 0.03


def test_run_past_timer_fires_immediately():
    calls = []
    timer = Timer.at(DelayFunc(lambda: calls.append("x")), 0)
    timer.run().join(timeout=2)
    assert calls == ["x"]


def test_several_timers_all_fire():
    calls = []
    lock = threading.Lock()

    def record(number, delay):
        with lock:
            calls.append((number, delay))

    threads = [
        Timer.after(DelayFunc(record, [i, 2 * i]), 0.02 * i).run() for i in range(5)
    ]
    for thread in threads:
        thread.join(timeout=2)
    assert sorted(calls) == [(i, 2 * i) for i in range(5)]