import time

import pytest

from zinxtools.delayfunc import DelayFunc
from zinxtools.timer import Timer
from zinxtools.timewheel import (
    HOUR_INTERVAL,
    HOUR_NAME,
    HOUR_SCALES,
    MINUTE_INTERVAL,
    MINUTE_NAME,
    MINUTE_SCALES,
    SECOND_INTERVAL,
    SECOND_NAME,
    SECOND_SCALES,
    TIMERS_MAX_CAP,
    TimeWheel,
)


def timer_in(ms):
    return Timer.at(DelayFunc(lambda: None), time.time_ns() + ms * 1_000_000)


@pytest.fixture
def wheels():
    second = TimeWheel(SECOND_NAME, SECOND_INTERVAL, SECOND_SCALES, TIMERS_MAX_CAP)
    minute = TimeWheel(MINUTE_NAME, MINUTE_INTERVAL, MINUTE_SCALES, TIMERS_MAX_CAP)
    hour = TimeWheel(HOUR_NAME, HOUR_INTERVAL, HOUR_SCALES, TIMERS_MAX_CAP)
    hour.add_time_wheel(minute)
    minute.add_time_wheel(second)
    return hour, minute, second


def test_timers_cascade_to_second_wheel(wheels):
    hour, minute, second = wheels
    for n in range(1, 6):
        hour.add_timer(n, timer_in(n * 10_000 + 500))
    assert len(hour) == 0
    assert len(minute) == 0
    assert [second.find(n) for n in range(1, 6)] == [10, 20, 30, 40, 50]


def test_long_timer_stays_on_minute_wheel(wheels):
    hour, minute, second = wheels
    hour.add_timer(9, timer_in(90_500))
    assert minute.find(9) == 1
    assert second.find(9) is None


def test_get_timer_within_takes_due_timers(wheels):
    hour, _, second = wheels
    past = Timer.at(DelayFunc(lambda: None), 0)
    hour.add_timer(7, past)
    hour.add_timer(8, timer_in(5_500))
    assert second.find(7) == 0
    due = hour.get_timer_within(0.1)
    assert due == {7: past}
    assert second.find(7) is None
    assert second.find(8) == 5
    assert hour.get_timer_within(0.1) == {}


def test_remove_timer(wheels):
    hour, _, second = wheels
    hour.add_timer(3, timer_in(3_500))
    assert second.find(3) == 3
    second.remove_timer(3)
    assert second.find(3) is None
    assert len(second) == 0


def test_tick_advances_and_moves_expired_timer_forward(wheels):
    _, _, second = wheels
    second.add_timer(1, Timer.at(DelayFunc(lambda: None), 0))
    assert second.find(1) == 0
    second.tick()
    assert second.cur_index == 1
    assert second.find(1) == 1
    assert list(second.get_timer_within(0.1)) == [1]


def test_tick_wraps_around():
    wheel = TimeWheel("small", 1000, 3, 16)
    for _ in range(3):
        wheel.tick()
    assert wheel.cur_index == 0


def test_run_turns_wheel():
    wheel = TimeWheel("fast", 10, 1000, 16)
    wheel.run()
    time.sleep(0.2)
    wheel.stop()
    assert wheel.cur_index > 0


def test_invalid_wheel_rejected():
    with pytest.raises(ValueError):
        TimeWheel("bad", 0, 10, 16)