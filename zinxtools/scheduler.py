"""A scheduler driving hour, minute and second timing wheels."""

from __future__ import annotations

import logging
import queue
import threading

from zinxtools.delayfunc import DelayFunc
from zinxtools.timer import Timer, unix_milli
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

logger = logging.getLogger(__name__)

MAX_QUEUE_SIZE = 2048
MAX_TIME_DELAY = 100  # milliseconds

_ID_MASK = 0xFFFFFFFF


class TimerScheduler:
    """Holds timers on running wheels and queues their functions when due."""

    def __init__(self) -> None:
        second = TimeWheel(SECOND_NAME, SECOND_INTERVAL, SECOND_SCALES, TIMERS_MAX_CAP)
        minute = TimeWheel(MINUTE_NAME, MINUTE_INTERVAL, MINUTE_SCALES, TIMERS_MAX_CAP)
        hour = TimeWheel(HOUR_NAME, HOUR_INTERVAL, HOUR_SCALES, TIMERS_MAX_CAP)
        hour.add_time_wheel(minute)
        minute.add_time_wheel(second)
        for wheel in (second, minute, hour):
            wheel.run()

        self._wheel = hour
        self._id_gen = 0
        self._queue: queue.Queue[DelayFunc] = queue.Queue(MAX_QUEUE_SIZE)
        self._lock = threading.Lock()
        self._stopped = threading.Event()

    def _wheels(self):
        wheel: TimeWheel | None = self._wheel
        while wheel is not None:
            yield wheel
            wheel = wheel.next_wheel

    def _add(self, timer: Timer) -> int:
        with self._lock:
            self._id_gen = (self._id_gen + 1) & _ID_MASK
            self._wheel.add_timer(self._id_gen, timer)
            return self._id_gen

    def create_timer_at(self, delay_func: DelayFunc, unix_nano: int) -> int:
        """Schedule ``delay_func`` at ``unix_nano`` and return the timer's ID."""
        return self._add(Timer.at(delay_func, unix_nano))

    def create_timer_after(self, delay_func: DelayFunc, seconds: float) -> int:
        """Schedule ``delay_func`` ``seconds`` from now and return the timer's ID."""
        return self._add(Timer.after(delay_func, seconds))

    def cancel_timer(self, tid: int) -> None:
        """Remove timer ``tid`` from every wheel."""
        with self._lock:
            for wheel in self._wheels():
                wheel.remove_timer(tid)

    def trigger_queue(self) -> queue.Queue[DelayFunc]:
        """Return the queue that due functions are put on."""
        return self._queue

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def start(self) -> threading.Thread:
        """Collect due timers in a background thread and queue their functions."""

        def loop() -> None:
            while not self._stopped.is_set():
                now = unix_milli()
                for timer in self._wheel.get_timer_within(MAX_TIME_DELAY / 1000).values():
                    if abs(now - timer.unix_ts) > MAX_TIME_DELAY:
                        logger.error(
                            "want call at %d; real call at %d; delay %d",
                            timer.unix_ts,
                            now,
                            now - timer.unix_ts,
                        )
                    self._queue.put(timer.delay_func)
                self._stopped.wait(MAX_TIME_DELAY / 2 / 1000)

        thread = threading.Thread(target=loop, name="timer-scheduler", daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        """Stop the collecting thread and the wheels."""
        self._stopped.set()
        for wheel in self._wheels():
            wheel.stop()


def new_auto_exec_timer_scheduler() -> TimerScheduler:
    """Return a started scheduler that calls each due function in its own thread."""
    scheduler = TimerScheduler()
    scheduler.start()
    due = scheduler.trigger_queue()

    def dispatch() -> None:
        while not scheduler.stopped:
            try:
                delay_func = due.get(timeout=0.1)
            except queue.Empty:
                continue
            threading.Thread(target=delay_func.call, daemon=True).start()

    threading.Thread(target=dispatch, name="timer-dispatch", daemon=True).start()
    return scheduler