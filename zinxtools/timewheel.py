"""Hierarchical timing wheels that hold many timers cheaply."""

from __future__ import annotations

import logging
import threading

from zinxtools.timer import Timer, unix_milli

logger = logging.getLogger(__name__)

HOUR_NAME = "HOUR"
HOUR_INTERVAL = 60 * 60 * 1000
HOUR_SCALES = 12

MINUTE_NAME = "MINUTE"
MINUTE_INTERVAL = 60 * 1000
MINUTE_SCALES = 60

SECOND_NAME = "SECOND"
SECOND_INTERVAL = 1000
SECOND_SCALES = 60

TIMERS_MAX_CAP = 2048


class TimeWheel:
    """A ring of ``scales`` slots, each ``interval`` milliseconds wide.

    Timers due sooner than one slot are handed to the next, finer wheel;
    the finest wheel keeps them in its current slot until collected.
    """

    def __init__(self, name: str, interval: int, scales: int, max_cap: int) -> None:
        if interval <= 0 or scales <= 0:
            raise ValueError("interval and scales must be positive")
        self.name = name
        self.interval = interval
        self.scales = scales
        self.max_cap = max_cap
        self.next_wheel: TimeWheel | None = None
        self._cur_index = 0
        self._slots: list[dict[int, Timer]] = [{} for _ in range(scales)]
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        logger.info("Init timerWhell name = %s is Done!", name)

    @property
    def cur_index(self) -> int:
        return self._cur_index

    def __len__(self) -> int:
        with self._lock:
            return sum(len(slot) for slot in self._slots)

    def find(self, tid: int) -> int | None:
        """Return the slot index holding timer ``tid`` on this wheel, or None."""
        with self._lock:
            for index, slot in enumerate(self._slots):
                if tid in slot:
                    return index
        return None

    def _add(self, tid: int, timer: Timer, force_next: bool) -> None:
        delay = timer.unix_ts - unix_milli()
        if delay >= self.interval:
            steps = delay // self.interval
            self._slots[(self._cur_index + steps) % self.scales][tid] = timer
        elif self.next_wheel is None:
            # On the finest wheel a timer seen while turning must move ahead,
            # otherwise the slot it sits in passes and it is never collected.
            index = (self._cur_index + 1) % self.scales if force_next else self._cur_index
            self._slots[index][tid] = timer
        else:
            self.next_wheel.add_timer(tid, timer)

    def add_timer(self, tid: int, timer: Timer) -> None:
        """Place ``timer`` under ``tid`` on this wheel or a finer one."""
        with self._lock:
            self._add(tid, timer, False)

    def remove_timer(self, tid: int) -> None:
        """Remove timer ``tid`` from this wheel if present."""
        with self._lock:
            for slot in self._slots:
                slot.pop(tid, None)

    def add_time_wheel(self, next_wheel: TimeWheel) -> None:
        """Link a finer wheel below this one."""
        self.next_wheel = next_wheel
        logger.info("Add timerWhell[%s]'s next [%s] is succ!", self.name, next_wheel.name)

    def tick(self) -> None:
        """Turn the wheel by one slot, redistributing the current and next slots."""
        with self._lock:
            for index in (self._cur_index, (self._cur_index + 1) % self.scales):
                timers = self._slots[index]
                self._slots[index] = {}
                for tid, timer in timers.items():
                    self._add(tid, timer, True)
            self._cur_index = (self._cur_index + 1) % self.scales

    def run(self) -> threading.Thread:
        """Turn the wheel once per interval in a background thread."""

        def loop() -> None:
            while not self._stopped.wait(self.interval / 1000):
                self.tick()

        self._stopped.clear()
        thread = threading.Thread(target=loop, name=f"timewheel-{self.name}", daemon=True)
        thread.start()
        logger.info("timerwheel name = %s is running...", self.name)
        return thread

    def stop(self) -> None:
        """Stop the background thread started by :meth:`run`."""
        self._stopped.set()

    def get_timer_within(self, seconds: float) -> dict[int, Timer]:
        """Take from the finest wheel's current slot every timer due within ``seconds``."""
        leaf = self
        while leaf.next_wheel is not None:
            leaf = leaf.next_wheel

        window = seconds * 1000
        with leaf._lock:
            now = unix_milli()
            slot = leaf._slots[leaf._cur_index]
            due = {tid: timer for tid, timer in slot.items() if timer.unix_ts - now < window}
            for tid in due:
                del slot[tid]
        return due