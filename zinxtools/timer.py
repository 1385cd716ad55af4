"""Single-shot timers with millisecond precision."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from zinxtools.delayfunc import DelayFunc


def unix_milli() -> int:
    """Return milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


@dataclass
class Timer:
    """A delayed function due at ``unix_ts`` (milliseconds since the epoch)."""

    delay_func: DelayFunc
    unix_ts: int

    @classmethod
    def at(cls, delay_func: DelayFunc, unix_nano: int) -> Timer:
        """Create a timer due at ``unix_nano`` nanoseconds since the epoch."""
        return cls(delay_func, unix_nano // 1_000_000)

    @classmethod
    def after(cls, delay_func: DelayFunc, seconds: float) -> Timer:
        """Create a timer due ``seconds`` from now."""
        return cls.at(delay_func, time.time_ns() + int(seconds * 1_000_000_000))

    def run(self) -> threading.Thread:
        """Wait until due in a background thread, then call the function."""

        def wait_and_call() -> None:
            now = unix_milli()
            if self.unix_ts > now:
                time.sleep((self.unix_ts - now) / 1000)
            self.delay_func.call()

        thread = threading.Thread(target=wait_and_call, daemon=True)
        thread.start()
        return thread