"""Callbacks stored together with their arguments, to be run when a timer expires."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)


class DelayFunc:
    """A function paired with the positional arguments it will be called with."""

    def __init__(self, func: Callable[..., Any], args: Iterable[Any] = ()) -> None:
        self.func = func
        self.args = tuple(args)

    def __str__(self) -> str:
        name = getattr(self.func, "__name__", type(self.func).__name__)
        return f"{{DelayFun:{name}, args:{list(self.args)}}}"

    def __repr__(self) -> str:
        return f"DelayFunc({self.func!r}, {self.args!r})"

    def call(self) -> None:
        """Run the function; an exception it raises is logged, not propagated."""
        try:
            self.func(*self.args)
        except Exception as exc:  # noqa: BLE001 - a failing callback must not kill its caller
            logger.error("%s Call err: %s", self, exc)