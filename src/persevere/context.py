"""Per-invocation retry state."""

from __future__ import annotations

import time
from typing import Any, Callable


class RetryContext:
    """Attempt counter and start time of one retried call.

    A fresh context is created for every call and dropped when it returns.
    Elapsed time is always derived from the clock, never stored.

    Attributes:
        attempt_num: Number of the current attempt, starting at 1.
        start_time: Clock reading taken when the context was created.
    """

    __slots__ = ("attempt_num", "start_time", "_clock")

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.attempt_num: int = 1
        self.start_time: float = clock()

    def add_attempt(self) -> None:
        self.attempt_num += 1

    @property
    def elapsed(self) -> float:
        """Seconds since the first attempt started."""
        return self._clock() - self.start_time

    def summary(self) -> dict[str, Any]:
        return {"attempt_num": self.attempt_num, "elapsed": round(self.elapsed, 3)}

    def __repr__(self) -> str:
        return f"RetryContext(attempt_num={self.attempt_num}, start_time={self.start_time!r})"
