"""Stop policies: when to give up retrying.

- StopNever: retry until the operation succeeds or the filter rejects an error
- StopAfterAttempts: give up once the given attempt number has failed
- StopAfterDuration: give up once the sequence has run for the given seconds
- StopAfterAttemptsOrDuration: whichever limit is hit first

Limits combine with ``|``:
    >>> StopAfterAttempts(5) | StopAfterDuration(2.5)
    StopAfterAttemptsOrDuration(attempts=5, seconds=2.5)
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .context import RetryContext
from .env import STOP_ATTEMPTS, STOP_DURATION, Attempts, PositiveSeconds, override_by_env
from .errors import ConfigurationError


@runtime_checkable
class Stop(Protocol):
    """Protocol for stop policies.

    ``stop_execution`` is asked after every failed attempt, before the retry
    filter. ``with_env`` returns a copy with its scalars resolved from the
    environment.
    """

    def stop_execution(self, ctx: RetryContext) -> bool: ...

    def with_env(self, prefix: str, environ: Mapping[str, str] | None = None) -> Stop: ...


def _check_attempts(attempts: object) -> None:
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
        raise ConfigurationError(f"stop attempts must be an integer >= 1, got {attempts!r}")


def _check_seconds(seconds: object) -> None:
    if (
        isinstance(seconds, bool)
        or not isinstance(seconds, (int, float))
        or not math.isfinite(seconds)
        or seconds <= 0
    ):
        raise ConfigurationError(f"stop duration must be a finite number of seconds > 0, got {seconds!r}")


@dataclass(frozen=True, slots=True)
class StopNever:
    """Never give up."""

    def stop_execution(self, ctx: RetryContext) -> bool:
        return False

    def with_env(self, prefix: str, environ: Mapping[str, str] | None = None) -> StopNever:
        return self


@dataclass(frozen=True, slots=True)
class StopAfterAttempts:
    """Stop once ``attempts`` attempts have been made.

    Attributes:
        attempts: Total attempts including the first one (>= 1)
    """

    attempts: int

    def __post_init__(self) -> None:
        _check_attempts(self.attempts)

    def stop_execution(self, ctx: RetryContext) -> bool:
        return ctx.attempt_num >= self.attempts

    def with_env(self, prefix: str, environ: Mapping[str, str] | None = None) -> StopAfterAttempts:
        return StopAfterAttempts(
            override_by_env(self.attempts, prefix, STOP_ATTEMPTS, environ=environ, annotation=Attempts)
        )

    def __or__(self, other: object) -> StopAfterAttemptsOrDuration:
        if isinstance(other, StopAfterDuration):
            return StopAfterAttemptsOrDuration(self.attempts, other.seconds)
        return NotImplemented


@dataclass(frozen=True, slots=True)
class StopAfterDuration:
    """Stop once the retry sequence has been running for ``seconds``.

    Measured from the start of the first attempt and checked only between
    attempts, so a single slow attempt is never interrupted.
    """

    seconds: float

    def __post_init__(self) -> None:
        _check_seconds(self.seconds)

    def stop_execution(self, ctx: RetryContext) -> bool:
        return ctx.elapsed >= self.seconds

    def with_env(self, prefix: str, environ: Mapping[str, str] | None = None) -> StopAfterDuration:
        return StopAfterDuration(
            override_by_env(self.seconds, prefix, STOP_DURATION, environ=environ, annotation=PositiveSeconds)
        )

    def __or__(self, other: object) -> StopAfterAttemptsOrDuration:
        if isinstance(other, StopAfterAttempts):
            return StopAfterAttemptsOrDuration(other.attempts, self.seconds)
        return NotImplemented


@dataclass(frozen=True, slots=True)
class StopAfterAttemptsOrDuration:
    """Stop when either the attempt limit or the duration limit is reached."""

    attempts: int
    seconds: float

    def __post_init__(self) -> None:
        _check_attempts(self.attempts)
        _check_seconds(self.seconds)

    def stop_execution(self, ctx: RetryContext) -> bool:
        return ctx.attempt_num >= self.attempts or ctx.elapsed >= self.seconds

    def with_env(self, prefix: str, environ: Mapping[str, str] | None = None) -> StopAfterAttemptsOrDuration:
        return StopAfterAttemptsOrDuration(
            override_by_env(self.attempts, prefix, STOP_ATTEMPTS, environ=environ, annotation=Attempts),
            override_by_env(self.seconds, prefix, STOP_DURATION, environ=environ, annotation=PositiveSeconds),
        )
