"""Wait policies: delay before the next attempt.

- WaitFixed: constant delay
- WaitRandom: uniform random delay in [min, max], drawn on every call
- WaitExponential: min(max, multiplier * exp_base ** (attempt_num - 1) + min)

Delays are computed from the context before its attempt counter is advanced,
so the first retry of an exponential policy uses exponent 0.
"""

from __future__ import annotations

import math
import random
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .context import RetryContext
from .env import (
    WAIT_EXPONENTIAL_EXP_BASE,
    WAIT_EXPONENTIAL_MAX,
    WAIT_EXPONENTIAL_MIN,
    WAIT_EXPONENTIAL_MULTIPLIER,
    WAIT_FIXED,
    WAIT_RANDOM_MAX,
    WAIT_RANDOM_MIN,
    ExpBase,
    NonNegativeSeconds,
    override_by_env,
    report,
    variable_name,
)
from .errors import ConfigurationError, DiagnosticReason, OverrideDiagnostic

DEFAULT_MAX_WAIT = 3600.0


@runtime_checkable
class Wait(Protocol):
    """Protocol for wait policies.

    Implementations return the delay in seconds before the next attempt.
    """

    def wait_seconds(self, ctx: RetryContext) -> float: ...

    def with_env(self, prefix: str, environ: Mapping[str, str] | None = None) -> Wait: ...


def _check_non_negative(name: str, value: object) -> None:
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or value < 0
    ):
        raise ConfigurationError(f"{name} must be a finite number >= 0, got {value!r}")


@dataclass(frozen=True, slots=True)
class WaitFixed:
    """Fixed delay between attempts.

    Attributes:
        seconds: Delay in seconds (default: 0.0)
    """

    seconds: float = 0.0

    def __post_init__(self) -> None:
        _check_non_negative("wait fixed seconds", self.seconds)

    def wait_seconds(self, ctx: RetryContext) -> float:
        return float(self.seconds)

    def with_env(self, prefix: str, environ: Mapping[str, str] | None = None) -> WaitFixed:
        return WaitFixed(override_by_env(self.seconds, prefix, WAIT_FIXED, environ=environ, annotation=NonNegativeSeconds))


@dataclass(frozen=True, slots=True)
class WaitRandom:
    """Uniformly random delay, independent for every call.

    Attributes:
        min: Lower bound in seconds (default: 0.0)
        max: Upper bound in seconds (default: 3600.0)
    """

    min: float = 0.0
    max: float = DEFAULT_MAX_WAIT

    def __post_init__(self) -> None:
        _check_non_negative("wait random min", self.min)
        _check_non_negative("wait random max", self.max)
        if self.min > self.max:
            raise ConfigurationError(f"wait random min ({self.min}) must not exceed max ({self.max})")

    def wait_seconds(self, ctx: RetryContext) -> float:
        return random.uniform(self.min, self.max)

    def with_env(self, prefix: str, environ: Mapping[str, str] | None = None) -> WaitRandom:
        lo = override_by_env(self.min, prefix, WAIT_RANDOM_MIN, environ=environ, annotation=NonNegativeSeconds)
        hi = override_by_env(self.max, prefix, WAIT_RANDOM_MAX, environ=environ, annotation=NonNegativeSeconds)
        if lo > hi:
            report(OverrideDiagnostic(
                variable_name(prefix, "WAIT__RANDOM"), DiagnosticReason.INCONSISTENT,
                detail=f"min {lo} > max {hi}",
            ))
            return self
        return WaitRandom(lo, hi)


@dataclass(frozen=True, slots=True)
class WaitExponential:
    """Exponential backoff clamped to ``max``.

    Delay = min(max, multiplier * exp_base ** (attempt_num - 1) + min)

    Attributes:
        multiplier: Scale of the exponential term (default: 1.0)
        min: Offset added to every delay (default: 0.0)
        max: Upper bound on the delay (default: 3600.0)
        exp_base: Integer base of the exponent (default: 2)

    Example:
        >>> w = WaitExponential(multiplier=0.5, min=1, max=10.5, exp_base=2)
        >>> # attempts 1..7 -> 1.5, 2.0, 3.0, 5.0, 9.0, 10.5, 10.5
    """

    multiplier: float = 1.0
    min: float = 0.0
    max: float = DEFAULT_MAX_WAIT
    exp_base: int = 2

    def __post_init__(self) -> None:
        _check_non_negative("wait exponential multiplier", self.multiplier)
        _check_non_negative("wait exponential min", self.min)
        _check_non_negative("wait exponential max", self.max)
        if isinstance(self.exp_base, bool) or not isinstance(self.exp_base, int) or self.exp_base < 1:
            raise ConfigurationError(f"wait exponential exp_base must be an integer >= 1, got {self.exp_base!r}")

    def wait_seconds(self, ctx: RetryContext) -> float:
        exponent = max(ctx.attempt_num - 1, 0)
        if self.multiplier == 0:
            return min(float(self.max), float(self.min))
        try:
            delay = self.multiplier * float(self.exp_base) ** exponent + self.min
        except OverflowError:
            return float(self.max)
        return max(0.0, min(float(self.max), delay))

    def with_env(self, prefix: str, environ: Mapping[str, str] | None = None) -> WaitExponential:
        return WaitExponential(
            override_by_env(self.multiplier, prefix, WAIT_EXPONENTIAL_MULTIPLIER, environ=environ, annotation=NonNegativeSeconds),
            override_by_env(self.min, prefix, WAIT_EXPONENTIAL_MIN, environ=environ, annotation=NonNegativeSeconds),
            override_by_env(self.max, prefix, WAIT_EXPONENTIAL_MAX, environ=environ, annotation=NonNegativeSeconds),
            override_by_env(self.exp_base, prefix, WAIT_EXPONENTIAL_EXP_BASE, environ=environ, annotation=ExpBase),
        )
