"""Tests for stop policies and the retry context they read."""

from __future__ import annotations

import itertools

import pytest

from persevere import (
    ConfigurationError,
    RetryContext,
    Stop,
    StopAfterAttempts,
    StopAfterAttemptsOrDuration,
    StopAfterDuration,
    StopNever,
)


def _context_at(clock, attempt_num: int, elapsed: float) -> RetryContext:
    ctx = RetryContext(clock)
    for _ in range(attempt_num - 1):
        ctx.add_attempt()
    clock.advance(elapsed)
    return ctx


# ─────────────────────────────────────────────────────────────────────────────
# RetryContext
# ─────────────────────────────────────────────────────────────────────────────


def test_context_starts_at_first_attempt(clock) -> None:
    ctx = RetryContext(clock)

    assert ctx.attempt_num == 1
    assert ctx.start_time == clock.now
    assert ctx.elapsed == 0.0


def test_context_elapsed_is_derived_from_clock(clock) -> None:
    ctx = RetryContext(clock)
    clock.advance(2.5)
    assert ctx.elapsed == pytest.approx(2.5)
    clock.advance(0.5)
    assert ctx.elapsed == pytest.approx(3.0)


def test_context_add_attempt_increments_by_one(clock) -> None:
    ctx = RetryContext(clock)
    ctx.add_attempt()
    ctx.add_attempt()
    assert ctx.attempt_num == 3
    assert ctx.summary() == {"attempt_num": 3, "elapsed": 0.0}


# ─────────────────────────────────────────────────────────────────────────────
# Stop policies
# ─────────────────────────────────────────────────────────────────────────────


def test_stop_never(clock) -> None:
    assert not StopNever().stop_execution(_context_at(clock, 10_000, 1e6))


@pytest.mark.parametrize("limit", [1, 2, 3, 7])
def test_stop_after_attempts_boundary(clock, limit: int) -> None:
    """False for attempts 1..n-1, True from attempt n on."""
    stop = StopAfterAttempts(limit)
    ctx = RetryContext(clock)
    decisions = []
    for _ in range(limit + 3):
        decisions.append(stop.stop_execution(ctx))
        ctx.add_attempt()

    assert decisions == [False] * (limit - 1) + [True] * 4


def test_stop_after_duration(clock) -> None:
    stop = StopAfterDuration(2.0)
    ctx = RetryContext(clock)

    clock.advance(1.5)
    assert not stop.stop_execution(ctx)
    clock.advance(0.5)
    assert stop.stop_execution(ctx)


def test_attempts_or_duration_equals_or_of_both(clock) -> None:
    attempts, seconds = 3, 1.5
    combined = StopAfterAttemptsOrDuration(attempts, seconds)
    only_attempts = StopAfterAttempts(attempts)
    only_duration = StopAfterDuration(seconds)

    for attempt_num, elapsed in itertools.product(range(1, 6), [0.0, 0.5, 1.49, 1.5, 4.0]):
        clock.now = 100.0
        ctx = _context_at(clock, attempt_num, elapsed)
        expected = only_attempts.stop_execution(ctx) or only_duration.stop_execution(ctx)
        assert combined.stop_execution(ctx) is expected, (attempt_num, elapsed)


def test_pipe_combines_attempts_and_duration() -> None:
    assert StopAfterAttempts(4) | StopAfterDuration(2) == StopAfterAttemptsOrDuration(4, 2)
    assert StopAfterDuration(2) | StopAfterAttempts(4) == StopAfterAttemptsOrDuration(4, 2)


def test_stop_policies_satisfy_protocol() -> None:
    for stop in (StopNever(), StopAfterAttempts(1), StopAfterDuration(1), StopAfterAttemptsOrDuration(1, 1)):
        assert isinstance(stop, Stop)


@pytest.mark.parametrize("bad", [0, -1, 1.5, True, "3"])
def test_invalid_attempts_rejected(bad: object) -> None:
    with pytest.raises(ConfigurationError, match="attempts"):
        StopAfterAttempts(bad)  # type: ignore[arg-type]


@pytest.mark.parametrize("bad", [0, -0.5, float("inf"), float("nan"), "1"])
def test_invalid_duration_rejected(bad: object) -> None:
    with pytest.raises(ConfigurationError, match="duration"):
        StopAfterDuration(bad)  # type: ignore[arg-type]


def test_stop_policies_are_immutable() -> None:
    stop = StopAfterAttempts(3)
    with pytest.raises(AttributeError):
        stop.attempts = 5  # type: ignore[misc]


# ─────────────────────────────────────────────────────────────────────────────
# Environment resolution
# ─────────────────────────────────────────────────────────────────────────────


def test_stop_with_env_overrides_each_field() -> None:
    environ = {"APP__STOP__ATTEMPTS": "7", "app__stop__duration": "2.5"}

    assert StopAfterAttempts(5).with_env("APP", environ) == StopAfterAttempts(7)
    assert StopAfterDuration(1).with_env("APP", environ) == StopAfterDuration(2.5)
    assert StopAfterAttemptsOrDuration(5, 1).with_env("APP", environ) == StopAfterAttemptsOrDuration(7, 2.5)
    assert StopNever().with_env("APP", environ) == StopNever()


def test_stop_with_env_rejects_out_of_range_values() -> None:
    environ = {"APP__STOP__ATTEMPTS": "0", "APP__STOP__DURATION": "-1"}

    assert StopAfterAttemptsOrDuration(5, 1).with_env("APP", environ) == StopAfterAttemptsOrDuration(5, 1)
