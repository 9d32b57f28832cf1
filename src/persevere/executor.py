"""Retry executor: drives invoke -> evaluate -> wait -> invoke.

The same decision logic backs two scheduling contracts:

- ``Retrying.run``: blocking, waits with ``time.sleep`` on the calling thread
- ``Retrying.arun``: cooperative, waits with ``asyncio.sleep`` so only the
  calling task is suspended

An attempt fails when the operation raises an ``Exception`` or returns an
``Err`` result. When retrying ends, the last failure reaches the caller exactly
as produced: the exception is re-raised, the ``Err`` is returned.
``BaseException`` subclasses (``KeyboardInterrupt``, ``asyncio.CancelledError``)
are never caught.

Example:
    >>> retrying = Retrying(RetryPolicy(stop=StopAfterAttempts(3), wait=WaitFixed(0.2)))
    >>> retrying.run(lambda: fetch_rates("EUR"))
    >>> await retrying.arun(lambda: fetch_rates_async("EUR"))
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from .context import RetryContext
from .policy import ResolvedPolicy, RetryPolicy
from .result import Result

logger = logging.getLogger("persevere.executor")

T = TypeVar("T")

OnRetry = Callable[[int, Any, float], None]


@dataclass(slots=True)
class _Attempt:
    """Outcome of one invocation."""

    value: Any = None
    error: Any = None
    failed: bool = False
    raised: bool = False

    def surface(self) -> Any:
        """Hand the final outcome back to the caller unchanged."""
        if self.raised:
            raise self.error
        return self.value


def _settle(value: Any) -> _Attempt:
    if isinstance(value, Result) and value.is_err():
        return _Attempt(value=value, error=value.unwrap_err(), failed=True)
    return _Attempt(value=value)


def _describe(error: Any) -> str:
    if isinstance(error, BaseException):
        return f"{type(error).__name__}: {error}"
    return repr(error)


class Retrying:
    """Runs operations under a retry policy.

    The policy is resolved (defaults and environment overrides) once, when the
    executor is built. Every call gets its own RetryContext, so one executor
    can serve any number of threads and tasks at the same time.

    Args:
        policy: Retry policy (default: retry forever without waiting)
        name: Operation name used in log messages
        sleep: Blocking sleep used by run()
        async_sleep: Awaitable sleep used by arun()
        clock: Monotonic clock for elapsed-time stop checks
        on_retry: Called as ``on_retry(attempt_num, error, delay)`` before each wait
        environ: Variables to read overrides from (default: ``os.environ``)
    """

    __slots__ = ("_policy", "_resolved", "_name", "_sleep", "_async_sleep", "_clock", "_on_retry")

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        name: str = "operation",
        sleep: Callable[[float], None] = time.sleep,
        async_sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        on_retry: OnRetry | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._policy = policy or RetryPolicy()
        self._resolved = self._policy.resolve(environ)
        self._name = name
        self._sleep = sleep
        self._async_sleep = async_sleep
        self._clock = clock
        self._on_retry = on_retry

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def resolved(self) -> ResolvedPolicy:
        return self._resolved

    @property
    def name(self) -> str:
        return self._name

    # ─────────────────────────────────────────────────────────────────
    # Decision logic shared by both loops
    # ─────────────────────────────────────────────────────────────────

    def next_delay(self, ctx: RetryContext, error: Any) -> float | None:
        """Evaluate a failed attempt.

        Returns:
            Seconds to wait before the next attempt, or None to give up.
        """
        if self._resolved.stop.stop_execution(ctx):
            logger.debug(f"[{self._name}] Giving up after attempt {ctx.attempt_num} ({ctx.elapsed:.3f}s elapsed)")
            return None
        if not self._resolved.retry.is_retryable(error):
            logger.debug(f"[{self._name}] Not retrying {_describe(error)}")
            return None

        delay = self._resolved.wait.wait_seconds(ctx)
        logger.info(f"[{self._name}] Retry {ctx.attempt_num} after {delay:.2f}s (error: {_describe(error)})")
        if self._on_retry:
            self._on_retry(ctx.attempt_num, error, delay)
        return delay

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    def run(self, operation: Callable[[], T]) -> T:
        """Run ``operation`` until it succeeds or the policy gives up, blocking between attempts."""
        ctx = RetryContext(self._clock)
        while True:
            try:
                attempt = _settle(operation())
            except Exception as e:
                attempt = _Attempt(error=e, failed=True, raised=True)

            if not attempt.failed:
                return attempt.value
            delay = self.next_delay(ctx, attempt.error)
            if delay is None:
                return attempt.surface()
            self._sleep(delay)
            ctx.add_attempt()

    async def arun(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` until it succeeds or the policy gives up, suspending only this task between attempts."""
        ctx = RetryContext(self._clock)
        while True:
            try:
                attempt = _settle(await operation())
            except Exception as e:
                attempt = _Attempt(error=e, failed=True, raised=True)

            if not attempt.failed:
                return attempt.value
            delay = self.next_delay(ctx, attempt.error)
            if delay is None:
                return attempt.surface()
            await self._async_sleep(delay)
            ctx.add_attempt()

    def __repr__(self) -> str:
        r = self._resolved
        return f"Retrying({self._name!r}, stop={r.stop!r}, wait={r.wait!r}, retry={r.retry!r})"
