"""Decorator applying a retry policy at a function boundary.

Example:
    >>> @retry(stop=StopAfterAttempts(4) | StopAfterDuration(2), wait=WaitFixed(0.5))
    ... def fetch_quote(symbol: str) -> float:
    ...     return market.quote(symbol)

    >>> @retry(stop=StopAfterAttempts(3), retry=retry_filter(if_errors=[TimeoutError]), env_prefix="QUOTES")
    ... async def fetch_quote_async(symbol: str) -> float:
    ...     return await market.aquote(symbol)

    >>> @retry  # no policy: retries until the call succeeds
    ... def wait_for_lock() -> None:
    ...     lock.acquire_nowait()

The policy is resolved once, when the function is decorated. The executor is
available as ``fetch_quote.retrying``.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Mapping
from functools import wraps
from typing import Any, Callable, ParamSpec, TypeVar, overload

from .errors import ConfigurationError
from .executor import OnRetry, Retrying
from .filter import RetryFilter
from .policy import RetryPolicy
from .stop import Stop
from .wait import Wait

P = ParamSpec("P")
R = TypeVar("R")


@overload
def retry(func: Callable[P, R], /) -> Callable[P, R]: ...


@overload
def retry(
    *,
    stop: Stop | None = None,
    wait: Wait | None = None,
    retry: RetryFilter | None = None,
    env_prefix: str | None = None,
    policy: RetryPolicy | None = None,
    name: str | None = None,
    on_retry: OnRetry | None = None,
    sleep: Callable[[float], None] | None = None,
    async_sleep: Callable[[float], Awaitable[Any]] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def retry(
    func: Callable[P, R] | None = None,
    /,
    *,
    stop: Stop | None = None,
    wait: Wait | None = None,
    retry: RetryFilter | None = None,
    env_prefix: str | None = None,
    policy: RetryPolicy | None = None,
    name: str | None = None,
    on_retry: OnRetry | None = None,
    sleep: Callable[[float], None] | None = None,
    async_sleep: Callable[[float], Awaitable[Any]] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Retry the decorated function according to a policy.

    Args:
        func: Function being decorated (when used as bare ``@retry``)
        stop: Stop policy
        wait: Wait policy
        retry: Retry filter
        env_prefix: Prefix for environment overrides
        policy: Complete RetryPolicy, instead of stop/wait/retry/env_prefix
        name: Name used in log messages (default: function's qualified name)
        on_retry: Called as ``on_retry(attempt_num, error, delay)`` before each wait
        sleep: Blocking sleep override (tests)
        async_sleep: Awaitable sleep override (tests)
        environ: Variables to read overrides from (default: ``os.environ``)

    Raises:
        ConfigurationError: If ``policy`` is combined with individual policy parts,
            or the parts are invalid.
    """
    if policy is not None and any(p is not None for p in (stop, wait, retry, env_prefix)):
        raise ConfigurationError("pass either `policy` or `stop`/`wait`/`retry`/`env_prefix`, not both")
    resolved_policy = policy or RetryPolicy.create(stop=stop, wait=wait, retry=retry, env_prefix=env_prefix)

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        executor_kw: dict[str, Any] = {"name": name or fn.__qualname__, "on_retry": on_retry, "environ": environ}
        if sleep is not None:
            executor_kw["sleep"] = sleep
        if async_sleep is not None:
            executor_kw["async_sleep"] = async_sleep
        executor = Retrying(resolved_policy, **executor_kw)

        if inspect.iscoroutinefunction(fn):
            @wraps(fn)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                return await executor.arun(lambda: fn(*args, **kwargs))

            async_wrapper.retrying = executor  # type: ignore[attr-defined]
            return async_wrapper  # type: ignore[return-value]

        @wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            return executor.run(lambda: fn(*args, **kwargs))

        wrapper.retrying = executor  # type: ignore[attr-defined]
        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
