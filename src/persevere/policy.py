"""Retry policy: the validated, immutable input of the executor.

A policy bundles an optional stop policy, wait policy, retry filter and
environment prefix. Missing parts fall back to "never stop", "no delay" and
"retry everything", so an empty policy retries forever without waiting.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError
from .filter import RetryAlways, RetryFilter, retry_filter
from .stop import Stop, StopNever
from .wait import Wait, WaitFixed


@dataclass(frozen=True, slots=True)
class ResolvedPolicy:
    """Concrete policies an executor runs with, defaults filled and overrides applied."""

    stop: Stop
    wait: Wait
    retry: RetryFilter


class RetryPolicy(BaseModel):
    """Declarative retry policy.

    Attributes:
        stop: When to give up (default: never)
        wait: Delay between attempts (default: none)
        retry: Which failures are retryable (default: all)
        env_prefix: Prefix of ``{prefix}__STOP__ATTEMPTS``-style overrides;
            no environment lookup happens without it

    Example:
        >>> policy = RetryPolicy(
        ...     stop=StopAfterAttempts(5) | StopAfterDuration(30),
        ...     wait=WaitExponential(multiplier=0.5, max=10),
        ...     retry=retry_filter(if_errors=[TimeoutError]),
        ...     env_prefix="BILLING",
        ... )
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        extra="forbid",
        revalidate_instances="never",
    )

    stop: Stop | None = None
    wait: Wait | None = None
    retry: RetryFilter | None = None
    env_prefix: Annotated[str, Field(min_length=1)] | None = None

    @field_validator("env_prefix", mode="before")
    @classmethod
    def _strip_prefix(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @classmethod
    def create(
        cls,
        *,
        stop: Stop | None = None,
        wait: Wait | None = None,
        retry: RetryFilter | None = None,
        if_errors: Iterable[Hashable] | type | None = None,
        if_not_errors: Iterable[Hashable] | type | None = None,
        env_prefix: str | None = None,
    ) -> RetryPolicy:
        """Build a policy, reporting every problem as ConfigurationError.

        ``if_errors`` / ``if_not_errors`` are shorthands for ``retry=retry_filter(...)``.
        """
        if retry is not None and (if_errors is not None or if_not_errors is not None):
            raise ConfigurationError("pass either `retry` or `if_errors`/`if_not_errors`, not both")
        if if_errors is not None or if_not_errors is not None:
            retry = retry_filter(if_errors=if_errors, if_not_errors=if_not_errors)
        try:
            return cls(stop=stop, wait=wait, retry=retry, env_prefix=env_prefix)
        except ValidationError as e:
            raise ConfigurationError(_format_validation_error(e)) from e

    def resolve(self, environ: Mapping[str, str] | None = None) -> ResolvedPolicy:
        """Fill defaults and apply environment overrides once.

        Args:
            environ: Variables to read overrides from (defaults to ``os.environ``)
        """
        stop = self.stop or StopNever()
        wait = self.wait or WaitFixed()
        if self.env_prefix:
            stop = stop.with_env(self.env_prefix, environ)
            wait = wait.with_env(self.env_prefix, environ)
        return ResolvedPolicy(stop=stop, wait=wait, retry=self.retry or RetryAlways())


def _format_validation_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "policy"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
