"""Retry filters: which failures are worth retrying.

A filter only looks at the *kind* of an error, never at its payload:

- an exception class matches instances of itself and its subclasses
- an ``Enum`` member matches an error that is that member
- any other hashable value matches an error whose ``kind`` attribute equals it

Example:
    >>> f = retry_filter(if_errors=[TimeoutError, ConnectionError])
    >>> f.is_retryable(TimeoutError("slow upstream"))
    True
    >>> f.is_retryable(KeyError("missing"))
    False
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from enum import Enum

from .errors import ConfigurationError

_MISSING = object()


def matches_kind(error: object, kind: Hashable) -> bool:
    """Check whether ``error`` is of the given kind."""
    if isinstance(kind, type):
        return isinstance(error, kind)
    if isinstance(error, Enum):
        return error == kind
    found = getattr(error, "kind", _MISSING)
    return found is not _MISSING and found == kind


class RetryFilter(ABC):
    """Base class for retry filters."""

    __slots__ = ()

    @abstractmethod
    def is_retryable(self, error: object) -> bool: ...


@dataclass(frozen=True, slots=True)
class RetryAlways(RetryFilter):
    """Retry every failure."""

    def is_retryable(self, error: object) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class RetryIfErrors(RetryFilter):
    """Allow list: only the listed kinds are retried, anything else ends the call."""

    kinds: tuple[Hashable, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "kinds", _normalize(self.kinds, "if_errors"))

    def is_retryable(self, error: object) -> bool:
        return any(matches_kind(error, k) for k in self.kinds)


@dataclass(frozen=True, slots=True)
class RetryIfNotErrors(RetryFilter):
    """Deny list: the listed kinds end the call, anything else is retried."""

    kinds: tuple[Hashable, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "kinds", _normalize(self.kinds, "if_not_errors"))

    def is_retryable(self, error: object) -> bool:
        return not any(matches_kind(error, k) for k in self.kinds)


def _normalize(kinds: Iterable[Hashable] | type, option: str) -> tuple[Hashable, ...]:
    if isinstance(kinds, (type, str, Enum)):
        kinds = (kinds,)
    try:
        normalized = tuple(dict.fromkeys(kinds))
    except TypeError as e:
        raise ConfigurationError(f"`{option}` error kinds must be hashable ({e})") from e
    if not normalized:
        raise ConfigurationError(f"`{option}` needs at least one error kind")
    return normalized


def retry_filter(
    *,
    if_errors: Iterable[Hashable] | type | None = None,
    if_not_errors: Iterable[Hashable] | type | None = None,
) -> RetryFilter:
    """Build a filter from an allow list or a deny list.

    Empty or missing lists mean "retry everything".

    Raises:
        ConfigurationError: If both lists are given.
    """
    allow = _as_tuple(if_errors)
    deny = _as_tuple(if_not_errors)
    if allow and deny:
        raise ConfigurationError("only one of `if_errors` and `if_not_errors` can be configured at the same time")
    if allow:
        return RetryIfErrors(allow)
    if deny:
        return RetryIfNotErrors(deny)
    return RetryAlways()


def _as_tuple(kinds: Iterable[Hashable] | type | None) -> tuple[Hashable, ...]:
    if kinds is None:
        return ()
    if isinstance(kinds, (type, str, Enum)):
        return (kinds,)
    return tuple(kinds)
