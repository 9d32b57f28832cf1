"""persevere - Declarative retries for fallible operations.

Wrap an operation with a policy made of a stop condition, a wait strategy and
a retry filter, optionally tuned at runtime through environment variables.

Example:
    >>> from persevere import StopAfterAttempts, WaitExponential, retry
    >>>
    >>> @retry(stop=StopAfterAttempts(5), wait=WaitExponential(multiplier=0.5, max=10))
    ... def charge(order_id: str) -> Receipt:
    ...     return gateway.charge(order_id)
"""

import logging

from .context import RetryContext
from .decorator import retry
from .env import override_by_env
from .errors import ConfigurationError, DiagnosticReason, OverrideDiagnostic
from .executor import Retrying
from .filter import RetryAlways, RetryFilter, RetryIfErrors, RetryIfNotErrors, matches_kind, retry_filter
from .log import configure_logging
from .policy import ResolvedPolicy, RetryPolicy
from .result import Err, Ok, Result
from .settings import PersevereSettings, clear_settings_cache, get_settings
from .stop import Stop, StopAfterAttempts, StopAfterAttemptsOrDuration, StopAfterDuration, StopNever
from .wait import Wait, WaitExponential, WaitFixed, WaitRandom

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Execution
    "retry",
    "Retrying",
    "RetryContext",
    # Policy
    "RetryPolicy",
    "ResolvedPolicy",
    # Stop
    "Stop",
    "StopNever",
    "StopAfterAttempts",
    "StopAfterDuration",
    "StopAfterAttemptsOrDuration",
    # Wait
    "Wait",
    "WaitFixed",
    "WaitRandom",
    "WaitExponential",
    # Filter
    "RetryFilter",
    "RetryAlways",
    "RetryIfErrors",
    "RetryIfNotErrors",
    "retry_filter",
    "matches_kind",
    # Environment overrides
    "override_by_env",
    # Results & errors
    "Result",
    "Ok",
    "Err",
    "ConfigurationError",
    "OverrideDiagnostic",
    "DiagnosticReason",
    # Settings & logging
    "PersevereSettings",
    "get_settings",
    "clear_settings_cache",
    "configure_logging",
]
