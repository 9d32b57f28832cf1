"""Error types raised or reported by persevere.

Failures of the wrapped operation are never wrapped in a persevere type: they
reach the caller exactly as the last attempt produced them. The only error
persevere raises itself is ``ConfigurationError``, and only while a policy is
being built. Problems with environment overrides are reported, not raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ConfigurationError(ValueError):
    """Invalid retry policy shape, rejected before any invocation."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Retry configuration is wrong: {message}")


class DiagnosticReason(StrEnum):
    """Why an environment override was ignored."""
    AMBIGUOUS = "AMBIGUOUS"
    EMPTY = "EMPTY"
    NOT_PARSABLE = "NOT_PARSABLE"
    INCONSISTENT = "INCONSISTENT"


@dataclass(frozen=True, slots=True)
class OverrideDiagnostic:
    """Non-fatal report about an environment override that fell back to its default.

    Attributes:
        variable: Expected variable name, ``{prefix}__{name}``
        reason: Why the override was ignored
        candidates: Variable names actually found in the environment
        detail: Extra human-readable context (parser message, offending value)
    """

    variable: str
    reason: DiagnosticReason
    candidates: tuple[str, ...] = ()
    detail: str = ""

    def render(self) -> str:
        match self.reason:
            case DiagnosticReason.AMBIGUOUS:
                found = ", ".join(self.candidates)
                return (
                    f"More than one environment variable matches {self.variable}: {found}. "
                    "Unset the extra ones and leave exactly one. Using the default value."
                )
            case DiagnosticReason.EMPTY:
                return f"Environment variable {self.candidates[0]} is empty. Using the default value."
            case DiagnosticReason.INCONSISTENT:
                return f"Overrides for {self.variable} are inconsistent ({self.detail}). Using the default values."
            case _:
                return (
                    f"Environment variable {self.candidates[0]} can't be parsed ({self.detail}). "
                    "Using the default value."
                )

    def __str__(self) -> str:
        return self.render()
