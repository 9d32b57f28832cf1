"""Best-effort overrides of policy scalars from environment variables.

A policy built with ``env_prefix="APP"`` looks up ``APP__STOP__ATTEMPTS``,
``APP__WAIT__FIXED`` and so on. Names are matched case-insensitively. Any
problem (ambiguous names, empty or unparsable values) is logged as a warning
on ``persevere.env`` and the default is kept: an override never aborts a call.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from functools import lru_cache
from typing import Annotated, Any, TypeVar

from annotated_types import Ge, Gt
from pydantic import AllowInfNan, TypeAdapter, ValidationError

from .errors import DiagnosticReason, OverrideDiagnostic
from .settings import get_settings

logger = logging.getLogger("persevere.env")

T = TypeVar("T")

SEPARATOR = "__"

# Variable suffixes, one per policy scalar
STOP_ATTEMPTS = "STOP__ATTEMPTS"
STOP_DURATION = "STOP__DURATION"
WAIT_FIXED = "WAIT__FIXED"
WAIT_RANDOM_MIN = "WAIT__RANDOM__MIN"
WAIT_RANDOM_MAX = "WAIT__RANDOM__MAX"
WAIT_EXPONENTIAL_MULTIPLIER = "WAIT__EXPONENTIAL__MULTIPLIER"
WAIT_EXPONENTIAL_MIN = "WAIT__EXPONENTIAL__MIN"
WAIT_EXPONENTIAL_MAX = "WAIT__EXPONENTIAL__MAX"
WAIT_EXPONENTIAL_EXP_BASE = "WAIT__EXPONENTIAL__EXP_BASE"

ALL_SUFFIXES: tuple[str, ...] = (
    STOP_ATTEMPTS,
    STOP_DURATION,
    WAIT_FIXED,
    WAIT_RANDOM_MIN,
    WAIT_RANDOM_MAX,
    WAIT_EXPONENTIAL_MULTIPLIER,
    WAIT_EXPONENTIAL_MIN,
    WAIT_EXPONENTIAL_MAX,
    WAIT_EXPONENTIAL_EXP_BASE,
)

# Value types overrides must validate as
Attempts = Annotated[int, Ge(1)]
PositiveSeconds = Annotated[float, AllowInfNan(False), Gt(0)]
NonNegativeSeconds = Annotated[float, AllowInfNan(False), Ge(0)]
ExpBase = Annotated[int, Ge(1)]


def variable_name(prefix: str, name: str) -> str:
    return f"{prefix}{SEPARATOR}{name}"


@lru_cache(maxsize=32)
def _adapter(annotation: Any) -> TypeAdapter[Any]:
    return TypeAdapter(annotation)


def report(diagnostic: OverrideDiagnostic) -> None:
    """Log a diagnostic; the record carries it as ``record.diagnostic``."""
    logger.warning(diagnostic.render(), extra={"diagnostic": diagnostic})


def override_by_env(
    original: T,
    prefix: str,
    name: str,
    *,
    environ: Mapping[str, str] | None = None,
    annotation: Any = None,
) -> T:
    """Resolve ``original`` against the variable ``{prefix}__{name}``.

    Args:
        original: Default value, returned whenever no usable override exists
        prefix: Variable prefix; an empty prefix disables the lookup, as does
            PERSEVERE_ENV_OVERRIDES=false
        name: Variable suffix, e.g. ``STOP__ATTEMPTS``
        environ: Variables to search (defaults to ``os.environ``)
        annotation: Type the value must validate as (defaults to ``type(original)``).
            Constrained types such as ``Attempts`` reject out-of-range values.

    Returns:
        The parsed override, or ``original`` when there is none or it is unusable.
    """
    if not prefix:
        return original
    if not get_settings().env_overrides:
        logger.debug(f"Environment overrides disabled, ignoring {variable_name(prefix, name)}")
        return original
    variable = variable_name(prefix, name)
    target = variable.upper()
    source = os.environ if environ is None else environ
    matches = [(key, value) for key, value in source.items() if key.upper() == target]

    if not matches:
        return original
    if len(matches) > 1:
        report(OverrideDiagnostic(variable, DiagnosticReason.AMBIGUOUS, tuple(sorted(k for k, _ in matches))))
        return original

    key, raw = matches[0]
    if not raw.strip():
        report(OverrideDiagnostic(variable, DiagnosticReason.EMPTY, (key,)))
        return original
    try:
        value = _adapter(annotation if annotation is not None else type(original)).validate_python(raw.strip())
    except ValidationError as e:
        detail = "; ".join(err["msg"] for err in e.errors()) or str(e)
        report(OverrideDiagnostic(variable, DiagnosticReason.NOT_PARSABLE, (key,), f"value {raw!r}: {detail}"))
        return original

    logger.debug(f"Override {key}={raw!r} replaces default {original!r}")
    return value
