"""Tests for environment-variable overrides."""

from __future__ import annotations

import logging

import pytest

from persevere import DiagnosticReason, OverrideDiagnostic, clear_settings_cache, override_by_env
from persevere.env import ALL_SUFFIXES, Attempts, NonNegativeSeconds, variable_name


@pytest.fixture
def env_warnings(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.WARNING, logger="persevere.env")
    return caplog


def _diagnostics(caplog: pytest.LogCaptureFixture) -> list:
    return [r.diagnostic for r in caplog.records if hasattr(r, "diagnostic")]


def test_variable_name() -> None:
    assert variable_name("APP", "STOP__ATTEMPTS") == "APP__STOP__ATTEMPTS"


def test_unset_variable_keeps_default(env_warnings) -> None:
    assert override_by_env(5, "APP", "STOP__ATTEMPTS", environ={}) == 5
    assert not env_warnings.records


@pytest.mark.parametrize("key", ["APP__STOP__ATTEMPTS", "app__stop__attempts", "App__Stop__Attempts"])
def test_name_is_matched_case_insensitively(key: str) -> None:
    assert override_by_env(5, "APP", "STOP__ATTEMPTS", environ={key: "7"}) == 7


def test_lowercase_prefix_finds_uppercase_variable() -> None:
    assert override_by_env(1000.4, "my_method", "WAIT__FIXED", environ={"MY_METHOD__WAIT__FIXED": "1.01"}) == 1.01


def test_two_spellings_are_ambiguous(env_warnings) -> None:
    environ = {"APP__STOP__ATTEMPTS": "7", "app__stop__attempts": "9"}

    assert override_by_env(5, "APP", "STOP__ATTEMPTS", environ=environ) == 5

    [diag] = _diagnostics(env_warnings)
    assert diag.reason is DiagnosticReason.AMBIGUOUS
    assert diag.candidates == ("APP__STOP__ATTEMPTS", "app__stop__attempts")
    assert "APP__STOP__ATTEMPTS" in env_warnings.text


@pytest.mark.parametrize("raw", ["", "   "])
def test_empty_value_keeps_default(env_warnings, raw: str) -> None:
    assert override_by_env(5, "APP", "STOP__ATTEMPTS", environ={"APP__STOP__ATTEMPTS": raw}) == 5

    [diag] = _diagnostics(env_warnings)
    assert diag.reason is DiagnosticReason.EMPTY


@pytest.mark.parametrize("raw", ["seven", "7s", "1e"])
def test_unparsable_value_keeps_default(env_warnings, raw: str) -> None:
    assert override_by_env(5, "APP", "STOP__ATTEMPTS", environ={"APP__STOP__ATTEMPTS": raw}) == 5

    [diag] = _diagnostics(env_warnings)
    assert diag.reason is DiagnosticReason.NOT_PARSABLE
    assert diag.variable == "APP__STOP__ATTEMPTS"
    assert raw in diag.detail


def test_surrounding_whitespace_is_ignored() -> None:
    assert override_by_env(0.0, "APP", "WAIT__FIXED", environ={"APP__WAIT__FIXED": " 0.25\n"}) == 0.25


def test_annotation_constrains_value(env_warnings) -> None:
    environ = {"APP__STOP__ATTEMPTS": "0", "APP__WAIT__FIXED": "-1", "APP__WAIT__RANDOM__MAX": "inf"}

    assert override_by_env(5, "APP", "STOP__ATTEMPTS", environ=environ, annotation=Attempts) == 5
    assert override_by_env(0.5, "APP", "WAIT__FIXED", environ=environ, annotation=NonNegativeSeconds) == 0.5
    assert override_by_env(9.0, "APP", "WAIT__RANDOM__MAX", environ=environ, annotation=NonNegativeSeconds) == 9.0
    assert [d.reason for d in _diagnostics(env_warnings)] == [DiagnosticReason.NOT_PARSABLE] * 3


def test_empty_prefix_disables_lookup(env_warnings) -> None:
    assert override_by_env(5, "", "STOP__ATTEMPTS", environ={"__STOP__ATTEMPTS": "7"}) == 5
    assert not env_warnings.records


def test_reads_process_environment_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PERSEVERE_TEST__STOP__ATTEMPTS", "11")

    assert override_by_env(5, "PERSEVERE_TEST", "STOP__ATTEMPTS") == 11
    assert override_by_env(5, "PERSEVERE_OTHER", "STOP__ATTEMPTS") == 5


def test_diagnostic_render_names_variable_and_reason() -> None:
    text = OverrideDiagnostic("APP__WAIT__FIXED", DiagnosticReason.NOT_PARSABLE, ("APP__WAIT__FIXED",), "value 'x'").render()

    assert "APP__WAIT__FIXED" in text
    assert "value 'x'" in text


def test_switched_off_overrides_keep_default(monkeypatch: pytest.MonkeyPatch, env_warnings) -> None:
    monkeypatch.setenv("PERSEVERE_ENV_OVERRIDES", "false")
    clear_settings_cache()

    assert override_by_env(5, "APP", "STOP__ATTEMPTS", environ={"APP__STOP__ATTEMPTS": "7"}) == 5
    assert override_by_env(5, "APP", "STOP__ATTEMPTS", environ={"APP__STOP__ATTEMPTS": "x"}) == 5
    assert not env_warnings.records


def test_known_suffixes() -> None:
    assert ALL_SUFFIXES == (
        "STOP__ATTEMPTS",
        "STOP__DURATION",
        "WAIT__FIXED",
        "WAIT__RANDOM__MIN",
        "WAIT__RANDOM__MAX",
        "WAIT__EXPONENTIAL__MULTIPLIER",
        "WAIT__EXPONENTIAL__MIN",
        "WAIT__EXPONENTIAL__MAX",
        "WAIT__EXPONENTIAL__EXP_BASE",
    )


@pytest.mark.parametrize("suffix", ALL_SUFFIXES)
def test_every_suffix_is_looked_up_under_prefix(suffix: str) -> None:
    assert override_by_env(1, "app", suffix, environ={f"APP__{suffix}": "3"}) == 3
