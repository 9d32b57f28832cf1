"""Shared fixtures: fake clock, recorded sleeps, clean settings."""

from __future__ import annotations

import pytest

from persevere.settings import clear_settings_cache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    """Blocking and awaitable sleep stand-ins that advance a FakeClock."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)

    async def asleep(self, seconds: float) -> None:
        self(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps(clock: FakeClock) -> SleepRecorder:
    return SleepRecorder(clock)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> object:
    """Reset cached settings and drop PERSEVERE_* variables around each test."""
    monkeypatch.delenv("PERSEVERE_ENV_OVERRIDES", raising=False)
    monkeypatch.delenv("PERSEVERE_LOG_LEVEL", raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()
