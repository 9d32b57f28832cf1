"""Environment-based configuration using pydantic-settings.

These settings govern persevere itself, not individual retry policies.

Example environment variables:
    PERSEVERE_ENV_OVERRIDES=false   # ignore every {PREFIX}__STOP__... style override
    PERSEVERE_LOG_LEVEL=DEBUG       # level used by configure_logging()
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PersevereSettings(BaseSettings):
    """Root settings, loaded from variables with the PERSEVERE_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="PERSEVERE_",
        extra="ignore",
        validate_default=True,
    )

    env_overrides: bool = Field(default=True, description="Allow policy values to be overridden from the environment")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


@lru_cache(maxsize=1)
def get_settings() -> PersevereSettings:
    """Get the process-wide settings instance (cached)."""
    return PersevereSettings()


def clear_settings_cache() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
