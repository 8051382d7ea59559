"""Library configuration management."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings derived from ``KRD_``-prefixed environment variables."""

    log_level: str = Field(default="INFO")
    log_dir: Path | None = Field(
        default=None,
        description="Directory for krd.log (or null to log to the console only).",
    )

    model_config = SettingsConfigDict(
        env_prefix="KRD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"KRD_LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance so it can be reused across the library."""

    settings = Settings()
    if settings.log_dir is not None:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
    return settings
