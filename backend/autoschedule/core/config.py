"""
Application configuration using Pydantic Settings.

Scheduling defaults (cache TTL, lookahead windows, slot granularity) are read
from environment variables and can be overridden per service instance.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "test"] = "local"
    DEBUG: bool = False

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./autoschedule.db"

    # ===========================================
    # Logging
    # ===========================================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ===========================================
    # Scheduling
    # ===========================================
    # Fallback when the user has not configured a time zone
    DEFAULT_TIME_ZONE: str = "UTC"

    # Calendar event cache lifetime
    EVENT_CACHE_TTL_MINUTES: int = Field(default=30, ge=0)

    # Duration used for tasks without an explicit duration
    DEFAULT_TASK_DURATION_MINUTES: int = Field(default=30, ge=1)

    # Earliest start for same-day slots is now + this many minutes
    MINIMUM_START_BUFFER_MINUTES: int = Field(default=15, ge=0)

    # Slot starts are rounded up to this boundary
    SLOT_ROUNDING_MINUTES: int = Field(default=30, ge=1, le=60)

    # Horizons tried in order until one yields a slot
    LOOKAHEAD_WINDOWS_DAYS: List[int] = Field(default=[7, 14, 30])

    # Concurrent lookahead computations in the preliminary scoring pass
    PRELIMINARY_SCORING_BATCH_SIZE: int = Field(default=8, ge=1)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
