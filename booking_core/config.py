"""
Configuration for the scheduling engine.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from booking_core.core.logging import setup_logging


class EngineSettings(BaseSettings):
    """Scheduling engine settings, overridable through ``BOOKING_*`` env vars."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = Field(default="booking-core", description="Service name for log entries")
    log_level: str = Field(default="info", description="Logging level")
    log_format: str = Field(default="pretty", description="Log format (json, pretty, simple)")

    # Slot generation
    slot_granularity_minutes: int = Field(
        default=30,
        ge=5,
        le=720,
        description="Step between candidate start times",
    )

    # Recommendations
    recommendation_strategy: str = Field(
        default="earliest",
        description="Name of the registered recommendation strategy",
    )
    max_suggestions: int = Field(
        default=3,
        ge=1,
        le=48,
        description="Maximum number of recommended slots returned",
    )
    random_seed: Optional[int] = Field(
        default=None,
        description="Seed for the random_sample strategy",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"debug", "info", "warning", "error", "critical"}
        if v.lower() not in valid:
            raise ValueError(f"Invalid log level: {v}")
        return v.lower()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid = {"json", "pretty", "simple"}
        if v.lower() not in valid:
            raise ValueError(f"Invalid log format: {v}")
        return v.lower()


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()


def configure_logging(settings: Optional[EngineSettings] = None) -> None:
    """Apply the logging fields of the settings to the root logger."""
    settings = settings or get_settings()
    setup_logging(
        level=settings.log_level,
        format=settings.log_format,
        service_name=settings.service_name,
    )
