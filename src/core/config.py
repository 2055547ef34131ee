"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    All settings can be overridden via environment variables.
    For example, DATA_DIR env var sets the data_dir field.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Storage
    # =========================================================================
    DATA_DIR: str = Field(
        default="data",
        description="Directory holding the JSON prediction and streak documents",
    )

    # =========================================================================
    # Insights
    # =========================================================================
    INSIGHTS_MIN_RESOLVED: int = Field(
        default=5,
        ge=1,
        le=1000,
        description="Resolved predictions required before calibration insights unlock",
    )

    # =========================================================================
    # Reports
    # =========================================================================
    REPORT_WEEKLY_DAYS: int = Field(
        default=7,
        ge=1,
        le=366,
        description="Trailing window (days) for weekly reports and weekly challenges",
    )
    REPORT_MONTHLY_DAYS: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Trailing window (days) for monthly reports",
    )

    @model_validator(mode="after")
    def _validate_report_windows(self) -> Settings:
        if self.REPORT_WEEKLY_DAYS > self.REPORT_MONTHLY_DAYS:
            msg = "REPORT_WEEKLY_DAYS must be <= REPORT_MONTHLY_DAYS"
            raise ValueError(msg)
        return self

    # =========================================================================
    # API
    # =========================================================================
    API_HOST: str = Field(default="127.0.0.1")
    API_PORT: int = Field(default=8000, ge=1, le=65535)
    CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8081"],
        description="Allowed CORS origins",
    )

    # =========================================================================
    # Application
    # =========================================================================
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )
    LOG_LEVEL: str | None = Field(
        default=None,
        description="Explicit log level; derived from ENVIRONMENT when unset",
    )
    LOG_FORMAT: str = Field(default="json", description="json or console")

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def effective_log_level(self) -> str:
        if self.LOG_LEVEL and self.LOG_LEVEL.strip():
            return self.LOG_LEVEL.strip()
        return "DEBUG" if self.is_development else "INFO"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience instance
settings = get_settings()
