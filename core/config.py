"""
Unified Configuration Management
Handles all configuration settings for the monetization variance reports
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application Configuration
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/variance.log")
    ENGINE_LOG_FILE: str = Field(default="logs/engine.log")

    # Trailing window / calendar
    TRAILING_WINDOW_WEEKS: int = Field(default=4, ge=1)
    WEEKS_PER_YEAR: int = Field(default=52)

    # Seasonality curves
    SEASONAL_VERTICAL: str = Field(default="Swimwear")
    DEFAULT_SEASONALITY_CURVE: str = Field(default="Total ex. Swimwear")
    DEFAULT_SEASONALITY_PCT: float = Field(default=1.923)
    WARN_ON_SEASONALITY_FALLBACK: bool = Field(default=True)

    # Contract baselines
    DEFAULT_EXPECTED_ADOPTION_PCT: float = Field(default=50.0)
    EXPECTED_ELIGIBILITY_RATE_PCT: float = Field(default=70.7)

    # Reporting gates
    ACTIVE_MERCHANT_MIN_DAYS: int = Field(default=7)
    CONTRIBUTOR_MIN_DAYS_LIVE: int = Field(default=30)

    # Fan-out
    ENGINE_PARALLEL_WORKERS: int = Field(default=1, ge=1)

    # Optional override for the reporting "as of" week
    REPORT_THROUGH_ISO_WEEK: Optional[int] = Field(default=None, ge=1, le=53)

    @property
    def engine_config(self) -> dict:
        """Get the engine-relevant subset of the settings."""
        return {
            "window_size": self.TRAILING_WINDOW_WEEKS,
            "weeks_per_year": self.WEEKS_PER_YEAR,
            "seasonal_vertical": self.SEASONAL_VERTICAL,
            "default_curve": self.DEFAULT_SEASONALITY_CURVE,
            "default_pct": self.DEFAULT_SEASONALITY_PCT,
            "warn_on_fallback": self.WARN_ON_SEASONALITY_FALLBACK,
            "default_expected_adoption_pct": self.DEFAULT_EXPECTED_ADOPTION_PCT,
            "expected_eligibility_pct": self.EXPECTED_ELIGIBILITY_RATE_PCT,
            "active_min_days": self.ACTIVE_MERCHANT_MIN_DAYS,
            "contributor_min_days": self.CONTRIBUTOR_MIN_DAYS_LIVE,
            "max_workers": self.ENGINE_PARALLEL_WORKERS,
            "through_iso_week": self.REPORT_THROUGH_ISO_WEEK,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
