"""
Configuration Management for Budget Sync

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: The endpoint URL and shared secret live here and are
handed to the sync client explicitly. Nothing in the code base embeds
them as constants.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SheetsEndpointSettings(BaseSettings):
    """Spreadsheet script endpoint configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        ...,
        description="Base URL of the deployed spreadsheet script"
    )
    secret: SecretStr = Field(
        ...,
        description="Shared secret sent as the 'secret' query parameter"
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="HTTP timeout in seconds (httpx default)"
    )

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Only http(s) endpoints make sense here."""
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got: {v!r}")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root log level for structured logging"
    )

    # Remote reads
    fetch_limit: int = Field(
        default=300,
        ge=1,
        le=5000,
        description="Maximum transactions requested per month fetch"
    )
    summary_months: int = Field(
        default=12,
        ge=1,
        le=120,
        description="How many recent months the summary offers"
    )

    # Local ledger
    seed_defaults_on_empty: bool = Field(
        default=True,
        description="Seed default categories/payment methods when empty"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Loaded lazily so the app can run offline without endpoint config

    @property
    def sheets(self) -> SheetsEndpointSettings:
        return SheetsEndpointSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.sheets
        results["sheets"] = True
    except Exception as e:
        results["sheets"] = False
        results["sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
