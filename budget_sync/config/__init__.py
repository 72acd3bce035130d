"""Configuration package."""

from budget_sync.config.settings import (
    AppSettings,
    Settings,
    SheetsEndpointSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "Settings",
    "SheetsEndpointSettings",
    "get_settings",
    "validate_all_settings",
]
