"""Configuration package."""

from cardledger.config.settings import (
    AppSettings,
    GeminiSettings,
    ReportSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GeminiSettings",
    "ReportSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
