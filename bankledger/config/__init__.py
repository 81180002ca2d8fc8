"""Configuration package."""

from bankledger.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    InterestSettings,
    ScreenLockSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "InterestSettings",
    "ScreenLockSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
