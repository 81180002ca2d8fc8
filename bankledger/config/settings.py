"""
Configuration Management for Bank Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what the ledger depends on and
ensures all required configuration is validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Which blob store backs the ledger, and where it keeps its data."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(memory|file|google_sheets)$",
        description="Storage backend: memory, file or google_sheets"
    )
    data_dir: Path = Field(
        default=Path(".ledger-data"),
        description="Directory used by the file backend"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # One key/value worksheet holds every persisted blob
    ledger_sheet_name: str = Field(
        default="Ledger",
        description="Name of the key/value sheet for ledger blobs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class InterestSettings(BaseSettings):
    """Savings interest accrual configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_INTEREST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    annual_rate_percent: Decimal = Field(
        default=Decimal("2.5"),
        ge=0,
        le=100,
        description="Annual interest rate for savings accounts, in percent"
    )
    interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Seconds between automatic interest cycles"
    )
    enabled: bool = Field(
        default=True,
        description="Run the automatic interest cycle"
    )


class ScreenLockSettings(BaseSettings):
    """UI screen lock configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SCREEN_LOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    passcode: str = Field(
        default="7788",
        min_length=1,
        description="Fixed passcode that unlocks the UI"
    )


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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lower-case level names from the environment."""
        return v.upper() if isinstance(v, str) else v


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

    # Sub-settings are loaded lazily so that an unconfigured
    # Google Sheets backend does not stop a file-backed ledger

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def interest(self) -> InterestSettings:
        return InterestSettings()

    @property
    def screen_lock(self) -> ScreenLockSettings:
        return ScreenLockSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
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

    sections = {
        "storage": lambda: settings.storage,
        "interest": lambda: settings.interest,
        "screen_lock": lambda: settings.screen_lock,
        "app": lambda: settings.app,
    }
    # Google Sheets only matters when it is the selected backend
    try:
        backend = settings.storage.backend
    except Exception:
        backend = None  # reported under "storage" below
    if backend == "google_sheets":
        sections["google_sheets"] = lambda: settings.google_sheets

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
