"""
Configuration Management for Shop Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage location, rate endpoint and UI defaults are all visible in
one place and validated at startup. The protected admin accounts are
not configuration: they are fixed in shop_ledger.models.accounts.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key-value persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SHOP_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="local",
        pattern="^(local|google_sheets|memory)$",
        description="Which key-value backend holds the state document"
    )
    data_dir: str = Field(
        default=".shop_ledger",
        description="Directory for the local JSON backend"
    )

    # Document keys
    user_key_prefix: str = Field(
        default="shop_state_user_",
        description="Prefix of the per-user state document key"
    )
    shared_key: str = Field(
        default="app_state_shared_v1",
        description="Key used when no user is signed in"
    )
    backup_key: str = Field(
        default="shop_state_backup_v1",
        description="Global fallback copy of the last saved document"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote mirror configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
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
    state_sheet_name: str = Field(
        default="ShopState",
        description="Name of the sheet holding key/value documents"
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


class ExchangeRateSettings(BaseSettings):
    """Remote USD -> UZS rate endpoint configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXCHANGE_RATE_",
        extra="ignore"
    )

    api_url: str = Field(
        default="https://api.exchangerate.host/latest",
        description="Endpoint returning {'rates': {'UZS': n}} for base=USD"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="HTTP timeout for a single rate request"
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

    # Currency
    local_currency: str = Field(
        default="UZS",
        description="Display currency of a fresh state (UZS or USD)"
    )
    default_receipt_rate: float = Field(
        default=13000.0,
        gt=0,
        description="Receipt rate of a fresh state"
    )

    # Persistence
    save_debounce_ms: int = Field(
        default=800,
        ge=0,
        le=60000,
        description="Idle window before a state change is written"
    )

    @property
    def save_debounce_seconds(self) -> float:
        """Get the debounce window in seconds."""
        return self.save_debounce_ms / 1000


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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def exchange_rate(self) -> ExchangeRateSettings:
        return ExchangeRateSettings()

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
    Google Sheets is only checked when it is the selected backend.
    """
    results = {}

    settings = get_settings()

    try:
        storage = settings.storage
        results["storage"] = True
    except Exception as e:
        storage = None
        results["storage"] = False
        results["storage_error"] = str(e)

    if storage is not None and storage.backend == "google_sheets":
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)

    try:
        _ = settings.exchange_rate
        results["exchange_rate"] = True
    except Exception as e:
        results["exchange_rate"] = False
        results["exchange_rate_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
