"""
Configuration Management for the Card Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The only external service is the optional expense classifier; everything
else (storage path, report output, locale) has a working default so the
ledger runs with no configuration at all.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_LOCALES = ("en", "pt")


class GeminiSettings(BaseSettings):
    """Gemini expense classifier configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"),
        description="Gemini API key; classification is disabled without it"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )
    max_output_tokens: int = Field(
        default=256,
        ge=32,
        le=2048,
    )
    retry_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Attempts per classification before giving up"
    )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class StorageSettings(BaseSettings):
    """Where the ledger state blob lives."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_path: Path = Field(
        default=Path("~/.cardledger/expenseManagerData.json"),
        description="JSON file holding the whole ledger"
    )
    write_retries: int = Field(
        default=3,
        ge=1,
        le=10,
    )

    @field_validator("data_path")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return v.expanduser()


class ReportSettings(BaseSettings):
    """Closing report output."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_REPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    output_dir: Path = Field(
        default=Path("~/.cardledger/reports"),
        description="Directory exported PDFs are written to"
    )
    currency_code: str = Field(default="BRL")
    currency_symbol: str = Field(default="R$")
    page_width_in: float = Field(default=8.27, gt=0)
    page_height_in: float = Field(default=11.69, gt=0)

    @field_validator("output_dir")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return v.expanduser()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug logging"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False for console output)"
    )
    locale: str = Field(
        default="en",
        description="Month names, default labels and the fallback invoice prefix"
    )
    debt_threshold: Decimal = Field(
        default=Decimal("1"),
        ge=0,
        description="Debts at or below this amount count as settled"
    )

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in SUPPORTED_LOCALES:
            raise ValueError(f"Unsupported locale: {v}. Allowed: {SUPPORTED_LOCALES}")
        return v


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

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def reports(self) -> ReportSettings:
        return ReportSettings()

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

    Returns a dict of {setting_name: is_valid}, plus "<name>_error"
    entries describing failures. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("gemini", "storage", "reports", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    try:
        results["classifier_enabled"] = settings.gemini.enabled
    except Exception:
        results["classifier_enabled"] = False

    return results
