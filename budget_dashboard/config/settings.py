"""
Configuration Management for Budget Dashboard

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every external service is optional at construction time: a missing
credential switches the matching feature off instead of crashing the app.
Use the ``is_configured`` properties to check before wiring a service.
"""

import warnings
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Supabase (Postgres) ledger store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    db_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL of the Supabase Postgres database"
    )
    pool_size: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Connections kept open in the pool"
    )
    max_overflow: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Extra connections allowed above pool_size"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.db_url)


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets mirror configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    service_account_email: Optional[str] = Field(
        default=None,
        description="Service account e-mail used as the JWT issuer"
    )
    private_key: Optional[str] = Field(
        default=None,
        description="PEM private key of the service account"
    )
    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to a service account credentials JSON (alternative to email + key)"
    )
    sheet_id: Optional[str] = Field(
        default=None,
        description="ID of the budget spreadsheet"
    )

    # Worksheet names within the spreadsheet
    budget_sheet_name: str = Field(
        default="Budget",
        description="Worksheet holding the category x month totals"
    )
    products_sheet_name: str = Field(
        default="Cakes/Biscuits",
        description="Worksheet holding the product x month quantities"
    )

    write_breakdown_formula: bool = Field(
        default=False,
        description="Write '=a+b+c' instead of the plain total when a cell has several expenses"
    )

    @field_validator("private_key")
    @classmethod
    def normalize_private_key(cls, v: Optional[str]) -> Optional[str]:
        """
        Accept keys pasted with escaped newlines or surrounding quotes.

        An unusable key disables the mirror rather than failing startup.
        """
        if v is None:
            return None
        key = v.strip()
        if len(key) >= 2 and key[0] == key[-1] and key[0] in ("'", '"'):
            key = key[1:-1]
        key = key.replace("\\n", "\n")
        if "-----BEGIN" not in key:
            warnings.warn("GOOGLE_PRIVATE_KEY is not a PEM key; Google Sheets sync disabled.")
            return None
        return key

    @field_validator("credentials_path")
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before syncing to Google Sheets."
            )
        return v

    @property
    def has_inline_credentials(self) -> bool:
        return bool(self.service_account_email and self.private_key)

    @property
    def is_configured(self) -> bool:
        """Sheet ID plus either inline credentials or a credentials file."""
        return bool(self.sheet_id) and (
            self.has_inline_credentials or bool(self.credentials_path)
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
        description="Root log level"
    )

    # HTTP API
    api_host: str = Field(
        default="127.0.0.1",
        description="Interface the JSON API binds to"
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port the JSON API listens on"
    )

    # Carryover recursion stops at this month (balance before it is 0)
    budget_start_year: int = Field(
        default=2026,
        ge=2000,
        le=2100,
        description="First year of the budget"
    )
    budget_start_month: int = Field(
        default=1,
        ge=1,
        le=12,
        description="First month of the budget (1-12)"
    )

    recent_transactions_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many rows the dashboard shows as recent transactions"
    )
    excluded_income_sources: str = Field(
        default="T-WAKE",
        description="Comma-separated income sources left out of monthly income totals"
    )
    product_sales_year: int = Field(
        default=2026,
        ge=2000,
        le=2100,
        description="Year mirrored into the products worksheet"
    )

    @property
    def excluded_income_sources_list(self) -> list[str]:
        """Get excluded income sources as a list."""
        return [
            source.strip()
            for source in self.excluded_income_sources.split(",")
            if source.strip()
        ]


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
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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


def validate_all_settings() -> dict[str, object]:
    """
    Report which services are configured.

    Returns a dict of {service_name: is_configured} plus
    {service_name_error: message} for services that are not.
    Useful for startup checks and the settings page.
    """
    results: dict[str, object] = {}

    settings = get_settings()

    try:
        database = settings.database
        results["database"] = database.is_configured
        if not database.is_configured:
            results["database_error"] = "SUPABASE_DB_URL is not set"
    except Exception as e:
        results["database"] = False
        results["database_error"] = str(e)

    try:
        sheets = settings.google_sheets
        results["google_sheets"] = sheets.is_configured
        if not sheets.is_configured:
            results["google_sheets_error"] = (
                "Set GOOGLE_SHEET_ID and either GOOGLE_SERVICE_ACCOUNT_EMAIL + "
                "GOOGLE_PRIVATE_KEY or GOOGLE_CREDENTIALS_PATH"
            )
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
