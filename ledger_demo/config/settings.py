"""
Configuration Management for Ledger Demo

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The defaults reproduce the stock walkthrough against a local FaunaDB
container, so the demo runs with no environment at all.
"""

from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FaunaSettings(BaseSettings):
    """FaunaDB endpoint and admin credential."""

    model_config = SettingsConfigDict(
        env_prefix="FAUNA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    endpoint: str = Field(
        default="http://127.0.0.1:8443",
        description="Base URL of the FaunaDB HTTP endpoint"
    )
    admin_secret: str = Field(
        default="secret",
        description="Admin secret used to create databases and keys"
    )
    timeout: int = Field(
        default=60,
        ge=1,
        description="Per-request timeout in seconds"
    )
    connect_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times to ping the endpoint before giving up"
    )

    @field_validator('endpoint')
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Endpoint must be an absolute http(s) URL."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"Endpoint must be an http(s) URL, got: {v}")
        return v.rstrip("/")


class LedgerSettings(BaseSettings):
    """
    Names and amounts used by the walkthrough.

    Changing database_name points the demo at a different database.
    It is dropped and recreated on every run.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    database_name: str = Field(
        default="LedgerExample",
        min_length=1,
        description="Database to (re)create for the run"
    )
    key_role: str = Field(
        default="server",
        description="Role of the key minted for the session"
    )
    customers_collection: str = Field(default="customers")
    transactions_collection: str = Field(default="transactions")
    customer_index: str = Field(default="customer_by_id")

    customer_id: int = Field(default=0)
    initial_balance: int = Field(default=100, ge=0)
    updated_balance: int = Field(default=200, ge=0)
    withdrawal_amount: int = Field(default=50, ge=0)

    @property
    def collections(self) -> list[str]:
        """Collections provisioned in one batched request, in order."""
        return [self.customers_collection, self.transactions_collection]


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

    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    log_format: str = Field(
        default="json",
        description="'json' for machine-readable lines, 'console' for humans"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in ("json", "console"):
            raise ValueError(f"Unknown log format: {v}")
        return fmt


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
    def fauna(self) -> FaunaSettings:
        return FaunaSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

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

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every group that failed to load.
    """
    results = {}

    settings = get_settings()

    for name in ("fauna", "ledger", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
