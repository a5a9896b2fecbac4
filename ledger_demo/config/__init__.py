"""Configuration package."""

from ledger_demo.config.settings import (
    AppSettings,
    FaunaSettings,
    LedgerSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "FaunaSettings",
    "LedgerSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
