"""Services package."""

from ledger_demo.services.storage import (
    ConnectionError,
    DuplicateError,
    FaunaConnection,
    FaunaLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "DuplicateError",
    "FaunaConnection",
    "FaunaLedgerStorage",
    "LedgerStorageInterface",
    "NotFoundError",
    "StorageError",
]
