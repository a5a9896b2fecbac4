"""
Storage Services Package

Provides the abstract ledger storage interface and its FaunaDB implementation.
"""

from ledger_demo.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from ledger_demo.services.storage.fauna import (
    FaunaConnection,
    FaunaLedgerStorage,
    translate_error,
)

__all__ = [
    # Interfaces
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # FaunaDB implementation
    "FaunaConnection",
    "FaunaLedgerStorage",
    "translate_error",
]
