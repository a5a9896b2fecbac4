"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the operations the
walkthrough sends to the database. This allows us to:
1. Keep the flow decoupled from the FaunaDB driver
2. Use in-memory storage for testing
3. Keep every request one synchronous round trip with no hidden retries

The interface is intentionally small - it is not an ORM.
Just the operations the ledger walkthrough needs.
"""

from abc import ABC, abstractmethod
from typing import Any

from ledger_demo.models.customer import (
    DatabaseInfo,
    Document,
    WithdrawalOutcome,
)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Provisioning calls run with admin rights; everything after
    open_session() runs with the database-scoped key.
    """

    @abstractmethod
    def recreate_database(self, name: str) -> DatabaseInfo:
        """
        Drop the database if it exists, then create it empty.

        Args:
            name: Database name

        Returns:
            The newly created database

        Raises:
            StorageError: If the request fails
        """
        pass

    @abstractmethod
    def create_server_key(self, database: str, role: str = "server") -> str:
        """
        Mint a key scoped to one database.

        Args:
            database: Database the key is valid for
            role: Key role

        Returns:
            The key's secret
        """
        pass

    @abstractmethod
    def open_session(self, secret: str) -> None:
        """Bind all following record operations to the given key secret."""
        pass

    @abstractmethod
    def create_collections(self, names: list[str]) -> list[str]:
        """
        Create every collection in one batched request.

        Returns:
            Names of the created collections, in request order
        """
        pass

    @abstractmethod
    def create_unique_index(
        self,
        name: str,
        source: str,
        field_path: list[str],
    ) -> str:
        """
        Create a unique index over a nested field of a collection.

        Args:
            name: Index name
            source: Collection the index covers
            field_path: Path of the term field, e.g. ["data", "id"]

        Returns:
            The index name
        """
        pass

    @abstractmethod
    def create_document(self, collection: str, data: dict) -> Document:
        """
        Store a new record.

        Raises:
            DuplicateError: If a unique index rejects the data
        """
        pass

    @abstractmethod
    def get_by_index(self, index: str, term: Any) -> Document:
        """
        Fetch the single record matching term.

        Raises:
            NotFoundError: If nothing matches
        """
        pass

    @abstractmethod
    def select_by_index(self, index: str, term: Any, path: list[str]) -> Any:
        """
        Fetch one field of the record matching term.

        Args:
            path: Field path inside the record, e.g. ["data", "balance"]

        Raises:
            NotFoundError: If nothing matches
        """
        pass

    @abstractmethod
    def update_by_index(self, index: str, term: Any, data: dict) -> Document:
        """
        Merge data into the record matching term, in one request.

        Raises:
            NotFoundError: If nothing matches
        """
        pass

    @abstractmethod
    def withdraw(self, index: str, term: Any, amount: int) -> WithdrawalOutcome:
        """
        Subtract amount from the matching record's balance if it stays >= 0.

        The read, the check and the write go out as one request.
        A refused withdrawal is NOT an error: the outcome has
        applied=False and carries the INSUFFICIENT_FUNDS message.

        Raises:
            NotFoundError: If nothing matches
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
