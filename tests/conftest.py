"""
Shared fixtures.

InMemoryLedgerStorage stands in for FaunaDB so the flow can be exercised
without a network. It mirrors the server behaviour the walkthrough relies
on: drop-and-recreate wipes data and keys, unique indexes reject duplicate
terms, lookups that match nothing fail, and withdrawals only apply when the
new balance stays >= 0.
"""

import itertools
from dataclasses import dataclass, field
from typing import Any, Optional

import pytest

from ledger_demo.config import get_settings
from ledger_demo.config.settings import LedgerSettings
from ledger_demo.models.customer import (
    INSUFFICIENT_FUNDS,
    CustomerRecord,
    DatabaseInfo,
    Document,
    WithdrawalOutcome,
)
from ledger_demo.services.storage import (
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


@dataclass
class _Database:
    collections: dict[str, dict[str, dict]] = field(default_factory=dict)
    indexes: dict[str, tuple[str, list[str]]] = field(default_factory=dict)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Dict-backed storage double."""

    def __init__(self, fail_on: Optional[set[str]] = None):
        self.databases: dict[str, _Database] = {}
        self.keys: dict[str, str] = {}
        self.calls: list[str] = []
        self.fail_on = fail_on or set()
        self._session: Optional[str] = None
        self._ids = itertools.count(1)
        self._clock = itertools.count(1_000_000)

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise StorageError(f"Failed to {name}: simulated outage")

    def _db(self) -> _Database:
        if self._session is None or self._session not in self.databases:
            raise ConnectionError("No session open")
        return self.databases[self._session]

    @staticmethod
    def _term(data: dict, path: list[str]) -> Any:
        value = {"data": data}
        for part in path:
            value = value.get(part) if isinstance(value, dict) else None
        return value

    def _check_unique(self, db: _Database, collection: str, data: dict, skip: Optional[str] = None):
        for source, path in db.indexes.values():
            if source != collection:
                continue
            term = self._term(data, path)
            for ref_id, doc in db.collections[collection].items():
                if ref_id != skip and self._term(doc["data"], path) == term:
                    raise DuplicateError("Failed to create document: instance not unique")

    def _match(self, index: str, term: Any) -> tuple[str, str]:
        db = self._db()
        if index not in db.indexes:
            raise NotFoundError(f"Failed to match: index {index} not found")
        source, path = db.indexes[index]
        for ref_id, doc in db.collections[source].items():
            if self._term(doc["data"], path) == term:
                return source, ref_id
        raise NotFoundError(f"Failed to match {term!r}: instance not found")

    def _document(self, collection: str, ref_id: str) -> Document:
        doc = self._db().collections[collection][ref_id]
        return Document(ref_id=ref_id, collection=collection, ts=doc["ts"], data=dict(doc["data"]))

    # Provisioning
    def recreate_database(self, name: str) -> DatabaseInfo:
        self._call("recreate_database")
        self.databases[name] = _Database()
        self.keys = {secret: db for secret, db in self.keys.items() if db != name}
        if self._session == name:
            self._session = None
        return DatabaseInfo(name=name, ref_id=name, ts=next(self._clock))

    def create_server_key(self, database: str, role: str = "server") -> str:
        self._call("create_server_key")
        if database not in self.databases:
            raise NotFoundError(f"Failed to create key: database {database} not found")
        secret = f"fn-{database}-{next(self._ids)}"
        self.keys[secret] = database
        return secret

    def open_session(self, secret: str) -> None:
        self._call("open_session")
        if secret not in self.keys:
            raise ConnectionError("unauthorized")
        self._session = self.keys[secret]

    def create_collections(self, names: list[str]) -> list[str]:
        self._call("create_collections")
        db = self._db()
        for name in names:
            if name in db.collections:
                raise StorageError(f"Failed to create collections: {name} already exists")
        for name in names:
            db.collections[name] = {}
        return list(names)

    def create_unique_index(self, name: str, source: str, field_path: list[str]) -> str:
        self._call("create_unique_index")
        db = self._db()
        if source not in db.collections:
            raise NotFoundError(f"Failed to create index: collection {source} not found")
        db.indexes[name] = (source, list(field_path))
        return name

    # Records
    def create_document(self, collection: str, data: dict) -> Document:
        self._call("create_document")
        db = self._db()
        if collection not in db.collections:
            raise NotFoundError(f"Failed to create document: collection {collection} not found")
        self._check_unique(db, collection, data)
        ref_id = str(next(self._ids))
        db.collections[collection][ref_id] = {"ts": next(self._clock), "data": dict(data)}
        return self._document(collection, ref_id)

    def get_by_index(self, index: str, term: Any) -> Document:
        self._call("get_by_index")
        return self._document(*self._match(index, term))

    def select_by_index(self, index: str, term: Any, path: list[str]) -> Any:
        self._call("select_by_index")
        document = self._document(*self._match(index, term))
        value: Any = {"ref": document.ref_id, "ts": document.ts, "data": document.data}
        for part in path:
            value = value[part]
        return value

    def update_by_index(self, index: str, term: Any, data: dict) -> Document:
        self._call("update_by_index")
        collection, ref_id = self._match(index, term)
        db = self._db()
        merged = {**db.collections[collection][ref_id]["data"], **data}
        self._check_unique(db, collection, merged, skip=ref_id)
        db.collections[collection][ref_id] = {"ts": next(self._clock), "data": merged}
        return self._document(collection, ref_id)

    def withdraw(self, index: str, term: Any, amount: int) -> WithdrawalOutcome:
        self._call("withdraw")
        collection, ref_id = self._match(index, term)
        doc = self._db().collections[collection][ref_id]
        new_balance = doc["data"]["balance"] - amount
        if new_balance < 0:
            return WithdrawalOutcome(
                customer_id=term,
                amount=amount,
                applied=False,
                message=INSUFFICIENT_FUNDS,
            )
        doc["data"] = {**doc["data"], "balance": new_balance}
        doc["ts"] = next(self._clock)
        return WithdrawalOutcome(
            customer_id=term,
            amount=amount,
            applied=True,
            record=CustomerRecord.from_document(self._document(collection, ref_id)),
        )


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings(
        database_name="LedgerExample",
        customer_id=0,
        initial_balance=100,
        updated_balance=200,
        withdrawal_amount=50,
    )


@pytest.fixture
def storage() -> InMemoryLedgerStorage:
    return InMemoryLedgerStorage()


@pytest.fixture
def storage_factory():
    """Build storage doubles with custom failure points."""
    return InMemoryLedgerStorage
