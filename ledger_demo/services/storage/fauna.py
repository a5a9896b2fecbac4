"""
FaunaDB Storage Implementation

DESIGN DECISION: FaunaDB is the backend because the ledger's hard parts -
durability, unique indexes, transactional read-modify-write - are all
server-side features there. This module only sends expressions built in
ledger_demo.queries.builder and turns the answers into our models.

TRADEOFFS:
- Every call is a blocking HTTP round trip (fine for a linear walkthrough)
- No retries on operations: the first failure ends the run
- Atomicity of the withdrawal is whatever FaunaDB gives a single query
"""

from typing import Any, Optional

from faunadb.client import FaunaClient
from faunadb.errors import BadRequest, FaunaError, NotFound
from requests.exceptions import RequestException
from tenacity import Retrying, stop_after_attempt, wait_exponential

from ledger_demo.config import get_settings
from ledger_demo.config.settings import FaunaSettings
from ledger_demo.models.customer import (
    DatabaseInfo,
    Document,
    WithdrawalOutcome,
)
from ledger_demo.queries import builder
from ledger_demo.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


def _error_codes(exc: FaunaError) -> list[str]:
    return [error.code for error in getattr(exc, "errors", None) or []]


def translate_error(exc: Exception, action: str) -> StorageError:
    """Map a driver or transport exception onto the storage error taxonomy."""
    if isinstance(exc, NotFound):
        return NotFoundError(f"Failed to {action}: {exc}")
    if isinstance(exc, BadRequest) and "instance not unique" in _error_codes(exc):
        return DuplicateError(f"Failed to {action}: {exc}")
    if isinstance(exc, RequestException):
        return ConnectionError(f"Failed to {action}: {exc}")
    return StorageError(f"Failed to {action}: {exc}")


class FaunaConnection:
    """
    Low-level FaunaDB client wrapper.

    Holds the admin client and, once a key has been issued, the
    session client bound to that key.
    """

    def __init__(self, settings: Optional[FaunaSettings] = None):
        self._settings = settings or get_settings().fauna
        self._admin_client: Optional[FaunaClient] = None
        self._session_client: Optional[FaunaClient] = None

    def _make_client(self) -> FaunaClient:
        return FaunaClient(
            secret=self._settings.admin_secret,
            endpoint=self._settings.endpoint,
            timeout=self._settings.timeout,
        )

    def connect(self) -> FaunaClient:
        """
        Create the admin client and wait until the endpoint answers.

        Only this readiness probe is retried; queries never are.
        """
        if self._admin_client is None:
            client = self._make_client()
            try:
                for attempt in Retrying(
                    stop=stop_after_attempt(self._settings.connect_attempts),
                    wait=wait_exponential(multiplier=1, min=2, max=10),
                    reraise=True,
                ):
                    with attempt:
                        client.ping()
            except (FaunaError, RequestException) as e:
                raise ConnectionError(
                    f"FaunaDB endpoint not reachable at {self._settings.endpoint}: {e}"
                ) from e
            self._admin_client = client

        return self._admin_client

    def open_session(self, secret: str) -> FaunaClient:
        """Derive a client that authenticates with a database-scoped key."""
        self._session_client = self.connect().new_session_client(secret=secret)
        return self._session_client

    def get_session_client(self) -> FaunaClient:
        if self._session_client is None:
            raise ConnectionError("No session open; create a key and call open_session() first")
        return self._session_client


class FaunaLedgerStorage(LedgerStorageInterface):
    """
    FaunaDB implementation of ledger storage.

    Database and key management go through the admin client,
    schema and record operations through the session client.
    """

    def __init__(self, connection: Optional[FaunaConnection] = None):
        self._connection = connection or FaunaConnection()

    def _query(self, client: FaunaClient, expr: Any, action: str) -> Any:
        try:
            return client.query(expr)
        except (FaunaError, RequestException) as e:
            raise translate_error(e, action) from e

    def _admin(self, expr: Any, action: str) -> Any:
        return self._query(self._connection.connect(), expr, action)

    def _session(self, expr: Any, action: str) -> Any:
        return self._query(self._connection.get_session_client(), expr, action)

    # Provisioning -------------------------------------------------------
    def recreate_database(self, name: str) -> DatabaseInfo:
        result = self._admin(
            builder.recreate_database(name),
            f"recreate database {name}",
        )
        return DatabaseInfo.from_fauna(result)

    def create_server_key(self, database: str, role: str = "server") -> str:
        result = self._admin(
            builder.create_server_key(database, role),
            f"create key for database {database}",
        )
        return result["secret"]

    def open_session(self, secret: str) -> None:
        self._connection.open_session(secret)

    def create_collections(self, names: list[str]) -> list[str]:
        result = self._session(
            builder.create_collections(names),
            f"create collections {names}",
        )
        return [collection["name"] for collection in result]

    def create_unique_index(
        self,
        name: str,
        source: str,
        field_path: list[str],
    ) -> str:
        result = self._session(
            builder.create_unique_index(name, source, field_path),
            f"create index {name}",
        )
        return result["name"]

    # Records ------------------------------------------------------------
    def create_document(self, collection: str, data: dict) -> Document:
        result = self._session(
            builder.create_document(collection, data),
            f"create document in {collection}",
        )
        return Document.from_fauna(result)

    def get_by_index(self, index: str, term: Any) -> Document:
        result = self._session(
            builder.get_by_index(index, term),
            f"get {term!r} from {index}",
        )
        return Document.from_fauna(result)

    def select_by_index(self, index: str, term: Any, path: list[str]) -> Any:
        return self._session(
            builder.select_by_index(index, term, path),
            f"select {'.'.join(path)} of {term!r} from {index}",
        )

    def update_by_index(self, index: str, term: Any, data: dict) -> Document:
        result = self._session(
            builder.update_by_index(index, term, data),
            f"update {term!r} via {index}",
        )
        return Document.from_fauna(result)

    def withdraw(self, index: str, term: Any, amount: int) -> WithdrawalOutcome:
        result = self._session(
            builder.withdraw(index, term, amount),
            f"withdraw {amount} from {term!r}",
        )
        return WithdrawalOutcome.from_result(term, amount, result)
