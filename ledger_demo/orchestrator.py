"""
Main Orchestrator for Ledger Demo

This module ties together all the components and defines the
end-to-end walkthrough:
1. Provision (recreate database → server key → session)
2. Schema (collections → unique index)
3. Records (create → read → update → read balance)
4. Withdrawal (one conditional read-modify-write → read balance)

DESIGN DECISION: Steps never swallow errors. A failed request is
audited and re-raised; the caller decides to abort. The one
non-error "failure" is a refused withdrawal, which comes back as
a WithdrawalOutcome with applied=False.
"""

from contextlib import contextmanager
from typing import Iterator, Optional
from uuid import UUID

from ledger_demo.audit import AuditLogger, create_correlation_id
from ledger_demo.config import get_settings
from ledger_demo.config.settings import LedgerSettings
from ledger_demo.models.audit import AuditEventBuilder
from ledger_demo.models.customer import (
    Customer,
    CustomerRecord,
    DatabaseInfo,
    DemoRunResult,
    WithdrawalOutcome,
)
from ledger_demo.services.storage import (
    FaunaConnection,
    FaunaLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)


# Term path of the unique customer index
CUSTOMER_ID_PATH = ["data", "id"]
BALANCE_PATH = ["data", "balance"]


class LedgerDemoFlow:
    """
    Orchestrates the ledger walkthrough.

    Each public method is one step of the walkthrough and sends its
    requests synchronously. run() executes the steps in order.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
        correlation_id: Optional[UUID] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = settings or get_settings().ledger
        self._correlation_id = correlation_id or create_correlation_id()

    @property
    def correlation_id(self) -> UUID:
        return self._correlation_id

    @contextmanager
    def _step(self, name: str) -> Iterator[None]:
        try:
            yield
        except StorageError as e:
            self._audit_logger.log(
                AuditEventBuilder.external_service_error(
                    step=name,
                    error_type=type(e).__name__,
                    error_message=str(e),
                    correlation_id=self._correlation_id,
                )
            )
            raise

    # Provisioning -------------------------------------------------------
    def provision_database(self) -> DatabaseInfo:
        """Drop and recreate the database, then switch to a scoped key."""
        name = self._settings.database_name

        with self._step("recreate_database"):
            database = self._storage.recreate_database(name)
        self._audit_logger.log(
            AuditEventBuilder.database_recreated(
                name=database.name,
                ref_id=database.ref_id,
                correlation_id=self._correlation_id,
            )
        )

        with self._step("create_key"):
            secret = self._storage.create_server_key(name, self._settings.key_role)
            self._storage.open_session(secret)
        self._audit_logger.log(
            AuditEventBuilder.key_created(
                database=name,
                role=self._settings.key_role,
                correlation_id=self._correlation_id,
            )
        )

        return database

    def provision_schema(self) -> tuple[list[str], str]:
        """Create both collections, then the unique customer index."""
        with self._step("create_collections"):
            collections = self._storage.create_collections(self._settings.collections)
        self._audit_logger.log(
            AuditEventBuilder.collections_created(
                names=collections,
                correlation_id=self._correlation_id,
            )
        )

        with self._step("create_index"):
            index = self._storage.create_unique_index(
                self._settings.customer_index,
                self._settings.customers_collection,
                CUSTOMER_ID_PATH,
            )
        self._audit_logger.log(
            AuditEventBuilder.index_created(
                name=index,
                source=self._settings.customers_collection,
                field_path=CUSTOMER_ID_PATH,
                correlation_id=self._correlation_id,
            )
        )

        return collections, index

    # Records ------------------------------------------------------------
    def create_customer(self, customer: Customer) -> CustomerRecord:
        with self._step("create_customer"):
            document = self._storage.create_document(
                self._settings.customers_collection,
                customer.model_dump(),
            )
        record = CustomerRecord.from_document(document)
        self._audit_logger.log(
            AuditEventBuilder.customer_created(
                customer_id=record.customer.id,
                ref_id=record.ref_id,
                balance=record.customer.balance,
                correlation_id=self._correlation_id,
            )
        )
        return record

    def read_customer(self, customer_id: int) -> Customer:
        with self._step("read_customer"):
            data = self._storage.select_by_index(
                self._settings.customer_index,
                customer_id,
                ["data"],
            )
        self._audit_logger.log(
            AuditEventBuilder.customer_read(
                customer_id=customer_id,
                data=data,
                correlation_id=self._correlation_id,
            )
        )
        return Customer(**data)

    def update_customer(self, customer: Customer) -> CustomerRecord:
        with self._step("update_customer"):
            document = self._storage.update_by_index(
                self._settings.customer_index,
                customer.id,
                customer.model_dump(),
            )
        record = CustomerRecord.from_document(document)
        self._audit_logger.log(
            AuditEventBuilder.customer_updated(
                customer_id=customer.id,
                balance=record.customer.balance,
                correlation_id=self._correlation_id,
            )
        )
        return record

    def read_balance(self, customer_id: int) -> int:
        with self._step("read_balance"):
            balance = self._storage.select_by_index(
                self._settings.customer_index,
                customer_id,
                BALANCE_PATH,
            )
        self._audit_logger.log(
            AuditEventBuilder.balance_read(
                customer_id=customer_id,
                balance=balance,
                correlation_id=self._correlation_id,
            )
        )
        return balance

    # Withdrawal ---------------------------------------------------------
    def withdraw(self, customer_id: int, amount: int) -> WithdrawalOutcome:
        """
        Withdraw amount if the balance stays >= 0.

        Returns the outcome either way; check outcome.applied.
        """
        with self._step("withdraw"):
            outcome = self._storage.withdraw(
                self._settings.customer_index,
                customer_id,
                amount,
            )

        if outcome.applied:
            self._audit_logger.log(
                AuditEventBuilder.withdrawal_applied(
                    customer_id=customer_id,
                    amount=amount,
                    new_balance=outcome.new_balance,
                    correlation_id=self._correlation_id,
                )
            )
        else:
            self._audit_logger.log(
                AuditEventBuilder.withdrawal_rejected(
                    customer_id=customer_id,
                    amount=amount,
                    message=outcome.message,
                    correlation_id=self._correlation_id,
                )
            )
        return outcome

    def run(self) -> DemoRunResult:
        """Execute the whole walkthrough. The first failed request aborts it."""
        settings = self._settings

        database = self.provision_database()
        collections, index = self.provision_schema()

        created = self.create_customer(
            Customer(id=settings.customer_id, balance=settings.initial_balance)
        )
        read = self.read_customer(settings.customer_id)
        updated = self.update_customer(
            Customer(id=settings.customer_id, balance=settings.updated_balance)
        )
        balance_after_update = self.read_balance(settings.customer_id)

        withdrawal = self.withdraw(settings.customer_id, settings.withdrawal_amount)
        final_balance = self.read_balance(settings.customer_id)

        return DemoRunResult(
            database=database,
            collections=collections,
            index=index,
            created=created,
            read=read,
            updated=updated,
            balance_after_update=balance_after_update,
            withdrawal=withdrawal,
            final_balance=final_balance,
        )


def create_app_components(
    connection: Optional[FaunaConnection] = None,
) -> LedgerDemoFlow:
    """
    Factory function to create all application components.

    Args:
        connection: FaunaDB connection to use. Built from settings if None.

    Returns:
        A flow wired to FaunaDB storage and a local audit logger
    """
    connection = connection or FaunaConnection()
    storage = FaunaLedgerStorage(connection)
    return LedgerDemoFlow(
        storage=storage,
        audit_logger=AuditLogger(),
    )
