"""Flow tests for LedgerDemoFlow against the in-memory storage double."""

import pytest

from ledger_demo.audit import AuditLogger
from ledger_demo.models.audit import AuditEventType, AuditSeverity
from ledger_demo.models.customer import INSUFFICIENT_FUNDS, Customer
from ledger_demo.orchestrator import LedgerDemoFlow
from ledger_demo.services.storage import (
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
)


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def flow(storage, audit_logger, ledger_settings) -> LedgerDemoFlow:
    return LedgerDemoFlow(
        storage=storage,
        audit_logger=audit_logger,
        settings=ledger_settings,
    )


@pytest.fixture
def provisioned(flow) -> LedgerDemoFlow:
    """Flow with database, key, collections and index in place."""
    flow.provision_database()
    flow.provision_schema()
    return flow


class TestProvisioning:
    """Database, key and schema steps."""

    def test_provision_database_opens_session(self, flow, storage):
        database = flow.provision_database()
        assert database.name == "LedgerExample"
        assert storage.calls == ["recreate_database", "create_server_key", "open_session"]

    def test_provision_schema(self, flow):
        flow.provision_database()
        collections, index = flow.provision_schema()
        assert collections == ["customers", "transactions"]
        assert index == "customer_by_id"

    def test_reprovisioning_yields_empty_database(self, provisioned, storage):
        provisioned.create_customer(Customer(id=0, balance=100))

        provisioned.provision_database()
        assert storage.databases["LedgerExample"].collections == {}

        # Schema can be created again, and the old customer is gone
        provisioned.provision_schema()
        with pytest.raises(NotFoundError):
            provisioned.read_customer(0)

    def test_record_operations_need_a_session(self, storage):
        storage.recreate_database("LedgerExample")
        with pytest.raises(ConnectionError):
            storage.create_collections(["customers"])

    def test_schema_before_database_fails(self, flow):
        with pytest.raises(StorageError):
            flow.provision_schema()


class TestCustomerRecords:
    """Create, read and update through the unique index."""

    def test_create_read_update(self, provisioned):
        created = provisioned.create_customer(Customer(id=0, balance=100))
        assert created.customer == Customer(id=0, balance=100)

        assert provisioned.read_customer(0) == Customer(id=0, balance=100)

        updated = provisioned.update_customer(Customer(id=0, balance=200))
        assert updated.ref_id == created.ref_id
        assert updated.customer.balance == 200
        assert provisioned.read_balance(0) == 200

    def test_duplicate_customer_id_rejected(self, provisioned):
        provisioned.create_customer(Customer(id=0, balance=100))
        with pytest.raises(DuplicateError):
            provisioned.create_customer(Customer(id=0, balance=5))

    def test_distinct_customer_ids_coexist(self, provisioned):
        provisioned.create_customer(Customer(id=0, balance=100))
        provisioned.create_customer(Customer(id=1, balance=7))
        assert provisioned.read_balance(0) == 100
        assert provisioned.read_balance(1) == 7

    def test_read_unknown_customer(self, provisioned):
        with pytest.raises(NotFoundError):
            provisioned.read_customer(42)


class TestWithdrawal:
    """Conditional withdrawal: applied only while the balance stays >= 0."""

    @pytest.mark.parametrize("amount", [0, 1, 50, 99])
    def test_withdrawal_within_balance(self, provisioned, amount):
        provisioned.create_customer(Customer(id=0, balance=100))
        outcome = provisioned.withdraw(0, amount)
        assert outcome.applied is True
        assert outcome.new_balance == 100 - amount
        assert provisioned.read_balance(0) == 100 - amount

    def test_withdrawal_of_exact_balance_leaves_zero(self, provisioned):
        provisioned.create_customer(Customer(id=0, balance=100))
        outcome = provisioned.withdraw(0, 100)
        assert outcome.applied is True
        assert outcome.new_balance == 0
        assert provisioned.read_balance(0) == 0

    @pytest.mark.parametrize("amount", [101, 1000])
    def test_withdrawal_over_balance_returns_sentinel(self, provisioned, amount):
        provisioned.create_customer(Customer(id=0, balance=100))
        outcome = provisioned.withdraw(0, amount)
        assert outcome.applied is False
        assert outcome.message == INSUFFICIENT_FUNDS
        assert outcome.record is None
        assert provisioned.read_balance(0) == 100

    def test_withdraw_fifty_then_hundred(self, provisioned):
        provisioned.create_customer(Customer(id=0, balance=100))

        first = provisioned.withdraw(0, 50)
        assert first.applied is True
        assert provisioned.read_balance(0) == 50

        second = provisioned.withdraw(0, 100)
        assert second.applied is False
        assert second.message == "Error. Insufficient funds."
        assert provisioned.read_balance(0) == 50

    def test_rejection_is_audited_as_warning(self, provisioned, audit_logger):
        provisioned.create_customer(Customer(id=0, balance=10))
        provisioned.withdraw(0, 11)
        last = audit_logger.events[-1]
        assert last.event_type == AuditEventType.WITHDRAWAL_REJECTED
        assert last.severity == AuditSeverity.WARNING

    def test_withdraw_from_unknown_customer(self, provisioned):
        with pytest.raises(NotFoundError):
            provisioned.withdraw(7, 1)


class TestRun:
    """The whole walkthrough."""

    def test_default_run(self, flow, storage):
        result = flow.run()

        assert result.database.name == "LedgerExample"
        assert result.collections == ["customers", "transactions"]
        assert result.index == "customer_by_id"
        assert result.created.customer == Customer(id=0, balance=100)
        assert result.read == Customer(id=0, balance=100)
        assert result.updated.customer.balance == 200
        assert result.balance_after_update == 200
        assert result.withdrawal.applied is True
        assert result.withdrawal.new_balance == 150
        assert result.final_balance == 150
        # The transactions collection is provisioned but stays empty
        assert storage.databases["LedgerExample"].collections["transactions"] == {}

    def test_run_with_refused_withdrawal_still_succeeds(self, storage, ledger_settings):
        settings = ledger_settings.model_copy(update={"withdrawal_amount": 500})
        result = LedgerDemoFlow(storage=storage, settings=settings).run()
        assert result.withdrawal.applied is False
        assert result.withdrawal.message == INSUFFICIENT_FUNDS
        assert result.final_balance == 200

    def test_run_audits_every_step_with_one_correlation_id(self, flow, audit_logger):
        flow.run()
        types = [event.event_type for event in audit_logger.events]
        assert types == [
            AuditEventType.DATABASE_RECREATED,
            AuditEventType.KEY_CREATED,
            AuditEventType.COLLECTIONS_CREATED,
            AuditEventType.INDEX_CREATED,
            AuditEventType.CUSTOMER_CREATED,
            AuditEventType.CUSTOMER_READ,
            AuditEventType.CUSTOMER_UPDATED,
            AuditEventType.BALANCE_READ,
            AuditEventType.WITHDRAWAL_APPLIED,
            AuditEventType.BALANCE_READ,
        ]
        assert {event.correlation_id for event in audit_logger.events} == {flow.correlation_id}

    @pytest.mark.parametrize(
        "failing_call",
        ["recreate_database", "create_server_key", "create_collections", "withdraw"],
    )
    def test_first_failure_aborts_run(
        self, storage_factory, audit_logger, ledger_settings, failing_call
    ):
        storage = storage_factory(fail_on={failing_call})
        flow = LedgerDemoFlow(
            storage=storage,
            audit_logger=audit_logger,
            settings=ledger_settings,
        )

        with pytest.raises(StorageError):
            flow.run()

        # Nothing is attempted after the failing request
        assert storage.calls[-1] == failing_call
        last = audit_logger.events[-1]
        assert last.event_type == AuditEventType.EXTERNAL_SERVICE_ERROR
        assert last.severity == AuditSeverity.ERROR
        assert "simulated outage" in last.error_message
