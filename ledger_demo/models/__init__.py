"""
Data Models Package

This package contains all Pydantic models used in the Ledger Demo.
Everything read back from the database is parsed into these schemas.
"""

from ledger_demo.models.customer import (
    INSUFFICIENT_FUNDS,
    Customer,
    CustomerRecord,
    DatabaseInfo,
    DemoRunResult,
    Document,
    WithdrawalOutcome,
)
from ledger_demo.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "INSUFFICIENT_FUNDS",
    "Customer",
    "CustomerRecord",
    "DatabaseInfo",
    "DemoRunResult",
    "Document",
    "WithdrawalOutcome",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
