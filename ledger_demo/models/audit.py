"""
Audit Models for Ledger Demo

Every step of the walkthrough is logged as an audit event.
This provides:
1. A readable trace of what was sent to the database and what came back
2. Debugging information when a step fails
3. One correlation id tying together all events of a run

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step in the walkthrough has its own event type.
    """
    # Provisioning
    DATABASE_RECREATED = "database_recreated"
    KEY_CREATED = "key_created"
    COLLECTIONS_CREATED = "collections_created"
    INDEX_CREATED = "index_created"

    # Records
    CUSTOMER_CREATED = "customer_created"
    CUSTOMER_READ = "customer_read"
    CUSTOMER_UPDATED = "customer_updated"
    BALANCE_READ = "balance_read"

    # Withdrawal
    WITHDRAWAL_APPLIED = "withdrawal_applied"
    WITHDRAWAL_REJECTED = "withdrawal_rejected"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every step of a run creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'database', 'collection', 'customer')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Name or id of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (all events in one run)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.database_recreated(name, ref_id, correlation_id)
        event = AuditEventBuilder.withdrawal_rejected(customer_id, amount, message, correlation_id)
    """

    @staticmethod
    def database_recreated(
        name: str,
        ref_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATABASE_RECREATED,
            entity_type="database",
            entity_id=name,
            correlation_id=correlation_id,
            description=f"Created DB: {name}",
            details={"ref_id": ref_id},
        )

    @staticmethod
    def key_created(
        database: str,
        role: str,
        correlation_id: UUID
    ) -> AuditEvent:
        # The secret itself is never logged
        return AuditEvent(
            event_type=AuditEventType.KEY_CREATED,
            entity_type="database",
            entity_id=database,
            correlation_id=correlation_id,
            description=f"Created {role} key for DB: {database}",
            details={"role": role},
        )

    @staticmethod
    def collections_created(
        names: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLECTIONS_CREATED,
            entity_type="collection",
            correlation_id=correlation_id,
            description=f"Created collections: {', '.join(names)}",
            details={"collections": names},
        )

    @staticmethod
    def index_created(
        name: str,
        source: str,
        field_path: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INDEX_CREATED,
            entity_type="index",
            entity_id=name,
            correlation_id=correlation_id,
            description=f"Created index '{name}'",
            details={
                "source": source,
                "terms": ".".join(field_path),
                "unique": True,
            },
        )

    @staticmethod
    def customer_created(
        customer_id: int,
        ref_id: str,
        balance: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CUSTOMER_CREATED,
            entity_type="customer",
            entity_id=str(customer_id),
            correlation_id=correlation_id,
            description=f"Create 'customer': {customer_id}",
            details={"ref_id": ref_id, "balance": balance},
        )

    @staticmethod
    def customer_read(
        customer_id: int,
        data: dict,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CUSTOMER_READ,
            entity_type="customer",
            entity_id=str(customer_id),
            correlation_id=correlation_id,
            description=f"Read 'customer': {customer_id}",
            details={"data": data},
        )

    @staticmethod
    def customer_updated(
        customer_id: int,
        balance: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CUSTOMER_UPDATED,
            entity_type="customer",
            entity_id=str(customer_id),
            correlation_id=correlation_id,
            description=f"Update 'customer': {customer_id}",
            details={"balance": balance},
        )

    @staticmethod
    def balance_read(
        customer_id: int,
        balance: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_READ,
            entity_type="customer",
            entity_id=str(customer_id),
            correlation_id=correlation_id,
            description=f"Read balance of 'customer': {customer_id}",
            details={"balance": balance},
        )

    @staticmethod
    def withdrawal_applied(
        customer_id: int,
        amount: int,
        new_balance: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WITHDRAWAL_APPLIED,
            entity_type="customer",
            entity_id=str(customer_id),
            correlation_id=correlation_id,
            description=f"Withdrew {amount} from 'customer': {customer_id}",
            details={"amount": amount, "new_balance": new_balance},
        )

    @staticmethod
    def withdrawal_rejected(
        customer_id: int,
        amount: int,
        message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WITHDRAWAL_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="customer",
            entity_id=str(customer_id),
            correlation_id=correlation_id,
            description=f"Withdrawal of {amount} refused for 'customer': {customer_id}",
            details={"amount": amount, "result": message},
        )

    @staticmethod
    def external_service_error(
        step: str,
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID]
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="step",
            entity_id=step,
            correlation_id=correlation_id,
            description=f"FaunaDB request failed during {step}",
            error_code=error_type,
            error_message=error_message,
        )
