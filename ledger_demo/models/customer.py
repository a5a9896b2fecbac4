"""
Ledger Data Models

Pydantic models for what the database hands back.

DESIGN DECISION: The database owns the records. These models are read-only
views of query results; nothing here is written back field by field.
The driver returns plain dicts holding faunadb.objects.Ref values, so every
model has a from_fauna() constructor that takes that shape apart.
"""

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, Field


# Returned by the withdrawal query instead of an updated record
INSUFFICIENT_FUNDS = "Error. Insufficient funds."


def _ref_parts(ref: Any) -> tuple[str, Optional[str]]:
    """Split a faunadb Ref into (id, collection id)."""
    collection = ref.collection()
    return ref.id(), collection.id() if collection is not None else None


class Customer(BaseModel):
    """The data payload of a customer record."""

    id: int = Field(
        ...,
        description="Caller-chosen customer id, unique via the customer_by_id index"
    )
    balance: int = Field(
        ...,
        ge=0,
        description="Current balance; never negative"
    )


class Document(BaseModel):
    """A stored record as returned by Create, Get or Update."""

    ref_id: str = Field(..., description="Id part of the record's Ref")
    collection: Optional[str] = Field(
        default=None,
        description="Collection the record lives in"
    )
    ts: int = Field(..., description="Service timestamp of the last write (microseconds)")
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_fauna(cls, result: Mapping) -> "Document":
        ref_id, collection = _ref_parts(result["ref"])
        return cls(
            ref_id=ref_id,
            collection=collection,
            ts=result["ts"],
            data=dict(result.get("data") or {}),
        )


class CustomerRecord(BaseModel):
    """A customer document with its data parsed."""

    ref_id: str
    ts: int
    customer: Customer

    @classmethod
    def from_document(cls, document: Document) -> "CustomerRecord":
        return cls(
            ref_id=document.ref_id,
            ts=document.ts,
            customer=Customer(**document.data),
        )


class DatabaseInfo(BaseModel):
    """A (re)created database."""

    name: str
    ref_id: str
    ts: int

    @classmethod
    def from_fauna(cls, result: Mapping) -> "DatabaseInfo":
        ref_id, _ = _ref_parts(result["ref"])
        return cls(name=result["name"], ref_id=ref_id, ts=result["ts"])


class WithdrawalOutcome(BaseModel):
    """
    Result of one conditional withdrawal.

    The query answers with either the updated record or the
    INSUFFICIENT_FUNDS string. Callers check `applied`, never the
    raw result.
    """

    customer_id: int
    amount: int
    applied: bool
    record: Optional[CustomerRecord] = None
    message: Optional[str] = None

    @property
    def new_balance(self) -> Optional[int]:
        return self.record.customer.balance if self.record else None

    @classmethod
    def from_result(
        cls,
        customer_id: int,
        amount: int,
        result: Any,
    ) -> "WithdrawalOutcome":
        """Classify a raw withdrawal result by its shape."""
        if isinstance(result, str):
            return cls(
                customer_id=customer_id,
                amount=amount,
                applied=False,
                message=result,
            )
        if isinstance(result, Mapping):
            return cls(
                customer_id=customer_id,
                amount=amount,
                applied=True,
                record=CustomerRecord.from_document(Document.from_fauna(result)),
            )
        raise TypeError(f"Unexpected withdrawal result: {result!r}")


class DemoRunResult(BaseModel):
    """Everything one full walkthrough produced, in step order."""

    database: DatabaseInfo
    collections: list[str]
    index: str
    created: CustomerRecord
    read: Customer
    updated: CustomerRecord
    balance_after_update: int
    withdrawal: WithdrawalOutcome
    final_balance: int
