"""
FQL Query Builders

DESIGN DECISION: Every request the walkthrough sends is built here as a pure
function returning a faunadb expression. Nothing in this module talks to the
network, so request shapes can be checked in isolation.

The database evaluates each expression as one transaction. Anything that
must be read and written together (the withdrawal) is expressed as one
expression, never as separate calls.
"""

from typing import Any

from faunadb import query as q

from ledger_demo.models.customer import INSUFFICIENT_FUNDS


def recreate_database(name: str):
    """Drop-if-exists then create, evaluated as one request."""
    return q.if_(
        q.exists(q.database(name)),
        q.do(
            q.delete(q.database(name)),
            q.create_database({"name": name}),
        ),
        q.create_database({"name": name}),
    )


def create_server_key(database: str, role: str = "server"):
    return q.create_key({"database": q.database(database), "role": role})


def create_collections(names: list[str]):
    """One request creating every named collection."""
    return q.map_(
        q.lambda_("c", q.create_collection({"name": q.var("c")})),
        list(names),
    )


def create_unique_index(name: str, source: str, field_path: list[str]):
    return q.create_index({
        "name": name,
        "source": q.collection(source),
        "unique": True,
        "terms": [{"field": list(field_path)}],
    })


def create_document(collection: str, data: dict):
    return q.create(q.collection(collection), {"data": data})


def get_by_index(index: str, term: Any):
    """The single record an index term points to."""
    return q.get(q.match(q.index(index), term))


def select_by_index(index: str, term: Any, path: list[str]):
    return q.select(list(path), get_by_index(index, term))


def update_by_index(index: str, term: Any, data: dict):
    return q.update(
        q.select("ref", get_by_index(index, term)),
        {"data": data},
    )


def withdraw(index: str, term: Any, amount: int):
    """
    Conditional withdrawal as one read-modify-write request.

    Each intermediate value gets its own nested Let so that every
    binding is visible only to the expressions inside it.
    Result is the updated record, or INSUFFICIENT_FUNDS when the new
    balance would drop below zero (a zero balance is allowed).
    """
    return q.let(
        {"customer": get_by_index(index, term)},
        q.let(
            {"origBalance": q.select(["data", "balance"], q.var("customer"))},
            q.let(
                {"newBalance": q.subtract(q.var("origBalance"), amount)},
                q.if_(
                    q.gte(q.var("newBalance"), 0),
                    q.update(
                        q.select("ref", q.var("customer")),
                        {"data": {"balance": q.var("newBalance")}},
                    ),
                    INSUFFICIENT_FUNDS,
                ),
            ),
        ),
    )
