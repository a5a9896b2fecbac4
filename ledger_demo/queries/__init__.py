"""FQL query builders package."""

from ledger_demo.queries import builder

__all__ = ["builder"]
