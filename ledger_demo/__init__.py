"""
Ledger Demo - Source Package

A walkthrough of a FaunaDB-backed customer ledger: provision a database,
issue a scoped key, create collections and a unique index, then create,
read, update and withdraw from a customer record.

DESIGN PRINCIPLES:
1. The database does the work - durability, indexing and isolation live server-side
2. Fail early, fail visibly
3. Insufficient funds is data, not an exception
4. Every step is audited
"""

__version__ = "1.0.0"
__author__ = "Ledger Demo Team"
