"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the ledger domain models used by ``smart_ledger``.
"""

from .ledger import Base, LedgerTransaction

__all__ = [
    "Base",
    "LedgerTransaction",
]
