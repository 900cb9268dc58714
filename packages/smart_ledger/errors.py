"""Exception types raised by ``smart_ledger``.

Duplicate submissions are *not* exceptions: the duplicate gate and the API
return them as outcome values (see :mod:`smart_ledger.duplicates`). The types
here cover invalid input, missing rows, store-level conflicts and completion
failures.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger errors."""


class InvalidInput(LedgerError, ValueError):
    """Empty text or a missing/invalid field; raised before the pipeline runs."""


class TransactionNotFound(LedgerError, LookupError):
    """Edit/delete of a transaction that is absent or owned by someone else."""

    def __init__(self, owner: str, transaction_id: int) -> None:
        super().__init__(f"Transaction {transaction_id} not found for owner {owner!r}")
        self.owner = owner
        self.transaction_id = transaction_id


class LedgerConflict(LedgerError):
    """The store rejected an insert on the ``(owner, fingerprint)`` constraint."""

    def __init__(self, owner: str, fingerprint: str, existing_id: int | None = None) -> None:
        super().__init__(f"Fingerprint {fingerprint} already recorded for owner {owner!r}")
        self.owner = owner
        self.fingerprint = fingerprint
        self.existing_id = existing_id


class CompletionError(LedgerError):
    """The natural-language completion service failed (network, timeout, shape)."""


__all__ = [
    "LedgerError",
    "InvalidInput",
    "TransactionNotFound",
    "LedgerConflict",
    "CompletionError",
]
