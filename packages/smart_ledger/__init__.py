"""Public interface for the ``smart_ledger`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    Ingested,
    IngestOutcome,
    category_breakdown,
    create_transaction,
    delete_transaction,
    financial_summary,
    get_transaction,
    ingest_text,
    list_transactions,
    parse_text,
    spending_trends,
    update_transaction,
)
from .duplicates import Accepted, RejectedExact, RejectedSimilar
from .errors import (
    CompletionError,
    InvalidInput,
    LedgerConflict,
    LedgerError,
    TransactionNotFound,
)
from .models import (
    CategoryTotal,
    DateRange,
    FinancialSummary,
    LedgerEntry,
    ParsedTransaction,
    TransactionInput,
    TransactionKind,
    TransactionPage,
    TrendPeriod,
    TrendPoint,
)

__all__ = [
    # API
    "parse_text",
    "create_transaction",
    "ingest_text",
    "list_transactions",
    "get_transaction",
    "update_transaction",
    "delete_transaction",
    "financial_summary",
    "category_breakdown",
    "spending_trends",
    # Outcomes
    "Ingested",
    "IngestOutcome",
    "Accepted",
    "RejectedExact",
    "RejectedSimilar",
    # Errors
    "LedgerError",
    "InvalidInput",
    "TransactionNotFound",
    "LedgerConflict",
    "CompletionError",
    # Models / types
    "ParsedTransaction",
    "TransactionInput",
    "TransactionKind",
    "LedgerEntry",
    "TransactionPage",
    "DateRange",
    "FinancialSummary",
    "CategoryTotal",
    "TrendPeriod",
    "TrendPoint",
]
