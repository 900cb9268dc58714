"""Public API and orchestration for the ``smart_ledger`` package.

Each function takes an open SQLAlchemy ``Session`` (usually from
``db.client.session_scope``) and an ``owner``; transaction boundaries stay with
the caller. Ingestion runs parse -> validate -> duplicate gate -> insert and
returns an outcome value:

- :class:`Ingested` when the entry was recorded;
- :class:`~smart_ledger.duplicates.RejectedExact` or
  :class:`~smart_ledger.duplicates.RejectedSimilar` when it was not.

Invalid input raises :class:`~smart_ledger.errors.InvalidInput` before anything
is read or written; edits and deletes of unknown ids raise
:class:`~smart_ledger.errors.TransactionNotFound`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import reports
from .completion import CompletionService
from .duplicates import Accepted, RejectedExact, RejectedSimilar, admit, window_start
from .errors import InvalidInput, LedgerConflict, TransactionNotFound
from .logging_setup import get_logger
from .models import (
    CategoryTotal,
    Clock,
    DateRange,
    FinancialSummary,
    LedgerEntry,
    ParsedTransaction,
    TransactionDraft,
    TransactionInput,
    TransactionKind,
    TransactionPage,
    TrendPeriod,
    TrendPoint,
    ensure_utc,
    utc_now,
)
from .parsing import parse_transaction_text
from .persistence import LedgerStore

_logger = get_logger("smart_ledger.api")


@dataclass(frozen=True, slots=True)
class Ingested:
    """A recorded entry; ``parsed`` is set when it came from free text."""

    entry: LedgerEntry
    parsed: ParsedTransaction | None = None


type IngestOutcome = Ingested | RejectedExact | RejectedSimilar


# ---- Validation helpers ------------------------------------------------------


def _require_owner(owner: str) -> str:
    owner = (owner or "").strip()
    if not owner:
        raise InvalidInput("owner is required")
    return owner


def _describe(err: ValidationError) -> str:
    parts = []
    for item in err.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "input"
        parts.append(f"{loc}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)


def _validate(payload: TransactionInput | Mapping[str, Any]) -> TransactionInput:
    if isinstance(payload, TransactionInput):
        return payload
    try:
        return TransactionInput.model_validate(dict(payload))
    except ValidationError as e:
        raise InvalidInput(_describe(e)) from e


# ---- Ingestion ---------------------------------------------------------------


def parse_text(text: str, *, completer: CompletionService | None = None) -> ParsedTransaction:
    """Parse ``text`` without touching the ledger; empty text is invalid."""

    if not text or not text.strip():
        raise InvalidInput("text is required")
    return parse_transaction_text(text.strip(), completer=completer)


def create_transaction(
    session: Session,
    owner: str,
    payload: TransactionInput | Mapping[str, Any],
    *,
    clock: Clock = utc_now,
) -> IngestOutcome:
    """Validate ``payload``, run the duplicate gate and record it when accepted.

    ``occurred_at`` defaults to ``clock()``. A uniqueness conflict raised by the
    store (a concurrent identical submission) is reported as
    :class:`RejectedExact`, same as a duplicate caught by the gate.
    """

    owner = _require_owner(owner)
    fields = _validate(payload)
    now = ensure_utc(clock())

    draft = TransactionDraft(
        owner=owner,
        amount=fields.amount,
        kind=fields.kind,
        category=fields.category,
        description=fields.description,
        original_text=fields.original_text,
        occurred_at=fields.occurred_at or now,
    )

    store = LedgerStore(session)
    window = store.query_window(owner, window_start(now))
    decision = admit(draft, window)
    if not isinstance(decision, Accepted):
        return decision

    try:
        entry = store.insert(draft, fingerprint=decision.fingerprint, now=now)
    except LedgerConflict as e:
        return RejectedExact(existing_id=e.existing_id, fingerprint=e.fingerprint)
    _logger.info("Recorded transaction %s for owner %r", entry.id, owner)
    return Ingested(entry=entry)


def ingest_text(
    session: Session,
    owner: str,
    text: str,
    *,
    completer: CompletionService | None = None,
    clock: Clock = utc_now,
    occurred_at: Any | None = None,
) -> IngestOutcome:
    """Parse free ``text`` and record it, keeping ``text`` as the original input.

    Text whose best-effort parse has no positive amount is rejected with
    :class:`InvalidInput`.
    """

    owner = _require_owner(owner)
    parsed = parse_text(text, completer=completer)
    payload: dict[str, Any] = {
        "amount": parsed.amount,
        "kind": parsed.kind,
        "category": parsed.category,
        "description": parsed.description,
        "original_text": text.strip(),
    }
    if occurred_at is not None:
        payload["occurred_at"] = occurred_at

    outcome = create_transaction(session, owner, payload, clock=clock)
    if isinstance(outcome, Ingested):
        return Ingested(entry=outcome.entry, parsed=parsed)
    return outcome


# ---- Listing and edits -------------------------------------------------------


def list_transactions(
    session: Session,
    owner: str,
    *,
    date_range: DateRange | None = None,
    kind: TransactionKind | None = None,
    category: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> TransactionPage:
    """Newest-first listing with the unpaged total."""

    owner = _require_owner(owner)
    return LedgerStore(session).page(
        owner, date_range=date_range, kind=kind, category=category, page=page, limit=limit
    )


def get_transaction(session: Session, owner: str, transaction_id: int) -> LedgerEntry:
    owner = _require_owner(owner)
    entry = LedgerStore(session).get(owner, transaction_id)
    if entry is None:
        raise TransactionNotFound(owner, transaction_id)
    return entry


def update_transaction(
    session: Session,
    owner: str,
    transaction_id: int,
    payload: TransactionInput | Mapping[str, Any],
    *,
    clock: Clock = utc_now,
) -> LedgerEntry:
    """Replace every editable field of one entry; its fingerprint is kept."""

    owner = _require_owner(owner)
    fields = _validate(payload)
    return LedgerStore(session).update(owner, transaction_id, fields, now=clock())


def delete_transaction(session: Session, owner: str, transaction_id: int) -> LedgerEntry:
    owner = _require_owner(owner)
    return LedgerStore(session).delete(owner, transaction_id)


# ---- Reports -----------------------------------------------------------------


def financial_summary(
    session: Session, owner: str, date_range: DateRange | None = None
) -> FinancialSummary:
    owner = _require_owner(owner)
    return reports.summarize(LedgerStore(session).query(owner, date_range), date_range)


def category_breakdown(
    session: Session,
    owner: str,
    kind: TransactionKind = TransactionKind.EXPENSE,
    date_range: DateRange | None = None,
) -> list[CategoryTotal]:
    owner = _require_owner(owner)
    entries = LedgerStore(session).query(owner, date_range, kind=kind)
    return reports.category_breakdown(entries, kind, date_range)


def spending_trends(
    session: Session,
    owner: str,
    period: TrendPeriod = TrendPeriod.MONTHLY,
    date_range: DateRange | None = None,
) -> list[TrendPoint]:
    owner = _require_owner(owner)
    return reports.trends(LedgerStore(session).query(owner, date_range), period, date_range)


__all__ = [
    "Ingested",
    "IngestOutcome",
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
]
