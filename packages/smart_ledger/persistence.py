# ruff: noqa: I001
"""Persistence integration for smart_ledger.

:class:`LedgerStore` wraps a SQLAlchemy session and the ``ledger_transactions``
table owned by ``libs/db``. Every method is scoped by ``owner``; rows of other
owners are invisible (reads) or reported as missing (edits/deletes).

Scope:
- bounded reads: the recent duplicate window, report ranges, paged listings;
- insert with the ``(owner, fingerprint)`` constraint surfaced as
  :class:`~smart_ledger.errors.LedgerConflict`;
- full-field update and delete.

Transaction boundaries belong to the caller (see ``db.client.session_scope``).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.ledger import LedgerTransaction
from .errors import LedgerConflict, TransactionNotFound
from .logging_setup import get_logger
from .models import (
    DateRange,
    LedgerEntry,
    TransactionDraft,
    TransactionInput,
    TransactionKind,
    TransactionPage,
    ensure_utc,
)

_logger = get_logger("smart_ledger.persistence")


def _to_entry(row: LedgerTransaction) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        owner=row.owner,
        amount=Decimal(row.amount),
        kind=TransactionKind(row.kind),
        category=row.category,
        description=row.description,
        original_text=row.original_text,
        occurred_at=ensure_utc(row.occurred_at),
        fingerprint=row.fingerprint,
        created_at=ensure_utc(row.created_at) if row.created_at is not None else None,
        updated_at=ensure_utc(row.updated_at) if row.updated_at is not None else None,
    )


class LedgerStore:
    """Owner-scoped access to ``ledger_transactions`` through one session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ---- Reads --------------------------------------------------------------

    def _filtered(
        self,
        owner: str,
        *,
        date_range: DateRange | None = None,
        kind: TransactionKind | None = None,
        category: str | None = None,
    ) -> Select[tuple[LedgerTransaction]]:
        stmt = select(LedgerTransaction).where(LedgerTransaction.owner == owner)
        if date_range is not None:
            if date_range.start is not None:
                stmt = stmt.where(LedgerTransaction.occurred_at >= date_range.start)
            if date_range.end is not None:
                stmt = stmt.where(LedgerTransaction.occurred_at <= date_range.end)
        if kind is not None:
            stmt = stmt.where(LedgerTransaction.kind == TransactionKind(kind).value)
        if category:
            stmt = stmt.where(LedgerTransaction.category == category)
        return stmt

    def query_window(self, owner: str, since: datetime) -> list[LedgerEntry]:
        """Entries with ``occurred_at >= since``, in insertion order."""

        stmt = (
            select(LedgerTransaction)
            .where(LedgerTransaction.owner == owner)
            .where(LedgerTransaction.occurred_at >= ensure_utc(since))
            .order_by(LedgerTransaction.id.asc())
        )
        return [_to_entry(r) for r in self._session.scalars(stmt)]

    def query(
        self,
        owner: str,
        date_range: DateRange | None = None,
        *,
        kind: TransactionKind | None = None,
        category: str | None = None,
    ) -> list[LedgerEntry]:
        """Entries matching the filters, oldest first."""

        stmt = self._filtered(owner, date_range=date_range, kind=kind, category=category)
        stmt = stmt.order_by(LedgerTransaction.occurred_at.asc(), LedgerTransaction.id.asc())
        return [_to_entry(r) for r in self._session.scalars(stmt)]

    def page(
        self,
        owner: str,
        *,
        date_range: DateRange | None = None,
        kind: TransactionKind | None = None,
        category: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> TransactionPage:
        """Newest-first listing; paginated only when both ``page`` and ``limit`` are set."""

        stmt = self._filtered(owner, date_range=date_range, kind=kind, category=category)
        total = self._session.scalar(select(func.count()).select_from(stmt.subquery())) or 0

        stmt = stmt.order_by(LedgerTransaction.occurred_at.desc(), LedgerTransaction.id.desc())
        if page is not None and limit is not None:
            page = max(page, 1)
            limit = max(limit, 1)
            stmt = stmt.offset((page - 1) * limit).limit(limit)
        else:
            page = limit = None
        items = tuple(_to_entry(r) for r in self._session.scalars(stmt))
        return TransactionPage(total=total, items=items, page=page, limit=limit)

    def _get_row(self, owner: str, transaction_id: int) -> LedgerTransaction | None:
        stmt = select(LedgerTransaction).where(
            (LedgerTransaction.owner == owner) & (LedgerTransaction.id == transaction_id)
        )
        return self._session.scalars(stmt).one_or_none()

    def get(self, owner: str, transaction_id: int) -> LedgerEntry | None:
        row = self._get_row(owner, transaction_id)
        return _to_entry(row) if row is not None else None

    def find_by_fingerprint(self, owner: str, fingerprint: str) -> LedgerEntry | None:
        stmt = select(LedgerTransaction).where(
            (LedgerTransaction.owner == owner) & (LedgerTransaction.fingerprint == fingerprint)
        )
        row = self._session.scalars(stmt).first()
        return _to_entry(row) if row is not None else None

    # ---- Writes -------------------------------------------------------------

    def insert(self, draft: TransactionDraft, *, fingerprint: str, now: datetime) -> LedgerEntry:
        """Insert ``draft`` and return the stored entry.

        On an ``(owner, fingerprint)`` uniqueness violation the session is
        rolled back and :class:`LedgerConflict` is raised, naming the
        colliding row. Other integrity errors propagate unchanged.
        """

        now = ensure_utc(now)
        row = LedgerTransaction(
            owner=draft.owner,
            amount=draft.amount,
            kind=TransactionKind(draft.kind).value,
            category=draft.category,
            description=draft.description,
            original_text=draft.original_text or draft.description,
            occurred_at=ensure_utc(draft.occurred_at),
            fingerprint=fingerprint,
            created_at=now,
            updated_at=now,
        )
        self._session.add(row)
        try:
            self._session.flush()
        except IntegrityError as e:
            self._session.rollback()
            existing = self.find_by_fingerprint(draft.owner, fingerprint)
            if existing is None:
                raise
            _logger.info(
                "Store rejected fingerprint %s for owner %r (existing id %s)",
                fingerprint,
                draft.owner,
                existing.id,
            )
            raise LedgerConflict(draft.owner, fingerprint, existing_id=existing.id) from e
        return _to_entry(row)

    def update(
        self,
        owner: str,
        transaction_id: int,
        fields: TransactionInput,
        *,
        now: datetime,
    ) -> LedgerEntry:
        """Replace every editable field; the fingerprint is left untouched.

        ``occurred_at`` keeps its stored value when ``fields.occurred_at`` is
        ``None``; ``original_text`` falls back to the new description.
        """

        row = self._get_row(owner, transaction_id)
        if row is None:
            raise TransactionNotFound(owner, transaction_id)

        row.amount = fields.amount
        row.kind = fields.kind.value
        row.category = fields.category
        row.description = fields.description
        row.original_text = fields.original_text or fields.description
        if fields.occurred_at is not None:
            row.occurred_at = fields.occurred_at
        row.updated_at = ensure_utc(now)
        self._session.flush()
        return _to_entry(row)

    def delete(self, owner: str, transaction_id: int) -> LedgerEntry:
        """Delete and return the entry; raise :class:`TransactionNotFound` if absent."""

        row = self._get_row(owner, transaction_id)
        if row is None:
            raise TransactionNotFound(owner, transaction_id)
        entry = _to_entry(row)
        self._session.delete(row)
        self._session.flush()
        return entry


__all__ = ["LedgerStore"]
