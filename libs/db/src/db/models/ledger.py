from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CHAR,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: ledger_transactions
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Opaque owner identifier; every query in the service layer is scoped by it.
    owner: Mapped[str] = mapped_column(String, nullable=False)
    # Always a positive magnitude. Direction lives in ``kind``.
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # Raw text the entry was parsed from; the service layer falls back to
    # ``description`` when the caller does not provide one.
    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # MD5 hexdigest over normalized content. Never recomputed on edit.
    fingerprint: Mapped[str] = mapped_column(CHAR(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )

    __table_args__ = (
        UniqueConstraint("owner", "fingerprint", name="uq_ledger_tx_owner_fingerprint"),
        CheckConstraint("amount > 0", name="ck_ledger_tx_amount_positive"),
        CheckConstraint("kind in ('income','expense')", name="ck_ledger_tx_kind"),
        Index("ix_ledger_tx_owner_occurred_at", "owner", "occurred_at"),
    )

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return (
            f"LedgerTransaction(id={self.id!r}, owner={self.owner!r}, "
            f"kind={self.kind!r}, amount={self.amount!r}, category={self.category!r})"
        )


__all__ = [
    "Base",
    "LedgerTransaction",
]
