"""Data models and type aliases for ``smart_ledger``.

Two families live here:

- frozen, slotted dataclasses for values that flow between the parser, the
  duplicate gate, the store and the report functions;
- a pydantic model (:class:`TransactionInput`) that validates caller-supplied
  fields before anything touches the ledger.

Amounts are always non-negative :class:`~decimal.Decimal` magnitudes; direction
is carried by :class:`TransactionKind`. Timestamps are timezone-aware UTC.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("1E16")
"""Exclusive upper bound on amounts; the ledger column is ``NUMERIC(18, 2)``."""

type Clock = Callable[[], datetime]
"""Supplies "now"; used for the duplicate window and default ``occurred_at``."""


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def quantize_amount(value: Decimal) -> Decimal:
    """Round to cents, half-up (``10`` -> ``10.00``, ``0.005`` -> ``0.01``)."""

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TransactionKind(StrEnum):
    """Direction of a transaction. Amounts are never signed."""

    INCOME = "income"
    EXPENSE = "expense"


class TrendPeriod(StrEnum):
    """Bucket granularity for :func:`smart_ledger.reports.trends`."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParsedTransaction:
    """Best-effort structured reading of a free-text description.

    Attributes
    ----------
    amount:
        Non-negative magnitude. ``0`` when no amount could be found.
    kind:
        Income or expense.
    category:
        Label from the recommended set (``Other`` when nothing matched).
    description:
        Short human label.
    confidence:
        ``0.9`` when produced by the completion service, ``0.6`` for the
        deterministic fallback. Advisory only.
    """

    amount: Decimal
    kind: TransactionKind
    category: str
    description: str
    confidence: float


# ---------------------------------------------------------------------------
# Ingestion input and ledger rows
# ---------------------------------------------------------------------------


class TransactionInput(BaseModel):
    """Validated fields for creating or fully replacing a transaction."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    amount: Decimal
    kind: TransactionKind
    category: str
    description: str
    original_text: str | None = None
    occurred_at: datetime | None = None

    @field_validator("amount")
    @classmethod
    def _amount_positive(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("amount must be a finite number")
        try:
            q = quantize_amount(v)
        except InvalidOperation as e:
            raise ValueError("amount must be less than 10^16") from e
        if q <= 0:
            raise ValueError("amount must be greater than zero")
        if q >= MAX_AMOUNT:
            raise ValueError("amount must be less than 10^16")
        return q

    @field_validator("category", "description")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v

    @field_validator("original_text")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("occurred_at")
    @classmethod
    def _to_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None


@dataclass(frozen=True, slots=True)
class TransactionDraft:
    """A validated candidate for one owner, ready for the duplicate gate."""

    owner: str
    amount: Decimal
    kind: TransactionKind
    category: str
    description: str
    original_text: str | None
    occurred_at: datetime

    @property
    def comparison_text(self) -> str:
        return self.original_text or self.description


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """A committed ledger row as seen by the service layer."""

    id: int
    owner: str
    amount: Decimal
    kind: TransactionKind
    category: str
    description: str
    original_text: str
    occurred_at: datetime
    fingerprint: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def comparison_text(self) -> str:
        return self.original_text or self.description


@dataclass(frozen=True, slots=True)
class TransactionPage:
    """One page of a filtered listing plus the unpaged total."""

    total: int
    items: tuple[LedgerEntry, ...]
    page: int | None = None
    limit: int | None = None


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive ``[start, end]`` bounds on ``occurred_at``; either side optional."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        if self.start is not None:
            object.__setattr__(self, "start", ensure_utc(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", ensure_utc(self.end))
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("DateRange start must not be after end")

    def contains(self, moment: datetime) -> bool:
        moment = ensure_utc(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


@dataclass(frozen=True, slots=True)
class FinancialSummary:
    income: Decimal
    expenses: Decimal
    savings: Decimal


@dataclass(frozen=True, slots=True)
class CategoryTotal:
    category: str
    amount: Decimal
    count: int
    kind: TransactionKind


@dataclass(frozen=True, slots=True)
class TrendPoint:
    """Totals for one bucket. A side with no rows in the bucket is ``0``."""

    period: str
    income: Decimal
    expenses: Decimal
