"""Read-only reporting over committed ledger entries.

All report functions are pure over their inputs: callers pass entries already
scoped to one owner (usually straight from
:meth:`smart_ledger.persistence.LedgerStore.query`). An optional inclusive
:class:`~smart_ledger.models.DateRange` is applied again here so the functions
are self-contained.

- :func:`summarize`: income, expenses and savings.
- :func:`category_breakdown`: per-category totals for one direction; expense
  categories smallest first, income sources largest first.
- :func:`trends`: per-bucket income/expense totals. Only buckets holding at
  least one entry appear; the absent side of a partial bucket is ``0``.

``render_*`` helpers turn results into Rich tables for the CLI.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal

from rich.markup import escape
from rich.table import Table

from .models import (
    CategoryTotal,
    DateRange,
    FinancialSummary,
    LedgerEntry,
    TransactionKind,
    TrendPeriod,
    TrendPoint,
    ensure_utc,
    quantize_amount,
)

_ZERO = Decimal("0")


def _in_range(entries: Iterable[LedgerEntry], date_range: DateRange | None) -> list[LedgerEntry]:
    if date_range is None:
        return list(entries)
    return [e for e in entries if date_range.contains(e.occurred_at)]


def summarize(
    entries: Iterable[LedgerEntry],
    date_range: DateRange | None = None,
) -> FinancialSummary:
    """Total income and expenses; ``savings = income - expenses``.

    Empty input yields an all-zero summary.
    """

    income = _ZERO
    expenses = _ZERO
    for e in _in_range(entries, date_range):
        if e.kind == TransactionKind.INCOME:
            income += e.amount
        else:
            expenses += e.amount
    return FinancialSummary(
        income=quantize_amount(income),
        expenses=quantize_amount(expenses),
        savings=quantize_amount(income - expenses),
    )


def category_breakdown(
    entries: Iterable[LedgerEntry],
    kind: TransactionKind = TransactionKind.EXPENSE,
    date_range: DateRange | None = None,
) -> list[CategoryTotal]:
    """Group entries of ``kind`` by category.

    Ordering depends on direction: ascending by amount for expenses,
    descending for income. Ties are broken by category name.
    """

    totals: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    counts: dict[str, int] = defaultdict(int)
    for e in _in_range(entries, date_range):
        if e.kind != kind:
            continue
        totals[e.category] += e.amount
        counts[e.category] += 1

    rows = [
        CategoryTotal(category=c, amount=quantize_amount(t), count=counts[c], kind=kind)
        for c, t in totals.items()
    ]
    if kind == TransactionKind.EXPENSE:
        rows.sort(key=lambda r: (r.amount, r.category))
    else:
        rows.sort(key=lambda r: (-r.amount, r.category))
    return rows


def bucket_key(moment: datetime, period: TrendPeriod) -> str:
    """Return the bucket label for ``moment`` (UTC).

    ``daily`` -> ``YYYY-MM-DD``; ``weekly`` -> ISO week ``YYYY-Www``;
    ``monthly`` -> ``YYYY-MM``. Labels sort chronologically as strings.
    """

    m = ensure_utc(moment)
    if period == TrendPeriod.DAILY:
        return m.strftime("%Y-%m-%d")
    if period == TrendPeriod.WEEKLY:
        iso = m.isocalendar()
        return f"{iso.year:04d}-W{iso.week:02d}"
    return m.strftime("%Y-%m")


def trends(
    entries: Iterable[LedgerEntry],
    period: TrendPeriod = TrendPeriod.MONTHLY,
    date_range: DateRange | None = None,
) -> list[TrendPoint]:
    """Income/expense totals per time bucket, ascending by bucket label."""

    income: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    expenses: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    seen: set[str] = set()
    for e in _in_range(entries, date_range):
        key = bucket_key(e.occurred_at, period)
        seen.add(key)
        if e.kind == TransactionKind.INCOME:
            income[key] += e.amount
        else:
            expenses[key] += e.amount

    return [
        TrendPoint(
            period=key,
            income=quantize_amount(income.get(key, _ZERO)),
            expenses=quantize_amount(expenses.get(key, _ZERO)),
        )
        for key in sorted(seen)
    ]


# ---------------------------------------------------------------------------
# Rich rendering
# ---------------------------------------------------------------------------


def render_summary(summary: FinancialSummary) -> Table:
    table = Table(title="Summary")
    table.add_column("Income", justify="right", style="green")
    table.add_column("Expenses", justify="right", style="red")
    table.add_column("Savings", justify="right", style="bold")
    table.add_row(f"{summary.income:.2f}", f"{summary.expenses:.2f}", f"{summary.savings:.2f}")
    return table


def render_category_breakdown(rows: Sequence[CategoryTotal], kind: TransactionKind) -> Table:
    table = Table(title=f"{kind.value.capitalize()} by category")
    table.add_column("Category")
    table.add_column("Amount", justify="right")
    table.add_column("Count", justify="right")
    for r in rows:
        table.add_row(escape(r.category), f"{r.amount:.2f}", str(r.count))
    return table


def render_trends(points: Sequence[TrendPoint], period: TrendPeriod) -> Table:
    table = Table(title=f"Trends ({period.value})")
    table.add_column("Period")
    table.add_column("Income", justify="right", style="green")
    table.add_column("Expenses", justify="right", style="red")
    for p in points:
        table.add_row(p.period, f"{p.income:.2f}", f"{p.expenses:.2f}")
    return table


__all__ = [
    "summarize",
    "category_breakdown",
    "bucket_key",
    "trends",
    "render_summary",
    "render_category_breakdown",
    "render_trends",
]
