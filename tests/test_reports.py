from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from rich.console import Console

from smart_ledger.models import (
    CategoryTotal,
    DateRange,
    FinancialSummary,
    LedgerEntry,
    TransactionKind,
    TrendPeriod,
    TrendPoint,
)
from smart_ledger.reports import (
    bucket_key,
    category_breakdown,
    render_category_breakdown,
    render_summary,
    render_trends,
    summarize,
    trends,
)

_ids = iter(range(1, 10_000))


def _e(
    amount: str,
    kind: TransactionKind = TransactionKind.EXPENSE,
    category: str = "Food",
    when: datetime = datetime(2024, 1, 15, 9, 0, tzinfo=UTC),
) -> LedgerEntry:
    i = next(_ids)
    return LedgerEntry(
        id=i,
        owner="alice",
        amount=Decimal(amount),
        kind=kind,
        category=category,
        description=f"entry {i}",
        original_text=f"entry {i}",
        occurred_at=when,
        fingerprint=f"{i:032x}",
    )


# ---- summarize ---------------------------------------------------------------


def test_summary_income_expenses_savings():
    entries = [_e("1000", TransactionKind.INCOME, "Salary"), _e("400")]

    assert summarize(entries) == FinancialSummary(
        income=Decimal("1000.00"), expenses=Decimal("400.00"), savings=Decimal("600.00")
    )


def test_summary_of_nothing_is_zero():
    s = summarize([])
    assert (s.income, s.expenses, s.savings) == (Decimal("0.00"),) * 3


def test_summary_savings_can_be_negative():
    s = summarize([_e("100", TransactionKind.INCOME), _e("250.50")])
    assert s.savings == Decimal("-150.50")


def test_summary_respects_inclusive_date_range():
    start = datetime(2024, 1, 1, tzinfo=UTC)
    end = datetime(2024, 1, 31, 23, 59, 59, tzinfo=UTC)
    entries = [
        _e("10", when=start),
        _e("20", when=end),
        _e("40", when=datetime(2024, 2, 1, tzinfo=UTC)),
    ]

    assert summarize(entries, DateRange(start, end)).expenses == Decimal("30.00")


# ---- category_breakdown ------------------------------------------------------


def test_expense_breakdown_smallest_first():
    entries = [_e("90", category="Transportation"), _e("30", category="Food")]

    assert category_breakdown(entries) == [
        CategoryTotal("Food", Decimal("30.00"), 1, TransactionKind.EXPENSE),
        CategoryTotal("Transportation", Decimal("90.00"), 1, TransactionKind.EXPENSE),
    ]


def test_income_breakdown_largest_first_and_groups():
    entries = [
        _e("100", TransactionKind.INCOME, "Gift"),
        _e("3000", TransactionKind.INCOME, "Salary"),
        _e("50", TransactionKind.INCOME, "Gift"),
        _e("999", TransactionKind.EXPENSE, "Shopping"),
    ]

    rows = category_breakdown(entries, TransactionKind.INCOME)

    assert [(r.category, r.amount, r.count) for r in rows] == [
        ("Salary", Decimal("3000.00"), 1),
        ("Gift", Decimal("150.00"), 2),
    ]


def test_breakdown_ties_sorted_by_category_name():
    entries = [_e("10", category="Utilities"), _e("10", category="Education")]

    assert [r.category for r in category_breakdown(entries)] == ["Education", "Utilities"]


# ---- trends ------------------------------------------------------------------


@pytest.mark.parametrize(
    ("period", "expected"),
    [
        (TrendPeriod.DAILY, "2024-12-30"),
        (TrendPeriod.WEEKLY, "2025-W01"),
        (TrendPeriod.MONTHLY, "2024-12"),
    ],
)
def test_bucket_keys(period, expected):
    # 2024-12-30 is a Monday that belongs to ISO week 1 of 2025
    assert bucket_key(datetime(2024, 12, 30, 15, 0, tzinfo=UTC), period) == expected


def test_monthly_trends_zero_fill_missing_side_and_sort():
    entries = [
        _e("50", when=datetime(2024, 3, 2, tzinfo=UTC)),
        _e("2000", TransactionKind.INCOME, "Salary", when=datetime(2024, 1, 31, tzinfo=UTC)),
        _e("25", when=datetime(2024, 1, 5, tzinfo=UTC)),
        _e("25", when=datetime(2024, 1, 6, tzinfo=UTC)),
    ]

    assert trends(entries) == [
        TrendPoint("2024-01", Decimal("2000.00"), Decimal("50.00")),
        TrendPoint("2024-03", Decimal("0.00"), Decimal("50.00")),
    ]


def test_daily_trends_only_list_days_with_entries():
    entries = [
        _e("5", when=datetime(2024, 1, 1, 8, tzinfo=UTC)),
        _e("7", when=datetime(2024, 1, 3, 8, tzinfo=UTC)),
    ]

    assert [p.period for p in trends(entries, TrendPeriod.DAILY)] == ["2024-01-01", "2024-01-03"]


def test_trends_empty():
    assert trends([], TrendPeriod.WEEKLY) == []


# ---- rendering ---------------------------------------------------------------


def _render(table) -> str:
    console = Console(width=120, record=True)
    console.print(table)
    return console.export_text()


def test_render_helpers_include_values():
    out = _render(render_summary(summarize([_e("1000", TransactionKind.INCOME), _e("400")])))
    assert "1000.00" in out and "600.00" in out

    rows = category_breakdown([_e("30", category="Food")])
    assert "Food" in _render(render_category_breakdown(rows, TransactionKind.EXPENSE))

    points = trends([_e("30")], TrendPeriod.MONTHLY)
    assert "2024-01" in _render(render_trends(points, TrendPeriod.MONTHLY))
