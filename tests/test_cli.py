from __future__ import annotations

from collections.abc import Iterator

import pytest
from typer.testing import CliRunner

from smart_ledger.cli import app
from smart_ledger.logging_setup import configure_logging

runner = CliRunner()


@pytest.fixture(autouse=True)
def _wide_terminal(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    # Rich reads COLUMNS; keep tables on one line per row
    monkeypatch.setenv("COLUMNS", "200")
    yield
    # The CLI binds the log handler to the runner's stderr, which is closed by now
    configure_logging(force=True)


def _invoke(*args: str):
    return runner.invoke(app, list(args))


def test_parse_shows_fallback_reading():
    result = _invoke("parse", "Got paid 35000 salary")

    assert result.exit_code == 0, result.output
    assert "35000.00" in result.output
    assert "income" in result.output
    assert "Salary" in result.output
    assert "0.6" in result.output


def test_add_from_text_then_duplicate_exits_nonzero():
    first = _invoke("add", "Coffee 150")
    assert first.exit_code == 0, first.output
    assert "Food" in first.output and "150.00" in first.output

    second = _invoke("add", "Coffee 150")
    assert second.exit_code == 1
    assert "DUPLICATE_TRANSACTION" in second.output


def test_add_similar_text_exits_nonzero():
    assert _invoke("add", "Coffee at Starbucks 150").exit_code == 0

    result = _invoke("add", "Coffee Starbucks 150")

    assert result.exit_code == 1
    assert "SIMILAR_TRANSACTION" in result.output


def test_add_requires_text_or_amount():
    result = _invoke("add")

    assert result.exit_code == 1
    assert "Error" in result.output


def test_add_text_without_amount_is_rejected():
    result = _invoke("add", "bought something")

    assert result.exit_code == 1
    assert "amount" in result.output


def test_add_with_explicit_fields_and_reports():
    assert _invoke(
        "add", "--amount", "1000", "--kind", "income", "--category", "Salary",
        "--description", "January pay", "--date", "2024-01-05",
    ).exit_code == 0
    assert _invoke(
        "add", "--amount", "400", "--category", "Food", "--description", "Groceries",
        "--date", "2024-01-20",
    ).exit_code == 0

    summary = _invoke("summary")
    assert summary.exit_code == 0, summary.output
    assert "1000.00" in summary.output and "400.00" in summary.output
    assert "600.00" in summary.output

    cats = _invoke("categories", "--kind", "income")
    assert cats.exit_code == 0
    assert "Salary" in cats.output and "Food" not in cats.output

    monthly = _invoke("trends", "--period", "monthly")
    assert monthly.exit_code == 0
    assert "2024-01" in monthly.output

    january = _invoke("summary", "--start", "2024-01-01", "--end", "2024-01-05")
    assert "1000.00" in january.output
    assert "600.00" not in january.output


def test_list_edit_delete_round():
    assert _invoke("add", "Coffee 150").exit_code == 0
    assert _invoke("add", "Taxi home 30").exit_code == 0

    listed = _invoke("list", "--limit", "1")
    assert listed.exit_code == 0, listed.output
    assert "(1 of 2)" in listed.output

    edited = _invoke("edit", "1", "--amount", "175", "--description", "Coffee and cake")
    assert edited.exit_code == 0, edited.output
    assert "175.00" in edited.output and "Coffee and cake" in edited.output

    deleted = _invoke("delete", "1")
    assert deleted.exit_code == 0
    assert "Deleted transaction 1" in deleted.output

    missing = _invoke("delete", "1")
    assert missing.exit_code == 1
    assert "not found" in missing.output


def test_owner_option_scopes_commands():
    assert _invoke("--owner", "alice", "add", "Coffee 150").exit_code == 0

    theirs = _invoke("--owner", "bob", "list")
    assert "(0 of 0)" in theirs.output

    assert _invoke("--owner", "bob", "delete", "1").exit_code == 1


def test_owner_from_environment(monkeypatch):
    monkeypatch.setenv("SMART_LEDGER_OWNER", "carol")
    assert _invoke("add", "Coffee 150").exit_code == 0

    assert "(1 of 1)" in _invoke("--owner", "carol", "list").output
    assert "(0 of 0)" in _invoke("--owner", "local", "list").output


def test_reversed_date_range_is_an_error():
    result = _invoke("summary", "--start", "2024-02-01", "--end", "2024-01-01")

    assert result.exit_code == 1
    assert "Error" in result.output


def test_init_db_is_idempotent():
    result = _invoke("init-db")

    assert result.exit_code == 0
    assert "Schema ready." in result.output


def test_missing_database_url_is_reported(monkeypatch):
    monkeypatch.delenv("DATABASE_URL")

    result = _invoke("list")

    assert result.exit_code == 1
    assert "DATABASE_URL" in result.output


def test_midnight_end_covers_the_whole_day():
    assert _invoke(
        "add", "--amount", "80", "--category", "Food", "--description", "Dinner",
        "--date", "2024-03-10T18:30:00",
    ).exit_code == 0

    for end in ("2024-03-10", "2024-03-10T00:00:00"):
        result = _invoke("summary", "--end", end)
        assert result.exit_code == 0, result.output
        assert "80.00" in result.output

    before = _invoke("summary", "--end", "2024-03-09T23:59:59")
    assert "80.00" not in before.output

    help_text = _invoke("summary", "--help").output
    assert "covers that whole day" in help_text
