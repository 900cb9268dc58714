# ruff: noqa: I001
"""CLI for the ``smart_ledger`` package.

A Typer-based console interface over :mod:`smart_ledger.api`. Environment
variables (``DATABASE_URL``, ``OPENAI_API_KEY``, ``SMART_LEDGER_OWNER``...) are
loaded from a local ``.env`` using ``python-dotenv`` in the root callback.
Results are rendered as Rich tables; errors go to stderr with exit code 1.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from pathlib import Path
from typing import Any, TypeVar

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from sqlalchemy.orm import Session

from db.client import init_schema, session_scope
from . import api, reports
from .completion import CompletionService, default_completion_service
from .duplicates import RejectedExact, RejectedSimilar
from .errors import LedgerError
from .logging_setup import configure_logging
from .models import DateRange, LedgerEntry, ParsedTransaction, TransactionKind, TrendPeriod

_DEFAULT_OWNER = "local"
_DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]
_END_HELP = "Inclusive end. A midnight value, such as a bare date, covers that whole day."

T = TypeVar("T")


@dataclass(slots=True)
class _CliState:
    owner: str
    database_url: str | None


# ---- Small module-level helpers used by CLI commands -------------------------


def _state(ctx: typer.Context) -> _CliState:
    state = ctx.obj
    if not isinstance(state, _CliState):  # pragma: no cover - callback always runs first
        owner = os.getenv("SMART_LEDGER_OWNER") or _DEFAULT_OWNER
        state = _CliState(owner=owner, database_url=None)
        ctx.obj = state
    return state


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


@contextmanager
def _session(state: _CliState) -> Iterator[Session]:
    with session_scope(database_url=state.database_url) as session:
        yield session


def _run(state: _CliState, fn: Callable[[Session], T]) -> T:
    """Run ``fn`` in one session scope, mapping failures to exit code 1."""

    try:
        with _session(state) as session:
            return fn(session)
    except LedgerError as e:
        raise _fail(str(e)) from e
    except Exception as e:  # noqa: BLE001 - surface DB/config failures as CLI errors
        raise _fail(f"{type(e).__name__}: {e}") from e


def _date_range(start: datetime | None, end: datetime | None) -> DateRange | None:
    """Build an inclusive range; an ``end`` at midnight covers that whole day.

    Typer does not report which format matched, so a bare date and an explicit
    ``T00:00:00`` are treated alike.
    """

    if start is None and end is None:
        return None
    if end is not None and end.time() == time(0, 0):
        end = end + timedelta(days=1) - timedelta(microseconds=1)
    try:
        return DateRange(start=start, end=end)
    except ValueError as e:
        raise _fail(str(e)) from e


def _completer() -> CompletionService | None:
    try:
        return default_completion_service()
    except Exception as e:  # noqa: BLE001 - a broken AI setup falls back to rules
        typer.echo(f"Warning: AI parsing disabled: {e}", err=True)
        return None


def _entries_table(entries: tuple[LedgerEntry, ...] | list[LedgerEntry], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", justify="right")
    table.add_column("Date")
    table.add_column("Kind")
    table.add_column("Amount", justify="right")
    table.add_column("Category")
    table.add_column("Description")
    for e in entries:
        table.add_row(
            str(e.id),
            e.occurred_at.strftime("%Y-%m-%d %H:%M"),
            e.kind.value,
            f"{e.amount:.2f}",
            escape(e.category),
            escape(e.description),
        )
    return table


def _parsed_table(parsed: ParsedTransaction) -> Table:
    table = Table(title="Parsed transaction", show_header=False)
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Amount", f"{parsed.amount:.2f}")
    table.add_row("Kind", parsed.kind.value)
    table.add_row("Category", escape(parsed.category))
    table.add_row("Description", escape(parsed.description))
    table.add_row("Confidence", f"{parsed.confidence:.1f}")
    return table


def _report_outcome(console: Console, outcome: api.IngestOutcome) -> None:
    if isinstance(outcome, api.Ingested):
        console.print(_entries_table([outcome.entry], "Added"))
        return
    if isinstance(outcome, RejectedSimilar):
        typer.echo(
            f"{outcome.code}: {outcome.message} (id {outcome.existing_id}, "
            f"score {outcome.score:.2f})",
            err=True,
        )
    elif isinstance(outcome, RejectedExact):
        typer.echo(f"{outcome.code}: {outcome.message} (id {outcome.existing_id})", err=True)
    raise typer.Exit(1)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Record income and expenses from plain text and report on them. "
        "Loads DATABASE_URL and OPENAI_API_KEY from a local .env before running."
    ),
)


@app.callback()
def _root(
    ctx: typer.Context,
    *,
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
    owner: str | None = typer.Option(
        None, help="Ledger owner (falls back to SMART_LEDGER_OWNER, then 'local')."
    ),
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to SMART_LEDGER_LOG_LEVEL, then WARNING)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    # force=True rebinds the handler to the current stderr on every invocation
    configure_logging(log_level, force=True)

    ctx.obj = _CliState(
        owner=(owner or os.getenv("SMART_LEDGER_OWNER") or _DEFAULT_OWNER).strip(),
        database_url=database_url,
    )


@app.command("init-db")
def init_db_cmd(ctx: typer.Context) -> None:
    """Create the ledger tables if they do not exist (SQLite/local use)."""

    state = _state(ctx)
    try:
        init_schema(database_url=state.database_url)
    except Exception as e:  # noqa: BLE001
        raise _fail(f"failed to initialize schema: {e}") from e
    typer.echo("Schema ready.")


@app.command("parse")
def parse_cmd(text: str = typer.Argument(..., help="Free-text transaction, e.g. 'Coffee 150'.")) -> None:
    """Show how TEXT would be parsed, without recording it."""

    try:
        parsed = api.parse_text(text, completer=_completer())
    except LedgerError as e:
        raise _fail(str(e)) from e
    Console().print(_parsed_table(parsed))


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    text: str | None = typer.Argument(None, help="Free-text transaction to parse and record."),
    *,
    amount: str | None = typer.Option(None, help="Record this amount instead of parsing TEXT."),
    kind: TransactionKind = typer.Option(TransactionKind.EXPENSE, help="income or expense."),
    category: str = typer.Option("Other", help="Category when --amount is given."),
    description: str | None = typer.Option(None, help="Description when --amount is given."),
    date: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help="When it happened (UTC)."),
) -> None:
    """Record a transaction from TEXT, or from explicit fields with --amount."""

    state = _state(ctx)
    console = Console()

    if amount is None:
        if not text:
            raise _fail("provide TEXT or --amount")
        completer = _completer()
        outcome = _run(
            state,
            lambda s: api.ingest_text(s, state.owner, text, completer=completer, occurred_at=date),
        )
    else:
        payload: dict[str, Any] = {
            "amount": amount,
            "kind": kind,
            "category": category,
            "description": description or text or "",
            "original_text": text,
            "occurred_at": date,
        }
        outcome = _run(state, lambda s: api.create_transaction(s, state.owner, payload))

    _report_outcome(console, outcome)


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    *,
    start: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help="Inclusive start."),
    end: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help=_END_HELP),
    kind: TransactionKind | None = typer.Option(None, help="Only income or only expenses."),
    category: str | None = typer.Option(None, help="Only this category."),
    page: int | None = typer.Option(None, min=1, help="Page number (needs --limit)."),
    limit: int | None = typer.Option(None, min=1, help="Page size."),
) -> None:
    """List transactions, newest first."""

    state = _state(ctx)
    date_range = _date_range(start, end)
    if limit is not None and page is None:
        page = 1
    result = _run(
        state,
        lambda s: api.list_transactions(
            s,
            state.owner,
            date_range=date_range,
            kind=kind,
            category=category,
            page=page,
            limit=limit,
        ),
    )
    title = f"Transactions ({len(result.items)} of {result.total})"
    Console().print(_entries_table(result.items, title))


@app.command("edit")
def edit_cmd(
    ctx: typer.Context,
    transaction_id: int = typer.Argument(..., help="ID of the transaction to edit."),
    *,
    amount: str | None = typer.Option(None),
    kind: TransactionKind | None = typer.Option(None),
    category: str | None = typer.Option(None),
    description: str | None = typer.Option(None),
    original_text: str | None = typer.Option(None),
    date: datetime | None = typer.Option(None, formats=_DATE_FORMATS),
) -> None:
    """Replace a transaction's fields; omitted options keep their current value."""

    state = _state(ctx)

    def _edit(s: Session) -> LedgerEntry:
        current = api.get_transaction(s, state.owner, transaction_id)
        payload = {
            "amount": amount if amount is not None else current.amount,
            "kind": kind or current.kind,
            "category": category if category is not None else current.category,
            "description": description if description is not None else current.description,
            "original_text": original_text if original_text is not None else current.original_text,
            "occurred_at": date or current.occurred_at,
        }
        return api.update_transaction(s, state.owner, transaction_id, payload)

    entry = _run(state, _edit)
    Console().print(_entries_table([entry], "Updated"))


@app.command("delete")
def delete_cmd(
    ctx: typer.Context,
    transaction_id: int = typer.Argument(..., help="ID of the transaction to delete."),
) -> None:
    """Delete one transaction."""

    state = _state(ctx)
    entry = _run(state, lambda s: api.delete_transaction(s, state.owner, transaction_id))
    typer.echo(f"Deleted transaction {entry.id}.")


@app.command("summary")
def summary_cmd(
    ctx: typer.Context,
    *,
    start: datetime | None = typer.Option(None, formats=_DATE_FORMATS),
    end: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help=_END_HELP),
) -> None:
    """Total income, expenses and savings."""

    state = _state(ctx)
    date_range = _date_range(start, end)
    summary = _run(state, lambda s: api.financial_summary(s, state.owner, date_range))
    Console().print(reports.render_summary(summary))


@app.command("categories")
def categories_cmd(
    ctx: typer.Context,
    *,
    kind: TransactionKind = typer.Option(TransactionKind.EXPENSE),
    start: datetime | None = typer.Option(None, formats=_DATE_FORMATS),
    end: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help=_END_HELP),
) -> None:
    """Totals per category for expenses (default) or income."""

    state = _state(ctx)
    date_range = _date_range(start, end)
    rows = _run(state, lambda s: api.category_breakdown(s, state.owner, kind, date_range))
    Console().print(reports.render_category_breakdown(rows, kind))


@app.command("trends")
def trends_cmd(
    ctx: typer.Context,
    *,
    period: TrendPeriod = typer.Option(TrendPeriod.MONTHLY),
    start: datetime | None = typer.Option(None, formats=_DATE_FORMATS),
    end: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help=_END_HELP),
) -> None:
    """Income and expenses per day, ISO week or month."""

    state = _state(ctx)
    date_range = _date_range(start, end)
    points = _run(state, lambda s: api.spending_trends(s, state.owner, period, date_range))
    Console().print(reports.render_trends(points, period))


@app.command("entry")
def entry_cmd(ctx: typer.Context) -> None:
    """Interactive loop: type one transaction per line; 'quit' or Ctrl+D to stop."""

    from .term_ui import run_entry_loop

    state = _state(ctx)
    completer = _completer()

    def _submit(text: str) -> api.IngestOutcome:
        with _session(state) as s:
            return api.ingest_text(s, state.owner, text, completer=completer)

    recorded = run_entry_loop(_submit)
    typer.echo(f"Recorded {len(recorded)} transaction(s).")


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m smart_ledger.cli`
    app()
