"""Interactive entry loop (prompt_toolkit-based).

Kept apart from the ingestion pipeline so it is easy to test with pipe input.
The loop owns :class:`RecentInputs`, a small session-scoped cache that stops
the user from resubmitting the same line within a few minutes before the
ledger is even consulted. The ledger's own duplicate gate still runs on every
submission that gets past the cache.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from datetime import datetime, timedelta

from prompt_toolkit import PromptSession
from prompt_toolkit.key_binding import KeyBindings
from rich.console import Console
from rich.markup import escape

from .api import Ingested, IngestOutcome
from .duplicates import RejectedExact, RejectedSimilar
from .errors import InvalidInput, LedgerError
from .logging_setup import get_logger
from .models import Clock, LedgerEntry, utc_now

RECENT_TTL = timedelta(minutes=5)
RECENT_CAPACITY = 100
EXIT_WORDS = frozenset({"quit", "exit", ":q"})

_logger = get_logger("smart_ledger.term_ui")


class RecentInputs:
    """Lines entered recently in this session, keyed by trimmed lower-case text.

    Entries expire ``ttl`` after they were remembered; when more than
    ``capacity`` are held the oldest is dropped first.
    """

    def __init__(
        self,
        *,
        capacity: int = RECENT_CAPACITY,
        ttl: timedelta = RECENT_TTL,
        clock: Clock = utc_now,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._ttl = ttl
        self._clock = clock
        self._seen: OrderedDict[str, datetime] = OrderedDict()

    @staticmethod
    def key(text: str) -> str:
        return text.strip().lower()

    def _evict_expired(self, now: datetime) -> None:
        while self._seen:
            oldest_key, stamp = next(iter(self._seen.items()))
            if now - stamp < self._ttl:
                break
            del self._seen[oldest_key]

    def __contains__(self, text: object) -> bool:
        if not isinstance(text, str):
            return False
        self._evict_expired(self._clock())
        return self.key(text) in self._seen

    def __len__(self) -> int:
        self._evict_expired(self._clock())
        return len(self._seen)

    def remember(self, text: str) -> None:
        k = self.key(text)
        if not k:
            return
        now = self._clock()
        self._evict_expired(now)
        self._seen.pop(k, None)
        self._seen[k] = now
        while len(self._seen) > self._capacity:
            self._seen.popitem(last=False)


def _describe_entry(entry: LedgerEntry) -> str:
    return (
        f"#{entry.id} {entry.kind.value} {entry.amount:.2f} "
        f"\\[{escape(entry.category)}] {escape(entry.description)}"
    )


def run_entry_loop(
    submit: Callable[[str], IngestOutcome],
    *,
    session: PromptSession | None = None,
    recent: RecentInputs | None = None,
    console: Console | None = None,
    message: str = "transaction> ",
) -> list[LedgerEntry]:
    """Prompt for free-text transactions until EOF, Ctrl+C/Esc or ``quit``.

    ``submit`` records one line (normally :func:`smart_ledger.api.ingest_text`
    inside its own session scope) and returns the outcome. Returns the entries
    recorded during the loop, in order.
    """

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    sess: PromptSession = session if session is not None else PromptSession(key_bindings=kb)
    cache = recent if recent is not None else RecentInputs()
    out = console if console is not None else Console()
    recorded: list[LedgerEntry] = []

    while True:
        try:
            line = sess.prompt(message, key_bindings=kb)
        except (EOFError, KeyboardInterrupt):
            break
        if line is None:
            break
        text = line.strip()
        if not text:
            continue
        if text.lower() in EXIT_WORDS:
            break

        if text in cache:
            out.print("[yellow]You recently entered this transaction. Please enter a new one.[/]")
            continue

        try:
            outcome = submit(text)
        except InvalidInput as e:
            out.print(f"[red]Invalid input:[/] {escape(str(e))}")
            continue
        except LedgerError as e:
            out.print(f"[red]Error:[/] {escape(str(e))}")
            continue
        except Exception as e:  # noqa: BLE001 - a failed submission must not end the session
            _logger.exception("Submitting %r failed", text)
            out.print(f"[red]Error:[/] {escape(f'{type(e).__name__}: {e}')}")
            continue

        if isinstance(outcome, Ingested):
            cache.remember(text)
            recorded.append(outcome.entry)
            out.print(f"[green]Added[/] {_describe_entry(outcome.entry)}")
        elif isinstance(outcome, RejectedExact):
            cache.remember(text)
            out.print(f"[yellow]{outcome.message}[/] (#{outcome.existing_id})")
        elif isinstance(outcome, RejectedSimilar):
            out.print(
                f"[yellow]{outcome.message}[/] (#{outcome.existing_id}, "
                f"score {outcome.score:.2f}). Rephrase it if this is a different transaction."
            )

    _logger.debug("Entry loop finished with %d recorded transaction(s)", len(recorded))
    return recorded


__all__ = ["RecentInputs", "run_entry_loop", "RECENT_TTL", "RECENT_CAPACITY"]
