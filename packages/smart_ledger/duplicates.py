"""Duplicate gate: accept or reject a candidate against the owner's recent window.

The gate performs no I/O. Callers fetch the window (every entry of the same
owner whose ``occurred_at`` falls in the trailing :data:`DEDUP_WINDOW`) and
pass it in store order. Outcomes are values, not exceptions:

- :class:`Accepted` carries the fingerprint the caller must persist with;
- :class:`RejectedExact` is a hard stop (same content already recorded);
- :class:`RejectedSimilar` is a softer signal; the user may resubmit with
  materially different text.

The exact check always runs first, so a fingerprint match wins over any fuzzy
match against a different entry.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from .fingerprint import compute_fingerprint
from .logging_setup import get_logger
from .models import LedgerEntry, TransactionDraft
from .similarity import text_similarity

DEDUP_WINDOW = timedelta(hours=24)
SIMILARITY_THRESHOLD = 0.7

_logger = get_logger("smart_ledger.duplicates")


@dataclass(frozen=True, slots=True)
class Accepted:
    fingerprint: str


@dataclass(frozen=True, slots=True)
class RejectedExact:
    """Same content already recorded in the window.

    ``existing_id`` is ``None`` only when a store-level conflict was detected
    but the colliding row could not be read back.
    """

    existing_id: int | None
    fingerprint: str

    message = "This exact transaction was already added recently"
    code = "DUPLICATE_TRANSACTION"


@dataclass(frozen=True, slots=True)
class RejectedSimilar:
    existing_id: int
    fingerprint: str
    score: float

    message = "A similar transaction was already added recently"
    code = "SIMILAR_TRANSACTION"


type Admission = Accepted | RejectedExact | RejectedSimilar


def window_start(now: datetime) -> datetime:
    """Lower bound (inclusive) of the duplicate window ending at ``now``."""

    return now - DEDUP_WINDOW


def draft_fingerprint(draft: TransactionDraft) -> str:
    return compute_fingerprint(draft.owner, draft.amount, draft.description, draft.original_text)


def admit(
    candidate: TransactionDraft,
    window: Iterable[LedgerEntry],
    *,
    threshold: float = SIMILARITY_THRESHOLD,
) -> Admission:
    """Decide whether ``candidate`` may be recorded.

    Parameters
    ----------
    candidate:
        The validated draft to admit.
    window:
        The owner's recent entries in store order. Entries belonging to other
        owners are ignored.
    threshold:
        Similarity strictly above this value rejects as a similar duplicate.
    """

    fingerprint = draft_fingerprint(candidate)
    entries = [e for e in window if e.owner == candidate.owner]

    for entry in entries:
        if entry.fingerprint == fingerprint:
            _logger.info("Exact duplicate of transaction %s for owner %r", entry.id, entry.owner)
            return RejectedExact(existing_id=entry.id, fingerprint=fingerprint)

    text = candidate.comparison_text
    for entry in entries:
        score = text_similarity(text, entry.comparison_text)
        if score > threshold:
            _logger.info(
                "Similar duplicate of transaction %s (score=%.2f) for owner %r",
                entry.id,
                score,
                entry.owner,
            )
            return RejectedSimilar(existing_id=entry.id, fingerprint=fingerprint, score=score)

    return Accepted(fingerprint=fingerprint)


__all__ = [
    "DEDUP_WINDOW",
    "SIMILARITY_THRESHOLD",
    "Accepted",
    "RejectedExact",
    "RejectedSimilar",
    "Admission",
    "window_start",
    "draft_fingerprint",
    "admit",
]
