"""Category vocabulary and keyword rules for deterministic classification.

Exports
-------
- ``RECOMMENDED_CATEGORIES``: the open-but-recommended label set offered to
  the completion service and used to canonicalize its answers.
- ``CATEGORY_RULES``: ordered ``(keywords, category)`` pairs; evaluated top to
  bottom, first match wins.
- ``INCOME_KEYWORDS``: any of these in the text flips the direction to income.
- ``match_category(...)``, ``detect_kind(...)``, ``canonical_category(...)``.
"""

from __future__ import annotations

from .models import TransactionKind

RECOMMENDED_CATEGORIES: tuple[str, ...] = (
    "Food",
    "Transportation",
    "Entertainment",
    "Shopping",
    "Healthcare",
    "Education",
    "Utilities",
    "Salary",
    "Gift",
    "Other",
)

DEFAULT_CATEGORY = "Other"

# Order is significant. The first five rules keep their historical priority;
# the rest extend coverage to the remaining recommended labels.
CATEGORY_RULES: tuple[tuple[frozenset[str], str], ...] = (
    (frozenset({"food", "restaurant", "coffee", "lunch", "dinner", "pizza", "burger"}), "Food"),
    (frozenset({"gas", "fuel", "uber", "taxi", "bus", "train"}), "Transportation"),
    (frozenset({"movie", "netflix", "spotify", "game"}), "Entertainment"),
    (frozenset({"amazon", "watch", "phone", "clothes", "shopping"}), "Shopping"),
    (frozenset({"salary", "paid", "income", "paycheck"}), "Salary"),
    (frozenset({"doctor", "pharmacy", "medicine", "hospital", "dentist"}), "Healthcare"),
    (frozenset({"tuition", "course", "school", "textbook"}), "Education"),
    (frozenset({"electricity", "electric bill", "water bill", "internet", "wifi"}), "Utilities"),
    (frozenset({"gift", "birthday", "present"}), "Gift"),
)

INCOME_KEYWORDS: frozenset[str] = frozenset({"salary", "paid", "income", "paycheck"})

_CANONICAL_BY_LOWER = {c.lower(): c for c in RECOMMENDED_CATEGORIES}


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name``."""

    return " ".join(name.strip().split())


def match_category(text: str) -> str:
    """Return the first rule's category whose keywords occur in ``text``.

    Matching is case-insensitive substring containment. Falls back to
    ``DEFAULT_CATEGORY`` when no rule matches.
    """

    lowered = text.lower()
    for keywords, category in CATEGORY_RULES:
        if any(k in lowered for k in keywords):
            return category
    return DEFAULT_CATEGORY


def detect_kind(text: str) -> TransactionKind:
    lowered = text.lower()
    if any(k in lowered for k in INCOME_KEYWORDS):
        return TransactionKind.INCOME
    return TransactionKind.EXPENSE


def canonical_category(name: str | None) -> str:
    """Map a model-provided label onto the recommended set.

    Case and surrounding whitespace are ignored; anything outside the set
    becomes ``DEFAULT_CATEGORY``.
    """

    if not name:
        return DEFAULT_CATEGORY
    return _CANONICAL_BY_LOWER.get(normalize_name(name).lower(), DEFAULT_CATEGORY)


__all__ = [
    "RECOMMENDED_CATEGORIES",
    "DEFAULT_CATEGORY",
    "CATEGORY_RULES",
    "INCOME_KEYWORDS",
    "normalize_name",
    "match_category",
    "detect_kind",
    "canonical_category",
]
