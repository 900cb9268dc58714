"""Free text -> :class:`~smart_ledger.models.ParsedTransaction`.

Public API:
    - :func:`parse_transaction_text`
    - :func:`fallback_parse`

``parse_transaction_text`` never raises. When a completion service is given
it is tried first; any failure there (transport error, timeout, non-JSON or
schema-violating output) is logged and the deterministic fallback answers
instead, with a lower confidence.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import prompting
from .categories import canonical_category, detect_kind, match_category
from .completion import CompletionService
from .logging_setup import get_logger
from .models import ParsedTransaction, TransactionKind

AI_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.6

# Optional currency symbol, then either a comma-grouped or a plain decimal.
_AMOUNT_RE = re.compile(r"[$€£¥₹]?\s*(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)")
_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)

_logger = get_logger("smart_ledger.parsing")


class _ModelAnswer(BaseModel):
    """Shape required from the completion service's JSON answer."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    amount: Decimal
    type: TransactionKind
    category: str
    description: str = Field(min_length=1)

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


def _decode_answer(text: str) -> Mapping[str, Any]:
    """Decode the JSON object in ``text``, tolerating a Markdown code fence."""

    raw = text.strip()
    fenced = _FENCE_RE.match(raw)
    if fenced:
        raw = fenced.group(1)
    decoded = json.loads(raw)
    if not isinstance(decoded, Mapping):
        raise ValueError("Model output was JSON but not an object")
    return decoded


def _extract_amount(text: str) -> Decimal:
    match = _AMOUNT_RE.search(text)
    if match is None:
        return Decimal("0")
    try:
        return Decimal(match.group(1).replace(",", ""))
    except InvalidOperation:  # pragma: no cover - regex only admits digits
        return Decimal("0")


def fallback_parse(text: str) -> ParsedTransaction:
    """Deterministic, total extraction used when the AI path is unavailable.

    - amount: first numeric token (optionally currency-prefixed), else ``0``;
    - category: first matching keyword rule, else ``Other``;
    - kind: ``income`` when an income keyword occurs, else ``expense``;
    - description: the original text.
    """

    return ParsedTransaction(
        amount=_extract_amount(text),
        kind=detect_kind(text),
        category=match_category(text),
        description=text,
        confidence=FALLBACK_CONFIDENCE,
    )


def _ai_parse(text: str, completer: CompletionService) -> ParsedTransaction:
    answer_text = completer.complete(prompting.build_user_content(text))
    answer = _ModelAnswer.model_validate(_decode_answer(answer_text))
    if not answer.amount.is_finite():
        raise ValueError("Model returned a non-finite amount")
    return ParsedTransaction(
        # The model's sign is never trusted; direction comes from ``type``.
        amount=abs(answer.amount),
        kind=answer.type,
        category=canonical_category(answer.category),
        description=answer.description,
        confidence=AI_CONFIDENCE,
    )


def parse_transaction_text(
    text: str,
    *,
    completer: CompletionService | None = None,
) -> ParsedTransaction:
    """Parse ``text`` into a best-effort transaction; never raises.

    Parameters
    ----------
    text:
        The raw user note, e.g. ``"Coffee 150"``.
    completer:
        Optional completion service. When ``None`` only the deterministic
        fallback runs.
    """

    if completer is not None:
        try:
            return _ai_parse(text, completer)
        except Exception as e:  # noqa: BLE001 - every primary-path failure degrades to fallback
            _logger.info("AI parse degraded to fallback: %s: %s", type(e).__name__, e)
    return fallback_parse(text)


__all__ = [
    "AI_CONFIDENCE",
    "FALLBACK_CONFIDENCE",
    "fallback_parse",
    "parse_transaction_text",
]
