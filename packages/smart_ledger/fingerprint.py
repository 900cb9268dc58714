"""Content fingerprint identifying "the same transaction" for one owner.

The fingerprint is an exact-duplicate key, not a security boundary, so a
128-bit MD5 digest is sufficient. It depends only on normalized content:

- owner: stringified and trimmed;
- amount: rounded half-up to 2 dp and fixed-precision formatted;
- description / original text: lower-cased, trimmed, whitespace collapsed,
  ``None`` treated as empty.
"""

from __future__ import annotations

import hashlib
import json
import time
from decimal import Decimal, InvalidOperation
from typing import Any

from .logging_setup import get_logger
from .models import quantize_amount

_logger = get_logger("smart_ledger.fingerprint")


def normalize_text(value: Any) -> str:
    """Lower-case, trim and collapse internal whitespace; ``None`` -> ``""``."""

    if value is None:
        return ""
    return " ".join(str(value).split()).lower()


def _normalize_amount(amount: Any) -> str:
    if isinstance(amount, float):
        amount = Decimal(repr(amount))
    d = Decimal(str(amount)) if not isinstance(amount, Decimal) else amount
    if not d.is_finite():
        raise InvalidOperation(f"non-finite amount: {amount!r}")
    return f"{quantize_amount(d):.2f}"


def _digest(data: str) -> str:
    return hashlib.md5(data.encode("utf-8"), usedforsecurity=False).hexdigest()


def compute_fingerprint(
    owner: Any,
    amount: Any,
    description: str | None,
    original_text: str | None,
) -> str:
    """Return the 32-char hex fingerprint for the given transaction content.

    Never raises. If normalization fails (e.g. a non-numeric amount), a
    warning is logged and the current instant is hashed instead; that value
    cannot match a legitimate fingerprint, so it can never cause a false
    duplicate.
    """

    try:
        payload = {
            "owner": str(owner).strip(),
            "amount": _normalize_amount(amount),
            "description": normalize_text(description),
            "original_text": normalize_text(original_text),
        }
    except (InvalidOperation, ValueError, TypeError) as e:
        _logger.warning(
            "Fingerprint normalization failed (%s); using time-based fingerprint", e
        )
        return _digest(f"fallback:{time.time_ns()}")

    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return _digest(data)


__all__ = ["compute_fingerprint", "normalize_text"]
