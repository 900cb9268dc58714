"""Heuristic textual closeness between two transaction descriptions.

Used only as a soft duplicate signal, never as an identity key. Rules, in
order of precedence:

1. either side empty/``None`` -> ``0.0``;
2. equal after normalization -> ``1.0``;
3. one contains the other -> ``0.8``;
4. otherwise the overlap of distinct tokens longer than two characters,
   divided by the larger token-set size.
"""

from __future__ import annotations

from .fingerprint import normalize_text

CONTAINMENT_SCORE = 0.8
MIN_TOKEN_LENGTH = 3


def _tokens(normalized: str) -> set[str]:
    return {tok for tok in normalized.split(" ") if len(tok) >= MIN_TOKEN_LENGTH}


def text_similarity(a: str | None, b: str | None) -> float:
    """Return a symmetric score in ``[0, 1]`` for ``a`` and ``b``."""

    if not a or not b:
        return 0.0
    na, nb = normalize_text(a), normalize_text(b)
    if not na or not nb:
        return 0.0
    if na == nb:
        return 1.0
    if na in nb or nb in na:
        return CONTAINMENT_SCORE

    ta, tb = _tokens(na), _tokens(nb)
    denominator = max(len(ta), len(tb))
    if denominator == 0:
        return 0.0
    return len(ta & tb) / denominator


__all__ = ["text_similarity"]
