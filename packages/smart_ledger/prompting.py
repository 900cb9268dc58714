"""Prompt construction for free-text transaction parsing.

This module builds:
- The fixed system instructions for the extraction task.
- The user content embedding the raw text between delimiters.
- The strict ``response_format`` (JSON Schema) object for the OpenAI
  Responses API.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from .categories import RECOMMENDED_CATEGORIES

BEGIN_MARKER = "BEGIN_TEXT"
END_MARKER = "END_TEXT"


def build_system_instructions() -> str:
    """Return the system instructions for single-transaction extraction."""

    return (
        "You extract one personal-finance transaction from a short free-text note. "
        "Return JSON only, conforming to the specified schema. The amount is always a "
        "positive number; direction goes in 'type'. Never invent categories."
    )


def build_user_content(
    text: str,
    categories: Sequence[str] = RECOMMENDED_CATEGORIES,
) -> str:
    """Build the user content for one transaction note.

    The note is JSON-encoded between ``BEGIN_TEXT``/``END_TEXT`` markers so
    quotes and newlines in user input cannot break the prompt structure.
    """

    return (
        "Analyze this financial transaction text and extract:\n"
        "- amount (number, always positive)\n"
        '- type (either "income" or "expense")\n'
        f"- category (one of: {', '.join(categories)})\n"
        "- description (brief description)\n\n"
        f"{BEGIN_MARKER}\n{json.dumps(text, ensure_ascii=False)}\n{END_MARKER}\n\n"
        "Return JSON format: "
        '{"amount": number, "type": string, "category": string, "description": string}'
    )


def build_response_format(
    categories: Sequence[str] = RECOMMENDED_CATEGORIES,
) -> dict[str, Any]:
    """Return the strict JSON Schema ``format`` object for the Responses API.

    Schema shape::

        {
          "type": "json_schema",
          "name": "parsed_transaction",
          "schema": {
            "type": "object",
            "properties": {
              "amount": {"type": "number"},
              "type": {"type": "string", "enum": ["income", "expense"]},
              "category": {"type": "string", "enum": [...]},
              "description": {"type": "string"}
            },
            "required": ["amount", "type", "category", "description"],
            "additionalProperties": false
          },
          "strict": true
        }
    """

    codes = [c for c in dict.fromkeys(s.strip() for s in categories) if c]
    if not codes:
        raise ValueError("categories must contain at least one non-blank label")

    return {
        "type": "json_schema",
        "name": "parsed_transaction",
        "schema": {
            "type": "object",
            "properties": {
                "amount": {"type": "number"},
                "type": {"type": "string", "enum": ["income", "expense"]},
                "category": {"type": "string", "enum": codes},
                "description": {"type": "string"},
            },
            "required": ["amount", "type", "category", "description"],
            "additionalProperties": False,
        },
        "strict": True,
    }
