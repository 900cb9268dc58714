"""Natural-language completion capability used by the text parser.

The parser depends only on :class:`CompletionService`, a single-method
protocol (``complete(prompt) -> str``) that signals every failure with
:class:`~smart_ledger.errors.CompletionError`. :class:`OpenAICompletionService`
implements it over the OpenAI Responses API; tests substitute plain stubs.

No side effects occur at import time (no client creation, no environment
reads). :func:`default_completion_service` reads the environment when called.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from openai import OpenAI

from . import prompting
from .errors import CompletionError
from .logging_setup import get_logger

_DEFAULT_MODEL = "gpt-5-mini"
_DEFAULT_TIMEOUT_SEC = 20.0
_MAX_RETRIES = 1

_logger = get_logger("smart_ledger.completion")


@runtime_checkable
class CompletionService(Protocol):
    def complete(self, prompt: str) -> str:
        """Return the model's text for ``prompt``; raise ``CompletionError`` on failure."""
        ...


def _extract_output_text(resp: Any) -> str:
    """Locate the text output on a Responses SDK result.

    Prefers ``resp.output_text``; falls back to ``resp.output[0].content[0].text``
    (plain string or an object exposing ``value``).
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        try:
            first = resp.output[0] if getattr(resp, "output", None) else None
            content = getattr(first, "content", None)
            if content:
                txt_obj = getattr(content[0], "text", None)
                if isinstance(txt_obj, str):
                    text = txt_obj
                else:
                    maybe_val = getattr(txt_obj, "value", None)
                    if isinstance(maybe_val, str):
                        text = maybe_val
        except (AttributeError, IndexError, TypeError):
            text = None
    if not text or not isinstance(text, str):
        raise CompletionError("Unexpected Responses API shape; unable to locate text output")
    return text


class OpenAICompletionService:
    """:class:`CompletionService` backed by ``client.responses.create``.

    Parameters
    ----------
    client:
        An ``openai.OpenAI``-shaped client. Built from the environment when
        omitted.
    model:
        Responses API model name.
    instructions:
        Optional system instructions sent with every prompt.
    response_format:
        Optional strict JSON-schema ``format`` object for ``text``.
    timeout:
        Per-request timeout in seconds, used when building the client.
    """

    def __init__(
        self,
        *,
        client: Any | None = None,
        model: str = _DEFAULT_MODEL,
        instructions: str | None = None,
        response_format: Mapping[str, Any] | None = None,
        timeout: float = _DEFAULT_TIMEOUT_SEC,
    ) -> None:
        self._client = client if client is not None else OpenAI(
            timeout=timeout, max_retries=_MAX_RETRIES
        )
        self._model = model
        self._instructions = instructions
        self._response_format = response_format

    @property
    def model(self) -> str:
        return self._model

    def complete(self, prompt: str) -> str:
        kwargs: dict[str, Any] = {"model": self._model, "input": prompt}
        if self._instructions:
            kwargs["instructions"] = self._instructions
        if self._response_format is not None:
            kwargs["text"] = {"format": dict(self._response_format)}

        try:
            resp = self._client.responses.create(**kwargs)
        except Exception as e:  # noqa: BLE001 - SDK raises transport, timeout and API errors
            raise CompletionError(f"OpenAI request failed: {e}") from e
        return _extract_output_text(resp)


def _env_timeout() -> float:
    raw = os.getenv("SMART_LEDGER_AI_TIMEOUT")
    if not raw:
        return _DEFAULT_TIMEOUT_SEC
    try:
        value = float(raw)
    except ValueError:
        _logger.warning("Ignoring invalid SMART_LEDGER_AI_TIMEOUT=%r", raw)
        return _DEFAULT_TIMEOUT_SEC
    return value if value > 0 else _DEFAULT_TIMEOUT_SEC


def default_completion_service() -> CompletionService | None:
    """Build the OpenAI-backed parser service from the environment.

    Returns ``None`` when ``OPENAI_API_KEY`` is not set, which callers treat
    as "use the deterministic fallback".
    """

    if not os.getenv("OPENAI_API_KEY"):
        _logger.debug("OPENAI_API_KEY not set; AI parsing disabled")
        return None
    return OpenAICompletionService(
        model=os.getenv("SMART_LEDGER_MODEL") or _DEFAULT_MODEL,
        instructions=prompting.build_system_instructions(),
        response_format=prompting.build_response_format(),
        timeout=_env_timeout(),
    )


__all__ = [
    "CompletionService",
    "OpenAICompletionService",
    "default_completion_service",
]
