"""Test helpers standing in for the natural-language completion service.

``CompletionStub`` satisfies :class:`smart_ledger.completion.CompletionService`
and records every prompt. ``ResponsesClientStub`` matches the small slice of
the ``openai.OpenAI`` client shape that ``OpenAICompletionService`` touches
(``client.responses.create(**kwargs)``).
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from smart_ledger.errors import CompletionError


def json_answer(**fields: Any) -> str:
    """Serialize a model answer the way the completion service returns it."""

    return json.dumps(fields)


class CompletionStub:
    """Return a canned answer, compute one from the prompt, or raise.

    Parameters
    ----------
    answer:
        A string returned verbatim, a callable receiving the prompt, or an
        exception instance raised on every call.
    """

    def __init__(self, answer: str | Callable[[str], str] | BaseException) -> None:
        self._answer = answer
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self._answer, BaseException):
            raise self._answer
        if callable(self._answer):
            return self._answer(prompt)
        return self._answer


def failing_completer(message: str = "timed out") -> CompletionStub:
    return CompletionStub(CompletionError(message))


class ResponsesClientStub:
    """Minimal stub matching ``openai.OpenAI`` for ``responses.create``.

    ``response`` is returned from every call (or raised when it is an
    exception); each call's kwargs are appended to ``calls``.
    """

    def __init__(self, response: Any, calls_out: list[dict[str, Any]] | None = None) -> None:
        self._response = response
        self.calls: list[dict[str, Any]] = calls_out if calls_out is not None else []

        class _Responses:
            def __init__(self, outer: ResponsesClientStub) -> None:
                self._outer = outer

            def create(self, **kwargs: Any) -> Any:
                self._outer.calls.append(kwargs)
                if isinstance(self._outer._response, BaseException):
                    raise self._outer._response
                return self._outer._response

        self.responses = _Responses(self)


class TextResponse:
    """Responses SDK result exposing ``output_text``."""

    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
