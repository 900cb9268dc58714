from __future__ import annotations

import json
from typing import Any

import pytest

import smart_ledger.completion as completion_mod
from smart_ledger.completion import (
    CompletionService,
    OpenAICompletionService,
    default_completion_service,
)
from smart_ledger.errors import CompletionError
from smart_ledger.prompting import build_response_format, build_user_content
from tests.helpers.completion_stub import ResponsesClientStub, TextResponse


def test_complete_sends_model_instructions_and_schema():
    client = ResponsesClientStub(TextResponse('{"ok": true}'))
    fmt = build_response_format()
    svc = OpenAICompletionService(
        client=client, model="test-model", instructions="be terse", response_format=fmt
    )

    assert svc.complete("hello") == '{"ok": true}'
    (call,) = client.calls
    assert call["model"] == "test-model"
    assert call["input"] == "hello"
    assert call["instructions"] == "be terse"
    assert call["text"] == {"format": fmt}


def test_output_text_fallback_to_first_content_item():
    class _Text:
        value = "from value"

    class _Content:
        text = _Text()

    class _Item:
        content = [_Content()]

    class _Resp:
        output_text = ""
        output = [_Item()]

    svc = OpenAICompletionService(client=ResponsesClientStub(_Resp()))

    assert svc.complete("x") == "from value"


def test_unexpected_response_shape_raises_completion_error():
    class _Resp:
        output_text = None
        output: list[Any] = []

    svc = OpenAICompletionService(client=ResponsesClientStub(_Resp()))

    with pytest.raises(CompletionError):
        svc.complete("x")


def test_transport_failure_is_wrapped():
    svc = OpenAICompletionService(client=ResponsesClientStub(TimeoutError("read timed out")))

    with pytest.raises(CompletionError, match="read timed out"):
        svc.complete("x")


def test_default_service_disabled_without_api_key():
    assert default_completion_service() is None


def test_default_service_reads_environment(monkeypatch):
    built: list[dict[str, Any]] = []

    class _FakeOpenAI:
        def __init__(self, **kwargs: Any) -> None:
            built.append(kwargs)

    monkeypatch.setattr(completion_mod, "OpenAI", _FakeOpenAI)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("SMART_LEDGER_MODEL", "gpt-test")
    monkeypatch.setenv("SMART_LEDGER_AI_TIMEOUT", "3.5")

    svc = default_completion_service()

    assert isinstance(svc, OpenAICompletionService)
    assert isinstance(svc, CompletionService)
    assert svc.model == "gpt-test"
    assert built == [{"timeout": 3.5, "max_retries": 1}]


def test_invalid_timeout_falls_back_to_default(monkeypatch):
    built: list[dict[str, Any]] = []
    monkeypatch.setattr(completion_mod, "OpenAI", lambda **kw: built.append(kw))
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("SMART_LEDGER_AI_TIMEOUT", "soon")

    default_completion_service()

    assert built[0]["timeout"] == 20.0


def test_user_content_embeds_text_as_json_between_markers():
    note = 'Dinner "with" friends\n45'
    content = build_user_content(note, categories=("Food", "Other"))

    body = content.split("BEGIN_TEXT\n", 1)[1].split("\nEND_TEXT", 1)[0]
    assert json.loads(body) == note
    assert "one of: Food, Other" in content


def test_response_format_is_strict_and_lists_categories():
    fmt = build_response_format(["Food", " Food ", "Other", ""])

    assert fmt["strict"] is True
    assert fmt["schema"]["properties"]["category"]["enum"] == ["Food", "Other"]
    assert fmt["schema"]["additionalProperties"] is False

    with pytest.raises(ValueError):
        build_response_format(["  "])
