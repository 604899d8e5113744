"""Tests for the hosted model runner."""

from __future__ import annotations

import json

import pytest

from specverify.judge.base import JudgeError
from specverify.judge.runner import LLMRunner


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def read(self):
        return json.dumps(self._payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def _capture_urlopen(monkeypatch, payload, captured):
    def fake_urlopen(request, timeout=None):
        captured["url"] = request.full_url
        captured["headers"] = {k.lower(): v for k, v in request.header_items()}
        captured["payload"] = json.loads(request.data.decode("utf-8"))
        captured["timeout"] = timeout
        return FakeResponse(payload)

    monkeypatch.setattr("specverify.judge.runner.urlopen", fake_urlopen)


def test_llm_runner_constructs_request() -> None:
    captured = {}

    def fake_runner(request):
        captured["prompt"] = request.prompt
        captured["system"] = request.system
        captured["provider"] = request.provider
        captured["model"] = request.model
        captured["max_tokens"] = request.max_tokens
        captured["api_key"] = request.api_key
        captured["request_timeout"] = request.request_timeout
        return "response"

    runner = LLMRunner(
        "claude",
        "custom-model",
        api_key="key",
        max_tokens=256,
        request_timeout=42.0,
        runner=fake_runner,
    )
    result = runner.run("Hello world", system="system message", max_tokens=64)

    assert result == "response"
    assert captured == {
        "prompt": "Hello world",
        "system": "system message",
        "provider": "anthropic",
        "model": "custom-model",
        "max_tokens": 64,
        "api_key": "key",
        "request_timeout": 42.0,
    }


def test_anthropic_runner_posts_messages(monkeypatch) -> None:
    captured = {}
    _capture_urlopen(monkeypatch, {"content": [{"type": "text", "text": " verdict "}]}, captured)

    runner = LLMRunner("anthropic", api_key="ant-key", base_url="https://example.test/v1/")
    result = runner.run("Compare these", system="Be strict")

    assert result == "verdict"
    assert captured["url"] == "https://example.test/v1/messages"
    assert captured["headers"]["x-api-key"] == "ant-key"
    assert captured["headers"]["anthropic-version"] == "2023-06-01"
    assert captured["payload"]["system"] == "Be strict"
    assert captured["payload"]["messages"] == [{"role": "user", "content": "Compare these"}]
    assert captured["timeout"] == 120.0


def test_openai_runner_uses_bearer_token(monkeypatch) -> None:
    captured = {}
    _capture_urlopen(
        monkeypatch, {"choices": [{"message": {"content": "Whales are mammals."}}]}, captured
    )

    runner = LLMRunner("openai", "gpt-test", api_key="oa-key", temperature=0.05, max_tokens=128)
    result = runner.run("Give me a fact about whales.", system="Act like a marine biologist.")

    assert result == "Whales are mammals."
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["headers"]["authorization"] == "Bearer oa-key"
    payload = captured["payload"]
    assert payload["model"] == "gpt-test"
    assert payload["messages"][0] == {"role": "system", "content": "Act like a marine biologist."}
    assert payload["temperature"] == 0.05
    assert payload["max_tokens"] == 128


def test_gemini_runner_puts_key_in_query(monkeypatch) -> None:
    captured = {}
    _capture_urlopen(
        monkeypatch,
        {"candidates": [{"content": {"parts": [{"text": "{\"a\": "}, {"text": "1}"}]}}]},
        captured,
    )

    runner = LLMRunner("gemini", "gemini-test", api_key="g-key")
    result = runner.run("prompt")

    assert result == "{\"a\": 1}"
    assert captured["url"].endswith("/models/gemini-test:generateContent?key=g-key")
    assert captured["payload"]["generationConfig"]["maxOutputTokens"] == 2000


def test_runner_surfaces_api_errors(monkeypatch) -> None:
    _capture_urlopen(monkeypatch, {"error": {"message": "quota exceeded"}}, {})

    runner = LLMRunner("openai", api_key="k")
    with pytest.raises(JudgeError, match="quota exceeded"):
        runner.run("prompt")


def test_runner_rejects_empty_response(monkeypatch) -> None:
    _capture_urlopen(monkeypatch, {"content": []}, {})

    with pytest.raises(JudgeError, match="empty response"):
        LLMRunner("claude", api_key="k").run("prompt")


def test_unknown_provider_is_rejected() -> None:
    with pytest.raises(JudgeError, match="Unsupported AI provider"):
        LLMRunner("mystery")


def test_model_can_come_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("SPECVERIFY_LLM_MODEL", "env-model")

    assert LLMRunner("openai").model == "env-model"
    assert LLMRunner("openai", "explicit").model == "explicit"
