"""HTTP adapters for hosted model providers (Anthropic, OpenAI, Gemini)."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from .base import JudgeError


@dataclass
class LLMRequest:
    """Represents one completion request sent to the provider."""

    prompt: str
    system: Optional[str]
    provider: str
    model: str
    max_tokens: int
    temperature: Optional[float]
    api_key: Optional[str]
    base_url: str
    request_timeout: float


class LLMRunner:
    """Executes prompts against the configured model provider."""

    DEFAULT_MODELS: Dict[str, str] = {
        "anthropic": "claude-sonnet-4-20250514",
        "openai": "gpt-4o",
        "gemini": "gemini-2.0-flash",
    }
    DEFAULT_BASE_URLS: Dict[str, str] = {
        "anthropic": "https://api.anthropic.com/v1",
        "openai": "https://api.openai.com/v1",
        "gemini": "https://generativelanguage.googleapis.com/v1beta",
    }
    PROVIDER_ALIASES: Dict[str, str] = {"claude": "anthropic"}
    ENV_MODEL_KEYS = ("SPECVERIFY_LLM_MODEL",)
    ENV_BASE_URL_KEYS = ("SPECVERIFY_LLM_BASE_URL",)
    ANTHROPIC_VERSION = "2023-06-01"

    def __init__(
        self,
        provider: str = "gemini",
        model: str | None = None,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: Optional[float] = 0.0,
        max_tokens: int = 2000,
        request_timeout: float = 120.0,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.provider = self._resolve_provider(provider)
        self.model = model or self._first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODELS[self.provider]
        self.base_url = (
            base_url or self._first_env_value(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URLS[self.provider]
        ).rstrip("/")
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout
        if runner is not None:
            self._runner = runner
        else:
            self._runner = {
                "anthropic": self._anthropic_runner,
                "openai": self._openai_runner,
                "gemini": self._gemini_runner,
            }[self.provider]

    def run(self, prompt: str, *, system: str | None = None, max_tokens: int | None = None) -> str:
        """Send the prompt to the provider and return the response text."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            provider=self.provider,
            model=self.model,
            max_tokens=max_tokens or self.max_tokens,
            temperature=self.temperature,
            api_key=self.api_key,
            base_url=self.base_url,
            request_timeout=self.request_timeout,
        )
        return self._runner(request)

    @classmethod
    def _resolve_provider(cls, provider: str) -> str:
        name = (provider or "").strip().lower()
        name = cls.PROVIDER_ALIASES.get(name, name)
        if name not in cls.DEFAULT_MODELS:
            raise JudgeError(f"Unsupported AI provider '{provider}'")
        return name

    @staticmethod
    def _anthropic_runner(request: LLMRequest) -> str:
        payload: dict[str, object] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system:
            payload["system"] = request.system
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        headers = {
            "Content-Type": "application/json",
            "x-api-key": request.api_key or "",
            "anthropic-version": LLMRunner.ANTHROPIC_VERSION,
        }
        data = _post_json(f"{request.base_url}/messages", payload, headers, request.request_timeout)

        error = data.get("error")
        if isinstance(error, dict):
            raise JudgeError(f"API error: {error.get('message', 'unknown error')}")
        content = data.get("content")
        if isinstance(content, list):
            for block in content:
                if isinstance(block, dict) and isinstance(block.get("text"), str):
                    return block["text"].strip()
        raise JudgeError("empty response from API")

    @staticmethod
    def _openai_runner(request: LLMRequest) -> str:
        messages: list[dict[str, str]] = []
        if request.system:
            messages.append({"role": "system", "content": request.system})
        messages.append({"role": "user", "content": request.prompt})
        payload: dict[str, object] = {
            "model": request.model,
            "messages": messages,
            "max_tokens": request.max_tokens,
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"
        data = _post_json(
            f"{request.base_url}/chat/completions", payload, headers, request.request_timeout
        )

        error = data.get("error")
        if isinstance(error, dict):
            raise JudgeError(f"API error: {error.get('message', 'unknown error')}")
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"].strip()
        raise JudgeError("empty response from API")

    @staticmethod
    def _gemini_runner(request: LLMRequest) -> str:
        generation: dict[str, object] = {"maxOutputTokens": request.max_tokens}
        if request.temperature is not None:
            generation["temperature"] = request.temperature
        payload: dict[str, object] = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": generation,
        }
        if request.system:
            payload["systemInstruction"] = {"parts": [{"text": request.system}]}
        endpoint = (
            f"{request.base_url}/models/{quote(request.model, safe='')}:generateContent"
            f"?key={quote(request.api_key or '', safe='')}"
        )
        data = _post_json(
            endpoint, payload, {"Content-Type": "application/json"}, request.request_timeout
        )

        error = data.get("error")
        if isinstance(error, dict):
            raise JudgeError(f"API error: {error.get('message', 'unknown error')}")
        candidates = data.get("candidates")
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content")
            parts = content.get("parts") if isinstance(content, dict) else None
            if isinstance(parts, list):
                text = "".join(
                    part.get("text", "") for part in parts if isinstance(part, dict)
                )
                if text.strip():
                    return text.strip()
        raise JudgeError("empty response from API")

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


def _post_json(
    endpoint: str, payload: dict[str, object], headers: dict[str, str], timeout: float
) -> dict[str, object]:
    http_request = Request(
        endpoint, data=json.dumps(payload).encode("utf-8"), headers=headers, method="POST"
    )
    try:
        with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
            raw = response.read()
    except HTTPError as exc:  # pragma: no cover - depends on runtime
        detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
        message = detail.strip() or exc.reason
        raise JudgeError(f"API error (status {exc.code}): {message}") from exc
    except URLError as exc:  # pragma: no cover - depends on runtime
        raise JudgeError(f"failed to send request: {exc.reason}") from exc
    except TimeoutError as exc:  # pragma: no cover - depends on runtime
        raise JudgeError("request timed out") from exc

    try:
        data = json.loads(raw.decode("utf-8"))
    except json.JSONDecodeError as exc:
        raise JudgeError("failed to parse response: invalid JSON") from exc
    if not isinstance(data, dict):
        raise JudgeError("failed to parse response: expected a JSON object")
    return data


__all__ = ["LLMRequest", "LLMRunner"]
