"""Judge capability: verification and route extraction through a language model."""

from __future__ import annotations

from ..config import ConfigError, SpecVerifyConfig
from .base import Judge, JudgeError
from .llm import LLMJudge, parse_routes, parse_verification
from .prompts import PromptBuilder
from .runner import LLMRequest, LLMRunner


def create_judge(config: SpecVerifyConfig) -> LLMJudge:
    """Build the LLM judge described by the configuration."""
    if not config.ai_api_key:
        raise ConfigError(
            "No API key configured. Set SPEC_VERIFY_API_KEY or the provider's API key "
            "environment variable, or pass --api-key."
        )
    try:
        runner = LLMRunner(config.ai_provider, config.ai_model, api_key=config.ai_api_key)
    except JudgeError as exc:
        raise ConfigError(str(exc)) from exc
    return LLMJudge(runner)


__all__ = [
    "Judge",
    "JudgeError",
    "LLMJudge",
    "LLMRequest",
    "LLMRunner",
    "PromptBuilder",
    "create_judge",
    "parse_routes",
    "parse_verification",
]
