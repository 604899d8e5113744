"""Judge implementation backed by a hosted language model."""

from __future__ import annotations

import json
import re
from typing import Any, List, Mapping, Optional, Sequence

from ..logging import get_logger
from ..models import RouteCandidate, VerificationResult
from .base import JudgeError
from .prompts import PromptBuilder
from .runner import LLMRunner

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

logger = get_logger("judge")


class LLMJudge:
    """Scores specs against code and extracts routes by prompting an LLM."""

    VERIFY_MAX_TOKENS = 2000
    EXTRACT_MAX_TOKENS = 4000

    def __init__(self, runner: LLMRunner, prompts: PromptBuilder | None = None) -> None:
        self.runner = runner
        self.prompts = prompts or PromptBuilder()

    def verify(
        self,
        spec_text: str,
        code_contents: Mapping[str, str],
        focus: Optional[Sequence[str]] = None,
    ) -> VerificationResult:
        prompt = self.prompts.verification_prompt(spec_text, code_contents, focus)
        logger.debug("Verification prompt covers %d code files", len(code_contents))
        text = self.runner.run(
            prompt, system=PromptBuilder.SYSTEM_PROMPT, max_tokens=self.VERIFY_MAX_TOKENS
        )
        return parse_verification(text)

    def extract_routes(
        self, source_type: str, category: str, code_text: str
    ) -> List[RouteCandidate]:
        prompt = self.prompts.extraction_prompt(source_type, category, code_text)
        text = self.runner.run(
            prompt, system=PromptBuilder.SYSTEM_PROMPT, max_tokens=self.EXTRACT_MAX_TOKENS
        )
        return parse_routes(text)


def parse_verification(text: str) -> VerificationResult:
    """Decode a verification verdict from model output."""
    payload = _decode(text, _JSON_OBJECT, "verification result")
    if not isinstance(payload, dict):
        raise JudgeError("failed to parse verification result: expected a JSON object")
    return VerificationResult.from_payload(payload)


def parse_routes(text: str) -> List[RouteCandidate]:
    """Decode the list of extracted routes from model output."""
    payload = _decode(text, _JSON_ARRAY, "endpoint result")
    if not isinstance(payload, list):
        raise JudgeError("failed to parse endpoint result: expected a JSON array")

    routes: List[RouteCandidate] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        method = str(entry.get("method") or "").strip().upper()
        path = str(entry.get("path") or "").strip()
        if not method or not path:
            continue
        routes.append(
            RouteCandidate(
                method=method,
                path=path,
                file=_optional_str(entry.get("file")),
                description=_optional_str(entry.get("description")),
                category=_optional_str(entry.get("category")),
            )
        )
    return routes


def _decode(text: str, fallback: re.Pattern[str], label: str) -> Any:
    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidate = fenced.group(1)
    else:
        bare = fallback.search(text)
        candidate = bare.group(0) if bare else text
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise JudgeError(f"failed to parse {label}: {exc}") from exc


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = ["LLMJudge", "parse_routes", "parse_verification"]
