from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.repo_builder import RepoBuilder

_ENV_KEYS = (
    "SPEC_VERIFY_API_KEY",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "GOOGLE_API_KEY",
    "SPECVERIFY_LLM_MODEL",
    "SPECVERIFY_LLM_BASE_URL",
)


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so teardown also removes values loaded from .env files.
    for name in _ENV_KEYS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
