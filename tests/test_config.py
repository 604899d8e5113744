"""Tests for specverify.config."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from specverify.config import (
    ConfigError,
    RouteSource,
    SpecVerifyConfig,
    api_key_from_env,
    find_config_file,
    infer_category,
    load_config,
    save_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path, load_env=False)

    assert isinstance(config, SpecVerifyConfig)
    assert config.root == tmp_path.resolve()
    assert config.specs_dir == "specs/"
    assert config.code_dir == "src/"
    assert config.ai_provider == "gemini"
    assert config.ai_api_key is None
    assert config.mapping == {"ui": "client/components", "api": "server/routes"}
    assert config.options.concurrency == 3
    assert config.options.pass_threshold == 50
    assert config.options.fail_under == 0
    assert config.options.max_batch_bytes == 100_000
    assert config.all_route_sources() == []


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".specverify.yml"
    config_file.write_text(
        """
specs_dir: docs/specs
code_dir: app
ai_provider: claude
ai_model: claude-test
mapping:
  ui: web/pages
spec_types:
  ui:
    code_paths: [web/pages, web/components]
    verification_focus:
      - Layout matches
groups:
  frontend:
    types: [ui]
    description: Browser facing
route_sources:
  - type: react-router
    patterns: ["web/routes/**/*.tsx"]
api_sources:
  - type: openapi
    patterns: ["docs/openapi.yaml"]
    category: api
options:
  concurrency: 5
  pass_threshold: 70
  fail_under: 40
  verbose: "yes"
  max_batch_bytes: 2048
""",
        encoding="utf-8",
    )

    config = load_config(config_file, load_env=False)

    assert config.specs_dir == "docs/specs"
    assert config.code_dir == "app"
    assert config.ai_provider == "claude"
    assert config.ai_model == "claude-test"
    assert config.mapping == {"ui": "web/pages"}
    assert config.code_paths_for("ui") == [
        os.path.join(str(tmp_path.resolve()), "app", "web/pages"),
        os.path.join(str(tmp_path.resolve()), "app", "web/components"),
    ]
    assert config.code_paths_for("other") == [os.path.join(str(tmp_path.resolve()), "app")]
    assert config.verification_focus_for("ui") == ["Layout matches"]
    assert config.types_in_group("frontend") == ["ui"]
    assert config.has_spec_type("ui")
    assert config.options.concurrency == 5
    assert config.options.pass_threshold == 70
    assert config.options.fail_under == 40
    assert config.options.verbose is True
    assert config.options.max_batch_bytes == 2048

    sources = config.all_route_sources()
    assert [(source.type, source.category) for source in sources] == [
        ("react-router", "ui"),
        ("openapi", "api"),
    ]


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".specverify.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path, load_env=False)


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".specverify.yml").write_text("specs_dir: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path, load_env=False)


def test_route_sources_require_a_type(tmp_path: Path) -> None:
    (tmp_path / ".specverify.yml").write_text(
        "route_sources:\n  - patterns: [a.ts]\n", encoding="utf-8"
    )

    with pytest.raises(ConfigError, match="missing a type"):
        load_config(tmp_path, load_env=False)


def test_api_key_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".specverify.yml").write_text("ai_api_key: from-file\n", encoding="utf-8")

    assert load_config(tmp_path, load_env=False).ai_api_key == "from-file"

    monkeypatch.setenv("GOOGLE_API_KEY", "from-provider-env")
    assert load_config(tmp_path, load_env=False).ai_api_key == "from-provider-env"

    monkeypatch.setenv("SPEC_VERIFY_API_KEY", "from-generic-env")
    assert load_config(tmp_path, load_env=False).ai_api_key == "from-generic-env"

    config = load_config(tmp_path, api_key="from-flag", load_env=False)
    assert config.ai_api_key == "from-flag"


def test_provider_override_selects_provider_key(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "anthropic-key")

    config = load_config(tmp_path, provider="claude", load_env=False)

    assert config.ai_provider == "claude"
    assert config.ai_api_key == "anthropic-key"


def test_env_file_is_loaded_without_overriding_process_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / ".env").write_text("GOOGLE_API_KEY=from-dotenv\n", encoding="utf-8")
    (tmp_path / ".env.local").write_text("OPENAI_API_KEY=from-local\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.ai_api_key == "from-dotenv"
    assert os.environ["OPENAI_API_KEY"] == "from-local"

    monkeypatch.setenv("GOOGLE_API_KEY", "from-process")
    assert load_config(tmp_path).ai_api_key == "from-process"


def test_api_key_from_env_unknown_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    assert api_key_from_env("unknown") is None
    monkeypatch.setenv("SPEC_VERIFY_API_KEY", "generic")
    assert api_key_from_env("unknown") == "generic"


@pytest.mark.parametrize(
    ("patterns", "expected"),
    [
        (["client/pages/**/*.tsx"], "ui"),
        (["app/routes/*.tsx"], "ui"),
        (["server/api/**/*.ts"], "api"),
        (["docs/openapi.yaml"], "api"),
        (["lib/**/*.rb"], "api"),
    ],
)
def test_infer_category(patterns: list[str], expected: str) -> None:
    assert infer_category(patterns) == expected


def test_save_config_round_trips_without_api_key(tmp_path: Path) -> None:
    config = SpecVerifyConfig(root=tmp_path, ai_api_key="secret", ai_provider="openai")
    config.route_sources.append(RouteSource(type="express", patterns=["src/**/*.ts"]))
    target = tmp_path / ".specverify.yml"

    save_config(config, target)

    assert "secret" not in target.read_text(encoding="utf-8")
    reloaded = load_config(target, load_env=False)
    assert reloaded.ai_provider == "openai"
    assert reloaded.route_sources[0].type == "express"


def test_find_config_file_prefers_existing_candidate(tmp_path: Path) -> None:
    assert find_config_file(tmp_path) == tmp_path / ".specverify.yml"
    (tmp_path / "specverify.yaml").write_text("{}\n", encoding="utf-8")
    assert find_config_file(tmp_path) == tmp_path / "specverify.yaml"
