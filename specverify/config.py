"""Configuration loading for specverify (.specverify.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml
from dotenv import load_dotenv

CONFIG_CANDIDATES = (
    ".specverify.yml",
    ".specverify.yaml",
    "specverify.yml",
    "specverify.yaml",
)

ENV_FILES = (".env", ".env.local")

GENERIC_API_KEY_ENV = "SPEC_VERIFY_API_KEY"
PROVIDER_API_KEY_ENV = {
    "claude": "ANTHROPIC_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GOOGLE_API_KEY",
}

_UI_HINTS = (
    "routes",
    "pages",
    "views",
    "screens",
    ".tsx",
    ".jsx",
    ".vue",
    ".svelte",
    "client",
    "frontend",
    "app/routes",
)
_API_HINTS = ("api", "server", "backend", "openapi", "swagger")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class RouteSource:
    """Where to discover routes: a source type, glob patterns and a category."""

    type: str
    patterns: List[str] = field(default_factory=list)
    category: str = ""
    options: Dict[str, str] = field(default_factory=dict)


@dataclass
class VerifyOptions:
    """Run-time options for verification and extraction."""

    concurrency: int = 3
    pass_threshold: int = 50
    fail_under: int = 0
    verbose: bool = False
    max_batch_bytes: int = 100_000


@dataclass
class SpecTypeConfig:
    """Code locations and judge hints for one spec type."""

    code_paths: List[str] = field(default_factory=list)
    verification_focus: List[str] = field(default_factory=list)
    file_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)


@dataclass
class GroupConfig:
    """Named group of spec types."""

    types: List[str] = field(default_factory=list)
    description: str = ""


@dataclass
class SpecVerifyConfig:
    """Represents the settings defined in .specverify.yml."""

    root: Path
    specs_dir: str = "specs/"
    code_dir: str = "src/"
    ai_provider: str = "gemini"
    ai_api_key: Optional[str] = None
    ai_model: Optional[str] = None
    mapping: Dict[str, str] = field(
        default_factory=lambda: {"ui": "client/components", "api": "server/routes"}
    )
    spec_types: Dict[str, SpecTypeConfig] = field(default_factory=dict)
    groups: Dict[str, GroupConfig] = field(default_factory=dict)
    api_sources: List[RouteSource] = field(default_factory=list)
    route_sources: List[RouteSource] = field(default_factory=list)
    options: VerifyOptions = field(default_factory=VerifyOptions)

    def resolve(self, path: str) -> str:
        """Resolve a configured path against the config root."""
        if os.path.isabs(path):
            return path
        return os.path.join(str(self.root), path)

    @property
    def specs_path(self) -> str:
        return self.resolve(self.specs_dir)

    @property
    def code_path(self) -> str:
        return self.resolve(self.code_dir)

    def code_paths_for(self, spec_type: str) -> List[str]:
        """Return every code base directory searched for a spec type."""
        spec_type_config = self.spec_types.get(spec_type)
        if spec_type_config and spec_type_config.code_paths:
            return [os.path.join(self.code_path, path) for path in spec_type_config.code_paths]
        mapped = self.mapping.get(spec_type)
        if mapped:
            return [os.path.join(self.code_path, mapped)]
        return [self.code_path]

    def verification_focus_for(self, spec_type: str) -> List[str]:
        spec_type_config = self.spec_types.get(spec_type)
        return list(spec_type_config.verification_focus) if spec_type_config else []

    def types_in_group(self, group: str) -> List[str]:
        config = self.groups.get(group)
        return list(config.types) if config else []

    def has_spec_type(self, spec_type: str) -> bool:
        return spec_type in self.spec_types or spec_type in self.mapping

    def all_route_sources(self) -> List[RouteSource]:
        """Merge route_sources and legacy api_sources, inferring missing categories."""
        merged: List[RouteSource] = []
        for source in [*self.route_sources, *self.api_sources]:
            category = source.category or infer_category(source.patterns)
            merged.append(
                RouteSource(
                    type=source.type,
                    patterns=list(source.patterns),
                    category=category,
                    options=dict(source.options),
                )
            )
        return merged


def find_config_file(directory: Path | None = None) -> Path:
    """Return the first existing config candidate, or the default name."""
    base = directory or Path.cwd()
    for candidate in CONFIG_CANDIDATES:
        path = base / candidate
        if path.exists():
            return path
    return base / CONFIG_CANDIDATES[0]


def load_config(
    config_path: Path | None = None,
    *,
    api_key: str | None = None,
    provider: str | None = None,
    load_env: bool = True,
) -> SpecVerifyConfig:
    """Load configuration from disk, applying .env files and overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if load_env:
        for name in ENV_FILES:
            env_path = root / name
            if env_path.exists():
                load_dotenv(env_path, override=False)

    config = SpecVerifyConfig(root=root)
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{config_file.name} must contain a mapping at the root")
        _apply_mapping(config, data)

    if provider:
        config.ai_provider = provider
    if api_key:
        config.ai_api_key = api_key
    else:
        env_key = api_key_from_env(config.ai_provider)
        if env_key:
            config.ai_api_key = env_key
    return config


def save_config(config: SpecVerifyConfig, path: Path) -> None:
    """Write configuration to disk. The API key is never persisted."""
    payload: Dict[str, Any] = {
        "specs_dir": config.specs_dir,
        "code_dir": config.code_dir,
        "ai_provider": config.ai_provider,
        "mapping": dict(config.mapping),
        "options": {
            "concurrency": config.options.concurrency,
            "pass_threshold": config.options.pass_threshold,
            "fail_under": config.options.fail_under,
            "verbose": config.options.verbose,
            "max_batch_bytes": config.options.max_batch_bytes,
        },
    }
    if config.ai_model:
        payload["ai_model"] = config.ai_model
    if config.spec_types:
        payload["spec_types"] = {
            name: _drop_empty(
                {
                    "code_paths": value.code_paths,
                    "verification_focus": value.verification_focus,
                    "file_patterns": value.file_patterns,
                    "exclude_patterns": value.exclude_patterns,
                }
            )
            for name, value in config.spec_types.items()
        }
    if config.groups:
        payload["groups"] = {
            name: _drop_empty({"types": value.types, "description": value.description})
            for name, value in config.groups.items()
        }
    if config.route_sources:
        payload["route_sources"] = [_source_to_dict(source) for source in config.route_sources]
    if config.api_sources:
        payload["api_sources"] = [_source_to_dict(source) for source in config.api_sources]

    path.write_text(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True), encoding="utf-8")


def api_key_from_env(provider: str) -> Optional[str]:
    """Look up an API key: the generic variable first, then the provider's own."""
    generic = os.getenv(GENERIC_API_KEY_ENV)
    if generic:
        return generic
    env_name = PROVIDER_API_KEY_ENV.get(provider.lower())
    if env_name:
        return os.getenv(env_name) or None
    return None


def infer_category(patterns: Sequence[str]) -> str:
    """Guess `ui` or `api` from glob patterns; defaults to `api`."""
    for pattern in patterns:
        lowered = pattern.lower()
        if any(hint in lowered for hint in _UI_HINTS) and not any(
            hint in lowered for hint in ("api", "server")
        ):
            return "ui"
        if any(hint in lowered for hint in _API_HINTS):
            return "api"
    return "api"


def _resolve_config_path(config_path: Path | None) -> Path:
    if config_path is None:
        return find_config_file().resolve()
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return find_config_file(config_path).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _apply_mapping(config: SpecVerifyConfig, data: Dict[str, Any]) -> None:
    config.specs_dir = _as_str(data.get("specs_dir")) or config.specs_dir
    config.code_dir = _as_str(data.get("code_dir")) or config.code_dir
    config.ai_provider = _as_str(data.get("ai_provider")) or config.ai_provider
    config.ai_api_key = _as_str(data.get("ai_api_key")) or config.ai_api_key
    config.ai_model = _as_str(data.get("ai_model")) or config.ai_model

    if "mapping" in data:
        config.mapping = {
            str(key): str(value) for key, value in _as_dict(data.get("mapping")).items()
        }

    for name, raw in _as_dict(data.get("spec_types")).items():
        entry = _as_dict(raw)
        config.spec_types[str(name)] = SpecTypeConfig(
            code_paths=_as_str_list(entry.get("code_paths")),
            verification_focus=_as_str_list(entry.get("verification_focus")),
            file_patterns=_as_str_list(entry.get("file_patterns")),
            exclude_patterns=_as_str_list(entry.get("exclude_patterns")),
        )

    for name, raw in _as_dict(data.get("groups")).items():
        entry = _as_dict(raw)
        config.groups[str(name)] = GroupConfig(
            types=_as_str_list(entry.get("types")),
            description=_as_str(entry.get("description")) or "",
        )

    config.route_sources = _parse_sources(data.get("route_sources"), "route_sources")
    config.api_sources = _parse_sources(data.get("api_sources"), "api_sources")

    options = _as_dict(data.get("options"))
    if options:
        defaults = VerifyOptions()
        config.options = VerifyOptions(
            concurrency=_positive(_as_int(options.get("concurrency")), defaults.concurrency),
            pass_threshold=_default_int(options.get("pass_threshold"), defaults.pass_threshold),
            fail_under=_default_int(options.get("fail_under"), defaults.fail_under),
            verbose=bool(_as_bool(options.get("verbose"))),
            max_batch_bytes=_positive(
                _as_int(options.get("max_batch_bytes")), defaults.max_batch_bytes
            ),
        )


def _parse_sources(value: Any, key: str) -> List[RouteSource]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list")
    sources: List[RouteSource] = []
    for index, raw in enumerate(value):
        entry = _as_dict(raw)
        source_type = _as_str(entry.get("type"))
        if not source_type:
            raise ConfigError(f"{key}[{index}] is missing a type")
        sources.append(
            RouteSource(
                type=source_type,
                patterns=_as_str_list(entry.get("patterns")),
                category=_as_str(entry.get("category")) or "",
                options={
                    str(k): str(v) for k, v in _as_dict(entry.get("options")).items()
                },
            )
        )
    return sources


def _source_to_dict(source: RouteSource) -> Dict[str, Any]:
    return _drop_empty(
        {
            "type": source.type,
            "patterns": source.patterns,
            "category": source.category,
            "options": source.options,
        }
    )


def _drop_empty(mapping: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in mapping.items() if value}


def _positive(value: Optional[int], default: int) -> int:
    return value if value is not None and value > 0 else default


def _default_int(value: Any, default: int) -> int:
    parsed = _as_int(value)
    return parsed if parsed is not None else default


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "ConfigError",
    "GroupConfig",
    "RouteSource",
    "SpecTypeConfig",
    "SpecVerifyConfig",
    "VerifyOptions",
    "api_key_from_env",
    "find_config_file",
    "infer_category",
    "load_config",
    "save_config",
]
