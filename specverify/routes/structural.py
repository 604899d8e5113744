"""Structural scanning of declarative API descriptions (OpenAPI / Swagger)."""

from __future__ import annotations

import json
from typing import Any, List, Tuple

import yaml

from ..config import RouteSource
from ..judge.base import Judge
from ..logging import get_logger
from ..models import Route
from ..storage import FileStore
from .base import ExtractionError, RouteExtractor

HTTP_METHODS: Tuple[str, ...] = ("get", "post", "put", "delete", "patch")

logger = get_logger("routes.structural")


class StructuralScanner(RouteExtractor):
    """Read routes from the `paths` mapping of OpenAPI documents.

    JSON documents are read with `json.loads`, everything else with
    `yaml.safe_load`.
    """

    types = ("openapi",)

    def extract(self, source: RouteSource, store: FileStore, judge: Judge | None) -> List[Route]:
        routes: List[Route] = []
        for pattern in source.patterns:
            for path in store.glob(pattern):
                outcome = store.read_text(path)
                if outcome.text is None:
                    raise ExtractionError(f"failed to parse {path}: {outcome.skipped}")
                try:
                    found = scan_document(outcome.text)
                except (ValueError, yaml.YAMLError) as exc:
                    raise ExtractionError(f"failed to parse {path}: {exc}") from exc
                logger.debug("Found %d routes in %s", len(found), path)
                routes.extend(
                    Route(
                        method=method,
                        path=route_path,
                        category=source.category or "api",
                        source=source.type,
                        file=path,
                    )
                    for method, route_path in found
                )
        return routes


def scan_document(text: str) -> List[Tuple[str, str]]:
    """Return `(METHOD, path)` pairs declared under `paths` in an OpenAPI document.

    When no path declares a known method, every path is reported as GET.
    Raises ValueError or yaml.YAMLError for documents that cannot be parsed.
    """
    data = _load_document(text)
    if not isinstance(data, dict):
        return []
    paths = data.get("paths")
    if not isinstance(paths, dict):
        return []

    route_paths = [key for key in paths if isinstance(key, str) and key.startswith("/")]
    found: List[Tuple[str, str]] = []
    for route_path in route_paths:
        found.extend(
            (method.upper(), route_path) for method in _declared_methods(paths[route_path])
        )

    if not found:
        return [("GET", route_path) for route_path in route_paths]
    return found


def _load_document(text: str) -> Any:
    if text.lstrip().startswith("{"):
        return json.loads(text)
    return yaml.safe_load(text)


def _declared_methods(mapping: Any) -> List[str]:
    if not isinstance(mapping, dict):
        return []
    keys = {str(key).lower() for key in mapping}
    return [method for method in HTTP_METHODS if method in keys]


__all__ = ["HTTP_METHODS", "StructuralScanner", "scan_document"]
