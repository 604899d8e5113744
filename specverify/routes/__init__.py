"""Route extraction: source dispatch, batching and path matching."""

from __future__ import annotations

import os
from importlib import metadata
from typing import Callable, Dict, Iterable, List, Sequence

from ..config import RouteSource
from ..judge.base import Judge
from ..logging import get_logger
from ..models import Route
from ..storage import FileStore
from .assisted import JudgeAssistedExtractor
from .base import ExtractionError, RouteExtractor, UnknownSourceTypeError
from .batching import DEFAULT_MAX_BATCH_BYTES, FileBlob, batch_files
from .paths import is_path_parameter, normalize_path, paths_match
from .structural import StructuralScanner

_ENTRY_POINT_GROUP = "specverify.extractors"

logger = get_logger("routes")


def _builtin_factories(max_batch_bytes: int) -> Dict[str, Callable[[], RouteExtractor]]:
    factories: Dict[str, Callable[[], RouteExtractor]] = {}
    for source_type in StructuralScanner.types:
        factories[source_type] = StructuralScanner
    for source_type in JudgeAssistedExtractor.types:
        factories[source_type] = lambda: JudgeAssistedExtractor(max_batch_bytes)
    return factories


def resolve_extractors(
    sources: Sequence[RouteSource], *, max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES
) -> List[tuple[RouteSource, RouteExtractor]]:
    """Pick an extractor for every source up front.

    Raises UnknownSourceTypeError before any extraction work starts when a
    source names an unsupported type.
    """
    factories = _builtin_factories(max_batch_bytes)
    for entry in _iter_entry_points():
        factories.setdefault(entry.name.lower(), _plugin_factory(entry))

    resolved: List[tuple[RouteSource, RouteExtractor]] = []
    for source in sources:
        factory = factories.get(source.type.lower())
        if factory is None:
            raise UnknownSourceTypeError(f"unknown route source type: {source.type}")
        resolved.append((source, factory()))
    return resolved


def extract_routes(
    sources: Sequence[RouteSource],
    judge: Judge | None,
    store: FileStore,
    *,
    fail_fast: bool = True,
    max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES,
    root: str | None = None,
) -> List[Route]:
    """Extract routes from every source, in configuration order.

    With fail_fast (the default) the first failing source aborts the call.
    Otherwise failing sources are logged and skipped.
    """
    if root:
        sources = [_anchor_source(source, root) for source in sources]

    routes: List[Route] = []
    for source, extractor in resolve_extractors(sources, max_batch_bytes=max_batch_bytes):
        try:
            found = extractor.extract(source, store, judge)
        except ExtractionError as exc:
            if fail_fast:
                raise ExtractionError(
                    f"failed to extract routes from {source.type}: {exc}"
                ) from exc
            logger.warning("Skipping %s source: %s", source.type, exc)
            continue
        logger.info("Extracted %d routes from %s source", len(found), source.type)
        routes.extend(found)
    return routes


def _anchor_source(source: RouteSource, root: str) -> RouteSource:
    patterns = [
        pattern if os.path.isabs(pattern) else os.path.join(root, pattern)
        for pattern in source.patterns
    ]
    return RouteSource(
        type=source.type,
        patterns=patterns,
        category=source.category,
        options=dict(source.options),
    )


def _plugin_factory(entry: metadata.EntryPoint) -> Callable[[], RouteExtractor]:
    def _factory() -> RouteExtractor:
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - defensive guard
            raise RuntimeError(f"Failed to load extractor entry point '{entry.name}': {exc}") from exc
        instance = loaded() if isinstance(loaded, type) else loaded
        if not isinstance(instance, RouteExtractor):
            raise TypeError(f"Extractor entry point '{entry.name}' is not a RouteExtractor")
        return instance

    return _factory


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "ExtractionError",
    "FileBlob",
    "JudgeAssistedExtractor",
    "RouteExtractor",
    "StructuralScanner",
    "UnknownSourceTypeError",
    "batch_files",
    "extract_routes",
    "is_path_parameter",
    "normalize_path",
    "paths_match",
    "resolve_extractors",
]
