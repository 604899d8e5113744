"""Judge-assisted route extraction for framework and imperative code."""

from __future__ import annotations

from typing import List

from ..config import RouteSource
from ..judge.base import Judge, JudgeError
from ..logging import get_logger
from ..models import Route
from ..storage import FileStore
from .base import ExtractionError, RouteExtractor
from .batching import DEFAULT_MAX_BATCH_BYTES, FileBlob, batch_files, join_batch

logger = get_logger("routes.assisted")


class JudgeAssistedExtractor(RouteExtractor):
    """Send batches of source files to the judge and collect the routes it reports."""

    types = (
        "express",
        "fastify",
        "go-echo",
        "go-gin",
        "rails",
        "django",
        "graphql",
        "nextjs",
        "react-router",
        "auto",
    )

    def __init__(self, max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES) -> None:
        self.max_batch_bytes = max_batch_bytes

    def extract(self, source: RouteSource, store: FileStore, judge: Judge | None) -> List[Route]:
        if judge is None:
            raise ExtractionError(f"source type '{source.type}' requires a judge")

        blobs = self._collect(source, store)
        if not blobs:
            logger.info("No readable files matched %s patterns", source.type)
            return []

        batches = batch_files(blobs, self.max_batch_bytes)
        logger.debug(
            "Submitting %d files from %s in %d batches", len(blobs), source.type, len(batches)
        )

        routes: List[Route] = []
        for index, batch in enumerate(batches, start=1):
            try:
                candidates = judge.extract_routes(source.type, source.category, join_batch(batch))
            except JudgeError as exc:
                raise ExtractionError(
                    f"judge extraction failed for batch {index}/{len(batches)}: {exc}"
                ) from exc
            for candidate in candidates:
                routes.append(
                    Route(
                        method=candidate.method,
                        path=candidate.path,
                        category=candidate.category or source.category,
                        source=source.type,
                        file=candidate.file,
                        description=candidate.description,
                    )
                )
        return routes

    @staticmethod
    def _collect(source: RouteSource, store: FileStore) -> List[FileBlob]:
        blobs: List[FileBlob] = []
        for pattern in source.patterns:
            for path in store.glob(pattern):
                outcome = store.read_text(path)
                if outcome.text is None:
                    logger.debug("Skipping %s: %s", path, outcome.skipped)
                    continue
                blobs.append(FileBlob.wrap(path, outcome.text))
        return blobs


__all__ = ["JudgeAssistedExtractor"]
