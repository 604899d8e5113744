"""Tests for judge-assisted extraction and source dispatch."""

from __future__ import annotations

import pytest

from specverify.config import RouteSource
from specverify.models import RouteCandidate
from specverify.routes import extract_routes, resolve_extractors
from specverify.routes.assisted import JudgeAssistedExtractor
from specverify.routes.base import ExtractionError, UnknownSourceTypeError
from specverify.storage import LocalFileStore
from tests._fixtures.judges import FailingJudge, StubJudge


def _write_routes(repo_builder, count: int, size: int = 200) -> None:
    repo_builder.write(
        {f"src/routes/r{i}.ts": f"router.get('/r{i}')\n" + "x" * size for i in range(count)}
    )


def test_extractor_batches_files_and_tags_routes(repo_builder) -> None:
    _write_routes(repo_builder, 3)
    judge = StubJudge(
        routes=[
            [RouteCandidate(method="GET", path="/r0", file="r0.ts")],
            [RouteCandidate(method="GET", path="/r1", category="ui"), RouteCandidate("GET", "/r2")],
        ]
    )
    extractor = JudgeAssistedExtractor(max_batch_bytes=400)
    source = RouteSource(
        type="express",
        patterns=[str(repo_builder.path() / "src/routes/*.ts")],
        category="api",
    )

    routes = extractor.extract(source, LocalFileStore(), judge)

    assert len(judge.extract_calls) == 3
    assert judge.extract_calls[0]["source_type"] == "express"
    assert "=== File: " in judge.extract_calls[0]["code_text"]
    assert [(r.path, r.category, r.source) for r in routes] == [
        ("/r0", "api", "express"),
        ("/r1", "ui", "express"),
        ("/r2", "api", "express"),
    ]


def test_extractor_requires_a_judge(repo_builder) -> None:
    _write_routes(repo_builder, 1)
    source = RouteSource(type="express", patterns=[str(repo_builder.path() / "src/**/*.ts")])

    with pytest.raises(ExtractionError):
        JudgeAssistedExtractor().extract(source, LocalFileStore(), None)


def test_extractor_wraps_judge_failures(repo_builder) -> None:
    _write_routes(repo_builder, 1)
    source = RouteSource(type="express", patterns=[str(repo_builder.path() / "src/**/*.ts")])

    with pytest.raises(ExtractionError, match="batch 1/1"):
        JudgeAssistedExtractor().extract(source, LocalFileStore(), FailingJudge())


def test_extractor_without_matches_skips_judge(repo_builder) -> None:
    judge = StubJudge()
    source = RouteSource(type="express", patterns=[str(repo_builder.path() / "src/**/*.ts")])

    assert JudgeAssistedExtractor().extract(source, LocalFileStore(), judge) == []
    assert judge.extract_calls == []


def test_unknown_source_type_fails_before_any_extraction(repo_builder) -> None:
    _write_routes(repo_builder, 1)
    judge = StubJudge()
    sources = [
        RouteSource(type="express", patterns=["src/**/*.ts"], category="api"),
        RouteSource(type="cobol", patterns=["*.cbl"]),
    ]

    with pytest.raises(UnknownSourceTypeError):
        extract_routes(sources, judge, LocalFileStore(), root=str(repo_builder.path()))
    assert judge.extract_calls == []


def test_resolve_extractors_picks_structural_for_openapi() -> None:
    resolved = resolve_extractors([RouteSource(type="OpenAPI"), RouteSource(type="auto")])

    assert type(resolved[0][1]).__name__ == "StructuralScanner"
    assert isinstance(resolved[1][1], JudgeAssistedExtractor)


def test_extract_routes_anchors_patterns_at_root(repo_builder) -> None:
    _write_routes(repo_builder, 1)
    judge = StubJudge(routes=[[RouteCandidate("GET", "/r0")]])
    sources = [RouteSource(type="express", patterns=["src/routes/*.ts"], category="api")]

    routes = extract_routes(sources, judge, LocalFileStore(), root=str(repo_builder.path()))

    assert [route.path for route in routes] == ["/r0"]


def test_extract_routes_can_skip_failing_sources(repo_builder) -> None:
    _write_routes(repo_builder, 1)
    repo_builder.write({"docs/openapi.yaml": "paths:\n  /health:\n    get: {}\n"})
    sources = [
        RouteSource(type="express", patterns=["src/routes/*.ts"], category="api"),
        RouteSource(type="openapi", patterns=["docs/openapi.yaml"], category="api"),
    ]

    routes = extract_routes(
        sources, FailingJudge(), LocalFileStore(), fail_fast=False, root=str(repo_builder.path())
    )

    assert [(route.method, route.path) for route in routes] == [("GET", "/health")]


def test_extract_routes_fail_fast_names_the_source(repo_builder) -> None:
    _write_routes(repo_builder, 1)
    sources = [RouteSource(type="express", patterns=["src/routes/*.ts"], category="api")]

    with pytest.raises(ExtractionError, match="express"):
        extract_routes(sources, FailingJudge(), LocalFileStore(), root=str(repo_builder.path()))
