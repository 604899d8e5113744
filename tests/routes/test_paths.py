"""Tests for path normalization and matching."""

from __future__ import annotations

import pytest

from specverify.routes.paths import is_path_parameter, normalize_path, paths_match


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("/users/{id}", "/users/:id"),
        ("/users/<id>", "/users/:id"),
        ("/users/<int:id>", "/users/:id"),
        ("/users/:id", "/users/:id"),
        ("/orgs/{org}/repos/<slug:name>", "/orgs/:org/repos/:name"),
        ("/plain/path", "/plain/path"),
    ],
)
def test_normalize_path_rewrites_parameters(raw: str, expected: str) -> None:
    assert normalize_path(raw) == expected


def test_normalize_path_is_idempotent() -> None:
    once = normalize_path("/a/{b}/<int:c>/<d>")
    assert normalize_path(once) == once


@pytest.mark.parametrize("segment", [":id", "{id}", "<id>", "<int:id>"])
def test_is_path_parameter_accepts_parameter_forms(segment: str) -> None:
    assert is_path_parameter(segment)


@pytest.mark.parametrize("segment", ["", ":", "{", "users", "{id", "id}", "<id"])
def test_is_path_parameter_rejects_literals(segment: str) -> None:
    assert not is_path_parameter(segment)


def test_paths_match_treats_parameters_as_wildcards() -> None:
    assert paths_match("/users/:id", "/users/42")
    assert paths_match("/users/42", "/users/{id}")
    assert paths_match("/users/:id/posts", "/users/<id>/posts")


def test_paths_match_ignores_outer_slashes() -> None:
    assert paths_match("/users/", "users")


def test_paths_match_requires_same_segment_count() -> None:
    assert not paths_match("/users/:id", "/users")
    assert not paths_match("/users/:id", "/users/1/posts")


def test_paths_match_compares_literals_exactly() -> None:
    assert not paths_match("/users/:id", "/accounts/1")
    assert not paths_match("/Users", "/users")


def test_paths_match_empty_only_matches_empty() -> None:
    assert paths_match("", "")
    assert not paths_match("", "/")
    assert not paths_match("/", "")


def test_paths_match_is_symmetric() -> None:
    pairs = [("/a/:b", "/a/c"), ("/a/{b}/d", "/a/x/e"), ("/x", "/y/z")]
    for first, second in pairs:
        assert paths_match(first, second) == paths_match(second, first)
