"""Tests for spec document parsing."""

from __future__ import annotations

import pytest

from specverify.parsing import SpecReadError, find_spec_files, infer_spec_type, load_spec, parse_spec
from specverify.storage import LocalFileStore


SAMPLE_SPEC = """# Login Page

| Key | Value |
|-----|-------|
| Path | `/login` |
| Owner | auth-team |

## Overview
Users sign in with email and password.

## Related files
- `~/client/components/LoginForm.tsx`
- `src/server/routes/auth.ts`
"""


def test_parse_spec_extracts_title_route_and_metadata() -> None:
    spec = parse_spec(SAMPLE_SPEC, "specs/ui/login.md")

    assert spec.title == "Login Page"
    assert spec.type == "ui"
    assert spec.route_path == "/login"
    assert spec.metadata["Owner"] == "auth-team"
    assert spec.content == SAMPLE_SPEC


def test_parse_spec_collects_related_files_tilde_first() -> None:
    spec = parse_spec(SAMPLE_SPEC, "specs/ui/login.md")

    assert spec.related_files == ["client/components/LoginForm.tsx", "src/server/routes/auth.ts"]


def test_parse_spec_splits_level_two_sections() -> None:
    spec = parse_spec(SAMPLE_SPEC, "specs/ui/login.md")

    assert spec.sections["Overview"] == "Users sign in with email and password."
    assert "Related files" in spec.sections


def test_parse_spec_duplicate_metadata_key_keeps_last_value() -> None:
    text = "# Orders\n\n| Key | Value |\n|---|---|\n| Path | /orders |\n| Owner | a |\n| Path | /orders/v2 |\n| Owner | b |\n"

    spec = parse_spec(text, "specs/api/orders.md")

    assert spec.route_path == "/orders/v2"
    assert spec.metadata["Owner"] == "b"


def test_parse_spec_duplicate_heading_keeps_later_section() -> None:
    text = "# Notes\n\n## Behaviour\nfirst\n\n## Behaviour\nsecond\n"

    spec = parse_spec(text, "specs/ui/notes.md")

    assert spec.sections == {"Behaviour": "second"}


def test_parse_spec_bare_heading_closes_section_without_opening_one() -> None:
    text = "# Notes\n\n## Overview\nkept\n## \ndropped\n## Details\nmore\n"

    spec = parse_spec(text, "specs/ui/notes.md")

    assert spec.sections == {"Overview": "kept", "Details": "more"}


def test_parse_spec_falls_back_to_file_name_for_title() -> None:
    spec = parse_spec("no heading here\n", "specs/api/users.md")

    assert spec.title == "users.md"
    assert spec.route_path == ""
    assert spec.type == "api"


def test_parse_spec_accepts_japanese_and_endpoint_keys() -> None:
    japanese = parse_spec("# 一覧\n\n| 項目 | 値 |\n|---|---|\n| パス | /items |\n", "specs/ui/items.md")
    endpoint = parse_spec("# Users\n\n| Endpoint | `/api/users/{id}` |\n", "specs/api/users.md")

    assert japanese.route_path == "/items"
    assert endpoint.route_path == "/api/users/{id}"


def test_parse_spec_ignores_malformed_rows() -> None:
    spec = parse_spec("# Broken\n\n| only one cell |\n| Path |\n", "specs/misc/broken.md")

    assert spec.route_path == ""
    assert spec.type == "unknown"


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("specs/ui/a.md", "ui"),
        ("specs/pages/a.md", "ui"),
        ("specs/components/a.md", "ui"),
        ("specs/api/a.md", "api"),
        ("specs/routes/a.md", "api"),
        ("specs/endpoints/a.md", "api"),
        ("specs/a.md", "unknown"),
    ],
)
def test_infer_spec_type_uses_parent_directory(path: str, expected: str) -> None:
    assert infer_spec_type(path) == expected


def test_find_spec_files_lists_markdown_only(repo_builder) -> None:
    repo_builder.write(
        {
            "specs/ui/login.md": "# Login\n",
            "specs/api/users.md": "# Users\n",
            "specs/api/notes.txt": "ignored",
        }
    )
    store = LocalFileStore()
    specs_dir = str(repo_builder.path() / "specs")

    all_specs = find_spec_files(store, specs_dir)
    api_specs = find_spec_files(store, specs_dir, "api")

    assert [p.rsplit("/", 1)[-1] for p in all_specs] == ["users.md", "login.md"]
    assert [p.rsplit("/", 1)[-1] for p in api_specs] == ["users.md"]


def test_find_spec_files_missing_directory_is_empty(tmp_path) -> None:
    assert find_spec_files(LocalFileStore(), str(tmp_path / "nope")) == []


def test_load_spec_raises_for_missing_file(tmp_path) -> None:
    with pytest.raises(SpecReadError):
        load_spec(str(tmp_path / "missing.md"), LocalFileStore())
