"""Parse markdown spec documents into Spec objects."""

from __future__ import annotations

import os
import re
from typing import Dict, List, Optional

from .logging import get_logger
from .models import Spec
from .storage import FileStore

_TABLE_ROW = re.compile(r"^\|\s*([^|]+)\s*\|\s*([^|]+)\s*\|$")
_TILDE_REFERENCE = re.compile(r"`~/([^`]+)`")
_SRC_REFERENCE = re.compile(r"`(src/[^`]+)`")

_ROUTE_KEYS = {"パス", "Path", "path", "エンドポイント", "Endpoint", "endpoint"}

_UI_DIRS = {"ui", "pages", "components"}
_API_DIRS = {"api", "routes", "endpoints"}

logger = get_logger("parsing")


class SpecReadError(RuntimeError):
    """Raised when a spec file cannot be read."""


def parse_spec(text: str, file_path: str) -> Spec:
    """Parse spec markdown into a Spec. Parsing is total: malformed rows are ignored."""
    lines = text.split("\n")
    metadata, route_path = _parse_metadata_table(lines)
    return Spec(
        file_path=file_path,
        type=infer_spec_type(file_path),
        title=_parse_title(lines, file_path),
        route_path=route_path,
        related_files=_parse_related_files(text),
        content=text,
        metadata=metadata,
        sections=_parse_sections(lines),
    )


def load_spec(path: str, store: FileStore) -> Spec:
    """Read and parse the spec at path."""
    outcome = store.read_text(path)
    if outcome.text is None:
        raise SpecReadError(f"failed to read spec file {path}: {outcome.skipped}")
    return parse_spec(outcome.text, path)


def infer_spec_type(file_path: str) -> str:
    """Infer `ui`/`api` from the spec's parent directory name."""
    parent = os.path.basename(os.path.dirname(file_path))
    if parent in _UI_DIRS:
        return "ui"
    if parent in _API_DIRS:
        return "api"
    return "unknown"


def find_spec_files(
    store: FileStore, specs_dir: str, spec_type: Optional[str] = None
) -> List[str]:
    """Return all markdown specs under specs_dir, optionally limited to one subdirectory."""
    search_dir = os.path.join(specs_dir, spec_type) if spec_type else specs_dir
    files = store.list_files(search_dir, suffix=".md")
    logger.debug("Found %d spec files under %s", len(files), search_dir)
    return files


def _parse_title(lines: List[str], file_path: str) -> str:
    for line in lines:
        if line.startswith("# "):
            return line[2:].strip()
    return os.path.basename(file_path)


def _parse_metadata_table(lines: List[str]) -> tuple[Dict[str, str], str]:
    metadata: Dict[str, str] = {}
    route_path = ""
    in_table = False
    for raw in lines:
        line = raw.strip()
        if line.startswith("|") and line.endswith("|"):
            in_table = True
        elif in_table and not line:
            in_table = False

        if not in_table or "---" in line:
            continue

        match = _TABLE_ROW.match(line)
        if not match:
            continue
        key = match.group(1).strip()
        value = match.group(2).strip().strip("`")
        metadata[key] = value
        if key in _ROUTE_KEYS:
            route_path = value
    return metadata, route_path


def _parse_related_files(content: str) -> List[str]:
    related = [match.group(1) for match in _TILDE_REFERENCE.finditer(content)]
    related.extend(match.group(1) for match in _SRC_REFERENCE.finditer(content))
    return related


def _parse_sections(lines: List[str]) -> Dict[str, str]:
    sections: Dict[str, str] = {}
    current: Optional[str] = None
    body: List[str] = []
    for line in lines:
        if line.startswith("## "):
            if current is not None:
                sections[current] = "\n".join(body).strip()
            current = line[3:] or None
            body = []
        elif current is not None:
            body.append(line)
    if current is not None:
        sections[current] = "\n".join(body).strip()
    return sections


__all__ = [
    "SpecReadError",
    "find_spec_files",
    "infer_spec_type",
    "load_spec",
    "parse_spec",
]
