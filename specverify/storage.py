"""File-system access used by the spec finder, route extractors and verifier."""

from __future__ import annotations

import glob as _glob
import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import List, Optional, Protocol

from .logging import get_logger

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
}

logger = get_logger("storage")


class StorageError(RuntimeError):
    """Raised when a directory cannot be listed for reasons other than absence."""


@dataclass(frozen=True)
class ReadOutcome:
    """Result of a best-effort read: either text or the reason it was skipped."""

    path: str
    text: Optional[str] = None
    skipped: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.text is not None


class FileStore(Protocol):
    """Capability for listing, globbing and reading files."""

    def list_files(self, root: str, suffix: str | None = None) -> List[str]:
        """Return files under root (recursively), optionally filtered by suffix."""

    def glob(self, pattern: str) -> List[str]:
        """Expand a glob pattern, including the `**` recursive convention."""

    def read_text(self, path: str) -> ReadOutcome:
        """Read a file without raising for missing or unreadable files."""

    def exists(self, path: str) -> bool:
        """Return True when path names an existing regular file."""


class LocalFileStore:
    """FileStore backed by the local file system."""

    def list_files(self, root: str, suffix: str | None = None) -> List[str]:
        base = Path(root)
        if not base.exists():
            return []
        if not base.is_dir():
            raise StorageError(f"Not a directory: {root}")

        errors: List[OSError] = []
        files: List[str] = []
        for dirpath, dirnames, filenames in os.walk(base, onerror=errors.append):
            dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
            for filename in sorted(filenames):
                if suffix and not filename.endswith(suffix):
                    continue
                files.append(os.path.join(dirpath, filename))
        if errors:
            raise StorageError(f"Failed to walk {root}: {errors[0]}") from errors[0]
        return files

    def glob(self, pattern: str) -> List[str]:
        matches = sorted(
            path for path in _glob.glob(pattern, recursive=True) if os.path.isfile(path)
        )
        if matches or "**" not in pattern:
            return matches
        return self._expand_recursive(pattern)

    def read_text(self, path: str) -> ReadOutcome:
        try:
            text = Path(path).read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return ReadOutcome(path=path, skipped="not found")
        except OSError as exc:
            return ReadOutcome(path=path, skipped=str(exc))
        return ReadOutcome(path=path, text=text)

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def _expand_recursive(self, pattern: str) -> List[str]:
        base, _, rest = pattern.partition("**")
        base_dir = base.rstrip("/") or "."
        suffix = rest.lstrip("/")
        files: List[str] = []
        for dirpath, dirnames, filenames in os.walk(base_dir):
            dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
            for filename in sorted(filenames):
                if suffix and not suffix_matches(filename, suffix):
                    continue
                files.append(os.path.join(dirpath, filename))
        logger.debug("Recursive expansion of %s matched %d files", pattern, len(files))
        return files


def suffix_matches(filename: str, suffix_pattern: str) -> bool:
    """Match a file name against the part of a pattern after `**`.

    Falls back to comparing extensions so that `src/**/routes/*.ts` still
    picks up every `.ts` file below `src/`.
    """
    if fnmatchcase(filename, os.path.basename(suffix_pattern)):
        return True
    return os.path.splitext(filename)[1] == os.path.splitext(suffix_pattern)[1]


__all__ = [
    "FileStore",
    "LocalFileStore",
    "ReadOutcome",
    "StorageError",
    "suffix_matches",
]
