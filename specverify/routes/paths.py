"""Path normalization and parameter-tolerant matching."""

from __future__ import annotations

import re
from typing import List, Tuple

_PARAM_PATTERNS: List[Tuple[re.Pattern[str], str]] = [
    (re.compile(r"\{([^}]+)\}"), r":\1"),
    # <type:name> and <name>; the optional group keeps bare names intact.
    (re.compile(r"<(?:[^:>]*:)?([^>]+)>"), r":\1"),
]


def normalize_path(path: str) -> str:
    """Rewrite `{id}`, `<id>` and `<type:id>` parameters into `:id` form."""
    for pattern, replacement in _PARAM_PATTERNS:
        path = pattern.sub(replacement, path)
    return path


def is_path_parameter(segment: str) -> bool:
    """Return True for `:id`, `{id}` and `<id>` style segments."""
    if len(segment) < 2:
        return False
    return (
        segment[0] == ":"
        or (segment[0] == "{" and segment[-1] == "}")
        or (segment[0] == "<" and segment[-1] == ">")
    )


def paths_match(first: str, second: str) -> bool:
    """Compare two paths segment by segment, treating parameters on either side as wildcards."""
    if not first or not second:
        return first == second
    if first == second:
        return True

    left = first.strip("/").split("/")
    right = second.strip("/").split("/")
    if len(left) != len(right):
        return False

    for a, b in zip(left, right):
        if is_path_parameter(a) or is_path_parameter(b):
            continue
        if a != b:
            return False
    return True


__all__ = ["is_path_parameter", "normalize_path", "paths_match"]
