"""Concurrent verification of specs against the code that implements them."""

from __future__ import annotations

import os
import queue
import threading
from fnmatch import fnmatchcase
from typing import Dict, List, Sequence

from .config import SpecVerifyConfig
from .judge.base import Judge
from .logging import get_logger
from .models import FailingSpec, Result, Spec, Summary, VerificationResult
from .parsing import SpecReadError, find_spec_files, load_spec
from .storage import FileStore, LocalFileStore, StorageError

HIGH_MATCH_THRESHOLD = 80
LOW_MATCH_THRESHOLD = 50

_GUESS_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")
_GUESS_SUBFOLDERS = ("pages", "routes")
_RELATED_VARIANTS = ("", ".tsx", ".ts")
_TEST_MARKERS = (".test.", ".spec.")

NO_CODE_ITEM = "No corresponding code found"
NO_CODE_NOTE = "The page or endpoint may not be implemented yet"

_GATE_POLL_SECONDS = 0.05


class VerificationCancelled(RuntimeError):
    """Raised when a verification run is cancelled before all specs finish."""


class Verifier:
    """Verifies every spec with the judge, a bounded number at a time."""

    def __init__(
        self,
        config: SpecVerifyConfig,
        judge: Judge,
        store: FileStore | None = None,
    ) -> None:
        self.config = config
        self.judge = judge
        self.store = store or LocalFileStore()
        self.logger = get_logger("verifier")

    def verify_all(
        self,
        spec_type: str | None = None,
        *,
        concurrency: int | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Summary:
        """Verify all specs (optionally one category) and summarise the results.

        Results are collected in completion order. Setting cancel_event stops
        queued specs from starting and makes the call raise
        VerificationCancelled instead of returning a partial summary.
        """
        spec_files = self.find_spec_files(spec_type)
        if not spec_files:
            self.logger.info("No spec files found under %s", self.config.specs_path)
            return Summary()

        limit = concurrency or self.config.options.concurrency
        if limit < 1:
            raise ValueError("concurrency must be at least 1")
        cancel = cancel_event or threading.Event()
        gate = threading.BoundedSemaphore(limit)
        collected: "queue.Queue[Result]" = queue.Queue()

        def _worker(spec_file: str) -> None:
            while not gate.acquire(timeout=_GATE_POLL_SECONDS):
                if cancel.is_set():
                    return
            try:
                if cancel.is_set():
                    return
                collected.put(self._verify_guarded(spec_file))
            finally:
                gate.release()

        self.logger.info("Verifying %d specs with concurrency %d", len(spec_files), limit)
        threads = [
            threading.Thread(target=_worker, args=(spec_file,), name="specverify-worker", daemon=True)
            for spec_file in spec_files
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        if cancel.is_set():
            raise VerificationCancelled("verification run was cancelled")

        results: List[Result] = []
        while not collected.empty():
            results.append(collected.get_nowait())
        return summarize(results, self.config.options.fail_under)

    def verify_one(self, spec_file: str) -> Result:
        """Verify a single spec, raising the captured error if it failed."""
        result = self._verify(spec_file)
        if result.error is not None:
            raise result.error
        return result

    def _verify_guarded(self, spec_file: str) -> Result:
        try:
            return self._verify(spec_file)
        except Exception as exc:
            self.logger.debug("Verification of %s failed", spec_file, exc_info=True)
            return Result(
                spec_file=os.path.basename(spec_file),
                error=RuntimeError(f"verification failed: {exc}"),
            )

    def _verify(self, spec_file: str) -> Result:
        result = Result(spec_file=os.path.basename(spec_file))

        try:
            spec = load_spec(spec_file, self.store)
        except SpecReadError as exc:
            result.error = RuntimeError(f"failed to parse spec: {exc}")
            return result
        result.title = spec.title
        result.route_path = spec.route_path

        try:
            code_files = self.find_code_files(spec)
        except StorageError as exc:
            result.error = RuntimeError(f"failed to find code files: {exc}")
            return result
        result.code_files = code_files

        if not code_files:
            self.logger.debug("No code found for %s", result.spec_file)
            result.verification = VerificationResult(
                match_percentage=0,
                matched_items=[],
                unmatched_items=[NO_CODE_ITEM],
                notes=NO_CODE_NOTE,
            )
            return result

        contents = self.read_files(code_files)
        focus = self.config.verification_focus_for(spec.type) or None
        try:
            verdict = self.judge.verify(spec.content, contents, focus)
        except Exception as exc:
            result.error = RuntimeError(f"failed to verify with AI: {exc}")
            return result
        if not isinstance(verdict, VerificationResult):
            result.error = RuntimeError(f"failed to verify with AI: unexpected response {verdict!r}")
            return result
        result.verification = verdict

        self.logger.info(
            "%s: %d%% match", result.spec_file, result.verification.match_percentage
        )
        return result

    def find_spec_files(self, spec_type: str | None = None) -> List[str]:
        """List spec files for one type, every type in a group, or everything.

        A name that is both a spec type and a group is treated as a type.
        """
        specs_path = self.config.specs_path
        if spec_type and not self.config.has_spec_type(spec_type):
            group_types = self.config.types_in_group(spec_type)
            if group_types:
                files: List[str] = []
                for member in group_types:
                    files.extend(find_spec_files(self.store, specs_path, member))
                return files
        return find_spec_files(self.store, specs_path, spec_type)

    def find_code_files(self, spec: Spec) -> List[str]:
        """Locate code files for a spec by route name and by related-file references."""
        files: List[str] = []
        seen: set[str] = set()
        type_config = self.config.spec_types.get(spec.type)
        include = type_config.file_patterns if type_config else []
        exclude = type_config.exclude_patterns if type_config else []

        def _add(path: str) -> None:
            if path not in seen and self.store.exists(path):
                files.append(path)
                seen.add(path)

        if spec.route_path:
            route_name = route_name_for(spec.route_path)
            needle = route_name.lower()
            for base_dir in self.config.code_paths_for(spec.type):
                for candidate in guess_code_paths(base_dir, route_name):
                    if not _matches_any(candidate, exclude):
                        _add(candidate)
                for path in self.store.list_files(base_dir):
                    name = os.path.basename(path).lower()
                    if needle not in name or any(marker in name for marker in _TEST_MARKERS):
                        continue
                    if include and not _matches_any(path, include):
                        continue
                    if not _matches_any(path, exclude):
                        _add(path)

        for related in spec.related_files:
            resolved = self.config.resolve(resolve_related_path(self.config.code_dir, related))
            for variant in _RELATED_VARIANTS:
                _add(resolved + variant)

        return files

    def read_files(self, paths: Sequence[str]) -> Dict[str, str]:
        """Read code files, skipping any that cannot be read."""
        contents: Dict[str, str] = {}
        for path in paths:
            outcome = self.store.read_text(path)
            if not outcome.ok:
                self.logger.debug("Skipping unreadable code file %s: %s", path, outcome.skipped)
                continue
            contents[path] = outcome.text
        return contents


def route_name_for(route_path: str) -> str:
    """Return the last segment of a route path, or `index` for the root."""
    name = os.path.basename(route_path.rstrip("/"))
    return name or "index"


def _matches_any(path: str, patterns: Sequence[str]) -> bool:
    """Match patterns against the file name or the trailing part of the path."""
    name = os.path.basename(path)
    normalized = path.replace(os.sep, "/")
    return any(
        fnmatchcase(name, pattern) or fnmatchcase(normalized, f"*{pattern.lstrip('*')}")
        for pattern in patterns
    )


def guess_code_paths(base_dir: str, route_name: str) -> List[str]:
    """Conventional file locations for a route name below base_dir."""
    guesses = [os.path.join(base_dir, route_name + ext) for ext in _GUESS_EXTENSIONS]
    guesses.extend(
        os.path.join(base_dir, folder, route_name + ".tsx") for folder in _GUESS_SUBFOLDERS
    )
    return guesses


def resolve_related_path(code_dir: str, related: str) -> str:
    """Join a related-file reference to the code root without doubling its prefix.

    `resolve_related_path("src", "src/client/Page.tsx")` stays
    `src/client/Page.tsx`; `resolve_related_path("src", "client/Page.tsx")`
    becomes `src/client/Page.tsx`.
    """
    if os.path.isabs(related):
        return related
    clean_code_dir = os.path.normpath(code_dir) if code_dir else ""
    clean_related = os.path.normpath(related) if related else ""
    if clean_code_dir and clean_related and (
        clean_related == clean_code_dir or clean_related.startswith(clean_code_dir + os.sep)
    ):
        return clean_related
    return os.path.normpath(os.path.join(code_dir, related))


def summarize(results: Sequence[Result], fail_under: int = 0) -> Summary:
    """Aggregate results into a Summary; errored specs are excluded from the average."""
    summary = Summary(total_specs=len(results), results=list(results))

    total_match = 0
    for result in results:
        if not result.succeeded:
            continue
        percentage = result.verification.match_percentage  # type: ignore[union-attr]
        summary.verified_specs += 1
        total_match += percentage
        if percentage >= HIGH_MATCH_THRESHOLD:
            summary.high_match_count += 1
        elif percentage < LOW_MATCH_THRESHOLD:
            summary.low_match_count += 1

    if summary.verified_specs:
        summary.average_match = total_match / summary.verified_specs

    if fail_under > 0:
        apply_fail_under(summary, fail_under)
    return summary


def apply_fail_under(summary: Summary, fail_under: int) -> Summary:
    """Record every verified spec scoring below fail_under on the summary."""
    summary.fail_under = fail_under
    summary.failing_specs = build_failing_specs(summary.results, fail_under)
    return summary


def build_failing_specs(results: Sequence[Result], fail_under: int) -> List[FailingSpec]:
    failing: List[FailingSpec] = []
    for result in results:
        if not result.succeeded:
            continue
        percentage = result.verification.match_percentage  # type: ignore[union-attr]
        if percentage < fail_under:
            failing.append(
                FailingSpec(
                    spec_file=result.spec_file,
                    title=result.title,
                    match_percentage=percentage,
                )
            )
    return failing


def sort_results(results: Sequence[Result]) -> List[Result]:
    """Return results in stable spec-file order for presentation."""
    return sorted(results, key=lambda result: result.spec_file)


__all__ = [
    "HIGH_MATCH_THRESHOLD",
    "LOW_MATCH_THRESHOLD",
    "VerificationCancelled",
    "Verifier",
    "apply_fail_under",
    "build_failing_specs",
    "guess_code_paths",
    "resolve_related_path",
    "route_name_for",
    "sort_results",
    "summarize",
]
