"""Reconcile discovered routes against spec documents."""

from __future__ import annotations

import os
from typing import Dict, List, Sequence, Set

from .config import RouteSource
from .judge.base import Judge
from .logging import get_logger
from .models import CategoryCoverage, CoverageItem, CoverageReport, OrphanedSpec, Route, Spec
from .parsing import SpecReadError, find_spec_files, load_spec
from .routes import extract_routes
from .routes.batching import DEFAULT_MAX_BATCH_BYTES
from .routes.paths import normalize_path, paths_match
from .storage import FileStore, LocalFileStore


class CoverageReconciler:
    """Pairs routes with specs and reports covered, uncovered and orphaned entries."""

    def __init__(
        self,
        store: FileStore | None = None,
        judge: Judge | None = None,
        *,
        max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES,
    ) -> None:
        self.store = store or LocalFileStore()
        self.judge = judge
        self.max_batch_bytes = max_batch_bytes
        self.logger = get_logger("coverage")

    def reconcile(
        self, sources: Sequence[RouteSource], specs_dir: str, *, root: str | None = None
    ) -> CoverageReport:
        """Extract routes from sources and match them against specs under specs_dir."""
        routes = extract_routes(
            sources,
            self.judge,
            self.store,
            max_batch_bytes=self.max_batch_bytes,
            root=root,
        )
        specs = self.load_specs(specs_dir)
        return build_report(routes, specs)

    def load_specs(self, specs_dir: str) -> List[Spec]:
        specs: List[Spec] = []
        for path in find_spec_files(self.store, specs_dir):
            try:
                specs.append(load_spec(path, self.store))
            except SpecReadError as exc:
                self.logger.warning("Skipping spec: %s", exc)
        return specs


def reconcile(
    sources: Sequence[RouteSource],
    specs_dir: str,
    judge: Judge | None,
    store: FileStore | None = None,
    *,
    max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES,
    root: str | None = None,
) -> CoverageReport:
    """Module-level convenience wrapper around CoverageReconciler."""
    reconciler = CoverageReconciler(store, judge, max_batch_bytes=max_batch_bytes)
    return reconciler.reconcile(sources, specs_dir, root=root)


def build_report(routes: Sequence[Route], specs: Sequence[Spec]) -> CoverageReport:
    """Match routes to specs by normalized path and compute coverage counters."""
    report = CoverageReport(total_endpoints=len(routes), total_specs=len(specs))

    index: Dict[str, Spec] = {}
    for spec in specs:
        if spec.route_path:
            index[normalize_path(spec.route_path)] = spec

    matched: Set[str] = set()
    for route in routes:
        spec = _find_spec(normalize_path(route.path), index)
        category = report.categories.setdefault(route.category, CategoryCoverage())
        category.total += 1
        item = CoverageItem(
            method=route.method,
            path=route.path,
            source=route.source,
            category=route.category,
            file=route.file,
        )
        if spec is not None:
            item.spec_file = os.path.basename(spec.file_path)
            matched.add(spec.file_path)
            report.covered.append(item)
            report.covered_endpoints += 1
            category.covered += 1
        else:
            report.uncovered.append(item)
            report.uncovered_endpoints += 1
            category.uncovered += 1

    for spec in specs:
        if spec.file_path in matched:
            continue
        report.orphaned.append(
            OrphanedSpec(
                file=os.path.basename(spec.file_path),
                title=spec.title,
                route_path=spec.route_path or None,
            )
        )
    report.orphaned_specs = len(report.orphaned)

    report.coverage_percentage = _percentage(report.covered_endpoints, report.total_endpoints)
    for category in report.categories.values():
        category.percentage = _percentage(category.covered, category.total)
    return report


def _find_spec(path: str, index: Dict[str, Spec]) -> Spec | None:
    spec = index.get(path)
    if spec is not None:
        return spec
    for spec_path, candidate in index.items():
        if paths_match(path, spec_path):
            return candidate
    return None


def _percentage(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return part / total * 100


__all__ = ["CoverageReconciler", "build_report", "reconcile"]
