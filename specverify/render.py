"""Console and JSON rendering of verification summaries and coverage reports."""

from __future__ import annotations

import json
from collections import defaultdict
from typing import Dict, List, Sequence

from .models import CoverageReport, Route, Summary
from .verifier import sort_results

RULE = "━"
THIN_RULE = "─"
_MAX_LISTED_ITEMS = 3


def status_marker(percentage: float) -> str:
    if percentage >= 80:
        return "✅"
    if percentage >= 50:
        return "⚠️"
    return "❌"


def progress_bar(percentage: float, width: int = 10) -> str:
    filled = max(0, min(width, int(percentage / 100 * width)))
    return "█" * filled + "░" * (width - filled)


def to_json(payload: object) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_summary_json(summary: Summary) -> str:
    data = summary.to_dict()
    data["results"] = [result.to_dict() for result in sort_results(summary.results)]
    return to_json(data)


def render_summary(summary: Summary) -> str:
    lines: List[str] = []
    results = sort_results(summary.results)
    for result in results:
        lines.append("")
        lines.append(f"📄 {result.spec_file}")
        lines.append(f"   Title: {result.title}")
        if result.route_path:
            lines.append(f"   Path: {result.route_path}")
        lines.append(f"   Code files: {len(result.code_files)}")

        if result.error is not None:
            lines.append(f"   ❌ Error: {result.error}")
            continue
        verification = result.verification
        if verification is None:
            lines.append("   ⚠️  No verification result")
            continue

        below = ""
        if summary.fail_under > 0 and verification.match_percentage < summary.fail_under:
            below = f" <- below threshold ({summary.fail_under}%)"
        lines.append(
            f"   {status_marker(verification.match_percentage)} Match: "
            f"{verification.match_percentage}%{below}"
        )
        lines.extend(_listed("✓ Matched:", verification.matched_items))
        lines.extend(_listed("✗ Unmatched:", verification.unmatched_items))

    lines.append("")
    lines.append(RULE * 50)
    lines.append("")
    lines.append("📊 Summary")
    lines.append("")
    lines.append(f"   Total specs: {summary.total_specs}")
    lines.append(f"   Average match: {summary.average_match:.1f}%")
    lines.append(f"   High match (>=80%): {summary.high_match_count}")
    lines.append(f"   Low match (<50%): {summary.low_match_count}")

    if results:
        lines.append("")
        lines.append("   Details:")
        for result in results:
            percentage = result.verification.match_percentage if result.verification else 0
            lines.append(f"   {progress_bar(percentage)} {percentage:3d}% {result.spec_file}")

    if summary.failing_specs:
        lines.append("")
        lines.append(
            f"❌ Below individual threshold ({summary.fail_under}%): {len(summary.failing_specs)}"
        )
        for failing in summary.failing_specs:
            lines.append(
                f"   - {failing.spec_file} ({failing.match_percentage}%) : {failing.title}"
            )
    lines.append("")
    return "\n".join(lines)


def render_routes_json(routes: Sequence[Route]) -> str:
    return to_json([route.to_dict() for route in routes])


def render_routes(routes: Sequence[Route]) -> str:
    if not routes:
        return "No endpoints found."

    by_source: Dict[str, List[Route]] = defaultdict(list)
    for route in routes:
        by_source[route.source].append(route)

    lines = [f"📡 Discovered endpoints ({len(routes)})", RULE * 60]
    for source, entries in by_source.items():
        lines.append("")
        lines.append(f"📁 {source} ({len(entries)})")
        lines.append(THIN_RULE * 40)
        for route in entries:
            description = f" - {route.description}" if route.description else ""
            origin = f" [{route.file}]" if route.file else ""
            lines.append(f"  {route.method:<7} {route.path}{description}{origin}")
    lines.append("")
    return "\n".join(lines)


def render_coverage_json(report: CoverageReport) -> str:
    return to_json(report.to_dict())


def render_coverage(report: CoverageReport) -> str:
    lines = [RULE * 60, "📊 Coverage report", RULE * 60, ""]
    lines.append(f"{status_marker(report.coverage_percentage)} Coverage: {report.coverage_percentage:.1f}%")
    lines.append(f"   Endpoints: {report.total_endpoints}")
    lines.append(f"   Covered (with spec): {report.covered_endpoints}")
    lines.append(f"   Uncovered (no spec): {report.uncovered_endpoints}")
    lines.append(f"   Specs: {report.total_specs}")
    if report.orphaned_specs:
        lines.append(f"   Orphaned specs: {report.orphaned_specs}")
    lines.append("")
    lines.append(f"   [{progress_bar(report.coverage_percentage, 30)}] {report.coverage_percentage:.1f}%")

    if report.categories:
        lines.append("")
        for name in sorted(report.categories):
            category = report.categories[name]
            lines.append(
                f"   {name}: {category.covered}/{category.total} ({category.percentage:.1f}%)"
            )

    if report.covered:
        lines.append("")
        lines.append(f"✅ Covered endpoints ({len(report.covered)})")
        lines.append(THIN_RULE * 40)
        for item in report.covered:
            spec_info = f" -> {item.spec_file}" if item.spec_file else ""
            lines.append(f"  {item.method:<7} {item.path}{spec_info}")

    if report.uncovered:
        lines.append("")
        lines.append(f"❌ Uncovered endpoints ({len(report.uncovered)})")
        lines.append(THIN_RULE * 40)
        for item in report.uncovered:
            origin = f" [{item.file}]" if item.file else ""
            lines.append(f"  {item.method:<7} {item.path}{origin}")

    if report.orphaned:
        lines.append("")
        lines.append(f"⚠️  Orphaned specs ({len(report.orphaned)})")
        lines.append(THIN_RULE * 40)
        for orphan in report.orphaned:
            route_path = f" [{orphan.route_path}]" if orphan.route_path else ""
            lines.append(f"  📄 {orphan.file}{route_path}")
            if orphan.title:
                lines.append(f"     {orphan.title}")
    lines.append("")
    return "\n".join(lines)


def _listed(heading: str, items: Sequence[str]) -> List[str]:
    if not items:
        return []
    lines = [f"   {heading}"]
    for index, item in enumerate(items):
        if index >= _MAX_LISTED_ITEMS:
            lines.append(f"     ... {len(items) - _MAX_LISTED_ITEMS} more")
            break
        lines.append(f"     - {item}")
    return lines


__all__ = [
    "progress_bar",
    "render_coverage",
    "render_coverage_json",
    "render_routes",
    "render_routes_json",
    "render_summary",
    "render_summary_json",
    "status_marker",
]
