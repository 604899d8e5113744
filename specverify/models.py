"""Core data models shared across specverify components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Spec:
    """A parsed specification document describing one page or endpoint."""

    file_path: str
    type: str
    title: str
    route_path: str = ""
    related_files: List[str] = field(default_factory=list)
    content: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)
    sections: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Route:
    """A discovered API endpoint or UI page."""

    method: str
    path: str
    category: str
    source: str
    file: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "method": self.method,
            "path": self.path,
            "category": self.category,
            "source": self.source,
        }
        if self.file:
            payload["file"] = self.file
        if self.description:
            payload["description"] = self.description
        return payload


@dataclass(frozen=True)
class RouteCandidate:
    """Route entry as reported by the judge before it is tagged with its source."""

    method: str
    path: str
    file: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None


@dataclass
class CoverageItem:
    """A route annotated with the spec file covering it, if any."""

    method: str
    path: str
    source: str
    category: str
    file: Optional[str] = None
    spec_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "method": self.method,
            "path": self.path,
            "source": self.source,
            "category": self.category,
        }
        if self.file:
            payload["file"] = self.file
        if self.spec_file:
            payload["specFile"] = self.spec_file
        return payload


@dataclass
class OrphanedSpec:
    """A spec whose declared path matched no discovered route."""

    file: str
    title: str
    route_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"file": self.file, "title": self.title}
        if self.route_path:
            payload["routePath"] = self.route_path
        return payload


@dataclass
class CategoryCoverage:
    """Coverage counters for one route category."""

    total: int = 0
    covered: int = 0
    uncovered: int = 0
    percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "covered": self.covered,
            "uncovered": self.uncovered,
            "percentage": self.percentage,
        }


@dataclass
class CoverageReport:
    """Aggregate coverage of discovered routes by spec documents."""

    total_endpoints: int = 0
    covered_endpoints: int = 0
    uncovered_endpoints: int = 0
    coverage_percentage: float = 0.0
    total_specs: int = 0
    orphaned_specs: int = 0
    covered: List[CoverageItem] = field(default_factory=list)
    uncovered: List[CoverageItem] = field(default_factory=list)
    orphaned: List[OrphanedSpec] = field(default_factory=list)
    categories: Dict[str, CategoryCoverage] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "totalEndpoints": self.total_endpoints,
            "coveredEndpoints": self.covered_endpoints,
            "uncoveredEndpoints": self.uncovered_endpoints,
            "coveragePercentage": self.coverage_percentage,
            "totalSpecs": self.total_specs,
            "orphanedSpecs": self.orphaned_specs,
            "covered": [item.to_dict() for item in self.covered],
            "uncovered": [item.to_dict() for item in self.uncovered],
            "categories": {name: value.to_dict() for name, value in self.categories.items()},
        }
        if self.orphaned:
            payload["orphaned"] = [item.to_dict() for item in self.orphaned]
        return payload


@dataclass
class VerificationResult:
    """Judge verdict on how closely code matches a spec."""

    match_percentage: int
    matched_items: List[str] = field(default_factory=list)
    unmatched_items: List[str] = field(default_factory=list)
    notes: str = ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "VerificationResult":
        """Build a verdict from a decoded judge response, clamping the score to 0-100."""
        raw = payload.get("matchPercentage", payload.get("match_percentage", 0))
        try:
            percentage = int(round(float(raw)))
        except (TypeError, ValueError):
            percentage = 0
        percentage = max(0, min(100, percentage))
        return cls(
            match_percentage=percentage,
            matched_items=_as_str_list(payload.get("matchedItems", payload.get("matched_items"))),
            unmatched_items=_as_str_list(
                payload.get("unmatchedItems", payload.get("unmatched_items"))
            ),
            notes=str(payload.get("notes") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matchPercentage": self.match_percentage,
            "matchedItems": list(self.matched_items),
            "unmatchedItems": list(self.unmatched_items),
            "notes": self.notes,
        }


@dataclass
class Result:
    """Verification outcome for a single spec."""

    spec_file: str
    title: str = ""
    route_path: str = ""
    code_files: List[str] = field(default_factory=list)
    verification: Optional[VerificationResult] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.verification is not None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "specFile": self.spec_file,
            "title": self.title,
            "routePath": self.route_path,
            "codeFiles": list(self.code_files),
            "verification": self.verification.to_dict() if self.verification else None,
        }
        if self.error is not None:
            payload["error"] = str(self.error)
        return payload


@dataclass
class FailingSpec:
    """A verified spec that scored below the individual threshold."""

    spec_file: str
    title: str
    match_percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "specFile": self.spec_file,
            "title": self.title,
            "matchPercentage": self.match_percentage,
        }


@dataclass
class Summary:
    """Aggregate of all per-spec verification results."""

    total_specs: int = 0
    verified_specs: int = 0
    average_match: float = 0.0
    high_match_count: int = 0
    low_match_count: int = 0
    results: List[Result] = field(default_factory=list)
    fail_under: int = 0
    failing_specs: List[FailingSpec] = field(default_factory=list)

    def is_passing(self, threshold: float) -> bool:
        """Return True when the average match meets the threshold."""
        return self.average_match >= float(threshold)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "totalSpecs": self.total_specs,
            "verifiedSpecs": self.verified_specs,
            "averageMatch": self.average_match,
            "highMatchCount": self.high_match_count,
            "lowMatchCount": self.low_match_count,
            "results": [result.to_dict() for result in self.results],
        }
        if self.fail_under > 0:
            payload["failUnder"] = self.fail_under
            payload["failingSpecs"] = [spec.to_dict() for spec in self.failing_specs]
        return payload


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return []


__all__ = [
    "CategoryCoverage",
    "CoverageItem",
    "CoverageReport",
    "FailingSpec",
    "OrphanedSpec",
    "Result",
    "Route",
    "RouteCandidate",
    "Spec",
    "Summary",
    "VerificationResult",
]
