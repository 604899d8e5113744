"""Judge contract: the oracle that scores spec/code alignment and extracts routes."""

from __future__ import annotations

from typing import List, Mapping, Optional, Protocol, Sequence

from ..models import RouteCandidate, VerificationResult


class JudgeError(RuntimeError):
    """Raised when the judge provider fails or returns an unusable response."""


class Judge(Protocol):
    """Capability consumed by the verifier and the route extractors.

    Implementations are shared across worker threads and must tolerate
    concurrent calls.
    """

    def verify(
        self,
        spec_text: str,
        code_contents: Mapping[str, str],
        focus: Optional[Sequence[str]] = None,
    ) -> VerificationResult:
        """Score how well the code implements the spec."""

    def extract_routes(
        self, source_type: str, category: str, code_text: str
    ) -> List[RouteCandidate]:
        """Return the routes defined in the combined code text."""
