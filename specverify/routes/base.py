"""Base classes for route extractors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..config import RouteSource
from ..judge.base import Judge
from ..models import Route
from ..storage import FileStore


class ExtractionError(RuntimeError):
    """Raised when routes cannot be extracted from one source."""


class UnknownSourceTypeError(ValueError):
    """Raised when a route source names a type no extractor handles."""


class RouteExtractor(ABC):
    """Contract for turning one configured route source into routes."""

    #: Source types handled by this extractor.
    types: tuple[str, ...] = ()

    @abstractmethod
    def extract(self, source: RouteSource, store: FileStore, judge: Judge | None) -> List[Route]:
        """Return all routes discovered for the source."""
