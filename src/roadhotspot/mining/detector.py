"""Common interface of the hotspot mining strategies."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List

from roadhotspot.traces.trace_db import TraceDatabase

from .confidence import ConfidenceKind
from .hotspot import Hotspot

logger = logging.getLogger(__name__)


class HotspotDetector(ABC):
    """Base class of every mining strategy.

    Subclasses fill :attr:`hotspots` in :meth:`build`. :meth:`rebuild` is what
    the Monte Carlo test calls on randomly relabelled databases, so it must
    return a fresh detector of the same kind with its hotspots already built.
    """

    name = "detector"

    def __init__(
        self,
        support_threshold: int = 2,
        confidence_threshold: float = 0.0,
        confidence_kind: ConfidenceKind | str = ConfidenceKind.LLR,
    ):
        support_threshold = int(support_threshold)
        if support_threshold < 1:
            raise ValueError("support_threshold must be at least 1")
        self.support_threshold = support_threshold
        self.confidence_threshold = float(confidence_threshold)
        self.confidence_kind = ConfidenceKind.parse(confidence_kind)
        self.hotspots: List[Hotspot] = []

    @abstractmethod
    def build(self, trace_db: TraceDatabase) -> List[Hotspot]:
        """Mine ``trace_db`` and store the accepted hotspots."""

    @abstractmethod
    def rebuild(
        self,
        trace_db: TraceDatabase,
        support_threshold: int,
        confidence_threshold: float,
        confidence_kind: ConfidenceKind | str,
    ) -> "HotspotDetector":
        """Return a new detector of the same strategy, built on ``trace_db``."""

    @property
    def largest_confidence(self) -> float:
        return max((hotspot.confidence for hotspot in self.hotspots), default=0.0)

    def accepts(self, hotspot: Hotspot) -> bool:
        return (
            hotspot.support >= self.support_threshold
            and hotspot.confidence >= self.confidence_threshold
        )

    def _log_summary(self, candidates: int) -> None:
        logger.info(
            "%s: %d hotspots from %d candidates (support>=%d, confidence>=%s, %s)",
            self.name,
            len(self.hotspots),
            candidates,
            self.support_threshold,
            self.confidence_threshold,
            self.confidence_kind.value,
        )

    def __str__(self) -> str:
        header = (
            f"Support threshold: {self.support_threshold}; "
            f"Confidence threshold: {self.confidence_threshold}\n"
            "Support,Confidence,Statistical significance,Event number in hotspot,"
            "Record number in hotspot,Path"
        )
        return "\n".join([header] + [str(hotspot) for hotspot in self.hotspots])
