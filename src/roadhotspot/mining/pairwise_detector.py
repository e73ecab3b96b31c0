"""Exhaustive pairwise strategy: route between every pair of event points."""

from __future__ import annotations

import logging
from typing import List, Set

from roadhotspot.network.routing import RoutingOracle
from roadhotspot.network.spatial_path import SpatialPath
from roadhotspot.traces.trace_db import TraceDatabase

from .confidence import ConfidenceKind
from .detector import HotspotDetector
from .hotspot import Hotspot

logger = logging.getLogger(__name__)


class ExhaustivePairwiseDetector(HotspotDetector):
    """Score the shortest path between every ordered pair of distinct events.

    Quadratic in the number of events and one routing call per pair; wrap the
    router in :class:`~roadhotspot.network.routing.CachingRouter` when the same
    database is mined repeatedly.
    """

    name = "pairwise"

    def __init__(
        self,
        router: RoutingOracle,
        support_threshold: int = 2,
        confidence_threshold: float = 0.0,
        confidence_kind: ConfidenceKind | str = ConfidenceKind.LLR,
    ):
        super().__init__(support_threshold, confidence_threshold, confidence_kind)
        self.router = router

    def build(self, trace_db: TraceDatabase) -> List[Hotspot]:
        self.hotspots = []
        events = trace_db.event_points()
        scored: Set[SpatialPath] = set()
        unreachable = 0

        for origin in events:
            for destination in events:
                if origin is destination:
                    continue
                path = self.router.shortest_path(
                    origin.longitude,
                    origin.latitude,
                    origin.edge_direction,
                    destination.longitude,
                    destination.latitude,
                    destination.edge_direction,
                )
                if path is None or not path:
                    unreachable += 1
                    continue
                if path in scored:
                    continue
                scored.add(path)

                support = trace_db.traces_on_path(path)
                if support.support < self.support_threshold:
                    continue
                hotspot = Hotspot.from_support(path, trace_db, support, self.confidence_kind)
                if self.accepts(hotspot):
                    self.hotspots.append(hotspot)

        logger.debug("%d event pairs were unreachable", unreachable)
        self._log_summary(len(scored))
        return self.hotspots

    def rebuild(
        self,
        trace_db: TraceDatabase,
        support_threshold: int,
        confidence_threshold: float,
        confidence_kind: ConfidenceKind | str,
    ) -> "ExhaustivePairwiseDetector":
        detector = ExhaustivePairwiseDetector(
            self.router, support_threshold, confidence_threshold, confidence_kind
        )
        detector.build(trace_db)
        return detector
