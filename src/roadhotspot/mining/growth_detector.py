"""Incremental growth: extend event-anchored seed paths along the traces."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Set, Tuple

from roadhotspot.network.spatial_path import (
    SpatialPath,
    covers,
    end_segment_for,
    start_segment_for,
)
from roadhotspot.traces.domain_types import TracePoint
from roadhotspot.traces.trace_db import TraceDatabase

from .confidence import ConfidenceKind
from .detector import HotspotDetector
from .hotspot import Hotspot

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    path: SpatialPath
    starting_orders: Dict[str, int]
    start_points: List[TracePoint]
    inner_points: List[TracePoint]
    end_points: List[TracePoint]


class IncrementalGrowthDetector(HotspotDetector):
    """Depth-first growth of paths starting at every event point.

    Each event point anchors the start segment on the event side of its edge.
    The single-edge path is tried first, then the two-edge seed formed with the
    trace's next edge is grown with :meth:`TraceDatabase.extend`. At every
    step each trim ending at an event point on the last edge is a candidate.
    """

    name = "growth"

    def __init__(
        self,
        support_threshold: int = 2,
        confidence_threshold: float = 0.0,
        confidence_kind: ConfidenceKind | str = ConfidenceKind.LLR,
    ):
        super().__init__(support_threshold, confidence_threshold, confidence_kind)
        self._accepted: Set[SpatialPath] = set()
        self._candidates = 0

    def build(self, trace_db: TraceDatabase) -> List[Hotspot]:
        self.hotspots = []
        self._accepted = set()
        self._candidates = 0
        seen_seeds: Set[Tuple[Tuple[int, ...], Tuple[float, float]]] = set()

        for trace in trace_db.values():
            for event in trace.event_points():
                order = trace.edge_order(event.edge_id)
                if order < 0:
                    continue
                start_segment = start_segment_for(event.edge_offset, event.edge_direction)

                single = SpatialPath((event.edge_id,), start_segment)
                if (single.edge_ids, start_segment) not in seen_seeds:
                    seen_seeds.add((single.edge_ids, start_segment))
                    self._explore_single_edge(trace_db, single)

                if order >= len(trace.edge_ids) - 1:
                    continue
                seed = SpatialPath((event.edge_id, trace.edge_ids[order + 1]), start_segment)
                if (seed.edge_ids, start_segment) in seen_seeds:
                    continue
                seen_seeds.add((seed.edge_ids, start_segment))
                self._grow(trace_db, seed)

        logger.debug("Grew %d distinct seeds", len(seen_seeds))
        self._log_summary(self._candidates)
        return self.hotspots

    def rebuild(
        self,
        trace_db: TraceDatabase,
        support_threshold: int,
        confidence_threshold: float,
        confidence_kind: ConfidenceKind | str,
    ) -> "IncrementalGrowthDetector":
        detector = IncrementalGrowthDetector(support_threshold, confidence_threshold, confidence_kind)
        detector.build(trace_db)
        return detector

    # ---------------------------------------------------------------- helpers
    def _consider(
        self, trace_db: TraceDatabase, path: SpatialPath, names, points: List[TracePoint]
    ) -> None:
        self._candidates += 1
        if path in self._accepted:
            return
        hotspot = Hotspot(path, confidence_kind=self.confidence_kind)
        hotspot.add_traces(trace_db, names, points)
        if self.accepts(hotspot):
            self._accepted.add(path)
            self.hotspots.append(hotspot)

    def _explore_single_edge(self, trace_db: TraceDatabase, path: SpatialPath) -> None:
        support = trace_db.traces_on_path(path)
        if support.support < self.support_threshold:
            return
        for end_point in support.start_points:
            if not end_point.is_event:
                continue
            child = path.with_segments(
                end_segment=end_segment_for(end_point.edge_offset, end_point.edge_direction)
            )
            points = [
                point
                for point in support.start_points
                if covers(child.end_segment, point.edge_offset)
            ]
            self._consider(trace_db, child, support.trace_names, points)

    def _grow(self, trace_db: TraceDatabase, seed: SpatialPath) -> None:
        support = trace_db.traces_on_path(seed)
        if support.support < self.support_threshold:
            return
        stack = [
            _Frame(
                seed,
                dict(support.starting_orders),
                list(support.start_points),
                list(support.inner_points),
                list(support.end_points),
            )
        ]
        while stack:
            frame = stack.pop()
            fixed_points = frame.start_points + frame.inner_points
            for end_point in frame.end_points:
                if not end_point.is_event:
                    continue
                child = frame.path.with_segments(
                    end_segment=end_segment_for(end_point.edge_offset, end_point.edge_direction)
                )
                ends = [
                    point
                    for point in frame.end_points
                    if covers(child.end_segment, point.edge_offset)
                ]
                self._consider(trace_db, child, frame.starting_orders, fixed_points + ends)

            previous_last = frame.path[-1]
            for extended, group in trace_db.extend(
                frame.path, frame.starting_orders, self.support_threshold
            ):
                inner = [point for point in frame.inner_points if point.trace_name in group]
                ends: List[TracePoint] = []
                for trace_name in sorted(group):
                    trace = trace_db[trace_name]
                    inner.extend(trace.points_on_edge(previous_last))
                    ends.extend(trace.points_on_edge(extended[-1]))
                stack.append(
                    _Frame(
                        extended,
                        group,
                        [point for point in frame.start_points if point.trace_name in group],
                        inner,
                        ends,
                    )
                )
