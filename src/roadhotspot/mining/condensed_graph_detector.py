"""Branch-and-bound search over the aggregation graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from roadhotspot.network.spatial_path import SpatialPath
from roadhotspot.traces.domain_types import TracePoint
from roadhotspot.traces.trace_db import TraceDatabase

from .aggregation_graph import AggEdge, AggNode, AggregationGraph
from .approx_hotspot import ApproxHotspot
from .confidence import ConfidenceKind
from .detector import HotspotDetector
from .hotspot import Hotspot

logger = logging.getLogger(__name__)

MAX_CONDENSED_HOPS = 50


@dataclass
class _Branch:
    """Per-branch state; every map is a filtered copy owned by this branch."""

    nodes: List[AggNode]
    edges: List[AggEdge]
    edge_ids: Tuple[int, ...]
    trace_names: Set[str]
    edge_orders: Dict[str, int]
    start_points: List[TracePoint]
    end_points: Optional[List[TracePoint]]
    start_non_event_count: Dict[str, int]
    end_non_event_count: Optional[Dict[str, int]]
    point_count_in_hotspot: Dict[str, int]
    event_count_in_hotspot: Dict[str, int]


def _has_event(points: Optional[List[TracePoint]]) -> bool:
    return bool(points) and any(point.is_event for point in points)


class CondensedGraphDetector(HotspotDetector):
    """Depth-first search of node-to-node paths in the aggregation graph.

    A leaf becomes an :class:`ApproxHotspot`; its boundary trims are only
    enumerated when the optimistic confidence bound reaches the threshold,
    and the first accepted trim closes the branch.
    """

    name = "condensed"

    def __init__(
        self,
        support_threshold: int = 2,
        confidence_threshold: float = 0.0,
        confidence_kind: ConfidenceKind | str = ConfidenceKind.LLR,
        max_hops: int = MAX_CONDENSED_HOPS,
    ):
        super().__init__(support_threshold, confidence_threshold, confidence_kind)
        self.max_hops = int(max_hops)
        self.graph: Optional[AggregationGraph] = None
        self.pruned = 0
        self.leaves = 0

    def build(self, trace_db: TraceDatabase) -> List[Hotspot]:
        self.hotspots = []
        self.pruned = 0
        self.leaves = 0
        self.graph = AggregationGraph.build(trace_db, self.support_threshold)
        for root in self.graph:
            self._explore(trace_db, self._root_branch(trace_db, root))
        logger.debug("Upper bound pruned %d of %d leaves", self.pruned, self.leaves)
        self._log_summary(self.leaves)
        return self.hotspots

    def rebuild(
        self,
        trace_db: TraceDatabase,
        support_threshold: int,
        confidence_threshold: float,
        confidence_kind: ConfidenceKind | str,
    ) -> "CondensedGraphDetector":
        detector = CondensedGraphDetector(
            support_threshold, confidence_threshold, confidence_kind, max_hops=self.max_hops
        )
        detector.build(trace_db)
        return detector

    # ------------------------------------------------------------------ search
    @staticmethod
    def _root_branch(trace_db: TraceDatabase, root: AggNode) -> _Branch:
        start_points: List[TracePoint] = []
        for name in root.trace_stats:
            start_points.extend(trace_db[name].points_on_edge(root.edge_id))
        return _Branch(
            nodes=[root],
            edges=[],
            edge_ids=(root.edge_id,),
            trace_names=set(root.trace_stats),
            edge_orders={name: stats.edge_order for name, stats in root.trace_stats.items()},
            start_points=start_points,
            end_points=None,
            start_non_event_count={
                name: stats.non_event_count for name, stats in root.trace_stats.items()
            },
            end_non_event_count=None,
            point_count_in_hotspot={
                name: stats.point_count for name, stats in root.trace_stats.items()
            },
            event_count_in_hotspot={
                name: stats.event_count for name, stats in root.trace_stats.items()
            },
        )

    def _follow(
        self, trace_db: TraceDatabase, branch: _Branch, out_edge: AggEdge
    ) -> Optional[_Branch]:
        next_node = out_edge.end_node
        # A trace stays on the branch only if it leaves the current node through this run.
        names = {
            name
            for name in branch.trace_names
            if out_edge.starting_orders.get(name) == branch.edge_orders[name]
            and name in next_node.trace_stats
        }
        if len(names) < self.support_threshold:
            return None

        end_points: List[TracePoint] = []
        end_non_event: Dict[str, int] = {}
        point_in: Dict[str, int] = {}
        event_in: Dict[str, int] = {}
        for name in sorted(names):
            stats = next_node.trace_stats[name]
            end_points.extend(trace_db[name].points_on_edge(next_node.edge_id))
            end_non_event[name] = stats.non_event_count
            point_in[name] = (
                branch.point_count_in_hotspot.get(name, 0)
                + out_edge.point_counts.get(name, 0)
                + stats.point_count
            )
            event_in[name] = branch.event_count_in_hotspot.get(name, 0) + stats.event_count

        return _Branch(
            nodes=branch.nodes + [next_node],
            edges=branch.edges + [out_edge],
            edge_ids=branch.edge_ids + out_edge.edge_ids + (next_node.edge_id,),
            trace_names=names,
            edge_orders={
                name: branch.edge_orders[name] + len(out_edge.edge_ids) + 1 for name in names
            },
            start_points=[point for point in branch.start_points if point.trace_name in names],
            end_points=end_points,
            start_non_event_count={
                name: count
                for name, count in branch.start_non_event_count.items()
                if name in names
            },
            end_non_event_count=end_non_event,
            point_count_in_hotspot=point_in,
            event_count_in_hotspot=event_in,
        )

    def _explore(self, trace_db: TraceDatabase, branch: _Branch) -> bool:
        if (
            len(branch.trace_names) < self.support_threshold
            or len(branch.edges) > self.max_hops
            or not _has_event(branch.start_points)
        ):
            return False

        found = False
        for out_edge in branch.nodes[-1].out_edges:
            child = self._follow(trace_db, branch, out_edge)
            if child is not None and self._explore(trace_db, child):
                found = True

        if found or not branch.edges or not _has_event(branch.end_points):
            return found
        return self._accept_leaf(trace_db, branch)

    def _accept_leaf(self, trace_db: TraceDatabase, branch: _Branch) -> bool:
        self.leaves += 1
        names = sorted(branch.trace_names)
        mother = ApproxHotspot(
            SpatialPath(branch.edge_ids),
            names,
            branch.start_points,
            branch.end_points or [],
            branch.start_non_event_count,
            branch.end_non_event_count or {},
            branch.point_count_in_hotspot,
            branch.event_count_in_hotspot,
            {name: trace_db[name].point_count for name in names},
            {name: trace_db[name].event_count for name in names},
            confidence_kind=self.confidence_kind,
        )
        if mother.confidence_upper_bound < self.confidence_threshold:
            self.pruned += 1
            return False
        for child in mother.child_hotspots():
            if self.accepts(child):
                self.hotspots.append(child)
                return True
        return False
