"""Aggregation graph: event-bearing edges joined by event-free edge chains."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from roadhotspot.network.spatial_path import SpatialPath
from roadhotspot.traces.trace_db import TraceDatabase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeTraceStats:
    point_count: int
    event_count: int
    edge_order: int

    @property
    def non_event_count(self) -> int:
        return self.point_count - self.event_count


@dataclass(eq=False)
class AggNode:
    """Road edge with at least one event and enough traversing traces."""

    edge_id: int
    trace_stats: Dict[str, NodeTraceStats] = field(default_factory=dict)
    in_edges: List["AggEdge"] = field(default_factory=list)
    out_edges: List["AggEdge"] = field(default_factory=list)


@dataclass(eq=False)
class AggEdge:
    """Maximal run of event-free road edges between two nodes.

    ``starting_orders`` holds, per trace following the run, the position of
    the start node's edge in that trace; ``point_counts`` the points the
    trace has on the run's inner edges.
    """

    start_node: AggNode
    end_node: AggNode
    edge_ids: Tuple[int, ...]
    point_counts: Dict[str, int]
    starting_orders: Dict[str, int]


class AggregationGraph:
    def __init__(self, support_threshold: int):
        self.support_threshold = int(support_threshold)
        self.nodes: Dict[int, AggNode] = {}
        self.edge_count = 0

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes.values())

    @classmethod
    def build(cls, trace_db: TraceDatabase, support_threshold: int) -> "AggregationGraph":
        graph = cls(support_threshold)
        graph._add_nodes(trace_db)
        for node in graph.nodes.values():
            graph._add_edges_from(trace_db, node)
        logger.info(
            "Aggregation graph: %d nodes, %d condensed edges", len(graph.nodes), graph.edge_count
        )
        return graph

    def _add_nodes(self, trace_db: TraceDatabase) -> None:
        for edge_id in sorted(trace_db.edge_traces):
            names = trace_db.edge_traces[edge_id]
            if len(names) < self.support_threshold:
                continue
            if not any(trace_db[name].edge_event_ids.get(edge_id) for name in names):
                continue
            node = AggNode(edge_id)
            for name in sorted(names):
                trace = trace_db[name]
                node.trace_stats[name] = NodeTraceStats(
                    point_count=len(trace.edge_point_ids.get(edge_id, ())),
                    event_count=len(trace.edge_event_ids.get(edge_id, ())),
                    edge_order=trace.edge_order(edge_id),
                )
            self.nodes[edge_id] = node

    def _add_edges_from(self, trace_db: TraceDatabase, root: AggNode) -> None:
        orders = {name: stats.edge_order for name, stats in root.trace_stats.items()}
        stack = [(SpatialPath((root.edge_id,)), orders, {name: 0 for name in orders})]
        while stack:
            path, starting_orders, point_counts = stack.pop()
            for extended, group in trace_db.extend(path, starting_orders, self.support_threshold):
                last = extended[-1]
                end_node = self.nodes.get(last)
                if end_node is not None:
                    edge = AggEdge(
                        start_node=root,
                        end_node=end_node,
                        edge_ids=extended.edge_ids[1:-1],
                        point_counts={name: point_counts.get(name, 0) for name in group},
                        starting_orders=dict(group),
                    )
                    root.out_edges.append(edge)
                    end_node.in_edges.append(edge)
                    self.edge_count += 1
                    continue
                extended_counts = {
                    name: point_counts.get(name, 0)
                    + len(trace_db[name].edge_point_ids.get(last, ()))
                    for name in group
                }
                stack.append((extended, group, extended_counts))
