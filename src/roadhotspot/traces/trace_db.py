"""Trace database with the edge -> trace inverted index used by every detector."""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

import numpy as np

from roadhotspot.network.spatial_path import SpatialPath

from .domain_types import PathSupport, TracePoint
from .trace import Trace

logger = logging.getLogger(__name__)


def _numeric_attribute(point: TracePoint, column: str) -> float:
    try:
        value = float(point.attributes.get(column, ""))
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(value) else value


class TraceDatabase:
    """Mapping of trace name to :class:`Trace` plus the inverted edge index."""

    def __init__(
        self,
        traces: Iterable[Trace] = (),
        edge_traces: Optional[Dict[int, Set[str]]] = None,
    ):
        self.traces: Dict[str, Trace] = {}
        for trace in traces:
            if trace.name in self.traces:
                raise ValueError(f"Duplicate trace name {trace.name!r}")
            self.traces[trace.name] = trace
        if edge_traces is None:
            edge_traces = self._build_edge_index(self.traces.values())
        self.edge_traces: Dict[int, Set[str]] = edge_traces

    @staticmethod
    def _build_edge_index(traces: Iterable[Trace]) -> Dict[int, Set[str]]:
        index: Dict[int, Set[str]] = {}
        for trace in traces:
            for edge_id in trace.edge_ids:
                index.setdefault(edge_id, set()).add(trace.name)
        return index

    def reindex(self) -> None:
        """Rebuild the inverted index after traces were edited in place."""
        self.edge_traces = self._build_edge_index(self.traces.values())

    # ------------------------------------------------------------------ mapping
    def __getitem__(self, name: str) -> Trace:
        return self.traces[name]

    def __contains__(self, name: object) -> bool:
        return name in self.traces

    def __iter__(self) -> Iterator[str]:
        return iter(self.traces)

    def __len__(self) -> int:
        return len(self.traces)

    def values(self):
        return self.traces.values()

    def items(self):
        return self.traces.items()

    def event_points(self) -> List[TracePoint]:
        return [point for trace in self.traces.values() for point in trace.event_points()]

    @property
    def total_events(self) -> int:
        return sum(trace.event_count for trace in self.traces.values())

    # ------------------------------------------------------------------- events
    def define_events(self, predicate: Callable[[TracePoint], bool]) -> None:
        """Label every point an event when ``predicate`` holds."""

        def _update(point: TracePoint) -> None:
            point.is_event = bool(predicate(point))

        for trace in self.traces.values():
            trace.update_event_status(_update)
        logger.info("Defined %d events across %d traces", self.total_events, len(self.traces))

    def define_threshold_events(
        self, column: str, threshold: float, relative: bool = False
    ) -> None:
        """Events are points whose ``column`` value exceeds ``threshold``.

        With ``relative`` the threshold is the per-trace percentile
        ``floor(threshold)`` of that column. Unparseable values count as 0.
        """
        for trace in self.traces.values():
            if relative and len(trace):
                values = np.array([_numeric_attribute(point, column) for point in trace])
                limit = float(np.percentile(values, math.floor(threshold)))
            else:
                limit = float(threshold)

            def _update(point: TracePoint, limit: float = limit) -> None:
                point.is_event = _numeric_attribute(point, column) > limit

            trace.update_event_status(_update)
        logger.info(
            "Defined %d events from column %s (threshold=%s, relative=%s)",
            self.total_events,
            column,
            threshold,
            relative,
        )

    def with_random_events(self, rng: np.random.Generator) -> "TraceDatabase":
        """Scratch copy whose event flags are Bernoulli draws at each trace's ratio.

        Topology (points, edges, inverted index) is shared; only flags differ.
        """
        relabelled = []
        for trace in self.traces.values():
            flags = rng.random(len(trace)) < trace.event_ratio
            relabelled.append(trace.relabelled(flags.tolist()))
        return TraceDatabase(relabelled, edge_traces=self.edge_traces)

    # ----------------------------------------------------------------- matching
    def candidate_traces(self, path: SpatialPath) -> Set[str]:
        """Traces traversing every edge of ``path``, in no particular order."""
        if not path:
            return set()
        results = set(self.edge_traces.get(path[0], ()))
        for edge_id in path:
            if not results:
                break
            results.intersection_update(self.edge_traces.get(edge_id, ()))
        return results

    def traces_on_path(self, path: SpatialPath) -> PathSupport:
        """Traces that traverse ``path`` contiguously with at least one point in it."""
        support = PathSupport()
        for trace_name in sorted(self.candidate_traces(path)):
            match = self.traces[trace_name].match_path(path)
            if match is None:
                continue
            support.trace_names.add(trace_name)
            support.starting_orders[trace_name] = match.starting_order
            support.start_points.extend(match.start_points)
            support.inner_points.extend(match.inner_points)
            support.end_points.extend(match.end_points)
        return support

    def extend(
        self,
        path: SpatialPath,
        starting_orders: Mapping[str, int],
        support_threshold: int,
    ) -> Iterator[Tuple[SpatialPath, Dict[str, int]]]:
        """Grow ``path`` by one edge along the supporting traces.

        Traces are grouped by the edge that follows the path in their own
        traversal; each group with at least ``support_threshold`` traces yields
        the extended path and the group's starting orders.
        """
        groups: Dict[int, Dict[str, int]] = {}
        for trace_name, starting_order in starting_orders.items():
            trace = self.traces[trace_name]
            next_order = starting_order + len(path)
            if next_order >= len(trace.edge_ids):
                continue
            groups.setdefault(trace.edge_ids[next_order], {})[trace_name] = starting_order

        for next_edge, group in groups.items():
            if len(group) < support_threshold:
                continue
            yield path.add_edge(next_edge), group

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"TraceDatabase(traces={len(self.traces)}, edges={len(self.edge_traces)})"
