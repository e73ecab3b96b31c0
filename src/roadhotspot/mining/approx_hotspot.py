"""Untrimmed hotspot carrying the boundary points needed to enumerate trims."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Mapping

from roadhotspot.network.spatial_path import SpatialPath, end_segment_for, start_segment_for
from roadhotspot.traces.domain_types import TracePoint

from .confidence import ConfidenceKind, density_ratio, likelihood_ratio
from .hotspot import Hotspot


def _travel_order(points: Iterable[TracePoint], reverse: bool = False) -> List[TracePoint]:
    ordered = sorted(points, key=lambda point: point.edge_offset)
    if not ordered:
        return ordered
    forward = ordered[0].edge_direction
    if forward == reverse:
        ordered.reverse()
    return ordered


def _remove_point(
    point_counts: Dict[str, int], event_counts: Dict[str, int], point: TracePoint
) -> None:
    name = point.trace_name
    if name in point_counts:
        point_counts[name] = max(point_counts[name] - 1, 0)
    if point.is_event and name in event_counts:
        event_counts[name] = max(event_counts[name] - 1, 0)


class ApproxHotspot(Hotspot):
    """Hotspot whose start and end edges are still fully covered.

    ``start_points`` are kept in travel order (first trimmed first) and
    ``end_points`` in reverse travel order, so every trim variant is a prefix
    removal on both lists.
    """

    def __init__(
        self,
        path: SpatialPath,
        trace_names: Iterable[str],
        start_points: Iterable[TracePoint],
        end_points: Iterable[TracePoint],
        start_non_event_count: Mapping[str, int],
        end_non_event_count: Mapping[str, int],
        point_count_in_hotspot: Mapping[str, int],
        event_count_in_hotspot: Mapping[str, int],
        point_count_total: Mapping[str, int],
        event_count_total: Mapping[str, int],
        confidence_kind: ConfidenceKind | str = ConfidenceKind.LLR,
    ):
        super().__init__(
            path,
            trace_names,
            point_count_in_hotspot,
            event_count_in_hotspot,
            point_count_total,
            event_count_total,
            confidence_kind=confidence_kind,
        )
        self.start_points = _travel_order(start_points)
        self.end_points = _travel_order(end_points, reverse=True)
        self.start_non_event_count = dict(start_non_event_count)
        self.end_non_event_count = dict(end_non_event_count)
        self._upper_bound = None

    @property
    def confidence_upper_bound(self) -> float:
        """Confidence with every non-event boundary point already trimmed away.

        Never below the confidence of any child returned by :meth:`child_hotspots`.
        """
        if self._upper_bound is None:
            reduced = {
                name: self.point_count_in_hotspot.get(name, 0)
                - self.start_non_event_count.get(name, 0)
                - self.end_non_event_count.get(name, 0)
                for name in self.trace_names
            }
            counts = self._count_vectors(reduced)
            if self.confidence_kind is ConfidenceKind.DENSITY_RATIO:
                self._upper_bound = density_ratio(*counts)
            else:
                self._upper_bound = likelihood_ratio(*counts, zero_limit=True)
        return self._upper_bound

    def child_hotspots(self) -> Iterator[Hotspot]:
        """Yield one hotspot per (start event, end event) trim combination."""
        start_points_count = dict(self.point_count_in_hotspot)
        start_events_count = dict(self.event_count_in_hotspot)
        for start_idx, start_point in enumerate(self.start_points):
            if start_idx:
                _remove_point(
                    start_points_count, start_events_count, self.start_points[start_idx - 1]
                )
            if not start_point.is_event:
                continue
            start_segment = start_segment_for(start_point.edge_offset, start_point.edge_direction)

            point_counts = dict(start_points_count)
            event_counts = dict(start_events_count)
            for end_idx, end_point in enumerate(self.end_points):
                if end_idx:
                    _remove_point(point_counts, event_counts, self.end_points[end_idx - 1])
                if not end_point.is_event:
                    continue
                path = self.path.with_segments(
                    start_segment,
                    end_segment_for(end_point.edge_offset, end_point.edge_direction),
                )
                names = [name for name in self.trace_names if point_counts.get(name, 0) > 0]
                yield Hotspot(
                    path,
                    names,
                    {name: point_counts[name] for name in names},
                    {name: event_counts.get(name, 0) for name in names},
                    {name: self.point_count_total.get(name, 0) for name in names},
                    {name: self.event_count_total.get(name, 0) for name in names},
                    confidence_kind=self.confidence_kind,
                )
