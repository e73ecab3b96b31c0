"""Candidate hotspot with per-trace counts and a lazily cached confidence."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from roadhotspot.network.spatial_path import SpatialPath
from roadhotspot.traces.domain_types import PathSupport, TracePoint
from roadhotspot.traces.trace_db import TraceDatabase

from .confidence import ConfidenceKind, density_ratio, likelihood_ratio


class Hotspot:
    """A spatial path plus the traces supporting it.

    Confidence is computed on first access and cached; counts are frozen from
    that point on.
    """

    def __init__(
        self,
        path: SpatialPath,
        trace_names: Iterable[str] = (),
        point_count_in_hotspot: Optional[Mapping[str, int]] = None,
        event_count_in_hotspot: Optional[Mapping[str, int]] = None,
        point_count_total: Optional[Mapping[str, int]] = None,
        event_count_total: Optional[Mapping[str, int]] = None,
        confidence_kind: ConfidenceKind | str = ConfidenceKind.LLR,
    ):
        self.path = path
        self.trace_names: List[str] = list(trace_names)
        self.point_count_in_hotspot: Dict[str, int] = dict(point_count_in_hotspot or {})
        self.event_count_in_hotspot: Dict[str, int] = dict(event_count_in_hotspot or {})
        self.point_count_total: Dict[str, int] = dict(point_count_total or {})
        self.event_count_total: Dict[str, int] = dict(event_count_total or {})
        self.confidence_kind = ConfidenceKind.parse(confidence_kind)
        self.p_value = 1.0
        self._confidence: Optional[float] = None

    # ---------------------------------------------------------------- building
    def add_traces(
        self,
        traces: TraceDatabase,
        candidate_names: Iterable[str],
        points: Iterable[TracePoint],
    ) -> None:
        """Count ``points`` per trace; supporting traces are those with >= 1 point."""
        if self._confidence is not None:
            raise RuntimeError("Hotspot counts are frozen once confidence has been read")
        allowed = set(candidate_names)
        point_counts: Dict[str, int] = {}
        event_counts: Dict[str, int] = {}
        for point in points:
            if point.trace_name not in allowed:
                continue
            point_counts[point.trace_name] = point_counts.get(point.trace_name, 0) + 1
            if point.is_event:
                event_counts[point.trace_name] = event_counts.get(point.trace_name, 0) + 1

        self.trace_names = sorted(point_counts)
        self.point_count_in_hotspot = point_counts
        self.event_count_in_hotspot = event_counts
        self.point_count_total = {}
        self.event_count_total = {}
        for name in self.trace_names:
            trace = traces[name]
            self.point_count_total[name] = trace.point_count
            self.event_count_total[name] = trace.event_count

    @classmethod
    def from_support(
        cls,
        path: SpatialPath,
        traces: TraceDatabase,
        support: PathSupport,
        confidence_kind: ConfidenceKind | str = ConfidenceKind.LLR,
    ) -> "Hotspot":
        hotspot = cls(path, confidence_kind=confidence_kind)
        hotspot.add_traces(traces, support.trace_names, support.all_points())
        return hotspot

    # ------------------------------------------------------------------ scores
    @property
    def support(self) -> int:
        return len(self.trace_names)

    @property
    def is_scored(self) -> bool:
        return self._confidence is not None

    def _count_vectors(self, point_in: Optional[Mapping[str, int]] = None):
        point_in = point_in if point_in is not None else self.point_count_in_hotspot
        names = self.trace_names
        return (
            [self.event_count_in_hotspot.get(name, 0) for name in names],
            [point_in.get(name, 0) for name in names],
            [self.event_count_total.get(name, 0) for name in names],
            [self.point_count_total.get(name, 0) for name in names],
        )

    @property
    def confidence(self) -> float:
        if self._confidence is None:
            if self.confidence_kind is ConfidenceKind.DENSITY_RATIO:
                self._confidence = density_ratio(*self._count_vectors())
            else:
                self._confidence = likelihood_ratio(*self._count_vectors())
        return self._confidence

    @property
    def total_event_count(self) -> int:
        return sum(self.event_count_in_hotspot.values())

    @property
    def total_point_count(self) -> int:
        return sum(self.point_count_in_hotspot.values())

    def to_record(self) -> Dict[str, object]:
        return {
            "support": self.support,
            "confidence": self.confidence,
            "p_value": self.p_value,
            "event_count": self.total_event_count,
            "point_count": self.total_point_count,
            "path": self.path.edge_string(),
            "start_offset": f"{self.path.start_segment[0]:g}-{self.path.start_segment[1]:g}",
            "end_offset": f"{self.path.end_segment[0]:g}-{self.path.end_segment[1]:g}",
        }

    def __str__(self) -> str:
        return (
            f"{self.support},{self.confidence},{self.p_value},{self.total_event_count},"
            f"{self.total_point_count},{self.path}"
        )

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"Hotspot(path={self.path.edge_ids}, support={self.support})"
