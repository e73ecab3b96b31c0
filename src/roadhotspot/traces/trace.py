"""Single vehicle trace with derived edge indices."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence

from roadhotspot.network.spatial_path import SpatialPath, covers

from .domain_types import PathMatch, TracePoint

EVENT_RATIO_EPSILON = 1e-7


class Trace:
    """Ordered trace points plus the ordered road edges the vehicle traversed."""

    def __init__(self, name: str, edge_ids: Optional[Iterable[int]] = None):
        self.name = str(name)
        self.points: List[TracePoint] = []
        self.edge_ids: List[int] = [int(edge) for edge in (edge_ids or [])]
        self.edge_point_ids: Dict[int, List[int]] = {}
        self.edge_event_ids: Dict[int, List[int]] = {}
        self.event_count = 0

    # ------------------------------------------------------------------ building
    def add_point(
        self,
        latitude: float,
        longitude: float,
        edge_id: int,
        edge_offset: float,
        edge_direction: bool,
        *,
        is_event: bool = False,
        attributes: Optional[Dict[str, str]] = None,
    ) -> TracePoint:
        """Append a point; its id is its position in the trace."""
        point = TracePoint(
            id=len(self.points),
            trace_name=self.name,
            latitude=float(latitude),
            longitude=float(longitude),
            edge_id=int(edge_id),
            edge_offset=float(edge_offset),
            edge_direction=bool(edge_direction),
            is_event=bool(is_event),
            attributes=dict(attributes or {}),
        )
        self.points.append(point)
        self.edge_point_ids.setdefault(point.edge_id, []).append(point.id)
        if point.is_event:
            self.edge_event_ids.setdefault(point.edge_id, []).append(point.id)
            self.event_count += 1
        return point

    def add_edge(self, edge_id: int) -> None:
        self.edge_ids.append(int(edge_id))

    # ---------------------------------------------------------------- properties
    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[TracePoint]:
        return iter(self.points)

    def __getitem__(self, point_id: int) -> TracePoint:
        return self.points[point_id]

    @property
    def point_count(self) -> int:
        return len(self.points)

    @property
    def event_ratio(self) -> float:
        return self.event_count / (len(self.points) + EVENT_RATIO_EPSILON)

    def edge_order(self, edge_id: int) -> int:
        """First position of ``edge_id`` in the traversal, or -1."""
        try:
            return self.edge_ids.index(int(edge_id))
        except ValueError:
            return -1

    def points_on_edge(self, edge_id: int) -> List[TracePoint]:
        return [self.points[pid] for pid in self.edge_point_ids.get(edge_id, ())]

    def event_points(self) -> Iterator[TracePoint]:
        return (point for point in self.points if point.is_event)

    # ------------------------------------------------------------------- events
    def update_event_status(self, update: Callable[[TracePoint], None]) -> None:
        """Apply ``update`` to every point and rebuild the event indices."""
        self.edge_event_ids = {}
        self.event_count = 0
        for point in self.points:
            update(point)
            if not point.is_event:
                continue
            self.edge_event_ids.setdefault(point.edge_id, []).append(point.id)
            self.event_count += 1

    def relabelled(self, flags: Sequence[bool]) -> "Trace":
        """Copy sharing the edge topology, with fresh points carrying ``flags``."""
        if len(flags) != len(self.points):
            raise ValueError(
                f"Trace {self.name} has {len(self.points)} points but {len(flags)} flags were given"
            )
        clone = Trace.__new__(Trace)
        clone.name = self.name
        clone.edge_ids = self.edge_ids
        clone.edge_point_ids = self.edge_point_ids
        clone.points = [
            replace(point, is_event=bool(flag)) for point, flag in zip(self.points, flags)
        ]
        clone.edge_event_ids = {}
        clone.event_count = 0
        for point in clone.points:
            if point.is_event:
                clone.edge_event_ids.setdefault(point.edge_id, []).append(point.id)
                clone.event_count += 1
        return clone

    # ----------------------------------------------------------------- matching
    def match_path(self, path: SpatialPath) -> Optional[PathMatch]:
        """Match ``path`` at its first contiguous occurrence in this trace.

        Returns ``None`` when the edge sequence does not occur or when no point
        of the trace falls inside the path's covered range.
        """
        if not path:
            return None
        size = len(path)
        first = path[0]
        for order in range(len(self.edge_ids) - size + 1):
            if self.edge_ids[order] != first:
                continue
            if tuple(self.edge_ids[order:order + size]) != path.edge_ids:
                continue

            match = PathMatch(starting_order=order)
            for point in self.points_on_edge(first):
                if not covers(path.start_segment, point.edge_offset):
                    continue
                if size == 1 and not covers(path.end_segment, point.edge_offset):
                    continue
                match.start_points.append(point)
            for edge_id in path.edge_ids[1:-1]:
                match.inner_points.extend(self.points_on_edge(edge_id))
            if size > 1:
                match.end_points.extend(
                    point
                    for point in self.points_on_edge(path[-1])
                    if covers(path.end_segment, point.edge_offset)
                )
            return match if match.point_count > 0 else None
        return None

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"Trace(name={self.name!r}, points={len(self.points)}, edges={len(self.edge_ids)})"
