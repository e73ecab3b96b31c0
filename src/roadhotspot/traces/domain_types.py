"""Core dataclasses shared across the traces package."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from roadhotspot.network.geodesy import haversine_m


@dataclass(eq=False)
class TracePoint:
    """One map-matched GPS sample; ``id`` is its position within the trace."""

    id: int
    trace_name: str
    latitude: float
    longitude: float
    edge_id: int
    edge_offset: float
    edge_direction: bool
    is_event: bool = False
    attributes: Dict[str, str] = field(default_factory=dict)

    def geographic_distance(self, other: "TracePoint") -> float:
        """Great-circle distance to another point in metres."""
        return haversine_m(self.latitude, self.longitude, other.latitude, other.longitude)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return (
            f"{self.id}, {self.latitude}, {self.longitude}, {self.edge_id}, "
            f"{self.edge_offset}, {self.edge_direction}, {self.is_event}"
        )


@dataclass
class PathMatch:
    """Where a trace meets a path and which of its points fall inside it."""

    starting_order: int
    start_points: List[TracePoint] = field(default_factory=list)
    inner_points: List[TracePoint] = field(default_factory=list)
    end_points: List[TracePoint] = field(default_factory=list)

    @property
    def point_count(self) -> int:
        return len(self.start_points) + len(self.inner_points) + len(self.end_points)


@dataclass
class PathSupport:
    """Result of matching a path against the whole trace database."""

    trace_names: set = field(default_factory=set)
    starting_orders: Dict[str, int] = field(default_factory=dict)
    start_points: List[TracePoint] = field(default_factory=list)
    inner_points: List[TracePoint] = field(default_factory=list)
    end_points: List[TracePoint] = field(default_factory=list)

    @property
    def support(self) -> int:
        return len(self.trace_names)

    def all_points(self) -> List[TracePoint]:
        return self.start_points + self.inner_points + self.end_points
