"""Immutable road-network path with fractional boundary coverage."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, Tuple

FULL_SEGMENT: Tuple[float, float] = (0.0, 100.0)


def _as_segment(value: Iterable[float]) -> Tuple[float, float]:
    low, high = tuple(value)
    return float(low), float(high)


@dataclass(frozen=True)
class SpatialPath:
    """Ordered edge ids plus the covered offset range of the first/last edge."""

    edge_ids: Tuple[int, ...] = ()
    start_segment: Tuple[float, float] = FULL_SEGMENT
    end_segment: Tuple[float, float] = FULL_SEGMENT
    distance: float = field(default=0.0, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "edge_ids", tuple(int(edge) for edge in self.edge_ids))
        object.__setattr__(self, "start_segment", _as_segment(self.start_segment))
        object.__setattr__(self, "end_segment", _as_segment(self.end_segment))

    def __len__(self) -> int:
        return len(self.edge_ids)

    def __iter__(self) -> Iterator[int]:
        return iter(self.edge_ids)

    def __getitem__(self, index):
        return self.edge_ids[index]

    def __bool__(self) -> bool:
        return bool(self.edge_ids)

    def add_edge(self, edge_id: int, distance: float = 0.0) -> "SpatialPath":
        """Return a copy with ``edge_id`` appended and a full end segment."""
        return SpatialPath(
            self.edge_ids + (int(edge_id),),
            self.start_segment,
            FULL_SEGMENT,
            self.distance + float(distance),
        )

    def with_segments(
        self,
        start_segment: Tuple[float, float] | None = None,
        end_segment: Tuple[float, float] | None = None,
    ) -> "SpatialPath":
        return replace(
            self,
            start_segment=start_segment if start_segment is not None else self.start_segment,
            end_segment=end_segment if end_segment is not None else self.end_segment,
        )

    def contains(self, other: "SpatialPath") -> bool:
        """True when ``other``'s edge ids occur contiguously inside this path."""
        needle = other.edge_ids
        if not needle or len(needle) > len(self.edge_ids):
            return False
        first = needle[0]
        for order in range(len(self.edge_ids) - len(needle) + 1):
            if self.edge_ids[order] != first:
                continue
            if self.edge_ids[order:order + len(needle)] == needle:
                return True
        return False

    def edge_string(self) -> str:
        return ":".join(str(edge) for edge in self.edge_ids)

    def __str__(self) -> str:
        return (
            f"{self.edge_string()},StartOffset: {self.start_segment},"
            f"EndOffset: {self.end_segment}"
        )


def covers(segment: Tuple[float, float], offset: float) -> bool:
    """Inclusive range test used for boundary-edge points."""
    return segment[0] <= offset <= segment[1]


def start_segment_for(offset: float, direction: bool) -> Tuple[float, float]:
    """Start range beginning at a point and running in its travel direction."""
    return (float(offset), 100.0) if direction else (0.0, float(offset))


def end_segment_for(offset: float, direction: bool) -> Tuple[float, float]:
    """End range finishing at a point reached in its travel direction."""
    return (0.0, float(offset)) if direction else (float(offset), 100.0)
