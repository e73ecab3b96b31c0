from __future__ import annotations

from typing import Iterable, Sequence, Tuple

import pytest

from roadhotspot.traces.trace import Trace
from roadhotspot.traces.trace_db import TraceDatabase

# (edge_id, offset, is_event) or (edge_id, offset, is_event, direction)
PointSpec = Tuple


def build_trace(name: str, edges: Sequence[int], points: Iterable[PointSpec]) -> Trace:
    trace = Trace(name, edges)
    for spec in points:
        edge_id, offset = spec[0], spec[1]
        is_event = spec[2] if len(spec) > 2 else False
        direction = spec[3] if len(spec) > 3 else True
        trace.add_point(
            latitude=0.0,
            longitude=edge_id * 0.01 + offset * 1e-5,
            edge_id=edge_id,
            edge_offset=offset,
            edge_direction=direction,
            is_event=is_event,
        )
    return trace


def build_db(*traces: Trace) -> TraceDatabase:
    return TraceDatabase(traces)


@pytest.fixture
def three_trace_db() -> TraceDatabase:
    """A and B carry one event each on edge 2; C has no events and no point between them."""
    edges = [1, 2, 3]
    return build_db(
        build_trace("A", edges, [(1, 50.0), (2, 40.0, True), (3, 50.0)]),
        build_trace("B", edges, [(1, 50.0), (2, 60.0, True), (3, 50.0)]),
        build_trace("C", edges, [(1, 50.0), (2, 20.0), (2, 85.0), (3, 50.0)]),
    )


@pytest.fixture
def corridor_db() -> TraceDatabase:
    """Events on edges 1 and 4 of a shared corridor, event-free edges 2, 3 and 5."""
    edges = [1, 2, 3, 4, 5]
    return build_db(
        build_trace("A", edges, [(1, 30.0, True), (2, 50.0), (3, 50.0), (4, 60.0, True), (5, 50.0)]),
        build_trace("B", edges, [(1, 40.0, True), (2, 50.0), (3, 50.0), (4, 70.0, True), (5, 50.0)]),
        build_trace("C", edges, [(1, 50.0), (2, 50.0), (3, 50.0), (4, 50.0), (5, 50.0)]),
    )
