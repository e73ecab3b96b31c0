from __future__ import annotations

import numpy as np
import pytest

from conftest import build_db, build_trace
from roadhotspot.network.spatial_path import SpatialPath
from roadhotspot.traces.domain_types import TracePoint
from roadhotspot.traces.trace import Trace
from roadhotspot.traces.trace_db import TraceDatabase


def _names(points):
    return sorted((point.trace_name, point.edge_id, point.edge_offset) for point in points)


def test_index_and_event_ratio(three_trace_db):
    assert three_trace_db.edge_traces[2] == {"A", "B", "C"}
    assert three_trace_db["A"].event_count == 1
    assert three_trace_db["A"].event_ratio == pytest.approx(1 / 3)
    assert three_trace_db["C"].edge_point_ids[2] == [1, 2]
    assert three_trace_db.total_events == 2


def test_duplicate_trace_names_rejected():
    with pytest.raises(ValueError, match="Duplicate trace name"):
        TraceDatabase([Trace("A", [1]), Trace("A", [2])])


def test_traces_on_path_buckets_points(three_trace_db):
    path = SpatialPath((1, 2, 3), (50.0, 100.0), (0.0, 50.0))

    support = three_trace_db.traces_on_path(path)

    assert support.trace_names == {"A", "B", "C"}
    assert support.starting_orders == {"A": 0, "B": 0, "C": 0}
    assert len(support.start_points) == 3
    assert _names(support.inner_points) == [
        ("A", 2, 40.0),
        ("B", 2, 60.0),
        ("C", 2, 20.0),
        ("C", 2, 85.0),
    ]
    assert len(support.end_points) == 3


def test_single_edge_path_applies_both_segments(three_trace_db):
    path = SpatialPath((2,), (40.0, 100.0), (0.0, 60.0))

    support = three_trace_db.traces_on_path(path)

    assert support.trace_names == {"A", "B"}
    assert _names(support.start_points) == [("A", 2, 40.0), ("B", 2, 60.0)]
    assert support.end_points == []


def test_traces_without_points_in_range_are_rejected(three_trace_db):
    support = three_trace_db.traces_on_path(SpatialPath((2,), (61.0, 84.0)))
    assert support.support == 0


def test_unknown_edges_and_empty_path_yield_nothing(three_trace_db):
    assert three_trace_db.traces_on_path(SpatialPath((1, 99))).support == 0
    assert three_trace_db.traces_on_path(SpatialPath()).support == 0
    assert three_trace_db.candidate_traces(SpatialPath((99, 1))) == set()


def test_path_must_be_contiguous_in_trace():
    db = build_db(
        build_trace("A", [1, 2, 3], [(1, 10.0), (3, 10.0)]),
        build_trace("B", [1, 3, 2], [(1, 10.0), (3, 10.0)]),
    )

    support = db.traces_on_path(SpatialPath((1, 2)))

    assert support.trace_names == {"A"}


def test_extend_groups_by_next_edge_and_never_grows_support():
    db = build_db(
        build_trace("A", [1, 2, 3], [(1, 10.0)]),
        build_trace("B", [1, 2, 4], [(1, 10.0)]),
        build_trace("C", [1, 2, 3], [(1, 10.0)]),
        build_trace("D", [1, 2], [(1, 10.0)]),
    )
    path = SpatialPath((1, 2), (10.0, 100.0), (0.0, 50.0))
    orders = db.traces_on_path(path).starting_orders

    results = dict((extended.edge_ids, group) for extended, group in db.extend(path, orders, 1))

    assert set(results) == {(1, 2, 3), (1, 2, 4)}
    assert results[(1, 2, 3)] == {"A": 0, "C": 0}
    assert all(len(group) <= len(orders) for group in results.values())
    for extended, _ in db.extend(path, orders, 1):
        assert extended.start_segment == (10.0, 100.0)
        assert extended.end_segment == (0.0, 100.0)

    assert [p.edge_ids for p, _ in db.extend(path, orders, 2)] == [(1, 2, 3)]


def test_define_threshold_events_absolute_and_relative():
    trace = Trace("A", [1])
    for value in ["0.1", "0.9", "bad", "0.5", "0.7"]:
        trace.add_point(0.0, 0.0, 1, 10.0, True, attributes={"Brake": value})
    db = TraceDatabase([trace])

    db.define_threshold_events("Brake", 0.6)
    assert [point.is_event for point in trace] == [False, True, False, False, True]
    assert trace.edge_event_ids[1] == [1, 4]
    assert trace.event_count == 2

    db.define_threshold_events("Brake", 50, relative=True)
    # median of [0.1, 0.9, 0.0, 0.5, 0.7] is 0.5
    assert [point.is_event for point in trace] == [False, True, False, False, True]

    db.define_events(lambda point: point.id == 0)
    assert trace.event_count == 1
    assert trace.edge_event_ids == {1: [0]}


def test_random_relabelling_shares_topology(three_trace_db):
    first = three_trace_db.with_random_events(np.random.default_rng(7))
    second = three_trace_db.with_random_events(np.random.default_rng(7))

    assert first.edge_traces is three_trace_db.edge_traces
    assert first["A"].edge_ids is three_trace_db["A"].edge_ids
    assert [p.is_event for p in first["C"]] == [p.is_event for p in second["C"]]
    # trace C has no events, so its ratio is 0 and nothing can be drawn
    assert first["C"].event_count == 0
    # original flags are untouched
    assert three_trace_db["A"][1].is_event
    assert three_trace_db.total_events == 2


def test_geographic_distance_between_points():
    start = TracePoint(0, "A", 0.0, 0.0, 1, 0.0, True)
    end = TracePoint(1, "A", 0.0, 0.001, 1, 100.0, True)

    assert start.geographic_distance(end) == pytest.approx(111.19, rel=1e-3)
    assert start.geographic_distance(start) == 0.0
