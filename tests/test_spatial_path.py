from __future__ import annotations

from roadhotspot.network.spatial_path import (
    FULL_SEGMENT,
    SpatialPath,
    covers,
    end_segment_for,
    start_segment_for,
)


def test_add_edge_keeps_start_and_resets_end():
    path = SpatialPath((1, 2), (30.0, 100.0), (0.0, 40.0), distance=5.0)
    extended = path.add_edge(3, distance=2.5)

    assert extended.edge_ids == (1, 2, 3)
    assert extended.start_segment == (30.0, 100.0)
    assert extended.end_segment == FULL_SEGMENT
    assert extended.distance == 7.5
    assert path.edge_ids == (1, 2)


def test_paths_hash_on_edges_and_segments_only():
    first = SpatialPath([1, 2], (10, 100), distance=1.0)
    second = SpatialPath((1, 2), (10.0, 100.0), distance=99.0)
    third = SpatialPath((1, 2), (20.0, 100.0))

    assert first == second
    assert len({first, second, third}) == 2


def test_contains_requires_contiguous_run():
    path = SpatialPath((4, 5, 6, 7))

    assert path.contains(SpatialPath((5, 6)))
    assert path.contains(SpatialPath((4, 5, 6, 7)))
    assert not path.contains(SpatialPath((5, 7)))
    assert not path.contains(SpatialPath((7, 8)))
    assert not path.contains(SpatialPath())


def test_segment_helpers_follow_direction():
    assert start_segment_for(30.0, True) == (30.0, 100.0)
    assert start_segment_for(30.0, False) == (0.0, 30.0)
    assert end_segment_for(70.0, True) == (0.0, 70.0)
    assert end_segment_for(70.0, False) == (70.0, 100.0)
    assert covers((30.0, 70.0), 30.0)
    assert covers((30.0, 70.0), 70.0)
    assert not covers((30.0, 70.0), 70.5)


def test_string_forms():
    path = SpatialPath((1, 2, 3), (25.0, 100.0), (0.0, 60.0))

    assert path.edge_string() == "1:2:3"
    assert str(path) == "1:2:3,StartOffset: (25.0, 100.0),EndOffset: (0.0, 60.0)"
    assert not SpatialPath()
