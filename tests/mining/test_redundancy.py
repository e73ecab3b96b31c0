from __future__ import annotations

from roadhotspot.mining.hotspot import Hotspot
from roadhotspot.mining.redundancy import is_redundant, remove_redundant
from roadhotspot.network.spatial_path import SpatialPath


def _hotspot(*edges, start=(0.0, 100.0)):
    return Hotspot(SpatialPath(tuple(edges), start))


def test_contained_paths_are_removed():
    long = _hotspot(1, 2, 3, 4)
    inner = _hotspot(2, 3, start=(10.0, 100.0))
    scattered = _hotspot(1, 3)
    other = _hotspot(7, 8)

    kept = remove_redundant([inner, long, scattered, other])

    assert kept == [long, scattered, other]
    assert is_redundant(inner, [long])


def test_equal_length_and_empty_paths_are_kept():
    first = _hotspot(1, 2)
    second = _hotspot(1, 2, start=(50.0, 100.0))
    empty = _hotspot()

    kept = remove_redundant([first, second, empty, _hotspot(1, 2, 3)])

    assert empty in kept
    assert first not in kept and second not in kept
    assert remove_redundant([first, second]) == [first, second]


def test_elimination_is_idempotent():
    hotspots = [
        _hotspot(1, 2, 3),
        _hotspot(2, 3),
        _hotspot(3),
        _hotspot(3, 4),
        _hotspot(2, 3, 4, 5),
        _hotspot(9),
    ]

    once = remove_redundant(hotspots)
    twice = remove_redundant(once)

    assert once == twice
    assert [h.path.edge_ids for h in once] == [(1, 2, 3), (2, 3, 4, 5), (9,)]
