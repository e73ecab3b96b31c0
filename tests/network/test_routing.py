from __future__ import annotations

import json

import pytest
from shapely.geometry import LineString

from roadhotspot.network.geodesy import haversine_m, linestring_length_m
from roadhotspot.network.routing import CachingRouter, RoadEdge, RoadNetworkRouter

NODES = {"a": (0.0, 0.0), "b": (0.001, 0.0), "c": (0.002, 0.0), "d": (0.003, 0.0)}


def _edge(edge_id, start, end, oneway=False):
    geometry = LineString([NODES[start], NODES[end]])
    return RoadEdge(
        edge_id=edge_id,
        from_node=start,
        to_node=end,
        length_m=linestring_length_m(geometry.coords),
        geometry=geometry,
        oneway=oneway,
    )


def _router(oneway_middle=False):
    return RoadNetworkRouter(
        [_edge(1, "a", "b"), _edge(2, "b", "c", oneway=oneway_middle), _edge(3, "c", "d")]
    )


def test_route_across_edges_sets_boundary_segments():
    router = _router()
    segment = haversine_m(0.0, 0.0, 0.0, 0.001)

    path = router.shortest_path(0.0005, 0.0, True, 0.0025, 0.0, True)

    assert path.edge_ids == (1, 2, 3)
    assert path.start_segment == pytest.approx((50.0, 100.0))
    assert path.end_segment == pytest.approx((0.0, 50.0))
    assert path.distance == pytest.approx(2 * segment, rel=1e-6)


def test_route_within_one_edge():
    router = _router()

    path = router.shortest_path(0.0002, 0.0, True, 0.0008, 0.0, True)

    assert path.edge_ids == (1,)
    assert path.start_segment == pytest.approx((20.0, 100.0))
    assert path.end_segment == pytest.approx((0.0, 80.0))
    assert path.distance == pytest.approx(0.6 * haversine_m(0.0, 0.0, 0.0, 0.001), rel=1e-6)


def test_reverse_travel_and_oneway_block():
    two_way = _router()
    backwards = two_way.shortest_path(0.0025, 0.0, False, 0.0005, 0.0, False)
    assert backwards.edge_ids == (3, 2, 1)
    assert backwards.start_segment == pytest.approx((0.0, 50.0))
    assert backwards.end_segment == pytest.approx((50.0, 100.0))

    assert _router(oneway_middle=True).shortest_path(0.0025, 0.0, False, 0.0005, 0.0, False) is None


def test_caching_router_memoises_results():
    router = CachingRouter(_router())

    first = router.shortest_path(0.0005, 0.0, True, 0.0025, 0.0, True)
    second = router.shortest_path(0.0005, 0.0, True, 0.0025, 0.0, True)

    assert first is second
    assert (router.hits, router.misses) == (1, 1)


def _feature(edge_id, start, end, **extra):
    properties = {"edge_id": edge_id, "from_node": start, "to_node": end, **extra}
    return {
        "type": "Feature",
        "properties": properties,
        "geometry": {"type": "LineString", "coordinates": [list(NODES[start]), list(NODES[end])]},
    }


def test_from_geojson(tmp_path):
    path = tmp_path / "roads.geojson"
    payload = {
        "type": "FeatureCollection",
        "features": [
            _feature(1, "a", "b", length=100.0),
            _feature(2, "b", "c", oneway="yes"),
        ],
    }
    path.write_text(json.dumps(payload), encoding="utf-8")

    router = RoadNetworkRouter.from_geojson(str(path))

    assert router.edges[1].length_m == 100.0
    assert router.edges[2].oneway is True
    assert router.graph.has_edge("b", "c") and not router.graph.has_edge("c", "b")


def test_from_geojson_requires_topology(tmp_path):
    path = tmp_path / "roads.geojson"
    feature = _feature(1, "a", "b")
    del feature["properties"]["to_node"]
    path.write_text(json.dumps({"type": "FeatureCollection", "features": [feature]}))

    with pytest.raises(ValueError, match="to_node"):
        RoadNetworkRouter.from_geojson(str(path))
