"""Routing oracle interface and a networkx-backed road network router."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

import networkx as nx
import pandas as pd
from shapely.geometry import LineString, Point, shape
from shapely.strtree import STRtree

from .geodesy import linestring_length_m
from .spatial_path import SpatialPath, end_segment_for, start_segment_for

logger = logging.getLogger(__name__)


class RoutingOracle(Protocol):
    """Turns two geographic points into a shortest path of network edges.

    Returns ``None`` when no route exists; callers treat that as zero support.
    """

    def shortest_path(
        self,
        origin_lon: float,
        origin_lat: float,
        origin_direction: bool,
        dest_lon: float,
        dest_lat: float,
        dest_direction: bool,
    ) -> Optional[SpatialPath]:
        ...


@dataclass(frozen=True)
class RoadEdge:
    """Road segment between two network nodes."""

    edge_id: int
    from_node: str
    to_node: str
    length_m: float
    geometry: LineString
    oneway: bool = False


@dataclass(frozen=True)
class ResolvedPoint:
    edge: RoadEdge
    offset: float


class EdgeLocator:
    """Spatial helper that snaps geographic points to the nearest road edge."""

    def __init__(self, edges: Sequence[RoadEdge]):
        self._edges = [edge for edge in edges if not edge.geometry.is_empty]
        self._sindex = STRtree([edge.geometry for edge in self._edges]) if self._edges else None

    def resolve(self, lon: float, lat: float) -> Optional[ResolvedPoint]:
        """Return the nearest edge and the point's offset along it in [0, 100]."""
        if self._sindex is None:
            return None
        point = Point(lon, lat)
        tree_idx = self._sindex.nearest(point)
        if tree_idx is None:
            return None
        edge = self._edges[int(tree_idx)]
        if edge.geometry.length <= 0:
            return ResolvedPoint(edge=edge, offset=0.0)
        offset = edge.geometry.project(point, normalized=True) * 100.0
        return ResolvedPoint(edge=edge, offset=float(min(max(offset, 0.0), 100.0)))


class RoadNetworkRouter:
    """Shortest-path oracle over a directed road graph weighted by length."""

    def __init__(self, edges: Iterable[RoadEdge]):
        self.edges: Dict[int, RoadEdge] = {edge.edge_id: edge for edge in edges}
        self.locator = EdgeLocator(list(self.edges.values()))
        self.graph = nx.DiGraph()
        for edge in self.edges.values():
            self._add_arc(edge.from_node, edge.to_node, edge)
            if not edge.oneway:
                self._add_arc(edge.to_node, edge.from_node, edge)
        logger.info(
            "Road network ready: %d edges, %d nodes, %d arcs",
            len(self.edges),
            self.graph.number_of_nodes(),
            self.graph.number_of_edges(),
        )

    def _add_arc(self, upstream: str, downstream: str, edge: RoadEdge) -> None:
        existing = self.graph.get_edge_data(upstream, downstream)
        if existing is not None and existing["length"] <= edge.length_m:
            return
        self.graph.add_edge(upstream, downstream, length=edge.length_m, edge_id=edge.edge_id)

    @classmethod
    def from_geojson(cls, path: str) -> "RoadNetworkRouter":
        """Load LineString road features carrying ``edge_id``/``from_node``/``to_node``."""
        frame = _load_geojson_dataframe(path)
        missing = [col for col in ("edge_id", "from_node", "to_node") if col not in frame.columns]
        if missing:
            raise ValueError(
                f"GeoJSON file must have {', '.join(missing)} properties on every road feature."
            )
        edges: List[RoadEdge] = []
        for row in frame.itertuples(index=False):
            geometry = getattr(row, "geometry")
            if not isinstance(geometry, LineString) or geometry.is_empty:
                continue
            length = _to_length(getattr(row, "length", None))
            if length is None:
                length = linestring_length_m(geometry.coords)
            edges.append(
                RoadEdge(
                    edge_id=int(getattr(row, "edge_id")),
                    from_node=str(getattr(row, "from_node")),
                    to_node=str(getattr(row, "to_node")),
                    length_m=length,
                    geometry=geometry,
                    oneway=_to_bool(getattr(row, "oneway", False)),
                )
            )
        return cls(edges)

    def shortest_path(
        self,
        origin_lon: float,
        origin_lat: float,
        origin_direction: bool,
        dest_lon: float,
        dest_lat: float,
        dest_direction: bool,
    ) -> Optional[SpatialPath]:
        origin = self.locator.resolve(origin_lon, origin_lat)
        dest = self.locator.resolve(dest_lon, dest_lat)
        if origin is None or dest is None:
            return None

        start_segment = start_segment_for(origin.offset, origin_direction)
        end_segment = end_segment_for(dest.offset, dest_direction)
        origin_edge, dest_edge = origin.edge, dest.edge

        if origin_edge.edge_id == dest_edge.edge_id and origin_direction == dest_direction:
            forward = (
                dest.offset >= origin.offset if origin_direction else dest.offset <= origin.offset
            )
            if forward:
                distance = abs(dest.offset - origin.offset) / 100.0 * origin_edge.length_m
                if distance <= 0:
                    # Degenerate route without two distinct shape points.
                    return None
                return SpatialPath((origin_edge.edge_id,), start_segment, end_segment, distance)

        exit_node = origin_edge.to_node if origin_direction else origin_edge.from_node
        entry_node = dest_edge.from_node if dest_direction else dest_edge.to_node
        head = _remaining_length(origin_edge, origin.offset, origin_direction)
        tail = _covered_length(dest_edge, dest.offset, dest_direction)

        try:
            nodes = nx.shortest_path(self.graph, exit_node, entry_node, weight="length")
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            logger.debug(
                "No route between edge %s and edge %s", origin_edge.edge_id, dest_edge.edge_id
            )
            return None

        edge_ids = [origin_edge.edge_id]
        distance = head
        for upstream, downstream in zip(nodes, nodes[1:]):
            data = self.graph[upstream][downstream]
            edge_ids.append(int(data["edge_id"]))
            distance += float(data["length"])
        edge_ids.append(dest_edge.edge_id)
        distance += tail
        return SpatialPath(tuple(edge_ids), start_segment, end_segment, distance)


class CachingRouter:
    """Memoises another oracle; routing calls repeat heavily during mining."""

    def __init__(self, oracle: RoutingOracle):
        self.oracle = oracle
        self._cache: Dict[Tuple, Optional[SpatialPath]] = {}
        self.hits = 0
        self.misses = 0

    def shortest_path(
        self,
        origin_lon: float,
        origin_lat: float,
        origin_direction: bool,
        dest_lon: float,
        dest_lat: float,
        dest_direction: bool,
    ) -> Optional[SpatialPath]:
        key = (
            float(origin_lon),
            float(origin_lat),
            bool(origin_direction),
            float(dest_lon),
            float(dest_lat),
            bool(dest_direction),
        )
        if key in self._cache:
            self.hits += 1
            return self._cache[key]
        self.misses += 1
        path = self.oracle.shortest_path(*key)
        self._cache[key] = path
        return path


def _remaining_length(edge: RoadEdge, offset: float, direction: bool) -> float:
    fraction = (100.0 - offset) / 100.0 if direction else offset / 100.0
    return fraction * edge.length_m


def _covered_length(edge: RoadEdge, offset: float, direction: bool) -> float:
    fraction = offset / 100.0 if direction else (100.0 - offset) / 100.0
    return fraction * edge.length_m


def _to_length(value: object) -> Optional[float]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return False
    return str(value).strip().lower() in {"1", "true", "yes", "y"}


def _load_geojson_dataframe(path: str) -> pd.DataFrame:
    """Read a GeoJSON file into a pandas DataFrame with shapely geometries."""
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    features = payload.get("features") or []
    rows = []
    for feature in features:
        properties = feature.get("properties") or {}
        geometry = feature.get("geometry")
        geom = shape(geometry) if geometry else None
        rows.append({**properties, "geometry": geom})
    return pd.DataFrame(rows)
