"""Density clustering of event points with a network-aware distance."""

from __future__ import annotations

import logging
from typing import Dict, List

import numpy as np
from sklearn.cluster import DBSCAN

from roadhotspot.network.geodesy import haversine_matrix_m
from roadhotspot.network.routing import RoutingOracle
from roadhotspot.network.spatial_path import SpatialPath
from roadhotspot.traces.domain_types import TracePoint
from roadhotspot.traces.trace_db import TraceDatabase

from .confidence import ConfidenceKind
from .detector import HotspotDetector
from .hotspot import Hotspot

logger = logging.getLogger(__name__)

NOISE = -1


class DensityClusterDetector(HotspotDetector):
    """DBSCAN over all event points.

    Two events are neighbours when they are at most ``eps_meters`` apart on
    the globe and the routed network distance between them is strictly below
    ``eps_meters``. ``min_pts`` counts neighbours excluding the point itself.
    """

    name = "dbscan"

    def __init__(
        self,
        router: RoutingOracle,
        eps_meters: float = 100.0,
        min_pts: int = 3,
        support_threshold: int = 1,
        confidence_threshold: float = 0.0,
        confidence_kind: ConfidenceKind | str = ConfidenceKind.LLR,
    ):
        super().__init__(support_threshold, confidence_threshold, confidence_kind)
        if eps_meters <= 0:
            raise ValueError("eps_meters must be positive")
        if int(min_pts) < 1:
            raise ValueError("min_pts must be at least 1")
        self.router = router
        self.eps_meters = float(eps_meters)
        self.min_pts = int(min_pts)
        self.labels: np.ndarray = np.empty(0, dtype=int)
        self.events: List[TracePoint] = []

    # ---------------------------------------------------------------- distance
    def distance_matrix(self, events: List[TracePoint]) -> np.ndarray:
        """Network distances between events; non-neighbours get a value above eps."""
        size = len(events)
        far = 2.0 * self.eps_meters + 1.0
        matrix = np.full((size, size), far, dtype=float)
        if size == 0:
            return matrix
        np.fill_diagonal(matrix, 0.0)

        geographic = haversine_matrix_m(
            [event.latitude for event in events], [event.longitude for event in events]
        )
        rows, cols = np.nonzero(geographic <= self.eps_meters)
        routed = 0
        for i, j in zip(rows.tolist(), cols.tolist()):
            if i == j:
                continue
            if geographic[i, j] == 0.0:
                matrix[i, j] = 0.0
                continue
            origin, destination = events[i], events[j]
            path = self.router.shortest_path(
                origin.longitude,
                origin.latitude,
                origin.edge_direction,
                destination.longitude,
                destination.latitude,
                destination.edge_direction,
            )
            routed += 1
            if path is not None and path.distance < self.eps_meters:
                matrix[i, j] = path.distance
        logger.debug("Routed %d event pairs inside the %.1f m prefilter", routed, self.eps_meters)
        return matrix

    # ------------------------------------------------------------------ mining
    def build(self, trace_db: TraceDatabase) -> List[Hotspot]:
        self.hotspots = []
        self.events = trace_db.event_points()
        if not self.events:
            self.labels = np.empty(0, dtype=int)
            self._log_summary(0)
            return self.hotspots

        matrix = self.distance_matrix(self.events)
        clustering = DBSCAN(
            eps=self.eps_meters, min_samples=self.min_pts + 1, metric="precomputed"
        )
        self.labels = clustering.fit_predict(matrix)

        clusters: Dict[int, List[TracePoint]] = {}
        for event, label in zip(self.events, self.labels.tolist()):
            if label == NOISE:
                continue
            clusters.setdefault(label, []).append(event)
        logger.debug(
            "DBSCAN produced %d clusters and %d noise events",
            len(clusters),
            int(np.sum(self.labels == NOISE)),
        )

        for label in sorted(clusters):
            hotspot = self._cluster_hotspot(trace_db, clusters[label])
            if self.accepts(hotspot):
                self.hotspots.append(hotspot)
        self._log_summary(len(clusters))
        return self.hotspots

    def _cluster_hotspot(self, trace_db: TraceDatabase, members: List[TracePoint]) -> Hotspot:
        edge_ids = list(dict.fromkeys(event.edge_id for event in members))
        owners = sorted({event.trace_name for event in members})
        points: List[TracePoint] = []
        for name in owners:
            trace = trace_db[name]
            for edge_id in edge_ids:
                points.extend(trace.points_on_edge(edge_id))
        hotspot = Hotspot(SpatialPath(tuple(edge_ids)), confidence_kind=self.confidence_kind)
        hotspot.add_traces(trace_db, owners, points)
        return hotspot

    def rebuild(
        self,
        trace_db: TraceDatabase,
        support_threshold: int,
        confidence_threshold: float,
        confidence_kind: ConfidenceKind | str,
    ) -> "DensityClusterDetector":
        detector = DensityClusterDetector(
            self.router,
            eps_meters=self.eps_meters,
            min_pts=self.min_pts,
            support_threshold=support_threshold,
            confidence_threshold=confidence_threshold,
            confidence_kind=confidence_kind,
        )
        detector.build(trace_db)
        return detector

    def __str__(self) -> str:
        return (
            f"Distance threshold: {self.eps_meters}; minPts threshold: {self.min_pts}.\n"
            + super().__str__()
        )
