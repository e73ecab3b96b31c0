"""Road network package exports."""

from .geodesy import haversine_m
from .routing import CachingRouter, EdgeLocator, RoadEdge, RoadNetworkRouter, RoutingOracle
from .spatial_path import FULL_SEGMENT, SpatialPath

__all__ = [
    "CachingRouter",
    "EdgeLocator",
    "FULL_SEGMENT",
    "haversine_m",
    "RoadEdge",
    "RoadNetworkRouter",
    "RoutingOracle",
    "SpatialPath",
]
