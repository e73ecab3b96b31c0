"""Road-network hotspot mining from map-matched GPS traces."""

__version__ = "0.1.0"
