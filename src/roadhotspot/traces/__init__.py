"""Trace package exports."""

from .data_sources import TraceColumns, load_trace_database
from .domain_types import PathMatch, PathSupport, TracePoint
from .trace import Trace
from .trace_db import TraceDatabase

__all__ = [
    "load_trace_database",
    "PathMatch",
    "PathSupport",
    "Trace",
    "TraceColumns",
    "TraceDatabase",
    "TracePoint",
]
