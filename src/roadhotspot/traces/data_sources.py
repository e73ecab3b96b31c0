"""Loaders that build a :class:`TraceDatabase` from per-trace CSV files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional

import pandas as pd

from .trace import Trace
from .trace_db import TraceDatabase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TraceColumns:
    """Column names of the point and edge CSV files."""

    latitude: str = "Latitude"
    longitude: str = "Longitude"
    edge_id: str = "EdgeId"
    edge_offset: str = "EdgeOffset"
    edge_direction: str = "EdgeDir"
    trace_edge_id: str = "EdgeId"

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, str]]) -> "TraceColumns":
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise TypeError("columns block must be a mapping of field name to CSV column")
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown trace column keys: {', '.join(unknown)}")
        return cls(**{key: str(value) for key, value in data.items()})

    @property
    def point_fields(self) -> List[str]:
        return [
            self.latitude,
            self.longitude,
            self.edge_id,
            self.edge_offset,
            self.edge_direction,
        ]


def _iter_csv_files(path: str, label: str) -> Iterator[Path]:
    source = Path(path)
    if source.is_file():
        yield source
    elif source.is_dir():
        yield from sorted(source.rglob("*.csv"))
    else:
        raise FileNotFoundError(f"{label} path does not exist: {path}")


def read_trace_points(csv_path: Path, columns: TraceColumns) -> Optional[Trace]:
    """Parse one point file into a trace; malformed rows are skipped."""
    frame = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    missing = [column for column in columns.point_fields if column not in frame.columns]
    if missing:
        logger.warning(
            "Skipping %s: missing point columns %s", os.path.basename(csv_path), ", ".join(missing)
        )
        return None

    lat = pd.to_numeric(frame[columns.latitude], errors="coerce")
    lon = pd.to_numeric(frame[columns.longitude], errors="coerce")
    edge = pd.to_numeric(frame[columns.edge_id], errors="coerce")
    offset = pd.to_numeric(frame[columns.edge_offset], errors="coerce")
    valid = (
        lat.notna()
        & lon.notna()
        & edge.notna()
        & offset.notna()
        & (edge >= 0)
        & (edge == edge.round())
        & offset.between(0.0, 100.0)
    )
    skipped = int((~valid).sum())
    if skipped and logger.isEnabledFor(logging.DEBUG):
        logger.debug("Skipped %d malformed rows in %s", skipped, os.path.basename(csv_path))

    extra_columns = [column for column in frame.columns if column not in columns.point_fields]
    direction = frame[columns.edge_direction].astype(str).str.strip() == "1"
    trace = Trace(csv_path.stem)
    for idx in frame.index[valid]:
        attributes: Dict[str, str] = {column: frame.at[idx, column] for column in extra_columns}
        trace.add_point(
            latitude=float(lat[idx]),
            longitude=float(lon[idx]),
            edge_id=int(edge[idx]),
            edge_offset=float(offset[idx]),
            edge_direction=bool(direction[idx]),
            attributes=attributes,
        )
    return trace


def read_trace_edges(csv_path: Path, columns: TraceColumns) -> List[int]:
    """Return the traversal-ordered edge ids of one edge file."""
    frame = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    if columns.trace_edge_id not in frame.columns:
        logger.warning(
            "Skipping %s: missing edge column %s", os.path.basename(csv_path), columns.trace_edge_id
        )
        return []
    edges = pd.to_numeric(frame[columns.trace_edge_id], errors="coerce")
    valid = edges.notna() & (edges >= 0) & (edges == edges.round())
    return [int(value) for value in edges[valid]]


def load_trace_database(
    points_path: str,
    edges_path: str,
    columns: Optional[TraceColumns] = None,
) -> TraceDatabase:
    """Build the trace database from point and edge CSV files or directories.

    Each file describes one trace named after the file stem. Edge files without
    a matching point file are ignored.
    """
    columns = columns or TraceColumns()
    traces: Dict[str, Trace] = {}
    for csv_path in _iter_csv_files(points_path, "Trace point"):
        trace = read_trace_points(csv_path, columns)
        if trace is None:
            continue
        traces[trace.name] = trace
    logger.info("Finished reading points: %d traces", len(traces))

    edge_files = 0
    for csv_path in _iter_csv_files(edges_path, "Trace edge"):
        trace = traces.get(csv_path.stem)
        if trace is None:
            logger.debug("No point file for edge file %s; ignoring", csv_path.name)
            continue
        for edge_id in read_trace_edges(csv_path, columns):
            trace.add_edge(edge_id)
        edge_files += 1

    database = TraceDatabase(traces.values())
    logger.info(
        "Finished reading edges: %d edge files, %d traces, %d distinct edges",
        edge_files,
        len(database),
        len(database.edge_traces),
    )
    return database
