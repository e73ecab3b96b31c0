"""Tabular export of mined hotspots."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from .hotspot import Hotspot

logger = logging.getLogger(__name__)

HOTSPOT_COLUMNS = [
    "support",
    "confidence",
    "p_value",
    "event_count",
    "point_count",
    "path",
    "start_offset",
    "end_offset",
]


def hotspots_to_frame(hotspots: Iterable[Hotspot]) -> pd.DataFrame:
    """One row per hotspot, sorted by descending confidence then support."""
    frame = pd.DataFrame([hotspot.to_record() for hotspot in hotspots], columns=HOTSPOT_COLUMNS)
    if frame.empty:
        return frame
    return frame.sort_values(
        ["confidence", "support"], ascending=[False, False], kind="mergesort"
    ).reset_index(drop=True)


def write_hotspots_csv(hotspots: Iterable[Hotspot], output_path: str | Path) -> pd.DataFrame:
    frame = hotspots_to_frame(hotspots)
    dest = Path(output_path)
    dest.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(dest, index=False)
    logger.info("Wrote %d hotspots to %s", len(frame), dest)
    return frame
