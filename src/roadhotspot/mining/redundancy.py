"""Post-hoc removal of hotspots contained in longer ones."""

from __future__ import annotations

import logging
from typing import List, Sequence

from .hotspot import Hotspot

logger = logging.getLogger(__name__)


def is_redundant(hotspot: Hotspot, others: Sequence[Hotspot]) -> bool:
    """True when a strictly longer hotspot contains ``hotspot``'s edge run."""
    path = hotspot.path
    if not path:
        return False
    return any(
        other is not hotspot and len(other.path) > len(path) and other.path.contains(path)
        for other in others
    )


def remove_redundant(hotspots: Sequence[Hotspot]) -> List[Hotspot]:
    """Return the hotspots that are not sub-paths of a longer accepted hotspot.

    Decisions are made against the full input, so the result does not depend
    on input order and a second pass removes nothing.
    """
    kept = [hotspot for hotspot in hotspots if not is_redundant(hotspot, hotspots)]
    logger.info("Redundancy elimination kept %d of %d hotspots", len(kept), len(hotspots))
    return kept
