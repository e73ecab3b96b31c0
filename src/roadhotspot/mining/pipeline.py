"""Glue that runs a configured strategy end to end on a trace database."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from roadhotspot.network.routing import RoutingOracle
from roadhotspot.traces.trace_db import TraceDatabase

from .condensed_graph_detector import CondensedGraphDetector
from .config import MiningConfig
from .dbscan_detector import DensityClusterDetector
from .detector import HotspotDetector
from .growth_detector import IncrementalGrowthDetector
from .pairwise_detector import ExhaustivePairwiseDetector
from .redundancy import remove_redundant
from .significance import MonteCarloSignificanceTest

logger = logging.getLogger(__name__)

ROUTED_STRATEGIES = {"pairwise", "dbscan"}


def create_detector(
    config: MiningConfig, router: Optional[RoutingOracle] = None
) -> HotspotDetector:
    """Instantiate the strategy named by ``config.strategy``."""
    if config.strategy in ROUTED_STRATEGIES and router is None:
        raise ValueError(f"Strategy {config.strategy!r} requires a routing oracle")
    thresholds = (config.support_threshold, config.confidence_threshold, config.confidence_kind)
    if config.strategy == "growth":
        return IncrementalGrowthDetector(*thresholds)
    if config.strategy == "condensed":
        return CondensedGraphDetector(*thresholds)
    if config.strategy == "pairwise":
        return ExhaustivePairwiseDetector(router, *thresholds)
    if config.strategy == "dbscan":
        return DensityClusterDetector(
            router,
            eps_meters=config.eps_meters,
            min_pts=config.min_pts,
            support_threshold=config.support_threshold,
            confidence_threshold=config.confidence_threshold,
            confidence_kind=config.confidence_kind,
        )
    raise ValueError(f"Unknown strategy {config.strategy!r}")


def apply_event_definition(trace_db: TraceDatabase, config: MiningConfig) -> None:
    if config.event_column is None:
        return
    trace_db.define_threshold_events(
        config.event_column, config.event_threshold, relative=config.relative_threshold
    )


def mine_hotspots(
    trace_db: TraceDatabase,
    config: MiningConfig,
    router: Optional[RoutingOracle] = None,
    on_trial: Optional[Callable[[int, float], None]] = None,
) -> HotspotDetector:
    """Build, optionally significance-test and de-duplicate hotspots."""
    detector = create_detector(config, router)
    detector.build(trace_db)

    if config.significance is not None:
        tester = MonteCarloSignificanceTest(
            significance=config.significance,
            simulations=config.simulations,
            seed=config.seed,
            workers=config.workers,
        )
        tester.apply(detector, trace_db, on_trial=on_trial)

    if config.remove_redundancy:
        detector.hotspots = remove_redundant(detector.hotspots)
    return detector
