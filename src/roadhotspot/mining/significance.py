"""Monte Carlo significance test shared by every mining strategy."""

from __future__ import annotations

import logging
import math
import multiprocessing as mp
import os
from typing import Callable, List, Optional

import numpy as np

from roadhotspot.traces.trace_db import TraceDatabase

from .detector import HotspotDetector
from .hotspot import Hotspot

logger = logging.getLogger(__name__)

WORKER_DETECTOR: HotspotDetector | None = None
WORKER_TRACE_DB: TraceDatabase | None = None


def _init_worker(payload: dict) -> None:
    """Initialise the shared detector and database inside each worker process."""

    global WORKER_DETECTOR, WORKER_TRACE_DB
    WORKER_DETECTOR = payload["detector"]
    WORKER_TRACE_DB = payload["trace_db"]


def run_trial(
    detector: HotspotDetector, trace_db: TraceDatabase, seed: np.random.SeedSequence
) -> float:
    """Largest confidence mined from one random relabelling of ``trace_db``."""
    rng = np.random.default_rng(seed)
    scratch = trace_db.with_random_events(rng)
    trial = detector.rebuild(
        scratch,
        detector.support_threshold,
        detector.confidence_threshold,
        detector.confidence_kind,
    )
    return trial.largest_confidence


def _run_worker_trial(seed: np.random.SeedSequence) -> float:
    if WORKER_DETECTOR is None or WORKER_TRACE_DB is None:
        raise RuntimeError("Worker process was not initialised")
    return run_trial(WORKER_DETECTOR, WORKER_TRACE_DB, seed)


class MonteCarloSignificanceTest:
    """Filters hotspots whose confidence is not extreme under random labelling.

    Each trial relabels every trace's points as Bernoulli draws at that trace's
    event ratio, re-mines with the same strategy and thresholds, and records
    the largest confidence found.
    """

    def __init__(
        self,
        significance: float = 0.05,
        simulations: int = 100,
        seed: Optional[int] = None,
        workers: int = 1,
    ):
        if not 0.0 < float(significance) < 1.0:
            raise ValueError("significance must lie strictly between 0 and 1")
        if int(simulations) <= 0:
            raise ValueError("simulations must be positive")
        self.significance = float(significance)
        self.simulations = int(simulations)
        self.seed = seed
        self.workers = max(1, int(workers))
        self.maxima: List[float] = []
        self.threshold_order = 0

    def simulate(
        self,
        detector: HotspotDetector,
        trace_db: TraceDatabase,
        on_trial: Optional[Callable[[int, float], None]] = None,
    ) -> List[float]:
        """Run every trial and return the sorted maxima."""
        seeds = np.random.SeedSequence(self.seed).spawn(self.simulations)
        maxima: List[float] = []

        def _record(value: float) -> None:
            maxima.append(value)
            logger.debug(
                "Finished %d / %d simulations; largest confidence %s",
                len(maxima),
                self.simulations,
                value,
            )
            if on_trial is not None:
                on_trial(len(maxima), value)

        if self.workers == 1:
            for seed in seeds:
                _record(run_trial(detector, trace_db, seed))
        else:
            payload = {"detector": detector, "trace_db": trace_db}
            ctx = mp.get_context("spawn" if os.name == "nt" else "fork")
            with ctx.Pool(
                processes=self.workers,
                initializer=_init_worker,
                initargs=(payload,),
            ) as pool:
                for value in pool.imap_unordered(_run_worker_trial, seeds, chunksize=1):
                    _record(value)

        maxima.sort()
        self.maxima = maxima
        return maxima

    def apply(
        self,
        detector: HotspotDetector,
        trace_db: TraceDatabase,
        on_trial: Optional[Callable[[int, float], None]] = None,
    ) -> List[Hotspot]:
        """Drop non-significant hotspots from ``detector`` and set p-values on the rest."""
        maxima = self.simulate(detector, trace_db, on_trial=on_trial)
        total = len(maxima)
        order = max(int(math.floor(total - self.significance * total - 1)), 0)
        self.threshold_order = order
        threshold = maxima[order]
        extreme = maxima[order:]

        kept: List[Hotspot] = []
        for hotspot in detector.hotspots:
            if hotspot.confidence < threshold:
                continue
            hotspot.p_value = sum(1 for value in extreme if value > hotspot.confidence) / total
            if hotspot.p_value > self.significance:
                continue
            kept.append(hotspot)

        logger.info(
            "Significance test kept %d of %d hotspots (threshold %s at order %d of %d)",
            len(kept),
            len(detector.hotspots),
            threshold,
            order,
            total,
        )
        detector.hotspots = kept
        return kept
