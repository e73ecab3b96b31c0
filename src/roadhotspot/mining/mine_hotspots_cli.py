"""CLI that mines road-network hotspots from map-matched trace CSV files."""

from __future__ import annotations

import argparse
import logging
from time import perf_counter
from typing import Iterable

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from roadhotspot.mining.config import STRATEGIES, MiningConfig
from roadhotspot.mining.output import write_hotspots_csv
from roadhotspot.mining.pipeline import ROUTED_STRATEGIES, apply_event_definition, mine_hotspots
from roadhotspot.network.routing import CachingRouter, RoadNetworkRouter
from roadhotspot.traces.data_sources import load_trace_database

DEFAULT_OUTPUT = "output/hotspots.csv"


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mine statistically significant hotspots from map-matched GPS traces."
    )
    parser.add_argument("--points", required=True, help="Trace point CSV file or directory.")
    parser.add_argument("--edges", required=True, help="Trace edge CSV file or directory.")
    parser.add_argument("--config", default=None, help="Optional YAML mining configuration.")
    parser.add_argument(
        "--road-network",
        default=None,
        help="GeoJSON road network (required by the pairwise and dbscan strategies).",
    )
    parser.add_argument("--output", default=DEFAULT_OUTPUT, help="Destination hotspot CSV.")
    parser.add_argument("--strategy", choices=STRATEGIES, default=None, help="Mining strategy.")
    parser.add_argument("--support", type=int, default=None, help="Support threshold.")
    parser.add_argument("--confidence", type=float, default=None, help="Confidence threshold.")
    parser.add_argument(
        "--confidence-kind",
        default=None,
        help="Confidence statistic: LLR or DensityRatio.",
    )
    parser.add_argument(
        "--significance",
        type=float,
        default=None,
        help="Run the Monte Carlo test at this significance level.",
    )
    parser.add_argument("--simulations", type=int, default=None, help="Monte Carlo trials.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the Monte Carlo trials.")
    parser.add_argument(
        "--num-workers",
        type=int,
        default=None,
        help="Worker processes for the Monte Carlo trials.",
    )
    parser.add_argument("--eps", type=float, default=None, help="DBSCAN radius in metres.")
    parser.add_argument("--min-pts", type=int, default=None, help="DBSCAN neighbour count.")
    parser.add_argument(
        "--event-column",
        default=None,
        help="Point attribute column that defines events.",
    )
    parser.add_argument(
        "--event-threshold",
        type=float,
        default=None,
        help="Values above this threshold mark an event.",
    )
    parser.add_argument(
        "--relative-threshold",
        action="store_true",
        default=None,
        help="Treat --event-threshold as a per-trace percentile.",
    )
    parser.add_argument(
        "--keep-redundant",
        action="store_true",
        help="Keep hotspots contained in longer hotspots.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Verbosity for the CLI logger.",
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )


def build_config(args: argparse.Namespace) -> MiningConfig:
    config = MiningConfig.from_yaml(args.config) if args.config else MiningConfig()
    return config.with_overrides(
        strategy=args.strategy,
        support_threshold=args.support,
        confidence_threshold=args.confidence,
        confidence_kind=args.confidence_kind,
        significance=args.significance,
        simulations=args.simulations,
        seed=args.seed,
        workers=args.num_workers,
        eps_meters=args.eps,
        min_pts=args.min_pts,
        event_column=args.event_column,
        event_threshold=args.event_threshold,
        relative_threshold=args.relative_threshold,
        remove_redundancy=False if args.keep_redundant else None,
    )


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)
    config = build_config(args)
    start = perf_counter()

    router = None
    if config.strategy in ROUTED_STRATEGIES:
        if not args.road_network:
            raise SystemExit(f"--road-network is required for the {config.strategy} strategy")
        logging.info("Loading road network from %s", args.road_network)
        router = CachingRouter(RoadNetworkRouter.from_geojson(args.road_network))

    logging.info("Loading traces from %s and %s", args.points, args.edges)
    trace_db = load_trace_database(args.points, args.edges, config.columns)
    apply_event_definition(trace_db, config)
    logging.info(
        "Mining with %s: support>=%d, confidence>=%s (%s)",
        config.strategy,
        config.support_threshold,
        config.confidence_threshold,
        config.confidence_kind.value,
    )

    progress_console = Console(stderr=True)
    progress = Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(bar_width=None),
        TaskProgressColumn(),
        TextColumn("{task.completed:,} trials", justify="right"),
        TimeElapsedColumn(),
        console=progress_console,
        transient=True,
        disable=not progress_console.is_terminal,
    )
    with progress:
        task_id = None
        if config.significance is not None:
            task_id = progress.add_task("Monte Carlo trials", total=config.simulations)

        def _advance(done: int, largest: float) -> None:
            if task_id is not None:
                progress.advance(task_id, 1)

        detector = mine_hotspots(trace_db, config, router=router, on_trial=_advance)

    if config.significance is not None:
        logging.info(
            "Significance level %s over %d simulations", config.significance, config.simulations
        )
    if isinstance(router, CachingRouter):
        logging.debug("Routing cache: %d hits, %d misses", router.hits, router.misses)

    write_hotspots_csv(detector.hotspots, args.output)
    logging.info(
        "Hotspot mining complete: %d hotspots in %.1fs",
        len(detector.hotspots),
        perf_counter() - start,
    )


if __name__ == "__main__":
    main()
