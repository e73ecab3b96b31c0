"""Hotspot mining strategies, scoring and post-processing."""

from .approx_hotspot import ApproxHotspot
from .condensed_graph_detector import CondensedGraphDetector
from .confidence import ConfidenceKind, density_ratio, likelihood_ratio
from .config import MiningConfig
from .dbscan_detector import DensityClusterDetector
from .detector import HotspotDetector
from .growth_detector import IncrementalGrowthDetector
from .hotspot import Hotspot
from .output import hotspots_to_frame, write_hotspots_csv
from .pairwise_detector import ExhaustivePairwiseDetector
from .pipeline import create_detector, mine_hotspots
from .redundancy import remove_redundant
from .significance import MonteCarloSignificanceTest

__all__ = [
    "ApproxHotspot",
    "CondensedGraphDetector",
    "ConfidenceKind",
    "create_detector",
    "density_ratio",
    "DensityClusterDetector",
    "ExhaustivePairwiseDetector",
    "Hotspot",
    "hotspots_to_frame",
    "HotspotDetector",
    "IncrementalGrowthDetector",
    "likelihood_ratio",
    "mine_hotspots",
    "MiningConfig",
    "MonteCarloSignificanceTest",
    "remove_redundant",
    "write_hotspots_csv",
]
