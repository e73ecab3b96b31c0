from __future__ import annotations

import textwrap

import pytest

from roadhotspot.mining.condensed_graph_detector import CondensedGraphDetector
from roadhotspot.mining.config import MiningConfig
from roadhotspot.mining.confidence import ConfidenceKind
from roadhotspot.mining.dbscan_detector import DensityClusterDetector
from roadhotspot.mining.pipeline import create_detector


def test_mining_config_roundtrip(tmp_path):
    yaml_text = textwrap.dedent(
        """
        strategy: dbscan
        support_threshold: 3
        confidence_threshold: 1.5
        confidence_kind: DensityRatio
        significance: 0.05
        simulations: 20
        seed: 7
        eps_meters: 75
        min_pts: 4
        event_column: Brake
        event_threshold: 0.3
        relative_threshold: true
        columns:
          latitude: lat
          longitude: lon
        """
    )
    config_path = tmp_path / "mining.yaml"
    config_path.write_text(yaml_text, encoding="utf-8")

    config = MiningConfig.from_yaml(config_path)

    assert config.strategy == "dbscan"
    assert config.support_threshold == 3
    assert config.confidence_kind is ConfidenceKind.DENSITY_RATIO
    assert config.significance == pytest.approx(0.05)
    assert config.eps_meters == pytest.approx(75.0)
    assert config.columns.latitude == "lat"
    assert config.columns.edge_id == "EdgeId"
    assert config.remove_redundancy is True

    out_path = tmp_path / "roundtrip" / "mining.yaml"
    config.to_yaml(out_path)
    reloaded = MiningConfig.from_yaml(out_path)

    assert reloaded == config


def test_defaults_and_overrides():
    config = MiningConfig()

    assert config.strategy == "condensed"
    assert config.confidence_kind is ConfidenceKind.LLR
    assert config.significance is None

    overridden = config.with_overrides(support_threshold=5, strategy=None, confidence_kind="llr")
    assert overridden.support_threshold == 5
    assert overridden.strategy == "condensed"
    assert config.with_overrides() is config


@pytest.mark.parametrize(
    "data",
    [
        {"strategy": "magic"},
        {"support_threshold": 0},
        {"confidence_kind": "chi2"},
        {"significance": 1.5},
        {"simulations": 0},
        {"eps_meters": -1},
        {"min_pts": 0},
        {"event_column": "Brake"},
        {"unknown_key": 1},
    ],
)
def test_invalid_values_rejected(data):
    with pytest.raises(ValueError):
        MiningConfig.from_mapping(data)


def test_missing_yaml(tmp_path):
    with pytest.raises(FileNotFoundError):
        MiningConfig.from_yaml(tmp_path / "absent.yaml")


def test_create_detector_requires_router_for_routed_strategies():
    with pytest.raises(ValueError, match="requires a routing oracle"):
        create_detector(MiningConfig(strategy="pairwise"))

    assert isinstance(create_detector(MiningConfig()), CondensedGraphDetector)
    dbscan = create_detector(MiningConfig(strategy="dbscan", eps_meters=20), router=object())
    assert isinstance(dbscan, DensityClusterDetector)
    assert dbscan.eps_meters == 20.0
