from __future__ import annotations

import math
import sys

import pytest

from conftest import build_db, build_trace
from roadhotspot.mining.confidence import (
    ConfidenceKind,
    density_ratio,
    likelihood_ratio,
    trace_likelihood_ratio,
)
from roadhotspot.mining.hotspot import Hotspot
from roadhotspot.network.spatial_path import SpatialPath


def _expected_llr(np_, mup, ng, mug):
    r_in = np_ / mup
    r_out = (ng - np_) / (mug - mup)
    r_all = ng / mug
    return (
        np_ * math.log(r_in)
        + (mup - np_) * math.log(1 - r_in)
        + (ng - np_) * math.log(r_out)
        + ((mug - mup) - (ng - np_)) * math.log(1 - r_out)
        - ng * math.log(r_all)
        - (mug - ng) * math.log(1 - r_all)
    )


def test_llr_matches_closed_form():
    assert trace_likelihood_ratio(2, 4, 3, 10) == pytest.approx(_expected_llr(2, 4, 3, 10))


def test_llr_is_zero_when_inside_rate_not_higher():
    assert trace_likelihood_ratio(1, 4, 3, 10) == 0.0
    # equal rates inside and outside
    assert trace_likelihood_ratio(1, 5, 2, 10) == 0.0


def test_llr_sums_traces_and_drops_non_finite_terms():
    total = likelihood_ratio([2, 1, 1], [4, 4, 1], [3, 3, 1], [10, 10, 3])
    # third trace: every in-path point is an event, giving 0 * log(0)
    assert total == pytest.approx(_expected_llr(2, 4, 3, 10))
    assert likelihood_ratio([], [], [], []) == 0.0


def test_zero_limit_keeps_all_event_traces_finite():
    assert math.isnan(trace_likelihood_ratio(2, 2, 3, 6))

    bounded = likelihood_ratio([2], [2], [3], [6], zero_limit=True)
    # ln(1/4) + 3 ln(3/4) - 6 ln(1/2)
    assert bounded == pytest.approx(math.log(0.25) + 3 * math.log(0.75) + 6 * math.log(2))
    # finite traces are unaffected
    assert likelihood_ratio([2], [4], [3], [10], zero_limit=True) == pytest.approx(
        _expected_llr(2, 4, 3, 10)
    )


def test_density_ratio_pools_counts():
    assert density_ratio([2, 1], [4, 2], [3, 2], [10, 10]) == pytest.approx((3 / 6) / (2 / 14))


def test_density_ratio_clamps_overflow():
    # no events outside the path: density_out is floored to the smallest float
    assert density_ratio([2], [4], [2], [10]) == sys.float_info.max


def test_confidence_kind_parsing():
    assert ConfidenceKind.parse(None) is ConfidenceKind.LLR
    assert ConfidenceKind.parse("densityratio") is ConfidenceKind.DENSITY_RATIO
    assert ConfidenceKind.parse("llr") is ConfidenceKind.LLR
    with pytest.raises(ValueError, match="Unknown confidence kind"):
        ConfidenceKind.parse("chi2")


def test_hotspot_counts_supporting_traces_and_freezes(three_trace_db):
    path = SpatialPath((2,), (40.0, 100.0), (0.0, 60.0))
    support = three_trace_db.traces_on_path(path)
    hotspot = Hotspot.from_support(path, three_trace_db, support)

    assert hotspot.support == 2
    assert hotspot.trace_names == ["A", "B"]
    assert hotspot.point_count_total == {"A": 3, "B": 3}
    assert hotspot.total_event_count == 2
    assert not hotspot.is_scored
    assert hotspot.confidence == 0.0
    assert hotspot.p_value == 1.0

    with pytest.raises(RuntimeError):
        hotspot.add_traces(three_trace_db, ["C"], three_trace_db["C"].points)


def test_hotspot_ignores_candidates_without_points():
    db = build_db(
        build_trace("A", [1, 2], [(1, 10.0, True), (2, 10.0)]),
        build_trace("B", [1, 2], [(2, 10.0)]),
    )
    hotspot = Hotspot(SpatialPath((1,)), confidence_kind="DensityRatio")
    hotspot.add_traces(db, ["A", "B"], db["A"].points_on_edge(1))

    assert hotspot.support == 1
    assert hotspot.confidence_kind is ConfidenceKind.DENSITY_RATIO
    record = hotspot.to_record()
    assert record["path"] == "1"
    assert record["start_offset"] == "0-100"
    assert record["event_count"] == 1
