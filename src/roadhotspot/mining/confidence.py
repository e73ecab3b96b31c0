"""Likelihood-ratio and density-ratio confidence statistics."""

from __future__ import annotations

import math
import sys
from enum import Enum
from typing import Sequence

import numpy as np

# Smallest positive double; zero operands are floored to it instead of dividing by zero.
TINY = math.ulp(0.0)


class ConfidenceKind(str, Enum):
    LLR = "LLR"
    DENSITY_RATIO = "DensityRatio"

    @classmethod
    def parse(cls, value: "ConfidenceKind | str | None") -> "ConfidenceKind":
        if value is None:
            return cls.LLR
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for kind in cls:
            if kind.value.lower() == text or kind.name.lower() == text:
                return kind
        raise ValueError(f"Unknown confidence kind {value!r}; expected 'LLR' or 'DensityRatio'")


def _floored(values: np.ndarray) -> np.ndarray:
    return np.where(values == 0, TINY, values)


def _count_log(count: np.ndarray, rate: np.ndarray, zero_limit: bool) -> np.ndarray:
    product = count * np.log(rate)
    if zero_limit:
        # 0 * ln(0) taken as its limit, 0
        return np.where(count == 0, 0.0, product)
    return product


def likelihood_ratio_terms(
    events_in: Sequence[float],
    points_in: Sequence[float],
    events_total: Sequence[float],
    points_total: Sequence[float],
    zero_limit: bool = False,
) -> np.ndarray:
    """Per-trace one-sided binomial log-likelihood-ratio contributions.

    Traces whose in-path event rate does not exceed the out-of-path rate
    contribute 0. Degenerate traces may yield NaN or infinite terms; callers
    drop them. With ``zero_limit`` every zero-count term is 0 instead, which
    keeps all-event traces finite.
    """
    np_ = np.asarray(events_in, dtype=float)
    mup = np.asarray(points_in, dtype=float)
    ng = np.asarray(events_total, dtype=float)
    mug = np.asarray(points_total, dtype=float)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore", under="ignore"):
        rate_in = _floored(np_) / _floored(mup)
        rate_out = _floored(ng - np_) / _floored(mug - mup)
        rate_all = _floored(ng) / _floored(mug)
        llr = (
            _count_log(np_, rate_in, zero_limit)
            + _count_log(mup - np_, 1 - rate_in, zero_limit)
            + _count_log(ng - np_, rate_out, zero_limit)
            + _count_log((mug - mup) - (ng - np_), 1 - rate_out, zero_limit)
            - _count_log(ng, rate_all, zero_limit)
            - _count_log(mug - ng, 1 - rate_all, zero_limit)
        )
        return np.where(rate_in > rate_out, llr, 0.0)


def trace_likelihood_ratio(np_: int, mup: int, ng: int, mug: int) -> float:
    """Contribution of a single trace (may be NaN or infinite)."""
    return float(likelihood_ratio_terms([np_], [mup], [ng], [mug])[0])


def likelihood_ratio(
    events_in: Sequence[float],
    points_in: Sequence[float],
    events_total: Sequence[float],
    points_total: Sequence[float],
    zero_limit: bool = False,
) -> float:
    """Sum of the finite per-trace contributions."""
    terms = likelihood_ratio_terms(
        events_in, points_in, events_total, points_total, zero_limit=zero_limit
    )
    if terms.size == 0:
        return 0.0
    return float(terms[np.isfinite(terms)].sum())


def density_ratio(
    events_in: Sequence[float],
    points_in: Sequence[float],
    events_total: Sequence[float],
    points_total: Sequence[float],
) -> float:
    """Pooled in-path event density over pooled out-of-path event density."""
    e_in = float(np.sum(events_in))
    p_in = float(np.sum(points_in))
    e_all = float(np.sum(events_total))
    p_all = float(np.sum(points_total))

    e_out = e_all - e_in
    p_out = p_all - p_in
    density_in = e_in / (p_in or TINY)
    density_out = (e_out or TINY) / (p_out or TINY)
    ratio = density_in / (density_out or TINY)
    if math.isinf(ratio):
        return sys.float_info.max
    return ratio
