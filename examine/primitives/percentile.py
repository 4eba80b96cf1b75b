"""Weighted percentiles under five interpolation rules, plus Tukey's hinges.

All rules work on a FrequencyTable (ascending unique values y, summed
weights c, cumulative weights cc, total weight W) and return None when
W is zero.
"""
from __future__ import annotations

import math
from typing import Callable, Dict, Optional, Union

import numpy as np

from ..types import FrequencyTable, Hinges, PercentileRule
from .frequency import build_frequency_table


def _value_at(freq: FrequencyTable, cumulative: np.ndarray, position: float) -> float:
    """Value of the first unique entry whose cumulative weight reaches position."""
    idx = int(np.searchsorted(cumulative, position, side="left"))
    return float(freq.y[min(idx, len(freq) - 1)])


def _same(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=1e-12, abs_tol=1e-12)


def percentile_haverage(freq: FrequencyTable, p: float) -> Optional[float]:
    """Interpolate between order statistics at position (W + 1)p."""
    if freq.W == 0:
        return None
    r = (freq.W + 1) * p / 100
    if r <= 1:
        return float(freq.y[0])
    if r >= freq.W:
        return float(freq.y[-1])

    lower_pos = math.floor(r)
    upper_pos = math.ceil(r)
    lower = _value_at(freq, freq.cc, lower_pos)
    upper = _value_at(freq, freq.cc, upper_pos)
    frac = r - lower_pos
    return (1 - frac) * lower + frac * upper


def percentile_waverage(freq: FrequencyTable, p: float) -> Optional[float]:
    """Weighted average at position Wp."""
    if freq.W == 0:
        return None
    tc1 = freq.W * p / 100
    if tc1 <= 0:
        return float(freq.y[0])
    if tc1 >= freq.W:
        return float(freq.y[-1])

    k1 = int(np.searchsorted(freq.cc, tc1, side="left"))
    if k1 >= len(freq):
        return float(freq.y[-1])
    cc_prev = freq.cc[k1 - 1] if k1 > 0 else 0.0
    y_prev = freq.y[k1 - 1] if k1 > 0 else freq.y[0]
    y_k = freq.y[k1]
    w_k = freq.c[k1]
    if w_k == 0:
        return float(y_k)
    g = (tc1 - cc_prev) / w_k
    return float((1 - g) * y_prev + g * y_k)


def percentile_round(freq: FrequencyTable, p: float) -> Optional[float]:
    """Observation closest to position Wp."""
    if freq.W == 0:
        return None
    rank = math.floor(freq.W * p / 100 + 0.5)
    if rank < 1:
        return float(freq.y[0])
    return _value_at(freq, freq.cc, rank)


def percentile_empirical(freq: FrequencyTable, p: float) -> Optional[float]:
    """Inverse of the empirical distribution function."""
    if freq.W == 0:
        return None
    return _value_at(freq, freq.cc, freq.W * p / 100)


def percentile_aempirical(freq: FrequencyTable, p: float) -> Optional[float]:
    """Empirical distribution function, averaging when Wp hits a cumulative weight exactly."""
    if freq.W == 0:
        return None
    np_ = freq.W * p / 100
    j = min(int(np.searchsorted(freq.cc, np_, side="left")), len(freq) - 1)
    if np_ > 0 and j < len(freq) - 1 and _same(freq.cc[j], np_):
        return float((freq.y[j] + freq.y[j + 1]) / 2)
    return float(freq.y[j])


PERCENTILE_RULES: Dict[PercentileRule, Callable[[FrequencyTable, float], Optional[float]]] = {
    PercentileRule.HAVERAGE: percentile_haverage,
    PercentileRule.WAVERAGE: percentile_waverage,
    PercentileRule.ROUND: percentile_round,
    PercentileRule.EMPIRICAL: percentile_empirical,
    PercentileRule.AEMPIRICAL: percentile_aempirical,
}


def parse_percentile_rule(rule: Union[str, PercentileRule]) -> PercentileRule:
    """Resolve a rule name (case-insensitive). Raises ValueError if unknown."""
    if isinstance(rule, PercentileRule):
        return rule
    try:
        return PercentileRule(str(rule).strip().lower())
    except ValueError:
        raise ValueError(
            f"Unknown percentile rule: {rule}. "
            f"Valid: {[r.value for r in PercentileRule]}"
        ) from None


def select_percentile(
    freq: FrequencyTable,
    p: float,
    rule: Union[str, PercentileRule] = PercentileRule.HAVERAGE,
) -> Optional[float]:
    """Percentile p (0-100) of a frequency table under the named rule."""
    if not 0 <= p <= 100:
        raise ValueError(f"percentile must be between 0 and 100, got {p}")
    return PERCENTILE_RULES[parse_percentile_rule(rule)](freq, p)


def weighted_percentile(
    values: Union[list, np.ndarray],
    weights: Union[list, np.ndarray, None],
    p: float,
    rule: Union[str, PercentileRule] = PercentileRule.HAVERAGE,
) -> Optional[float]:
    """Percentile of raw parallel value/weight arrays."""
    return select_percentile(build_frequency_table(values, weights), p, rule)


def tukey_hinges(freq: FrequencyTable) -> Optional[Hinges]:
    """Tukey's hinges with weights rounded to integer repeat counts (minimum 1).

    Hinge depth is (floor(median depth) + 1) / 2; a half-integer depth
    averages the two neighbouring order statistics.
    """
    if freq.W == 0:
        return None
    counts = np.maximum(1.0, np.floor(freq.c + 0.5))
    cum = np.cumsum(counts)
    n = int(cum[-1])

    def at_depth(depth: float) -> float:
        lo = _value_at(freq, cum, math.floor(depth))
        hi = _value_at(freq, cum, math.ceil(depth))
        return (lo + hi) / 2

    median_depth = (n + 1) / 2
    hinge_depth = (math.floor(median_depth) + 1) / 2
    return Hinges(
        lower=at_depth(hinge_depth),
        median=at_depth(median_depth),
        upper=at_depth(n + 1 - hinge_depth),
    )
