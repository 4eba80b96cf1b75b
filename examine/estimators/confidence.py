"""Two-sided t confidence interval for the mean.

Critical values come from a df 1..30 table for alpha in {0.01, 0.05, 0.10}.
Beyond df = 30 they decay exponentially from the df = 30 row toward the
normal quantile; fractional df interpolate linearly between table rows.
"""
from __future__ import annotations

import math
from typing import Dict, Optional

from ..types import ConfidenceInterval

T_TABLES: Dict[float, Dict[int, float]] = {
    0.01: {
        1: 63.657, 2: 9.925, 3: 5.841, 4: 4.604, 5: 4.032,
        6: 3.707, 7: 3.499, 8: 3.355, 9: 3.250, 10: 3.169,
        11: 3.106, 12: 3.055, 13: 3.012, 14: 2.977, 15: 2.947,
        16: 2.921, 17: 2.898, 18: 2.878, 19: 2.861, 20: 2.845,
        21: 2.831, 22: 2.819, 23: 2.807, 24: 2.797, 25: 2.787,
        26: 2.779, 27: 2.771, 28: 2.763, 29: 2.756, 30: 2.750,
    },
    0.05: {
        1: 12.706, 2: 4.303, 3: 3.182, 4: 2.776, 5: 2.571,
        6: 2.447, 7: 2.365, 8: 2.306, 9: 2.262, 10: 2.228,
        11: 2.201, 12: 2.179, 13: 2.160, 14: 2.145, 15: 2.131,
        16: 2.120, 17: 2.110, 18: 2.101, 19: 2.093, 20: 2.086,
        21: 2.080, 22: 2.074, 23: 2.069, 24: 2.064, 25: 2.060,
        26: 2.056, 27: 2.052, 28: 2.048, 29: 2.045, 30: 2.042,
    },
    0.1: {
        1: 6.314, 2: 2.920, 3: 2.353, 4: 2.132, 5: 2.015,
        6: 1.943, 7: 1.895, 8: 1.860, 9: 1.833, 10: 1.812,
        11: 1.796, 12: 1.782, 13: 1.771, 14: 1.761, 15: 1.753,
        16: 1.746, 17: 1.740, 18: 1.734, 19: 1.729, 20: 1.725,
        21: 1.721, 22: 1.717, 23: 1.714, 24: 1.711, 25: 1.708,
        26: 1.706, 27: 1.703, 28: 1.701, 29: 1.699, 30: 1.697,
    },
}

Z_VALUES: Dict[float, float] = {0.01: 2.576, 0.05: 1.96, 0.1: 1.645}

# Used only when a bounding table row is absent during interpolation.
_PLACEHOLDER_T: Dict[float, float] = {0.01: 2.8, 0.05: 2.0, 0.1: 1.7}

MAX_TABLE_DF = 30
DECAY_RATE = 0.1


def nearest_alpha(alpha: float) -> float:
    """Closest tabulated alpha; ties resolve to the smaller alpha."""
    return min(T_TABLES, key=lambda a: abs(a - alpha))


def t_critical(df: float, alpha: float = 0.05) -> float:
    """Approximate two-sided t critical value for df degrees of freedom."""
    a = nearest_alpha(alpha)
    table = T_TABLES[a]

    if float(df).is_integer() and int(df) in table:
        return table[int(df)]

    if df > MAX_TABLE_DF:
        z = Z_VALUES[a]
        return z + (table[MAX_TABLE_DF] - z) * math.exp(-DECAY_RATE * (df - MAX_TABLE_DF))

    if df < 1:
        return table[1]

    lower_df = math.floor(df)
    upper_df = math.ceil(df)
    lower_t = table.get(lower_df, _PLACEHOLDER_T[a])
    upper_t = table.get(upper_df, _PLACEHOLDER_T[a])
    return lower_t + (df - lower_df) * (upper_t - lower_t)


def confidence_interval(
    mean: Optional[float],
    se: Optional[float],
    n: Optional[float],
    level: float = 95,
) -> Optional[ConfidenceInterval]:
    """mean -/+ t * se at the given confidence level (percent), or None if n <= 1."""
    if mean is None or se is None or n is None or n <= 1:
        return None
    alpha = (100 - level) / 100
    t = t_critical(n - 1, alpha)
    return ConfidenceInterval(lower=mean - t * se, upper=mean + t * se, level=level)
