"""M-estimators of location by iteratively re-weighted averaging.

Each estimator starts at the weighted median, scales residuals by a robust
dispersion estimate (1.4826 * MAD, falling back to the standard deviation
and then to 1.0), and repeatedly recomputes a weighted mean in which each
observation is down-weighted by one of four weight functions:

    huber    1.339
    hampel   1.7, 3.4, 8.5
    andrews  c = 1.34 * pi (sine wave)
    tukey    4.685 (biweight)
"""
from __future__ import annotations

import math
from typing import Callable, Dict, Optional, Union

import numpy as np

from ..config import MEstimatorConfig
from ..primitives.cache import StatsCache
from ..primitives.descriptive import WeightedDescriptives
from ..primitives.frequency import build_frequency_table
from ..primitives.percentile import select_percentile
from ..types import MadWeighting, MEstimates, ObservationSet, PercentileRule, WeightFunction

HUBER_K = 1.339
HAMPEL_A = 1.7
HAMPEL_B = 3.4
HAMPEL_C = 8.5
ANDREWS_C = 1.34 * math.pi
TUKEY_C = 4.685

MAD_TO_SIGMA = 1.4826
MIN_SCALE = 1e-10
RESULT_DECIMALS = 6


# ---------------------------------------------------------------------------
# Weight functions w(u) = psi(u) / u, all equal to 1 at u = 0
# ---------------------------------------------------------------------------

def huber_weight(u: Union[float, np.ndarray]) -> np.ndarray:
    a = np.abs(np.asarray(u, dtype=float))
    return np.where(a <= HUBER_K, 1.0, HUBER_K / np.maximum(a, HUBER_K))


def hampel_weight(u: Union[float, np.ndarray]) -> np.ndarray:
    a = np.abs(np.asarray(u, dtype=float))
    safe = np.maximum(a, HAMPEL_A)
    w = np.where(a <= HAMPEL_A, 1.0, HAMPEL_A / safe)
    descending = HAMPEL_A * (HAMPEL_C - a) / (safe * (HAMPEL_C - HAMPEL_B))
    w = np.where(a > HAMPEL_B, descending, w)
    return np.where(a > HAMPEL_C, 0.0, w)


def andrews_weight(u: Union[float, np.ndarray]) -> np.ndarray:
    u = np.asarray(u, dtype=float)
    nonzero = u != 0
    safe = np.where(nonzero, u, 1.0)
    w = np.where(nonzero, (ANDREWS_C / math.pi) * np.sin(math.pi * safe / ANDREWS_C) / safe, 1.0)
    return np.where(np.abs(u) <= ANDREWS_C, w, 0.0)


def tukey_weight(u: Union[float, np.ndarray]) -> np.ndarray:
    u = np.asarray(u, dtype=float)
    return np.where(np.abs(u) <= TUKEY_C, (1.0 - (u / TUKEY_C) ** 2) ** 2, 0.0)


WEIGHT_FUNCTIONS: Dict[WeightFunction, Callable[[np.ndarray], np.ndarray]] = {
    WeightFunction.HUBER: huber_weight,
    WeightFunction.HAMPEL: hampel_weight,
    WeightFunction.ANDREWS: andrews_weight,
    WeightFunction.TUKEY: tukey_weight,
}

_ALIASES = {"andrew": WeightFunction.ANDREWS, "biweight": WeightFunction.TUKEY}


def parse_weight_function(kind: Union[str, WeightFunction, None]) -> WeightFunction:
    """Resolve a weight-function name. Unknown names fall back to Huber."""
    if isinstance(kind, WeightFunction):
        return kind
    name = str(kind or "").strip().lower()
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return WeightFunction(name)
    except ValueError:
        return WeightFunction.HUBER


# ---------------------------------------------------------------------------
# Robust scale
# ---------------------------------------------------------------------------

def robust_scale(
    obs: ObservationSet,
    center: float,
    desc: WeightedDescriptives,
    weighting: MadWeighting = MadWeighting.REPLICATE,
) -> float:
    """1.4826 * MAD around center, else the standard deviation, else 1.0."""
    deviations = np.abs(obs.values - center)
    if weighting is MadWeighting.REPLICATE:
        counts = np.maximum(1.0, np.floor(obs.weights + 0.5))
    else:
        counts = obs.weights
    mad = select_percentile(
        build_frequency_table(deviations, counts), 50, PercentileRule.HAVERAGE
    )
    if mad is not None and mad > 0:
        return mad * MAD_TO_SIGMA

    sd = desc.std_dev()
    if sd is not None and sd > 0:
        return sd
    return 1.0


# ---------------------------------------------------------------------------
# Solver
# ---------------------------------------------------------------------------

def m_estimate(
    obs: ObservationSet,
    kind: Union[str, WeightFunction] = WeightFunction.HUBER,
    cache: Optional[StatsCache] = None,
    config: Optional[MEstimatorConfig] = None,
) -> Optional[float]:
    """Iteratively re-weighted location estimate, or None for an empty set.

    Returns the weighted median when the scale is degenerate. Stops when the
    step falls below max(eps, |T| * eps) or below 10 * eps, or after
    config.max_iterations steps, whichever comes first.
    """
    if len(obs) == 0:
        return None
    config = config or MEstimatorConfig()
    weight_fn = WEIGHT_FUNCTIONS[parse_weight_function(kind)]
    desc = WeightedDescriptives(obs, cache)
    weighting = MadWeighting(config.mad_weighting)

    t = desc.median()
    if t is None:
        return None
    s = desc.cache.get(
        f"robust_scale:{weighting.value}",
        lambda: robust_scale(obs, t, desc, weighting),
    )
    if s <= MIN_SCALE:
        return round(t, RESULT_DECIMALS)

    x, w = obs.values, obs.weights
    eps = config.epsilon
    for _ in range(config.max_iterations):
        psi_w = w * weight_fn((x - t) / s)
        denom = float(psi_w.sum())
        if denom == 0:
            break
        t_next = float((psi_w * x).sum() / denom)
        step = abs(t_next - t)
        t = t_next
        if step < max(eps, abs(t_next) * eps) or step < 10 * eps:
            break

    return round(t, RESULT_DECIMALS)


def m_estimators(
    obs: ObservationSet,
    cache: Optional[StatsCache] = None,
    config: Optional[MEstimatorConfig] = None,
    guard: Optional[Callable[[WeightFunction, Callable[[], Optional[float]]], Optional[float]]] = None,
) -> MEstimates:
    """All four M-estimators, sharing one median and scale.

    `guard(kind, compute)` wraps each estimate so one failing weight function
    leaves the others intact; without it errors propagate.
    """
    cache = cache if cache is not None else StatsCache()
    guard = guard or (lambda kind, compute: compute())
    return MEstimates(**{
        kind.value: guard(kind, lambda kind=kind: m_estimate(obs, kind, cache, config))
        for kind in WeightFunction
    })
