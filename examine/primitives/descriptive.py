"""Weighted descriptive statistics backed by a per-invocation StatsCache."""
from __future__ import annotations

import math
from typing import Optional, Union

import numpy as np

from ..types import FrequencyTable, ObservationSet, PercentileRule
from .cache import StatsCache
from .frequency import frequency_table
from .percentile import select_percentile


def weighted_mean(values: Union[list, np.ndarray], weights: Union[list, np.ndarray, None] = None) -> Optional[float]:
    """Sum(w * x) / Sum(w), or None when the total weight is zero."""
    x = np.asarray(values, dtype=float)
    w = np.ones_like(x) if weights is None else np.asarray(weights, dtype=float)
    total = w.sum()
    if x.size == 0 or total <= 0:
        return None
    return float((w * x).sum() / total)


def weighted_variance(values: Union[list, np.ndarray], weights: Union[list, np.ndarray, None] = None) -> Optional[float]:
    """Frequency-weighted sample variance, Sum(w * d^2) / (W - 1)."""
    x = np.asarray(values, dtype=float)
    w = np.ones_like(x) if weights is None else np.asarray(weights, dtype=float)
    mean = weighted_mean(x, w)
    total = w.sum()
    if mean is None or total <= 1:
        return None
    return float((w * (x - mean) ** 2).sum() / (total - 1))


def weighted_std(values: Union[list, np.ndarray], weights: Union[list, np.ndarray, None] = None) -> Optional[float]:
    var = weighted_variance(values, weights)
    return math.sqrt(var) if var is not None else None


class WeightedDescriptives:
    """Descriptive statistics of one observation set.

    Weights are frequency weights, so the "sample size" is the total weight W.
    Every statistic is memoised in the supplied cache under its own name, so
    mean and variance are computed once no matter how many downstream
    formulas (SE, skewness, kurtosis, M-estimator scale) need them.
    """

    def __init__(self, obs: ObservationSet, cache: Optional[StatsCache] = None) -> None:
        self.obs = obs
        self.cache = cache if cache is not None else StatsCache()

    def frequency(self) -> FrequencyTable:
        return self.cache.get("frequency", lambda: frequency_table(self.obs))

    def total_weight(self) -> float:
        return self.cache.get("total_weight", lambda: self.obs.total_weight)

    def valid_n(self) -> int:
        return len(self.obs)

    def mean(self) -> Optional[float]:
        return self.cache.get("mean", lambda: weighted_mean(self.obs.values, self.obs.weights))

    def _central_moment(self, order: int) -> Optional[float]:
        def compute() -> Optional[float]:
            mean = self.mean()
            if mean is None:
                return None
            return float((self.obs.weights * (self.obs.values - mean) ** order).sum())
        return self.cache.get(f"m{order}", compute)

    def variance(self) -> Optional[float]:
        def compute() -> Optional[float]:
            W = self.total_weight()
            m2 = self._central_moment(2)
            if m2 is None or W <= 1:
                return None
            return m2 / (W - 1)
        return self.cache.get("variance", compute)

    def std_dev(self) -> Optional[float]:
        def compute() -> Optional[float]:
            var = self.variance()
            return math.sqrt(var) if var is not None else None
        return self.cache.get("std_dev", compute)

    def se_mean(self) -> Optional[float]:
        def compute() -> Optional[float]:
            sd = self.std_dev()
            W = self.total_weight()
            if sd is None or W <= 0:
                return None
            return sd / math.sqrt(W)
        return self.cache.get("se_mean", compute)

    def skewness(self) -> Optional[float]:
        def compute() -> Optional[float]:
            W = self.total_weight()
            var = self.variance()
            if var is None or var == 0 or W < 3:
                return None
            denom = (W - 1) * (W - 2) * self.std_dev() ** 3
            if denom == 0:
                return None
            return W * self._central_moment(3) / denom
        return self.cache.get("skewness", compute)

    def se_skewness(self) -> Optional[float]:
        W = self.total_weight()
        if W < 3:
            return None
        return math.sqrt((6 * W * (W - 1)) / ((W - 2) * (W + 1) * (W + 3)))

    def kurtosis(self) -> Optional[float]:
        """Bias-corrected excess kurtosis."""
        def compute() -> Optional[float]:
            W = self.total_weight()
            var = self.variance()
            if var is None or var == 0 or W < 4:
                return None
            m2 = self._central_moment(2)
            m4 = self._central_moment(4)
            numerator = (W + 1) * W * m4 - 3 * m2 * m2 * (W - 1)
            denom = (W - 1) * (W - 2) * (W - 3) * self.std_dev() ** 4
            if denom == 0:
                return None
            return numerator / denom
        return self.cache.get("kurtosis", compute)

    def se_kurtosis(self) -> Optional[float]:
        W = self.total_weight()
        se_skew = self.se_skewness()
        if W < 4 or se_skew is None:
            return None
        return math.sqrt(4 * (W * W - 1) * se_skew * se_skew / ((W - 3) * (W + 5)))

    def minimum(self) -> Optional[float]:
        return float(self.obs.values.min()) if len(self.obs) else None

    def maximum(self) -> Optional[float]:
        return float(self.obs.values.max()) if len(self.obs) else None

    def range(self) -> Optional[float]:
        if len(self.obs) == 0:
            return None
        return self.maximum() - self.minimum()

    def percentile(self, p: float, rule: PercentileRule) -> Optional[float]:
        return self.cache.get(
            f"percentile:{rule.value}:{p}",
            lambda: select_percentile(self.frequency(), p, rule),
        )

    def median(self) -> Optional[float]:
        return self.percentile(50, PercentileRule.HAVERAGE)
