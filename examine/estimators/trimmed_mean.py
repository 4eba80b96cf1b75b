"""Symmetric weight-trimmed mean."""
from __future__ import annotations

from typing import Optional

import numpy as np

from ..types import FrequencyTable

DEFAULT_TRIM = 0.05


def trimmed_mean(freq: FrequencyTable, trim: float = DEFAULT_TRIM) -> Optional[float]:
    """Mean after removing `trim` of the total weight from each tail.

    Trimming removes weight, not whole observations: the unique values at
    each cut keep the part of their weight that falls inside the cut, since
    a weight stands for replicated cases.
    """
    if not 0 <= trim < 0.5:
        raise ValueError(f"trim must be in [0, 0.5), got {trim}")
    W = freq.W
    if W == 0 or len(freq) == 0:
        return None

    y, c, cc = freq.y, freq.c, freq.cc
    tc = trim * W
    untrimmed = float((c * y).sum() / W)

    # k1: first index whose cumulative weight reaches the lower cut
    lower_hits = np.flatnonzero(cc >= tc)
    # k2: last index whose preceding cumulative weight is below the upper cut
    cc_prev = np.concatenate(([0.0], cc[:-1]))
    upper_hits = np.flatnonzero(cc_prev < W - tc)
    if lower_hits.size == 0 or upper_hits.size == 0:
        return untrimmed
    k1 = int(lower_hits[0])
    k2 = int(upper_hits[-1])
    if k1 >= k2:
        return untrimmed

    total = float((c[k1 + 1:k2] * y[k1 + 1:k2]).sum())
    total += (cc[k1] - tc) * y[k1]
    total += (W - cc_prev[k2] - tc) * y[k2]

    denom = W - 2 * tc
    if denom <= 0:
        return None
    return float(total / denom)
