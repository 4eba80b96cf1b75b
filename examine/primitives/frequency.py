"""Sorted frequency structure and weighted mode."""
from __future__ import annotations

from typing import List, Union

import numpy as np

from ..types import FrequencyTable, ObservationSet


def build_frequency_table(
    values: Union[list, np.ndarray],
    weights: Union[list, np.ndarray, None] = None,
) -> FrequencyTable:
    """Collapse values into ascending unique values with summed weights.

    Entries with non-positive weight are ignored.
    """
    x = np.asarray(values, dtype=float)
    w = np.ones_like(x) if weights is None else np.asarray(weights, dtype=float)
    keep = w > 0
    x, w = x[keep], w[keep]
    if x.size == 0:
        empty = np.empty(0, dtype=float)
        return FrequencyTable(y=empty, c=empty, cc=empty, W=0.0, N=0)

    y, inverse = np.unique(x, return_inverse=True)
    c = np.bincount(inverse.ravel(), weights=w, minlength=len(y))
    cc = np.cumsum(c)
    return FrequencyTable(y=y, c=c, cc=cc, W=float(cc[-1]), N=int(x.size))


def frequency_table(obs: ObservationSet) -> FrequencyTable:
    return build_frequency_table(obs.values, obs.weights)


def weighted_mode(freq: FrequencyTable) -> List[float]:
    """All values sharing the largest summed weight, ascending."""
    if len(freq) == 0:
        return []
    top = freq.c.max()
    return [float(v) for v in freq.y[freq.c == top]]
