"""All shared dataclasses, enums, and type aliases."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from .utils import to_finite_float


class WeightFunction(str, Enum):
    HUBER = "huber"
    HAMPEL = "hampel"
    ANDREWS = "andrews"
    TUKEY = "tukey"


class PercentileRule(str, Enum):
    HAVERAGE = "haverage"      # (W + 1)p order-statistic interpolation
    WAVERAGE = "waverage"      # Wp weighted average
    ROUND = "round"            # closest observation
    EMPIRICAL = "empirical"    # empirical distribution function
    AEMPIRICAL = "aempirical"  # EDF with averaging at exact cut points


class MadWeighting(str, Enum):
    """How case weights enter the median absolute deviation."""
    REPLICATE = "replicate"    # weight rounded to an integer repeat count
    CONTINUOUS = "continuous"  # weight used as a fractional multiplier


class ExtremeKind(str, Enum):
    EXTREME = "extreme"  # beyond the outer fence
    OUTLIER = "outlier"  # between inner and outer fence
    NORMAL = "normal"    # inside the inner fence


class TieStatus(str, Enum):
    INCLUDED = "included"
    PARTIAL_TIE = "partial_tie"  # same value continues past the selection window


@dataclass(frozen=True, eq=False)
class ObservationSet:
    """Valid numeric observations with parallel weights and case indexes.

    Arrays are read-only; only finite values with finite weight > 0 are kept.
    """
    values: np.ndarray
    weights: np.ndarray
    case_indexes: np.ndarray

    @classmethod
    def from_arrays(
        cls,
        data: Sequence[Any],
        weights: Optional[Sequence[Any]] = None,
        case_indexes: Optional[Sequence[Any]] = None,
    ) -> "ObservationSet":
        """Build an observation set, dropping non-numeric values and non-positive weights.

        A missing weight defaults to 1, a missing case index to the 1-based row
        position. Raises ValueError for a case index that is not an integer
        or that repeats another kept row's index.
        """
        vals, wts, cases = [], [], []
        for i, raw in enumerate(data):
            x = to_finite_float(raw)
            if x is None:
                continue
            if weights is None or weights[i] is None:
                w = 1.0
            else:
                w = to_finite_float(weights[i])
                if w is None or w <= 0:
                    continue
            if case_indexes is None or case_indexes[i] is None:
                case = i + 1
            else:
                case = _as_case_index(case_indexes[i])
            vals.append(x)
            wts.append(w)
            cases.append(case)

        if len(set(cases)) != len(cases):
            raise ValueError("case indexes must be unique")

        return cls(
            values=_readonly(np.asarray(vals, dtype=float)),
            weights=_readonly(np.asarray(wts, dtype=float)),
            case_indexes=_readonly(np.asarray(cases, dtype=np.int64)),
        )

    def __len__(self) -> int:
        return int(self.values.shape[0])

    @property
    def total_weight(self) -> float:
        return float(self.weights.sum())


@dataclass(frozen=True, eq=False)
class FrequencyTable:
    """Sorted frequency view of an observation set.

    y: ascending unique values, c: summed weight per value,
    cc: cumulative weight, W: total weight (== cc[-1]), N: unweighted count.
    """
    y: np.ndarray
    c: np.ndarray
    cc: np.ndarray
    W: float
    N: int

    def __len__(self) -> int:
        return int(self.y.shape[0])


@dataclass(frozen=True)
class Fences:
    lower_inner: float
    upper_inner: float
    lower_outer: float
    upper_outer: float


@dataclass(frozen=True)
class ExtremeEntry:
    """One row of the highest/lowest extreme-value listing."""
    case_index: int
    value: float
    kind: Optional[ExtremeKind]  # None when the IQR is zero and no fences exist
    tie: TieStatus = TieStatus.INCLUDED


@dataclass(frozen=True)
class ExtremeValues:
    highest: Tuple[ExtremeEntry, ...]
    lowest: Tuple[ExtremeEntry, ...]
    fences: Optional[Fences]
    is_truncated: bool


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: float
    upper: float
    level: float


@dataclass(frozen=True)
class MEstimates:
    huber: Optional[float] = None
    hampel: Optional[float] = None
    andrews: Optional[float] = None
    tukey: Optional[float] = None

    def get(self, kind: WeightFunction) -> Optional[float]:
        return getattr(self, kind.value)


@dataclass(frozen=True)
class Hinges:
    """Tukey's hinges."""
    lower: float
    median: float
    upper: float


@dataclass(frozen=True)
class Percentiles:
    method: PercentileRule
    values: Dict[int, Optional[float]]


@dataclass(frozen=True)
class Descriptives:
    n: float  # total weight
    valid_n: int
    mean: Optional[float]
    median: Optional[float]
    variance: Optional[float]
    std_dev: Optional[float]
    se_mean: Optional[float]
    minimum: Optional[float]
    maximum: Optional[float]
    range: Optional[float]
    iqr: Optional[float]
    skewness: Optional[float]
    se_skewness: Optional[float]
    kurtosis: Optional[float]
    se_kurtosis: Optional[float]
    mode: Tuple[float, ...] = ()


@dataclass(frozen=True)
class ExamineResult:
    """Complete output of one engine invocation. Any field may be None."""
    trimmed_mean: Optional[float] = None
    m_estimators: Optional[MEstimates] = None
    extreme_values: Optional[ExtremeValues] = None
    confidence_interval: Optional[ConfidenceInterval] = None
    descriptives: Optional[Descriptives] = None
    percentiles: Optional[Percentiles] = None
    hinges: Optional[Hinges] = None
    errors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase response shape used at the request boundary."""
        return {
            "trimmedMean": self.trimmed_mean,
            "mEstimators": _m_estimates_dict(self.m_estimators),
            "extremeValues": _extremes_dict(self.extreme_values),
            "confidenceInterval": _ci_dict(self.confidence_interval),
            "descriptives": _descriptives_dict(self.descriptives),
            "percentiles": _percentiles_dict(self.percentiles),
            "hinges": _hinges_dict(self.hinges),
            "errors": dict(self.errors),
        }


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _m_estimates_dict(m: Optional[MEstimates]) -> Optional[Dict[str, Any]]:
    if m is None:
        return None
    return {"huber": m.huber, "hampel": m.hampel, "andrews": m.andrews, "tukey": m.tukey}


def _entry_dict(e: ExtremeEntry) -> Dict[str, Any]:
    return {
        "caseIndex": e.case_index,
        "value": e.value,
        "type": e.kind.value if e.kind is not None else None,
        "tie": e.tie.value,
        "isPartial": e.tie is TieStatus.PARTIAL_TIE,
    }


def _extremes_dict(ev: Optional[ExtremeValues]) -> Optional[Dict[str, Any]]:
    if ev is None:
        return None
    fences = None
    if ev.fences is not None:
        fences = {
            "lowerInner": ev.fences.lower_inner,
            "upperInner": ev.fences.upper_inner,
            "lowerOuter": ev.fences.lower_outer,
            "upperOuter": ev.fences.upper_outer,
        }
    return {
        "highest": [_entry_dict(e) for e in ev.highest],
        "lowest": [_entry_dict(e) for e in ev.lowest],
        "fences": fences,
        "isTruncated": ev.is_truncated,
    }


def _ci_dict(ci: Optional[ConfidenceInterval]) -> Optional[Dict[str, Any]]:
    if ci is None:
        return None
    return {"lower": ci.lower, "upper": ci.upper, "level": ci.level}


def _descriptives_dict(d: Optional[Descriptives]) -> Optional[Dict[str, Any]]:
    if d is None:
        return None
    return {
        "N": d.n,
        "validN": d.valid_n,
        "mean": d.mean,
        "median": d.median,
        "variance": d.variance,
        "stdDev": d.std_dev,
        "seMean": d.se_mean,
        "minimum": d.minimum,
        "maximum": d.maximum,
        "range": d.range,
        "IQR": d.iqr,
        "skewness": d.skewness,
        "seSkewness": d.se_skewness,
        "kurtosis": d.kurtosis,
        "seKurtosis": d.se_kurtosis,
        "mode": list(d.mode),
    }


def _percentiles_dict(p: Optional[Percentiles]) -> Optional[Dict[str, Any]]:
    if p is None:
        return None
    return {"method": p.method.value, "values": {str(k): v for k, v in p.values.items()}}


def _hinges_dict(h: Optional[Hinges]) -> Optional[Dict[str, Any]]:
    if h is None:
        return None
    return {"lower": h.lower, "median": h.median, "upper": h.upper}


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


def _as_case_index(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValueError(f"case index must be an integer, got {raw!r}")
    x = to_finite_float(raw)
    if x is None or not x.is_integer():
        raise ValueError(f"case index must be an integer, got {raw!r}")
    return int(x)
