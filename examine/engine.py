"""Result assembler: runs every estimator for one request and merges the outputs.

Each field is computed independently. A failure in one estimator becomes
None for that field (with the message under `errors`); it never aborts the
rest of the result. Only a malformed request fails as a whole.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Callable, Dict, Optional, TypeVar

from .config import ExamineConfig
from .estimators.confidence import confidence_interval
from .estimators.extremes import extreme_values
from .estimators.m_estimators import m_estimators
from .estimators.trimmed_mean import trimmed_mean
from .logging_utils import is_enabled, log_run
from .primitives.cache import StatsCache
from .primitives.descriptive import WeightedDescriptives
from .primitives.frequency import weighted_mode
from .primitives.percentile import tukey_hinges
from .request import ExamineRequest, MalformedRequestError
from .types import (
    Descriptives,
    ExamineResult,
    Hinges,
    ObservationSet,
    PercentileRule,
    Percentiles,
)
from .utils import stable_digest

T = TypeVar("T")

PERCENTILE_POINTS = (5, 10, 25, 50, 75, 90, 95)


def run_examine(obs: ObservationSet, config: Optional[ExamineConfig] = None) -> ExamineResult:
    """Compute all requested Examine statistics for one observation set."""
    config = config or ExamineConfig()
    cache = StatsCache()
    desc = WeightedDescriptives(obs, cache)
    errors: Dict[str, str] = {}

    def guarded(name: str, compute: Callable[[], Optional[T]]) -> Optional[T]:
        try:
            return compute()
        except Exception as exc:
            errors[name] = f"{type(exc).__name__}: {exc}"
            return None

    # Shared inputs first: the frequency table feeds every percentile,
    # the median anchors the M-estimators.
    guarded("frequency", desc.frequency)
    guarded("median", desc.median)

    tmean = None
    if config.compute_trimmed_mean:
        tmean = guarded("trimmedMean", lambda: trimmed_mean(desc.frequency()))

    m_est = None
    if config.compute_m_estimators:
        m_est = m_estimators(
            obs, cache, config.m_estimator,
            guard=lambda kind, compute: guarded(f"mEstimators.{kind.value}", compute),
        )

    extremes = None
    if config.compute_extreme_values:
        extremes = guarded(
            "extremeValues",
            lambda: extreme_values(obs, config.extreme_count, desc.frequency()),
        )

    ci = guarded(
        "confidenceInterval",
        lambda: confidence_interval(
            desc.mean(), desc.se_mean(), desc.total_weight(), config.confidence_level
        ),
    )

    hinges = guarded("hinges", lambda: tukey_hinges(desc.frequency()))

    descriptives = None
    if config.compute_descriptives:
        descriptives = guarded("descriptives", lambda: _descriptives(desc, hinges))

    percentiles = None
    if config.compute_percentiles:
        percentiles = guarded(
            "percentiles", lambda: _percentiles(desc, PercentileRule(config.percentile_method))
        )

    result = ExamineResult(
        trimmed_mean=tmean,
        m_estimators=m_est,
        extreme_values=extremes,
        confidence_interval=ci,
        descriptives=descriptives,
        percentiles=percentiles,
        hinges=hinges,
        errors=errors,
    )
    # A log write failure is recorded like any other field failure.
    guarded("runLog", lambda: _log(obs, config, result))
    return result


def handle_request(payload: Any) -> Dict[str, Any]:
    """Request/response boundary: dict in, dict out.

    Returns the camelCase result with success=True, or
    {"success": False, "error": ...} for a malformed request.
    """
    try:
        request = ExamineRequest.from_payload(payload)
    except MalformedRequestError as exc:
        return {"success": False, "error": str(exc)}
    result = run_examine(request.observations, request.config)
    return {"success": True, **result.to_dict()}


def _descriptives(desc: WeightedDescriptives, hinges: Optional[Hinges]) -> Optional[Descriptives]:
    if len(desc.obs) == 0:
        return None
    return Descriptives(
        n=desc.total_weight(),
        valid_n=desc.valid_n(),
        mean=desc.mean(),
        median=desc.median(),
        variance=desc.variance(),
        std_dev=desc.std_dev(),
        se_mean=desc.se_mean(),
        minimum=desc.minimum(),
        maximum=desc.maximum(),
        range=desc.range(),
        iqr=(hinges.upper - hinges.lower) if hinges is not None else None,
        skewness=desc.skewness(),
        se_skewness=desc.se_skewness(),
        kurtosis=desc.kurtosis(),
        se_kurtosis=desc.se_kurtosis(),
        mode=tuple(weighted_mode(desc.frequency())),
    )


def _percentiles(desc: WeightedDescriptives, rule: PercentileRule) -> Optional[Percentiles]:
    if len(desc.obs) == 0:
        return None
    return Percentiles(
        method=rule,
        values={p: desc.percentile(p, rule) for p in PERCENTILE_POINTS},
    )


def _log(obs: ObservationSet, config: ExamineConfig, result: ExamineResult) -> None:
    if not is_enabled():
        return
    computed = [k for k, v in result.to_dict().items() if v is not None and k != "errors"]
    log_run({
        "event": "examine",
        "digest": stable_digest(
            obs.values.tolist(), obs.weights.tolist(), obs.case_indexes.tolist(),
            dataclasses.asdict(config),
        ),
        "n_observations": len(obs),
        "total_weight": obs.total_weight,
        "confidence_level": config.confidence_level,
        "computed": computed,
        "errors": result.errors,
    })
