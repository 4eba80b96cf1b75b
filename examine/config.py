"""YAML-backed dataclass configuration with validation."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .types import MadWeighting, PercentileRule


@dataclass
class MEstimatorConfig:
    max_iterations: int = 30
    epsilon: float = 1e-4
    mad_weighting: str = "replicate"  # "replicate" | "continuous"


@dataclass
class ExamineConfig:
    confidence_level: float = 95.0
    extreme_count: int = 5

    compute_trimmed_mean: bool = True
    compute_m_estimators: bool = True
    compute_extreme_values: bool = True
    compute_descriptives: bool = True
    compute_percentiles: bool = True

    percentile_method: str = "haverage"

    m_estimator: MEstimatorConfig = field(default_factory=MEstimatorConfig)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "ExamineConfig":
        """Build a config from request options (camelCase keys).

        Unknown keys are ignored; None values keep the default.
        """
        config = cls()
        for key, value in options.items():
            if value is None:
                continue
            if isinstance(value, str):
                value = value.strip().lower()
            if key in OPTION_FIELDS:
                setattr(config, OPTION_FIELDS[key], value)
            elif key in M_ESTIMATOR_OPTION_FIELDS:
                setattr(config.m_estimator, M_ESTIMATOR_OPTION_FIELDS[key], value)
        return config


# Request option names -> ExamineConfig fields
OPTION_FIELDS: Dict[str, str] = {
    "confidenceLevel": "confidence_level",
    "extremeCount": "extreme_count",
    "computeTrimmedMean": "compute_trimmed_mean",
    "computeMEstimators": "compute_m_estimators",
    "computeExtremeValues": "compute_extreme_values",
    "computeDescriptives": "compute_descriptives",
    "computePercentiles": "compute_percentiles",
    "percentileMethod": "percentile_method",
}

M_ESTIMATOR_OPTION_FIELDS: Dict[str, str] = {
    "maxIterations": "max_iterations",
    "epsilon": "epsilon",
    "madWeighting": "mad_weighting",
}

_COMPUTE_FLAGS = (
    "compute_trimmed_mean",
    "compute_m_estimators",
    "compute_extreme_values",
    "compute_descriptives",
    "compute_percentiles",
)


def _dataclass_from_dict(cls: type, d: Dict[str, Any]) -> Any:
    """Build a flat dataclass from a dict, ignoring unknown keys."""
    if not isinstance(d, dict):
        return d
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in d.items() if k in names})


def load_config(path: str) -> ExamineConfig:
    """Load ExamineConfig from a YAML file."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    kwargs = {}
    for k, v in raw.items():
        if k == "m_estimator" and isinstance(v, dict):
            kwargs[k] = _dataclass_from_dict(MEstimatorConfig, v)
        else:
            kwargs[k] = v

    return ExamineConfig(**kwargs)


def save_config(config: ExamineConfig, path: str) -> None:
    """Save config to YAML for reproducibility."""
    import dataclasses

    def _to_dict(obj: Any) -> Any:
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return {k: _to_dict(v) for k, v in dataclasses.asdict(obj).items()}
        if isinstance(obj, Enum):
            return obj.value
        return obj

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(_to_dict(config), f, default_flow_style=False, sort_keys=False)


def _is_number(x: Any) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)


def validate_config(config: ExamineConfig) -> None:
    """Validate config constraints."""
    assert _is_number(config.confidence_level), "confidence_level must be a number"
    assert 0 < config.confidence_level < 100, "confidence_level must be in (0, 100)"
    assert isinstance(config.extreme_count, int) and not isinstance(config.extreme_count, bool), (
        "extreme_count must be an integer"
    )
    assert config.extreme_count >= 1, "extreme_count must be >= 1"
    for flag in _COMPUTE_FLAGS:
        assert isinstance(getattr(config, flag), bool), f"{flag} must be a boolean"
    assert config.percentile_method in [e.value for e in PercentileRule], (
        f"Invalid percentile_method: {config.percentile_method}. "
        f"Valid: {[e.value for e in PercentileRule]}"
    )
    m = config.m_estimator
    assert isinstance(m.max_iterations, int) and m.max_iterations >= 1, "max_iterations must be >= 1"
    assert _is_number(m.epsilon) and m.epsilon > 0, "epsilon must be > 0"
    assert m.mad_weighting in [e.value for e in MadWeighting], (
        f"Invalid mad_weighting: {m.mad_weighting}. "
        f"Valid: {[e.value for e in MadWeighting]}"
    )
