"""Request parsing for the engine's dict-in / dict-out boundary."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

import numpy as np

from .config import ExamineConfig, validate_config
from .types import ObservationSet


class MalformedRequestError(ValueError):
    """The request lacks its mandatory arrays or carries invalid options."""


def _is_array(x: Any) -> bool:
    if isinstance(x, (str, bytes)):
        return False
    return isinstance(x, (Sequence, np.ndarray))


def _optional_array(payload: Mapping[str, Any], key: str, n: int) -> Optional[Sequence[Any]]:
    value = payload.get(key)
    if value is None:
        return None
    if not _is_array(value):
        raise MalformedRequestError(f"'{key}' must be an array or null")
    if len(value) != n:
        raise MalformedRequestError(
            f"'{key}' has {len(value)} entries but 'data' has {n}"
        )
    return value


@dataclass(frozen=True)
class ExamineRequest:
    observations: ObservationSet
    config: ExamineConfig

    @classmethod
    def from_payload(cls, payload: Any) -> "ExamineRequest":
        """Parse {data, weights, caseIndexes, options}.

        Non-numeric values and non-positive weights are dropped; structural
        problems raise MalformedRequestError.
        """
        if not isinstance(payload, Mapping):
            raise MalformedRequestError("request must be an object")
        data = payload.get("data")
        if data is None or not _is_array(data):
            raise MalformedRequestError("request is missing the 'data' array")

        weights = _optional_array(payload, "weights", len(data))
        case_indexes = _optional_array(payload, "caseIndexes", len(data))

        options = payload.get("options")
        if options is None:
            options = {}
        if not isinstance(options, Mapping):
            raise MalformedRequestError("'options' must be an object")
        config = ExamineConfig.from_options(options)
        try:
            validate_config(config)
        except AssertionError as exc:
            raise MalformedRequestError(f"invalid options: {exc}") from exc

        try:
            observations = ObservationSet.from_arrays(data, weights, case_indexes)
        except ValueError as exc:
            raise MalformedRequestError(str(exc)) from exc
        return cls(observations=observations, config=config)
