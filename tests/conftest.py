"""Shared test fixtures."""
from __future__ import annotations

import numpy as np
import pytest

from examine.config import ExamineConfig
from examine.logging_utils import set_log_path
from examine.types import ObservationSet


@pytest.fixture(autouse=True)
def _no_run_log(monkeypatch):
    monkeypatch.delenv("EXAMINE_RUN_LOG", raising=False)
    set_log_path(None)
    yield
    set_log_path(None)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def outlier_sample():
    """1..9 plus one far outlier at 100."""
    return ObservationSet.from_arrays([1, 2, 3, 4, 5, 6, 7, 8, 9, 100])


@pytest.fixture
def constant_sample():
    return ObservationSet.from_arrays([5] * 10)


@pytest.fixture
def weighted_sample():
    """Frequency-weighted data equivalent to replicating each value."""
    return ObservationSet.from_arrays(
        [2.0, 3.5, 4.0, 7.0, 12.0],
        weights=[3, 1, 4, 2, 1],
    )


@pytest.fixture
def replicated_sample():
    """weighted_sample expanded into unit-weight rows."""
    return ObservationSet.from_arrays(
        [2.0] * 3 + [3.5] + [4.0] * 4 + [7.0] * 2 + [12.0]
    )


@pytest.fixture
def default_config():
    return ExamineConfig()
