"""Test the 5% weight-trimmed mean."""
from __future__ import annotations

import pytest

from examine.estimators.trimmed_mean import trimmed_mean
from examine.primitives.frequency import build_frequency_table, frequency_table


class TestTrimmedMean:
    def test_symmetric_sequence(self):
        freq = build_frequency_table(list(range(1, 11)), None)
        assert trimmed_mean(freq) == pytest.approx(5.5)

    def test_outlier_is_damped(self, outlier_sample):
        # half of the weight at 1 and at 100 is trimmed away
        assert trimmed_mean(frequency_table(outlier_sample)) == pytest.approx(94.5 / 9)

    def test_constant(self, constant_sample):
        assert trimmed_mean(frequency_table(constant_sample)) == pytest.approx(5.0)

    def test_single_value(self):
        assert trimmed_mean(build_frequency_table([7.25], None)) == pytest.approx(7.25)

    def test_zero_trim_is_mean(self, outlier_sample):
        assert trimmed_mean(frequency_table(outlier_sample), trim=0.0) == pytest.approx(14.5)

    def test_weighted_matches_replicated(self, weighted_sample, replicated_sample):
        a = trimmed_mean(frequency_table(weighted_sample))
        b = trimmed_mean(frequency_table(replicated_sample))
        assert a == pytest.approx(b)

    def test_empty(self):
        assert trimmed_mean(build_frequency_table([], [])) is None

    def test_invalid_trim(self):
        freq = build_frequency_table([1, 2, 3], None)
        with pytest.raises(ValueError):
            trimmed_mean(freq, trim=0.5)
        with pytest.raises(ValueError):
            trimmed_mean(freq, trim=-0.1)

    def test_between_min_and_max(self, rng):
        values = rng.normal(10, 3, size=200)
        freq = build_frequency_table(values, rng.uniform(0.5, 2.0, size=200))
        t = trimmed_mean(freq)
        assert values.min() <= t <= values.max()
