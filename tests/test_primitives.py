"""Test frequency table, descriptives, percentile rules, and the stats cache."""
from __future__ import annotations

import numpy as np
import pytest

from examine.primitives.cache import StatsCache
from examine.primitives.descriptive import (
    WeightedDescriptives,
    weighted_mean,
    weighted_std,
    weighted_variance,
)
from examine.primitives.frequency import build_frequency_table, frequency_table, weighted_mode
from examine.primitives.percentile import (
    parse_percentile_rule,
    select_percentile,
    tukey_hinges,
    weighted_percentile,
)
from examine.types import ObservationSet, PercentileRule


class TestObservationSet:
    def test_drops_invalid_rows(self):
        obs = ObservationSet.from_arrays(
            [1, "2.5", None, "abc", float("nan"), 4, 5],
            weights=[1, 2, 1, 1, 1, 0, -1],
        )
        assert obs.values.tolist() == [1.0, 2.5]
        assert obs.weights.tolist() == [1.0, 2.0]
        assert obs.case_indexes.tolist() == [1, 2]

    def test_drops_integer_too_large_for_float(self):
        obs = ObservationSet.from_arrays([1, 2, 10 ** 400], weights=[1, 10 ** 400, 1])
        assert obs.values.tolist() == [1.0]
        assert obs.case_indexes.tolist() == [1]

    def test_duplicate_case_indexes(self):
        with pytest.raises(ValueError):
            ObservationSet.from_arrays([3, 4, 5], case_indexes=[7, 8, 7])

    def test_duplicate_case_index_on_dropped_row_ignored(self):
        obs = ObservationSet.from_arrays([3, "n/a", 5], case_indexes=[7, 7, 8])
        assert obs.case_indexes.tolist() == [7, 8]

    def test_missing_weight_defaults_to_one(self):
        obs = ObservationSet.from_arrays([3, 4], weights=[None, 2])
        assert obs.weights.tolist() == [1.0, 2.0]

    def test_custom_case_indexes(self):
        obs = ObservationSet.from_arrays([3, 4], case_indexes=[101, 205])
        assert obs.case_indexes.tolist() == [101, 205]

    def test_bad_case_index(self):
        with pytest.raises(ValueError):
            ObservationSet.from_arrays([3, 4], case_indexes=[1, 2.5])

    def test_arrays_read_only(self, outlier_sample):
        with pytest.raises(ValueError):
            outlier_sample.values[0] = 99.0


class TestFrequencyTable:
    def test_structure(self):
        freq = build_frequency_table([3, 1, 3, 2], [1, 2, 0.5, 1])
        assert freq.y.tolist() == [1.0, 2.0, 3.0]
        assert freq.c.tolist() == [2.0, 1.0, 1.5]
        assert freq.cc.tolist() == [2.0, 3.0, 4.5]
        assert freq.W == 4.5
        assert freq.N == 4

    def test_cumulative_invariant(self, weighted_sample):
        freq = frequency_table(weighted_sample)
        assert np.all(np.diff(freq.cc) >= 0)
        assert freq.cc[-1] == freq.W

    def test_empty(self):
        freq = build_frequency_table([], [])
        assert freq.W == 0.0
        assert len(freq) == 0

    def test_mode(self):
        freq = build_frequency_table([1, 2, 2, 3, 3], None)
        assert weighted_mode(freq) == [2.0, 3.0]


class TestDescriptives:
    def test_weighted_matches_replicated(self, weighted_sample, replicated_sample):
        a = WeightedDescriptives(weighted_sample)
        b = WeightedDescriptives(replicated_sample)
        assert a.mean() == pytest.approx(b.mean())
        assert a.variance() == pytest.approx(b.variance())
        assert a.skewness() == pytest.approx(b.skewness())
        assert a.kurtosis() == pytest.approx(b.kurtosis())
        assert a.total_weight() == 11

    def test_basic_values(self):
        desc = WeightedDescriptives(ObservationSet.from_arrays([2, 4, 4, 4, 5, 5, 7, 9]))
        assert desc.mean() == pytest.approx(5.0)
        assert desc.variance() == pytest.approx(32 / 7)
        assert desc.se_mean() == pytest.approx(np.sqrt(32 / 7) / np.sqrt(8))
        assert desc.range() == pytest.approx(7.0)

    def test_symmetric_skewness_zero(self):
        desc = WeightedDescriptives(ObservationSet.from_arrays([1, 2, 3, 4, 5]))
        assert desc.skewness() == pytest.approx(0.0, abs=1e-12)

    def test_small_samples_return_none(self):
        desc = WeightedDescriptives(ObservationSet.from_arrays([3.0]))
        assert desc.variance() is None
        assert desc.skewness() is None
        assert desc.kurtosis() is None

    def test_function_surface(self):
        assert weighted_mean([1, 2, 3], [1, 1, 2]) == pytest.approx(2.25)
        assert weighted_variance([1, 2, 3]) == pytest.approx(1.0)
        assert weighted_std([1, 2, 3]) == pytest.approx(1.0)
        assert weighted_mean([], []) is None

    def test_cache_computes_mean_once(self, outlier_sample):
        cache = StatsCache()
        desc = WeightedDescriptives(outlier_sample, cache)
        desc.kurtosis()
        desc.se_mean()
        assert "mean" in cache
        first = cache.get("mean", lambda: pytest.fail("mean recomputed"))
        assert first == pytest.approx(14.5)


class TestStatsCache:
    def test_caches_none(self):
        cache = StatsCache()
        calls = []
        cache.get("x", lambda: calls.append(1))
        cache.get("x", lambda: calls.append(1))
        assert calls == [1]
        assert len(cache) == 1


class TestPercentiles:
    def setup_method(self):
        self.freq = build_frequency_table(list(range(1, 11)), None)

    def test_haverage_median(self):
        assert select_percentile(self.freq, 50, "haverage") == pytest.approx(5.5)

    def test_haverage_quartile(self):
        # position (10 + 1) * 0.25 = 2.75
        assert select_percentile(self.freq, 25, "haverage") == pytest.approx(2.75)

    def test_waverage_quartiles(self):
        assert select_percentile(self.freq, 25, "waverage") == pytest.approx(2.5)
        assert select_percentile(self.freq, 75, "waverage") == pytest.approx(7.5)

    def test_round(self):
        assert select_percentile(self.freq, 25, "round") == pytest.approx(3.0)

    def test_empirical(self):
        assert select_percentile(self.freq, 25, "empirical") == pytest.approx(3.0)
        assert select_percentile(self.freq, 50, "empirical") == pytest.approx(5.0)

    def test_aempirical_averages_exact_cut(self):
        assert select_percentile(self.freq, 50, "aempirical") == pytest.approx(5.5)
        assert select_percentile(self.freq, 25, "aempirical") == pytest.approx(3.0)

    def test_extremes_of_range(self):
        for rule in PercentileRule:
            assert select_percentile(self.freq, 0, rule) == pytest.approx(1.0)
            assert select_percentile(self.freq, 100, rule) == pytest.approx(10.0)

    def test_empty_returns_none(self):
        empty = build_frequency_table([], [])
        for rule in PercentileRule:
            assert select_percentile(empty, 50, rule) is None

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            select_percentile(self.freq, 101, "haverage")

    def test_unknown_rule(self):
        with pytest.raises(ValueError):
            parse_percentile_rule("nearest")

    def test_rule_name_case_insensitive(self):
        assert parse_percentile_rule("WAVERAGE") is PercentileRule.WAVERAGE

    def test_weighted_matches_replicated(self):
        w = weighted_percentile([2.0, 4.0, 7.0], [3, 4, 2], 50, "haverage")
        r = weighted_percentile([2.0] * 3 + [4.0] * 4 + [7.0] * 2, None, 50, "haverage")
        assert w == pytest.approx(r)


class TestTukeyHinges:
    def test_even_count(self):
        h = tukey_hinges(build_frequency_table(list(range(1, 11)), None))
        assert (h.lower, h.median, h.upper) == (3.0, 5.5, 8.0)

    def test_half_depth_averages(self):
        # n = 8: median depth 4.5, hinge depth 2.5
        h = tukey_hinges(build_frequency_table(list(range(1, 9)), None))
        assert h.lower == pytest.approx(2.5)
        assert h.upper == pytest.approx(6.5)

    def test_empty(self):
        assert tukey_hinges(build_frequency_table([], [])) is None
