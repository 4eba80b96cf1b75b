"""Test t critical values and the confidence interval for the mean."""
from __future__ import annotations

import pytest

from examine.estimators.confidence import (
    T_TABLES,
    Z_VALUES,
    confidence_interval,
    nearest_alpha,
    t_critical,
)


class TestTCritical:
    def test_table_lookup(self):
        assert t_critical(1, 0.05) == 12.706
        assert t_critical(10, 0.01) == 3.169
        assert t_critical(30, 0.1) == 1.697

    def test_nearest_alpha(self):
        assert nearest_alpha(0.04) == 0.05
        assert nearest_alpha(0.2) == 0.1
        assert nearest_alpha(0.001) == 0.01

    def test_large_df_decays_to_z(self):
        assert t_critical(31, 0.05) < T_TABLES[0.05][30]
        assert t_critical(31, 0.05) > Z_VALUES[0.05]
        assert t_critical(1000, 0.05) == pytest.approx(Z_VALUES[0.05], abs=1e-6)

    def test_small_df_uses_first_row(self):
        assert t_critical(0.5, 0.05) == T_TABLES[0.05][1]

    def test_fractional_df_interpolates(self):
        expected = (T_TABLES[0.05][2] + T_TABLES[0.05][3]) / 2
        assert t_critical(2.5, 0.05) == pytest.approx(expected)

    def test_monotone_in_df(self):
        values = [t_critical(df, 0.05) for df in range(1, 60)]
        assert all(a >= b for a, b in zip(values, values[1:]))


class TestConfidenceInterval:
    def test_two_observations(self):
        ci = confidence_interval(10.0, 1.0, 2, 95)
        assert ci.lower == pytest.approx(-2.706)
        assert ci.upper == pytest.approx(22.706)
        assert ci.level == 95

    def test_ninety_percent(self):
        ci = confidence_interval(0.0, 2.0, 11, 90)
        assert ci.upper == pytest.approx(2 * T_TABLES[0.1][10])
        assert ci.lower == pytest.approx(-ci.upper)

    def test_undefined(self):
        assert confidence_interval(1.0, 0.5, 1) is None
        assert confidence_interval(None, 0.5, 10) is None
        assert confidence_interval(1.0, None, 10) is None

    def test_width_grows_with_level(self):
        intervals = [confidence_interval(5.0, 0.8, 12, level) for level in (90, 95, 99)]
        widths = [ci.upper - ci.lower for ci in intervals]
        assert widths[0] < widths[1] < widths[2]
        assert all(ci.lower <= 5.0 <= ci.upper for ci in intervals)
