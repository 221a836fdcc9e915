#!/usr/bin/env python3
"""Tests for calculation helper functions."""

import pytest

from meters import Severity, Thresholds, calc_deviation_percent, check_severity, is_plausible_interval


class TestCalcDeviationPercent:
    """Tests for calc_deviation_percent."""

    def test_above_baseline(self):
        assert calc_deviation_percent(350, 100) == 250

    def test_below_baseline_is_negative(self):
        assert calc_deviation_percent(50, 100) == -50

    def test_no_baseline(self):
        assert calc_deviation_percent(350, 0) == 0.0


class TestCheckSeverity:
    """Boundary tests for check_severity with default limits."""

    @pytest.mark.parametrize(
        "deviation, expected",
        [
            (150, None),
            (200, None),
            (200.01, Severity.LOW),
            (250, Severity.LOW),
            (299.99, Severity.LOW),
            (300, Severity.MEDIUM),
            (499.99, Severity.MEDIUM),
            (500, Severity.HIGH),
            (8650, Severity.HIGH),
        ],
    )
    def test_boundaries(self, deviation, expected):
        assert check_severity(deviation, Thresholds()) == expected

    def test_custom_limits(self):
        t = Thresholds(low_deviation=100, medium_deviation=150, high_deviation=250)
        assert check_severity(120, t) == Severity.LOW
        assert check_severity(150, t) == Severity.MEDIUM
        assert check_severity(250, t) == Severity.HIGH


class TestIsPlausibleInterval:
    """Tests for is_plausible_interval."""

    def test_positive_under_cutoff(self):
        assert is_plausible_interval(100, Thresholds())

    def test_non_positive(self):
        assert not is_plausible_interval(0, Thresholds())
        assert not is_plausible_interval(-5, Thresholds())

    def test_cutoff_is_exclusive(self):
        assert is_plausible_interval(49999.99, Thresholds())
        assert not is_plausible_interval(50000, Thresholds())
