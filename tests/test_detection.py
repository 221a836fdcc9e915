#!/usr/bin/env python3
"""Tests for anomaly detection rules and ordering."""

from datetime import date

import pytest

from meters import (
    DETECTION_RULES,
    Category,
    IssueKind,
    Severity,
    Thresholds,
    VehicleBaseline,
    classify_record,
    detect_anomalies,
)


def baseline(average):
    return VehicleBaseline("V1", Category.VEHICLE, average_interval=average, record_count=5)


class TestRuleOrder:
    """The rule list itself encodes the priority."""

    def test_priority(self):
        assert [r.issue_kind for r in DETECTION_RULES] == [
            IssueKind.NEGATIVE_VALUE,
            IssueKind.ZERO_PREVIOUS,
            IssueKind.HIGH_INTERVAL,
        ]


class TestClassifyRecord:
    """Tests for classify_record."""

    def test_negative_interval_is_high(self, make_record):
        anomaly = classify_record(make_record(1200, 1100), baseline(100))
        assert anomaly.issue_kind == IssueKind.NEGATIVE_VALUE
        assert anomaly.severity == Severity.HIGH
        assert anomaly.interval == -100

    def test_negative_without_baseline(self, make_record):
        anomaly = classify_record(make_record(1200, 1100), None)
        assert anomaly.issue_kind == IssueKind.NEGATIVE_VALUE
        assert anomaly.severity == Severity.HIGH
        assert anomaly.deviation_percent == 0.0

    def test_zero_previous(self, make_record):
        anomaly = classify_record(make_record(0, 5), None)
        assert anomaly.issue_kind == IssueKind.ZERO_PREVIOUS
        assert anomaly.severity == Severity.MEDIUM

    def test_zero_previous_with_zero_current_is_fine(self, make_record):
        assert classify_record(make_record(0, 0), baseline(100)) is None

    def test_zero_previous_beats_high_interval(self, make_record):
        anomaly = classify_record(make_record(0, 5000), baseline(100))
        assert anomaly.issue_kind == IssueKind.ZERO_PREVIOUS

    def test_high_interval_low(self, make_record):
        anomaly = classify_record(make_record(1000, 1350), baseline(100))
        assert anomaly.issue_kind == IssueKind.HIGH_INTERVAL
        assert anomaly.deviation_percent == pytest.approx(250)
        assert anomaly.severity == Severity.LOW
        assert anomaly.average_interval == 100

    @pytest.mark.parametrize(
        "current, expected",
        [
            (1300, None),  # exactly 200%
            (1300.01, Severity.LOW),
            (1400, Severity.MEDIUM),  # exactly 300%
            (1599, Severity.MEDIUM),
            (1600, Severity.HIGH),  # exactly 500%
        ],
    )
    def test_deviation_boundaries(self, make_record, current, expected):
        anomaly = classify_record(make_record(1000, current), baseline(100))
        if expected is None:
            assert anomaly is None
        else:
            assert anomaly.issue_kind == IssueKind.HIGH_INTERVAL
            assert anomaly.severity == expected

    def test_no_baseline_suppresses_deviation_check(self, make_record):
        assert classify_record(make_record(1000, 90000), None) is None
        assert classify_record(make_record(1000, 90000), baseline(0)) is None

    def test_normal_record(self, make_record):
        assert classify_record(make_record(1000, 1100), baseline(100)) is None

    def test_custom_thresholds(self, make_record):
        t = Thresholds(low_deviation=50, medium_deviation=100, high_deviation=150)
        anomaly = classify_record(make_record(1000, 1160), baseline(100), t)
        assert anomaly.severity == Severity.LOW


class TestDetectAnomalies:
    """Tests for detect_anomalies over a record set."""

    def test_scenario_with_tight_cutoff(self, scenario_records):
        anomalies = detect_anomalies(scenario_records, thresholds=Thresholds(max_plausible_interval=500))
        assert len(anomalies) == 1
        anomaly = anomalies[0]
        assert anomaly.record == scenario_records[2]
        assert anomaly.issue_kind == IssueKind.HIGH_INTERVAL
        assert anomaly.interval == 8750
        assert anomaly.deviation_percent == pytest.approx(8650)
        assert anomaly.severity == Severity.HIGH

    def test_scenario_with_default_cutoff(self, scenario_records):
        # The 8,750 km jump is below 50,000 and so inflates the baseline itself.
        assert detect_anomalies(scenario_records) == []

    def test_ordering_by_severity_then_recency(self, make_record):
        records = [
            make_record(0, 10, day=date(2025, 1, 1), vehicle="A"),  # zero_previous, medium
            make_record(20, 10, day=date(2025, 1, 2), vehicle="B"),  # negative, high
            make_record(0, 10, day=date(2025, 1, 5), vehicle="C"),  # zero_previous, medium
            make_record(20, 10, day=date(2025, 1, 3), vehicle="D"),  # negative, high
            make_record(20, 10, vehicle="E"),  # negative, high, undated
        ]
        anomalies = detect_anomalies(records)
        assert [a.vehicle_code for a in anomalies] == ["D", "B", "E", "C", "A"]

    def test_each_record_flagged_once(self, make_record):
        records = [make_record(0, 10, day=date(2025, 1, d)) for d in range(1, 4)]
        anomalies = detect_anomalies(records)
        assert len({a.row_index for a in anomalies}) == len(anomalies)

    def test_uses_given_baselines(self, make_record):
        records = [make_record(1000, 1400, day=date(2025, 1, 1))]
        anomalies = detect_anomalies(records, baselines={"V1": baseline(100)})
        assert anomalies[0].severity == Severity.MEDIUM

    def test_empty(self):
        assert detect_anomalies([]) == []
