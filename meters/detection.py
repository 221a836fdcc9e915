"""Anomaly detection: ordered classification rules, first match wins."""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from .anomaly import Anomaly
from .baseline import VehicleBaseline, compute_baselines
from .calculations import calc_deviation_percent, check_severity
from .severity import IssueKind, Severity
from .thresholds import Thresholds
from .usage_record import UsageRecord


@dataclass(frozen=True)
class DetectionRule:
    """One classification rule. check() returns a severity when the rule matches."""

    issue_kind: IssueKind
    check: Callable[[UsageRecord, float, Thresholds], Optional[Severity]]


def _negative_value(record: UsageRecord, average: float, thresholds: Thresholds) -> Optional[Severity]:
    return Severity.HIGH if record.interval < 0 else None


def _zero_previous(record: UsageRecord, average: float, thresholds: Thresholds) -> Optional[Severity]:
    if record.meter_previous == 0 and record.meter_current > 0:
        return Severity.MEDIUM
    return None


def _high_interval(record: UsageRecord, average: float, thresholds: Thresholds) -> Optional[Severity]:
    if average <= 0 or record.interval <= 0:
        return None
    return check_severity(calc_deviation_percent(record.interval, average), thresholds)


# Priority order matters: a record gets the first matching issue only.
DETECTION_RULES: List[DetectionRule] = [
    DetectionRule(IssueKind.NEGATIVE_VALUE, _negative_value),
    DetectionRule(IssueKind.ZERO_PREVIOUS, _zero_previous),
    DetectionRule(IssueKind.HIGH_INTERVAL, _high_interval),
]


def classify_record(
    record: UsageRecord,
    baseline: Optional[VehicleBaseline] = None,
    thresholds: Optional[Thresholds] = None,
    rules: Optional[List[DetectionRule]] = None,
) -> Optional[Anomaly]:
    """Classify one record against its vehicle baseline. None if it looks fine."""
    thresholds = thresholds or Thresholds()
    average = baseline.average_interval if baseline else 0.0

    for rule in rules if rules is not None else DETECTION_RULES:
        severity = rule.check(record, average, thresholds)
        if severity is not None:
            return Anomaly(
                record=record,
                issue_kind=rule.issue_kind,
                severity=severity,
                interval=record.interval,
                average_interval=average,
                deviation_percent=calc_deviation_percent(record.interval, average),
            )
    return None


def sort_anomalies(anomalies: Iterable[Anomaly]) -> List[Anomaly]:
    """Triage order: HIGH first, then most recent first; undated records last."""
    by_recency = sorted(
        anomalies,
        key=lambda a: (a.record.date is not None, a.record.sort_key),
        reverse=True,
    )
    return sorted(by_recency, key=lambda a: a.severity.value)


def detect_anomalies(
    records: Iterable[UsageRecord],
    baselines: Optional[Dict[str, VehicleBaseline]] = None,
    thresholds: Optional[Thresholds] = None,
) -> List[Anomaly]:
    """
    Flag every inconsistent record.

    Baselines are computed from the same records when not supplied.
    """
    thresholds = thresholds or Thresholds()
    records = list(records)
    if baselines is None:
        baselines = compute_baselines(records, thresholds)

    anomalies = []
    for record in records:
        anomaly = classify_record(record, baselines.get(record.vehicle_code), thresholds)
        if anomaly is not None:
            anomalies.append(anomaly)
    return sort_anomalies(anomalies)
