"""Anomaly filtering and summary counts for triage views."""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from .anomaly import Anomaly
from .severity import Severity

DATE_RANGES = ("all", "today", "week", "month", "period")


@dataclass(frozen=True)
class AnomalySummary:
    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    fixable: int = 0


def date_range(
    preset: str = "all",
    today: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Tuple[Optional[date], Optional[date]]:
    """
    Resolve a named range to (start, end), both inclusive.

    'week' and 'month' are the last 7 and 30 days. 'period' uses the given
    bounds, defaulting to the last 30 days. 'all' is unbounded (None, None).
    """
    today = today or date.today()
    if preset == "all":
        return None, None
    if preset == "today":
        return today, today
    if preset == "week":
        return today - timedelta(days=7), today
    if preset == "month":
        return today - timedelta(days=30), today
    if preset == "period":
        return start or today - timedelta(days=30), end or today
    raise ValueError(f"Unknown date range '{preset}' (expected one of {', '.join(DATE_RANGES)})")


def filter_anomalies(
    anomalies: Iterable[Anomaly],
    severity: Optional[Severity] = None,
    vehicle_code: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Anomaly]:
    """Keep anomalies matching every given criterion. Undated records fail any date bound."""
    result = []
    for anomaly in anomalies:
        if severity is not None and anomaly.severity != severity:
            continue
        if vehicle_code is not None and anomaly.vehicle_code != vehicle_code:
            continue
        record_date = anomaly.record.date
        if start is not None or end is not None:
            if record_date is None:
                continue
            if start is not None and record_date < start:
                continue
            if end is not None and record_date > end:
                continue
        result.append(anomaly)
    return result


def summarize(anomalies: Iterable[Anomaly]) -> AnomalySummary:
    anomalies = list(anomalies)
    return AnomalySummary(
        total=len(anomalies),
        high=sum(1 for a in anomalies if a.severity == Severity.HIGH),
        medium=sum(1 for a in anomalies if a.severity == Severity.MEDIUM),
        low=sum(1 for a in anomalies if a.severity == Severity.LOW),
        fixable=sum(1 for a in anomalies if a.is_fixable),
    )
