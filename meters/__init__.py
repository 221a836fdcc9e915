"""
Odometer / hour-meter anomaly detection and correction.

This package analyses fuel/usage log records:
- Category, Severity, IssueKind: classification enums
- UsageRecord: one refuelling row with its meter readings
- Thresholds: tunable limits
- VehicleBaseline: expected interval per vehicle
- Anomaly, SuggestedCorrection: flagged records and proposed fixes
- CorrectionApplicator: writes corrections to stores and the audit log
- CorrectionSession: one analysis snapshot and its correction state
- AuditHistory: read-only view of applied corrections
"""

from .category import Category
from .severity import Severity, IssueKind
from .usage_record import UsageRecord
from .thresholds import Thresholds, load_thresholds
from .normalize import parse_number, parse_date, parse_time, parse_category, record_from_row
from .calculations import calc_deviation_percent, check_severity, is_plausible_interval
from .baseline import VehicleBaseline, compute_baselines, group_by_vehicle
from .anomaly import Anomaly, SuggestedCorrection, CorrectionMethod
from .detection import DETECTION_RULES, classify_record, detect_anomalies, sort_anomalies
from .suggestions import SUGGESTION_HEURISTICS, suggest_correction, suggest_corrections
from .audit_entry import CorrectionAuditEntry, SOURCE_AUTO, SOURCE_MANUAL
from .applicator import ApplyResult, BatchResult, CorrectionApplicator
from .audit_history import AuditHistory
from .session import AnomalyState, CorrectionSession
from .filters import AnomalySummary, date_range, filter_anomalies, summarize
from .stores import MemoryRecordStore, MemoryAuditLog
from .loader import (
    YamlRecordStore,
    YamlAuditLog,
    load_records,
    load_settings,
    default_audit_path,
)

__all__ = [
    "Category",
    "Severity",
    "IssueKind",
    "UsageRecord",
    "Thresholds",
    "load_thresholds",
    "parse_number",
    "parse_date",
    "parse_time",
    "parse_category",
    "record_from_row",
    "calc_deviation_percent",
    "check_severity",
    "is_plausible_interval",
    "VehicleBaseline",
    "compute_baselines",
    "group_by_vehicle",
    "Anomaly",
    "SuggestedCorrection",
    "CorrectionMethod",
    "DETECTION_RULES",
    "classify_record",
    "detect_anomalies",
    "sort_anomalies",
    "SUGGESTION_HEURISTICS",
    "suggest_correction",
    "suggest_corrections",
    "CorrectionAuditEntry",
    "SOURCE_AUTO",
    "SOURCE_MANUAL",
    "ApplyResult",
    "BatchResult",
    "CorrectionApplicator",
    "AuditHistory",
    "AnomalyState",
    "CorrectionSession",
    "AnomalySummary",
    "date_range",
    "filter_anomalies",
    "summarize",
    "MemoryRecordStore",
    "MemoryAuditLog",
    "YamlRecordStore",
    "YamlAuditLog",
    "load_records",
    "load_settings",
    "default_audit_path",
]
