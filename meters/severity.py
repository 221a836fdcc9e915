"""Enums for anomaly classification."""

from enum import Enum


class Severity(Enum):
    """Anomaly severity levels. Lower value = more urgent."""

    HIGH = 1
    MEDIUM = 2
    LOW = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class IssueKind(Enum):
    """Why a record was flagged."""

    NEGATIVE_VALUE = "negative_value"
    ZERO_PREVIOUS = "zero_previous"
    HIGH_INTERVAL = "high_interval"
    SUSPICIOUS_SEQUENCE = "suspicious_sequence"  # Reserved, no rule emits it yet
