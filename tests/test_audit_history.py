#!/usr/bin/env python3
"""Tests for audit entries and history retrieval."""

from meters import AuditHistory, CorrectionAuditEntry, MemoryAuditLog, SOURCE_AUTO, SOURCE_MANUAL
from meters.audit_history import MAX_PAGE_SIZE


def entry(applied_at, vehicle="V1", **overrides):
    fields = dict(
        vehicle_code=vehicle,
        record_date="2025-01-02",
        record_time="08:00",
        field_corrected="km_previous",
        old_value=0.0,
        new_value=1100.0,
        correction_method="from_history",
        source=SOURCE_AUTO,
        applied_by="maria",
        applied_at=applied_at,
    )
    fields.update(overrides)
    return CorrectionAuditEntry(**fields)


class TestCorrectionAuditEntry:
    """Tests for serialization."""

    def test_to_dict_omits_none(self):
        data = entry("2025-03-01T09:00:00", correction_method=None, source=SOURCE_MANUAL).to_dict()
        assert data["vehicleCode"] == "V1"
        assert data["fieldCorrected"] == "km_previous"
        assert data["source"] == "manual"
        assert "correctionMethod" not in data
        assert "notes" not in data

    def test_from_dict_round_trip(self):
        original = entry("2025-03-01T09:00:00", row_index=7, notes="checked")
        assert CorrectionAuditEntry.from_dict(original.to_dict()) == original

    def test_from_dict_without_method(self):
        restored = CorrectionAuditEntry.from_dict(
            entry("2025-03-01T09:00:00", correction_method=None).to_dict()
        )
        assert restored.correction_method is None


class TestAuditHistory:
    """Tests for AuditHistory."""

    def test_newest_first(self):
        log = MemoryAuditLog()
        log.append_audit_entry(entry("2025-03-01T09:00:00", vehicle="A"))
        log.append_audit_entry(entry("2025-03-03T09:00:00", vehicle="C"))
        log.append_audit_entry(entry("2025-03-02T09:00:00", vehicle="B"))
        assert [e.vehicle_code for e in AuditHistory(log).recent()] == ["C", "B", "A"]

    def test_same_timestamp_keeps_append_order_reversed(self):
        log = MemoryAuditLog()
        log.append_audit_entry(entry("2025-03-01T09:00:00", vehicle="A"))
        log.append_audit_entry(entry("2025-03-01T09:00:00", vehicle="B"))
        assert [e.vehicle_code for e in AuditHistory(log).recent()] == ["B", "A"]

    def test_limit(self):
        log = MemoryAuditLog()
        for day in range(1, 10):
            log.append_audit_entry(entry(f"2025-03-0{day}T09:00:00"))
        recent = AuditHistory(log).recent(limit=3)
        assert [e.applied_at[:10] for e in recent] == ["2025-03-09", "2025-03-08", "2025-03-07"]

    def test_limit_is_clamped(self):
        log = MemoryAuditLog()
        for i in range(MAX_PAGE_SIZE + 10):
            log.append_audit_entry(entry(f"2025-03-01T09:00:{i % 60:02d}"))
        assert len(AuditHistory(log).recent(limit=10000)) == MAX_PAGE_SIZE
        assert len(AuditHistory(log).recent(limit=0)) == 1

    def test_for_vehicle(self):
        log = MemoryAuditLog()
        log.append_audit_entry(entry("2025-03-01T09:00:00", vehicle="A"))
        log.append_audit_entry(entry("2025-03-02T09:00:00", vehicle="B"))
        log.append_audit_entry(entry("2025-03-03T09:00:00", vehicle="A"))
        assert [e.applied_at[:10] for e in AuditHistory(log).for_vehicle("A")] == [
            "2025-03-03",
            "2025-03-01",
        ]

    def test_for_vehicle_limit_is_clamped(self):
        log = MemoryAuditLog()
        for day in range(1, 4):
            log.append_audit_entry(entry(f"2025-03-0{day}T09:00:00", vehicle="A"))
        history = AuditHistory(log)
        assert [e.applied_at[:10] for e in history.for_vehicle("A", limit=-2)] == ["2025-03-03"]
        assert len(history.for_vehicle("A", limit=0)) == 1

    def test_empty(self):
        assert AuditHistory(MemoryAuditLog()).recent() == []
