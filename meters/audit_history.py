"""Read-only access to the correction audit trail."""

from typing import Any, List

from .audit_entry import CorrectionAuditEntry

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 500


class AuditHistory:
    """Most recent corrections first, in bounded pages."""

    def __init__(self, reader: Any):
        self.reader = reader

    def recent(self, limit: int = DEFAULT_PAGE_SIZE) -> List[CorrectionAuditEntry]:
        limit = max(1, min(int(limit), MAX_PAGE_SIZE))
        return list(self.reader.list_recent_audit_entries(limit))[:limit]

    def for_vehicle(self, vehicle_code: str, limit: int = DEFAULT_PAGE_SIZE) -> List[CorrectionAuditEntry]:
        """Recent corrections of one vehicle (filtered within the latest page)."""
        limit = max(1, min(int(limit), MAX_PAGE_SIZE))
        return [e for e in self.recent(MAX_PAGE_SIZE) if e.vehicle_code == vehicle_code][:limit]
