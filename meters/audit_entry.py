"""CorrectionAuditEntry class for applied-correction records."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

SOURCE_AUTO = "auto"
SOURCE_MANUAL = "manual"

# snake_case attribute -> camelCase key used in stored YAML
_KEYS = {
    "vehicle_code": "vehicleCode",
    "vehicle_description": "vehicleDescription",
    "record_date": "recordDate",
    "record_time": "recordTime",
    "field_corrected": "fieldCorrected",
    "old_value": "oldValue",
    "new_value": "newValue",
    "correction_method": "correctionMethod",
    "source": "source",
    "applied_by": "appliedBy",
    "applied_at": "appliedAt",
    "row_index": "rowIndex",
    "notes": "notes",
}


@dataclass(frozen=True)
class CorrectionAuditEntry:
    """Immutable record of one applied meter correction."""

    vehicle_code: str
    record_date: Optional[str]
    record_time: str
    field_corrected: str  # e.g. km_previous, horimeter_current
    old_value: float
    new_value: float
    correction_method: Optional[str]
    source: str  # SOURCE_AUTO or SOURCE_MANUAL
    applied_by: str
    applied_at: str  # ISO timestamp
    vehicle_description: str = ""
    row_index: Optional[int] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored dict format, omitting None values."""
        return {_KEYS[k]: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, dct: Dict[str, Any]) -> "CorrectionAuditEntry":
        keys_to_attr = {v: k for k, v in _KEYS.items()}
        kwargs = {keys_to_attr[k]: v for k, v in dct.items() if k in keys_to_attr}
        if kwargs.get("record_date") is not None:
            kwargs["record_date"] = str(kwargs["record_date"])
        kwargs.setdefault("record_time", "")
        kwargs.setdefault("correction_method", None)
        kwargs["applied_at"] = str(kwargs.get("applied_at", ""))
        return cls(**kwargs)
