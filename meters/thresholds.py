"""Tunable limits for baselines, detection and correction heuristics."""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

# camelCase YAML key -> Thresholds attribute
_SETTING_KEYS = {
    "maxPlausibleInterval": "max_plausible_interval",
    "lowDeviation": "low_deviation",
    "mediumDeviation": "medium_deviation",
    "highDeviation": "high_deviation",
    "extraDigitFactor": "extra_digit_factor",
    "decimalShiftFactor": "decimal_shift_factor",
    "decimalShiftDefaultBound": "decimal_shift_default_bound",
    "estimateDefaultInterval": "estimate_default_interval",
    "resyncTolerance": "resync_tolerance",
}


@dataclass(frozen=True)
class Thresholds:
    """
    Limits used by the analysis pass.

    Deviation limits are percentages above the vehicle baseline:
    a deviation must exceed low_deviation to be flagged, and reaching
    medium_deviation / high_deviation raises the severity.
    """

    max_plausible_interval: float = 50000
    low_deviation: float = 200
    medium_deviation: float = 300
    high_deviation: float = 500
    extra_digit_factor: float = 3
    decimal_shift_factor: float = 2
    decimal_shift_default_bound: float = 200
    estimate_default_interval: float = 50
    resync_tolerance: float = 1

    def __post_init__(self):
        if not self.low_deviation <= self.medium_deviation <= self.high_deviation:
            raise ValueError(
                "Deviation limits must satisfy low <= medium <= high "
                f"(got {self.low_deviation}, {self.medium_deviation}, {self.high_deviation})"
            )
        if self.max_plausible_interval <= 0:
            raise ValueError("max_plausible_interval must be positive")

    @classmethod
    def from_settings(cls, settings: Optional[Dict[str, Any]]) -> "Thresholds":
        """Build from a YAML 'settings' map (camelCase keys)."""
        return cls().updated(settings)

    def updated(self, settings: Optional[Dict[str, Any]]) -> "Thresholds":
        """Copy with the given camelCase settings applied."""
        if not settings:
            return self
        if not isinstance(settings, dict):
            raise ValueError("settings must be a map of name: number")
        unknown = sorted(set(settings) - set(_SETTING_KEYS))
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")
        changes = {}
        for key, value in settings.items():
            try:
                changes[_SETTING_KEYS[key]] = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"Setting {key} must be a number (got {value!r})")
        return replace(self, **changes)

    def to_settings(self) -> Dict[str, float]:
        attr_to_key = {v: k for k, v in _SETTING_KEYS.items()}
        return {attr_to_key[f.name]: getattr(self, f.name) for f in fields(self)}


def load_thresholds(filename: Union[str, Path]) -> Thresholds:
    """Load thresholds from a YAML file with a top-level 'settings' map."""
    with open(filename, "r") as fp:
        data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
    return Thresholds.from_settings(data.get("settings"))
