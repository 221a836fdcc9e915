"""Correction suggestions: ordered heuristics, first applicable wins.

Each heuristic models one typo theory. Heuristics are tried in the order
of SUGGESTION_HEURISTICS; later ones are not attempted once one succeeds.
"""

from dataclasses import dataclass, replace
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .anomaly import Anomaly, CorrectionMethod, SuggestedCorrection
from .baseline import group_by_vehicle
from .severity import IssueKind
from .thresholds import Thresholds
from .usage_record import UsageRecord

# (field, proposed value, rationale)
Proposal = Tuple[str, float, str]


@dataclass(frozen=True)
class SuggestionContext:
    """Everything a heuristic may look at for one anomaly."""

    anomaly: Anomaly
    prior: Optional[UsageRecord]
    has_later: bool
    thresholds: Thresholds

    @property
    def record(self) -> UsageRecord:
        return self.anomaly.record

    @property
    def average(self) -> float:
        return self.anomaly.average_interval

    @property
    def prior_value(self) -> float:
        """Current reading of the chronologically previous record, 0 if unknown."""
        return self.prior.meter_current if self.prior else 0.0


@dataclass(frozen=True)
class Heuristic:
    method: CorrectionMethod
    issue_kinds: Optional[FrozenSet[IssueKind]]  # None = any issue
    propose: Callable[[SuggestionContext], Optional[Proposal]]

    def applies_to(self, issue_kind: IssueKind) -> bool:
        return self.issue_kinds is None or issue_kind in self.issue_kinds


def _within_factor(interval: float, ctx: SuggestionContext, factor: float) -> bool:
    """Interval is below factor x baseline; always true without a baseline."""
    return ctx.average <= 0 or interval < ctx.average * factor


def _current_extra_digit(ctx: SuggestionContext) -> Optional[Proposal]:
    current = ctx.record.meter_current / 10
    new_interval = current - ctx.record.meter_previous
    if new_interval > 0 and _within_factor(new_interval, ctx, ctx.thresholds.extra_digit_factor):
        return ("current", current, "Current reading divided by 10 (extra digit)")
    return None


def _previous_missing_digit(ctx: SuggestionContext) -> Optional[Proposal]:
    previous = ctx.record.meter_previous * 10
    new_interval = ctx.record.meter_current - previous
    if (
        0 < new_interval < ctx.thresholds.max_plausible_interval
        and _within_factor(new_interval, ctx, ctx.thresholds.extra_digit_factor)
    ):
        return ("previous", previous, "Previous reading multiplied by 10 (missing digit)")
    return None


def _decimal_shift(ctx: SuggestionContext) -> Optional[Proposal]:
    # Same arithmetic as _current_extra_digit with a tighter bound; kept as a
    # separate tag because the two are recorded as distinct failure modes.
    current = ctx.record.meter_current / 10
    new_interval = current - ctx.record.meter_previous
    if ctx.average > 0:
        bound = ctx.average * ctx.thresholds.decimal_shift_factor
    else:
        bound = ctx.thresholds.decimal_shift_default_bound
    if 0 < new_interval < bound:
        return ("current", current, "Decimal point shifted one place in current reading")
    return None


def _estimated_from_average(ctx: SuggestionContext) -> Optional[Proposal]:
    if not ctx.has_later:
        return None
    average = ctx.average if ctx.average > 0 else ctx.thresholds.estimate_default_interval
    estimated = ctx.record.meter_current - average
    if estimated > 0:
        return ("previous", estimated, f"Current reading minus average interval ({average:,.2f})")
    return None


def _history_rationale(ctx: SuggestionContext) -> str:
    when = ctx.prior.date.isoformat() if ctx.prior and ctx.prior.date else "?"
    return f"Current reading of previous record ({when})"


def _negative_from_history(ctx: SuggestionContext) -> Optional[Proposal]:
    if ctx.prior is not None and 0 < ctx.prior_value < ctx.record.meter_current:
        return ("previous", ctx.prior_value, _history_rationale(ctx))
    return None


def _zero_from_history(ctx: SuggestionContext) -> Optional[Proposal]:
    if ctx.prior is not None and ctx.prior_value > 0:
        return ("previous", ctx.prior_value, _history_rationale(ctx))
    return None


def _resync_previous(ctx: SuggestionContext) -> Optional[Proposal]:
    if ctx.prior is None or ctx.prior_value <= 0:
        return None
    if abs(ctx.prior_value - ctx.record.meter_previous) <= ctx.thresholds.resync_tolerance:
        return None
    # A re-sync that leaves the record running backwards is no fix at all.
    if ctx.prior_value >= ctx.record.meter_current:
        return None
    return ("previous", ctx.prior_value, "Re-synced with previous record's current reading")


_HIGH = frozenset({IssueKind.HIGH_INTERVAL})
_NEGATIVE = frozenset({IssueKind.NEGATIVE_VALUE})
_ZERO = frozenset({IssueKind.ZERO_PREVIOUS})

SUGGESTION_HEURISTICS: List[Heuristic] = [
    Heuristic(CorrectionMethod.CURRENT_EXTRA_DIGIT, _HIGH, _current_extra_digit),
    Heuristic(CorrectionMethod.PREVIOUS_MISSING_DIGIT, _HIGH, _previous_missing_digit),
    Heuristic(CorrectionMethod.DECIMAL_SHIFT, _HIGH, _decimal_shift),
    Heuristic(CorrectionMethod.ESTIMATED_FROM_AVERAGE, _NEGATIVE, _estimated_from_average),
    Heuristic(CorrectionMethod.FROM_HISTORY, _NEGATIVE, _negative_from_history),
    Heuristic(CorrectionMethod.FROM_HISTORY, _ZERO, _zero_from_history),
    Heuristic(CorrectionMethod.RESYNC_PREVIOUS, None, _resync_previous),
]


def build_context(
    anomaly: Anomaly,
    history: Dict[str, List[UsageRecord]],
    thresholds: Thresholds,
) -> SuggestionContext:
    """Locate the anomaly's chronological neighbours within its vehicle."""
    vehicle_records = history.get(anomaly.vehicle_code, [])
    prior = None
    has_later = False
    for position, record in enumerate(vehicle_records):
        if record.row_index == anomaly.row_index:
            prior = vehicle_records[position - 1] if position > 0 else None
            has_later = position < len(vehicle_records) - 1
            break
    return SuggestionContext(anomaly, prior, has_later, thresholds)


def propose_correction(
    ctx: SuggestionContext, heuristics: Optional[List[Heuristic]] = None
) -> Optional[SuggestedCorrection]:
    for heuristic in heuristics if heuristics is not None else SUGGESTION_HEURISTICS:
        if not heuristic.applies_to(ctx.anomaly.issue_kind):
            continue
        proposal = heuristic.propose(ctx)
        if proposal is not None:
            field, value, rationale = proposal
            return SuggestedCorrection(
                field=field,
                proposed_value=round(value, 2),
                rationale=rationale,
                method=heuristic.method,
            )
    return None


def suggest_correction(
    anomaly: Anomaly,
    records: Iterable[UsageRecord],
    thresholds: Optional[Thresholds] = None,
) -> Optional[SuggestedCorrection]:
    """Best-guess fix for one anomaly, or None when it needs manual review."""
    thresholds = thresholds or Thresholds()
    ctx = build_context(anomaly, group_by_vehicle(records), thresholds)
    return propose_correction(ctx)


def suggest_corrections(
    anomalies: Iterable[Anomaly],
    records: Iterable[UsageRecord],
    thresholds: Optional[Thresholds] = None,
) -> List[Anomaly]:
    """Return the anomalies with their suggestion filled in (order preserved)."""
    thresholds = thresholds or Thresholds()
    history = group_by_vehicle(records)
    return [
        replace(anomaly, suggestion=propose_correction(build_context(anomaly, history, thresholds)))
        for anomaly in anomalies
    ]
