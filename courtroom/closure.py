"""Read-side check for whether a case should be shown as closed.

Decisions written by this service carry ``is_final``; older rows only have
their text, so for those the legacy markers are searched instead.
"""
from typing import Optional, Sequence

from courtroom import config
from courtroom.models import CaseSnapshot, CaseStatus, Decision, DecisionType, Phase


def _is_surrender(decision: Decision) -> bool:
    if decision.decision_type == DecisionType.surrender:
        return True
    return (decision.provenance or {}).get("type") == "surrender"


def _has_closing_marker(text: str, markers: Sequence[str]) -> bool:
    lowered = (text or "").lower()
    return any(m in lowered for m in markers)


def decision_closes_case(decision: Decision, markers: Optional[Sequence[str]] = None) -> bool:
    if _is_surrender(decision):
        return True
    if decision.is_final is not None:
        return bool(decision.is_final)
    markers = config.CLOSURE_TEXT_MARKERS if markers is None else markers
    return _has_closing_marker(decision.text, markers)


def is_closed(
    snapshot: CaseSnapshot,
    argument_threshold: Optional[int] = None,
    markers: Optional[Sequence[str]] = None,
) -> bool:
    if snapshot.phase == Phase.closed or snapshot.status != CaseStatus.active:
        return True

    if snapshot.decisions and decision_closes_case(snapshot.decisions[-1], markers):
        return True

    argument_threshold = (
        config.CLOSURE_ARGUMENT_THRESHOLD if argument_threshold is None else argument_threshold
    )
    argument_count = snapshot.argument_count or len(snapshot.arguments)
    return argument_threshold > 0 and argument_count >= argument_threshold
