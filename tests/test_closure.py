from datetime import datetime, timezone

import pytest

from courtroom.closure import decision_closes_case, is_closed
from courtroom.models import CaseSnapshot, CaseStatus, Decision, DecisionType, Phase

MARKERS = ["final decision", "case closed", "verdict"]


def make_snapshot(decisions=(), argument_count=0, phase=Phase.arguments, status=CaseStatus.active):
    return CaseSnapshot(
        id=1,
        title="Closure case",
        case_type="civil",
        phase=phase,
        status=status,
        created_at=datetime.now(timezone.utc),
        decisions=list(decisions),
        argument_count=argument_count,
        verdict_count=len(decisions),
    )


def decision(text="Interim observations.", decision_type=DecisionType.interim, is_final=False, provenance=None):
    return Decision(
        case_id=1, text=text, decision_type=decision_type, is_final=is_final, provenance=provenance or {}
    )


def test_open_case():
    snap = make_snapshot([decision()], argument_count=3)
    assert not is_closed(snap, argument_threshold=10, markers=MARKERS)


def test_structured_flag_wins_over_text():
    # the word "verdict" alone does not close a case whose decision carries the flag
    snap = make_snapshot([decision(text="Interim verdict: further argument needed.")])
    assert not is_closed(snap, argument_threshold=10, markers=MARKERS)

    snap = make_snapshot([decision(text="Judgment.", decision_type=DecisionType.final, is_final=True)])
    assert is_closed(snap, argument_threshold=10, markers=MARKERS)


@pytest.mark.parametrize("text", ["This is the FINAL DECISION.", "Case Closed.", "Verdict: for the plaintiff"])
def test_legacy_text_markers(text):
    legacy = decision(text=text, is_final=None)
    assert decision_closes_case(legacy, MARKERS)
    assert is_closed(make_snapshot([legacy]), argument_threshold=10, markers=MARKERS)


def test_legacy_record_without_markers():
    legacy = decision(text="The matter is adjourned.", is_final=None)
    assert not decision_closes_case(legacy, MARKERS)


def test_surrender_provenance_on_legacy_record():
    legacy = decision(
        text="Party withdrew.",
        decision_type=DecisionType.initial,
        is_final=None,
        provenance={"type": "surrender", "surrenderedBy": "defense"},
    )
    assert is_closed(make_snapshot([legacy]), argument_threshold=10, markers=MARKERS)


def test_only_most_recent_decision_counts():
    older = decision(text="Judgment.", decision_type=DecisionType.final, is_final=True)
    snap = make_snapshot([older, decision()])
    assert not is_closed(snap, argument_threshold=10, markers=MARKERS)


def test_argument_volume():
    assert is_closed(make_snapshot(argument_count=10), argument_threshold=10, markers=MARKERS)
    assert not is_closed(make_snapshot(argument_count=9), argument_threshold=10, markers=MARKERS)
    assert not is_closed(make_snapshot(argument_count=50), argument_threshold=0, markers=MARKERS)


def test_stored_status_closes():
    snap = make_snapshot(phase=Phase.closed, status=CaseStatus.surrendered)
    assert is_closed(snap, argument_threshold=10, markers=MARKERS)
