"""Decides which kind of verdict the next adjudication request asks for.

The decision depends only on what is stored for the case, never on what the
caller wants: formality escalates with the volume of counter-arguments.
"""
from typing import Optional

from sqlmodel import Session, select, func

from courtroom import config, ledger
from courtroom.models import Decision, DecisionType

# at most one initial argument per side
INITIAL_ARGUMENTS_PER_CASE = 2


def classify_counts(
    decision_count: int, total_arguments: int, final_threshold: Optional[int] = None
) -> DecisionType:
    final_threshold = config.FINAL_COUNTER_THRESHOLD if final_threshold is None else final_threshold
    if decision_count == 0:
        return DecisionType.initial

    initial_args = min(INITIAL_ARGUMENTS_PER_CASE, total_arguments)
    counter_args = total_arguments - initial_args
    if counter_args >= final_threshold:
        return DecisionType.final
    if counter_args > 0:
        return DecisionType.interim
    return DecisionType.initial


def classify(sess: Session, case_id: int, final_threshold: Optional[int] = None) -> DecisionType:
    decision_count = sess.exec(
        select(func.count(Decision.id)).where(Decision.case_id == case_id)
    ).one()
    return classify_counts(decision_count, ledger.total_count(sess, case_id), final_threshold)
