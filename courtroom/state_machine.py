"""Phase and status transitions for a case.

Phase only moves forward: initial -> arguments -> closed. ``closed`` is
terminal, and so is every status other than ``active``. The functions here
mutate the ``Case`` row in place; callers persist it inside the case lock.
"""
import logging
from typing import Union

from courtroom.errors import CaseClosed
from courtroom.models import Case, CaseStatus, DecisionType, Phase, Side

logger = logging.getLogger(__name__)

_PHASE_ORDER = {Phase.initial: 0, Phase.arguments: 1, Phase.closed: 2}


def is_terminal(case: Case) -> bool:
    return case.phase == Phase.closed or case.status != CaseStatus.active


def ensure_open(case: Case) -> None:
    if is_terminal(case):
        raise CaseClosed(f"Case {case.id} is closed ({CaseStatus(case.status).value})")


def _advance(case: Case, phase: Phase) -> None:
    current = Phase(case.phase)
    if _PHASE_ORDER[phase] < _PHASE_ORDER[current]:
        return
    if current != phase:
        logger.info("case %s: phase %s -> %s", case.id, current.value, phase.value)
        case.phase = phase


def _close(case: Case, status: CaseStatus) -> None:
    logger.info("case %s: status %s -> %s", case.id, CaseStatus(case.status).value, status.value)
    case.status = status
    _advance(case, Phase.closed)


def on_content(case: Case) -> None:
    """First document or argument moves the case into ``arguments``."""
    ensure_open(case)
    _advance(case, Phase.arguments)


def on_surrender(case: Case, side: Union[Side, str]) -> None:
    ensure_open(case)
    case.surrendered_by = Side(side)
    _close(case, CaseStatus.surrendered)


def on_decision(case: Case, decision_type: DecisionType, concluded: bool = False) -> None:
    ensure_open(case)
    if decision_type == DecisionType.final:
        _close(case, CaseStatus.completed)
    elif concluded:
        _close(case, CaseStatus.ai_closed)
    else:
        _advance(case, Phase.arguments)
