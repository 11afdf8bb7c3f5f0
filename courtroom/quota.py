import logging
from typing import Optional, Union

from sqlmodel import Session

from courtroom import config, ledger
from courtroom.errors import CaseClosed, QuotaExceeded
from courtroom.models import Case, CaseStatus, Phase, Side

logger = logging.getLogger(__name__)


def admit(
    sess: Session,
    case: Case,
    side: Union[Side, str],
    quota: Optional[int] = None,
) -> None:
    """Raise unless ``side`` may add another argument to ``case``.

    Must run under the case lock, before ``ledger.append``.
    """
    side = ledger.parse_side(side)
    quota = config.COUNTER_ARGUMENT_QUOTA if quota is None else quota

    if case.status != CaseStatus.active or case.phase == Phase.closed:
        logger.warning("case %s: argument from %s rejected, case is %s", case.id, side.value, case.status.value)
        raise CaseClosed(f"Case {case.id} is closed ({case.status.value})")

    counts = ledger.counts_for(sess, case.id, side)
    # a side's first argument is its initial one and never counts against the quota
    if counts.initial_present and counts.counter_count >= quota:
        logger.warning("case %s: %s exhausted its %d counter-arguments", case.id, side.value, quota)
        raise QuotaExceeded(
            f"The {side.value} has already submitted {counts.counter_count} counter-arguments "
            f"(limit {quota})"
        )
