"""Per-case, per-side record of submitted arguments.

The first argument a side submits is its ``initial`` argument; everything it
submits afterwards is a ``counter`` argument. Callers are expected to hold the
case lock (see ``courtroom.engine``) around ``append`` so the classification
and the insert happen as one step.
"""
import logging
from dataclasses import dataclass
from typing import List, Union

from sqlmodel import Session, select, func

from courtroom.errors import ValidationError
from courtroom.models import Argument, ArgumentType, Case, Side

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArgumentCounts:
    initial_present: bool
    counter_count: int


def parse_side(side: Union[Side, str]) -> Side:
    try:
        return Side(side)
    except ValueError:
        raise ValidationError(f"Unknown side: {side!r}")


def counts_for(sess: Session, case_id: int, side: Union[Side, str]) -> ArgumentCounts:
    side = parse_side(side)
    rows = sess.exec(
        select(Argument.argument_type, func.count(Argument.id))
        .where((Argument.case_id == case_id) & (Argument.side == side))
        .group_by(Argument.argument_type)
    ).all()
    by_type = {t: n for t, n in rows}
    return ArgumentCounts(
        initial_present=by_type.get(ArgumentType.initial, 0) > 0,
        counter_count=by_type.get(ArgumentType.counter, 0),
    )


def total_count(sess: Session, case_id: int) -> int:
    return sess.exec(
        select(func.count(Argument.id)).where(Argument.case_id == case_id)
    ).one()


def all_arguments(sess: Session, case_id: int) -> List[Argument]:
    """Arguments of a case in the order they were submitted."""
    return list(
        sess.exec(
            select(Argument)
            .where(Argument.case_id == case_id)
            .order_by(Argument.created_at, Argument.id)
        ).all()
    )


def append(sess: Session, case: Case, side: Union[Side, str], text: str) -> Argument:
    side = parse_side(side)
    if not text or not text.strip():
        raise ValidationError("Argument text must not be empty")

    counts = counts_for(sess, case.id, side)
    arg_type = ArgumentType.counter if counts.initial_present else ArgumentType.initial

    arg = Argument(case_id=case.id, side=side, text=text, argument_type=arg_type)
    sess.add(arg)
    sess.flush()
    logger.info(
        "case %s: %s %s argument #%s recorded", case.id, side.value, arg_type.value, arg.id
    )
    return arg
