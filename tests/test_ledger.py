import pytest
from sqlmodel import Session

from courtroom import ledger
from courtroom.errors import ValidationError
from courtroom.models import ArgumentType, Case, Side


@pytest.fixture
def sess(db_engine):
    with Session(db_engine) as s:
        yield s


@pytest.fixture
def case(sess):
    c = Case(title="Ledger case")
    sess.add(c)
    sess.commit()
    sess.refresh(c)
    return c


def test_first_argument_per_side_is_initial(sess, case):
    first = ledger.append(sess, case, Side.plaintiff, "X")
    second = ledger.append(sess, case, Side.plaintiff, "Y")
    other = ledger.append(sess, case, "defense", "Z")

    assert first.argument_type == ArgumentType.initial
    assert second.argument_type == ArgumentType.counter
    assert other.argument_type == ArgumentType.initial


def test_counts_for(sess, case):
    assert ledger.counts_for(sess, case.id, "plaintiff") == ledger.ArgumentCounts(False, 0)

    for text in ("a", "b", "c"):
        ledger.append(sess, case, Side.plaintiff, text)
    ledger.append(sess, case, Side.defense, "d")

    assert ledger.counts_for(sess, case.id, Side.plaintiff) == ledger.ArgumentCounts(True, 2)
    assert ledger.counts_for(sess, case.id, Side.defense) == ledger.ArgumentCounts(True, 0)
    assert ledger.total_count(sess, case.id) == 4


def test_all_arguments_is_chronological(sess, case):
    for side, text in [("plaintiff", "1"), ("defense", "2"), ("plaintiff", "3"), ("defense", "4")]:
        ledger.append(sess, case, side, text)
    sess.commit()

    texts = [a.text for a in ledger.all_arguments(sess, case.id)]
    assert texts == ["1", "2", "3", "4"]
    # re-querying gives the same sequence
    assert [a.text for a in ledger.all_arguments(sess, case.id)] == texts


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_text_rejected(sess, case, text):
    with pytest.raises(ValidationError):
        ledger.append(sess, case, Side.plaintiff, text)
    assert ledger.total_count(sess, case.id) == 0


def test_unknown_side_rejected(sess, case):
    with pytest.raises(ValidationError):
        ledger.append(sess, case, "jury", "text")
