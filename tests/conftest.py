import os
import tempfile

# must be set before courtroom.config is imported
os.environ["DB_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="courtroom-uploads-")
os.environ["ADJUDICATOR_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, create_engine

from courtroom.broadcaster import Broadcaster
from courtroom.engine import CaseEngine
from courtroom.services import AdjudicationResult


class FakeAdjudicator:
    """Stands in for the adjudication model and records every request."""

    def __init__(self):
        self.calls = []
        self.text = "The court has considered the material on record."
        self.concluded = False
        self.error = None
        self.on_call = None

    def __call__(self, snapshot, arguments, prior_decisions, context_note, request_type, timeout=None):
        self.calls.append({
            "case_id": snapshot.id,
            "arguments": list(arguments),
            "prior_decisions": list(prior_decisions),
            "context_note": context_note,
            "request_type": request_type,
            "timeout": timeout,
        })
        if self.on_call:
            self.on_call()
        if self.error:
            raise self.error
        return AdjudicationResult(
            text=self.text,
            provenance={"model": "fake-judge", "request_type": request_type.value},
            concluded=self.concluded,
        )


@pytest.fixture
def db_engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'courtroom.db'}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def adjudicator():
    return FakeAdjudicator()


@pytest.fixture
def events():
    return Broadcaster(queue_size=50)


@pytest.fixture
def court(db_engine, events, adjudicator):
    return CaseEngine(db_engine, events, adjudicator)


@pytest.fixture
def case_id(court):
    return court.create_case("Sharma vs Verma Builders", "civil").id


@pytest.fixture
def client(court):
    from courtroom.main import app, get_court

    app.dependency_overrides[get_court] = lambda: court
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def add_arguments(court, case_id, plaintiff=1, defense=1):
    """Submit ``plaintiff``/``defense`` arguments, alternating sides."""
    made = []
    for i in range(max(plaintiff, defense)):
        if i < plaintiff:
            made.append(court.submit_argument(case_id, "plaintiff", f"plaintiff point {i + 1}"))
        if i < defense:
            made.append(court.submit_argument(case_id, "defense", f"defense point {i + 1}"))
    return made
