"""Case-progression engine.

Every state change on a case runs while holding that case's lock, so
admission checks, ledger writes and phase/status transitions for one case
never interleave. Different cases never contend. The database is the only
source of truth; nothing about a case is cached here.

The adjudicator call is made outside the lock. Its result is recorded in a
second locked step, which re-checks that the case is still open.
"""
import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Callable, List, Optional, Union

from sqlmodel import Session, select

from courtroom import classifier, closure, ledger, prompts, quota, services, state_machine
from courtroom.broadcaster import Broadcaster, Event, EventType, Subscription, broadcaster
from courtroom.errors import CourtroomError, NotFound, UpstreamFailure, ValidationError
from courtroom.models import (
    Argument,
    Case,
    CaseSnapshot,
    Decision,
    DecisionType,
    Document,
    Side,
)

logger = logging.getLogger(__name__)

Adjudicator = Callable[..., services.AdjudicationResult]


class CaseLocks:
    """One lock per case id, created on first use.

    A lock lives only while someone holds a reference to it, so ids of idle
    cases do not accumulate.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def for_case(self, case_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(case_id)
            if lock is None:
                lock = self._locks[case_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, case_id: int):
        lock = self.for_case(case_id)
        with lock:
            yield lock


class CaseEngine:
    def __init__(
        self,
        db_engine,
        events: Optional[Broadcaster] = None,
        adjudicator: Optional[Adjudicator] = None,
    ):
        self.db = db_engine
        self.events = events if events is not None else broadcaster
        self.adjudicate = adjudicator or services.generate_verdict
        self.locks = CaseLocks()
        self._create_lock = threading.Lock()

    # ---- helpers ----

    def _session(self) -> Session:
        return Session(self.db, expire_on_commit=False)

    @staticmethod
    def _load(sess: Session, case_id: int) -> Case:
        case = sess.get(Case, case_id)
        if not case:
            raise NotFound(f"Case {case_id} not found")
        return case

    @staticmethod
    def _documents(sess: Session, case_id: int) -> List[Document]:
        return list(sess.exec(
            select(Document)
            .where(Document.case_id == case_id)
            .order_by(Document.uploaded_at, Document.id)
        ).all())

    @staticmethod
    def _decisions(sess: Session, case_id: int) -> List[Decision]:
        return list(sess.exec(
            select(Decision)
            .where(Decision.case_id == case_id)
            .order_by(Decision.created_at, Decision.id)
        ).all())

    def _snapshot(self, sess: Session, case: Case, existing: bool = False) -> CaseSnapshot:
        arguments = ledger.all_arguments(sess, case.id)
        decisions = self._decisions(sess, case.id)
        snap = CaseSnapshot(
            id=case.id,
            title=case.title,
            case_type=case.case_type,
            phase=case.phase,
            status=case.status,
            surrendered_by=case.surrendered_by,
            created_at=case.created_at,
            documents=self._documents(sess, case.id),
            arguments=arguments,
            decisions=decisions,
            argument_count=len(arguments),
            verdict_count=len(decisions),
            existing=existing,
        )
        snap.closed = closure.is_closed(snap)
        return snap

    # ---- reads ----

    def get_case(self, case_id: int) -> CaseSnapshot:
        with self._session() as sess:
            return self._snapshot(sess, self._load(sess, case_id))

    def list_cases(self) -> List[CaseSnapshot]:
        with self._session() as sess:
            cases = sess.exec(select(Case).order_by(Case.created_at, Case.id)).all()
            return [self._snapshot(sess, c) for c in cases]

    def list_arguments(self, case_id: int) -> List[Argument]:
        with self._session() as sess:
            self._load(sess, case_id)
            return ledger.all_arguments(sess, case_id)

    def list_decisions(self, case_id: int) -> List[Decision]:
        with self._session() as sess:
            self._load(sess, case_id)
            return self._decisions(sess, case_id)

    def classify(self, case_id: int) -> DecisionType:
        with self._session() as sess:
            self._load(sess, case_id)
            return classifier.classify(sess, case_id)

    def subscribe(self) -> Subscription:
        return self.events.subscribe()

    # ---- mutations ----

    def create_case(self, title: str, case_type: Optional[str] = "civil") -> CaseSnapshot:
        title = (title or "").strip()
        if not title:
            raise ValidationError("title is required")

        with self._create_lock, self._session() as sess:
            existing = sess.exec(select(Case).where(Case.title == title)).first()
            if existing:
                logger.info("case %s already exists for title %r", existing.id, title)
                return self._snapshot(sess, existing, existing=True)

            case = Case(title=title, case_type=case_type or "civil")
            sess.add(case)
            sess.commit()
            logger.info("case %s created (%s)", case.id, case.case_type)
            snap = self._snapshot(sess, case)

        self.events.publish(Event(EventType.case_created, case.id, {"title": case.title}))
        return snap

    def file_document(
        self,
        case_id: int,
        side: Union[Side, str],
        filename: str,
        text: str,
        stored_path: Optional[str] = None,
    ) -> Document:
        side = ledger.parse_side(side)
        if not filename:
            raise ValidationError("filename is required")

        with self.locks.hold(case_id), self._session() as sess:
            case = self._load(sess, case_id)
            state_machine.on_content(case)
            doc = Document(
                case_id=case_id, side=side, filename=filename, content=text or "", stored_path=stored_path
            )
            sess.add(doc)
            sess.add(case)
            sess.commit()
            logger.info("case %s: document %r filed by %s", case_id, filename, side.value)
            self.events.publish(Event(EventType.upload, case_id, {
                "document_id": doc.id, "side": side.value, "filename": filename,
            }))
            return doc

    def submit_argument(self, case_id: int, side: Union[Side, str], text: str) -> Argument:
        side = ledger.parse_side(side)
        if not text or not text.strip():
            raise ValidationError("Argument text must not be empty")

        with self.locks.hold(case_id), self._session() as sess:
            case = self._load(sess, case_id)
            quota.admit(sess, case, side)
            arg = ledger.append(sess, case, side, text)
            state_machine.on_content(case)
            sess.add(case)
            sess.commit()
            self.events.publish(Event(EventType.argument, case_id, {
                "argument_id": arg.id,
                "side": side.value,
                "argument_type": arg.argument_type.value,
                "text": arg.text,
            }))
            return arg

    def surrender(self, case_id: int, side: Union[Side, str]) -> Decision:
        side = ledger.parse_side(side)

        with self.locks.hold(case_id), self._session() as sess:
            case = self._load(sess, case_id)
            state_machine.on_surrender(case, side)
            decision = Decision(
                case_id=case_id,
                text=prompts.SURRENDER_NOTICE.format(
                    case_id=case_id, side=side.value, side_upper=side.value.upper()
                ),
                decision_type=DecisionType.surrender,
                is_final=True,
                provenance={"type": "surrender", "surrendered_by": side.value},
            )
            sess.add(decision)
            sess.add(case)
            sess.commit()
            logger.info("case %s: surrendered by %s", case_id, side.value)
            self.events.publish(Event(EventType.surrender, case_id, {
                "side": side.value, "verdict_id": decision.id,
            }))
            return decision

    def request_verdict(
        self,
        case_id: int,
        context_note: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Decision:
        with self.locks.hold(case_id), self._session() as sess:
            case = self._load(sess, case_id)
            state_machine.ensure_open(case)
            request_type = classifier.classify(sess, case_id)
            snap = self._snapshot(sess, case)
        logger.info("case %s: requesting %s verdict", case_id, request_type.value)

        try:
            result = self.adjudicate(
                snap, snap.arguments, snap.decisions, context_note, request_type, timeout=timeout
            )
        except CourtroomError:
            raise
        except Exception as e:
            logger.exception("case %s: adjudicator raised", case_id)
            raise UpstreamFailure(f"Adjudication failed: {e}") from e
        if not result or not (result.text or "").strip():
            raise UpstreamFailure("Adjudication service returned no content")

        with self.locks.hold(case_id), self._session() as sess:
            case = self._load(sess, case_id)
            # the case may have been surrendered or decided while we waited
            state_machine.ensure_open(case)
            concluded = bool(result.concluded) and request_type != DecisionType.final
            decision = Decision(
                case_id=case_id,
                text=result.text,
                decision_type=request_type,
                is_final=request_type == DecisionType.final or concluded,
                concluded=concluded,
                provenance=dict(result.provenance or {}),
            )
            state_machine.on_decision(case, request_type, concluded)
            sess.add(decision)
            sess.add(case)
            sess.commit()
            logger.info(
                "case %s: %s decision #%s recorded (status %s)",
                case_id, request_type.value, decision.id, case.status.value,
            )
            self.events.publish(Event(EventType.verdict, case_id, {
                "verdict_id": decision.id,
                "decision_type": request_type.value,
                "text": decision.text,
            }))
            return decision
