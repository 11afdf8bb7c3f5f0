from fastapi import FastAPI, UploadFile, File, Form, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from sqlmodel import SQLModel, create_engine
from pathlib import Path
from typing import Optional
import asyncio
import logging
import uuid
import aiofiles
import aiofiles.os
from courtroom import config, models, services
from courtroom.broadcaster import broadcaster
from courtroom.engine import CaseEngine
from courtroom.errors import CaseClosed, CourtroomError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("courtroom")

engine = create_engine(
    config.DB_URL,
    echo=False,
    connect_args={"check_same_thread": False} if config.DB_URL.startswith("sqlite") else {},
)
court = CaseEngine(engine, broadcaster)
app = FastAPI(title="AI Courtroom")

# Directory for uploaded files
UPLOAD_DIR = Path(config.UPLOAD_DIR)
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


def get_court() -> CaseEngine:
    return court


@app.exception_handler(CourtroomError)
async def courtroom_error_handler(request: Request, exc: CourtroomError):
    if not exc.client_error:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
def on_startup():
    SQLModel.metadata.create_all(engine)


# Root route
@app.get("/")
def read_root():
    return {"message": "Welcome to the AI Courtroom API"}


# Favicon handler
@app.get("/favicon.ico")
def favicon():
    return Response(status_code=204)


# ---- CASES ----
@app.get("/cases")
def get_cases(court: CaseEngine = Depends(get_court)):
    """Get all cases"""
    cases = court.list_cases()
    return {"cases": cases, "count": len(cases)}


@app.post("/cases")
def create_case(payload: models.CaseCreate, court: CaseEngine = Depends(get_court)):
    """Create a case, or return the existing one with the same title"""
    return court.create_case(payload.title, payload.case_type)


@app.get("/cases/{case_id}")
def get_case(case_id: int, court: CaseEngine = Depends(get_court)):
    """Full case snapshot with argument and verdict counts"""
    return court.get_case(case_id)


# ---- DOCUMENT UPLOAD ----
@app.post("/cases/{case_id}/documents")
async def upload_document(
    case_id: int,
    file: UploadFile = File(...),
    side: models.Side = Form(...),
    document_name: Optional[str] = Form(None),
    court: CaseEngine = Depends(get_court),
):
    """Store an uploaded file, extract its text and file it on the case"""
    # fail fast before writing anything for an unknown or closed case
    snap = await run_in_threadpool(court.get_case, case_id)
    if snap.phase == models.Phase.closed or snap.status != models.CaseStatus.active:
        raise CaseClosed(f"Case {case_id} is closed ({snap.status.value})")

    dest = UPLOAD_DIR / f"{uuid.uuid4().hex}_{Path(file.filename or 'upload').name}"
    async with aiofiles.open(dest, "wb") as out:
        content = await file.read()
        await out.write(content)

    text = await run_in_threadpool(services.extract_text_from_file, dest)
    display_name = document_name or file.filename or dest.name
    try:
        return await run_in_threadpool(
            court.file_document, case_id, side, display_name, text, str(dest)
        )
    except CourtroomError:
        # the case closed while the file was being stored
        await aiofiles.os.remove(dest)
        raise


# ---- ARGUMENTS ----
@app.get("/cases/{case_id}/arguments")
def get_arguments(case_id: int, court: CaseEngine = Depends(get_court)):
    arguments = court.list_arguments(case_id)
    return {"arguments": arguments, "count": len(arguments)}


@app.post("/cases/{case_id}/arguments")
def submit_argument(
    case_id: int, payload: models.ArgumentCreate, court: CaseEngine = Depends(get_court)
):
    """Submit an argument; its type (initial/counter) is decided by the ledger"""
    return court.submit_argument(case_id, payload.side, payload.text)


# ---- VERDICTS ----
@app.get("/cases/{case_id}/verdicts")
def get_verdicts(case_id: int, court: CaseEngine = Depends(get_court)):
    decisions = court.list_decisions(case_id)
    return {"verdicts": decisions, "count": len(decisions)}


@app.post("/cases/{case_id}/verdict")
def request_verdict(
    case_id: int,
    payload: Optional[models.VerdictCreate] = None,
    court: CaseEngine = Depends(get_court),
):
    """Ask the adjudicator for the next decision; its type is derived from case history"""
    context_note = payload.context_note if payload else None
    return court.request_verdict(case_id, context_note)


@app.post("/cases/{case_id}/surrender")
def surrender(case_id: int, payload: models.SurrenderCreate, court: CaseEngine = Depends(get_court)):
    decision = court.surrender(case_id, payload.side)
    return {"message": f"Case surrendered by {payload.side.value}", "verdict": decision}


# ---- LIVE EVENTS ----
async def event_stream(request: Request, subscription, keepalive=None, poll_interval=None):
    """SSE frames for one observer.

    Polls the subscription without blocking so an open stream never holds a
    threadpool worker; the subscription is dropped as soon as the client leaves.
    """
    keepalive = config.SSE_KEEPALIVE_SECONDS if keepalive is None else keepalive
    poll_interval = config.SSE_POLL_SECONDS if poll_interval is None else poll_interval
    try:
        yield "retry: 10000\n\n"
        idle = 0.0
        while not subscription.closed:
            if await request.is_disconnected():
                break
            event = subscription.next_event(timeout=0)
            if event is not None:
                idle = 0.0
                yield event.to_sse()
                continue
            if idle >= keepalive:
                idle = 0.0
                yield ": keep-alive\n\n"
            await asyncio.sleep(poll_interval)
            idle += poll_interval
    finally:
        subscription.close()


@app.get("/events")
async def events(request: Request, court: CaseEngine = Depends(get_court)):
    """Server-sent events for every case mutation"""
    return StreamingResponse(
        event_stream(request, court.subscribe()),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


# ---- HEALTH CHECK ----
@app.get("/health")
def health_check(court: CaseEngine = Depends(get_court)):
    """Health check endpoint"""
    return {"status": "healthy", "service": "AI Courtroom API", "observers": len(court.events)}
