from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional, List
from pydantic import BaseModel
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Side(str, Enum):
    plaintiff = "plaintiff"
    defense = "defense"


class Phase(str, Enum):
    initial = "initial"
    arguments = "arguments"
    closed = "closed"


class CaseStatus(str, Enum):
    active = "active"
    surrendered = "surrendered"
    ai_closed = "ai_closed"
    completed = "completed"


class ArgumentType(str, Enum):
    initial = "initial"
    counter = "counter"


class DecisionType(str, Enum):
    initial = "initial"
    interim = "interim"
    final = "final"
    surrender = "surrender"


# ---- Tables ----

class Case(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    case_type: str = "civil"
    phase: Phase = Phase.initial
    status: CaseStatus = CaseStatus.active
    surrendered_by: Optional[Side] = None
    created_at: datetime = Field(default_factory=utcnow)


class Document(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    case_id: int = Field(foreign_key="case.id", index=True)
    side: Side
    filename: str
    content: str = ""
    stored_path: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=utcnow)


class Argument(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    case_id: int = Field(foreign_key="case.id", index=True)
    side: Side
    text: str
    argument_type: ArgumentType
    created_at: datetime = Field(default_factory=utcnow)


class Decision(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    case_id: int = Field(foreign_key="case.id", index=True)
    text: str
    decision_type: DecisionType
    # None only on rows written before the structured marker existed
    is_final: Optional[bool] = None
    concluded: bool = False
    provenance: dict = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)


# ---- Request payloads ----

class CaseCreate(BaseModel):
    title: str
    case_type: Optional[str] = "civil"


class ArgumentCreate(BaseModel):
    side: Side
    text: str


class SurrenderCreate(BaseModel):
    side: Side


class VerdictCreate(BaseModel):
    context_note: Optional[str] = None


# ---- Read model ----

class CaseSnapshot(SQLModel):
    id: int
    title: str
    case_type: str
    phase: Phase
    status: CaseStatus
    surrendered_by: Optional[Side] = None
    created_at: datetime
    documents: List[Document] = []
    arguments: List[Argument] = []
    decisions: List[Decision] = []
    argument_count: int = 0
    verdict_count: int = 0
    closed: bool = False
    existing: bool = False
