import logging
import time
import requests
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

import docx
from pdfminer.high_level import extract_text as pdf_extract_text
from PIL import Image
import pytesseract

from . import config, prompts
from .errors import UpstreamFailure
from .models import Argument, ArgumentType, CaseSnapshot, Decision, DecisionType

logger = logging.getLogger(__name__)

DOCUMENT_EXCERPT_CHARS = 6000
IMAGE_SUFFIXES = [".png", ".jpg", ".jpeg", ".tiff", ".bmp"]


# -------------------------------
# Utility: Extract text from files
# -------------------------------
def extract_text_from_file(path: Path) -> str:
    suf = path.suffix.lower()
    try:
        if suf == ".pdf":
            return pdf_extract_text(str(path))
        elif suf in IMAGE_SUFFIXES:
            img = Image.open(path)
            return pytesseract.image_to_string(img)
        elif suf == ".docx":
            return "\n".join(p.text for p in docx.Document(str(path)).paragraphs)
        else:
            return path.read_text(encoding="utf-8", errors="replace")
    except Exception as e:
        # an unreadable file is still filed, just without text
        logger.warning("Could not extract text from %s: %s", path.name, e)
        return ""


# -------------------------------
# Adjudication
# -------------------------------
@dataclass
class AdjudicationResult:
    text: str
    provenance: dict = field(default_factory=dict)
    concluded: bool = False


def _call_chat(messages, max_tokens=None, timeout=None) -> dict:
    headers = {
        "Authorization": f"Bearer {config.ADJUDICATOR_API_KEY}",
        "Content-Type": "application/json",
    }
    payload = {
        "model": config.ADJUDICATOR_MODEL,
        "messages": messages,
        "max_tokens": max_tokens or config.ADJUDICATOR_MAX_TOKENS,
        "temperature": config.ADJUDICATOR_TEMPERATURE,
        "top_p": 0.9,
    }
    resp = requests.post(
        config.ADJUDICATOR_BASE_URL,
        headers=headers,
        json=payload,
        timeout=timeout or config.ADJUDICATOR_TIMEOUT,
    )
    resp.raise_for_status()
    return resp.json()


def _excerpt(content: str) -> str:
    content = content or ""
    if len(content) <= DOCUMENT_EXCERPT_CHARS:
        return content
    return content[:DOCUMENT_EXCERPT_CHARS] + "\n[Content truncated for analysis]"


def build_context(
    snapshot: CaseSnapshot,
    arguments: Sequence[Argument],
    prior_decisions: Sequence[Decision],
    context_note: Optional[str],
    request_type: DecisionType,
) -> str:
    request_type = DecisionType(request_type)
    parts: List[str] = [
        prompts.HEADER.format(
            case_id=snapshot.id,
            request_type=request_type.value.upper(),
            title=snapshot.title,
            case_type=snapshot.case_type,
        )
    ]
    if context_note:
        parts.append(prompts.SPECIAL_INSTRUCTIONS.format(note=context_note))

    parts.append("\n**DOCUMENTARY EVIDENCE:**")
    if not snapshot.documents:
        parts.append("No documents filed.")
    for i, doc in enumerate(snapshot.documents, start=1):
        parts.append(prompts.DOCUMENT.format(
            index=i,
            side=doc.side.value.upper(),
            filename=doc.filename,
            content=_excerpt(doc.content),
        ))

    if prior_decisions:
        parts.append("\n**PREVIOUS AI DECISIONS IN THIS CASE:**")
        for i, dec in enumerate(prior_decisions, start=1):
            parts.append(prompts.PREVIOUS_DECISION.format(index=i, created_at=dec.created_at, text=dec.text))
        parts.append("\n**NOTE:** Consider above previous decisions when analyzing new arguments.")

    if arguments:
        parts.append("\n**ARGUMENTS PRESENTED (Chronological Order):**")
        for i, arg in enumerate(arguments, start=1):
            label = "INITIAL ARGUMENT" if arg.argument_type == ArgumentType.initial else "COUNTER-ARGUMENT"
            parts.append(prompts.ARGUMENT.format(
                label=label,
                index=i,
                side=arg.side.value.upper(),
                created_at=arg.created_at,
                text=arg.text,
            ))

    parts.append(prompts.FOOTER.format(instructions=prompts.INSTRUCTIONS[request_type.value]))
    return "\n".join(parts)


def _mock_verdict(snapshot: CaseSnapshot, request_type: DecisionType) -> AdjudicationResult:
    text = prompts.MOCK_VERDICT.format(
        case_id=snapshot.id,
        request_type=request_type.value.upper(),
        argument_count=len(snapshot.arguments),
        document_count=len(snapshot.documents),
    )
    return AdjudicationResult(
        text=text,
        provenance={
            "mocked": True,
            "request_type": request_type.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def generate_verdict(
    snapshot: CaseSnapshot,
    arguments: Sequence[Argument],
    prior_decisions: Sequence[Decision],
    context_note: Optional[str],
    request_type: DecisionType,
    timeout: Optional[float] = None,
) -> AdjudicationResult:
    """Ask the adjudication model for a verdict on the case as it stands.

    Raises ``UpstreamFailure`` if the model cannot be reached, times out, or
    returns no text.
    """
    request_type = DecisionType(request_type)
    if not config.ADJUDICATOR_API_KEY:
        logger.info("case %s: no adjudicator key set, returning mock %s verdict", snapshot.id, request_type.value)
        return _mock_verdict(snapshot, request_type)

    context = build_context(snapshot, arguments, prior_decisions, context_note, request_type)
    started = time.time()
    try:
        data = _call_chat(
            [{"role": "system", "content": prompts.SYSTEM_JUDGE},
             {"role": "user", "content": context}],
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.error("case %s: adjudicator request failed: %s", snapshot.id, e)
        raise UpstreamFailure(f"Adjudication service unavailable: {e}") from e

    choices = data.get("choices") or [{}]
    text = ((choices[0].get("message") or {}).get("content") or "").strip()
    if not text:
        logger.error("case %s: adjudicator returned no content", snapshot.id)
        raise UpstreamFailure("Adjudication service returned no content")

    elapsed_ms = int((time.time() - started) * 1000)
    usage = data.get("usage") or {}
    logger.info(
        "case %s: %s verdict from %s in %d ms (tokens: %s)",
        snapshot.id, request_type.value, data.get("model"), elapsed_ms, usage.get("total_tokens"),
    )

    concluded = False
    lines = text.rstrip().splitlines()
    if lines and lines[-1].strip().strip("*").strip().upper() == prompts.CLOSING_MARKER:
        concluded = True
        # a reply that is only the marker keeps it as the decision text
        text = "\n".join(lines[:-1]).rstrip() or text.strip()

    return AdjudicationResult(
        text=text,
        provenance={
            "model": data.get("model"),
            "usage": usage,
            "finish_reason": choices[0].get("finish_reason"),
            "latency_ms": elapsed_ms,
            "request_type": request_type.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        concluded=concluded,
    )
