"""Session endpoints: sacred text, language, feedback and transcripts."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from performance_studio.session import FeedbackOutcome, StudioSession
from performance_studio.settings import LANGUAGES

from ..deps import get_session

router = APIRouter()


class TextRequest(BaseModel):
    text: str


class LanguageRequest(BaseModel):
    language: str


class FeedbackRequest(BaseModel):
    feedback: str
    auto_generate: bool = True


class TranscriptSegment(BaseModel):
    text: str
    is_final: bool = False


class TranscriptFinishRequest(BaseModel):
    auto_generate: bool = True


def _session_state(session: StudioSession) -> dict[str, Any]:
    language = LANGUAGES[session.language]
    return {
        "language": language.code,
        "language_name": language.name,
        "recognition_lang": language.recognition_lang,
        "text": session.text,
        "renderer": session.registry.kind,
        "instructions": [i.to_dict() for i in session.instructions],
        "instruction_labels": session.describe_instructions(),
        "versions": len(session.ledger),
        "generating": session.generating,
        "feedback_history": [
            {"text": e.text, "timestamp": e.timestamp.isoformat()}
            for e in session.feedback_history
        ],
    }


def _outcome(outcome: FeedbackOutcome) -> dict[str, Any]:
    return {
        "instruction": outcome.instruction.to_dict(),
        "version": outcome.version.to_dict() if outcome.version else None,
        "generation_error": outcome.generation_error,
    }


@router.get("/session")
async def get_state(session: StudioSession = Depends(get_session)) -> dict[str, Any]:
    return _session_state(session)


@router.put("/session/text")
async def set_text(
    request: TextRequest, session: StudioSession = Depends(get_session)
) -> dict[str, Any]:
    cleared = session.set_text(request.text)
    state = _session_state(session)
    state["instructions_cleared"] = cleared
    return state


@router.put("/session/language")
async def set_language(
    request: LanguageRequest, session: StudioSession = Depends(get_session)
) -> dict[str, Any]:
    session.set_language(request.language)
    return _session_state(session)


@router.post("/feedback")
async def submit_feedback(
    request: FeedbackRequest, session: StudioSession = Depends(get_session)
) -> dict[str, Any]:
    outcome = session.submit_feedback(request.feedback, auto_generate=request.auto_generate)
    return _outcome(outcome)


@router.post("/transcript/segments")
async def add_segment(
    segment: TranscriptSegment, session: StudioSession = Depends(get_session)
) -> dict[str, str]:
    session.add_transcript_result(segment.text, segment.is_final)
    return {"pending": session.transcript.pending}


@router.post("/transcript/finish")
async def finish_transcript(
    request: TranscriptFinishRequest, session: StudioSession = Depends(get_session)
) -> dict[str, Any]:
    outcome = session.finish_transcript(auto_generate=request.auto_generate)
    if outcome is None:
        return {"instruction": None, "version": None, "generation_error": None}
    return _outcome(outcome)


@router.get("/tags")
async def list_tags(session: StudioSession = Depends(get_session)) -> dict[str, Any]:
    return {"renderer": session.registry.kind, "tags": session.registry.catalogue()}
