"""Generation endpoints: synthesize a performance and browse versions."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from performance_studio.session import StudioSession

from ..deps import get_session

router = APIRouter()


@router.post("/generate")
async def generate(session: StudioSession = Depends(get_session)) -> dict[str, Any]:
    version = session.generate()
    return version.to_dict()


@router.get("/render")
async def render_preview(session: StudioSession = Depends(get_session)) -> dict[str, Any]:
    request = session.render()
    return {
        "text": request.text,
        "voice_settings": request.voice_settings.to_payload() if request.voice_settings else None,
        "context_hint": request.context_hint,
    }


@router.get("/versions")
async def list_versions(session: StudioSession = Depends(get_session)) -> dict[str, Any]:
    return {"versions": [v.to_dict() for v in session.ledger]}


@router.get("/versions/{ordinal}/audio")
async def version_audio(ordinal: int, session: StudioSession = Depends(get_session)) -> Response:
    try:
        version = session.ledger.get(ordinal)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"No version {ordinal}") from None
    return Response(
        content=version.audio,
        media_type=version.media_type,
        headers={"Content-Disposition": f"attachment; filename=version-{ordinal}.mp3"},
    )
