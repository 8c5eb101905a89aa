"""Settings endpoints: credentials, model, renderer and voices."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from performance_studio.session import StudioSession
from performance_studio.settings import LANGUAGES, format_voice_lines, parse_voice_lines
from performance_studio.synthesis import TTS_MODELS

from ..deps import get_session

router = APIRouter()


class SettingsUpdate(BaseModel):
    elevenlabs_key: str | None = None
    anthropic_key: str | None = None
    tts_model: str | None = None
    renderer: str | None = None
    selected_voices: dict[str, str] | None = None
    custom_voices: str | None = None  # "Name | voice_id" per line


def _settings_view(session: StudioSession) -> dict[str, Any]:
    data = session.settings.public_dict()
    data["custom_voices_text"] = format_voice_lines(session.settings.custom_voices)
    data["renderer_kind"] = session.settings.renderer_kind
    data["models"] = list(TTS_MODELS)
    data["languages"] = {
        code: {"name": lang.name, "native_name": lang.native_name}
        for code, lang in LANGUAGES.items()
    }
    return data


@router.get("/settings")
async def get_settings(session: StudioSession = Depends(get_session)) -> dict[str, Any]:
    return _settings_view(session)


@router.put("/settings")
async def save_settings(
    update: SettingsUpdate, session: StudioSession = Depends(get_session)
) -> dict[str, Any]:
    changes = update.model_dump(exclude_none=True)
    if "custom_voices" in changes:
        voices = parse_voice_lines(changes.pop("custom_voices"))
        if voices:
            changes["custom_voices"] = voices
    for key in ("elevenlabs_key", "anthropic_key"):
        if key in changes:
            changes[key] = changes[key].strip()
    session.update_settings(**changes)
    return _settings_view(session)


@router.post("/settings/voices/fetch")
async def fetch_voices(session: StudioSession = Depends(get_session)) -> dict[str, Any]:
    voices = session.fetch_voices()
    return {"count": len(voices), "voices": [{"id": v.id, "name": v.name} for v in voices]}
