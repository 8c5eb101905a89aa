"""Speech synthesis through the ElevenLabs text-to-speech API.

Request body sent to ``/v1/text-to-speech/{voice_id}``::

    {"text": ..., "model_id": ..., "voice_settings": {...}, "next_text": ...}

``voice_settings`` comes from the parameter strategy.  Directive-rendered
requests carry no settings of their own; for models that do not
interpret inline directives, neutral settings are sent instead.  The
context hint travels as ``next_text`` so it shapes delivery without
being spoken.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from .exceptions import SynthesisError
from .models import NEUTRAL_VOICE_SETTINGS, SynthesisRequest

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

ELEVENLABS_API_BASE = "https://api.elevenlabs.io"
REQUEST_TIMEOUT = 60
AUDIO_MEDIA_TYPE = "audio/mpeg"

# Models that read bracketed stage directions instead of speaking them.
DIRECTIVE_MODELS: frozenset[str] = frozenset({"eleven_v3"})

TTS_MODELS: tuple[str, ...] = (
    "eleven_multilingual_v2",
    "eleven_v3",
    "eleven_turbo_v2_5",
    "eleven_flash_v2_5",
)


def supports_directives(model_id: str) -> bool:
    return model_id in DIRECTIVE_MODELS


@dataclass(frozen=True)
class ProviderVoice:
    """A voice available on the provider account."""

    voice_id: str
    name: str


def _error_message(resp: requests.Response) -> str:
    """Pull ``detail.message`` out of an error body, if present."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if isinstance(detail, str) and detail:
            return detail
    return f"API Error: {resp.status_code}"


class ElevenLabsClient:
    """Client for the ElevenLabs speech-synthesis API.

    Parameters
    ----------
    api_key:
        ElevenLabs API key (``xi-api-key`` header).
    base_url:
        API base URL (overridable for testing or proxies).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = ELEVENLABS_API_BASE,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def build_payload(self, request: SynthesisRequest, model_id: str) -> dict[str, object]:
        payload: dict[str, object] = {"text": request.text, "model_id": model_id}
        settings = request.voice_settings
        if settings is None and not supports_directives(model_id):
            settings = NEUTRAL_VOICE_SETTINGS
        if settings is not None:
            payload["voice_settings"] = settings.to_payload()
        if request.context_hint:
            payload["next_text"] = request.context_hint
        return payload

    def synthesize(self, request: SynthesisRequest, voice_id: str, model_id: str) -> bytes:
        """Synthesize *request* and return the raw audio bytes.

        Raises :class:`~performance_studio.exceptions.SynthesisError`
        with a human-readable message on any failure.
        """
        payload = self.build_payload(request, model_id)
        try:
            resp = requests.post(
                f"{self.base_url}/v1/text-to-speech/{voice_id}",
                headers={
                    "Accept": AUDIO_MEDIA_TYPE,
                    "Content-Type": "application/json",
                    "xi-api-key": self.api_key,
                },
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise SynthesisError(f"Synthesis request failed: {exc}") from exc

        if not resp.ok:
            raise SynthesisError(_error_message(resp), status_code=resp.status_code)

        if not resp.content:
            raise SynthesisError("Synthesis returned no audio")
        return resp.content

    def list_voices(self) -> list[ProviderVoice]:
        """Fetch the voices available to this account.

        Raises :class:`~performance_studio.exceptions.SynthesisError`
        on failure.
        """
        try:
            resp = requests.get(
                f"{self.base_url}/v1/voices",
                headers={"xi-api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise SynthesisError(f"Voice listing failed: {exc}") from exc

        if not resp.ok:
            raise SynthesisError(f"API Error: {resp.status_code}", status_code=resp.status_code)

        try:
            voices = resp.json()["voices"]
            return [ProviderVoice(voice_id=v["voice_id"], name=v["name"]) for v in voices]
        except (ValueError, KeyError, TypeError) as exc:
            raise SynthesisError(f"Unexpected voice listing response: {exc}") from exc
