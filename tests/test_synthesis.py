"""Tests for performance_studio.synthesis (ElevenLabs client, requests mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from conftest import FAKE_AUDIO, GENESIS, VOICE_ID
from performance_studio.exceptions import SynthesisError
from performance_studio.models import NEUTRAL_VOICE_SETTINGS, SynthesisRequest, VoiceSettings
from performance_studio.synthesis import ElevenLabsClient, ProviderVoice, supports_directives

POST = "performance_studio.synthesis.requests.post"
GET = "performance_studio.synthesis.requests.get"


def _response(ok: bool = True, status: int = 200, content: bytes = FAKE_AUDIO, body=None) -> MagicMock:
    resp = MagicMock()
    resp.ok = ok
    resp.status_code = status
    resp.content = content
    if body is None:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = body
    return resp


@pytest.fixture()
def client() -> ElevenLabsClient:
    return ElevenLabsClient("xi-test")


class TestPayload:
    def test_parameter_request(self, client: ElevenLabsClient) -> None:
        settings = VoiceSettings(0.8, 0.9, 0.2, 0.9)
        payload = client.build_payload(
            SynthesisRequest(GENESIS, voice_settings=settings), "eleven_multilingual_v2"
        )
        assert payload == {
            "text": GENESIS,
            "model_id": "eleven_multilingual_v2",
            "voice_settings": settings.to_payload(),
        }

    def test_directive_request_on_directive_model(self, client: ElevenLabsClient) -> None:
        request = SynthesisRequest("[whispers] " + GENESIS, context_hint="spoken softly.")
        payload = client.build_payload(request, "eleven_v3")
        assert "voice_settings" not in payload
        assert payload["next_text"] == "spoken softly."
        assert payload["text"].startswith("[whispers]")

    def test_directive_request_on_other_model_gets_neutral_settings(
        self, client: ElevenLabsClient
    ) -> None:
        payload = client.build_payload(SynthesisRequest(GENESIS), "eleven_multilingual_v2")
        assert payload["voice_settings"] == NEUTRAL_VOICE_SETTINGS.to_payload()
        assert "next_text" not in payload

    def test_supports_directives(self) -> None:
        assert supports_directives("eleven_v3")
        assert not supports_directives("eleven_multilingual_v2")


class TestSynthesize:
    def test_success_returns_audio(self, client: ElevenLabsClient) -> None:
        with patch(POST, return_value=_response()) as post:
            audio = client.synthesize(SynthesisRequest(GENESIS), VOICE_ID, "eleven_v3")
        assert audio == FAKE_AUDIO
        assert post.call_args.args[0] == f"https://api.elevenlabs.io/v1/text-to-speech/{VOICE_ID}"
        headers = post.call_args.kwargs["headers"]
        assert headers["xi-api-key"] == "xi-test"
        assert headers["Accept"] == "audio/mpeg"

    def test_error_detail_message(self, client: ElevenLabsClient) -> None:
        body = {"detail": {"status": "quota_exceeded", "message": "Quota exceeded"}}
        with patch(POST, return_value=_response(ok=False, status=401, body=body)):
            with pytest.raises(SynthesisError, match="Quota exceeded") as excinfo:
                client.synthesize(SynthesisRequest(GENESIS), VOICE_ID, "eleven_v3")
        assert excinfo.value.status_code == 401

    def test_error_without_json_body(self, client: ElevenLabsClient) -> None:
        with patch(POST, return_value=_response(ok=False, status=401)):
            with pytest.raises(SynthesisError, match="API Error: 401"):
                client.synthesize(SynthesisRequest(GENESIS), VOICE_ID, "eleven_v3")

    def test_transport_error(self, client: ElevenLabsClient) -> None:
        with patch(POST, side_effect=requests.ConnectionError("dns failure")):
            with pytest.raises(SynthesisError, match="dns failure"):
                client.synthesize(SynthesisRequest(GENESIS), VOICE_ID, "eleven_v3")

    def test_empty_audio_is_an_error(self, client: ElevenLabsClient) -> None:
        with patch(POST, return_value=_response(content=b"")):
            with pytest.raises(SynthesisError, match="no audio"):
                client.synthesize(SynthesisRequest(GENESIS), VOICE_ID, "eleven_v3")

    def test_custom_base_url(self) -> None:
        client = ElevenLabsClient("k", base_url="http://tts.local/")
        with patch(POST, return_value=_response()) as post:
            client.synthesize(SynthesisRequest(GENESIS), "v", "eleven_v3")
        assert post.call_args.args[0] == "http://tts.local/v1/text-to-speech/v"


class TestListVoices:
    def test_success(self, client: ElevenLabsClient) -> None:
        body = {"voices": [{"voice_id": "a", "name": "Ruth"}, {"voice_id": "b", "name": "Boaz"}]}
        with patch(GET, return_value=_response(body=body)):
            voices = client.list_voices()
        assert voices == [ProviderVoice("a", "Ruth"), ProviderVoice("b", "Boaz")]

    def test_http_error(self, client: ElevenLabsClient) -> None:
        with patch(GET, return_value=_response(ok=False, status=403)):
            with pytest.raises(SynthesisError, match="API Error: 403"):
                client.list_voices()

    def test_malformed_body(self, client: ElevenLabsClient) -> None:
        with patch(GET, return_value=_response(body={"items": []})):
            with pytest.raises(SynthesisError):
                client.list_voices()
