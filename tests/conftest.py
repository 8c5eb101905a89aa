"""Shared test fixtures for the performance_studio test suite."""

from __future__ import annotations

import pytest

from performance_studio.exceptions import SynthesisError
from performance_studio.models import SynthesisRequest
from performance_studio.session import StudioSession
from performance_studio.settings import SettingsStore, StudioSettings
from performance_studio.synthesis import ProviderVoice

# ---------------------------------------------------------------------------
# Sample texts
# ---------------------------------------------------------------------------

GENESIS = "In the beginning God created the heavens and the earth"
GENESIS_PUNCTUATED = "In the beginning God created the heavens and the earth."
GENESIS_HINDI = "आदि में परमेश्‍वर ने आकाश और पृथ्वी की सृष्टि की।"

FAKE_AUDIO = b"ID3\x00fake-mpeg-bytes"
VOICE_ID = "21m00Tcm4TlvDq8ikWAM"


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


class FakeSynthesizer:
    """Records synthesis calls and returns canned audio (or fails)."""

    def __init__(self, audio: bytes = FAKE_AUDIO, error: Exception | None = None) -> None:
        self.audio = audio
        self.error = error
        self.calls: list[tuple[SynthesisRequest, str, str]] = []
        self.voices = [ProviderVoice("v1", "Ruth"), ProviderVoice("v2", "Boaz")]

    def synthesize(self, request: SynthesisRequest, voice_id: str, model_id: str) -> bytes:
        self.calls.append((request, voice_id, model_id))
        if self.error is not None:
            raise self.error
        return self.audio

    def list_voices(self) -> list[ProviderVoice]:
        return list(self.voices)


class FakeLanguageModel:
    """Returns a fixed reply, or raises."""

    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[tuple[str, str]] = []

    def complete(self, system: str, user: str) -> str:
        self.prompts.append((system, user))
        if self.error is not None:
            raise self.error
        return self.reply


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture()
def configured_settings() -> StudioSettings:
    return StudioSettings(
        elevenlabs_key="sk-test-elevenlabs",
        selected_voices={"hi-IN": VOICE_ID, "en-IN": VOICE_ID},
        language="en-IN",
    )


@pytest.fixture()
def session(configured_settings: StudioSettings, synthesizer: FakeSynthesizer) -> StudioSession:
    s = StudioSession(
        store=SettingsStore(),
        settings=configured_settings,
        synthesizer_factory=lambda key: synthesizer,
    )
    s.set_text(GENESIS)
    return s


@pytest.fixture()
def failing_session(configured_settings: StudioSettings) -> StudioSession:
    synth = FakeSynthesizer(error=SynthesisError("quota_exceeded", status_code=401))
    s = StudioSession(
        store=SettingsStore(),
        settings=configured_settings,
        synthesizer_factory=lambda key: synth,
    )
    s.set_text(GENESIS)
    return s
