"""Studio session -- owns all state of one editing session.

A session holds the sacred text, the instruction accumulator, the
version ledger and the feedback history, plus the collaborators derived
from the current settings (parser, renderer, synthesis client).

Feedback flow::

    feedback -> parser -> accumulator.append -> (auto) generate

Generate flow::

    checks -> render(snapshot) -> synthesize -> ledger.commit

A failed generation commits nothing and leaves the accumulator as it
was.  Only one generation may be in flight at a time.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from .accumulator import InstructionAccumulator
from .exceptions import (
    ConfigurationError,
    GenerationInProgressError,
    InputValidationError,
    StudioError,
)
from .language_model import AnthropicClient, LanguageModelFeedbackParser
from .ledger import VersionLedger
from .models import PerformanceInstruction, SynthesisRequest, Version, format_instructions
from .parser import FeedbackParser, RuleBasedFeedbackParser
from .registry import TagRegistry, registry_for
from .renderers import Renderer, renderer_for
from .settings import LANGUAGES, SettingsStore, StudioSettings, Voice
from .synthesis import AUDIO_MEDIA_TYPE, ElevenLabsClient, ProviderVoice
from .transcript import TranscriptBuffer

logger = logging.getLogger(__name__)

FEEDBACK_HISTORY_LIMIT = 20


class Synthesizer(Protocol):
    def synthesize(self, request: SynthesisRequest, voice_id: str, model_id: str) -> bytes:
        ...

    def list_voices(self) -> list[ProviderVoice]:
        ...


@dataclass(frozen=True)
class FeedbackEntry:
    text: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class FeedbackOutcome:
    """Result of submitting one feedback utterance.

    ``version`` is set when an automatic regeneration succeeded;
    ``generation_error`` carries its message when it failed.
    """

    instruction: PerformanceInstruction
    version: Version | None = None
    generation_error: str | None = None


class StudioSession:
    """Controller for one editing session.

    Parameters
    ----------
    store:
        Settings persistence.  Defaults to an in-memory store.
    settings:
        Initial settings; loaded from *store* when omitted.
    synthesizer_factory:
        Builds the synthesis client from an API key.
    language_model_factory:
        Builds the language-understanding client from an API key.
    """

    def __init__(
        self,
        store: SettingsStore | None = None,
        settings: StudioSettings | None = None,
        synthesizer_factory: Callable[[str], Synthesizer] = ElevenLabsClient,
        language_model_factory: Callable[[str], AnthropicClient] = AnthropicClient,
    ) -> None:
        self.store = store or SettingsStore()
        self._settings = settings if settings is not None else self.store.load()
        self._synthesizer_factory = synthesizer_factory
        self._language_model_factory = language_model_factory

        language = self._settings.language
        if language not in LANGUAGES:
            logger.warning("Unknown language %r in settings; using default", language)
            language = StudioSettings().language
        self._language = language

        self.accumulator = InstructionAccumulator(LANGUAGES[language].sample_text)
        self.ledger = VersionLedger()
        self.transcript = TranscriptBuffer()
        self._history: deque[FeedbackEntry] = deque(maxlen=FEEDBACK_HISTORY_LIMIT)
        self._generating = False
        self._configure()

    # -- Configuration -------------------------------------------------------

    def _configure(self) -> None:
        kind = self._settings.renderer_kind
        self.registry: TagRegistry = registry_for(kind)
        self.renderer: Renderer = renderer_for(kind, self.registry)
        self.parser: FeedbackParser
        if self._settings.anthropic_key:
            client = self._language_model_factory(self._settings.anthropic_key)
            self.parser = LanguageModelFeedbackParser(client, tags=self.registry.tags)
        else:
            self.parser = RuleBasedFeedbackParser(self.registry.tags)
        logger.debug("Session configured: renderer=%s parser=%s", kind, type(self.parser).__name__)

    @property
    def settings(self) -> StudioSettings:
        return self._settings

    def update_settings(self, **changes: Any) -> StudioSettings:
        """Apply and persist settings changes; rebuilds parser and renderer.

        Nothing changes in the session when saving fails.

        Raises
        ------
        InputValidationError
            For an unknown renderer strategy or language.
        SettingsError
            If the settings cannot be saved.
        """
        renderer = changes.get("renderer")
        if renderer is not None and renderer not in ("auto", "parameter", "directive"):
            raise InputValidationError(f"Unknown renderer strategy: {renderer!r}")
        language = changes.get("language")
        if language is not None and language not in LANGUAGES:
            raise InputValidationError(f"Unsupported language: {language!r}")
        updated = self._settings.merged(**changes)
        self.store.save(updated)
        self._settings = updated
        if language is not None:
            self._language = language
        self._configure()
        logger.info("Settings saved")
        return self._settings

    def fetch_voices(self) -> list[Voice]:
        """Replace the custom voice list with the provider's voices."""
        key = self._settings.elevenlabs_key
        if not key:
            raise ConfigurationError("Please enter your ElevenLabs API key first")
        provider_voices = self._synthesizer_factory(key).list_voices()
        voices = [Voice(id=v.voice_id, name=v.name) for v in provider_voices]
        if voices:
            self.update_settings(custom_voices=voices)
        return voices

    # -- Text & language -----------------------------------------------------

    @property
    def language(self) -> str:
        return self._language

    def set_language(self, code: str) -> None:
        """Switch language and remember it for the next session."""
        self.update_settings(language=code)

    @property
    def text(self) -> str:
        return self.accumulator.text

    def set_text(self, text: str) -> bool:
        """Replace the sacred text.  Returns ``True`` if instructions were
        cleared because the text changed."""
        return self.accumulator.rebind(text)

    @property
    def instructions(self) -> tuple[PerformanceInstruction, ...]:
        return self.accumulator.snapshot()

    def describe_instructions(self) -> list[str]:
        return [self.registry.describe(i) for i in self.accumulator]

    def copy_text(self) -> str:
        return format_instructions(self.instructions, fallback=self.text)

    # -- Feedback ------------------------------------------------------------

    @property
    def feedback_history(self) -> list[FeedbackEntry]:
        """Most recent first."""
        return list(self._history)

    def submit_feedback(self, feedback: str, auto_generate: bool = True) -> FeedbackOutcome:
        """Parse *feedback* into an instruction and append it.

        When *auto_generate* is set and a synthesis key is configured the
        performance is regenerated; a failure there is reported in the
        outcome rather than raised.
        """
        feedback = feedback.strip()
        if not feedback:
            raise InputValidationError("Feedback is empty")
        self._history.appendleft(FeedbackEntry(feedback))

        sacred_text = self.text.strip()
        if not sacred_text:
            raise InputValidationError("Please enter sacred text first")

        instruction = self.parser.parse(sacred_text, feedback)
        self.accumulator.append(instruction)
        logger.info("Feedback %r -> %s", feedback, self.registry.describe(instruction))

        if not (auto_generate and self._settings.elevenlabs_key):
            return FeedbackOutcome(instruction=instruction)

        try:
            version = self.generate()
        except StudioError as exc:
            return FeedbackOutcome(instruction=instruction, generation_error=str(exc))
        return FeedbackOutcome(instruction=instruction, version=version)

    def add_transcript_result(self, text: str, is_final: bool) -> None:
        self.transcript.add_result(text, is_final)

    def finish_transcript(self, auto_generate: bool = True) -> FeedbackOutcome | None:
        """End speech capture and submit the final transcript, if any."""
        utterance = self.transcript.finish()
        if utterance is None:
            return None
        return self.submit_feedback(utterance, auto_generate=auto_generate)

    # -- Generation ----------------------------------------------------------

    @property
    def generating(self) -> bool:
        return self._generating

    def render(self) -> SynthesisRequest:
        """Render the current text and instructions without synthesizing."""
        return self.renderer.render(self.text.strip(), self.accumulator.snapshot())

    def generate(self) -> Version:
        """Render, synthesize and commit a new version.

        Raises
        ------
        GenerationInProgressError
            If another generation is in flight.
        ConfigurationError
            If the synthesis key or the voice for the language is missing.
        InputValidationError
            If the sacred text is empty.
        SynthesisError
            If the provider call fails.  Nothing is committed.
        """
        if self._generating:
            raise GenerationInProgressError("A performance is already being generated")

        key = self._settings.elevenlabs_key
        if not key:
            raise ConfigurationError("Please add your ElevenLabs API key in Settings")

        text = self.text.strip()
        if not text:
            raise InputValidationError("Please enter some text first")

        voice_id = self._settings.voice_for(self._language)
        if not voice_id:
            raise ConfigurationError("Please select a voice in Settings")

        self._generating = True
        try:
            snapshot = self.accumulator.snapshot()
            request = self.renderer.render(text, snapshot)
            model_id = self._settings.tts_model
            try:
                audio = self._synthesizer_factory(key).synthesize(request, voice_id, model_id)
            except StudioError as exc:
                logger.error("Generation failed: %s", exc)
                raise
            return self.ledger.commit(
                text,
                snapshot,
                audio,
                media_type=AUDIO_MEDIA_TYPE,
                voice_id=voice_id,
                model_id=model_id,
            )
        finally:
            self._generating = False
