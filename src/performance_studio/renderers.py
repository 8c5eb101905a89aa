"""Performance renderers -- accumulated instructions to a synthesis payload.

Both strategies satisfy ``render(text, instructions) -> SynthesisRequest``:

  ParameterRenderer   The *last* instruction dominates: its preset becomes
                      the voice settings.  Text is left as is apart from
                      pause punctuation ("...") spliced onto word-indexed
                      pause instructions.
  DirectiveRenderer   Every instruction inserts its inline marker (e.g.
                      ``[whispers]``); the *first* instruction carrying a
                      continuation hint supplies the context hint.

Each strategy keeps its own dominance policy.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .exceptions import ConfigurationError
from .models import (
    DEFAULT_TAG,
    NEUTRAL_VOICE_SETTINGS,
    End,
    Middle,
    PerformanceInstruction,
    PositionSpec,
    Start,
    SynthesisRequest,
    VoiceSettings,
    WordIndex,
)
from .registry import (
    DIRECTIVE_REGISTRY,
    PARAMETER_REGISTRY,
    DirectiveEffect,
    ParameterEffect,
    TagRegistry,
)

logger = logging.getLogger(__name__)

PAUSE_MARK = "..."

# Sort keys for the directive strategy.  Start sorts last, End first.
START_KEY = -1
END_KEY = 1_000_000

# Number of trailing tokens an End marker is placed before.
END_TAIL_TOKENS = 3


class Renderer(Protocol):
    """Protocol for performance renderers."""

    registry: TagRegistry

    def render(
        self, text: str, instructions: Sequence[PerformanceInstruction]
    ) -> SynthesisRequest:
        ...


# ---------------------------------------------------------------------------
# Strategy A: uniform voice parameters
# ---------------------------------------------------------------------------


def insert_pause(text: str, index: int) -> str:
    """Append the pause mark to the token at *index* (no-op if out of range)."""
    words = text.split()
    if 0 <= index < len(words):
        words[index] = words[index] + PAUSE_MARK
    return " ".join(words)


class ParameterRenderer:
    """Map the dominant (most recent) instruction to voice settings.

    The preset's ``text_transform`` is not applied to the spoken text;
    only pause punctuation is inserted.
    """

    def __init__(self, registry: TagRegistry = PARAMETER_REGISTRY) -> None:
        self.registry = registry

    def render(
        self, text: str, instructions: Sequence[PerformanceInstruction]
    ) -> SynthesisRequest:
        if not instructions:
            return SynthesisRequest(text=text, voice_settings=NEUTRAL_VOICE_SETTINGS)

        dominant = instructions[-1]
        preset = self._preset(dominant)
        settings = VoiceSettings(
            stability=preset.stability,
            similarity_boost=preset.similarity_boost,
            style=preset.style,
            speed=preset.speed,
            use_speaker_boost=True,
        )

        spoken = text
        for inst in instructions:
            effect = self.registry.get(inst.tag)
            if not isinstance(effect, ParameterEffect):
                continue
            if effect.is_pause and isinstance(inst.position, WordIndex):
                spoken = insert_pause(spoken, inst.position.index)

        logger.debug("Parameter render: dominant=%s settings=%s", dominant.tag.value, settings)
        return SynthesisRequest(text=spoken, voice_settings=settings)

    def _preset(self, instruction: PerformanceInstruction) -> ParameterEffect:
        effect = self.registry.get(instruction.tag)
        if isinstance(effect, ParameterEffect):
            return effect
        fallback = self.registry.get(DEFAULT_TAG)
        if not isinstance(fallback, ParameterEffect):
            raise ConfigurationError(
                f"Registry {self.registry.kind!r} has no voice preset for {DEFAULT_TAG.value!r}"
            )
        return fallback


# ---------------------------------------------------------------------------
# Strategy B: inline directive markers
# ---------------------------------------------------------------------------


def resolve_sort_key(position: PositionSpec, token_count: int) -> int:
    """Numeric insertion key for a position against the original text."""
    if isinstance(position, Start):
        return START_KEY
    if isinstance(position, End):
        return END_KEY
    if isinstance(position, Middle):
        return token_count // 2
    return position.index


def _prepend(text: str, marker: str) -> str:
    return f"{marker} {text}"


def _insert_before(text: str, index: int, marker: str) -> str:
    words = text.split()
    if 0 <= index < len(words):
        words.insert(index, marker)
        return " ".join(words)
    return text


class DirectiveRenderer:
    """Rewrite the text with inline directive markers.

    Instructions are applied from the end of the text towards the start
    so that word indices computed against the original text stay valid
    while the string grows.
    """

    def __init__(self, registry: TagRegistry = DIRECTIVE_REGISTRY) -> None:
        self.registry = registry

    def render(
        self, text: str, instructions: Sequence[PerformanceInstruction]
    ) -> SynthesisRequest:
        if not instructions:
            return SynthesisRequest(text=text)

        hint = self.context_hint(instructions)

        token_count = len(text.split())
        keyed = [
            (resolve_sort_key(inst.position, token_count), inst)
            for inst in instructions
        ]
        # sorted() is stable, so equal keys keep insertion order.
        keyed = sorted(keyed, key=lambda pair: pair[0], reverse=True)

        marked = text
        for key, inst in keyed:
            effect = self.registry.get(inst.tag)
            if not isinstance(effect, DirectiveEffect):
                logger.debug("No directive for tag %s; skipped", inst.tag.value)
                continue
            marked = self._apply(marked, key, effect.marker)

        return SynthesisRequest(text=marked, context_hint=hint)

    def context_hint(self, instructions: Sequence[PerformanceInstruction]) -> str | None:
        """First continuation hint in insertion order, or ``None``."""
        for inst in instructions:
            effect = self.registry.get(inst.tag)
            if isinstance(effect, DirectiveEffect) and effect.hint:
                return effect.hint
        return None

    @staticmethod
    def _apply(text: str, key: int, marker: str) -> str:
        if key == START_KEY:
            return _prepend(text, marker)
        if key == END_KEY:
            words = text.split()
            if len(words) > END_TAIL_TOKENS - 1:
                return _insert_before(text, len(words) - END_TAIL_TOKENS, marker)
            return _prepend(text, marker)
        return _insert_before(text, key, marker)


def renderer_for(kind: str, registry: TagRegistry | None = None) -> Renderer:
    """Build the renderer for a strategy name (``parameter``/``directive``).

    Raises :class:`ValueError` for an unknown strategy.
    """
    if kind == "parameter":
        return ParameterRenderer(registry or PARAMETER_REGISTRY)
    if kind == "directive":
        return DirectiveRenderer(registry or DIRECTIVE_REGISTRY)
    raise ValueError(f"Unknown renderer strategy: {kind!r}")
