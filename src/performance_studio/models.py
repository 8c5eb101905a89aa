"""Data models for performance instructions and synthesis payloads.

Immutable dataclasses shared by the parsers, renderers and the session.
A :class:`PerformanceInstruction` is never mutated once created; the
accumulator only ever appends or clears.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeAlias, Union


class StyleTag(str, Enum):
    """Closed set of performance styles a feedback utterance can request."""

    REVERENT = "reverent"
    JOYFUL = "joyful"
    SORROWFUL = "sorrowful"
    URGENT = "urgent"
    WHISPER = "whisper"
    PEACEFUL = "peaceful"
    EMPHASIS = "emphasis"
    SLOW = "slow"
    FAST = "fast"
    AWE = "awe"
    PAUSE = "pause"
    # Directive-only styles.
    WARNING = "warning"
    GENTLE = "gentle"
    SIGH = "sigh"
    BREATH = "breath"


DEFAULT_TAG = StyleTag.REVERENT


# ---------------------------------------------------------------------------
# Positions (tagged union)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Start:
    """Apply at the beginning of the text."""

    def to_json(self) -> str:
        return "start"


@dataclass(frozen=True)
class End:
    """Apply towards the end of the text."""

    def to_json(self) -> str:
        return "end"


@dataclass(frozen=True)
class Middle:
    """Apply around the middle of the text."""

    def to_json(self) -> str:
        return "middle"


@dataclass(frozen=True)
class WordIndex:
    """Apply at a concrete zero-based token index of the sacred text."""

    index: int

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Word index must be non-negative, got {self.index}")

    def to_json(self) -> int:
        return self.index


PositionSpec: TypeAlias = Union[Start, End, Middle, WordIndex]

START = Start()
END = End()
MIDDLE = Middle()

_NAMED_POSITIONS: dict[str, PositionSpec] = {
    "start": START,
    "end": END,
    "middle": MIDDLE,
}


def position_from_json(value: Any) -> PositionSpec:
    """Decode the JSON form of a position (``"start"``, ``"end"``,
    ``"middle"`` or a non-negative integer).

    Raises :class:`ValueError` for anything else.
    """
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool):
        raise ValueError(f"Invalid position: {value!r}")
    if isinstance(value, int):
        return WordIndex(value)
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _NAMED_POSITIONS:
            return _NAMED_POSITIONS[key]
        if key.isdigit():
            return WordIndex(int(key))
    raise ValueError(f"Invalid position: {value!r}")


# ---------------------------------------------------------------------------
# Instructions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PerformanceInstruction:
    """One parsed directive: a style tag, a target position and an
    optional anchor word."""

    tag: StyleTag
    position: PositionSpec = START
    word: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tag": self.tag.value,
            "position": self.position.to_json(),
            "word": self.word,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PerformanceInstruction:
        """Build an instruction from its JSON form.

        Raises :class:`ValueError` if the tag or position is not recognised.
        """
        return cls(
            tag=StyleTag(data["tag"]),
            position=position_from_json(data.get("position", "start")),
            word=data.get("word"),
        )

    def location_label(self) -> str:
        """Human-readable location, e.g. ``at "heavens"`` or ``at end``."""
        if self.word:
            return f'at "{self.word}"'
        if isinstance(self.position, Start):
            return "at beginning"
        if isinstance(self.position, End):
            return "at end"
        return ""


def format_instructions(
    instructions: tuple[PerformanceInstruction, ...] | list[PerformanceInstruction],
    fallback: str = "",
) -> str:
    """Plain-text listing of instructions, one ``[tag] target`` per line.

    Returns *fallback* when there are no instructions.
    """
    if not instructions:
        return fallback
    lines = []
    for inst in instructions:
        target = inst.word or str(inst.position.to_json())
        lines.append(f"[{inst.tag.value}] {target}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Synthesis payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VoiceSettings:
    """Voice-control knobs sent to the synthesis provider."""

    stability: float
    similarity_boost: float
    style: float
    speed: float = 1.0
    use_speaker_boost: bool = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
            "style": self.style,
            "speed": self.speed,
            "use_speaker_boost": self.use_speaker_boost,
        }


NEUTRAL_VOICE_SETTINGS = VoiceSettings(
    stability=0.5,
    similarity_boost=0.75,
    style=0.5,
    speed=1.0,
)


@dataclass(frozen=True)
class SynthesisRequest:
    """What a renderer hands to the synthesis client.

    ``voice_settings`` is set by the parameter strategy; ``context_hint``
    by the directive strategy.
    """

    text: str
    voice_settings: VoiceSettings | None = None
    context_hint: str | None = None


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Version:
    """One committed generation attempt."""

    ordinal: int
    text: str
    instructions: tuple[PerformanceInstruction, ...]
    audio: bytes = field(repr=False)
    media_type: str = "audio/mpeg"
    voice_id: str | None = None
    model_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.ordinal,
            "text": self.text,
            "instructions": [i.to_dict() for i in self.instructions],
            "media_type": self.media_type,
            "voice_id": self.voice_id,
            "model_id": self.model_id,
            "audio_bytes": len(self.audio),
            "timestamp": self.timestamp.isoformat(),
        }
