"""Tag registry -- what each style tag does to the synthesized performance.

Two registries exist, one per rendering strategy:

  Strategy     Effect shape       Drives
  ──────────   ────────────────   ─────────────────────────────────────
  parameter    ParameterEffect    voice settings (stability, similarity,
                                  style, speed) + pause punctuation
  directive    DirectiveEffect    inline stage-direction markers such as
                                  ``[whispers]`` + a continuation hint

Registries are read-only tables; the session injects one into its
parsers and renderer.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterator, Mapping, Union

from .models import PerformanceInstruction, StyleTag

# ---------------------------------------------------------------------------
# Effect shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParameterEffect:
    """Voice-parameter preset for one style tag."""

    description: str
    stability: float
    similarity_boost: float
    style: float
    speed: float
    text_transform: Callable[[str], str]
    pause_after: bool = False
    is_pause: bool = False


@dataclass(frozen=True)
class DirectiveEffect:
    """Inline directive marker for one style tag.

    ``insert_only`` marks non-speech cues (breath, sigh, pause) that are
    only inserted and carry no continuation hint.
    """

    description: str
    marker: str
    hint: str | None = None
    insert_only: bool = False


TagEffect = Union[ParameterEffect, DirectiveEffect]


# ---------------------------------------------------------------------------
# Text transforms (pure str -> str)
# ---------------------------------------------------------------------------


def _identity(text: str) -> str:
    return text


def _soften(text: str) -> str:
    return text.lower().replace("!", ".")


def _exclaim(text: str) -> str:
    return text + "!"


def _trail_exclamations(text: str) -> str:
    return text.replace("!", "...")


def _sharpen(text: str) -> str:
    return text.replace(".", "!")


def _lower(text: str) -> str:
    return text.lower()


def _upper(text: str) -> str:
    return text.upper()


def _trail_off(text: str) -> str:
    return text + "..."


# ---------------------------------------------------------------------------
# Registry container
# ---------------------------------------------------------------------------


class TagRegistry:
    """Read-only mapping from :class:`StyleTag` to its effect.

    Parameters
    ----------
    kind:
        ``"parameter"`` or ``"directive"``.
    effects:
        Effects in declaration order.  The order is preserved by
        :attr:`tags` and is what parsers enumerate.
    """

    def __init__(self, kind: str, effects: Mapping[StyleTag, TagEffect]) -> None:
        self.kind = kind
        self._effects: Mapping[StyleTag, TagEffect] = MappingProxyType(dict(effects))

    @property
    def tags(self) -> tuple[StyleTag, ...]:
        return tuple(self._effects)

    def __contains__(self, tag: object) -> bool:
        return tag in self._effects

    def __getitem__(self, tag: StyleTag) -> TagEffect:
        return self._effects[tag]

    def __iter__(self) -> Iterator[StyleTag]:
        return iter(self._effects)

    def __len__(self) -> int:
        return len(self._effects)

    def get(self, tag: StyleTag) -> TagEffect | None:
        return self._effects.get(tag)

    def describe(self, instruction: PerformanceInstruction) -> str:
        """Display line for an instruction, e.g.
        ``[pause] Insert a pause at "heavens"``."""
        effect = self._effects.get(instruction.tag)
        parts = [f"[{instruction.tag.value}]"]
        if effect is not None:
            parts.append(effect.description)
        location = instruction.location_label()
        if location:
            parts.append(location)
        return " ".join(parts)

    def catalogue(self) -> list[dict[str, str]]:
        return [
            {"tag": tag.value, "description": effect.description}
            for tag, effect in self._effects.items()
        ]


# ---------------------------------------------------------------------------
# Built-in registries
# ---------------------------------------------------------------------------

PARAMETER_REGISTRY = TagRegistry("parameter", {
    StyleTag.REVERENT: ParameterEffect(
        "Slow, solemn, respectful", 0.7, 0.8, 0.3, 0.85, _soften, pause_after=True,
    ),
    StyleTag.JOYFUL: ParameterEffect(
        "Bright, energetic, happy", 0.4, 0.75, 0.8, 1.1, _exclaim,
    ),
    StyleTag.SORROWFUL: ParameterEffect(
        "Slow, melancholic, heavy", 0.75, 0.8, 0.4, 0.8, _trail_exclamations, pause_after=True,
    ),
    StyleTag.URGENT: ParameterEffect(
        "Fast, intense, pressing", 0.35, 0.7, 0.7, 1.25, _sharpen,
    ),
    StyleTag.WHISPER: ParameterEffect(
        "Soft, intimate, quiet", 0.8, 0.9, 0.2, 0.9, _lower, pause_after=True,
    ),
    StyleTag.PEACEFUL: ParameterEffect(
        "Calm, gentle, serene", 0.8, 0.8, 0.3, 0.9, _identity, pause_after=True,
    ),
    StyleTag.EMPHASIS: ParameterEffect(
        "Strong, clear, important", 0.5, 0.75, 0.6, 0.95, _upper,
    ),
    StyleTag.SLOW: ParameterEffect(
        "Deliberately paced", 0.7, 0.8, 0.4, 0.75, _identity, pause_after=True,
    ),
    StyleTag.FAST: ParameterEffect(
        "Quick paced", 0.4, 0.7, 0.5, 1.3, _identity,
    ),
    StyleTag.AWE: ParameterEffect(
        "Wonder, amazement", 0.5, 0.8, 0.6, 0.85, _trail_off, pause_after=True,
    ),
    StyleTag.PAUSE: ParameterEffect(
        "Insert a pause", 0.7, 0.8, 0.4, 1.0, _identity, pause_after=True, is_pause=True,
    ),
})

DIRECTIVE_REGISTRY = TagRegistry("directive", {
    StyleTag.REVERENT: DirectiveEffect(
        "Slow, solemn, respectful", "[reverently]",
        "spoken reverently, in a hushed and holy voice.",
    ),
    StyleTag.JOYFUL: DirectiveEffect(
        "Bright, energetic, happy", "[joyfully]",
        "spoken with bright, overflowing joy.",
    ),
    StyleTag.SORROWFUL: DirectiveEffect(
        "Slow, melancholic, heavy", "[sorrowfully]",
        "spoken with deep sorrow, as if grieving.",
    ),
    StyleTag.URGENT: DirectiveEffect(
        "Fast, intense, pressing", "[urgently]",
        "spoken urgently, with pressing intensity.",
    ),
    StyleTag.WHISPER: DirectiveEffect(
        "Soft, intimate, quiet", "[whispers]",
        "spoken in a soft, intimate whisper.",
    ),
    StyleTag.PEACEFUL: DirectiveEffect(
        "Calm, gentle, serene", "[calmly]",
        "spoken calmly and serenely.",
    ),
    StyleTag.EMPHASIS: DirectiveEffect(
        "Strong, clear, important", "[emphatically]",
        "spoken with strong, clear emphasis.",
    ),
    StyleTag.SLOW: DirectiveEffect(
        "Deliberately paced", "[slowly]",
        "spoken slowly and deliberately.",
    ),
    StyleTag.FAST: DirectiveEffect(
        "Quick paced", "[quickly]",
        "spoken at a quick pace.",
    ),
    StyleTag.AWE: DirectiveEffect(
        "Wonder, amazement", "[awestruck]",
        "spoken in hushed wonder and amazement.",
    ),
    StyleTag.PAUSE: DirectiveEffect(
        "Insert a pause", "[pause]", insert_only=True,
    ),
    StyleTag.WARNING: DirectiveEffect(
        "Grave, cautionary", "[warning]",
        "spoken as a solemn warning.",
    ),
    StyleTag.GENTLE: DirectiveEffect(
        "Tender, kind", "[gently]",
        "spoken gently and tenderly.",
    ),
    StyleTag.SIGH: DirectiveEffect(
        "An audible sigh", "[sighs]", insert_only=True,
    ),
    StyleTag.BREATH: DirectiveEffect(
        "An audible breath", "[inhales]", insert_only=True,
    ),
})


def registry_for(kind: str) -> TagRegistry:
    """Return the built-in registry for a strategy name.

    Raises :class:`ValueError` for an unknown strategy.
    """
    if kind == "parameter":
        return PARAMETER_REGISTRY
    if kind == "directive":
        return DIRECTIVE_REGISTRY
    raise ValueError(f"Unknown renderer strategy: {kind!r}")
