"""Feedback parsing -- free-form feedback to a :class:`PerformanceInstruction`.

The rule-based parser is deterministic and never fails.  Other parsers
(e.g. the language-model parser) report failures through
:class:`ParseResult` and are wrapped in :class:`FallbackFeedbackParser`
so that the pipeline always yields an instruction.

Rule-based algorithm:
  1. Lower-case the feedback.
  2. First tag (in table order) with a keyword occurring in the feedback.
  3. "end"/"last" -> End, "middle" -> Middle, otherwise Start.
  4. A quoted word overrides the position when it exactly matches a
     token of the sacred text (punctuation-stripped, case-insensitive).
  5. Otherwise "at/after/before/near <word>" overrides the position when
     a token contains the word.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Protocol

from .models import (
    DEFAULT_TAG,
    END,
    MIDDLE,
    START,
    PerformanceInstruction,
    PositionSpec,
    StyleTag,
    WordIndex,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Keyword table (order is the tie-break: earlier tags win)
# ---------------------------------------------------------------------------

TAG_KEYWORDS: tuple[tuple[StyleTag, tuple[str, ...]], ...] = (
    (StyleTag.REVERENT, ("reverent", "reverence", "respectful", "solemn", "holy")),
    (StyleTag.JOYFUL, ("joyful", "happy", "joy", "cheerful", "bright")),
    (StyleTag.SORROWFUL, ("sorrowful", "sad", "grief", "melancholy")),
    (StyleTag.URGENT, ("urgent", "fast", "quick", "hurry")),
    (StyleTag.WHISPER, ("whisper", "soft", "quiet")),
    (StyleTag.PEACEFUL, ("peaceful", "calm", "serene")),
    (StyleTag.EMPHASIS, ("emphasis", "stress", "emphasize", "important")),
    (StyleTag.SLOW, ("slow", "slower", "deliberate")),
    (StyleTag.FAST, ("fast", "faster", "quick", "rapid")),
    (StyleTag.AWE, ("awe", "wonder", "amazed")),
    (StyleTag.PAUSE, ("pause", "break", "stop", "wait")),
    (StyleTag.WARNING, ("warning", "warn", "caution", "beware")),
    (StyleTag.GENTLE, ("gentle", "gently", "tender", "kind")),
    (StyleTag.SIGH, ("sigh", "exhale")),
    (StyleTag.BREATH, ("breath", "breathe", "inhale")),
)

# Trailing punctuation removed from sacred-text tokens before matching,
# including the Devanagari danda.
TOKEN_PUNCTUATION = ".,!?;:।"

# Straight or typographic quotes around a target word.
_QUOTED_RE = re.compile(
    "[\"'“”‘’]([^\"'“”‘’]+)[\"'“”‘’]"
)

_ANCHOR_RE = re.compile(r"(?:at|after|before|near)\s+['\"]?(\w+)['\"]?")


def strip_token(token: str) -> str:
    """Lower-case a sacred-text token and strip trailing punctuation."""
    return token.lower().rstrip(TOKEN_PUNCTUATION)


def _find_exact(tokens: list[str], word: str) -> int | None:
    target = word.lower()
    for i, tok in enumerate(tokens):
        if strip_token(tok) == target:
            return i
    return None


def _find_containing(tokens: list[str], word: str) -> int | None:
    target = word.lower()
    for i, tok in enumerate(tokens):
        if target in strip_token(tok):
            return i
    return None


# ---------------------------------------------------------------------------
# Parser protocol and result type
# ---------------------------------------------------------------------------


class FeedbackParser(Protocol):
    """Protocol for feedback parsers."""

    def parse(self, sacred_text: str, feedback: str) -> PerformanceInstruction:
        """Convert *feedback* about *sacred_text* into an instruction."""
        ...


@dataclass(frozen=True)
class ParseResult:
    """Outcome of a parser that is allowed to fail.

    Exactly one of ``instruction`` and ``error`` is set.
    """

    instruction: PerformanceInstruction | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.instruction is not None

    @classmethod
    def success(cls, instruction: PerformanceInstruction) -> ParseResult:
        return cls(instruction=instruction)

    @classmethod
    def failure(cls, error: Exception) -> ParseResult:
        return cls(error=error)


class FallibleFeedbackParser(Protocol):
    """Protocol for parsers that report failure instead of raising."""

    def try_parse(self, sacred_text: str, feedback: str) -> ParseResult:
        ...


# ---------------------------------------------------------------------------
# Rule-based parser
# ---------------------------------------------------------------------------


class RuleBasedFeedbackParser:
    """Deterministic keyword/pattern parser.

    Parameters
    ----------
    tags:
        Closed set of tags this parser may return (normally the active
        registry's tags).  Keywords of other tags are ignored.  ``None``
        allows every tag in :data:`TAG_KEYWORDS`.
    """

    def __init__(self, tags: Iterable[StyleTag] | None = None) -> None:
        allowed = set(tags) if tags is not None else None
        self._table = tuple(
            (tag, keywords)
            for tag, keywords in TAG_KEYWORDS
            if allowed is None or tag in allowed
        )

    def parse(self, sacred_text: str, feedback: str) -> PerformanceInstruction:
        feedback_lower = feedback.lower()
        tokens = sacred_text.split()

        tag = self._detect_tag(feedback_lower)
        position = self._detect_position(feedback_lower)
        word: str | None = None

        quoted = _QUOTED_RE.search(feedback)
        if quoted:
            word = quoted.group(1)
            index = _find_exact(tokens, word)
            if index is not None:
                position = WordIndex(index)
        else:
            anchor = _ANCHOR_RE.search(feedback_lower)
            if anchor:
                word = anchor.group(1)
                index = _find_containing(tokens, word)
                if index is not None:
                    position = WordIndex(index)

        instruction = PerformanceInstruction(tag=tag, position=position, word=word)
        logger.debug("Rule-based parse of %r -> %s", feedback, instruction)
        return instruction

    def _detect_tag(self, feedback_lower: str) -> StyleTag:
        for tag, keywords in self._table:
            if any(kw in feedback_lower for kw in keywords):
                return tag
        return DEFAULT_TAG

    @staticmethod
    def _detect_position(feedback_lower: str) -> PositionSpec:
        if "end" in feedback_lower or "last" in feedback_lower:
            return END
        if "middle" in feedback_lower:
            return MIDDLE
        return START


# ---------------------------------------------------------------------------
# Fallback combinator
# ---------------------------------------------------------------------------


class FallbackFeedbackParser:
    """Try *primary*; on any failure use *fallback* for the same inputs.

    The failure is logged and never reaches the caller.
    """

    def __init__(
        self,
        primary: FallibleFeedbackParser,
        fallback: FeedbackParser,
    ) -> None:
        self.primary = primary
        self.fallback = fallback

    def parse(self, sacred_text: str, feedback: str) -> PerformanceInstruction:
        result = self.primary.try_parse(sacred_text, feedback)
        if result.instruction is not None:
            return result.instruction
        logger.warning(
            "Falling back to rule-based parsing: %s", result.error,
        )
        return self.fallback.parse(sacred_text, feedback)
