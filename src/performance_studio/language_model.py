"""Language-model feedback parsing.

Delegates feedback interpretation to a language-understanding service
(Anthropic Messages API) using a fixed prompt contract.  Every failure
mode -- transport error, non-2xx status, non-JSON reply, a tag outside
the closed set -- is reported as a failed :class:`ParseResult`; the
public :meth:`LanguageModelFeedbackParser.parse` then falls back to the
rule-based parser for the same inputs.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable

import requests

from .exceptions import LanguageModelError
from .models import (
    DEFAULT_TAG,
    START,
    PerformanceInstruction,
    StyleTag,
    position_from_json,
)
from .parser import FallbackFeedbackParser, FeedbackParser, ParseResult, RuleBasedFeedbackParser

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

ANTHROPIC_API_BASE = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-sonnet-4-20250514"
MAX_TOKENS = 256
REQUEST_TIMEOUT = 30

_CODE_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


def build_system_prompt(tags: Iterable[StyleTag]) -> str:
    """The fixed instruction prompt, enumerating the closed tag set."""
    tag_list = ", ".join(t.value for t in tags)
    return f"""You parse voice performance feedback into structured instructions.

Available performance styles: {tag_list}

Return ONLY a JSON object with these fields:
- tag: the performance style to apply (from the list above)
- position: "start", "end", "middle", or a word index number
- word: the specific word mentioned (if any), or null

Examples:
Feedback: "make it more reverent"
Output: {{"tag": "reverent", "position": "start", "word": null}}

Feedback: "add a pause after heavens"
Output: {{"tag": "pause", "position": 6, "word": "heavens"}}

Feedback: "whisper at the end"
Output: {{"tag": "whisper", "position": "end", "word": null}}

Feedback: "make 'earth' more emphasized"
Output: {{"tag": "emphasis", "position": 9, "word": "earth"}}

Return ONLY valid JSON, no explanation."""


def build_user_turn(sacred_text: str, feedback: str) -> str:
    return f'Sacred text: "{sacred_text}"\nFeedback: "{feedback}"\n\nReturn JSON:'


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    return _CODE_FENCE_RE.sub("", text.strip()).strip()


# ---------------------------------------------------------------------------
# Collaborator client
# ---------------------------------------------------------------------------


class AnthropicClient:
    """Minimal client for the Anthropic Messages API.

    Parameters
    ----------
    api_key:
        Anthropic API key.
    model:
        Model identifier.
    base_url:
        API base URL (overridable for testing or proxies).
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = ANTHROPIC_API_BASE,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def complete(self, system: str, user: str) -> str:
        """Send one user turn and return the reply text.

        Raises :class:`~performance_studio.exceptions.LanguageModelError`
        on transport failure, non-2xx status or an unexpected body.
        """
        try:
            resp = requests.post(
                f"{self.base_url}/v1/messages",
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                },
                json={
                    "model": self.model,
                    "max_tokens": MAX_TOKENS,
                    "system": system,
                    "messages": [{"role": "user", "content": user}],
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise LanguageModelError(f"Language model request failed: {exc}") from exc

        if not resp.ok:
            raise LanguageModelError(f"API Error: {resp.status_code}")

        try:
            body = resp.json()
            return body["content"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LanguageModelError(f"Unexpected language model response: {exc}") from exc


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def instruction_from_reply(
    reply: str,
    allowed_tags: frozenset[StyleTag],
) -> PerformanceInstruction:
    """Decode a model reply into an instruction.

    Missing fields take the rule-based defaults.  Raises
    :class:`~performance_studio.exceptions.LanguageModelError` for
    non-JSON replies, unknown tags or invalid positions.
    """
    try:
        data: Any = json.loads(strip_code_fences(reply))
    except json.JSONDecodeError as exc:
        raise LanguageModelError(f"Reply is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise LanguageModelError("Reply must be a JSON object")

    raw_tag = data.get("tag")
    if raw_tag is None or raw_tag == "":
        tag = DEFAULT_TAG
    else:
        try:
            tag = StyleTag(str(raw_tag).strip().lower())
        except ValueError:
            raise LanguageModelError(f"Unknown tag {raw_tag!r}") from None
        if tag not in allowed_tags:
            raise LanguageModelError(f"Tag {raw_tag!r} is outside the active set")

    raw_position = data.get("position")
    if raw_position is None or raw_position == "":
        position = START
    else:
        try:
            position = position_from_json(raw_position)
        except ValueError as exc:
            raise LanguageModelError(str(exc)) from exc

    word = data.get("word") or None
    if word is not None:
        word = str(word)

    return PerformanceInstruction(tag=tag, position=position, word=word)


class LanguageModelFeedbackParser:
    """Parse feedback through a language-understanding service.

    Parameters
    ----------
    client:
        Anything with ``complete(system, user) -> str``.
    tags:
        Closed tag set announced in the prompt and accepted in replies.
    fallback:
        Parser used when the service fails.  Defaults to a
        :class:`RuleBasedFeedbackParser` over the same tag set.
    """

    def __init__(
        self,
        client: AnthropicClient,
        tags: Iterable[StyleTag] = tuple(StyleTag),
        fallback: FeedbackParser | None = None,
    ) -> None:
        self.client = client
        self.tags = tuple(tags)
        self._allowed = frozenset(self.tags)
        self._system_prompt = build_system_prompt(self.tags)
        self._chain = FallbackFeedbackParser(
            primary=self,
            fallback=fallback or RuleBasedFeedbackParser(self.tags),
        )

    def try_parse(self, sacred_text: str, feedback: str) -> ParseResult:
        try:
            reply = self.client.complete(
                self._system_prompt, build_user_turn(sacred_text, feedback)
            )
            instruction = instruction_from_reply(reply, self._allowed)
        except Exception as exc:
            return ParseResult.failure(exc)
        logger.debug("Language model parse of %r -> %s", feedback, instruction)
        return ParseResult.success(instruction)

    def parse(self, sacred_text: str, feedback: str) -> PerformanceInstruction:
        return self._chain.parse(sacred_text, feedback)
