"""Tests for performance_studio.language_model.

Covers:
- Reply decoding: valid JSON, code fences, missing fields, bad tags/positions
- Fallback to rule-based parsing on every failure kind
- Prompt contract: closed tag set, user turn layout
- AnthropicClient HTTP handling (requests mocked)
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from conftest import GENESIS, FakeLanguageModel
from performance_studio.exceptions import LanguageModelError
from performance_studio.language_model import (
    AnthropicClient,
    LanguageModelFeedbackParser,
    build_system_prompt,
    build_user_turn,
    strip_code_fences,
)
from performance_studio.models import END, START, StyleTag, WordIndex
from performance_studio.parser import RuleBasedFeedbackParser
from performance_studio.registry import PARAMETER_REGISTRY


def _parser(reply: str = "", error: Exception | None = None, tags=tuple(StyleTag)):
    return LanguageModelFeedbackParser(FakeLanguageModel(reply, error), tags=tags)


class TestReplyDecoding:
    def test_valid_reply(self) -> None:
        reply = json.dumps({"tag": "pause", "position": 6, "word": "heavens"})
        result = _parser(reply).parse(GENESIS, "add a pause after heavens")
        assert result.tag == StyleTag.PAUSE
        assert result.position == WordIndex(6)
        assert result.word == "heavens"

    def test_named_position(self) -> None:
        reply = '{"tag": "whisper", "position": "end", "word": null}'
        result = _parser(reply).parse(GENESIS, "whisper at the end")
        assert result.tag == StyleTag.WHISPER
        assert result.position == END
        assert result.word is None

    def test_code_fence_is_stripped(self) -> None:
        reply = '```json\n{"tag": "awe", "position": "start", "word": null}\n```'
        result = _parser(reply).parse(GENESIS, "anything")
        assert result.tag == StyleTag.AWE

    def test_missing_fields_take_defaults(self) -> None:
        result = _parser("{}").parse(GENESIS, "whisper it at the end")
        assert result.tag == StyleTag.REVERENT
        assert result.position == START
        assert result.word is None

    def test_zero_index_is_a_word_index(self) -> None:
        result = _parser('{"tag": "emphasis", "position": 0}').parse(GENESIS, "x")
        assert result.position == WordIndex(0)


class TestFallback:
    """Every failure returns exactly the rule-based result."""

    FEEDBACK = "add a pause after heavens"

    def _expected(self, tags=tuple(StyleTag)):
        return RuleBasedFeedbackParser(tags).parse(GENESIS, self.FEEDBACK)

    @pytest.mark.parametrize(
        "reply",
        [
            "Sure! Here is the instruction you asked for.",
            "",
            "[1, 2, 3]",
            '{"tag": "angry", "position": "start"}',
            '{"tag": "pause", "position": "somewhere"}',
            '{"tag": "pause", "position": -3}',
            '{"tag": "pause", "position": true}',
        ],
    )
    def test_bad_reply_falls_back(self, reply: str) -> None:
        assert _parser(reply).parse(GENESIS, self.FEEDBACK) == self._expected()

    def test_transport_error_falls_back(self) -> None:
        parser = _parser(error=LanguageModelError("API Error: 529"))
        assert parser.parse(GENESIS, self.FEEDBACK) == self._expected()

    def test_unexpected_exception_falls_back(self) -> None:
        parser = _parser(error=RuntimeError("boom"))
        assert parser.parse(GENESIS, self.FEEDBACK) == self._expected()

    def test_tag_outside_active_set_falls_back(self) -> None:
        tags = PARAMETER_REGISTRY.tags
        parser = _parser('{"tag": "sigh", "position": "start"}', tags=tags)
        assert parser.parse(GENESIS, self.FEEDBACK) == self._expected(tags)

    def test_try_parse_reports_failure(self) -> None:
        result = _parser("not json").try_parse(GENESIS, self.FEEDBACK)
        assert not result.ok
        assert isinstance(result.error, LanguageModelError)

    def test_fallback_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING"):
            _parser("not json").parse(GENESIS, self.FEEDBACK)
        assert "Falling back" in caplog.text


class TestPromptContract:
    def test_system_prompt_lists_every_tag(self) -> None:
        prompt = build_system_prompt(PARAMETER_REGISTRY.tags)
        for tag in PARAMETER_REGISTRY.tags:
            assert tag.value in prompt
        assert "sigh" not in prompt.split("Available performance styles:")[1].split("\n")[0]

    def test_user_turn_carries_text_and_feedback(self) -> None:
        turn = build_user_turn(GENESIS, "slower")
        assert GENESIS in turn
        assert 'Feedback: "slower"' in turn

    def test_client_receives_prompt(self) -> None:
        model = FakeLanguageModel('{"tag": "slow"}')
        LanguageModelFeedbackParser(model).parse(GENESIS, "slower")
        system, user = model.prompts[0]
        assert "JSON" in system
        assert GENESIS in user

    def test_strip_code_fences(self) -> None:
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


def _response(ok: bool = True, status: int = 200, body=None) -> MagicMock:
    resp = MagicMock()
    resp.ok = ok
    resp.status_code = status
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


class TestAnthropicClient:
    def test_complete_returns_text(self) -> None:
        body = {"content": [{"type": "text", "text": '{"tag": "awe"}'}]}
        with patch("performance_studio.language_model.requests.post",
                   return_value=_response(body=body)) as post:
            text = AnthropicClient("sk-ant").complete("system", "user")
        assert text == '{"tag": "awe"}'
        kwargs = post.call_args.kwargs
        assert post.call_args.args[0] == "https://api.anthropic.com/v1/messages"
        assert kwargs["headers"]["x-api-key"] == "sk-ant"
        assert kwargs["headers"]["anthropic-version"] == "2023-06-01"
        assert kwargs["json"]["system"] == "system"
        assert kwargs["json"]["messages"] == [{"role": "user", "content": "user"}]

    def test_non_success_status_raises(self) -> None:
        with patch("performance_studio.language_model.requests.post",
                   return_value=_response(ok=False, status=401, body={})):
            with pytest.raises(LanguageModelError, match="401"):
                AnthropicClient("sk-ant").complete("s", "u")

    def test_transport_error_raises(self) -> None:
        with patch("performance_studio.language_model.requests.post",
                   side_effect=requests.ConnectionError("offline")):
            with pytest.raises(LanguageModelError, match="offline"):
                AnthropicClient("sk-ant").complete("s", "u")

    def test_unexpected_body_raises(self) -> None:
        with patch("performance_studio.language_model.requests.post",
                   return_value=_response(body={"content": []})):
            with pytest.raises(LanguageModelError):
                AnthropicClient("sk-ant").complete("s", "u")

    def test_custom_base_url(self) -> None:
        body = {"content": [{"text": "{}"}]}
        with patch("performance_studio.language_model.requests.post",
                   return_value=_response(body=body)) as post:
            AnthropicClient("k", base_url="http://proxy.local/").complete("s", "u")
        assert post.call_args.args[0] == "http://proxy.local/v1/messages"
