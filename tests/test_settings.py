"""Tests for performance_studio.settings (JSON persistence and defaults)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from performance_studio.exceptions import SettingsError
from performance_studio.renderers import ParameterRenderer
from performance_studio.session import StudioSession
from performance_studio.settings import (
    DEFAULT_LANGUAGE,
    DEFAULT_TTS_MODEL,
    DEFAULT_VOICES,
    LANGUAGES,
    SettingsStore,
    StudioSettings,
    Voice,
    format_voice_lines,
    parse_voice_lines,
)


class TestDefaults:
    def test_defaults(self) -> None:
        s = StudioSettings()
        assert s.elevenlabs_key == ""
        assert s.tts_model == DEFAULT_TTS_MODEL
        assert s.language == DEFAULT_LANGUAGE
        assert s.custom_voices == DEFAULT_VOICES
        assert s.renderer == "auto"

    def test_languages(self) -> None:
        assert set(LANGUAGES) == {"hi-IN", "en-IN", "pt-BR"}
        assert LANGUAGES["en-IN"].sample_text.startswith("In the beginning")


class TestRendererKind:
    @pytest.mark.parametrize(
        ("renderer", "model", "kind"),
        [
            ("auto", "eleven_multilingual_v2", "parameter"),
            ("auto", "eleven_v3", "directive"),
            ("parameter", "eleven_v3", "parameter"),
            ("directive", "eleven_multilingual_v2", "directive"),
        ],
    )
    def test_kind(self, renderer: str, model: str, kind: str) -> None:
        assert StudioSettings(renderer=renderer, tts_model=model).renderer_kind == kind


class TestSettingsModel:
    def test_public_dict_masks_keys(self) -> None:
        data = StudioSettings(elevenlabs_key="sk-1234567890", anthropic_key="").public_dict()
        assert data["elevenlabs_key"].endswith("7890")
        assert "sk-123" not in data["elevenlabs_key"]
        assert data["anthropic_key"] == ""

    def test_merged_ignores_none_and_merges_voices(self) -> None:
        s = StudioSettings(selected_voices={"hi-IN": "a"})
        merged = s.merged(elevenlabs_key=None, selected_voices={"en-IN": "b"})
        assert merged.selected_voices == {"hi-IN": "a", "en-IN": "b"}
        assert merged.elevenlabs_key == ""

    def test_from_dict_keeps_defaults_for_missing_keys(self) -> None:
        s = StudioSettings.from_dict({"elevenlabs_key": " xi "})
        assert s.elevenlabs_key == "xi"
        assert s.tts_model == DEFAULT_TTS_MODEL

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"elevenlabs_key": 42},
            {"renderer": "fancy"},
            {"custom_voices": "Aria"},
            {"custom_voices": [{"name": "no id"}]},
            {"selected_voices": ["a"]},
        ],
    )
    def test_from_dict_rejects_wrong_types(self, data) -> None:
        with pytest.raises(SettingsError):
            StudioSettings.from_dict(data)


class TestSettingsStore:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert SettingsStore(tmp_path / "nope.json").load() == StudioSettings()

    def test_corrupt_file_gives_defaults(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert SettingsStore(path).load() == StudioSettings()
        assert "Ignoring unreadable settings" in caplog.text

    def test_wrong_types_give_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"tts_model": ["x"]}), encoding="utf-8")
        assert SettingsStore(path).load() == StudioSettings()

    def test_round_trip(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "nested" / "settings.json")
        original = StudioSettings(
            elevenlabs_key="xi",
            anthropic_key="sk-ant",
            tts_model="eleven_v3",
            custom_voices=(Voice("id1", "Ruth"),),
            selected_voices={"pt-BR": "id1"},
            language="pt-BR",
        )
        store.save(original)
        assert store.load() == original

    def test_memory_store_does_not_write(self) -> None:
        store = SettingsStore()
        store.save(StudioSettings(elevenlabs_key="xi"))
        assert store.load() == StudioSettings()

    def test_unwritable_path_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(SettingsError):
            SettingsStore(blocker / "settings.json").save(StudioSettings())

    def test_failed_save_leaves_session_unchanged(self, tmp_path: Path) -> None:
        s = StudioSession(store=SettingsStore(tmp_path))
        before = s.settings
        with pytest.raises(SettingsError):
            s.update_settings(renderer="directive", language="pt-BR")
        assert s.settings == before
        assert s.settings.renderer_kind == "parameter"
        assert isinstance(s.renderer, ParameterRenderer)
        assert s.registry.kind == "parameter"
        assert s.language == "hi-IN"


class TestVoiceLines:
    def test_parse(self) -> None:
        text = "Ruth | abc123\n\n  bare-id  \nBoaz|def456"
        assert parse_voice_lines(text) == [
            Voice("abc123", "Ruth"),
            Voice("bare-id", "bare-id"),
            Voice("def456", "Boaz"),
        ]

    def test_format(self) -> None:
        assert format_voice_lines([Voice("a", "Ruth")]) == "Ruth | a"
