"""Persisted studio settings: credentials, voices, model and languages.

Settings live in a JSON file.  Loading never fails: a missing file or a
corrupt one yields the built-in defaults (the problem is logged).
Saved values are merged over the defaults, so files written by older
versions keep working.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .exceptions import SettingsError
from .synthesis import supports_directives

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Languages and voices
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Language:
    code: str
    name: str
    native_name: str
    recognition_lang: str
    sample_text: str


LANGUAGES: dict[str, Language] = {
    "hi-IN": Language(
        code="hi-IN",
        name="Hindi",
        native_name="हिन्दी",
        recognition_lang="hi-IN",
        sample_text="आदि में परमेश्‍वर ने आकाश और पृथ्वी की सृष्टि की।",
    ),
    "en-IN": Language(
        code="en-IN",
        name="Indian English",
        native_name="Indian English",
        recognition_lang="en-IN",
        sample_text="In the beginning, God created the heavens and the earth.",
    ),
    "pt-BR": Language(
        code="pt-BR",
        name="Portuguese (Sertanejo)",
        native_name="Português Sertanejo",
        recognition_lang="pt-BR",
        sample_text="No princípio, Deus criou os céus e a terra.",
    ),
}

DEFAULT_LANGUAGE = "hi-IN"


@dataclass(frozen=True)
class Voice:
    id: str
    name: str


DEFAULT_VOICES: tuple[Voice, ...] = (
    Voice("pMsXgVXv3BLzUgSXRplE", "Aria (Female)"),
    Voice("EXAVITQu4vr4xnSDxMaL", "Sarah (Female)"),
    Voice("onwK4e9ZLuTAKqWW03F9", "Daniel (Male)"),
    Voice("21m00Tcm4TlvDq8ikWAM", "Rachel (Female)"),
    Voice("TxGEqnHWrfWFTfGW9XjX", "Josh (Male)"),
)

DEFAULT_TTS_MODEL = "eleven_multilingual_v2"

RENDERER_CHOICES = ("auto", "parameter", "directive")


def parse_voice_lines(text: str) -> list[Voice]:
    """Parse ``Name | voice_id`` lines.

    A line without ``|`` uses its value as both name and id.  Blank
    lines are skipped.
    """
    voices: list[Voice] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        parts = [p.strip() for p in line.split("|")]
        if len(parts) == 2:
            name, voice_id = parts
        else:
            name = voice_id = parts[0]
        if voice_id:
            voices.append(Voice(id=voice_id, name=name))
    return voices


def format_voice_lines(voices: list[Voice] | tuple[Voice, ...]) -> str:
    return "\n".join(f"{v.name} | {v.id}" for v in voices)


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


def _mask(secret: str) -> str:
    if not secret:
        return ""
    return "*" * max(len(secret) - 4, 4) + secret[-4:]


@dataclass(frozen=True)
class StudioSettings:
    """User settings for a studio session."""

    elevenlabs_key: str = ""
    anthropic_key: str = ""
    tts_model: str = DEFAULT_TTS_MODEL
    renderer: str = "auto"
    custom_voices: tuple[Voice, ...] = DEFAULT_VOICES
    selected_voices: dict[str, str] = field(default_factory=dict)
    language: str = DEFAULT_LANGUAGE

    @property
    def renderer_kind(self) -> str:
        """Concrete strategy: ``auto`` picks directives for models that
        interpret them."""
        if self.renderer != "auto":
            return self.renderer
        return "directive" if supports_directives(self.tts_model) else "parameter"

    def voice_for(self, language: str) -> str:
        """Selected voice id for *language* (empty if none)."""
        return self.selected_voices.get(language, "")

    def to_dict(self) -> dict[str, Any]:
        return {
            "elevenlabs_key": self.elevenlabs_key,
            "anthropic_key": self.anthropic_key,
            "tts_model": self.tts_model,
            "renderer": self.renderer,
            "custom_voices": [{"id": v.id, "name": v.name} for v in self.custom_voices],
            "selected_voices": dict(self.selected_voices),
            "language": self.language,
        }

    def public_dict(self) -> dict[str, Any]:
        """Like :meth:`to_dict` but with credentials masked."""
        data = self.to_dict()
        data["elevenlabs_key"] = _mask(self.elevenlabs_key)
        data["anthropic_key"] = _mask(self.anthropic_key)
        return data

    def merged(self, **changes: Any) -> StudioSettings:
        """Return a copy with *changes* applied (``None`` values ignored)."""
        updates = {k: v for k, v in changes.items() if v is not None}
        if "custom_voices" in updates:
            updates["custom_voices"] = tuple(updates["custom_voices"]) or DEFAULT_VOICES
        if "selected_voices" in updates:
            updates["selected_voices"] = {**self.selected_voices, **updates["selected_voices"]}
        return replace(self, **updates)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StudioSettings:
        """Build settings from saved JSON, keeping defaults for missing keys.

        Raises :class:`~performance_studio.exceptions.SettingsError`
        when a present value has the wrong type.
        """
        if not isinstance(data, dict):
            raise SettingsError("Settings must be a JSON object")

        defaults = cls()
        values: dict[str, Any] = {}
        for key in ("elevenlabs_key", "anthropic_key", "tts_model", "renderer", "language"):
            if key in data:
                value = data[key]
                if not isinstance(value, str):
                    raise SettingsError(f"'{key}' must be a string")
                values[key] = value.strip()

        if values.get("renderer", "auto") not in RENDERER_CHOICES:
            raise SettingsError(f"'renderer' must be one of {RENDERER_CHOICES}")

        raw_voices = data.get("custom_voices")
        if raw_voices is not None:
            if not isinstance(raw_voices, list):
                raise SettingsError("'custom_voices' must be an array")
            voices: list[Voice] = []
            for i, raw in enumerate(raw_voices):
                if not isinstance(raw, dict) or not raw.get("id"):
                    raise SettingsError(f"custom_voices[{i}] must be an object with an 'id'")
                voices.append(Voice(id=str(raw["id"]), name=str(raw.get("name", raw["id"]))))
            values["custom_voices"] = tuple(voices) or DEFAULT_VOICES

        raw_selected = data.get("selected_voices")
        if raw_selected is not None:
            if not isinstance(raw_selected, dict):
                raise SettingsError("'selected_voices' must be an object")
            values["selected_voices"] = {str(k): str(v) for k, v in raw_selected.items()}

        return replace(defaults, **values)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class SettingsStore:
    """Read and write :class:`StudioSettings` as a JSON file.

    Parameters
    ----------
    path:
        Settings file location.  ``None`` keeps settings in memory only.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None

    def load(self) -> StudioSettings:
        """Load settings, falling back to defaults on any problem."""
        if self.path is None or not self.path.exists():
            return StudioSettings()
        try:
            return self._read(self.path)
        except SettingsError as exc:
            logger.warning("Ignoring unreadable settings at %s: %s", self.path, exc)
            return StudioSettings()

    def save(self, settings: StudioSettings) -> None:
        """Persist *settings*.

        Raises :class:`~performance_studio.exceptions.SettingsError`
        if the file cannot be written.
        """
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(settings.to_dict(), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        except OSError as exc:
            raise SettingsError(f"Cannot write settings file: {exc}") from exc

    def _read(self, path: Path) -> StudioSettings:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot read settings file: {exc}") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SettingsError(f"Invalid JSON in settings file: {exc}") from exc
        return StudioSettings.from_dict(data)
