"""API server configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class Settings:
    """Application settings, configurable via environment variables.

    Environment variables:
        VPS_HOST: Server bind address (default "127.0.0.1")
        VPS_PORT: Server port (default 8000)
        VPS_DEBUG: Enable debug logging ("1" or "true")
        VPS_CORS_ORIGINS: Comma-separated allowed origins (default: none, reject cross-origin)
        VPS_SETTINGS_PATH: Studio settings JSON file (default "~/.performance_studio/settings.json")
        VPS_ELEVENLABS_URL: Speech synthesis API base URL
        VPS_ANTHROPIC_URL: Language model API base URL
    """

    host: str = field(default_factory=lambda: os.getenv("VPS_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("VPS_PORT", "8000")))
    debug: bool = field(
        default_factory=lambda: os.getenv("VPS_DEBUG", "").lower() in ("1", "true")
    )
    cors_origins: list[str] = field(default_factory=lambda: _parse_cors())
    settings_path: str = field(
        default_factory=lambda: os.path.expanduser(
            os.getenv("VPS_SETTINGS_PATH", "~/.performance_studio/settings.json")
        )
    )
    elevenlabs_url: str = field(
        default_factory=lambda: os.getenv("VPS_ELEVENLABS_URL", "https://api.elevenlabs.io")
    )
    anthropic_url: str = field(
        default_factory=lambda: os.getenv("VPS_ANTHROPIC_URL", "https://api.anthropic.com")
    )

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug else "INFO"


def _parse_cors() -> list[str]:
    raw = os.getenv("VPS_CORS_ORIGINS", "")
    if not raw:
        return []
    return [o.strip() for o in raw.split(",") if o.strip()]
