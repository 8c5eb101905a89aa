"""FastAPI application for the Voice Performance Studio REST API.

Endpoints:
  GET  /v1/health
  GET  /v1/session
  PUT  /v1/session/text
  PUT  /v1/session/language
  POST /v1/feedback
  POST /v1/transcript/segments
  POST /v1/transcript/finish
  POST /v1/generate
  GET  /v1/render
  GET  /v1/versions
  GET  /v1/versions/{ordinal}/audio
  GET  /v1/tags
  GET  /v1/settings
  PUT  /v1/settings
  POST /v1/settings/voices/fetch
"""

from __future__ import annotations

import logging
from functools import partial

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from performance_studio import __version__
from performance_studio.exceptions import (
    ConfigurationError,
    GenerationInProgressError,
    InputValidationError,
    SettingsError,
    StudioError,
    SynthesisError,
)
from performance_studio.language_model import AnthropicClient
from performance_studio.session import StudioSession
from performance_studio.settings import SettingsStore
from performance_studio.synthesis import ElevenLabsClient

from .config import Settings
from .routes import generate, session, settings as settings_routes

settings = Settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def create_session(config: Settings) -> StudioSession:
    """Build the studio session described by *config*."""
    return StudioSession(
        store=SettingsStore(config.settings_path),
        synthesizer_factory=partial(ElevenLabsClient, base_url=config.elevenlabs_url),
        language_model_factory=partial(AnthropicClient, base_url=config.anthropic_url),
    )


app = FastAPI(
    title="Voice Performance Studio API",
    description="Turn spoken or typed feedback into performed sacred text.",
    version=__version__,
)
app.state.session = create_session(settings)

# CORS: only allow configured origins. Empty list → no cross-origin access.
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
    )

app.include_router(session.router, prefix="/v1", tags=["session"])
app.include_router(generate.router, prefix="/v1", tags=["generate"])
app.include_router(settings_routes.router, prefix="/v1", tags=["settings"])


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "configuration_error", "detail": str(exc)},
    )


@app.exception_handler(InputValidationError)
async def input_validation_error_handler(
    request: Request, exc: InputValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "validation_error", "detail": str(exc)},
    )


@app.exception_handler(GenerationInProgressError)
async def generation_in_progress_handler(
    request: Request, exc: GenerationInProgressError
) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"error": "generation_in_progress", "detail": str(exc)},
    )


@app.exception_handler(SynthesisError)
async def synthesis_error_handler(request: Request, exc: SynthesisError) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={"error": "synthesis_error", "detail": str(exc)},
    )


@app.exception_handler(SettingsError)
async def settings_error_handler(request: Request, exc: SettingsError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": "settings_error", "detail": str(exc)},
    )


@app.exception_handler(StudioError)
async def studio_error_handler(request: Request, exc: StudioError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "studio_error", "detail": str(exc)},
    )


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


@app.get("/v1/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}
