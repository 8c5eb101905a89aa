"""Request dependencies shared by the routers."""

from __future__ import annotations

from fastapi import Request

from performance_studio.session import StudioSession


def get_session(request: Request) -> StudioSession:
    return request.app.state.session
