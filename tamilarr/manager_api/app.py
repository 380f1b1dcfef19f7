"""Application factory for the Tamilarr Manager API."""
from __future__ import annotations

import httpx
import requests
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from .routers import sync, titles
from .settings import ManagerSettings
from .state import AppState


def create_app(
    settings: ManagerSettings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
    tmdb_session: requests.Session | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application."""

    resolved_settings = settings or ManagerSettings()
    app_state = AppState(resolved_settings, transport=transport, tmdb_session=tmdb_session)

    app = FastAPI(title="Tamilarr Manager API", version=__version__)
    app.state.app_state = app_state
    app.state.settings = app_state.settings

    # The catalog adapter and dashboard are served from other origins.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in (titles.router, sync.router):
        app.include_router(router)

    return app
