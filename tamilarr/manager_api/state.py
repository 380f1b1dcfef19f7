"""Shared state container for the Manager API."""
from __future__ import annotations

from dataclasses import dataclass

import httpx
import requests
from sqlalchemy.engine import Engine

from .db import create_engine_from_settings, init_database
from .services.pipeline import Pipeline, build_pipeline
from .settings import ManagerSettings
from .stores.catalog_store import CatalogStore


@dataclass(slots=True)
class AppState:
    """Encapsulates the handles shared across routers, built once at start-up."""

    settings: ManagerSettings
    engine: Engine
    catalog_store: CatalogStore
    pipeline: Pipeline

    def __init__(
        self,
        settings: ManagerSettings,
        *,
        transport: httpx.BaseTransport | None = None,
        tmdb_session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.engine = create_engine_from_settings(settings)
        init_database(self.engine)
        self.catalog_store = CatalogStore(self.engine)
        self.pipeline = build_pipeline(
            settings,
            self.catalog_store,
            transport=transport,
            tmdb_session=tmdb_session,
        )

    def close(self) -> None:
        self.pipeline.close()
        self.engine.dispose()
