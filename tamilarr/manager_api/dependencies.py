"""FastAPI dependencies for the Manager API."""
from fastapi import Depends, Request

from .services.link_service import LinkService
from .services.sync_orchestrator import SyncOrchestrator
from .settings import ManagerSettings
from .state import AppState
from .stores.catalog_store import CatalogStore


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_settings(app_state: AppState = Depends(get_app_state)) -> ManagerSettings:
    return app_state.settings


def get_catalog_store(app_state: AppState = Depends(get_app_state)) -> CatalogStore:
    """Return the catalog store dependency."""
    return app_state.catalog_store


def get_orchestrator(app_state: AppState = Depends(get_app_state)) -> SyncOrchestrator:
    """Return the single sync orchestrator owned by the application."""
    return app_state.pipeline.orchestrator


def get_link_service(app_state: AppState = Depends(get_app_state)) -> LinkService:
    return app_state.pipeline.link_service
