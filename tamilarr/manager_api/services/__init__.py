"""Service layer for the sync pipeline and operator actions."""

from .link_service import (
    CanonicalIdNotFoundError,
    LinkService,
    LinkServiceError,
    TitleNotFoundError,
)
from .pipeline import Pipeline, build_pipeline
from .sync_orchestrator import SyncOptions, SyncOrchestrator, SyncReport

__all__ = [
    "CanonicalIdNotFoundError",
    "LinkService",
    "LinkServiceError",
    "Pipeline",
    "SyncOptions",
    "SyncOrchestrator",
    "SyncReport",
    "TitleNotFoundError",
    "build_pipeline",
]
