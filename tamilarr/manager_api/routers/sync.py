"""Sync trigger and run-state endpoints."""
import logging

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException

from ...resolver.errors import ConfigurationError
from ..dependencies import get_orchestrator, get_settings
from ..schemas import SyncRunRequest, SyncStatusModel
from ..services.sync_orchestrator import SyncOrchestrator
from ..settings import CrawlMode, ManagerSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


def _status(orchestrator: SyncOrchestrator, settings: ManagerSettings) -> SyncStatusModel:
    report = orchestrator.last_report
    return SyncStatusModel(
        running=orchestrator.is_running,
        crawl_mode=orchestrator.default_mode,
        run_interval_seconds=settings.run_interval_seconds,
        last_report=report.to_model() if report else None,
    )


def _run_in_background(orchestrator: SyncOrchestrator, mode: CrawlMode | None) -> None:
    try:
        orchestrator.run(mode, reserved=True)
    except ConfigurationError:
        logger.exception("Sync run aborted: catalog storage unavailable")


@router.post("/run", response_model=SyncStatusModel, status_code=202)
def trigger_sync(
    background_tasks: BackgroundTasks,
    request: SyncRunRequest | None = Body(default=None),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    settings: ManagerSettings = Depends(get_settings),
) -> SyncStatusModel:
    """Claim the run slot, then start the run after the response is sent."""

    if not orchestrator.reserve():
        raise HTTPException(status_code=409, detail="A sync run is already in progress")

    mode = request.mode if request else None
    background_tasks.add_task(_run_in_background, orchestrator, mode)
    return _status(orchestrator, settings)


@router.get("/status", response_model=SyncStatusModel)
def sync_status(
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    settings: ManagerSettings = Depends(get_settings),
) -> SyncStatusModel:
    """Return whether a run is active and the outcome of the last one."""

    return _status(orchestrator, settings)
