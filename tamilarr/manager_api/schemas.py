"""Pydantic models exposed by the Manager API."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .settings import CrawlMode


class TitleModel(BaseModel):
    """Represents a catalog title."""

    id: int
    title: str
    year: int | None = None
    imdb_id: str | None = Field(default=None, description="Canonical IMDb id when linked.")
    tmdb_id: str | None = Field(default=None, description="TMDB id when linked.")
    genres: list[str] | None = None
    rating: float | None = None
    poster: str | None = None
    description: str | None = None
    runtime: int | None = Field(default=None, description="Runtime in minutes.")
    language: str | None = None
    created_at: datetime
    updated_at: datetime


class TitleListModel(BaseModel):
    """Page of catalog titles."""

    items: list[TitleModel]
    limit: int
    offset: int


class StreamModel(BaseModel):
    """Represents a playable source for a title."""

    id: int
    title_id: int
    label: str
    url: str
    quality: str | None = None
    created_at: datetime


class TitleMetadataUpdate(BaseModel):
    """Partial metadata update; ``None`` fields never overwrite stored values."""

    imdb_id: str | None = Field(default=None)
    tmdb_id: str | None = Field(default=None)
    genres: list[str] | None = Field(default=None)
    rating: float | None = Field(default=None, ge=0, le=10)
    poster: str | None = Field(default=None)
    description: str | None = Field(default=None)
    runtime: int | None = Field(default=None, ge=0)
    language: str | None = Field(default=None)


class LinkRequest(BaseModel):
    """Manual link of a title to an externally supplied IMDb id."""

    imdb_id: str = Field(..., min_length=3, description="IMDb id such as tt1234567.")


class CatalogMetricsModel(BaseModel):
    """Aggregate statistics for the catalog."""

    total: int
    linked: int
    unlinked: int
    streams: int


class SyncReportModel(BaseModel):
    """Outcome of one sync run."""

    mode: CrawlMode
    status: Literal["running", "completed", "auth_failed", "failed"]
    started_at: datetime
    finished_at: datetime | None = None
    pages_fetched: int = 0
    pages_failed: int = 0
    candidates_seen: int = 0
    skipped_linked: int = 0
    skipped_unresolved: int = 0
    stored: int = 0
    linked: int = 0
    failed: int = 0
    error_message: str | None = None


class SyncRunRequest(BaseModel):
    """Payload accepted by the sync trigger endpoint."""

    mode: CrawlMode | None = Field(
        default=None, description="Crawl mode; the configured default is used when omitted."
    )


class SyncStatusModel(BaseModel):
    """Run-state snapshot for schedulers and operators."""

    running: bool
    crawl_mode: CrawlMode
    run_interval_seconds: int
    last_report: SyncReportModel | None = None
