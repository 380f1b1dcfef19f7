"""Runtime configuration for the Tamilarr manager and sync pipeline."""
from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CrawlMode = Literal["full", "incremental"]


class ManagerSettings(BaseSettings):
    """Environment-aware settings for the manager API, worker and pipeline."""

    database_url: str = Field(
        default="sqlite:///./data/tamilarr.db",
        description="Connection URL for the catalog database.",
    )
    database_echo: bool = Field(
        default=False, description="Enable SQL echo for debugging queries."
    )
    log_level: str = Field(default="INFO", description="Root logging level for entry points.")

    source_base_url: str = Field(
        "https://tamilan24.com", description="Base URL of the content source listings."
    )
    source_name: str = Field("Tamilan24", description="Label prefix used for stored streams.")
    source_username: str | None = Field(
        default=None, description="Source-site username; detail pages are skipped without it."
    )
    source_password: str | None = Field(default=None, description="Source-site password.")
    session_cookie_name: str = Field(
        default="user_id", description="Cookie set by the login handshake that identifies the session."
    )
    user_agent: str | None = Field(
        default=None, description="Override for the browser User-Agent sent to the source."
    )

    crawl_mode: CrawlMode = Field(
        default="incremental", description="Mode used when a run is triggered without one."
    )
    full_initial_run: bool = Field(
        default=False,
        description="Use a full crawl for the first run of the process regardless of crawl_mode.",
    )
    run_interval_seconds: int = Field(
        default=6 * 60 * 60,
        ge=60,
        description="Interval the external scheduler should use between runs.",
    )

    tmdb_api_key: str | None = Field(
        default=None, description="TMDB API key; identity resolution is disabled without it."
    )
    tmdb_region: str = Field(default="IN", description="Region used for region-scoped TMDB searches.")
    tmdb_languages: list[str] = Field(
        default_factory=lambda: ["ta"],
        description="Original languages that count as a source-region language match.",
    )
    match_max_validations: int = Field(
        default=5, ge=1, description="Maximum TMDB detail lookups spent validating one title."
    )

    request_timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds.")
    retry_attempts: int = Field(default=3, ge=1, description="Attempts per request on transient failures.")
    retry_delay: float = Field(default=2.0, ge=0, description="Fixed delay between retry attempts.")
    page_delay: float = Field(default=3.0, ge=0, description="Delay between listing page fetches.")
    candidate_delay_min: float = Field(default=1.0, ge=0, description="Lower bound of the per-title delay.")
    candidate_delay_max: float = Field(default=2.0, ge=0, description="Upper bound of the per-title delay.")
    max_pages: int | None = Field(
        default=None, ge=1, description="Optional hard stop for full crawls."
    )
    max_failed_pages: int = Field(
        default=3, ge=1, description="Consecutive unreadable listing pages that end a full crawl."
    )

    model_config = SettingsConfigDict(
        env_prefix="TAMILARR_",
        env_file=".env",
        env_file_encoding="utf-8",
    )
