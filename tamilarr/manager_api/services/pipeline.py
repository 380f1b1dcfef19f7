"""Construct the sync pipeline handles from settings."""
from __future__ import annotations

from dataclasses import dataclass

import httpx
import requests

from ...resolver.identity import IdentityResolver
from ...resolver.metadata_fetcher import TmdbClient
from ...resolver.retry import RetryPolicy
from ...resolver.scrapers.tamilan24 import ContentLister, DetailResolver
from ...resolver.session import SessionManager
from ..settings import ManagerSettings
from ..stores.catalog_store import CatalogStore
from .link_service import LinkService
from .sync_orchestrator import SyncOptions, SyncOrchestrator


@dataclass
class Pipeline:
    """Handles shared by the API, the worker and the tests."""

    http_client: httpx.Client
    session: SessionManager
    lister: ContentLister
    detail_resolver: DetailResolver
    tmdb_client: TmdbClient
    identity_resolver: IdentityResolver
    orchestrator: SyncOrchestrator
    link_service: LinkService

    def close(self) -> None:
        self.http_client.close()


def build_pipeline(
    settings: ManagerSettings,
    store: CatalogStore,
    *,
    transport: httpx.BaseTransport | None = None,
    tmdb_session: requests.Session | None = None,
    retry: RetryPolicy | None = None,
) -> Pipeline:
    """Wire every collaborator once; nothing here performs network I/O."""

    retry = retry or RetryPolicy(attempts=settings.retry_attempts, delay=settings.retry_delay)
    base_url = settings.source_base_url.rstrip("/")
    http_client = httpx.Client(timeout=settings.request_timeout, transport=transport)

    session = SessionManager(
        http_client,
        login_url=f"{base_url}/login",
        username=settings.source_username,
        password=settings.source_password,
        cookie_name=settings.session_cookie_name,
        user_agent=settings.user_agent,
    )
    lister = ContentLister(http_client, session, base_url=base_url, retry=retry)
    detail_resolver = DetailResolver(http_client, session, base_url=base_url, retry=retry)
    tmdb_client = TmdbClient(
        settings.tmdb_api_key,
        session=tmdb_session,
        retry=retry,
        timeout=settings.request_timeout,
    )
    identity_resolver = IdentityResolver(
        tmdb_client,
        region=settings.tmdb_region,
        languages=settings.tmdb_languages,
        max_validations=settings.match_max_validations,
    )
    orchestrator = SyncOrchestrator(
        store=store,
        session=session,
        lister=lister,
        detail_resolver=detail_resolver,
        identity_resolver=identity_resolver,
        options=SyncOptions(
            page_delay=settings.page_delay,
            candidate_delay_min=settings.candidate_delay_min,
            candidate_delay_max=settings.candidate_delay_max,
            max_pages=settings.max_pages,
            max_failed_pages=settings.max_failed_pages,
            source_name=settings.source_name,
        ),
        default_mode=settings.crawl_mode,
        full_initial_run=settings.full_initial_run,
    )
    return Pipeline(
        http_client=http_client,
        session=session,
        lister=lister,
        detail_resolver=detail_resolver,
        tmdb_client=tmdb_client,
        identity_resolver=identity_resolver,
        orchestrator=orchestrator,
        link_service=LinkService(store, identity_resolver),
    )
