"""Sequential crawl → resolve → link → store pipeline."""
from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ...resolver.errors import AuthenticationError, ListingError
from ...resolver.identity import IdentityResolver
from ...resolver.models import Candidate, CatalogEntry
from ...resolver.scrapers.tamilan24 import ContentLister, DetailResolver
from ...resolver.session import SessionManager
from ..models import utcnow
from ..schemas import SyncReportModel
from ..settings import CrawlMode
from ..stores.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


@dataclass
class SyncOptions:
    page_delay: float = 3.0
    candidate_delay_min: float = 1.0
    candidate_delay_max: float = 2.0
    max_pages: Optional[int] = None
    max_failed_pages: int = 3
    source_name: str = "Tamilan24"


@dataclass
class SyncReport:
    mode: CrawlMode
    started_at: datetime = field(default_factory=utcnow)
    status: str = "running"
    finished_at: Optional[datetime] = None
    pages_fetched: int = 0
    pages_failed: int = 0
    candidates_seen: int = 0
    skipped_linked: int = 0
    skipped_unresolved: int = 0
    stored: int = 0
    linked: int = 0
    failed: int = 0
    error_message: Optional[str] = None

    def finish(self, status: str, error_message: Optional[str] = None) -> None:
        self.status = status
        self.error_message = error_message
        self.finished_at = utcnow()

    def to_model(self) -> SyncReportModel:
        return SyncReportModel(
            mode=self.mode,
            status=self.status,
            started_at=self.started_at,
            finished_at=self.finished_at,
            pages_fetched=self.pages_fetched,
            pages_failed=self.pages_failed,
            candidates_seen=self.candidates_seen,
            skipped_linked=self.skipped_linked,
            skipped_unresolved=self.skipped_unresolved,
            stored=self.stored,
            linked=self.linked,
            failed=self.failed,
            error_message=self.error_message,
        )


class SyncOrchestrator:
    """Drives one pipeline run at a time.

    Incremental runs read listing page 1 only; full runs walk pages upward
    until a page comes back empty. Titles already stored and linked are
    skipped before any detail or TMDB request is made. One candidate's
    failure never aborts the run.
    """

    def __init__(
        self,
        *,
        store: CatalogStore,
        session: SessionManager,
        lister: ContentLister,
        detail_resolver: DetailResolver,
        identity_resolver: IdentityResolver,
        options: Optional[SyncOptions] = None,
        default_mode: CrawlMode = "incremental",
        full_initial_run: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        jitter: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self._store = store
        self._session = session
        self._lister = lister
        self._detail_resolver = detail_resolver
        self._identity_resolver = identity_resolver
        self.options = options or SyncOptions()
        self.default_mode = default_mode
        self._full_initial_run = full_initial_run
        self._sleep = sleep
        self._jitter = jitter
        self._state_lock = threading.Lock()
        self._running = False
        self._runs_started = 0
        self.last_report: Optional[SyncReport] = None

    @property
    def is_running(self) -> bool:
        return self._running

    def resolve_mode(self, requested: Optional[CrawlMode] = None) -> CrawlMode:
        if requested:
            return requested
        if self._full_initial_run and self._runs_started == 0:
            return "full"
        return self.default_mode

    def reserve(self) -> bool:
        """Claim the run slot ahead of a deferred ``run(reserved=True)``."""

        with self._state_lock:
            if self._running:
                return False
            self._running = True
            return True

    def run(self, mode: Optional[CrawlMode] = None, *, reserved: bool = False) -> Optional[SyncReport]:
        """Execute one run; returns ``None`` when a run is already active.

        Pass ``reserved=True`` when the slot was claimed with :meth:`reserve`.
        Raises ConfigurationError when the catalog store is unreachable.
        """

        with self._state_lock:
            if self._running and not reserved:
                logger.warning("Sync already running; skipping this trigger")
                return None
            self._running = True
            resolved_mode = self.resolve_mode(mode)
            self._runs_started += 1

        report = SyncReport(mode=resolved_mode)
        self.last_report = report
        try:
            self._store.ping()
            logger.info("Starting %s sync", resolved_mode)
            self._authenticate()
            if resolved_mode == "full":
                self._run_full(report)
            else:
                self._run_incremental(report)
            report.finish("completed")
        except AuthenticationError as exc:
            logger.error("Sync aborted: %s", exc)
            report.finish("auth_failed", str(exc))
        except Exception as exc:
            report.finish("failed", str(exc))
            raise
        finally:
            with self._state_lock:
                self._running = False

        logger.info(
            "Sync finished (%s): pages=%d candidates=%d stored=%d linked=%d skipped=%d unresolved=%d failed=%d",
            report.status,
            report.pages_fetched,
            report.candidates_seen,
            report.stored,
            report.linked,
            report.skipped_linked,
            report.skipped_unresolved,
            report.failed,
        )
        return report

    def _authenticate(self) -> None:
        if not self._session.configured:
            logger.debug("Running without source credentials")
            return
        if self._session.credential():
            return
        if not self._session.login():
            raise AuthenticationError("Initial login to the content source failed")

    def _run_incremental(self, report: SyncReport) -> None:
        try:
            candidates = self._lister.list(1)
        except ListingError as exc:
            report.pages_failed += 1
            logger.error("Listing page 1 unavailable (status=%s): %s", exc.status, exc)
            return
        report.pages_fetched += 1
        self._process_page(candidates, report)

    def _run_full(self, report: SyncReport) -> None:
        page = 1
        consecutive_failures = 0
        while True:
            if self.options.max_pages is not None and page > self.options.max_pages:
                logger.info("Reached max_pages=%d; stopping full crawl", self.options.max_pages)
                break
            if page > 1:
                self._sleep(self.options.page_delay)

            try:
                candidates = self._lister.list(page)
            except ListingError as exc:
                report.pages_failed += 1
                consecutive_failures += 1
                logger.error("Skipping listing page %d (status=%s): %s", page, exc.status, exc)
                if consecutive_failures >= self.options.max_failed_pages:
                    logger.error("%d consecutive listing failures; ending full crawl", consecutive_failures)
                    break
                page += 1
                continue

            consecutive_failures = 0
            report.pages_fetched += 1
            if not candidates:
                logger.info("Page %d is empty; full crawl complete", page)
                break
            self._process_page(candidates, report)
            page += 1

    def _process_page(self, candidates: list[Candidate], report: SyncReport) -> None:
        for candidate in candidates:
            report.candidates_seen += 1
            try:
                self._process_candidate(candidate, report)
            except Exception:
                report.failed += 1
                logger.exception(
                    "Failed to process '%s' (%s) url=%s",
                    candidate.title,
                    candidate.year,
                    candidate.detail_url,
                )

    def _process_candidate(self, candidate: Candidate, report: SyncReport) -> None:
        if candidate.year is not None:
            existing = self._store.find_title(candidate.title, candidate.year)
            if existing is not None and existing.imdb_id:
                report.skipped_linked += 1
                logger.debug("Skipping linked title %s", candidate.label)
                return

        self._sleep(self._jitter(self.options.candidate_delay_min, self.options.candidate_delay_max))
        details = self._detail_resolver.resolve(candidate.detail_url)
        if details is None:
            report.skipped_unresolved += 1
            logger.info("No stream for %s url=%s; skipped", candidate.label, candidate.detail_url)
            return

        record = self._identity_resolver.match(candidate.title, candidate.year)
        entry = CatalogEntry.build(candidate, details, record, source_name=self.options.source_name)
        title = self._store.upsert_title_and_stream(entry)
        report.stored += 1
        if record is not None:
            report.linked += 1
        logger.info(
            "Stored '%s' (%s) id=%s imdb=%s",
            title.title,
            title.year,
            title.id,
            title.imdb_id or "-",
        )
