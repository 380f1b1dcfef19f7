"""Normalized title/stream storage with idempotent, coalescing upserts."""
from __future__ import annotations

import logging
from dataclasses import asdict
from threading import Lock
from typing import Any, Sequence

from sqlalchemy import func, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ...resolver.errors import ConfigurationError
from ...resolver.models import CatalogEntry
from ..db import session_scope
from ..models import StreamRecord, TitleRecord, utcnow
from ..schemas import CatalogMetricsModel, StreamModel, TitleMetadataUpdate, TitleModel

logger = logging.getLogger(__name__)

METADATA_FIELDS = (
    "imdb_id",
    "tmdb_id",
    "genres",
    "rating",
    "poster",
    "description",
    "runtime",
    "language",
)


class CatalogStore:
    """Thread-safe accessor for catalog titles and their streams.

    Writes are serialized through a lock; every write is idempotent so a
    repeated upsert leaves the catalog unchanged.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._lock = Lock()

    def ping(self) -> None:
        """Raise ConfigurationError when the database cannot be queried."""

        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise ConfigurationError(f"Catalog database unavailable: {exc}") from exc

    # ------------------------------------------------------------------
    # Writes

    def upsert_title_and_stream(self, entry: CatalogEntry) -> TitleModel:
        """Insert or coalesce-merge the title, then record its stream once."""

        metadata = {key: value for key, value in asdict(entry).items() if key in METADATA_FIELDS}
        with self._lock:
            # A second attempt only happens if another writer won a unique
            # constraint race; it then finds the winner's rows.
            for attempt in (1, 2):
                try:
                    with session_scope(self._engine) as session:
                        record = _find_title(session, entry.title, entry.year)
                        if record is None:
                            record = TitleRecord(title=entry.title, year=entry.year)
                            _coalesce(record, metadata)
                            session.add(record)
                            session.flush()
                            logger.debug("Created title %s (%s) id=%s", entry.title, entry.year, record.id)
                        elif _coalesce(record, metadata):
                            record.updated_at = utcnow()
                            session.add(record)

                        if entry.stream_url:
                            _add_stream(session, record.id, entry)
                        session.flush()
                        session.refresh(record)
                        return _to_model(record)
                except IntegrityError:
                    if attempt == 2:
                        raise
                    logger.debug("Duplicate write for %s (%s); retrying as merge", entry.title, entry.year)
        raise RuntimeError("unreachable")  # pragma: no cover

    def update_title_metadata(self, title_id: int, update: TitleMetadataUpdate) -> TitleModel | None:
        """Merge non-null fields into an existing title."""

        fields = update.model_dump(exclude_none=True)
        with self._lock, session_scope(self._engine) as session:
            record = session.get(TitleRecord, title_id)
            if record is None:
                return None
            if _coalesce(record, fields):
                record.updated_at = utcnow()
                session.add(record)
                session.flush()
                session.refresh(record)
            return _to_model(record)

    # ------------------------------------------------------------------
    # Reads

    def title_exists(self, title: str, year: int | None) -> bool:
        return self.find_title(title, year) is not None

    def find_title(self, title: str, year: int | None) -> TitleModel | None:
        with Session(self._engine) as session:
            record = _find_title(session, title, year)
            return _to_model(record) if record else None

    def list_titles(self, *, limit: int = 100, offset: int = 0, linked_only: bool = False) -> list[TitleModel]:
        return self._query_titles(None, limit=limit, offset=offset, linked_only=linked_only)

    def search_titles(
        self,
        query: str,
        *,
        limit: int = 100,
        offset: int = 0,
        linked_only: bool = False,
    ) -> list[TitleModel]:
        return self._query_titles(query, limit=limit, offset=offset, linked_only=linked_only)

    def get_title(self, title_id: int) -> TitleModel | None:
        with Session(self._engine) as session:
            record = session.get(TitleRecord, title_id)
            return _to_model(record) if record else None

    def get_title_by_canonical_id(self, imdb_id: str) -> TitleModel | None:
        statement = (
            select(TitleRecord)
            .where(TitleRecord.imdb_id == imdb_id)
            .order_by(TitleRecord.created_at.asc(), TitleRecord.id.asc())
        )
        with Session(self._engine) as session:
            record = session.exec(statement).first()
            return _to_model(record) if record else None

    def list_streams_for_title(self, title_id: int) -> list[StreamModel]:
        statement = (
            select(StreamRecord)
            .where(StreamRecord.title_id == title_id)
            .order_by(StreamRecord.created_at.asc(), StreamRecord.id.asc())
        )
        with Session(self._engine) as session:
            return [_stream_to_model(record) for record in session.exec(statement)]

    def metrics(self) -> CatalogMetricsModel:
        """Return link/unlink counts for dashboards."""

        with Session(self._engine) as session:
            total = session.exec(select(func.count()).select_from(TitleRecord)).one()
            linked = session.exec(
                select(func.count()).select_from(TitleRecord).where(TitleRecord.imdb_id.is_not(None))
            ).one()
            streams = session.exec(select(func.count()).select_from(StreamRecord)).one()

        return CatalogMetricsModel(
            total=total,
            linked=linked,
            unlinked=max(total - linked, 0),
            streams=streams,
        )

    def _query_titles(
        self,
        query: str | None,
        *,
        limit: int,
        offset: int,
        linked_only: bool,
    ) -> list[TitleModel]:
        statement = select(TitleRecord)
        if query:
            statement = statement.where(
                func.lower(TitleRecord.title).contains(query.strip().lower(), autoescape=True)
            )
        if linked_only:
            statement = statement.where(TitleRecord.imdb_id.is_not(None))
        statement = (
            statement.order_by(
                TitleRecord.year.desc().nullslast(),
                TitleRecord.created_at.desc(),
                TitleRecord.id.desc(),
            )
            .offset(offset)
            .limit(limit)
        )
        with Session(self._engine) as session:
            records: Sequence[TitleRecord] = session.exec(statement).all()
            return [_to_model(record) for record in records]


def _find_title(session: Session, title: str, year: int | None) -> TitleRecord | None:
    year_clause = TitleRecord.year.is_(None) if year is None else TitleRecord.year == year
    statement = (
        select(TitleRecord)
        .where(TitleRecord.title == title)
        .where(year_clause)
        .order_by(TitleRecord.id.asc())
    )
    return session.exec(statement).first()


def _coalesce(record: TitleRecord, fields: dict[str, Any]) -> bool:
    """Copy non-null values onto ``record``; return whether anything changed."""

    changed = False
    for key, value in fields.items():
        if value is None:
            continue
        if key == "genres":
            value = list(value)
        if getattr(record, key) != value:
            setattr(record, key, value)
            changed = True
    return changed


def _add_stream(session: Session, title_id: int, entry: CatalogEntry) -> None:
    existing = session.exec(
        select(StreamRecord.id)
        .where(StreamRecord.title_id == title_id)
        .where(StreamRecord.url == entry.stream_url)
    ).first()
    if existing is not None:
        return
    session.add(
        StreamRecord(
            title_id=title_id,
            label=entry.stream_label or entry.title,
            url=entry.stream_url,
            quality=entry.quality,
        )
    )
    logger.debug("Recorded stream for title id=%s: %s", title_id, entry.stream_url)


def _to_model(record: TitleRecord) -> TitleModel:
    """Convert a title record into a response model."""

    return TitleModel(
        id=record.id,
        title=record.title,
        year=record.year,
        imdb_id=record.imdb_id,
        tmdb_id=record.tmdb_id,
        genres=list(record.genres) if record.genres else None,
        rating=record.rating,
        poster=record.poster,
        description=record.description,
        runtime=record.runtime,
        language=record.language,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _stream_to_model(record: StreamRecord) -> StreamModel:
    return StreamModel(
        id=record.id,
        title_id=record.title_id,
        label=record.label,
        url=record.url,
        quality=record.quality,
        created_at=record.created_at,
    )
