"""Operator-driven linking of catalog titles to an IMDb id."""
from __future__ import annotations

import logging

from ...resolver.identity import IdentityResolver
from ..schemas import TitleMetadataUpdate, TitleModel
from ..stores.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


class LinkServiceError(RuntimeError):
    """Raised when a manual link cannot be applied."""


class TitleNotFoundError(LinkServiceError):
    """Raised when the title to link does not exist."""


class CanonicalIdNotFoundError(LinkServiceError):
    """Raised when TMDB has no movie for the supplied IMDb id."""


class LinkService:
    def __init__(self, store: CatalogStore, identity_resolver: IdentityResolver) -> None:
        self._store = store
        self._identity_resolver = identity_resolver

    def link(self, title_id: int, imdb_id: str) -> TitleModel:
        """Resolve ``imdb_id`` through TMDB and merge its metadata into the title."""

        if self._store.get_title(title_id) is None:
            raise TitleNotFoundError(f"Title {title_id} not found")

        record = self._identity_resolver.match_by_canonical_id(imdb_id)
        if record is None:
            raise CanonicalIdNotFoundError(f"No TMDB movie found for {imdb_id}")

        update = TitleMetadataUpdate(
            imdb_id=record.imdb_id,
            tmdb_id=record.tmdb_id,
            genres=list(record.genres) if record.genres else None,
            rating=record.rating,
            poster=record.poster,
            description=record.description,
            runtime=record.runtime,
            language=record.language,
        )
        title = self._store.update_title_metadata(title_id, update)
        if title is None:
            raise TitleNotFoundError(f"Title {title_id} not found")
        logger.info("Linked title id=%s to %s (tmdb=%s)", title_id, record.imdb_id, record.tmdb_id)
        return title
