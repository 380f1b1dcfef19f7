"""
Immutable value types passed between the scrapers, the identity resolver and
the catalog store.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Candidate:
    """A raw listing entry not yet resolved to a canonical identity."""

    title: str
    year: Optional[int]
    detail_url: str
    poster: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.title} ({self.year})" if self.year else self.title


@dataclass(frozen=True)
class StreamDetails:
    stream_url: str
    quality: str = "HD"
    description: Optional[str] = None
    genres: Optional[Tuple[str, ...]] = None
    poster: Optional[str] = None


@dataclass(frozen=True)
class CanonicalRecord:
    """Validated provider record; ``imdb_id`` is always populated."""

    imdb_id: str
    tmdb_id: str
    title: Optional[str] = None
    year: Optional[int] = None
    genres: Optional[Tuple[str, ...]] = None
    rating: Optional[float] = None
    poster: Optional[str] = None
    description: Optional[str] = None
    runtime: Optional[int] = None
    language: Optional[str] = None


@dataclass(frozen=True)
class CatalogEntry:
    """Everything the catalog store needs to upsert one title and its stream."""

    title: str
    year: Optional[int] = None
    imdb_id: Optional[str] = None
    tmdb_id: Optional[str] = None
    genres: Optional[Tuple[str, ...]] = None
    rating: Optional[float] = None
    poster: Optional[str] = None
    description: Optional[str] = None
    runtime: Optional[int] = None
    language: Optional[str] = None
    stream_url: Optional[str] = None
    stream_label: Optional[str] = None
    quality: Optional[str] = None

    @classmethod
    def build(
        cls,
        candidate: Candidate,
        details: Optional[StreamDetails],
        record: Optional[CanonicalRecord],
        *,
        source_name: str,
    ) -> "CatalogEntry":
        """Merge listing, detail page and provider data; provider data wins."""

        quality = details.quality if details else None
        return cls(
            title=candidate.title,
            year=candidate.year,
            imdb_id=record.imdb_id if record else None,
            tmdb_id=record.tmdb_id if record else None,
            genres=(record.genres if record and record.genres else None)
            or (details.genres if details else None),
            rating=record.rating if record else None,
            poster=(record.poster if record else None)
            or (details.poster if details else None)
            or candidate.poster,
            description=(record.description if record else None)
            or (details.description if details else None),
            runtime=record.runtime if record else None,
            language=record.language if record else None,
            stream_url=details.stream_url if details else None,
            stream_label=f"{source_name} - {quality or 'HD'}" if details else None,
            quality=quality,
        )
