"""Database models for the Tamilarr catalog."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp used for every stored datetime."""

    return datetime.now(timezone.utc)


class TitleRecord(SQLModel, table=True):
    """A movie entry; linked when ``imdb_id`` is populated."""

    __tablename__ = "titles"
    __table_args__ = (UniqueConstraint("title", "year", name="uq_titles_title_year"),)

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    year: int | None = Field(default=None, index=True)
    imdb_id: str | None = Field(default=None, index=True)
    tmdb_id: str | None = Field(default=None, index=True)
    genres: list[str] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    rating: float | None = Field(default=None)
    poster: str | None = Field(default=None)
    description: str | None = Field(default=None)
    runtime: int | None = Field(default=None)
    language: str | None = Field(default=None)
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False, index=True
    )
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)


class StreamRecord(SQLModel, table=True):
    """A playable source for a title."""

    __tablename__ = "streams"
    __table_args__ = (UniqueConstraint("title_id", "url", name="uq_streams_title_url"),)

    id: int | None = Field(default=None, primary_key=True)
    title_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("titles.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    label: str
    url: str
    quality: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)
