"""Content model - unified movie/series record.

One row per underlying work, whatever the number of providers
(TMDB, MAL) that contributed data to it. List and mapping fields
are stored as JSON documents.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from src.database.models.base import Base, TimestampMixin

# =============================================================================
# CONSTANTS
# =============================================================================

CONTENT_TYPES = ("movie", "series")
"""Allowed values for ContentRecord.content_type."""

PROVIDERS = ("tmdb", "mal")
"""Providers tracked in ContentRecord.data_sources."""

SEARCH_SEPARATOR = "\n"
"""Delimiter around each lowercased title in search_titles."""


def default_data_sources() -> dict[str, dict[str, Any]]:
    """Build the provenance document of a fresh record."""
    return {provider: {"hasData": False, "lastUpdated": None} for provider in PROVIDERS}


def default_relationships() -> dict[str, Any]:
    """Build an empty relationships document."""
    return {"sequels": [], "prequels": [], "related": [], "franchise": None}


# =============================================================================
# MODEL
# =============================================================================


class ContentRecord(Base, TimestampMixin):
    """Unified content entity built from one or more providers.

    Attributes:
        id: Internal primary key.
        internal_id: Public identifier generated at creation (immutable).
        tmdb_id: TMDB identifier (reference only).
        mal_id: MAL identifier (reference only).
        title: Display title.
        content_type: movie or series (immutable once set).
        unified_score: Weighted score from all rating sources.
        search_titles: Lowercased title family used for lookups.
        version_id: Optimistic concurrency counter.
    """

    __tablename__ = "contents"

    # Identifiers
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    internal_id: Mapped[str] = mapped_column(
        String(36),
        unique=True,
        nullable=False,
        index=True,
    )
    tmdb_id: Mapped[int | None] = mapped_column(Integer, index=True)
    mal_id: Mapped[int | None] = mapped_column(Integer, index=True)

    # Descriptive information
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    original_title: Mapped[str | None] = mapped_column(String(500))
    alternative_titles: Mapped[list[str]] = mapped_column(JSON, default=list)
    overview: Mapped[str | None] = mapped_column(Text)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    release_date: Mapped[date | None] = mapped_column(Date)
    runtime: Mapped[int | None] = mapped_column(Integer)
    episode_count: Mapped[int | None] = mapped_column(Integer)
    season_count: Mapped[int | None] = mapped_column(Integer)
    poster_path: Mapped[str | None] = mapped_column(String(255))
    backdrop_path: Mapped[str | None] = mapped_column(String(255))
    studios: Mapped[list[str]] = mapped_column(JSON, default=list)

    # TMDB metrics
    vote_average: Mapped[float | None] = mapped_column(Float)
    vote_count: Mapped[int | None] = mapped_column(Integer)
    popularity: Mapped[float | None] = mapped_column(Float)

    # MAL metrics
    mal_score: Mapped[float | None] = mapped_column(Float)
    mal_scored_by: Mapped[int | None] = mapped_column(Integer)
    mal_rank: Mapped[int | None] = mapped_column(Integer)
    mal_status: Mapped[str | None] = mapped_column(String(30))
    mal_episodes: Mapped[int | None] = mapped_column(Integer)
    mal_source: Mapped[str | None] = mapped_column(String(30))
    mal_rating: Mapped[str | None] = mapped_column(String(10))

    # User ratings and derived score
    user_rating_average: Mapped[float | None] = mapped_column(Float)
    user_rating_count: Mapped[int] = mapped_column(Integer, default=0)
    unified_score: Mapped[float | None] = mapped_column(Float)

    # Taxonomy
    genres: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    # Relationships
    franchise: Mapped[str | None] = mapped_column(String(255))
    relationships: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        default=default_relationships,
    )

    # Provenance
    data_sources: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        default=default_data_sources,
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Lookup support
    search_titles: Mapped[str] = mapped_column(Text, nullable=False, default="")
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        CheckConstraint(
            "content_type IN ('movie', 'series')",
            name="content_type",
        ),
        CheckConstraint(
            "unified_score IS NULL OR (unified_score >= 0 AND unified_score <= 10)",
            name="unified_score_range",
        ),
        Index("ix_contents_type_score", "content_type", "unified_score"),
    )

    @validates("content_type")
    def _validate_content_type(self, _: str, value: str) -> str:
        """Reject unknown types and any change after the type is set."""
        if value not in CONTENT_TYPES:
            raise ValueError(f"Invalid content_type: {value!r}")
        current = self.__dict__.get("content_type")
        if current is not None and current != value:
            raise ValueError(f"content_type is immutable ({current} -> {value})")
        return value

    @property
    def year(self) -> int | None:
        """Extract year from release date."""
        return self.release_date.year if self.release_date else None

    def has_provider_data(self, provider: str) -> bool:
        """Check whether a provider already contributed to this record."""
        entry = (self.data_sources or {}).get(provider) or {}
        return bool(entry.get("hasData"))

    def refresh_search_titles(self) -> None:
        """Rebuild the lowercased title family used by title lookups."""
        titles: list[str] = []
        for raw in [self.title, *(self.alternative_titles or [])]:
            value = (raw or "").strip().lower()
            if value and value not in titles:
                titles.append(value)
        self.search_titles = (
            SEARCH_SEPARATOR + SEARCH_SEPARATOR.join(titles) + SEARCH_SEPARATOR
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<ContentRecord(id={self.id}, internal_id={self.internal_id}, "
            f"type={self.content_type}, title='{self.title}')>"
        )
