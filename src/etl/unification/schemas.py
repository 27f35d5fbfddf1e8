"""Pydantic schemas for content unification.

Defines the normalized record shape each provider adapter hands
to the pipeline, plus the score input shared by the unifier.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# ENUMS
# =============================================================================


class Provider(StrEnum):
    """External metadata providers."""

    TMDB = "tmdb"
    MAL = "mal"


class ContentType(StrEnum):
    """Kinds of content stored in the catalog."""

    MOVIE = "movie"
    SERIES = "series"


_CONTENT_TYPE_ALIASES = {
    "movie": ContentType.MOVIE,
    "film": ContentType.MOVIE,
    "series": ContentType.SERIES,
    "tv": ContentType.SERIES,
    "show": ContentType.SERIES,
}


# =============================================================================
# SCORE INPUT
# =============================================================================


@dataclass(frozen=True)
class ScoreInput:
    """Raw average and sample size of one rating source.

    Attributes:
        score: Average rating (0-10).
        votes: Number of votes or ratings behind the average.
    """

    score: float | None
    votes: int | None


# =============================================================================
# GENRES
# =============================================================================


class GenreData(BaseModel):
    """Genre as reported by a provider.

    Attributes:
        id: Provider genre identifier, when known.
        name: Display name.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: int | None = None
    name: str = Field(min_length=1, max_length=100)

    @property
    def dedup_key(self) -> str:
        """Identity used when unioning genre lists."""
        return genre_key(self.id, self.name)

    def to_document(self) -> dict[str, Any]:
        """Convert to the stored JSON shape."""
        return {"id": self.id, "name": self.name}


def genre_key(genre_id: int | None, name: str | None) -> str:
    """Build the dedup key of a genre: id if present, else lowercased name.

    Args:
        genre_id: Provider genre identifier.
        name: Genre display name.

    Returns:
        Dedup key string.
    """
    if genre_id is not None:
        return f"id:{genre_id}"
    return f"name:{(name or '').strip().lower()}"


# =============================================================================
# SOURCE INPUT SCHEMAS
# =============================================================================


class SourceContentData(BaseModel, ABC):
    """Normalized content record from a provider adapter.

    Attributes:
        external_id: Identifier assigned by the provider.
        title: Display title (required).
        content_type: movie or series (required).
        alternative_titles: Other known titles (synonyms, translations).
        genres: Genre list (strings are accepted as names).
        studios: Studios or production companies.
        franchise_hint: Franchise name reported by the provider.
        sequel_ids: Provider identifiers of sequels.
        prequel_ids: Provider identifiers of prequels.
        related_ids: Provider identifiers of other related works.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    provider: ClassVar[Provider]

    # Identifier
    external_id: int = Field(gt=0)

    # Descriptive
    title: str = Field(min_length=1, max_length=500)
    original_title: str | None = Field(default=None, max_length=500)
    alternative_titles: list[str] = Field(default_factory=list)
    overview: str | None = None
    content_type: ContentType
    release_date: date | None = None
    runtime: int | None = Field(default=None, ge=1, le=2000)
    episode_count: int | None = Field(default=None, ge=0)
    season_count: int | None = Field(default=None, ge=0)
    poster_path: str | None = Field(default=None, max_length=255)
    backdrop_path: str | None = Field(default=None, max_length=255)

    # Taxonomy
    genres: list[GenreData] = Field(default_factory=list)
    studios: list[str] = Field(default_factory=list)

    # Relationships
    franchise_hint: str | None = Field(default=None, max_length=255)
    sequel_ids: list[int] = Field(default_factory=list)
    prequel_ids: list[int] = Field(default_factory=list)
    related_ids: list[int] = Field(default_factory=list)

    @field_validator("content_type", mode="before")
    @classmethod
    def normalize_content_type(cls, v: Any) -> Any:
        """Accept provider spellings such as 'tv' for series."""
        if isinstance(v, str):
            return _CONTENT_TYPE_ALIASES.get(v.strip().lower(), v)
        return v

    @field_validator("genres", mode="before")
    @classmethod
    def coerce_genres(cls, v: Any) -> Any:
        """Convert plain genre names to genre objects."""
        if v is None:
            return []
        return [{"name": g} if isinstance(g, str) else g for g in v]

    @field_validator("alternative_titles", "studios", mode="before")
    @classmethod
    def drop_blank_strings(cls, v: Any) -> Any:
        """Remove empty entries from string lists."""
        if v is None:
            return []
        return [s for s in v if isinstance(s, str) and s.strip()]

    @property
    def year(self) -> int | None:
        """Extract year from release date."""
        return self.release_date.year if self.release_date else None

    @property
    @abstractmethod
    def score_input(self) -> ScoreInput:
        """Rating of this record as seen by its provider."""

    @property
    def episodes(self) -> int | None:
        """Best known episode count."""
        return self.episode_count

    @abstractmethod
    def provider_fields(self) -> dict[str, Any]:
        """Provider-specific fields keyed by ContentRecord column name."""


class TMDBContentData(SourceContentData):
    """Normalized record from TMDB (general movie/TV database).

    Attributes:
        vote_average: Average rating (0-10).
        vote_count: Number of votes.
        popularity: TMDB popularity score.
    """

    provider: ClassVar[Provider] = Provider.TMDB

    vote_average: float | None = Field(default=None, ge=0.0, le=10.0)
    vote_count: int | None = Field(default=None, ge=0)
    popularity: float | None = Field(default=None, ge=0.0)

    @property
    def score_input(self) -> ScoreInput:
        """TMDB vote average and vote count."""
        return ScoreInput(score=self.vote_average, votes=self.vote_count)

    def provider_fields(self) -> dict[str, Any]:
        """TMDB columns overwritten on every write from TMDB."""
        return {
            "tmdb_id": self.external_id,
            "vote_average": self.vote_average,
            "vote_count": self.vote_count,
            "popularity": self.popularity,
        }


class MALContentData(SourceContentData):
    """Normalized record from MAL (anime-oriented database).

    Attributes:
        mal_score: Average score (0-10).
        mal_scored_by: Number of users who scored.
        mal_rank: Rank on MAL.
        mal_status: Airing status.
        mal_episodes: Episode count reported by MAL.
        mal_source: Source material (manga, light_novel, ...).
        mal_rating: Age rating (g, pg_13, ...).
    """

    provider: ClassVar[Provider] = Provider.MAL

    mal_score: float | None = Field(default=None, ge=0.0, le=10.0)
    mal_scored_by: int | None = Field(default=None, ge=0)
    mal_rank: int | None = Field(default=None, ge=0)
    mal_status: str | None = Field(default=None, max_length=30)
    mal_episodes: int | None = Field(default=None, ge=0)
    mal_source: str | None = Field(default=None, max_length=30)
    mal_rating: str | None = Field(default=None, max_length=10)

    @property
    def score_input(self) -> ScoreInput:
        """MAL score and scored-by count."""
        return ScoreInput(score=self.mal_score, votes=self.mal_scored_by)

    @property
    def episodes(self) -> int | None:
        """Episode count, falling back to MAL's own counter."""
        return self.episode_count if self.episode_count is not None else self.mal_episodes

    def provider_fields(self) -> dict[str, Any]:
        """MAL columns overwritten on every write from MAL."""
        return {
            "mal_id": self.external_id,
            "mal_score": self.mal_score,
            "mal_scored_by": self.mal_scored_by,
            "mal_rank": self.mal_rank,
            "mal_status": self.mal_status,
            "mal_episodes": self.mal_episodes,
            "mal_source": self.mal_source,
            "mal_rating": self.mal_rating,
        }


SOURCE_SCHEMAS: dict[Provider, type[SourceContentData]] = {
    Provider.TMDB: TMDBContentData,
    Provider.MAL: MALContentData,
}
"""Schema used to validate raw records of each provider."""
