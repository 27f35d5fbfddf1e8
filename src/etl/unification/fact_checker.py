"""Same-content fact checking.

Decides whether an incoming record and a stored candidate found by
title describe the same work. Checks are lenient: a criterion is
only applied when both sides carry the data it needs.
"""

import logging
from dataclasses import dataclass, field
from typing import Self

from src.database.models import ContentRecord
from src.etl.unification.schemas import ContentType, SourceContentData
from src.settings import settings
from src.settings.matching import MatchingSettings

logger = logging.getLogger(__name__)


# =============================================================================
# FACT SNAPSHOTS
# =============================================================================


@dataclass(frozen=True)
class ContentFacts:
    """Comparable facts about one piece of content.

    Attributes:
        title: Display title (for log messages).
        content_type: movie or series.
        year: Release year.
        genres: Lowercased genre names.
        episodes: Episode count (series).
        runtime: Runtime in minutes (movies).
    """

    title: str
    content_type: str
    year: int | None = None
    genres: frozenset[str] = field(default_factory=frozenset)
    episodes: int | None = None
    runtime: int | None = None

    @classmethod
    def from_source(cls, source: SourceContentData) -> Self:
        """Build facts from a validated provider record."""
        return cls(
            title=source.title,
            content_type=str(source.content_type),
            year=source.year,
            genres=frozenset(g.name.lower() for g in source.genres),
            episodes=source.episodes,
            runtime=source.runtime,
        )

    @classmethod
    def from_record(cls, record: ContentRecord) -> Self:
        """Build facts from a stored record."""
        names = (str(g.get("name") or "").strip().lower() for g in record.genres or [])
        return cls(
            title=record.title,
            content_type=record.content_type,
            year=record.year,
            genres=frozenset(n for n in names if n),
            episodes=record.episode_count or record.mal_episodes,
            runtime=record.runtime,
        )


@dataclass(frozen=True)
class FactCheckResult:
    """Outcome of a fact check.

    Attributes:
        accepted: True when no criterion rejected the pair.
        reason: Rejecting criterion, None when accepted.
    """

    accepted: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.accepted


_ACCEPTED = FactCheckResult(accepted=True)


# =============================================================================
# FACT CHECKER
# =============================================================================


class FactChecker:
    """Applies same-content heuristics to a pair of records.

    Attributes:
        config: Tolerances for each criterion.
    """

    def __init__(self, config: MatchingSettings | None = None) -> None:
        """Initialize checker.

        Args:
            config: Matching tolerances, defaults to global settings.
        """
        self.config = config or settings.matching

    def is_same_content(
        self,
        new: ContentFacts | SourceContentData,
        candidate: ContentFacts | ContentRecord,
    ) -> bool:
        """Check whether two records describe the same work.

        Args:
            new: Incoming record or its facts.
            candidate: Stored record or its facts.

        Returns:
            True when every applicable criterion passes.
        """
        return self.check(new, candidate).accepted

    def check(
        self,
        new: ContentFacts | SourceContentData,
        candidate: ContentFacts | ContentRecord,
    ) -> FactCheckResult:
        """Run all criteria and report the first rejection.

        Args:
            new: Incoming record or its facts.
            candidate: Stored record or its facts.

        Returns:
            FactCheckResult with the rejecting criterion, if any.
        """
        new_facts = new if isinstance(new, ContentFacts) else ContentFacts.from_source(new)
        old_facts = (
            candidate
            if isinstance(candidate, ContentFacts)
            else ContentFacts.from_record(candidate)
        )

        for criterion in (
            self._check_content_type,
            self._check_year,
            self._check_genres,
            self._check_episodes,
            self._check_runtime,
        ):
            reason = criterion(new_facts, old_facts)
            if reason:
                logger.info(
                    "Rejected match '%s' vs '%s': %s",
                    new_facts.title,
                    old_facts.title,
                    reason,
                )
                return FactCheckResult(accepted=False, reason=reason)

        return _ACCEPTED

    # =========================================================================
    # Criteria
    # =========================================================================

    @staticmethod
    def _check_content_type(new: ContentFacts, old: ContentFacts) -> str | None:
        if new.content_type != old.content_type:
            return f"content type mismatch ({new.content_type} vs {old.content_type})"
        return None

    def _check_year(self, new: ContentFacts, old: ContentFacts) -> str | None:
        if new.year is None or old.year is None:
            return None
        tolerance = (
            self.config.movie_year_tolerance
            if new.content_type == ContentType.MOVIE
            else self.config.series_year_tolerance
        )
        if abs(new.year - old.year) > tolerance:
            return f"year mismatch ({new.year} vs {old.year})"
        return None

    @staticmethod
    def _check_genres(new: ContentFacts, old: ContentFacts) -> str | None:
        if not new.genres or not old.genres:
            return None
        if new.genres.isdisjoint(old.genres):
            return (
                f"no common genres ({', '.join(sorted(new.genres))} "
                f"vs {', '.join(sorted(old.genres))})"
            )
        return None

    def _check_episodes(self, new: ContentFacts, old: ContentFacts) -> str | None:
        if new.content_type != ContentType.SERIES or not new.episodes or not old.episodes:
            return None
        if abs(new.episodes - old.episodes) > self.config.max_episode_difference:
            return f"episode count mismatch ({new.episodes} vs {old.episodes})"
        return None

    def _check_runtime(self, new: ContentFacts, old: ContentFacts) -> str | None:
        if new.content_type != ContentType.MOVIE or not new.runtime or not old.runtime:
            return None
        if abs(new.runtime - old.runtime) > self.config.max_runtime_difference:
            return f"runtime mismatch ({new.runtime}min vs {old.runtime}min)"
        return None
