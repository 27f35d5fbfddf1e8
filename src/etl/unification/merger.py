"""Create-or-merge engine for provider records.

Turns one validated provider record into either a new catalog
record or an in-place merge into the record it duplicates.
"""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from src.database.models import ContentRecord
from src.database.models.content import default_data_sources, default_relationships
from src.database.repositories import ContentRepository
from src.etl.unification.candidate_matcher import CandidateMatcher
from src.etl.unification.errors import InvalidSourceDataError
from src.etl.unification.fact_checker import FactChecker
from src.etl.unification.franchise_linker import FranchiseLinker
from src.etl.unification.schemas import (
    SOURCE_SCHEMAS,
    GenreData,
    Provider,
    SourceContentData,
    genre_key,
)
from src.etl.unification.score_calculator import unify_record
from src.settings import settings
from src.settings.matching import MatchingSettings

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

ANIME_KEYWORDS = ("anime", "manga", "japanese", "japan")
"""Keywords flagging anime content in title, overview or studios."""

GAP_FILL_FIELDS = (
    "original_title",
    "poster_path",
    "backdrop_path",
    "release_date",
    "runtime",
    "episode_count",
    "season_count",
)
"""Shared fields the trusted provider writes when the record has no value yet."""


class MergeAction(StrEnum):
    """What happened to an incoming record."""

    CREATED = "created"
    MERGED = "merged"
    UPDATED = "updated"


@dataclass(frozen=True)
class MergeOutcome:
    """Result of create_or_merge.

    Attributes:
        action: created, merged or updated.
        record: Record that now holds the data.
        reason: Match reason for merges, None otherwise.
    """

    action: MergeAction
    record: ContentRecord
    reason: str | None = None


# =============================================================================
# HELPERS
# =============================================================================


def _contains_keyword(values: Iterable[str | None]) -> bool:
    for value in values:
        text = (value or "").lower()
        if any(keyword in text for keyword in ANIME_KEYWORDS):
            return True
    return False


def is_anime_content(
    source: SourceContentData,
    record: ContentRecord | None = None,
) -> bool:
    """Flag anime content from keywords or existing MAL data.

    Existing MAL data only counts for sources from another provider,
    so a MAL record is judged the same way on every merge.

    Args:
        source: Incoming record.
        record: Stored record being merged into, if any.

    Returns:
        True if either side looks like anime.
    """
    if _contains_keyword([source.title, source.overview, *source.studios]):
        return True
    if record is None:
        return False
    if source.provider != Provider.MAL and record.has_provider_data(Provider.MAL.value):
        return True
    return _contains_keyword([record.title, record.overview, *(record.studios or [])])


def deduplicate_genres(genres: Iterable[GenreData | dict[str, Any]]) -> list[dict[str, Any]]:
    """Union genre lists, first occurrence wins.

    A genre is a duplicate when its id or its lowercased name was
    already seen. A kept entry without id takes the id of a later
    duplicate.

    Args:
        genres: Genres as models or stored dicts.

    Returns:
        Deduplicated genres as dicts.
    """
    result: list[dict[str, Any]] = []
    index: dict[str, dict[str, Any]] = {}

    for genre in genres:
        if isinstance(genre, GenreData):
            genre = genre.to_document()
        name = str(genre.get("name") or "").strip()
        if not name:
            continue
        genre_id = genre.get("id")
        keys = [genre_key(None, name)]
        if genre_id is not None:
            keys.append(genre_key(genre_id, name))

        existing = next((index[k] for k in keys if k in index), None)
        if existing is None:
            existing = {"id": genre_id, "name": name}
            result.append(existing)
        elif existing["id"] is None and genre_id is not None:
            existing["id"] = genre_id

        for key in keys:
            index.setdefault(key, existing)
        if existing["id"] is not None:
            index.setdefault(genre_key(existing["id"], name), existing)

    return result


def union_titles(existing: Iterable[str], incoming: Iterable[str | None]) -> list[str]:
    """Union string lists case-insensitively, keeping first spelling.

    Args:
        existing: Current values.
        incoming: Values to add.

    Returns:
        Combined list in insertion order.
    """
    result: list[str] = []
    seen: set[str] = set()
    for value in [*existing, *incoming]:
        if not value or not value.strip():
            continue
        key = value.strip().lower()
        if key not in seen:
            seen.add(key)
            result.append(value.strip())
    return result


# =============================================================================
# MERGE ENGINE
# =============================================================================


class MergeEngine:
    """Creates new records or merges provider data into existing ones.

    Attributes:
        repository: Content repository bound to the current session.
        matcher: Candidate lookup.
        linker: Franchise and relationship linking.
    """

    def __init__(
        self,
        repository: ContentRepository,
        config: MatchingSettings | None = None,
        fact_checker: FactChecker | None = None,
        linker: FranchiseLinker | None = None,
    ) -> None:
        """Initialize merge engine.

        Args:
            repository: Content repository bound to the current session.
            config: Matching settings, defaults to global settings.
            fact_checker: Shared fact checker.
            linker: Franchise linker, built on repository when omitted.
        """
        config = config or settings.matching
        self.repository = repository
        self.matcher = CandidateMatcher(repository, fact_checker=fact_checker, config=config)
        self.linker = linker or FranchiseLinker(repository)

    # =========================================================================
    # Public API
    # =========================================================================

    def create_or_merge(
        self,
        raw_data: dict[str, Any] | SourceContentData,
        provider: Provider | str,
    ) -> MergeOutcome:
        """Store one provider record.

        Args:
            raw_data: Normalized provider record.
            provider: Provider the record comes from.

        Returns:
            MergeOutcome describing the write.

        Raises:
            InvalidSourceDataError: If the record fails validation.
            ValueError: If provider is unknown.
        """
        provider = Provider(provider)
        source = self.validate(raw_data, provider)

        existing = self.repository.get_by_external_id(
            provider.value,
            source.external_id,
            content_type=source.content_type.value,
        )
        if existing is not None:
            self._apply_source(existing, source, provider)
            self.repository.save(existing)
            logger.debug("Updated %r from %s id %d", existing, provider, source.external_id)
            return MergeOutcome(action=MergeAction.UPDATED, record=existing)

        candidates = self.matcher.find_candidates(source)
        if not candidates:
            record = self._create(source, provider)
            logger.debug("Created %r from %s", record, provider)
            return MergeOutcome(action=MergeAction.CREATED, record=record)

        candidate = candidates[0]
        self._apply_source(candidate.record, source, provider)
        self.repository.save(candidate.record)
        logger.info(
            "Merged %s '%s' into '%s' (%s)",
            provider,
            source.title,
            candidate.record.title,
            candidate.reason,
        )
        return MergeOutcome(
            action=MergeAction.MERGED,
            record=candidate.record,
            reason=candidate.reason,
        )

    @staticmethod
    def validate(
        raw_data: dict[str, Any] | SourceContentData,
        provider: Provider,
    ) -> SourceContentData:
        """Validate a raw record against its provider schema.

        Args:
            raw_data: Normalized provider record.
            provider: Provider the record comes from.

        Returns:
            Validated record.

        Raises:
            InvalidSourceDataError: If validation fails.
        """
        schema = SOURCE_SCHEMAS[provider]
        if isinstance(raw_data, schema):
            return raw_data
        if isinstance(raw_data, SourceContentData):
            raw_data = raw_data.model_dump()
        try:
            return schema.model_validate(raw_data)
        except ValidationError as e:
            raise InvalidSourceDataError(provider.value, e) from e

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _create(self, source: SourceContentData, provider: Provider) -> ContentRecord:
        """Build and persist a record from a single source."""
        now = datetime.now(UTC)
        record = ContentRecord(
            internal_id=str(uuid.uuid4()),
            title=source.title,
            original_title=source.original_title,
            alternative_titles=union_titles(
                [],
                [
                    t
                    for t in (source.original_title, *source.alternative_titles)
                    if t and t.lower() != source.title.lower()
                ],
            ),
            overview=source.overview,
            content_type=source.content_type.value,
            release_date=source.release_date,
            runtime=source.runtime,
            episode_count=source.episode_count,
            season_count=source.season_count,
            poster_path=source.poster_path,
            backdrop_path=source.backdrop_path,
            studios=union_titles([], source.studios),
            genres=deduplicate_genres(source.genres),
            relationships=default_relationships(),
            data_sources=self._stamp(default_data_sources(), provider, now),
            user_rating_count=0,
            last_updated=now,
            **source.provider_fields(),
        )
        self.linker.reconcile_relationships(record, source, provider)
        record.unified_score = unify_record(record)
        return self.repository.create(record)

    def _apply_source(
        self,
        record: ContentRecord,
        source: SourceContentData,
        provider: Provider,
    ) -> None:
        """Merge a source into a record in place.

        Applying the same source twice leaves the record unchanged
        apart from timestamps.
        """
        now = datetime.now(UTC)
        trusted = self._is_trusted(record, source, provider)

        for name, value in source.provider_fields().items():
            setattr(record, name, value)

        extra_titles: list[str | None] = [source.title, source.original_title]

        if not record.title:
            record.title = source.title
        elif trusted and len(source.title) > len(record.title):
            extra_titles.append(record.title)
            record.title = source.title

        if trusted:
            if source.overview and (
                not record.overview or len(source.overview) > len(record.overview)
            ):
                record.overview = source.overview

            for name in GAP_FILL_FIELDS:
                value = getattr(source, name)
                if value is not None and getattr(record, name) is None:
                    setattr(record, name, value)

        current_title = record.title.strip().lower()
        record.alternative_titles = union_titles(
            record.alternative_titles or [],
            [
                t
                for t in (*extra_titles, *source.alternative_titles)
                if t and t.strip().lower() != current_title
            ],
        )
        record.studios = union_titles(record.studios or [], source.studios)
        record.genres = deduplicate_genres([*(record.genres or []), *source.genres])

        self.linker.reconcile_relationships(record, source, provider)

        record.data_sources = self._stamp(record.data_sources, provider, now)
        record.last_updated = now
        record.unified_score = unify_record(record)

    @staticmethod
    def _is_trusted(record: ContentRecord, source: SourceContentData, provider: Provider) -> bool:
        """Check if provider may replace title and overview on this record."""
        preferred = Provider.MAL if is_anime_content(source, record) else Provider.TMDB
        return provider == preferred

    @staticmethod
    def _stamp(
        data_sources: dict[str, Any] | None,
        provider: Provider,
        now: datetime,
    ) -> dict[str, Any]:
        """Return provenance with the provider marked as contributing."""
        stamped = {**default_data_sources(), **(data_sources or {})}
        stamped[provider.value] = {"hasData": True, "lastUpdated": now.isoformat()}
        return stamped
