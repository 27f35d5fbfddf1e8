"""Content repository for unified catalog records.

Provides identifier lookups, title-family search and
persistence helpers for ContentRecord.
"""

from collections.abc import Iterable, Iterator

from sqlalchemy import case, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from src.database.models.content import PROVIDERS, SEARCH_SEPARATOR, ContentRecord
from src.database.repositories.base import BaseRepository

_EXTERNAL_ID_COLUMNS = {
    "tmdb": ContentRecord.tmdb_id,
    "mal": ContentRecord.mal_id,
}


class ContentRepository(BaseRepository[ContentRecord]):
    """Repository for ContentRecord entity operations.

    Title lookups go through the denormalized ``search_titles``
    column, which is refreshed on every create and save.
    """

    model = ContentRecord

    def __init__(self, session: Session) -> None:
        """Initialize content repository.

        Args:
            session: SQLAlchemy session instance.
        """
        super().__init__(session)

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_by_internal_id(self, internal_id: str) -> ContentRecord | None:
        """Retrieve a record by its internal identifier.

        Args:
            internal_id: Identifier generated at creation.

        Returns:
            ContentRecord or None.
        """
        return self.get_by_field("internal_id", internal_id)

    def get_by_external_id(
        self,
        provider: str,
        external_id: int,
        content_type: str | None = None,
    ) -> ContentRecord | None:
        """Retrieve a record by a provider identifier.

        TMDB numbers movies and TV shows independently, so callers
        should pass ``content_type`` to disambiguate.

        Args:
            provider: Provider name (tmdb or mal).
            external_id: Identifier assigned by the provider.
            content_type: Restrict to this content type.

        Returns:
            ContentRecord or None.

        Raises:
            ValueError: If provider is unknown.
        """
        column = self._external_id_column(provider)
        stmt = select(ContentRecord).where(column == external_id)
        if content_type:
            stmt = stmt.where(ContentRecord.content_type == content_type)
        return self._session.scalars(stmt.order_by(ContentRecord.id)).first()

    def find_by_external_ids(
        self,
        provider: str,
        external_ids: Iterable[int],
    ) -> list[ContentRecord]:
        """Retrieve records matching any of the provider identifiers.

        Args:
            provider: Provider name (tmdb or mal).
            external_ids: Identifiers assigned by the provider.

        Returns:
            Matching records, whole-title matches first, then by primary key.
        """
        ids = list(dict.fromkeys(external_ids))
        if not ids:
            return []
        column = self._external_id_column(provider)
        stmt = select(ContentRecord).where(column.in_(ids)).order_by(ContentRecord.id)
        return list(self._session.scalars(stmt).all())

    def find_by_internal_ids(self, internal_ids: Iterable[str]) -> list[ContentRecord]:
        """Retrieve records by internal identifiers.

        Args:
            internal_ids: Identifiers generated at creation.

        Returns:
            Matching records ordered by primary key.
        """
        ids = list(dict.fromkeys(internal_ids))
        if not ids:
            return []
        stmt = (
            select(ContentRecord)
            .where(ContentRecord.internal_id.in_(ids))
            .order_by(ContentRecord.id)
        )
        return list(self._session.scalars(stmt).all())

    def search_by_title(
        self,
        title: str,
        content_type: str,
        limit: int = 5,
        exact: bool = False,
    ) -> list[ContentRecord]:
        """Search records whose title or alternative titles match.

        Matching is case-insensitive. By default the title only has to
        appear inside a stored title; with ``exact`` it must equal one.
        Whole-title matches are returned before substring matches so
        the limit never hides them. LIKE wildcards in ``title`` are
        escaped.

        Args:
            title: Title variation to look for.
            content_type: Restrict to this content type.
            limit: Maximum number of results.
            exact: Require a whole-title match.

        Returns:
            Matching records, whole-title matches first.
        """
        needle = title.strip().lower()
        if not needle:
            return []
        whole_title = ContentRecord.search_titles.contains(
            f"{SEARCH_SEPARATOR}{needle}{SEARCH_SEPARATOR}", autoescape=True
        )
        condition = whole_title if exact else ContentRecord.search_titles.contains(needle, autoescape=True)

        stmt = (
            select(ContentRecord)
            .where(ContentRecord.content_type == content_type, condition)
            .order_by(case((whole_title, 0), else_=1), ContentRecord.id)
            .limit(limit)
        )
        return list(self._session.scalars(stmt).all())

    def iter_all(self, batch_size: int = 100) -> Iterator[ContentRecord]:
        """Stream every record in primary key order.

        Args:
            batch_size: Rows fetched per round trip.

        Yields:
            ContentRecord instances.
        """
        stmt = (
            select(ContentRecord)
            .order_by(ContentRecord.id)
            .execution_options(yield_per=batch_size)
        )
        yield from self._session.scalars(stmt)

    # =========================================================================
    # Persistence
    # =========================================================================

    def create(self, entity: ContentRecord) -> ContentRecord:
        """Persist a new record with its search titles.

        Args:
            entity: Record to persist.

        Returns:
            Persisted record.
        """
        entity.refresh_search_titles()
        return super().create(entity)

    def save(self, entity: ContentRecord) -> ContentRecord:
        """Flush pending changes of a loaded record.

        The flush issues a single UPDATE guarded by ``version_id``;
        a concurrent write raises ``StaleDataError``.

        Args:
            entity: Record modified in place.

        Returns:
            Updated record.
        """
        entity.refresh_search_titles()
        self._session.add(entity)
        self._session.flush()
        return entity

    @staticmethod
    def _external_id_column(provider: str) -> InstrumentedAttribute[int | None]:
        """Resolve the column holding a provider identifier."""
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown provider: {provider!r}")
        return _EXTERNAL_ID_COLUMNS[provider]
