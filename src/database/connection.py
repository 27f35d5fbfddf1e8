"""Engine and session management for the catalog database.

Each ingested record runs in its own ``session()`` scope, so the
scope is the unit of work: committed when the block exits cleanly,
rolled back when it raises.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from src.database.models import Base
from src.settings import settings

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Engine plus session factory for one database URL.

    Example:
        ```python
        db = DatabaseConnection("sqlite://")
        db.create_schema()
        with db.session() as session:
            ContentRepository(session).count()
        ```
    """

    def __init__(self, url: str | None = None) -> None:
        """Bind to ``url``, or to the configured catalog database."""
        self._url = url or settings.database.sync_url
        self._engine = self._create_engine(self._url)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @staticmethod
    def _create_engine(url: str) -> Engine:
        """Build the engine for ``url``.

        SQLite shares one connection (StaticPool) so an in-memory
        database outlives individual sessions. Anything else gets a
        pre-pinged QueuePool sized from settings.
        """
        echo = settings.database.echo or settings.debug
        if url.startswith("sqlite"):
            return create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=echo,
            )
        return create_engine(url, poolclass=QueuePool, echo=echo, **settings.database.pool_options())

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Transactional scope: commit on success, rollback and re-raise on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_session(self) -> Session:
        """Unscoped session; the caller commits and closes it."""
        return self._session_factory()

    def create_schema(self, drop: bool = False) -> None:
        """Create the catalog tables.

        Args:
            drop: Drop the existing tables first.
        """
        if drop:
            logger.warning("Dropping catalog tables")
            Base.metadata.drop_all(self._engine)
        Base.metadata.create_all(self._engine)
        logger.info("Catalog schema ready (%s tables)", len(Base.metadata.tables))

    def check_connection(self) -> bool:
        """Run ``SELECT 1``; False when the database is unreachable."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Database connection failed: %s", e)
            return False
        return True

    def dispose(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    @property
    def engine(self) -> Engine:
        return self._engine


# =============================================================================
# SHARED INSTANCE
# =============================================================================

_db: DatabaseConnection | None = None


def get_database() -> DatabaseConnection:
    """Return the process-wide connection, creating it on first use."""
    global _db  # noqa: PLW0603
    if _db is None:
        _db = DatabaseConnection()
    return _db


def close_database() -> None:
    """Dispose the process-wide connection, if any."""
    global _db  # noqa: PLW0603
    if _db is not None:
        _db.dispose()
        _db = None
