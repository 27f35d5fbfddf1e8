"""Shared pytest fixtures for catalog tests."""

from collections.abc import Callable, Generator
from datetime import date
from typing import Any

import pytest
from sqlalchemy.orm import Session

from src.database.connection import DatabaseConnection
from src.database.repositories import ContentRepository
from src.settings.base import PipelineSettings
from src.settings.matching import MatchingSettings


@pytest.fixture(autouse=True, scope="function")
def mock_env_for_tests(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mock env variables for reproducible tests."""
    # Database settings
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("POSTGRES_HOST", "localhost")
    monkeypatch.setenv("POSTGRES_PORT", "5432")
    monkeypatch.setenv("POSTGRES_DB", "test_media_catalog")
    monkeypatch.setenv("POSTGRES_USER", "test_user")
    monkeypatch.setenv("POSTGRES_PASSWORD", "test_password")

    # Ingestion settings
    monkeypatch.setenv("INGEST_BATCH_DELAY", "0")

    # Environment
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("LOG_LEVEL", "INFO")

    # Matching defaults, whatever the developer's .env says
    for var in (
        "MATCH_MOVIE_YEAR_TOLERANCE",
        "MATCH_SERIES_YEAR_TOLERANCE",
        "MATCH_MAX_EPISODE_DIFF",
        "MATCH_MAX_RUNTIME_DIFF",
        "MATCH_CANDIDATE_LIMIT",
        "MATCH_MIN_VARIATION_LENGTH",
    ):
        monkeypatch.delenv(var, raising=False)


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
def db() -> Generator[DatabaseConnection, None, None]:
    """In-memory SQLite database with the catalog schema."""
    connection = DatabaseConnection("sqlite://")
    connection.create_schema()
    yield connection
    connection.dispose()


@pytest.fixture
def session(db: DatabaseConnection) -> Generator[Session, None, None]:
    """Session on the test database, rolled back after the test."""
    s = db.get_session()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def repository(session: Session) -> ContentRepository:
    """Content repository bound to the test session."""
    return ContentRepository(session)


# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture
def matching_config() -> MatchingSettings:
    """Matching tolerances with default values."""
    return MatchingSettings()


@pytest.fixture
def pipeline_config() -> PipelineSettings:
    """Pipeline settings without pauses between batches."""
    return PipelineSettings(
        INGEST_BATCH_SIZE=2,
        INGEST_BATCH_DELAY=0.0,
        INGEST_MAX_RETRIES=3,
        INGEST_RETRY_WAIT_MIN=0.0,
        INGEST_RETRY_WAIT_MAX=0.0,
    )


# =============================================================================
# RECORD BUILDERS
# =============================================================================


@pytest.fixture
def tmdb_record() -> Callable[..., dict[str, Any]]:
    """Build a normalized TMDB record."""

    def _build(**overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "external_id": 378064,
            "title": "Ghost Voice",
            "content_type": "movie",
            "release_date": date(2016, 9, 17),
            "runtime": 130,
            "overview": "A deaf girl is bullied by a classmate.",
            "genres": [{"id": 18, "name": "Drama"}],
            "vote_average": 7.5,
            "vote_count": 5000,
            "popularity": 42.0,
        }
        data.update(overrides)
        return data

    return _build


@pytest.fixture
def mal_record() -> Callable[..., dict[str, Any]]:
    """Build a normalized MAL record."""

    def _build(**overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "external_id": 28851,
            "title": "Koe no Katachi",
            "alternative_titles": ["Ghost Voice"],
            "content_type": "movie",
            "release_date": date(2016, 9, 17),
            "runtime": 130,
            "genres": ["Drama"],
            "studios": ["Kyoto Animation"],
            "mal_score": 8.9,
            "mal_scored_by": 800,
            "mal_rank": 20,
            "mal_status": "finished_airing",
            "mal_source": "manga",
            "mal_rating": "pg_13",
        }
        data.update(overrides)
        return data

    return _build
