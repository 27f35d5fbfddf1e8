"""Database package for the media catalog.

Provides database connection management, ORM models, and repositories.

Usage:
    from src.database import get_database, ContentRepository

    db = get_database()
    with db.session() as session:
        repo = ContentRepository(session)
        record = repo.get_by_external_id("mal", 28851)
"""

from src.database.connection import (
    DatabaseConnection,
    close_database,
    get_database,
)
from src.database.models import Base, ContentRecord
from src.database.repositories import BaseRepository, ContentRepository

__all__ = [
    # Connection
    "DatabaseConnection",
    "get_database",
    "close_database",
    # Models
    "Base",
    "ContentRecord",
    # Repositories
    "BaseRepository",
    "ContentRepository",
]
