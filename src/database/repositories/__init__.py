"""Database repositories for the media catalog.

Provides repository pattern implementations with CRUD
and specialized queries.

Usage:
    from src.database.repositories import ContentRepository
    from src.database import get_database

    db = get_database()
    with db.session() as session:
        repo = ContentRepository(session)
        records = repo.search_by_title("koe no katachi", "movie")
"""

from src.database.repositories.base import BaseRepository
from src.database.repositories.content import ContentRepository

__all__ = [
    "BaseRepository",
    "ContentRepository",
]
