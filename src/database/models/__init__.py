"""ORM models for the media catalog."""

from src.database.models.base import Base, TimestampMixin
from src.database.models.content import (
    CONTENT_TYPES,
    PROVIDERS,
    SEARCH_SEPARATOR,
    ContentRecord,
    default_data_sources,
    default_relationships,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "ContentRecord",
    "CONTENT_TYPES",
    "PROVIDERS",
    "SEARCH_SEPARATOR",
    "default_data_sources",
    "default_relationships",
]
