"""Generic repository shared by catalog repositories.

Repositories never commit: they add and flush inside the session
handed to them, and the caller's ``DatabaseConnection.session()``
scope decides whether the unit of work is committed.
"""

from datetime import date, datetime
from typing import Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from src.database.models.base import Base

# Scalar values accepted as equality filters
FieldValue = str | int | float | bool | date | datetime | None

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Session-bound data access for a single mapped class.

    Subclasses set ``model`` and add their own queries.
    """

    model: type[ModelT]

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        """Session the repository works in."""
        return self._session

    def get_by_id(self, entity_id: int) -> ModelT | None:
        """Load by surrogate primary key (identity map first)."""
        return self._session.get(self.model, entity_id)

    def get_all(self, limit: int = 100, offset: int = 0) -> list[ModelT]:
        """Page through rows in primary key order.

        Args:
            limit: Page size.
            offset: Rows to skip.

        Returns:
            One page of entities.
        """
        primary_key = self.model.__mapper__.primary_key[0]
        stmt = select(self.model).order_by(primary_key).limit(limit).offset(offset)
        return list(self._session.scalars(stmt))

    def get_by_field(self, field_name: str, value: FieldValue) -> ModelT | None:
        """Return the first row whose column equals ``value``.

        Raises:
            ValueError: If the model has no such column.
        """
        if field_name not in self.model.__table__.columns:
            raise ValueError(f"{self.model.__name__} has no column '{field_name}'")
        column = getattr(self.model, field_name)
        return self._session.scalars(select(self.model).where(column == value)).first()

    def count(self) -> int:
        """Number of rows in the table."""
        stmt = select(func.count()).select_from(self.model)
        return self._session.scalar(stmt) or 0

    def create(self, entity: ModelT) -> ModelT:
        """Add a new entity and flush so database defaults are populated."""
        self._session.add(entity)
        self._session.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        """Remove an entity within the current unit of work."""
        self._session.delete(entity)
        self._session.flush()
