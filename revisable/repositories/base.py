"""Base repository with shared get-by-ID patterns.

Repositories here are bound to a model class at construction time, because
one ledger serves every registered revisable type. Subclasses choose the
not_found_error; the base provides the common lookups.

Override _base_query() to apply default filters.
"""

from typing import TypeVar, Generic, Optional, Type
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import RevisableError

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        id_column:       Name of the primary-key column (default "id")
        not_found_error: Exception class to raise from get_by_id
    """

    id_column: str = "id"
    not_found_error: Type[RevisableError]

    def __init__(self, db: Session, model_class: Type[ModelT]):
        self.db = db
        self.model_class = model_class

    def _base_query(self) -> Query:
        """Base query for get_by_id / get_by_id_optional."""
        return self.db.query(self.model_class)

    def get_by_id(self, entity_id: str) -> ModelT:
        """Get entity by primary key. Raises not_found_error if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        """Get entity by primary key, or None if not found."""
        col = getattr(self.model_class, self.id_column)
        return self._base_query().filter(col == entity_id).first()
