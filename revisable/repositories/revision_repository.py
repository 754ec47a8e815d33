"""Revision repository for database operations.

Owns all revision query logic. Every read takes an explicit
RevisionFilter instead of an always-on default scope, so callers that need
soft-deleted rows ask for them rather than being surprised by their absence.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query

from ..exceptions import RevisionNotFoundError
from ..models.mixins import RevisionMixin
from ..schemas.revision import DeletedMode, RevisionFilter, NAVIGATION_FILTER
from .base import BaseRepository


class RevisionRepository(BaseRepository[RevisionMixin]):
    """Repository for one revision table."""

    not_found_error = RevisionNotFoundError

    def _filtered(self, filters: Optional[RevisionFilter] = None) -> Query:
        """Query with the is_current / deleted_at filters applied."""
        filters = filters or NAVIGATION_FILTER
        rev = self.model_class
        query = self.db.query(rev)
        if not filters.include_current:
            query = query.filter(rev.is_current.is_(False))
        if filters.deleted == DeletedMode.EXCLUDE:
            query = query.filter(rev.deleted_at.is_(None))
        elif filters.deleted == DeletedMode.ONLY:
            query = query.filter(rev.deleted_at.isnot(None))
        return query

    def _lineage(self, original_id: str, filters: Optional[RevisionFilter] = None) -> Query:
        return self._filtered(filters).filter(self.model_class.original_id == original_id)

    def create(self, revision: RevisionMixin) -> RevisionMixin:
        """Insert a fully stamped revision. Flushes so constraint violations surface here."""
        self.db.add(revision)
        self.db.flush()
        return revision

    # get_by_id and get_by_id_optional are inherited from BaseRepository
    # and ignore filters: an explicit id always resolves.

    def max_number(self, original_id: str) -> int:
        """Highest number ever assigned in the lineage (0 when empty).

        Counts soft-deleted rows too: numbers are never reused.
        """
        rev = self.model_class
        result = (
            self.db.query(func.max(rev.number))
            .filter(rev.original_id == original_id)
            .scalar()
        )
        return result or 0

    def get_latest(self, original_id: str, filters: Optional[RevisionFilter] = None) -> Optional[RevisionMixin]:
        """Revision with the highest number in the lineage."""
        return self._lineage(original_id, filters).order_by(self.model_class.number.desc()).first()

    def get_earliest(self, original_id: str, filters: Optional[RevisionFilter] = None) -> Optional[RevisionMixin]:
        """Revision with the lowest number in the lineage."""
        return self._lineage(original_id, filters).order_by(self.model_class.number.asc()).first()

    def get_by_number(
        self, original_id: str, number: int, filters: Optional[RevisionFilter] = None
    ) -> Optional[RevisionMixin]:
        return self._lineage(original_id, filters).filter(self.model_class.number == number).first()

    def get_ancestors(
        self, original_id: str, number: int, filters: Optional[RevisionFilter] = None
    ) -> List[RevisionMixin]:
        """Revisions before *number*, most recent first."""
        rev = self.model_class
        return (
            self._lineage(original_id, filters)
            .filter(rev.number < number)
            .order_by(rev.number.desc())
            .all()
        )

    def get_descendants(
        self, original_id: str, number: int, filters: Optional[RevisionFilter] = None
    ) -> List[RevisionMixin]:
        """Revisions after *number*, oldest first."""
        rev = self.model_class
        return (
            self._lineage(original_id, filters)
            .filter(rev.number > number)
            .order_by(rev.number.asc())
            .all()
        )

    def get_by_lineage(
        self,
        original_id: str,
        filters: Optional[RevisionFilter] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[RevisionMixin]:
        """Revisions of a lineage, newest first."""
        query = self._lineage(original_id, filters).order_by(self.model_class.number.desc()).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def number_taken(self, original_id: str, number: int) -> bool:
        """Whether *number* is assigned in the lineage. Column query; loads no instances."""
        rev = self.model_class
        row = (
            self.db.query(rev.id)
            .filter(rev.original_id == original_id, rev.number == number)
            .first()
        )
        return row is not None

    def get_numbers(self, original_id: str) -> List[int]:
        """Every assigned number in the lineage, ascending, including deleted rows."""
        rev = self.model_class
        rows = (
            self.db.query(rev.number)
            .filter(rev.original_id == original_id)
            .order_by(rev.number.asc())
            .all()
        )
        return [row[0] for row in rows]

    def count(self, original_id: str, filters: Optional[RevisionFilter] = None) -> int:
        return self._lineage(original_id, filters).count()

    def stamp_revised(self, revision: RevisionMixin, now: datetime) -> None:
        """Mark *revision* as superseded at *now*."""
        revision.revised_at = now

    def soft_delete(self, revision_id: str, now: datetime) -> RevisionMixin:
        """Mark revision as deleted. Idempotent — keeps the first deletion time."""
        revision = self.get_by_id(revision_id)
        if revision.deleted_at is None:
            revision.deleted_at = now
            self.db.flush()
        return revision
