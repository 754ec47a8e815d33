"""Lineage navigation: ancestor/descendant queries and revision resolution.

Neighbour lookups use the ancestor/descendant ordering as the source of
truth and then check the numbering; a gap means the ledger's invariant was
broken somewhere and is raised as LineageIntegrityError, never papered over.
"""

import logging
from enum import Enum
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..core.registry import RevisableRegistry
from ..exceptions import LineageIntegrityError, RevisionNotFoundError
from ..models.mixins import RevisableMixin, RevisionMixin
from ..repositories import RevisionRepository
from ..schemas.revision import DeletedMode, RevisionFilter, LISTING_FILTER, DELETED_FILTER, NAVIGATION_FILTER

logger = logging.getLogger(__name__)


class RevisionToken(str, Enum):
    """Symbolic selectors accepted by resolve()."""
    FIRST = "first"
    LAST = "last"
    PREVIOUS = "previous"
    NEXT = "next"

    @classmethod
    def parse(cls, value: str) -> Optional["RevisionToken"]:
        """Token for ``"last"`` or ``":last"``, None for anything else."""
        try:
            return cls(value[1:] if value.startswith(":") else value)
        except ValueError:
            return None


Selector = Union[int, str, RevisionToken]


class LineageNavigator:
    """Read-only queries over a lineage."""

    def __init__(self, db: Session, registry: RevisableRegistry):
        self.db = db
        self.registry = registry

    def _repo(self, target) -> RevisionRepository:
        return RevisionRepository(self.db, self.registry.revision_class_for(target))

    # ------------------------------------------------------------------
    # Ancestors / descendants
    # ------------------------------------------------------------------

    def ancestors_of(self, revision: RevisionMixin, filters: Optional[RevisionFilter] = None) -> List[RevisionMixin]:
        """Same-lineage revisions with a lower number, most recent first."""
        return self._repo(revision).get_ancestors(
            revision.original_id, revision.number, filters or NAVIGATION_FILTER
        )

    def descendants_of(self, revision: RevisionMixin, filters: Optional[RevisionFilter] = None) -> List[RevisionMixin]:
        """Same-lineage revisions with a higher number, oldest first."""
        return self._repo(revision).get_descendants(
            revision.original_id, revision.number, filters or NAVIGATION_FILTER
        )

    def previous_of(self, revision: RevisionMixin, filters: Optional[RevisionFilter] = None) -> Optional[RevisionMixin]:
        """The revision immediately before *revision*, or None for the first one."""
        ancestors = self.ancestors_of(revision, filters)
        if not ancestors:
            return None
        previous = ancestors[0]
        self._check_adjacent(previous, revision, filters)
        return previous

    def next_of(self, revision: RevisionMixin, filters: Optional[RevisionFilter] = None) -> Optional[RevisionMixin]:
        """The revision immediately after *revision*, or None for the latest one."""
        descendants = self.descendants_of(revision, filters)
        if not descendants:
            return None
        following = descendants[0]
        self._check_adjacent(revision, following, filters)
        return following

    def _check_adjacent(
        self, earlier: RevisionMixin, later: RevisionMixin, filters: Optional[RevisionFilter]
    ) -> None:
        # Hidden deleted rows legitimately leave holes in a filtered view.
        if filters is not None and filters.deleted != DeletedMode.INCLUDE:
            return
        if later.number - earlier.number != 1:
            logger.error(
                f"Numbering gap in lineage {earlier.original_id}: {earlier.number} -> {later.number}",
                extra={"original_id": earlier.original_id},
            )
            raise LineageIntegrityError(
                earlier.original_id,
                f"Revision numbers {earlier.number} and {later.number} of {earlier.original_id} are not contiguous",
                earlier=earlier.number,
                later=later.number,
            )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(
        self,
        live: RevisableMixin,
        selector: Selector,
        relative_to: Optional[RevisionMixin] = None,
        filters: Optional[RevisionFilter] = None,
    ) -> RevisionMixin:
        """Find a revision of *live*'s lineage. Raises RevisionNotFoundError.

        *selector* is a token (first, last, previous, next), a positive
        revision number, zero or a negative offset back from the latest
        revision, or a revision id. previous/next are taken relative to
        *relative_to* when given. Without it the live entity is the anchor:
        previous is the latest stored revision and nothing is next.
        """
        revision = self.resolve_optional(live, selector, relative_to, filters)
        if revision is None:
            raise RevisionNotFoundError(selector, original_id=live.id)
        return revision

    def resolve_optional(
        self,
        live: RevisableMixin,
        selector: Selector,
        relative_to: Optional[RevisionMixin] = None,
        filters: Optional[RevisionFilter] = None,
    ) -> Optional[RevisionMixin]:
        """Like resolve(), returning None instead of raising."""
        filters = filters or NAVIGATION_FILTER
        repo = self._repo(live)

        if relative_to is not None and relative_to.original_id != live.id:
            return None

        # bool is an int subclass; True/False are not revision numbers.
        if isinstance(selector, bool):
            return None

        if isinstance(selector, int):
            if selector > 0:
                return repo.get_by_number(live.id, selector, filters)
            latest = repo.get_latest(live.id, filters)
            if latest is None:
                return None
            return repo.get_by_number(live.id, latest.number + selector, filters)

        token = selector if isinstance(selector, RevisionToken) else RevisionToken.parse(selector)
        if token is None:
            revision = repo.get_by_id_optional(selector)
            if revision is None or revision.original_id != live.id:
                return None
            return revision

        if token is RevisionToken.LAST:
            return repo.get_latest(live.id, filters)

        if token is RevisionToken.FIRST:
            first = repo.get_earliest(live.id, filters)
            if first is not None and first.number != 1 and filters.deleted == DeletedMode.INCLUDE:
                raise LineageIntegrityError(
                    live.id,
                    f"Earliest revision of {live.id} has number {first.number}, expected 1",
                    earliest=first.number,
                )
            return first

        if token is RevisionToken.PREVIOUS:
            # The live entity is the current state; the newest revision precedes it.
            if relative_to is None:
                return repo.get_latest(live.id, filters)
            return self.previous_of(relative_to, filters)

        # NEXT: nothing follows the live entity itself.
        if relative_to is None:
            return None
        return self.next_of(relative_to, filters)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def list_revisions(
        self,
        live: RevisableMixin,
        filters: Optional[RevisionFilter] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[RevisionMixin]:
        """Lineage history, newest first. Hides soft-deleted rows by default."""
        return self._repo(live).get_by_lineage(live.id, filters or LISTING_FILTER, skip, limit)

    def deleted_revisions(self, live: RevisableMixin) -> List[RevisionMixin]:
        """Soft-deleted revisions of the lineage, newest first."""
        return self._repo(live).get_by_lineage(live.id, DELETED_FILTER)

    def verify_lineage(self, live: RevisableMixin) -> int:
        """Check numbers are exactly 1..N. Returns N; raises LineageIntegrityError."""
        numbers = self._repo(live).get_numbers(live.id)
        expected = list(range(1, len(numbers) + 1))
        if numbers != expected:
            gaps = sorted(set(range(1, (numbers[-1] if numbers else 0) + 1)) - set(numbers))
            raise LineageIntegrityError(
                live.id,
                f"Lineage {live.id} numbers are not contiguous from 1",
                missing=gaps,
                count=len(numbers),
            )
        return len(numbers)
