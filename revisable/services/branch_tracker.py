"""Branch lineage tracking.

Every live entity remembers where it last diverged through its fork
pointer (``branched_from_id``). A pointer may name a live entity while that
source is still unsnapshotted; as soon as the source gains a revision the
pointer is moved onto that frozen revision.
"""

import logging
from typing import List, Union

from sqlalchemy.orm import Session

from ..core.registry import RevisableRegistry
from ..exceptions import ValidationError
from ..models.mixins import RevisableMixin, RevisionMixin
from ..repositories import LiveEntityRepository

logger = logging.getLogger(__name__)


class BranchTracker:
    """Records fork points and re-parents them as history grows."""

    def __init__(self, db: Session, registry: RevisableRegistry):
        self.db = db
        self.registry = registry

    def _live_repo(self, live_class: type) -> LiveEntityRepository:
        return LiveEntityRepository(self.db, self.registry.live_class_for(live_class))

    def reparent_forks(self, live_class: type, original_id: str, new_revision_id: str) -> int:
        """Re-point live entities forked from *original_id* to *new_revision_id*.

        Only live rows are touched, never revisions. Idempotent: a second run
        with the same arguments matches no rows.
        """
        count = self._live_repo(live_class).reparent_forks(original_id, new_revision_id)
        if count:
            logger.info(
                f"Re-parented {count} fork(s) from {original_id} to {new_revision_id}",
                extra={"original_id": original_id, "revision_id": new_revision_id, "count": count},
            )
        return count

    def mark_branched(self, live: RevisableMixin, source: Union[RevisableMixin, RevisionMixin]) -> None:
        """Record that *live* forked from *source* (a live entity or a revision)."""
        if source.id is None:
            # Source must be stored so the pointer references something that already exists.
            self.db.flush()
        if live.id is not None and source.id == live.id:
            raise ValidationError(f"{live.id} cannot branch from itself", field="branched_from_id")
        live.branched_from_id = source.id
        logger.debug(f"{live.id} now branched from {source.id}")

    def branches_of(self, live_class: type, source_id: str) -> List[RevisableMixin]:
        """Live entities whose fork pointer currently equals *source_id*."""
        return self._live_repo(live_class).get_branches(source_id)
