"""Live-entity repository: lineage lookups and fork-pointer updates."""

import logging
from typing import List

from ..exceptions import LineageNotFoundError
from ..models.mixins import RevisableMixin
from .base import BaseRepository

logger = logging.getLogger(__name__)


class LiveEntityRepository(BaseRepository[RevisableMixin]):
    """Queries against a live-entity table.

    get_by_id raises LineageNotFoundError: a live entity is the head of
    its lineage, so a missing row means the lineage does not exist.
    """

    not_found_error = LineageNotFoundError

    def get_for_update(self, original_id: str) -> RevisableMixin:
        """Load and row-lock the live entity so appends to one lineage serialize.

        The lock is a no-op on SQLite, where the unique (original_id, number)
        constraint alone catches races.
        """
        live = (
            self._base_query()
            .filter(self.model_class.id == original_id)
            .with_for_update()
            .first()
        )
        if live is None:
            raise LineageNotFoundError(original_id)
        return live

    def reparent_forks(self, original_id: str, new_revision_id: str) -> int:
        """Point every other live entity forked from *original_id* at *new_revision_id*.

        Batch UPDATE; returns the number of rows re-pointed. Running it again
        finds nothing to update.
        """
        live_class = self.model_class
        return (
            self.db.query(live_class)
            .filter(
                live_class.branched_from_id == original_id,
                live_class.id != original_id,
            )
            .update(
                {live_class.branched_from_id: new_revision_id},
                synchronize_session="evaluate",
            )
        )

    def get_branches(self, source_id: str) -> List[RevisableMixin]:
        """Live entities whose fork pointer currently equals *source_id*."""
        return (
            self._base_query()
            .filter(self.model_class.branched_from_id == source_id)
            .order_by(self.model_class.id)
            .all()
        )
