"""Revision service — deep module for revision history.

Owns the commit boundary around the ledger, branch tracker, navigator and
association selector. Callers interact with one service; each mutating
method completes its whole operation and commits unless told not to.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..core.hooks import AFTER_RESTORE, BEFORE_RESTORE, RevertContext
from ..core.registry import RevisableRegistry
from ..models.mixins import RevisableMixin, RevisionMixin
from ..repositories import RevisionRepository
from ..schemas.revision import LineageSummary, RevisionFilter, RevisionResponse, LISTING_FILTER
from .association_selector import AssociationSelector
from .branch_tracker import BranchTracker
from .ledger import RevisionLedger, utcnow
from .navigator import LineageNavigator, Selector

logger = logging.getLogger(__name__)

# External copy routine used by restore(): apply(live, target, context).
ApplyRevision = Callable[[RevisableMixin, RevisionMixin, RevertContext], None]


class RevisionService:
    """Deep module for revision operations."""

    def __init__(
        self,
        db: Session,
        registry: RevisableRegistry,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.registry = registry
        self.settings = settings or get_settings()
        self.clock = clock or utcnow
        self.selector = AssociationSelector(registry)
        self.tracker = BranchTracker(db, registry)
        self.ledger = RevisionLedger(db, registry, self.settings, self.clock, self.selector, self.tracker)
        self.navigator = LineageNavigator(db, registry)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_revision(
        self,
        live: RevisableMixin,
        fields: Dict[str, Any],
        label: Optional[str] = None,
        commit: bool = True,
    ) -> RevisionMixin:
        """Snapshot *fields* (the pre-change state of *live*) as its next revision."""
        revision = self.ledger.append(live, fields, label=label)
        if commit:
            self.db.commit()
        return revision

    def delete_revision(self, revision: RevisionMixin, commit: bool = True) -> RevisionMixin:
        """Soft-delete a revision. Idempotent; the row and its number stay."""
        repo = RevisionRepository(self.db, type(revision))
        result = repo.soft_delete(revision.id, self.clock())
        logger.info(f"Soft-deleted revision {revision.id}")
        if commit:
            self.db.commit()
        return result

    def branch(self, live: RevisableMixin, source: Any, commit: bool = True) -> RevisableMixin:
        """Record that *live* forked from *source* (live entity or revision)."""
        self.tracker.mark_branched(live, source)
        if commit:
            self.db.commit()
        return live

    def restore(
        self,
        live: RevisableMixin,
        selector: Selector,
        apply: ApplyRevision,
        current_fields: Dict[str, Any],
        label: Optional[str] = None,
        commit: bool = True,
    ) -> RevisionMixin:
        """Restore *live* to the revision named by *selector*.

        The pre-restore state (*current_fields*) is appended first so nothing
        is lost. The field copy itself is *apply*'s job. Afterwards the live
        entity's fork pointer names the restored revision, so the next
        revision records where this line of history diverged.
        """
        target = self.navigator.resolve(live, selector, filters=LISTING_FILTER)
        snapshot = self.ledger.append(live, current_fields, label=label)
        context = RevertContext(reverting_from=snapshot.id, reverting_to=target.id)

        hooks = self.registry.hooks_for(live)
        hooks.fire(BEFORE_RESTORE, target, context)
        apply(live, target, context)
        self.tracker.mark_branched(live, target)
        self.db.flush()
        hooks.fire(AFTER_RESTORE, target, context)

        logger.info(
            f"Restored {live.id} to revision {target.number}",
            extra={"original_id": live.id, "revision_id": target.id, "reverting_from": snapshot.id},
        )
        if commit:
            self.db.commit()
        return target

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_revision(self, target: Any, revision_id: str) -> RevisionMixin:
        """Revision by id; *target* is any registered class or instance. Raises RevisionNotFoundError."""
        return RevisionRepository(self.db, self.registry.revision_class_for(target)).get_by_id(revision_id)

    def find_revision(
        self,
        live: RevisableMixin,
        selector: Selector,
        relative_to: Optional[RevisionMixin] = None,
        filters: Optional[RevisionFilter] = None,
    ) -> RevisionMixin:
        return self.navigator.resolve(live, selector, relative_to, filters)

    def find_revision_optional(
        self,
        live: RevisableMixin,
        selector: Selector,
        relative_to: Optional[RevisionMixin] = None,
        filters: Optional[RevisionFilter] = None,
    ) -> Optional[RevisionMixin]:
        return self.navigator.resolve_optional(live, selector, relative_to, filters)

    def history(
        self,
        live: RevisableMixin,
        skip: int = 0,
        limit: Optional[int] = None,
        filters: Optional[RevisionFilter] = None,
    ) -> List[RevisionMixin]:
        """Newest-first page of the lineage (soft-deleted rows hidden by default)."""
        limit = limit or self.settings.history_page_size
        return self.navigator.list_revisions(live, filters, skip, limit)

    def ancestors(self, revision: RevisionMixin, filters: Optional[RevisionFilter] = None) -> List[RevisionMixin]:
        return self.navigator.ancestors_of(revision, filters)

    def descendants(self, revision: RevisionMixin, filters: Optional[RevisionFilter] = None) -> List[RevisionMixin]:
        return self.navigator.descendants_of(revision, filters)

    def previous_revision(self, revision: RevisionMixin) -> Optional[RevisionMixin]:
        return self.navigator.previous_of(revision)

    def next_revision(self, revision: RevisionMixin) -> Optional[RevisionMixin]:
        return self.navigator.next_of(revision)

    def deleted_revisions(self, live: RevisableMixin) -> List[RevisionMixin]:
        return self.navigator.deleted_revisions(live)

    def branches_of(self, source: Any) -> List[RevisableMixin]:
        """Live entities currently forked from *source* (live entity or revision)."""
        return self.tracker.branches_of(self.registry.live_class_for(source), source.id)

    def selected_associations(self, live_class: type) -> frozenset:
        return self.selector.selected_associations(live_class)

    def verify_lineage(self, live: RevisableMixin) -> int:
        return self.navigator.verify_lineage(live)

    def summarize(self, live: RevisableMixin) -> LineageSummary:
        """Pydantic view of the whole (non-deleted) lineage."""
        revisions = self.navigator.list_revisions(live)
        return LineageSummary(
            original_id=live.id,
            type_tag=live.type_tag,
            branched_from_id=live.branched_from_id,
            revision_count=len(revisions),
            latest_number=revisions[0].number if revisions else None,
            revisions=[RevisionResponse.model_validate(r) for r in revisions],
        )
