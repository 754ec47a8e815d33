"""Revision ledger — assigns numbers and stamps new revisions.

append() runs inside a SAVEPOINT of the caller's transaction:

    lock live row -> next number -> stamp predecessor.revised_at
    -> insert revision -> re-parent forks

If a concurrent writer took the same number the unique (original_id,
number) constraint fails the flush, the savepoint is rolled back (taking
the predecessor stamp and any re-parenting with it) and the append is
retried. The ledger never commits; that belongs to the caller.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..core.hooks import AFTER_APPEND, RevisionCreated
from ..core.logging_config import lineage_context
from ..core.registry import RevisableRegistry
from ..exceptions import LineageNotFoundError, NumberConflictError, ValidationError
from ..models.mixins import RevisableMixin, RevisionMixin, make_revision_id
from ..repositories import LiveEntityRepository, RevisionRepository
from ..schemas.revision import RevisionFilter
from .association_selector import AssociationSelector
from .branch_tracker import BranchTracker

logger = logging.getLogger(__name__)

# Every stored row, whatever its flags; used for numbering and predecessor lookup.
_ALL_ROWS = RevisionFilter(include_current=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RevisionLedger:
    """Appends revisions with contiguous per-lineage numbers."""

    def __init__(
        self,
        db: Session,
        registry: RevisableRegistry,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        selector: Optional[AssociationSelector] = None,
        tracker: Optional[BranchTracker] = None,
    ):
        self.db = db
        self.registry = registry
        self.settings = settings or get_settings()
        self.clock = clock or utcnow
        self.selector = selector or AssociationSelector(registry)
        self.tracker = tracker or BranchTracker(db, registry)

    def append(
        self,
        lineage: Union[RevisableMixin, str],
        fields: Dict[str, Any],
        label: Optional[str] = None,
        live_class: Optional[type] = None,
    ) -> RevisionMixin:
        """Store the next revision of *lineage* holding *fields*.

        *lineage* is a live entity or its id (an id needs *live_class*).
        Raises LineageNotFoundError when the live entity does not exist and
        NumberConflictError when concurrent appends win every attempt.
        """
        live_class, original_id = self._resolve_lineage(lineage, live_class)
        options = self.registry.options_for(live_class)
        revision_class = options.revision_class
        self._validate_fields(revision_class, fields)

        live_repo = LiveEntityRepository(self.db, live_class)
        revisions = RevisionRepository(self.db, revision_class)
        attempts = self.settings.append_max_retries

        with lineage_context(original_id):
            for attempt in range(1, attempts + 1):
                number = None
                try:
                    with self.db.begin_nested():
                        live = live_repo.get_for_update(original_id)
                        number = revisions.max_number(original_id) + 1
                        logger.debug(f"Assigning number {number} (attempt {attempt}/{attempts})")

                        now = self.clock()
                        # Highest existing number is number - 1 by construction.
                        predecessor = None
                        if number > 1:
                            predecessor = revisions.get_by_number(original_id, number - 1, _ALL_ROWS)
                        if predecessor is not None:
                            revisions.stamp_revised(predecessor, now)

                        revision = revision_class(
                            id=make_revision_id(original_id, number),
                            original_id=original_id,
                            number=number,
                            is_current=False,
                            created_at=now,
                            current_at=now + timedelta(seconds=self.settings.current_at_offset_seconds),
                            branched_from_id=live.branched_from_id,
                            type_tag=live.type_tag,
                            label=label,
                            **fields,
                        )
                        revisions.create(revision)
                        self.tracker.reparent_forks(live_class, original_id, revision.id)
                except IntegrityError:
                    if number is None or not revisions.number_taken(original_id, number):
                        raise
                    logger.warning(
                        f"Revision number {number} of {original_id} taken concurrently, retrying",
                        extra={"attempt": attempt, "max_attempts": attempts},
                    )
                    continue
                break
            else:
                raise NumberConflictError(original_id, attempts)

            logger.info(
                f"Appended revision {revision.id}",
                extra={"revision_id": revision.id, "number": revision.number, "type_tag": revision.type_tag},
            )

            event = RevisionCreated(
                revision_id=revision.id,
                original_id=original_id,
                number=revision.number,
                type_tag=revision.type_tag,
                associations=self.selector.selected_associations(live_class),
            )
            options.hooks.fire(AFTER_APPEND, event)
        return revision

    def _resolve_lineage(
        self, lineage: Union[RevisableMixin, str], live_class: Optional[type]
    ) -> Tuple[type, str]:
        if isinstance(lineage, RevisableMixin):
            if lineage.id is None and lineage in self.db:
                self.db.flush()
            if lineage.id is None:
                raise LineageNotFoundError(repr(lineage))
            return self.registry.live_class_for(lineage), lineage.id

        if live_class is None:
            raise ValidationError("live_class is required when appending by id", field="live_class")
        return self.registry.live_class_for(live_class), lineage

    @staticmethod
    def _validate_fields(revision_class: type, fields: Dict[str, Any]) -> None:
        allowed = revision_class.snapshot_columns()
        for name in fields:
            if name not in allowed:
                raise ValidationError(
                    f"{revision_class.__name__} has no snapshot field '{name}'",
                    field=name,
                )
