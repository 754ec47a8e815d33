"""Declarative mixins for revisable live entities and their revision tables.

A revisable domain type is two tables: the live table (a model using
``RevisableMixin``) and the revision table (a model using ``RevisionMixin``
that repeats the live table's domain columns). Revision ids embed the
lineage and number, so a fork pointer can hold either a live id or a
revision id without ambiguity.
"""

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint,
    event, inspect, select,
)
from sqlalchemy.orm import declared_attr

from ..exceptions import ImmutableRevisionError

REVISION_ID_SEPARATOR = "@"

# Columns a stored revision may still change, once each, from NULL: the
# supersession stamp on the immediate predecessor and the soft-delete marker.
MUTABLE_REVISION_COLUMNS = frozenset({"revised_at", "deleted_at"})

# Metadata columns owned by the ledger; never accepted as snapshot fields.
REVISION_METADATA_COLUMNS = frozenset({
    "id", "original_id", "number", "is_current", "created_at", "revised_at",
    "current_at", "deleted_at", "branched_from_id", "label", "type_tag",
})


def make_revision_id(original_id: str, number: int) -> str:
    """Revision id for revision *number* of lineage *original_id*."""
    return f"{original_id}{REVISION_ID_SEPARATOR}{number}"


class RevisableMixin:
    """Columns a live entity needs to own a lineage."""

    # Tagged-variant discriminator copied into each revision's type_tag.
    entity_type = Column(String(100), nullable=True)

    # Fork pointer: live id or revision id this entity last branched from.
    branched_from_id = Column(String(120), nullable=True, index=True)

    @property
    def type_tag(self) -> str:
        """Dynamic type recorded on snapshots of this entity."""
        return self.entity_type or type(self).__name__


class RevisionMixin:
    """Metadata columns of a revision table.

    Subclasses set ``__tablename__`` and ``__live_table__`` (the live table
    name) and declare copies of the live entity's domain columns.
    """

    id = Column(String(120), primary_key=True)  # {original_id}@{number}
    number = Column(Integer, nullable=False)
    is_current = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False)
    revised_at = Column(DateTime(timezone=True), nullable=True)
    current_at = Column(DateTime(timezone=True), nullable=False)

    # Soft delete (NULL = active, timestamp = deleted)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    branched_from_id = Column(String(120), nullable=True)
    label = Column(String(255), nullable=True)
    type_tag = Column(String(100), nullable=False)

    @declared_attr
    def original_id(cls):
        return Column(
            String(50),
            ForeignKey(f"{cls.__live_table__}.id", ondelete="RESTRICT"),
            nullable=False,
        )

    @declared_attr
    def __table_args__(cls):
        return (
            UniqueConstraint("original_id", "number", name=f"uq_{cls.__tablename__}_original_number"),
            Index(f"ix_{cls.__tablename__}_original_deleted", "original_id", "deleted_at"),
        )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def snapshot_columns(cls) -> frozenset:
        """Domain columns this revision table copies from the live entity."""
        return frozenset(
            col.key for col in inspect(cls).columns
            if col.key not in REVISION_METADATA_COLUMNS
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id} number={self.number}>"


@event.listens_for(RevisionMixin, "before_update", propagate=True)
def _guard_revision_content(mapper, connection, target):
    """Refuse to flush content changes to a stored revision.

    revised_at and deleted_at may each be set once. The stored row is read
    back because an expired attribute carries no previous value.
    """
    state = inspect(target)
    changed = {attr.key for attr in state.attrs if attr.history.has_changes()}
    frozen = sorted(changed - MUTABLE_REVISION_COLUMNS)
    if frozen:
        raise ImmutableRevisionError(target.id, frozen)

    stamps = sorted(changed)
    if not stamps:
        return
    table = mapper.local_table
    stored = connection.execute(
        select(*(table.c[key] for key in stamps)).where(table.c.id == target.id)
    ).one()
    already_set = [key for key, value in zip(stamps, stored) if value is not None]
    if already_set:
        raise ImmutableRevisionError(target.id, already_set)
