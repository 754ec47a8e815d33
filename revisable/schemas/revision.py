"""Revision schemas."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class DeletedMode(str, Enum):
    """How a read treats soft-deleted revisions."""
    INCLUDE = "include"
    EXCLUDE = "exclude"
    ONLY = "only"


class RevisionFilter(BaseModel):
    """Explicit row filter passed to every navigator read."""
    include_current: bool = False
    deleted: DeletedMode = DeletedMode.INCLUDE

    class Config:
        frozen = True


# Navigation sees every stored revision; listings hide the trash.
NAVIGATION_FILTER = RevisionFilter()
LISTING_FILTER = RevisionFilter(deleted=DeletedMode.EXCLUDE)
DELETED_FILTER = RevisionFilter(deleted=DeletedMode.ONLY)


class RevisionResponse(BaseModel):
    """Read view of a revision's ledger metadata."""
    id: str
    original_id: str
    number: int
    is_current: bool
    label: Optional[str] = None
    type_tag: str
    branched_from_id: Optional[str] = None
    created_at: datetime
    current_at: datetime
    revised_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LineageSummary(BaseModel):
    """Overview of one live entity's history."""
    original_id: str
    type_tag: str
    branched_from_id: Optional[str] = None
    revision_count: int
    latest_number: Optional[int] = None
    revisions: List[RevisionResponse]
