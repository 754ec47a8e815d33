"""Revision ledger and lineage tracking for SQLAlchemy models.

Typical wiring::

    runtime = bootstrap()
    registry = RevisableRegistry()
    registry.register(Document, DocumentRevision, clone_associations={"except": ["comments"]})

    with runtime.session() as db:
        service = RevisionService(db, registry, runtime.settings)
        service.create_revision(doc, {"title": doc.title, "content": doc.content}, commit=False)
"""

from .core.bootstrap import Runtime, bootstrap
from .core.config import Settings, get_settings
from .core.hooks import RevertContext, RevisionCreated, RevisionHooks
from .core.registry import RevisableOptions, RevisableRegistry
from .exceptions import (
    ConfigurationError,
    ImmutableRevisionError,
    LineageIntegrityError,
    LineageNotFoundError,
    NumberConflictError,
    RevisableError,
    RevisionNotFoundError,
    ValidationError,
)
from .services import (
    AssociationSelector,
    BranchTracker,
    LineageNavigator,
    RevisionLedger,
    RevisionService,
    RevisionToken,
)

__all__ = [
    "Runtime", "bootstrap",
    "Settings", "get_settings",
    "RevertContext", "RevisionCreated", "RevisionHooks",
    "RevisableOptions", "RevisableRegistry",
    "ConfigurationError", "ImmutableRevisionError", "LineageIntegrityError",
    "LineageNotFoundError", "NumberConflictError", "RevisableError",
    "RevisionNotFoundError", "ValidationError",
    "AssociationSelector", "BranchTracker", "LineageNavigator",
    "RevisionLedger", "RevisionService", "RevisionToken",
]
