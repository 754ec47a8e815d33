"""Database models."""

from .mixins import RevisableMixin, RevisionMixin, make_revision_id
from .user import User
from .comment import Comment
from .tag import Tag
from .document import Document
from .document_revision import DocumentRevision

__all__ = [
    "RevisableMixin", "RevisionMixin", "make_revision_id",
    "User", "Comment", "Tag",
    "Document", "DocumentRevision",
]
