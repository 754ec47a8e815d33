"""Document model (live entity)."""

import uuid

from sqlalchemy import Column, Index, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .mixins import RevisableMixin


def generate_document_id() -> str:
    """Random live id: doc-{12 hex}."""
    return f"doc-{uuid.uuid4().hex[:12]}"


class Document(RevisableMixin, Base):
    """Live documents table. Each row owns a lineage of DocumentRevision rows."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_path", "path"),
        Index("ix_documents_updated_at", "updated_at"),
    )

    # Primary key
    id = Column(String(50), primary_key=True, default=generate_document_id)

    # Hierarchical location: "crate/folder/subfolder"
    path = Column(String(500), default='')
    title = Column(String(255), nullable=False)

    # User-editable classification keywords
    keywords = Column(JSON, default=list)

    # Content
    content = Column(Text, nullable=False, default='')

    owner_id = Column(String(50), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User")
    comments = relationship("Comment", back_populates="document", cascade="all, delete-orphan")
    tags = relationship("Tag", back_populates="document", cascade="all, delete-orphan")
    revisions = relationship(
        "DocumentRevision",
        back_populates="document",
        order_by="DocumentRevision.number.desc()",
        # Revision rows are never removed through the document: the FK is
        # RESTRICT and the ORM neither nulls nor deletes them.
        cascade="save-update, merge",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<Document {self.id} {self.title!r}>"
