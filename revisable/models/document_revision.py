"""Document revision model."""

from sqlalchemy import Column, String, Text, JSON
from sqlalchemy.orm import relationship
from ..database import Base
from .mixins import RevisionMixin


class DocumentRevision(RevisionMixin, Base):
    """Immutable snapshot of a Document, one row per historical state."""

    __tablename__ = "document_revisions"
    __live_table__ = "documents"

    # Snapshot of the live document's domain fields
    path = Column(String(500), default='')
    title = Column(String(255), nullable=False)
    keywords = Column(JSON, default=list)
    content = Column(Text, nullable=False, default='')
    owner_id = Column(String(50), nullable=True)

    document = relationship("Document", back_populates="revisions")
