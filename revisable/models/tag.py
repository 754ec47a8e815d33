"""Tag model."""

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base


class Tag(Base):
    """Classification tag on a live document (e.g. "Client Facing")."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(String(50), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)

    document = relationship("Document", back_populates="tags")
