"""User model (document owner)."""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    """Account that can own documents."""

    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True)
    display_name = Column(String(255), nullable=False, default="Default User")
    email = Column(String(255), unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
