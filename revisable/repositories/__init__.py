"""Data access repositories."""

from .base import BaseRepository
from .live_repository import LiveEntityRepository
from .revision_repository import RevisionRepository

__all__ = [
    "BaseRepository",
    "LiveEntityRepository",
    "RevisionRepository",
]
