"""Pydantic schemas."""

from .revision import (
    DeletedMode, RevisionFilter, RevisionResponse, LineageSummary,
    NAVIGATION_FILTER, LISTING_FILTER, DELETED_FILTER,
)

__all__ = [
    "DeletedMode", "RevisionFilter", "RevisionResponse", "LineageSummary",
    "NAVIGATION_FILTER", "LISTING_FILTER", "DELETED_FILTER",
]
