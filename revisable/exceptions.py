"""Custom exception hierarchy for the revision ledger."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes carried by every ledger exception."""

    # Lineage errors
    LINEAGE_NOT_FOUND = "LINEAGE_NOT_FOUND"
    LINEAGE_INTEGRITY = "LINEAGE_INTEGRITY"

    # Revision errors
    REVISION_NOT_FOUND = "REVISION_NOT_FOUND"
    REVISION_IMMUTABLE = "REVISION_IMMUTABLE"

    # Concurrency errors
    NUMBER_CONFLICT = "NUMBER_CONFLICT"

    # Configuration / validation errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class RevisableError(Exception):
    """
    Base exception for all ledger errors.

    Provides structured errors with:
    - Human-readable message
    - Machine-readable error code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for structured logging or transport.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class LineageNotFoundError(RevisableError):
    """Append targets a live entity that does not exist."""

    def __init__(self, original_id: str):
        super().__init__(
            f"Lineage not found: {original_id}",
            ErrorCode.LINEAGE_NOT_FOUND,
            details={"original_id": original_id}
        )


class RevisionNotFoundError(RevisableError):
    """Revision lookup yielded nothing."""

    def __init__(self, selector: Any, original_id: Optional[str] = None):
        details: Dict[str, Any] = {"selector": str(selector)}
        if original_id:
            details["original_id"] = original_id
        super().__init__(
            f"Revision not found: {selector}",
            ErrorCode.REVISION_NOT_FOUND,
            details=details
        )


class NumberConflictError(RevisableError):
    """Concurrent appends kept colliding on the same revision number."""

    def __init__(self, original_id: str, attempts: int):
        super().__init__(
            f"Could not assign a revision number for {original_id} after {attempts} attempts",
            ErrorCode.NUMBER_CONFLICT,
            details={"original_id": original_id, "attempts": attempts}
        )


class ConfigurationError(RevisableError):
    """Registry or association-selection configuration is malformed."""

    def __init__(self, message: str, **details: Any):
        super().__init__(
            message,
            ErrorCode.CONFIGURATION_ERROR,
            details=details
        )


class LineageIntegrityError(RevisableError):
    """Stored revision numbers are not contiguous for a lineage."""

    def __init__(self, original_id: str, message: str, **details: Any):
        details["original_id"] = original_id
        super().__init__(
            message,
            ErrorCode.LINEAGE_INTEGRITY,
            details=details
        )


class ImmutableRevisionError(RevisableError):
    """A stored revision was modified beyond its bookkeeping columns."""

    def __init__(self, revision_id: str, fields: list[str]):
        super().__init__(
            f"Revision {revision_id} is immutable; cannot change {', '.join(sorted(fields))}",
            ErrorCode.REVISION_IMMUTABLE,
            details={"revision_id": revision_id, "fields": sorted(fields)}
        )


class ValidationError(RevisableError):
    """Validation failed for caller input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            details=details
        )
