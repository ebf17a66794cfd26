"""Pelican intake error handling.

Custom exceptions and error codes for the intake pipeline.

Input anomalies (empty scope text, unknown template ids) are never raised;
they fall back to defaults. The exceptions here cover catalogue defects,
provider failures that the research service catches internally, and
orchestration or persistence failures surfaced to the caller.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Catalogue Errors
    CATALOG_INVALID = "CATALOG_INVALID"
    CATALOG_DUPLICATE_ID = "CATALOG_DUPLICATE_ID"
    CATALOG_BAD_DEPENDENCY = "CATALOG_BAD_DEPENDENCY"

    # Research Provider Errors
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    PROVIDER_INVALID_RESPONSE = "PROVIDER_INVALID_RESPONSE"

    # Session Errors
    SESSION_INVALID_STATE = "SESSION_INVALID_STATE"

    # Task Assembly Errors
    TASK_PERSIST_FAILED = "TASK_PERSIST_FAILED"
    RATE_TABLE_UNAVAILABLE = "RATE_TABLE_UNAVAILABLE"


class IntakeError(Exception):
    """Base exception for intake pipeline errors.

    Provides structured error information for callers that surface
    failures to users.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize IntakeError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"IntakeError(code={self.code!r}, message={self.message!r})"


class CatalogError(IntakeError):
    """Static catalogue failed load-time validation."""

    def __init__(self, message: str, entry_id: Optional[str] = None, code: str = ErrorCode.CATALOG_INVALID):
        super().__init__(
            code=code,
            message=message,
            details={"entry_id": entry_id} if entry_id else None
        )
        self.entry_id = entry_id


class ResearchProviderError(IntakeError):
    """Text-generation provider failure. Always caught by the research service."""

    def __init__(
        self,
        code: str,
        message: str,
        provider: str,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "provider": provider}
        )
        self.provider = provider


class TaskAssemblyError(IntakeError):
    """Persisting an assembled task failed."""

    def __init__(
        self,
        message: str,
        project_id: str,
        task_title: Optional[str] = None,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=ErrorCode.TASK_PERSIST_FAILED,
            message=message,
            details={
                **(details or {}),
                "project_id": project_id,
                "task_title": task_title
            }
        )
        self.project_id = project_id
        self.task_title = task_title
