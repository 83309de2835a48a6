"""Custom exceptions for the StoryWeaver personalization service."""

from typing import Any, Dict, Optional


class StoryWeaverException(Exception):
    """Base exception for StoryWeaver application."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize StoryWeaverException.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code.
            error_code: Machine-readable error code.
            details: Additional error details.
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class BatchCommitError(StoryWeaverException):
    """Raised when one or more batched writes fail to commit."""

    def __init__(
        self,
        message: str = "Batch commit failed",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize BatchCommitError."""
        super().__init__(
            message=message,
            status_code=500,
            error_code="BATCH_COMMIT_ERROR",
            details=details,
        )


class BatchLimitExceededError(StoryWeaverException):
    """Raised when a single batch holds more operations than the store accepts."""

    def __init__(
        self,
        message: str = "Too many operations in one batch",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize BatchLimitExceededError."""
        super().__init__(
            message=message,
            status_code=500,
            error_code="BATCH_LIMIT_EXCEEDED",
            details=details,
        )

