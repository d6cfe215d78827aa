"""
Exception hierarchy for the CV intake service.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class CVIntakeException(Exception):
    """Base exception for all CV intake errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(CVIntakeException):
    """Raised when an upload batch fails validation."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ResolutionError(CVIntakeException):
    """Raised when a job's file cannot be made available locally."""

    def __init__(
        self,
        message: str,
        file_ref: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize resolution error.

        Args:
            message: Error message
            file_ref: The file reference that could not be resolved
            details: Additional context
        """
        details = details or {}
        if file_ref:
            details["file_ref"] = file_ref
        super().__init__(message, details)


class UpstreamError(CVIntakeException):
    """Raised when a downstream service call fails."""

    def __init__(
        self,
        message: str,
        service: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize upstream error.

        Args:
            message: Error message
            service: Downstream service name (parser, backend)
            status_code: HTTP status code when a response was received
            details: Additional context
        """
        details = details or {}
        if service:
            details["service"] = service
        if status_code is not None:
            details["status_code"] = status_code
        self.service = service
        self.status_code = status_code
        super().__init__(message, details)


class UpstreamTimeout(UpstreamError):
    """Raised when a downstream service call times out."""

    pass


class ReportDeliveryError(CVIntakeException):
    """Raised when a batch report cannot be delivered (logged, never propagated)."""

    def __init__(
        self,
        message: str,
        batch_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if batch_id:
            details["batch_id"] = batch_id
        super().__init__(message, details)


class EnqueueError(CVIntakeException):
    """Raised when a batch cannot be fully enqueued.

    Jobs enqueued before the failure are left in the queue.
    """

    def __init__(
        self,
        message: str,
        batch_id: str,
        enqueued: int,
        total: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize enqueue error.

        Args:
            message: Error message
            batch_id: Batch being enqueued
            enqueued: Jobs successfully enqueued before the failure
            total: Jobs the batch should have contained
            details: Additional context
        """
        details = details or {}
        details.update({"batch_id": batch_id, "enqueued": enqueued, "total": total})
        self.batch_id = batch_id
        self.enqueued = enqueued
        self.total = total
        super().__init__(message, details)
