"""Service-layer exceptions mapped to HTTP responses by the API error handlers."""
from typing import Any, Optional


class ServiceError(Exception):
    """Base class for service errors carrying an HTTP status code."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class ValidationError(ServiceError):
    """Malformed input (400)."""
    status_code = 400


class ConflictError(ServiceError):
    """Uniqueness or state conflict (409)."""
    status_code = 409


class SessionStoreError(ServiceError):
    """Session persistence failed (500)."""
    status_code = 500


class SessionCleanupError(SessionStoreError):
    """Existing sessions could not be removed before login."""


class SessionCreationError(SessionStoreError):
    """A new session row could not be inserted."""


class SessionConflictError(ConflictError):
    """Generated session token collided with an existing one."""


class BulkUploadError(ServiceError):
    """Bulk profile upload rejected as a whole; details lists per-row errors."""
