"""Exception taxonomy for the interview session API.

Every error carries the title, human message and HTTP status code that the
request layer renders, so handlers never inspect internal state.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class InterviewApiError(Exception):
    """Base exception for all interview session API errors."""

    status_code = 500
    error = "Internal server error"

    def __init__(
        self,
        message: str,
        error: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the exception.

        Args:
            message: Human readable message
            error: Optional short error title overriding the class default
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.error}] {self.message}"


class NotFound(InterviewApiError):
    """Unknown session, template or share token."""

    status_code = 404
    error = "Not found"


class NotStarted(InterviewApiError):
    """Navigation attempted before the question list was populated."""

    status_code = 400
    error = "Interview not started"

    def __init__(self, message: str = "Please start the interview first by calling /start"):
        super().__init__(message)


class InvalidInput(InterviewApiError):
    """Unparseable, missing or oversized request data."""

    status_code = 400
    error = "Invalid request"


class InvalidTransition(InterviewApiError):
    """Requested lifecycle change is not legal from the current status."""

    status_code = 400
    error = "Invalid state transition"

    def __init__(self, message: str, current_status: Optional[str] = None):
        details = {"status": current_status} if current_status else None
        super().__init__(message, details=details)
        self.current_status = current_status


class Unauthorized(InterviewApiError):
    status_code = 401
    error = "Unauthorized"

    def __init__(self, message: str = "Please log in to access this resource"):
        super().__init__(message)


class Forbidden(InterviewApiError):
    status_code = 403
    error = "Forbidden"


class StoreFailure(InterviewApiError):
    """The durable layer failed; surfaced immediately, never retried."""

    status_code = 500
    error = "Store failure"
