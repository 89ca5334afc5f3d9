"""
Domain error types.

Services raise these; the API layer turns them into `{"error": ...}`
responses with the status code each one carries.
"""

from typing import Any, Optional


class DirectoryError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(DirectoryError):
    """Rejected input or an operation not allowed in the current state."""
    status_code = 400


class Unauthorised(DirectoryError):
    """No session, or the role lacks the capability."""
    status_code = 401

    def __init__(self, message: str = "Unauthorised", details: Optional[Any] = None):
        super().__init__(message, details)


class Forbidden(DirectoryError):
    """Authenticated, but not the owner of the resource."""
    status_code = 403

    def __init__(self, message: str = "Forbidden", details: Optional[Any] = None):
        super().__init__(message, details)


class NotFound(DirectoryError):
    status_code = 404
