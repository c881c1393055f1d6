"""
API error types.

Every failed call to the DevBunker REST API surfaces as an ApiError
(or one of its subclasses) so that routes can catch a single type,
flash the message and redirect.
"""

from typing import Any, Dict, Optional


class ApiError(Exception):
    """Base exception for REST API failures."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None,
                 payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}

    def __str__(self):
        return self.message


class AuthenticationError(ApiError):
    """Raised when the token is missing, invalid or expired."""

    status_code = 401


class PermissionDeniedError(ApiError):
    """Raised when the logged-in user's role is not allowed."""

    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    """Raised on duplicates (email already registered, tag already on content)."""

    status_code = 409


class ApiUnavailableError(ApiError):
    """Raised when the API cannot be reached (connection error or timeout)."""

    status_code = 503


_STATUS_ERRORS = {
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
}


def error_for_status(status_code: int, message: str,
                     payload: Optional[Dict[str, Any]] = None) -> ApiError:
    """Build the ApiError subclass matching an HTTP status code."""
    error_class = _STATUS_ERRORS.get(status_code, ApiError)
    return error_class(message, status_code=status_code, payload=payload)
