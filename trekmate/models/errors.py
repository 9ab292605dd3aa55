"""Error taxonomy for TrekMate.

Two halves:
- ``AppError``: the serialisable envelope returned to callers (and over HTTP).
- ``TrekmateError`` and subclasses: exceptions raised by fail-closed calls.

Every exception carries a ``user_message`` that is safe to show as-is.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    API_ERROR = "API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    REQUEST_SETUP_ERROR = "REQUEST_SETUP_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    STORAGE_ERROR = "STORAGE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"


class AppError(BaseModel):
    """Error envelope attached to unsuccessful responses."""

    code: ErrorCode = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Technical error message")
    user_message: str = Field(..., description="Message suitable for display")


class TrekmateError(Exception):
    """Base class for all errors raised by the TrekMate core."""

    code: ErrorCode = ErrorCode.API_ERROR
    default_user_message = "Something went wrong. Please try again."

    def __init__(self, message: str, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.user_message = user_message or self.default_user_message

    def to_app_error(self) -> AppError:
        return AppError(code=self.code, message=self.message, user_message=self.user_message)


# ── Remote errors ─────────────────────────────────────────────────────

class RemoteError(TrekmateError):
    """A remote call failed. ``status_code`` is None when no response arrived."""

    default_user_message = "The service returned an error. Please try again."

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        user_message: Optional[str] = None,
    ) -> None:
        super().__init__(message, user_message)
        self.status_code = status_code


class UnauthenticatedError(RemoteError):
    code = ErrorCode.UNAUTHENTICATED
    default_user_message = "Your session has expired. Please sign in again."


class ForbiddenError(RemoteError):
    code = ErrorCode.FORBIDDEN
    default_user_message = "You don't have access to this resource."


class NotFoundError(RemoteError):
    code = ErrorCode.NOT_FOUND
    default_user_message = "The requested resource was not found."


class RateLimitedError(RemoteError):
    code = ErrorCode.RATE_LIMITED
    default_user_message = "Too many requests. Please try again later."


class ServerError(RemoteError):
    code = ErrorCode.SERVER_ERROR
    default_user_message = "Server error, please try again later."


class NoResponseError(RemoteError):
    code = ErrorCode.NETWORK_ERROR
    default_user_message = "No response from server. Check your connection and try again."


class RequestSetupError(RemoteError):
    code = ErrorCode.REQUEST_SETUP_ERROR
    default_user_message = "The request could not be sent."


class InvalidResponseError(RemoteError):
    code = ErrorCode.INVALID_RESPONSE
    default_user_message = "The service returned an unexpected response."


# ── Local errors ──────────────────────────────────────────────────────

class ServiceNotConfiguredError(TrekmateError):
    code = ErrorCode.NOT_CONFIGURED
    default_user_message = "This feature needs an AI service to be configured."


class StorageError(TrekmateError):
    code = ErrorCode.STORAGE_ERROR
    default_user_message = "Local storage is unavailable."


class StorageFullError(StorageError):
    default_user_message = "Local storage is full."


# Status code → exception class. Anything else >= 400 becomes a plain RemoteError.
STATUS_ERRORS: dict[int, type[RemoteError]] = {
    401: UnauthenticatedError,
    403: ForbiddenError,
    404: NotFoundError,
    429: RateLimitedError,
}


def classify_status(status_code: int) -> type[RemoteError]:
    """Return the exception class for an HTTP error status."""
    if status_code >= 500:
        return ServerError
    return STATUS_ERRORS.get(status_code, RemoteError)
