"""TrekMate data models."""

from .core import (
    CamelModel,
    ChatReply,
    ChatSession,
    Difficulty,
    GeoPoint,
    LiveUpdate,
    Message,
    MessageRole,
    RecommendationResult,
    RequestContext,
    ScoredTrek,
    SessionMode,
    Telemetry,
    Trek,
    TrekPreferences,
    WeatherAndSafety,
)
from .errors import (
    AppError,
    ErrorCode,
    ForbiddenError,
    InvalidResponseError,
    NoResponseError,
    NotFoundError,
    RateLimitedError,
    RemoteError,
    RequestSetupError,
    ServerError,
    ServiceNotConfiguredError,
    StorageError,
    StorageFullError,
    TrekmateError,
    UnauthenticatedError,
    classify_status,
)

__all__ = [
    # Core
    "CamelModel",
    "ChatReply",
    "ChatSession",
    "Difficulty",
    "GeoPoint",
    "LiveUpdate",
    "Message",
    "MessageRole",
    "RecommendationResult",
    "RequestContext",
    "ScoredTrek",
    "SessionMode",
    "Telemetry",
    "Trek",
    "TrekPreferences",
    "WeatherAndSafety",
    # Errors
    "AppError",
    "ErrorCode",
    "ForbiddenError",
    "InvalidResponseError",
    "NoResponseError",
    "NotFoundError",
    "RateLimitedError",
    "RemoteError",
    "RequestSetupError",
    "ServerError",
    "ServiceNotConfiguredError",
    "StorageError",
    "StorageFullError",
    "TrekmateError",
    "UnauthenticatedError",
    "classify_status",
]
