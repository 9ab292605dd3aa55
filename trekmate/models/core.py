"""Core data models for TrekMate.

Pydantic models for locations, treks, recommendation results, chat sessions
and messages. Fields are snake_case in Python and camelCase on the wire
(``durationInDays``, ``isMockData``, ``sessionId``).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict using wire (camelCase) names, without unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Difficulty(str, Enum):
    """Trek difficulty levels."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    EXPERT = "Expert"


class GeoPoint(CamelModel):
    """A precise coordinate, a free-text place name, or both.

    A point with neither coordinates nor a name is "unset", not invalid.
    """

    lat: Optional[float] = Field(None, ge=-90, le=90, description="Latitude in degrees")
    lng: Optional[float] = Field(None, ge=-180, le=180, description="Longitude in degrees")
    name: Optional[str] = Field(None, description="Free-text place name")
    id: Optional[Union[int, str]] = Field(None, description="Stable identifier, if known")

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def is_unset(self) -> bool:
        return not self.has_coordinates and not (self.name and self.name.strip())


class Trek(CamelModel):
    """A catalog trek. Read-only to the core."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    name: str
    region: str
    difficulty: Difficulty
    duration_in_days: int = Field(..., ge=0)
    cost_in_usd: int = Field(..., ge=0, alias="costInUSD")
    altitude_in_meters: int = Field(..., ge=0)
    rating: float = Field(..., ge=0, le=5)
    reviews: int = Field(0, ge=0)
    coordinates: Optional[GeoPoint] = None
    description: str = ""
    best_season: str = ""


class ScoredTrek(Trek):
    """A trek annotated with its distance from the user.

    ``distance_km`` is None only for the location-agnostic default list.
    """

    distance_km: Optional[float] = Field(None, ge=0)


class TrekPreferences(CamelModel):
    """Optional filters applied after distance ranking."""

    max_distance: Optional[float] = Field(None, gt=0, description="Maximum distance in km")
    difficulty: Optional[Difficulty] = None
    max_duration: Optional[int] = Field(None, gt=0, description="Maximum duration in days")


class RecommendationResult(CamelModel):
    """Merged AI-side and catalog recommendations for one request."""

    ai_recommendations: list[Any] = Field(default_factory=list)
    local_treks: list[ScoredTrek] = Field(default_factory=list)
    user_location: Optional[GeoPoint] = None
    is_mock_data: bool = False
    error: Optional[str] = None


class WeatherAndSafety(CamelModel):
    """Weather forecast and safety alerts for one location."""

    weather: dict[str, Any]
    safety: dict[str, Any]
    location: Optional[GeoPoint] = None
    error: Optional[str] = None


class RequestContext(CamelModel):
    """Per-call context (where the user is, what they are looking at)."""

    location: Optional[GeoPoint] = None
    trek: Optional[Trek] = None
    preferences: Optional[TrekPreferences] = None


# ── Chat ──────────────────────────────────────────────────────────────

class SessionMode(str, Enum):
    """How a chat session is backed.

    - demo:     no AI configured, canned local replies
    - direct:   completions go straight to a provider SDK
    - proxy:    a remote chat service owns the session
    - fallback: proxy init failed, id fabricated locally
    """

    DEMO = "demo"
    DIRECT = "direct"
    PROXY = "proxy"
    FALLBACK = "fallback"


class ChatSession(CamelModel):
    """Opaque session handle. May not exist remotely."""

    session_id: str
    created_at: datetime = Field(default_factory=utcnow)
    mode: SessionMode
    welcome_message: Optional[str] = None


class ChatReply(CamelModel):
    """One assistant turn."""

    text: str
    session_id: str
    raw: dict[str, Any] = Field(default_factory=dict)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(CamelModel):
    """A conversation message. Append-only, never mutated."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    kind: Optional[str] = Field(None, description="Typed turn: recommendations, packing-list...")
    data: Optional[Any] = None


# ── Live telemetry ────────────────────────────────────────────────────

class Telemetry(CamelModel):
    temperature: float
    humidity: float
    wind_speed: float


class LiveUpdate(CamelModel):
    """One live sample for a trek."""

    timestamp: datetime = Field(default_factory=utcnow)
    trek_id: Union[int, str]
    data: Telemetry
