"""API routes for TrekMate.

Thin HTTP layer over the service objects:
- /treks:           catalog browsing and distance-ranked nearby treks
- /recommendations: AI + catalog recommendations for a location
- /conditions:      fail-open real-time data (always 200 with isMockData)
- /chat:            chat sessions (demo, direct or proxy backed)
- /advice:          structured advice (fail-closed, errors map to HTTP status)

Services are built lazily from settings and injected with ``Depends`` so
tests can swap them via ``app.dependency_overrides``.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from trekmate.core.config import get_settings
from trekmate.data import load_catalog
from trekmate.models import (
    AppError,
    Difficulty,
    GeoPoint,
    RequestContext,
    TrekPreferences,
)
from trekmate.services.advice import AIAdviceService
from trekmate.services.cache import PersistentCache, RedisStorage, StorageBackend, create_storage
from trekmate.services.catalog import TrekFilters, filter_treks, get_filter_statistics
from trekmate.services.conditions import RealTimeConditionsService
from trekmate.services.location import LocationRecommendationEngine
from trekmate.services.remote import RemoteClient

logger = logging.getLogger(__name__)

router = APIRouter()


# Request/Response models
class DataResponse(BaseModel):
    """Generic success envelope."""
    success: bool
    data: Optional[Any] = None
    error: Optional[AppError] = None


class TreksResponse(BaseModel):
    success: bool
    treks: list[dict] = Field(default_factory=list)
    statistics: Optional[dict] = None
    error: Optional[AppError] = None


class LocationRequest(BaseModel):
    """A location plus optional ranking preferences."""
    location: GeoPoint = Field(default_factory=GeoPoint)
    preferences: Optional[TrekPreferences] = None


class TrekRequest(BaseModel):
    trek: dict = Field(..., description="Trek info; at least an 'id' or 'name'")


class AtmosphereRequest(BaseModel):
    altitude: float = Field(..., ge=0)
    location: GeoPoint


class RouteAnalysisRequest(BaseModel):
    route: dict


class EmergencyRequest(BaseModel):
    location: GeoPoint
    radius: float = Field(50, gt=0, description="Search radius in km")


class ChatMessageRequest(BaseModel):
    message: str = Field(..., min_length=1)
    context: Optional[RequestContext] = None


class PreferencesRequest(BaseModel):
    preferences: dict = Field(default_factory=dict)


class AltitudeRequest(BaseModel):
    altitude: float = Field(..., ge=0)
    terrain: str = "mountain"


class TravelTipsRequest(BaseModel):
    topic: str = Field(..., min_length=1)


# Service instances
_storage: StorageBackend | None = None
_cache: PersistentCache | None = None
_client: RemoteClient | None = None
_advice_service: AIAdviceService | None = None
_conditions_service: RealTimeConditionsService | None = None
_location_engine: LocationRecommendationEngine | None = None


def get_storage() -> StorageBackend:
    global _storage
    if _storage is None:
        _storage = create_storage(get_settings())
    return _storage


def get_cache() -> PersistentCache:
    global _cache
    if _cache is None:
        _cache = PersistentCache(get_storage(), default_ttl=get_settings().cache_ttl)
    return _cache


def get_remote_client() -> RemoteClient:
    global _client
    if _client is None:
        settings = get_settings()
        _client = RemoteClient(
            get_storage(),
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
        )
    return _client


def get_advice_service() -> AIAdviceService:
    global _advice_service
    if _advice_service is None:
        _advice_service = AIAdviceService.from_settings(
            get_settings(), get_remote_client(), get_cache()
        )
    return _advice_service


def get_conditions_service() -> RealTimeConditionsService:
    global _conditions_service
    if _conditions_service is None:
        _conditions_service = RealTimeConditionsService.from_settings(
            get_settings(), get_remote_client(), get_cache()
        )
    return _conditions_service


def get_location_engine() -> LocationRecommendationEngine:
    global _location_engine
    if _location_engine is None:
        _location_engine = LocationRecommendationEngine(get_conditions_service())
    return _location_engine


async def shutdown_services() -> None:
    """Close network resources held by the lazily built services."""
    global _client, _storage
    if _client is not None:
        await _client.aclose()
        _client = None
    if isinstance(_storage, RedisStorage):
        await _storage.disconnect()
        _storage = None


# ─── Catalog ───

@router.get("/treks", response_model=TreksResponse)
async def list_treks(
    search: str = "",
    region: str = "",
    difficulty: Optional[list[Difficulty]] = Query(None),
    duration_min: int = 0,
    duration_max: int = 30,
    cost_min: int = 0,
    cost_max: int = 10000,
    altitude_min: int = 0,
    altitude_max: int = 0,
    rating_min: float = 0,
    sort_by: str = "rating",
) -> TreksResponse:
    """Browse the catalog with filters and sorting."""
    filters = TrekFilters(
        search=search,
        region=region,
        difficulty=difficulty or [],
        duration_min=duration_min,
        duration_max=duration_max,
        cost_min=cost_min,
        cost_max=cost_max,
        altitude_min=altitude_min,
        altitude_max=altitude_max,
        rating_min=rating_min,
        sort_by=sort_by,
    )
    treks = filter_treks(load_catalog(), filters)
    return TreksResponse(
        success=True,
        treks=[t.to_payload() for t in treks],
        statistics=get_filter_statistics(treks),
    )


@router.post("/treks/nearby", response_model=TreksResponse)
async def nearby_treks(
    request: LocationRequest,
    engine: LocationRecommendationEngine = Depends(get_location_engine),
) -> TreksResponse:
    """Catalog treks ranked by distance from the given location."""
    treks = engine.filter_treks_by_location(request.location, request.preferences)
    return TreksResponse(success=True, treks=[t.to_payload() for t in treks])


@router.post("/recommendations/location", response_model=DataResponse)
async def location_recommendations(
    request: LocationRequest,
    engine: LocationRecommendationEngine = Depends(get_location_engine),
) -> DataResponse:
    """AI recommendations merged with the distance-ranked catalog."""
    result = await engine.get_location_based_treks(request.location, request.preferences)
    return DataResponse(success=True, data=result.to_payload())


# ─── Conditions (fail-open) ───

@router.post("/conditions/weather-safety", response_model=DataResponse)
async def weather_and_safety(
    request: LocationRequest,
    engine: LocationRecommendationEngine = Depends(get_location_engine),
) -> DataResponse:
    result = await engine.get_location_weather_and_safety(request.location)
    return DataResponse(success=True, data=result.to_payload())


@router.post("/conditions/weather", response_model=DataResponse)
async def weather(
    request: LocationRequest,
    conditions: RealTimeConditionsService = Depends(get_conditions_service),
) -> DataResponse:
    return DataResponse(success=True, data=await conditions.get_weather_forecast(request.location))


@router.post("/conditions/route", response_model=DataResponse)
async def route_conditions(
    request: TrekRequest,
    conditions: RealTimeConditionsService = Depends(get_conditions_service),
) -> DataResponse:
    return DataResponse(success=True, data=await conditions.get_route_conditions(request.trek))


@router.post("/conditions/alerts", response_model=DataResponse)
async def safety_alerts(
    request: LocationRequest,
    conditions: RealTimeConditionsService = Depends(get_conditions_service),
) -> DataResponse:
    return DataResponse(success=True, data=await conditions.get_safety_alerts(request.location))


@router.post("/conditions/atmosphere", response_model=DataResponse)
async def atmosphere(
    request: AtmosphereRequest,
    conditions: RealTimeConditionsService = Depends(get_conditions_service),
) -> DataResponse:
    data = await conditions.get_atmospheric_conditions(request.altitude, request.location)
    return DataResponse(success=True, data=data)


@router.post("/conditions/culture", response_model=DataResponse)
async def cultural_info(
    request: LocationRequest,
    conditions: RealTimeConditionsService = Depends(get_conditions_service),
) -> DataResponse:
    return DataResponse(success=True, data=await conditions.get_cultural_info(request.location))


@router.post("/conditions/emergency", response_model=DataResponse)
async def emergency_services(
    request: EmergencyRequest,
    conditions: RealTimeConditionsService = Depends(get_conditions_service),
) -> DataResponse:
    data = await conditions.get_emergency_services(request.location, request.radius)
    return DataResponse(success=True, data=data)


@router.post("/conditions/route-analysis", response_model=DataResponse)
async def route_analysis(
    request: RouteAnalysisRequest,
    conditions: RealTimeConditionsService = Depends(get_conditions_service),
) -> DataResponse:
    return DataResponse(success=True, data=await conditions.analyze_route(request.route))


# ─── Chat (advice-shaped, never fails) ───

@router.post("/chat/sessions", response_model=DataResponse)
async def create_chat_session(
    advice: AIAdviceService = Depends(get_advice_service),
) -> DataResponse:
    session = await advice.initialize()
    return DataResponse(success=True, data=session.to_payload())


@router.post("/chat/sessions/{session_id}/messages", response_model=DataResponse)
async def send_chat_message(
    session_id: str,
    request: ChatMessageRequest,
    advice: AIAdviceService = Depends(get_advice_service),
) -> DataResponse:
    reply = await advice.send_message(request.message, session_id, request.context)
    return DataResponse(success=True, data=reply.to_payload())


@router.delete("/chat/sessions/{session_id}", response_model=DataResponse)
async def end_chat_session(
    session_id: str,
    advice: AIAdviceService = Depends(get_advice_service),
) -> DataResponse:
    await advice.end_chat(session_id)
    return DataResponse(success=True)


# ─── Structured advice (data-shaped, errors propagate) ───

@router.post("/advice/recommendations", response_model=DataResponse)
async def advice_recommendations(
    request: PreferencesRequest,
    advice: AIAdviceService = Depends(get_advice_service),
) -> DataResponse:
    return DataResponse(success=True, data=await advice.get_trek_recommendations(request.preferences))


@router.post("/advice/packing-list", response_model=DataResponse)
async def advice_packing_list(
    request: TrekRequest,
    advice: AIAdviceService = Depends(get_advice_service),
) -> DataResponse:
    return DataResponse(success=True, data=await advice.generate_packing_list(request.trek))


@router.post("/advice/altitude", response_model=DataResponse)
async def advice_altitude(
    request: AltitudeRequest,
    advice: AIAdviceService = Depends(get_advice_service),
) -> DataResponse:
    data = await advice.get_altitude_advice(request.altitude, request.terrain)
    return DataResponse(success=True, data=data)


@router.post("/advice/safety-tips", response_model=DataResponse)
async def advice_safety_tips(
    request: TrekRequest,
    advice: AIAdviceService = Depends(get_advice_service),
) -> DataResponse:
    return DataResponse(success=True, data=await advice.get_safety_tips(request.trek))


@router.post("/advice/travel-tips", response_model=DataResponse)
async def advice_travel_tips(
    request: TravelTipsRequest,
    advice: AIAdviceService = Depends(get_advice_service),
) -> DataResponse:
    return DataResponse(success=True, data=await advice.get_travel_tips(request.topic))
