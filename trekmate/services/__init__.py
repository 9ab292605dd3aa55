"""TrekMate Services.

Service layer components:
- Cache: TTL cache over file, memory or Redis storage
- Remote: shared httpx client with auth and error classification
- Advice: AI chat sessions (demo/direct/proxy) and structured advice
- Conditions: fail-open real-time weather, trail and safety data
- Location: distance-ranked trek recommendations
- Catalog, Conversation, Tracker: catalog browsing and per-view state
"""

from .cache import FileStorage, MemoryStorage, PersistentCache, RedisStorage, StorageBackend
from .remote import RemoteClient
from .advice import AIAdviceService, create_chat_provider
from .conditions import LiveUpdateSubscription, RealTimeConditionsService
from .location import LocationRecommendationEngine
from .conversation import ChatConversation
from .tracker import ConditionsTracker

__all__ = [
    # Cache
    "FileStorage",
    "MemoryStorage",
    "PersistentCache",
    "RedisStorage",
    "StorageBackend",
    # Remote
    "RemoteClient",
    # Advice
    "AIAdviceService",
    "create_chat_provider",
    # Conditions
    "LiveUpdateSubscription",
    "RealTimeConditionsService",
    # Location
    "LocationRecommendationEngine",
    # Stateful helpers
    "ChatConversation",
    "ConditionsTracker",
]
