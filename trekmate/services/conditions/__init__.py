"""Real-time conditions (fail-open) and live updates."""

from .service import (
    LiveUpdateSubscription,
    RealTimeConditionsService,
    live_updates,
    location_identity,
)

__all__ = [
    "LiveUpdateSubscription",
    "RealTimeConditionsService",
    "live_updates",
    "location_identity",
]
