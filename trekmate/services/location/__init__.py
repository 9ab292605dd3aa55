"""Location-aware trek recommendations."""

from .service import GeolocationProvider, LocationRecommendationEngine

__all__ = ["GeolocationProvider", "LocationRecommendationEngine"]
