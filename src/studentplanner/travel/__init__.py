"""Travel estimates with caching and a static fallback model."""

from studentplanner.travel.cache import Cache, InMemoryTTLCache
from studentplanner.travel.estimator import TravelEstimator, haversine_km
from studentplanner.travel.provider import RoutingProvider

__all__ = [
    "Cache",
    "InMemoryTTLCache",
    "RoutingProvider",
    "TravelEstimator",
    "haversine_km",
]
