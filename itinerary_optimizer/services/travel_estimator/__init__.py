"""Travel estimator service module."""

from .service import (
    ROAD_DISTANCE_FACTOR,
    RateLimiter,
    TravelEstimator,
    TravelMatrix,
    fallback_estimate,
    fallback_speed_kmh,
)

__all__ = [
    "ROAD_DISTANCE_FACTOR",
    "RateLimiter",
    "TravelEstimator",
    "TravelMatrix",
    "fallback_estimate",
    "fallback_speed_kmh",
]
