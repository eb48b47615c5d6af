"""Itinerary optimizer services.

Service layer components:
- Cache: bounded FIFO distance cache, in-memory or Redis
- Routing provider: OSRM table service for network distances
- Travel estimator: cached estimates with great-circle fallback
- Scoring: multi-criteria candidate scoring
- Route optimizer: greedy, nearest-neighbor and genetic strategies
"""

from .cache import CacheStats, DistanceCache, InMemoryDistanceCache, RedisDistanceCache
from .routing_provider import (
    OSRMRoutingProvider,
    ProviderMatrix,
    RoutingProvider,
    RoutingProviderError,
)
from .travel_estimator import TravelEstimator, TravelMatrix
from .scoring import RouteState, ScoreBreakdown, ScoringModel
from .route_optimizer import (
    AdvancedGreedyStrategy,
    GeneticRefiner,
    ItineraryOptimizerService,
    NearestNeighborStrategy,
    RouteEvaluator,
    RouteOptimizerService,
)

__all__ = [
    # Cache
    "CacheStats",
    "DistanceCache",
    "InMemoryDistanceCache",
    "RedisDistanceCache",
    # Routing provider
    "OSRMRoutingProvider",
    "ProviderMatrix",
    "RoutingProvider",
    "RoutingProviderError",
    # Travel estimator
    "TravelEstimator",
    "TravelMatrix",
    # Scoring
    "RouteState",
    "ScoreBreakdown",
    "ScoringModel",
    # Route optimizer
    "AdvancedGreedyStrategy",
    "GeneticRefiner",
    "ItineraryOptimizerService",
    "NearestNeighborStrategy",
    "RouteEvaluator",
    "RouteOptimizerService",
]
