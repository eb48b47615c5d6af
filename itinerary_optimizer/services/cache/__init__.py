"""Distance cache service module."""

from .service import (
    CacheStats,
    DistanceCache,
    InMemoryDistanceCache,
    RedisDistanceCache,
)

__all__ = [
    "CacheStats",
    "DistanceCache",
    "InMemoryDistanceCache",
    "RedisDistanceCache",
]
