"""Distance cache service implementation.

This module provides an abstract distance cache interface, an in-memory
implementation backed by a bounded FIFO store, and a Redis implementation for
sharing estimates between service instances.

Both implementations key entries by the ordered pair of coordinates rounded
to six decimal places plus the travel mode, and both are size bounded: once
capacity is exceeded the oldest inserted entry is evicted first.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass

import redis.asyncio as redis

from itinerary_optimizer.models import Coordinates, TravelEstimate, TravelMode
from itinerary_optimizer.utils.cache import BoundedFIFOCache

logger = logging.getLogger(__name__)

COORDINATE_PRECISION = 6
DEFAULT_CAPACITY = 2000


@dataclass
class CacheStats:
    """Snapshot of cache usage."""
    size: int
    capacity: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class DistanceCache(ABC):
    """Abstract base class for travel estimate caches.

    Defines the interface for caching operations and provides a static method
    for building consistent cache keys.
    """

    @abstractmethod
    async def get(self, key: str) -> TravelEstimate | None:
        """Retrieve a cached estimate by key.

        Args:
            key: The cache key to look up.

        Returns:
            The cached estimate if found, None otherwise.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: TravelEstimate) -> None:
        """Store an estimate, evicting the oldest entry when over capacity.

        Args:
            key: The cache key to store under.
            value: The estimate to cache.
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Drop every cached estimate."""
        pass

    @abstractmethod
    async def size(self) -> int:
        pass

    @abstractmethod
    async def stats(self) -> CacheStats:
        pass

    @staticmethod
    def build_key(origin: Coordinates, destination: Coordinates, mode: TravelMode) -> str:
        """Generate the cache key for a directed coordinate pair.

        The key format is: ``distance:{mode}:{lat},{lng}:{lat},{lng}`` with
        coordinates rounded to six decimal places.

        Example:
            >>> DistanceCache.build_key(
            ...     Coordinates(lat=48.8584, lng=2.2945),
            ...     Coordinates(lat=48.8606, lng=2.3376),
            ...     TravelMode.WALKING,
            ... )
            'distance:walking:48.858400,2.294500:48.860600,2.337600'
        """
        p = COORDINATE_PRECISION
        return (
            f"distance:{mode.value}:"
            f"{origin.lat:.{p}f},{origin.lng:.{p}f}:"
            f"{destination.lat:.{p}f},{destination.lng:.{p}f}"
        )


class InMemoryDistanceCache(DistanceCache):
    """Process-local distance cache.

    Safe to share between concurrent requests; the underlying store guards
    every read and insert with a lock.
    """

    def __init__(self, capacity: int | None = None) -> None:
        if capacity is None:
            capacity = int(os.getenv("DISTANCE_CACHE_SIZE", str(DEFAULT_CAPACITY)))
        self._store: BoundedFIFOCache[TravelEstimate] = BoundedFIFOCache(max_size=capacity)

    async def get(self, key: str) -> TravelEstimate | None:
        return self._store.get(key)

    async def set(self, key: str, value: TravelEstimate) -> None:
        self._store.set(key, value)

    async def clear(self) -> None:
        self._store.clear()
        logger.info("[CACHE] Distance cache cleared")

    async def size(self) -> int:
        return len(self._store)

    async def stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._store),
            capacity=self._store.max_size,
            hits=self._store.hits,
            misses=self._store.misses,
        )

    @property
    def capacity(self) -> int:
        return self._store.max_size


class RedisDistanceCache(DistanceCache):
    """Redis-based distance cache shared between service instances.

    Estimates are stored as JSON strings. Insertion order is tracked in a
    Redis list so that capacity is enforced oldest-first, matching the
    in-memory cache.

    Attributes:
        _client: The Redis async client instance.
        _capacity: Maximum number of cached estimates.
    """

    ORDER_KEY = "distance:__order__"

    def __init__(
        self,
        redis_url: str | None = None,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        """Initialize the Redis distance cache.

        Args:
            redis_url: Redis connection URL. Defaults to ``REDIS_URL`` or localhost.
            capacity: Maximum number of entries before FIFO eviction.
        """
        self._redis_url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379")
        self._capacity = capacity
        self._client: redis.Redis | None = None
        self._hits = 0
        self._misses = 0

    async def connect(self) -> None:
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def _ensure_connected(self) -> redis.Redis:
        if self._client is None:
            await self.connect()
        return self._client  # type: ignore

    async def get(self, key: str) -> TravelEstimate | None:
        client = await self._ensure_connected()
        value = await client.get(key)
        if value is None:
            self._misses += 1
            return None
        self._hits += 1
        return TravelEstimate.model_validate_json(value)

    async def set(self, key: str, value: TravelEstimate) -> None:
        client = await self._ensure_connected()
        # nx: an existing key keeps its original slot in the order list
        created = await client.set(key, value.model_dump_json(), nx=True)
        if not created:
            await client.set(key, value.model_dump_json())
            return

        # A key deleted outside the cache may still hold a slot
        await client.lrem(self.ORDER_KEY, 0, key)
        await client.rpush(self.ORDER_KEY, key)
        overflow = await client.llen(self.ORDER_KEY) - self._capacity
        for _ in range(max(0, overflow)):
            oldest = await client.lpop(self.ORDER_KEY)
            if oldest is None:
                break
            await client.delete(oldest)

    async def clear(self) -> None:
        client = await self._ensure_connected()
        keys = await client.lrange(self.ORDER_KEY, 0, -1)
        if keys:
            await client.delete(*keys)
        await client.delete(self.ORDER_KEY)
        self._hits = 0
        self._misses = 0
        logger.info("[CACHE] Redis distance cache cleared")

    async def size(self) -> int:
        client = await self._ensure_connected()
        return int(await client.llen(self.ORDER_KEY))

    async def stats(self) -> CacheStats:
        return CacheStats(
            size=await self.size(),
            capacity=self._capacity,
            hits=self._hits,
            misses=self._misses,
        )
