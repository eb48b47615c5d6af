"""Travel distance/duration estimator.

Converts coordinate pairs into (distance, duration) estimates for planning.
Prefers the configured routing provider, falls back to a deterministic
great-circle model when the provider is absent, fails or times out. Every
result, provider-sourced or fallback, is cached under the same key.
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from itinerary_optimizer.models import Coordinates, TravelEstimate, TravelMode
from itinerary_optimizer.services.cache import CacheStats, DistanceCache, InMemoryDistanceCache
from itinerary_optimizer.services.routing_provider import (
    ProviderMatrix,
    RoutingProvider,
    RoutingProviderError,
)
from itinerary_optimizer.utils.geo import haversine_distance

logger = logging.getLogger(__name__)

# Straight-line to road distance inflation
ROAD_DISTANCE_FACTOR = 1.4


def fallback_speed_kmh(road_distance_km: float, mode: TravelMode) -> float:
    """Average speed assumed by the fallback model."""
    if mode == TravelMode.WALKING:
        return 5.0
    if mode == TravelMode.CYCLING:
        return 15.0
    if mode == TravelMode.TRANSIT:
        if road_distance_km < 20:
            return 20.0
        if road_distance_km > 50:
            return 45.0
        return 30.0
    # Driving: city traffic, highway, everything else
    if road_distance_km < 20:
        return 25.0
    if road_distance_km > 100:
        return 60.0
    return 40.0


def fallback_estimate(origin: Coordinates, destination: Coordinates, mode: TravelMode) -> TravelEstimate:
    """Deterministic estimate used when no provider answer is available."""
    straight = haversine_distance(origin.lat, origin.lng, destination.lat, destination.lng)
    road = straight * ROAD_DISTANCE_FACTOR
    speed = fallback_speed_kmh(road, mode)
    return TravelEstimate(
        distance_km=road,
        duration_minutes=road / speed * 60,
        is_fallback=True,
    )


@dataclass
class TravelMatrix:
    """Origins x destinations estimates."""
    distances_km: NDArray[np.float64]
    durations_minutes: NDArray[np.float64]
    is_fallback: NDArray[np.bool_]


class RateLimiter:
    """Enforces a minimum spacing between outbound calls."""

    def __init__(self, min_interval_seconds: float = 0.1) -> None:
        self._min_interval = min_interval_seconds
        self._lock = asyncio.Lock()
        self._last_call = 0.0

    async def wait(self) -> None:
        async with self._lock:
            elapsed = time.monotonic() - self._last_call
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_call = time.monotonic()


class TravelEstimator:
    """Cached distance/duration estimator with provider fallback.

    The cache is injected so one instance can be shared by every request in a
    process (or across processes with ``RedisDistanceCache``).
    """

    DEFAULT_SINGLE_TIMEOUT = 10.0
    DEFAULT_BATCH_TIMEOUT = 30.0
    DEFAULT_MIN_CALL_INTERVAL = 0.1
    MAX_PROVIDER_MATRIX_SIZE = 100

    def __init__(
        self,
        cache: DistanceCache | None = None,
        provider: RoutingProvider | None = None,
        single_timeout: float | None = None,
        batch_timeout: float = DEFAULT_BATCH_TIMEOUT,
        min_call_interval: float = DEFAULT_MIN_CALL_INTERVAL,
        max_provider_matrix_size: int = MAX_PROVIDER_MATRIX_SIZE,
    ) -> None:
        self._cache = cache if cache is not None else InMemoryDistanceCache()
        self._provider = provider
        if single_timeout is None:
            single_timeout = float(os.getenv("ROUTING_TIMEOUT", str(self.DEFAULT_SINGLE_TIMEOUT)))
        self._single_timeout = single_timeout
        self._batch_timeout = batch_timeout
        self._rate_limiter = RateLimiter(min_call_interval)
        self._max_provider_matrix_size = max_provider_matrix_size
        self._provider_failures = 0

    @property
    def has_provider(self) -> bool:
        return self._provider is not None

    @property
    def provider_failures(self) -> int:
        return self._provider_failures

    @property
    def cache(self) -> DistanceCache:
        return self._cache

    async def configure_provider(self, provider: RoutingProvider | None) -> None:
        """Swap the routing provider. Cached estimates are dropped."""
        self._provider = provider
        await self._cache.clear()
        logger.info(f"[ESTIMATOR] Provider set to {type(provider).__name__ if provider else 'none'}")

    async def clear_cache(self) -> None:
        await self._cache.clear()

    async def cache_stats(self) -> CacheStats:
        return await self._cache.stats()

    async def estimate(
        self,
        origin: Coordinates,
        destination: Coordinates,
        mode: TravelMode = TravelMode.DRIVING,
    ) -> TravelEstimate:
        """Distance and duration from ``origin`` to ``destination``."""
        self._check_range(origin)
        self._check_range(destination)

        key = DistanceCache.build_key(origin, destination, mode)
        cached = await self._cache.get(key)
        if cached is not None:
            return cached

        if origin == destination:
            result = TravelEstimate(distance_km=0.0, duration_minutes=0.0, is_fallback=False)
        else:
            result = await self._estimate_uncached(origin, destination, mode)

        await self._cache.set(key, result)
        return result

    async def estimate_matrix(
        self,
        origins: Sequence[Coordinates],
        destinations: Sequence[Coordinates],
        mode: TravelMode = TravelMode.DRIVING,
    ) -> TravelMatrix:
        """Pairwise estimates for every origin/destination combination.

        Identical origin/destination pairs are zero. Small matrices go to the
        provider in one call when one is configured; anything else is
        estimated pair by pair.
        """
        n, m = len(origins), len(destinations)
        distances = np.zeros((n, m), dtype=np.float64)
        durations = np.zeros((n, m), dtype=np.float64)
        fallback = np.zeros((n, m), dtype=np.bool_)
        if n == 0 or m == 0:
            return TravelMatrix(distances, durations, fallback)

        for point in list(origins) + list(destinations):
            self._check_range(point)

        filled = np.zeros((n, m), dtype=np.bool_)
        if self._provider is not None and n * m <= self._max_provider_matrix_size:
            provider_matrix = await self._call_provider(
                self._provider, origins, destinations, mode, self._batch_timeout
            )
            if provider_matrix is not None:
                for i, origin in enumerate(origins):
                    for j, destination in enumerate(destinations):
                        if origin == destination:
                            filled[i][j] = True
                            continue
                        estimate = TravelEstimate(
                            distance_km=float(provider_matrix.distances_km[i][j]),
                            duration_minutes=float(provider_matrix.durations_minutes[i][j]),
                            is_fallback=False,
                        )
                        await self._cache.set(DistanceCache.build_key(origin, destination, mode), estimate)
                        distances[i][j] = estimate.distance_km
                        durations[i][j] = estimate.duration_minutes
                        filled[i][j] = True

        for i, origin in enumerate(origins):
            for j, destination in enumerate(destinations):
                if filled[i][j] or origin == destination:
                    continue
                estimate = await self.estimate(origin, destination, mode)
                distances[i][j] = estimate.distance_km
                durations[i][j] = estimate.duration_minutes
                fallback[i][j] = estimate.is_fallback

        return TravelMatrix(distances, durations, fallback)

    async def _estimate_uncached(
        self,
        origin: Coordinates,
        destination: Coordinates,
        mode: TravelMode,
    ) -> TravelEstimate:
        if self._provider is not None:
            provider_matrix = await self._call_provider(
                self._provider, [origin], [destination], mode, self._single_timeout
            )
            if provider_matrix is not None:
                return TravelEstimate(
                    distance_km=float(provider_matrix.distances_km[0][0]),
                    duration_minutes=float(provider_matrix.durations_minutes[0][0]),
                    is_fallback=False,
                )
        return fallback_estimate(origin, destination, mode)

    async def _call_provider(
        self,
        provider: RoutingProvider,
        origins: Sequence[Coordinates],
        destinations: Sequence[Coordinates],
        mode: TravelMode,
        timeout: float,
    ) -> ProviderMatrix | None:
        """Rate-limited, time-bounded provider call. None on any failure."""
        await self._rate_limiter.wait()
        try:
            result = await asyncio.wait_for(
                provider.matrix(origins, destinations, mode),
                timeout=timeout,
            )
            expected = (len(origins), len(destinations))
            if result.distances_km.shape != expected or result.durations_minutes.shape != expected:
                raise RoutingProviderError(f"provider matrix shape {result.distances_km.shape} != {expected}")
            for values in (result.distances_km, result.durations_minutes):
                if not (np.isfinite(values).all() and (values >= 0).all()):
                    raise RoutingProviderError("provider matrix has non-finite or negative cells")
            return result
        except asyncio.TimeoutError:
            self._provider_failures += 1
            logger.warning(f"[ESTIMATOR] Provider timed out after {timeout}s, using fallback")
        except Exception as e:
            self._provider_failures += 1
            logger.warning(f"[ESTIMATOR] Provider error: {e}, using fallback")
        return None

    @staticmethod
    def _check_range(point: Coordinates) -> None:
        if not (-90 <= point.lat <= 90) or not (-180 <= point.lng <= 180):
            raise ValueError(f"Coordinates out of range: ({point.lat}, {point.lng})")
