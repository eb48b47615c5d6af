"""Routing providers for network distances and durations.

The travel estimator talks to an optional external provider through the
``RoutingProvider`` interface. ``OSRMRoutingProvider`` uses the Open Source
Routing Machine ``table`` service (free, no API key).
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

import httpx
import numpy as np
from numpy.typing import NDArray

from itinerary_optimizer.models import Coordinates, TravelMode

logger = logging.getLogger(__name__)

# OSRM profile mapping
OSRM_PROFILES = {
    TravelMode.WALKING: "foot",
    TravelMode.DRIVING: "car",
    TravelMode.CYCLING: "bike",
    TravelMode.TRANSIT: "car",  # OSRM doesn't have transit, closest is road network
}


class RoutingProviderError(Exception):
    """Raised when a routing provider cannot produce a usable matrix."""


@dataclass
class ProviderMatrix:
    """Distance (km) and duration (minutes) matrix, origins x destinations."""
    distances_km: NDArray[np.float64]
    durations_minutes: NDArray[np.float64]


class RoutingProvider(ABC):
    """Abstract base class for external routing providers."""

    @abstractmethod
    async def matrix(
        self,
        origins: Sequence[Coordinates],
        destinations: Sequence[Coordinates],
        mode: TravelMode,
    ) -> ProviderMatrix:
        """Return the origin x destination distance/duration matrix.

        Implementations may raise or hang; the estimator bounds every call
        with a timeout and falls back on any failure.
        """
        pass

    async def close(self) -> None:
        pass


class OSRMRoutingProvider(RoutingProvider):
    """OSRM table-service provider."""

    OSRM_URL = "https://router.project-osrm.org"

    def __init__(self, base_url: str | None = None, timeout: float = 30.0) -> None:
        self._base_url = (base_url or os.getenv("OSRM_URL", self.OSRM_URL)).rstrip("/")
        self._timeout = timeout

    async def matrix(
        self,
        origins: Sequence[Coordinates],
        destinations: Sequence[Coordinates],
        mode: TravelMode,
    ) -> ProviderMatrix:
        if not origins or not destinations:
            shape = (len(origins), len(destinations))
            return ProviderMatrix(
                distances_km=np.zeros(shape, dtype=np.float64),
                durations_minutes=np.zeros(shape, dtype=np.float64),
            )

        profile = OSRM_PROFILES.get(mode, "car")
        points = list(origins) + list(destinations)
        coords = ";".join(f"{p.lng},{p.lat}" for p in points)
        url = f"{self._base_url}/table/v1/{profile}/{coords}"
        params = {
            "annotations": "duration,distance",
            "sources": ";".join(str(i) for i in range(len(origins))),
            "destinations": ";".join(
                str(i) for i in range(len(origins), len(origins) + len(destinations))
            ),
        }

        logger.debug(f"[OSRM] table request: {len(origins)}x{len(destinations)}, profile={profile}")
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            data = response.json()

        if data.get("code") != "Ok":
            raise RoutingProviderError(f"OSRM returned code {data.get('code')}")

        return self._parse_table(data, len(origins), len(destinations))

    @staticmethod
    def _parse_table(data: dict, n_origins: int, n_destinations: int) -> ProviderMatrix:
        raw_distances = data.get("distances")
        raw_durations = data.get("durations")
        if raw_distances is None or raw_durations is None:
            raise RoutingProviderError("OSRM response missing distances or durations")

        # Unroutable pairs come back as null
        distances = np.array(raw_distances, dtype=np.float64)
        durations = np.array(raw_durations, dtype=np.float64)
        expected = (n_origins, n_destinations)
        if distances.shape != expected or durations.shape != expected:
            raise RoutingProviderError(
                f"OSRM matrix shape {distances.shape} does not match {expected}"
            )
        if np.isnan(distances).any() or np.isnan(durations).any():
            raise RoutingProviderError("OSRM matrix contains unroutable pairs")

        return ProviderMatrix(
            distances_km=distances / 1000.0,
            durations_minutes=durations / 60.0,
        )
