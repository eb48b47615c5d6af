"""Great-circle helpers."""

import math
from typing import Sequence

from itinerary_optimizer.models import BoundingBox, Coordinates

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.0


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometers between two lat/lng points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a marginally above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_between(a: Coordinates, b: Coordinates) -> float:
    return haversine_distance(a.lat, a.lng, b.lat, b.lng)


def find_nearest(origin: Coordinates, points: Sequence[Coordinates]) -> tuple[int, float]:
    """Index of and distance to the point closest to ``origin``.

    Returns ``(-1, inf)`` for an empty sequence. Ties go to the earliest point.
    """
    nearest_index = -1
    nearest_distance = math.inf
    for i, point in enumerate(points):
        dist = distance_between(origin, point)
        if dist < nearest_distance:
            nearest_index = i
            nearest_distance = dist
    return nearest_index, nearest_distance


def bounding_box(points: Sequence[Coordinates], padding_km: float = 5.0) -> BoundingBox | None:
    """Bounding box around ``points`` padded by ``padding_km`` on every side."""
    if not points:
        return None

    min_lat = min(p.lat for p in points)
    max_lat = max(p.lat for p in points)
    min_lng = min(p.lng for p in points)
    max_lng = max(p.lng for p in points)

    lat_padding = padding_km / KM_PER_DEGREE_LAT
    mid_lat = math.radians((min_lat + max_lat) / 2)
    # Longitude degrees shrink towards the poles; cap the padding there
    lng_padding = padding_km / max(KM_PER_DEGREE_LAT * math.cos(mid_lat), 1e-6)

    return BoundingBox(
        southwest=Coordinates(
            lat=max(-90.0, min_lat - lat_padding),
            lng=max(-180.0, min_lng - lng_padding),
        ),
        northeast=Coordinates(
            lat=min(90.0, max_lat + lat_padding),
            lng=min(180.0, max_lng + lng_padding),
        ),
        center=Coordinates(lat=(min_lat + max_lat) / 2, lng=(min_lng + max_lng) / 2),
    )
