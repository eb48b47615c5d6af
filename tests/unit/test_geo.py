"""Unit tests for the great-circle helpers."""

import pytest

from itinerary_optimizer.models import Coordinates
from itinerary_optimizer.utils.geo import (
    bounding_box,
    distance_between,
    find_nearest,
    haversine_distance,
)

from conftest import lat_offset_km


class TestHaversineDistance:
    """Tests for haversine_distance."""

    @pytest.mark.parametrize(
        "a, b",
        [
            ((48.8584, 2.2945), (51.5007, -0.1246)),
            ((-33.8568, 151.2153), (40.6892, -74.0445)),
            ((0.0, 179.9), (0.0, -179.9)),
            ((89.9, 0.0), (-89.9, 180.0)),
        ],
    )
    def test_symmetric(self, a: tuple[float, float], b: tuple[float, float]) -> None:
        assert haversine_distance(*a, *b) == haversine_distance(*b, *a)

    @pytest.mark.parametrize("point", [(0.0, 0.0), (26.9855, 75.8513), (-90.0, 180.0)])
    def test_same_point_is_zero(self, point: tuple[float, float]) -> None:
        assert haversine_distance(*point, *point) == 0.0

    def test_known_distance_paris_london(self) -> None:
        # Eiffel Tower to Big Ben is roughly 340 km
        d = haversine_distance(48.8584, 2.2945, 51.5007, -0.1246)
        assert 330 <= d <= 350

    def test_meridian_offset(self) -> None:
        d = haversine_distance(0.0, 0.0, lat_offset_km(50), 0.0)
        assert d == pytest.approx(50.0, rel=1e-9)

    def test_antipodal_points(self) -> None:
        d = haversine_distance(0.0, 0.0, 0.0, 180.0)
        assert d == pytest.approx(6371.0 * 3.141592653589793, rel=1e-9)

    def test_distance_between_coordinates(self) -> None:
        a = Coordinates(lat=26.9239, lng=75.8267)
        b = Coordinates(lat=26.9258, lng=75.8237)
        assert distance_between(a, b) == haversine_distance(a.lat, a.lng, b.lat, b.lng)


class TestFindNearest:
    """Tests for find_nearest."""

    def test_empty(self) -> None:
        index, dist = find_nearest(Coordinates(lat=0, lng=0), [])
        assert index == -1
        assert dist == float("inf")

    def test_picks_closest(self) -> None:
        origin = Coordinates(lat=0, lng=0)
        points = [
            Coordinates(lat=1, lng=1),
            Coordinates(lat=0.1, lng=0.1),
            Coordinates(lat=-2, lng=0),
        ]
        index, dist = find_nearest(origin, points)
        assert index == 1
        assert dist == pytest.approx(distance_between(origin, points[1]))

    def test_ties_go_to_first(self) -> None:
        origin = Coordinates(lat=0, lng=0)
        points = [Coordinates(lat=1, lng=0), Coordinates(lat=-1, lng=0)]
        index, _ = find_nearest(origin, points)
        assert index == 0


class TestBoundingBox:
    """Tests for bounding_box."""

    def test_empty_returns_none(self) -> None:
        assert bounding_box([]) is None

    def test_contains_points_with_padding(self) -> None:
        points = [Coordinates(lat=26.9, lng=75.8), Coordinates(lat=27.0, lng=75.9)]
        box = bounding_box(points, padding_km=5)
        assert box is not None
        assert box.southwest.lat < 26.9
        assert box.southwest.lng < 75.8
        assert box.northeast.lat > 27.0
        assert box.northeast.lng > 75.9
        assert box.center.lat == pytest.approx(26.95)
        assert box.center.lng == pytest.approx(75.85)

    def test_clamped_near_poles(self) -> None:
        box = bounding_box([Coordinates(lat=89.99, lng=179.99)], padding_km=50)
        assert box is not None
        assert box.northeast.lat <= 90
        assert box.northeast.lng <= 180
