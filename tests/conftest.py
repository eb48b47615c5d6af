"""Shared fixtures for unit tests."""

import math

import pytest

from itinerary_optimizer.models import Coordinates, EntryFee, Place, PlaceCategory


def make_place(
    place_id: str,
    lat: float = 0.0,
    lng: float = 0.0,
    duration: float = 60,
    rating: float = 4.0,
    category: PlaceCategory = PlaceCategory.MUSEUM,
    fee: float = 0.0,
    **kwargs,
) -> Place:
    return Place(
        place_id=place_id,
        name=kwargs.pop("name", f"Place {place_id}"),
        category=category,
        coordinates=Coordinates(lat=lat, lng=lng),
        visit_duration_minutes=duration,
        rating=rating,
        entry_fee=EntryFee(amount=fee),
        **kwargs,
    )


def lat_offset_km(km: float) -> float:
    """Latitude delta (degrees) that is ``km`` away along a meridian."""
    return math.degrees(km / 6371.0)


@pytest.fixture
def jaipur_places() -> list[Place]:
    """A small pool of real-ish places around Jaipur."""
    return [
        make_place("amber", 26.9855, 75.8513, duration=120, rating=4.6, category=PlaceCategory.FORT, fee=100),
        make_place("hawa", 26.9239, 75.8267, duration=45, rating=4.4, category=PlaceCategory.PALACE, fee=50),
        make_place("city", 26.9258, 75.8237, duration=90, rating=4.5, category=PlaceCategory.PALACE, fee=200),
        make_place("jantar", 26.9248, 75.8246, duration=60, rating=4.5, category=PlaceCategory.MUSEUM, fee=50),
        make_place("nahargarh", 26.9374, 75.8155, duration=90, rating=4.3, category=PlaceCategory.FORT, fee=50),
        make_place("albert", 26.9116, 75.8195, duration=60, rating=4.4, category=PlaceCategory.MUSEUM, fee=40),
        make_place("galta", 26.9163, 75.8586, duration=60, rating=4.2, category=PlaceCategory.TEMPLE, fee=0),
        make_place(
            "birla", 26.8921, 75.8155, duration=45, rating=4.5, category=PlaceCategory.TEMPLE, fee=0,
            wheelchair_accessible=True,
        ),
    ]
