"""Single-day itinerary route optimizer."""

__version__ = "0.1.0"
