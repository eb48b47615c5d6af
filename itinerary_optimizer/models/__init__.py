"""Data models for the itinerary optimizer."""

from .core import (
    AccessibilityRequirements,
    Algorithm,
    AppError,
    BoundingBox,
    ConstraintReport,
    Constraints,
    Coordinates,
    Diagnostics,
    EntryFee,
    ErrorCode,
    GeneticParams,
    OptimizationResult,
    Place,
    PlaceCategory,
    RouteLeg,
    RouteMetrics,
    RouteWarning,
    TravelEstimate,
    TravelMode,
    WarningType,
    WeightVector,
)

__all__ = [
    "AccessibilityRequirements",
    "Algorithm",
    "AppError",
    "BoundingBox",
    "ConstraintReport",
    "Constraints",
    "Coordinates",
    "Diagnostics",
    "EntryFee",
    "ErrorCode",
    "GeneticParams",
    "OptimizationResult",
    "Place",
    "PlaceCategory",
    "RouteLeg",
    "RouteMetrics",
    "RouteWarning",
    "TravelEstimate",
    "TravelMode",
    "WarningType",
    "WeightVector",
]
