"""Core data models for the itinerary optimizer.

This module contains the Pydantic models shared by the estimator, the scoring
model and the optimization strategies: coordinates, places, constraints,
weights, route metrics and the optimization result envelope.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TravelMode(str, Enum):
    """Available travel modes for distance/duration estimation."""

    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"
    TRANSIT = "transit"


class PlaceCategory(str, Enum):
    """Fixed category tag set for candidate places."""

    TEMPLE = "temple"
    PALACE = "palace"
    NATURE = "nature"
    MUSEUM = "museum"
    HILL_STATION = "hill-station"
    BEACH = "beach"
    FORT = "fort"
    WILDLIFE = "wildlife"
    LANDMARK = "landmark"
    PARK = "park"
    MARKET = "market"
    OTHER = "other"


class Algorithm(str, Enum):
    """Optimization strategies understood by the route optimizer."""

    ADVANCED_GREEDY = "advancedGreedy"
    NEAREST_NEIGHBOR = "nearestNeighbor"
    GENETIC = "genetic"

    @classmethod
    def parse(cls, value: "str | Algorithm | None") -> tuple["Algorithm", bool]:
        """Resolve an algorithm name.

        Returns the algorithm and whether the name was recognised. Unknown or
        missing names resolve to ADVANCED_GREEDY.
        """
        if isinstance(value, cls):
            return value, True
        if value:
            normalized = str(value).strip()
            for member in cls:
                if normalized == member.value or normalized.lower() == member.value.lower():
                    return member, True
                if normalized.upper().replace("-", "_") == member.name:
                    return member, True
        return cls.ADVANCED_GREEDY, False


class ErrorCode(str, Enum):
    """Error codes surfaced to callers."""

    INVALID_INPUT = "INVALID_INPUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    API_ERROR = "API_ERROR"


class AppError(BaseModel):
    """Structured error payload for input validation failures."""

    code: ErrorCode
    message: str
    user_message: str
    field: Optional[str] = None


class WarningType(str, Enum):
    """Non-fatal conditions reported alongside an optimization result."""

    INCOMPLETE_ROUTE = "INCOMPLETE_ROUTE"
    HIGH_TRAVEL_TIME = "HIGH_TRAVEL_TIME"
    LATE_FINISH = "LATE_FINISH"
    DEGRADED_ROUTING = "DEGRADED_ROUTING"
    UNKNOWN_ALGORITHM = "UNKNOWN_ALGORITHM"
    INTERRUPTED = "INTERRUPTED"


class RouteWarning(BaseModel):
    """A warning attached to a result."""

    type: WarningType
    message: str


class Coordinates(BaseModel):
    """Geographic coordinates with validation.

    Latitude must be between -90 and 90 degrees.
    Longitude must be between -180 and 180 degrees.
    """

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in degrees")


class EntryFee(BaseModel):
    """Entry cost for a place.

    ``amount`` is the standard fee. ``by_visitor_class`` optionally overrides it
    for specific visitor classes (e.g. ``{"foreign": 500}``).
    """

    model_config = ConfigDict(frozen=True)

    amount: float = Field(default=0.0, ge=0, description="Standard entry fee")
    by_visitor_class: dict[str, float] = Field(
        default_factory=dict, description="Per visitor-class entry fee overrides"
    )

    @field_validator("by_visitor_class")
    @classmethod
    def _non_negative(cls, value: dict[str, float]) -> dict[str, float]:
        for visitor_class, fee in value.items():
            if fee < 0:
                raise ValueError(f"entry fee for '{visitor_class}' must be non-negative")
        return value

    def for_visitor(self, visitor_class: Optional[str] = None) -> float:
        if visitor_class and visitor_class in self.by_visitor_class:
            return self.by_visitor_class[visitor_class]
        return self.amount


class Place(BaseModel):
    """Candidate place for an itinerary.

    Places are immutable for the duration of an optimization call.
    """

    model_config = ConfigDict(frozen=True)

    place_id: str = Field(..., min_length=1, description="Opaque unique identifier")
    name: str = Field(..., min_length=1, description="Display name of the place")
    category: PlaceCategory = Field(default=PlaceCategory.OTHER, description="Category tag")
    coordinates: Coordinates = Field(..., description="Geographic location")
    visit_duration_minutes: float = Field(
        ..., gt=0, description="Average visit duration in minutes"
    )
    rating: float = Field(default=4.0, ge=1.0, le=5.0, description="Rating on a 1-5 scale")
    review_count: int = Field(default=0, ge=0, description="Number of reviews")
    entry_fee: EntryFee = Field(default_factory=EntryFee, description="Entry cost")
    wheelchair_accessible: bool = Field(default=False)
    kid_friendly: bool = Field(default=True)
    best_time_of_day: list[str] = Field(
        default_factory=list, description="Preferred visiting slots, e.g. 'morning'"
    )

    def cost_for(self, visitor_class: Optional[str] = None) -> float:
        return self.entry_fee.for_visitor(visitor_class)


class AccessibilityRequirements(BaseModel):
    """Accessibility flags every selected place must satisfy."""

    wheelchair_access: bool = False
    kid_friendly: bool = False


class GeneticParams(BaseModel):
    """Tuning parameters for the genetic refiner."""

    population_size: int = Field(default=30, ge=2)
    generations: int = Field(default=50, ge=1)
    mutation_rate: float = Field(default=0.15, ge=0, le=1)
    crossover_rate: float = Field(default=0.8, ge=0, le=1)
    elite_size: int = Field(default=5, ge=0)
    tournament_size: int = Field(default=3, ge=1)
    stagnation_limit: int = Field(default=15, ge=1)
    max_workers: int = Field(default=8, ge=1, description="Concurrent fitness evaluations")
    seed: Optional[int] = Field(default=None, description="Seed for reproducible runs")
    # Fitness weighting
    distance_weight: float = Field(default=0.30, ge=0)
    time_weight: float = Field(default=0.25, ge=0)
    rating_weight: float = Field(default=0.35, ge=0)
    diversity_weight: float = Field(default=0.10, ge=0)


class Constraints(BaseModel):
    """Hard constraints and tuning for one optimization request."""

    start_location: Optional[Coordinates] = Field(None, description="Where the day starts")
    max_duration_minutes: Optional[float] = Field(
        default=480, gt=0, description="Total time budget; None means unbounded"
    )
    max_budget: Optional[float] = Field(
        default=None, ge=0, description="Money budget; None means unbounded"
    )
    preferred_visit_minutes: Optional[float] = Field(
        default=None, gt=0, description="Preferred visit length used by the time-fit score"
    )
    accessibility: AccessibilityRequirements = Field(default_factory=AccessibilityRequirements)
    visitor_class: Optional[str] = Field(None, description="Visitor class used to price entry fees")
    travel_mode: TravelMode = Field(default=TravelMode.DRIVING)
    start_time: Optional[str] = Field(
        default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="Day start, HH:MM"
    )
    genetic: GeneticParams = Field(default_factory=GeneticParams)


class WeightVector(BaseModel):
    """Preference weights for the multi-criteria score.

    Weights need not sum to 1; the score is normalized by their sum.
    """

    rating: float = Field(default=0.3, ge=0)
    distance: float = Field(default=0.25, ge=0)
    time: float = Field(default=0.2, ge=0)
    cost: float = Field(default=0.15, ge=0)
    popularity: float = Field(default=0.1, ge=0)
    diversity: float = Field(default=0.0, ge=0)

    @property
    def total(self) -> float:
        return self.rating + self.distance + self.time + self.cost + self.popularity + self.diversity


class TravelEstimate(BaseModel):
    """Distance and duration between two coordinates."""

    model_config = ConfigDict(frozen=True)

    distance_km: float = Field(..., ge=0)
    duration_minutes: float = Field(..., ge=0)
    is_fallback: bool = False


class RouteLeg(BaseModel):
    """A single leg of a route."""

    model_config = ConfigDict(frozen=True)

    from_place_id: Optional[str] = Field(None, description="None when leaving the start location")
    to_place_id: str
    distance_km: float = Field(..., ge=0)
    duration_minutes: float = Field(..., ge=0)
    is_fallback: bool = False


class RouteMetrics(BaseModel):
    """Aggregate metrics for an ordered route. Recomputed, never mutated."""

    model_config = ConfigDict(frozen=True)

    total_visit_time: float = 0.0
    total_travel_time: float = 0.0
    total_time: float = 0.0
    total_distance_km: float = 0.0
    total_cost: float = 0.0
    average_rating: float = 0.0
    efficiency: float = Field(default=0.0, description="Places per hour")
    place_count: int = 0
    fallback_legs: int = 0
    legs: list[RouteLeg] = Field(default_factory=list)


class ConstraintReport(BaseModel):
    """Whether a finished route satisfies each hard constraint."""

    time_valid: bool = True
    budget_valid: bool = True
    accessibility_valid: bool = True

    @property
    def overall(self) -> bool:
        return self.time_valid and self.budget_valid and self.accessibility_valid


class BoundingBox(BaseModel):
    """Padded bounding box around a set of coordinates."""

    southwest: Coordinates
    northeast: Coordinates
    center: Coordinates


class Diagnostics(BaseModel):
    """How an optimization run went."""

    places_processed: int = 0
    places_selected: int = 0
    rejections: dict[str, int] = Field(default_factory=dict)
    reason: Optional[str] = Field(None, description="Why the route is empty or partial")
    degraded: bool = Field(default=False, description="Routing provider failed, fallback used")
    interrupted: bool = Field(default=False, description="Deadline or cancellation hit")
    generations_run: Optional[int] = None
    final_fitness: Optional[float] = None
    constraint_report: ConstraintReport = Field(default_factory=ConstraintReport)
    warnings: list[RouteWarning] = Field(default_factory=list)
    bounding_box: Optional[BoundingBox] = None
    elapsed_ms: float = 0.0


class OptimizationResult(BaseModel):
    """Result of a single optimize call."""

    route: list[Place] = Field(default_factory=list, description="Places in visit order")
    metrics: RouteMetrics = Field(default_factory=RouteMetrics)
    algorithm_used: Algorithm
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)
