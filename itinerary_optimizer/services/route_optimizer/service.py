"""Route optimizer entry point.

Validates the request, dispatches to the selected strategy, evaluates the
resulting route and assembles diagnostics. Only invalid input raises;
infeasible constraints, provider outages and per-individual genetic failures
come back as (possibly empty) results with diagnostics.
"""

import logging
import math
import random
import time
from abc import ABC, abstractmethod
from typing import Sequence

from itinerary_optimizer.exceptions import InvalidInputError
from itinerary_optimizer.models import (
    Algorithm,
    Constraints,
    Diagnostics,
    OptimizationResult,
    Place,
    RouteMetrics,
    RouteWarning,
    WarningType,
    WeightVector,
)
from itinerary_optimizer.services.route_optimizer.construction import (
    AdvancedGreedyStrategy,
    NearestNeighborStrategy,
)
from itinerary_optimizer.services.route_optimizer.evaluator import RouteEvaluator, check_constraints
from itinerary_optimizer.services.route_optimizer.genetic import GeneticRefiner
from itinerary_optimizer.services.scoring import ScoringModel
from itinerary_optimizer.services.travel_estimator import TravelEstimator
from itinerary_optimizer.utils.deadline import Deadline
from itinerary_optimizer.utils.geo import bounding_box

logger = logging.getLogger(__name__)

HIGH_TRAVEL_SHARE = 0.6
LATE_FINISH_MINUTES = 20 * 60


def validate_request(places: Sequence[Place], weights: WeightVector) -> None:
    """Reject malformed input before any strategy runs.

    Pydantic validates at construction; this re-checks values that can slip
    through ``model_construct`` or NaN inputs.
    """
    if not places:
        raise InvalidInputError("At least one place is required", field="places")

    seen: set[str] = set()
    for i, place in enumerate(places):
        field = f"places[{i}]"
        if place.place_id in seen:
            raise InvalidInputError(f"Duplicate place_id '{place.place_id}'", field=f"{field}.place_id")
        seen.add(place.place_id)

        lat, lng = place.coordinates.lat, place.coordinates.lng
        if not (math.isfinite(lat) and math.isfinite(lng)) or abs(lat) > 90 or abs(lng) > 180:
            raise InvalidInputError(
                f"Invalid coordinates ({lat}, {lng}) for '{place.name}'", field=f"{field}.coordinates"
            )
        duration = place.visit_duration_minutes
        if not math.isfinite(duration) or duration <= 0:
            raise InvalidInputError(
                f"Visit duration must be positive for '{place.name}'",
                field=f"{field}.visit_duration_minutes",
            )

    for name, value in weights.model_dump().items():
        if not math.isfinite(value) or value < 0:
            raise InvalidInputError(f"Weight '{name}' must be a non-negative number", field=f"weights.{name}")


def build_warnings(
    route: Sequence[Place],
    places_processed: int,
    metrics: RouteMetrics,
    constraints: Constraints,
) -> list[RouteWarning]:
    warnings = []
    skipped = places_processed - len(route)
    if skipped > 0:
        warnings.append(RouteWarning(
            type=WarningType.INCOMPLETE_ROUTE,
            message=f"{skipped} places were skipped due to constraints",
        ))
    if metrics.total_time > 0 and metrics.total_travel_time > metrics.total_time * HIGH_TRAVEL_SHARE:
        warnings.append(RouteWarning(
            type=WarningType.HIGH_TRAVEL_TIME,
            message="This route involves significant travel time. Consider grouping places by area.",
        ))
    if constraints.start_time and route:
        hours, minutes = (int(part) for part in constraints.start_time.split(":"))
        if hours * 60 + minutes + metrics.total_time > LATE_FINISH_MINUTES:
            warnings.append(RouteWarning(
                type=WarningType.LATE_FINISH,
                message="This route finishes after 20:00. Some places might be closed.",
            ))
    return warnings


class RouteOptimizerService(ABC):
    """Abstract base class for itinerary optimization."""

    @abstractmethod
    async def optimize(
        self,
        places: Sequence[Place],
        constraints: Constraints | None = None,
        weights: WeightVector | None = None,
        algorithm: Algorithm | str | None = Algorithm.ADVANCED_GREEDY,
        deadline: Deadline | None = None,
    ) -> OptimizationResult:
        pass


class ItineraryOptimizerService(RouteOptimizerService):
    """Selects and orders places with greedy, nearest-neighbor or genetic search."""

    def __init__(self, estimator: TravelEstimator | None = None, rng: random.Random | None = None) -> None:
        self._estimator = estimator or TravelEstimator()
        self._scoring = ScoringModel(self._estimator)
        self._evaluator = RouteEvaluator(self._estimator)
        self._greedy = AdvancedGreedyStrategy(self._estimator, self._scoring)
        self._nearest = NearestNeighborStrategy(self._estimator)
        self._rng = rng

    @property
    def estimator(self) -> TravelEstimator:
        return self._estimator

    @property
    def evaluator(self) -> RouteEvaluator:
        return self._evaluator

    async def optimize(
        self,
        places: Sequence[Place],
        constraints: Constraints | None = None,
        weights: WeightVector | None = None,
        algorithm: Algorithm | str | None = Algorithm.ADVANCED_GREEDY,
        deadline: Deadline | None = None,
    ) -> OptimizationResult:
        started = time.perf_counter()
        constraints = constraints or Constraints()
        weights = weights or WeightVector()
        validate_request(places, weights)

        resolved, recognised = Algorithm.parse(algorithm)
        warnings: list[RouteWarning] = []
        if not recognised:
            logger.warning(f"[ROUTE] Unknown algorithm {algorithm!r}, using {resolved.value}")
            warnings.append(RouteWarning(
                type=WarningType.UNKNOWN_ALGORITHM,
                message=f"Unknown algorithm '{algorithm}', used {resolved.value}",
            ))

        logger.info(f"[ROUTE] Optimizing {len(places)} places with {resolved.value}")
        diagnostics = Diagnostics(places_processed=len(places))

        if resolved == Algorithm.NEAREST_NEIGHBOR:
            built = await self._nearest.build(places, constraints, weights, deadline)
            route, state = built.route, built.state
            diagnostics.reason = built.reason
            diagnostics.interrupted = built.interrupted
        elif resolved == Algorithm.GENETIC:
            refiner = GeneticRefiner(self._estimator, self._greedy, self._nearest, rng=self._rng)
            refined = await refiner.refine(places, constraints, weights, deadline)
            route, state = refined.route, refined.state
            diagnostics.rejections = dict(refined.excluded)
            diagnostics.generations_run = refined.generations_run
            diagnostics.final_fitness = refined.fitness
            diagnostics.interrupted = refined.interrupted
            if len(route) < len(places):
                diagnostics.reason = "remaining places did not fit the constraints in the best ordering"
        else:
            built = await self._greedy.build(places, constraints, weights, deadline)
            route, state = built.route, built.state
            diagnostics.rejections = dict(built.rejections)
            diagnostics.reason = built.reason
            diagnostics.interrupted = built.interrupted

        metrics = await self._evaluator.evaluate_for(route, constraints)
        diagnostics.places_selected = len(route)
        diagnostics.constraint_report = check_constraints(route, metrics, constraints)
        diagnostics.degraded = self._estimator.has_provider and metrics.fallback_legs > 0
        diagnostics.bounding_box = bounding_box([place.coordinates for place in route])

        warnings.extend(build_warnings(route, len(places), metrics, constraints))
        if diagnostics.degraded:
            warnings.append(RouteWarning(
                type=WarningType.DEGRADED_ROUTING,
                message=f"{metrics.fallback_legs} legs were estimated without the routing provider",
            ))
        if diagnostics.interrupted:
            warnings.append(RouteWarning(
                type=WarningType.INTERRUPTED,
                message="Optimization stopped early; returning the best route found so far",
            ))
        diagnostics.warnings = warnings

        if state.visit_time + state.travel_time != metrics.total_time:
            logger.warning("[ROUTE] Incremental totals differ from evaluated metrics")

        diagnostics.elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"[ROUTE] {resolved.value}: {len(route)}/{len(places)} places, "
            f"{metrics.total_time:.0f} min, {metrics.total_distance_km:.1f} km"
        )
        return OptimizationResult(
            route=route,
            metrics=metrics,
            algorithm_used=resolved,
            diagnostics=diagnostics,
        )
