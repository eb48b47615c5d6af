"""Route metrics and constraint checks.

Construction strategies grow a ``RouteState`` one place at a time with
``append_place``; ``RouteEvaluator.evaluate`` replays a finished route
through the same function, so batch and incremental totals are identical.
"""

import logging
from typing import Sequence

from itinerary_optimizer.models import (
    ConstraintReport,
    Constraints,
    Coordinates,
    Place,
    RouteLeg,
    RouteMetrics,
    TravelEstimate,
    TravelMode,
)
from itinerary_optimizer.services.scoring import RouteState
from itinerary_optimizer.services.travel_estimator import TravelEstimator

logger = logging.getLogger(__name__)


def append_place(
    state: RouteState,
    place: Place,
    leg: TravelEstimate | None,
    visitor_class: str | None = None,
) -> None:
    """Add ``place`` to ``state`` reached via ``leg`` (None for the first stop
    when there is no start location)."""
    if leg is not None:
        state.travel_time += leg.duration_minutes
        state.distance_km += leg.distance_km
        if leg.is_fallback:
            state.fallback_legs += 1
        state.legs.append(RouteLeg(
            from_place_id=state.selected[-1].place_id if state.selected else None,
            to_place_id=place.place_id,
            distance_km=leg.distance_km,
            duration_minutes=leg.duration_minutes,
            is_fallback=leg.is_fallback,
        ))
    state.visit_time += place.visit_duration_minutes
    state.cost += place.cost_for(visitor_class)
    state.rating_sum += place.rating
    state.selected.append(place)
    state.current_location = place.coordinates


def metrics_from_state(state: RouteState) -> RouteMetrics:
    count = len(state.selected)
    if count == 0:
        return RouteMetrics()
    total_time = state.visit_time + state.travel_time
    return RouteMetrics(
        total_visit_time=state.visit_time,
        total_travel_time=state.travel_time,
        total_time=total_time,
        total_distance_km=state.distance_km,
        total_cost=state.cost,
        average_rating=state.rating_sum / count,
        efficiency=count / (total_time / 60) if total_time > 0 else 0.0,
        place_count=count,
        fallback_legs=state.fallback_legs,
        legs=list(state.legs),
    )


def check_constraints(
    route: Sequence[Place],
    metrics: RouteMetrics,
    constraints: Constraints,
) -> ConstraintReport:
    """Whether a finished route satisfies each hard constraint."""
    time_valid = (
        constraints.max_duration_minutes is None
        or metrics.total_time <= constraints.max_duration_minutes
    )
    budget_valid = constraints.max_budget is None or metrics.total_cost <= constraints.max_budget
    accessibility_valid = all(accessibility_violation(p, constraints) is None for p in route)
    return ConstraintReport(
        time_valid=time_valid,
        budget_valid=budget_valid,
        accessibility_valid=accessibility_valid,
    )


def accessibility_violation(place: Place, constraints: Constraints) -> str | None:
    """Name of the accessibility requirement ``place`` fails, if any."""
    required = constraints.accessibility
    if required.wheelchair_access and not place.wheelchair_accessible:
        return "accessibility_required"
    if required.kid_friendly and not place.kid_friendly:
        return "not_kid_friendly"
    return None


class RouteEvaluator:
    """Computes aggregate metrics for ordered routes."""

    def __init__(self, estimator: TravelEstimator) -> None:
        self._estimator = estimator

    async def replay(
        self,
        route: Sequence[Place],
        start_location: Coordinates | None = None,
        mode: TravelMode = TravelMode.DRIVING,
        visitor_class: str | None = None,
    ) -> RouteState:
        state = RouteState(current_location=start_location)
        for place in route:
            leg = None
            if state.current_location is not None:
                leg = await self._estimator.estimate(state.current_location, place.coordinates, mode)
            append_place(state, place, leg, visitor_class)
        return state

    async def evaluate(
        self,
        route: Sequence[Place],
        start_location: Coordinates | None = None,
        mode: TravelMode = TravelMode.DRIVING,
        visitor_class: str | None = None,
    ) -> RouteMetrics:
        """Metrics for ``route`` visited in order, starting at ``start_location``."""
        if not route:
            return RouteMetrics()
        state = await self.replay(route, start_location, mode, visitor_class)
        return metrics_from_state(state)

    async def evaluate_for(self, route: Sequence[Place], constraints: Constraints) -> RouteMetrics:
        return await self.evaluate(
            route,
            start_location=constraints.start_location,
            mode=constraints.travel_mode,
            visitor_class=constraints.visitor_class,
        )
