"""Deterministic route construction strategies.

Both strategies grow a route one stop at a time from the current location:

- AdvancedGreedy filters candidates by the hard constraints (time, budget,
  accessibility) and takes the best multi-criteria score.
- NearestNeighbor takes the closest candidate by estimated travel distance,
  with no constraint filtering. It is a fast baseline and a genetic seed.

Ties go to the earliest candidate in input order.
"""

import logging
import math
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from itinerary_optimizer.models import Constraints, Place, RouteMetrics, TravelEstimate, WeightVector
from itinerary_optimizer.services.route_optimizer.evaluator import (
    accessibility_violation,
    append_place,
    metrics_from_state,
)
from itinerary_optimizer.services.scoring import RouteState, ScoringModel
from itinerary_optimizer.services.travel_estimator import TravelEstimator
from itinerary_optimizer.utils.deadline import Deadline

logger = logging.getLogger(__name__)

TIME_EXCEEDED = "time_exceeded"
BUDGET_EXCEEDED = "budget_exceeded"


@dataclass
class FeasibilityCheck:
    feasible: bool
    reason: str | None = None


@dataclass
class ConstructionResult:
    """Route built by a construction strategy plus its running totals."""
    route: list[Place]
    state: RouteState
    places_processed: int
    rejections: dict[str, int] = field(default_factory=dict)
    interrupted: bool = False
    reason: str | None = None

    @property
    def metrics(self) -> RouteMetrics:
        return metrics_from_state(self.state)


def check_feasibility(
    place: Place,
    state: RouteState,
    leg: TravelEstimate | None,
    constraints: Constraints,
) -> FeasibilityCheck:
    """Whether ``place`` can be appended to ``state`` without breaking a hard
    constraint. The travel leg to the place counts against the time budget."""
    violation = accessibility_violation(place, constraints)
    if violation is not None:
        return FeasibilityCheck(False, violation)

    if constraints.max_duration_minutes is not None:
        travel = leg.duration_minutes if leg is not None else 0.0
        # Same association as RouteMetrics.total_time
        new_total = (state.visit_time + place.visit_duration_minutes) + (state.travel_time + travel)
        if new_total > constraints.max_duration_minutes:
            return FeasibilityCheck(False, TIME_EXCEEDED)

    if constraints.max_budget is not None:
        if state.cost + place.cost_for(constraints.visitor_class) > constraints.max_budget:
            return FeasibilityCheck(False, BUDGET_EXCEEDED)

    return FeasibilityCheck(True)


class ConstructionStrategy(ABC):
    """Base class for single-pass route builders."""

    name: str = ""

    def __init__(self, estimator: TravelEstimator) -> None:
        self._estimator = estimator

    @abstractmethod
    async def build(
        self,
        places: Sequence[Place],
        constraints: Constraints,
        weights: WeightVector | None = None,
        deadline: Deadline | None = None,
    ) -> ConstructionResult:
        pass

    async def _leg(self, state: RouteState, place: Place, constraints: Constraints) -> TravelEstimate | None:
        if state.current_location is None:
            return None
        return await self._estimator.estimate(
            state.current_location, place.coordinates, constraints.travel_mode
        )


class AdvancedGreedyStrategy(ConstructionStrategy):
    """Best-next selection by multi-criteria score among feasible candidates."""

    name = "advanced-greedy"

    def __init__(self, estimator: TravelEstimator, scoring: ScoringModel | None = None) -> None:
        super().__init__(estimator)
        self._scoring = scoring or ScoringModel(estimator)

    async def build(
        self,
        places: Sequence[Place],
        constraints: Constraints,
        weights: WeightVector | None = None,
        deadline: Deadline | None = None,
    ) -> ConstructionResult:
        weights = weights or WeightVector()
        state = RouteState(current_location=constraints.start_location)
        remaining = list(places)
        rejections: dict[str, int] = {}
        interrupted = False

        while remaining:
            if deadline is not None and deadline.expired:
                interrupted = True
                break

            best_index = -1
            best_score = -math.inf
            best_leg: TravelEstimate | None = None
            step_rejections: Counter[str] = Counter()

            for i, candidate in enumerate(remaining):
                leg = None
                if accessibility_violation(candidate, constraints) is None:
                    leg = await self._leg(state, candidate, constraints)
                check = check_feasibility(candidate, state, leg, constraints)
                if not check.feasible:
                    step_rejections[check.reason] += 1
                    continue

                breakdown = await self._scoring.score(candidate, state, constraints, weights)
                # Strict comparison keeps the earliest candidate on ties
                if breakdown.total > best_score:
                    best_score = breakdown.total
                    best_index = i
                    best_leg = leg

            if best_index < 0:
                rejections = dict(step_rejections)
                break

            place = remaining.pop(best_index)
            append_place(state, place, best_leg, constraints.visitor_class)
            logger.debug(f"[GREEDY] Picked {place.name} (score={best_score:.3f})")

        return ConstructionResult(
            route=list(state.selected),
            state=state,
            places_processed=len(places),
            rejections=rejections,
            interrupted=interrupted,
            reason=_termination_reason(places, state, rejections, interrupted),
        )


class NearestNeighborStrategy(ConstructionStrategy):
    """Closest-next selection by estimated travel distance."""

    name = "nearest-neighbor"

    async def build(
        self,
        places: Sequence[Place],
        constraints: Constraints,
        weights: WeightVector | None = None,
        deadline: Deadline | None = None,
    ) -> ConstructionResult:
        state = RouteState(current_location=constraints.start_location)
        remaining = list(places)
        interrupted = False

        while remaining:
            if deadline is not None and deadline.expired:
                interrupted = True
                break

            best_index = 0
            best_leg = await self._leg(state, remaining[0], constraints)
            if best_leg is not None:
                for i in range(1, len(remaining)):
                    leg = await self._leg(state, remaining[i], constraints)
                    if leg.distance_km < best_leg.distance_km:
                        best_index = i
                        best_leg = leg

            place = remaining.pop(best_index)
            append_place(state, place, best_leg, constraints.visitor_class)

        return ConstructionResult(
            route=list(state.selected),
            state=state,
            places_processed=len(places),
            interrupted=interrupted,
            reason=_termination_reason(places, state, {}, interrupted),
        )


def _termination_reason(
    places: Sequence[Place],
    state: RouteState,
    rejections: dict[str, int],
    interrupted: bool,
) -> str | None:
    if not places:
        return "no candidate places"
    if interrupted:
        return "deadline reached before all candidates were considered"
    if len(state.selected) == len(places):
        return None
    if rejections:
        summary = ", ".join(f"{reason}={count}" for reason, count in sorted(rejections.items()))
        prefix = "no candidate satisfies the constraints" if not state.selected else "remaining candidates infeasible"
        return f"{prefix} ({summary})"
    return None
