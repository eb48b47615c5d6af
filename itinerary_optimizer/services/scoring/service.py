"""Multi-criteria scoring of candidate places.

Each criterion maps to [0, 1]; the total is the weight-normalized sum. Scores
depend only on their inputs, so two identical calls give identical results.
"""

import math
from dataclasses import dataclass, field
from typing import Sequence

from itinerary_optimizer.models import Constraints, Coordinates, Place, RouteLeg, WeightVector
from itinerary_optimizer.services.travel_estimator import TravelEstimator

NEUTRAL_SCORE = 0.5
DISTANCE_DECAY_KM = 100.0
BUDGET_SHARE_PER_PLACE = 0.3
POPULARITY_RATING_SHARE = 0.7
REFERENCE_REVIEW_COUNT = 100
DIVERSITY_PENALTY_PER_REPEAT = 0.25
DIVERSITY_FLOOR = 0.2


@dataclass
class RouteState:
    """Running state of a partially built route."""
    selected: list[Place] = field(default_factory=list)
    current_location: Coordinates | None = None
    visit_time: float = 0.0
    travel_time: float = 0.0
    distance_km: float = 0.0
    cost: float = 0.0
    rating_sum: float = 0.0
    fallback_legs: int = 0
    legs: list[RouteLeg] = field(default_factory=list)


@dataclass
class ScoreBreakdown:
    """Per-criterion scores and their weighted total."""
    rating: float
    distance: float
    time: float
    cost: float
    popularity: float
    diversity: float
    total: float


def rating_score(rating: float) -> float:
    """Map a 1-5 rating onto 0-1."""
    return (rating - 1) / 4


def distance_score(distance_km: float | None) -> float:
    if distance_km is None:
        return NEUTRAL_SCORE
    return max(0.0, 1 - distance_km / DISTANCE_DECAY_KM)


def time_fit_score(duration: float, preferred: float | None) -> float:
    if not preferred:
        return NEUTRAL_SCORE
    return max(0.0, 1 - abs(duration - preferred) / preferred)


def cost_fit_score(cost: float, remaining_budget: float | None) -> float:
    """Penalize places that take more than 30% of what is left of the budget."""
    if remaining_budget is None:
        return 1.0
    if remaining_budget <= 0:
        return 1.0 if cost <= 0 else 0.0
    return max(0.0, 1 - cost / (remaining_budget * BUDGET_SHARE_PER_PLACE))


def popularity_score(rating: float, review_count: int) -> float:
    reviews = min(1.0, math.log(review_count + 1) / math.log(REFERENCE_REVIEW_COUNT + 1))
    return POPULARITY_RATING_SHARE * rating_score(rating) + (1 - POPULARITY_RATING_SHARE) * reviews


def diversity_score(category: str, selected: Sequence[Place]) -> float:
    occurrences = sum(1 for p in selected if p.category == category)
    if occurrences == 0:
        return 1.0
    return max(DIVERSITY_FLOOR, 1 - DIVERSITY_PENALTY_PER_REPEAT * occurrences)


def combine(scores: dict[str, float], weights: WeightVector) -> float:
    """Weighted sum normalized by the weight total. Zero weights score 0."""
    total_weight = weights.total
    if total_weight <= 0:
        return 0.0
    weighted = sum(getattr(weights, criterion) * value for criterion, value in scores.items())
    if total_weight == 1.0:
        return weighted
    return weighted / total_weight


class ScoringModel:
    """Scores a candidate against the current partial route."""

    def __init__(self, estimator: TravelEstimator) -> None:
        self._estimator = estimator

    async def score(
        self,
        candidate: Place,
        state: RouteState,
        constraints: Constraints,
        weights: WeightVector,
    ) -> ScoreBreakdown:
        travel_km = None
        if state.current_location is not None:
            leg = await self._estimator.estimate(
                state.current_location, candidate.coordinates, constraints.travel_mode
            )
            travel_km = leg.distance_km
        return self.score_with_distance(candidate, state, constraints, weights, travel_km)

    @staticmethod
    def score_with_distance(
        candidate: Place,
        state: RouteState,
        constraints: Constraints,
        weights: WeightVector,
        travel_km: float | None,
    ) -> ScoreBreakdown:
        remaining_budget = None
        if constraints.max_budget is not None:
            remaining_budget = constraints.max_budget - state.cost

        scores = {
            "rating": rating_score(candidate.rating),
            "distance": distance_score(travel_km),
            "time": time_fit_score(candidate.visit_duration_minutes, constraints.preferred_visit_minutes),
            "cost": cost_fit_score(candidate.cost_for(constraints.visitor_class), remaining_budget),
            "popularity": popularity_score(candidate.rating, candidate.review_count),
            "diversity": diversity_score(candidate.category, state.selected),
        }
        return ScoreBreakdown(**scores, total=combine(scores, weights))
