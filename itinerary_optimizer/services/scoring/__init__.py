"""Scoring service module."""

from .service import (
    RouteState,
    ScoreBreakdown,
    ScoringModel,
    combine,
    cost_fit_score,
    distance_score,
    diversity_score,
    popularity_score,
    rating_score,
    time_fit_score,
)

__all__ = [
    "RouteState",
    "ScoreBreakdown",
    "ScoringModel",
    "combine",
    "cost_fit_score",
    "distance_score",
    "diversity_score",
    "popularity_score",
    "rating_score",
    "time_fit_score",
]
