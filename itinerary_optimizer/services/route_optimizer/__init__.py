"""Route optimizer service module.

Construction strategies, genetic refinement, route evaluation and the
``optimize`` entry point.
"""

from .construction import (
    AdvancedGreedyStrategy,
    ConstructionResult,
    ConstructionStrategy,
    FeasibilityCheck,
    NearestNeighborStrategy,
    check_feasibility,
)
from .evaluator import RouteEvaluator, append_place, check_constraints, metrics_from_state
from .genetic import GeneticRefiner, GeneticResult, mutate, order_crossover, tournament_select
from .service import ItineraryOptimizerService, RouteOptimizerService, validate_request

__all__ = [
    "AdvancedGreedyStrategy",
    "ConstructionResult",
    "ConstructionStrategy",
    "FeasibilityCheck",
    "GeneticRefiner",
    "GeneticResult",
    "ItineraryOptimizerService",
    "NearestNeighborStrategy",
    "RouteEvaluator",
    "RouteOptimizerService",
    "append_place",
    "check_constraints",
    "check_feasibility",
    "metrics_from_state",
    "mutate",
    "order_crossover",
    "tournament_select",
    "validate_request",
]
