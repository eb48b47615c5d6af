"""Unit tests for the optimize entry point."""

import random
from unittest.mock import AsyncMock

import numpy as np
import pytest

from itinerary_optimizer.exceptions import InvalidInputError
from itinerary_optimizer.models import (
    Algorithm,
    Constraints,
    Coordinates,
    ErrorCode,
    GeneticParams,
    RouteWarning,
    WarningType,
    WeightVector,
)
from itinerary_optimizer.services.route_optimizer import ItineraryOptimizerService
from itinerary_optimizer.services.routing_provider import ProviderMatrix, RoutingProvider
from itinerary_optimizer.services.travel_estimator import TravelEstimator
from itinerary_optimizer.utils.deadline import Deadline

from conftest import lat_offset_km, make_place

JAIPUR_START = Coordinates(lat=26.9124, lng=75.7873)


def _warning_types(result) -> set[WarningType]:
    return {warning.type for warning in result.diagnostics.warnings}


class TestValidation:
    """Tests for input validation."""

    def setup_method(self) -> None:
        self.service = ItineraryOptimizerService(TravelEstimator(min_call_interval=0))

    @pytest.mark.asyncio
    async def test_empty_places(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            await self.service.optimize([])
        assert exc_info.value.error.code == ErrorCode.INVALID_INPUT
        assert exc_info.value.field == "places"

    @pytest.mark.asyncio
    async def test_duplicate_ids(self) -> None:
        with pytest.raises(InvalidInputError, match="Duplicate"):
            await self.service.optimize([make_place("a"), make_place("a", lat=1.0)])

    @pytest.mark.asyncio
    async def test_negative_weight(self) -> None:
        weights = WeightVector.model_construct(
            rating=-1.0, distance=0.25, time=0.2, cost=0.15, popularity=0.1, diversity=0.0
        )
        with pytest.raises(InvalidInputError) as exc_info:
            await self.service.optimize([make_place("a")], weights=weights)
        assert exc_info.value.field == "weights.rating"

    @pytest.mark.asyncio
    async def test_nan_coordinates(self) -> None:
        place = make_place("a").model_copy(
            update={"coordinates": Coordinates.model_construct(lat=float("nan"), lng=0.0)}
        )
        with pytest.raises(InvalidInputError) as exc_info:
            await self.service.optimize([place])
        assert exc_info.value.field == "places[0].coordinates"


class TestOptimize:
    """Tests for ItineraryOptimizerService.optimize."""

    def setup_method(self) -> None:
        self.estimator = TravelEstimator(min_call_interval=0)
        self.service = ItineraryOptimizerService(self.estimator)

    @pytest.mark.asyncio
    async def test_default_is_advanced_greedy(self, jaipur_places) -> None:
        result = await self.service.optimize(jaipur_places, Constraints(start_location=JAIPUR_START))
        assert result.algorithm_used == Algorithm.ADVANCED_GREEDY
        assert result.diagnostics.places_processed == 8
        assert result.diagnostics.places_selected == len(result.route)
        assert result.diagnostics.constraint_report.overall
        assert result.diagnostics.bounding_box is not None
        assert result.diagnostics.degraded is False

    @pytest.mark.asyncio
    async def test_unknown_algorithm_falls_back(self, jaipur_places) -> None:
        result = await self.service.optimize(jaipur_places, algorithm="simulatedAnnealing")
        assert result.algorithm_used == Algorithm.ADVANCED_GREEDY
        assert WarningType.UNKNOWN_ALGORITHM in _warning_types(result)
        assert all(isinstance(warning, RouteWarning) for warning in result.diagnostics.warnings)

    @pytest.mark.asyncio
    async def test_algorithm_names_are_case_insensitive(self, jaipur_places) -> None:
        result = await self.service.optimize(jaipur_places, algorithm="NearestNeighbor")
        assert result.algorithm_used == Algorithm.NEAREST_NEIGHBOR
        assert WarningType.UNKNOWN_ALGORITHM not in _warning_types(result)

    @pytest.mark.asyncio
    async def test_nearest_neighbor_may_break_constraints(self, jaipur_places) -> None:
        constraints = Constraints(start_location=JAIPUR_START, max_duration_minutes=120)
        result = await self.service.optimize(jaipur_places, constraints, algorithm=Algorithm.NEAREST_NEIGHBOR)
        assert len(result.route) == 8
        assert not result.diagnostics.constraint_report.time_valid

    @pytest.mark.asyncio
    async def test_genetic_seeded_result(self, jaipur_places) -> None:
        constraints = Constraints(
            start_location=JAIPUR_START,
            max_duration_minutes=360,
            max_budget=300,
            genetic=GeneticParams(generations=10, population_size=12),
        )
        service = ItineraryOptimizerService(self.estimator, rng=random.Random(5))
        result = await service.optimize(jaipur_places, constraints, algorithm="genetic")
        assert result.algorithm_used == Algorithm.GENETIC
        assert result.diagnostics.constraint_report.overall
        assert 1 <= result.diagnostics.generations_run <= 10
        assert result.diagnostics.final_fitness >= 0.01
        assert WarningType.INCOMPLETE_ROUTE in _warning_types(result)

    @pytest.mark.asyncio
    async def test_infeasible_budget_is_empty_result(self, jaipur_places) -> None:
        paid = [p for p in jaipur_places if p.cost_for() > 0]
        result = await self.service.optimize(paid, Constraints(max_budget=0))
        assert result.route == []
        assert result.metrics.total_time == 0
        assert result.diagnostics.rejections == {"budget_exceeded": len(paid)}
        assert result.diagnostics.reason is not None
        assert result.diagnostics.bounding_box is None

    @pytest.mark.asyncio
    async def test_high_travel_warning(self) -> None:
        places = [
            make_place("a", lat=0.0, duration=10),
            make_place("b", lat=lat_offset_km(50), duration=10),
        ]
        result = await self.service.optimize(places, Constraints(max_duration_minutes=None))
        assert WarningType.HIGH_TRAVEL_TIME in _warning_types(result)

    @pytest.mark.asyncio
    async def test_late_finish_warning(self) -> None:
        places = [make_place("a", duration=120)]
        result = await self.service.optimize(places, Constraints(start_time="19:00"))
        assert WarningType.LATE_FINISH in _warning_types(result)

    @pytest.mark.asyncio
    async def test_failing_provider_marks_degraded(self, jaipur_places) -> None:
        provider = AsyncMock(spec=RoutingProvider)
        provider.matrix.side_effect = RuntimeError("provider down")
        service = ItineraryOptimizerService(TravelEstimator(provider=provider, min_call_interval=0))
        result = await service.optimize(jaipur_places, Constraints(start_location=JAIPUR_START))
        assert result.route
        assert result.diagnostics.degraded is True
        assert result.metrics.fallback_legs > 0
        assert WarningType.DEGRADED_ROUTING in _warning_types(result)

    @pytest.mark.asyncio
    async def test_unroutable_provider_cells_mark_degraded(self, jaipur_places) -> None:
        provider = AsyncMock(spec=RoutingProvider)
        provider.matrix.side_effect = lambda origins, destinations, mode: ProviderMatrix(
            distances_km=np.full((len(origins), len(destinations)), np.nan),
            durations_minutes=np.full((len(origins), len(destinations)), np.nan),
        )
        service = ItineraryOptimizerService(TravelEstimator(provider=provider, min_call_interval=0))
        result = await service.optimize(jaipur_places[:2], Constraints(start_location=JAIPUR_START))
        assert len(result.route) == 2
        assert result.diagnostics.degraded is True
        assert all(leg.is_fallback for leg in result.metrics.legs)

    @pytest.mark.asyncio
    async def test_no_provider_is_not_degraded(self, jaipur_places) -> None:
        result = await self.service.optimize(jaipur_places, Constraints(start_location=JAIPUR_START))
        assert result.metrics.fallback_legs > 0
        assert result.diagnostics.degraded is False

    @pytest.mark.asyncio
    async def test_cancelled_deadline_interrupts(self, jaipur_places) -> None:
        deadline = Deadline()
        deadline.cancel()
        for algorithm in Algorithm:
            result = await self.service.optimize(jaipur_places, algorithm=algorithm, deadline=deadline)
            assert result.diagnostics.interrupted is True
            assert WarningType.INTERRUPTED in _warning_types(result)

    @pytest.mark.asyncio
    async def test_metrics_match_reevaluation(self, jaipur_places) -> None:
        constraints = Constraints(start_location=JAIPUR_START, max_duration_minutes=300)
        result = await self.service.optimize(jaipur_places, constraints)
        metrics = await self.service.evaluator.evaluate_for(result.route, constraints)
        assert metrics == result.metrics
