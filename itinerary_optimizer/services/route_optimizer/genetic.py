"""Genetic refinement of visit orderings.

Individuals are permutations of the candidate pool (genes are indices into
the pool). An individual's route is its longest feasible prefix: places are
taken in permutation order until the next one would break the time or money
budget, and the rest is left out of the fitness calculation. Places that fail
an accessibility requirement are removed from the pool up front.

Each generation: elitism, tournament selection, order crossover (OX), swap or
reversal mutation. The run stops after ``generations`` generations, after
``stagnation_limit`` generations without improvement, or when the deadline
expires, and returns the fittest individual seen.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Sequence

from itinerary_optimizer.models import Constraints, GeneticParams, Place, WeightVector
from itinerary_optimizer.services.route_optimizer.construction import (
    AdvancedGreedyStrategy,
    NearestNeighborStrategy,
    check_feasibility,
)
from itinerary_optimizer.services.route_optimizer.evaluator import (
    accessibility_violation,
    append_place,
    metrics_from_state,
)
from itinerary_optimizer.services.scoring import RouteState, rating_score
from itinerary_optimizer.services.travel_estimator import TravelEstimator
from itinerary_optimizer.utils.deadline import Deadline

logger = logging.getLogger(__name__)

FITNESS_FLOOR = 0.01
REFERENCE_LEG_KM = 100.0

Individual = tuple[int, ...]


class MalformedIndividualError(ValueError):
    """Raised when an individual is not a permutation of the pool."""


@dataclass
class GeneticResult:
    route: list[Place]
    state: RouteState
    fitness: float
    generations_run: int
    places_processed: int
    excluded: dict[str, int]
    interrupted: bool = False


def order_crossover(parent_a: Sequence[int], parent_b: Sequence[int], rng: random.Random) -> list[int]:
    """OX: keep a random slice of ``parent_a`` in place, fill the other
    positions with ``parent_b``'s genes in order, skipping duplicates."""
    size = len(parent_a)
    if size < 2:
        return list(parent_a)
    start, end = sorted(rng.sample(range(size), 2))
    child: list[int | None] = [None] * size
    child[start:end + 1] = parent_a[start:end + 1]
    taken = set(parent_a[start:end + 1])
    fill = (gene for gene in parent_b if gene not in taken)
    for i in range(size):
        if child[i] is None:
            child[i] = next(fill)
    return child  # type: ignore[return-value]


def mutate(individual: Sequence[int], rng: random.Random) -> list[int]:
    """Swap two random positions, or reverse a random segment of length >= 2."""
    mutated = list(individual)
    size = len(mutated)
    if size < 2:
        return mutated
    if rng.random() < 0.5:
        i, j = rng.sample(range(size), 2)
        mutated[i], mutated[j] = mutated[j], mutated[i]
    else:
        start, end = sorted(rng.sample(range(size), 2))
        mutated[start:end + 1] = reversed(mutated[start:end + 1])
    return mutated


def tournament_select(
    scored: Sequence[tuple[Individual, float]],
    rng: random.Random,
    size: int = 3,
) -> Individual:
    contenders = [scored[rng.randrange(len(scored))] for _ in range(size)]
    return max(contenders, key=lambda item: item[1])[0]


def seed_permutation(route: Sequence[Place], pool: Sequence[Place]) -> Individual:
    """Permutation that starts with ``route`` and continues with the rest of
    the pool in input order."""
    index_by_id = {place.place_id: i for i, place in enumerate(pool)}
    head = [index_by_id[place.place_id] for place in route if place.place_id in index_by_id]
    seen = set(head)
    return tuple(head + [i for i in range(len(pool)) if i not in seen])


class GeneticRefiner:
    """Population-based search over orderings of a fixed place pool."""

    def __init__(
        self,
        estimator: TravelEstimator,
        greedy: AdvancedGreedyStrategy | None = None,
        nearest_neighbor: NearestNeighborStrategy | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._estimator = estimator
        self._greedy = greedy or AdvancedGreedyStrategy(estimator)
        self._nearest = nearest_neighbor or NearestNeighborStrategy(estimator)
        self._rng = rng

    async def refine(
        self,
        places: Sequence[Place],
        constraints: Constraints,
        weights: WeightVector | None = None,
        deadline: Deadline | None = None,
    ) -> GeneticResult:
        params = constraints.genetic
        rng = self._rng or random.Random(params.seed)

        excluded: dict[str, int] = {}
        pool: list[Place] = []
        for place in places:
            violation = accessibility_violation(place, constraints)
            if violation is None:
                pool.append(place)
            else:
                excluded[violation] = excluded.get(violation, 0) + 1

        if len(pool) < 2:
            # Nothing to reorder
            seed = await self._greedy.build(pool, constraints, weights, deadline)
            fitness = self._fitness_from_state(seed.state, constraints, params) if seed.route else FITNESS_FLOOR
            return GeneticResult(
                route=seed.route,
                state=seed.state,
                fitness=fitness,
                generations_run=0,
                places_processed=len(places),
                excluded=excluded,
                interrupted=seed.interrupted,
            )

        fitness_cache: dict[Individual, float] = {}
        semaphore = asyncio.Semaphore(params.max_workers)

        async def evaluate(individual: Individual) -> float:
            if individual in fitness_cache:
                return fitness_cache[individual]
            async with semaphore:
                try:
                    value = await self._fitness(individual, pool, constraints, params)
                except Exception as e:
                    logger.debug(f"[GENETIC] Fitness evaluation failed: {e}")
                    value = FITNESS_FLOOR
            fitness_cache[individual] = value
            return value

        population = await self._initial_population(pool, constraints, weights, params, rng, deadline)

        best: Individual = population[0]
        best_fitness = -1.0
        stagnant = 0
        generations_run = 0
        interrupted = False

        for generation in range(params.generations):
            if deadline is not None and deadline.expired:
                interrupted = True
                break

            # Barrier: every individual is scored before the reduction
            fitness_values = await asyncio.gather(*(evaluate(ind) for ind in population))
            scored = sorted(zip(population, fitness_values), key=lambda item: item[1], reverse=True)
            generations_run = generation + 1

            if scored[0][1] > best_fitness:
                best, best_fitness = scored[0]
                stagnant = 0
            else:
                stagnant += 1
                if stagnant >= params.stagnation_limit:
                    logger.info(f"[GENETIC] Stagnated after {generations_run} generations")
                    break

            if generation == params.generations - 1:
                break
            population = self._next_generation(scored, params, rng)

        state = await self._decode(best, pool, constraints)
        if best_fitness < 0:
            # Interrupted before the first generation was scored
            best_fitness = self._fitness_from_state(state, constraints, params)
        logger.info(
            f"[GENETIC] Done: generations={generations_run}, fitness={best_fitness:.4f}, "
            f"stops={len(state.selected)}/{len(pool)}"
        )
        return GeneticResult(
            route=list(state.selected),
            state=state,
            fitness=max(best_fitness, FITNESS_FLOOR),
            generations_run=generations_run,
            places_processed=len(places),
            excluded=excluded,
            interrupted=interrupted,
        )

    async def _initial_population(
        self,
        pool: list[Place],
        constraints: Constraints,
        weights: WeightVector | None,
        params: GeneticParams,
        rng: random.Random,
        deadline: Deadline | None,
    ) -> list[Individual]:
        greedy = await self._greedy.build(pool, constraints, weights, deadline)
        nearest = await self._nearest.build(pool, constraints, weights, deadline)
        population = [
            seed_permutation(greedy.route, pool),
            seed_permutation(nearest.route, pool),
        ]
        indices = list(range(len(pool)))
        while len(population) < params.population_size:
            shuffled = indices[:]
            rng.shuffle(shuffled)
            population.append(tuple(shuffled))
        return population[:params.population_size]

    def _next_generation(
        self,
        scored: list[tuple[Individual, float]],
        params: GeneticParams,
        rng: random.Random,
    ) -> list[Individual]:
        elite_count = min(params.elite_size, params.population_size)
        next_population = [individual for individual, _ in scored[:elite_count]]
        while len(next_population) < params.population_size:
            parent_a = tournament_select(scored, rng, params.tournament_size)
            parent_b = tournament_select(scored, rng, params.tournament_size)
            if rng.random() < params.crossover_rate:
                child = order_crossover(parent_a, parent_b, rng)
            else:
                child = list(parent_a)
            if rng.random() < params.mutation_rate:
                child = mutate(child, rng)
            next_population.append(tuple(child))
        return next_population

    async def _decode(self, individual: Individual, pool: Sequence[Place], constraints: Constraints) -> RouteState:
        """Longest feasible prefix of ``individual`` as a route state."""
        if sorted(individual) != list(range(len(pool))):
            raise MalformedIndividualError(f"not a permutation of {len(pool)} places: {individual}")

        state = RouteState(current_location=constraints.start_location)
        for gene in individual:
            place = pool[gene]
            leg = None
            if state.current_location is not None:
                leg = await self._estimator.estimate(
                    state.current_location, place.coordinates, constraints.travel_mode
                )
            if not check_feasibility(place, state, leg, constraints).feasible:
                break
            append_place(state, place, leg, constraints.visitor_class)
        return state

    async def _fitness(
        self,
        individual: Individual,
        pool: Sequence[Place],
        constraints: Constraints,
        params: GeneticParams,
    ) -> float:
        state = await self._decode(individual, pool, constraints)
        return self._fitness_from_state(state, constraints, params)

    @staticmethod
    def _fitness_from_state(state: RouteState, constraints: Constraints, params: GeneticParams) -> float:
        metrics = metrics_from_state(state)
        if metrics.place_count == 0:
            return FITNESS_FLOOR

        if metrics.legs:
            mean_leg = metrics.total_distance_km / len(metrics.legs)
            distance_component = max(0.0, 1 - mean_leg / REFERENCE_LEG_KM)
        else:
            distance_component = 1.0

        # Visit time only, so extra travel never raises fitness
        if constraints.max_duration_minutes is not None:
            time_component = min(1.0, metrics.total_visit_time / constraints.max_duration_minutes)
        else:
            time_component = metrics.total_visit_time / metrics.total_time if metrics.total_time > 0 else 0.0

        rating_component = rating_score(metrics.average_rating)
        categories = {place.category for place in state.selected}
        diversity_component = len(categories) / metrics.place_count

        total_weight = (
            params.distance_weight + params.time_weight + params.rating_weight + params.diversity_weight
        )
        if total_weight <= 0:
            return FITNESS_FLOOR
        fitness = (
            params.distance_weight * distance_component
            + params.time_weight * time_component
            + params.rating_weight * rating_component
            + params.diversity_weight * diversity_component
        ) / total_weight
        return max(FITNESS_FLOOR, fitness)
