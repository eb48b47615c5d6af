"""Command-line entry point.

Reads a JSON request and prints the optimization result as JSON.

Usage: itinerary-optimizer request.json --algorithm genetic --seed 7

The request file holds ``places`` (list), and optionally ``constraints`` and
``weights`` objects using the model field names.
"""

import argparse
import asyncio
import json
import logging
import random
import sys

from pydantic import ValidationError

from itinerary_optimizer.exceptions import InvalidInputError
from itinerary_optimizer.models import Algorithm, Constraints, OptimizationResult, Place, WeightVector
from itinerary_optimizer.services import InMemoryDistanceCache, OSRMRoutingProvider, TravelEstimator
from itinerary_optimizer.services.route_optimizer import ItineraryOptimizerService
from itinerary_optimizer.utils.deadline import Deadline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="itinerary-optimizer",
        description="Plan a single-day sightseeing route from a JSON request.",
    )
    parser.add_argument("request", help="Path to the JSON request file")
    parser.add_argument(
        "--algorithm",
        default=Algorithm.ADVANCED_GREEDY.value,
        help="advancedGreedy, nearestNeighbor or genetic",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the genetic refiner")
    parser.add_argument("--osrm", action="store_true", help="Use the OSRM routing provider")
    parser.add_argument("--osrm-url", default=None, help="OSRM base URL (defaults to OSRM_URL)")
    parser.add_argument("--time-limit", type=float, default=None, help="Deadline in seconds")
    parser.add_argument("--cache-size", type=int, default=None, help="Distance cache capacity")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


async def run(args: argparse.Namespace, payload: dict) -> OptimizationResult:
    places = [Place.model_validate(item) for item in payload.get("places", [])]
    constraints = Constraints.model_validate(payload.get("constraints", {}))
    weights = WeightVector.model_validate(payload.get("weights", {}))

    provider = OSRMRoutingProvider(base_url=args.osrm_url) if args.osrm else None
    estimator = TravelEstimator(cache=InMemoryDistanceCache(capacity=args.cache_size), provider=provider)
    rng = random.Random(args.seed) if args.seed is not None else None
    service = ItineraryOptimizerService(estimator, rng=rng)
    deadline = Deadline(seconds=args.time_limit) if args.time_limit is not None else None
    try:
        return await service.optimize(places, constraints, weights, args.algorithm, deadline)
    finally:
        if provider is not None:
            await provider.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        with open(args.request, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except FileNotFoundError:
        print(f"Error: File '{args.request}' not found", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in '{args.request}': {e}", file=sys.stderr)
        return 1

    try:
        result = asyncio.run(run(args, payload))
    except ValidationError as e:
        print(f"Error: Invalid request: {e}", file=sys.stderr)
        return 2
    except InvalidInputError as e:
        print(f"Error: {e.error.message}", file=sys.stderr)
        return 2

    print(result.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
