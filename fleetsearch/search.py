"""
Deadline-bounded local search over the neighbor generators.

A single loop drives all the algorithms; what changes between them is the
acceptance policy deciding which neighbor becomes the current solution:

- greedy-stochastic: best neighbor with probability p, a random one otherwise;
- simulated-annealing: a random neighbor accepted with the Metropolis rule,
  with a temperature decaying linearly with the time left;
- stochastic-restart: greedy-stochastic that jumps back to a previously
  visited solution when the best cost stops improving.
"""

import logging
import random
import time
from dataclasses import asdict, dataclass
from math import exp
from operator import attrgetter
from typing import Any

from fleetsearch.moves import generate_neighbors
from fleetsearch.solution import Solution


logger = logging.getLogger(__name__)

ALGORITHMS = ("greedy-stochastic", "simulated-annealing", "stochastic-restart")

_by_cost = attrgetter("cost")


@dataclass(frozen=True)
class SearchConfig:
    """
    Algorithm selection and its parameters. `safety_margin_sec` is the time
    reserved before the deadline for leaving the loop and returning.
    """
    algorithm: str = "simulated-annealing"
    probability: float = 0.95
    temperature_start: float = 1000.0
    temperature_end: float = 100.0
    stagnation_threshold: int = 200
    reservoir_size: int = 20
    safety_margin_sec: float = 0.005

    def __post_init__(self) -> None:
        if self.algorithm not in ALGORITHMS:
            raise ValueError(
                f"unknown algorithm {self.algorithm!r}, expected one of "
                f"{', '.join(ALGORITHMS)}"
            )
        if not 0.0 <= self.probability <= 1.0:
            raise ValueError("probability must be in [0, 1]")
        if self.temperature_start <= 0 or self.temperature_end <= 0:
            raise ValueError("temperatures must be > 0")
        if self.stagnation_threshold < 1:
            raise ValueError("stagnation_threshold must be >= 1")
        if self.reservoir_size < 1:
            raise ValueError("reservoir_size must be >= 1")
        if self.safety_margin_sec < 0:
            raise ValueError("safety_margin_sec must be >= 0")


class AcceptancePolicy:
    """
    Base acceptance policy. `step` returns the next current solution and the
    neighbor to offer as best-ever; `after_step` may redirect the search to
    another solution.
    """
    name = "policy"

    def reset(self) -> None:
        pass

    def step(
        self,
        current: Solution,
        neighbors: list[Solution],
        rng: random.Random,
        fraction_left: float,
    ) -> tuple[Solution, Solution]:
        raise NotImplementedError

    def after_step(
        self,
        current: Solution,
        improved: bool,
        rng: random.Random,
    ) -> Solution | None:
        return None


class GreedyStochastic(AcceptancePolicy):
    name = "greedy-stochastic"

    def __init__(self, probability: float):
        self.probability = probability

    def step(self, current, neighbors, rng, fraction_left):
        if rng.random() < self.probability:
            nxt = min(neighbors, key=_by_cost)
        else:
            nxt = rng.choice(neighbors)
        return nxt, nxt


class SimulatedAnnealing(AcceptancePolicy):
    name = "simulated-annealing"

    def __init__(self, temperature_start: float, temperature_end: float):
        self.temperature_start = temperature_start
        self.temperature_end = temperature_end

    def temperature(self, fraction_left: float) -> float:
        return (
            self.temperature_start * fraction_left
            + self.temperature_end * (1.0 - fraction_left)
        )

    def step(self, current, neighbors, rng, fraction_left):
        best_neighbor = min(neighbors, key=_by_cost)
        cand = rng.choice(neighbors)
        delta = cand.cost - current.cost
        if delta < 0:
            return cand, best_neighbor
        if rng.random() < exp(-delta / self.temperature(fraction_left)):
            return cand, best_neighbor
        return current, best_neighbor


class StochasticRestart(GreedyStochastic):
    """
    Greedy-stochastic acceptance plus restarts. Non-improving states are
    kept in a bounded reservoir (uniform reservoir sampling); after
    `stagnation_threshold` iterations without a new best, the search jumps to
    one of them.
    """
    name = "stochastic-restart"

    def __init__(
        self,
        probability: float,
        stagnation_threshold: int,
        reservoir_size: int,
    ):
        super().__init__(probability)
        self.stagnation_threshold = stagnation_threshold
        self.reservoir_size = reservoir_size
        self.reset()

    def reset(self) -> None:
        self.stagnation = 0
        self.reservoir: list[Solution] = []
        self.n_seen = 0

    def after_step(self, current, improved, rng):
        if improved:
            self.stagnation = 0
            return None
        self.stagnation += 1
        self.n_seen += 1
        if len(self.reservoir) < self.reservoir_size:
            self.reservoir.append(current)
        else:
            j = rng.randrange(self.n_seen)
            if j < self.reservoir_size:
                self.reservoir[j] = current
        if self.stagnation > self.stagnation_threshold:
            self.stagnation = 0
            return rng.choice(self.reservoir)
        return None


def make_policy(config: SearchConfig) -> AcceptancePolicy:
    if config.algorithm == "greedy-stochastic":
        return GreedyStochastic(config.probability)
    if config.algorithm == "simulated-annealing":
        return SimulatedAnnealing(
            config.temperature_start,
            config.temperature_end,
        )
    return StochasticRestart(
        config.probability,
        config.stagnation_threshold,
        config.reservoir_size,
    )


def run_search(
    solution: Solution,
    deadline: float,
    config: SearchConfig,
    rng: random.Random | None = None,
) -> tuple[Solution, dict[str, Any]]:
    """
    Improve `solution` until `deadline` (absolute `time.time()` seconds) and
    return the best solution seen with run metrics. The loop stops at
    `deadline` minus the configured safety margin, minus three times the
    duration of the first iteration; no iteration starts after that point.
    """
    rng = rng or random.Random()
    policy = make_policy(config)
    policy.reset()

    start = time.time()
    best = current = solution
    metrics: dict[str, Any] = {
        "algorithm": policy.name,
        "config": asdict(config),
        "iterations": 0,
        "accepted": 0,
        "empty_neighborhoods": 0,
        "restarts": 0,
        "initial_cost": solution.cost,
        "best_history": [solution.cost],
    }

    if solution.instance.n_tasks == 0:
        logger.debug("no tasks, nothing to search")
        return _finish(best, metrics, start)

    limit = deadline - config.safety_margin_sec
    span = max(limit - start, 1e-9)
    logger.debug(
        "starting %s search: cost=%.2f, budget=%.3fs",
        policy.name, solution.cost, limit - start,
    )

    first = True
    while True:
        now = time.time()
        if now >= limit:
            break
        metrics["iterations"] += 1

        neighbors = generate_neighbors(current, rng)
        if neighbors:
            fraction_left = min(1.0, max(0.0, (limit - now) / span))
            nxt, offered = policy.step(current, neighbors, rng, fraction_left)
            if nxt is not current:
                metrics["accepted"] += 1
            current = nxt

            improved = offered.cost < best.cost
            if improved:
                best = offered
                metrics["best_history"].append(best.cost)

            jump = policy.after_step(current, improved, rng)
            if jump is not None:
                current = jump
                metrics["restarts"] += 1
                logger.debug("restart from cost %.2f", current.cost)
        else:
            metrics["empty_neighborhoods"] += 1

        if first:
            limit -= 3 * (time.time() - now)
            first = False

    return _finish(best, metrics, start)


def search(
    solution: Solution,
    deadline: float,
    config: SearchConfig,
    rng: random.Random | None = None,
) -> Solution:
    best, _ = run_search(solution, deadline, config, rng)
    return best


def _finish(
    best: Solution,
    metrics: dict[str, Any],
    start: float,
) -> tuple[Solution, dict[str, Any]]:
    metrics["best_cost"] = best.cost
    metrics["elapsed_sec"] = time.time() - start
    logger.info(
        "%s search finished: %d iterations, cost %.2f -> %.2f",
        metrics["algorithm"],
        metrics["iterations"],
        metrics["initial_cost"],
        best.cost,
    )
    return best, metrics
