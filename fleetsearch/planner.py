"""
Entry points used by planning and bidding code: plan a fleet for a committed
task set, and price the marginal cost of one more task.
"""

import logging
import random
import time
from typing import Any, Sequence

from fleetsearch.models import Task, Vehicle
from fleetsearch.problem import build_problem_instance
from fleetsearch.search import SearchConfig, run_search
from fleetsearch.solution import Solution
from fleetsearch.topology import DistanceTable


logger = logging.getLogger(__name__)

DEFAULT_SEED = 17


def deadline_from_timeout(timeout_sec: float, margin_sec: float = 0.02) -> float:
    """
    Absolute deadline for a call allowed to last `timeout_sec`, keeping 0.1%
    of the budget and `margin_sec` for the caller's own work.
    """
    return time.time() + 0.999 * timeout_sec - margin_sec


def plan_fleet(
    tasks: Sequence[Task],
    vehicles: Sequence[Vehicle],
    distances: DistanceTable,
    config: SearchConfig,
    deadline: float,
    *,
    seed: int = DEFAULT_SEED,
    rng: random.Random | None = None,
) -> tuple[Solution, dict[str, Any]]:
    """
    Build the instance, a seeded initial solution, and search it until
    `deadline`. Raises `Infeasible` if some task can't be carried by any
    vehicle.
    """
    instance = build_problem_instance(tasks, vehicles, distances)
    initial = Solution.initial(instance, seed)
    return run_search(initial, deadline, config, rng)


class MarginalCostComputer:
    """
    Keeps the committed tasks of a fleet with their best known solution and
    prices candidate tasks as the extra cost of serving them too.

    Usage per auction round: `estimate(task, deadline)`, then `commit()` if
    the task was won or `reject()` otherwise.
    """

    def __init__(
        self,
        vehicles: Sequence[Vehicle],
        distances: DistanceTable,
        config: SearchConfig,
        seed: int = DEFAULT_SEED,
    ):
        self.vehicles = list(vehicles)
        self.distances = distances
        self.config = config
        self.seed = seed
        self.max_capacity = max((v.capacity for v in self.vehicles), default=0)
        self.tasks: list[Task] = []
        self.solution: Solution | None = None
        self._pending: tuple[Task, Solution] | None = None

    @property
    def committed_cost(self) -> float:
        return 0.0 if self.solution is None else float(self.solution.cost)

    def estimate(self, task: Task, deadline: float) -> float | None:
        """
        Marginal cost of adding `task` to the committed set, or None when no
        vehicle can carry it. The solution with the task is kept pending until
        `commit` or `reject`.
        """
        if task.weight > self.max_capacity:
            logger.info("task %s is too heavy for the fleet", task.id)
            self._pending = None
            return None
        sol, _ = plan_fleet(
            [*self.tasks, task],
            self.vehicles,
            self.distances,
            self.config,
            deadline,
            seed=self.seed,
        )
        self._pending = (task, sol)
        marginal = sol.cost - self.committed_cost
        logger.debug("task %s: marginal cost %.2f", task.id, marginal)
        return marginal

    def commit(self) -> None:
        """
        Add the last estimated task to the committed set.
        """
        if self._pending is None:
            raise ValueError("no pending task to commit")
        task, sol = self._pending
        self.tasks.append(task)
        self.solution = sol
        self._pending = None

    def reject(self) -> None:
        self._pending = None

    def plan(self, deadline: float) -> Solution:
        """
        Final plan for the committed tasks. Falls back to the best solution
        kept from the bidding rounds when the new search does no better.
        """
        sol, _ = plan_fleet(
            self.tasks,
            self.vehicles,
            self.distances,
            self.config,
            deadline,
            seed=self.seed,
        )
        if self.solution is not None and self.solution.cost < sol.cost:
            return self.solution
        return sol
