"""
Immutable problem instance: tasks, vehicles and the flat slot layout the
solution representation indexes into.

Slots are ordered as
    [task_0 pickup, task_0 delivery, ..., task_{T-1} delivery,
     vehicle_0 start, ..., vehicle_{V-1} start]
so a pickup slot is even, its delivery is the next odd slot, and the start
slot of vehicle v is 2T + v.
"""

from dataclasses import dataclass
from typing import Sequence
import numpy as np

from fleetsearch.models import Infeasible, Task, Vehicle
from fleetsearch.topology import DistanceTable


NULL = -1  # End of chain marker in the successor array.


@dataclass(frozen=True, eq=False)
class ProblemInstance:
    """
    Static data shared by reference between every solution of a search.
    `weight` and `location` are indexed by slot; `capacity` and `cost_per_km`
    by vehicle.
    """
    tasks: tuple[Task, ...]
    vehicles: tuple[Vehicle, ...]
    distances: DistanceTable
    weight: np.ndarray
    location: np.ndarray
    capacity: np.ndarray
    cost_per_km: np.ndarray

    @property
    def n_tasks(self) -> int:
        return len(self.tasks)

    @property
    def n_vehicles(self) -> int:
        return len(self.vehicles)

    @property
    def n_task_slots(self) -> int:
        return 2 * len(self.tasks)

    @property
    def n_slots(self) -> int:
        return 2 * len(self.tasks) + len(self.vehicles)

    def start_slot(self, vehicle: int) -> int:
        return 2 * len(self.tasks) + vehicle

    def task_of(self, slot: int) -> Task:
        return self.tasks[slot // 2]


def is_pickup(slot: int) -> bool:
    return slot % 2 == 0


def partner(slot: int) -> int:
    """
    The other half of the task a pickup or delivery slot belongs to.
    """
    return slot ^ 1


def build_problem_instance(
    tasks: Sequence[Task],
    vehicles: Sequence[Vehicle],
    distances: DistanceTable,
) -> ProblemInstance:
    """
    Build the problem instance. Raises `Infeasible` if some task is heavier
    than every vehicle's capacity, and `ValueError` if a location is missing
    from the distance table.
    """
    tasks = tuple(tasks)
    vehicles = tuple(vehicles)
    max_capacity = max((int(v.capacity) for v in vehicles), default=0)
    for t in tasks:
        if int(t.weight) > max_capacity:
            raise Infeasible(
                f"task {t.id} weighs {t.weight} but the largest vehicle "
                f"capacity is {max_capacity}"
            )

    n_task_slots = 2 * len(tasks)
    n_slots = n_task_slots + len(vehicles)
    weight = np.zeros(n_slots, dtype=np.int64)
    location = np.zeros(n_slots, dtype=np.int64)
    for i, t in enumerate(tasks):
        weight[2 * i] = int(t.weight)
        weight[2 * i + 1] = -int(t.weight)
        location[2 * i] = distances.idx(t.origin)
        location[2 * i + 1] = distances.idx(t.destination)
    capacity = np.zeros(len(vehicles), dtype=np.int64)
    cost_per_km = np.zeros(len(vehicles), dtype=np.float64)
    for v, veh in enumerate(vehicles):
        location[n_task_slots + v] = distances.idx(veh.home)
        capacity[v] = int(veh.capacity)
        cost_per_km[v] = float(veh.cost_per_km)

    for arr in (weight, location, capacity, cost_per_km):
        arr.setflags(write=False)

    return ProblemInstance(
        tasks=tasks,
        vehicles=vehicles,
        distances=distances,
        weight=weight,
        location=location,
        capacity=capacity,
        cost_per_km=cost_per_km,
    )
