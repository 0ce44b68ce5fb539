"""
Data models for the problem entities.
"""

from dataclasses import dataclass
from numbers import Integral
from typing import Hashable, Literal


# A location is any hashable node of the topology graph (usually a city name).
Location = Hashable


class Infeasible(ValueError):
    """
    Raised when a task is heavier than the capacity of every vehicle, which
    makes the whole instance unsolvable.
    """


@dataclass(frozen=True)
class Task:
    """
    A task to carry `weight` units from `origin` to `destination`.
    """
    id: int
    weight: int
    origin: Location
    destination: Location

    def __post_init__(self) -> None:
        if not _is_int(self.weight) or self.weight <= 0:
            raise ValueError(f"task {self.id}: weight must be a positive int")


@dataclass(frozen=True)
class Vehicle:
    """
    A vehicle with a home city (where its route starts), a maximum load it can
    carry and a cost per unit of distance driven.
    """
    id: int
    home: Location
    capacity: int
    cost_per_km: float

    def __post_init__(self) -> None:
        if not _is_int(self.capacity) or self.capacity <= 0:
            raise ValueError(f"vehicle {self.id}: capacity must be a positive int")
        if float(self.cost_per_km) < 0:
            raise ValueError(f"vehicle {self.id}: cost_per_km must be >= 0")


@dataclass(frozen=True)
class Action:
    """
    A step of a vehicle route, either picking up or delivering a task.
    """
    kind: Literal["pickup", "deliver"]
    task: Task

    @property
    def location(self) -> Location:
        if self.kind == "pickup":
            return self.task.origin
        return self.task.destination


def _is_int(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)
