"""
Solution representation: per-vehicle routes encoded as an array-backed linked
list over the slots of a `ProblemInstance`, together with its cost.
"""

import random
from dataclasses import dataclass
from typing import Mapping, Sequence
import numpy as np

from fleetsearch.models import Action
from fleetsearch.problem import NULL, ProblemInstance, is_pickup, partner


@dataclass(eq=False)
class Solution:
    """
    `next_slot[s]` is the slot visited right after slot `s`, or `NULL` at the
    end of a chain. Vehicle v's route is the chain reachable from its start
    slot. A solution is never edited once handed out: moves clone it, edit
    the clone's `next_slot` and recompute the cost.
    """
    instance: ProblemInstance
    next_slot: np.ndarray
    cost: float = 0.0

    @classmethod
    def initial(cls, instance: ProblemInstance, seed: int) -> "Solution":
        """
        Build a first feasible solution. Tasks are taken in a seeded random
        order and each one is appended, pickup then delivery, to the route of
        a random vehicle whose capacity can carry it. Since the delivery
        directly follows the pickup, the vehicle's declared capacity is enough
        to keep the load feasible.
        """
        rng = random.Random(seed)
        next_slot = np.full(instance.n_slots, NULL, dtype=np.int64)
        tails = [instance.start_slot(v) for v in range(instance.n_vehicles)]

        order = list(range(instance.n_tasks))
        rng.shuffle(order)
        for i in order:
            pickup = 2 * i
            delivery = partner(pickup)
            while True:
                v = rng.randrange(instance.n_vehicles)
                if instance.capacity[v] >= instance.weight[pickup]:
                    break
            next_slot[tails[v]] = pickup
            next_slot[pickup] = delivery
            tails[v] = delivery

        sol = cls(instance=instance, next_slot=next_slot)
        sol.cost = sol.compute_cost()
        return sol

    def compute_cost(self) -> float:
        """
        Sum over vehicles of cost per km times the distance driven along the
        chain, starting from the vehicle's home.
        """
        inst = self.instance
        D = inst.distances.matrix
        total = 0.0
        for v in range(inst.n_vehicles):
            slots = [inst.start_slot(v), *self.chain(v)]
            if len(slots) < 2:
                continue
            locs = inst.location[slots]
            dist = float(D[locs[:-1], locs[1:]].sum())
            total += float(inst.cost_per_km[v]) * dist
        return total

    def clone(self) -> "Solution":
        """
        Copy of the solution sharing the instance; only `next_slot` is
        duplicated.
        """
        return Solution(
            instance=self.instance,
            next_slot=self.next_slot.copy(),
            cost=self.cost,
        )

    def with_links(self, links: Mapping[int, int]) -> "Solution":
        """
        Clone, set `next_slot[s] = t` for each item of `links` and recompute
        the cost.
        """
        sol = self.clone()
        for s, t in links.items():
            sol.next_slot[s] = t
        sol.cost = sol.compute_cost()
        return sol

    def with_chains(self, chains: Mapping[int, Sequence[int]]) -> "Solution":
        """
        Clone and relink the route of each vehicle in `chains` to visit the
        given slots in order, then recompute the cost.
        """
        sol = self.clone()
        for v, slots in chains.items():
            prev = self.instance.start_slot(v)
            for s in slots:
                sol.next_slot[prev] = s
                prev = s
            sol.next_slot[prev] = NULL
        sol.cost = sol.compute_cost()
        return sol

    def chain(self, vehicle: int) -> list[int]:
        """
        Task slots visited by `vehicle`, in order, excluding its start slot.
        """
        out: list[int] = []
        limit = self.instance.n_task_slots
        s = int(self.next_slot[self.instance.start_slot(vehicle)])
        while s != NULL:
            out.append(s)
            if len(out) > limit:
                raise AssertionError(f"cycle in the route of vehicle {vehicle}")
            s = int(self.next_slot[s])
        return out

    def loads(self, vehicle: int) -> list[int]:
        """
        Load carried by `vehicle` right after each slot of its chain.
        """
        out: list[int] = []
        load = 0
        for s in self.chain(vehicle):
            load += int(self.instance.weight[s])
            out.append(load)
        return out

    def n_tasks_of(self, vehicle: int) -> int:
        return len(self.chain(vehicle)) // 2

    def to_routes(self) -> dict[int, list[Action]]:
        """
        Ordered pickup and delivery actions of every vehicle, keyed by
        vehicle id.
        """
        inst = self.instance
        routes: dict[int, list[Action]] = {}
        for v, veh in enumerate(inst.vehicles):
            routes[veh.id] = [
                Action(
                    kind="pickup" if is_pickup(s) else "deliver",
                    task=inst.task_of(s),
                )
                for s in self.chain(v)
            ]
        return routes

    def check_invariants(self) -> None:
        """
        Raise AssertionError if the solution breaks any structural
        invariant: single ownership of every slot, pickup before delivery on
        the same route, load within [0, capacity], no cycles, and a cost
        matching a fresh computation.
        """
        inst = self.instance
        if self.next_slot.shape != (inst.n_slots,):
            raise AssertionError("successor array has the wrong size")
        owner: dict[int, int] = {}
        position: dict[int, int] = {}
        for v in range(inst.n_vehicles):
            load = 0
            for pos, s in enumerate(self.chain(v)):
                if not 0 <= s < inst.n_task_slots:
                    raise AssertionError(f"vehicle {v} visits non task slot {s}")
                if s in owner:
                    raise AssertionError(f"slot {s} is reached twice")
                owner[s] = v
                position[s] = pos
                load += int(inst.weight[s])
                if load < 0 or load > int(inst.capacity[v]):
                    raise AssertionError(
                        f"vehicle {v} load {load} out of [0, {inst.capacity[v]}]"
                    )
        if len(owner) != inst.n_task_slots:
            raise AssertionError(
                f"{inst.n_task_slots - len(owner)} slots are unreachable"
            )
        for i in range(inst.n_tasks):
            pickup = 2 * i
            delivery = partner(pickup)
            if owner[pickup] != owner[delivery]:
                raise AssertionError(f"task {i} is split between two vehicles")
            if position[pickup] >= position[delivery]:
                raise AssertionError(f"task {i} is delivered before pickup")
        if not np.isclose(self.cost, self.compute_cost()):
            raise AssertionError(
                f"stale cost {self.cost}, expected {self.compute_cost()}"
            )


def initial_solution(instance: ProblemInstance, seed: int) -> Solution:
    return Solution.initial(instance, seed)
