"""
Neighbor generators. Each move family picks what to change at random and then
returns every feasible solution reachable by that change:

- reassign: move one task (pickup and delivery) to the front of another
  vehicle's route;
- reorder: shift the pickup or the delivery of one task by one or more
  positions inside its route;
- swap: exchange the positions of two tasks of the same route.

Candidates are new `Solution` objects; the input solution is never modified.
"""

import random
from typing import Sequence

from fleetsearch.problem import NULL, is_pickup, partner
from fleetsearch.solution import Solution


def generate_neighbors(sol: Solution, rng: random.Random) -> list[Solution]:
    """
    Neighbors of `sol` from the three move families. May be empty when no
    vehicle qualifies for any move.
    """
    return [
        *reassign_neighbors(sol, rng),
        *reorder_neighbors(sol, rng),
        *swap_neighbors(sol, rng),
    ]


def reassign_neighbors(sol: Solution, rng: random.Random) -> list[Solution]:
    """
    Pick a random vehicle with at least one task and one of its tasks at
    random, and move it to every other vehicle able to carry it.
    """
    vehicles = _vehicles_with_tasks(sol, 1)
    if not vehicles:
        return []
    v = rng.choice(vehicles)
    offset = rng.randrange(sol.n_tasks_of(v))
    return reassign_candidates(sol, v, offset)


def reorder_neighbors(sol: Solution, rng: random.Random) -> list[Solution]:
    """
    Pick a random vehicle with at least two tasks and one of its tasks at
    random, and shift its pickup and delivery around.
    """
    vehicles = _vehicles_with_tasks(sol, 2)
    if not vehicles:
        return []
    v = rng.choice(vehicles)
    offset = rng.randrange(sol.n_tasks_of(v))
    return reorder_candidates(sol, v, offset)


def swap_neighbors(sol: Solution, rng: random.Random) -> list[Solution]:
    """
    Pick a random vehicle with at least two tasks and two distinct tasks of
    it, and swap them.
    """
    vehicles = _vehicles_with_tasks(sol, 2)
    if not vehicles:
        return []
    v = rng.choice(vehicles)
    offset_a, offset_b = rng.sample(range(sol.n_tasks_of(v)), 2)
    return swap_candidates(sol, v, offset_a, offset_b)


def reassign_candidates(
    sol: Solution,
    vehicle: int,
    pickup_offset: int,
) -> list[Solution]:
    """
    Unlink the `pickup_offset`-th picked up task of `vehicle` and relink it as
    the first task of every other vehicle whose capacity can carry it.
    Inserting at the front means the delivery comes right after the pickup,
    so the declared capacity is the only check needed.
    """
    inst = sol.instance
    chain = sol.chain(vehicle)
    pos_p = _pickup_positions(chain)[pickup_offset]
    pickup = chain[pos_p]
    delivery = partner(pickup)
    pos_d = chain.index(delivery, pos_p + 1)

    before_pickup = inst.start_slot(vehicle) if pos_p == 0 else chain[pos_p - 1]
    after_delivery = chain[pos_d + 1] if pos_d + 1 < len(chain) else NULL
    unlink: dict[int, int] = {}
    if pos_d == pos_p + 1:
        unlink[before_pickup] = after_delivery
    else:
        unlink[before_pickup] = chain[pos_p + 1]
        unlink[chain[pos_d - 1]] = after_delivery

    out: list[Solution] = []
    for v2 in range(inst.n_vehicles):
        if v2 == vehicle or inst.capacity[v2] < inst.weight[pickup]:
            continue
        start = inst.start_slot(v2)
        links = dict(unlink)
        links[start] = pickup
        links[pickup] = delivery
        links[delivery] = int(sol.next_slot[start])
        out.append(sol.with_links(links))
    return out


def reorder_candidates(
    sol: Solution,
    vehicle: int,
    pickup_offset: int,
) -> list[Solution]:
    """
    Shift the pickup of the `pickup_offset`-th picked up task of `vehicle`
    earlier and later, and its delivery earlier and later, one candidate per
    reachable position. Every shift starts from the current route. Pickups
    never pass their delivery and deliveries never pass their pickup; a shift
    that overloads the vehicle ends its direction.
    """
    chain = sol.chain(vehicle)
    p = _pickup_positions(chain)[pickup_offset]
    d = chain.index(partner(chain[p]), p + 1)
    n = len(chain)

    directions = [
        (p, range(p - 1, -1, -1)),  # pickup earlier
        (p, range(p + 1, d)),       # pickup later
        (d, range(d - 1, p, -1)),   # delivery earlier
        (d, range(d + 1, n)),       # delivery later
    ]
    out: list[Solution] = []
    for frm, targets in directions:
        for to in targets:
            order = _moved(chain, frm, to)
            if not _load_feasible(sol, vehicle, order):
                break
            out.append(sol.with_chains({vehicle: order}))
    return out


def swap_candidates(
    sol: Solution,
    vehicle: int,
    offset_a: int,
    offset_b: int,
) -> list[Solution]:
    """
    Exchange the pickups of two tasks of `vehicle`, and their deliveries.
    Returns a single candidate, or none if the swap overloads the vehicle.
    """
    if offset_a == offset_b:
        return []
    chain = sol.chain(vehicle)
    pickups = _pickup_positions(chain)
    pa, pb = pickups[offset_a], pickups[offset_b]
    da = chain.index(partner(chain[pa]), pa + 1)
    db = chain.index(partner(chain[pb]), pb + 1)

    order = list(chain)
    order[pa], order[pb] = chain[pb], chain[pa]
    order[da], order[db] = chain[db], chain[da]
    if not _load_feasible(sol, vehicle, order):
        return []
    return [sol.with_chains({vehicle: order})]


def _vehicles_with_tasks(sol: Solution, min_tasks: int) -> list[int]:
    return [
        v for v in range(sol.instance.n_vehicles)
        if sol.n_tasks_of(v) >= min_tasks
    ]


def _pickup_positions(chain: Sequence[int]) -> list[int]:
    return [i for i, s in enumerate(chain) if is_pickup(s)]


def _moved(chain: Sequence[int], frm: int, to: int) -> list[int]:
    """
    Copy of `chain` where the element at `frm` ends up at index `to`.
    """
    order = list(chain)
    slot = order.pop(frm)
    order.insert(to, slot)
    return order


def _load_feasible(sol: Solution, vehicle: int, order: Sequence[int]) -> bool:
    inst = sol.instance
    cap = int(inst.capacity[vehicle])
    load = 0
    for s in order:
        load += int(inst.weight[s])
        if load < 0 or load > cap:
            return False
    return True
