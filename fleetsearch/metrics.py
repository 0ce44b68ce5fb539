"""
Functions to compute the metrics of a solution.
"""

from typing import Any

from fleetsearch.solution import Solution


def route_metrics(sol: Solution, vehicle: int) -> dict[str, float]:
    """
    Distance driven, number of tasks, peak load and cost of one vehicle.
    """
    inst = sol.instance
    D = inst.distances.matrix
    slots = [inst.start_slot(vehicle), *sol.chain(vehicle)]
    dist = 0.0
    if len(slots) > 1:
        locs = inst.location[slots]
        dist = float(D[locs[:-1], locs[1:]].sum())
    loads = sol.loads(vehicle)
    return {
        "dist_km": dist,
        "n_tasks": float(len(loads) // 2),
        "peak_load": float(max(loads, default=0)),
        "capacity": float(inst.capacity[vehicle]),
        "cost": float(inst.cost_per_km[vehicle]) * dist,
    }


def summarize_solution(sol: Solution) -> dict[str, Any]:
    """
    Summarize the global metrics of a solution.
    """
    per_vehicle = {
        veh.id: route_metrics(sol, v)
        for v, veh in enumerate(sol.instance.vehicles)
    }
    used = [m for m in per_vehicle.values() if m["n_tasks"] > 0]
    return {
        "n_tasks": sol.instance.n_tasks,
        "n_vehicles": sol.instance.n_vehicles,
        "vehicles_used": len(used),
        "dist_total_km": sum(m["dist_km"] for m in per_vehicle.values()),
        "cost": float(sol.cost),
        "per_vehicle": per_vehicle,
    }
