"""
Functions to generate and load instances for a given scenario.
"""

from pathlib import Path
from typing import Any
import networkx as nx
import numpy as np

from fleetsearch.io import (
    ensure_dir,
    read_yaml,
    tasks_from_dicts,
    vehicles_from_dicts,
    write_manifest,
    write_yaml,
)
from fleetsearch.models import Task, Vehicle
from fleetsearch.topology import build_topology, topology_from_dict, topology_to_dict


def generate_instances_for_scenario(
    scenario_cfg: dict,
    seeds: list[int],
    data_dir: str | Path,
) -> list[Path]:
    """
    Generate instances for a given scenario with a list of seeds. For each seed,
    writes in the data directory the complete instance in instance.yaml and
    useful metadata in manifest.json.

    data/
        instances/
            <scenario_name>/
                seed<seed0>/
                    instance.yaml
                    manifest.json
                seed<seed1>/
                    ...
    """
    scenario_name = scenario_cfg.get("name", "scenario")
    base_dir = ensure_dir(Path(data_dir) / "instances" / scenario_name)
    paths: list[Path] = []
    for seed in seeds:
        instance = generate_instance(scenario_cfg, int(seed))
        out_dir = ensure_dir(base_dir / f"seed{seed}")
        write_yaml(out_dir / "instance.yaml", instance)
        write_manifest(
            out_dir / "manifest.json",
            {
                "scenario": scenario_name,
                "seed": int(seed),
                "counts": {
                    "n_cities": len(instance["topology"]["cities"]),
                    "n_tasks": len(instance["tasks"]),
                    "n_vehicles": len(instance["vehicles"]),
                },
            },
        )
        paths.append(out_dir / "instance.yaml")
    return paths


def generate_instance(scenario_cfg: dict, seed: int) -> dict[str, Any]:
    """
    Generate an instance for a given scenario with a given seed. Task weights
    are capped at the largest drawn vehicle capacity, so generated instances
    are always feasible.
    """
    rng = np.random.default_rng(seed)

    topo_cfg = scenario_cfg["topology"]
    vehicles_cfg = scenario_cfg["vehicles"]
    tasks_cfg = scenario_cfg["tasks"]

    G = build_topology(
        int(topo_cfg["n_cities"]),
        float(topo_cfg["radius"]),
        seed=seed,
        size_km=float(topo_cfg.get("size_km", 100.0)),
    )
    cities = sorted(G.nodes)

    cap_lo, cap_hi = map(int, vehicles_cfg["capacity"])
    cpk_lo, cpk_hi = map(float, vehicles_cfg["cost_per_km"])
    vehicles = []
    for vid in range(int(vehicles_cfg["n_vehicles"])):
        vehicles.append(
            {
                "id": vid,
                "home": str(cities[int(rng.integers(len(cities)))]),
                "capacity": int(rng.integers(cap_lo, cap_hi + 1)),
                "cost_per_km": round(float(rng.uniform(cpk_lo, cpk_hi)), 2),
            }
        )
    max_capacity = max(v["capacity"] for v in vehicles)

    w_lo, w_hi = map(int, tasks_cfg["weight"])
    tasks = []
    for tid in range(int(tasks_cfg["n_tasks"])):
        origin, destination = rng.choice(len(cities), size=2, replace=False)
        tasks.append(
            {
                "id": tid,
                "weight": min(int(rng.integers(w_lo, w_hi + 1)), max_capacity),
                "origin": str(cities[int(origin)]),
                "destination": str(cities[int(destination)]),
            }
        )

    return {
        "name": scenario_cfg.get("name", "scenario"),
        "seed": int(seed),
        "topology": topology_to_dict(G),
        "vehicles": vehicles,
        "tasks": tasks,
    }


def instance_from_dict(
    instance: dict[str, Any],
) -> tuple[nx.Graph, list[Task], list[Vehicle]]:
    """
    Rebuild the city graph, tasks and vehicles of an instance dict.
    """
    for k in ["topology", "vehicles", "tasks"]:
        if k not in instance:
            raise ValueError(f"instance missing key: {k}")
    G = topology_from_dict(instance["topology"])
    return G, tasks_from_dicts(instance["tasks"]), vehicles_from_dicts(instance["vehicles"])


def load_instance(path: str | Path) -> tuple[nx.Graph, list[Task], list[Vehicle]]:
    return instance_from_dict(read_yaml(path))
