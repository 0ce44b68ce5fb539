"""
Run every configured search algorithm on all experiment instances.
"""

import random
from pathlib import Path

from fleetsearch.config import (
    PROJECT_ROOT,
    load_experiment,
    load_scenario,
    search_config_from_dict,
)
from fleetsearch.instances import load_instance
from fleetsearch.io import (
    ensure_dir,
    make_run_id,
    solution_to_dict,
    write_csv_rows,
    write_json,
)
from fleetsearch.metrics import summarize_solution
from fleetsearch.planner import DEFAULT_SEED, deadline_from_timeout, plan_fleet
from fleetsearch.topology import compute_distance_table


FIELDNAMES = [
    "run_id",
    "scenario",
    "seed",
    "algorithm",
    "n_tasks",
    "vehicles_used",
    "dist_total_km",
    "initial_cost",
    "cost",
    "improvement_pct",
    "iterations",
    "accepted",
    "empty_neighborhoods",
    "restarts",
    "elapsed_sec",
]


def run_search() -> None:
    exp = load_experiment(PROJECT_ROOT / "configs" / "experiment_main.yaml")
    data_dir = Path(exp.get("output", {}).get("data_dir", "data"))
    runtime = exp["runtime"]
    time_limit_sec = float(runtime["time_limit_sec"])
    outer_margin_sec = float(runtime.get("outer_margin_sec", 0.02))
    inner_margin_sec = runtime.get("safety_margin_sec")
    initial_seed = int(exp.get("initial_seed", DEFAULT_SEED))

    configs = [
        search_config_from_dict(entry, inner_margin_sec)
        for entry in exp["algorithms"]
    ]
    seeds = [int(s) for s in exp["seeds"]]

    ensure_dir(data_dir / "solutions")
    ensure_dir(data_dir / "metrics")
    rows: list[dict[str, object]] = []

    for scenario in exp["scenarios"]:
        print(f"    - scenario {scenario}")
        scen_cfg = load_scenario(PROJECT_ROOT / "configs" / scenario)
        scen_name = scen_cfg.get("name", Path(scenario).stem)

        for seed in seeds:
            print(f"        - seed {seed}")
            instance_yaml = (
                data_dir / "instances" / scen_name / f"seed{seed}" / "instance.yaml"
            )
            G, tasks, vehicles = load_instance(instance_yaml)
            distances = compute_distance_table(G)

            for cfg in configs:
                run_id = make_run_id(scen_name, seed, cfg.algorithm)
                out_dir = ensure_dir(data_dir / "solutions" / run_id)
                sol, met = plan_fleet(
                    tasks,
                    vehicles,
                    distances,
                    cfg,
                    deadline_from_timeout(time_limit_sec, outer_margin_sec),
                    seed=initial_seed,
                    rng=random.Random(seed),
                )
                sol.check_invariants()
                summary = summarize_solution(sol)
                initial_cost = float(met["initial_cost"])
                improvement = (
                    100.0 * (initial_cost - sol.cost) / initial_cost
                    if initial_cost > 0 else 0.0
                )
                print(
                    f"            {cfg.algorithm}: "
                    f"{initial_cost:.1f} -> {sol.cost:.1f} "
                    f"({met['iterations']} iterations)"
                )

                write_json(
                    out_dir / "solution.json",
                    {
                        **solution_to_dict(sol),
                        "scenario": scen_name,
                        "seed": int(seed),
                        "run_id": run_id,
                    },
                )
                write_json(
                    out_dir / "metrics.json",
                    {"run_id": run_id, "summary": summary, "search": met},
                )
                rows.append(
                    {
                        "run_id": run_id,
                        "scenario": scen_name,
                        "seed": int(seed),
                        "algorithm": cfg.algorithm,
                        "n_tasks": summary["n_tasks"],
                        "vehicles_used": summary["vehicles_used"],
                        "dist_total_km": summary["dist_total_km"],
                        "initial_cost": initial_cost,
                        "cost": float(sol.cost),
                        "improvement_pct": improvement,
                        "iterations": met["iterations"],
                        "accepted": met["accepted"],
                        "empty_neighborhoods": met["empty_neighborhoods"],
                        "restarts": met["restarts"],
                        "elapsed_sec": met["elapsed_sec"],
                    }
                )

    write_csv_rows(
        data_dir / "metrics" / "search_runs.csv",
        rows,
        fieldnames=FIELDNAMES,
    )


def main() -> None:
    run_search()


if __name__ == "__main__":
    main()
