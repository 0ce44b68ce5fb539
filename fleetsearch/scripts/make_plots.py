"""
Make plots for the experiment results.
"""

from collections import defaultdict
from pathlib import Path

from fleetsearch.config import PROJECT_ROOT, load_experiment
from fleetsearch.instances import load_instance
from fleetsearch.io import ensure_dir, read_json
from fleetsearch.plotting import (
    plot_best_cost_traces,
    plot_comparison_boxplots,
    plot_routes,
)


def make_plots() -> None:
    exp = load_experiment(PROJECT_ROOT / "configs" / "experiment_main.yaml")
    data_dir = Path(exp.get("output", {}).get("data_dir", "data"))
    plots_dir = ensure_dir(data_dir / "plots")
    routes_dir = ensure_dir(plots_dir / "routes")
    traces_dir = ensure_dir(plots_dir / "traces")

    traces: dict[str, dict[str, list[float]]] = defaultdict(dict)
    sols_root = data_dir / "solutions"
    if sols_root.exists():
        for sol_dir in sorted(sols_root.iterdir()):
            sol_json = sol_dir / "solution.json"
            met_json = sol_dir / "metrics.json"
            if not sol_json.exists() or not met_json.exists():
                continue
            sol = read_json(sol_json)
            scen, seed = sol.get("scenario"), sol.get("seed")
            if scen is None or seed is None:
                continue
            inst_yaml = data_dir / "instances" / str(scen) / f"seed{seed}" / "instance.yaml"
            if not inst_yaml.exists():
                continue
            G, _, _ = load_instance(inst_yaml)
            plot_routes(G, sol, routes_dir / f"{sol.get('run_id', sol_dir.name)}.png")

            search = read_json(met_json)["search"]
            traces[f"{scen}__seed{seed}"][search["algorithm"]] = search["best_history"]

    for key, by_algo in traces.items():
        plot_best_cost_traces(by_algo, traces_dir / f"{key}.png")

    runs_csv = data_dir / "metrics" / "search_runs.csv"
    if runs_csv.exists():
        plot_comparison_boxplots(
            metrics_csv_paths=[runs_csv],
            out_png=plots_dir / "comparison_boxplots.png",
            value_columns=["cost", "improvement_pct", "iterations", "elapsed_sec"],
        )


def main() -> None:
    make_plots()


if __name__ == "__main__":
    main()
