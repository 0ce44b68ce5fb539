"""
Write the seeded instances of every scenario of an experiment under
<data_dir>/instances/.
"""

from pathlib import Path

from fleetsearch.config import PROJECT_ROOT, load_experiment, load_scenario
from fleetsearch.instances import generate_instances_for_scenario


def generate_instances(
    experiment: str | Path = PROJECT_ROOT / "configs" / "experiment_main.yaml",
) -> list[Path]:
    exp = load_experiment(experiment)
    data_dir = Path(exp.get("output", {}).get("data_dir", "data"))
    seeds = [int(s) for s in exp["seeds"]]

    written: list[Path] = []
    for scenario in exp["scenarios"]:
        scen_cfg = load_scenario(PROJECT_ROOT / "configs" / scenario)
        paths = generate_instances_for_scenario(scen_cfg, seeds, data_dir)
        print(
            f"    - {scen_cfg.get('name', scenario)}: "
            f"{len(paths)} instances, "
            f"{scen_cfg['tasks']['n_tasks']} tasks / "
            f"{scen_cfg['vehicles']['n_vehicles']} vehicles each"
        )
        written.extend(paths)
    return written


def main() -> None:
    generate_instances()


if __name__ == "__main__":
    main()
