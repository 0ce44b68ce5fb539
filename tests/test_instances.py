import csv

import pytest

from fleetsearch.config import load_experiment
from fleetsearch.instances import (
    generate_instance,
    generate_instances_for_scenario,
    instance_from_dict,
    load_instance,
)
from fleetsearch.io import (
    make_run_id,
    read_json,
    solution_to_dict,
    write_csv_rows,
    write_yaml,
)
from fleetsearch.metrics import route_metrics, summarize_solution
from fleetsearch.plotting import (
    plot_best_cost_traces,
    plot_comparison_boxplots,
    plot_routes,
)
from fleetsearch.problem import build_problem_instance
from fleetsearch.scripts.generate_instances import generate_instances
from fleetsearch.solution import Solution
from fleetsearch.topology import compute_distance_table


def test_generation_is_deterministic(random_scenario):
    assert generate_instance(random_scenario, 5) == generate_instance(random_scenario, 5)
    assert generate_instance(random_scenario, 5) != generate_instance(random_scenario, 6)


def test_generated_tasks_fit_the_fleet(random_scenario):
    inst = generate_instance(random_scenario, 3)
    max_capacity = max(v["capacity"] for v in inst["vehicles"])
    assert len(inst["tasks"]) == 8
    for t in inst["tasks"]:
        assert 1 <= t["weight"] <= max_capacity
        assert t["origin"] != t["destination"]
        assert t["origin"] in inst["topology"]["cities"]


def test_instances_written_and_loaded(tmp_path, random_scenario):
    paths = generate_instances_for_scenario(random_scenario, [1, 2], tmp_path)
    assert [p.parent.name for p in paths] == ["seed1", "seed2"]
    G, tasks, vehicles = load_instance(paths[0])
    expected = instance_from_dict(generate_instance(random_scenario, 1))
    assert set(G.nodes) == set(expected[0].nodes)
    assert tasks == expected[1]
    assert vehicles == expected[2]
    manifest = read_json(paths[0].parent / "manifest.json")
    assert manifest["counts"]["n_tasks"] == 8
    assert "created_at_utc" in manifest


def test_instance_missing_section():
    with pytest.raises(ValueError):
        instance_from_dict({"tasks": [], "vehicles": []})


def test_make_run_id():
    assert make_run_id("Small Case", 3, "simulated-annealing") == (
        "small_case__seed3__simulated-annealing"
    )


def test_solution_to_dict(make_instance, make_solution):
    inst = make_instance([(2, "B", "D")], [("A", 10, 1.0), ("C", 10, 1.0)])
    sol = make_solution(inst, {1: [0, 1]})
    d = solution_to_dict(sol)
    assert d["cost"] == pytest.approx(13.0)
    assert d["routes"]["0"] == {"home": "A", "actions": []}
    assert d["routes"]["1"]["actions"] == [
        {"kind": "pickup", "task": 0, "location": "B"},
        {"kind": "deliver", "task": 0, "location": "D"},
    ]


def test_write_csv_rows(tmp_path):
    path = tmp_path / "out" / "rows.csv"
    write_csv_rows(path, [{"a": 1, "b": 2}, {"a": 3}], fieldnames=["a", "b"])
    with path.open(encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows == [{"a": "1", "b": "2"}, {"a": "3", "b": ""}]
    with pytest.raises(ValueError):
        write_csv_rows(path, [])


def test_metrics(make_instance, make_solution):
    inst = make_instance(
        [(4, "B", "C"), (3, "B", "D")],
        [("A", 10, 2.0), ("D", 10, 1.0)],
    )
    sol = make_solution(inst, {0: [0, 2, 1, 3]})
    m = route_metrics(sol, 0)
    assert m["dist_km"] == pytest.approx(12.0)
    assert m["peak_load"] == 7
    assert m["cost"] == pytest.approx(24.0)

    summary = summarize_solution(sol)
    assert summary["vehicles_used"] == 1
    assert summary["cost"] == pytest.approx(sol.cost)
    assert summary["per_vehicle"][1]["n_tasks"] == 0


def test_plots_are_written(tmp_path, random_scenario):
    G, tasks, vehicles = instance_from_dict(generate_instance(random_scenario, 2))
    inst = build_problem_instance(tasks, vehicles, compute_distance_table(G))
    sol = Solution.initial(inst, 17)

    plot_routes(G, solution_to_dict(sol), tmp_path / "routes.png")
    plot_best_cost_traces({"a": [10.0, 8.0, 7.5]}, tmp_path / "trace.png")
    csv_path = tmp_path / "runs.csv"
    write_csv_rows(
        csv_path,
        [
            {"algorithm": "x", "cost": 1.0, "iterations": 5},
            {"algorithm": "y", "cost": 2.0, "iterations": 7},
        ],
    )
    plot_comparison_boxplots([csv_path], tmp_path / "box.png", ["cost", "iterations"])

    for name in ["routes.png", "trace.png", "box.png"]:
        assert (tmp_path / name).stat().st_size > 0


def test_generate_instances_script(tmp_path):
    exp = load_experiment()
    exp["scenarios"] = ["scenario_small.yaml"]
    exp["seeds"] = [4, 5]
    exp["output"] = {"data_dir": str(tmp_path / "data")}
    exp_path = tmp_path / "exp.yaml"
    write_yaml(exp_path, exp)

    paths = generate_instances(exp_path)
    assert paths == [
        tmp_path / "data" / "instances" / "small" / f"seed{s}" / "instance.yaml"
        for s in (4, 5)
    ]
    _, tasks, vehicles = load_instance(paths[1])
    assert len(tasks) == 10
    assert len(vehicles) == 2


def test_fractional_weights_in_instance_files_are_rejected(random_scenario):
    inst = generate_instance(random_scenario, 1)
    inst["tasks"][0]["weight"] = 2.5
    with pytest.raises(ValueError, match="positive int"):
        instance_from_dict(inst)
