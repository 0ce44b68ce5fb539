import time

import pytest

from fleetsearch.models import Infeasible, Task, Vehicle
from fleetsearch.planner import MarginalCostComputer, deadline_from_timeout, plan_fleet
from fleetsearch.search import SearchConfig


CONFIG = SearchConfig(algorithm="greedy-stochastic", safety_margin_sec=0.01)


@pytest.fixture
def computer(distances):
    return MarginalCostComputer([Vehicle(0, "A", 10, 1.0)], distances, CONFIG)


def soon(sec=0.1):
    return time.time() + sec


def test_first_task_costs_its_route(computer):
    assert computer.estimate(Task(0, 2, "A", "B"), soon()) == pytest.approx(3.0)
    assert computer.committed_cost == 0.0


def test_commit_then_price_next_task(computer):
    computer.estimate(Task(0, 2, "A", "B"), soon())
    computer.commit()
    assert computer.committed_cost == pytest.approx(3.0)
    assert [t.id for t in computer.tasks] == [0]

    marginal = computer.estimate(Task(1, 2, "B", "C"), soon(0.2))
    # A -> B -> C is 7 in total, back-and-forth orders cost at most 17
    assert 4.0 - 1e-9 <= marginal <= 14.0 + 1e-9


def test_too_heavy_task_has_no_price(computer):
    assert computer.estimate(Task(0, 11, "A", "B"), soon()) is None
    with pytest.raises(ValueError):
        computer.commit()


def test_commit_without_estimate_raises(computer):
    with pytest.raises(ValueError):
        computer.commit()


def test_reject_drops_pending_task(computer):
    computer.estimate(Task(0, 2, "A", "B"), soon())
    computer.reject()
    assert computer.tasks == []
    assert computer.solution is None
    with pytest.raises(ValueError):
        computer.commit()


def test_plan_covers_committed_tasks(computer):
    for i, (o, d) in enumerate([("A", "B"), ("C", "D")]):
        computer.estimate(Task(i, 3, o, d), soon())
        computer.commit()
    sol = computer.plan(soon())
    sol.check_invariants()
    assert sol.instance.n_tasks == 2
    assert sol.cost <= computer.committed_cost + 1e-9


def test_plan_without_tasks_is_empty(computer):
    sol = computer.plan(soon())
    assert sol.cost == 0.0
    assert sol.to_routes() == {0: []}


def test_plan_fleet_rejects_unservable_tasks(distances):
    with pytest.raises(Infeasible):
        plan_fleet(
            [Task(0, 20, "A", "D")],
            [Vehicle(0, "A", 10, 1.0)],
            distances,
            CONFIG,
            soon(),
        )


def test_plan_fleet_returns_metrics(distances):
    sol, metrics = plan_fleet(
        [Task(0, 2, "B", "D")],
        [Vehicle(0, "A", 10, 2.0)],
        distances,
        CONFIG,
        soon(),
    )
    assert sol.cost == pytest.approx(2.0 * 12.0)
    assert metrics["best_cost"] == sol.cost
    assert metrics["algorithm"] == "greedy-stochastic"


def test_deadline_from_timeout():
    before = time.time()
    deadline = deadline_from_timeout(10.0, margin_sec=0.5)
    after = time.time()
    assert before + 9.49 - 1e-6 <= deadline <= after + 9.49 + 1e-6
