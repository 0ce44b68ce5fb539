import numpy as np
import pytest

from fleetsearch.models import Infeasible, Task, Vehicle
from fleetsearch.problem import NULL, build_problem_instance, partner
from fleetsearch.solution import Solution, initial_solution


def test_single_task_cost(make_instance):
    inst = make_instance([(4, "A", "B")], [("A", 10, 5.0)])
    sol = initial_solution(inst, seed=17)
    assert sol.cost == pytest.approx(15.0)
    assert sol.chain(0) == [0, 1]
    sol.check_invariants()


def test_zero_tasks_has_empty_chains(make_instance):
    inst = make_instance([], [("A", 10, 1.0), ("D", 5, 2.0)])
    sol = Solution.initial(inst, seed=3)
    assert sol.cost == 0.0
    assert sol.chain(0) == []
    assert sol.chain(1) == []
    assert sol.to_routes() == {0: [], 1: []}
    sol.check_invariants()


def test_task_heavier_than_every_vehicle_is_infeasible(make_instance):
    with pytest.raises(Infeasible):
        make_instance([(6, "A", "B")], [("A", 5, 1.0)])


def test_infeasible_is_a_value_error(distances):
    with pytest.raises(ValueError):
        build_problem_instance([Task(0, 1, "A", "B")], [], distances)


def test_unknown_location_is_rejected(distances):
    with pytest.raises(ValueError, match="unknown location"):
        build_problem_instance(
            [Task(0, 1, "A", "Z")],
            [Vehicle(0, "A", 5, 1.0)],
            distances,
        )


def test_invalid_models_are_rejected():
    with pytest.raises(ValueError):
        Task(0, 0, "A", "B")
    with pytest.raises(ValueError):
        Vehicle(0, "A", 0, 1.0)
    with pytest.raises(ValueError):
        Vehicle(0, "A", 5, -1.0)


@pytest.mark.parametrize("weight", [2.7, 2.0, "3", True])
def test_task_weight_must_be_an_int(weight):
    with pytest.raises(ValueError, match="positive int"):
        Task(0, weight, "A", "B")


@pytest.mark.parametrize("capacity", [9.5, 10.0, None])
def test_vehicle_capacity_must_be_an_int(capacity):
    with pytest.raises(ValueError, match="positive int"):
        Vehicle(0, "A", capacity, 1.0)


def test_numpy_ints_are_accepted():
    assert Task(0, np.int64(3), "A", "B").weight == 3
    assert Vehicle(0, "A", np.int32(7), 1.0).capacity == 7


def test_slot_layout(make_instance):
    inst = make_instance(
        [(2, "A", "B"), (3, "C", "D")],
        [("A", 10, 1.0), ("B", 10, 1.0)],
    )
    assert inst.n_slots == 6
    assert inst.start_slot(1) == 5
    assert list(inst.weight) == [2, -2, 3, -3, 0, 0]
    assert partner(2) == 3 and partner(3) == 2
    assert inst.task_of(3).id == 1


@pytest.mark.parametrize("seed", range(10))
def test_initial_solution_respects_capacity(make_instance, seed):
    inst = make_instance(
        [(5, "A", "B"), (5, "B", "C"), (2, "C", "D"), (7, "D", "A")],
        [("A", 5, 1.0), ("B", 7, 2.0), ("C", 3, 1.0)],
    )
    sol = Solution.initial(inst, seed)
    sol.check_invariants()
    for v in range(inst.n_vehicles):
        for s in sol.chain(v):
            assert inst.weight[s] <= inst.capacity[v]


def test_two_full_loads_never_share_a_vehicle_at_once(make_instance):
    inst = make_instance(
        [(5, "A", "B"), (5, "C", "D")],
        [("A", 5, 1.0), ("D", 5, 1.0)],
    )
    for seed in range(20):
        sol = Solution.initial(inst, seed)
        sol.check_invariants()
        for v in range(2):
            assert max(sol.loads(v), default=0) <= 5


def test_initial_solution_is_reproducible(make_instance):
    inst = make_instance(
        [(1, "A", "B"), (2, "B", "C"), (3, "C", "D"), (1, "D", "A")],
        [("A", 10, 1.0), ("B", 10, 2.0)],
    )
    a = Solution.initial(inst, 42)
    b = Solution.initial(inst, 42)
    assert np.array_equal(a.next_slot, b.next_slot)
    assert a.cost == b.cost


def test_cost_walks_each_chain_from_home(make_instance, make_solution):
    inst = make_instance(
        [(1, "B", "C"), (1, "D", "A")],
        [("A", 10, 2.0), ("D", 10, 1.0)],
    )
    sol = make_solution(inst, {0: [0, 1], 1: [2, 3]})
    # vehicle 0: A->B->C = 7, vehicle 1: D->D->A = 12
    assert sol.cost == pytest.approx(2.0 * 7 + 1.0 * 12)
    assert sol.compute_cost() == pytest.approx(sol.cost)


def test_clone_only_copies_successors(make_instance, make_solution):
    inst = make_instance([(1, "A", "B")], [("A", 10, 1.0)])
    sol = make_solution(inst, {0: [0, 1]})
    twin = sol.clone()
    twin.next_slot[inst.start_slot(0)] = NULL
    assert sol.chain(0) == [0, 1]
    assert twin.instance is sol.instance


def test_with_links_leaves_original_untouched(make_instance, make_solution):
    inst = make_instance(
        [(1, "A", "B"), (1, "C", "D")],
        [("A", 10, 1.0)],
    )
    sol = make_solution(inst, {0: [0, 1, 2, 3]})
    swapped = sol.with_links({inst.start_slot(0): 2, 3: 0, 1: NULL})
    assert swapped.chain(0) == [2, 3, 0, 1]
    assert sol.chain(0) == [0, 1, 2, 3]
    swapped.check_invariants()


def test_to_routes(make_instance, make_solution):
    inst = make_instance(
        [(1, "A", "B"), (1, "C", "D")],
        [("A", 10, 1.0), ("B", 10, 1.0)],
    )
    sol = make_solution(inst, {0: [0, 2, 1, 3], 1: []})
    routes = sol.to_routes()
    assert [(a.kind, a.task.id) for a in routes[0]] == [
        ("pickup", 0), ("pickup", 1), ("deliver", 0), ("deliver", 1),
    ]
    assert [a.location for a in routes[0]] == ["A", "C", "B", "D"]
    assert routes[1] == []


def test_check_invariants_detects_delivery_before_pickup(make_instance):
    inst = make_instance([(1, "A", "B")], [("A", 10, 1.0)])
    sol = Solution(inst, np.full(inst.n_slots, NULL, dtype=np.int64))
    sol = sol.with_chains({0: [1, 0]})
    with pytest.raises(AssertionError):
        sol.check_invariants()


def test_check_invariants_detects_overload(make_instance):
    inst = make_instance(
        [(3, "A", "B"), (3, "A", "C")],
        [("A", 5, 1.0)],
    )
    sol = Solution(inst, np.full(inst.n_slots, NULL, dtype=np.int64))
    sol = sol.with_chains({0: [0, 2, 1, 3]})
    with pytest.raises(AssertionError, match="load"):
        sol.check_invariants()


def test_check_invariants_detects_unreachable_slots(make_instance):
    inst = make_instance(
        [(1, "A", "B"), (1, "A", "C")],
        [("A", 5, 1.0)],
    )
    sol = Solution(inst, np.full(inst.n_slots, NULL, dtype=np.int64))
    sol = sol.with_chains({0: [0, 1]})
    with pytest.raises(AssertionError, match="unreachable"):
        sol.check_invariants()


def test_check_invariants_detects_cycles(make_instance):
    inst = make_instance([(1, "A", "B")], [("A", 5, 1.0)])
    next_slot = np.array([1, 0, 0], dtype=np.int64)
    sol = Solution(inst, next_slot)
    with pytest.raises(AssertionError, match="cycle"):
        sol.check_invariants()


def test_check_invariants_detects_stale_cost(make_instance, make_solution):
    inst = make_instance([(1, "A", "B")], [("A", 5, 1.0)])
    sol = make_solution(inst, {0: [0, 1]})
    sol.cost += 1.0
    with pytest.raises(AssertionError, match="stale cost"):
        sol.check_invariants()
