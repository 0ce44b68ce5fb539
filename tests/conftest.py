import networkx as nx
import numpy as np
import pytest

from fleetsearch.models import Task, Vehicle
from fleetsearch.problem import NULL, build_problem_instance
from fleetsearch.solution import Solution
from fleetsearch.topology import compute_distance_table


@pytest.fixture
def line_graph():
    """
    A - B - C - D with edge lengths 3, 4 and 5.
    """
    G = nx.Graph()
    for i, name in enumerate("ABCD"):
        G.add_node(name, x_km=float(i), y_km=0.0)
    G.add_edge("A", "B", distance=3.0)
    G.add_edge("B", "C", distance=4.0)
    G.add_edge("C", "D", distance=5.0)
    return G


@pytest.fixture
def distances(line_graph):
    return compute_distance_table(line_graph)


@pytest.fixture
def make_instance(distances):
    """
    Build an instance from (weight, origin, destination) tuples and
    (home, capacity, cost_per_km) tuples.
    """
    def _make(task_specs, vehicle_specs):
        tasks = [Task(i, w, o, d) for i, (w, o, d) in enumerate(task_specs)]
        vehicles = [Vehicle(i, h, c, k) for i, (h, c, k) in enumerate(vehicle_specs)]
        return build_problem_instance(tasks, vehicles, distances)
    return _make


@pytest.fixture
def make_solution():
    """
    Build a solution with the given chain of task slots for each vehicle.
    """
    def _make(instance, chains):
        empty = Solution(
            instance=instance,
            next_slot=np.full(instance.n_slots, NULL, dtype=np.int64),
        )
        sol = empty.with_chains(chains)
        sol.check_invariants()
        return sol
    return _make


@pytest.fixture
def random_scenario():
    return {
        "name": "test",
        "topology": {"n_cities": 10, "radius": 0.4, "size_km": 50.0},
        "vehicles": {
            "n_vehicles": 3,
            "capacity": [8, 15],
            "cost_per_km": [1.0, 4.0],
        },
        "tasks": {"n_tasks": 8, "weight": [1, 8]},
    }
