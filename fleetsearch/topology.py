"""
Topology utilities: the city graph vehicles travel on and the compact distance
table the search uses as its distance oracle.
"""

from dataclasses import dataclass, field
from math import hypot
from typing import Any, Iterable
import networkx as nx
import numpy as np

from fleetsearch.models import Location


@dataclass
class DistanceTable:
    """
    Shortest-path distances between a set of locations. `index` maps a
    location to its row/column in `matrix`.
    """
    locations: list[Location]
    matrix: np.ndarray
    index: dict[Location, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.index:
            self.index = {loc: i for i, loc in enumerate(self.locations)}
        n = len(self.locations)
        if self.matrix.shape != (n, n):
            raise ValueError(
                f"distance matrix shape {self.matrix.shape} does not match "
                f"{n} locations"
            )

    def idx(self, location: Location) -> int:
        try:
            return self.index[location]
        except KeyError:
            raise ValueError(f"unknown location: {location!r}") from None

    def distance(self, a: Location, b: Location) -> float:
        return float(self.matrix[self.idx(a), self.idx(b)])


def build_topology(
    n_cities: int,
    radius: float,
    seed: int,
    size_km: float = 100.0,
) -> nx.Graph:
    """
    Build a random connected city graph. Cities are scattered uniformly in a
    `size_km` square and linked when closer than `radius * size_km`; the
    components left are then joined by their closest pair of cities.
    """
    if n_cities <= 0:
        raise ValueError("n_cities must be a positive int")
    G0 = nx.random_geometric_graph(n_cities, radius, seed=seed)
    G = nx.Graph()
    for i in G0.nodes:
        x, y = G0.nodes[i]["pos"]
        G.add_node(_city_name(i), x_km=float(x) * size_km, y_km=float(y) * size_km)
    for u, v in G0.edges:
        a, b = _city_name(u), _city_name(v)
        G.add_edge(a, b, distance=_euclid(G, a, b))

    components = [list(c) for c in nx.connected_components(G)]
    while len(components) > 1:
        base = components[0]
        best = None
        for other in components[1:]:
            for a in base:
                for b in other:
                    d = _euclid(G, a, b)
                    if best is None or d < best[0]:
                        best = (d, a, b)
        d, a, b = best
        G.add_edge(a, b, distance=d)
        components = [list(c) for c in nx.connected_components(G)]
    return G


def topology_from_dict(cfg: dict[str, Any]) -> nx.Graph:
    """
    Build a city graph from a YAML extracted topology:
        cities: {name: [x_km, y_km]}
        routes: [[a, b], [a, b, distance], ...]
    Routes without an explicit distance use the straight-line distance.
    """
    if "cities" not in cfg or not cfg["cities"]:
        raise ValueError("topology.cities must be non-empty")
    G = nx.Graph()
    for name, xy in cfg["cities"].items():
        G.add_node(name, x_km=float(xy[0]), y_km=float(xy[1]))
    for route in cfg.get("routes", []):
        a, b = route[0], route[1]
        if a not in G or b not in G:
            raise ValueError(f"route between unknown cities: {a!r}, {b!r}")
        d = float(route[2]) if len(route) > 2 else _euclid(G, a, b)
        G.add_edge(a, b, distance=d)
    return G


def topology_to_dict(G: nx.Graph) -> dict[str, Any]:
    """
    Inverse of `topology_from_dict`.
    """
    return {
        "cities": {
            str(n): [float(G.nodes[n]["x_km"]), float(G.nodes[n]["y_km"])]
            for n in G.nodes
        },
        "routes": [
            [str(a), str(b), float(G.edges[a, b]["distance"])]
            for a, b in G.edges
        ],
    }


def compute_distance_table(
    G: nx.Graph,
    locations: Iterable[Location] | None = None,
) -> DistanceTable:
    """
    Compute the shortest-path distance table between `locations` (all cities
    when omitted). Disconnected pairs get an infinite distance.
    """
    locs = list(dict.fromkeys(locations)) if locations is not None else list(G.nodes)
    n = len(locs)
    D = np.zeros((n, n), dtype=np.float64)
    for si, s in enumerate(locs):
        if s not in G:
            raise ValueError(f"unknown city: {s!r}")
        lengths = nx.single_source_dijkstra_path_length(G, s, weight="distance")
        for tj, t in enumerate(locs):
            if s == t:
                continue
            D[si, tj] = float(lengths.get(t, np.inf))
    return DistanceTable(locations=locs, matrix=D)


def _city_name(i: int) -> str:
    return f"city{i:02d}"


def _euclid(G: nx.Graph, a: Location, b: Location) -> float:
    return hypot(
        G.nodes[a]["x_km"] - G.nodes[b]["x_km"],
        G.nodes[a]["y_km"] - G.nodes[b]["y_km"],
    )
