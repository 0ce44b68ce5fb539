"""
Experiment and scenario configuration loading and validation utilities.
"""

from pathlib import Path
from typing import Any

from fleetsearch.io import read_yaml
from fleetsearch.search import SearchConfig


PROJECT_ROOT = Path(__file__).resolve().parents[1]  # Project root directory.
DEFAULT_CONFIG_DIR = PROJECT_ROOT / "configs"       # Default configuration directory.


def resolve_config_path(name_or_path: str | Path) -> Path:
    """
    Resolve a YAML config file path, looking into the default config
    directory when the path doesn't exist as given.
    """
    p = Path(name_or_path)
    if p.exists():
        return p
    if not p.suffix:
        candidate = DEFAULT_CONFIG_DIR / f"{p.name}.yaml"
        if candidate.exists():
            return candidate
    candidate = DEFAULT_CONFIG_DIR / p.name
    if candidate.exists():
        return candidate
    raise FileNotFoundError(f"Config not found: {name_or_path}")


def load_yaml_config(name_or_path: str | Path) -> dict:
    path = resolve_config_path(name_or_path)
    cfg = read_yaml(path)
    if not isinstance(cfg, dict):
        raise ValueError(f"Invalid YAML at {path}")
    return cfg


def load_scenario(name_or_path: str | Path) -> dict:
    cfg = load_yaml_config(name_or_path)
    _validate_scenario(cfg)
    return cfg


def load_experiment(name_or_path: str | Path = "experiment_main.yaml") -> dict:
    cfg = load_yaml_config(name_or_path)
    _validate_experiment(cfg)
    return cfg


def search_config_from_dict(
    cfg: dict[str, Any],
    safety_margin_sec: float | None = None,
) -> SearchConfig:
    """
    Build a search config from a YAML extracted algorithm entry, e.g.
        {algorithm: simulated-annealing, temperature_start: 1000, ...}
    Unknown keys are rejected so typos don't silently fall back to defaults.
    """
    known = set(SearchConfig.__dataclass_fields__)
    unknown = set(cfg) - known
    if unknown:
        raise ValueError(f"unknown search parameters: {sorted(unknown)}")
    params = dict(cfg)
    if safety_margin_sec is not None and "safety_margin_sec" not in params:
        params["safety_margin_sec"] = float(safety_margin_sec)
    return SearchConfig(**params)


def _validate_range(section: dict[str, Any], key: str, where: str) -> None:
    value = section.get(key)
    if (
        not isinstance(value, list)
        or len(value) != 2
        or not all(isinstance(x, (int, float)) for x in value)
        or value[0] > value[1]
    ):
        raise ValueError(f"{where}.{key} must be a [min, max] range")


def _validate_scenario(cfg: dict[str, Any]) -> None:
    """
    Validate a scenario YAML config file content. Requires:
        - topology: n_cities >= 2; radius in (0, 1].
        - vehicles: positive n_vehicles; capacity and cost_per_km ranges.
        - tasks: non-negative n_tasks; weight range.
    """
    for k in ["topology", "vehicles", "tasks"]:
        if k not in cfg:
            raise ValueError(f"scenario missing key: {k}")
    t = cfg["topology"]
    if not isinstance(t.get("n_cities"), int) or t["n_cities"] < 2:
        raise ValueError("topology.n_cities must be an int >= 2")
    if not 0 < float(t.get("radius", 0)) <= 1:
        raise ValueError("topology.radius must be in (0, 1]")
    v = cfg["vehicles"]
    if not isinstance(v.get("n_vehicles"), int) or v["n_vehicles"] <= 0:
        raise ValueError("vehicles.n_vehicles must be a positive int")
    _validate_range(v, "capacity", "vehicles")
    _validate_range(v, "cost_per_km", "vehicles")
    if v["capacity"][0] <= 0:
        raise ValueError("vehicles.capacity must be positive")
    r = cfg["tasks"]
    if not isinstance(r.get("n_tasks"), int) or r["n_tasks"] < 0:
        raise ValueError("tasks.n_tasks must be a non-negative int")
    _validate_range(r, "weight", "tasks")
    if r["weight"][0] <= 0:
        raise ValueError("tasks.weight must be positive")


def _validate_experiment(cfg: dict[str, Any]) -> None:
    """
    Validate an experiment YAML config file content. Requires:
        - scenarios: non-empty list of scenario paths.
        - seeds: non-empty list of seeds.
        - algorithms: non-empty list of valid search configs.
        - runtime: time_limit_sec > 0.
    """
    if "scenarios" not in cfg or not cfg["scenarios"]:
        raise ValueError("experiment.scenarios must be non-empty")
    if "seeds" not in cfg or not cfg["seeds"]:
        raise ValueError("experiment.seeds must be non-empty")
    if "algorithms" not in cfg or not cfg["algorithms"]:
        raise ValueError("experiment.algorithms must be non-empty")
    for entry in cfg["algorithms"]:
        search_config_from_dict(entry)
    rt = cfg.get("runtime", {})
    if float(rt.get("time_limit_sec", 0)) <= 0:
        raise ValueError("experiment.runtime.time_limit_sec must be > 0")
