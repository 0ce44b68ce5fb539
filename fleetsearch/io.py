"""
File system helpers and (de)serialization of problem data and solutions.
"""

import csv
import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
import yaml

from fleetsearch.models import Task, Vehicle
from fleetsearch.solution import Solution


def ensure_dir(directory: str | Path) -> Path:
    """
    Ensure a directory exists, creating it if it doesn't.
    """
    directory_path = Path(directory)
    directory_path.mkdir(parents=True, exist_ok=True)
    return directory_path


def read_yaml(path: str | Path) -> dict:
    with Path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def write_yaml(path: str | Path, data: dict) -> None:
    text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    _atomic_write(Path(path), text)


def read_json(path: str | Path) -> Any:
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: str | Path, data: Any, *, indent: int = 2) -> None:
    _atomic_write(Path(path), json.dumps(data, ensure_ascii=False, indent=indent))


def write_csv_rows(
    path: str | Path,
    rows: list[dict[str, Any]],
    fieldnames: list[str] | None = None,
) -> None:
    """
    Write a list of dicts to a CSV file. Keys missing from a row are left
    empty, keys not in `fieldnames` are dropped.
    """
    if not rows and not fieldnames:
        raise ValueError("rows is empty and fieldnames not provided")
    fns = fieldnames or list(rows[0].keys())
    path_ = Path(path)
    ensure_dir(path_.parent)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        newline="",
        delete=False,
        dir=str(path_.parent),
    ) as tmp:
        writer = csv.DictWriter(tmp, fieldnames=fns)
        writer.writeheader()
        for r in rows:
            writer.writerow({k: r.get(k) for k in fns})
        tmp_path = Path(tmp.name)
    tmp_path.replace(path_)


def write_manifest(path: str | Path, meta: dict[str, Any]) -> None:
    created = datetime.now(timezone.utc).isoformat(timespec="seconds")
    write_json(path, {"created_at_utc": created, **meta})


def make_run_id(scenario: str, seed: int | str, algorithm: str) -> str:
    """
    Run identifier of type <scenario>__seed<seed>__<algorithm>, used as the
    directory name of a run's outputs.
    """
    return f"{_normalize_str(scenario)}__seed{seed}__{_normalize_str(algorithm)}"


def tasks_from_dicts(rows: list[dict[str, Any]]) -> list[Task]:
    return [
        Task(
            id=int(r["id"]),
            weight=r["weight"],
            origin=r["origin"],
            destination=r["destination"],
        )
        for r in rows
    ]


def vehicles_from_dicts(rows: list[dict[str, Any]]) -> list[Vehicle]:
    return [
        Vehicle(
            id=int(r["id"]),
            home=r["home"],
            capacity=r["capacity"],
            cost_per_km=float(r["cost_per_km"]),
        )
        for r in rows
    ]


def solution_to_dict(sol: Solution) -> dict[str, Any]:
    """
    JSON friendly view of a solution: its cost and, for every vehicle, its
    home city and ordered actions.
    """
    routes = sol.to_routes()
    return {
        "cost": float(sol.cost),
        "routes": {
            str(veh.id): {
                "home": str(veh.home),
                "actions": [
                    {
                        "kind": a.kind,
                        "task": a.task.id,
                        "location": str(a.location),
                    }
                    for a in routes[veh.id]
                ],
            }
            for veh in sol.instance.vehicles
        },
    }


def _atomic_write(path: Path, text: str) -> None:
    """
    Write to a temporary file next to `path` and then replace it, so readers
    never see a half written file.
    """
    ensure_dir(path.parent)
    with tempfile.NamedTemporaryFile(
        "wb", delete=False, dir=str(path.parent)
    ) as tmp:
        tmp.write(text.encode("utf-8"))
        tmp_path = Path(tmp.name)
    tmp_path.replace(path)


def _normalize_str(s: Any) -> str:
    out = []
    for ch in str(s):
        if ch.isalnum():
            out.append(ch.lower())
        elif ch in ("-", "_"):
            out.append(ch)
        elif ch.isspace():
            out.append("_")
    return "".join(out).strip("_") or "x"
