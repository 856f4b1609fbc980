"""JSON serialization of problem instances.

Every instance is stored as a flat dict with a ``"type"`` tag::

    {"type": "prec", "jobs": [p_0, ...], "precedences": [[before, after], ...]}
    {"type": "release", "jobs": [[p_0, r_0], ...]}
    {"type": "flowshop", "jobs": [[first_0, second_0], ...]}
    {"type": "parallel", "machines": m, "jobs": [p_0, ...]}
    {"type": "graph", "num_vertices": n, "directed": false, "edges": [[u, v, w], ...]}
    {"type": "distance_query", "source": s, "graph": {...graph dict...}}

Job ids are implicit (list positions).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from incremental.errors import MalformedInstanceError
from incremental.models import (
    DistanceQuery,
    Edge,
    FlowShopInstance,
    FlowShopJob,
    Graph,
    Instance,
    Job,
    ParallelMachinesInstance,
    PrecedenceInstance,
    ReleaseTimeInstance,
)


def instance_to_dict(instance: Instance) -> dict[str, Any]:
    if isinstance(instance, PrecedenceInstance):
        return {
            "type": "prec",
            "jobs": [j.processing_time for j in instance.jobs],
            "precedences": [list(p) for p in instance.precedences],
        }
    if isinstance(instance, ReleaseTimeInstance):
        return {
            "type": "release",
            "jobs": [[j.processing_time, j.release_time] for j in instance.jobs],
        }
    if isinstance(instance, FlowShopInstance):
        return {"type": "flowshop", "jobs": [[j.first, j.second] for j in instance.jobs]}
    if isinstance(instance, ParallelMachinesInstance):
        return {
            "type": "parallel",
            "machines": instance.machines,
            "jobs": [j.processing_time for j in instance.jobs],
        }
    if isinstance(instance, Graph):
        return {
            "type": "graph",
            "num_vertices": instance.num_vertices,
            "directed": instance.directed,
            "edges": [[e.source, e.target, e.weight] for e in instance.edges],
        }
    if isinstance(instance, DistanceQuery):
        return {
            "type": "distance_query",
            "source": instance.source,
            "graph": instance_to_dict(instance.graph),
        }
    raise TypeError(f"Cannot serialize {type(instance).__name__}")


def instance_from_dict(data: dict[str, Any]) -> Instance:
    """Rebuild an instance; raises MalformedInstanceError on bad input."""
    try:
        kind = data["type"]
        if kind == "prec":
            return PrecedenceInstance(
                tuple(Job(i, int(p)) for i, p in enumerate(data["jobs"])),
                tuple((int(a), int(b)) for a, b in data.get("precedences", [])),
            )
        if kind == "release":
            return ReleaseTimeInstance(
                tuple(Job(i, int(p), int(r)) for i, (p, r) in enumerate(data["jobs"]))
            )
        if kind == "flowshop":
            return FlowShopInstance(
                tuple(FlowShopJob(i, int(a), int(b)) for i, (a, b) in enumerate(data["jobs"]))
            )
        if kind == "parallel":
            return ParallelMachinesInstance(
                tuple(Job(i, int(p)) for i, p in enumerate(data["jobs"])),
                int(data["machines"]),
            )
        if kind == "graph":
            return Graph(
                int(data["num_vertices"]),
                tuple(Edge(int(u), int(v), int(w)) for u, v, w in data.get("edges", [])),
                bool(data.get("directed", False)),
            )
        if kind == "distance_query":
            return DistanceQuery(instance_from_dict(data["graph"]), int(data["source"]))
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        if isinstance(exc, MalformedInstanceError):
            raise
        raise MalformedInstanceError(f"Invalid instance data: {exc!r}") from exc
    raise MalformedInstanceError(f"Unknown instance type {data.get('type')!r}")


def save_instance(instance: Instance, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(instance_to_dict(instance), f)
    return path


def load_instance(path: str | Path) -> Instance:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise MalformedInstanceError(f"{path}: expected a JSON object")
    return instance_from_dict(data)
