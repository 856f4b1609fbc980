"""Feasibility checks for emitted solutions.

Concepts
--------
Schedule
    A sequence of :class:`SchedulePart` (or :class:`FlowShopPart`) covering
    every job exactly once. A schedule is feasible when no machine runs two
    jobs at the same time and every problem-specific constraint holds
    (precedences, release times, machine order of the flow shop).
Spanning tree
    ``n - c`` edges of the graph (``c`` connected components) with no cycle.
Distances
    One value per ``(source, target)`` pair equal to the true shortest
    distance, ``None`` where no path exists.

All checks raise :class:`ValueError` with a description of the first
violation found and return ``True`` otherwise, so they can be used inside
assertions.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional, Sequence

from incremental.models import (
    DistancePart,
    EdgePart,
    FlowShopInstance,
    FlowShopPart,
    Graph,
    Instance,
    ParallelMachinesInstance,
    PrecedenceInstance,
    ReleaseTimeInstance,
    SchedulePart,
)
from incremental.reference import bfs, dijkstra
from incremental.union_find import RankedUnionFind


def _check_complete(num_jobs: int, jobs: Sequence[int]) -> None:
    if len(jobs) != num_jobs:
        raise ValueError(f"Incomplete schedule: {len(jobs)} of {num_jobs} jobs")
    seen = set()
    for job in jobs:
        if not 0 <= job < num_jobs:
            raise ValueError(f"Job index out of range: {job}")
        if job in seen:
            raise ValueError(f"Job {job} scheduled twice")
        seen.add(job)


def _check_no_overlap(intervals: dict[int, list[tuple[int, int, int]]]) -> None:
    for machine, items in intervals.items():
        items.sort()
        for (s1, e1, j1), (s2, _, j2) in zip(items, items[1:]):
            if s2 < e1:
                raise ValueError(
                    f"Overlap on machine {machine}: job {j1} [{s1},{e1}) and job {j2} starts at {s2}"
                )


def validate_schedule(instance: Instance, parts: Sequence[SchedulePart]) -> bool:
    """Validate a single-machine or parallel-machine schedule.

    Raises:
        ValueError: missing or duplicate jobs, a machine outside the
            instance, overlapping jobs, a job started before its release time
            or before one of its predecessors completed.
    """
    jobs = instance.jobs
    _check_complete(len(jobs), [p.job for p in parts])
    machines = instance.machines if isinstance(instance, ParallelMachinesInstance) else 1
    start = {}
    intervals: dict[int, list[tuple[int, int, int]]] = defaultdict(list)
    for p in parts:
        if not 0 <= p.machine < machines:
            raise ValueError(f"Job {p.job} on unknown machine {p.machine}")
        if p.start < 0:
            raise ValueError(f"Job {p.job} starts at negative time {p.start}")
        if isinstance(instance, ReleaseTimeInstance) and p.start < jobs[p.job].release_time:
            raise ValueError(
                f"Job {p.job} starts at {p.start} before its release {jobs[p.job].release_time}"
            )
        start[p.job] = p.start
        intervals[p.machine].append((p.start, p.start + jobs[p.job].processing_time, p.job))
    _check_no_overlap(intervals)
    if isinstance(instance, PrecedenceInstance):
        for before, after in instance.precedences:
            if start[after] < start[before] + jobs[before].processing_time:
                raise ValueError(f"Precedence ({before}, {after}) violated")
    return True


def validate_flow_shop(instance: FlowShopInstance, parts: Sequence[FlowShopPart]) -> bool:
    """Validate a two-machine flow-shop schedule (M1 before M2 for each job)."""
    jobs = instance.jobs
    _check_complete(len(jobs), [p.job for p in parts])
    intervals: dict[int, list[tuple[int, int, int]]] = defaultdict(list)
    for p in parts:
        job = jobs[p.job]
        if p.start_first < 0:
            raise ValueError(f"Job {p.job} starts at negative time {p.start_first}")
        if p.start_second < p.start_first + job.first:
            raise ValueError(f"Job {p.job} starts on M2 before it finished on M1")
        intervals[0].append((p.start_first, p.start_first + job.first, p.job))
        intervals[1].append((p.start_second, p.start_second + job.second, p.job))
    _check_no_overlap(intervals)
    return True


def validate_spanning_tree(graph: Graph, parts: Sequence[EdgePart]) -> bool:
    """Validate a spanning forest: graph edges only, acyclic, maximal."""
    available = defaultdict(int)
    for e in graph.edges:
        available[(min(e.source, e.target), max(e.source, e.target), e.weight)] += 1
    full = RankedUnionFind(graph.num_vertices)
    for e in graph.edges:
        full.union(e.source, e.target)
    tree = RankedUnionFind(graph.num_vertices)
    for p in parts:
        key = (min(p.source, p.target), max(p.source, p.target), p.weight)
        if available[key] == 0:
            raise ValueError(f"Edge ({p.source}, {p.target}, {p.weight}) not in graph")
        available[key] -= 1
        if not tree.union(p.source, p.target):
            raise ValueError(f"Edge ({p.source}, {p.target}) closes a cycle")
    if tree.components != full.components:
        raise ValueError(
            f"Not spanning: {tree.components} components, graph has {full.components}"
        )
    return True


def validate_distances(
    graph: Graph,
    parts: Sequence[DistancePart],
    sources: Optional[Iterable[int]] = None,
    include_self: bool = True,
) -> bool:
    """Check reported distances against a full BFS / Dijkstra.

    Every reachable target of a source must be reported exactly once;
    unreachable targets may be left out or reported as ``None``. ``sources``
    names the sources that must appear (all vertices for all-pairs output);
    without it only the reported sources are checked. With ``include_self``
    off, ``(u, u)`` pairs are rejected instead of required.
    """
    required = set(sources) if sources is not None else None
    truth: dict[int, list] = {}
    seen = set()
    search = bfs if graph.is_uniform() else dijkstra
    for p in parts:
        if required is not None and p.source not in required:
            raise ValueError(f"Unexpected source {p.source}")
        if (p.source, p.target) in seen:
            raise ValueError(f"Pair ({p.source}, {p.target}) reported twice")
        if p.source == p.target and not include_self:
            raise ValueError(f"Self pair ({p.source}, {p.target}) reported")
        seen.add((p.source, p.target))
        if p.source not in truth:
            truth[p.source] = search(graph, p.source)
        expected = truth[p.source][p.target]
        if p.distance != expected:
            raise ValueError(
                f"Distance ({p.source}, {p.target}) is {p.distance}, expected {expected}"
            )
    for source in sorted(required) if required is not None else list(truth):
        if source not in truth:
            truth[source] = search(graph, source)
        missing = [
            target
            for target, d in enumerate(truth[source])
            if d is not None
            and (source, target) not in seen
            and (include_self or target != source)
        ]
        if missing:
            raise ValueError(
                f"Incomplete distances from {source}: {len(missing)} reachable "
                f"targets missing (first: {missing[:10]})"
            )
    return True
