"""Non-incremental baselines for every problem family.

Each baseline computes the full solution up front (full sorts, complete
searches) and returns it in the same part types the enumerators emit, so
outputs and objective values can be compared directly.
"""

from __future__ import annotations

import heapq
import math
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from incremental.enumerator import EnumeratorKind, infer_kind
from incremental.errors import MalformedInstanceError
from incremental.models import (
    DistancePart,
    DistanceQuery,
    EdgePart,
    FlowShopInstance,
    FlowShopPart,
    Graph,
    Instance,
    ParallelMachinesInstance,
    PrecedenceInstance,
    ReleaseTimeInstance,
    SchedulePart,
    SolutionPart,
)
from incremental.scheduling import johnson_partition
from incremental.union_find import RankedUnionFind

Distances = list[Optional[int]]

_WHITE, _GRAY, _BLACK = 0, 1, 2


# --------------------------
# scheduling
# --------------------------
def topological_schedule(instance: PrecedenceInstance) -> list[SchedulePart]:
    """Jobs in reverse DFS finishing order (CLRS 22.4), started back to back."""
    n = len(instance.jobs)
    successors: list[list[int]] = [[] for _ in range(n)]
    for before, after in instance.precedences:
        successors[before].append(after)
    color = [_WHITE] * n
    finished: list[int] = []
    for root in range(n):
        if color[root] != _WHITE:
            continue
        color[root] = _GRAY
        stack = [(root, iter(successors[root]))]
        while stack:
            v, it = stack[-1]
            for w in it:
                if color[w] == _GRAY:
                    raise MalformedInstanceError(f"precedence graph contains a cycle through job {w}")
                if color[w] == _WHITE:
                    color[w] = _GRAY
                    stack.append((w, iter(successors[w])))
                    break
            else:
                color[v] = _BLACK
                finished.append(v)
                stack.pop()
    parts = []
    time = 0
    for position, job in enumerate(reversed(finished)):
        parts.append(SchedulePart(job=job, position=position, start=time))
        time += instance.jobs[job].processing_time
    return parts


def release_schedule(instance: ReleaseTimeInstance) -> list[SchedulePart]:
    """Jobs in order of release time, each started as early as possible."""
    parts = []
    time = 0
    for position, job in enumerate(sorted(instance.jobs, key=lambda j: (j.release_time, j.id))):
        time = max(time, job.release_time)
        parts.append(SchedulePart(job=job.id, position=position, start=time))
        time += job.processing_time
    return parts


def johnson_schedule(instance: FlowShopInstance) -> list[FlowShopPart]:
    front, back = johnson_partition(instance.jobs)
    order = sorted(front, key=lambda j: (j.first, j.id)) + sorted(
        back, key=lambda j: (-j.second, j.id)
    )
    parts = []
    time_first = time_second = 0
    for position, job in enumerate(order):
        start_first = time_first
        time_first += job.first
        start_second = max(time_second, time_first)
        time_second = start_second + job.second
        parts.append(FlowShopPart(job.id, position, start_first, start_second))
    return parts


def lpt_schedule(instance: ParallelMachinesInstance) -> list[SchedulePart]:
    loads = [(0, m) for m in range(instance.machines)]
    parts = []
    jobs = sorted(instance.jobs, key=lambda j: (-j.processing_time, j.id))
    for position, job in enumerate(jobs):
        load, machine = heapq.heappop(loads)
        parts.append(SchedulePart(job=job.id, position=position, start=load, machine=machine))
        heapq.heappush(loads, (load + job.processing_time, machine))
    return parts


# --------------------------
# graphs
# --------------------------
def kruskal(graph: Graph) -> list[EdgePart]:
    if graph.directed:
        raise MalformedInstanceError("minimum spanning tree needs an undirected graph")
    components = RankedUnionFind(graph.num_vertices)
    tree = []
    for index in sorted(range(len(graph.edges)), key=lambda i: (graph.edges[i].weight, i)):
        e = graph.edges[index]
        if components.union(e.source, e.target):
            tree.append(EdgePart(e.source, e.target, e.weight))
            if len(tree) == graph.num_vertices - 1:
                break
    return tree


def prim(graph: Graph) -> list[EdgePart]:
    """Prim with a lazy-deletion heap, restarted per component (forest)."""
    if graph.directed:
        raise MalformedInstanceError("minimum spanning tree needs an undirected graph")
    n = graph.num_vertices
    incident: list[list[int]] = [[] for _ in range(n)]
    for i, e in enumerate(graph.edges):
        incident[e.source].append(i)
        incident[e.target].append(i)
    attached = [False] * n
    tree = []
    for root in range(n):
        if attached[root]:
            continue
        heap = [(0, -1, root)]
        while heap:
            _, index, v = heapq.heappop(heap)
            if attached[v]:
                continue
            attached[v] = True
            if index >= 0:
                e = graph.edges[index]
                tree.append(EdgePart(e.source, e.target, e.weight))
            for i in incident[v]:
                e = graph.edges[i]
                w = e.target if e.source == v else e.source
                if not attached[w]:
                    heapq.heappush(heap, (e.weight, i, w))
    return tree


def boruvka(graph: Graph) -> list[EdgePart]:
    """Borůvka: every round each component adds its cheapest outgoing edge.

    Edges are compared by ``(weight, index)``, a strict order, so the
    edges chosen in one round never close a cycle.
    """
    if graph.directed:
        raise MalformedInstanceError("minimum spanning tree needs an undirected graph")
    components = RankedUnionFind(graph.num_vertices)
    tree = []
    while True:
        cheapest: dict[int, int] = {}
        for i, e in enumerate(graph.edges):
            a, b = components.find(e.source), components.find(e.target)
            if a == b:
                continue
            key = (e.weight, i)
            for c in (a, b):
                best = cheapest.get(c)
                if best is None or key < (graph.edges[best].weight, best):
                    cheapest[c] = i
        if not cheapest:
            return tree
        for i in sorted(set(cheapest.values())):
            e = graph.edges[i]
            # two components may pick the same edge
            if components.union(e.source, e.target):
                tree.append(EdgePart(e.source, e.target, e.weight))


MST_BASELINES = {"kruskal": kruskal, "prim": prim, "boruvka": boruvka}


def bfs(graph: Graph, source: int) -> Distances:
    """Hop distances from ``source``; ``None`` for unreachable vertices."""
    dist: Distances = [None] * graph.num_vertices
    dist[source] = 0
    adjacency = graph.adjacency()
    queue = deque([source])
    while queue:
        v = queue.popleft()
        for w, _ in adjacency[v]:
            if dist[w] is None:
                dist[w] = dist[v] + 1
                queue.append(w)
    return dist


def dijkstra(graph: Graph, source: int) -> Distances:
    """Weighted distances from ``source``; ``None`` for unreachable vertices."""
    dist: Distances = [None] * graph.num_vertices
    adjacency = graph.adjacency()
    heap = [(0, source)]
    while heap:
        d, v = heapq.heappop(heap)
        if dist[v] is not None:
            continue
        dist[v] = d
        for w, weight in adjacency[v]:
            if dist[w] is None:
                heapq.heappush(heap, (d + weight, w))
    return dist


def floyd_warshall(graph: Graph) -> list[Distances]:
    n = graph.num_vertices
    inf = math.inf
    d = [[inf] * n for _ in range(n)]
    for v in range(n):
        d[v][v] = 0
    for v, row in enumerate(graph.adjacency()):
        for w, weight in row:
            if weight < d[v][w]:
                d[v][w] = weight
    for k in range(n):
        dk = d[k]
        for i in range(n):
            dik = d[i][k]
            if dik == inf:
                continue
            di = d[i]
            for j in range(n):
                if dik + dk[j] < di[j]:
                    di[j] = dik + dk[j]
    return [[None if x == inf else int(x) for x in row] for row in d]


# --------------------------
# objectives
# --------------------------
def makespan(instance: Instance, parts: Sequence[Union[SchedulePart, FlowShopPart]]) -> int:
    if isinstance(instance, FlowShopInstance):
        return max(
            (p.start_second + instance.jobs[p.job].second for p in parts), default=0
        )
    return max((p.start + instance.jobs[p.job].processing_time for p in parts), default=0)


def tree_weight(parts: Sequence[EdgePart]) -> int:
    return sum(p.weight for p in parts)


def distance_sum(parts: Sequence[DistancePart]) -> int:
    """Sum over reachable pairs; unreachable pairs are ignored."""
    return sum(p.distance for p in parts if p.distance is not None)


def approximation_ratio(value: float, reference: float) -> float:
    if reference == 0:
        return 1.0 if value == 0 else math.inf
    return value / reference


def objective_of(
    instance: Instance, kind: EnumeratorKind, parts: Sequence[SolutionPart]
) -> int:
    if kind is EnumeratorKind.MINIMUM_SPANNING_TREE:
        return tree_weight(parts)
    if kind in (EnumeratorKind.SINGLE_SOURCE_DISTANCES, EnumeratorKind.ALL_PAIRS_DISTANCES):
        return distance_sum(parts)
    return makespan(instance, parts)


# --------------------------
# dispatch
# --------------------------
@dataclass
class ReferenceSolution:
    kind: EnumeratorKind
    parts: list[SolutionPart]


def _distance_parts(graph: Graph, source: int) -> list[DistancePart]:
    dist = bfs(graph, source) if graph.is_uniform() else dijkstra(graph, source)
    return [DistancePart(source, v, d) for v, d in enumerate(dist)]


def _all_pairs_parts(graph: Graph, include_self: bool = True) -> list[DistancePart]:
    # n searches; floyd_warshall is O(n^3) and only meant for small graphs
    search = bfs if graph.is_uniform() else dijkstra
    return [
        DistancePart(u, v, d)
        for u in range(graph.num_vertices)
        for v, d in enumerate(search(graph, u))
        if include_self or u != v
    ]


def solve(
    instance: Instance,
    kind: Optional[Union[EnumeratorKind, str]] = None,
    **options: Any,
) -> ReferenceSolution:
    """Full solution of ``instance``.

    ``algorithm`` picks the MST baseline (``kruskal``, ``prim``, ``boruvka``)
    and ``include_self`` the all-pairs self pairs; other enumeration options
    are ignored.
    """
    kind = infer_kind(instance) if kind is None else EnumeratorKind.parse(kind)
    if kind is EnumeratorKind.SINGLE_MACHINE_PRECEDENCE:
        parts = topological_schedule(instance)
    elif kind is EnumeratorKind.SINGLE_MACHINE_RELEASE_TIMES:
        parts = release_schedule(instance)
    elif kind is EnumeratorKind.TWO_MACHINE_FLOW_SHOP:
        parts = johnson_schedule(instance)
    elif kind is EnumeratorKind.PARALLEL_MACHINES:
        parts = lpt_schedule(instance)
    elif kind is EnumeratorKind.MINIMUM_SPANNING_TREE:
        baseline = options.get("algorithm", "kruskal")
        if baseline not in MST_BASELINES:
            raise ValueError(f"unknown MST algorithm {baseline!r}; known: {sorted(MST_BASELINES)}")
        parts = MST_BASELINES[baseline](instance)
    elif kind is EnumeratorKind.SINGLE_SOURCE_DISTANCES:
        if not isinstance(instance, DistanceQuery):
            raise TypeError(f"{kind.name} expects DistanceQuery, got {type(instance).__name__}")
        parts = _distance_parts(instance.graph, instance.source)
    else:
        parts = _all_pairs_parts(instance, options.get("include_self", True))
    return ReferenceSolution(kind, parts)
