"""Incremental minimum spanning tree.

Two strategies, selected with ``algorithm``:

``"kruskal"`` (default)
    Preprocessing heapifies the edge list in O(m); every step pops edges
    until one joins two components. Accepted edges come out in
    non-decreasing weight order, which is exactly the order in which
    Kruskal's algorithm commits them.
``"prim"``
    Grows one tree from vertex 0. A heap holds the edges leaving the tree;
    every step pops until an edge reaches a new vertex, attaches it and
    pushes that vertex's edges. Edges come out in attachment order.

For a disconnected graph both end with a minimum spanning forest (Prim
restarts from the lowest vertex not yet attached).
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from typing import Union

from incremental.errors import MalformedInstanceError
from incremental.meter import WorkMeter
from incremental.models import EXHAUSTED, EdgePart, Exhausted, Graph
from incremental.union_find import RankedUnionFind

logger = logging.getLogger("incremental.spanning_tree")

MST_ALGORITHMS = ("kruskal", "prim")


@dataclass
class SpanningTreeState:
    graph: Graph
    heap: list[tuple[int, int]]  # (weight, edge index)
    components: RankedUnionFind
    accepted: int = 0


@dataclass
class PrimState:
    graph: Graph
    incident: list[list[int]]  # edge indices per vertex
    attached: list[bool]
    # (weight, edge index, vertex the edge attaches)
    heap: list[tuple[int, int, int]] = field(default_factory=list)
    next_root: int = 0
    accepted: int = 0


def _incident_edges(graph: Graph) -> list[list[int]]:
    incident: list[list[int]] = [[] for _ in range(graph.num_vertices)]
    for i, e in enumerate(graph.edges):
        incident[e.source].append(i)
        if e.target != e.source:
            incident[e.target].append(i)
    return incident


def _attach(state: PrimState, vertex: int, meter: WorkMeter) -> None:
    state.attached[vertex] = True
    for index in state.incident[vertex]:
        e = state.graph.edges[index]
        other = e.target if e.source == vertex else e.source
        if not state.attached[other]:
            heapq.heappush(state.heap, (e.weight, index, other))
    meter.tick(len(state.incident[vertex]) + 1)


def prepare_spanning_tree(
    graph: Graph, meter: WorkMeter, algorithm: str = "kruskal"
) -> Union[SpanningTreeState, PrimState]:
    if graph.directed:
        raise MalformedInstanceError("minimum spanning tree needs an undirected graph")
    if algorithm not in MST_ALGORITHMS:
        raise ValueError(f"unknown MST algorithm {algorithm!r}; expected one of {MST_ALGORITHMS}")
    logger.debug("MST (%s): %d vertices, %d edges",
                 algorithm, graph.num_vertices, len(graph.edges))
    if algorithm == "prim":
        state = PrimState(graph, _incident_edges(graph), [False] * graph.num_vertices)
        meter.tick(graph.num_vertices + len(graph.edges))
        if graph.num_vertices:
            _attach(state, 0, meter)
        return state
    heap = [(e.weight, i) for i, e in enumerate(graph.edges)]
    heapq.heapify(heap)
    meter.tick(len(heap))
    return SpanningTreeState(graph, heap, RankedUnionFind(graph.num_vertices, meter))


def _step_kruskal(state: SpanningTreeState, meter: WorkMeter) -> Union[EdgePart, Exhausted]:
    while state.heap:
        _, index = heapq.heappop(state.heap)
        meter.tick()
        edge = state.graph.edges[index]
        if state.components.union(edge.source, edge.target):
            state.accepted += 1
            return EdgePart(edge.source, edge.target, edge.weight)
    return EXHAUSTED


def _step_prim(state: PrimState, meter: WorkMeter) -> Union[EdgePart, Exhausted]:
    while True:
        while state.heap:
            _, index, vertex = heapq.heappop(state.heap)
            meter.tick()
            if state.attached[vertex]:
                continue
            _attach(state, vertex, meter)
            state.accepted += 1
            edge = state.graph.edges[index]
            return EdgePart(edge.source, edge.target, edge.weight)
        # current tree is finished; start the next one of the forest
        n = state.graph.num_vertices
        while state.next_root < n and state.attached[state.next_root]:
            state.next_root += 1
            meter.tick()
        if state.next_root == n:
            return EXHAUSTED
        _attach(state, state.next_root, meter)


def step_spanning_tree(
    state: Union[SpanningTreeState, PrimState], meter: WorkMeter
) -> Union[EdgePart, Exhausted]:
    # a spanning tree has n-1 edges, anything after that is a cycle
    if state.accepted >= state.graph.num_vertices - 1:
        return EXHAUSTED
    if isinstance(state, PrimState):
        return _step_prim(state, meter)
    return _step_kruskal(state, meter)
