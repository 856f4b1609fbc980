"""Incremental shortest distances: single source and all pairs.

A :class:`SingleSourceSearch` finalizes one vertex per step: breadth-first
search when every edge weight is 1, Dijkstra's algorithm otherwise. In both
cases the finalized distances live in a write-once :class:`LazyArray`, so a
distance can never change after it was emitted. Targets come out in
non-decreasing distance order.

All-pairs distances run one search per source. Searches are created only
when their source is first needed, so the first part costs a single
search's preprocessing and not ``n`` of them.
"""

from __future__ import annotations

import heapq
import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Union

from incremental.errors import MalformedInstanceError
from incremental.lazy_array import LazyArray
from incremental.meter import WorkMeter
from incremental.models import EXHAUSTED, DistancePart, DistanceQuery, Exhausted, Graph

logger = logging.getLogger("incremental.distances")

Adjacency = list[list[tuple[int, int]]]

DISTANCE_ORDERS = ("source", "distance")


def unreachable_from(adjacency: Adjacency, source: int) -> list[int]:
    """Vertices with no path from ``source``; O(n + m)."""
    seen = [False] * len(adjacency)
    seen[source] = True
    stack = [source]
    while stack:
        v = stack.pop()
        for w, _ in adjacency[v]:
            if not seen[w]:
                seen[w] = True
                stack.append(w)
    return [v for v, reached in enumerate(seen) if not reached]


class SingleSourceSearch:
    """Incremental BFS / Dijkstra from one source.

    Args:
        adjacency: Out-adjacency lists ``(neighbor, weight)``; shared, never
            modified.
        source: Start vertex.
        uniform: Use BFS (all weights are 1) instead of Dijkstra.
        meter: Work meter ticked per queue operation and edge relaxation.
        include_self: Emit the ``(source, source, 0)`` part.
        report_unreachable: After the reachable vertices, emit every other
            vertex with ``distance=None``.
    """

    def __init__(
        self,
        adjacency: Adjacency,
        source: int,
        uniform: bool,
        meter: WorkMeter,
        include_self: bool = True,
        report_unreachable: bool = False,
    ) -> None:
        n = len(adjacency)
        self.source = source
        self._adjacency = adjacency
        self._uniform = uniform
        self._meter = meter
        self._include_self = include_self
        self._report_unreachable = report_unreachable
        self.distances: LazyArray[int] = LazyArray(n, meter=meter)
        self._queue: deque[int] = deque()
        self._heap: list[tuple[int, int]] = []
        self._tentative: dict[int, int] = {}
        self._unreached_cursor = 0
        self._lookahead: Optional[Union[DistancePart, Exhausted]] = None
        if uniform:
            self.distances.set(source, 0)
            self._queue.append(source)
        else:
            self._tentative[source] = 0
            self._heap.append((0, source))

    def _bfs_step(self) -> Optional[DistancePart]:
        while self._queue:
            v = self._queue.popleft()
            self._meter.tick()
            d = self.distances[v]
            for w, _ in self._adjacency[v]:
                self._meter.tick()
                if not self.distances.is_memoized(w):
                    self.distances.set(w, d + 1)
                    self._queue.append(w)
            if v == self.source and not self._include_self:
                continue
            return DistancePart(self.source, v, d)
        return None

    def _dijkstra_step(self) -> Optional[DistancePart]:
        while self._heap:
            d, v = heapq.heappop(self._heap)
            self._meter.tick()
            if self.distances.is_memoized(v):
                continue  # stale entry
            self.distances.set(v, d)
            for w, weight in self._adjacency[v]:
                self._meter.tick()
                if self.distances.is_memoized(w):
                    continue
                candidate = d + weight
                if candidate < self._tentative.get(w, math.inf):
                    self._tentative[w] = candidate
                    heapq.heappush(self._heap, (candidate, w))
            if v == self.source and not self._include_self:
                continue
            return DistancePart(self.source, v, d)
        return None

    def _unreachable_step(self) -> Optional[DistancePart]:
        n = len(self.distances)
        while self._unreached_cursor < n:
            v = self._unreached_cursor
            self._unreached_cursor += 1
            self._meter.tick()
            if not self.distances.is_memoized(v):
                return DistancePart(self.source, v, None)
        return None

    def _produce(self) -> Union[DistancePart, Exhausted]:
        part = self._bfs_step() if self._uniform else self._dijkstra_step()
        if part is None and self._report_unreachable:
            part = self._unreachable_step()
        return EXHAUSTED if part is None else part

    def peek(self) -> Union[DistancePart, Exhausted]:
        """Next part without consuming it."""
        if self._lookahead is None:
            self._lookahead = self._produce()
        return self._lookahead

    def next_part(self) -> Union[DistancePart, Exhausted]:
        part = self.peek()
        if part is not EXHAUSTED:
            self._lookahead = None
        return part


def _sort_key(part: DistancePart) -> float:
    return math.inf if part.distance is None else part.distance


# --------------------------
# single source
# --------------------------
def prepare_single_source(
    query: DistanceQuery, meter: WorkMeter, allow_unreachable: bool = False
) -> SingleSourceSearch:
    graph = query.graph
    adjacency = graph.adjacency()
    meter.tick(graph.num_vertices + len(graph.edges))
    if not allow_unreachable:
        missing = unreachable_from(adjacency, query.source)
        meter.tick(graph.num_vertices + len(graph.edges))
        if missing:
            raise MalformedInstanceError(
                f"{len(missing)} vertices unreachable from source {query.source} "
                f"(first: {missing[:10]}); pass allow_unreachable=True to report them"
            )
    uniform = graph.is_uniform()
    logger.debug("SSSD: %d vertices, %d edges, source %d, %s",
                 graph.num_vertices, len(graph.edges), query.source,
                 "bfs" if uniform else "dijkstra")
    return SingleSourceSearch(
        adjacency, query.source, uniform, meter, report_unreachable=allow_unreachable
    )


def step_single_source(
    state: SingleSourceSearch, meter: WorkMeter
) -> Union[DistancePart, Exhausted]:
    return state.next_part()


# --------------------------
# all pairs
# --------------------------
@dataclass
class AllPairsState:
    adjacency: Adjacency
    uniform: bool
    order: str
    include_self: bool
    meter: WorkMeter
    searches: list[Optional[SingleSourceSearch]]
    current: int = 0
    # order="distance": heap of (lower bound on next distance, source)
    frontier: list[tuple[float, int]] = field(default_factory=list)

    @property
    def live_searches(self) -> int:
        """Single-source searches created and not yet finished."""
        return sum(s is not None for s in self.searches)

    def search(self, source: int) -> SingleSourceSearch:
        s = self.searches[source]
        if s is None:
            s = SingleSourceSearch(
                self.adjacency,
                source,
                self.uniform,
                self.meter,
                include_self=self.include_self,
                report_unreachable=True,
            )
            self.searches[source] = s
        return s


def prepare_all_pairs(
    graph: Graph, meter: WorkMeter, order: str = "source", include_self: bool = True
) -> AllPairsState:
    if order not in DISTANCE_ORDERS:
        raise ValueError(f"unknown all-pairs order {order!r}; expected one of {DISTANCE_ORDERS}")
    n = graph.num_vertices
    adjacency = graph.adjacency()
    meter.tick(n + len(graph.edges))
    state = AllPairsState(
        adjacency=adjacency,
        uniform=graph.is_uniform(),
        order=order,
        include_self=include_self,
        meter=meter,
        searches=[None] * n,
    )
    if order == "distance":
        # 0 bounds every source from below; sorted, hence already a heap
        state.frontier = [(0, s) for s in range(n)]
    logger.debug("APSD: %d vertices, %d edges, order=%s, include_self=%s",
                 n, len(graph.edges), order, include_self)
    return state


def _step_by_source(state: AllPairsState) -> Union[DistancePart, Exhausted]:
    n = len(state.searches)
    while state.current < n:
        search = state.search(state.current)
        part = search.next_part()
        if part is not EXHAUSTED:
            return part
        # release the finished search
        state.searches[state.current] = None
        state.current += 1
    return EXHAUSTED


def _step_by_distance(state: AllPairsState) -> Union[DistancePart, Exhausted]:
    while state.frontier:
        bound, source = state.frontier[0]
        search = state.search(source)
        head = search.peek()
        state.meter.tick()
        if head is EXHAUSTED:
            heapq.heappop(state.frontier)
            state.searches[source] = None
            continue
        key = _sort_key(head)
        if key > bound:
            # the bound was loose; reinsert with the real key
            heapq.heapreplace(state.frontier, (key, source))
            continue
        part = search.next_part()
        nxt = search.peek()
        if nxt is EXHAUSTED:
            heapq.heappop(state.frontier)
            state.searches[source] = None
        else:
            heapq.heapreplace(state.frontier, (_sort_key(nxt), source))
        return part
    return EXHAUSTED


def step_all_pairs(state: AllPairsState, meter: WorkMeter) -> Union[DistancePart, Exhausted]:
    if state.order == "distance":
        return _step_by_distance(state)
    return _step_by_source(state)
