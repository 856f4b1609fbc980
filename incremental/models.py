"""Core data structures: problem instances and solution parts.

This module defines:
    Job, FlowShopJob            -- single jobs of the scheduling families.
    PrecedenceInstance          -- 1|prec|Cmax
    ReleaseTimeInstance         -- 1|r_j|Cmax
    FlowShopInstance            -- F2||Cmax
    ParallelMachinesInstance    -- P||Cmax
    Edge, Graph, DistanceQuery  -- graphs for spanning trees and distances.
    SchedulePart, FlowShopPart,
    EdgePart, DistancePart      -- the units an enumerator emits.
    EXHAUSTED                   -- terminal signal of ``Enumerator.next()``.

Instances are immutable and validated on construction; violations raise
:class:`~incremental.errors.MalformedInstanceError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from incremental.errors import MalformedInstanceError

Precedence = tuple[int, int]  # (before, after)


def _check_ids(jobs: tuple, kind: str) -> None:
    for position, job in enumerate(jobs):
        if job.id != position:
            raise MalformedInstanceError(
                f"{kind}: job at position {position} has id {job.id}; ids must equal positions"
            )


@dataclass(frozen=True)
class Job:
    """Single-operation job.

    Attributes:
        id: Job identifier, equal to its position in the instance.
        processing_time: Non-negative duration.
        release_time: Earliest start (only meaningful for 1|r_j|Cmax).
    """

    id: int
    processing_time: int
    release_time: int = 0

    def __post_init__(self) -> None:
        if self.processing_time < 0:
            raise MalformedInstanceError(
                f"job {self.id}: negative processing time {self.processing_time}"
            )
        if self.release_time < 0:
            raise MalformedInstanceError(f"job {self.id}: negative release time {self.release_time}")


@dataclass(frozen=True)
class FlowShopJob:
    """Job of a two-stage flow shop: ``first`` on M1, then ``second`` on M2."""

    id: int
    first: int
    second: int

    def __post_init__(self) -> None:
        if self.first < 0 or self.second < 0:
            raise MalformedInstanceError(
                f"job {self.id}: negative processing time ({self.first}, {self.second})"
            )


@dataclass(frozen=True)
class PrecedenceInstance:
    """Single machine with precedence constraints.

    Attributes:
        jobs: Jobs indexed by id.
        precedences: ``(before, after)`` pairs; must form a DAG. Cycles are
            detected when an enumerator is constructed.
    """

    jobs: tuple[Job, ...]
    precedences: tuple[Precedence, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "jobs", tuple(self.jobs))
        object.__setattr__(self, "precedences", tuple(tuple(p) for p in self.precedences))
        _check_ids(self.jobs, "1|prec|Cmax")
        n = len(self.jobs)
        for before, after in self.precedences:
            if not (0 <= before < n and 0 <= after < n):
                raise MalformedInstanceError(f"precedence ({before}, {after}) references unknown job")
            if before == after:
                raise MalformedInstanceError(f"precedence ({before}, {after}) is a self loop")


@dataclass(frozen=True)
class ReleaseTimeInstance:
    """Single machine, jobs become available at their release time."""

    jobs: tuple[Job, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "jobs", tuple(self.jobs))
        _check_ids(self.jobs, "1|r_j|Cmax")


@dataclass(frozen=True)
class FlowShopInstance:
    """Two-machine flow shop; every job visits M1 then M2."""

    jobs: tuple[FlowShopJob, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "jobs", tuple(self.jobs))
        _check_ids(self.jobs, "F2||Cmax")


@dataclass(frozen=True)
class ParallelMachinesInstance:
    """``machines`` identical machines, any job on any machine."""

    jobs: tuple[Job, ...]
    machines: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "jobs", tuple(self.jobs))
        _check_ids(self.jobs, "P||Cmax")
        if self.machines < 1:
            raise MalformedInstanceError(f"P||Cmax needs at least one machine, got {self.machines}")


@dataclass(frozen=True)
class Edge:
    source: int
    target: int
    weight: int = 1


@dataclass(frozen=True)
class Graph:
    """Graph on vertices ``0..num_vertices-1`` with non-negative edge weights.

    Undirected graphs store each edge once; :meth:`adjacency` lists it for
    both endpoints. Adjacencies keep edge input order, which makes every
    traversal deterministic.
    """

    num_vertices: int
    edges: tuple[Edge, ...] = ()
    directed: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "edges", tuple(self.edges))
        if self.num_vertices < 0:
            raise MalformedInstanceError(f"negative number of vertices {self.num_vertices}")
        n = self.num_vertices
        for e in self.edges:
            if not (0 <= e.source < n and 0 <= e.target < n):
                raise MalformedInstanceError(f"edge {e} has an endpoint outside 0..{n - 1}")
            if e.weight < 0:
                raise MalformedInstanceError(f"edge {e} has negative weight")

    @classmethod
    def weighted(
        cls, num_vertices: int, triples: Iterable[tuple[int, int, int]], directed: bool = False
    ) -> "Graph":
        return cls(num_vertices, tuple(Edge(u, v, w) for u, v, w in triples), directed)

    @classmethod
    def unweighted(
        cls, num_vertices: int, pairs: Iterable[tuple[int, int]], directed: bool = False
    ) -> "Graph":
        """Uniform-weight variant: every edge has weight 1."""
        return cls(num_vertices, tuple(Edge(u, v, 1) for u, v in pairs), directed)

    def is_uniform(self) -> bool:
        return all(e.weight == 1 for e in self.edges)

    def adjacency(self) -> list[list[tuple[int, int]]]:
        """Out-adjacency lists of ``(neighbor, weight)``; O(n + m)."""
        adj: list[list[tuple[int, int]]] = [[] for _ in range(self.num_vertices)]
        for e in self.edges:
            adj[e.source].append((e.target, e.weight))
            if not self.directed:
                adj[e.target].append((e.source, e.weight))
        return adj


@dataclass(frozen=True)
class DistanceQuery:
    """Single-source shortest distances from ``source`` in ``graph``."""

    graph: Graph
    source: int

    def __post_init__(self) -> None:
        if not 0 <= self.source < self.graph.num_vertices:
            raise MalformedInstanceError(
                f"source {self.source} outside 0..{self.graph.num_vertices - 1}"
            )


Instance = Union[
    PrecedenceInstance,
    ReleaseTimeInstance,
    FlowShopInstance,
    ParallelMachinesInstance,
    Graph,
    DistanceQuery,
]


@dataclass(frozen=True)
class SchedulePart:
    """One job fixed in the schedule.

    Fields:
        job: Job identifier.
        position: 0-based emission position.
        start: Start time.
        machine: Machine the job runs on (0 on a single machine).
    """

    job: int
    position: int
    start: int
    machine: int = 0


@dataclass(frozen=True)
class FlowShopPart:
    """One flow-shop job with its start times on both machines."""

    job: int
    position: int
    start_first: int
    start_second: int


@dataclass(frozen=True)
class EdgePart:
    """One accepted spanning-tree edge."""

    source: int
    target: int
    weight: int


@dataclass(frozen=True)
class DistancePart:
    """Shortest distance from ``source`` to ``target``; ``None`` if unreachable."""

    source: int
    target: int
    distance: Optional[int]


SolutionPart = Union[SchedulePart, FlowShopPart, EdgePart, DistancePart]


class Exhausted:
    """Type of the :data:`EXHAUSTED` singleton."""

    _instance: Optional["Exhausted"] = None

    def __new__(cls) -> "Exhausted":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "EXHAUSTED"

    def __reduce__(self) -> str:
        return "EXHAUSTED"


EXHAUSTED = Exhausted()
