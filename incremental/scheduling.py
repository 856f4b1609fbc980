"""Incremental schedulers for the four makespan problems.

Every problem family has a ``prepare_*`` function (bounded preprocessing,
returns the family's state) and a ``step_*`` function (emits the next part
or ``EXHAUSTED``). :mod:`incremental.enumerator` dispatches to them.

    1|prec|Cmax  -- any topological order without idle time is optimal; we
                    prefer jobs with the longest remaining chain ("tail").
    1|r_j|Cmax   -- any non-delay schedule is optimal; among released jobs
                    we take the shortest processing time first.
    F2||Cmax     -- Johnson's rule (1954), optimal.
    P||Cmax      -- LPT list scheduling, a 4/3-approximation.
"""

from __future__ import annotations

import heapq
import logging
from collections import deque
from dataclasses import dataclass, field
from itertools import chain
from typing import Iterator, Optional, Union

from incremental.errors import MalformedInstanceError
from incremental.meter import WorkMeter
from incremental.models import (
    EXHAUSTED,
    Exhausted,
    FlowShopInstance,
    FlowShopJob,
    FlowShopPart,
    Job,
    ParallelMachinesInstance,
    PrecedenceInstance,
    ReleaseTimeInstance,
    SchedulePart,
)
from incremental.sorting import IncrementalQuickSort

logger = logging.getLogger("incremental.scheduling")


# --------------------------
# 1|prec|Cmax
# --------------------------
@dataclass
class PrecedenceState:
    jobs: tuple[Job, ...]
    successors: list[list[int]]
    in_degree: list[int]
    tails: list[int]
    ready: list[tuple[int, int]]  # heap of (-tail, job)
    time: int = 0
    position: int = 0


def compute_tails(
    jobs: tuple[Job, ...], successors: list[list[int]], in_degree: list[int]
) -> list[int]:
    """Longest processing-time chain starting at each job (job included).

    Runs Kahn's algorithm once; raises if the precedence graph has a cycle.
    """
    remaining = list(in_degree)
    queue = deque(j for j, d in enumerate(remaining) if d == 0)
    order: list[int] = []
    while queue:
        j = queue.popleft()
        order.append(j)
        for s in successors[j]:
            remaining[s] -= 1
            if remaining[s] == 0:
                queue.append(s)
    if len(order) != len(jobs):
        blocked = sorted(j for j, d in enumerate(remaining) if d > 0)
        raise MalformedInstanceError(
            f"precedence graph contains a cycle through jobs {blocked[:10]}"
        )
    tails = [0] * len(jobs)
    for j in reversed(order):
        longest = max((tails[s] for s in successors[j]), default=0)
        tails[j] = jobs[j].processing_time + longest
    return tails


def prepare_precedence(instance: PrecedenceInstance, meter: WorkMeter) -> PrecedenceState:
    n = len(instance.jobs)
    successors: list[list[int]] = [[] for _ in range(n)]
    in_degree = [0] * n
    for before, after in instance.precedences:
        successors[before].append(after)
        in_degree[after] += 1
    tails = compute_tails(instance.jobs, successors, in_degree)
    meter.tick(n + len(instance.precedences))
    ready = [(-tails[j], j) for j in range(n) if in_degree[j] == 0]
    heapq.heapify(ready)
    logger.debug("1|prec|Cmax: %d jobs, %d precedences, %d initially ready",
                 n, len(instance.precedences), len(ready))
    return PrecedenceState(instance.jobs, successors, in_degree, tails, ready)


def step_precedence(state: PrecedenceState, meter: WorkMeter) -> Union[SchedulePart, Exhausted]:
    if not state.ready:
        return EXHAUSTED
    _, job = heapq.heappop(state.ready)
    meter.tick()
    for s in state.successors[job]:
        meter.tick()
        state.in_degree[s] -= 1
        if state.in_degree[s] == 0:
            heapq.heappush(state.ready, (-state.tails[s], s))
    part = SchedulePart(job=job, position=state.position, start=state.time)
    state.time += state.jobs[job].processing_time
    state.position += 1
    return part


# --------------------------
# 1|r_j|Cmax
# --------------------------
@dataclass
class ReleaseTimeState:
    by_release: IncrementalQuickSort[Job]
    pending: Optional[Job]
    ready: list[tuple[int, int]] = field(default_factory=list)  # heap of (p_j, job)
    time: int = 0
    position: int = 0


def prepare_release_times(instance: ReleaseTimeInstance, meter: WorkMeter) -> ReleaseTimeState:
    by_release = IncrementalQuickSort(
        instance.jobs, key=lambda j: (j.release_time, j.id), meter=meter
    )
    logger.debug("1|r_j|Cmax: %d jobs", len(instance.jobs))
    return ReleaseTimeState(by_release=by_release, pending=next(by_release, None))


def step_release_times(
    state: ReleaseTimeState, meter: WorkMeter
) -> Union[SchedulePart, Exhausted]:
    while True:
        # admit every job released by now
        while state.pending is not None and state.pending.release_time <= state.time:
            heapq.heappush(state.ready, (state.pending.processing_time, state.pending.id))
            meter.tick()
            state.pending = next(state.by_release, None)
        if state.ready:
            p, job = heapq.heappop(state.ready)
            meter.tick()
            part = SchedulePart(job=job, position=state.position, start=state.time)
            state.time += p
            state.position += 1
            return part
        if state.pending is None:
            return EXHAUSTED
        # machine idles until the next release
        state.time = state.pending.release_time


# --------------------------
# F2||Cmax
# --------------------------
@dataclass
class FlowShopState:
    order: Iterator[FlowShopJob]
    time_first: int = 0
    time_second: int = 0
    position: int = 0


def johnson_partition(
    jobs: tuple[FlowShopJob, ...],
) -> tuple[list[FlowShopJob], list[FlowShopJob]]:
    """Split jobs into Johnson's front (``first <= second``) and back sets."""
    front = [j for j in jobs if j.first <= j.second]
    back = [j for j in jobs if j.first > j.second]
    return front, back


def prepare_flow_shop(instance: FlowShopInstance, meter: WorkMeter) -> FlowShopState:
    front, back = johnson_partition(instance.jobs)
    meter.tick(len(instance.jobs))
    order = chain(
        IncrementalQuickSort(front, key=lambda j: (j.first, j.id), meter=meter),
        IncrementalQuickSort(back, key=lambda j: (-j.second, j.id), meter=meter),
    )
    logger.debug("F2||Cmax: %d jobs (%d front, %d back)", len(instance.jobs), len(front), len(back))
    return FlowShopState(order=order)


def step_flow_shop(state: FlowShopState, meter: WorkMeter) -> Union[FlowShopPart, Exhausted]:
    job = next(state.order, None)
    if job is None:
        return EXHAUSTED
    meter.tick()
    start_first = state.time_first
    state.time_first += job.first
    # M2 starts once it is free and the job left M1
    start_second = max(state.time_second, state.time_first)
    state.time_second = start_second + job.second
    part = FlowShopPart(
        job=job.id, position=state.position, start_first=start_first, start_second=start_second
    )
    state.position += 1
    return part


# --------------------------
# P||Cmax
# --------------------------
@dataclass
class ParallelMachinesState:
    by_length: IncrementalQuickSort[Job]
    loads: list[tuple[int, int]]  # heap of (load, machine)
    position: int = 0


def prepare_parallel_machines(
    instance: ParallelMachinesInstance, meter: WorkMeter
) -> ParallelMachinesState:
    by_length = IncrementalQuickSort(
        instance.jobs, key=lambda j: (-j.processing_time, j.id), meter=meter
    )
    # already a valid heap: all loads are zero and machine ids ascend
    loads = [(0, m) for m in range(instance.machines)]
    meter.tick(instance.machines)
    logger.debug("P||Cmax: %d jobs on %d machines", len(instance.jobs), instance.machines)
    return ParallelMachinesState(by_length=by_length, loads=loads)


def step_parallel_machines(
    state: ParallelMachinesState, meter: WorkMeter
) -> Union[SchedulePart, Exhausted]:
    job = next(state.by_length, None)
    if job is None:
        return EXHAUSTED
    load, machine = heapq.heappop(state.loads)
    heapq.heappush(state.loads, (load + job.processing_time, machine))
    meter.tick()
    part = SchedulePart(job=job.id, position=state.position, start=load, machine=machine)
    state.position += 1
    return part
