"""Preprocessing / delay accounting for enumerators and reference baselines.

Wall-clock time is measured with an injectable ``clock`` (nanoseconds) and
abstract work with the enumerator's :class:`WorkMeter`. The first part's
cost is preprocessing (construction included); every later gap is a delay.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, Union

from incremental.enumerator import EnumeratorKind, construct
from incremental.meter import WorkMeter
from incremental.models import EXHAUSTED, Exhausted, Instance, SolutionPart
from incremental.reference import objective_of, solve

Clock = Callable[[], int]


class StatisticsCollector(Protocol):
    def record(self, elapsed_ns: int, part: Union[SolutionPart, Exhausted]) -> None:
        """Called once per ``next()``, including the call that returns EXHAUSTED."""


@dataclass
class RecordingCollector:
    """Collector that keeps every ``(elapsed_ns, part)`` record."""

    records: list[tuple[int, Any]] = field(default_factory=list)

    def record(self, elapsed_ns: int, part: Union[SolutionPart, Exhausted]) -> None:
        self.records.append((elapsed_ns, part))

    @property
    def parts(self) -> list[SolutionPart]:
        return [p for _, p in self.records if p is not EXHAUSTED]


@dataclass
class EnumerationMeasurement:
    kind: str
    setup_ns: int
    preprocessing_ns: int
    total_ns: int
    delays_ns: list[int]
    preprocessing_work: int
    delay_work: list[int]
    parts: list[SolutionPart] = field(repr=False)

    @property
    def num_parts(self) -> int:
        return len(self.parts)

    @property
    def delay_min(self) -> Optional[int]:
        return min(self.delays_ns) if self.delays_ns else None

    @property
    def delay_max(self) -> Optional[int]:
        return max(self.delays_ns) if self.delays_ns else None

    @property
    def delay_avg(self) -> Optional[float]:
        if not self.delays_ns:
            return None
        return sum(self.delays_ns) / len(self.delays_ns)

    @property
    def max_delay_work(self) -> Optional[int]:
        return max(self.delay_work) if self.delay_work else None


@dataclass
class ReferenceMeasurement:
    kind: str
    total_ns: int
    objective: Optional[float]


def measure_enumeration(
    instance: Instance,
    kind: Optional[Union[EnumeratorKind, str]] = None,
    collector: Optional[StatisticsCollector] = None,
    clock: Clock = time.perf_counter_ns,
    **options: Any,
) -> EnumerationMeasurement:
    """Enumerate ``instance`` to exhaustion, timing every ``next()`` call.

    ``preprocessing_ns`` spans from before :func:`construct` until the first
    part is returned; ``delays_ns[i]`` is the time between part ``i`` and
    part ``i + 1``. The trailing call that returns EXHAUSTED counts toward
    ``total_ns`` only.
    """
    meter = WorkMeter()
    start = clock()
    enum = construct(instance, kind=kind, meter=meter, **options)
    setup_done = clock()

    parts: list[SolutionPart] = []
    delays: list[int] = []
    delay_work: list[int] = []
    preprocessing_ns: Optional[int] = None
    preprocessing_work = 0
    last = setup_done
    while True:
        before = clock()
        part = enum.next()
        now = clock()
        if collector is not None:
            collector.record(now - before, part)
        if part is EXHAUSTED:
            break
        work = meter.checkpoint()
        if preprocessing_ns is None:
            preprocessing_ns = now - start
            preprocessing_work = work
        else:
            delays.append(now - last)
            delay_work.append(work)
        parts.append(part)
        last = now
    end = clock()
    if preprocessing_ns is None:
        # nothing to enumerate: everything was preprocessing
        preprocessing_ns = end - start
        preprocessing_work = meter.checkpoint()
    return EnumerationMeasurement(
        kind=enum.kind.value,
        setup_ns=setup_done - start,
        preprocessing_ns=preprocessing_ns,
        total_ns=end - start,
        delays_ns=delays,
        preprocessing_work=preprocessing_work,
        delay_work=delay_work,
        parts=parts,
    )


def measure_reference(
    instance: Instance,
    kind: Optional[Union[EnumeratorKind, str]] = None,
    clock: Clock = time.perf_counter_ns,
    **options: Any,
) -> ReferenceMeasurement:
    """Time the non-incremental baseline of ``kind`` on ``instance``."""
    start = clock()
    solution = solve(instance, kind, **options)
    end = clock()
    return ReferenceMeasurement(
        kind=solution.kind.value,
        total_ns=end - start,
        objective=objective_of(instance, solution.kind, solution.parts),
    )
