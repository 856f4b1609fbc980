"""Enumerator: one ``next()`` over every supported problem family.

Usage::

    from incremental import construct, EXHAUSTED

    enum = construct(instance)          # bounded preprocessing
    while (part := enum.next()) is not EXHAUSTED:
        ...

The set of families is closed (:class:`EnumeratorKind`). Each kind maps to
a ``prepare`` function that validates the instance and builds the family's
state, and a ``step`` function that emits one part. Those two tables are the
only dispatch point.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Iterator, Optional, Union

from incremental.distances import (
    prepare_all_pairs,
    prepare_single_source,
    step_all_pairs,
    step_single_source,
)
from incremental.meter import NullMeter, WorkMeter
from incremental.models import (
    EXHAUSTED,
    DistanceQuery,
    Exhausted,
    FlowShopInstance,
    Graph,
    Instance,
    ParallelMachinesInstance,
    PrecedenceInstance,
    ReleaseTimeInstance,
    SolutionPart,
)
from incremental.scheduling import (
    prepare_flow_shop,
    prepare_parallel_machines,
    prepare_precedence,
    prepare_release_times,
    step_flow_shop,
    step_parallel_machines,
    step_precedence,
    step_release_times,
)
from incremental.spanning_tree import prepare_spanning_tree, step_spanning_tree

logger = logging.getLogger("incremental.enumerator")


class EnumeratorKind(Enum):
    SINGLE_MACHINE_PRECEDENCE = "prec"
    SINGLE_MACHINE_RELEASE_TIMES = "release"
    TWO_MACHINE_FLOW_SHOP = "flowshop"
    PARALLEL_MACHINES = "parallel"
    MINIMUM_SPANNING_TREE = "mst"
    SINGLE_SOURCE_DISTANCES = "sssd"
    ALL_PAIRS_DISTANCES = "apsd"

    @classmethod
    def parse(cls, value: Union[str, "EnumeratorKind"]) -> "EnumeratorKind":
        """Accept a kind, its short value (``"mst"``) or its name (``"MINIMUM_SPANNING_TREE"``)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        for kind in cls:
            if key.lower() == kind.value or key.upper() == kind.name:
                return kind
        raise ValueError(f"unknown enumerator kind {value!r}; known: {[k.value for k in cls]}")


_INSTANCE_TYPE: dict[EnumeratorKind, type] = {
    EnumeratorKind.SINGLE_MACHINE_PRECEDENCE: PrecedenceInstance,
    EnumeratorKind.SINGLE_MACHINE_RELEASE_TIMES: ReleaseTimeInstance,
    EnumeratorKind.TWO_MACHINE_FLOW_SHOP: FlowShopInstance,
    EnumeratorKind.PARALLEL_MACHINES: ParallelMachinesInstance,
    EnumeratorKind.MINIMUM_SPANNING_TREE: Graph,
    EnumeratorKind.SINGLE_SOURCE_DISTANCES: DistanceQuery,
    EnumeratorKind.ALL_PAIRS_DISTANCES: Graph,
}

_PREPARE: dict[EnumeratorKind, Callable[..., Any]] = {
    EnumeratorKind.SINGLE_MACHINE_PRECEDENCE: prepare_precedence,
    EnumeratorKind.SINGLE_MACHINE_RELEASE_TIMES: prepare_release_times,
    EnumeratorKind.TWO_MACHINE_FLOW_SHOP: prepare_flow_shop,
    EnumeratorKind.PARALLEL_MACHINES: prepare_parallel_machines,
    EnumeratorKind.MINIMUM_SPANNING_TREE: prepare_spanning_tree,
    EnumeratorKind.SINGLE_SOURCE_DISTANCES: prepare_single_source,
    EnumeratorKind.ALL_PAIRS_DISTANCES: prepare_all_pairs,
}

_STEP: dict[EnumeratorKind, Callable[[Any, WorkMeter], Any]] = {
    EnumeratorKind.SINGLE_MACHINE_PRECEDENCE: step_precedence,
    EnumeratorKind.SINGLE_MACHINE_RELEASE_TIMES: step_release_times,
    EnumeratorKind.TWO_MACHINE_FLOW_SHOP: step_flow_shop,
    EnumeratorKind.PARALLEL_MACHINES: step_parallel_machines,
    EnumeratorKind.MINIMUM_SPANNING_TREE: step_spanning_tree,
    EnumeratorKind.SINGLE_SOURCE_DISTANCES: step_single_source,
    EnumeratorKind.ALL_PAIRS_DISTANCES: step_all_pairs,
}


def infer_kind(instance: Instance) -> EnumeratorKind:
    if isinstance(instance, Graph):
        raise TypeError(
            "a Graph fits several kinds; pass kind=MINIMUM_SPANNING_TREE or ALL_PAIRS_DISTANCES"
        )
    for kind, cls in _INSTANCE_TYPE.items():
        if isinstance(instance, cls):
            return kind
    raise TypeError(f"no enumerator for instances of type {type(instance).__name__}")


class Enumerator:
    """Stateful producer of solution parts for one instance.

    Created by :func:`construct`. ``next()`` returns the next part or
    :data:`EXHAUSTED`; once exhausted the state is dropped and further
    calls return :data:`EXHAUSTED` without doing any work.
    """

    __slots__ = ("kind", "meter", "emitted", "_state", "_step")

    def __init__(self, kind: EnumeratorKind, state: Any, meter: WorkMeter) -> None:
        self.kind = kind
        self.meter = meter
        self.emitted = 0
        self._state = state
        self._step = _STEP[kind]

    @property
    def exhausted(self) -> bool:
        return self._state is None

    @property
    def state(self) -> Any:
        """Family state (read-only view); ``None`` once exhausted."""
        return self._state

    def next(self) -> Union[SolutionPart, Exhausted]:
        if self._state is None:
            return EXHAUSTED
        part = self._step(self._state, self.meter)
        if part is EXHAUSTED:
            logger.debug("%s exhausted after %d parts", self.kind.value, self.emitted)
            self._state = None
            return EXHAUSTED
        self.emitted += 1
        return part

    def __iter__(self) -> Iterator[SolutionPart]:
        while True:
            part = self.next()
            if part is EXHAUSTED:
                return
            yield part

    def __repr__(self) -> str:
        status = "exhausted" if self._state is None else "active"
        return f"Enumerator(kind={self.kind.value}, emitted={self.emitted}, {status})"


def construct(
    instance: Instance,
    kind: Optional[Union[EnumeratorKind, str]] = None,
    meter: Optional[WorkMeter] = None,
    **options: Any,
) -> Enumerator:
    """Validate ``instance`` and run the bounded preprocessing of ``kind``.

    Args:
        instance: Problem instance; never mutated.
        kind: Problem family; inferred from the instance type when omitted
            (required for a plain :class:`Graph`).
        meter: Work meter ticked by preprocessing and every step.
        **options: Family options: ``algorithm`` (MST, ``"kruskal"`` or
            ``"prim"``), ``allow_unreachable`` (single source) or
            ``order`` / ``include_self`` (all pairs).

    Raises:
        MalformedInstanceError: invalid instance (cycle, directed MST, ...).
        TypeError: ``instance`` does not fit ``kind``.
    """
    kind = infer_kind(instance) if kind is None else EnumeratorKind.parse(kind)
    expected = _INSTANCE_TYPE[kind]
    if not isinstance(instance, expected):
        raise TypeError(
            f"{kind.name} expects {expected.__name__}, got {type(instance).__name__}"
        )
    meter = meter if meter is not None else NullMeter()
    state = _PREPARE[kind](instance, meter, **options)
    return Enumerator(kind, state, meter)
