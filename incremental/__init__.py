"""Incremental enumeration of solution parts for scheduling and graph problems.

Exports the enumerator entry points, instance models and the lazy array.
"""

from incremental.accounting import (  # noqa: F401
    EnumerationMeasurement,
    RecordingCollector,
    measure_enumeration,
    measure_reference,
)
from incremental.enumerator import Enumerator, EnumeratorKind, construct  # noqa: F401
from incremental.errors import (  # noqa: F401
    CyclicDependencyError,
    EnumerationError,
    InvariantViolationError,
    MalformedInstanceError,
)
from incremental.lazy_array import LazyArray, SlotState  # noqa: F401
from incremental.meter import WorkMeter  # noqa: F401
from incremental.models import (  # noqa: F401
    EXHAUSTED,
    DistancePart,
    DistanceQuery,
    Edge,
    EdgePart,
    FlowShopInstance,
    FlowShopJob,
    FlowShopPart,
    Graph,
    Job,
    ParallelMachinesInstance,
    PrecedenceInstance,
    ReleaseTimeInstance,
    SchedulePart,
)

__all__ = [
    "EXHAUSTED",
    "CyclicDependencyError",
    "DistancePart",
    "DistanceQuery",
    "Edge",
    "EdgePart",
    "EnumerationError",
    "EnumerationMeasurement",
    "Enumerator",
    "EnumeratorKind",
    "FlowShopInstance",
    "FlowShopJob",
    "FlowShopPart",
    "Graph",
    "InvariantViolationError",
    "Job",
    "LazyArray",
    "MalformedInstanceError",
    "ParallelMachinesInstance",
    "PrecedenceInstance",
    "RecordingCollector",
    "ReleaseTimeInstance",
    "SchedulePart",
    "SlotState",
    "WorkMeter",
    "construct",
    "measure_enumeration",
    "measure_reference",
]
