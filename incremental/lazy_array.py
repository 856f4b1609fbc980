"""On-demand, memoizing, write-once array.

An entry is computed the first time it is read, by a pure rule ``rule(i)``
that may itself read other entries of the same array. Storage is sparse, so
creating an array of size ``n`` costs O(1): nothing is materialized before
it is needed.

Every slot is in exactly one of three states::

    UNFORCED     -- never computed nor set
    IN_PROGRESS  -- its rule is running (reading it now means a cycle)
    MEMOIZED     -- value fixed for the rest of the array's lifetime
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from incremental.errors import CyclicDependencyError, MissingRuleError, WriteOnceError
from incremental.meter import NullMeter, WorkMeter

V = TypeVar("V")


class SlotState(Enum):
    UNFORCED = "unforced"
    IN_PROGRESS = "in_progress"
    MEMOIZED = "memoized"


class LazyArray(Generic[V]):
    """Fixed-size container whose entries are computed at most once.

    Args:
        size: Number of addressable slots (indices ``0..size-1``).
        rule: Pure computation rule ``rule(i) -> value``. Without a rule the
            array is a sparse write-once store filled through :meth:`set`.
        meter: Optional work meter ticked once per rule invocation.
    """

    __slots__ = ("_size", "_rule", "_values", "_in_progress", "_meter", "computations")

    def __init__(
        self,
        size: int,
        rule: Optional[Callable[[int], V]] = None,
        meter: Optional[WorkMeter] = None,
    ) -> None:
        if size < 0:
            raise ValueError(f"size must be non-negative, got {size}")
        self._size = size
        self._rule = rule
        self._values: dict[int, V] = {}
        self._in_progress: set[int] = set()
        self._meter = meter if meter is not None else NullMeter()
        self.computations = 0

    def __len__(self) -> int:
        return self._size

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self._size:
            raise IndexError(f"index {index} out of range for lazy array of size {self._size}")

    def state(self, index: int) -> SlotState:
        self._check_index(index)
        if index in self._values:
            return SlotState.MEMOIZED
        if index in self._in_progress:
            return SlotState.IN_PROGRESS
        return SlotState.UNFORCED

    def is_memoized(self, index: int) -> bool:
        self._check_index(index)
        return index in self._values

    @property
    def memoized_count(self) -> int:
        return len(self._values)

    def get(self, index: int) -> V:
        """Return entry ``index``, computing and memoizing it on first access.

        Raises:
            IndexError: ``index`` outside ``0..size-1``.
            CyclicDependencyError: the entry is already being computed, i.e.
                its rule (transitively) asked for itself.
            MissingRuleError: the entry is unset and there is no rule.
        """
        self._check_index(index)
        try:
            return self._values[index]
        except KeyError:
            pass
        if index in self._in_progress:
            raise CyclicDependencyError(index)
        if self._rule is None:
            raise MissingRuleError(index)

        self._in_progress.add(index)
        try:
            value = self._rule(index)
        finally:
            # a failing rule leaves the slot unforced, never half-memoized
            self._in_progress.discard(index)
        self.computations += 1
        self._meter.tick()
        self._values[index] = value
        return value

    __getitem__ = get

    def peek(self, index: int, default: Optional[V] = None) -> Optional[V]:
        """Return the memoized entry or ``default``; never runs the rule."""
        self._check_index(index)
        return self._values.get(index, default)

    def set(self, index: int, value: V) -> None:
        """Seed an unforced entry. Entries are write-once.

        Raises:
            WriteOnceError: the entry is memoized or currently being computed.
        """
        self._check_index(index)
        if index in self._values or index in self._in_progress:
            raise WriteOnceError(index)
        self._values[index] = value

    def __repr__(self) -> str:
        return f"LazyArray(size={self._size}, memoized={len(self._values)})"
