"""Incremental quick sort (Paredes & Navarro, ALENEX 2006).

Yields the elements of a sequence in sorted order, one at a time. Producing
the first ``k`` elements costs O(n + k log k) expected time, so an
enumerator that only needs the next element never pays for a full sort up
front.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

from incremental.meter import NullMeter, WorkMeter

T = TypeVar("T")


def partition(a: list, lo: int, hi: int, key: Callable[[Any], Any]) -> int:
    """Partition ``a[lo:hi]`` around its last element; return the pivot index.

    After the call every element left of the pivot is not greater and every
    element right of it is not smaller. If many elements equal the pivot,
    the pivot position is moved towards the middle of the slice (still
    inside the run of equal elements), so that inputs with lots of
    duplicates do not degrade to quadratic time.
    """
    pivot = key(a[hi - 1])
    i = lo
    for j in range(lo, hi - 1):
        if key(a[j]) < pivot:
            a[i], a[j] = a[j], a[i]
            i += 1
    a[i], a[hi - 1] = a[hi - 1], a[i]

    mid = lo + (hi - lo) // 2
    if mid <= i:
        return i
    # elements a[i+1..r] equal the pivot; choose min(r, mid)
    for p in range(i + 1, mid + 1):
        if pivot < key(a[p]):
            return p - 1
    return mid


class IncrementalQuickSort(Generic[T]):
    """Iterator over ``elements`` in ascending ``key`` order.

    Ties keep no particular order, so callers that need determinism put a
    tie-breaker into the key (e.g. ``(value, id)``).
    """

    def __init__(
        self,
        elements: Iterable[T],
        key: Optional[Callable[[T], Any]] = None,
        meter: Optional[WorkMeter] = None,
    ) -> None:
        self._a: list[T] = list(elements)
        self._key = key if key is not None else (lambda x: x)
        self._idx = 0
        self._stack = [len(self._a)]
        self._meter = meter if meter is not None else NullMeter()

    def __iter__(self) -> Iterator[T]:
        return self

    def __len__(self) -> int:
        return len(self._a) - self._idx

    def __next__(self) -> T:
        if self._idx >= len(self._a):
            raise StopIteration
        top = self._stack[-1]
        while self._idx != top:
            self._meter.tick(top - self._idx)
            top = partition(self._a, self._idx, top, self._key)
            self._stack.append(top)
        self._stack.pop()
        self._idx += 1
        return self._a[top]
