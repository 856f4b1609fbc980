"""Elementary-operation counter shared by enumerators and lazy arrays.

Kept in its own module so that low-level structures can tick a meter
without importing the accounting layer (which imports the enumerators).
"""

from __future__ import annotations


class WorkMeter:
    """Counts abstract work units (heap pops, relaxations, rule calls ...)."""

    __slots__ = ("ticks", "_mark")

    def __init__(self) -> None:
        self.ticks = 0
        self._mark = 0

    def tick(self, n: int = 1) -> None:
        self.ticks += n

    def checkpoint(self) -> int:
        """Return the ticks since the previous checkpoint and set a new one."""
        delta = self.ticks - self._mark
        self._mark = self.ticks
        return delta

    def __repr__(self) -> str:
        return f"WorkMeter(ticks={self.ticks})"


class NullMeter(WorkMeter):
    """Meter that ignores all ticks; default when nobody is measuring."""

    __slots__ = ()

    def tick(self, n: int = 1) -> None:
        pass
