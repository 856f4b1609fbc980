"""Disjoint-set forest with union by rank and find with path halving."""

from __future__ import annotations

from typing import Optional

from incremental.meter import NullMeter, WorkMeter


class RankedUnionFind:
    """Union-find over elements ``0..size-1``.

    ``find`` uses path halving (van der Weide, 1980), ``union`` links by
    rank (CLRS 3rd ed., 21.3); together O(alpha(n)) amortized per operation.
    """

    __slots__ = ("_parent", "_rank", "_meter", "components")

    def __init__(self, size: int, meter: Optional[WorkMeter] = None) -> None:
        self._parent = list(range(size))
        self._rank = [0] * size
        self._meter = meter if meter is not None else NullMeter()
        self.components = size

    def __len__(self) -> int:
        return len(self._parent)

    def find(self, x: int) -> int:
        parent = self._parent
        while parent[x] != x:
            self._meter.tick()
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    def same(self, x: int, y: int) -> bool:
        return self.find(x) == self.find(y)

    def union(self, x: int, y: int) -> bool:
        """Merge the sets of ``x`` and ``y``; return False if already merged."""
        x = self.find(x)
        y = self.find(y)
        if x == y:
            return False
        rank_x = self._rank[x]
        rank_y = self._rank[y]
        if rank_x > rank_y:
            self._parent[y] = x
        else:
            self._parent[x] = y
            if rank_x == rank_y:
                self._rank[y] = rank_y + 1
        self.components -= 1
        return True

    def sets(self) -> list[list[int]]:
        """All disjoint sets, each sorted, ordered by their smallest element."""
        groups: dict[int, list[int]] = {}
        for x in range(len(self._parent)):
            groups.setdefault(self.find(x), []).append(x)
        return sorted(groups.values(), key=lambda s: s[0])
