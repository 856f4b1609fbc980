"""Shared fixtures (small textbook instances) and a compact summary hook.

Also puts the project root on sys.path so 'incremental' imports without install.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_root = Path(__file__).resolve().parents[1]
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from incremental.meter import WorkMeter  # noqa: E402
from incremental.models import Graph  # noqa: E402

# CLRS 3rd ed., figure 24.6 (Dijkstra), vertices s,t,x,y,z -> 0..4
CLRS_DIJKSTRA_EDGES = [
    (0, 1, 10), (0, 3, 5), (1, 2, 1), (1, 3, 2), (2, 4, 4),
    (3, 1, 3), (3, 2, 9), (3, 4, 2), (4, 0, 7), (4, 2, 6),
]
# CLRS 3rd ed., figure 22.3 (BFS), vertices r,s,t,u,v,w,x,y -> 0..7
CLRS_BFS_EDGES = [
    (0, 4), (1, 5), (0, 1), (2, 3), (2, 6), (3, 6), (3, 7), (5, 2), (5, 6), (6, 7),
]


@pytest.fixture
def meter() -> WorkMeter:
    return WorkMeter()


@pytest.fixture
def clrs_weighted_directed() -> Graph:
    return Graph.weighted(5, CLRS_DIJKSTRA_EDGES, directed=True)


@pytest.fixture
def clrs_unweighted() -> Graph:
    return Graph.unweighted(8, CLRS_BFS_EDGES)


def pytest_terminal_summary(
    terminalreporter: pytest.TerminalReporter,
    exitstatus: int,
    config: pytest.Config,
) -> None:  # noqa: D401
    """Append pass/fail counts per test module at the end of the session."""
    stats = terminalreporter.stats
    per_module: dict[str, list[int]] = {}
    for outcome, col in (("passed", 0), ("failed", 1), ("skipped", 2)):
        for rep in stats.get(outcome, []):
            module = rep.nodeid.split("::", 1)[0]
            per_module.setdefault(module, [0, 0, 0])[col] += 1

    terminalreporter.section("Per-module summary", sep="=")
    for module in sorted(per_module):
        passed, failed, skipped = per_module[module]
        terminalreporter.write_line(
            f"{module}: passed={passed} failed={failed} skipped={skipped}"
        )
    if stats.get("failed"):
        terminalreporter.write_line("Failed tests:")
        for rep in stats["failed"]:
            terminalreporter.write_line(f"  - {rep.nodeid}")
