"""Seeded random instance generators.

Processing times come from Taillard's generator (``TaillardLCG``) so that
scheduling instances match the published ``ta`` benchmark construction.
Graph structure uses ``random.Random(seed)``.
"""

from __future__ import annotations

import logging
import math
import random
from pathlib import Path
from typing import Any, Callable

from incremental.models import (
    Edge,
    FlowShopInstance,
    FlowShopJob,
    Graph,
    Instance,
    Job,
    ParallelMachinesInstance,
    PrecedenceInstance,
    ReleaseTimeInstance,
)
from incremental.parser import load_instance, save_instance

logger = logging.getLogger("incremental.generators")


class TaillardLCG:
    """Taillard's portable linear congruential generator (EJOR 64, 1993).

    ``X_{k+1} = 16807 * X_k mod (2^31 - 1)`` evaluated with Schrage's method.
    """

    A = 16807
    B = 127773
    C = 2836
    M = 2**31 - 1

    def __init__(self, seed: int) -> None:
        seed %= 2**31
        # 0 is a fixed point of the recurrence
        self.seed = seed if seed != 0 else 0xBAD

    def next_double(self) -> float:
        k = self.seed // self.B
        self.seed = self.A * (self.seed % self.B) - k * self.C
        if self.seed < 0:
            self.seed += self.M
        return self.seed / self.M

    def next_int(self, low: int, high: int) -> int:
        """Uniform integer from ``low..high`` (both inclusive)."""
        return low + int(self.next_double() * (high - low + 1))


def taillard_processing_times(jobs: int, machines: int, seed: int) -> list[list[int]]:
    """``machines`` rows of ``jobs`` times in ``1..99``, generated machine by machine."""
    rng = TaillardLCG(seed)
    return [[rng.next_int(1, 99) for _ in range(jobs)] for _ in range(machines)]


# --------------------------
# scheduling
# --------------------------
def flow_shop_instance(jobs: int, seed: int) -> FlowShopInstance:
    first, second = taillard_processing_times(jobs, 2, seed)
    return FlowShopInstance(tuple(FlowShopJob(j, first[j], second[j]) for j in range(jobs)))


def parallel_machines_instance(jobs: int, machines: int, seed: int) -> ParallelMachinesInstance:
    (times,) = taillard_processing_times(jobs, 1, seed)
    return ParallelMachinesInstance(tuple(Job(j, p) for j, p in enumerate(times)), machines)


def release_time_instance(jobs: int, release_spread: float, seed: int) -> ReleaseTimeInstance:
    """Release times uniform in ``0..floor(T * release_spread)``, T the total work.

    ``release_spread < 1`` gives queues of waiting jobs, ``> 1`` idle gaps.
    """
    rng = TaillardLCG(seed)
    times = [rng.next_int(1, 99) for _ in range(jobs)]
    max_release = math.floor(sum(times) * release_spread)
    releases = [rng.next_int(0, max_release) for _ in range(jobs)]
    return ReleaseTimeInstance(
        tuple(Job(j, times[j], releases[j]) for j in range(jobs))
    )


def forward_edges(n: int, edge_probability: float, rng: random.Random) -> list[tuple[int, int]]:
    """Edges ``(w, v)``, ``w < v``, each present with ``edge_probability``.

    Skips geometric gaps instead of flipping one coin per pair (Batagelj &
    Brandes, Phys. Rev. E 71, 2005), so the cost is O(n + m).
    """
    if edge_probability <= 0.0:
        return []
    if edge_probability >= 1.0:
        return [(w, v) for v in range(1, n) for w in range(v)]
    edges = []
    lp = math.log(1.0 - edge_probability)
    v, w = 1, -1
    while v < n:
        w += 1 + int(math.log(1.0 - rng.random()) / lp)
        while w >= v and v < n:
            w -= v
            v += 1
        if v < n:
            edges.append((w, v))
    return edges


def precedence_instance(jobs: int, edge_probability: float, seed: int) -> PrecedenceInstance:
    """Random G(n,p) DAG over jobs with Taillard processing times."""
    (times,) = taillard_processing_times(jobs, 1, seed)
    rng = random.Random(seed)
    labels = list(range(jobs))
    rng.shuffle(labels)
    precedences = [(labels[w], labels[v]) for w, v in forward_edges(jobs, edge_probability, rng)]
    rng.shuffle(precedences)
    return PrecedenceInstance(tuple(Job(j, p) for j, p in enumerate(times)), tuple(precedences))


# --------------------------
# graphs
# --------------------------
def random_graph(
    vertices: int,
    edge_probability: float,
    max_weight: int,
    seed: int,
) -> Graph:
    """Connected undirected graph: random spanning tree plus G(n,p) edges.

    ``max_weight == 1`` gives the uniform-weight variant.
    """
    rng = random.Random(seed)
    labels = list(range(vertices))
    rng.shuffle(labels)
    pairs = {(rng.randrange(v), v) for v in range(1, vertices)}
    pairs.update(forward_edges(vertices, edge_probability, rng))
    edges = []
    for w, v in sorted(pairs):
        u, x = labels[w], labels[v]
        if rng.random() < 0.5:
            u, x = x, u
        edges.append(Edge(u, x, rng.randint(1, max_weight)))
    rng.shuffle(edges)
    return Graph(vertices, tuple(edges))


GENERATORS: dict[str, Callable[..., Instance]] = {
    "flowshop": flow_shop_instance,
    "parallel": parallel_machines_instance,
    "release": release_time_instance,
    "prec": precedence_instance,
    "graph": random_graph,
}


def cache_file_name(name: str, params: dict[str, Any], seed: int) -> str:
    label = "_".join(f"{k}={params[k]}" for k in sorted(params))
    return f"{name}_{label}_seed={seed}.json" if label else f"{name}_seed={seed}.json"


def generate_with_cache(
    name: str, params: dict[str, Any], seed: int, cache_dir: str | Path | None = None
) -> Instance:
    """Generate an instance, reusing a JSON copy from ``cache_dir`` if present."""
    try:
        generator = GENERATORS[name]
    except KeyError:
        raise ValueError(f"Unknown generator {name!r}; known: {sorted(GENERATORS)}") from None
    if cache_dir is None:
        return generator(**params, seed=seed)
    path = Path(cache_dir) / cache_file_name(name, params, seed)
    if path.exists():
        logger.debug("Instance cache hit %s", path)
        return load_instance(path)
    instance = generator(**params, seed=seed)
    save_instance(instance, path)
    logger.info("Generated %s -> %s", name, path)
    return instance
