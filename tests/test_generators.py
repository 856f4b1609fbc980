import random

import pytest

from incremental.enumerator import construct
from incremental.generators import (
    TaillardLCG,
    cache_file_name,
    flow_shop_instance,
    forward_edges,
    generate_with_cache,
    parallel_machines_instance,
    precedence_instance,
    random_graph,
    release_time_instance,
    taillard_processing_times,
)
from incremental.models import FlowShopJob
from incremental.reference import bfs

TA001_SEED = 873654221
TA001_M1 = [54, 83, 15, 71, 77, 36, 53, 38, 27, 87, 76, 91, 14, 29, 12, 77, 32, 87, 68, 94]
TA001_M2 = [79, 3, 11, 99, 56, 70, 99, 60, 5, 56, 3, 61, 73, 75, 47, 14, 21, 86, 5, 77]


def test_taillard_lcg_reproduces_ta001():
    times = taillard_processing_times(20, 5, TA001_SEED)
    assert len(times) == 5
    assert times[0] == TA001_M1
    assert times[1] == TA001_M2


def test_flow_shop_instance_uses_first_two_machines_of_ta001():
    instance = flow_shop_instance(20, TA001_SEED)
    assert instance.jobs[0] == FlowShopJob(0, 54, 79)
    assert [j.first for j in instance.jobs] == TA001_M1
    assert [j.second for j in instance.jobs] == TA001_M2


def test_taillard_lcg_zero_seed_is_remapped():
    rng = TaillardLCG(0)
    assert rng.seed == 0xBAD
    assert 0 < rng.next_double() < 1


def test_lcg_next_int_bounds():
    rng = TaillardLCG(12345)
    values = [rng.next_int(3, 5) for _ in range(500)]
    assert set(values) == {3, 4, 5}


def test_release_times_respect_spread():
    instance = release_time_instance(100, 0.5, seed=77)
    total = sum(j.processing_time for j in instance.jobs)
    assert all(1 <= j.processing_time <= 99 for j in instance.jobs)
    assert all(0 <= j.release_time <= total * 0.5 for j in instance.jobs)
    assert release_time_instance(100, 0.5, seed=77) == instance


def test_parallel_machines_instance():
    instance = parallel_machines_instance(30, 3, seed=1)
    assert instance.machines == 3
    assert [j.id for j in instance.jobs] == list(range(30))


@pytest.mark.parametrize("p", [0.0, 0.3, 1.0])
def test_forward_edges(p):
    edges = forward_edges(40, p, random.Random(3))
    assert all(w < v for w, v in edges)
    assert len(set(edges)) == len(edges)
    if p == 0.0:
        assert edges == []
    if p == 1.0:
        assert len(edges) == 40 * 39 // 2


def test_precedence_instance_is_acyclic_and_reproducible():
    instance = precedence_instance(100, 0.1, seed=5)
    assert instance == precedence_instance(100, 0.1, seed=5)
    assert len(instance.precedences) > 0
    # acyclic: constructing an enumerator would raise on a cycle
    assert len(list(construct(instance))) == 100


def test_random_graph_is_connected():
    graph = random_graph(200, 0.0, 10, seed=4)
    assert len(graph.edges) == 199
    assert None not in bfs(graph, 0)
    assert all(1 <= e.weight <= 10 for e in graph.edges)


def test_generate_with_cache_writes_and_reuses(tmp_path):
    params = {"jobs": 15}
    first = generate_with_cache("flowshop", params, 9, tmp_path)
    path = tmp_path / cache_file_name("flowshop", params, 9)
    assert path.exists()
    mtime = path.stat().st_mtime_ns
    second = generate_with_cache("flowshop", params, 9, tmp_path)
    assert second == first
    assert path.stat().st_mtime_ns == mtime


def test_generate_without_cache_and_unknown_name():
    assert generate_with_cache("parallel", {"jobs": 4, "machines": 2}, 1).machines == 2
    with pytest.raises(ValueError):
        generate_with_cache("tsp", {}, 1)
