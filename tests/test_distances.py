"""Single-source and all-pairs distance enumeration."""

import pytest

from incremental.enumerator import EnumeratorKind, construct
from incremental.errors import MalformedInstanceError
from incremental.generators import random_graph
from incremental.models import EXHAUSTED, DistancePart, DistanceQuery, Graph
from incremental.reference import bfs, dijkstra, floyd_warshall
from incremental.validation import validate_distances

APSD = EnumeratorKind.ALL_PAIRS_DISTANCES


def distances_of(parts, n):
    out = [None] * n
    for p in parts:
        out[p.target] = p.distance
    return out


def test_dijkstra_clrs_directed(clrs_weighted_directed):
    parts = list(construct(DistanceQuery(clrs_weighted_directed, 0)))
    assert [(p.target, p.distance) for p in parts] == [(0, 0), (3, 5), (4, 7), (1, 8), (2, 9)]
    assert all(p.source == 0 for p in parts)


def test_dijkstra_clrs_undirected():
    graph = Graph.weighted(
        5,
        [(0, 1, 10), (0, 3, 5), (1, 2, 1), (1, 3, 2), (2, 4, 4), (3, 2, 9), (3, 4, 2), (4, 0, 7)],
    )
    parts = list(construct(DistanceQuery(graph, 0)))
    assert distances_of(parts, 5) == [0, 7, 8, 5, 7]
    assert validate_distances(graph, parts)


def test_bfs_clrs_undirected(clrs_unweighted):
    parts = list(construct(DistanceQuery(clrs_unweighted, 1)))
    assert distances_of(parts, 8) == [1, 0, 2, 3, 2, 1, 2, 3]
    assert [p.distance for p in parts] == sorted(p.distance for p in parts)


def test_bfs_directed_with_unreachable_vertices(clrs_unweighted):
    graph = Graph(8, clrs_unweighted.edges, directed=True)
    with pytest.raises(MalformedInstanceError, match="unreachable"):
        construct(DistanceQuery(graph, 1))
    parts = list(construct(DistanceQuery(graph, 1), allow_unreachable=True))
    assert distances_of(parts, 8) == [None, 0, 2, 3, None, 1, 2, 3]
    # unreachable targets come last
    assert [p.target for p in parts[-2:]] == [0, 4]
    assert validate_distances(graph, parts)


def test_single_vertex_graph():
    enum = construct(DistanceQuery(Graph(1), 0))
    assert enum.next() == DistancePart(0, 0, 0)
    assert enum.next() is EXHAUSTED


def test_source_out_of_range():
    with pytest.raises(MalformedInstanceError):
        DistanceQuery(Graph(3), 3)


def test_distances_are_write_once_and_emitted_in_order():
    graph = random_graph(300, 0.02, 50, seed=9)
    parts = list(construct(DistanceQuery(graph, 4)))
    assert len(parts) == 300
    assert [p.distance for p in parts] == sorted(p.distance for p in parts)
    assert distances_of(parts, 300) == dijkstra(graph, 4)


def test_uniform_random_graph_uses_bfs_distances():
    graph = random_graph(300, 0.02, 1, seed=9)
    assert graph.is_uniform()
    parts = list(construct(DistanceQuery(graph, 0)))
    assert distances_of(parts, 300) == bfs(graph, 0)


# --------------------------
# all pairs
# --------------------------
def test_apsd_by_source(clrs_weighted_directed):
    parts = list(construct(clrs_weighted_directed, APSD))
    assert len(parts) == 25
    assert [p.source for p in parts] == sorted(p.source for p in parts)
    matrix = floyd_warshall(clrs_weighted_directed)
    assert all(p.distance == matrix[p.source][p.target] for p in parts)


def test_apsd_without_self_pairs(clrs_weighted_directed):
    parts = list(construct(clrs_weighted_directed, APSD, include_self=False))
    assert len(parts) == 20
    assert all(p.source != p.target for p in parts)


def test_apsd_sorted_by_distance(clrs_weighted_directed):
    parts = list(construct(clrs_weighted_directed, APSD, order="distance"))
    keys = [(p.distance, p.source) for p in parts]
    assert keys == sorted(keys)
    assert parts[:5] == [DistancePart(s, s, 0) for s in range(5)]
    assert validate_distances(clrs_weighted_directed, parts)


def test_apsd_sorted_reports_unreachable_last():
    graph = Graph.weighted(3, [(0, 1, 4), (1, 2, 1)], directed=True)
    parts = list(construct(graph, APSD, order="distance", include_self=False))
    assert [(p.source, p.target, p.distance) for p in parts] == [
        (1, 2, 1),
        (0, 1, 4),
        (0, 2, 5),
        (1, 0, None),
        (2, 0, None),
        (2, 1, None),
    ]


def test_apsd_unreachable_pairs_by_source():
    graph = Graph.unweighted(3, [(0, 1)], directed=True)
    parts = list(construct(graph, APSD))
    assert distances_of([p for p in parts if p.source == 2], 3) == [None, None, 0]


def test_apsd_unknown_order():
    with pytest.raises(ValueError):
        construct(Graph(2), APSD, order="random")


def test_apsd_creates_searches_lazily():
    graph = random_graph(50, 0.1, 10, seed=3)
    enum = construct(graph, APSD)
    enum.next()
    assert enum.state.live_searches == 1
    list(enum)
    assert enum.state is None


@pytest.mark.parametrize("order", ["source", "distance"])
def test_apsd_matches_floyd_warshall(order):
    graph = random_graph(40, 0.1, 20, seed=17)
    parts = list(construct(graph, APSD, order=order))
    matrix = floyd_warshall(graph)
    assert len(parts) == 40 * 40
    assert {(p.source, p.target): p.distance for p in parts} == {
        (u, v): matrix[u][v] for u in range(40) for v in range(40)
    }


def test_floyd_warshall_clrs(clrs_weighted_directed):
    assert floyd_warshall(clrs_weighted_directed)[0] == [0, 8, 9, 5, 7]


def test_validate_distances_rejects_wrong_value(clrs_weighted_directed):
    with pytest.raises(ValueError):
        validate_distances(clrs_weighted_directed, [DistancePart(0, 1, 9)])


def test_validate_distances_rejects_truncated_output():
    graph = Graph.unweighted(4, [(0, 1), (1, 2), (2, 3)])
    parts = list(construct(DistanceQuery(graph, 0)))
    assert validate_distances(graph, parts, sources=[0])
    with pytest.raises(ValueError, match="Incomplete"):
        validate_distances(graph, parts[:1])
    with pytest.raises(ValueError, match="Incomplete"):
        validate_distances(graph, [], sources=[0])


def test_validate_distances_all_pairs_needs_every_source(clrs_weighted_directed):
    parts = list(construct(clrs_weighted_directed, APSD))
    assert validate_distances(clrs_weighted_directed, parts, sources=range(5))
    without_last = [p for p in parts if p.source != 4]
    # each reported source is complete, but source 4 is missing entirely
    assert validate_distances(clrs_weighted_directed, without_last)
    with pytest.raises(ValueError, match="Incomplete distances from 4"):
        validate_distances(clrs_weighted_directed, without_last, sources=range(5))


def test_validate_distances_self_pairs():
    graph = Graph.weighted(3, [(0, 1, 4), (1, 2, 1)], directed=True)
    parts = list(construct(graph, APSD, include_self=False))
    assert validate_distances(graph, parts, sources=range(3), include_self=False)
    with pytest.raises(ValueError, match="Incomplete"):
        validate_distances(graph, parts, sources=range(3))
    with pytest.raises(ValueError, match="Self pair"):
        validate_distances(graph, [DistancePart(0, 0, 0)], include_self=False)
