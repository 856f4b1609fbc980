import random

import pytest

from incremental.meter import WorkMeter
from incremental.sorting import IncrementalQuickSort, partition
from incremental.union_find import RankedUnionFind


def test_partition_clrs_example():
    # CLRS 3rd ed., figure 7.1
    a = [2, 8, 7, 1, 3, 5, 6, 4]
    pivot = partition(a, 0, len(a), key=lambda x: x)
    assert pivot == 3
    assert a == [2, 1, 3, 4, 7, 5, 6, 8]


def test_partition_all_equal_picks_central_position():
    a = [0, 0, 0, 0, 0]
    assert partition(a, 0, 5, key=lambda x: x) == 2


def test_partition_with_duplicates_keeps_equal_elements_left_of_pivot():
    a = [3, 1, 3, 3, 3, 2, 3]
    pivot = partition(a, 0, len(a), key=lambda x: x)
    assert pivot == 3
    assert a[2] == a[pivot] == 3
    assert all(x <= a[pivot] for x in a[:pivot])
    assert all(x >= a[pivot] for x in a[pivot + 1:])


def test_incremental_quick_sort_yields_sorted_sequence():
    data = [49, 81, 74, 12, 58, 92, 86, 33, 67, 18, 25, 37, 51, 63, 29, 41]
    assert list(IncrementalQuickSort(data)) == sorted(data)


def test_incremental_quick_sort_prefix_and_len():
    rng = random.Random(7)
    data = [rng.randint(0, 50) for _ in range(200)]
    it = IncrementalQuickSort(data)
    first = [next(it) for _ in range(10)]
    assert first == sorted(data)[:10]
    assert len(it) == 190
    assert first + list(it) == sorted(data)


def test_incremental_quick_sort_with_key_and_meter():
    meter = WorkMeter()
    words = ["pear", "fig", "banana", "kiwi", "apple"]
    it = IncrementalQuickSort(words, key=lambda w: (len(w), w), meter=meter)
    assert list(it) == ["fig", "kiwi", "pear", "apple", "banana"]
    assert meter.ticks > 0


def test_incremental_quick_sort_does_not_touch_input():
    data = [3, 1, 2]
    list(IncrementalQuickSort(data))
    assert data == [3, 1, 2]


@pytest.mark.parametrize("data", [[], [1], [2, 2, 2, 2], list(range(30, 0, -1))])
def test_incremental_quick_sort_edge_cases(data):
    assert list(IncrementalQuickSort(data)) == sorted(data)


def test_exhausted_quick_sort_keeps_raising_stop_iteration():
    it = IncrementalQuickSort([1])
    assert next(it) == 1
    assert next(it, None) is None
    assert next(it, None) is None


def test_union_find_clrs_example():
    # CLRS 3rd ed., figure 21.1, vertices a..j -> 0..9
    uf = RankedUnionFind(10)
    for x, y in [(1, 3), (4, 6), (0, 2), (7, 8), (0, 1), (4, 5), (1, 2)]:
        uf.union(x, y)
    assert uf.sets() == [[0, 1, 2, 3], [4, 5, 6], [7, 8], [9]]
    assert uf.components == 4


def test_union_reports_whether_sets_merged():
    uf = RankedUnionFind(3)
    assert uf.union(0, 1)
    assert not uf.union(1, 0)
    assert uf.same(0, 1)
    assert not uf.same(0, 2)
    assert len(uf) == 3


def test_union_find_long_chain_stays_consistent():
    uf = RankedUnionFind(1000)
    for i in range(999):
        uf.union(i, i + 1)
    assert uf.components == 1
    root = uf.find(0)
    assert all(uf.find(i) == root for i in range(1000))
