"""JSON instance files: structure, round trips of each family, malformed input."""

from __future__ import annotations

import json

import pytest

from incremental.errors import MalformedInstanceError
from incremental.generators import precedence_instance, random_graph, release_time_instance
from incremental.models import DistanceQuery, FlowShopInstance, FlowShopJob, Graph
from incremental.parser import instance_from_dict, instance_to_dict, load_instance, save_instance


def test_flow_shop_dict_layout():
    instance = FlowShopInstance((FlowShopJob(0, 2, 3), FlowShopJob(1, 4, 1)))
    assert instance_to_dict(instance) == {"type": "flowshop", "jobs": [[2, 3], [4, 1]]}


@pytest.mark.parametrize(
    "instance",
    [
        precedence_instance(20, 0.2, seed=1),
        release_time_instance(20, 1.5, seed=1),
        DistanceQuery(random_graph(15, 0.2, 9, seed=1), 3),
        Graph.unweighted(3, [(0, 1), (1, 2)], directed=True),
    ],
)
def test_save_and_load(tmp_path, instance):
    path = save_instance(instance, tmp_path / "nested" / "instance.json")
    assert load_instance(path) == instance


def test_load_from_handwritten_file(tmp_path):
    path = tmp_path / "p.json"
    path.write_text(json.dumps({"type": "parallel", "machines": 2, "jobs": [5, 1, 4]}))
    instance = load_instance(path)
    assert instance.machines == 2
    assert [j.processing_time for j in instance.jobs] == [5, 1, 4]


@pytest.mark.parametrize(
    "data",
    [
        {"type": "knapsack"},
        {"jobs": [1, 2]},  # no type
        {"type": "flowshop", "jobs": [[1]]},  # one stage only
        {"type": "parallel", "jobs": [1]},  # no machines
        {"type": "parallel", "jobs": [1], "machines": 0},
        {"type": "prec", "jobs": [1, 2], "precedences": [[0, 0]]},
        {"type": "graph", "num_vertices": 2, "edges": [[0, 1, -4]]},
        {"type": "distance_query", "source": 0, "graph": {"type": "flowshop", "jobs": []}},
    ],
)
def test_malformed_data(data):
    with pytest.raises(MalformedInstanceError):
        instance_from_dict(data)


def test_non_object_json_is_rejected(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(MalformedInstanceError):
        load_instance(path)


def test_unknown_instance_type_cannot_be_serialized():
    with pytest.raises(TypeError):
        instance_to_dict(object())
