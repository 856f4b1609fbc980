"""Experiment runner, plan generation and CSV aggregation on tiny plans."""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from incremental.enumerator import EnumeratorKind, construct
from incremental.experiments.aggregate import (
    StoringAggregation,
    StreamingAggregation,
    aggregate_by_problem,
    load_results_dir,
    write_aggregate_csv,
    write_summary_csv,
)
from incremental.experiments.runner import (
    PROBLEMS,
    ExperimentRunner,
    RunConfig,
    generate_plan,
    validate_parts,
)
from incremental.models import DistanceQuery, Graph


def tiny_config() -> dict:
    return {
        "experiment": {
            "problems": ["flowshop", "mst", "sssd"],
            "sizes": [10, 20],
            "seeds": [1],
            "repeats": 2,
        },
        "graph": {"edge_probability": 0.2, "max_weight": 9},
        "options": {"sssd": {"allow_unreachable": True}},
    }


def test_generate_plan_expands_all_combinations():
    plan = generate_plan(tiny_config())
    assert len(plan) == 3 * 2 * 1 * 2
    mst = [c for c in plan if c.problem == "mst"]
    assert mst[0].params == {"edge_probability": 0.2, "max_weight": 9}
    sssd = [c for c in plan if c.problem == "sssd"]
    assert sssd[0].options == {"allow_unreachable": True}
    flowshop = [c for c in plan if c.problem == "flowshop"]
    assert flowshop[0].params == {}


def test_generate_plan_defaults_and_unknown_problem():
    plan = generate_plan({"experiment": {"sizes": [5], "seeds": [3]}})
    assert {c.problem for c in plan} == set(PROBLEMS)
    assert [c for c in plan if c.problem == "parallel"][0].params == {"machines": 4}
    with pytest.raises(ValueError):
        generate_plan({"experiment": {"problems": ["tsp"]}})


def test_runner_persists_one_json_per_run(tmp_path: Path):
    runner = ExperimentRunner(tmp_path / "results", cache_dir=tmp_path / "cache", keep_delays=True)
    results = runner.run(generate_plan(tiny_config()))
    assert len(results) == 12
    assert all(r.valid for r in results)
    files = list(runner.timestamp_dir.glob("*.json"))
    assert len(files) == 12
    data = json.loads(files[0].read_text(encoding="utf-8"))
    assert {"config", "kind", "delay_max_ns", "approximation_ratio"} <= set(data)
    # instances are generated once per (problem, size, seed) and then reused
    assert len(list((tmp_path / "cache").glob("*.json"))) == 4
    flowshop = [r for r in results if r.config.problem == "flowshop"]
    assert all(r.approximation_ratio == 1.0 for r in flowshop)
    assert all(len(r.delays_ns) == r.num_parts - 1 for r in results)


def test_runner_skips_failing_runs(tmp_path: Path):
    runner = ExperimentRunner(tmp_path)
    plan = [
        RunConfig(problem="flowshop", size=5, seed=1),
        RunConfig(problem="flowshop", size=5, seed=1, options={"order": "distance"}),
        RunConfig(problem="tsp", size=5, seed=1),
    ]
    results = runner.run(plan)
    assert len(results) == 1
    assert results[0].delays_ns == []


def test_summary_and_aggregate_csv(tmp_path: Path):
    runner = ExperimentRunner(tmp_path)
    runner.run(generate_plan(tiny_config()))
    rows = load_results_dir(runner.timestamp_dir)
    assert len(rows) == 12
    summary = write_summary_csv(runner.timestamp_dir)
    with open(summary, newline="", encoding="utf-8") as f:
        records = list(csv.DictReader(f))
    assert len(records) == 12
    assert {r["problem"] for r in records} == {"flowshop", "mst", "sssd"}
    out = write_aggregate_csv(runner.timestamp_dir, rows)
    with open(out, newline="", encoding="utf-8") as f:
        agg = list(csv.DictReader(f))
    assert [(r["problem"], r["size"]) for r in agg] == [
        ("flowshop", "10"), ("flowshop", "20"), ("mst", "10"), ("mst", "20"),
        ("sssd", "10"), ("sssd", "20"),
    ]
    assert all(r["n"] == "2" for r in agg)


def test_load_results_dir_skips_broken_files(tmp_path: Path):
    (tmp_path / "ok.json").write_text('{"config": {"problem": "mst", "size": 3}}')
    (tmp_path / "broken.json").write_text("{not json")
    rows = load_results_dir(tmp_path)
    assert len(rows) == 1


def test_empty_summary_is_not_written(tmp_path: Path):
    out = write_summary_csv(tmp_path)
    assert not out.exists()


def test_storing_aggregation_odd_count():
    agg = StoringAggregation()
    agg.extend([5, 1, 4, 2, 3])
    assert agg.median == 3
    assert agg.lower_quartile == 1.5
    assert agg.upper_quartile == 4.5
    assert (agg.min, agg.max, agg.avg, agg.n) == (1, 5, 3, 5)


def test_storing_aggregation_even_count():
    agg = StoringAggregation([4, 1, 3, 2])
    assert agg.median == 2.5
    assert agg.lower_quartile == 1.5
    assert agg.upper_quartile == 3.5


def test_storing_aggregation_empty():
    assert StoringAggregation().to_dict() == {
        "n": 0,
        "min": None,
        "lower_quartile": None,
        "median": None,
        "upper_quartile": None,
        "max": None,
        "avg": None,
    }


def test_aggregate_by_problem_ignores_missing_metric():
    rows = [
        {"config": {"problem": "mst", "size": 10}, "delay_max_ns": 5},
        {"config": {"problem": "mst", "size": 10}, "delay_max_ns": None},
        {"config": {"problem": "mst", "size": 20}, "delay_max_ns": 7},
    ]
    groups = aggregate_by_problem(rows)
    assert groups["mst"][10].values == [5]
    assert groups["mst"][20].median == 7


def test_validate_parts_rejects_incomplete_distance_runs():
    path = Graph.unweighted(3, [(0, 1), (1, 2)])
    query = DistanceQuery(path, 0)
    sssd = list(construct(query))
    assert validate_parts(query, EnumeratorKind.SINGLE_SOURCE_DISTANCES, sssd)
    with pytest.raises(ValueError):
        validate_parts(query, EnumeratorKind.SINGLE_SOURCE_DISTANCES, [])
    apsd = list(construct(path, "apsd", include_self=False))
    options = {"include_self": False}
    assert validate_parts(path, EnumeratorKind.ALL_PAIRS_DISTANCES, apsd, options)
    with pytest.raises(ValueError):
        validate_parts(path, EnumeratorKind.ALL_PAIRS_DISTANCES, apsd[:-1], options)


def test_streaming_aggregation_running_average():
    values = [1, 7, 6, 3, 4, 9, 0, 5, 8, 2]
    streaming = StreamingAggregation()
    streaming.extend(values)
    assert (streaming.n, streaming.min, streaming.max) == (10, 0, 9)
    assert streaming.avg == pytest.approx(4.5)
    storing = StoringAggregation(values)
    assert streaming.avg == pytest.approx(storing.avg)


def test_streaming_aggregation_empty_and_single():
    agg = StreamingAggregation()
    assert agg.to_dict() == {"n": 0, "min": None, "max": None, "avg": None}
    agg.add(12)
    assert (agg.n, agg.min, agg.max, agg.avg) == (1, 12, 12, 12)


def test_streaming_aggregate_csv(tmp_path: Path):
    rows = [
        {"config": {"problem": "mst", "size": 10}, "delay_max_ns": v} for v in (4, 8, 3)
    ]
    groups = aggregate_by_problem(rows, factory=StreamingAggregation)
    assert isinstance(groups["mst"][10], StreamingAggregation)
    out = write_aggregate_csv(tmp_path, rows, streaming=True)
    with open(out, newline="", encoding="utf-8") as f:
        (record,) = list(csv.DictReader(f))
    assert list(record) == ["problem", "size", "n", "min", "max", "avg"]
    assert (record["n"], record["min"], record["max"]) == ("3", "3", "8")
    assert float(record["avg"]) == pytest.approx(5.0)
