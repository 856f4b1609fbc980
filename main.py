#!/usr/bin/env python3
"""Run an enumeration experiment batch described by a YAML/JSON config."""

import argparse
import json
import logging
import os
from typing import Any, Dict

import yaml

from incremental.enumerator import EnumeratorKind
from incremental.experiments.aggregate import (
    aggregate_by_problem,
    write_aggregate_csv,
    write_summary_csv,
)
from incremental.experiments.runner import PROBLEMS, ExperimentRunner, generate_plan
from incremental.visualization import save_delay_plot, save_schedule_gantt, save_summary_plot

logger = logging.getLogger("incremental")

SCHEDULING_KINDS = (
    EnumeratorKind.SINGLE_MACHINE_PRECEDENCE,
    EnumeratorKind.SINGLE_MACHINE_RELEASE_TIMES,
    EnumeratorKind.TWO_MACHINE_FLOW_SHOP,
    EnumeratorKind.PARALLEL_MACHINES,
)


def load_config(config_file: str = "config.yaml") -> Dict[str, Any]:
    """Load configuration from a YAML (or JSON) file."""
    if not os.path.isfile(config_file):
        raise FileNotFoundError(f"Config file not found: {config_file}")
    with open(config_file, "r", encoding="utf-8") as f:
        text = f.read()
    if config_file.endswith((".yml", ".yaml")):
        return yaml.safe_load(text) or {}
    return json.loads(text)


def write_plots(runner: ExperimentRunner, rows, plots_dir: str) -> None:
    # the largest run of every problem gets a delay plot (and a Gantt chart)
    largest = {}
    for cfg, m in runner.measurements:
        if cfg.problem not in largest or cfg.size > largest[cfg.problem][0].size:
            largest[cfg.problem] = (cfg, m)
    for problem, (cfg, m) in sorted(largest.items()):
        save_delay_plot(
            m.delays_ns,
            os.path.join(plots_dir, f"delays_{problem}_n{cfg.size}_seed{cfg.seed}.png"),
            title=f"{problem}: delay per part (n={cfg.size})",
            preprocessing_ns=m.preprocessing_ns,
        )
        if PROBLEMS[problem] in SCHEDULING_KINDS:
            save_schedule_gantt(
                runner.build_instance(cfg),
                m.parts,
                os.path.join(plots_dir, f"gantt_{problem}_n{cfg.size}_seed{cfg.seed}.png"),
            )
    series = {
        problem: {size: agg.median for size, agg in by_size.items()}
        for problem, by_size in aggregate_by_problem(rows, "delay_max_ns").items()
    }
    save_summary_plot(series, os.path.join(plots_dir, "summary_delay_max.png"))


def main(cfg: Dict[str, Any]) -> None:
    exp_cfg = cfg.get("experiment") or {}
    plan = generate_plan(cfg)
    logger.info("Experiment batch: %d runs", len(plan))
    runner = ExperimentRunner(
        base_results_dir=exp_cfg.get("results_dir", "results/experiments"),
        cache_dir=exp_cfg.get("cache_dir"),
        keep_delays=bool(exp_cfg.get("keep_delays", False)),
    )
    results = runner.run(plan)
    rows = [r.to_dict() for r in results]
    write_summary_csv(runner.timestamp_dir, rows)
    streaming = bool(exp_cfg.get("streaming_aggregates", False))
    write_aggregate_csv(runner.timestamp_dir, rows, "delay_max_ns", streaming)
    write_aggregate_csv(runner.timestamp_dir, rows, "preprocessing_ns", streaming)
    if exp_cfg.get("plots", True):
        write_plots(runner, rows, str(runner.timestamp_dir / "plots"))
    invalid = [r for r in results if not r.valid]
    if invalid:
        logger.warning("%d of %d runs produced invalid output", len(invalid), len(results))
    logger.info("Experiment batch completed: %s", runner.timestamp_dir)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Incremental enumeration experiments (config only)")
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to the YAML/JSON configuration file",
    )
    args = parser.parse_args()
    cfg = load_config(args.config)

    log_level = cfg.get("log_level", "INFO")
    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    main(cfg)
