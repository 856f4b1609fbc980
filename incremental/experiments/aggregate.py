from __future__ import annotations

import csv
import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

logger = logging.getLogger("incremental.experiments")

SUMMARY_COLUMNS = [
    "problem",
    "kind",
    "size",
    "seed",
    "repeat",
    "num_parts",
    "valid",
    "setup_ns",
    "preprocessing_ns",
    "delay_min_ns",
    "delay_max_ns",
    "delay_avg_ns",
    "delay_median_ns",
    "total_ns",
    "preprocessing_work",
    "max_delay_work",
    "reference_total_ns",
    "objective",
    "reference_objective",
    "approximation_ratio",
]


def median(data: List[float]) -> Optional[float]:
    n = len(data)
    if n == 0:
        return None
    mid = n // 2
    if n % 2:
        return data[mid]
    return (data[mid - 1] + data[mid]) / 2


@dataclass
class StoringAggregation:
    """Keeps every value to report order statistics.

    Quartiles are the medians of the lower and upper half of the sorted
    data; for an odd count the median itself belongs to neither half.
    """

    values: List[float] = field(default_factory=list)

    def add(self, value: float) -> None:
        self.values.append(value)

    def extend(self, values: Iterable[float]) -> None:
        self.values.extend(values)

    def _sorted(self) -> List[float]:
        return sorted(self.values)

    @property
    def n(self) -> int:
        return len(self.values)

    @property
    def min(self) -> Optional[float]:
        return min(self.values) if self.values else None

    @property
    def max(self) -> Optional[float]:
        return max(self.values) if self.values else None

    @property
    def avg(self) -> Optional[float]:
        return sum(self.values) / len(self.values) if self.values else None

    @property
    def median(self) -> Optional[float]:
        return median(self._sorted())

    @property
    def lower_quartile(self) -> Optional[float]:
        data = self._sorted()
        return median(data[: len(data) // 2])

    @property
    def upper_quartile(self) -> Optional[float]:
        data = self._sorted()
        n = len(data)
        return median(data[n // 2 + 1 :] if n % 2 else data[n // 2 :])

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "n": self.n,
            "min": self.min,
            "lower_quartile": self.lower_quartile,
            "median": self.median,
            "upper_quartile": self.upper_quartile,
            "max": self.max,
            "avg": self.avg,
        }


@dataclass
class StreamingAggregation:
    """Count, min, max and running average without keeping the values."""

    n: int = 0
    min: Optional[float] = None
    max: Optional[float] = None
    avg: Optional[float] = None

    def add(self, value: float) -> None:
        self.n += 1
        if self.n == 1:
            self.min = self.max = self.avg = value
            return
        self.min = min(self.min, value)
        self.max = max(self.max, value)
        self.avg += (value - self.avg) / self.n

    def extend(self, values: Iterable[float]) -> None:
        for value in values:
            self.add(value)

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"n": self.n, "min": self.min, "max": self.max, "avg": self.avg}


Aggregation = Union[StoringAggregation, StreamingAggregation]


def load_results_dir(timestamp_dir: Path) -> List[Dict[str, Any]]:
    """Load all per-run JSON result files of one batch directory."""
    results: List[Dict[str, Any]] = []
    for file in sorted(Path(timestamp_dir).glob("*.json")):
        try:
            with open(file, "r", encoding="utf-8") as f:
                results.append(json.load(f))
        except (OSError, ValueError) as e:
            logger.warning("Failed to load %s: %s", file, e)
    return results


def write_summary_csv(timestamp_dir: Path, rows: Optional[List[Dict[str, Any]]] = None) -> Path:
    """One CSV row per run, written to ``<timestamp_dir>/summary.csv``."""
    timestamp_dir = Path(timestamp_dir)
    if rows is None:
        rows = load_results_dir(timestamp_dir)
    out_path = timestamp_dir / "summary.csv"
    if not rows:
        logger.warning("No result files found to summarize in %s", timestamp_dir)
        return out_path
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(SUMMARY_COLUMNS)
        for r in rows:
            cfg = r.get("config", {})
            merged = {**r, **{k: cfg.get(k) for k in ("problem", "size", "seed", "repeat")}}
            writer.writerow([merged.get(col) for col in SUMMARY_COLUMNS])
    logger.info("Summary written: %s", out_path)
    return out_path


def aggregate_by_problem(
    rows: Iterable[Dict[str, Any]],
    metric: str = "delay_max_ns",
    factory: Callable[[], Aggregation] = StoringAggregation,
) -> Dict[str, Dict[int, Aggregation]]:
    """``problem -> size -> aggregation`` of one numeric result field."""
    groups: Dict[str, Dict[int, Aggregation]] = defaultdict(dict)
    for r in rows:
        value = r.get(metric)
        if value is None:
            continue
        cfg = r.get("config", {})
        by_size = groups[cfg.get("problem")]
        size = int(cfg.get("size"))
        if size not in by_size:
            by_size[size] = factory()
        by_size[size].add(value)
    return dict(groups)


def write_aggregate_csv(
    timestamp_dir: Path,
    rows: List[Dict[str, Any]],
    metric: str = "delay_max_ns",
    streaming: bool = False,
) -> Path:
    """Statistics of ``metric`` per (problem, size).

    The default (storing) aggregation adds median and quartiles; the
    streaming one only reports count, min, max and average.
    """
    out_path = Path(timestamp_dir) / f"aggregate_{metric}.csv"
    if streaming:
        factory: Callable[[], Aggregation] = StreamingAggregation
        stat_columns = ["n", "min", "max", "avg"]
    else:
        factory = StoringAggregation
        stat_columns = ["n", "min", "lower_quartile", "median", "upper_quartile", "max", "avg"]
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["problem", "size"] + stat_columns)
        for problem, by_size in sorted(aggregate_by_problem(rows, metric, factory).items()):
            for size in sorted(by_size):
                stats = by_size[size].to_dict()
                writer.writerow([problem, size] + [stats[c] for c in stat_columns])
    logger.info("Aggregate written: %s", out_path)
    return out_path
