from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from incremental.accounting import (
    EnumerationMeasurement,
    measure_enumeration,
    measure_reference,
)
from incremental.enumerator import EnumeratorKind
from incremental.errors import EnumerationError
from incremental.experiments.aggregate import median
from incremental.generators import generate_with_cache
from incremental.models import DistanceQuery, Instance
from incremental.reference import approximation_ratio, objective_of
from incremental.validation import (
    validate_distances,
    validate_flow_shop,
    validate_schedule,
    validate_spanning_tree,
)

logger = logging.getLogger("incremental.experiments")

# problem name -> enumerator kind
PROBLEMS: Dict[str, EnumeratorKind] = {
    "prec": EnumeratorKind.SINGLE_MACHINE_PRECEDENCE,
    "release": EnumeratorKind.SINGLE_MACHINE_RELEASE_TIMES,
    "flowshop": EnumeratorKind.TWO_MACHINE_FLOW_SHOP,
    "parallel": EnumeratorKind.PARALLEL_MACHINES,
    "mst": EnumeratorKind.MINIMUM_SPANNING_TREE,
    "sssd": EnumeratorKind.SINGLE_SOURCE_DISTANCES,
    "apsd": EnumeratorKind.ALL_PAIRS_DISTANCES,
}

DEFAULT_PARAMS: Dict[str, Dict[str, Any]] = {
    "prec": {"edge_probability": 0.05},
    "release": {"release_spread": 1.0},
    "parallel": {"machines": 4},
    "graph": {"edge_probability": 0.05, "max_weight": 100},
}


@dataclass(frozen=True)
class RunConfig:
    """Single run: one generated instance, enumerated and solved by the baseline."""

    problem: str  # key of PROBLEMS
    size: int  # jobs or vertices
    seed: int  # generator seed
    repeat: int = 0  # repetition index on the same instance
    params: Dict[str, Any] = field(default_factory=dict)  # generator parameters
    options: Dict[str, Any] = field(default_factory=dict)  # enumerator options


@dataclass
class RunResult:
    config: RunConfig
    kind: str
    num_parts: int
    valid: bool
    setup_ns: int
    preprocessing_ns: int
    total_ns: int
    delay_min_ns: Optional[int]
    delay_max_ns: Optional[int]
    delay_avg_ns: Optional[float]
    delay_median_ns: Optional[float]
    preprocessing_work: int
    max_delay_work: Optional[int]
    reference_total_ns: int
    objective: Optional[float]
    reference_objective: Optional[float]
    delays_ns: List[int] = field(default_factory=list)

    @property
    def approximation_ratio(self) -> Optional[float]:
        if self.objective is None or self.reference_objective is None:
            return None
        return approximation_ratio(self.objective, self.reference_objective)

    def to_dict(self):
        d = asdict(self)
        d["approximation_ratio"] = self.approximation_ratio
        d["config"] = asdict(self.config)
        return d


def validate_parts(
    instance: Instance,
    kind: EnumeratorKind,
    parts: Sequence[Any],
    options: Optional[Mapping[str, Any]] = None,
) -> bool:
    options = options or {}
    if kind is EnumeratorKind.TWO_MACHINE_FLOW_SHOP:
        return validate_flow_shop(instance, parts)
    if kind is EnumeratorKind.MINIMUM_SPANNING_TREE:
        return validate_spanning_tree(instance, parts)
    if kind is EnumeratorKind.SINGLE_SOURCE_DISTANCES:
        return validate_distances(instance.graph, parts, sources=[instance.source])
    if kind is EnumeratorKind.ALL_PAIRS_DISTANCES:
        return validate_distances(
            instance,
            parts,
            sources=range(instance.num_vertices),
            include_self=options.get("include_self", True),
        )
    return validate_schedule(instance, parts)


class ExperimentRunner:
    def __init__(
        self,
        base_results_dir: str | Path = "results/experiments",
        cache_dir: str | Path | None = None,
        keep_delays: bool = False,
    ):
        """Every batch gets its own timestamped directory; old ones are kept."""
        self.base_dir = Path(base_results_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.timestamp_dir = self.base_dir / datetime.now().strftime("%Y%m%d_%H%M%S")
        self.timestamp_dir.mkdir(parents=True, exist_ok=True)
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self.keep_delays = keep_delays
        self.measurements: List[Tuple[RunConfig, EnumerationMeasurement]] = []

    def build_instance(self, cfg: RunConfig) -> Instance:
        if cfg.problem not in PROBLEMS:
            raise ValueError(f"Unknown problem {cfg.problem}")
        if cfg.problem in ("mst", "sssd", "apsd"):
            graph = generate_with_cache(
                "graph", {"vertices": cfg.size, **cfg.params}, cfg.seed, self.cache_dir
            )
            if cfg.problem == "sssd":
                return DistanceQuery(graph, 0)
            return graph
        return generate_with_cache(cfg.problem, {"jobs": cfg.size, **cfg.params}, cfg.seed, self.cache_dir)

    def run(self, configs: Sequence[RunConfig]) -> List[RunResult]:
        results: List[RunResult] = []
        for idx, cfg in enumerate(configs, start=1):
            logger.info("(%d/%d) Running: %s n=%d seed=%d repeat=%d",
                        idx, len(configs), cfg.problem, cfg.size, cfg.seed, cfg.repeat)
            try:
                result = self._run_single(cfg)
            except (EnumerationError, ValueError, TypeError) as e:
                logger.error("Skipping %s: %s", cfg, e)
                continue
            results.append(result)
            self._persist_result(result)
        return results

    def _run_single(self, cfg: RunConfig) -> RunResult:
        kind = PROBLEMS.get(cfg.problem)
        if kind is None:
            raise ValueError(f"Unknown problem {cfg.problem}")
        instance = self.build_instance(cfg)
        m = measure_enumeration(instance, kind, **cfg.options)
        ref = measure_reference(instance, kind, **cfg.options)
        try:
            valid = validate_parts(instance, kind, m.parts, cfg.options)
        except ValueError as e:
            logger.warning("Invalid output for %s n=%d seed=%d: %s", cfg.problem, cfg.size, cfg.seed, e)
            valid = False
        self.measurements.append((cfg, m))
        return RunResult(
            config=cfg,
            kind=kind.value,
            num_parts=m.num_parts,
            valid=valid,
            setup_ns=m.setup_ns,
            preprocessing_ns=m.preprocessing_ns,
            total_ns=m.total_ns,
            delay_min_ns=m.delay_min,
            delay_max_ns=m.delay_max,
            delay_avg_ns=m.delay_avg,
            delay_median_ns=median(sorted(m.delays_ns)),
            preprocessing_work=m.preprocessing_work,
            max_delay_work=m.max_delay_work,
            reference_total_ns=ref.total_ns,
            objective=objective_of(instance, kind, m.parts),
            reference_objective=ref.objective,
            delays_ns=list(m.delays_ns) if self.keep_delays else [],
        )

    def _persist_result(self, result: RunResult) -> None:
        cfg = result.config
        filename = f"problem={cfg.problem}_n{cfg.size}_seed={cfg.seed}_rep={cfg.repeat}.json"
        path = self.timestamp_dir / filename
        with open(path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2)
        logger.info("Saved %s", path)


def _section(config: Mapping[str, Any], name: str, defaults: Mapping[str, Any]) -> Dict[str, Any]:
    section = dict(defaults)
    section.update(config.get(name) or {})
    return section


def generate_plan(config: Mapping[str, Any]) -> List[RunConfig]:
    """Expand the ``experiment`` section of a config into run configurations.

    Every problem is combined with every size, seed and repetition; generator
    parameters come from the per-problem sections (``prec``, ``release``,
    ``parallel``, ``graph``) and enumerator options from ``options.<problem>``.
    """
    experiment = config.get("experiment") or {}
    problems: Iterable[str] = experiment.get("problems") or list(PROBLEMS)
    sizes = experiment.get("sizes") or [100]
    seeds = experiment.get("seeds") or [1]
    repeats = int(experiment.get("repeats", 1))
    options_cfg = config.get("options") or {}
    configs: List[RunConfig] = []
    for problem in problems:
        if problem not in PROBLEMS:
            raise ValueError(f"Unknown problem {problem!r}; known: {sorted(PROBLEMS)}")
        if problem in ("mst", "sssd", "apsd"):
            params = _section(config, "graph", DEFAULT_PARAMS["graph"])
        elif problem in DEFAULT_PARAMS:
            params = _section(config, problem, DEFAULT_PARAMS[problem])
        else:
            params = {}
        options = dict(options_cfg.get(problem) or {})
        for size in sizes:
            for seed in seeds:
                for repeat in range(repeats):
                    configs.append(
                        RunConfig(
                            problem=problem,
                            size=int(size),
                            seed=int(seed),
                            repeat=repeat,
                            params=params,
                            options=options,
                        )
                    )
    return configs
