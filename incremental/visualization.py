import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import matplotlib

matplotlib.use("Agg")  # Must be set before importing pyplot
import matplotlib.pyplot as plt  # noqa: E402

from incremental.models import (  # noqa: E402
    FlowShopInstance,
    FlowShopPart,
    Instance,
    ParallelMachinesInstance,
    SchedulePart,
)

logger = logging.getLogger("incremental.visualization")


def _ensure_dir(path: str):
    if path:
        os.makedirs(path, exist_ok=True)


def save_delay_plot(
    delays_ns: Sequence[int],
    filepath: Union[str, Path],
    title: str = "Delay per part",
    preprocessing_ns: Optional[int] = None,
) -> str:
    """Plot the delay before every emitted part (log scale, microseconds)."""
    filepath = str(filepath)
    fig, ax = plt.subplots(figsize=(10, 4), constrained_layout=True)
    xs = list(range(1, len(delays_ns) + 1))
    ax.plot(xs, [d / 1000 for d in delays_ns], linewidth=0.8, color="tab:blue", label="delay")
    if preprocessing_ns is not None:
        ax.axhline(preprocessing_ns / 1000, color="tab:red", linestyle="--", linewidth=1.0,
                   label="preprocessing")
    ax.set_xlabel("Part index", fontsize=12)
    ax.set_ylabel("Time [us]", fontsize=12)
    if delays_ns and min(delays_ns) > 0:
        ax.set_yscale("log")
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.grid(True, alpha=0.25, linestyle="--", linewidth=0.7)
    ax.legend(loc="upper right", frameon=False)
    _ensure_dir(os.path.dirname(filepath))
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    logger.info("Delay plot saved as: %s", filepath)
    return filepath


def save_schedule_gantt(
    instance: Instance,
    parts: Sequence[Union[SchedulePart, FlowShopPart]],
    filepath: Union[str, Path],
    show_legend: Optional[bool] = None,
) -> str:
    """Gantt chart of emitted schedule parts (one bar row per machine)."""
    filepath = str(filepath)
    bars: List[tuple] = []  # (machine, start, duration, job)
    if isinstance(instance, FlowShopInstance):
        machines = 2
        for p in parts:
            job = instance.jobs[p.job]
            bars.append((0, p.start_first, job.first, p.job))
            bars.append((1, p.start_second, job.second, p.job))
    else:
        machines = instance.machines if isinstance(instance, ParallelMachinesInstance) else 1
        for p in parts:
            bars.append((p.machine, p.start, instance.jobs[p.job].processing_time, p.job))
    n = len(instance.jobs)
    cmax = max((s + d for _, s, d, _ in bars), default=0)

    fig, ax = plt.subplots(
        figsize=(min(10 + n * 0.05, 18), min(0.5 * machines + 2, 16)),
        constrained_layout=True,
    )
    cmap = matplotlib.colormaps["tab20"]
    for machine, start, duration, job in bars:
        ax.barh(
            machine,
            duration,
            left=start,
            height=0.8,
            color=cmap(job % 20),
            alpha=0.85,
            edgecolor="black",
            linewidth=0.6,
        )
    ax.set_xlabel("Time", fontsize=12)
    ax.set_ylabel("Machine", fontsize=12)
    ax.set_title(f"Gantt Chart - Cmax = {cmax}", fontsize=14, fontweight="bold")
    ax.set_yticks(range(machines))
    ax.set_yticklabels([f"M{i}" for i in range(machines)])
    ax.grid(True, alpha=0.25, axis="x", linestyle="--", linewidth=0.7)
    ax.set_ylim(-0.5, machines - 0.5)

    if show_legend is None:
        show_legend = n <= 40
    if show_legend:
        legend_elements = [
            plt.Rectangle((0, 0), 1, 1, facecolor=cmap(j % 20), alpha=0.85, edgecolor="black",
                          label=f"Job {j}")
            for j in range(n)
        ]
        ax.legend(
            handles=legend_elements,
            bbox_to_anchor=(1.02, 1),
            loc="upper left",
            borderaxespad=0.0,
            fontsize=8,
            frameon=False,
            ncol=1 if n <= 25 else 2,
        )
    _ensure_dir(os.path.dirname(filepath))
    fig.savefig(filepath, dpi=180)
    plt.close(fig)
    logger.info("Gantt chart saved as: %s", filepath)
    return filepath


def save_summary_plot(
    series: Dict[str, Dict[int, float]],
    filepath: Union[str, Path],
    ylabel: str = "Median of max delay [us]",
    scale: float = 1e-3,
) -> str:
    """One line per problem: ``series[problem][size] -> value`` (ns, scaled)."""
    filepath = str(filepath)
    fig, ax = plt.subplots(figsize=(9, 5), constrained_layout=True)
    for problem in sorted(series):
        points = sorted(series[problem].items())
        if not points:
            continue
        ax.plot(
            [size for size, _ in points],
            [value * scale for _, value in points],
            marker="o",
            linewidth=1.2,
            label=problem,
        )
    ax.set_xlabel("Instance size", fontsize=12)
    ax.set_ylabel(ylabel, fontsize=12)
    ax.set_xscale("log")
    ax.set_title("Delay vs. instance size", fontsize=14, fontweight="bold")
    ax.grid(True, alpha=0.25, linestyle="--", linewidth=0.7)
    if series:
        ax.legend(loc="upper left", frameon=False)
    _ensure_dir(os.path.dirname(filepath))
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    logger.info("Summary plot saved as: %s", filepath)
    return filepath
