"""
Visualization utilities for NTBEA.

The plots read the per-generation statistics table (see
EvolutionStatistics.to_dataframe) and tolerate an empty table, so a run
can always emit its figures.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

COVERAGE_PREFIX = "coverage_"
COVERAGE_SUFFIX = "_tuple"


def _prepare_output_path(output_path: Union[str, Path]) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _save_figure(fig: plt.Figure, output_path: Union[str, Path]) -> None:
    path = _prepare_output_path(output_path)
    fig.tight_layout()
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def _safe_series(values: Any) -> pd.Series:
    if isinstance(values, pd.Series):
        return values.dropna()
    if isinstance(values, (list, tuple, np.ndarray)):
        return pd.Series(values).dropna()
    return pd.Series(dtype=float)


def _empty_plot(fig: plt.Figure, ax: plt.Axes, message: str, output_path: Union[str, Path]) -> None:
    ax.text(0.5, 0.5, message, ha="center", va="center")
    ax.set_axis_off()
    _save_figure(fig, output_path)


def coverage_columns(stats: pd.DataFrame) -> list:
    """Coverage columns of a statistics table, shortest tuple length first."""
    columns = [c for c in stats.columns if c.startswith(COVERAGE_PREFIX) and c.endswith(COVERAGE_SUFFIX)]
    return sorted(columns, key=lambda c: int(c[len(COVERAGE_PREFIX):-len(COVERAGE_SUFFIX)]))


def plot_coverage_evolution(
    stats: pd.DataFrame,
    output_path: Union[str, Path],
) -> None:
    """Plot the coverage rate of every tuple length by generation."""
    fig, ax = plt.subplots(figsize=(10, 5))

    columns = coverage_columns(stats) if stats is not None else []
    if stats is None or stats.empty or not columns:
        _empty_plot(fig, ax, "No coverage statistics", output_path)
        return

    generations = stats["generation"] if "generation" in stats else np.arange(1, len(stats) + 1)
    for column in columns:
        length = column[len(COVERAGE_PREFIX):-len(COVERAGE_SUFFIX)]
        ax.plot(generations, stats[column], label=f"{length}-tuples", linewidth=2)

    ax.set_title("N-Tuple Coverage Evolution")
    ax.set_xlabel("Generation")
    ax.set_ylabel("Observed Patterns (%)")
    ax.set_ylim(0, 105)
    ax.legend()
    ax.grid(alpha=0.2)
    _save_figure(fig, output_path)


def plot_fitness_evolution(
    stats: pd.DataFrame,
    output_path: Union[str, Path],
    optimal_value: Optional[float] = None,
) -> None:
    """Plot current point fitness and best of sampled estimate by generation."""
    fig, ax = plt.subplots(figsize=(10, 5))

    if stats is None or stats.empty:
        _empty_plot(fig, ax, "No fitness statistics", output_path)
        return

    generations = stats["generation"] if "generation" in stats else np.arange(1, len(stats) + 1)

    fitness = _safe_series(stats.get("current_point_fitness"))
    if not fitness.empty:
        ax.plot(generations[fitness.index], fitness, label="Current Point Fitness",
                color="tab:gray", alpha=0.6, linewidth=1)

    best = _safe_series(stats.get("best_of_sampled"))
    if not best.empty:
        ax.plot(generations[best.index], best, label="Best of Sampled (estimate)",
                color="tab:blue", linewidth=2)

    if optimal_value is not None:
        ax.axhline(optimal_value, color="tab:red", linestyle="--", linewidth=1, label="Optimum")

    ax.set_title("Fitness Evolution")
    ax.set_xlabel("Generation")
    ax.set_ylabel("Fitness")
    ax.legend()
    ax.grid(alpha=0.2)
    _save_figure(fig, output_path)
