"""
Per-generation statistics of an NTBEA run.

Tracks, for every generation:
- the mean coverage rate of the tuples of each requested length
- the fitness of the current point
- the UCB value of the best neighbour
- the best of sampled point and its mean value estimate

The table is exported as a pandas DataFrame / CSV; the best-of-sampled
history is also available as plain text for the tuple report.
"""

import logging
from typing import Dict, Iterable, List, Optional

import pandas as pd

from ..landscape.ntuple_system import NTupleSystem, ScoredPoint
from ..landscape.search_space import Point

logger = logging.getLogger(__name__)


def coverage_column(tuple_length: int) -> str:
    return f"coverage_{tuple_length}_tuple"


class EvolutionStatistics:
    """
    Row-oriented record of an NTBEA run, one row per generation.
    """

    def __init__(self, tuple_lengths: Iterable[int]):
        """
        Args:
            tuple_lengths: Tuple lengths modelled by the run (one coverage column each)
        """
        self.tuple_lengths = sorted(set(int(length) for length in tuple_lengths))
        self.coverage_evolution: Dict[int, List[float]] = {length: [] for length in self.tuple_lengths}
        self.current_point_fitness_evolution: List[float] = []
        self.best_neighbour_ucb_evolution: List[float] = []
        self.best_of_sampled_value_evolution: List[float] = []
        self.best_of_sampled_evolution: List[Optional[Point]] = []

    def update(
        self,
        ntuple_system: NTupleSystem,
        current_point_fitness: float,
        best_neighbour_ucb: float,
        best_of_sampled: Optional[ScoredPoint] = None
    ) -> None:
        """
        Record one generation.

        Args:
            ntuple_system: The landscape model after this generation's update
            current_point_fitness: Fitness of this generation's current point
            best_neighbour_ucb: UCB value of the best neighbour found
            best_of_sampled: Precomputed best of sampled (computed if None)
        """
        coverage = ntuple_system.coverage_by_length()
        for length in self.tuple_lengths:
            self.coverage_evolution[length].append(coverage.get(length, 0.0))

        self.current_point_fitness_evolution.append(float(current_point_fitness))
        self.best_neighbour_ucb_evolution.append(float(best_neighbour_ucb))

        if best_of_sampled is None:
            best_of_sampled = ntuple_system.best_of_sampled()
        self.best_of_sampled_evolution.append(best_of_sampled.point)
        self.best_of_sampled_value_evolution.append(float(best_of_sampled.score))

    def num_generations(self) -> int:
        return len(self.current_point_fitness_evolution)

    def latest_coverage(self) -> Dict[int, float]:
        """Coverage rates of the last recorded generation (empty before the first)."""
        return {length: rates[-1] for length, rates in self.coverage_evolution.items() if rates}

    def to_dataframe(self) -> pd.DataFrame:
        """
        Build the statistics table.

        Columns: generation, current_point_fitness, best_neighbour_ucb,
        best_of_sampled, then one coverage_<L>_tuple column per tuple length.
        """
        data = {
            'generation': list(range(1, self.num_generations() + 1)),
            'current_point_fitness': self.current_point_fitness_evolution,
            'best_neighbour_ucb': self.best_neighbour_ucb_evolution,
            'best_of_sampled': self.best_of_sampled_value_evolution,
        }
        for length in self.tuple_lengths:
            data[coverage_column(length)] = self.coverage_evolution[length]
        return pd.DataFrame(data)

    def save_as_csv(self, file_path: str) -> bool:
        """
        Write the statistics table as CSV.

        Returns:
            True on success, False if the file could not be written
        """
        try:
            self.to_dataframe().to_csv(file_path, index=False)
        except OSError as e:
            logger.error(f"Failed to save evolution statistics to {file_path}: {e}", exc_info=True)
            return False
        logger.info(f"Saved evolution statistics to {file_path}")
        return True

    def best_of_sampled_list(self) -> str:
        """One line per generation: best of sampled point and its value estimate."""
        lines = ["Best of Sampled | Mean value estimate"]
        for generation, (point, value) in enumerate(
                zip(self.best_of_sampled_evolution, self.best_of_sampled_value_evolution), start=1):
            shown = list(point) if point is not None else None
            lines.append(f"{generation}:\t{shown}\t->\t{value}")
        return "\n".join(lines) + "\n"

    def clear(self) -> None:
        for rates in self.coverage_evolution.values():
            rates.clear()
        self.current_point_fitness_evolution.clear()
        self.best_neighbour_ucb_evolution.clear()
        self.best_of_sampled_value_evolution.clear()
        self.best_of_sampled_evolution.clear()
