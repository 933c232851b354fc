"""
N-Tuples and their patterns.

An NTuple is a fixed subset of search-space dimensions treated as one
multi-armed bandit. Projecting a point onto those dimensions gives an
NTuplePattern (the arm), and the NTuple keeps running statistics of the
values observed for every pattern it has seen.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .search_space import SearchSpace
from ..utils.running_stats import RunningStatistics

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class NTuplePattern:
    """Projection of a point onto the dimensions indexed by an NTuple."""
    values: Tuple[int, ...]

    @classmethod
    def from_point(cls, point: Sequence[int], ntuple: 'NTuple') -> 'NTuplePattern':
        """Build the pattern of `point` with respect to `ntuple`."""
        return cls(tuple(point[index] for index in ntuple.indices))

    def value_at(self, position: int) -> int:
        return self.values[position]

    def __len__(self) -> int:
        return len(self.values)

    def __str__(self) -> str:
        return str(list(self.values))


class NTuple:
    """
    A bandit over a fixed combination of dimensions.

    Attributes:
        indices: Dimension indices tracked by this tuple (immutable)
        combinations_count: Number of distinct patterns the tuple can observe
        pattern_stats: Running statistics per observed pattern
    """

    def __init__(self, indices: Iterable[int], search_space: SearchSpace):
        """
        Args:
            indices: Distinct dimension indices, each in [0, search_space.dimensions())
            search_space: Space used to count the possible patterns

        Raises:
            ValueError: If indices are empty, repeated or out of range
        """
        indices = tuple(int(i) for i in indices)
        if not indices:
            raise ValueError("An NTuple needs at least one dimension index")
        if len(set(indices)) != len(indices):
            raise ValueError(f"NTuple indices must be distinct: {list(indices)}")
        for index in indices:
            if not 0 <= index < search_space.dimensions():
                raise ValueError(f"NTuple index {index} outside search space with "
                                 f"{search_space.dimensions()} dimensions")

        self.indices = indices
        self.combinations_count = math.prod(search_space.dimension_size(i) for i in indices)
        self.pattern_stats: Dict[NTuplePattern, RunningStatistics] = {}
        self._num_samples = 0

    @property
    def sort_key(self) -> Tuple[int, Tuple[int, ...]]:
        """Shorter tuples first, then the index sequences in lexicographic order."""
        return (len(self.indices), self.indices)

    def __lt__(self, other: 'NTuple') -> bool:
        return self.sort_key < other.sort_key

    def add_point(self, point: Sequence[int], value: float) -> None:
        """Record `value` against the pattern of `point`."""
        pattern = NTuplePattern.from_point(point, self)
        stats = self.pattern_stats.get(pattern)
        if stats is None:
            stats = RunningStatistics()
            self.pattern_stats[pattern] = stats
        stats.add_value(value)
        self._num_samples += 1

    def get_stats(self, point: Sequence[int]) -> Optional[RunningStatistics]:
        """Statistics of the pattern of `point`, or None if it was never observed."""
        return self.pattern_stats.get(NTuplePattern.from_point(point, self))

    def reset(self) -> None:
        self._num_samples = 0
        self.pattern_stats.clear()

    def num_samples(self) -> int:
        return self._num_samples

    def num_entries(self) -> int:
        """Number of distinct patterns observed."""
        return len(self.pattern_stats)

    def percent_observed(self) -> float:
        """Coverage rate: percentage of the possible patterns observed so far."""
        return 100.0 * self.num_entries() / self.combinations_count

    def length(self) -> int:
        return len(self.indices)

    def index_at(self, position: int) -> int:
        return self.indices[position]

    def sorted_patterns(self) -> List[NTuplePattern]:
        return sorted(self.pattern_stats)

    def generate_report(self) -> str:
        """
        Text block describing this tuple and every observed pattern.

        The header lists samples and coverage, followed by one line per
        pattern (in pattern order) with samples, mean, std, min and max.
        """
        lines = [
            f"{self.length()}-Tuple{list(self.indices)}\tSamples: {self._num_samples}"
            f"\tObserved Patterns: {self.num_entries()} / {self.combinations_count}"
            f" ({self.percent_observed():.2f}%)",
            "\tPattern / Samples / Mean / STD / Min / Max",
        ]
        for pattern in self.sorted_patterns():
            stats = self.pattern_stats[pattern]
            lines.append(
                f"\t{pattern}\t {stats.n:<4d}\t {stats.mean}\t {stats.standard_deviation}"
                f"\t {stats.min}\t {stats.max}"
            )
        return "\n".join(lines) + "\n\n"

    def __repr__(self) -> str:
        return f"NTuple({list(self.indices)}, samples={self._num_samples}, entries={self.num_entries()})"
