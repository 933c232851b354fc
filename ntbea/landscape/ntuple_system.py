"""
N-Tuple bandit fitness landscape model.

The NTupleSystem owns one NTuple per requested combination of dimensions
and the history of every sampled point. Value estimates for a point are
obtained by averaging what each NTuple (bandit) believes about the
pattern (arm) the point plays on it:

- mean value estimate: mean over tuples of the observed pattern means
  (exploitation)
- exploration estimate: mean over tuples of
  sqrt(ln(N_t + 1) / (n_pattern + epsilon)), with n_pattern = 0 for
  unseen patterns
- UCB value: mean + k_explore * exploration + tiny tie-breaking jitter
"""

import itertools
import logging
import math
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from .ntuple import NTuple
from .search_space import Point, SearchSpace
from ..utils.random_source import RandomSource
from ..utils.selection import BestItemSelector, HIGHER_IS_BETTER

logger = logging.getLogger(__name__)

# Scale of the uniform jitter added to UCB values to break exact ties
UCB_JITTER_SCALE = 1e-6


class ScoredPoint(NamedTuple):
    """A point together with its value estimate."""
    point: Optional[Point]
    score: float


class NTupleSystem:
    """
    Fitness landscape model made of overlapping N-Tuple bandits.

    Attributes:
        search_space: The (shared, read-only) search space
        tuple_lengths: Requested tuple lengths, in the order given
        ntuples: All NTuples, sorted shortest first
        sampled_points: Every point added, in order (duplicates kept)
    """

    def __init__(
        self,
        search_space: SearchSpace,
        tuple_lengths: Iterable[int],
        rng: Optional[RandomSource] = None
    ):
        """
        Build the model.

        Args:
            search_space: Search space the points belong to
            tuple_lengths: Lengths of the tuples to model; one NTuple is created
                           for every combination of that many dimensions
            rng: Random source for UCB jitter (defaults to the search space's)

        Raises:
            ValueError: If a tuple length is outside [1, dimensions]
        """
        self.search_space = search_space
        self.tuple_lengths = tuple(int(length) for length in tuple_lengths)
        self.rng = rng if rng is not None else search_space.rng
        self.ntuples: List[NTuple] = []
        self.sampled_points: List[Point] = []

        self._generate_ntuples()

        logger.info(f"Initialized NTupleSystem with {len(self.ntuples)} tuples "
                    f"(lengths {list(self.tuple_lengths)}) over {search_space}")

    def _generate_ntuples(self) -> None:
        """Create one NTuple per combination of each requested length, then sort."""
        n = self.search_space.dimensions()
        if not self.tuple_lengths:
            raise ValueError("At least one tuple length is required")
        if len(set(self.tuple_lengths)) != len(self.tuple_lengths):
            raise ValueError(f"Tuple lengths must be distinct: {list(self.tuple_lengths)}")
        for length in self.tuple_lengths:
            if not 1 <= length <= n:
                raise ValueError(f"Tuple length {length} outside [1, {n}]")
            for combination in itertools.combinations(range(n), length):
                self.ntuples.append(NTuple(combination, self.search_space))
        self.ntuples.sort(key=lambda ntuple: ntuple.sort_key)

    def add_point(self, point: Sequence[int], value: float) -> None:
        """Append `point` to the history and record `value` in every NTuple."""
        point = tuple(point)
        self.sampled_points.append(point)
        for ntuple in self.ntuples:
            ntuple.add_point(point, value)

    def mean_value_estimate(self, point: Sequence[int]) -> float:
        """
        Average of the observed pattern means over all tuples.

        Tuples that never saw the point's pattern (or whose mean is NaN) are
        skipped; 0.0 is returned when no tuple contributes.
        """
        total = 0.0
        count = 0
        for ntuple in self.ntuples:
            stats = ntuple.get_stats(point)
            if stats is not None:
                mean = stats.mean
                if not math.isnan(mean):
                    total += mean
                    count += 1
        return total / count if count else 0.0

    def exploration_estimate(self, point: Sequence[int], epsilon: float) -> float:
        """
        Mean UCB exploration term of the arms `point` plays on every tuple.

        Args:
            point: The point in question
            epsilon: Added to the pattern count; keeps unseen arms finite and
                     controls how strongly they are favoured
        """
        total = 0.0
        for ntuple in self.ntuples:
            stats = ntuple.get_stats(point)
            observed = stats.n if stats is not None else 0
            total += math.sqrt(math.log(ntuple.num_samples() + 1) / (observed + epsilon))
        return total / len(self.ntuples)

    def ucb_value(self, point: Sequence[int], epsilon: float, k_explore: float) -> float:
        """Upper confidence bound of `point`, with a small random tie-breaker."""
        return (self.mean_value_estimate(point)
                + k_explore * self.exploration_estimate(point, epsilon)
                + self.rng.next_double() * UCB_JITTER_SCALE)

    def best_of_sampled(self) -> ScoredPoint:
        """
        The sampled point with the highest mean value estimate.

        This is the recommended solution. Returns ScoredPoint(None, nan) if
        nothing has been sampled yet.
        """
        selector = BestItemSelector(HIGHER_IS_BETTER)
        for point in self.sampled_points:
            selector.add_item(point, self.mean_value_estimate(point))
        return ScoredPoint(selector.best_item, selector.best_score)

    def best_solution(self) -> ScoredPoint:
        """
        Exhaustive scan of the search space for the highest mean value estimate.

        Cost is linear in the size of the space; only use on small spaces.
        """
        selector = BestItemSelector(HIGHER_IS_BETTER)
        for index in range(self.search_space.size()):
            point = self.search_space.get_point(index)
            selector.add_item(point, self.mean_value_estimate(point))
        return ScoredPoint(selector.best_item, selector.best_score)

    def coverage_by_length(self) -> Dict[int, float]:
        """Mean coverage percentage of the tuples of each requested length."""
        coverage: Dict[int, List[float]] = {length: [] for length in self.tuple_lengths}
        for ntuple in self.ntuples:
            coverage[ntuple.length()].append(ntuple.percent_observed())
        return {length: (sum(rates) / len(rates) if rates else 0.0)
                for length, rates in coverage.items()}

    def reset(self) -> None:
        """Forget every sample; tuples keep their identity."""
        self.sampled_points.clear()
        for ntuple in self.ntuples:
            ntuple.reset()
        logger.debug("NTupleSystem reset")

    def generate_report(self) -> str:
        return "".join(ntuple.generate_report() for ntuple in self.ntuples)

    def random_point(self) -> Point:
        return self.search_space.random_point(self.rng)

    def num_samples(self) -> int:
        return len(self.sampled_points)
