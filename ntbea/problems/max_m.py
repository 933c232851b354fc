"""
MaxM: a noisy toy problem for NTBEA.

The fitness of a point is the sum of its coordinates plus Gaussian noise,
so the optimum is the point holding the largest value of every dimension.
With ``trap`` enabled the optimum only returns noise, which hides it from
any optimiser relying on the raw fitness.
"""

import logging
import threading
from typing import Any, Dict, Optional, Sequence

from ..landscape.search_space import SearchSpace
from ..utils.random_source import RandomSource

logger = logging.getLogger(__name__)


class MaxMProblem:
    """
    Callable evaluation function for the MaxM problem.

    Attributes:
        search_space: Space the evaluated points belong to
        noise_sigma: Standard deviation of the Gaussian noise (0 = noiseless)
        trap: Return pure noise at the optimum
        optimal_value: Noiseless fitness of the optimum
    """

    def __init__(
        self,
        search_space: SearchSpace,
        noise_sigma: float = 1.0,
        trap: bool = False,
        rng: Optional[RandomSource] = None
    ):
        if noise_sigma < 0:
            raise ValueError(f"noise_sigma must be >= 0, got {noise_sigma}")
        self.search_space = search_space
        self.noise_sigma = float(noise_sigma)
        self.trap = trap
        self.rng = rng if rng is not None else search_space.rng
        self.optimal_value = max_m_optimal_value(search_space)
        self.evaluations = 0
        self._lock = threading.Lock()

    def _noise(self) -> float:
        return self.rng.next_gaussian(self.noise_sigma) if self.noise_sigma > 0 else 0.0

    def __call__(self, point: Sequence[int]) -> float:
        with self._lock:
            self.evaluations += 1
        total = sum(point)
        if self.trap and total == self.optimal_value:
            return self._noise()
        return total + self._noise()

    def true_value(self, point: Sequence[int]) -> float:
        """Noiseless fitness of a point (trap included)."""
        total = sum(point)
        if self.trap and total == self.optimal_value:
            return 0.0
        return float(total)

    def __repr__(self) -> str:
        return (f"MaxMProblem(optimal_value={self.optimal_value}, "
                f"noise_sigma={self.noise_sigma}, trap={self.trap})")


def max_m_optimal_value(search_space: SearchSpace) -> int:
    """Sum of the largest value of every dimension."""
    return sum(search_space.dimension_size(i) - 1 for i in range(search_space.dimensions()))


PROBLEMS = {
    'max_m': MaxMProblem,
}


def create_problem_from_config(
    config: Dict[str, Any],
    search_space: SearchSpace,
    rng: Optional[RandomSource] = None
) -> MaxMProblem:
    """
    Factory function to create the evaluation function of the ``problem`` section.

    Args:
        config: Configuration dictionary
        search_space: Space the problem is defined over
        rng: Random source for the evaluation noise

    Returns:
        Callable evaluation function

    Raises:
        ValueError: If the problem name is unknown
    """
    problem_config = dict(config.get('problem', {}))
    name = problem_config.pop('name', 'max_m')
    if name not in PROBLEMS:
        raise ValueError(f"Unknown problem: {name}. Available: {sorted(PROBLEMS)}")

    problem = PROBLEMS[name](search_space, rng=rng, **problem_config)
    logger.info(f"Created problem: {problem}")
    return problem
