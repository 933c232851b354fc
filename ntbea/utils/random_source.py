"""
Seedable random source shared by the search space, the mutation operators
and the UCB tie-breaking jitter.

Every component that draws random numbers takes a RandomSource explicitly,
so a run is reproducible from a single seed and tests stay isolated.
"""

import threading
from typing import List, Optional

import numpy as np


class RandomSource:
    """
    Thin wrapper around ``numpy.random.Generator``.

    Draws are serialised by a lock: evaluation worker threads may share
    the same source as the (single-threaded) evolutionary loop.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: Seed for the underlying generator (None = OS entropy)
        """
        self.seed = seed
        self._generator = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def next_double(self) -> float:
        """Uniform double in [0, 1)."""
        with self._lock:
            return float(self._generator.random())

    def next_int(self, bound: int) -> int:
        """
        Uniform integer in [0, bound).

        Raises:
            ValueError: If bound is not positive
        """
        if bound <= 0:
            raise ValueError(f"bound must be positive, got {bound}")
        with self._lock:
            return int(self._generator.integers(bound))

    def next_gaussian(self, sigma: float = 1.0) -> float:
        """Sample from N(0, sigma^2)."""
        with self._lock:
            return float(self._generator.normal(0.0, sigma))

    def next_weight(self, low: float, high: float) -> float:
        """Uniform double between low and high (bounds may come in any order)."""
        if low > high:
            low, high = high, low
        return (high - low) * self.next_double() + low

    def next_boolean(self) -> bool:
        return self.next_double() < 0.5

    def sample_k_from_n(self, k: int, n: int) -> List[int]:
        """
        Sample k distinct integers from [0, n) without replacement.

        Raises:
            ValueError: If k is negative or larger than n
        """
        if k < 0 or k > n:
            raise ValueError(f"Cannot sample {k} distinct values out of {n}")
        with self._lock:
            return [int(i) for i in self._generator.choice(n, size=k, replace=False)]

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed})"
