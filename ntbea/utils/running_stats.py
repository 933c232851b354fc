"""
Running (single-pass) statistics.

RunningStatistics accumulates count, mean, variance, min and max with
Welford's update, so pattern tables never need to keep the raw samples.
SynchronizedRunningStatistics is the thread-safe variant used to fold the
results of parallel evaluation samples.
"""

import math
import threading
from typing import Any, Dict


class RunningStatistics:
    """Incremental count / mean / variance / min / max of a stream of values."""

    def __init__(self):
        self._n = 0
        self._mean = 0.0
        self._m2 = 0.0
        self._sum = 0.0
        self._min = math.nan
        self._max = math.nan

    def add_value(self, value: float) -> None:
        """Fold a single value into the statistics."""
        value = float(value)
        self._n += 1
        delta = value - self._mean
        self._mean += delta / self._n
        self._m2 += delta * (value - self._mean)
        self._sum += value
        if self._n == 1:
            self._min = value
            self._max = value
        else:
            self._min = min(self._min, value)
            self._max = max(self._max, value)

    def clear(self) -> None:
        self.__init__()

    @property
    def n(self) -> int:
        return self._n

    @property
    def mean(self) -> float:
        """Sample mean, NaN when no value was added."""
        return self._mean if self._n > 0 else math.nan

    @property
    def variance(self) -> float:
        """Bias-corrected sample variance (0.0 for a single value, NaN when empty)."""
        if self._n == 0:
            return math.nan
        if self._n == 1:
            return 0.0
        return self._m2 / (self._n - 1)

    @property
    def standard_deviation(self) -> float:
        variance = self.variance
        return math.sqrt(variance) if not math.isnan(variance) else math.nan

    @property
    def sum(self) -> float:
        return self._sum

    @property
    def min(self) -> float:
        return self._min

    @property
    def max(self) -> float:
        return self._max

    def copy(self) -> 'RunningStatistics':
        clone = RunningStatistics()
        clone._n = self._n
        clone._mean = self._mean
        clone._m2 = self._m2
        clone._sum = self._sum
        clone._min = self._min
        clone._max = self._max
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary for serialization."""
        return {
            'n': self.n,
            'mean': self.mean,
            'standard_deviation': self.standard_deviation,
            'standard_error': standard_error(self),
            'min': self.min,
            'max': self.max,
        }

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(n={self.n}, mean={self.mean:.4f}, "
                f"std={self.standard_deviation:.4f}, min={self.min}, max={self.max})")


class SynchronizedRunningStatistics(RunningStatistics):
    """RunningStatistics whose updates and snapshots are guarded by a lock."""

    def __init__(self):
        self._lock = threading.Lock()
        super().__init__()

    def add_value(self, value: float) -> None:
        with self._lock:
            super().add_value(value)

    def clear(self) -> None:
        with self._lock:
            RunningStatistics.__init__(self)

    def snapshot(self) -> RunningStatistics:
        """Return a consistent, unsynchronized copy of the current state."""
        with self._lock:
            return RunningStatistics.copy(self)

    def copy(self) -> 'RunningStatistics':
        return self.snapshot()

    def to_dict(self) -> Dict[str, Any]:
        return self.snapshot().to_dict()


def standard_error(stats: RunningStatistics) -> float:
    """
    Standard error of the mean: std / sqrt(n).

    Returns NaN when no value was recorded.
    """
    if stats.n == 0:
        return math.nan
    return stats.standard_deviation / math.sqrt(stats.n)
