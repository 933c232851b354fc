"""
Discrete search space.

A search space is a product of finite dimensions: dimension i holds the
values 0 .. d_i - 1. Points are tuples of ints, and every point maps to a
unique linear index in [0, size) by mixed-radix encoding (the last
dimension varies fastest).
"""

import logging
import math
import sys
from typing import Iterable, Optional, Sequence, Tuple

from ..utils.random_source import RandomSource

logger = logging.getLogger(__name__)

Point = Tuple[int, ...]

# Largest size reported; larger products saturate here instead of growing unbounded.
MAX_SIZE = sys.maxsize


class SearchSpace:
    """
    Immutable discrete product space.

    Attributes:
        rng: Random source used by random_point when none is passed explicitly
    """

    def __init__(self, dimension_sizes: Iterable[int], rng: Optional[RandomSource] = None):
        """
        Args:
            dimension_sizes: Size of each dimension, in order
            rng: Random source for random_point (a fresh unseeded one if None)

        Raises:
            ValueError: If a dimension has size < 1
        """
        sizes = tuple(int(size) for size in dimension_sizes)
        for i, size in enumerate(sizes):
            if size < 1:
                raise ValueError(f"Search space dimension {i} has invalid size {size}")

        self._sizes = sizes
        self.rng = rng if rng is not None else RandomSource()
        self._size = min(math.prod(sizes), MAX_SIZE)

        logger.debug(f"Initialized SearchSpace {list(sizes)} with {self._size} points")

    @property
    def dimension_sizes(self) -> Tuple[int, ...]:
        return self._sizes

    def dimensions(self) -> int:
        """Number of dimensions."""
        return len(self._sizes)

    def dimension_size(self, dimension_index: int) -> int:
        """Size of the dimension at the given index."""
        return self._sizes[dimension_index]

    def size(self) -> int:
        """Number of points in the space, saturated at MAX_SIZE."""
        return self._size

    def random_point(self, rng: Optional[RandomSource] = None) -> Point:
        """Draw each coordinate independently and uniformly."""
        rng = rng or self.rng
        return tuple(rng.next_int(size) for size in self._sizes)

    def get_point(self, point_index: int) -> Point:
        """
        Decode a linear index into a point.

        Raises:
            IndexError: If the index is outside [0, size)
        """
        if point_index < 0 or point_index >= self._size:
            raise IndexError(f"Point index {point_index} outside [0, {self._size})")

        index = point_index
        point = [0] * len(self._sizes)
        for i in range(len(self._sizes) - 1, -1, -1):
            index, point[i] = divmod(index, self._sizes[i])
        return tuple(point)

    def index_of_point(self, point: Sequence[int]) -> int:
        """
        Encode a point as its linear index.

        Raises:
            ValueError: If the point does not have one coordinate per dimension
        """
        if len(point) != len(self._sizes):
            raise ValueError(f"Point {list(point)} has {len(point)} coordinates, "
                             f"expected {len(self._sizes)}")
        factor = 1
        total = 0
        for i in range(len(point) - 1, -1, -1):
            total += point[i] * factor
            factor *= self._sizes[i]
        return total

    def contains(self, point: Sequence[int]) -> bool:
        """True if the point has the right length and every coordinate is in range."""
        if len(point) != len(self._sizes):
            return False
        return all(0 <= value < size for value, size in zip(point, self._sizes))

    def __repr__(self) -> str:
        return f"SearchSpace({list(self._sizes)})"
