"""
Test suite for the discrete search space.

Tests cover:
- Size computation (including saturation for huge spaces)
- Mixed-radix index <-> point bijection
- Random point generation and reproducibility
- Construction and argument errors
"""

import sys

import pytest

from ntbea.landscape.search_space import SearchSpace, MAX_SIZE
from ntbea.utils.random_source import RandomSource


class TestSearchSpaceSize:
    """Test dimensions and size."""

    def test_size_5x5x5x5x5(self):
        space = SearchSpace([5, 5, 5, 5, 5])
        assert space.size() == 3125
        assert space.dimensions() == 5

    def test_size_10x10x10x10(self):
        space = SearchSpace([10, 10, 10, 10])
        assert space.size() == 10000

    def test_mixed_dimension_sizes(self):
        space = SearchSpace([2, 3, 4])
        assert space.size() == 24
        assert space.dimension_size(0) == 2
        assert space.dimension_size(2) == 4
        assert space.dimension_sizes == (2, 3, 4)

    def test_size_saturates(self):
        """Products beyond the platform's maximum index are reported as MAX_SIZE."""
        space = SearchSpace([10] * 30)
        assert space.size() == MAX_SIZE == sys.maxsize

    def test_zero_size_dimension_rejected(self):
        with pytest.raises(ValueError):
            SearchSpace([5, 0, 5])

    def test_negative_dimension_rejected(self):
        with pytest.raises(ValueError):
            SearchSpace([-1])


class TestSearchSpaceIndexing:
    """Test the mixed-radix encoding between points and linear indices."""

    def test_get_point_of_every_index_round_trips(self):
        space = SearchSpace([5, 5, 5, 5, 5])
        for index in range(space.size()):
            assert space.index_of_point(space.get_point(index)) == index

    def test_index_of_every_point_round_trips(self):
        space = SearchSpace([2, 3, 4])
        for index in range(space.size()):
            point = space.get_point(index)
            assert space.get_point(space.index_of_point(point)) == point

    def test_last_dimension_varies_fastest(self):
        space = SearchSpace([2, 3])
        assert space.get_point(0) == (0, 0)
        assert space.get_point(1) == (0, 1)
        assert space.get_point(3) == (1, 0)
        assert space.get_point(4) == (1, 1)
        assert space.index_of_point((1, 2)) == 5

    def test_first_and_last_points(self):
        space = SearchSpace([3, 4, 5])
        assert space.get_point(0) == (0, 0, 0)
        assert space.get_point(space.size() - 1) == (2, 3, 4)

    def test_get_point_out_of_range(self):
        space = SearchSpace([3, 3])
        with pytest.raises(IndexError):
            space.get_point(9)
        with pytest.raises(IndexError):
            space.get_point(-1)

    def test_index_of_point_wrong_length(self):
        space = SearchSpace([3, 3])
        with pytest.raises(ValueError):
            space.index_of_point((1, 2, 0))

    def test_contains(self):
        space = SearchSpace([3, 2])
        assert space.contains((2, 1))
        assert not space.contains((3, 0))
        assert not space.contains((0, -1))
        assert not space.contains((0,))


class TestRandomPoint:
    """Test random point generation."""

    def test_random_points_within_bounds(self):
        space = SearchSpace([2, 7, 1, 4], rng=RandomSource(seed=0))
        for _ in range(200):
            point = space.random_point()
            assert space.contains(point)
            assert point[2] == 0

    def test_random_points_reproducible(self):
        first = SearchSpace([5, 5, 5], rng=RandomSource(seed=7))
        second = SearchSpace([5, 5, 5], rng=RandomSource(seed=7))
        assert [first.random_point() for _ in range(20)] == [second.random_point() for _ in range(20)]

    def test_explicit_rng_overrides_space_source(self):
        space = SearchSpace([5, 5, 5], rng=RandomSource(seed=1))
        expected = SearchSpace([5, 5, 5], rng=RandomSource(seed=99)).random_point()
        assert space.random_point(RandomSource(seed=99)) == expected

    def test_every_value_is_drawn(self):
        space = SearchSpace([4], rng=RandomSource(seed=3))
        values = {space.random_point()[0] for _ in range(200)}
        assert values == {0, 1, 2, 3}
