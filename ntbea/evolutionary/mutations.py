"""
Mutation operators used to spawn neighbours of the current point.

All operators are pure: they never modify the input point and always
return a new tuple. Randomness comes from an explicit RandomSource
(defaulting to the search space's own source).

Operators:
- swap_mutation: exchange the values of two distinct positions
- total_random_chaos_mutation: draw a brand new random point
- value_mutation: position-by-position replacement with a different value
- mutate_point: dispatcher that picks one of the above per call
"""

import logging
from typing import Optional, Sequence

from ..landscape.search_space import Point, SearchSpace
from ..utils.random_source import RandomSource

logger = logging.getLogger(__name__)


def mutate_point(
    point: Sequence[int],
    search_space: SearchSpace,
    swap_mutation_prob: float = 0.0,
    total_rc_mutation_prob: float = 0.0,
    index_mutation_prob: float = 0.4,
    mutate_at_least_one_index: bool = False,
    rng: Optional[RandomSource] = None
) -> Point:
    """
    Generate a neighbour by applying exactly one mutation operator.

    Independent Bernoulli trials are checked in a fixed order: swap mutation
    with probability swap_mutation_prob, otherwise total random chaos with
    probability total_rc_mutation_prob, otherwise value mutation.

    Args:
        point: The point to mutate
        search_space: The associated search space
        swap_mutation_prob: Probability of a swap mutation
        total_rc_mutation_prob: Probability of a total random chaos mutation
        index_mutation_prob: Value mutation: per-position mutation probability
        mutate_at_least_one_index: Value mutation: force one random position to mutate
        rng: Random source (defaults to search_space.rng)

    Returns:
        A new point
    """
    rng = rng or search_space.rng

    if rng.next_double() < swap_mutation_prob:
        return swap_mutation(point, search_space, rng)

    if rng.next_double() < total_rc_mutation_prob:
        return total_random_chaos_mutation(search_space, rng)

    return value_mutation(point, search_space, index_mutation_prob,
                          mutate_at_least_one_index, rng)


def swap_mutation(
    point: Sequence[int],
    search_space: SearchSpace,
    rng: Optional[RandomSource] = None
) -> Point:
    """
    Swap the values at two distinct random positions.

    A value is only moved into a position whose dimension can hold it; each
    half of the swap is checked on its own, so the result may change one
    position or none. Points with fewer than 2 coordinates are returned as is.
    """
    if len(point) < 2:
        return tuple(point)

    rng = rng or search_space.rng
    first, second = rng.sample_k_from_n(2, len(point))

    new_point = list(point)
    if point[second] < search_space.dimension_size(first):
        new_point[first] = point[second]
    if point[first] < search_space.dimension_size(second):
        new_point[second] = point[first]

    return tuple(new_point)


def total_random_chaos_mutation(
    search_space: SearchSpace,
    rng: Optional[RandomSource] = None
) -> Point:
    """Ignore the current point and return a uniformly random one."""
    return search_space.random_point(rng)


def value_mutation(
    point: Sequence[int],
    search_space: SearchSpace,
    index_mutation_prob: float = 0.4,
    mutate_at_least_one_index: bool = False,
    rng: Optional[RandomSource] = None
) -> Point:
    """
    Replace values position by position.

    Each position mutates with probability index_mutation_prob. With
    mutate_at_least_one_index, one position picked up front mutates
    regardless. A mutated position always receives a different value,
    except in dimensions of size 1, which are left alone.

    Args:
        point: The point to mutate
        search_space: The associated search space
        index_mutation_prob: Per-position mutation probability (1: all, 0: none)
        mutate_at_least_one_index: Force one random position to mutate
        rng: Random source (defaults to search_space.rng)

    Returns:
        A new point
    """
    if len(point) < 1:
        return tuple(point)

    rng = rng or search_space.rng
    new_point = list(point)

    required = rng.next_int(len(new_point)) if mutate_at_least_one_index else -1

    for i in range(len(new_point)):
        if rng.next_double() < index_mutation_prob or i == required:
            new_point[i] = mutate_index(new_point[i], search_space.dimension_size(i), rng)

    return tuple(new_point)


def mutate_index(current_value: int, dimension_size: int, rng: RandomSource) -> int:
    """
    Uniformly pick a value of the dimension other than `current_value`.

    Draws from [0, dimension_size - 1) and shifts the draw up by one when it
    lands on or above the current value. Dimensions of size <= 1 have no
    alternative, so the current value is kept.
    """
    if dimension_size <= 1:
        return current_value

    new_value = rng.next_int(dimension_size - 1)
    return new_value + 1 if new_value >= current_value else new_value
