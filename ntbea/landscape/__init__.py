"""
Fitness landscape model for NTBEA.

This module implements the discrete search space and the N-Tuple bandit
model built over it: tuples of dimensions, the patterns they observe, and
the system that aggregates their statistics into value estimates.
"""

from .search_space import SearchSpace, Point, MAX_SIZE
from .ntuple import NTuple, NTuplePattern
from .ntuple_system import NTupleSystem, ScoredPoint, UCB_JITTER_SCALE

__all__ = [
    'SearchSpace',
    'Point',
    'MAX_SIZE',
    'NTuple',
    'NTuplePattern',
    'NTupleSystem',
    'ScoredPoint',
    'UCB_JITTER_SCALE',
]
