"""
NTBEA: N-Tuple Bandit Evolutionary Algorithm

This package implements NTBEA, a model-based evolutionary optimiser for
discrete search spaces with noisy, expensive fitness functions. A
landscape model of overlapping N-Tuple bandits estimates the value of
unseen points and drives the choice of the next point to evaluate.

Main Components:
- landscape: Search space, N-Tuples and the N-Tuple system
- evolutionary: Mutations, evaluation, configuration, statistics, main loop
- problems: Example problems (MaxM)
- utils: Random source, running statistics, logging, visualization

Usage:
    from ntbea import NTBEA, NTBEAConfig, SearchSpace
    ntbea = NTBEA(SearchSpace([5, 5, 5]), NTBEAConfig(tuple_lengths=(1, 3)))
    solution = ntbea.run(evaluation_function)
"""

__version__ = "1.0.0"

from .landscape import SearchSpace, NTuple, NTuplePattern, NTupleSystem, ScoredPoint
from .evolutionary import NTBEA, NTBEAConfig, RunState, create_ntbea_from_config, load_config
from .utils import RandomSource

__all__ = [
    "SearchSpace",
    "NTuple",
    "NTuplePattern",
    "NTupleSystem",
    "ScoredPoint",
    "NTBEA",
    "NTBEAConfig",
    "RunState",
    "create_ntbea_from_config",
    "load_config",
    "RandomSource",
]
