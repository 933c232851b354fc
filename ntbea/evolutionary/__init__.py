"""
Evolutionary Algorithm Module for NTBEA.

This module implements the evolutionary search driven by the N-Tuple
landscape model: mutation operators, batched evaluation, run
configuration, per-generation statistics and the main loop.
"""

from .mutations import mutate_point, swap_mutation, total_random_chaos_mutation, value_mutation, mutate_index
from .evaluation import (
    EvaluationFunction,
    EvaluationError,
    EvaluationTimeoutError,
    EvaluationFailedError,
    EvaluationRejectedError,
    evaluate_samples,
    DEFAULT_EVALUATION_TIMEOUT,
)
from .config import NTBEAConfig, load_config, DEFAULT_CONFIG_PATH
from .statistics import EvolutionStatistics
from .algorithm import NTBEA, RunState, create_ntbea_from_config

__all__ = [
    # Mutations
    'mutate_point',
    'swap_mutation',
    'total_random_chaos_mutation',
    'value_mutation',
    'mutate_index',

    # Evaluation
    'EvaluationFunction',
    'EvaluationError',
    'EvaluationTimeoutError',
    'EvaluationFailedError',
    'EvaluationRejectedError',
    'evaluate_samples',
    'DEFAULT_EVALUATION_TIMEOUT',

    # Configuration
    'NTBEAConfig',
    'load_config',
    'DEFAULT_CONFIG_PATH',

    # Statistics
    'EvolutionStatistics',

    # Algorithm
    'NTBEA',
    'RunState',
    'create_ntbea_from_config',
]
