"""
Utilities module for NTBEA.

This module provides the random source, running statistics, best-item
selection, logging and visualization helpers used across the framework.
"""

from .random_source import RandomSource
from .running_stats import RunningStatistics, SynchronizedRunningStatistics, standard_error
from .selection import BestItemSelector, HIGHER_IS_BETTER, LOWER_IS_BETTER
from .logging import setup_logging, EvolutionLogger, GenerationLog, RunLog, get_logger
from .visualization import plot_coverage_evolution, plot_fitness_evolution

__all__ = [
    # Randomness
    'RandomSource',

    # Statistics
    'RunningStatistics',
    'SynchronizedRunningStatistics',
    'standard_error',
    'BestItemSelector',
    'HIGHER_IS_BETTER',
    'LOWER_IS_BETTER',

    # Logging
    'setup_logging',
    'EvolutionLogger',
    'GenerationLog',
    'RunLog',
    'get_logger',

    # Visualization
    'plot_coverage_evolution',
    'plot_fitness_evolution',
]
