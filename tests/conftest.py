"""
Shared fixtures for the NTBEA test suite.
"""

import logging
import os

os.environ.setdefault("MPLBACKEND", "Agg")

import pytest

from ntbea.landscape.search_space import SearchSpace
from ntbea.utils.random_source import RandomSource


@pytest.fixture
def rng():
    """Seeded random source so every test is reproducible."""
    return RandomSource(seed=42)


@pytest.fixture
def space_5x5(rng):
    """The 5^5 search space used by the MaxM examples."""
    return SearchSpace([5, 5, 5, 5, 5], rng=rng)


@pytest.fixture
def reset_ntbea_logger():
    """Restore the package logger after tests that configure it."""
    logger = logging.getLogger("ntbea")
    level = logger.level
    handlers = list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)
