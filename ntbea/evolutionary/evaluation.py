"""
Evaluation of points under a (possibly noisy) fitness function.

An evaluation function is any callable taking a point (tuple of ints)
and returning a float. evaluate_samples() calls it several times for the
same point, optionally spread over a pool of worker threads, and folds
every result into one SynchronizedRunningStatistics.

A batch either completes or fails as a whole. Each failure cause has its
own exception type so callers can tell them apart.
"""

import logging
import os
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Optional, Sequence

from ..landscape.search_space import Point
from ..utils.running_stats import SynchronizedRunningStatistics

logger = logging.getLogger(__name__)

EvaluationFunction = Callable[[Point], float]

# 10 hours
DEFAULT_EVALUATION_TIMEOUT = 10 * 60 * 60.0


class EvaluationError(RuntimeError):
    """Base class for unrecoverable evaluation failures."""


class EvaluationTimeoutError(EvaluationError):
    """The batch did not finish within the timeout; outstanding work was cancelled."""


class EvaluationFailedError(EvaluationError):
    """The evaluation function raised; the original exception is chained."""


class EvaluationRejectedError(EvaluationError):
    """The worker pool refused to accept the evaluation tasks."""


def resolve_thread_count(threads: int) -> int:
    """0 means one worker per available CPU."""
    if threads < 0:
        raise ValueError(f"threads must be >= 0, got {threads}")
    if threads == 0:
        return os.cpu_count() or 1
    return threads


def evaluate_samples(
    evaluation_function: EvaluationFunction,
    point: Sequence[int],
    num_samples: int = 1,
    threads: int = 1,
    timeout: Optional[float] = DEFAULT_EVALUATION_TIMEOUT
) -> SynchronizedRunningStatistics:
    """
    Evaluate `point` num_samples times and aggregate the results.

    Args:
        evaluation_function: Callable returning the fitness of a point
        point: The point to evaluate
        num_samples: Number of independent evaluations
        threads: Worker threads to spread the samples over (0 = all CPUs)
        timeout: Seconds to wait for the whole batch (None = no limit)

    Returns:
        Statistics (n, mean, std, min, max) of the sampled fitness values

    Raises:
        ValueError: If num_samples < 1 or threads < 0
        EvaluationTimeoutError: If the batch exceeded the timeout
        EvaluationFailedError: If an evaluation raised
        EvaluationRejectedError: If the pool refused the tasks
    """
    if num_samples < 1:
        raise ValueError(f"num_samples must be >= 1, got {num_samples}")

    point = tuple(point)
    stats = SynchronizedRunningStatistics()
    workers = min(resolve_thread_count(threads), num_samples)

    def _sample() -> None:
        stats.add_value(evaluation_function(point))

    if num_samples == 1:
        try:
            _sample()
        except Exception as e:
            raise EvaluationFailedError(f"Evaluation of {list(point)} failed: {e}") from e
        return stats

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix='ntbea-eval')
    try:
        try:
            futures = [executor.submit(_sample) for _ in range(num_samples)]
        except RuntimeError as e:
            raise EvaluationRejectedError(f"Worker pool rejected evaluation tasks: {e}") from e

        done, not_done = wait(futures, timeout=timeout, return_when=FIRST_EXCEPTION)

        for future in done:
            error = future.exception()
            if error is not None:
                for pending in not_done:
                    pending.cancel()
                raise EvaluationFailedError(
                    f"Evaluation of {list(point)} failed: {error}") from error

        if not_done:
            for pending in not_done:
                pending.cancel()
            logger.error(f"Evaluation of {list(point)} timed out after {timeout}s: "
                         f"{len(not_done)}/{num_samples} samples outstanding")
            raise EvaluationTimeoutError(
                f"Evaluation of {list(point)} did not finish within {timeout}s")
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    logger.debug(f"Evaluated {list(point)} with {num_samples} samples on {workers} threads: "
                 f"mean={stats.mean:.4f}")
    return stats
