"""
NTBEA: N-Tuple Bandit Evolutionary Algorithm

This module implements the main loop: a single current point is evaluated,
its fitness is fed into the N-Tuple landscape model, neighbours of the
current point are scored by their UCB value and the best neighbour becomes
the next current point. After the last generation the recommended solution
is the best of sampled point under the model's mean value estimate.
"""

import logging
import math
import time
from enum import Enum
from typing import Any, Dict, Optional, Set

from .config import NTBEAConfig
from .evaluation import EvaluationError, EvaluationFunction, evaluate_samples
from .mutations import mutate_point
from .statistics import EvolutionStatistics
from ..landscape.ntuple_system import NTupleSystem, ScoredPoint
from ..landscape.search_space import Point, SearchSpace
from ..utils.logging import EvolutionLogger, GenerationLog, RunLog
from ..utils.random_source import RandomSource
from ..utils.selection import BestItemSelector, HIGHER_IS_BETTER

logger = logging.getLogger(__name__)

# Candidates tried per requested neighbour before giving up on distinct ones
MAX_ATTEMPTS_PER_NEIGHBOUR = 100


class RunState(Enum):
    NOT_STARTED = 'not_started'
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'


class NTBEA:
    """
    N-Tuple Bandit Evolutionary Algorithm over a discrete search space.

    A run goes NOT_STARTED -> RUNNING -> COMPLETED, or FAILED on any
    exception leaving the loop (interrupts included). Use reset() to run
    again with a fresh model.
    """

    def __init__(
        self,
        search_space: SearchSpace,
        config: Optional[NTBEAConfig] = None,
        rng: Optional[RandomSource] = None,
        evolution_logger: Optional[EvolutionLogger] = None
    ):
        """
        Initialize the algorithm.

        Args:
            search_space: The space to optimise over
            config: Run parameters (defaults to NTBEAConfig())
            rng: Random source for mutations and UCB jitter. Defaults to a
                 source seeded with config.seed, or the search space's own
            evolution_logger: Optional structured logger for generation records

        Raises:
            ValueError: If the initial point or a tuple length does not fit the space
        """
        self.config = config if config is not None else NTBEAConfig()
        self._search_space = search_space

        if rng is not None:
            self.rng = rng
        elif self.config.seed is not None:
            self.rng = RandomSource(self.config.seed)
        else:
            self.rng = search_space.rng

        if self.config.initial_point is not None and not search_space.contains(self.config.initial_point):
            raise ValueError(
                f"Initial point {list(self.config.initial_point)} is not a valid point of {search_space}"
            )

        self.evolution_logger = evolution_logger
        self._ntuple_system = NTupleSystem(search_space, self.config.tuple_lengths, self.rng)
        self._statistics = EvolutionStatistics(self.config.tuple_lengths)
        self._state = RunState.NOT_STARTED
        self._solution = ScoredPoint(None, math.nan)
        self.current_point: Optional[Point] = None
        self.generation = 0
        self.start_time: Optional[float] = None

        logger.info(f"NTBEA initialized: {search_space}, "
                    f"{len(self._ntuple_system.ntuples)} tuples, "
                    f"{self.effective_neighbours()} neighbours per generation")

    @property
    def search_space(self) -> SearchSpace:
        return self._search_space

    @property
    def ntuple_system(self) -> NTupleSystem:
        return self._ntuple_system

    @property
    def statistics(self) -> EvolutionStatistics:
        return self._statistics

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def solution(self) -> Optional[Point]:
        """Recommended point of the last completed run (None before)."""
        return self._solution.point

    @property
    def solution_value_estimate(self) -> float:
        """Mean value estimate of the solution (NaN before a completed run)."""
        return self._solution.score

    def effective_neighbours(self) -> int:
        """Configured neighbour count capped at a quarter of the search space."""
        return max(1, min(self.config.neighbours, self._search_space.size() // 4))

    def run(self, evaluation_function: EvaluationFunction) -> ScoredPoint:
        """
        Execute the evolutionary loop.

        Args:
            evaluation_function: Callable returning the (noisy) fitness of a point

        Returns:
            ScoredPoint: Best of sampled point and its mean value estimate

        Raises:
            RuntimeError: If the algorithm was already run (call reset() first)
            EvaluationError: If a batch of evaluations timed out, failed or was rejected.
                Any exception leaving the loop marks the run FAILED before propagating.
        """
        if self._state is not RunState.NOT_STARTED:
            raise RuntimeError(f"Cannot run NTBEA in state {self._state.value}; call reset() first")

        self._state = RunState.RUNNING
        self.start_time = time.time()
        total_generations = self.config.generations

        logger.info(f"Starting NTBEA: {total_generations} generations, "
                    f"tuple lengths {list(self.config.tuple_lengths)}, "
                    f"k_explore={self.config.k_explore}, epsilon={self.config.epsilon}")

        if self.config.initial_point is not None:
            self.current_point = tuple(self.config.initial_point)
        else:
            self.current_point = self._search_space.random_point(self.rng)

        try:
            for generation in range(1, total_generations + 1):
                self.generation = generation
                self.current_point = self._run_generation(generation, evaluation_function)
        except EvaluationError as e:
            self._state = RunState.FAILED
            logger.error(f"NTBEA run failed at generation {self.generation}: {e}")
            self._log_run()
            raise
        except BaseException as e:
            self._state = RunState.FAILED
            logger.error(f"NTBEA run aborted at generation {self.generation}: {e!r}", exc_info=True)
            self._log_run()
            raise

        self._solution = self._ntuple_system.best_of_sampled()
        self._state = RunState.COMPLETED

        elapsed = time.time() - self.start_time
        logger.info(f"NTBEA completed in {elapsed:.2f}s: solution="
                    f"{list(self._solution.point)} (estimate {self._solution.score:.4f})")
        self._log_run()

        return self._solution

    def _run_generation(self, generation: int, evaluation_function: EvaluationFunction) -> Point:
        """Run one generation and return the next current point."""
        current_point = self.current_point

        # Evaluate and update the model
        evaluation = evaluate_samples(
            evaluation_function,
            current_point,
            num_samples=self.config.evaluation_samples,
            threads=self.config.evaluation_threads,
            timeout=self.config.evaluation_timeout,
        )
        fitness = evaluation.mean
        self._ntuple_system.add_point(current_point, fitness)

        best_neighbour = self._find_best_neighbour(current_point)

        best_of_sampled = self._ntuple_system.best_of_sampled()
        self._statistics.update(self._ntuple_system, fitness, best_neighbour.score, best_of_sampled)

        level = logging.INFO if self.config.log_every and generation % self.config.log_every == 0 else logging.DEBUG
        logger.log(
            level,
            f"Generation {generation}/{self.config.generations}: "
            f"current={list(current_point)} fitness={fitness:.4f} | "
            f"best neighbour UCB={best_neighbour.score:.4f} | "
            f"best of sampled={list(best_of_sampled.point)} est={best_of_sampled.score:.4f}"
        )

        if self.evolution_logger is not None:
            self.evolution_logger.log_generation(GenerationLog(
                generation=generation,
                current_point=list(current_point),
                current_point_fitness=fitness,
                best_neighbour=list(best_neighbour.point),
                best_neighbour_ucb=best_neighbour.score,
                best_of_sampled=list(best_of_sampled.point),
                best_of_sampled_value=best_of_sampled.score,
                coverage={str(length): rate for length, rate in self._statistics.latest_coverage().items()},
            ))

        return best_neighbour.point

    def _find_best_neighbour(self, current_point: Point) -> ScoredPoint:
        """
        Spawn neighbours of the current point and keep the one with the highest UCB.

        In distinct mode, candidates already spawned this generation are
        redrawn. If too many redraws are needed the search settles for the
        neighbours found so far.
        """
        config = self.config
        target = self.effective_neighbours()
        max_attempts = target * MAX_ATTEMPTS_PER_NEIGHBOUR
        selector: BestItemSelector[Point] = BestItemSelector(HIGHER_IS_BETTER)
        spawned: Set[int] = set()
        attempts = 0

        while selector.num_items() < target:
            if attempts >= max_attempts and selector.num_items() > 0:
                logger.warning(f"Only {selector.num_items()}/{target} distinct neighbours "
                               f"found after {attempts} attempts")
                break
            attempts += 1

            candidate = mutate_point(
                current_point,
                self._search_space,
                swap_mutation_prob=config.swap_mutation_prob,
                total_rc_mutation_prob=config.total_rc_mutation_prob,
                index_mutation_prob=config.index_mutation_prob,
                mutate_at_least_one_index=config.mutate_at_least_one_index,
                rng=self.rng,
            )

            if config.distinct_neighbours:
                index = self._search_space.index_of_point(candidate)
                if index in spawned:
                    continue
                spawned.add(index)

            selector.add_item(candidate, self._ntuple_system.ucb_value(
                candidate, config.epsilon, config.k_explore))

        return ScoredPoint(selector.best_item, selector.best_score)

    def _log_run(self) -> None:
        if self.evolution_logger is None:
            return
        solution = self._solution.point
        self.evolution_logger.log_run(RunLog(
            generations=self.generation,
            search_space=list(self._search_space.dimension_sizes),
            tuple_lengths=list(self.config.tuple_lengths),
            solution=list(solution) if solution is not None else None,
            solution_value_estimate=self._solution.score,
            state=self._state.value,
            elapsed_seconds=time.time() - self.start_time if self.start_time else 0.0,
        ))

    def reset(self) -> None:
        """Forget the model, statistics and solution; the next run starts from scratch."""
        self._ntuple_system.reset()
        self._statistics.clear()
        self._solution = ScoredPoint(None, math.nan)
        self._state = RunState.NOT_STARTED
        self.current_point = None
        self.generation = 0
        self.start_time = None
        logger.debug("NTBEA reset")

    def get_summary(self) -> Dict[str, Any]:
        """Summary of the run for JSON serialization."""
        solution = self._solution.point
        score = self._solution.score
        return {
            'state': self._state.value,
            'generations': self.generation,
            'search_space': list(self._search_space.dimension_sizes),
            'num_tuples': len(self._ntuple_system.ntuples),
            'num_samples': self._ntuple_system.num_samples(),
            'solution': list(solution) if solution is not None else None,
            'solution_value_estimate': None if math.isnan(score) else score,
            'coverage': {str(k): v for k, v in self._ntuple_system.coverage_by_length().items()},
            'config': self.config.to_dict(),
        }

    def save_report(self, file_path: str) -> bool:
        """
        Write the tuple report followed by the best of sampled history.

        Returns:
            True on success, False if the file could not be written
        """
        try:
            with open(file_path, 'w') as f:
                f.write(self._ntuple_system.generate_report())
                f.write(self._statistics.best_of_sampled_list())
        except OSError as e:
            logger.error(f"Failed to save tuple report to {file_path}: {e}", exc_info=True)
            return False
        logger.info(f"Saved tuple report to {file_path}")
        return True

    def save_evolution_stats_csv(self, file_path: str) -> bool:
        return self._statistics.save_as_csv(file_path)


def create_ntbea_from_config(
    config: Dict[str, Any],
    evolution_logger: Optional[EvolutionLogger] = None
) -> NTBEA:
    """
    Factory function to create an NTBEA instance from a configuration dictionary.

    Uses the ``search_space`` and ``ntbea`` sections. The ``ntbea.seed``
    falls back to the top-level ``seed``.

    Args:
        config: Configuration dictionary (see load_config)
        evolution_logger: Optional structured logger

    Returns:
        NTBEA: Initialized algorithm instance

    Raises:
        ValueError: If the search space is missing or invalid
    """
    ntbea_config = NTBEAConfig.from_dict(config.get('ntbea', {}))
    seed = ntbea_config.seed if ntbea_config.seed is not None else config.get('seed')

    dimensions = config.get('search_space', {}).get('dimensions')
    if not dimensions:
        raise ValueError("Configuration must define search_space.dimensions")

    rng = RandomSource(seed)
    search_space = SearchSpace(dimensions, rng)

    return NTBEA(search_space, ntbea_config, rng=rng, evolution_logger=evolution_logger)
