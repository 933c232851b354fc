"""
Logging utilities for the NTBEA framework.

This module provides the logging infrastructure including:
- Standard logging setup with file and console handlers
- EvolutionLogger for structured, per-generation tracking of a run
"""

import json
import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

ROOT_LOGGER_NAME = 'ntbea'


def _json_safe(value: Any) -> Any:
    """Replace non-finite floats (NaN/inf) by None so lines stay valid JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


@dataclass
class GenerationLog:
    """Data class for logging generation-level information."""
    generation: int
    current_point: List[int]
    current_point_fitness: float
    best_neighbour: List[int]
    best_neighbour_ucb: float
    best_of_sampled: List[int]
    best_of_sampled_value: float
    coverage: Dict[str, float] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return _json_safe(asdict(self))


@dataclass
class RunLog:
    """Data class for logging the outcome of a complete run."""
    generations: int
    search_space: List[int]
    tuple_lengths: List[int]
    solution: Optional[List[int]]
    solution_value_estimate: float
    state: str
    elapsed_seconds: float
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return _json_safe(asdict(self))


class EvolutionLogger:
    """
    Structured logger for tracking NTBEA progress.

    Writes one JSON line per generation to ``generations.jsonl`` and one per
    finished run to ``runs.jsonl``, and mirrors a short summary of each to
    the standard ``ntbea`` logger.
    """

    def __init__(self, log_dir: str, log_level: int = logging.INFO):
        """
        Initialize the evolution logger.

        Args:
            log_dir: Directory to store log files
            log_level: Level used for the per-generation summary lines
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_level = log_level
        self.logger = logging.getLogger(f'{ROOT_LOGGER_NAME}.evolution')

        self.generation_log_file = self.log_dir / 'generations.jsonl'
        self.run_log_file = self.log_dir / 'runs.jsonl'

        self.total_generations = 0
        self.total_runs = 0
        self.best_values_per_generation: List[float] = []

        self.logger.debug(f"EvolutionLogger initialized at {self.log_dir}")

    def log_generation(self, generation_log: GenerationLog):
        """
        Log a generation record.

        Args:
            generation_log: GenerationLog dataclass instance
        """
        try:
            with open(self.generation_log_file, 'a') as f:
                f.write(json.dumps(generation_log.to_dict()) + '\n')
        except OSError as e:
            self.logger.error(f"Failed to write generation record to {self.generation_log_file}: {e}",
                              exc_info=True)

        self.total_generations += 1
        self.best_values_per_generation.append(generation_log.best_of_sampled_value)

        self.logger.log(
            self.log_level,
            f"Gen {generation_log.generation}: "
            f"Current={generation_log.current_point} "
            f"f={generation_log.current_point_fitness:.3f} | "
            f"BoS={generation_log.best_of_sampled} "
            f"est={generation_log.best_of_sampled_value:.3f}"
        )

    def log_run(self, run_log: RunLog):
        """
        Log the outcome of a run.

        Args:
            run_log: RunLog dataclass instance
        """
        try:
            with open(self.run_log_file, 'a') as f:
                f.write(json.dumps(run_log.to_dict()) + '\n')
        except OSError as e:
            self.logger.error(f"Failed to write run record to {self.run_log_file}: {e}", exc_info=True)

        self.total_runs += 1
        self.logger.info(
            f"Run {run_log.state}: {run_log.generations} generations in "
            f"{run_log.elapsed_seconds:.2f}s | Solution={run_log.solution} "
            f"est={run_log.solution_value_estimate:.3f}"
        )

    def read_generations(self) -> List[Dict[str, Any]]:
        """Read back every generation record written so far."""
        if not self.generation_log_file.exists():
            return []
        with open(self.generation_log_file, 'r') as f:
            return [json.loads(line) for line in f if line.strip()]

    def get_evolution_summary(self) -> Dict[str, Any]:
        """
        Summary of everything logged by this instance.

        Returns:
            Dictionary with overall statistics
        """
        values = self.best_values_per_generation
        return {
            'total_generations': self.total_generations,
            'total_runs': self.total_runs,
            'best_value_overall': max(values) if values else 0,
            'final_best_value': values[-1] if values else 0,
            'value_improvement': values[-1] - values[0] if len(values) > 1 else 0,
        }


def setup_logging(
    log_dir: str = "results/logs",
    log_level: Any = "INFO",
    log_to_file: bool = True,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Set up standard logging configuration for the NTBEA framework.

    Args:
        log_dir: Directory to store log files
        log_level: Logging level as string ('DEBUG', 'INFO', ...) or int
        log_to_file: Whether to log to file
        log_to_console: Whether to log to console

    Returns:
        Configured logger instance
    """
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    if isinstance(log_level, int):
        log_level_int = log_level
    else:
        log_level_int = level_map.get(str(log_level).upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level_int)

    # Clear existing handlers
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers = []

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level_int)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path / 'ntbea.log', mode='a')
        file_handler.setLevel(log_level_int)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        # Separate file for errors only
        error_handler = logging.FileHandler(log_path / 'errors.log', mode='a')
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        logger.addHandler(error_handler)

    logger.info(f"Logging initialized at level {log_level} to {log_dir}")

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance by name.

    Args:
        name: Logger name (default: 'ntbea')

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
