"""
Configuration for NTBEA runs.

NTBEAConfig is an immutable record validated at construction: a run's
parameters cannot change once it has started. Variants are derived with
dataclasses.replace(). Configurations are usually loaded from YAML, where
the NTBEA parameters live in an ``ntbea`` section.
"""

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .evaluation import DEFAULT_EVALUATION_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / 'config' / 'default_config.yaml'

# Alternative spellings accepted in configuration files
_KEY_ALIASES = {
    'neighbors': 'neighbours',
    'num_neighbours': 'neighbours',
    'distinct_neighbors': 'distinct_neighbours',
    'kExplore': 'k_explore',
    'k': 'k_explore',
    'swap_mutation_probability': 'swap_mutation_prob',
    'total_rc_mutation_probability': 'total_rc_mutation_prob',
    'index_mutation_probability': 'index_mutation_prob',
    'mutate_at_least_one': 'mutate_at_least_one_index',
    'threads': 'evaluation_threads',
    'samples': 'evaluation_samples',
}


@dataclass(frozen=True)
class NTBEAConfig:
    """
    Parameters of an NTBEA run.

    Attributes:
        tuple_lengths: Lengths of the N-Tuples to model (distinct, >= 1)
        generations: Number of generations to run
        neighbours: Neighbours generated per generation (capped by size // 4)
        distinct_neighbours: Reject neighbours already spawned this generation
        evaluation_samples: Evaluations averaged per current point
        evaluation_threads: Worker threads for evaluation samples (0 = all CPUs)
        evaluation_timeout: Seconds allowed for one batch of evaluation samples (None = no limit)
        k_explore: Exploration coefficient of the UCB value
        epsilon: Exploration term parameter (> 0)
        swap_mutation_prob: Probability of a swap mutation
        total_rc_mutation_prob: Probability of a total random chaos mutation
        index_mutation_prob: Per-position probability in value mutation
        mutate_at_least_one_index: Value mutation always changes one position
        initial_point: Optional first current point
        seed: Seed for the run's RandomSource
        log_every: Generations between INFO progress lines (0 = only DEBUG)
    """
    tuple_lengths: Tuple[int, ...] = (1, 2)
    generations: int = 100
    neighbours: int = 100
    distinct_neighbours: bool = False
    evaluation_samples: int = 1
    evaluation_threads: int = 1
    evaluation_timeout: Optional[float] = DEFAULT_EVALUATION_TIMEOUT
    k_explore: float = 2.0
    epsilon: float = 0.5
    swap_mutation_prob: float = 0.0
    total_rc_mutation_prob: float = 0.0
    index_mutation_prob: float = 0.4
    mutate_at_least_one_index: bool = False
    initial_point: Optional[Tuple[int, ...]] = None
    seed: Optional[int] = None
    log_every: int = 10

    def __post_init__(self):
        # Normalise sequences from YAML/lists into tuples
        object.__setattr__(self, 'tuple_lengths', tuple(int(x) for x in self.tuple_lengths))
        if self.initial_point is not None:
            object.__setattr__(self, 'initial_point', tuple(int(x) for x in self.initial_point))
        self.validate()

    def validate(self) -> None:
        """
        Check parameter ranges.

        Raises:
            ValueError: On the first invalid parameter
        """
        if not self.tuple_lengths:
            raise ValueError("tuple_lengths must not be empty")
        if any(length < 1 for length in self.tuple_lengths):
            raise ValueError(f"tuple_lengths must be >= 1: {list(self.tuple_lengths)}")
        if len(set(self.tuple_lengths)) != len(self.tuple_lengths):
            raise ValueError(f"tuple_lengths must be distinct: {list(self.tuple_lengths)}")
        if self.generations < 1:
            raise ValueError(f"generations must be >= 1, got {self.generations}")
        if self.neighbours < 1:
            raise ValueError(f"neighbours must be >= 1, got {self.neighbours}")
        if self.evaluation_samples < 1:
            raise ValueError(f"evaluation_samples must be >= 1, got {self.evaluation_samples}")
        if self.evaluation_threads < 0:
            raise ValueError(f"evaluation_threads must be >= 0, got {self.evaluation_threads}")
        timeout = self.evaluation_timeout
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
            raise ValueError(f"evaluation_timeout must be positive or None, got {self.evaluation_timeout}")
        if self.k_explore < 0:
            raise ValueError(f"k_explore must be >= 0, got {self.k_explore}")
        if self.epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        for name in ('swap_mutation_prob', 'total_rc_mutation_prob', 'index_mutation_prob'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.log_every < 0:
            raise ValueError(f"log_every must be >= 0, got {self.log_every}")

    @classmethod
    def from_dict(cls, section: Dict[str, Any]) -> 'NTBEAConfig':
        """
        Create a config from a dictionary (typically the ``ntbea`` YAML section).

        Alias keys are normalised; unknown keys are ignored with a warning.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in (section or {}).items():
            name = _KEY_ALIASES.get(key, key)
            if name in known:
                kwargs[name] = value
            else:
                logger.warning(f"Ignoring unknown NTBEA config key: {key}")
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        data = asdict(self)
        data['tuple_lengths'] = list(self.tuple_lengths)
        if self.initial_point is not None:
            data['initial_point'] = list(self.initial_point)
        return data


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries, with override taking precedence.
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load a configuration dictionary from a YAML file.

    A top-level ``defaults`` key merges the file over the packaged
    default configuration.

    Args:
        config_path: Path to the YAML file, or the name of a file in config/

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If no matching file exists
    """
    config_file = Path(config_path)

    if not config_file.exists():
        possible_paths = [
            DEFAULT_CONFIG_PATH.parent / f"{config_path}_config.yaml",
            DEFAULT_CONFIG_PATH.parent / f"{config_path}.yaml",
            Path("config") / f"{config_path}_config.yaml",
        ]
        for path in possible_paths:
            if path.exists():
                config_file = path
                break
        else:
            raise FileNotFoundError(
                f"Configuration file not found: {config_path}. "
                f"Tried: {[str(p) for p in possible_paths]}"
            )

    logger.info(f"Loading configuration from: {config_file}")

    with open(config_file, 'r') as f:
        config = yaml.safe_load(f) or {}

    if 'defaults' in config:
        if DEFAULT_CONFIG_PATH.exists() and config_file.resolve() != DEFAULT_CONFIG_PATH:
            with open(DEFAULT_CONFIG_PATH, 'r') as f:
                default_config = yaml.safe_load(f) or {}
            config = _deep_merge(default_config, config)
        del config['defaults']

    return config
