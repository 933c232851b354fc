#!/usr/bin/env python3
"""
NTBEA: N-Tuple Bandit Evolutionary Algorithm

Main entry point for running NTBEA on a configured problem.

Usage:
    ntbea --config default --generations 200
    ntbea --config-path my_config.yaml --seed 42 --output-dir results/run1
    python -m ntbea.main --config default --dry-run
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .evolutionary.algorithm import NTBEA, create_ntbea_from_config
from .evolutionary.config import load_config
from .evolutionary.evaluation import EvaluationError
from .problems.max_m import create_problem_from_config
from .utils.logging import EvolutionLogger, setup_logging
from .utils.visualization import plot_coverage_evolution, plot_fitness_evolution

logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="NTBEA: N-Tuple Bandit Evolutionary Algorithm",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the default MaxM problem (200 generations)
  ntbea --config default

  # Shorter, reproducible run
  ntbea --config default --generations 50 --seed 42

  # Custom configuration file
  ntbea --config-path my_config.yaml --output-dir results/run1
        """
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default="default",
        help="Configuration file name (without .yaml extension) (default: default)"
    )

    parser.add_argument(
        "--config-path",
        type=str,
        default=None,
        help="Full path to configuration file (overrides --config)"
    )

    parser.add_argument(
        "--generations", "-g",
        type=int,
        default=None,
        help="Number of generations to run (overrides config file setting)"
    )

    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed (overrides config file setting)"
    )

    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        default="results",
        help="Output directory for results (default: results)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--no-visualization",
        action="store_true",
        help="Disable visualization generation"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the configuration without running"
    )

    return parser.parse_args(argv)


def setup_output_directories(output_dir: str) -> Dict[str, Path]:
    """
    Create output directory structure for results.

    Args:
        output_dir: Base output directory path

    Returns:
        Dictionary of directory paths
    """
    base_path = Path(output_dir)

    directories = {
        "base": base_path,
        "reports": base_path / "reports",
        "visualizations": base_path / "visualizations",
        "logs": base_path / "logs"
    }

    for dir_path in directories.values():
        dir_path.mkdir(parents=True, exist_ok=True)

    logger.info(f"Output directories created at: {base_path.absolute()}")

    return directories


def apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Apply command-line overrides to a loaded configuration."""
    config.setdefault('ntbea', {})
    if args.generations is not None:
        config['ntbea']['generations'] = args.generations
        logger.info(f"Overriding generations: {args.generations}")
    if args.seed is not None:
        config['seed'] = args.seed
        config['ntbea']['seed'] = args.seed
        logger.info(f"Overriding seed: {args.seed}")
    return config


def run_ntbea(args: argparse.Namespace) -> Optional[NTBEA]:
    """
    Main execution function for NTBEA.

    Args:
        args: Parsed command-line arguments

    Returns:
        The NTBEA instance after its run, or None if failed (or dry run)
    """
    directories = setup_output_directories(args.output_dir)
    setup_logging(log_dir=str(directories["logs"]), log_level=args.log_level)

    logger.info("=" * 80)
    logger.info("NTBEA: N-Tuple Bandit Evolutionary Algorithm")
    logger.info("=" * 80)

    # Load configuration
    try:
        config = load_config(args.config_path or args.config)
        logger.info(f"Configuration loaded: {args.config_path or args.config}")
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load configuration: {e}")
        return None

    config = apply_overrides(config, args)

    try:
        evolution_logger = EvolutionLogger(log_dir=str(directories["logs"]))
        ntbea = create_ntbea_from_config(config, evolution_logger=evolution_logger)
        problem = create_problem_from_config(config, ntbea.search_space, rng=ntbea.rng)
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return None

    if args.dry_run:
        logger.info("DRY RUN MODE: Configuration validated successfully")
        return None

    try:
        ntbea.run(problem)
    except EvaluationError as e:
        logger.error(f"Evolution failed with error: {e}", exc_info=True)
        return None
    except KeyboardInterrupt:
        logger.warning("Evolution interrupted by user")
        return None

    logger.info("Evolution completed successfully!")

    ntbea.save_evolution_stats_csv(str(directories["reports"] / "evolution_stats.csv"))
    ntbea.save_report(str(directories["reports"] / "ntuple_report.txt"))

    output_config = config.get('output', {})
    if not args.no_visualization and output_config.get('visualization', True):
        logger.info("Generating visualizations...")
        generate_visualizations(ntbea, directories["visualizations"], getattr(problem, 'optimal_value', None))

    save_final_summary(ntbea, directories["base"], getattr(problem, 'optimal_value', None))

    logger.info(f"All results saved to: {directories['base'].absolute()}")

    return ntbea


def generate_visualizations(ntbea: NTBEA, output_dir: Path, optimal_value: Optional[float] = None):
    """
    Generate all visualization plots from evolution results.

    Args:
        ntbea: NTBEA instance after its run
        output_dir: Output directory for visualizations
        optimal_value: Known optimum drawn as a reference line
    """
    stats = ntbea.statistics.to_dataframe()
    try:
        plot_coverage_evolution(stats, output_dir / "coverage_evolution.png")
        plot_fitness_evolution(stats, output_dir / "fitness_evolution.png", optimal_value=optimal_value)
        logger.info(f"Visualizations saved to: {output_dir}")
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to generate some visualizations: {e}")


def save_final_summary(ntbea: NTBEA, output_dir: Path, optimal_value: Optional[float] = None):
    """
    Save final summary of the run.

    Args:
        ntbea: NTBEA instance after its run
        output_dir: Output directory for the summary
        optimal_value: Known optimum of the problem, if any
    """
    summary = ntbea.get_summary()
    summary["timestamp"] = datetime.now().isoformat()
    summary["optimal_value"] = optimal_value

    summary_path = output_dir / "summary.json"
    with open(summary_path, 'w') as f:
        json.dump(summary, f, indent=2)

    logger.info(f"Final summary saved to: {summary_path}")

    logger.info("=" * 80)
    logger.info("NTBEA SUMMARY")
    logger.info("=" * 80)
    logger.info(f"Generations: {summary['generations']}")
    logger.info(f"Solution: {summary['solution']}")
    logger.info(f"Value estimate: {summary['solution_value_estimate']}")
    if optimal_value is not None:
        logger.info(f"Optimal value: {optimal_value}")
    for length, rate in summary['coverage'].items():
        logger.info(f"  {length}-tuple coverage: {rate:.2f}%")
    logger.info("=" * 80)


def main(argv: Optional[List[str]] = None):
    """
    Main entry point.
    """
    args = parse_arguments(argv)

    ntbea = run_ntbea(args)

    # Exit with appropriate code
    if ntbea is not None or args.dry_run:
        sys.exit(0)
    else:
        sys.exit(1)


if __name__ == "__main__":
    main()
