"""
Test suite for the plotting helpers.
"""

import pandas as pd

from ntbea.utils.visualization import coverage_columns, plot_coverage_evolution, plot_fitness_evolution


def _stats():
    return pd.DataFrame({
        'generation': [1, 2, 3],
        'current_point_fitness': [5.0, 7.0, 6.0],
        'best_neighbour_ucb': [9.0, 9.5, 9.1],
        'best_of_sampled': [5.0, 7.0, 7.0],
        'coverage_10_tuple': [0.1, 0.2, 0.3],
        'coverage_2_tuple': [4.0, 8.0, 12.0],
        'coverage_1_tuple': [20.0, 40.0, 60.0],
    })


class TestVisualization:
    """Test that plots are written for full and empty statistics."""

    def test_coverage_columns_sorted_by_length(self):
        assert coverage_columns(_stats()) == ['coverage_1_tuple', 'coverage_2_tuple', 'coverage_10_tuple']

    def test_plot_coverage_evolution(self, tmp_path):
        path = tmp_path / "plots" / "coverage.png"
        plot_coverage_evolution(_stats(), path)
        assert path.exists()

    def test_plot_fitness_evolution(self, tmp_path):
        path = tmp_path / "fitness.png"
        plot_fitness_evolution(_stats(), path, optimal_value=20.0)
        assert path.exists()

    def test_empty_statistics(self, tmp_path):
        plot_coverage_evolution(pd.DataFrame(), tmp_path / "coverage.png")
        plot_fitness_evolution(pd.DataFrame(), tmp_path / "fitness.png")
        assert (tmp_path / "coverage.png").exists()
        assert (tmp_path / "fitness.png").exists()
