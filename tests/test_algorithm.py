"""
Test suite for the NTBEA main loop.

Tests cover:
- Construction, neighbour cap and state machine
- Neighbour generation (distinct mode, termination on tiny spaces)
- Failure handling and reproducibility
- Reports, statistics export and structured logging
- End-to-end optimisation of the MaxM problem
"""

import json
import math

import pytest

from ntbea.evolutionary.algorithm import NTBEA, RunState, create_ntbea_from_config
from ntbea.evolutionary.config import NTBEAConfig
from ntbea.evolutionary.evaluation import EvaluationFailedError
from ntbea.landscape.search_space import SearchSpace
from ntbea.utils.logging import EvolutionLogger
from ntbea.utils.random_source import RandomSource


def sum_of_coordinates(point):
    return float(sum(point))


def make_ntbea(dimensions=(5, 5, 5), seed=0, **config_kwargs):
    rng = RandomSource(seed=seed)
    config_kwargs.setdefault('generations', 10)
    config_kwargs.setdefault('tuple_lengths', (1, 2))
    return NTBEA(SearchSpace(dimensions, rng=rng), NTBEAConfig(**config_kwargs), rng=rng)


class TestNTBEAConstruction:
    """Test construction and the neighbour cap."""

    def test_initial_state(self):
        ntbea = make_ntbea()
        assert ntbea.state is RunState.NOT_STARTED
        assert ntbea.solution is None
        assert math.isnan(ntbea.solution_value_estimate)
        assert ntbea.ntuple_system.num_samples() == 0

    def test_invalid_initial_point(self):
        with pytest.raises(ValueError):
            make_ntbea(initial_point=(0, 5, 0))
        with pytest.raises(ValueError):
            make_ntbea(initial_point=(0, 0))

    def test_tuple_length_larger_than_space(self):
        with pytest.raises(ValueError):
            make_ntbea(tuple_lengths=(1, 4))

    def test_neighbour_cap(self):
        assert make_ntbea(dimensions=(5, 5, 5, 5, 5), neighbours=200).effective_neighbours() == 200
        assert make_ntbea(dimensions=(4, 4), neighbours=200).effective_neighbours() == 4
        assert make_ntbea(dimensions=(2, 2), tuple_lengths=(1,)).effective_neighbours() == 1

    def test_neighbour_cap_never_below_one(self):
        assert make_ntbea(dimensions=(1, 1), tuple_lengths=(1,)).effective_neighbours() == 1

    def test_seed_from_config(self):
        config = NTBEAConfig(seed=5, generations=5)
        first = NTBEA(SearchSpace([5, 5, 5]), config).run(sum_of_coordinates)
        second = NTBEA(SearchSpace([5, 5, 5]), config).run(sum_of_coordinates)
        assert first == second


class TestNTBEARun:
    """Test the evolutionary loop."""

    def test_run_completes(self):
        ntbea = make_ntbea(generations=15)
        result = ntbea.run(sum_of_coordinates)

        assert ntbea.state is RunState.COMPLETED
        assert ntbea.ntuple_system.num_samples() == 15
        assert ntbea.statistics.num_generations() == 15
        assert result.point == ntbea.solution
        assert result.score == ntbea.solution_value_estimate
        assert ntbea.search_space.contains(ntbea.solution)

    def test_solution_is_best_of_sampled(self):
        ntbea = make_ntbea(generations=15)
        ntbea.run(sum_of_coordinates)
        assert ntbea.solution in ntbea.ntuple_system.sampled_points
        assert (ntbea.solution, ntbea.solution_value_estimate) == tuple(ntbea.ntuple_system.best_of_sampled())

    def test_initial_point_is_evaluated_first(self):
        ntbea = make_ntbea(generations=3, initial_point=(4, 0, 2))
        ntbea.run(sum_of_coordinates)
        assert ntbea.ntuple_system.sampled_points[0] == (4, 0, 2)

    def test_next_current_point_is_a_neighbour(self):
        ntbea = make_ntbea(generations=5, index_mutation_prob=0.0, mutate_at_least_one_index=True)
        ntbea.run(sum_of_coordinates)
        points = ntbea.ntuple_system.sampled_points
        for previous, current in zip(points, points[1:]):
            assert sum(1 for a, b in zip(previous, current) if a != b) == 1

    def test_run_twice_requires_reset(self):
        ntbea = make_ntbea(generations=3)
        ntbea.run(sum_of_coordinates)
        with pytest.raises(RuntimeError):
            ntbea.run(sum_of_coordinates)

        ntbea.reset()
        assert ntbea.state is RunState.NOT_STARTED
        assert ntbea.ntuple_system.num_samples() == 0
        assert ntbea.statistics.num_generations() == 0
        assert ntbea.solution is None

        ntbea.run(sum_of_coordinates)
        assert ntbea.state is RunState.COMPLETED
        assert ntbea.ntuple_system.num_samples() == 3

    def test_reproducible_with_seed(self):
        first = make_ntbea(generations=20, seed=3)
        second = make_ntbea(generations=20, seed=3)
        assert first.run(sum_of_coordinates) == second.run(sum_of_coordinates)
        assert first.ntuple_system.sampled_points == second.ntuple_system.sampled_points

    def test_multiple_evaluation_samples(self):
        calls = []

        def counting(point):
            calls.append(point)
            return float(sum(point))

        ntbea = make_ntbea(generations=4, evaluation_samples=3, evaluation_threads=2)
        ntbea.run(counting)
        assert len(calls) == 12
        assert ntbea.ntuple_system.num_samples() == 4

    def test_evaluation_failure_marks_run_failed(self):
        def broken(point):
            raise ValueError("simulator crashed")

        ntbea = make_ntbea(generations=3)
        with pytest.raises(EvaluationFailedError):
            ntbea.run(broken)
        assert ntbea.state is RunState.FAILED
        assert ntbea.ntuple_system.num_samples() == 0

        with pytest.raises(RuntimeError):
            ntbea.run(sum_of_coordinates)

    def test_interrupt_marks_run_failed(self):
        calls = []

        def interrupted(point):
            calls.append(point)
            if len(calls) == 3:
                raise KeyboardInterrupt
            return float(sum(point))

        ntbea = make_ntbea(generations=10)
        with pytest.raises(KeyboardInterrupt):
            ntbea.run(interrupted)
        assert ntbea.state is RunState.FAILED
        assert ntbea.solution is None
        assert ntbea.ntuple_system.num_samples() == 2

        ntbea.reset()
        ntbea.run(sum_of_coordinates)
        assert ntbea.state is RunState.COMPLETED

    def test_unexpected_error_marks_run_failed(self, monkeypatch):
        ntbea = make_ntbea(generations=5)

        def broken_neighbours(current_point):
            raise MemoryError("out of memory")

        monkeypatch.setattr(ntbea, "_find_best_neighbour", broken_neighbours)
        with pytest.raises(MemoryError):
            ntbea.run(sum_of_coordinates)
        assert ntbea.state is RunState.FAILED


class TestNeighbourGeneration:
    """Test how neighbours are spawned and scored."""

    def _record_candidates(self, ntbea, monkeypatch):
        candidates = []
        original = ntbea.ntuple_system.ucb_value

        def recording(point, epsilon, k_explore):
            candidates.append(point)
            return original(point, epsilon, k_explore)

        monkeypatch.setattr(ntbea.ntuple_system, "ucb_value", recording)
        return candidates

    def test_distinct_neighbours(self, monkeypatch):
        ntbea = make_ntbea(generations=1, neighbours=20, distinct_neighbours=True)
        candidates = self._record_candidates(ntbea, monkeypatch)
        ntbea.run(sum_of_coordinates)

        assert len(candidates) == 20
        assert len(set(candidates)) == 20

    def test_neighbour_count_capped_on_small_space(self, monkeypatch):
        ntbea = make_ntbea(dimensions=(2, 2, 2), generations=1, neighbours=100, index_mutation_prob=0.0,
                           mutate_at_least_one_index=True)
        candidates = self._record_candidates(ntbea, monkeypatch)
        ntbea.run(sum_of_coordinates)

        # 8 points, so at most 8 // 4 neighbours per generation
        assert len(candidates) == 2

    def test_terminates_when_distinct_neighbours_run_out(self):
        ntbea = make_ntbea(dimensions=(3, 3), generations=2, distinct_neighbours=True,
                           index_mutation_prob=0.0, mutate_at_least_one_index=False)
        ntbea.run(sum_of_coordinates)
        assert ntbea.state is RunState.COMPLETED
        assert ntbea.ntuple_system.sampled_points == [ntbea.ntuple_system.sampled_points[0]] * 2

    def test_single_point_space(self):
        ntbea = make_ntbea(dimensions=(1, 1), tuple_lengths=(1, 2), generations=3, distinct_neighbours=True)
        result = ntbea.run(sum_of_coordinates)
        assert result.point == (0, 0)


class TestNTBEAReports:
    """Test exports and structured logging."""

    def test_save_report(self, tmp_path):
        ntbea = make_ntbea(generations=5)
        ntbea.run(sum_of_coordinates)

        path = tmp_path / "report.txt"
        assert ntbea.save_report(str(path))
        report = path.read_text()
        assert report.startswith("1-Tuple[0]")
        assert "2-Tuple[1, 2]" in report
        best_list = report[report.index("Best of Sampled | Mean value estimate"):]
        assert len(best_list.strip().split("\n")) == 6

    def test_save_report_failure_keeps_model(self, tmp_path):
        ntbea = make_ntbea(generations=5)
        ntbea.run(sum_of_coordinates)
        assert not ntbea.save_report(str(tmp_path / "missing" / "report.txt"))
        assert ntbea.ntuple_system.num_samples() == 5
        assert ntbea.state is RunState.COMPLETED

    def test_save_evolution_stats_csv(self, tmp_path):
        ntbea = make_ntbea(generations=5)
        ntbea.run(sum_of_coordinates)
        path = tmp_path / "stats.csv"
        assert ntbea.save_evolution_stats_csv(str(path))
        lines = path.read_text().strip().split("\n")
        assert lines[0] == ("generation,current_point_fitness,best_neighbour_ucb,best_of_sampled,"
                            "coverage_1_tuple,coverage_2_tuple")
        assert len(lines) == 6

    def test_evolution_logger_records(self, tmp_path):
        rng = RandomSource(seed=1)
        evolution_logger = EvolutionLogger(str(tmp_path / "logs"))
        ntbea = NTBEA(SearchSpace([5, 5, 5], rng=rng), NTBEAConfig(generations=4), rng=rng,
                      evolution_logger=evolution_logger)
        ntbea.run(sum_of_coordinates)

        records = evolution_logger.read_generations()
        assert [r['generation'] for r in records] == [1, 2, 3, 4]
        assert set(records[0]['coverage']) == {'1', '2'}

        runs = [json.loads(line) for line in (tmp_path / "logs" / "runs.jsonl").read_text().splitlines()]
        assert runs[0]['state'] == 'completed'
        assert runs[0]['solution'] == list(ntbea.solution)

    def test_failed_run_logged(self, tmp_path):
        def broken(point):
            raise ValueError("boom")

        rng = RandomSource(seed=1)
        evolution_logger = EvolutionLogger(str(tmp_path / "logs"))
        ntbea = NTBEA(SearchSpace([5, 5], rng=rng), NTBEAConfig(generations=4), rng=rng,
                      evolution_logger=evolution_logger)
        with pytest.raises(EvaluationFailedError):
            ntbea.run(broken)

        run = json.loads((tmp_path / "logs" / "runs.jsonl").read_text().splitlines()[0])
        assert run['state'] == 'failed'
        assert run['solution'] is None
        assert run['solution_value_estimate'] is None

    def test_unwritable_generation_log_does_not_stop_run(self, tmp_path):
        log_dir = tmp_path / "logs"
        evolution_logger = EvolutionLogger(str(log_dir))
        (log_dir / "generations.jsonl").mkdir()
        (log_dir / "runs.jsonl").mkdir()

        rng = RandomSource(seed=1)
        ntbea = NTBEA(SearchSpace([5, 5, 5], rng=rng), NTBEAConfig(generations=5), rng=rng,
                      evolution_logger=evolution_logger)
        ntbea.run(sum_of_coordinates)

        assert ntbea.state is RunState.COMPLETED
        assert ntbea.ntuple_system.num_samples() == 5
        assert evolution_logger.total_generations == 5
        assert evolution_logger.total_runs == 1

    def test_interrupted_run_logged(self, tmp_path):
        def interrupted(point):
            raise KeyboardInterrupt

        rng = RandomSource(seed=1)
        evolution_logger = EvolutionLogger(str(tmp_path / "logs"))
        ntbea = NTBEA(SearchSpace([5, 5], rng=rng), NTBEAConfig(generations=4), rng=rng,
                      evolution_logger=evolution_logger)
        with pytest.raises(KeyboardInterrupt):
            ntbea.run(interrupted)

        run = json.loads((tmp_path / "logs" / "runs.jsonl").read_text().splitlines()[0])
        assert run['state'] == 'failed'

    def test_get_summary(self):
        ntbea = make_ntbea(generations=5)
        ntbea.run(sum_of_coordinates)
        summary = ntbea.get_summary()
        assert summary['state'] == 'completed'
        assert summary['num_samples'] == 5
        assert summary['solution'] == list(ntbea.solution)
        json.dumps(summary)


class TestCreateFromConfig:
    """Test the configuration factory."""

    def test_create(self):
        config = {
            'seed': 4,
            'search_space': {'dimensions': [3, 4]},
            'ntbea': {'tuple_lengths': [1, 2], 'generations': 6, 'neighbors': 5},
        }
        ntbea = create_ntbea_from_config(config)
        assert ntbea.search_space.dimension_sizes == (3, 4)
        assert ntbea.config.neighbours == 5
        assert ntbea.rng.seed == 4

    def test_ntbea_seed_takes_precedence(self):
        config = {
            'seed': 4,
            'search_space': {'dimensions': [3, 4]},
            'ntbea': {'tuple_lengths': [1], 'seed': 9},
        }
        assert create_ntbea_from_config(config).rng.seed == 9

    def test_missing_search_space(self):
        with pytest.raises(ValueError):
            create_ntbea_from_config({'ntbea': {'tuple_lengths': [1]}})


@pytest.fixture(scope="module")
def finished_run():
    rng = RandomSource(seed=2024)
    config = NTBEAConfig(
        tuple_lengths=(1, 2, 3, 4, 5),
        generations=60,
        neighbours=200,
        k_explore=2.0,
        distinct_neighbours=True,
        mutate_at_least_one_index=True,
    )
    ntbea = NTBEA(SearchSpace([5, 5, 5, 5, 5], rng=rng), config, rng=rng)
    ntbea.run(sum_of_coordinates)
    return ntbea


class TestMaxMEndToEnd:
    """Optimise the noiseless MaxM problem on the 5^5 space."""

    def test_solution_beats_random_point(self, finished_run):
        # A uniformly random point of the 5^5 space sums to 10 on average
        assert finished_run.solution_value_estimate > 10.0
        assert sum(finished_run.solution) > 10

    def test_short_tuples_saturate_first(self, finished_run):
        df = finished_run.statistics.to_dataframe()
        full = df.index[df['coverage_1_tuple'] >= 100.0]
        assert len(full) > 0
        first_full = full[0]
        assert df.loc[first_full, 'coverage_5_tuple'] < 100.0
        assert df['coverage_5_tuple'].iloc[-1] < df['coverage_1_tuple'].iloc[-1]

    def test_coverage_is_monotonic(self, finished_run):
        df = finished_run.statistics.to_dataframe()
        for length in range(1, 6):
            column = df[f'coverage_{length}_tuple']
            assert column.is_monotonic_increasing
