#!/usr/bin/env python3
"""
Tests for the NSGA-II generation driver and the optimize() entry point.
"""

import sys
import warnings
import unittest
from pathlib import Path

import numpy as np
import pandas as pd

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / 'src'))

from schedule_optimizer import optimize
from schedule_optimizer.core.config import OptimizerConfig
from schedule_optimizer.core.data_models import DemandPoint, RouteSet, BaselineSchedule
from schedule_optimizer.core.exceptions import ConfigurationError, EmptyInputWarning
from schedule_optimizer.components.objectives import prepare_demand
from schedule_optimizer.optimization.nsga2_optimizer import ScheduleOptimizer, OptimizerState


def small_config(**overrides) -> OptimizerConfig:
    options = dict(population_size=20, generations=8, schedule_length=12, random_seed=7)
    options.update(overrides)
    return OptimizerConfig(**options)


def rush_hour_demand():
    return [
        DemandPoint("S1", "07:30", 80, 1),
        DemandPoint("S2", "08:00", 120, 1),
        DemandPoint("S3", "12:00", 30, 1),
        DemandPoint("S1", "17:15", 110, 1),
        DemandPoint("S2", "21:40", 20, 1),
    ]


class TestGenerationDriver(unittest.TestCase):
    """Test the generational loop."""

    def setUp(self):
        self.profile = prepare_demand(rush_hour_demand())

    def test_survivors_match_population_size(self):
        optimizer = ScheduleOptimizer(small_config())
        outcome = optimizer.run(self.profile)

        self.assertEqual(outcome.generations_completed, 8)
        self.assertFalse(outcome.cancelled)
        self.assertEqual(len(outcome.history), 8)
        self.assertEqual(outcome.history[0].working_size, 20)
        for report in outcome.history:
            self.assertEqual(report.survivor_count, 20)
            self.assertGreaterEqual(report.working_size, 20)

    def test_terminal_front_is_rank_zero(self):
        optimizer = ScheduleOptimizer(small_config())
        outcome = optimizer.run(self.profile)

        self.assertEqual(optimizer.state, OptimizerState.TERMINATED)
        self.assertGreater(len(outcome.front), 0)
        for candidate in outcome.front:
            self.assertEqual(candidate.rank, 0)
            self.assertEqual(candidate.domination_count, 0)
            self.assertEqual(candidate.schedule_length, 12)
            self.assertTrue(np.all(np.diff(candidate.departures) >= 0))
            self.assertGreater(candidate.objectives.operator_cost, 0)

    def test_progress_callback_called_every_generation(self):
        reports = []
        optimizer = ScheduleOptimizer(small_config(generations=5), progress_callback=reports.append)
        optimizer.run(self.profile)
        self.assertEqual([report.generation for report in reports], [0, 1, 2, 3, 4])

    def test_progress_logged(self):
        with self.assertLogs('schedule_optimizer.optimization.nsga2_optimizer', level='INFO') as logs:
            ScheduleOptimizer(small_config(generations=3, log_interval=1)).run(self.profile)
        self.assertTrue(any('Generation 2' in line for line in logs.output))

    def test_final_front_logged_at_debug(self):
        with self.assertLogs('schedule_optimizer.optimization.nsga2_optimizer', level='DEBUG') as logs:
            outcome = ScheduleOptimizer(small_config(generations=2)).run(self.profile)
        dumps = [line for line in logs.output if 'Final Pareto front' in line]
        self.assertEqual(len(dumps), 1)
        self.assertIn('crowding_distance', dumps[0])
        self.assertEqual(dumps[0].count('\n'), len(outcome.front) + 1)

    def test_cooperative_cancellation(self):
        optimizer = ScheduleOptimizer(small_config(generations=50), should_stop=lambda g: g >= 3)
        outcome = optimizer.run(self.profile)

        self.assertTrue(outcome.cancelled)
        self.assertEqual(outcome.generations_completed, 3)
        self.assertGreater(len(outcome.front), 0)
        self.assertTrue(all(candidate.rank == 0 for candidate in outcome.front))

    def test_injected_rng(self):
        first = ScheduleOptimizer(small_config(random_seed=None), rng=np.random.default_rng(99)).run(self.profile)
        second = ScheduleOptimizer(small_config(random_seed=None), rng=np.random.default_rng(99)).run(self.profile)
        self.assertEqual([c.departure_labels() for c in first.front],
                         [c.departure_labels() for c in second.front])

    def test_invalid_config_rejected_before_run(self):
        with self.assertRaises(ConfigurationError):
            ScheduleOptimizer(OptimizerConfig(generations=0))

    def test_parallel_evaluation_matches_serial(self):
        serial = ScheduleOptimizer(small_config(generations=3)).run(self.profile)
        parallel = ScheduleOptimizer(small_config(generations=3, n_workers=2)).run(self.profile)
        self.assertEqual([c.departure_labels() for c in serial.front],
                         [c.departure_labels() for c in parallel.front])


class TestOptimizeEntryPoint(unittest.TestCase):
    """Test optimize() end to end, including the documented scenarios."""

    def test_deterministic_with_seed(self):
        config = small_config(random_seed=2024)
        first = optimize(["101", "102", "103"], rush_hour_demand(), config)
        second = optimize(["101", "102", "103"], rush_hour_demand(), config)
        self.assertEqual([r.to_dict() for r in first], [r.to_dict() for r in second])

    def test_one_result_per_route_in_order(self):
        results = optimize(["A", "B", "C"], rush_hour_demand(), small_config())
        self.assertEqual([r.route_id for r in results], ["A", "B", "C"])
        for result in results:
            self.assertEqual(len(result.departure_times), 12)
            self.assertEqual(result.departure_times, sorted(result.departure_times))

    def test_empty_demand_scenario(self):
        reports = []
        with self.assertWarns(EmptyInputWarning):
            results = optimize(["R1"], [], small_config(population_size=10, generations=5),
                               progress_callback=reports.append)

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].metrics.objectives.passenger_wait_time, 0.0)
        self.assertEqual(len(reports), 5)
        self.assertTrue(all(r.best_objectives.passenger_wait_time == 0.0 for r in reports))

    def test_empty_demand_every_candidate_waits_zero(self):
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', EmptyInputWarning)
            profile = prepare_demand([])
        optimizer = ScheduleOptimizer(small_config(population_size=10, generations=5))
        optimizer.run(profile)
        self.assertTrue(all(c.objectives.passenger_wait_time == 0.0 for c in optimizer.population))

    def test_empty_route_set(self):
        with self.assertWarns(EmptyInputWarning):
            results = optimize([], rush_hour_demand(), small_config(generations=3))
        self.assertEqual(results, [])

    def test_concentrated_demand_scenario(self):
        demand = [DemandPoint("S1", "08:00", 100, 1)]
        config = small_config(population_size=30, generations=20, schedule_length=24,
                              assignment_policy='per_route')
        baseline = BaselineSchedule(default=["23:00"])
        results = optimize(["R1", "R2"], demand, config, baseline=baseline)

        self.assertEqual(len(results), 2)
        for result in results:
            minutes = [int(label[:2]) * 60 + int(label[3:]) for label in result.departure_times]
            self.assertTrue(any(480 <= m <= 540 for m in minutes))
            self.assertLessEqual(result.metrics.objectives.passenger_wait_time, 60.0)
            self.assertGreater(result.metrics.wait_time_reduction, 0.0)

    def test_demand_frame_input(self):
        df = pd.DataFrame({
            'stop_id': ['S1', 'S2'],
            'time_window': ['08:00', '17:00'],
            'passenger_count': [50, 70],
            'day_of_week': [1, 1],
        })
        results = optimize(RouteSet.from_ids(["R1"]), df, small_config(generations=3))
        self.assertEqual(len(results), 1)

    def test_malformed_demand_rejected(self):
        with self.assertRaises(ConfigurationError):
            optimize(["R1"], [DemandPoint("S1", "25h", 10, 1)], small_config())

    def test_duplicate_routes_rejected(self):
        with self.assertRaises(ConfigurationError):
            optimize(["R1", "R1"], rush_hour_demand(), small_config())

    def test_empty_baseline_rejected(self):
        with self.assertRaises(ConfigurationError):
            optimize(["R1"], rush_hour_demand(), small_config(),
                     baseline=BaselineSchedule(schedules={"R1": []}))


if __name__ == '__main__':
    unittest.main()
