#!/usr/bin/env python3
"""
Tests for projecting the Pareto front onto routes.
"""

import sys
import math
import unittest
from pathlib import Path

import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / 'src'))

from schedule_optimizer.core.data_models import (
    Candidate, Objectives, DemandPoint, RouteSet, BaselineSchedule,
)
from schedule_optimizer.core.exceptions import (
    ConfigurationError, EmptyInputWarning, InternalInvariantError,
)
from schedule_optimizer.components.objectives import EvaluationParameters, prepare_demand
from schedule_optimizer.components.projection import (
    compute_metrics, baseline_objectives, order_front, project_results,
    validate_routes, validate_baseline, results_to_frame, front_to_frame,
)


def front_member(departures, objectives, crowding=math.inf) -> Candidate:
    candidate = Candidate(np.array(departures, dtype=float))
    candidate.objectives = Objectives(*objectives)
    candidate.rank = 0
    candidate.crowding_distance = crowding
    return candidate


class TestMetrics(unittest.TestCase):
    """Test relative metrics against a baseline."""

    def test_relative_figures(self):
        metrics = compute_metrics(Objectives(100.0, 10.0, 0.5), Objectives(200.0, 20.0, 0.75))
        self.assertAlmostEqual(metrics.wait_time_reduction, 50.0)
        self.assertAlmostEqual(metrics.cost_savings, 50.0)
        self.assertAlmostEqual(metrics.utilization_increase, 100.0)
        self.assertEqual(metrics.objectives, Objectives(100.0, 10.0, 0.5))
        self.assertTrue(metrics.dominates_baseline)

    def test_trade_off_against_baseline(self):
        metrics = compute_metrics(Objectives(300.0, 10.0, 0.5), Objectives(200.0, 20.0, 0.75))
        self.assertFalse(metrics.dominates_baseline)
        self.assertAlmostEqual(metrics.cost_savings, -50.0)

    def test_no_baseline(self):
        metrics = compute_metrics(Objectives(1.0, 2.0, 0.3), None)
        self.assertIsNone(metrics.wait_time_reduction)
        self.assertIsNone(metrics.utilization_increase)
        self.assertIsNone(metrics.cost_savings)
        self.assertIsNone(metrics.dominates_baseline)

    def test_zero_baseline_denominators(self):
        metrics = compute_metrics(Objectives(10.0, 5.0, 0.5), Objectives(0.0, 0.0, 1.0))
        self.assertEqual(metrics.wait_time_reduction, 0.0)
        self.assertEqual(metrics.cost_savings, 0.0)
        self.assertEqual(metrics.utilization_increase, 0.0)

    def test_baseline_objectives_from_labels(self):
        profile = prepare_demand([DemandPoint("S1", "08:00", 10, 1)])
        objectives = baseline_objectives(["09:00", "08:10"], profile, EvaluationParameters())
        self.assertAlmostEqual(objectives.passenger_wait_time, 10.0)
        self.assertEqual(objectives.operator_cost, 100.0)


class TestProjection(unittest.TestCase):
    """Test route assignment policies."""

    def setUp(self):
        self.params = EvaluationParameters()
        self.morning = front_member([485.0, 700.0], (100.0, 5.0, 0.875))
        self.evening = front_member([1085.0, 1200.0], (100.0, 50.0, 0.875), crowding=2.0)
        self.front = [self.evening, self.morning]

    def test_order_front_is_deterministic(self):
        self.assertEqual(order_front(self.front), [self.morning, self.evening])

    def test_modulo_assignment_wraps(self):
        profile = prepare_demand([DemandPoint("S1", "08:00", 10, 1)])
        results = project_results(self.front, RouteSet.from_ids(["A", "B", "C"]), profile, self.params)

        self.assertEqual([r.route_id for r in results], ["A", "B", "C"])
        self.assertEqual(results[0].departure_times, ["08:05", "11:40"])
        self.assertEqual(results[1].departure_times, ["18:05", "20:00"])
        self.assertEqual(results[2].departure_times, results[0].departure_times)
        self.assertIsNone(results[0].metrics.wait_time_reduction)

    def test_per_route_assignment_uses_route_demand(self):
        demand = [DemandPoint("S1", "08:00", 10, 1), DemandPoint("S2", "18:00", 10, 1)]
        profile = prepare_demand(demand)
        routes = RouteSet(route_ids=["evening", "morning"],
                          route_stops={"evening": ["S2"], "morning": ["S1"]})

        results = project_results(self.front, routes, profile, self.params, policy='per_route')

        self.assertEqual(results[0].departure_times, ["18:05", "20:00"])
        self.assertEqual(results[1].departure_times, ["08:05", "11:40"])
        self.assertAlmostEqual(results[0].metrics.objectives.passenger_wait_time, 5.0)
        self.assertAlmostEqual(results[1].metrics.objectives.passenger_wait_time, 5.0)

    def test_baseline_metrics_attached(self):
        profile = prepare_demand([DemandPoint("S1", "08:00", 10, 1)])
        baseline = BaselineSchedule(schedules={"A": ["08:45", "12:00"]})
        results = project_results(self.front, RouteSet.from_ids(["A", "B"]), profile, self.params,
                                  baseline=baseline)

        # baseline waits 45 minutes, the assigned schedule 5
        self.assertAlmostEqual(results[0].metrics.wait_time_reduction, 100.0 * 40.0 / 45.0)
        self.assertAlmostEqual(results[0].metrics.cost_savings, 0.0)
        self.assertAlmostEqual(results[0].metrics.utilization_increase, 0.0)
        self.assertIsNone(results[1].metrics.wait_time_reduction)

    def test_empty_routes(self):
        profile = prepare_demand([DemandPoint("S1", "08:00", 10, 1)])
        self.assertEqual(project_results(self.front, RouteSet(), profile, self.params), [])

    def test_empty_front(self):
        profile = prepare_demand([DemandPoint("S1", "08:00", 10, 1)])
        with self.assertRaises(InternalInvariantError):
            project_results([], RouteSet.from_ids(["A"]), profile, self.params)

    def test_frames(self):
        profile = prepare_demand([DemandPoint("S1", "08:00", 10, 1)])
        results = project_results(self.front, RouteSet.from_ids(["A", "B"]), profile, self.params)

        df = results_to_frame(results)
        self.assertEqual(len(df), 4)
        self.assertEqual(list(df['route_id']), ["A", "A", "B", "B"])
        self.assertEqual(df.loc[0, 'departure_time'], "08:05")

        front_df = front_to_frame(self.front)
        self.assertEqual(len(front_df), 2)
        self.assertEqual(front_df.loc[1, 'departures'], "08:05 11:40")


class TestInputValidation(unittest.TestCase):
    """Test route and baseline validation."""

    def test_duplicate_routes(self):
        with self.assertRaises(ConfigurationError):
            validate_routes(RouteSet.from_ids(["A", "B", "A"]))

    def test_empty_routes_warn(self):
        with self.assertWarns(EmptyInputWarning):
            validate_routes(RouteSet())

    def test_baseline_validation(self):
        validate_baseline(None)
        validate_baseline(BaselineSchedule(default=["08:00"]))
        with self.assertRaises(ConfigurationError):
            validate_baseline(BaselineSchedule(default=[]))
        with self.assertRaises(ConfigurationError):
            validate_baseline(BaselineSchedule(schedules={"A": ["8am"]}))
        with self.assertRaises(ConfigurationError):
            validate_baseline(BaselineSchedule(default=["20:00"]), operating_window=600.0)


if __name__ == '__main__':
    unittest.main()
