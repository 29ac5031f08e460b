"""
Projection of the final Pareto front onto the requested routes.
"""

import logging
import warnings
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from ..core.data_models import (
    Candidate, Objectives, RouteSet, BaselineSchedule, PerformanceMetrics, ScheduleResult,
)
from ..core.exceptions import ConfigurationError, EmptyInputWarning, InternalInvariantError
from ..core.time_utils import time_to_minutes
from .objectives import DemandProfile, EvaluationParameters, evaluate_candidate, evaluate_schedule
from .ranking import dominates

logger = logging.getLogger(__name__)


def validate_routes(routes: RouteSet) -> RouteSet:
    """Reject duplicate route ids and warn when there are no routes."""
    seen = set()
    for route_id in routes:
        if route_id in seen:
            raise ConfigurationError(f"Duplicate route id: {route_id}")
        seen.add(route_id)

    if not len(routes):
        message = "Route set is empty; no schedules will be produced"
        logger.warning(message)
        warnings.warn(message, EmptyInputWarning, stacklevel=2)

    return routes


def validate_baseline(baseline: Optional[BaselineSchedule], operating_window: float = 1440.0):
    if baseline is None:
        return
    labelled = dict(baseline.schedules)
    if baseline.default is not None:
        labelled['<default>'] = baseline.default
    for route_id, labels in labelled.items():
        if not labels:
            raise ConfigurationError(f"Baseline schedule for route {route_id} is empty")
        for label in labels:
            if time_to_minutes(label) >= operating_window:
                raise ConfigurationError(
                    f"Baseline departure {label} for route {route_id} is outside the operating window")


def baseline_objectives(labels: Sequence[str], profile: DemandProfile,
                        params: EvaluationParameters) -> Objectives:
    """Score an existing schedule given as 'HH:MM' labels."""
    departures = np.sort(np.array([time_to_minutes(label) for label in labels], dtype=float))
    return evaluate_schedule(departures, profile, params)


def _reduction(baseline: float, value: float) -> float:
    if baseline == 0:
        return 0.0
    return 100.0 * (baseline - value) / baseline


def compute_metrics(objectives: Objectives, baseline: Optional[Objectives]) -> PerformanceMetrics:
    """
    Express an optimized schedule's objectives relative to a baseline.

    Utilization is compared on the positive scale (1 - objective).
    Without a baseline the relative figures and the dominance flag are None.
    """
    if baseline is None:
        return PerformanceMetrics(None, None, None, objectives)

    utilization = 1.0 - objectives.vehicle_utilization
    baseline_utilization = 1.0 - baseline.vehicle_utilization
    if baseline_utilization == 0:
        utilization_increase = 0.0
    else:
        utilization_increase = 100.0 * (utilization - baseline_utilization) / baseline_utilization

    return PerformanceMetrics(
        wait_time_reduction=_reduction(baseline.passenger_wait_time, objectives.passenger_wait_time),
        utilization_increase=utilization_increase,
        cost_savings=_reduction(baseline.operator_cost, objectives.operator_cost),
        objectives=objectives,
        dominates_baseline=dominates(objectives, baseline),
    )


def order_front(front: List[Candidate]) -> List[Candidate]:
    """Deterministic front order: most isolated first, then by objective vector."""
    return sorted(front, key=lambda c: (-(c.crowding_distance or 0.0), c.objectives.as_tuple()))


def project_results(front: List[Candidate], routes: RouteSet, profile: DemandProfile,
                    params: EvaluationParameters, policy: str = 'modulo',
                    baseline: Optional[BaselineSchedule] = None) -> List[ScheduleResult]:
    """
    Assign one Pareto-optimal schedule to every route.

    Parameters:
    -----------
    front : List[Candidate]
        Evaluated front 0 of the terminal population.
    routes : RouteSet
        Routes that need schedules, in output order.
    profile : DemandProfile
        Demand the front was optimized against.
    params : EvaluationParameters
        Objective constants, reused for baseline and per-route scoring.
    policy : str
        'modulo' gives route i the front member i mod front size.
        'per_route' re-scores the front against each route's own stops and
        takes the lowest wait time (ties by cost, then front order).
    baseline : BaselineSchedule, optional
        Existing schedules for the relative metrics.

    Returns:
    --------
    List[ScheduleResult]
        One result per route.
    """
    if not len(routes):
        return []
    if not front:
        raise InternalInvariantError("Cannot project an empty Pareto front")

    ordered = order_front(front)
    results = []

    for route_index, route_id in enumerate(routes):
        route_profile = profile
        if policy == 'per_route' and route_id in routes.route_stops:
            route_profile = profile.for_stops(routes.route_stops[route_id])

        if policy == 'per_route':
            scored = [(evaluate_candidate(candidate, route_profile, params), position, candidate)
                      for position, candidate in enumerate(ordered)]
            objectives, _, chosen = min(
                scored, key=lambda s: (s[0].passenger_wait_time, s[0].operator_cost, s[1]))
        else:
            chosen = ordered[route_index % len(ordered)]
            objectives = chosen.objectives

        baseline_labels = baseline.for_route(route_id) if baseline is not None else None
        reference = None
        if baseline_labels is not None:
            reference = baseline_objectives(baseline_labels, route_profile, params)

        results.append(ScheduleResult(
            route_id=route_id,
            departure_times=chosen.departure_labels(),
            metrics=compute_metrics(objectives, reference),
        ))

    logger.info(f"Projected {len(results)} route schedules from a front of {len(front)} candidates")
    return results


def results_to_frame(results: List[ScheduleResult]) -> pd.DataFrame:
    """One row per route departure, with the route's metrics repeated."""
    rows = []
    for result in results:
        summary = result.to_dict()['performance_metrics']
        for sequence, departure in enumerate(result.departure_times):
            row = {'route_id': result.route_id, 'sequence': sequence, 'departure_time': departure}
            row.update(summary)
            rows.append(row)

    columns = ['route_id', 'sequence', 'departure_time', 'wait_time_reduction',
               'utilization_increase', 'cost_savings', 'operator_cost',
               'passenger_wait_time', 'vehicle_utilization']
    return pd.DataFrame(rows, columns=columns)


def front_to_frame(front: List[Candidate]) -> pd.DataFrame:
    """One row per front member with its objectives and diversity score."""
    rows = []
    for candidate in front:
        rows.append({
            'operator_cost': candidate.objectives.operator_cost,
            'passenger_wait_time': candidate.objectives.passenger_wait_time,
            'vehicle_utilization': candidate.objectives.vehicle_utilization,
            'rank': candidate.rank,
            'crowding_distance': candidate.crowding_distance,
            'departures': ' '.join(candidate.departure_labels()),
        })
    return pd.DataFrame(rows, columns=['operator_cost', 'passenger_wait_time', 'vehicle_utilization',
                                       'rank', 'crowding_distance', 'departures'])
