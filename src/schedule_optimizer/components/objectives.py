"""
Objective evaluation for candidate schedules.

Evaluation is pure: a candidate's objectives depend only on its departures,
the demand profile and the evaluation parameters. This is what allows the
population to be scored in a process pool.
"""

import logging
import warnings
import multiprocessing as mp
from dataclasses import dataclass
from functools import partial
from typing import List, Optional, Sequence, Iterable

import numpy as np
import pandas as pd

from ..core.config import OptimizerConfig
from ..core.data_models import Candidate, DemandPoint, Objectives
from ..core.exceptions import ConfigurationError, EmptyInputWarning
from ..core.time_utils import time_to_minutes

logger = logging.getLogger(__name__)

DEMAND_COLUMNS = ['stop_id', 'time_window', 'passenger_count', 'day_of_week']


@dataclass(frozen=True)
class EvaluationParameters:
    """Constants of the objective functions."""
    trip_cost: float = 50.0
    headway_penalty: float = 100.0
    min_headway_minutes: float = 30.0
    trip_duration_minutes: float = 60.0
    available_service_minutes: float = 960.0
    operating_window_minutes: float = 1440.0

    @classmethod
    def from_config(cls, config: OptimizerConfig) -> "EvaluationParameters":
        return cls(
            trip_cost=config.trip_cost,
            headway_penalty=config.headway_penalty,
            min_headway_minutes=config.min_headway_minutes,
            trip_duration_minutes=config.trip_duration_minutes,
            available_service_minutes=config.available_service_minutes,
            operating_window_minutes=config.operating_window_minutes,
        )


@dataclass(frozen=True)
class DemandProfile:
    """Demand points reduced to parallel arrays of minutes, weights and stops."""
    times: np.ndarray
    weights: np.ndarray
    stop_ids: tuple = ()

    def __len__(self) -> int:
        return len(self.times)

    @property
    def total_passengers(self) -> float:
        return float(self.weights.sum())

    def for_stops(self, stop_ids: Iterable[str]) -> "DemandProfile":
        """Restrict the profile to demand at the given stops."""
        wanted = {str(stop_id) for stop_id in stop_ids}
        mask = np.array([stop_id in wanted for stop_id in self.stop_ids], dtype=bool)
        if not len(mask):
            return self
        return DemandProfile(
            times=self.times[mask],
            weights=self.weights[mask],
            stop_ids=tuple(s for s, keep in zip(self.stop_ids, mask) if keep),
        )


def _passenger_count(value, stop_id) -> float:
    """Coerce a passenger count, rejecting blanks, non-numbers and negatives."""
    try:
        count = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Demand at stop {stop_id} has non-numeric passenger count {value!r}") from e
    if not np.isfinite(count) or count < 0:
        raise ConfigurationError(
            f"Demand at stop {stop_id} has invalid passenger count {value!r}")
    return count


def _day_of_week(value, stop_id) -> int:
    """Coerce a day-of-week index in 1..7."""
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Demand at stop {stop_id} has non-numeric day_of_week {value!r}") from e
    if not np.isfinite(number) or number != int(number) or not 1 <= number <= 7:
        raise ConfigurationError(
            f"Demand at stop {stop_id} has day_of_week {value!r}, expected 1..7")
    return int(number)


def demand_from_frame(df: pd.DataFrame) -> List[DemandPoint]:
    """Convert a demand table into DemandPoint records."""
    missing = [column for column in DEMAND_COLUMNS if column not in df.columns]
    if missing:
        raise ConfigurationError(f"Demand table is missing columns: {missing}")

    return [
        DemandPoint(
            stop_id=str(row['stop_id']),
            time_window=str(row['time_window']),
            passenger_count=_passenger_count(row['passenger_count'], row['stop_id']),
            day_of_week=_day_of_week(row['day_of_week'], row['stop_id']),
        )
        for _, row in df.iterrows()
    ]


def prepare_demand(demand: Sequence[DemandPoint], operating_window: float = 1440.0,
                   day_of_week: Optional[int] = None) -> DemandProfile:
    """
    Validate demand points and convert them to a DemandProfile.

    Malformed input is rejected here, before any generation runs.

    Parameters:
    -----------
    demand : Sequence[DemandPoint]
        Demand for the routes under optimization.
    operating_window : float
        Length of the service day in minutes; demand times must fall inside it.
    day_of_week : int, optional
        When given, only demand for that day (1..7) is kept.

    Returns:
    --------
    DemandProfile
        Arrays ready for vectorized evaluation.
    """
    times, weights, stop_ids = [], [], []

    for point in demand:
        point_day = _day_of_week(point.day_of_week, point.stop_id)
        count = _passenger_count(point.passenger_count, point.stop_id)

        minutes = time_to_minutes(point.time_window)
        if minutes >= operating_window:
            raise ConfigurationError(
                f"Demand time {point.time_window} falls outside the {operating_window:g}-minute operating window")

        if day_of_week is not None and point_day != day_of_week:
            continue

        times.append(minutes)
        weights.append(count)
        stop_ids.append(str(point.stop_id))

    if not times:
        message = "Demand list is empty; passenger wait time will be 0 for every candidate"
        logger.warning(message)
        warnings.warn(message, EmptyInputWarning, stacklevel=2)

    return DemandProfile(
        times=np.array(times, dtype=float),
        weights=np.array(weights, dtype=float),
        stop_ids=tuple(stop_ids),
    )


def operator_cost(departures: np.ndarray, params: EvaluationParameters) -> float:
    """Per-trip cost plus a penalty for every headway below the minimum."""
    headways = np.diff(departures)
    short_headways = int(np.count_nonzero(headways < params.min_headway_minutes))
    return params.trip_cost * len(departures) + params.headway_penalty * short_headways


def passenger_wait_time(departures: np.ndarray, profile: DemandProfile,
                        operating_window: float = 1440.0) -> float:
    """
    Passenger-weighted average wait until the next departure.

    Demand after the last departure waits for the first departure of the
    next day.
    """
    if len(profile) == 0 or profile.total_passengers <= 0:
        return 0.0

    positions = np.searchsorted(departures, profile.times, side='left')
    wraps = positions >= len(departures)
    next_departure = np.where(
        wraps,
        departures[0] + operating_window,
        departures[np.minimum(positions, len(departures) - 1)],
    )
    waits = next_departure - profile.times
    return float(np.dot(waits, profile.weights) / profile.total_passengers)


def vehicle_utilization(departures: np.ndarray, params: EvaluationParameters) -> float:
    """One minus the share of available service time used by scheduled trips."""
    service_time = len(departures) * params.trip_duration_minutes
    utilization = min(service_time / params.available_service_minutes, 1.0)
    return 1.0 - max(utilization, 0.0)


def evaluate_schedule(departures: np.ndarray, profile: DemandProfile,
                      params: EvaluationParameters) -> Objectives:
    """Score one sorted departure schedule on all three objectives."""
    return Objectives(
        operator_cost=operator_cost(departures, params),
        passenger_wait_time=passenger_wait_time(departures, profile, params.operating_window_minutes),
        vehicle_utilization=vehicle_utilization(departures, params),
    )


def evaluate_candidate(candidate: Candidate, profile: DemandProfile,
                       params: EvaluationParameters) -> Objectives:
    return evaluate_schedule(candidate.departures, profile, params)


def evaluate_population(population: List[Candidate], profile: DemandProfile,
                        params: EvaluationParameters, n_workers: int = 1,
                        pool: Optional["mp.pool.Pool"] = None):
    """
    Evaluate every candidate and write its objectives back by index.

    Parameters:
    -----------
    population : List[Candidate]
        Candidates to score; their objective vectors are replaced.
    profile : DemandProfile
        Prepared demand.
    params : EvaluationParameters
        Objective constants.
    n_workers : int
        Process count; 1 evaluates in the calling process.
    pool : multiprocessing.pool.Pool, optional
        Existing pool to reuse across generations.
    """
    score = partial(evaluate_schedule, profile=profile, params=params)
    schedules = [candidate.departures for candidate in population]

    if pool is not None:
        results = pool.map(score, schedules)
    elif n_workers > 1:
        with mp.Pool(processes=n_workers) as worker_pool:
            results = worker_pool.map(score, schedules)
    else:
        results = [score(schedule) for schedule in schedules]

    for candidate, objectives in zip(population, results):
        candidate.objectives = objectives
