"""
Core data models for the transit schedule optimizer.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Iterator

from .time_utils import minutes_to_time

OBJECTIVE_NAMES = ('operator_cost', 'passenger_wait_time', 'vehicle_utilization')


@dataclass(frozen=True)
class Objectives:
    """Objective vector of a candidate schedule. All objectives are minimized."""
    operator_cost: float = 0.0
    passenger_wait_time: float = 0.0
    vehicle_utilization: float = 0.0  # reported as 1 - utilization

    def as_tuple(self) -> tuple:
        return (self.operator_cost, self.passenger_wait_time, self.vehicle_utilization)

    def as_array(self) -> np.ndarray:
        return np.array(self.as_tuple(), dtype=float)


@dataclass(eq=False)
class Candidate:
    """
    One trial schedule plus its evaluation state within a generation.

    Attributes:
        departures: Departure times in minutes from midnight, always sorted ascending
        objectives: Objective vector, zeroed until the candidate is evaluated
        domination_count: Number of candidates in the generation that dominate this one
        dominated: Arena indices of the candidates this one dominates
        rank: Pareto front index (0 = non-dominated), None until ranked
        crowding_distance: Within-front diversity score, None until estimated
    """
    departures: np.ndarray
    objectives: Objectives = field(default_factory=Objectives)
    domination_count: int = 0
    dominated: List[int] = field(default_factory=list)
    rank: Optional[int] = None
    crowding_distance: Optional[float] = None

    def __post_init__(self):
        """Restore the ascending departure order."""
        self.departures = np.sort(np.asarray(self.departures, dtype=float))

    def __repr__(self):
        return (f"Candidate(departures={len(self.departures)}, rank={self.rank}, "
                f"objectives={self.objectives.as_tuple()})")

    @property
    def schedule_length(self) -> int:
        return len(self.departures)

    def copy(self) -> "Candidate":
        """Copy the schedule into a fresh candidate with evaluation state reset."""
        return Candidate(self.departures.copy())

    def reset_evaluation(self):
        self.objectives = Objectives()
        self.domination_count = 0
        self.dominated = []
        self.rank = None
        self.crowding_distance = None

    def departure_labels(self) -> List[str]:
        return [minutes_to_time(minutes) for minutes in self.departures]


@dataclass
class DemandPoint:
    """Passenger demand observed or forecast at a stop for a time of day."""
    stop_id: str
    time_window: str  # 'HH:MM'
    passenger_count: float
    day_of_week: int = 1  # 1..7


@dataclass
class RouteSet:
    """
    Ordered route identifiers for which schedules are produced.

    ``route_stops`` optionally maps a route id to the stop ids it serves; it is
    only consulted by the per-route assignment policy.
    """
    route_ids: List[str] = field(default_factory=list)
    route_stops: Dict[str, List[str]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.route_ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self.route_ids)

    @classmethod
    def from_ids(cls, route_ids: Sequence[str]) -> "RouteSet":
        return cls(route_ids=[str(route_id) for route_id in route_ids])


@dataclass
class BaselineSchedule:
    """
    Existing departure schedules that optimized results are compared against.

    ``schedules`` holds 'HH:MM' labels per route id; ``default`` is used for
    routes without their own entry.
    """
    schedules: Dict[str, List[str]] = field(default_factory=dict)
    default: Optional[List[str]] = None

    def for_route(self, route_id: str) -> Optional[List[str]]:
        return self.schedules.get(route_id, self.default)


@dataclass
class PerformanceMetrics:
    """Relative improvement (percent) of an optimized schedule over its baseline."""
    wait_time_reduction: Optional[float]
    utilization_increase: Optional[float]
    cost_savings: Optional[float]
    objectives: Objectives = field(default_factory=Objectives)
    dominates_baseline: Optional[bool] = None


@dataclass
class ScheduleResult:
    """Optimized schedule for one route."""
    route_id: str
    departure_times: List[str]
    metrics: PerformanceMetrics

    def to_dict(self) -> dict:
        return {
            'route_id': self.route_id,
            'departure_times': list(self.departure_times),
            'performance_metrics': {
                'wait_time_reduction': self.metrics.wait_time_reduction,
                'utilization_increase': self.metrics.utilization_increase,
                'cost_savings': self.metrics.cost_savings,
                'operator_cost': self.metrics.objectives.operator_cost,
                'passenger_wait_time': self.metrics.objectives.passenger_wait_time,
                'vehicle_utilization': self.metrics.objectives.vehicle_utilization,
                'dominates_baseline': self.metrics.dominates_baseline,
            },
        }


@dataclass
class GenerationReport:
    """Summary of one completed generation, delivered to progress callbacks."""
    generation: int
    survivor_count: int
    working_size: int
    front_count: int
    front0_size: int
    best_objectives: Objectives


@dataclass
class OptimizationOutcome:
    """Terminal state of an optimizer run."""
    front: List[Candidate]
    generations_completed: int
    cancelled: bool = False
    history: List[GenerationReport] = field(default_factory=list)
