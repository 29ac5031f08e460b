"""
Transit Schedule Optimizer

NSGA-II search for bus departure schedules that balance operating cost,
passenger wait time and vehicle utilization.
"""

__version__ = "1.0.0"
__author__ = "Bus Transit Optimization Team"

from .core.config import OptimizerConfig, load_config
from .core.data_models import (
    Candidate, DemandPoint, RouteSet, BaselineSchedule, ScheduleResult, PerformanceMetrics,
)
from .core.exceptions import (
    ScheduleOptimizerError, ConfigurationError, InternalInvariantError, EmptyInputWarning,
)
from .optimization.nsga2_optimizer import ScheduleOptimizer, optimize

__all__ = [
    'OptimizerConfig',
    'load_config',
    'Candidate',
    'DemandPoint',
    'RouteSet',
    'BaselineSchedule',
    'ScheduleResult',
    'PerformanceMetrics',
    'ScheduleOptimizerError',
    'ConfigurationError',
    'InternalInvariantError',
    'EmptyInputWarning',
    'ScheduleOptimizer',
    'optimize',
]
