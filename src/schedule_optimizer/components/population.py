"""
Population initialization for the schedule optimizer.
"""

import logging
import numpy as np
from typing import List

from ..core.data_models import Candidate
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def initialize_population(population_size: int, schedule_length: int,
                          rng: np.random.Generator,
                          operating_window: float = 1440.0) -> List[Candidate]:
    """
    Create the starting generation of random schedules.

    Each candidate receives ``schedule_length`` departure times drawn
    independently and uniformly from ``[0, operating_window)``.

    Parameters:
    -----------
    population_size : int
        Number of candidates to create.
    schedule_length : int
        Departures per candidate.
    rng : np.random.Generator
        Random source shared with the rest of the run.
    operating_window : float
        Length of the service day in minutes.

    Returns:
    --------
    List[Candidate]
        Unevaluated candidates with sorted schedules.
    """
    if population_size <= 0:
        raise ConfigurationError(f"Population size must be positive, got {population_size}")
    if schedule_length <= 0:
        raise ConfigurationError(f"Schedule length must be positive, got {schedule_length}")

    times = rng.uniform(0.0, operating_window, size=(population_size, schedule_length))
    population = [Candidate(row) for row in times]

    logger.debug(f"Initialized {population_size} candidates with {schedule_length} departures each")
    return population
