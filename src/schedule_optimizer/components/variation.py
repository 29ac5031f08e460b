"""
Crossover and mutation operators for departure schedules.

All randomness comes from the generator passed in. Within one generation the
draws happen in a fixed order: one uniform draw per consecutive survivor pair
(plus a cut index when crossover fires), then one uniform draw per working
candidate (plus a position and a new time when mutation fires).
"""

import logging
import numpy as np
from typing import List, Tuple

from ..core.data_models import Candidate
from ..core.exceptions import InternalInvariantError

logger = logging.getLogger(__name__)


def crossover(parent1: Candidate, parent2: Candidate,
              rng: np.random.Generator) -> Tuple[Candidate, Candidate]:
    """
    Single-point crossover of two schedules.

    The cut index is uniform over the schedule length. The first child takes
    parent1's departures before the cut and parent2's from the cut onward;
    the second child takes the complement. Both are re-sorted.
    """
    length = parent1.schedule_length
    if parent2.schedule_length != length:
        raise InternalInvariantError(
            f"Cannot cross schedules of length {length} and {parent2.schedule_length}")

    cut = int(rng.integers(0, length))
    child1 = Candidate(np.concatenate([parent1.departures[:cut], parent2.departures[cut:]]))
    child2 = Candidate(np.concatenate([parent2.departures[:cut], parent1.departures[cut:]]))
    return child1, child2


def mutate(candidate: Candidate, rng: np.random.Generator,
           operating_window: float = 1440.0) -> Candidate:
    """Replace one uniformly chosen departure with a new random time."""
    departures = candidate.departures.copy()
    position = int(rng.integers(0, len(departures)))
    departures[position] = rng.uniform(0.0, operating_window)
    return Candidate(departures)


def _check_schedule(candidate: Candidate, schedule_length: int):
    if candidate.schedule_length != schedule_length:
        raise InternalInvariantError(
            f"Variation produced a schedule of length {candidate.schedule_length}, "
            f"expected {schedule_length}")
    if np.any(np.diff(candidate.departures) < 0):
        raise InternalInvariantError("Variation produced an unsorted schedule")


def vary_population(survivors: List[Candidate], rng: np.random.Generator,
                    crossover_rate: float, mutation_rate: float,
                    operating_window: float = 1440.0) -> List[Candidate]:
    """
    Build the next working population from the selected survivors.

    Parameters:
    -----------
    survivors : List[Candidate]
        Selected candidates; they are copied, never modified.
    rng : np.random.Generator
        Sequential random source of the run.
    crossover_rate : float
        Probability that a consecutive survivor pair produces two offspring.
    mutation_rate : float
        Probability that each survivor copy or offspring is mutated.
    operating_window : float
        Range for mutated departure times.

    Returns:
    --------
    List[Candidate]
        Survivor copies followed by offspring, with evaluation state reset.
        It may be larger than the survivor list.
    """
    working = [candidate.copy() for candidate in survivors]

    offspring = []
    for i in range(0, len(working) - 1, 2):
        if rng.random() < crossover_rate:
            offspring.extend(crossover(working[i], working[i + 1], rng))
    working.extend(offspring)

    mutations = 0
    for i, candidate in enumerate(working):
        if rng.random() < mutation_rate:
            working[i] = mutate(candidate, rng, operating_window)
            mutations += 1

    if working:
        schedule_length = working[0].schedule_length
        for candidate in working:
            _check_schedule(candidate, schedule_length)

    logger.debug(f"Variation: {len(offspring)} offspring, {mutations} mutations, "
                 f"working population {len(working)}")
    return working
