"""
Environmental selection of the next generation's survivors.
"""

import logging
from typing import List

from ..core.data_models import Candidate
from ..core.exceptions import InternalInvariantError

logger = logging.getLogger(__name__)


def select_survivors(population: List[Candidate], fronts: List[List[int]],
                     target_size: int) -> List[int]:
    """
    Pick exactly ``target_size`` survivors, best fronts first.

    Whole fronts are taken in rank order while they fit. The first front that
    would overflow is sorted by descending crowding distance and cut to fill
    the remaining slots; ties keep the front's original order.

    Parameters:
    -----------
    population : List[Candidate]
        Ranked candidates with crowding distances assigned.
    fronts : List[List[int]]
        Fronts as population indices, front 0 first.
    target_size : int
        Number of survivors.

    Returns:
    --------
    List[int]
        Population indices of the survivors.
    """
    survivors = []

    for front in fronts:
        if len(survivors) == target_size:
            break

        if len(survivors) + len(front) <= target_size:
            survivors.extend(front)
            continue

        remaining = target_size - len(survivors)
        by_crowding = sorted(front, key=lambda index: -population[index].crowding_distance)
        survivors.extend(by_crowding[:remaining])
        logger.debug(f"Front {population[front[0]].rank} truncated to {remaining} of {len(front)} members")

    if len(survivors) < target_size:
        raise InternalInvariantError(
            f"Fronts exhausted after selecting {len(survivors)} of {target_size} survivors")

    return survivors
