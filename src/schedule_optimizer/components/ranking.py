"""
Pareto dominance ranking and crowding distance estimation.

Candidates of one generation live in a flat list (the arena); fronts and
dominated sets refer to them by index, and the whole structure is discarded
when the next generation is produced.
"""

import logging
import numpy as np
from typing import List, Sequence

from ..core.data_models import Candidate, Objectives
from ..core.exceptions import InternalInvariantError

logger = logging.getLogger(__name__)


def dominates(a: Objectives, b: Objectives) -> bool:
    """True if ``a`` is no worse than ``b`` in every objective and better in one."""
    better_in_any = False
    for a_value, b_value in zip(a.as_tuple(), b.as_tuple()):
        if a_value > b_value:
            return False
        if a_value < b_value:
            better_in_any = True
    return better_in_any


def objective_matrix(population: Sequence[Candidate]) -> np.ndarray:
    """Stack objective vectors into an (N, M) array."""
    if not population:
        return np.empty((0, 3))
    return np.array([candidate.objectives.as_tuple() for candidate in population], dtype=float)


def dominance_matrix(objectives: np.ndarray) -> np.ndarray:
    """
    Boolean (N, N) matrix whose entry [p, q] is True when p dominates q.

    The diagonal is always False, since no vector is strictly better than itself.
    """
    no_worse = np.all(objectives[:, None, :] <= objectives[None, :, :], axis=2)
    better = np.any(objectives[:, None, :] < objectives[None, :, :], axis=2)
    return no_worse & better


def non_dominated_sort(population: List[Candidate]) -> List[List[int]]:
    """
    Partition a population into Pareto fronts.

    Sets ``domination_count``, ``dominated`` and ``rank`` on every candidate.

    Parameters:
    -----------
    population : List[Candidate]
        Evaluated candidates of one generation.

    Returns:
    --------
    List[List[int]]
        Fronts as lists of population indices, front 0 first.
    """
    dominating = dominance_matrix(objective_matrix(population))
    counts = dominating.sum(axis=0).astype(int)

    for index, candidate in enumerate(population):
        candidate.domination_count = int(counts[index])
        candidate.dominated = [int(q) for q in np.flatnonzero(dominating[index])]
        candidate.rank = None

    remaining = counts.copy()
    current = [index for index in range(len(population)) if counts[index] == 0]
    fronts = []

    while current:
        rank = len(fronts)
        for index in current:
            population[index].rank = rank
        fronts.append(current)

        next_front = []
        for p in current:
            for q in population[p].dominated:
                remaining[q] -= 1
                if remaining[q] < 0:
                    raise InternalInvariantError(
                        f"Negative domination count for candidate {q} while peeling front {rank}")
                if remaining[q] == 0:
                    next_front.append(q)
        current = next_front

    ranked = sum(len(front) for front in fronts)
    if ranked != len(population):
        raise InternalInvariantError(f"Fronts cover {ranked} of {len(population)} candidates")

    return fronts


def crowding_distance(population: List[Candidate], front: List[int]) -> np.ndarray:
    """
    Assign crowding distances to the members of one front.

    Fronts of two or fewer members are always preserved (infinite distance).
    Otherwise boundary members per objective get infinity and interior members
    accumulate the normalized gap between their neighbours. An objective with
    no spread contributes nothing.

    Returns:
    --------
    np.ndarray
        Distances aligned with ``front``.
    """
    if len(front) <= 2:
        distances = np.full(len(front), np.inf)
    else:
        values = objective_matrix([population[index] for index in front])
        distances = np.zeros(len(front))

        for m in range(values.shape[1]):
            order = np.argsort(values[:, m], kind='stable')
            distances[order[0]] = np.inf
            distances[order[-1]] = np.inf

            span = values[order[-1], m] - values[order[0], m]
            if span > 0:
                distances[order[1:-1]] += (values[order[2:], m] - values[order[:-2], m]) / span

    for index, distance in zip(front, distances):
        population[index].crowding_distance = float(distance)

    return distances


def assign_crowding_distances(population: List[Candidate], fronts: List[List[int]]):
    for front in fronts:
        crowding_distance(population, front)
