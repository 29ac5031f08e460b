"""
NSGA-II driver for multi-objective transit schedule optimization.

The driver owns the population and replaces it generation by generation:
evaluate, rank into Pareto fronts, estimate crowding, select survivors and
vary them into the next working population. Generations are strictly
sequential; only the evaluation inside a generation may run in a process pool.
"""

import time
import logging
import multiprocessing as mp
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..core.config import OptimizerConfig
from ..core.data_models import (
    Candidate, DemandPoint, RouteSet, BaselineSchedule, ScheduleResult,
    Objectives, GenerationReport, OptimizationOutcome,
)
from ..components.population import initialize_population
from ..components.objectives import (
    DemandProfile, EvaluationParameters, demand_from_frame, prepare_demand, evaluate_population,
)
from ..components.ranking import non_dominated_sort, assign_crowding_distances, objective_matrix
from ..components.selection import select_survivors
from ..components.variation import vary_population
from ..components.projection import (
    project_results, validate_routes, validate_baseline, order_front, front_to_frame,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[GenerationReport], None]
StopCheck = Callable[[int], bool]


class OptimizerState(Enum):
    INITIALIZING = 'initializing'
    EVALUATING = 'evaluating'
    RANKING = 'ranking'
    SELECTING_SURVIVORS = 'selecting_survivors'
    VARYING = 'varying'
    TERMINATED = 'terminated'


class ScheduleOptimizer:
    """
    NSGA-II optimizer over fixed-length departure schedules.

    A single ``numpy.random.Generator`` drives initialization, crossover and
    mutation in that order, so a seeded run is fully reproducible.
    """

    def __init__(self, config: OptimizerConfig = None, rng: np.random.Generator = None,
                 progress_callback: Optional[ProgressCallback] = None,
                 should_stop: Optional[StopCheck] = None):
        """
        Initialize the optimizer.

        Parameters:
        -----------
        config : OptimizerConfig
            Run configuration; validated here.
        rng : np.random.Generator, optional
            Random source. Defaults to one seeded from ``config.random_seed``.
        progress_callback : callable, optional
            Called with a GenerationReport after every completed generation.
        should_stop : callable, optional
            Called with the next generation number before it starts; returning
            True ends the run with the best front found so far.
        """
        self.config = (config or OptimizerConfig()).validate()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.random_seed)
        self.params = EvaluationParameters.from_config(self.config)
        self.progress_callback = progress_callback
        self.should_stop = should_stop

        self.state = OptimizerState.INITIALIZING
        self.population: List[Candidate] = []
        self.history: List[GenerationReport] = []

    def _transition(self, state: OptimizerState):
        logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    def run(self, profile: DemandProfile) -> OptimizationOutcome:
        """
        Run the generational loop against prepared demand.

        Returns:
        --------
        OptimizationOutcome
            Front 0 of the terminal population and run bookkeeping.
        """
        config = self.config
        logger.info(f"Starting NSGA-II optimization: population {config.population_size}, "
                    f"{config.generations} generations, {len(profile)} demand points")
        start_time = time.time()

        self.state = OptimizerState.INITIALIZING
        self.history = []
        self.population = initialize_population(
            config.population_size, config.schedule_length, self.rng, config.operating_window_minutes)

        cancelled = False
        pool = mp.Pool(processes=config.n_workers) if config.n_workers > 1 else None
        try:
            for generation in range(config.generations):
                if self.should_stop is not None and self.should_stop(generation):
                    cancelled = True
                    logger.info(f"Optimization cancelled before generation {generation}")
                    break

                report = self._run_generation(generation, profile, pool)
                self.history.append(report)

                if self.progress_callback is not None:
                    self.progress_callback(report)

                if generation % config.log_interval == 0:
                    best = report.best_objectives
                    logger.info(f"Generation {generation}: {report.front_count} fronts, "
                                f"front 0 size {report.front0_size}, "
                                f"best cost {best.operator_cost:.1f}, "
                                f"best wait {best.passenger_wait_time:.2f} min")

            front = self._final_front(profile, pool)
        finally:
            if pool is not None:
                pool.close()
                pool.join()

        self._transition(OptimizerState.TERMINATED)
        logger.info(f"Optimization finished after {len(self.history)} generations "
                    f"in {time.time() - start_time:.2f}s with {len(front)} Pareto-optimal schedules")
        if front and logger.isEnabledFor(logging.DEBUG):
            logger.debug("Final Pareto front:\n" + front_to_frame(order_front(front)).to_string(index=False))

        return OptimizationOutcome(
            front=front,
            generations_completed=len(self.history),
            cancelled=cancelled,
            history=list(self.history),
        )

    def _evaluate_and_rank(self, profile: DemandProfile, pool) -> List[List[int]]:
        self._transition(OptimizerState.EVALUATING)
        evaluate_population(self.population, profile, self.params, pool=pool)

        self._transition(OptimizerState.RANKING)
        fronts = non_dominated_sort(self.population)
        assign_crowding_distances(self.population, fronts)
        return fronts

    def _run_generation(self, generation: int, profile: DemandProfile, pool) -> GenerationReport:
        working_size = len(self.population)
        fronts = self._evaluate_and_rank(profile, pool)
        best = objective_matrix([self.population[i] for i in fronts[0]]).min(axis=0)

        self._transition(OptimizerState.SELECTING_SURVIVORS)
        survivor_indices = select_survivors(self.population, fronts, self.config.population_size)
        survivors = [self.population[i] for i in survivor_indices]

        self._transition(OptimizerState.VARYING)
        self.population = vary_population(
            survivors, self.rng, self.config.crossover_rate, self.config.mutation_rate,
            self.config.operating_window_minutes)

        return GenerationReport(
            generation=generation,
            survivor_count=len(survivors),
            working_size=working_size,
            front_count=len(fronts),
            front0_size=len(fronts[0]),
            best_objectives=Objectives(*(float(value) for value in best)),
        )

    def _final_front(self, profile: DemandProfile, pool) -> List[Candidate]:
        fronts = self._evaluate_and_rank(profile, pool)
        return [self.population[i] for i in fronts[0]]


def optimize(routes: Union[RouteSet, Sequence[str]],
             demand: Union[Sequence[DemandPoint], pd.DataFrame],
             config: OptimizerConfig = None,
             baseline: Optional[BaselineSchedule] = None,
             progress_callback: Optional[ProgressCallback] = None,
             should_stop: Optional[StopCheck] = None,
             rng: np.random.Generator = None) -> List[ScheduleResult]:
    """
    Optimize departure schedules for a set of routes.

    Parameters:
    -----------
    routes : RouteSet or sequence of str
        Routes that need schedules.
    demand : sequence of DemandPoint or pd.DataFrame
        Passenger demand; a DataFrame needs the columns
        stop_id, time_window, passenger_count and day_of_week.
    config : OptimizerConfig, optional
        Run configuration (defaults apply when omitted).
    baseline : BaselineSchedule, optional
        Existing schedules the reported metrics are relative to.
    progress_callback, should_stop, rng
        Passed through to ScheduleOptimizer.

    Returns:
    --------
    List[ScheduleResult]
        One schedule per route, in route order.
    """
    config = (config or OptimizerConfig()).validate()

    route_set = routes if isinstance(routes, RouteSet) else RouteSet.from_ids(routes)
    validate_routes(route_set)

    if isinstance(demand, pd.DataFrame):
        demand = demand_from_frame(demand)
    profile = prepare_demand(demand, config.operating_window_minutes, config.day_of_week)
    validate_baseline(baseline, config.operating_window_minutes)

    optimizer = ScheduleOptimizer(config, rng=rng, progress_callback=progress_callback,
                                  should_stop=should_stop)
    outcome = optimizer.run(profile)

    return project_results(outcome.front, route_set, profile, optimizer.params,
                           policy=config.assignment_policy, baseline=baseline)
