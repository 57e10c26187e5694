"""
NSGA-II driver: initialise, evaluate, then per generation select parents, vary, evaluate
offspring, combine, rank, crowd and keep the best population_size individuals.

Runs until max_generations, latched convergence, a cooperative stop request or the
configured wall-clock limit, whichever comes first (checked at generation boundaries).
"""
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple
import logging
import time
import numpy as np

from lagoon_opt.analysis.metrics import hypervolume, spacing
from lagoon_opt.evolution.config import NSGA2Config
from lagoon_opt.evolution.convergence import ConvergenceSummary, ConvergenceTracker
from lagoon_opt.evolution.crowding import calculate_crowding_distance
from lagoon_opt.evolution.dominance import fast_non_dominated_sort, get_pareto_front
from lagoon_opt.evolution.evaluator import Evaluator, evaluate_individual, evaluate_population
from lagoon_opt.evolution.individual import Individual
from lagoon_opt.evolution.operators import create_offspring, operator_statistics
from lagoon_opt.evolution.population import Population, PopulationStats
from lagoon_opt.evolution.selection import (
    SelectionStats,
    combine_populations,
    select_next_generation,
    selection_stats,
    tournament_selection,
)
from lagoon_opt.utils.seeding import get_rng

logger = logging.getLogger(__name__)

PROGRESS_LOG_INTERVAL = 10


class AlgorithmState(Enum):
    UNINITIALISED = "uninitialised"
    EVALUATING_INITIAL = "evaluating_initial"
    EVOLVING = "evolving"
    MAX_GENERATIONS_REACHED = "max_generations_reached"
    CONVERGED = "converged"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            AlgorithmState.MAX_GENERATIONS_REACHED,
            AlgorithmState.CONVERGED,
            AlgorithmState.CANCELLED,
        )


@dataclass(frozen=True)
class AlgorithmStats:
    generation: int
    population_stats: PopulationStats
    selection_stats: SelectionStats
    pareto_front_size: int
    hypervolume: float
    spacing: float

    def to_dict(self) -> dict:
        ps = self.population_stats
        return {
            "generation": self.generation,
            "pareto_front_size": self.pareto_front_size,
            "hypervolume": self.hypervolume,
            "spacing": self.spacing,
            "min_energy": ps.min_energy,
            "max_energy": ps.max_energy,
            "avg_energy": ps.avg_energy,
            "min_cost": ps.min_cost,
            "max_cost": ps.max_cost,
            "avg_cost": ps.avg_cost,
            "front_count": self.selection_stats.front_count,
            "average_rank": self.selection_stats.average_rank,
            "diversity_ratio": self.selection_stats.diversity_ratio,
            "convergence_ratio": self.selection_stats.convergence_ratio,
        }

    def __str__(self) -> str:
        return "generation {}[PF={}, HV={:.2e}, spacing={:.3f}]".format(
            self.generation, self.pareto_front_size, self.hypervolume, self.spacing
        )


@dataclass(frozen=True)
class OptimisationResult:
    final_population: Population
    history: Tuple[AlgorithmStats, ...]
    generations_run: int
    execution_time_seconds: float
    converged: bool
    convergence: ConvergenceSummary
    state: AlgorithmState = AlgorithmState.MAX_GENERATIONS_REACHED
    termination_reason: str = ""

    def pareto_front(self) -> List[Individual]:
        """Front 0 of the final population, ranked on clones so the result is left untouched."""
        return get_pareto_front(self.final_population.copy())

    def __str__(self) -> str:
        return "OptimisationResult[Generations={}, Runtime={:.2f}s, Converged={}, ParetoSize={}]".format(
            self.generations_run,
            self.execution_time_seconds,
            self.converged,
            len(self.pareto_front()),
        )


@dataclass(frozen=True)
class OptimisationState:
    current_generation: int
    max_generations: int
    population: Population
    converged: bool
    history: Tuple[AlgorithmStats, ...]
    state: AlgorithmState

    @property
    def progress(self) -> float:
        return self.current_generation / self.max_generations


class NSGA2Algorithm:
    def __init__(
        self,
        config: NSGA2Config,
        tide_heights: Sequence[float],
        evaluator: Optional[Evaluator] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        if config is None:
            raise ValueError("Configuration cannot be None")
        if tide_heights is None or len(tide_heights) == 0:
            raise ValueError("Tide data cannot be None or empty")
        self.config = config
        self.tide_heights = np.asarray(tide_heights, dtype=np.float64)
        self.evaluator: Evaluator = evaluator or evaluate_individual
        self.rng = rng if rng is not None else get_rng(config.random_seed)

        self.population = Population(config.population_size)
        self.generation = 0
        self.history: List[AlgorithmStats] = []
        self.state = AlgorithmState.UNINITIALISED
        self.termination_reason = ""
        self.tracker = ConvergenceTracker(config.stagnation_generations, config.convergence_threshold)

        if self.tide_heights.size < config.half_tides:
            logger.warning(
                "Only %d tide readings for %d half-tides; every half-tide will be empty",
                self.tide_heights.size,
                config.half_tides,
            )
        for note in config.warnings():
            logger.warning(note)
        logger.info("NSGA-II initialised: %s", config)

    @property
    def converged(self) -> bool:
        return self.tracker.converged

    # ----- main loop -----

    def optimise(self, should_stop: Optional[Callable[[], bool]] = None) -> OptimisationResult:
        if self.state is not AlgorithmState.UNINITIALISED:
            raise RuntimeError(f"optimise() can only run once; algorithm is {self.state.value}")
        start = time.perf_counter()
        logger.info("Starting NSGA-II optimisation (%s)", self.config.description)

        self.state = AlgorithmState.EVALUATING_INITIAL
        self.population.initialise_random(self.config.half_tides, self.rng)
        self._evaluate(self.population.individuals)
        self._rank_and_crowd(self.population.individuals)
        self._track_convergence()
        self._record_generation_stats()

        self.state = AlgorithmState.EVOLVING
        while not self._check_termination(start, should_stop):
            self._execute_generation()
            self._track_convergence()
            self._record_generation_stats()
            if self.generation % PROGRESS_LOG_INTERVAL == 0:
                self._log_progress()

        elapsed = time.perf_counter() - start
        result = OptimisationResult(
            final_population=self.population.copy(),
            history=tuple(self.history),
            generations_run=self.generation,
            execution_time_seconds=elapsed,
            converged=self.converged,
            convergence=self.tracker.summary(),
            state=self.state,
            termination_reason=self.termination_reason,
        )
        logger.info(
            "Optimisation finished in %.2f s after %d generations (%s)",
            elapsed,
            self.generation,
            self.termination_reason,
        )
        logger.info("%s", result.convergence)
        return result

    def _execute_generation(self) -> None:
        cfg = self.config
        parents = tournament_selection(self.population, cfg.tournament_size, cfg.population_size, self.rng)
        offspring = create_offspring(
            parents,
            cfg.crossover_probability,
            cfg.mutation_probability,
            cfg.crossover_type,
            cfg.mutation_type,
            self.rng,
            cfg.operator_params,
        )
        self._evaluate(offspring)

        combined = combine_populations(self.population, Population.from_individuals(offspring))
        self._rank_and_crowd(combined.individuals)
        survivors = select_next_generation(combined, cfg.population_size)

        next_population = Population(cfg.population_size)
        for ind in survivors:
            next_population.add(ind)
        self.population = next_population
        self.generation += 1

    def _evaluate(self, individuals: Sequence[Individual]) -> None:
        evaluate_population(individuals, self.tide_heights, self.evaluator, self.config.n_workers)

    @staticmethod
    def _rank_and_crowd(individuals: Sequence[Individual]) -> None:
        for front in fast_non_dominated_sort(individuals):
            calculate_crowding_distance(front)

    def _check_termination(self, start: float, should_stop: Optional[Callable[[], bool]]) -> bool:
        if self.generation >= self.config.max_generations:
            self.state = AlgorithmState.MAX_GENERATIONS_REACHED
            self.termination_reason = f"Maximum generations ({self.config.max_generations}) reached"
        elif self.converged:
            self.state = AlgorithmState.CONVERGED
            self.termination_reason = self.tracker.reason
        elif should_stop is not None and should_stop():
            self.state = AlgorithmState.CANCELLED
            self.termination_reason = f"Stop requested at generation {self.generation}"
        elif (
            self.config.time_limit_seconds is not None
            and time.perf_counter() - start >= self.config.time_limit_seconds
        ):
            self.state = AlgorithmState.CANCELLED
            self.termination_reason = f"Time limit of {self.config.time_limit_seconds:g} s exceeded"
        else:
            return False
        logger.info(self.termination_reason)
        return True

    # ----- bookkeeping -----

    def _track_convergence(self) -> None:
        front = get_pareto_front(self.population)
        self.tracker.record_generation(self.generation, front, hypervolume(front))

    def _record_generation_stats(self) -> None:
        front = get_pareto_front(self.population)
        self.history.append(
            AlgorithmStats(
                generation=self.generation,
                population_stats=self.population.statistics(),
                selection_stats=selection_stats(self.population),
                pareto_front_size=len(front),
                hypervolume=hypervolume(front),
                spacing=spacing(front),
            )
        )

    def _log_progress(self) -> None:
        members = self.population.individuals
        unique = {(round(ind.energy_output, 1), round(ind.unit_cost)) for ind in members if ind.has_valid_cost}
        ranks = Counter(ind.rank for ind in members)
        genes = operator_statistics(members)
        stats = self.history[-1]
        logger.info(
            "Generation %d: Pareto size=%d, max energy=%.1f MWh, min cost=%.0f GBP/MWh, HV=%.2e, "
            "unique objective pairs=%d/%d, gene diversity=%.3f, ranks=%s",
            self.generation,
            stats.pareto_front_size,
            stats.population_stats.max_energy,
            stats.population_stats.min_cost,
            stats.hypervolume,
            len(unique),
            len(members),
            genes.diversity,
            dict(sorted(ranks.items())),
        )
        if not genes.has_good_diversity():
            logger.debug("Gene diversity %.3f is low at generation %d", genes.diversity, self.generation)

    def current_state(self) -> OptimisationState:
        return OptimisationState(
            current_generation=self.generation,
            max_generations=self.config.max_generations,
            population=self.population.copy(),
            converged=self.converged,
            history=tuple(self.history),
            state=self.state,
        )
