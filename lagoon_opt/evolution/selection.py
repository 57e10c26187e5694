"""
NSGA-II selection: crowded tournament for parents, (mu + lambda) environmental selection
for survivors, plus monitoring helpers.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List
import logging
import math
import numpy as np

from lagoon_opt.evolution.crowding import (
    calculate_crowding_distance,
    crowded_compare,
    select_by_crowding_distance,
)
from lagoon_opt.evolution.dominance import fast_non_dominated_sort
from lagoon_opt.evolution.individual import Individual
from lagoon_opt.evolution.population import Population

logger = logging.getLogger(__name__)

BINARY_TOURNAMENT = 2


def tournament_selection(
    population: Population,
    tournament_size: int,
    n_selections: int,
    rng: np.random.Generator,
) -> List[Individual]:
    """Run n_selections tournaments of tournament_size (sampled with replacement); clone each winner."""
    if population is None:
        raise ValueError("Population cannot be None")
    if tournament_size < 1:
        raise ValueError(f"Tournament size must be >= 1, got {tournament_size}")
    if n_selections < 0:
        raise ValueError(f"Number of selections must be >= 0, got {n_selections}")
    members = population.individuals
    if n_selections and not members:
        raise ValueError("Cannot run a tournament on an empty population")
    selected: List[Individual] = []
    for _ in range(n_selections):
        picks = rng.integers(0, len(members), size=tournament_size)
        winner = members[int(picks[0])]
        for idx in picks[1:]:
            competitor = members[int(idx)]
            if crowded_compare(competitor, winner) < 0:
                winner = competitor
        selected.append(winner.clone())
    return selected


def select_parents(population: Population, n_parents: int, rng: np.random.Generator) -> List[Individual]:
    """Binary tournament selection."""
    return tournament_selection(population, BINARY_TOURNAMENT, n_parents, rng)


def select_next_generation(combined: Population, target_size: int) -> List[Individual]:
    """
    Keep whole fronts in rank order while they fit; fill what is left from the first
    overflowing front by crowding distance computed within that front.
    """
    if combined is None:
        raise ValueError("Combined population cannot be None")
    if target_size <= 0:
        return []
    if len(combined) <= target_size:
        return list(combined.individuals)

    selected: List[Individual] = []
    for front in fast_non_dominated_sort(combined):
        if len(selected) + len(front) <= target_size:
            selected.extend(front)
            if len(selected) == target_size:
                break
            continue
        remaining = target_size - len(selected)
        selected.extend(select_by_crowding_distance(front, remaining))
        break
    return selected


def combine_populations(parents: Population, offspring: Population) -> Population:
    """New population sized to both inputs, holding clones of every member."""
    if parents is None or offspring is None:
        raise ValueError("Populations cannot be None")
    return parents.combine(offspring)


@dataclass(frozen=True)
class SelectionStats:
    total_individuals: int
    front_count: int
    pareto_front_size: int
    average_crowding_distance: float
    infinite_distance_count: int
    average_rank: float

    @property
    def diversity_ratio(self) -> float:
        if self.total_individuals == 0:
            return 0.0
        return self.infinite_distance_count / self.total_individuals

    @property
    def convergence_ratio(self) -> float:
        if self.total_individuals == 0:
            return 0.0
        return self.average_rank / self.total_individuals

    def __str__(self) -> str:
        return (
            "SelectionStats{{totalIndividuals={}, frontCount={}, paretoFrontSize={}, "
            "averageCrowdingDistance={:.3f}, infiniteDistanceCount={}, averageRank={:.2f}}}"
        ).format(
            self.total_individuals,
            self.front_count,
            self.pareto_front_size,
            self.average_crowding_distance,
            self.infinite_distance_count,
            self.average_rank,
        )


def selection_stats(population: Population) -> SelectionStats:
    """
    Front structure and diversity of a population. Works on clones so the ranks and
    crowding distances the next tournament relies on are left as they are.
    """
    if population is None:
        raise ValueError("Population cannot be None")
    members = [ind.clone() for ind in population.individuals]
    if not members:
        return SelectionStats(0, 0, 0, 0.0, 0, 0.0)
    fronts = fast_non_dominated_sort(members)
    calculate_crowding_distance(members)
    finite = [ind.crowding_distance for ind in members if not math.isinf(ind.crowding_distance)]
    return SelectionStats(
        total_individuals=len(members),
        front_count=len(fronts),
        pareto_front_size=len(fronts[0]),
        average_crowding_distance=sum(finite) / len(finite) if finite else 0.0,
        infinite_distance_count=len(members) - len(finite),
        average_rank=sum(ind.rank for ind in members) / len(members),
    )


def validate_selection(before: Population, after: Population, tol: float = 1e-9) -> bool:
    """Every survivor must match some pre-selection member by genes, and none may be invented."""
    if len(after) > len(before):
        logger.warning(
            "Selection produced %d individuals from %d candidates", len(after), len(before)
        )
        return False
    candidates = before.individuals
    for survivor in after.individuals:
        if not any(original.same_genes(survivor, tol) for original in candidates):
            logger.warning("Selected individual does not exist in the original population: %r", survivor)
            return False
    return True
