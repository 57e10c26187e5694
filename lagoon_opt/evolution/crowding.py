"""
Crowding distance and the crowded-comparison order (rank ascending, crowding descending).

Distances are additive over the energy and cost objectives. Boundary solutions of either
objective get +inf. The cost pass ignores invalid-cost individuals and needs at least
three valid costs; a zero objective range contributes nothing.
"""
from __future__ import annotations
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable, List, Sequence
import math

from lagoon_opt.evolution.individual import Individual

INF = math.inf


def _accumulate(ordered: Sequence[Individual], value: Callable[[Individual], float]) -> None:
    """Neighbour-gap pass over individuals already sorted ascending by value."""
    ordered[0].crowding_distance = INF
    ordered[-1].crowding_distance = INF
    if len(ordered) == 2:
        return
    span = value(ordered[-1]) - value(ordered[0])
    if span <= 0:
        return
    for i in range(1, len(ordered) - 1):
        current = ordered[i]
        if current.crowding_distance == INF:
            continue
        current.crowding_distance += (value(ordered[i + 1]) - value(ordered[i - 1])) / span


def _energy(ind: Individual) -> float:
    return ind.energy_output


def _cost(ind: Individual) -> float:
    return ind.unit_cost


def calculate_crowding_distance(individuals: Sequence[Individual]) -> None:
    """Assign crowding distance in-place."""
    if individuals is None:
        raise ValueError("Individuals cannot be None")
    for ind in individuals:
        ind.crowding_distance = 0.0
    if len(individuals) == 0:
        return
    if len(individuals) == 1:
        individuals[0].crowding_distance = INF
        return

    _accumulate(sorted(individuals, key=_energy), _energy)

    valid = [ind for ind in individuals if ind.has_valid_cost]
    if len(valid) >= 3:
        _accumulate(sorted(valid, key=_cost), _cost)


def sort_by_crowding_distance(individuals: List[Individual]) -> None:
    """In-place, most isolated first."""
    individuals.sort(key=lambda ind: ind.crowding_distance, reverse=True)


def crowded_compare(a: Individual, b: Individual) -> int:
    """Negative if a is preferred: lower rank wins, then larger crowding distance."""
    if a.rank != b.rank:
        return -1 if a.rank < b.rank else 1
    if a.crowding_distance > b.crowding_distance:
        return -1
    if a.crowding_distance < b.crowding_distance:
        return 1
    return 0


# Sort key form of crowded_compare, for sorted()/min().
CROWDED_ORDER = cmp_to_key(crowded_compare)


def select_by_crowding_distance(front: Sequence[Individual], count: int) -> List[Individual]:
    """The count most isolated members of one front, crowding computed within that front."""
    if count >= len(front):
        return list(front)
    if count <= 0:
        return []
    calculate_crowding_distance(front)
    ordered = list(front)
    sort_by_crowding_distance(ordered)
    return ordered[:count]


@dataclass(frozen=True)
class CrowdingStats:
    total_individuals: int
    infinite_distance_count: int
    min_finite_distance: float
    max_finite_distance: float
    average_finite_distance: float

    @property
    def diversity_ratio(self) -> float:
        if self.total_individuals == 0:
            return 0.0
        return self.infinite_distance_count / self.total_individuals

    def __str__(self) -> str:
        return "CrowdingStats[total={}, infinite={}, finite={:.3f}-{:.3f}(avg={:.3f})]".format(
            self.total_individuals,
            self.infinite_distance_count,
            self.min_finite_distance,
            self.max_finite_distance,
            self.average_finite_distance,
        )


def crowding_statistics(individuals: Sequence[Individual]) -> CrowdingStats:
    """Recomputes crowding distance over the given individuals and summarises it."""
    if len(individuals) == 0:
        return CrowdingStats(0, 0, 0.0, 0.0, 0.0)
    calculate_crowding_distance(individuals)
    finite = [ind.crowding_distance for ind in individuals if ind.crowding_distance != INF]
    return CrowdingStats(
        total_individuals=len(individuals),
        infinite_distance_count=len(individuals) - len(finite),
        min_finite_distance=min(finite) if finite else 0.0,
        max_finite_distance=max(finite) if finite else 0.0,
        average_finite_distance=sum(finite) / len(finite) if finite else 0.0,
    )
