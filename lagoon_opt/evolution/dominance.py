"""
Pareto dominance for (maximise energy output, minimise unit cost) and Deb's fast
non-dominated sort. Individuals with the invalid-cost sentinel are dominated by every
individual with a valid cost; among themselves, higher energy dominates.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from lagoon_opt.evolution.individual import Individual
from lagoon_opt.evolution.population import Population

Front = List[Individual]


def dominates(a: Individual, b: Individual) -> bool:
    """a dominates b iff a is no worse on both objectives and strictly better on at least one."""
    a_valid, b_valid = a.has_valid_cost, b.has_valid_cost
    if not a_valid and b_valid:
        return False
    if a_valid and not b_valid:
        return True
    if not a_valid and not b_valid:
        return a.energy_output > b.energy_output
    # Maximise obj1 (energy), minimise obj2 (cost)
    better1 = a.energy_output >= b.energy_output
    better2 = a.unit_cost <= b.unit_cost
    strict1 = a.energy_output > b.energy_output
    strict2 = a.unit_cost < b.unit_cost
    return (better1 and better2) and (strict1 or strict2)


def compare(a: Individual, b: Individual) -> int:
    """-1 if a dominates b, 1 if b dominates a, 0 if neither does."""
    if dominates(a, b):
        return -1
    if dominates(b, a):
        return 1
    return 0


def _members(population: Union[Population, Sequence[Individual]]) -> List[Individual]:
    if population is None:
        raise ValueError("Population cannot be None")
    if isinstance(population, Population):
        return list(population.individuals)
    return list(population)


def fast_non_dominated_sort(population: Union[Population, Sequence[Individual]]) -> List[Front]:
    """
    Partition into fronts (front 0 = non-dominated) and assign each individual its rank.

    Front 0 keeps population order; later fronts keep discovery order, so the result is
    deterministic for a given input order.
    """
    members = _members(population)
    n = len(members)
    if n == 0:
        return []

    dominated_by: List[List[int]] = [[] for _ in range(n)]
    domination_count = [0] * n
    for i in range(n):
        p = members[i]
        for j in range(n):
            if i == j:
                continue
            q = members[j]
            if dominates(p, q):
                dominated_by[i].append(j)
            elif dominates(q, p):
                domination_count[i] += 1

    current = [i for i in range(n) if domination_count[i] == 0]
    fronts: List[Front] = []
    rank = 0
    while current:
        for i in current:
            members[i].rank = rank
        fronts.append([members[i] for i in current])
        nxt: List[int] = []
        for i in current:
            for j in dominated_by[i]:
                domination_count[j] -= 1
                if domination_count[j] == 0:
                    nxt.append(j)
        current = nxt
        rank += 1
    return fronts


def get_pareto_front(population: Union[Population, Sequence[Individual]]) -> Front:
    fronts = fast_non_dominated_sort(population)
    return fronts[0] if fronts else []


def is_dominated(individual: Individual, others: Iterable[Individual]) -> bool:
    return any(dominates(other, individual) for other in others if other is not individual)


def count_dominating(individual: Individual, others: Iterable[Individual]) -> int:
    return sum(1 for other in others if other is not individual and dominates(other, individual))


@dataclass(frozen=True)
class DominanceStats:
    total_individuals: int
    front_count: int
    pareto_front_size: int
    average_rank: float
    front_sizes: Tuple[int, ...]

    def __str__(self) -> str:
        return "DominanceStats[totalIndividuals={}, frontCount={}, paretoFrontSize={}, averageRank={:.1f}]".format(
            self.total_individuals, self.front_count, self.pareto_front_size, self.average_rank
        )


def dominance_statistics(population: Union[Population, Sequence[Individual]]) -> DominanceStats:
    """Sorts the population (assigning ranks) and summarises the front structure."""
    members = _members(population)
    fronts = fast_non_dominated_sort(members)
    total = len(members)
    average_rank = sum(ind.rank for ind in members) / total if total else 0.0
    return DominanceStats(
        total_individuals=total,
        front_count=len(fronts),
        pareto_front_size=len(fronts[0]) if fronts else 0,
        average_rank=average_rank,
        front_sizes=tuple(len(f) for f in fronts),
    )
