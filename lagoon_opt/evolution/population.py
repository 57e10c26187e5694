"""
Capacity-bounded, ordered population of individuals with aggregate statistics.
"""
from __future__ import annotations
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable, Iterable, Iterator, List, Tuple
import logging
import numpy as np

from lagoon_opt.evolution.individual import (
    INVALID_COST,
    Individual,
    random_individual,
)
from lagoon_opt.exceptions import PopulationFullError

logger = logging.getLogger(__name__)

# Share of a seeded population drawn from each archetype, in order.
INITIALISATION_MIX: Tuple[Tuple[str, float], ...] = (
    ("aggressive", 0.3),
    ("balanced", 0.3),
    ("diverse", 0.4),
)


@dataclass(frozen=True)
class PopulationStats:
    size: int
    min_energy: float
    max_energy: float
    avg_energy: float
    min_cost: float
    max_cost: float
    avg_cost: float

    def __str__(self) -> str:
        return "PopulationStats[size={}, energy={:.1f}-{:.1f}(avg={:.1f}), cost={:.0f}-{:.0f}(avg={:.0f})]".format(
            self.size,
            self.min_energy,
            self.max_energy,
            self.avg_energy,
            self.min_cost,
            self.max_cost,
            self.avg_cost,
        )


class Population:
    def __init__(self, max_size: int):
        if max_size < 0:
            raise ValueError(f"Population capacity must be >= 0, got {max_size}")
        self.max_size = max_size
        self._individuals: List[Individual] = []

    @classmethod
    def from_individuals(cls, individuals: Iterable[Individual]) -> "Population":
        members = list(individuals)
        pop = cls(len(members))
        pop._individuals.extend(members)
        return pop

    def initialise_random(self, n_half_tides: int, rng: np.random.Generator) -> None:
        """Fill the population to capacity: 30% energy-focused, 30% balanced, 40% diverse."""
        self._individuals.clear()
        size = self.max_size
        for i in range(size):
            position = i / size
            cumulative = 0.0
            strategy = INITIALISATION_MIX[-1][0]
            for name, share in INITIALISATION_MIX:
                cumulative += share
                if position < cumulative:
                    strategy = name
                    break
            self._individuals.append(random_individual(n_half_tides, rng, strategy))
        logger.info(
            "Initialised population of %d: %d energy-focused, %d balanced, %d diverse",
            size,
            int(size * 0.3),
            int(size * 0.3),
            size - 2 * int(size * 0.3),
        )

    # ----- membership -----

    def add(self, individual: Individual) -> None:
        if individual is None:
            raise ValueError("Cannot add None to a population")
        if len(self._individuals) >= self.max_size:
            raise PopulationFullError(f"Population is at maximum capacity: {self.max_size}")
        self._individuals.append(individual)

    def remove(self, individual: Individual) -> bool:
        for i, member in enumerate(self._individuals):
            if member is individual:
                del self._individuals[i]
                return True
        return False

    def get(self, index: int) -> Individual:
        if index < 0 or index >= len(self._individuals):
            raise IndexError(f"Index out of bounds: {index}")
        return self._individuals[index]

    def __getitem__(self, index: int) -> Individual:
        return self.get(index)

    @property
    def individuals(self) -> Tuple[Individual, ...]:
        return tuple(self._individuals)

    def __iter__(self) -> Iterator[Individual]:
        return iter(tuple(self._individuals))

    def __len__(self) -> int:
        return len(self._individuals)

    def size(self) -> int:
        return len(self._individuals)

    def is_empty(self) -> bool:
        return not self._individuals

    def clear(self) -> None:
        self._individuals.clear()

    # ----- derived populations -----

    def copy(self) -> "Population":
        """Deep copy with the same capacity."""
        dup = Population(self.max_size)
        dup._individuals.extend(ind.clone() for ind in self._individuals)
        return dup

    def combine(self, other: "Population") -> "Population":
        """New population sized to both, holding clones of every member of each."""
        if other is None:
            raise ValueError("Cannot combine with None")
        combined = Population(len(self) + len(other))
        for ind in self._individuals:
            combined.add(ind.clone())
        for ind in other._individuals:
            combined.add(ind.clone())
        return combined

    def sort(self, comparator: Callable[[Individual, Individual], int]) -> None:
        self._individuals.sort(key=cmp_to_key(comparator))

    # ----- statistics -----

    def statistics(self) -> PopulationStats:
        """Min/max/mean of both objectives; invalid costs are left out of the cost aggregates."""
        if not self._individuals:
            return PopulationStats(0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        energies = np.array([ind.energy_output for ind in self._individuals], dtype=np.float64)
        costs = np.array(
            [ind.unit_cost for ind in self._individuals if ind.has_valid_cost], dtype=np.float64
        )
        if costs.size:
            min_cost, max_cost, avg_cost = float(costs.min()), float(costs.max()), float(costs.mean())
        else:
            min_cost = max_cost = avg_cost = INVALID_COST
        return PopulationStats(
            size=len(self._individuals),
            min_energy=float(energies.min()),
            max_energy=float(energies.max()),
            avg_energy=float(energies.mean()),
            min_cost=min_cost,
            max_cost=max_cost,
            avg_cost=avg_cost,
        )

    def best_by_energy(self, count: int) -> List[Individual]:
        return sorted(self._individuals, key=lambda ind: -ind.energy_output)[:count]

    def best_by_cost(self, count: int) -> List[Individual]:
        valid = [ind for ind in self._individuals if ind.has_valid_cost]
        return sorted(valid, key=lambda ind: ind.unit_cost)[:count]

    def __repr__(self) -> str:
        return f"Population[size={len(self._individuals)}, maxSize={self.max_size}]"
