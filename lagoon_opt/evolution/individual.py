"""
Evolution individual: per-half-tide control heads [Hs_0, He_0, Hs_1, He_1, ...] plus the
two objectives (energy output, unit cost) and NSGA-II metadata (rank, crowding distance).
The decision vector is a read-only array; derived individuals are built with the
with_* constructors or by the genetic operators, never by editing genes in place.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple
import math
import numpy as np

from lagoon_opt.exceptions import InvalidHeadError

MIN_HEAD = 0.5
MAX_HEAD = 4.0
PARAMETERS_PER_HALF_TIDE = 2

# Unit cost of an individual that produced no energy.
INVALID_COST = math.inf

# Archetype head ranges used when seeding a population.
STRATEGY_RANGES: Dict[str, Tuple[float, float]] = {
    "conservative": (0.5, 2.0),
    "aggressive": (2.5, 4.0),
    "balanced": (1.5, 3.5),
    "diverse": (MIN_HEAD, MAX_HEAD),
}


def is_valid_head(value: float) -> bool:
    return math.isfinite(value) and MIN_HEAD <= value <= MAX_HEAD


def is_invalid_cost(cost: float) -> bool:
    return cost == INVALID_COST


def clamp_head(value: float) -> float:
    return max(MIN_HEAD, min(MAX_HEAD, value))


@dataclass(eq=False)
class Individual:
    genes: np.ndarray
    energy_output: float = 0.0
    unit_cost: float = 0.0
    rank: int = -1
    crowding_distance: float = 0.0

    def __post_init__(self) -> None:
        genes = np.array(self.genes, dtype=np.float64)
        if genes.ndim != 1 or genes.size % PARAMETERS_PER_HALF_TIDE != 0:
            raise ValueError(
                "Decision vector must be 1-D with an even length, got shape {}".format(genes.shape)
            )
        genes.setflags(write=False)
        self.genes = genes

    @classmethod
    def empty(cls, n_half_tides: int) -> "Individual":
        """Zero-initialised, unevaluated individual with n_half_tides (Hs, He) pairs."""
        if n_half_tides < 1:
            raise ValueError(f"Number of half-tides must be >= 1, got {n_half_tides}")
        return cls(genes=np.zeros(n_half_tides * PARAMETERS_PER_HALF_TIDE))

    @classmethod
    def from_genes(cls, genes: Sequence[float]) -> "Individual":
        return cls(genes=np.asarray(genes, dtype=np.float64))

    @property
    def n_half_tides(self) -> int:
        return self.genes.size // PARAMETERS_PER_HALF_TIDE

    @property
    def objectives(self) -> Tuple[float, float]:
        return (self.energy_output, self.unit_cost)

    @property
    def has_valid_cost(self) -> bool:
        return not is_invalid_cost(self.unit_cost)

    def set_objectives(self, energy_output: float, unit_cost: float) -> None:
        self.energy_output = float(energy_output)
        self.unit_cost = float(unit_cost)

    def _gene_index(self, half_tide: int, offset: int) -> int:
        if not 0 <= half_tide < self.n_half_tides:
            raise IndexError(
                f"Half-tide index {half_tide} out of range [0, {self.n_half_tides})"
            )
        return half_tide * PARAMETERS_PER_HALF_TIDE + offset

    def start_head(self, half_tide: int) -> float:
        return float(self.genes[self._gene_index(half_tide, 0)])

    def end_head(self, half_tide: int) -> float:
        return float(self.genes[self._gene_index(half_tide, 1)])

    def with_heads(
        self,
        half_tide: int,
        start: Optional[float] = None,
        end: Optional[float] = None,
    ) -> "Individual":
        """
        Return a new unevaluated individual with the given heads replaced for one half-tide.
        Raises InvalidHeadError if a value is outside [MIN_HEAD, MAX_HEAD].
        """
        genes = self.genes.copy()
        if start is not None:
            if not is_valid_head(start):
                raise InvalidHeadError("Hs", start, MIN_HEAD, MAX_HEAD)
            genes[self._gene_index(half_tide, 0)] = start
        if end is not None:
            if not is_valid_head(end):
                raise InvalidHeadError("He", end, MIN_HEAD, MAX_HEAD)
            genes[self._gene_index(half_tide, 1)] = end
        return Individual(genes=genes)

    def with_start_head(self, half_tide: int, value: float) -> "Individual":
        return self.with_heads(half_tide, start=value)

    def with_end_head(self, half_tide: int, value: float) -> "Individual":
        return self.with_heads(half_tide, end=value)

    def is_within_bounds(self) -> bool:
        return bool(np.all((self.genes >= MIN_HEAD) & (self.genes <= MAX_HEAD)))

    def same_genes(self, other: "Individual", tol: float = 1e-9) -> bool:
        if self.genes.shape != other.genes.shape:
            return False
        return bool(np.all(np.abs(self.genes - other.genes) <= tol))

    def clone(self) -> "Individual":
        """Deep copy including objectives and NSGA-II metadata."""
        return Individual(
            genes=self.genes.copy(),
            energy_output=self.energy_output,
            unit_cost=self.unit_cost,
            rank=self.rank,
            crowding_distance=self.crowding_distance,
        )

    def to_dict(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {}
        for i in range(self.n_half_tides):
            row[f"Hs_{i}"] = self.start_head(i)
            row[f"He_{i}"] = self.end_head(i)
        row["energy_output"] = self.energy_output
        row["unit_cost"] = self.unit_cost
        row["rank"] = self.rank
        row["crowding_distance"] = self.crowding_distance
        return row

    def __repr__(self) -> str:
        return "Individual(half_tides={}, energy={:.1f} MWh, cost={:.2f} GBP/MWh, rank={}, crowding={:.3f})".format(
            self.n_half_tides, self.energy_output, self.unit_cost, self.rank, self.crowding_distance
        )


def random_individual(
    n_half_tides: int,
    rng: np.random.Generator,
    strategy: Optional[str] = None,
) -> Individual:
    """
    Individual with heads drawn uniformly from one archetype range. With no strategy the
    archetype (conservative, aggressive, balanced, diverse) is itself drawn uniformly.
    """
    if strategy is None:
        names = list(STRATEGY_RANGES)
        strategy = names[int(rng.integers(len(names)))]
    try:
        low, high = STRATEGY_RANGES[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown initialisation strategy {strategy!r}. Available: {', '.join(STRATEGY_RANGES)}"
        ) from None
    genes = rng.uniform(low, high, size=n_half_tides * PARAMETERS_PER_HALF_TIDE)
    return Individual(genes=genes)
