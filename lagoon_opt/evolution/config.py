"""
NSGA2Config: one immutable, validated bundle of run parameters.

Construction raises ConfigurationError on anything the algorithm cannot run with.
Settings that are legal but questionable are reported by warnings() instead.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional

from lagoon_opt.evolution.individual import PARAMETERS_PER_HALF_TIDE
from lagoon_opt.evolution.operators import (
    CROSSOVER_OPERATORS,
    MUTATION_OPERATORS,
    OperatorParams,
    mutation_probability_for,
    tidal_mutation_probability,
)
from lagoon_opt.exceptions import ConfigurationError
from lagoon_opt.simulation.scenarios import get_scenario

MIN_MUTATION_RATE = 0.005
COMPUTATIONAL_EFFORT_WARNING = 1_000_000
HIGH_MUTATION_WARNING = 0.5
LOW_CROSSOVER_WARNING = 0.5
MUTATION_RATE_TOLERANCE = 0.05


@dataclass(frozen=True)
class NSGA2Config:
    population_size: int = 50
    max_generations: int = 100
    crossover_probability: float = 0.9
    mutation_probability: float = 0.1
    crossover_type: str = "SBX"
    mutation_type: str = "GAUSSIAN"
    half_tides: int = 4
    description: str = "Default simulation"
    convergence_threshold: float = 0.001
    stagnation_generations: int = 15
    tournament_size: int = 2
    random_seed: Optional[int] = None
    n_workers: int = 1
    time_limit_seconds: Optional[float] = None
    operator_params: OperatorParams = field(default_factory=OperatorParams)

    def __post_init__(self) -> None:
        # normalise operator names so "sbx" and "SBX" compare equal
        object.__setattr__(self, "crossover_type", str(self.crossover_type).upper())
        object.__setattr__(self, "mutation_type", str(self.mutation_type).upper())

        if self.population_size < 4:
            raise ConfigurationError(f"Population size must be at least 4, got {self.population_size}")
        if self.population_size % 2 != 0:
            raise ConfigurationError(
                f"Population size must be even for parent pairing, got {self.population_size}"
            )
        if self.max_generations < 1:
            raise ConfigurationError(f"Max generations must be at least 1, got {self.max_generations}")
        if not 0.0 <= self.crossover_probability <= 1.0:
            raise ConfigurationError(
                f"Crossover probability must be between 0.0 and 1.0, got {self.crossover_probability}"
            )
        if not 0.0 <= self.mutation_probability <= 1.0:
            raise ConfigurationError(
                f"Mutation probability must be between 0.0 and 1.0, got {self.mutation_probability}"
            )
        if self.crossover_type not in CROSSOVER_OPERATORS:
            raise ConfigurationError(
                f"Unsupported crossover type {self.crossover_type!r}. "
                f"Available: {', '.join(CROSSOVER_OPERATORS)}"
            )
        if self.mutation_type not in MUTATION_OPERATORS:
            raise ConfigurationError(
                f"Unsupported mutation type {self.mutation_type!r}. "
                f"Available: {', '.join(MUTATION_OPERATORS)}"
            )
        if self.half_tides < 1:
            raise ConfigurationError(f"Half-tides must be at least 1, got {self.half_tides}")
        if self.convergence_threshold < 0:
            raise ConfigurationError(
                f"Convergence threshold must be non-negative, got {self.convergence_threshold}"
            )
        if self.stagnation_generations < 1:
            raise ConfigurationError(
                f"Stagnation generations must be at least 1, got {self.stagnation_generations}"
            )
        if self.tournament_size < 2:
            raise ConfigurationError(f"Tournament size must be at least 2, got {self.tournament_size}")
        if self.n_workers < 1:
            raise ConfigurationError(f"Worker count must be at least 1, got {self.n_workers}")
        if self.time_limit_seconds is not None and self.time_limit_seconds <= 0:
            raise ConfigurationError(f"Time limit must be positive, got {self.time_limit_seconds}")

    # ----- derived properties -----

    @property
    def decision_variables(self) -> int:
        return self.half_tides * PARAMETERS_PER_HALF_TIDE

    @property
    def computational_effort(self) -> int:
        return self.population_size * self.max_generations

    # ----- copies -----

    def with_population_size(self, population_size: int) -> "NSGA2Config":
        return replace(self, population_size=population_size)

    def with_operators(self, crossover_type: str, mutation_type: str) -> "NSGA2Config":
        return replace(
            self,
            crossover_type=crossover_type,
            mutation_type=mutation_type,
            description=f"{self.description} - {crossover_type.upper()}/{mutation_type.upper()}",
        )

    def with_seed(self, random_seed: Optional[int]) -> "NSGA2Config":
        return replace(self, random_seed=random_seed)

    def warnings(self) -> List[str]:
        """Advisory messages about legal but questionable settings."""
        notes: List[str] = []
        if self.computational_effort > COMPUTATIONAL_EFFORT_WARNING:
            notes.append(
                f"High computational effort ({self.computational_effort:,} evaluations); "
                "consider reducing population or generations"
            )
        if self.mutation_probability > HIGH_MUTATION_WARNING:
            notes.append(
                f"High mutation probability ({self.mutation_probability:.3f}) may cause excessive disruption"
            )
        if self.crossover_probability < LOW_CROSSOVER_WARNING:
            notes.append(
                f"Low crossover probability ({self.crossover_probability:.3f}) may slow convergence"
            )
        # operational mutation draws once per half-tide, the others once per gene
        if self.mutation_type == "OPERATIONAL":
            recommended = tidal_mutation_probability(self.half_tides)
            basis = "min(0.2, 2/half_tides)"
        else:
            recommended = mutation_probability_for(self.decision_variables)
            basis = "1/n_vars"
        if abs(self.mutation_probability - recommended) > MUTATION_RATE_TOLERANCE:
            notes.append(
                f"Mutation probability ({self.mutation_probability:.4f}) differs from "
                f"recommended {basis} ({recommended:.4f})"
            )
        return notes

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return (
            f"NSGA2Config[Pop={self.population_size}, Gen={self.max_generations}, "
            f"Pc={self.crossover_probability:.2f}, Pm={self.mutation_probability:.4f}, "
            f"{self.crossover_type}/{self.mutation_type}, HalfTides={self.half_tides}]"
        )


def _adaptive_mutation_rate(half_tides: int) -> float:
    return max(mutation_probability_for(half_tides * PARAMETERS_PER_HALF_TIDE), MIN_MUTATION_RATE)


def quick_config(random_seed: Optional[int] = 42) -> NSGA2Config:
    """Small, fast run on the test window."""
    scenario = get_scenario("test")
    return NSGA2Config(
        population_size=20,
        max_generations=10,
        crossover_probability=0.9,
        mutation_probability=_adaptive_mutation_rate(scenario.half_tides),
        half_tides=scenario.half_tides,
        description=scenario.description,
        convergence_threshold=0.01,
        stagnation_generations=5,
        random_seed=random_seed,
    )


def daily_config(random_seed: Optional[int] = None) -> NSGA2Config:
    scenario = get_scenario("daily")
    return NSGA2Config(
        population_size=200,
        max_generations=100,
        crossover_probability=0.85,
        mutation_probability=_adaptive_mutation_rate(scenario.half_tides) * 1.5,
        crossover_type="SBX",
        mutation_type="GAUSSIAN",
        half_tides=scenario.half_tides,
        description=scenario.description,
        convergence_threshold=0.01,
        stagnation_generations=25,
        random_seed=random_seed,
    )


def weekly_config(random_seed: Optional[int] = None) -> NSGA2Config:
    scenario = get_scenario("weekly")
    return NSGA2Config(
        population_size=500,
        max_generations=250,
        crossover_probability=0.85,
        mutation_probability=_adaptive_mutation_rate(scenario.half_tides),
        crossover_type="SBX",
        mutation_type="GAUSSIAN",
        half_tides=scenario.half_tides,
        description=scenario.description,
        convergence_threshold=0.01,
        stagnation_generations=30,
        random_seed=random_seed,
    )


def annual_config(random_seed: Optional[int] = None) -> NSGA2Config:
    scenario = get_scenario("annual")
    return NSGA2Config(
        population_size=400,
        max_generations=300,
        crossover_probability=0.9,
        mutation_probability=0.015,
        crossover_type="HALFTIDE",
        mutation_type="GAUSSIAN",
        half_tides=scenario.half_tides,
        description=scenario.description,
        convergence_threshold=0.01,
        stagnation_generations=50,
        tournament_size=4,
        random_seed=random_seed,
    )


CONFIG_FACTORIES = {
    "test": quick_config,
    "daily": daily_config,
    "weekly": weekly_config,
    "annual": annual_config,
}
