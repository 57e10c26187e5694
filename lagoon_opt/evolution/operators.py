"""
Real-coded variation operators for half-tide head vectors [Hs_0, He_0, Hs_1, He_1, ...].

Every operator takes an explicit numpy Generator, leaves its inputs untouched and returns
new unevaluated individuals whose genes lie in [MIN_HEAD, MAX_HEAD].
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import numpy as np

from lagoon_opt.evolution.individual import (
    MAX_HEAD,
    MIN_HEAD,
    PARAMETERS_PER_HALF_TIDE,
    Individual,
    clamp_head,
)
from lagoon_opt.exceptions import UnknownOperatorError

SBX_ETA = 20.0
MUTATION_ETA = 20.0
GAUSSIAN_SIGMA = 0.1
PERTURBATION_RANGE = 0.5
STRATEGY_THRESHOLD = 0.7
DIFFERENCE_STRENGTH = 0.2


@dataclass(frozen=True)
class OperatorParams:
    """Tuning knobs shared by the operator dispatch in create_offspring."""
    sbx_eta: float = SBX_ETA
    mutation_eta: float = MUTATION_ETA
    gaussian_sigma: float = GAUSSIAN_SIGMA
    perturbation_range: float = PERTURBATION_RANGE
    strategy_threshold: float = STRATEGY_THRESHOLD
    difference_strength: float = DIFFERENCE_STRENGTH


def _check_probability(name: str, p: float) -> None:
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"{name} probability must be between 0 and 1, got {p}")


def _check_parents(p1: Individual, p2: Individual) -> None:
    if p1 is None or p2 is None:
        raise ValueError("Parents cannot be None")
    if p1.genes.shape != p2.genes.shape:
        raise ValueError(
            "Parents must have the same number of genes: {} vs {}".format(p1.genes.size, p2.genes.size)
        )


def _children(v1: np.ndarray, v2: np.ndarray) -> Tuple[Individual, Individual]:
    return Individual(genes=v1), Individual(genes=v2)


# ----- crossover -----

def simulated_binary_crossover(
    p1: Individual,
    p2: Individual,
    crossover_probability: float,
    rng: np.random.Generator,
    eta: float = SBX_ETA,
) -> Tuple[Individual, Individual]:
    """SBX with gene-wise probability 0.5; children clamped to the head bounds."""
    _check_parents(p1, p2)
    _check_probability("Crossover", crossover_probability)
    v1 = p1.genes.copy()
    v2 = p2.genes.copy()
    if rng.random() <= crossover_probability:
        exponent = 1.0 / (eta + 1.0)
        for i in range(v1.size):
            if rng.random() > 0.5:
                continue
            y1 = min(v1[i], v2[i])
            y2 = max(v1[i], v2[i])
            if abs(y2 - y1) <= 1e-14:
                continue
            u = rng.random()
            if u <= 0.5:
                beta = (2.0 * u) ** exponent
            else:
                beta = (1.0 / (2.0 * (1.0 - u))) ** exponent
            c1 = 0.5 * ((y1 + y2) - beta * (y2 - y1))
            c2 = 0.5 * ((y1 + y2) + beta * (y2 - y1))
            v1[i] = clamp_head(c1)
            v2[i] = clamp_head(c2)
    return _children(v1, v2)


def uniform_crossover(
    p1: Individual,
    p2: Individual,
    crossover_probability: float,
    rng: np.random.Generator,
) -> Tuple[Individual, Individual]:
    """Each gene swapped between the two children with probability 0.5."""
    _check_parents(p1, p2)
    _check_probability("Crossover", crossover_probability)
    v1 = p1.genes.copy()
    v2 = p2.genes.copy()
    if rng.random() <= crossover_probability:
        mask = rng.random(v1.size) < 0.5
        v1[mask], v2[mask] = p2.genes[mask], p1.genes[mask]
    return _children(v1, v2)


def half_tide_crossover(
    p1: Individual,
    p2: Individual,
    crossover_probability: float,
    rng: np.random.Generator,
) -> Tuple[Individual, Individual]:
    """Swap whole (Hs, He) pairs so the two heads of a half-tide always travel together."""
    _check_parents(p1, p2)
    _check_probability("Crossover", crossover_probability)
    v1 = p1.genes.copy().reshape(-1, PARAMETERS_PER_HALF_TIDE)
    v2 = p2.genes.copy().reshape(-1, PARAMETERS_PER_HALF_TIDE)
    if rng.random() <= crossover_probability:
        swap = rng.random(v1.shape[0]) < 0.5
        a = v1[swap].copy()
        v1[swap] = v2[swap]
        v2[swap] = a
    return _children(v1.ravel(), v2.ravel())


# ----- mutation -----

def polynomial_mutation(
    individual: Individual,
    mutation_probability: float,
    rng: np.random.Generator,
    eta: float = MUTATION_ETA,
) -> Individual:
    """Deb's bounded polynomial mutation, applied per gene with mutation_probability."""
    if individual is None:
        raise ValueError("Individual cannot be None")
    _check_probability("Mutation", mutation_probability)
    v = individual.genes.copy()
    lower, upper = MIN_HEAD, MAX_HEAD
    span = upper - lower
    mut_pow = 1.0 / (eta + 1.0)
    for i in range(v.size):
        if rng.random() > mutation_probability:
            continue
        y = clamp_head(v[i])
        delta1 = (y - lower) / span
        delta2 = (upper - y) / span
        u = rng.random()
        if u <= 0.5:
            xy = 1.0 - delta1
            val = 2.0 * u + (1.0 - 2.0 * u) * xy ** (eta + 1.0)
            deltaq = val ** mut_pow - 1.0
        else:
            xy = 1.0 - delta2
            val = 2.0 * (1.0 - u) + 2.0 * (u - 0.5) * xy ** (eta + 1.0)
            deltaq = 1.0 - val ** mut_pow
        v[i] = clamp_head(y + deltaq * span)
    return Individual(genes=v)


def gaussian_mutation(
    individual: Individual,
    mutation_probability: float,
    rng: np.random.Generator,
    sigma: float = GAUSSIAN_SIGMA,
) -> Individual:
    """Additive N(0, sigma) noise per gene; out-of-range results are clamped, not rejected."""
    if individual is None:
        raise ValueError("Individual cannot be None")
    _check_probability("Mutation", mutation_probability)
    if sigma < 0:
        raise ValueError(f"Gaussian sigma must be >= 0, got {sigma}")
    v = individual.genes.copy()
    for i in range(v.size):
        if rng.random() <= mutation_probability:
            v[i] = clamp_head(v[i] + rng.normal(0.0, sigma))
    return Individual(genes=v)


def operational_mutation(
    individual: Individual,
    mutation_probability: float,
    rng: np.random.Generator,
    perturbation_range: float = PERTURBATION_RANGE,
    strategy_threshold: float = STRATEGY_THRESHOLD,
    difference_strength: float = DIFFERENCE_STRENGTH,
) -> Individual:
    """
    Per half-tide, with mutation_probability: either shift Hs and He by the same offset
    (keeps their difference), or redraw the difference about the midpoint (keeps the mean).
    """
    if individual is None:
        raise ValueError("Individual cannot be None")
    _check_probability("Mutation", mutation_probability)
    v = individual.genes.copy()
    for k in range(individual.n_half_tides):
        if rng.random() > mutation_probability:
            continue
        hs_idx = k * PARAMETERS_PER_HALF_TIDE
        he_idx = hs_idx + 1
        hs, he = v[hs_idx], v[he_idx]
        if rng.random() < strategy_threshold:
            offset = (rng.random() - 0.5) * perturbation_range
            v[hs_idx] = clamp_head(hs + offset)
            v[he_idx] = clamp_head(he + offset)
        else:
            difference = (he - hs) + rng.normal(0.0, difference_strength)
            midpoint = 0.5 * (hs + he)
            v[hs_idx] = clamp_head(midpoint - difference / 2.0)
            v[he_idx] = clamp_head(midpoint + difference / 2.0)
    return Individual(genes=v)


# ----- dispatch -----

CrossoverFn = Callable[[Individual, Individual, float, np.random.Generator, OperatorParams], Tuple[Individual, Individual]]
MutationFn = Callable[[Individual, float, np.random.Generator, OperatorParams], Individual]

CROSSOVER_OPERATORS: Dict[str, CrossoverFn] = {
    "SBX": lambda a, b, pc, rng, prm: simulated_binary_crossover(a, b, pc, rng, eta=prm.sbx_eta),
    "UNIFORM": lambda a, b, pc, rng, prm: uniform_crossover(a, b, pc, rng),
    "HALFTIDE": lambda a, b, pc, rng, prm: half_tide_crossover(a, b, pc, rng),
}

MUTATION_OPERATORS: Dict[str, MutationFn] = {
    "POLYNOMIAL": lambda ind, pm, rng, prm: polynomial_mutation(ind, pm, rng, eta=prm.mutation_eta),
    "GAUSSIAN": lambda ind, pm, rng, prm: gaussian_mutation(ind, pm, rng, sigma=prm.gaussian_sigma),
    "OPERATIONAL": lambda ind, pm, rng, prm: operational_mutation(
        ind,
        pm,
        rng,
        perturbation_range=prm.perturbation_range,
        strategy_threshold=prm.strategy_threshold,
        difference_strength=prm.difference_strength,
    ),
}


def resolve_crossover(name: str) -> CrossoverFn:
    key = (name or "").upper()
    if key not in CROSSOVER_OPERATORS:
        raise UnknownOperatorError("crossover", name, CROSSOVER_OPERATORS)
    return CROSSOVER_OPERATORS[key]


def resolve_mutation(name: str) -> MutationFn:
    key = (name or "").upper()
    if key not in MUTATION_OPERATORS:
        raise UnknownOperatorError("mutation", name, MUTATION_OPERATORS)
    return MUTATION_OPERATORS[key]


def create_offspring(
    parents: Sequence[Individual],
    crossover_probability: float,
    mutation_probability: float,
    crossover_type: str,
    mutation_type: str,
    rng: np.random.Generator,
    params: Optional[OperatorParams] = None,
) -> List[Individual]:
    """
    Pair parents sequentially, cross each pair, mutate each child independently.
    Returns as many children as parents.
    """
    if parents is None or len(parents) == 0:
        raise ValueError("Parents list cannot be None or empty")
    if len(parents) % 2 != 0:
        raise ValueError(f"Number of parents must be even for pairing, got {len(parents)}")
    _check_probability("Crossover", crossover_probability)
    _check_probability("Mutation", mutation_probability)
    cross = resolve_crossover(crossover_type)
    mutate = resolve_mutation(mutation_type)
    params = params or OperatorParams()

    offspring: List[Individual] = []
    for k in range(0, len(parents), 2):
        children = cross(parents[k], parents[k + 1], crossover_probability, rng, params)
        for child in children:
            offspring.append(mutate(child, mutation_probability, rng, params))
    return offspring


# ----- constraint helpers and monitoring -----

def validate_constraints(individual: Individual) -> bool:
    return individual.is_within_bounds()


def repair_constraints(individual: Individual) -> Individual:
    """Clamp out-of-range genes; returns the same object when nothing needed repair."""
    if validate_constraints(individual):
        return individual
    return Individual(genes=np.clip(individual.genes, MIN_HEAD, MAX_HEAD))


@dataclass(frozen=True)
class OperatorStats:
    population_size: int
    mean_value: float
    standard_deviation: float
    min_value: float
    max_value: float

    @property
    def diversity(self) -> float:
        span = self.max_value - self.min_value
        if span == 0:
            return 0.0
        return self.standard_deviation / span

    def has_good_diversity(self, threshold: float = 0.1) -> bool:
        return self.diversity > threshold


def operator_statistics(individuals: Sequence[Individual]) -> OperatorStats:
    """Spread of all gene values pooled over the given individuals."""
    if len(individuals) == 0:
        return OperatorStats(0, 0.0, 0.0, 0.0, 0.0)
    values = np.concatenate([ind.genes for ind in individuals])
    return OperatorStats(
        population_size=len(individuals),
        mean_value=float(values.mean()),
        standard_deviation=float(values.std()),
        min_value=float(values.min()),
        max_value=float(values.max()),
    )


def mutation_probability_for(n_variables: int) -> float:
    """Conventional per-gene rate 1/n."""
    if n_variables <= 0:
        raise ValueError(f"Number of variables must be positive, got {n_variables}")
    return 1.0 / n_variables


def tidal_mutation_probability(n_half_tides: int) -> float:
    """Per-half-tide rate for the operational mutation, capped at 20%."""
    if n_half_tides <= 0:
        raise ValueError(f"Number of half-tides must be positive, got {n_half_tides}")
    return min(0.2, 2.0 / n_half_tides)
