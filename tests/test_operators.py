import numpy as np
import pytest

from lagoon_opt.evolution.individual import MAX_HEAD, MIN_HEAD, Individual
from lagoon_opt.evolution.operators import (
    create_offspring,
    gaussian_mutation,
    half_tide_crossover,
    mutation_probability_for,
    operational_mutation,
    operator_statistics,
    polynomial_mutation,
    repair_constraints,
    simulated_binary_crossover,
    tidal_mutation_probability,
    uniform_crossover,
    validate_constraints,
)
from lagoon_opt.exceptions import UnknownOperatorError


def _in_bounds(ind):
    return bool(np.all(ind.genes >= MIN_HEAD) and np.all(ind.genes <= MAX_HEAD))


def test_sbx_from_bounds_stays_in_bounds(rng):
    low = Individual.from_genes([MIN_HEAD] * 4)
    high = Individual.from_genes([MAX_HEAD] * 4)
    for _ in range(10_000):
        c1, c2 = simulated_binary_crossover(low, high, 1.0, rng)
        assert _in_bounds(c1) and _in_bounds(c2)


def test_polynomial_mutation_from_bounds_stays_in_bounds(rng):
    low = Individual.from_genes([MIN_HEAD] * 4)
    high = Individual.from_genes([MAX_HEAD] * 4)
    for _ in range(10_000):
        assert _in_bounds(polynomial_mutation(low, 1.0, rng))
        assert _in_bounds(polynomial_mutation(high, 1.0, rng))


def test_polynomial_mutation_repairs_zero_vector(rng):
    child = polynomial_mutation(Individual.empty(3), 1.0, rng)
    assert _in_bounds(child)
    assert not np.any(np.isnan(child.genes))


def test_crossover_leaves_parents_untouched(rng):
    p1 = Individual.from_genes([1.0, 2.0, 3.0, 4.0])
    p2 = Individual.from_genes([4.0, 3.0, 2.0, 1.0])
    for op in (simulated_binary_crossover, uniform_crossover, half_tide_crossover):
        op(p1, p2, 1.0, rng)
        assert list(p1.genes) == [1.0, 2.0, 3.0, 4.0]
        assert list(p2.genes) == [4.0, 3.0, 2.0, 1.0]


def test_zero_crossover_probability_copies_parents(rng):
    p1 = Individual.from_genes([1.0, 2.0])
    p2 = Individual.from_genes([3.0, 4.0])
    c1, c2 = simulated_binary_crossover(p1, p2, 0.0, rng)
    assert c1.same_genes(p1) and c2.same_genes(p2)
    assert c1 is not p1


def test_half_tide_crossover_keeps_pairs_together(rng):
    p1 = Individual.from_genes([1.0, 1.5, 2.0, 2.5, 3.0, 3.5])
    p2 = Individual.from_genes([0.5, 0.6, 0.7, 0.8, 0.9, 1.0])
    pairs1 = {tuple(p) for p in p1.genes.reshape(-1, 2)}
    pairs2 = {tuple(p) for p in p2.genes.reshape(-1, 2)}
    for _ in range(50):
        c1, c2 = half_tide_crossover(p1, p2, 1.0, rng)
        for child in (c1, c2):
            for pair in child.genes.reshape(-1, 2):
                assert tuple(pair) in pairs1 | pairs2


def test_uniform_crossover_preserves_gene_multiset(rng):
    p1 = Individual.from_genes([1.0, 2.0, 3.0, 4.0])
    p2 = Individual.from_genes([0.5, 0.6, 0.7, 0.8])
    c1, c2 = uniform_crossover(p1, p2, 1.0, rng)
    for i in range(4):
        assert sorted([c1.genes[i], c2.genes[i]]) == sorted([p1.genes[i], p2.genes[i]])


def test_mutations_stay_in_bounds(rng):
    ind = Individual.from_genes([MIN_HEAD, MAX_HEAD] * 4)
    for _ in range(1000):
        assert _in_bounds(gaussian_mutation(ind, 1.0, rng, sigma=2.0))
        assert _in_bounds(operational_mutation(ind, 1.0, rng))


def test_zero_mutation_probability_is_identity(rng):
    ind = Individual.from_genes([1.0, 2.0, 3.0, 4.0])
    for op in (polynomial_mutation, gaussian_mutation, operational_mutation):
        assert op(ind, 0.0, rng).same_genes(ind)


@pytest.mark.parametrize("crossover", ["SBX", "uniform", "HalfTide"])
@pytest.mark.parametrize("mutation", ["POLYNOMIAL", "gaussian", "OPERATIONAL"])
def test_create_offspring_counts_and_bounds(crossover, mutation, rng):
    parents = [Individual.from_genes(rng.uniform(MIN_HEAD, MAX_HEAD, size=6)) for _ in range(8)]
    offspring = create_offspring(parents, 0.9, 0.2, crossover, mutation, rng)
    assert len(offspring) == 8
    assert all(_in_bounds(child) for child in offspring)
    assert all(child.rank == -1 for child in offspring)


def test_create_offspring_preconditions(rng):
    parents = [Individual.from_genes([1.0, 2.0]) for _ in range(3)]
    with pytest.raises(ValueError):
        create_offspring(parents, 0.9, 0.1, "SBX", "GAUSSIAN", rng)
    with pytest.raises(ValueError):
        create_offspring([], 0.9, 0.1, "SBX", "GAUSSIAN", rng)
    with pytest.raises(ValueError):
        create_offspring(parents[:2], 1.5, 0.1, "SBX", "GAUSSIAN", rng)
    with pytest.raises(ValueError):
        create_offspring(parents[:2], 0.9, -0.1, "SBX", "GAUSSIAN", rng)


def test_unknown_operator_names_fail_fast(rng):
    parents = [Individual.from_genes([1.0, 2.0]) for _ in range(2)]
    with pytest.raises(UnknownOperatorError):
        create_offspring(parents, 0.9, 0.1, "ONEPOINT", "GAUSSIAN", rng)
    with pytest.raises(UnknownOperatorError):
        create_offspring(parents, 0.9, 0.1, "SBX", "FLIP", rng)


def test_repair_and_statistics():
    ind = Individual.from_genes([0.0, 9.0])
    repaired = repair_constraints(ind)
    assert list(repaired.genes) == [MIN_HEAD, MAX_HEAD]
    assert not validate_constraints(ind)
    assert validate_constraints(repaired)
    assert repair_constraints(repaired) is repaired
    stats = operator_statistics([repaired])
    assert stats.min_value == MIN_HEAD
    assert stats.max_value == MAX_HEAD
    assert stats.has_good_diversity()
    assert not operator_statistics([Individual.from_genes([2.0, 2.0])]).has_good_diversity()
    assert mutation_probability_for(8) == pytest.approx(0.125)
    with pytest.raises(ValueError):
        mutation_probability_for(0)
    assert tidal_mutation_probability(4) == pytest.approx(0.2)
    assert tidal_mutation_probability(100) == pytest.approx(0.02)
