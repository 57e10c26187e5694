import pytest

from lagoon_opt.evolution.crowding import crowded_compare
from lagoon_opt.evolution.individual import INVALID_COST
from lagoon_opt.evolution.population import Population
from lagoon_opt.exceptions import PopulationFullError


def test_add_beyond_capacity_raises(make_individual):
    pop = Population(2)
    pop.add(make_individual(1.0, 1.0))
    pop.add(make_individual(2.0, 2.0))
    with pytest.raises(PopulationFullError):
        pop.add(make_individual(3.0, 3.0))


def test_add_none_raises():
    with pytest.raises(ValueError):
        Population(1).add(None)


def test_get_out_of_range_raises(make_individual):
    pop = Population.from_individuals([make_individual(1.0, 1.0)])
    with pytest.raises(IndexError):
        pop.get(1)


def test_remove_by_identity(make_individual):
    a = make_individual(1.0, 1.0)
    pop = Population.from_individuals([a])
    assert not pop.remove(a.clone())
    assert pop.remove(a)
    assert pop.is_empty()


def test_combine_sizes_and_clones(make_individual):
    p = Population.from_individuals([make_individual(1.0, 1.0), make_individual(2.0, 2.0)])
    q = Population.from_individuals([make_individual(3.0, 3.0)])
    combined = p.combine(q)
    assert len(combined) == 3
    assert combined.max_size == 3
    originals = {id(ind) for ind in p} | {id(ind) for ind in q}
    assert not originals & {id(ind) for ind in combined}


def test_initialise_random_fills_to_capacity(rng):
    pop = Population(10)
    pop.initialise_random(4, rng)
    assert len(pop) == 10
    assert all(ind.is_within_bounds() for ind in pop)


def test_statistics_exclude_invalid_costs(make_individual):
    pop = Population.from_individuals(
        [make_individual(100.0, 20.0), make_individual(50.0, 40.0), make_individual(0.0, INVALID_COST)]
    )
    stats = pop.statistics()
    assert stats.size == 3
    assert stats.max_energy == 100.0
    assert stats.min_energy == 0.0
    assert stats.min_cost == 20.0
    assert stats.max_cost == 40.0
    assert stats.avg_cost == pytest.approx(30.0)


def test_statistics_all_invalid_reports_sentinel(make_individual):
    pop = Population.from_individuals([make_individual(0.0, INVALID_COST)] * 2)
    stats = pop.statistics()
    assert stats.min_cost == INVALID_COST
    assert stats.avg_cost == INVALID_COST


def test_sort_with_crowded_comparator(make_individual):
    a, b, c = make_individual(1.0, 1.0), make_individual(2.0, 2.0), make_individual(3.0, 3.0)
    a.rank, b.rank, c.rank = 2, 0, 1
    pop = Population.from_individuals([a, b, c])
    pop.sort(crowded_compare)
    assert [ind.rank for ind in pop] == [0, 1, 2]


def test_best_by_energy_and_cost(make_individual):
    pop = Population.from_individuals(
        [
            make_individual(50.0, 30.0),
            make_individual(90.0, INVALID_COST),
            make_individual(70.0, 10.0),
        ]
    )
    assert [ind.energy_output for ind in pop.best_by_energy(2)] == [90.0, 70.0]
    assert [ind.unit_cost for ind in pop.best_by_cost(5)] == [10.0, 30.0]
