import math

import numpy as np
import pytest

from lagoon_opt.evolution.crowding import calculate_crowding_distance
from lagoon_opt.evolution.dominance import fast_non_dominated_sort
from lagoon_opt.evolution.population import Population
from lagoon_opt.evolution.selection import (
    combine_populations,
    select_next_generation,
    select_parents,
    selection_stats,
    tournament_selection,
    validate_selection,
)


def _trade_off_front(make_individual, n):
    return [make_individual(100.0 + 10.0 * i, 10.0 + 5.0 * i) for i in range(n)]


def test_population_within_target_returned_unchanged(make_individual):
    members = _trade_off_front(make_individual, 3)
    pop = Population.from_individuals(members)
    selected = select_next_generation(pop, 5)
    assert selected == members


def test_non_positive_target_selects_nothing(make_individual):
    pop = Population.from_individuals(_trade_off_front(make_individual, 3))
    assert select_next_generation(pop, 0) == []


def test_target_smaller_than_first_front_uses_crowding(make_individual):
    front = _trade_off_front(make_individual, 6)
    pop = Population.from_individuals(front)
    selected = select_next_generation(pop, 3)
    assert len(selected) == 3
    assert all(ind.rank == 0 for ind in selected)
    distances = [ind.crowding_distance for ind in selected]
    assert distances == sorted(distances, reverse=True)
    energies = {ind.energy_output for ind in selected}
    assert {100.0, 150.0} <= energies


def test_whole_fronts_kept_before_partial_front(make_individual):
    first = _trade_off_front(make_individual, 2)
    # a trade-off among themselves, each dominated by first[0]
    second = [make_individual(90.0 - i, 20.0 - i) for i in range(4)]
    pop = Population.from_individuals(second + first)
    selected = select_next_generation(pop, 4)
    assert len(selected) == 4
    assert all(ind in selected for ind in first)
    assert sum(1 for ind in selected if ind.rank == 1) == 2


def test_combine_populations_size_and_identity(make_individual):
    p = Population.from_individuals(_trade_off_front(make_individual, 3))
    q = Population.from_individuals(_trade_off_front(make_individual, 2))
    combined = combine_populations(p, q)
    assert len(combined) == 5
    ids = {id(ind) for ind in combined}
    assert not ids & {id(ind) for ind in p}
    assert not ids & {id(ind) for ind in q}


def test_combine_none_raises(make_individual):
    with pytest.raises(ValueError):
        combine_populations(None, Population(1))


def test_tournament_returns_clones_and_prefers_better_rank(make_individual, rng):
    good = make_individual(200.0, 10.0)
    bad = make_individual(100.0, 50.0)
    pop = Population.from_individuals([good, bad])
    fast_non_dominated_sort(pop)
    calculate_crowding_distance([good])
    calculate_crowding_distance([bad])
    winners = tournament_selection(pop, 2, 200, rng)
    assert len(winners) == 200
    assert all(w is not good and w is not bad for w in winners)
    won_by_good = sum(1 for w in winners if w.energy_output == 200.0)
    # bad wins only when both draws pick it (probability 1/4)
    assert won_by_good > 100


def test_select_parents_binary_tournament(make_individual, rng):
    pop = Population.from_individuals(_trade_off_front(make_individual, 4))
    parents = select_parents(pop, 6, rng)
    assert len(parents) == 6


def test_tournament_on_empty_population_raises(rng):
    with pytest.raises(ValueError):
        tournament_selection(Population(0), 2, 1, rng)


def test_selection_stats_has_no_side_effects(make_individual):
    members = _trade_off_front(make_individual, 4)
    for ind in members:
        ind.rank = 7
        ind.crowding_distance = 0.25
    pop = Population.from_individuals(members)
    stats = selection_stats(pop)
    assert stats.total_individuals == 4
    assert stats.pareto_front_size == 4
    assert stats.infinite_distance_count == 2
    assert stats.diversity_ratio == pytest.approx(0.5)
    assert stats.convergence_ratio == 0.0
    assert all(ind.rank == 7 and ind.crowding_distance == 0.25 for ind in members)


def test_validate_selection(make_individual):
    before = Population.from_individuals(_trade_off_front(make_individual, 3))
    after = Population.from_individuals([before[0].clone()])
    assert validate_selection(before, after)
    stranger = make_individual(1.0, 1.0, head=3.3)
    assert not validate_selection(before, Population.from_individuals([stranger]))
