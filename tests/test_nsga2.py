import numpy as np
import pytest

from lagoon_opt.evolution.config import NSGA2Config
from lagoon_opt.evolution.nsga2 import AlgorithmState, NSGA2Algorithm
from lagoon_opt.utils.tide_data import synthetic_tide

TIDE = [5.0] * 96


def analytic_evaluator(tide, ind):
    """Energy grows with start heads; cost grows with start heads and falls with end heads."""
    hs = ind.genes[0::2].sum()
    he = ind.genes[1::2].sum()
    return float(hs * 10.0), float(100.0 + hs - he)


def _config(**overrides):
    params = dict(
        population_size=20,
        max_generations=5,
        half_tides=4,
        mutation_probability=0.125,
        stagnation_generations=50,
        random_seed=7,
    )
    params.update(overrides)
    return NSGA2Config(**params)


def _run(cfg, **kwargs):
    return NSGA2Algorithm(cfg, TIDE, evaluator=analytic_evaluator).optimise(**kwargs)


def test_runs_to_max_generations():
    result = _run(_config())
    assert result.state is AlgorithmState.MAX_GENERATIONS_REACHED
    assert result.generations_run == 5
    assert [s.generation for s in result.history] == [0, 1, 2, 3, 4, 5]
    assert len(result.final_population) == 20
    assert all(ind.is_within_bounds() for ind in result.final_population)
    assert not result.converged
    assert result.execution_time_seconds >= 0.0


def test_pareto_front_is_non_dominated_rank_zero():
    result = _run(_config())
    front = result.pareto_front()
    assert front
    assert all(ind.rank == 0 for ind in front)
    energies = [ind.energy_output for ind in front]
    assert max(energies) >= result.history[0].population_stats.max_energy


def test_result_is_detached_from_the_algorithm():
    algorithm = NSGA2Algorithm(_config(), TIDE, evaluator=analytic_evaluator)
    result = algorithm.optimise()
    assert result.final_population is not algorithm.population
    live = {id(ind) for ind in algorithm.population}
    assert not any(id(ind) in live for ind in result.final_population)
    for ind in result.final_population:
        ind.rank = 99
    front = result.pareto_front()
    assert front and all(ind.rank == 0 for ind in front)
    assert all(ind.rank == 99 for ind in result.final_population)


def test_history_rows_carry_selection_ratios():
    result = _run(_config())
    row = result.history[-1].to_dict()
    assert 0.0 < row["diversity_ratio"] <= 1.0
    assert row["convergence_ratio"] == pytest.approx(row["average_rank"] / 20)


def test_best_energy_is_never_lost():
    result = _run(_config(max_generations=8))
    best = [s.population_stats.max_energy for s in result.history]
    assert all(later >= earlier for earlier, later in zip(best, best[1:]))


def test_same_seed_reproduces_run():
    a = _run(_config())
    b = _run(_config())
    assert [i.objectives for i in a.final_population] == [i.objectives for i in b.final_population]


def test_convergence_stops_early():
    result = _run(_config(stagnation_generations=2, convergence_threshold=1e9, max_generations=50))
    assert result.state is AlgorithmState.CONVERGED
    assert result.converged
    assert result.generations_run == 1
    assert result.convergence.convergence_generation == 1


def test_stop_callback_cancels_at_generation_boundary():
    calls = []

    def stop_after_two():
        calls.append(1)
        return len(calls) > 2

    result = _run(_config(max_generations=50), should_stop=stop_after_two)
    assert result.state is AlgorithmState.CANCELLED
    assert result.generations_run == 2


def test_time_limit_cancels():
    result = _run(_config(max_generations=50, time_limit_seconds=1e-9))
    assert result.state is AlgorithmState.CANCELLED
    assert result.generations_run == 0
    assert "Time limit" in result.termination_reason


def test_current_state_and_single_use():
    algorithm = NSGA2Algorithm(_config(), TIDE, evaluator=analytic_evaluator)
    assert algorithm.current_state().state is AlgorithmState.UNINITIALISED
    algorithm.optimise()
    state = algorithm.current_state()
    assert state.progress == pytest.approx(1.0)
    assert state.population is not algorithm.population
    with pytest.raises(RuntimeError):
        algorithm.optimise()


def test_rejects_missing_inputs():
    with pytest.raises(ValueError):
        NSGA2Algorithm(None, TIDE)
    with pytest.raises(ValueError):
        NSGA2Algorithm(_config(), [])


@pytest.mark.parametrize("crossover,mutation", [("HALFTIDE", "OPERATIONAL"), ("UNIFORM", "POLYNOMIAL")])
def test_default_evaluator_end_to_end(crossover, mutation):
    cfg = _config(population_size=8, max_generations=2).with_operators(crossover, mutation)
    result = NSGA2Algorithm(cfg, synthetic_tide(96), rng=np.random.default_rng(3)).optimise()
    assert result.generations_run == 2
    assert any(ind.has_valid_cost for ind in result.final_population)
