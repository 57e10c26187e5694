import math

import pytest

from lagoon_opt.evolution.convergence import ConvergenceTracker, front_metrics, relative_change


def _front(make_individual, energies):
    return [make_individual(e, 10.0 + i) for i, e in enumerate(energies)]


def test_relative_change_never_nan():
    assert relative_change(110.0, 100.0) == pytest.approx(0.1)
    assert relative_change(0.0, 0.0) == 0.0
    assert relative_change(5.0, 0.0) == math.inf
    assert relative_change(-5.0, 0.0) == -math.inf


def test_front_metrics_spreads(make_individual):
    m = front_metrics(3, _front(make_individual, [100.0, 50.0]), 1.0)
    assert m.generation == 3
    assert m.pareto_size == 2
    assert m.max_energy == 100.0
    assert m.energy_spread == pytest.approx(0.5)
    assert m.min_cost == 10.0


def test_no_check_before_window_is_filled(make_individual):
    tracker = ConvergenceTracker(stagnation_window=3, improvement_threshold=0.01)
    front = _front(make_individual, [100.0, 50.0])
    assert not tracker.record_generation(0, front, 100.0)
    assert not tracker.record_generation(1, front, 100.0)
    assert tracker.record_generation(2, front, 100.0)
    assert tracker.convergence_generation == 2
    assert tracker.reason.startswith("Hypervolume")


def test_converged_latches(make_individual):
    tracker = ConvergenceTracker(stagnation_window=2, improvement_threshold=0.01)
    front = _front(make_individual, [100.0, 50.0])
    tracker.record_generation(0, front, 100.0)
    assert tracker.record_generation(1, front, 100.0)
    # a large later improvement does not undo convergence
    assert tracker.record_generation(2, _front(make_individual, [500.0, 50.0]), 1e6)
    assert tracker.converged
    assert tracker.convergence_generation == 1


def test_improving_run_does_not_converge(make_individual):
    tracker = ConvergenceTracker(stagnation_window=2, improvement_threshold=0.01)
    for gen in range(5):
        scale = 2.0 ** gen
        tracker.record_generation(gen, _front(make_individual, [100.0 * scale, 50.0 * scale]), 100.0 * scale)
    assert not tracker.converged
    assert tracker.summary().reason == "Not converged"


def test_energy_stagnation_detected(make_individual):
    tracker = ConvergenceTracker(stagnation_window=2, improvement_threshold=0.01)
    front = _front(make_individual, [100.0, 50.0])
    tracker.record_generation(0, front, 100.0)
    tracker.record_generation(1, front, 200.0)
    assert tracker.converged
    assert tracker.reason.startswith("Energy")


def test_diversity_stagnation_detected(make_individual):
    tracker = ConvergenceTracker(stagnation_window=2, improvement_threshold=0.01)
    tracker.record_generation(0, _front(make_individual, [100.0, 100.0]), 100.0)
    tracker.record_generation(1, _front(make_individual, [200.0, 200.0]), 200.0)
    assert tracker.converged
    assert tracker.reason.startswith("Diversity")


def test_summary_without_history():
    summary = ConvergenceTracker(5, 0.01).summary()
    assert not summary.converged
    assert summary.first_generation is None


def test_invalid_arguments():
    with pytest.raises(ValueError):
        ConvergenceTracker(0, 0.01)
    with pytest.raises(ValueError):
        ConvergenceTracker(3, -1.0)
