import logging
import math

import numpy as np
import pytest

from lagoon_opt.analysis.tide_comparison import (
    EXPECTED_READINGS_PER_YEAR,
    baseline_half_tides,
    compare_baselines,
    compare_tide_statistics,
    fixed_head_energy,
    fixed_head_individual,
    grid_search_energy,
    tide_statistics,
)
from lagoon_opt.evolution.individual import MAX_HEAD, MIN_HEAD
from lagoon_opt.utils.tide_data import synthetic_tide


def mean_level_evaluator(tide, ind):
    return float(np.mean(tide)) * float(ind.genes[0]), 1.0


def test_tide_statistics():
    stats = tide_statistics([1.0, 2.0, 3.0])
    assert stats["readings"] == 3
    assert stats["mean_m"] == pytest.approx(2.0)
    assert stats["range_m"] == pytest.approx(2.0)
    assert stats["std_m"] == pytest.approx(math.sqrt(2.0 / 3.0))
    assert stats["missing_readings"] == EXPECTED_READINGS_PER_YEAR - 3
    with pytest.raises(ValueError):
        tide_statistics([])


def test_identical_series_show_no_difference():
    tide = synthetic_tide(200)
    frame = compare_tide_statistics(tide, tide, ("2011", "2012"))
    assert list(frame.columns) == ["2011", "2012", "abs_diff", "pct_diff"]
    assert frame.loc["mean_m", "pct_diff"] == pytest.approx(0.0)
    assert frame.loc["readings", "2011"] == 200


def test_baseline_window_is_capped():
    assert baseline_half_tides(24 * 40) == 28
    assert baseline_half_tides(48) == 2
    with pytest.raises(ValueError):
        baseline_half_tides(10)


def test_fixed_heads_are_clamped_into_bounds():
    ind = fixed_head_individual(2, 5.0, 0.1)
    assert list(ind.genes) == [MAX_HEAD, MIN_HEAD, MAX_HEAD, MIN_HEAD]


def test_fixed_head_strategy_lowers_the_end_head():
    seen = []

    def recording_evaluator(tide, ind):
        seen.append(ind)
        return 1.0, 1.0

    fixed_head_energy([5.0] * 96, 2.0, evaluator=recording_evaluator)
    (ind,) = seen
    assert ind.n_half_tides == 4
    assert list(ind.genes[0::2]) == [2.0] * 4
    assert list(ind.genes[1::2]) == pytest.approx([1.6] * 4)


def test_grid_search_keeps_the_best_pair():
    def evaluator(tide, ind):
        return float(ind.genes[0] * 10.0 + ind.genes[1]), 1.0

    assert grid_search_energy([5.0] * 48, evaluator=evaluator) == pytest.approx(38.5)


def test_grid_search_generates_on_a_synthetic_tide():
    assert grid_search_energy(synthetic_tide(24 * 8)) > 0.0


def test_baselines_flag_large_energy_gaps(caplog):
    with caplog.at_level(logging.WARNING):
        frame = compare_baselines([2.0] * 96, [1.0] * 96, ("high", "low"), evaluator=mean_level_evaluator)
    assert list(frame.index) == [
        "fixed_head_1.5m",
        "fixed_head_2m",
        "fixed_head_2.5m",
        "fixed_head_3m",
        "grid_search",
    ]
    assert frame.loc["fixed_head_2m", "high"] == pytest.approx(4.0)
    assert np.allclose(frame["pct_diff"], 100.0)
    assert "Baseline energy differs" in caplog.text
