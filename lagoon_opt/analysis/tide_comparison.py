"""
Side-by-side comparison of two tide series: descriptive statistics and the energy that
simple fixed-head strategies extract from each. Large gaps point at data quality problems
before any optimisation is run.
"""
from __future__ import annotations
from typing import Sequence, Tuple
import itertools
import logging
import numpy as np
import pandas as pd

from lagoon_opt.evolution.evaluator import Evaluator, evaluate_individual
from lagoon_opt.evolution.individual import Individual
from lagoon_opt.evolution.operators import repair_constraints
from lagoon_opt.simulation.scenarios import READINGS_PER_HALF_TIDE

logger = logging.getLogger(__name__)

# a year of 15-minute readings
EXPECTED_READINGS_PER_YEAR = 35_040
MAX_BASELINE_HALF_TIDES = 28
FIXED_HEADS = (1.5, 2.0, 2.5, 3.0)
END_HEAD_FACTOR = 0.8
GRID_HEADS = (1.5, 2.5, 3.5)
SIGNIFICANT_MEAN_SHIFT = 0.10
LARGE_ENERGY_SHIFT_PCT = 15.0


def tide_statistics(heights: Sequence[float]) -> pd.Series:
    values = np.asarray(heights, dtype=np.float64)
    if values.size == 0:
        raise ValueError("Tide series is empty")
    n = int(values.size)
    return pd.Series(
        {
            "readings": n,
            "mean_m": float(values.mean()),
            "max_m": float(values.max()),
            "min_m": float(values.min()),
            "range_m": float(values.max() - values.min()),
            "std_m": float(values.std()),
            "coverage_pct": min(100.0, n * 100.0 / EXPECTED_READINGS_PER_YEAR),
            "missing_readings": max(0, EXPECTED_READINGS_PER_YEAR - n),
        },
        dtype=np.float64,
    )


def _with_differences(frame: pd.DataFrame, first: str, second: str) -> pd.DataFrame:
    frame["abs_diff"] = (frame[first] - frame[second]).abs()
    with np.errstate(divide="ignore", invalid="ignore"):
        frame["pct_diff"] = (frame[first] - frame[second]) / frame[second] * 100.0
    return frame


def compare_tide_statistics(
    first: Sequence[float],
    second: Sequence[float],
    labels: Tuple[str, str] = ("first", "second"),
) -> pd.DataFrame:
    """One row per statistic, one column per dataset plus abs_diff and pct_diff (of the second)."""
    a, b = labels
    frame = pd.DataFrame({a: tide_statistics(first), b: tide_statistics(second)})
    frame = _with_differences(frame, a, b)
    mean_a, mean_b = frame.loc["mean_m", a], frame.loc["mean_m", b]
    shift = abs(mean_a - mean_b) / abs(mean_a) if mean_a else 0.0
    if shift > SIGNIFICANT_MEAN_SHIFT:
        logger.warning("Mean tide level differs by %.1f%% between %s and %s", shift * 100.0, a, b)
    return frame


def baseline_half_tides(n_readings: int) -> int:
    half_tides = min(MAX_BASELINE_HALF_TIDES, n_readings // READINGS_PER_HALF_TIDE)
    if half_tides < 1:
        raise ValueError(
            f"Need at least {READINGS_PER_HALF_TIDE} readings for a baseline, got {n_readings}"
        )
    return half_tides


def fixed_head_individual(n_half_tides: int, start_head: float, end_head: float) -> Individual:
    """The same (Hs, He) pair on every half-tide, clamped into the head bounds."""
    return repair_constraints(Individual.from_genes([start_head, end_head] * n_half_tides))


def fixed_head_energy(
    tide_heights: Sequence[float],
    head: float,
    end_head_factor: float = END_HEAD_FACTOR,
    evaluator: Evaluator = evaluate_individual,
) -> float:
    ind = fixed_head_individual(baseline_half_tides(len(tide_heights)), head, head * end_head_factor)
    energy, _ = evaluator(tide_heights, ind)
    return energy


def grid_search_energy(
    tide_heights: Sequence[float],
    heads: Sequence[float] = GRID_HEADS,
    evaluator: Evaluator = evaluate_individual,
) -> float:
    """Best energy over every (Hs, He) combination of heads held fixed across the window."""
    n_half_tides = baseline_half_tides(len(tide_heights))
    best = 0.0
    for hs, he in itertools.product(heads, repeat=2):
        energy, _ = evaluator(tide_heights, fixed_head_individual(n_half_tides, hs, he))
        best = max(best, energy)
    return best


def compare_baselines(
    first: Sequence[float],
    second: Sequence[float],
    labels: Tuple[str, str] = ("first", "second"),
    heads: Sequence[float] = FIXED_HEADS,
    evaluator: Evaluator = evaluate_individual,
) -> pd.DataFrame:
    """Energy (MWh) per baseline strategy on each dataset, with abs_diff and pct_diff."""
    a, b = labels
    rows = {}
    for head in heads:
        rows[f"fixed_head_{head:g}m"] = {
            a: fixed_head_energy(first, head, evaluator=evaluator),
            b: fixed_head_energy(second, head, evaluator=evaluator),
        }
    rows["grid_search"] = {
        a: grid_search_energy(first, evaluator=evaluator),
        b: grid_search_energy(second, evaluator=evaluator),
    }
    frame = _with_differences(pd.DataFrame.from_dict(rows, orient="index"), a, b)
    if (frame["pct_diff"].abs() > LARGE_ENERGY_SHIFT_PCT).any():
        logger.warning("Baseline energy differs by more than %.0f%% between %s and %s",
                       LARGE_ENERGY_SHIFT_PCT, a, b)
    return frame
