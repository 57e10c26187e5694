"""
Repeated independent runs of one configuration on a tide series.

Each run reseeds the config (base_seed + run index), so a tuning batch is reproducible
as a whole. Per-run records are collected into a DataFrame; summaries report mean and
population standard deviation per dataset, and two datasets can be graded for robustness
by how far their mean best energies drift apart.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import numpy as np
import pandas as pd

from lagoon_opt.analysis.metrics import hypervolume
from lagoon_opt.evolution.config import NSGA2Config
from lagoon_opt.evolution.evaluator import Evaluator
from lagoon_opt.evolution.individual import INVALID_COST
from lagoon_opt.evolution.nsga2 import NSGA2Algorithm, OptimisationResult

logger = logging.getLogger(__name__)

EXCELLENT_ROBUSTNESS_PCT = 5.0
GOOD_ROBUSTNESS_PCT = 15.0

SUMMARY_COLUMNS = [
    "max_energy_mwh",
    "min_unit_cost",
    "pareto_size",
    "hypervolume",
    "generations",
    "execution_time_seconds",
]


@dataclass(frozen=True)
class TrialRecord:
    run: int
    dataset: str
    seed: Optional[int]
    max_energy_mwh: float
    min_unit_cost: float
    pareto_size: int
    hypervolume: float
    generations: int
    converged: bool
    execution_time_seconds: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def trial_record(run: int, dataset: str, config: NSGA2Config, result: OptimisationResult) -> TrialRecord:
    """Headline numbers of one finished run. min_unit_cost is INVALID_COST when nothing generated."""
    front = result.pareto_front()
    best = result.final_population.best_by_energy(1)
    cheapest = result.final_population.best_by_cost(1)
    return TrialRecord(
        run=run,
        dataset=dataset,
        seed=config.random_seed,
        max_energy_mwh=best[0].energy_output if best else 0.0,
        min_unit_cost=cheapest[0].unit_cost if cheapest else INVALID_COST,
        pareto_size=len(front),
        hypervolume=hypervolume(front),
        generations=result.generations_run,
        converged=result.converged,
        execution_time_seconds=result.execution_time_seconds,
    )


def run_trials(
    config: NSGA2Config,
    tide_heights: Sequence[float],
    n_runs: int,
    base_seed: int = 0,
    dataset: str = "",
    evaluator: Optional[Evaluator] = None,
) -> List[TrialRecord]:
    if n_runs < 1:
        raise ValueError(f"Number of runs must be at least 1, got {n_runs}")
    records = []
    for i in range(n_runs):
        run_config = config.with_seed(base_seed + i)
        result = NSGA2Algorithm(run_config, tide_heights, evaluator=evaluator).optimise()
        record = trial_record(i + 1, dataset, run_config, result)
        logger.info(
            "Run %d/%d on %s: energy=%.1f MWh, PF=%d, time=%.1f s",
            record.run,
            n_runs,
            dataset or "tide series",
            record.max_energy_mwh,
            record.pareto_size,
            record.execution_time_seconds,
        )
        records.append(record)
    return records


def trials_frame(records: Sequence[TrialRecord]) -> pd.DataFrame:
    return pd.DataFrame([r.to_dict() for r in records], columns=[f.name for f in fields(TrialRecord)])


def summarise_trials(frame: pd.DataFrame) -> pd.DataFrame:
    """
    One row per dataset: <metric>_mean and <metric>_std (ddof=0) for SUMMARY_COLUMNS, the
    fraction of converged runs and the run count. Runs without a valid cost are left out of
    the cost aggregates.
    """
    if frame.empty:
        raise ValueError("No trial records to summarise")
    metrics = frame[SUMMARY_COLUMNS].astype(np.float64).replace(INVALID_COST, np.nan)
    metrics["dataset"] = frame["dataset"]
    grouped = metrics.groupby("dataset", sort=False)
    summary = pd.concat(
        [grouped.mean().add_suffix("_mean"), grouped.std(ddof=0).add_suffix("_std")],
        axis=1,
    )
    by_dataset = frame.groupby("dataset", sort=False)
    summary["converged_fraction"] = by_dataset["converged"].mean()
    summary["runs"] = by_dataset.size()
    return summary


def energy_difference_pct(first_mean: float, second_mean: float) -> float:
    """Relative drift of first from second, in percent of second."""
    if second_mean == 0:
        raise ValueError("Cannot compare against a dataset with zero mean energy")
    return (first_mean - second_mean) / second_mean * 100.0


def robustness_grade(difference_pct: float) -> str:
    drift = abs(difference_pct)
    if drift <= EXCELLENT_ROBUSTNESS_PCT:
        return "excellent"
    if drift <= GOOD_ROBUSTNESS_PCT:
        return "good"
    return "investigate"


def compare_robustness(summary: pd.DataFrame, first: str, second: str) -> Tuple[float, str]:
    """(percent difference of mean best energy, grade) between two summarised datasets."""
    for name in (first, second):
        if name not in summary.index:
            raise KeyError(f"Dataset {name!r} not in summary; have {list(summary.index)}")
    difference = energy_difference_pct(
        summary.loc[first, "max_energy_mwh_mean"], summary.loc[second, "max_energy_mwh_mean"]
    )
    return difference, robustness_grade(difference)
