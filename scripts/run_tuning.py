"""
Run one NSGA-II configuration several times with consecutive seeds, on one tide dataset or
on two for a robustness check. Saves config.json, trials.csv, summary.csv, describe.csv and
metrics.json into a timestamped run directory.
"""
import os
import sys
import argparse
import logging
from dataclasses import replace

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)

import pandas as pd

from lagoon_opt.analysis.tuning import compare_robustness, run_trials, summarise_trials, trials_frame
from lagoon_opt.evolution.config import CONFIG_FACTORIES
from lagoon_opt.simulation.scenarios import get_scenario
from lagoon_opt.utils.config import make_run_dir, save_config
from lagoon_opt.utils.logging import configure_logging, save_metrics
from lagoon_opt.utils.seeding import set_seed
from lagoon_opt.utils.tide_data import read_tide_heights, synthetic_tide


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--scenario", choices=sorted(CONFIG_FACTORIES), default="test")
    parser.add_argument(
        "--tide-file", action="append", default=[], help="BODC file; give twice to compare datasets"
    )
    parser.add_argument("--labels", nargs="+", default=None, help="dataset names, one per tide file")
    parser.add_argument("--runs", type=int, default=5)
    parser.add_argument("--seed", type=int, default=0, help="seed of the first run; run i uses seed + i")
    parser.add_argument("--pop-size", type=int, default=None)
    parser.add_argument("--generations", type=int, default=None)
    parser.add_argument("--crossover", choices=["SBX", "UNIFORM", "HALFTIDE"], default=None)
    parser.add_argument("--mutation", choices=["POLYNOMIAL", "GAUSSIAN", "OPERATIONAL"], default=None)
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("--results-dir", type=str, default="results")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    if len(args.tide_file) > 2:
        parser.error("at most two --tide-file datasets can be compared")
    labels = args.labels or [os.path.splitext(os.path.basename(p))[0] for p in args.tide_file] or ["synthetic"]
    if args.tide_file and len(labels) != len(args.tide_file):
        parser.error("--labels needs one name per --tide-file")

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    set_seed(args.seed)

    config = CONFIG_FACTORIES[args.scenario]()
    if args.pop_size is not None:
        config = config.with_population_size(args.pop_size)
    if args.generations is not None:
        config = replace(config, max_generations=args.generations)
    if args.crossover or args.mutation:
        config = config.with_operators(args.crossover or config.crossover_type, args.mutation or config.mutation_type)
    config = replace(config, n_workers=args.workers)

    scenario = get_scenario(args.scenario)
    if args.tide_file:
        tides = [read_tide_heights(p)[: scenario.readings_needed] for p in args.tide_file]
    else:
        tides = [synthetic_tide(scenario.readings_needed, scenario.time_step_hours)]

    run_dir = make_run_dir(args.results_dir, prefix=f"tuning_{args.scenario}")
    save_config({"args": vars(args), "nsga2": config.to_dict()}, os.path.join(run_dir, "config.json"))

    records = []
    for label, tide in zip(labels, tides):
        records.extend(run_trials(config, tide, args.runs, base_seed=args.seed, dataset=label))

    frame = trials_frame(records)
    summary = summarise_trials(frame)
    frame.to_csv(os.path.join(run_dir, "trials.csv"), index=False)
    summary.to_csv(os.path.join(run_dir, "summary.csv"))
    frame.groupby("dataset")[["max_energy_mwh", "min_unit_cost", "pareto_size", "hypervolume"]].describe().to_csv(
        os.path.join(run_dir, "describe.csv")
    )

    metrics = {"config": str(config), "runs": args.runs, "datasets": summary.reset_index().to_dict(orient="records")}
    if len(labels) == 2:
        difference, grade = compare_robustness(summary, labels[0], labels[1])
        metrics["energy_difference_pct"] = difference
        metrics["robustness"] = grade
    save_metrics(metrics, os.path.join(run_dir, "metrics.json"))

    with pd.option_context("display.width", 160, "display.max_columns", None):
        print(summary[["max_energy_mwh_mean", "max_energy_mwh_std", "min_unit_cost_mean",
                       "hypervolume_mean", "execution_time_seconds_mean", "converged_fraction"]])
    if "robustness" in metrics:
        print(f"{labels[0]} vs {labels[1]}: {metrics['energy_difference_pct']:+.1f}% ({metrics['robustness']})")
    print(f"Results in {run_dir}")


if __name__ == "__main__":
    main()
