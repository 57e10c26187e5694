"""
Run NSGA-II for one tide scenario. Saves config.json, population.csv, pareto.csv,
history.csv and metrics.json into a timestamped run directory.
"""
import os
import sys
import argparse
import logging
from dataclasses import replace

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)

import pandas as pd

from lagoon_opt.evolution.config import CONFIG_FACTORIES
from lagoon_opt.evolution.nsga2 import NSGA2Algorithm
from lagoon_opt.simulation.scenarios import get_scenario
from lagoon_opt.utils.config import make_run_dir, save_config
from lagoon_opt.utils.logging import configure_logging, save_metrics
from lagoon_opt.utils.seeding import get_rng, set_seed
from lagoon_opt.utils.tide_data import read_tide_heights, synthetic_tide


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--scenario", choices=sorted(CONFIG_FACTORIES), default="test")
    parser.add_argument("--tide-file", type=str, default=None, help="BODC file; synthetic M2+S2 tide if omitted")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--pop-size", type=int, default=None)
    parser.add_argument("--generations", type=int, default=None)
    parser.add_argument("--crossover", choices=["SBX", "UNIFORM", "HALFTIDE"], default=None)
    parser.add_argument("--mutation", choices=["POLYNOMIAL", "GAUSSIAN", "OPERATIONAL"], default=None)
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("--time-limit", type=float, default=None, help="wall-clock limit in seconds")
    parser.add_argument("--results-dir", type=str, default="results")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    set_seed(args.seed)

    config = CONFIG_FACTORIES[args.scenario](random_seed=args.seed)
    if args.pop_size is not None:
        config = config.with_population_size(args.pop_size)
    if args.generations is not None:
        config = replace(config, max_generations=args.generations)
    if args.crossover or args.mutation:
        config = config.with_operators(args.crossover or config.crossover_type, args.mutation or config.mutation_type)
    config = replace(config, n_workers=args.workers, time_limit_seconds=args.time_limit)

    scenario = get_scenario(args.scenario)
    if args.tide_file:
        tide = read_tide_heights(args.tide_file)[: scenario.readings_needed]
    else:
        tide = synthetic_tide(scenario.readings_needed, scenario.time_step_hours)

    run_dir = make_run_dir(args.results_dir, prefix=args.scenario)
    save_config({"args": vars(args), "nsga2": config.to_dict()}, os.path.join(run_dir, "config.json"))

    algorithm = NSGA2Algorithm(config, tide, rng=get_rng(args.seed))
    result = algorithm.optimise()

    pd.DataFrame([ind.to_dict() for ind in result.final_population]).to_csv(
        os.path.join(run_dir, "population.csv"), index=False
    )
    pareto = sorted(result.pareto_front(), key=lambda ind: ind.energy_output, reverse=True)
    pd.DataFrame([ind.to_dict() for ind in pareto]).to_csv(os.path.join(run_dir, "pareto.csv"), index=False)
    pd.DataFrame([s.to_dict() for s in result.history]).to_csv(os.path.join(run_dir, "history.csv"), index=False)

    summary = result.convergence
    best_energy = result.final_population.best_by_energy(1)
    cheapest = result.final_population.best_by_cost(1)
    save_metrics(
        {
            "best_energy_mwh": best_energy[0].energy_output,
            "min_unit_cost": cheapest[0].unit_cost if cheapest else None,
            "generations_run": result.generations_run,
            "execution_time_seconds": result.execution_time_seconds,
            "converged": result.converged,
            "convergence_generation": summary.convergence_generation,
            "termination": result.state.value,
            "termination_reason": result.termination_reason,
            "pareto_front_size": len(pareto),
            "final_hypervolume": result.history[-1].hypervolume,
            "final_spacing": result.history[-1].spacing,
        },
        os.path.join(run_dir, "metrics.json"),
    )
    print(result)
    print(f"Best energy: {best_energy[0]}")
    if cheapest:
        print(f"Cheapest:    {cheapest[0]}")
    print(f"Pareto front: {len(pareto)} solutions. Results in {run_dir}")


if __name__ == "__main__":
    main()
