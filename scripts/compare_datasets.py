"""
Compare two BODC tide datasets: descriptive statistics and baseline energy of fixed-head
strategies on each. Prints both tables; with --results-dir also writes them as CSV.
"""
import os
import sys
import argparse
import logging

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)

import pandas as pd

from lagoon_opt.analysis.tide_comparison import FIXED_HEADS, compare_baselines, compare_tide_statistics
from lagoon_opt.utils.config import make_run_dir
from lagoon_opt.utils.logging import configure_logging
from lagoon_opt.utils.tide_data import read_tide_heights


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("first", type=str, help="BODC tide file")
    parser.add_argument("second", type=str, help="BODC tide file")
    parser.add_argument("--labels", nargs=2, default=None)
    parser.add_argument("--heads", type=float, nargs="+", default=list(FIXED_HEADS), help="fixed start heads (m)")
    parser.add_argument("--results-dir", type=str, default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    labels = tuple(args.labels or (os.path.splitext(os.path.basename(p))[0] for p in (args.first, args.second)))
    if labels[0] == labels[1]:
        parser.error("datasets need distinct labels; pass --labels")

    first = read_tide_heights(args.first)
    second = read_tide_heights(args.second)
    stats = compare_tide_statistics(first, second, labels)
    baselines = compare_baselines(first, second, labels, heads=args.heads)

    with pd.option_context("display.width", 160, "display.float_format", "{:.2f}".format):
        print(stats)
        print()
        print(baselines)

    if args.results_dir:
        run_dir = make_run_dir(args.results_dir, prefix="compare")
        stats.to_csv(os.path.join(run_dir, "tide_statistics.csv"))
        baselines.to_csv(os.path.join(run_dir, "baselines.csv"))
        print(f"Results in {run_dir}")


if __name__ == "__main__":
    main()
