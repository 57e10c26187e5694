"""
Load saved population/pareto CSVs from one or more runs; compute the nondominated set
per input and write or print it.
"""
import os
import sys
import argparse
import math

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)

import pandas as pd
from pathlib import Path

from lagoon_opt.analysis.metrics import hypervolume, spacing
from lagoon_opt.evolution.dominance import get_pareto_front
from lagoon_opt.evolution.individual import Individual

ENERGY_COL = "energy_output"
COST_COL = "unit_cost"


def frame_to_individuals(df: pd.DataFrame) -> list:
    """One Individual per row; genes come from the Hs_i/He_i columns, objectives from the named columns."""
    gene_cols = sorted(
        [c for c in df.columns if c[:3] in ("Hs_", "He_")],
        key=lambda c: (int(c[3:]), c[:2] == "He"),
    )
    individuals = []
    for _, row in df.iterrows():
        genes = [float(row[c]) for c in gene_cols] if gene_cols else [0.0, 0.0]
        ind = Individual.from_genes(genes)
        cost = float(row[COST_COL])
        ind.set_objectives(float(row[ENERGY_COL]), math.inf if math.isnan(cost) else cost)
        individuals.append(ind)
    return individuals


def nondominated_set(df: pd.DataFrame) -> pd.DataFrame:
    """Rows of df that no other row dominates (energy maximised, cost minimised, inf cost invalid)."""
    members = frame_to_individuals(df)
    front = {id(ind) for ind in get_pareto_front(members)}
    keep = [i for i, ind in enumerate(members) if id(ind) in front]
    return df.iloc[keep]


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("input", nargs="+", help="population.csv or run dirs")
    parser.add_argument("--output", type=str, default=None)
    args = parser.parse_args()

    all_dfs = []
    for path in args.input:
        p = Path(path)
        if p.is_dir():
            csv_path = p / "population.csv"
            if not csv_path.exists():
                csv_path = p / "pareto.csv"
            path = str(csv_path)
        if not os.path.isfile(path):
            print(f"Skip {path}")
            continue
        df = pd.read_csv(path)
        if ENERGY_COL not in df.columns or COST_COL not in df.columns:
            print(f"Skip {path}: missing {ENERGY_COL}/{COST_COL} columns")
            continue
        nd = nondominated_set(df).copy()
        front = frame_to_individuals(nd)
        print(f"{path}: {len(nd)}/{len(df)} nondominated, HV={hypervolume(front):.3e}, spacing={spacing(front):.3f}")
        nd["source"] = path
        all_dfs.append(nd)
    if not all_dfs:
        print("No data")
        return
    out = pd.concat(all_dfs, ignore_index=True)
    if args.output:
        out.to_csv(args.output, index=False)
        print(f"Wrote {args.output}")
    else:
        print(out.to_string())


if __name__ == "__main__":
    main()
