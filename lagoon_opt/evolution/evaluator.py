"""
Objective evaluation: obj1 = energy output over the tide window (MWh, maximised),
obj2 = capital cost per MWh generated (GBP/MWh, minimised; INVALID_COST when nothing is
generated). Populations are evaluated serially or fanned out over a process pool and
joined in order before returning.
"""
from __future__ import annotations
from concurrent.futures import ProcessPoolExecutor
from itertools import repeat
from typing import Callable, List, Sequence, Tuple
import logging
import math

from lagoon_opt.evolution.individual import INVALID_COST, Individual
from lagoon_opt.simulation.lagoon import SWANSEA_BAY, Lagoon
from lagoon_opt.simulation.tidal_simulator import simulate

logger = logging.getLogger(__name__)

Evaluator = Callable[[Sequence[float], Individual], Tuple[float, float]]


def unit_cost(energy_mwh: float, lagoon: Lagoon = SWANSEA_BAY) -> float:
    """Capital cost divided by energy generated; INVALID_COST when energy <= 0."""
    if energy_mwh <= 0:
        return INVALID_COST
    return lagoon.total_capital_cost_gbp / energy_mwh


def evaluate_individual(tide_heights: Sequence[float], ind: Individual) -> Tuple[float, float]:
    """Return (energy_output, unit_cost) for one individual on the Swansea Bay lagoon."""
    energy = simulate(tide_heights, ind, SWANSEA_BAY)
    return energy, unit_cost(energy, SWANSEA_BAY)


def _checked(result: Tuple[float, float], index: int) -> Tuple[float, float]:
    energy, cost = float(result[0]), float(result[1])
    if not math.isfinite(energy):
        raise ValueError(
            "evaluate_population: non-finite energy output {} at index {} "
            "(check the evaluator and tide series)".format(energy, index)
        )
    if math.isnan(cost) or (math.isinf(cost) and cost != INVALID_COST):
        raise ValueError(
            "evaluate_population: invalid unit cost {} at index {} "
            "(use INVALID_COST for individuals that generate nothing)".format(cost, index)
        )
    return energy, cost


def evaluate_population(
    individuals: Sequence[Individual],
    tide_heights: Sequence[float],
    evaluator: Evaluator = evaluate_individual,
    n_workers: int = 1,
) -> int:
    """
    Evaluate every individual and store its objectives. With n_workers > 1 the evaluator
    (which must be picklable) runs in a process pool; results are assigned in input order.
    Returns the number of individuals evaluated.
    """
    members = list(individuals)
    if not members:
        return 0
    tide = list(tide_heights)
    if n_workers > 1 and len(members) > 1:
        chunk = max(1, math.ceil(len(members) / (n_workers * 4)))
        with ProcessPoolExecutor(max_workers=n_workers) as ex:
            results: List[Tuple[float, float]] = list(
                ex.map(evaluator, repeat(tide), members, chunksize=chunk)
            )
    else:
        results = [evaluator(tide, ind) for ind in members]

    for i, (ind, result) in enumerate(zip(members, results)):
        ind.set_objectives(*_checked(result, i))
    logger.debug("Evaluated %d individuals with %d worker(s)", len(members), max(1, n_workers))
    return len(members)
