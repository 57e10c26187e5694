"""
Stagnation detection over per-generation Pareto-front snapshots.

Three criteria are checked in order against the snapshot stagnation_window entries back:
hypervolume, maximum energy, and front size together with energy spread. The first one
that fires latches convergence for the rest of the run.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging
import math

from lagoon_opt.evolution.individual import INVALID_COST, Individual

logger = logging.getLogger(__name__)

ENERGY_SPREAD_FLOOR = 1e-3


@dataclass(frozen=True)
class ConvergenceMetrics:
    generation: int
    pareto_size: int
    max_energy: float
    avg_energy: float
    hypervolume: float
    min_cost: float
    energy_spread: float
    cost_spread: float


@dataclass(frozen=True)
class ConvergenceSummary:
    converged: bool
    convergence_generation: int
    reason: str
    first_generation: Optional[ConvergenceMetrics]
    last_generation: Optional[ConvergenceMetrics]

    def __str__(self) -> str:
        if not self.converged:
            return f"Convergence: Not achieved - {self.reason}"
        energy_gain = self.last_generation.max_energy - self.first_generation.max_energy
        return "Convergence: Achieved at generation {} ({}); energy +{:.1f} MWh, PF {}->{} solutions".format(
            self.convergence_generation,
            self.reason,
            energy_gain,
            self.first_generation.pareto_size,
            self.last_generation.pareto_size,
        )


def relative_change(current: float, previous: float) -> float:
    """(current - previous) / |previous|; a zero baseline gives 0 (no change) or +/-inf."""
    delta = current - previous
    if previous == 0:
        if delta == 0:
            return 0.0
        return math.copysign(math.inf, delta)
    return delta / abs(previous)


def _spread(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    hi, lo = max(values), min(values)
    return (hi - lo) / max(hi, 1.0)


def front_metrics(generation: int, pareto_front: Sequence[Individual], hypervolume: float) -> ConvergenceMetrics:
    if not pareto_front:
        return ConvergenceMetrics(generation, 0, 0.0, 0.0, hypervolume, INVALID_COST, 0.0, 0.0)
    energies = [ind.energy_output for ind in pareto_front]
    costs = [ind.unit_cost for ind in pareto_front if ind.has_valid_cost]
    return ConvergenceMetrics(
        generation=generation,
        pareto_size=len(pareto_front),
        max_energy=max(energies),
        avg_energy=sum(energies) / len(energies),
        hypervolume=hypervolume,
        min_cost=min(costs) if costs else INVALID_COST,
        energy_spread=_spread(energies),
        cost_spread=_spread(costs),
    )


class ConvergenceTracker:
    def __init__(
        self,
        stagnation_window: int,
        improvement_threshold: float,
        energy_spread_floor: float = ENERGY_SPREAD_FLOOR,
    ):
        if stagnation_window < 1:
            raise ValueError(f"Stagnation window must be >= 1, got {stagnation_window}")
        if improvement_threshold < 0:
            raise ValueError(f"Improvement threshold must be >= 0, got {improvement_threshold}")
        self.stagnation_window = stagnation_window
        self.improvement_threshold = improvement_threshold
        self.energy_spread_floor = energy_spread_floor
        self.history: List[ConvergenceMetrics] = []
        self.converged = False
        self.convergence_generation = -1
        self.reason = "Not converged"

    def record_generation(self, generation: int, pareto_front: Sequence[Individual], hypervolume: float) -> bool:
        """Append a snapshot and return the (latched) convergence flag."""
        metrics = front_metrics(generation, pareto_front, hypervolume)
        self.history.append(metrics)
        if not self.converged:
            self._check(metrics)
        logger.info(
            "Generation %d: PF=%d, Energy=%.1f MWh, Cost=%.2f GBP/MWh, HV=%.3e, Spread=%.4f",
            metrics.generation,
            metrics.pareto_size,
            metrics.max_energy,
            metrics.min_cost,
            metrics.hypervolume,
            metrics.energy_spread,
        )
        return self.converged

    def _check(self, current: ConvergenceMetrics) -> None:
        if len(self.history) < self.stagnation_window:
            return
        baseline = self.history[len(self.history) - self.stagnation_window]
        eps = self.improvement_threshold
        window = self.stagnation_window

        hv_change = relative_change(current.hypervolume, baseline.hypervolume)
        if abs(hv_change) < eps:
            self._latch(
                current.generation,
                f"Hypervolume stagnation: {hv_change:.6f} change over {window} generations",
            )
            return

        energy_change = relative_change(current.max_energy, baseline.max_energy)
        if energy_change < eps:
            self._latch(
                current.generation,
                f"Energy stagnation: {energy_change:.6f} improvement over {window} generations",
            )
            return

        size_change = abs(relative_change(current.pareto_size, baseline.pareto_size))
        if size_change < eps and current.energy_spread < self.energy_spread_floor:
            self._latch(
                current.generation,
                f"Diversity stagnation: Pareto size stable, energy spread {current.energy_spread:.6f}",
            )

    def _latch(self, generation: int, reason: str) -> None:
        self.converged = True
        self.convergence_generation = generation
        self.reason = reason
        logger.info("Converged at generation %d: %s", generation, reason)

    def summary(self) -> ConvergenceSummary:
        if not self.history:
            return ConvergenceSummary(False, -1, "No data", None, None)
        return ConvergenceSummary(
            converged=self.converged,
            convergence_generation=self.convergence_generation,
            reason=self.reason,
            first_generation=self.history[0],
            last_generation=self.history[-1],
        )
