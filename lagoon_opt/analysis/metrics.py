"""Front quality indicators: hypervolume and spacing."""
from __future__ import annotations
from typing import Sequence
import numpy as np

from lagoon_opt.evolution.individual import Individual

REFERENCE_ENERGY = 0.0
REFERENCE_COST = 100_000.0


def hypervolume(
    front: Sequence[Individual],
    ref_energy: float = REFERENCE_ENERGY,
    ref_cost: float = REFERENCE_COST,
) -> float:
    """
    Area dominated by the front with respect to (ref_energy, ref_cost), energy maximised and
    cost minimised. Points with an invalid cost, or a cost at or beyond ref_cost, add nothing.
    """
    points = sorted(
        (ind for ind in front if ind.has_valid_cost and ind.unit_cost < ref_cost),
        key=lambda ind: ind.energy_output,
    )
    volume = 0.0
    prev_energy = ref_energy
    for ind in points:
        volume += (ind.energy_output - prev_energy) * (ref_cost - ind.unit_cost)
        prev_energy = ind.energy_output
    return volume


def spacing(front: Sequence[Individual]) -> float:
    """Standard deviation of nearest-neighbour distances in objective space (lower is more even)."""
    pts = np.array(
        [[ind.energy_output, ind.unit_cost] for ind in front if ind.has_valid_cost],
        dtype=np.float64,
    )
    if pts.shape[0] < 2:
        return 0.0
    diff = pts[:, None, :] - pts[None, :, :]
    dist = np.sqrt((diff ** 2).sum(axis=-1))
    np.fill_diagonal(dist, np.inf)
    return float(np.std(dist.min(axis=1)))
