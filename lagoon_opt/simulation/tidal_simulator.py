"""
0-D lagoon simulation: two-way generation driven by the per-half-tide start/end heads.

Within each half-tide the turbines switch on once |sea - lagoon| reaches Hs and off once
it drops below He. Flow follows the orifice equation Q = Cd * A * sqrt(2 g h), power is
capped at the installed capacity, and the lagoon level follows from mass balance.
"""
from __future__ import annotations
from typing import Sequence
import math
import numpy as np

from lagoon_opt.evolution.individual import Individual
from lagoon_opt.simulation.lagoon import SWANSEA_BAY, Lagoon
from lagoon_opt.simulation.scenarios import TIME_STEP_HOURS

GRAVITY = 9.81
WATER_DENSITY = 1025.0
WATTS_TO_MW = 1e-6


def simulate(
    tide_heights: Sequence[float],
    individual: Individual,
    lagoon: Lagoon = SWANSEA_BAY,
    time_step_hours: float = TIME_STEP_HOURS,
) -> float:
    """Energy generated over the tide series, in MWh."""
    tide = np.asarray(tide_heights, dtype=np.float64)
    if tide.size == 0:
        raise ValueError("Tide heights cannot be empty")
    if time_step_hours <= 0:
        raise ValueError(f"Time step must be positive, got {time_step_hours}")

    n_half_tides = individual.n_half_tides
    steps_per_half_tide = tide.size // n_half_tides
    dt_seconds = time_step_hours * 3600.0
    flow_area = lagoon.turbine_area_m2 * lagoon.turbine_discharge_coefficient

    lagoon_level = float(tide[0])
    energy_mwh = 0.0
    for k in range(n_half_tides):
        hs = individual.start_head(k)
        he = individual.end_head(k)
        generating = False
        for j in range(steps_per_half_tide):
            sea_level = float(tide[k * steps_per_half_tide + j])
            head = abs(sea_level - lagoon_level)
            if not generating and head >= hs:
                generating = True
            if generating and head < he:
                generating = False
            if not generating or head <= 0:
                continue

            flow = flow_area * math.sqrt(2.0 * GRAVITY * head)
            power_mw = min(flow * WATER_DENSITY * GRAVITY * head * WATTS_TO_MW, lagoon.installed_capacity_mw)
            energy_mwh += power_mw * time_step_hours

            level_change = flow * dt_seconds / lagoon.surface_area_m2
            if sea_level > lagoon_level:
                lagoon_level += level_change
            else:
                lagoon_level -= level_change
            lagoon_level = max(lagoon.min_level_m, min(lagoon.max_level_m, lagoon_level))
    return energy_mwh
