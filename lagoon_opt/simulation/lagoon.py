"""
Plant parameters of a tidal lagoon. Defaults describe the Swansea Bay Tidal Lagoon
(CoBaseTRS baseline geometry, 2015 CfD capital cost).
"""
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict
import math


@dataclass(frozen=True)
class Lagoon:
    surface_area_m2: float = 11_500_000.0
    n_turbines: int = 16
    turbine_capacity_mw: float = 20.0
    turbine_diameter_m: float = 7.35
    turbine_discharge_coefficient: float = 1.36
    installed_capacity_mw: float = 320.0
    total_capital_cost_gbp: float = 1_327_000_000.0
    min_level_m: float = -5.0
    max_level_m: float = 10.0

    def __post_init__(self) -> None:
        if self.surface_area_m2 <= 0:
            raise ValueError(f"Lagoon surface area must be positive, got {self.surface_area_m2}")
        if self.n_turbines < 1:
            raise ValueError(f"Number of turbines must be >= 1, got {self.n_turbines}")
        if self.min_level_m >= self.max_level_m:
            raise ValueError("Lagoon level bounds must satisfy min_level_m < max_level_m")

    @property
    def turbine_area_m2(self) -> float:
        """Total flow area of all turbines."""
        return math.pi * (self.turbine_diameter_m / 2.0) ** 2 * self.n_turbines

    @property
    def total_turbine_capacity_mw(self) -> float:
        return self.n_turbines * self.turbine_capacity_mw

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


SWANSEA_BAY = Lagoon()
