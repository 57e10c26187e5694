"""Simulation window presets: how many half-tides an individual encodes and how many tide readings that needs."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

HALF_TIDES_PER_DAY = 48
READINGS_PER_HALF_TIDE = 24
TIME_STEP_HOURS = 0.25


@dataclass(frozen=True)
class SimulationScenario:
    name: str
    half_tides: int
    description: str
    readings_per_half_tide: int = READINGS_PER_HALF_TIDE
    time_step_hours: float = TIME_STEP_HOURS

    @property
    def readings_needed(self) -> int:
        return self.half_tides * self.readings_per_half_tide

    @property
    def duration_hours(self) -> float:
        return self.readings_needed * self.time_step_hours

    def __str__(self) -> str:
        return f"{self.description} ({self.half_tides} half-tides, {self.duration_hours:.1f} hours)"


SCENARIOS: Dict[str, SimulationScenario] = {
    "test": SimulationScenario("test", 48, "Test run"),
    "daily": SimulationScenario("daily", HALF_TIDES_PER_DAY, "Daily preset"),
    "weekly": SimulationScenario("weekly", HALF_TIDES_PER_DAY * 7, "Weekly preset"),
    "annual": SimulationScenario("annual", HALF_TIDES_PER_DAY * 365, "Annual preset"),
}


def get_scenario(name: str) -> SimulationScenario:
    try:
        return SCENARIOS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown scenario {name!r}. Available: {', '.join(SCENARIOS)}") from None
