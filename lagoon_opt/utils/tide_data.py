"""
Tide input: BODC sea-level files and synthetic harmonic tides.

BODC data rows look like
    2455563.000000  1  4.677  1  4.679  1  5.153  1
(Julian date followed by sensor readings and quality flags). The height used for
simulation is the third whitespace-separated field.
"""
from __future__ import annotations
from typing import Iterator, List, Optional, Tuple
import logging
import math
import numpy as np
import pandas as pd

from lagoon_opt.simulation.scenarios import TIME_STEP_HOURS

logger = logging.getLogger(__name__)

MIN_FIELDS = 8
HEADER_MARKERS = ("Cruise", "unspecified")

# Principal lunar and solar semi-diurnal constituents
M2_PERIOD_HOURS = 12.42
S2_PERIOD_HOURS = 12.0


def _is_header(line: str) -> bool:
    return not line.strip() or any(marker in line for marker in HEADER_MARKERS)


def _records(path: str) -> Iterator[Tuple[float, float]]:
    """(julian_date, height) per well-formed data row; malformed rows are skipped."""
    in_header = True
    with open(path) as f:
        for line_no, line in enumerate(f, start=1):
            if in_header and _is_header(line):
                continue
            in_header = False
            parts = line.split()
            if len(parts) < MIN_FIELDS:
                continue
            try:
                yield float(parts[0]), float(parts[2])
            except ValueError:
                logger.debug("Skipping malformed tide row %d in %s", line_no, path)


def read_tide_heights(path: str) -> List[float]:
    """Sea-level heights (m) from a BODC file, in file order."""
    heights = [height for _, height in _records(path)]
    logger.info("Read %d tide readings from %s", len(heights), path)
    return heights


def read_tide_data(path: str) -> pd.Series:
    """Heights indexed by Julian date; a repeated date keeps its last reading."""
    records = list(_records(path))
    series = pd.Series(
        [h for _, h in records],
        index=pd.Index([d for d, _ in records], name="julian_date", dtype=np.float64),
        name="height_m",
        dtype=np.float64,
    )
    return series[~series.index.duplicated(keep="last")]


def synthetic_tide(
    n_readings: int,
    time_step_hours: float = TIME_STEP_HOURS,
    mean_level: float = 5.0,
    m2_amplitude: float = 3.0,
    s2_amplitude: float = 1.0,
    noise_std: float = 0.0,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    M2 + S2 harmonic tide sampled every time_step_hours, optionally with Gaussian noise.
    Gives a spring-neap cycle of about 14.8 days with the default constituents.
    """
    if n_readings < 0:
        raise ValueError(f"Number of readings must be >= 0, got {n_readings}")
    if time_step_hours <= 0:
        raise ValueError(f"Time step must be positive, got {time_step_hours}")
    t = np.arange(n_readings, dtype=np.float64) * time_step_hours
    tide = (
        mean_level
        + m2_amplitude * np.cos(2.0 * math.pi * t / M2_PERIOD_HOURS)
        + s2_amplitude * np.cos(2.0 * math.pi * t / S2_PERIOD_HOURS)
    )
    if noise_std > 0:
        if rng is None:
            raise ValueError("A Generator is required when noise_std > 0")
        tide = tide + rng.normal(0.0, noise_std, size=n_readings)
    return tide
