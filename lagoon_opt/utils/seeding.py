"""Seeding for reproducibility. Library code draws only from Generators handed to it."""
import os
import random
from typing import Optional
import numpy as np


def set_seed(seed: int) -> None:
    """Seed the global random and numpy states (for third-party code that uses them)."""
    random.seed(seed)
    np.random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)


def get_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Return a numpy Generator for reproducible streams; None draws fresh OS entropy."""
    return np.random.default_rng(seed)

