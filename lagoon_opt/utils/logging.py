"""Run logging: console logger setup and metrics dumps to the run directory."""
import json
import logging
import math
import os
from typing import Any

from lagoon_opt.utils.config import json_default


def configure_logging(level: int = logging.INFO) -> None:
    """
    Attach a console handler to the "lagoon_opt" logger. Library modules never call this;
    scripts do. Nothing happens if the root or "lagoon_opt" logger already has handlers.
    """
    root = logging.getLogger()
    pkg_logger = logging.getLogger("lagoon_opt")
    if root.handlers or pkg_logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(level)
    pkg_logger.propagate = False


def _strict(value: Any) -> Any:
    # INVALID_COST and empty-front metrics are inf/nan; strict JSON has no spelling for them
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _strict(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_strict(v) for v in value]
    if hasattr(value, "tolist"):
        return _strict(value.tolist())
    return value


def save_metrics(metrics: dict[str, Any], path: str) -> None:
    """Save metrics as strict JSON: non-finite floats are written as null."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w") as f:
        json.dump(_strict(metrics), f, indent=2, allow_nan=False, default=json_default)


def load_metrics(path: str) -> dict[str, Any]:
    """Load metrics; null values (non-finite when saved) come back as None."""
    with open(path) as f:
        return json.load(f)
