"""Config utilities: run directories and JSON save/load of run configs."""
import json
import os
from datetime import datetime
from typing import Any


def make_run_dir(results_root: str = "results", prefix: str = "") -> str:
    """Create a timestamped run directory under results/. Returns path."""
    os.makedirs(results_root, exist_ok=True)
    run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    if prefix:
        run_id = f"{prefix}_{run_id}"
    run_dir = os.path.join(results_root, run_id)
    suffix = 1
    while os.path.exists(run_dir):
        run_dir = os.path.join(results_root, f"{run_id}_{suffix}")
        suffix += 1
    os.makedirs(run_dir)
    return run_dir


def json_default(value: Any) -> Any:
    """numpy scalars and arrays become Python numbers and lists; sets become sorted lists."""
    if hasattr(value, "tolist"):
        return value.tolist()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def save_config(config: dict[str, Any], path: str) -> None:
    """
    Write a run config as JSON, creating the parent directory. Keys are sorted so configs
    of two runs diff cleanly; numpy values from NSGA2Config.to_dict() or argparse are accepted.
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w") as f:
        json.dump(config, f, indent=2, sort_keys=True, default=json_default)


def load_config(path: str) -> dict[str, Any]:
    """Load a run config; the "nsga2" section, when present, must be a mapping."""
    with open(path) as f:
        config = json.load(f)
    if not isinstance(config.get("nsga2", {}), dict):
        raise ValueError(f"{path}: 'nsga2' section must be an object")
    return config
