"""
YAML → engine config loader.

Loads tunable thresholds from engine.yaml (bundled with the package) and
optionally merges user overrides from ~/.lift-metrics/engine.yaml.

Usage:
    from lift_metrics.core.config_loader import milestone_thresholds
    weight_pct = milestone_thresholds()["weight_change_pct"]

If the bundled YAML cannot be parsed, all lookups return the Python defaults
from config.py (no crash).  If the user override file has parse errors, a
warning is logged and the file is ignored.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from .config import (
    CALORIE_BASELINES,
    MILESTONE_BODY_FAT_CHANGE,
    MILESTONE_MEASUREMENT_CHANGE_CM,
    MILESTONE_MEASUREMENTS,
    MILESTONE_WEIGHT_CHANGE_PCT,
)
from .logging import get_logger

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} on any read or parse error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("config_file_ignored", path=str(path), error=str(exc))
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_user_config_dir() -> Path:
    """Return ~/.lift-metrics (whether or not it exists)."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / ".lift-metrics"


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled engine.yaml, or None if not found."""
    # config_loader.py lives at src/lift_metrics/core/config_loader.py
    candidate = Path(__file__).parent.parent / "engine.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.lift-metrics/engine.yaml if it exists, else None."""
    p = get_user_config_dir() / "engine.yaml"
    return p if p.exists() else None


@lru_cache(maxsize=1)
def load_model_config() -> dict[str, Any]:
    """
    Load and merge engine configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/lift_metrics/engine.yaml
    2. User override at ~/.lift-metrics/engine.yaml

    The result is cached; call load_model_config.cache_clear() after
    changing the files.

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = deep_merge(config, user_cfg)

    return config


def milestone_thresholds() -> dict[str, Any]:
    """Milestone thresholds with config.py defaults for missing keys."""
    section = load_model_config().get("milestones", {}) or {}
    return {
        "weight_change_pct": float(section.get("weight_change_pct", MILESTONE_WEIGHT_CHANGE_PCT)),
        "body_fat_change": float(section.get("body_fat_change", MILESTONE_BODY_FAT_CHANGE)),
        "measurement_change_cm": float(
            section.get("measurement_change_cm", MILESTONE_MEASUREMENT_CHANGE_CM)
        ),
        "measurements": tuple(section.get("measurements", MILESTONE_MEASUREMENTS)),
    }


def calorie_baselines() -> dict[str, float]:
    """kcal/min per intensity with config.py defaults for missing keys."""
    section = load_model_config().get("calories", {}) or {}
    return {k: float(section.get(k, v)) for k, v in CALORIE_BASELINES.items()}
