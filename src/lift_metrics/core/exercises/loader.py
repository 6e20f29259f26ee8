"""
YAML → ExerciseDefinition loader.

Loads exercise definitions from individual YAML files in the bundled
``src/lift_metrics/exercises/`` directory.  Each file (e.g. squat.yaml)
contains a flat exercise definition matching the ExerciseDefinition schema.

User overrides: place matching files in ``~/.lift-metrics/exercises/``.
A user file is deep-merged over the bundled definition, so only changed
keys need to be listed.  A user file whose exercise_id does not match any
bundled file is treated as a new exercise and added to the registry.

Usage (internal, called by registry.py):
    from .loader import load_exercises_from_yaml
    exercises = load_exercises_from_yaml()   # dict or None on failure
"""

from __future__ import annotations

from pathlib import Path

import yaml

from ..config import STRENGTH_LEVELS
from ..config_loader import deep_merge, get_user_config_dir
from ..logging import get_logger
from .base import ExerciseDefinition

logger = get_logger(__name__)

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset(
    {
        "exercise_id",
        "display_name",
        "category",
    }
)

_VALID_CATEGORIES: frozenset[str] = frozenset({"strength", "endurance", "power", "technique"})


def _validate_standards(raw: dict) -> dict[str, dict[str, float]]:
    """Convert raw {sex: {level: ratio}} to floats, raising ValueError on bad shape."""
    standards: dict[str, dict[str, float]] = {}
    for sex, levels in raw.items():
        if sex not in ("male", "female"):
            raise ValueError(f"strength_standards: unknown sex {sex!r}")
        missing = set(STRENGTH_LEVELS) - set(levels)
        if missing:
            raise ValueError(f"strength_standards[{sex}] missing levels: {sorted(missing)}")
        ratios = {level: float(levels[level]) for level in STRENGTH_LEVELS}
        ordered = [ratios[level] for level in STRENGTH_LEVELS]
        if ordered != sorted(ordered):
            raise ValueError(f"strength_standards[{sex}] must be non-decreasing by level")
        standards[sex] = ratios
    return standards


def exercise_from_dict(d: dict) -> ExerciseDefinition:
    """Convert a raw dict (from YAML) to an ExerciseDefinition.

    Raises ValueError if any required field is absent or malformed.
    """
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"ExerciseDefinition missing fields: {sorted(missing)}")

    category = str(d["category"])
    if category not in _VALID_CATEGORIES:
        raise ValueError(f"Invalid category {category!r}")

    return ExerciseDefinition(
        exercise_id=str(d["exercise_id"]),
        display_name=str(d["display_name"]),
        category=category,
        muscle_groups=[str(m) for m in d.get("muscle_groups", []) or []],
        strength_standards=_validate_standards(d.get("strength_standards", {}) or {}),
    )


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; return {} on read or parse errors."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("exercise_file_unreadable", path=str(path), error=str(exc))
        return {}
    return data if isinstance(data, dict) else {}


def _get_bundled_exercises_dir() -> Path | None:
    """Return path to the bundled exercises/ data directory, or None if not found."""
    # loader.py lives at src/lift_metrics/core/exercises/loader.py
    # three levels up → src/lift_metrics/
    candidate = Path(__file__).parent.parent.parent / "exercises"
    return candidate if candidate.is_dir() else None


def _get_user_exercises_dir() -> Path | None:
    """Return ~/.lift-metrics/exercises/ if it exists, else None."""
    p = get_user_config_dir() / "exercises"
    return p if p.is_dir() else None


def load_exercises_from_yaml() -> dict[str, ExerciseDefinition] | None:
    """Return {exercise_id: ExerciseDefinition} loaded from per-exercise YAML files.

    Loads each ``<exercise_id>.yaml`` from the bundled exercises/ directory.
    If a matching file exists in ``~/.lift-metrics/exercises/`` it is
    deep-merged over the bundled definition (user can override any field).
    User-only files (no bundled counterpart) are loaded as new exercises.

    Returns None (rather than raising) so the registry can report the failure.
    """
    bundled_dir = _get_bundled_exercises_dir()
    user_dir = _get_user_exercises_dir()

    if bundled_dir is None and user_dir is None:
        return None

    result: dict[str, ExerciseDefinition] = {}

    # Collect all exercise stems to process
    stems: dict[str, Path] = {}  # stem → bundled path
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    # User-only files (new exercises not in bundled set)
    user_only: list[Path] = []
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)

    # Load bundled (with optional user merge)
    for stem, bundled_path in stems.items():
        raw = _load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                user_raw = _load_yaml_file(user_path)
                if user_raw:
                    raw = deep_merge(raw, user_raw)
        try:
            ex = exercise_from_dict(raw)
            result[ex.exercise_id] = ex
        except ValueError as exc:
            logger.warning("exercise_skipped", exercise=stem, error=str(exc))

    # Load user-only exercises
    for p in user_only:
        raw = _load_yaml_file(p)
        if not raw:
            continue
        try:
            ex = exercise_from_dict(raw)
            result[ex.exercise_id] = ex
        except ValueError as exc:
            logger.warning("user_exercise_skipped", exercise=p.stem, error=str(exc))

    return result if result else None
