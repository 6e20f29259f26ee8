"""
Tests for YAML configuration: engine thresholds and exercise definitions.
"""

import pytest

from lift_metrics.core.config import MILESTONE_WEIGHT_CHANGE_PCT
from lift_metrics.core.config_loader import (
    calorie_baselines,
    deep_merge,
    load_model_config,
    milestone_thresholds,
)
from lift_metrics.core.errors import MissingDependencyError
from lift_metrics.core.exercises import get_exercise
from lift_metrics.core.exercises.loader import exercise_from_dict


@pytest.fixture
def user_home(tmp_path, monkeypatch):
    """Point ~ at an empty directory and drop the cached config around the test."""
    monkeypatch.setenv("HOME", str(tmp_path))
    load_model_config.cache_clear()
    yield tmp_path
    load_model_config.cache_clear()


class TestDeepMerge:

    def test_nested_override(self):
        base = {"milestones": {"weight_change_pct": 5.0, "body_fat_change": 2.0}}
        merged = deep_merge(base, {"milestones": {"weight_change_pct": 3.0}})
        assert merged == {"milestones": {"weight_change_pct": 3.0, "body_fat_change": 2.0}}
        assert base["milestones"]["weight_change_pct"] == 5.0


class TestEngineConfig:

    def test_bundled_defaults(self, user_home):
        assert milestone_thresholds()["weight_change_pct"] == MILESTONE_WEIGHT_CHANGE_PCT
        assert calorie_baselines() == {"low": 3.0, "moderate": 5.0, "high": 7.0, "very_high": 9.0}

    def test_user_override(self, user_home):
        cfg_dir = user_home / ".lift-metrics"
        cfg_dir.mkdir()
        (cfg_dir / "engine.yaml").write_text("milestones:\n  weight_change_pct: 2.5\n")

        thresholds = milestone_thresholds()

        assert thresholds["weight_change_pct"] == 2.5
        assert thresholds["measurements"] == ("chest", "waist", "hips")

    def test_broken_user_file_ignored(self, user_home):
        cfg_dir = user_home / ".lift-metrics"
        cfg_dir.mkdir()
        (cfg_dir / "engine.yaml").write_text("milestones: [unclosed\n")
        assert milestone_thresholds()["weight_change_pct"] == MILESTONE_WEIGHT_CHANGE_PCT


class TestExerciseDefinitions:

    def test_bundled_exercise(self):
        bench = get_exercise("bench_press")
        assert bench.display_name == "Bench Press"
        assert "chest" in bench.muscle_groups
        assert bench.standards_for("female")["elite"] == 1.25

    def test_unknown_exercise(self):
        with pytest.raises(MissingDependencyError):
            get_exercise("underwater_basket_weaving")

    def test_missing_fields_rejected(self):
        with pytest.raises(ValueError):
            exercise_from_dict({"exercise_id": "curl"})

    def test_standards_must_increase(self):
        with pytest.raises(ValueError):
            exercise_from_dict({
                "exercise_id": "curl",
                "display_name": "Curl",
                "category": "strength",
                "strength_standards": {
                    "male": {"untrained": 0.5, "novice": 0.4, "intermediate": 0.6, "advanced": 0.7, "elite": 0.8},
                },
            })

    def test_no_standards(self):
        ex = exercise_from_dict({"exercise_id": "curl", "display_name": "Curl", "category": "strength"})
        assert ex.standards_for("male") is None
