"""
Base types for exercise definitions.

ExerciseDefinition describes one exercise the engine can track: how it is
displayed, which muscle groups it works (used by the records summary), and
the body-weight-ratio strength standards used for classification.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExerciseDefinition:
    """
    Full configuration for one exercise.

    ``strength_standards`` maps sex → {level: lift/body-weight ratio}; it is
    empty for exercises without published standards.
    """

    # Identity
    exercise_id: str          # e.g. "bench_press", "squat"
    display_name: str         # e.g. "Bench Press"
    category: str             # "strength" | "endurance" | "power" | "technique"
    muscle_groups: list[str] = field(default_factory=list)

    # Classification
    strength_standards: dict[str, dict[str, float]] = field(default_factory=dict)

    def standards_for(self, sex: str) -> dict[str, float] | None:
        """Return the standards for one sex, or None if none are defined."""
        return self.strength_standards.get(sex) or None
