"""
Configuration constants for the metrics and personal-record engine.

All adjustable parameters are centralized here for easy tuning.
Values that users may override live in engine.yaml (see config_loader.py);
the constants below are the defaults used when no override is present.
"""

from typing import Final, Literal

# =============================================================================
# CALORIE ESTIMATION
# =============================================================================

REFERENCE_BODY_WEIGHT_KG: Final[float] = 70.0  # Body weight the baselines are calibrated for

Intensity = Literal["low", "moderate", "high", "very_high"]

# kcal/min baseline per workout intensity
CALORIE_BASELINES: Final[dict[Intensity, float]] = {
    "low": 3.0,
    "moderate": 5.0,
    "high": 7.0,
    "very_high": 9.0,
}

# Upper (inclusive) RPE bound for each intensity; above the last bound is very_high
INTENSITY_RPE_CUTOFFS: Final[list[tuple[float, Intensity]]] = [
    (4.0, "low"),
    (6.0, "moderate"),
    (8.0, "high"),
]
DEFAULT_INTENSITY: Final[Intensity] = "moderate"  # Used when no set carries an RPE

RPE_MIN: Final[float] = 1.0
RPE_MAX: Final[float] = 10.0
RATING_MIN: Final[int] = 1
RATING_MAX: Final[int] = 5

# =============================================================================
# ONE-REP MAX AND WILKS
# =============================================================================

EPLEY_REPS_DIVISOR: Final[float] = 30.0
WILKS_NUMERATOR: Final[float] = 500.0

# Published Wilks polynomial coefficients a..f (a + b*bw + c*bw^2 + ... + f*bw^5)
WILKS_COEFFICIENTS: Final[dict[str, tuple[float, ...]]] = {
    "male": (
        -216.0475144,
        16.2606339,
        -0.002388645,
        -0.00113732,
        7.01863e-06,
        -1.291e-08,
    ),
    "female": (
        594.31747775582,
        -27.23842536447,
        0.82112226871,
        -0.00930733913,
        4.731582e-05,
        -9.054e-08,
    ),
}

# =============================================================================
# PERSONAL RECORDS
# =============================================================================

MAX_CONFLICT_RETRIES: Final[int] = 3  # Re-reads of a single comparison after a lost CAS
IMPROVEMENT_FROM_ZERO_PCT: Final[float] = 100.0  # Improvement reported when previous value is 0

# =============================================================================
# MILESTONES
# =============================================================================

MILESTONE_WEIGHT_CHANGE_PCT: Final[float] = 5.0  # Relative to the previous entry's weight
MILESTONE_BODY_FAT_CHANGE: Final[float] = 2.0  # Absolute percentage points
MILESTONE_MEASUREMENT_CHANGE_CM: Final[float] = 5.0
MILESTONE_MEASUREMENTS: Final[tuple[str, ...]] = ("chest", "waist", "hips")

# =============================================================================
# GOALS
# =============================================================================

DECREASING_GOAL_TYPES: Final[frozenset[str]] = frozenset({"weight_loss", "body_fat"})

GOAL_TYPES: Final[tuple[str, ...]] = (
    "weight_loss",
    "weight_gain",
    "muscle_gain",
    "strength",
    "endurance",
    "flexibility",
    "body_fat",
    "measurements",
)

GOAL_UNITS: Final[tuple[str, ...]] = ("kg", "lbs", "cm", "inches", "%", "reps", "minutes")

# =============================================================================
# REPORTING
# =============================================================================

LEADERBOARD_DEFAULT_LIMIT: Final[int] = 10
RECENT_RECORDS_DAYS: Final[int] = 30
SUMMARY_RECENT_DAYS: Final[int] = 7  # "Recent PRs" window of the records summary
BEST_IMPROVEMENTS_LIMIT: Final[int] = 5

STRENGTH_LEVELS: Final[tuple[str, ...]] = (
    "untrained",
    "novice",
    "intermediate",
    "advanced",
    "elite",
)

# Named reporting periods → length in days (None = unbounded)
PERIOD_DAYS: Final[dict[str, int | None]] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
    "all": None,
}
