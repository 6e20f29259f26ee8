"""
Goal completion.

Each goal moves in one direction: weight_loss and body_fat goals are met
when current falls to the target, every other goal type when current rises
to it.

Two percentages are reported:

  percent_complete  round(current / target × 100, 1), raw and unclamped
  progress          0-100, clamped, monotonic in the goal's direction:
                      with a baseline:    (current - baseline) / (target - baseline)
                      increasing, none:   current / target
                      decreasing, none:   target / current
"""

from .config import DECREASING_GOAL_TYPES
from .models import Goal, GoalProgress, ProgressEntry


def is_decreasing(goal: Goal) -> bool:
    """True for goals met by going down (weight_loss, body_fat)."""
    return goal.goal_type in DECREASING_GOAL_TYPES


def is_achieved(goal: Goal) -> bool:
    """Whether current has reached or passed target in the goal's direction."""
    if is_decreasing(goal):
        return goal.current <= goal.target
    return goal.current >= goal.target


def percent_complete(goal: Goal) -> float | None:
    """
    Raw completion percentage.

    Returns:
        round(current / target × 100, 1); for target 0, 100.0 when current
        is also 0, else None
    """
    if goal.target == 0:
        return 100.0 if goal.current == 0 else None
    return round(goal.current / goal.target * 100, 1)


def _clamp(pct: float) -> float:
    return max(0.0, min(100.0, pct))


def normalized_progress(goal: Goal) -> float:
    """
    Progress toward the target as a clamped 0-100 percentage.

    Zero denominators resolve to 100 when the goal is achieved, else 0.
    """
    achieved = is_achieved(goal)
    if achieved:
        return 100.0

    if goal.baseline is not None:
        span = goal.target - goal.baseline
        if span == 0:
            return 0.0
        return round(_clamp((goal.current - goal.baseline) / span * 100), 1)

    if is_decreasing(goal):
        if goal.current == 0:
            return 0.0
        return round(_clamp(goal.target / goal.current * 100), 1)

    if goal.target == 0:
        return 0.0
    return round(_clamp(goal.current / goal.target * 100), 1)


def goal_progress(goal: Goal) -> GoalProgress:
    """
    Compute the progress of one goal.

    Args:
        goal: Goal with current and target values

    Returns:
        GoalProgress with percent_complete, remaining (target - current),
        normalized progress and achieved
    """
    return GoalProgress(
        goal=goal,
        percent_complete=percent_complete(goal),
        remaining=goal.target - goal.current,
        progress=normalized_progress(goal),
        achieved=is_achieved(goal),
    )


def evaluate_goals(entry: ProgressEntry) -> list[GoalProgress]:
    """Refresh ``achieved`` on every goal of an entry and return their progress."""
    results = []
    for goal in entry.goals:
        progress = goal_progress(goal)
        goal.achieved = progress.achieved
        results.append(progress)
    return results
