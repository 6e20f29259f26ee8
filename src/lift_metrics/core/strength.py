"""
One-rep-max and relative-strength estimators.

  Epley 1RM:
    1RM = weight × (1 + reps / 30), exact weight for a single.

  Wilks score:
    wilks = weight × 500 / (a + b·bw + c·bw² + d·bw³ + e·bw⁴ + f·bw⁵)
    with the published male/female coefficient sets (config.WILKS_COEFFICIENTS).
"""

from __future__ import annotations

from .config import EPLEY_REPS_DIVISOR, WILKS_COEFFICIENTS, WILKS_NUMERATOR


def epley_1rm(weight_kg: float | None, reps: int | None) -> float:
    """
    Estimate 1RM using the Epley formula.

    Args:
        weight_kg: Load lifted
        reps: Reps performed

    Returns:
        Estimated 1RM in kg rounded to 1 decimal; the weight itself for a
        single; 0.0 when weight or reps are missing or non-positive
    """
    if weight_kg is None or weight_kg <= 0 or reps is None or reps <= 0:
        return 0.0
    if reps == 1:
        return weight_kg
    return round(weight_kg * (1 + reps / EPLEY_REPS_DIVISOR), 1)


def wilks_polynomial(body_weight_kg: float, sex: str = "male") -> float:
    """Evaluate the fifth-order Wilks denominator at the given body weight."""
    coefficients = WILKS_COEFFICIENTS.get(sex)
    if coefficients is None:
        raise ValueError(f"Invalid sex: {sex!r}. Must be 'male' or 'female'.")
    return sum(c * body_weight_kg ** i for i, c in enumerate(coefficients))


def wilks_coefficient(body_weight_kg: float | None, sex: str = "male") -> float | None:
    """
    Wilks multiplier 500 / poly(bw).

    Returns:
        Coefficient, or None for a missing/non-positive body weight or a
        degenerate polynomial value
    """
    if body_weight_kg is None or body_weight_kg <= 0:
        return None
    denominator = wilks_polynomial(body_weight_kg, sex)
    if denominator <= 0:
        return None
    return WILKS_NUMERATOR / denominator


def wilks_score(
    weight_kg: float | None,
    body_weight_kg: float | None,
    sex: str = "male",
) -> float | None:
    """
    Body-weight-normalized strength score.

    Args:
        weight_kg: Lift weight
        body_weight_kg: Lifter's body weight at the time of the lift
        sex: "male" or "female" coefficient set

    Returns:
        Wilks score rounded to 2 decimals, or None when either weight is
        missing or non-positive
    """
    if weight_kg is None or weight_kg <= 0:
        return None
    coefficient = wilks_coefficient(body_weight_kg, sex)
    if coefficient is None:
        return None
    return round(weight_kg * coefficient, 2)
