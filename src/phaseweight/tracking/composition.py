"""Body composition estimates from weight, height and age.

There is no skinfold, tape or DEXA data available, so body fat is estimated
with the adult BMI regression (Deurenberg et al.):

    BF% = 1.20 × BMI + 0.23 × age − 16.2

This is a population average. Individual error is easily several percentage
points, so every figure derived here is an approximation and is labelled as
such wherever it is shown to the user.
"""

from __future__ import annotations

from dataclasses import dataclass

APPROXIMATION_NOTE = (
    "Body fat is estimated from BMI and age; treat it as a rough guide, "
    "not a measurement."
)

# Deurenberg regression coefficients
BMI_COEFFICIENT = 1.20
AGE_COEFFICIENT = 0.23
INTERCEPT = -16.2


@dataclass
class Composition:
    """Fat/lean split of a body weight."""

    fat_mass_kg: float
    lean_mass_kg: float


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    """
    Calculate body mass index.

    Args:
        weight_kg: Body weight in kilograms
        height_cm: Height in centimetres

    Returns:
        BMI in kg/m²

    Example:
        >>> round(calculate_bmi(114, 180), 1)
        35.2
    """
    height_m = height_cm / 100
    return weight_kg / (height_m ** 2)


def estimate_body_fat_pct(weight_kg: float, height_cm: float, age: float) -> float:
    """
    Estimate body fat percentage from BMI and age.

    Args:
        weight_kg: Body weight in kilograms (must be > 0)
        height_cm: Height in centimetres
        age: Age in years

    Returns:
        Estimated body fat percentage, clamped to [0, 100]

    Example:
        >>> round(estimate_body_fat_pct(114, 180, 25), 1)
        31.8
    """
    bmi = calculate_bmi(weight_kg, height_cm)
    bf_pct = BMI_COEFFICIENT * bmi + AGE_COEFFICIENT * age + INTERCEPT
    return max(0.0, min(100.0, bf_pct))


def estimate_composition(weight_kg: float, bf_pct: float) -> Composition:
    """Split a body weight into fat and lean mass."""
    fat_mass_kg = weight_kg * bf_pct / 100
    lean_mass_kg = weight_kg - fat_mass_kg
    return Composition(fat_mass_kg=fat_mass_kg, lean_mass_kg=lean_mass_kg)
