"""
Nutrition targets - deterministic daily totals and the per-day adjustment policy.

Totals come from the profile (Mifflin-St Jeor BMR x activity, goal factor,
bodyweight-based protein). The model only composes foods to hit them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from app.plans.models import BaseNutrition, Intensity, NutritionDelta
from app.plans.profile import Goal, UserProfile

logger = logging.getLogger(__name__)

# Schema ranges shared with the validator
KCAL_RANGE = (1000, 6000)
PROTEIN_RANGE = (50, 400)
HYDRATION_RANGE = (1.0, 6.0)

DEFAULT_BMR = 2000
DEFAULT_HYDRATION_L = 2.5

ACTIVITY_MULTIPLIERS: Dict[str, float] = {
    "sedentary": 1.2,
    "lightly active": 1.375,
    "moderately active": 1.55,
    "very active": 1.725,
    "extra active": 1.9,
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.55

GOAL_CALORIE_FACTORS: Dict[Goal, float] = {
    Goal.WEIGHT_LOSS: 0.85,
    Goal.MUSCLE_GAIN: 1.1,
}

# (carb %, fat %) of calories left after protein
MACRO_SPLITS: Dict[Goal, tuple] = {
    Goal.MUSCLE_GAIN: (45, 25),
    Goal.WEIGHT_LOSS: (35, 35),
}
DEFAULT_MACRO_SPLIT = (40, 30)

MEAL_NAMES: Dict[int, List[str]] = {
    1: ["Main Meal"],
    2: ["First Meal", "Second Meal"],
    3: ["Breakfast", "Lunch", "Dinner"],
    4: ["Breakfast", "Lunch", "Afternoon Snack", "Dinner"],
    5: ["Breakfast", "Morning Snack", "Lunch", "Afternoon Snack", "Dinner"],
    6: ["Breakfast", "Morning Snack", "Lunch", "Afternoon Snack", "Dinner", "Evening Snack"],
    7: ["Breakfast", "Mid-Morning", "Lunch", "Afternoon Snack", "Post-Workout", "Dinner", "Before Bed"],
    8: ["Breakfast", "Snack 1", "Lunch", "Snack 2", "Pre-Workout", "Post-Workout", "Dinner", "Before Bed"],
}


@dataclass(frozen=True)
class NutritionTarget:
    total_kcal: int
    protein_g: int
    carbs_g: int
    fat_g: int
    hydration_l: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "total_kcal": self.total_kcal,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "hydration_l": self.hydration_l,
        }


def _clamp(value: float, bounds: tuple) -> float:
    lo, hi = bounds
    return max(lo, min(hi, value))


def meal_names(meal_count: int) -> List[str]:
    return list(MEAL_NAMES.get(meal_count, MEAL_NAMES[3]))


def calculate_bmr(profile: UserProfile) -> float:
    """Mifflin-St Jeor BMR, or DEFAULT_BMR when body data is missing."""
    if not (profile.weight_kg and profile.height_cm and profile.age):
        return DEFAULT_BMR
    base = 10 * profile.weight_kg + 6.25 * profile.height_cm - 5 * profile.age
    sex = (profile.sex or "").lower()
    if sex == "male":
        return base + 5
    if sex == "female":
        return base - 161
    return base - 78


def calculate_tdee(profile: UserProfile) -> float:
    multiplier = ACTIVITY_MULTIPLIERS.get((profile.activity_level or "").strip().lower(),
                                          DEFAULT_ACTIVITY_MULTIPLIER)
    return calculate_bmr(profile) * multiplier


def calorie_target(profile: UserProfile) -> int:
    if profile.daily_calorie_target:
        return int(_clamp(profile.daily_calorie_target, KCAL_RANGE))
    kcal = calculate_tdee(profile) * GOAL_CALORIE_FACTORS.get(profile.goal, 1.0)
    return int(round(_clamp(kcal, KCAL_RANGE)))


def protein_target(profile: UserProfile, total_kcal: int) -> int:
    if profile.daily_protein_target:
        return int(_clamp(profile.daily_protein_target, PROTEIN_RANGE))
    if profile.weight_kg:
        per_kg = 2.2 if profile.goal == Goal.MUSCLE_GAIN else 1.8
        grams = profile.weight_kg * per_kg
    else:
        grams = total_kcal * 0.3 / 4
    return int(round(_clamp(grams, PROTEIN_RANGE)))


def hydration_target(profile: UserProfile) -> float:
    if not profile.weight_kg:
        return DEFAULT_HYDRATION_L
    return round(_clamp(profile.weight_kg * 0.035, (2.0, 4.0)), 1)


def compute_base_targets(profile: UserProfile) -> NutritionTarget:
    """Daily calorie/macro/hydration targets derived from the profile."""
    total_kcal = calorie_target(profile)
    protein_g = protein_target(profile, total_kcal)
    carb_pct, fat_pct = MACRO_SPLITS.get(profile.goal, DEFAULT_MACRO_SPLIT)

    remaining = max(0, total_kcal - protein_g * 4)
    carb_share = carb_pct / float(carb_pct + fat_pct)
    carbs_g = int(round(remaining * carb_share / 4))
    fat_g = int(round(remaining * (1 - carb_share) / 9))

    target = NutritionTarget(
        total_kcal=total_kcal,
        protein_g=protein_g,
        carbs_g=carbs_g,
        fat_g=fat_g,
        hydration_l=hydration_target(profile),
    )
    logger.debug("Base targets for %s: %s", profile.user_id, target)
    return target


# =============================================================================
# ADJUSTMENT POLICY
# =============================================================================

def nutrition_delta(base: BaseNutrition, intensity: Intensity) -> NutritionDelta:
    """
    Bounded per-day adjustment for training intensity.

    rest: carbs -15%, hydration -0.3 l
    high: carbs +10%, protein +5%, hydration +0.5 l
    low: carbs -8%
    moderate: unchanged
    """
    if intensity == Intensity.REST:
        carbs = -int(round(base.carbs_g * 0.15))
        return NutritionDelta(kcal=carbs * 4, carbs_g=carbs, hydration_l=-0.3,
                              reason="Rest day: carbs reduced 15%")
    if intensity == Intensity.HIGH:
        carbs = int(round(base.carbs_g * 0.10))
        protein = int(round(base.protein_g * 0.05))
        return NutritionDelta(kcal=(carbs + protein) * 4, protein_g=protein, carbs_g=carbs,
                              hydration_l=0.5, reason="High-intensity day: carbs +10%, protein +5%")
    if intensity == Intensity.LOW:
        carbs = -int(round(base.carbs_g * 0.08))
        return NutritionDelta(kcal=carbs * 4, carbs_g=carbs, reason="Low-intensity day: carbs reduced 8%")
    return NutritionDelta(reason="Moderate day: base targets")


def apply_delta(base: BaseNutrition, delta: NutritionDelta) -> NutritionTarget:
    """Day target = base + delta, clamped to schema ranges."""
    return NutritionTarget(
        total_kcal=int(_clamp(base.total_kcal + delta.kcal, KCAL_RANGE)),
        protein_g=int(_clamp(base.protein_g + delta.protein_g, PROTEIN_RANGE)),
        carbs_g=max(0, base.carbs_g + delta.carbs_g),
        fat_g=max(0, base.fat_g + delta.fat_g),
        hydration_l=round(_clamp(base.hydration_l + delta.hydration_l, HYDRATION_RANGE), 1),
    )


__all__ = [
    "KCAL_RANGE",
    "PROTEIN_RANGE",
    "HYDRATION_RANGE",
    "MEAL_NAMES",
    "NutritionTarget",
    "meal_names",
    "calculate_bmr",
    "calculate_tdee",
    "calorie_target",
    "protein_target",
    "compute_base_targets",
    "nutrition_delta",
    "apply_delta",
]
