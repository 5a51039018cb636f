"""
Verifiers - Domain constraints for per-day artifacts.

Pure functions: the same artifact and profile always give the same result,
and the artifact is never modified. Builders already instruct the model
about these rules; verifiers re-check independently because the model
does not always listen.
"""

from __future__ import annotations

from typing import Optional

from app.plans.foods import dietary_conflict, estimate_item
from app.plans.models import ArtifactType, DayNutrition, DayRecovery, DayWorkout, VerificationResult
from app.plans.profile import UserProfile
from app.plans.session_time import estimate_session_minutes
from app.plans.supplements import blacklisted_token
from app.plans.taxonomy import (
    contraindicated_keywords,
    injury_conflict,
    is_equipment_available,
    matches_avoided,
    required_equipment,
)

KCAL_TOLERANCE = 0.05
# Food DB values are per-100 g averages; item sums only catch gross mismatches
ITEM_ESTIMATE_TOLERANCE = 0.35


def verify_workout(workout: DayWorkout, profile: UserProfile) -> VerificationResult:
    """Equipment, avoid list, injuries, and the session-time cap."""
    result = VerificationResult()
    contraindicated = contraindicated_keywords(profile.injuries)

    for bi, ii, item in workout.iter_items():
        path = f"blocks[{bi}].items[{ii}].exercise"
        needed = required_equipment(item.exercise)
        if not is_equipment_available(needed, profile.equipment):
            result.add_violation(path, f"'{item.exercise}' requires {needed.value} equipment")
        avoided = matches_avoided(item.exercise, profile.avoid_exercises)
        if avoided:
            result.add_violation(path, f"'{item.exercise}' matches avoided exercise '{avoided}'")
        conflict = injury_conflict(item.exercise, contraindicated)
        if conflict:
            result.add_violation(path, f"'{item.exercise}' is contraindicated by injury ({conflict})")

    minutes = estimate_session_minutes(workout)
    if minutes > profile.session_length_min:
        result.add_violation(
            "blocks",
            f"estimated session {minutes:.0f} min exceeds cap of {profile.session_length_min} min",
        )
    return result


def verify_nutrition(nutrition: DayNutrition, profile: UserProfile,
                     target_kcal: Optional[int] = None) -> VerificationResult:
    """Dietary compliance, calorie tolerance, meal count, and item estimates."""
    result = VerificationResult()
    diet = profile.diet

    for mi, meal in enumerate(nutrition.meals):
        hit = dietary_conflict(meal.name, diet)
        if hit:
            result.add_violation(f"meals[{mi}].name", f"'{meal.name}' conflicts with {diet.value} diet ({hit})")
        for ii, item in enumerate(meal.items):
            hit = dietary_conflict(item.food, diet)
            if hit:
                result.add_violation(
                    f"meals[{mi}].items[{ii}].food",
                    f"'{item.food}' conflicts with {diet.value} diet ({hit})",
                )

    if len(nutrition.meals) != profile.meal_count:
        result.add_violation("meals", f"{len(nutrition.meals)} meals, expected {profile.meal_count}")

    if target_kcal:
        if abs(nutrition.total_kcal - target_kcal) > target_kcal * KCAL_TOLERANCE:
            result.add_violation(
                "total_kcal",
                f"{nutrition.total_kcal} kcal is outside ±5% of target {target_kcal}",
            )

    estimated = 0.0
    all_recognised = True
    for meal in nutrition.meals:
        for item in meal.items:
            kcal, _, recognised = estimate_item(item.food, item.qty)
            estimated += kcal
            all_recognised = all_recognised and recognised
    if all_recognised and nutrition.total_kcal:
        if abs(estimated - nutrition.total_kcal) > nutrition.total_kcal * ITEM_ESTIMATE_TOLERANCE:
            result.add_violation(
                "meals",
                f"items add up to ~{estimated:.0f} kcal but total_kcal is {nutrition.total_kcal}",
            )
    return result


def verify_recovery(recovery: DayRecovery, profile: Optional[UserProfile] = None) -> VerificationResult:
    """No blacklisted compound in supplements or add-ons."""
    result = VerificationResult()
    for i, name in enumerate(recovery.supplements):
        token = blacklisted_token(name)
        if token:
            result.add_violation(f"supplements[{i}]", f"'{name}' is not allowed ({token})")
    for i, name in enumerate(recovery.supplement_card.add_ons):
        token = blacklisted_token(name)
        if token:
            result.add_violation(f"supplementCard.addOns[{i}]", f"'{name}' is not allowed ({token})")
    return result


def verify(artifact_type: ArtifactType, value, profile: UserProfile,
           target_kcal: Optional[int] = None) -> VerificationResult:
    """Dispatch to the verifier for a per-day artifact type."""
    if artifact_type == ArtifactType.WORKOUT:
        return verify_workout(value, profile)
    if artifact_type == ArtifactType.NUTRITION:
        return verify_nutrition(value, profile, target_kcal)
    if artifact_type == ArtifactType.SUPPLEMENTS:
        return verify_recovery(value, profile)
    raise ValueError(f"No verifier for {artifact_type.value}")


__all__ = [
    "KCAL_TOLERANCE",
    "ITEM_ESTIMATE_TOLERANCE",
    "verify_workout",
    "verify_nutrition",
    "verify_recovery",
    "verify",
]
