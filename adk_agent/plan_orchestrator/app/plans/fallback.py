"""
Fallback Generator - Deterministic artifacts when the model cannot deliver.

Every function here is a pure function of the profile and upstream
artifacts. Outputs satisfy the schema contracts with zero repairs and pass
the verifiers, so a fallback never needs a second fallback.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

from app.plans.foods import grams_for_kcal, meal_foods, meal_kind
from app.plans.models import (
    ArtifactType,
    BaseNutrition,
    DayNutrition,
    DayRecovery,
    DaySplit,
    DayWorkout,
    ExerciseItem,
    Intensity,
    Meal,
    MealItem,
    Reasoning,
    SupplementsPlan,
    WorkoutBlock,
    WorkoutSplit,
)
from app.plans.profile import DAYS, DietaryPref, Goal, UserProfile
from app.plans.session_time import estimate_session_minutes, minutes_in_reps
from app.plans.supplements import (
    day_supplement_lines,
    goal_add_ons,
    merge_supplements,
    mobility_routine,
    sleep_routine,
)
from app.plans.targets import apply_delta, compute_base_targets, meal_names, nutrition_delta
from app.plans.taxonomy import (
    CONDITIONING,
    CORE,
    FOCUS_MUSCLES,
    LEVEL_PRESCRIPTIONS,
    RECOVERY,
    candidate_exercises,
    focus_categories,
    normalize_name,
)

logger = logging.getLogger(__name__)

# =============================================================================
# SPLIT
# =============================================================================

SPLIT_TEMPLATES: Dict[int, List[str]] = {
    1: ["Full Body"],
    2: ["Full Body", "Full Body"],
    3: ["Full Body", "Upper Body", "Lower Body"],
    4: ["Upper Body", "Lower Body", "Upper Body", "Lower Body"],
    5: ["Push", "Pull", "Legs", "Upper Body", "Lower Body"],
    6: ["Push", "Pull", "Legs", "Push", "Pull", "Legs"],
    7: ["Push", "Pull", "Legs", "Push", "Pull", "Legs", "Active Recovery"],
}

MUSCLE_GAIN_THREE_DAY = ["Push", "Pull", "Legs"]
_LOW_INTENSITY_FOCUS = ("active recovery", "mobility")

REST_FOCUS = ["Rest", "Recovery"]


def training_day_slots(profile: UserProfile) -> List[str]:
    """Weekdays to train on: preferred days first, then evenly spread."""
    n = profile.training_days
    chosen = [d for d in DAYS if d in profile.preferred_training_days][:n]
    spread = [DAYS[int(i * 7 / n)] for i in range(n)]
    for day in spread + list(DAYS):
        if len(chosen) >= n:
            break
        if day not in chosen:
            chosen.append(day)
    return [d for d in DAYS if d in chosen]


def _template_for(profile: UserProfile) -> List[str]:
    if profile.training_days == 3 and profile.goal == Goal.MUSCLE_GAIN:
        labels = list(MUSCLE_GAIN_THREE_DAY)
    else:
        labels = list(SPLIT_TEMPLATES[profile.training_days])
    if profile.goal == Goal.FLEXIBILITY_MOBILITY and len(labels) >= 3:
        labels[-1] = "Mobility"
    return labels


def fallback_split(profile: UserProfile) -> WorkoutSplit:
    """Template split: alternating high/moderate intensity on the chosen weekdays."""
    labels = _template_for(profile)
    slots = training_day_slots(profile)
    days: Dict[str, DaySplit] = {}

    for day in DAYS:
        if day not in slots:
            days[day] = DaySplit(
                is_rest_day=True,
                focus=list(REST_FOCUS),
                intensity=Intensity.REST,
                rationale="Scheduled recovery between sessions",
            )
            continue

        index = slots.index(day)
        label = labels[index]
        focus = [label]
        if profile.goal == Goal.ENDURANCE and normalize_name(label) not in _LOW_INTENSITY_FOCUS:
            focus.append("Conditioning")

        if normalize_name(label) in _LOW_INTENSITY_FOCUS:
            intensity = Intensity.LOW
        else:
            intensity = Intensity.HIGH if index % 2 == 0 else Intensity.MODERATE

        primary, secondary = FOCUS_MUSCLES.get(normalize_name(label), (["full body"], []))
        days[day] = DaySplit(
            is_rest_day=False,
            focus=focus,
            intensity=intensity,
            primary_muscles=list(primary),
            secondary_muscles=list(secondary),
            rationale=f"{label} session {index + 1} of {len(slots)} at {intensity.value} intensity",
        )
    return WorkoutSplit(days=days)


# =============================================================================
# NUTRITION
# =============================================================================

def build_meals(diet: DietaryPref, meal_count: int, total_kcal: int) -> List[Meal]:
    """Template meals sized so item estimates add up to total_kcal."""
    names = meal_names(meal_count)
    kinds = [meal_kind(name, meal_count) for name in names]
    weights = [1 if kind == "snack" else 2 for kind in kinds]
    total_weight = float(sum(weights))

    meals = []
    for name, kind, weight in zip(names, kinds, weights):
        meal_kcal = total_kcal * weight / total_weight
        items = [
            MealItem(food=food, qty=f"{grams_for_kcal(food, meal_kcal * share)}g")
            for food, share in meal_foods(diet, kind)
        ]
        meals.append(Meal(name=name, items=items))
    return meals


def fallback_base_nutrition(profile: UserProfile) -> BaseNutrition:
    target = compute_base_targets(profile)
    return BaseNutrition(
        total_kcal=target.total_kcal,
        protein_g=target.protein_g,
        carbs_g=target.carbs_g,
        fat_g=target.fat_g,
        hydration_l=target.hydration_l,
        meal_templates=build_meals(profile.diet, profile.meal_count, target.total_kcal),
    )


def fallback_nutrition(profile: UserProfile, base: BaseNutrition, split_day: DaySplit) -> DayNutrition:
    """Day nutrition at exactly the adjusted target for the day's intensity."""
    target = apply_delta(base, nutrition_delta(base, split_day.intensity))
    return DayNutrition(
        total_kcal=target.total_kcal,
        protein_g=target.protein_g,
        meals=build_meals(profile.diet, profile.meal_count, target.total_kcal),
        hydration_l=target.hydration_l,
        carbs_g=target.carbs_g,
        fat_g=target.fat_g,
    )


# =============================================================================
# WORKOUT
# =============================================================================

WARM_UP = ExerciseItem(exercise="Dynamic Warm-up", sets=1, reps="5 min", rir=0, duration_min=5)
LAST_RESORT = ExerciseItem(exercise="Active Rest", sets=1, reps="10 min", rir=0)
MIN_TIMED_MINUTES = 5


def rest_day_workout() -> DayWorkout:
    return DayWorkout(
        focus=list(REST_FOCUS),
        blocks=[
            WorkoutBlock(
                name="Active Recovery",
                items=[
                    ExerciseItem(exercise="Light Walking", sets=1, reps="15-20 min", rir=0),
                    ExerciseItem(exercise="Full Body Stretching", sets=1, reps="10 min", rir=0),
                ],
            )
        ],
        notes="Recovery day. Keep movement easy and conversational.",
    )


def _main_item(name: str, category: str, sets: int, reps: str, rir: int) -> ExerciseItem:
    if category == RECOVERY:
        return ExerciseItem(exercise=name, sets=1, reps="10 min", rir=0)
    if category == CONDITIONING:
        return ExerciseItem(exercise=name, sets=sets, reps="40 sec", rir=max(rir, 2))
    return ExerciseItem(exercise=name, sets=sets, reps=reps, rir=rir)


def _pick(category: str, profile: UserProfile, used: List[str]) -> Optional[str]:
    for name in candidate_exercises(category, profile):
        if name not in used:
            return name
    return None


def fallback_workout(profile: UserProfile, split_day: DaySplit) -> DayWorkout:
    """
    Template session for a split day.

    Warm-up, a main block from the focus category slots, and a core or
    conditioning finisher; trimmed until it fits the session cap.
    """
    if split_day.is_rest_day:
        return _fit_to_cap(rest_day_workout(), profile.session_length_min)

    prescription = LEVEL_PRESCRIPTIONS[profile.training_level]
    sets, reps, rir = prescription.default_sets, prescription.default_reps, prescription.default_rir
    low = split_day.intensity == Intensity.LOW
    if low:
        sets = max(2, sets - 1)
        rir = min(5, rir + 1)

    slots = focus_categories(split_day.focus)[: 3 if low else 4]
    used: List[str] = []
    main_items: List[ExerciseItem] = []
    for category in slots:
        name = _pick(category, profile, used)
        chosen_category = category
        if name is None:
            for alt in (CORE, RECOVERY):
                name = _pick(alt, profile, used)
                if name:
                    chosen_category = alt
                    break
        if name is None:
            continue
        used.append(name)
        main_items.append(_main_item(name, chosen_category, sets, reps, rir))
    if not main_items:
        main_items.append(copy.copy(LAST_RESORT))

    finisher_category = CONDITIONING if any(
        normalize_name(f) == "conditioning" for f in split_day.focus
    ) else CORE
    blocks = [WorkoutBlock(name="Warm-up", items=[copy.copy(WARM_UP)]),
              WorkoutBlock(name="Main", items=main_items)]
    finisher = _pick(finisher_category, profile, used) or _pick(CORE, profile, used)
    if finisher:
        blocks.append(WorkoutBlock(
            name="Finisher",
            items=[_main_item(finisher, finisher_category, 2, "30 sec", max(rir, 2))],
        ))

    workout = DayWorkout(
        focus=list(split_day.focus),
        blocks=blocks,
        notes=f"Template {' & '.join(split_day.focus)} session. Target {prescription.instruction()}.",
    )
    return _fit_to_cap(workout, profile.session_length_min)


def _fit_to_cap(workout: DayWorkout, cap: int) -> DayWorkout:
    """Shrink a workout until its estimate is within cap minutes."""
    while estimate_session_minutes(workout) > cap:
        biggest = max(workout.blocks, key=lambda b: len(b.items))
        if len(biggest.items) > 2:
            biggest.items.pop()
            continue
        if len(workout.blocks) > 1:
            # Main block is the one kept
            extra = [b for b in workout.blocks if b.name != "Main"]
            workout.blocks.remove(extra[-1] if extra else workout.blocks[-1])
            continue
        items = [i for _, _, i in workout.iter_items()]
        reducible = [i for i in items if i.sets > 1]
        if reducible:
            for item in reducible:
                item.sets -= 1
            continue
        timed = [i for i in items if (minutes_in_reps(i.reps) or 0) > MIN_TIMED_MINUTES]
        if timed:
            for item in timed:
                minutes = max(MIN_TIMED_MINUTES, int(minutes_in_reps(item.reps) // 2))
                item.reps = f"{minutes} min"
            continue
        if len(biggest.items) > 1:
            biggest.items.pop()
            continue
        logger.warning("Could not fit template workout under %d min", cap)
        break
    return workout


# =============================================================================
# RECOVERY / SUPPLEMENTS
# =============================================================================

def fallback_recovery(profile: UserProfile, split_day: DaySplit) -> DayRecovery:
    card = merge_supplements(profile.supplements, goal_add_ons(profile.goal, profile.supplements))
    return DayRecovery(
        mobility=mobility_routine(split_day),
        sleep=sleep_routine(split_day),
        supplements=day_supplement_lines(profile.supplements, not split_day.is_rest_day),
        supplement_card=card,
    )


def fallback_supplements(profile: UserProfile, split: WorkoutSplit) -> SupplementsPlan:
    return SupplementsPlan(
        days={day: fallback_recovery(profile, split.days[day]) for day in DAYS},
        recommended_add_ons=goal_add_ons(profile.goal, profile.supplements),
    )


# =============================================================================
# REASONING
# =============================================================================

def default_reason(profile: UserProfile, split_day: DaySplit) -> str:
    if split_day.is_rest_day:
        return f"{profile.name}, today is your recovery day. Rest is when your body rebuilds stronger!"
    return f"{profile.name}, time to crush {' & '.join(split_day.focus)}! Let's make it count."


def fallback_reasoning(profile: UserProfile, split: WorkoutSplit) -> Reasoning:
    return Reasoning(reasons={day: default_reason(profile, split.days[day]) for day in DAYS})


# =============================================================================
# DISPATCH
# =============================================================================

def fallback(profile: UserProfile, artifact_type: ArtifactType, context: Optional[Dict[str, Any]] = None):
    """
    Deterministic artifact for artifact_type.

    Context keys: "split" (WorkoutSplit), "base_nutrition" (BaseNutrition),
    and "day" for per-day artifacts.
    """
    context = context or {}
    if artifact_type == ArtifactType.SPLIT:
        return fallback_split(profile)
    if artifact_type == ArtifactType.BASE_NUTRITION:
        return fallback_base_nutrition(profile)

    split: WorkoutSplit = context.get("split") or fallback_split(profile)
    day = context.get("day")
    if artifact_type == ArtifactType.WORKOUT:
        return fallback_workout(profile, split.days[day])
    if artifact_type == ArtifactType.NUTRITION:
        base = context.get("base_nutrition") or fallback_base_nutrition(profile)
        return fallback_nutrition(profile, base, split.days[day])
    if artifact_type == ArtifactType.SUPPLEMENTS:
        if day:
            return fallback_recovery(profile, split.days[day])
        return fallback_supplements(profile, split)
    if artifact_type == ArtifactType.REASONING:
        return fallback_reasoning(profile, split)
    raise ValueError(f"No fallback for {artifact_type}")


__all__ = [
    "SPLIT_TEMPLATES",
    "training_day_slots",
    "fallback_split",
    "build_meals",
    "fallback_base_nutrition",
    "fallback_nutrition",
    "rest_day_workout",
    "fallback_workout",
    "fallback_recovery",
    "fallback_supplements",
    "default_reason",
    "fallback_reasoning",
    "fallback",
]
