"""
Schema Validator/Repairer - Structural contract per artifact type.

validate(value, artifact_type, profile) turns the extractor's raw JSON into a
typed artifact. Bounded numeric fields are clamped, coercible fields are
coerced, and missing optional fields are defaulted; every such change is
recorded as a repair. Anything that cannot be repaired is an error and the
result carries no value.

Repairs never decide acceptance on their own: the orchestrator compares the
repair count against PipelineConfig.max_repairs.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from app.errors import SchemaError
from app.plans.models import (
    ArtifactType,
    BaseNutrition,
    DayNutrition,
    DayPlan,
    DayRecovery,
    DaySplit,
    DayWorkout,
    ExerciseItem,
    Intensity,
    Meal,
    MealItem,
    Reasoning,
    SupplementCard,
    SupplementsPlan,
    WorkoutBlock,
    WorkoutSplit,
)
from app.plans.profile import DAYS, UserProfile
from app.plans.supplements import merge_supplements, mobility_routine, sleep_routine
from app.plans.targets import HYDRATION_RANGE, KCAL_RANGE, PROTEIN_RANGE

logger = logging.getLogger(__name__)

SETS_RANGE = (1, 10)
RIR_RANGE = (0, 5)
DEFAULT_SETS = 3
DEFAULT_REPS = "10"
DEFAULT_RIR = 2
DEFAULT_HYDRATION_L = 2.5

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")

_GENERIC_MOBILITY = ["Cat-cow stretch - 10 reps", "Hip circles - 10 each direction"]
_GENERIC_SLEEP = ["7-8 hours recommended", "Consistent sleep schedule helps recovery"]


@dataclass
class SchemaResult:
    """Typed value plus the repairs applied, or the errors found."""
    artifact_type: ArtifactType
    value: Any = None
    repairs: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and self.value is not None

    def add_error(self, path: str, reason: str) -> None:
        self.errors.append({"path": path, "reason": reason})

    def add_repair(self, path: str, action: str, before: Any = None, after: Any = None) -> None:
        self.repairs.append({"path": path, "action": action, "from": before, "to": after})

    def raise_for_errors(self) -> None:
        if self.errors:
            raise SchemaError(
                f"{self.artifact_type.value} failed validation with {len(self.errors)} error(s)",
                errors=self.errors,
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "artifact_type": self.artifact_type.value,
            "ok": self.ok,
            "repairs": self.repairs,
            "errors": self.errors,
        }


# =============================================================================
# COERCION HELPERS
# =============================================================================

def _as_number(value: Any) -> Optional[float]:
    """Finite float from a number or the first number in a string."""
    if isinstance(value, bool):
        return None
    number = None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        m = _NUMBER_RE.search(value)
        if m:
            number = float(m.group())
    if number is None or not math.isfinite(number):
        return None
    return number


def _int_field(result: SchemaResult, data: Dict[str, Any], key: str, path: str,
               bounds: Optional[Tuple[int, int]] = None, default: Optional[int] = None) -> Optional[int]:
    """Read an int field, coercing and clamping with repairs recorded."""
    raw = data.get(key)
    if raw is None:
        if default is None:
            result.add_error(path, "missing required integer")
            return None
        result.add_repair(path, "defaulted", None, default)
        return default

    number = _as_number(raw)
    if number is None:
        if default is None:
            result.add_error(path, f"not a number: {raw!r}")
            return None
        result.add_repair(path, "defaulted", raw, default)
        return default

    value = int(round(number))
    if not isinstance(raw, int) or isinstance(raw, bool):
        result.add_repair(path, "coerced", raw, value)
    if bounds is not None:
        lo, hi = bounds
        clamped = max(lo, min(hi, value))
        if clamped != value:
            result.add_repair(path, "clamped", value, clamped)
            value = clamped
    return value


def _float_field(result: SchemaResult, data: Dict[str, Any], key: str, path: str,
                 bounds: Tuple[float, float], default: Optional[float] = None) -> Optional[float]:
    raw = data.get(key)
    number = _as_number(raw) if raw is not None else None
    if number is None:
        if default is None:
            result.add_error(path, "missing required number")
            return None
        result.add_repair(path, "defaulted", raw, default)
        return default
    if isinstance(raw, str):
        result.add_repair(path, "coerced", raw, number)
    lo, hi = bounds
    clamped = max(lo, min(hi, number))
    if clamped != number:
        result.add_repair(path, "clamped", number, clamped)
    return round(clamped, 2)


def _string_list(result: SchemaResult, raw: Any, path: str) -> Optional[List[str]]:
    """List of non-empty strings; a bare string becomes a one-item list."""
    if raw is None:
        return None
    if isinstance(raw, str):
        result.add_repair(path, "wrapped_string", raw, [raw])
        raw = [raw]
    if not isinstance(raw, list):
        result.add_error(path, "expected a list")
        return None
    cleaned = [str(v).strip() for v in raw if v is not None and str(v).strip()]
    if len(cleaned) != len(raw):
        result.add_repair(path, "dropped_empty", len(raw), len(cleaned))
    return cleaned


def _muscle_list(result: SchemaResult, raw: Any, path: str) -> List[str]:
    """Lower-cased muscle names; anything but a list or string is dropped."""
    if raw is not None and not isinstance(raw, (list, str)):
        result.add_repair(path, "dropped_invalid", raw, [])
        return []
    return [m.lower() for m in _string_list(result, raw, path) or []]


def _day_mapping(result: SchemaResult, value: Any, envelope_key: str) -> Optional[Dict[str, Any]]:
    """Accept {envelope_key: {day: ...}} or {day: ...}; keys lower-cased."""
    if not isinstance(value, dict):
        result.add_error("$", "expected an object")
        return None
    inner = value.get(envelope_key, value)
    if not isinstance(inner, dict):
        result.add_error(envelope_key, "expected an object keyed by day")
        return None
    return {str(k).strip().lower(): v for k, v in inner.items()}


# =============================================================================
# SPLIT
# =============================================================================

def _validate_day_split(result: SchemaResult, raw: Any, path: str) -> Optional[DaySplit]:
    if not isinstance(raw, dict):
        result.add_error(path, "expected an object")
        return None

    raw_intensity = str(raw.get("intensity", "")).strip().lower()
    is_rest = raw.get("is_rest_day")
    if isinstance(is_rest, str) and is_rest.strip().lower() in ("true", "false"):
        coerced = is_rest.strip().lower() == "true"
        result.add_repair(f"{path}.is_rest_day", "coerced", is_rest, coerced)
        is_rest = coerced
    elif is_rest is None and raw_intensity:
        is_rest = raw_intensity == Intensity.REST.value
        result.add_repair(f"{path}.is_rest_day", "inferred_from_intensity", None, is_rest)
    if not isinstance(is_rest, bool):
        result.add_error(f"{path}.is_rest_day", "expected a boolean")
        return None

    focus = _string_list(result, raw.get("focus"), f"{path}.focus")
    if not focus:
        if is_rest:
            result.add_repair(f"{path}.focus", "defaulted", raw.get("focus"), ["Rest"])
            focus = ["Rest"]
        else:
            result.add_error(f"{path}.focus", "focus must be a non-empty list")
            return None

    valid = {i.value for i in Intensity}
    if raw_intensity in valid:
        intensity = Intensity(raw_intensity)
    else:
        intensity = Intensity.REST if is_rest else Intensity.MODERATE
        result.add_repair(f"{path}.intensity", "unknown_intensity", raw.get("intensity"), intensity.value)
    if is_rest and intensity != Intensity.REST:
        result.add_repair(f"{path}.intensity", "rest_day_intensity", intensity.value, Intensity.REST.value)
        intensity = Intensity.REST
    elif not is_rest and intensity == Intensity.REST:
        result.add_repair(f"{path}.intensity", "training_day_intensity", intensity.value,
                          Intensity.MODERATE.value)
        intensity = Intensity.MODERATE

    return DaySplit(
        is_rest_day=is_rest,
        focus=focus,
        intensity=intensity,
        primary_muscles=_muscle_list(result, raw.get("primary_muscles"), f"{path}.primary_muscles"),
        secondary_muscles=_muscle_list(result, raw.get("secondary_muscles"), f"{path}.secondary_muscles"),
        rationale=str(raw.get("rationale") or ""),
    )


def _validate_split(result: SchemaResult, value: Any, profile: Optional[UserProfile]) -> None:
    days_raw = _day_mapping(result, value, "days")
    if days_raw is None:
        return

    days: Dict[str, DaySplit] = {}
    for day in DAYS:
        if day not in days_raw:
            result.add_error(f"days.{day}", "missing day")
            continue
        parsed = _validate_day_split(result, days_raw[day], f"days.{day}")
        if parsed is not None:
            days[day] = parsed
    if result.errors:
        return

    split = WorkoutSplit(days=days)
    if profile is not None and split.training_day_count != profile.training_days:
        result.add_error(
            "days",
            f"{split.training_day_count} training days, expected {profile.training_days}",
        )
        return

    # Back-to-back high days on the same primary muscle need an overload rationale
    for prev_day, day in zip(DAYS, DAYS[1:]):
        prev, cur = days[prev_day], days[day]
        if prev.intensity != Intensity.HIGH or cur.intensity != Intensity.HIGH:
            continue
        shared = set(prev.primary_muscles) & set(cur.primary_muscles)
        if shared and not cur.rationale.strip():
            cur.intensity = Intensity.MODERATE
            result.add_repair(f"days.{day}.intensity", "consecutive_high_same_muscle",
                              Intensity.HIGH.value, Intensity.MODERATE.value)

    result.value = split


# =============================================================================
# MEALS / NUTRITION
# =============================================================================

def _validate_meals(result: SchemaResult, raw: Any, path: str, meal_count: Optional[int]) -> Optional[List[Meal]]:
    if not isinstance(raw, list):
        result.add_error(path, "meals must be a list")
        return None

    meals: List[Meal] = []
    for mi, raw_meal in enumerate(raw):
        mpath = f"{path}[{mi}]"
        if not isinstance(raw_meal, dict):
            result.add_error(mpath, "meal must be an object")
            continue
        name = str(raw_meal.get("name") or "").strip()
        if not name:
            name = f"Meal {mi + 1}"
            result.add_repair(f"{mpath}.name", "defaulted", None, name)

        raw_items = raw_meal.get("items") or []
        if not isinstance(raw_items, list):
            result.add_error(f"{mpath}.items", "items must be a list")
            continue
        items: List[MealItem] = []
        for ii, raw_item in enumerate(raw_items):
            ipath = f"{mpath}.items[{ii}]"
            if not isinstance(raw_item, dict) or not str(raw_item.get("food") or "").strip():
                result.add_repair(ipath, "dropped_item_without_food", raw_item, None)
                continue
            qty = raw_item.get("qty")
            if qty is None or str(qty).strip() == "":
                result.add_repair(f"{ipath}.qty", "defaulted", qty, "1 serving")
                qty = "1 serving"
            elif not isinstance(qty, str):
                result.add_repair(f"{ipath}.qty", "coerced", qty, str(qty))
            items.append(MealItem(food=str(raw_item["food"]).strip(), qty=str(qty).strip()))
        if not items:
            result.add_error(f"{mpath}.items", "meal needs at least one item")
            continue
        meals.append(Meal(name=name, items=items))

    if meal_count is not None:
        if len(meals) > meal_count:
            result.add_repair(path, "truncated_meals", len(meals), meal_count)
            meals = meals[:meal_count]
        elif len(meals) < meal_count:
            result.add_error(path, f"{len(meals)} meals, expected {meal_count}")
            return None
    elif not meals:
        result.add_error(path, "at least one meal required")
        return None
    return meals


def _validate_nutrition(result: SchemaResult, value: Any, profile: Optional[UserProfile]) -> None:
    if not isinstance(value, dict):
        result.add_error("$", "expected an object")
        return

    total_kcal = _int_field(result, value, "total_kcal", "total_kcal", KCAL_RANGE)
    protein_g = _int_field(result, value, "protein_g", "protein_g", PROTEIN_RANGE)
    hydration_l = _float_field(result, value, "hydration_l", "hydration_l", HYDRATION_RANGE,
                               default=DEFAULT_HYDRATION_L)
    carbs_g = _int_field(result, value, "carbs_g", "carbs_g", (0, 1000)) if value.get("carbs_g") is not None else None
    fat_g = _int_field(result, value, "fat_g", "fat_g", (0, 500)) if value.get("fat_g") is not None else None
    meals = _validate_meals(result, value.get("meals"), "meals", profile.meal_count if profile else None)

    if result.errors:
        return
    result.value = DayNutrition(
        total_kcal=total_kcal,
        protein_g=protein_g,
        meals=meals,
        hydration_l=hydration_l,
        carbs_g=carbs_g,
        fat_g=fat_g,
    )


def _validate_base_nutrition(result: SchemaResult, value: Any, profile: Optional[UserProfile]) -> None:
    if not isinstance(value, dict):
        result.add_error("$", "expected an object")
        return

    total_kcal = _int_field(result, value, "total_kcal", "total_kcal", KCAL_RANGE)
    protein_g = _int_field(result, value, "protein_g", "protein_g", PROTEIN_RANGE)
    carbs_g = _int_field(result, value, "carbs_g", "carbs_g", (0, 1000))
    fat_g = _int_field(result, value, "fat_g", "fat_g", (0, 500))
    hydration_l = _float_field(result, value, "hydration_l", "hydration_l", HYDRATION_RANGE,
                               default=DEFAULT_HYDRATION_L)

    raw_templates = value.get("meal_templates")
    if raw_templates is None and "meals" in value:
        raw_templates = value["meals"]
        result.add_repair("meal_templates", "renamed_from_meals")
    templates = _validate_meals(result, raw_templates, "meal_templates",
                                profile.meal_count if profile else None)

    if result.errors:
        return
    result.value = BaseNutrition(
        total_kcal=total_kcal,
        protein_g=protein_g,
        carbs_g=carbs_g,
        fat_g=fat_g,
        hydration_l=hydration_l,
        meal_templates=templates,
    )


# =============================================================================
# WORKOUT
# =============================================================================

def _validate_item(result: SchemaResult, raw: Any, path: str) -> Optional[ExerciseItem]:
    if not isinstance(raw, dict):
        result.add_error(path, "item must be an object")
        return None
    exercise = raw.get("exercise")
    if not isinstance(exercise, str) or not exercise.strip():
        result.add_error(f"{path}.exercise", "exercise name required")
        return None

    sets = _int_field(result, raw, "sets", f"{path}.sets", SETS_RANGE, default=DEFAULT_SETS)

    reps = raw.get("reps")
    if reps is None or str(reps).strip() == "":
        result.add_repair(f"{path}.reps", "defaulted", reps, DEFAULT_REPS)
        reps = DEFAULT_REPS
    elif not isinstance(reps, str):
        result.add_repair(f"{path}.reps", "coerced", reps, str(reps))
        reps = str(reps)

    rir_key = "RIR" if "RIR" in raw else "rir"
    rir = _int_field(result, raw, rir_key, f"{path}.RIR", RIR_RANGE, default=DEFAULT_RIR)

    duration = raw.get("duration_min")
    duration_min: Optional[float] = None
    if duration is not None:
        number = _as_number(duration)
        if number is None or number <= 0:
            result.add_repair(f"{path}.duration_min", "dropped_invalid", duration, None)
        else:
            duration_min = number
            if isinstance(duration, str):
                result.add_repair(f"{path}.duration_min", "coerced", duration, number)

    if sets is None or rir is None:
        return None
    return ExerciseItem(exercise=exercise.strip(), sets=sets, reps=reps.strip(), rir=rir,
                        duration_min=duration_min)


def _validate_workout(result: SchemaResult, value: Any) -> None:
    if not isinstance(value, dict):
        result.add_error("$", "expected an object")
        return

    focus = _string_list(result, value.get("focus"), "focus")
    if not focus:
        result.add_error("focus", "focus must be a non-empty list")

    raw_blocks = value.get("blocks")
    if not isinstance(raw_blocks, list) or not raw_blocks:
        result.add_error("blocks", "at least one block required")
        return

    blocks: List[WorkoutBlock] = []
    for bi, raw_block in enumerate(raw_blocks):
        bpath = f"blocks[{bi}]"
        if not isinstance(raw_block, dict):
            result.add_error(bpath, "block must be an object")
            continue
        name = str(raw_block.get("name") or "").strip()
        if not name:
            name = f"Block {bi + 1}"
            result.add_repair(f"{bpath}.name", "defaulted", None, name)
        raw_items = raw_block.get("items")
        if not isinstance(raw_items, list) or not raw_items:
            result.add_repair(bpath, "dropped_empty_block", name, None)
            continue
        items = [_validate_item(result, raw_item, f"{bpath}.items[{ii}]") for ii, raw_item in enumerate(raw_items)]
        blocks.append(WorkoutBlock(name=name, items=[i for i in items if i is not None]))

    if not blocks:
        result.add_error("blocks", "no block with items")

    notes = value.get("notes")
    if notes is None:
        result.add_repair("notes", "defaulted", None, "")
        notes = ""

    if result.errors:
        return
    result.value = DayWorkout(focus=focus, blocks=blocks, notes=str(notes))


# =============================================================================
# RECOVERY / SUPPLEMENTS
# =============================================================================

def _validate_recovery(result: SchemaResult, raw: Any, path: str, profile: Optional[UserProfile],
                       split_day: Optional[DaySplit]) -> Optional[DayRecovery]:
    if not isinstance(raw, dict):
        result.add_error(path, "expected an object")
        return None

    mobility = _string_list(result, raw.get("mobility"), f"{path}.mobility")
    if not mobility:
        mobility = mobility_routine(split_day) if split_day else list(_GENERIC_MOBILITY)
        result.add_repair(f"{path}.mobility", "defaulted", raw.get("mobility"), mobility)

    sleep = _string_list(result, raw.get("sleep"), f"{path}.sleep")
    if not sleep:
        sleep = sleep_routine(split_day) if split_day else list(_GENERIC_SLEEP)
        result.add_repair(f"{path}.sleep", "defaulted", raw.get("sleep"), sleep)

    supplements = _string_list(result, raw.get("supplements"), f"{path}.supplements")
    if supplements is None:
        supplements = []
        result.add_repair(f"{path}.supplements", "defaulted", None, [])

    raw_card = raw.get("supplementCard")
    if not isinstance(raw_card, dict):
        card = merge_supplements(profile.supplements if profile else [], [])
        result.add_repair(f"{path}.supplementCard", "defaulted", raw_card, card.to_dict())
    else:
        lists = {}
        for key in ("current", "addOns", "optimizeNotes"):
            values = _string_list(result, raw_card.get(key), f"{path}.supplementCard.{key}")
            if values is None:
                values = []
                result.add_repair(f"{path}.supplementCard.{key}", "defaulted", None, [])
            lists[key] = values
        card = SupplementCard(current=lists["current"], add_ons=lists["addOns"],
                              optimize_notes=lists["optimizeNotes"])

    return DayRecovery(mobility=mobility, sleep=sleep, supplements=supplements, supplement_card=card)


def _validate_supplements(result: SchemaResult, value: Any, profile: Optional[UserProfile],
                          context: Dict[str, Any]) -> None:
    split: Optional[WorkoutSplit] = context.get("split")

    weekly = isinstance(value, dict) and ("days" in value or any(str(k).lower() in DAYS for k in value))
    if not weekly and context.get("weekly"):
        result.add_error("days", "expected recovery entries keyed by day")
        return
    if not weekly:
        day = context.get("day")
        split_day = split.days.get(day) if split and day else None
        recovery = _validate_recovery(result, value, "$", profile, split_day)
        if not result.errors:
            result.value = recovery
        return

    days_raw = _day_mapping(result, value, "days")
    if days_raw is None:
        return
    days: Dict[str, DayRecovery] = {}
    for day in DAYS:
        split_day = split.days.get(day) if split else None
        raw = days_raw.get(day)
        if raw is None:
            result.add_repair(f"days.{day}", "defaulted_missing_day")
            raw = {}
        recovery = _validate_recovery(result, raw, f"days.{day}", profile, split_day)
        if recovery is not None:
            days[day] = recovery

    add_ons = _string_list(result, value.get("recommendedAddOns") if isinstance(value, dict) else None,
                           "recommendedAddOns") or []
    if result.errors:
        return
    result.value = SupplementsPlan(days=days, recommended_add_ons=add_ons)


# =============================================================================
# REASONING
# =============================================================================

def _validate_reasoning(result: SchemaResult, value: Any) -> None:
    days_raw = _day_mapping(result, value, "reasons")
    if days_raw is None:
        return
    reasons: Dict[str, str] = {}
    for day in DAYS:
        raw = days_raw.get(day)
        if raw is None:
            result.add_error(f"reasons.{day}", "missing day")
            continue
        if not isinstance(raw, str):
            result.add_repair(f"reasons.{day}", "coerced", raw, str(raw))
            raw = str(raw)
        if not raw.strip():
            result.add_error(f"reasons.{day}", "empty reason")
            continue
        reasons[day] = raw.strip()
    if result.errors:
        return
    result.value = Reasoning(reasons=reasons)


# =============================================================================
# ENTRY POINTS
# =============================================================================

def validate(
    value: Any,
    artifact_type: ArtifactType,
    profile: Optional[UserProfile] = None,
    context: Optional[Dict[str, Any]] = None,
) -> SchemaResult:
    """
    Validate and repair one artifact.

    Args:
        value: JSON value from the extractor
        artifact_type: Which contract to apply
        profile: Supplies meal_count, training_days and the supplement stack
        context: Optional {"split": WorkoutSplit, "day": str, "weekly": bool} for recovery

    Returns:
        SchemaResult with a typed value when ok
    """
    result = SchemaResult(artifact_type=artifact_type)
    context = context or {}

    if artifact_type == ArtifactType.SPLIT:
        _validate_split(result, value, profile)
    elif artifact_type == ArtifactType.BASE_NUTRITION:
        _validate_base_nutrition(result, value, profile)
    elif artifact_type == ArtifactType.WORKOUT:
        _validate_workout(result, value)
    elif artifact_type == ArtifactType.NUTRITION:
        _validate_nutrition(result, value, profile)
    elif artifact_type == ArtifactType.SUPPLEMENTS:
        _validate_supplements(result, value, profile, context)
    elif artifact_type == ArtifactType.REASONING:
        _validate_reasoning(result, value)
    else:
        result.add_error("$", f"unknown artifact type {artifact_type}")

    if result.errors:
        result.value = None
        logger.debug("Schema errors for %s: %s", artifact_type.value, result.errors)
    elif result.repairs:
        logger.debug("Schema repairs for %s: %d", artifact_type.value, len(result.repairs))
    return result


def _prefixed(entries: List[Dict[str, Any]], prefix: str) -> List[Dict[str, Any]]:
    out = []
    for e in entries:
        path = prefix if e["path"] == "$" else f"{prefix}.{e['path']}"
        out.append({**e, "path": path})
    return out


def validate_weekly_plan(plan: Dict[str, Any], profile: UserProfile) -> SchemaResult:
    """
    Validate an assembled plan dict day by day.

    The value is {day: DayPlan}; repairs and errors carry a days.<day> prefix.
    """
    result = SchemaResult(artifact_type=ArtifactType.SPLIT)
    days_raw = (plan or {}).get("days") or {}
    day_plans: Dict[str, DayPlan] = {}

    for day in DAYS:
        raw = days_raw.get(day)
        if not isinstance(raw, dict):
            result.add_error(f"days.{day}", "missing day")
            continue

        parts = {}
        for key, artifact_type in (("workout", ArtifactType.WORKOUT),
                                   ("nutrition", ArtifactType.NUTRITION),
                                   ("recovery", ArtifactType.SUPPLEMENTS)):
            part = validate(raw.get(key), artifact_type, profile)
            result.repairs.extend(_prefixed(part.repairs, f"days.{day}.{key}"))
            result.errors.extend(_prefixed(part.errors, f"days.{day}.{key}"))
            parts[key] = part.value

        reason = raw.get("reason")
        if not isinstance(reason, str) or not reason.strip():
            result.add_error(f"days.{day}.reason", "reason required")

        if all(parts.values()) and isinstance(reason, str) and reason.strip():
            day_plans[day] = DayPlan(workout=parts["workout"], nutrition=parts["nutrition"],
                                     recovery=parts["recovery"], reason=reason)

    if not result.errors:
        result.value = day_plans
    return result


__all__ = [
    "SchemaResult",
    "validate",
    "validate_weekly_plan",
]
