"""
Programmatic fixer - Best-effort cleanup of an assembled plan dict.

Runs after assembly and before the final schema pass. It fills the
structural gaps the app cannot render without (recovery card, reason,
rest-day workout), swaps exercises the user cannot do, and pulls day
calories back toward the day target. Each change is returned as a fix record.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from app.plans.fallback import default_reason, fallback_recovery, rest_day_workout
from app.plans.models import WorkoutSplit
from app.plans.profile import DAYS, UserProfile
from app.plans.supplements import merge_supplements
from app.plans.taxonomy import find_equipment_alternative, is_exercise_allowed
from app.plans.targets import KCAL_RANGE

logger = logging.getLogger(__name__)

KCAL_FIX_WINDOW = 100


def _fix_workout_items(workout: Dict[str, Any], profile: UserProfile, path: str,
                       fixes: List[Dict[str, Any]]) -> None:
    used = [i.get("exercise", "") for b in workout.get("blocks", []) for i in b.get("items", [])]
    for bi, block in enumerate(workout.get("blocks", [])):
        kept = []
        for ii, item in enumerate(block.get("items", [])):
            name = item.get("exercise", "")
            if not name or is_exercise_allowed(name, profile):
                kept.append(item)
                continue
            alternative = find_equipment_alternative(name, profile, exclude=used)
            if alternative:
                fixes.append({"path": f"{path}.blocks[{bi}].items[{ii}]", "fix": "swapped_exercise",
                              "from": name, "to": alternative})
                used.append(alternative)
                kept.append({**item, "exercise": alternative})
            else:
                fixes.append({"path": f"{path}.blocks[{bi}].items[{ii}]", "fix": "dropped_exercise",
                              "from": name})
        block["items"] = kept


def fix_plan(
    plan: Dict[str, Any],
    profile: UserProfile,
    split: WorkoutSplit,
    day_targets: Optional[Dict[str, int]] = None,
) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Fix an assembled plan dict in place.

    Args:
        plan: {"days": {day: {workout, nutrition, recovery, reason}}}
        profile: Profile the plan was generated for
        split: Weekly split (rest days, focus)
        day_targets: Adjusted kcal target per day

    Returns:
        (plan, fixes)
    """
    fixes: List[Dict[str, Any]] = []
    day_targets = day_targets or {}
    days = plan.setdefault("days", {})

    for day in DAYS:
        split_day = split.days[day]
        entry = days.setdefault(day, {})
        path = f"days.{day}"

        workout = entry.get("workout")
        if split_day.is_rest_day and (not isinstance(workout, dict) or not workout.get("blocks")):
            entry["workout"] = rest_day_workout().to_dict()
            fixes.append({"path": f"{path}.workout", "fix": "rest_day_workout"})
        elif isinstance(workout, dict):
            _fix_workout_items(workout, profile, f"{path}.workout", fixes)
            workout["blocks"] = [b for b in workout.get("blocks", []) if b.get("items")]

        recovery = entry.get("recovery")
        if not isinstance(recovery, dict):
            entry["recovery"] = fallback_recovery(profile, split_day).to_dict()
            fixes.append({"path": f"{path}.recovery", "fix": "default_recovery"})
        elif not isinstance(recovery.get("supplementCard"), dict):
            recovery["supplementCard"] = merge_supplements(profile.supplements, []).to_dict()
            fixes.append({"path": f"{path}.recovery.supplementCard", "fix": "default_supplement_card"})

        reason = entry.get("reason")
        if not isinstance(reason, str) or not reason.strip():
            entry["reason"] = default_reason(profile, split_day)
            fixes.append({"path": f"{path}.reason", "fix": "default_reason"})

        nutrition = entry.get("nutrition")
        target = day_targets.get(day)
        if isinstance(nutrition, dict) and target and isinstance(nutrition.get("total_kcal"), (int, float)):
            lo = max(KCAL_RANGE[0], target - KCAL_FIX_WINDOW)
            hi = min(KCAL_RANGE[1], target + KCAL_FIX_WINDOW)
            kcal = nutrition["total_kcal"]
            clamped = int(max(lo, min(hi, kcal)))
            if clamped != kcal:
                nutrition["total_kcal"] = clamped
                fixes.append({"path": f"{path}.nutrition.total_kcal", "fix": "clamped_kcal",
                              "from": kcal, "to": clamped})

    if fixes:
        logger.info("Programmatic fixer applied %d fix(es)", len(fixes))
    return plan, fixes


__all__ = [
    "KCAL_FIX_WINDOW",
    "fix_plan",
]
