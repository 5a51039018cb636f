"""
Daily adjustment - Titrate one base-plan day to today's check-in.

Flow:
1. Memory layer from history + today (None below four check-ins)
2. Flags from today's check-in and memory
3. Deterministic adjustment of the base day (energy, stress, soreness,
   calorie trend)
4. Optional AI titration of motivation and notes only
5. Workout and nutrition re-validated with the plan schemas
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.builders.prompts import JSON_ONLY, profile_section
from app.config import PipelineConfig
from app.context import log_event
from app.daily.memory import CheckIn, TrendMemory, build_memory_layer
from app.llm.completion import CompletionClient
from app.llm.extractor import extract
from app.plans.fallback import rest_day_workout
from app.plans.models import (
    ArtifactType,
    DayNutrition,
    DayPlan,
    DayRecovery,
    DayWorkout,
    ExerciseItem,
    WeeklyPlan,
    WorkoutBlock,
)
from app.plans.profile import DAYS, UserProfile
from app.plans.schemas import validate
from app.plans.targets import KCAL_RANGE
from app.plans.taxonomy import CORE, LEGS, UPPER_PULL, UPPER_PUSH, categorize_exercise

logger = logging.getLogger(__name__)

MAIN_BLOCK_INDEX = 1
LOW_ENERGY_MAX_ITEMS = 2
NEUTRAL_READING = 5

STRESS_RELIEF_BLOCK = WorkoutBlock(
    name="Stress Relief",
    items=[
        ExerciseItem(exercise="Deep breathing", sets=1, reps="5 min", rir=0),
        ExerciseItem(exercise="Gentle yoga", sets=1, reps="15 min", rir=0),
        ExerciseItem(exercise="Walking", sets=1, reps="20 min", rir=0),
    ],
)

GENTLE_MOBILITY = ["Gentle stretching", "Breathing exercises", "Light movement"]
STRESS_SLEEP = ["Prioritize 8+ hours tonight", "Consider meditation", "Avoid screens 2hrs before bed"]

# Movement categories loaded by each reported sore area
SORENESS_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "legs": (LEGS,),
    "quads": (LEGS,),
    "hamstrings": (LEGS,),
    "glutes": (LEGS,),
    "calves": (LEGS,),
    "chest": (UPPER_PUSH,),
    "shoulders": (UPPER_PUSH, UPPER_PULL),
    "triceps": (UPPER_PUSH,),
    "back": (UPPER_PULL,),
    "lats": (UPPER_PULL,),
    "biceps": (UPPER_PULL,),
    "arms": (UPPER_PUSH, UPPER_PULL),
    "core": (CORE,),
    "abs": (CORE,),
}


# =============================================================================
# RESULT
# =============================================================================

@dataclass
class DailyPlan:
    """Today's titrated plan."""
    date: str
    day: str
    workout: DayWorkout
    nutrition: DayNutrition
    recovery: DayRecovery
    motivation: str
    adjustments: List[str] = field(default_factory=list)
    nutrition_adjustments: List[str] = field(default_factory=list)
    memory_adjustments: List[str] = field(default_factory=list)
    flags: List[str] = field(default_factory=list)
    is_ai_adjusted: bool = False
    memory: Optional[TrendMemory] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "day": self.day,
            "workout": self.workout.to_dict(),
            "nutrition": self.nutrition.to_dict(),
            "recovery": self.recovery.to_dict(),
            "motivation": self.motivation,
            "adjustments": list(self.adjustments),
            "nutritionAdjustments": list(self.nutrition_adjustments),
            "memoryAdjustments": list(self.memory_adjustments),
            "flags": list(self.flags),
            "isAiAdjusted": self.is_ai_adjusted,
            "memorySnapshot": self.memory.to_dict() if self.memory else None,
        }


# =============================================================================
# FLAGS & MOTIVATION
# =============================================================================

def generate_flags(checkin: CheckIn, memory: Optional[TrendMemory]) -> List[str]:
    flags: List[str] = []

    if checkin.energy is not None:
        if checkin.energy <= 3:
            flags.append("LOW_ENERGY")
        elif checkin.energy >= 8:
            flags.append("HIGH_ENERGY")
    if checkin.stress is not None and checkin.stress >= 7:
        flags.append("HIGH_STRESS")
    if checkin.sleep_hrs is not None and checkin.sleep_hrs < 6:
        flags.append("LOW_SLEEP")
    if checkin.workout_intensity is not None:
        if checkin.workout_intensity >= 8:
            flags.append("HIGH_INTENSITY_REQUESTED")
        elif checkin.workout_intensity <= 3:
            flags.append("RECOVERY_DAY_REQUESTED")
    if checkin.alcohol:
        flags.append("ALCOHOL_YESTERDAY")
    if checkin.supplements_taken is False:
        flags.append("MISSED_SUPPLEMENTS")
    if checkin.soreness:
        flags.append("SORENESS_" + "_".join(checkin.soreness).upper())

    if memory is not None:
        if memory.ema["sleep"] < 0.5:
            flags.append("LOW_SLEEP_TREND")
        if memory.ema["energy"] < 0.5:
            flags.append("LOW_ENERGY_TREND")
        for streak in memory.soreness_streaks:
            flags.append(f"CHRONIC_SORENESS_{streak.area.upper()}")
        delta = memory.weight_trend.recommended_calorie_delta
        if delta:
            flags.append(f"CALORIE_ADJUST_{delta:+d}")

    if checkin.special_request.strip():
        flags.append("HAS_SPECIAL_REQUEST")
    return flags


def _reading(value: Optional[int]) -> int:
    """A missing 1-10 reading counts as neutral; 0 is a real reading."""
    return NEUTRAL_READING if value is None else value


def fallback_motivation(checkin: CheckIn, profile: UserProfile) -> str:
    goal_text = profile.goal.value.replace("_", " ").lower()
    energy = _reading(checkin.energy)
    stress = _reading(checkin.stress)
    if energy >= 7 and stress <= 4:
        return (f"Favorable conditions for quality work today. Stay focused on execution "
                f"and trust the process toward {goal_text}.")
    if energy <= 4 or stress >= 7:
        return ("Today calls for a measured approach. Prioritize movement quality over intensity "
                "and remember that consistency matters more than any single session.")
    return (f"Adequate readiness for today's session. Focus on the fundamentals and let the "
            f"work accumulate toward {goal_text}.")


# =============================================================================
# DETERMINISTIC ADJUSTMENT
# =============================================================================

def _sore_categories(areas: Sequence[str]) -> set:
    categories = set()
    for area in areas:
        categories.update(SORENESS_CATEGORIES.get(area.lower(), ()))
    return categories


def adjust_workout(workout: DayWorkout, checkin: CheckIn,
                   chronic_areas: Sequence[str] = ()) -> Tuple[DayWorkout, List[str]]:
    """Energy, stress and soreness rules applied to a copy of the base workout."""
    workout = copy.deepcopy(workout)
    adjustments: List[str] = []
    energy = _reading(checkin.energy)
    stress = _reading(checkin.stress)

    if len(workout.blocks) > MAIN_BLOCK_INDEX:
        main = workout.blocks[MAIN_BLOCK_INDEX]
        if energy < 4:
            main.items = main.items[:LOW_ENERGY_MAX_ITEMS]
            for item in main.items:
                item.rir = max(item.rir, 3)
            adjustments.append("Reduced volume and intensity for low energy")
        elif energy < 6:
            for item in main.items:
                item.rir = max(item.rir, 2)
            adjustments.append("Reduced intensity for moderate energy")

    if stress > 7:
        workout.focus = ["Recovery", "Stress Relief"]
        workout.blocks = [copy.deepcopy(STRESS_RELIEF_BLOCK)]
        adjustments.append("Switched to stress-relief protocol")

    sore = list(dict.fromkeys(list(checkin.soreness) + list(chronic_areas)))
    if sore:
        blocked = _sore_categories(sore)
        dropped = []
        for block in workout.blocks:
            kept = []
            for item in block.items:
                if categorize_exercise(item.exercise) in blocked:
                    dropped.append(item.exercise)
                else:
                    kept.append(item)
            block.items = kept
        workout.blocks = [b for b in workout.blocks if b.items]
        if not workout.blocks:
            workout.blocks = rest_day_workout().blocks
        note = f"Soreness in {', '.join(sore)} - modify or skip affected exercises"
        workout.notes = f"{workout.notes} {note}".strip() if workout.notes else note
        adjustments.append(f"Modified for {', '.join(sore)} soreness")
        if dropped:
            adjustments.append(f"Removed {', '.join(dropped)}")

    return workout, adjustments


def adjust_nutrition(nutrition: DayNutrition, checkin: CheckIn,
                     memory: Optional[TrendMemory]) -> Tuple[DayNutrition, List[str], List[str]]:
    nutrition = copy.deepcopy(nutrition)
    adjustments: List[str] = []
    memory_adjustments: List[str] = []

    delta = memory.weight_trend.recommended_calorie_delta if memory else 0
    if delta:
        before = nutrition.total_kcal
        nutrition.total_kcal = int(min(max(before + delta, KCAL_RANGE[0]), KCAL_RANGE[1]))
        memory_adjustments.append(
            f"Calories {delta:+d} kcal ({before} -> {nutrition.total_kcal}): weight trend "
            f"{memory.weight_trend.direction} over the last week"
        )

    if checkin.alcohol:
        nutrition.hydration_l = round(nutrition.hydration_l + 0.5, 1)
        adjustments.append("Extra 0.5 l water after alcohol yesterday")
    if checkin.water_l is not None and checkin.water_l < 1.5:
        adjustments.append("Front-load water early in the day")
    return nutrition, adjustments, memory_adjustments


def adjust_recovery(recovery: DayRecovery, checkin: CheckIn) -> DayRecovery:
    recovery = copy.deepcopy(recovery)
    if _reading(checkin.energy) < 5:
        recovery.mobility = list(GENTLE_MOBILITY)
    if _reading(checkin.stress) > 6:
        recovery.sleep = list(STRESS_SLEEP)
    if checkin.supplements_taken is False and recovery.supplement_card.current:
        recovery.supplements = list(recovery.supplements) + ["Resume your usual supplements today"]
    return recovery


# =============================================================================
# AI TITRATION
# =============================================================================

def build_titration_prompt(profile: UserProfile, checkin: CheckIn, plan: DailyPlan) -> str:
    lines = [
        "Artifact: daily_adjustment",
        f"Day: {plan.day}",
        "",
        profile_section(profile),
        "## Today's Check-in",
        f"- Energy: {checkin.energy}/10, Stress: {checkin.stress}/10, Sleep: {checkin.sleep_hrs}h",
        f"- Soreness: {', '.join(checkin.soreness) or 'none'}",
        f"- Flags: {', '.join(plan.flags) or 'none'}",
    ]
    if checkin.special_request.strip():
        lines.append(f"- Request: {checkin.special_request.strip()}")
    if plan.memory is not None:
        lines.append(f"- Sleep trend {plan.memory.ema['sleep']:.2f}, energy trend {plan.memory.ema['energy']:.2f}")
    lines += [
        "",
        "## Today's Workout (already adjusted; do not change exercises)",
        f"Focus: {', '.join(plan.workout.focus)}",
        f"Adjustments: {'; '.join(plan.adjustments) or 'none'}",
        "",
        "Write a short motivation message and coaching notes for today.",
        'Shape: {"motivation": "...", "notes": "..."}',
        JSON_ONLY,
    ]
    return "\n".join(lines)


def titrate(client: CompletionClient, config: PipelineConfig, profile: UserProfile,
            checkin: CheckIn, plan: DailyPlan) -> bool:
    """Rewrite motivation and workout notes in place; False keeps the deterministic plan."""
    result = client.complete(build_titration_prompt(profile, checkin, plan),
                             config.completion_max_tokens, config.completion_timeout_ms)
    if not result.ok:
        logger.info("Daily titration skipped: %s", result.detail)
        return False

    extraction = extract(result.text)
    if not extraction.ok or not isinstance(extraction.value, dict):
        logger.info("Daily titration unusable: %s", extraction.error)
        return False

    motivation = extraction.value.get("motivation")
    notes = extraction.value.get("notes")
    changed = False
    if isinstance(motivation, str) and motivation.strip():
        plan.motivation = motivation.strip()
        changed = True
    if isinstance(notes, str) and notes.strip():
        plan.workout.notes = notes.strip()
        changed = True
    return changed


# =============================================================================
# ENTRY
# =============================================================================

def _day_name(checkin: CheckIn) -> Tuple[str, str]:
    today = checkin.parsed_date or date.today()
    return today.isoformat(), DAYS[today.weekday()]


def adjust_day(
    profile: UserProfile,
    today: CheckIn,
    history: Sequence[CheckIn],
    base_plan: WeeklyPlan,
    client: Optional[CompletionClient] = None,
    config: Optional[PipelineConfig] = None,
) -> DailyPlan:
    """
    Build today's DailyPlan from the base plan.

    Args:
        profile: User profile
        today: Today's check-in
        history: Earlier check-ins (any order)
        base_plan: Weekly plan to titrate
        client: Completion client for AI titration; None keeps it deterministic
        config: Pipeline configuration for the titration call
    """
    iso_date, day = _day_name(today)
    base_day: DayPlan = base_plan.days[day]

    memory = build_memory_layer(profile, list(history) + [today])
    flags = generate_flags(today, memory)
    chronic = [s.area for s in memory.soreness_streaks] if memory else []

    workout, adjustments = adjust_workout(base_day.workout, today, chronic)
    nutrition, nutrition_adjustments, memory_adjustments = adjust_nutrition(base_day.nutrition, today, memory)
    if chronic:
        memory_adjustments.append(f"Reduced loading for recurring {', '.join(chronic)} soreness")

    plan = DailyPlan(
        date=iso_date,
        day=day,
        workout=workout,
        nutrition=nutrition,
        recovery=adjust_recovery(base_day.recovery, today),
        motivation=fallback_motivation(today, profile),
        adjustments=adjustments,
        nutrition_adjustments=nutrition_adjustments,
        memory_adjustments=memory_adjustments,
        flags=flags,
        memory=memory,
    )

    if client is not None:
        plan.is_ai_adjusted = titrate(client, config or PipelineConfig.from_env(), profile, today, plan)

    workout_schema = validate(plan.workout.to_dict(), ArtifactType.WORKOUT, profile)
    nutrition_schema = validate(plan.nutrition.to_dict(), ArtifactType.NUTRITION, profile)
    if not workout_schema.ok or not nutrition_schema.ok:
        logger.warning("Adjusted day failed validation; keeping base day: %s",
                       (workout_schema.errors + nutrition_schema.errors)[:3])
        plan.workout = copy.deepcopy(base_day.workout)
        plan.nutrition = copy.deepcopy(base_day.nutrition)
        plan.adjustments.append("Kept base plan: adjusted day failed validation")
    else:
        plan.workout = workout_schema.value
        plan.nutrition = nutrition_schema.value

    log_event("daily_adjustment_generated", user_id=profile.user_id, day=day, flags=flags,
              ai_adjusted=plan.is_ai_adjusted, adjustments=len(plan.adjustments))
    return plan


__all__ = [
    "DailyPlan",
    "generate_flags",
    "fallback_motivation",
    "adjust_workout",
    "adjust_nutrition",
    "adjust_recovery",
    "titrate",
    "adjust_day",
]
