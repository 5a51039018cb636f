"""
Prompt builders for each plan stage.

Every prompt starts with an "Artifact:" header line (and "Day:" for per-day
artifacts) so logs and scripted test providers can tell prompts apart.
Hard constraints are stated up front; the verifiers re-check them anyway.
"""

from __future__ import annotations

import json
from typing import Dict, List, Optional, Sequence

from app.plans.models import ArtifactType, BaseNutrition, DaySplit, NutritionDelta, Violation, WorkoutSplit
from app.plans.profile import DAYS, UserProfile
from app.plans.supplements import SUPPLEMENT_BLACKLIST
from app.plans.targets import NutritionTarget, meal_names
from app.plans.taxonomy import LEVEL_PRESCRIPTIONS, contraindicated_keywords


# =============================================================================
# SHARED SECTIONS
# =============================================================================

COACH_GUIDELINES = """
## Coaching Guidelines

You are an experienced strength coach and sports nutritionist writing one part
of a weekly plan. Other parts are written separately and merged later.

- Stay inside the user's constraints; an unsafe plan is worse than a simple one
- Prefer well-known exercises and everyday foods
- Keep names short and recognisable ("DB Row", "Greek yogurt")
- Never invent extra keys; follow the JSON shape exactly
"""

JSON_ONLY = "Respond with ONLY the JSON object, no explanation or markdown."


def _header(artifact_type: ArtifactType, day: Optional[str] = None) -> str:
    lines = [f"Artifact: {artifact_type.value}"]
    if day:
        lines.append(f"Day: {day}")
    return "\n".join(lines)


def profile_section(profile: UserProfile) -> str:
    """Profile summary shared by every prompt."""
    equipment = ", ".join(sorted(e.value for e in profile.equipment))
    lines = [
        "## User Profile",
        f"Name: {profile.name}",
        f"Goal: {profile.goal.value}",
        f"Training level: {profile.training_level.value}",
        f"Training days per week: {profile.training_days}",
        f"Session length cap: {profile.session_length_min} minutes",
        f"Equipment available: {equipment}",
        f"Diet: {profile.diet.value}",
        f"Meals per day: {profile.meal_count}",
    ]
    if profile.avoid_exercises:
        lines.append(f"Avoid exercises: {', '.join(profile.avoid_exercises)}")
    if profile.preferred_exercises:
        lines.append(f"Preferred exercises: {', '.join(profile.preferred_exercises)}")
    if profile.injuries.strip():
        lines.append(f"Injuries: {profile.injuries.strip()}")
    if profile.supplements:
        lines.append(f"Current supplements: {', '.join(profile.supplements)}")
    if profile.special_requests.strip():
        lines.append(f"Special requests: {profile.special_requests.strip()}")
    return "\n".join(lines)


def violations_section(violations: Sequence[Violation]) -> str:
    """Targeted correction block appended on a verification re-prompt."""
    if not violations:
        return ""
    lines = ["## Fix These Problems From Your Previous Answer"]
    for v in violations:
        lines.append(f"- {v.field}: {v.reason}")
    lines.append("Keep everything else the same where possible.")
    return "\n".join(lines)


def _join(*sections: str) -> str:
    return "\n\n".join(s.strip() for s in sections if s and s.strip())


# =============================================================================
# STAGE 1: SPLIT + BASE NUTRITION
# =============================================================================

def build_split_prompt(profile: UserProfile) -> str:
    preferred = ", ".join(profile.preferred_training_days) or "no preference"
    example = {
        "days": {
            "monday": {
                "is_rest_day": False,
                "focus": ["Upper Body"],
                "intensity": "high",
                "primary_muscles": ["chest", "back"],
                "secondary_muscles": ["biceps", "triceps"],
                "rationale": "Fresh start of the week for heavy pressing",
            },
            "tuesday": {
                "is_rest_day": True,
                "focus": ["Rest"],
                "intensity": "rest",
                "primary_muscles": [],
                "secondary_muscles": [],
                "rationale": "Recovery",
            },
        }
    }
    rules = f"""## Task: Weekly Training Split
Design the 7-day split (monday..sunday).

### Rules
- Exactly {profile.training_days} days have is_rest_day false; the others are rest days
- Preferred training days: {preferred}
- intensity is one of: high, moderate, low, rest (rest days use rest)
- Do not put two high-intensity days back to back on the same primary muscles
  unless the later day's rationale explains the progressive overload
- Every day has a non-empty focus list

### JSON Shape (all 7 days required)
{json.dumps(example, indent=2)}"""
    return _join(_header(ArtifactType.SPLIT), COACH_GUIDELINES, profile_section(profile), rules, JSON_ONLY)


def build_base_nutrition_prompt(profile: UserProfile, target: NutritionTarget) -> str:
    names = meal_names(profile.meal_count)
    example = {
        "meal_templates": [
            {"name": names[0], "items": [{"food": "Oats", "qty": "80g"}, {"food": "Banana", "qty": "1 piece"}]},
        ]
    }
    rules = f"""## Task: Base Meal Templates
Daily targets are already fixed: {target.total_kcal} kcal, {target.protein_g} g protein,
{target.carbs_g} g carbs, {target.fat_g} g fat, {target.hydration_l} l water.

### Rules
- Exactly {profile.meal_count} meal templates named: {", ".join(names)}
- Foods must fit a {profile.diet.value} diet
- Quantities in grams where possible ("150g")
- The templates together should land near {target.total_kcal} kcal

### JSON Shape
{json.dumps(example, indent=2)}"""
    return _join(_header(ArtifactType.BASE_NUTRITION), COACH_GUIDELINES, profile_section(profile), rules, JSON_ONLY)


# =============================================================================
# STAGE 2: PER-DAY ARTIFACTS
# =============================================================================

def build_workout_prompt(
    profile: UserProfile,
    day: str,
    split_day: DaySplit,
    violations: Sequence[Violation] = (),
) -> str:
    prescription = LEVEL_PRESCRIPTIONS[profile.training_level]
    contraindicated = sorted(contraindicated_keywords(profile.injuries))
    example = {
        "focus": split_day.focus,
        "blocks": [
            {"name": "Warm-up", "items": [{"exercise": "Dynamic Warm-up", "sets": 1, "reps": "5 min", "RIR": 0}]},
            {"name": "Main", "items": [{"exercise": "DB Row", "sets": 3, "reps": "8-10", "RIR": 2}]},
        ],
        "notes": "Short coaching note",
    }
    if split_day.is_rest_day:
        task = """## Task: Rest Day Session
This is a rest day. Write one light "Active Recovery" block (walking,
stretching, mobility) of 2-3 items with RIR 0."""
    else:
        task = f"""## Task: Workout for {day.title()}
Focus: {", ".join(split_day.focus)}
Intensity: {split_day.intensity.value}
Primary muscles: {", ".join(split_day.primary_muscles) or "see focus"}
Prescription for this level: {prescription.instruction()}"""

    rules = [
        "### Hard Constraints",
        f"- Use ONLY this equipment: {', '.join(sorted(e.value for e in profile.equipment))}"
        " (Bodyweight is always allowed)",
        f"- The whole session must fit in {profile.session_length_min} minutes"
        " (about 2.5 min per set, use duration_min for timed work)",
    ]
    if profile.avoid_exercises:
        rules.append(f"- Never include: {', '.join(profile.avoid_exercises)}")
    if contraindicated:
        rules.append(f"- Injury: avoid movements involving {', '.join(contraindicated)}")
    rules.append("- Every item has exercise, sets (int), reps (string), RIR (int 0-5)")

    shape = f"### JSON Shape\n{json.dumps(example, indent=2)}"
    return _join(
        _header(ArtifactType.WORKOUT, day),
        COACH_GUIDELINES,
        profile_section(profile),
        task,
        "\n".join(rules),
        violations_section(violations),
        shape,
        JSON_ONLY,
    )


def build_nutrition_prompt(
    profile: UserProfile,
    day: str,
    split_day: DaySplit,
    base: BaseNutrition,
    target: NutritionTarget,
    delta: NutritionDelta,
    violations: Sequence[Violation] = (),
) -> str:
    names = meal_names(profile.meal_count)
    templates = json.dumps([m.to_dict() for m in base.meal_templates], indent=2)
    example = {
        "total_kcal": target.total_kcal,
        "protein_g": target.protein_g,
        "carbs_g": target.carbs_g,
        "fat_g": target.fat_g,
        "hydration_l": target.hydration_l,
        "meals": [{"name": names[0], "items": [{"food": "Greek yogurt", "qty": "200g"}]}],
    }
    task = f"""## Task: Nutrition for {day.title()}
Training: {"rest day" if split_day.is_rest_day else ", ".join(split_day.focus)} ({split_day.intensity.value})
Adjustment: {delta.reason}
Day targets: {target.total_kcal} kcal, {target.protein_g} g protein, {target.carbs_g} g carbs,
{target.fat_g} g fat, {target.hydration_l} l water.

Base meal templates to adapt:
{templates}

### Rules
- Exactly {profile.meal_count} meals named: {", ".join(names)}
- total_kcal must be {target.total_kcal} (within 5%) and the foods must add up to it
- Foods must fit a {profile.diet.value} diet
- Quantities in grams where possible"""

    shape = f"### JSON Shape\n{json.dumps(example, indent=2)}"
    return _join(
        _header(ArtifactType.NUTRITION, day),
        COACH_GUIDELINES,
        profile_section(profile),
        task,
        violations_section(violations),
        shape,
        JSON_ONLY,
    )


def build_supplements_prompt(profile: UserProfile, split: WorkoutSplit,
                             violations: Sequence[Violation] = ()) -> str:
    schedule = "\n".join(
        f"- {day}: {'rest' if split.days[day].is_rest_day else ', '.join(split.days[day].focus)}"
        f" ({split.days[day].intensity.value})"
        for day in DAYS
    )
    example = {
        "days": {
            "monday": {
                "mobility": ["Hip flexor stretch - 60s each side"],
                "sleep": ["7-8 hours recommended"],
                "supplements": ["Creatine - 5g daily with water"],
                "supplementCard": {"current": ["Creatine"], "addOns": ["Vitamin D3"], "optimizeNotes": []},
            }
        },
        "recommendedAddOns": ["Vitamin D3"],
    }
    task = f"""## Task: Weekly Recovery and Supplements
Week schedule:
{schedule}

### Rules
- One entry for each of the 7 days with mobility, sleep, supplements, supplementCard
- supplementCard.current lists only what the user already takes
- Never suggest banned or hormonal compounds ({", ".join(SUPPLEMENT_BLACKLIST[:6])}, ...)
- Mobility should match that day's focus"""

    shape = f"### JSON Shape\n{json.dumps(example, indent=2)}"
    return _join(
        _header(ArtifactType.SUPPLEMENTS),
        COACH_GUIDELINES,
        profile_section(profile),
        task,
        violations_section(violations),
        shape,
        JSON_ONLY,
    )


# =============================================================================
# STAGE 3: REASONING
# =============================================================================

def build_reasoning_prompt(profile: UserProfile, split: WorkoutSplit, deltas: Dict[str, NutritionDelta]) -> str:
    lines: List[str] = []
    for day in DAYS:
        split_day = split.days[day]
        focus = "rest" if split_day.is_rest_day else ", ".join(split_day.focus)
        delta = deltas.get(day)
        nutrition = f"; nutrition: {delta.reason}" if delta and delta.reason else ""
        lines.append(f"- {day}: {focus} ({split_day.intensity.value}){nutrition}")

    task = f"""## Task: Daily Reasons
Write one short, motivating sentence per day explaining why the day looks
the way it does. Address {profile.name} by name and reference the focus
and the nutrition change.

Week:
{chr(10).join(lines)}

### JSON Shape
{json.dumps({"reasons": {"monday": "...", "tuesday": "..."}}, indent=2)}
All 7 days are required."""
    return _join(_header(ArtifactType.REASONING), profile_section(profile), task, JSON_ONLY)


__all__ = [
    "profile_section",
    "violations_section",
    "build_split_prompt",
    "build_base_nutrition_prompt",
    "build_workout_prompt",
    "build_nutrition_prompt",
    "build_supplements_prompt",
    "build_reasoning_prompt",
]
