"""
Supplements - safety blacklist, stack merging, goal add-ons, recovery routines.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from app.plans.models import DaySplit, Intensity, SupplementCard
from app.plans.profile import Goal

# Compounds never surfaced; matched as lower-cased substrings
SUPPLEMENT_BLACKLIST: List[str] = [
    "sarm",
    "rad-140",
    "lgd-4033",
    "mk-677",
    "steroid",
    "anavar",
    "winstrol",
    "trenbolone",
    "dianabol",
    "prohormone",
    "clenbuterol",
    "dmba",
    "dmaa",
]

SUPPLEMENT_GUIDE: Dict[str, Dict[str, str]] = {
    "Creatine": {"dosage": "3-5g daily", "timing": "Any time; with carbs optional"},
    "Whey Protein": {"dosage": "20-40g", "timing": "Post-workout or to hit protein target"},
    "Magnesium": {"dosage": "200-400mg", "timing": "Evening to support sleep"},
    "Vitamin D": {"dosage": "1000-2000 IU", "timing": "With a fatty meal"},
    "Omega-3": {"dosage": "1-2g EPA/DHA", "timing": "With meals"},
}

GOAL_ADD_ONS: Dict[Goal, List[str]] = {
    Goal.WEIGHT_LOSS: ["Green Tea Extract", "L-Carnitine"],
    Goal.MUSCLE_GAIN: ["Creatine Monohydrate", "Beta-Alanine"],
    Goal.ENDURANCE: ["Beta-Alanine", "Electrolyte Complex"],
    Goal.GENERAL_FITNESS: ["Omega-3 Fish Oil", "Vitamin D3"],
    Goal.FLEXIBILITY_MOBILITY: ["Collagen Peptides", "Turmeric/Curcumin"],
}


def _key(name: str) -> str:
    return (name or "").strip().lower()


def blacklisted_token(name: str) -> str:
    """Return the blacklist token a supplement name contains, or ''."""
    key = _key(name)
    for blocked in SUPPLEMENT_BLACKLIST:
        if blocked in key:
            return blocked
    return ""


def filter_illegal_supplements(supplements: Sequence[str]) -> List[str]:
    return [s for s in supplements or [] if _key(s) and not blacklisted_token(s)]


def merge_supplements(current: Sequence[str], suggested: Sequence[str]) -> SupplementCard:
    """
    Merge the user's stack with suggestions.

    current keeps the user's own items (deduped, safe); addOns are safe
    suggestions not already taken; optimizeNotes cover items in current.
    """
    current_by_key: Dict[str, str] = {}
    for raw in filter_illegal_supplements(current):
        current_by_key.setdefault(_key(raw), raw.strip())

    add_ons: List[str] = []
    seen = set()
    for raw in filter_illegal_supplements(suggested):
        key = _key(raw)
        if key in current_by_key or key in seen:
            continue
        seen.add(key)
        add_ons.append(raw.strip())

    guide = {_key(k): (k, v) for k, v in SUPPLEMENT_GUIDE.items()}
    notes: List[str] = []
    for key, name in current_by_key.items():
        if key in guide:
            label, info = guide[key]
            notes.append(f"{label}: {info['dosage']}, {info['timing']}")

    return SupplementCard(current=list(current_by_key.values()), add_ons=add_ons, optimize_notes=notes)


def goal_add_ons(goal: Goal, current: Sequence[str]) -> List[str]:
    """Goal add-ons the user does not already take (first word match)."""
    taken = [_key(s) for s in current]
    out = []
    for name in GOAL_ADD_ONS.get(goal, GOAL_ADD_ONS[Goal.GENERAL_FITNESS]):
        first_word = _key(name).split(" ")[0]
        if not any(first_word in t for t in taken):
            out.append(name)
    return out


def day_supplement_lines(current: Sequence[str], is_training_day: bool) -> List[str]:
    """Per-day timing lines for the user's stack."""
    safe = filter_illegal_supplements(current)
    if not safe:
        return ["Consider adding basic supplements based on your goals"]
    lines = []
    for supp in safe:
        key = _key(supp)
        if "protein" in key:
            lines.append(f"{supp} - post-workout within 30 mins" if is_training_day
                         else f"{supp} - with any meal for daily protein")
        elif "creatine" in key:
            lines.append(f"{supp} - 5g daily with water")
        elif "pre-workout" in key or "preworkout" in key:
            lines.append(f"{supp} - 20-30 mins before training" if is_training_day
                         else f"Skip {supp} on rest days")
        else:
            lines.append(f"{supp} - as directed")
    return lines


def mobility_routine(split_day: DaySplit) -> List[str]:
    if split_day.is_rest_day:
        return ["Full body stretch routine - 10 mins", "Foam rolling - 5 mins", "Deep breathing exercises - 5 mins"]
    focus = " ".join(split_day.focus).lower()
    if "leg" in focus or "lower" in focus:
        return ["Hip flexor stretch - 60s each side", "Pigeon pose - 90s each side", "Quad stretch - 60s each side"]
    if "push" in focus or "upper" in focus or "chest" in focus:
        return ["Doorway chest stretch - 60s", "Shoulder dislocates - 10 reps", "Thoracic spine rotation - 60s each side"]
    return ["Cat-cow stretch - 10 reps", "World's greatest stretch - 5 each side", "Shoulder circles - 20 each direction"]


def sleep_routine(split_day: DaySplit) -> List[str]:
    if split_day.intensity == Intensity.HIGH:
        return ["Aim for 8+ hours after intense training", "Avoid screens 1 hour before bed",
                "Consider magnesium before sleep"]
    if not split_day.is_rest_day:
        return ["7-8 hours recommended", "Keep bedroom cool (18-20C)", "Consistent sleep schedule helps recovery"]
    return ["Recovery day - still prioritise sleep", "Light reading before bed", "Gentle stretching before sleep"]


__all__ = [
    "SUPPLEMENT_BLACKLIST",
    "SUPPLEMENT_GUIDE",
    "GOAL_ADD_ONS",
    "blacklisted_token",
    "filter_illegal_supplements",
    "merge_supplements",
    "goal_add_ons",
    "day_supplement_lines",
    "mobility_routine",
    "sleep_routine",
]
