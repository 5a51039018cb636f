"""
Exercise Taxonomy - Equipment, movement categories, injuries, and level prescriptions.

Shared by prompt builders (generation-time instructions), the workout verifier
(independent re-check), and the fallback generator (alternative pools).
Matching is keyword based on normalized, lower-cased exercise names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from app.plans.profile import Equipment, TrainingLevel, UserProfile

# =============================================================================
# MOVEMENT CATEGORIES
# =============================================================================

UPPER_PUSH = "Upper Push"
UPPER_PULL = "Upper Pull"
LEGS = "Legs"
CORE = "Core"
CONDITIONING = "Conditioning"
RECOVERY = "Recovery"

CATEGORIES: Tuple[str, ...] = (UPPER_PUSH, UPPER_PULL, LEGS, CORE, CONDITIONING, RECOVERY)

CATEGORY_SYNONYMS: Dict[str, List[str]] = {
    UPPER_PUSH: ["bench", "press", "push-up", "dip", "shoulder press", "overhead", "fly"],
    UPPER_PULL: ["row", "pull", "chin-up", "lat pulldown", "face pull", "curl"],
    LEGS: ["squat", "deadlift", "lunge", "hinge", "leg press", "hamstring curl", "calf", "step-up", "bridge"],
    CORE: ["plank", "crunch", "leg raise", "anti-rotation", "pallof", "dead bug", "twist", "carry", "hollow"],
    CONDITIONING: ["sprint", "bike", "erg", "metcon", "circuit", "burpee", "jump rope", "jumping jack", "climber"],
    RECOVERY: ["walk", "yoga", "mobility", "stretch", "foam roll", "breathing"],
}

# Focus labels used by splits -> ordered category slots for the main block
FOCUS_CATEGORIES: Dict[str, List[str]] = {
    "full body": [LEGS, UPPER_PUSH, UPPER_PULL, LEGS],
    "upper body": [UPPER_PUSH, UPPER_PULL, UPPER_PUSH, UPPER_PULL],
    "upper": [UPPER_PUSH, UPPER_PULL, UPPER_PUSH, UPPER_PULL],
    "lower body": [LEGS, LEGS, LEGS, LEGS],
    "lower": [LEGS, LEGS, LEGS, LEGS],
    "legs": [LEGS, LEGS, LEGS, LEGS],
    "push": [UPPER_PUSH, UPPER_PUSH, UPPER_PUSH, UPPER_PUSH],
    "chest": [UPPER_PUSH, UPPER_PUSH, UPPER_PUSH, UPPER_PULL],
    "shoulders": [UPPER_PUSH, UPPER_PULL, UPPER_PUSH, UPPER_PULL],
    "pull": [UPPER_PULL, UPPER_PULL, UPPER_PULL, UPPER_PULL],
    "back": [UPPER_PULL, UPPER_PULL, UPPER_PULL, LEGS],
    "arms": [UPPER_PUSH, UPPER_PULL, UPPER_PUSH, UPPER_PULL],
    "core": [CORE, CORE, CORE, CORE],
    "conditioning": [CONDITIONING, CONDITIONING, LEGS, CONDITIONING],
    "cardio": [CONDITIONING, CONDITIONING, CONDITIONING, CONDITIONING],
    "mobility": [RECOVERY, RECOVERY, CORE],
    "active recovery": [RECOVERY, RECOVERY, CORE],
    "recovery": [RECOVERY, RECOVERY, CORE],
}

# Focus label -> muscles worked, used for split defaults
FOCUS_MUSCLES: Dict[str, Tuple[List[str], List[str]]] = {
    "full body": (["quads", "chest", "back"], ["glutes", "shoulders", "core"]),
    "upper body": (["chest", "back", "shoulders"], ["biceps", "triceps"]),
    "lower body": (["quads", "glutes", "hamstrings"], ["calves", "core"]),
    "push": (["chest", "shoulders", "triceps"], ["core"]),
    "pull": (["back", "biceps"], ["rear delts", "forearms"]),
    "legs": (["quads", "glutes", "hamstrings"], ["calves"]),
    "conditioning": (["cardiovascular"], ["legs", "core"]),
    "mobility": (["hips", "thoracic spine"], ["shoulders"]),
    "active recovery": (["full body"], []),
}

# =============================================================================
# EQUIPMENT
# =============================================================================

EQUIPMENT_KEYWORDS: Dict[Equipment, List[str]] = {
    Equipment.BODYWEIGHT: ["push-up", "squat", "plank", "lunge", "burpee", "pull-up", "chin-up"],
    Equipment.BANDS: ["band", "resistance band", "pull-apart"],
    Equipment.DUMBBELLS: ["dumbbell", "db"],
    Equipment.GYM: [
        "barbell", "machine", "cable", "smith", "leg press", "kettlebell", "lat pulldown",
        "leg curl", "leg extension", "hamstring curl", "ez bar", "trap bar", "hack squat",
        "pec deck", "treadmill", "assault bike", "row erg", "ski erg", "t bar",
        # Unqualified barbell lifts
        "back squat", "front squat", "bench press", "deadlift", "overhead press",
    ],
}

# Curated alternatives per equipment and category
ALTERNATIVES: Dict[Equipment, Dict[str, List[str]]] = {
    Equipment.BODYWEIGHT: {
        UPPER_PUSH: ["Push-ups", "Pike Push-ups", "Decline Push-ups", "Diamond Push-ups"],
        UPPER_PULL: ["Inverted Rows", "Pull-ups", "Chin-ups", "Superman Pulls"],
        LEGS: ["Bodyweight Squats", "Reverse Lunges", "Hip Bridges", "Single-Leg Calf Raises", "Wall Sit"],
        CORE: ["Plank", "Dead Bug", "Hollow Hold", "Side Plank"],
        CONDITIONING: ["Burpees", "Jumping Jacks", "Mountain Climbers", "High Knees"],
        RECOVERY: ["Walking", "Yoga Flow", "Stretching", "Foam Rolling"],
    },
    Equipment.BANDS: {
        UPPER_PUSH: ["Band Chest Press", "Band Shoulder Press", "Band Triceps Pushdown"],
        UPPER_PULL: ["Band Rows", "Band Face Pulls", "Band Pulldowns", "Band Pull-Aparts"],
        LEGS: ["Band Squats", "Band Romanian Deadlifts", "Band Lunges", "Band Glute Bridge"],
        CORE: ["Band Pallof Press", "Band Woodchop"],
        CONDITIONING: ["Band Complex Circuit"],
        RECOVERY: ["Band Mobility Routine"],
    },
    Equipment.DUMBBELLS: {
        UPPER_PUSH: ["DB Bench Press", "DB Shoulder Press", "DB Incline Press", "DB Floor Press"],
        UPPER_PULL: ["DB Row", "DB Pullover", "DB Rear Delt Fly", "DB Hammer Curl"],
        LEGS: ["DB Squat", "DB Romanian Deadlift", "DB Lunge", "DB Step-Up", "DB Calf Raise"],
        CORE: ["DB Russian Twist", "DB Farmer Carry"],
        CONDITIONING: ["DB Complex Circuit", "DB Thrusters"],
        RECOVERY: ["Light DB Mobility"],
    },
    Equipment.GYM: {
        UPPER_PUSH: ["Barbell Bench Press", "Machine Chest Press", "Cable Fly", "Machine Shoulder Press"],
        UPPER_PULL: ["Lat Pulldown", "Seated Cable Row", "Cable Face Pull", "Machine Row"],
        LEGS: ["Back Squat", "Leg Press", "Hamstring Curl", "Barbell Hip Thrust", "Leg Extension"],
        CORE: ["Cable Pallof Press", "Hanging Leg Raise"],
        CONDITIONING: ["Assault Bike", "Row Erg", "Ski Erg"],
        RECOVERY: ["Treadmill Walk", "Mobility Circuit"],
    },
}

# Equipment preference when picking alternatives (richest first)
EQUIPMENT_PRIORITY: Tuple[Equipment, ...] = (
    Equipment.GYM, Equipment.DUMBBELLS, Equipment.BANDS, Equipment.BODYWEIGHT,
)

# =============================================================================
# INJURIES
# =============================================================================

# Injury keyword -> contraindicated movement keywords
INJURY_CONTRAINDICATIONS: Dict[str, List[str]] = {
    "knee": ["squat", "lunge", "jump", "step-up", "leg extension"],
    "back": ["deadlift", "good morning", "back squat", "bent over row"],
    "spine": ["deadlift", "good morning", "back squat"],
    "shoulder": ["overhead", "shoulder press", "dip", "upright row"],
    "wrist": ["push-up", "handstand"],
    "ankle": ["jump", "sprint", "burpee"],
    "elbow": ["dip", "skull crusher"],
    "neck": ["shrug", "overhead"],
}

# =============================================================================
# LEVEL PRESCRIPTIONS
# =============================================================================


@dataclass(frozen=True)
class LevelPrescription:
    sets_range: Tuple[int, int]
    reps_range: str
    rir_range: Tuple[int, int]
    default_sets: int
    default_reps: str
    default_rir: int

    def instruction(self) -> str:
        lo, hi = self.sets_range
        rlo, rhi = self.rir_range
        return f"{lo}-{hi} sets, {self.reps_range} reps, RIR {rlo}-{rhi}"


LEVEL_PRESCRIPTIONS: Dict[TrainingLevel, LevelPrescription] = {
    TrainingLevel.BEGINNER: LevelPrescription((2, 3), "8-12", (3, 4), 3, "10-12", 3),
    TrainingLevel.INTERMEDIATE: LevelPrescription((3, 4), "6-12", (2, 3), 3, "8-10", 2),
    TrainingLevel.PROFESSIONAL: LevelPrescription((4, 5), "5-10", (1, 2), 4, "6-8", 1),
}


# =============================================================================
# MATCHING
# =============================================================================

def normalize_name(name: str) -> str:
    """Lower-case and collapse hyphens/underscores/whitespace to single spaces."""
    return re.sub(r"[\s\-_]+", " ", (name or "").lower()).strip()


def _keyword_pattern(keyword: str) -> re.Pattern:
    words = normalize_name(keyword)
    return re.compile(rf"\b{re.escape(words)}(?:s|es)?\b")


def contains_keyword(name: str, keyword: str) -> bool:
    return bool(_keyword_pattern(keyword).search(normalize_name(name)))


def categorize_exercise(name: str) -> Optional[str]:
    """Movement category of an exercise name, or None when unknown."""
    for category, keys in CATEGORY_SYNONYMS.items():
        if any(contains_keyword(name, k) for k in keys):
            return category
    return None


def required_equipment(name: str) -> Equipment:
    """
    Equipment an exercise needs.

    Explicit implements (dumbbell, band) win over gym keywords so
    "Band Pulldowns" stays a band exercise.
    """
    for eq in (Equipment.DUMBBELLS, Equipment.BANDS, Equipment.GYM):
        if any(contains_keyword(name, k) for k in EQUIPMENT_KEYWORDS[eq]):
            return eq
    return Equipment.BODYWEIGHT


def is_equipment_available(required: Equipment, available: Iterable[Equipment]) -> bool:
    """Gym means universal compatibility; bodyweight needs nothing."""
    available = set(available)
    if Equipment.GYM in available or required == Equipment.BODYWEIGHT:
        return True
    return required in available


def matches_avoided(name: str, avoid_terms: Sequence[str]) -> Optional[str]:
    """Return the avoid term an exercise matches (case-insensitive substring), if any."""
    normalized = normalize_name(name)
    for term in avoid_terms:
        t = normalize_name(term)
        if not t:
            continue
        singular = t[:-1] if t.endswith("s") and len(t) > 3 else t
        if t in normalized or singular in normalized:
            return term
    return None


def contraindicated_keywords(injuries: str) -> FrozenSet[str]:
    """Movement keywords to exclude for the injuries described in free text."""
    text = (injuries or "").lower()
    if not text.strip() or text.strip() in ("none", "no", "n/a"):
        return frozenset()
    out = set()
    for injury, movements in INJURY_CONTRAINDICATIONS.items():
        if re.search(rf"\b{injury}", text):
            out.update(movements)
    return frozenset(out)


def injury_conflict(name: str, contraindicated: Iterable[str]) -> Optional[str]:
    for kw in contraindicated:
        if contains_keyword(name, kw):
            return kw
    return None


def is_exercise_allowed(name: str, profile: UserProfile) -> bool:
    """Equipment, avoid-list, and injury checks in one predicate."""
    if not is_equipment_available(required_equipment(name), profile.equipment):
        return False
    if matches_avoided(name, profile.avoid_exercises):
        return False
    if injury_conflict(name, contraindicated_keywords(profile.injuries)):
        return False
    return True


def focus_categories(focus: Sequence[str]) -> List[str]:
    """Category slots for a list of focus labels (first known label wins)."""
    for label in focus:
        slots = FOCUS_CATEGORIES.get(normalize_name(label))
        if slots:
            return list(slots)
    return list(FOCUS_CATEGORIES["full body"])


def candidate_exercises(category: str, profile: UserProfile) -> List[str]:
    """Allowed alternatives for a category across the user's equipment, richest first."""
    pools: List[str] = []
    available = set(profile.equipment) | {Equipment.BODYWEIGHT}
    for eq in EQUIPMENT_PRIORITY:
        if eq not in available:
            continue
        for name in ALTERNATIVES[eq].get(category, []):
            if name not in pools and is_exercise_allowed(name, profile):
                pools.append(name)
    return pools


def find_equipment_alternative(exercise: str, profile: UserProfile, exclude: Iterable[str] = ()) -> Optional[str]:
    """Swap an exercise for an allowed one in the same movement category."""
    category = categorize_exercise(exercise) or CORE
    excluded = {normalize_name(e) for e in exclude}
    for name in candidate_exercises(category, profile):
        if normalize_name(name) not in excluded:
            return name
    return None


__all__ = [
    "CATEGORIES",
    "ALTERNATIVES",
    "EQUIPMENT_KEYWORDS",
    "LEVEL_PRESCRIPTIONS",
    "LevelPrescription",
    "normalize_name",
    "categorize_exercise",
    "required_equipment",
    "is_equipment_available",
    "matches_avoided",
    "contraindicated_keywords",
    "injury_conflict",
    "is_exercise_allowed",
    "focus_categories",
    "candidate_exercises",
    "find_equipment_alternative",
]
