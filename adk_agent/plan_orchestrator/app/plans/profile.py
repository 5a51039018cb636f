"""
UserProfile - Immutable input for one plan generation run.

Accepts both the service's snake_case documents and the mobile app's
camelCase onboarding payload (trainingDays, mealCount, dietaryPrefs...).
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

DAYS: Tuple[str, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)


class Goal(str, Enum):
    WEIGHT_LOSS = "WEIGHT_LOSS"
    MUSCLE_GAIN = "MUSCLE_GAIN"
    ENDURANCE = "ENDURANCE"
    GENERAL_FITNESS = "GENERAL_FITNESS"
    FLEXIBILITY_MOBILITY = "FLEXIBILITY_MOBILITY"


class TrainingLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    PROFESSIONAL = "Professional"


class Equipment(str, Enum):
    GYM = "Gym"
    DUMBBELLS = "Dumbbells"
    BANDS = "Bands"
    BODYWEIGHT = "Bodyweight"


class DietaryPref(str, Enum):
    VEGETARIAN = "Vegetarian"
    EGGITARIAN = "Eggitarian"
    NON_VEG = "Non-veg"


def _coerce_enum(enum_cls, value: Any, default):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if value.strip().lower() in (member.value.lower(), member.name.lower()):
                return member
    return default


def _coerce_enum_set(enum_cls, values: Optional[Iterable[Any]]) -> frozenset:
    out = set()
    for v in values or []:
        member = _coerce_enum(enum_cls, v, None)
        if member is not None:
            out.add(member)
    return frozenset(out)


def _clean_strings(values: Optional[Iterable[Any]]) -> Tuple[str, ...]:
    if isinstance(values, str):
        values = [v for v in values.split(",")]
    return tuple(str(v).strip() for v in values or [] if str(v).strip())


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


def _clamp(value: Optional[Any], lo: int, hi: int, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return max(lo, min(hi, n))


def _optional_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class UserProfile:
    """Profile fields that drive plan generation."""
    user_id: str
    name: str = "Athlete"
    goal: Goal = Goal.GENERAL_FITNESS
    training_level: TrainingLevel = TrainingLevel.INTERMEDIATE
    training_days: int = 3
    session_length_min: int = 60
    equipment: frozenset = field(default_factory=lambda: frozenset({Equipment.BODYWEIGHT}))
    dietary_prefs: frozenset = field(default_factory=lambda: frozenset({DietaryPref.NON_VEG}))
    avoid_exercises: Tuple[str, ...] = ()
    preferred_exercises: Tuple[str, ...] = ()
    injuries: str = ""
    meal_count: int = 3
    daily_calorie_target: Optional[int] = None
    daily_protein_target: Optional[int] = None
    age: Optional[int] = None
    sex: Optional[str] = None
    weight_kg: Optional[float] = None
    height_cm: Optional[float] = None
    activity_level: Optional[str] = None
    supplements: Tuple[str, ...] = ()
    preferred_training_days: Tuple[str, ...] = ()
    special_requests: str = ""

    # -------------------------------------------------------------------------
    # Derived
    # -------------------------------------------------------------------------

    @property
    def diet(self) -> DietaryPref:
        """Most restrictive dietary preference wins."""
        for pref in (DietaryPref.VEGETARIAN, DietaryPref.EGGITARIAN, DietaryPref.NON_VEG):
            if pref in self.dietary_prefs:
                return pref
        return DietaryPref.NON_VEG

    @property
    def fingerprint(self) -> str:
        """Stable short hash of the profile, used for deterministic run ids."""
        payload = json.dumps(self.to_dict(), sort_keys=True, default=str)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Firestore-compatible dict."""
        return {
            "user_id": self.user_id,
            "name": self.name,
            "goal": self.goal.value,
            "training_level": self.training_level.value,
            "training_days": self.training_days,
            "session_length_min": self.session_length_min,
            "equipment": sorted(e.value for e in self.equipment),
            "dietary_prefs": sorted(d.value for d in self.dietary_prefs),
            "avoid_exercises": list(self.avoid_exercises),
            "preferred_exercises": list(self.preferred_exercises),
            "injuries": self.injuries,
            "meal_count": self.meal_count,
            "daily_calorie_target": self.daily_calorie_target,
            "daily_protein_target": self.daily_protein_target,
            "age": self.age,
            "sex": self.sex,
            "weight_kg": self.weight_kg,
            "height_cm": self.height_cm,
            "activity_level": self.activity_level,
            "supplements": list(self.supplements),
            "preferred_training_days": list(self.preferred_training_days),
            "special_requests": self.special_requests,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        """Create from a Firestore dict or the app's camelCase payload."""
        equipment = _coerce_enum_set(Equipment, _first(data, "equipment", default=[]))
        diets = _coerce_enum_set(DietaryPref, _first(data, "dietary_prefs", "dietaryPrefs", default=[]))
        calorie_target = _first(data, "daily_calorie_target", "dailyCalorieTarget")
        protein_target = _first(data, "daily_protein_target", "dailyProteinTarget")
        preferred_days = tuple(
            d.lower() for d in _clean_strings(_first(data, "preferred_training_days", "preferredTrainingDays"))
            if d.lower() in DAYS
        )
        age = _first(data, "age")

        return cls(
            user_id=str(_first(data, "user_id", "userId", "id", default="anonymous")),
            name=str(_first(data, "name", default="Athlete")).strip() or "Athlete",
            goal=_coerce_enum(Goal, _first(data, "goal"), Goal.GENERAL_FITNESS),
            training_level=_coerce_enum(
                TrainingLevel, _first(data, "training_level", "trainingLevel"), TrainingLevel.INTERMEDIATE
            ),
            training_days=_clamp(_first(data, "training_days", "trainingDays"), 1, 7, 3),
            session_length_min=_clamp(_first(data, "session_length_min", "sessionLength"), 15, 180, 60),
            equipment=equipment or frozenset({Equipment.BODYWEIGHT}),
            dietary_prefs=diets or frozenset({DietaryPref.NON_VEG}),
            avoid_exercises=_clean_strings(_first(data, "avoid_exercises", "avoidExercises")),
            preferred_exercises=_clean_strings(_first(data, "preferred_exercises", "preferredExercises")),
            injuries=str(_first(data, "injuries", default="") or ""),
            meal_count=_clamp(_first(data, "meal_count", "mealCount"), 1, 8, 3),
            daily_calorie_target=int(calorie_target) if calorie_target else None,
            daily_protein_target=int(protein_target) if protein_target else None,
            age=int(age) if age is not None else None,
            sex=_first(data, "sex"),
            weight_kg=_optional_float(_first(data, "weight_kg", "weight")),
            height_cm=_optional_float(_first(data, "height_cm", "height")),
            activity_level=_first(data, "activity_level", "activityLevel"),
            supplements=_clean_strings(_first(data, "supplements")),
            preferred_training_days=preferred_days,
            special_requests=str(_first(data, "special_requests", "specialRequests", default="") or ""),
        )


__all__ = [
    "DAYS",
    "Goal",
    "TrainingLevel",
    "Equipment",
    "DietaryPref",
    "UserProfile",
]
