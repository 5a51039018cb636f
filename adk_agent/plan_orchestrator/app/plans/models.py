"""
Plan Models - Typed artifact variants produced by the pipeline.

Artifact variants:
- WorkoutSplit: 7 calendar slots -> DaySplit
- BaseNutrition: deterministic targets + reusable meal templates
- DayWorkout / DayNutrition / DayRecovery: per-day artifacts
- SupplementsPlan: weekly recovery artifact (7 DayRecovery + add-ons)
- Reasoning: per-day explanation strings
- WeeklyPlan: final merge, the only artifact exposed outside the pipeline

JSON field names follow the plan contract consumed by the app
(RIR, supplementCard.addOns, ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from app.plans.profile import DAYS


class Intensity(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    REST = "rest"


class ArtifactType(str, Enum):
    """Closed set of artifact variants, each with its own schema."""
    SPLIT = "split"
    BASE_NUTRITION = "base_nutrition"
    WORKOUT = "workout"
    NUTRITION = "nutrition"
    SUPPLEMENTS = "supplements"
    REASONING = "reasoning"


class ArtifactStatus(str, Enum):
    """Per-artifact generation status."""
    PENDING = "pending"
    GENERATED = "generated"
    VERIFIED = "verified"
    REPAIRED = "repaired"
    FALLBACK = "fallback"

    @property
    def terminal(self) -> bool:
        return self != ArtifactStatus.PENDING


# =============================================================================
# WORKOUT
# =============================================================================

@dataclass
class ExerciseItem:
    exercise: str
    sets: int
    reps: str
    rir: int
    duration_min: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "exercise": self.exercise,
            "sets": self.sets,
            "reps": self.reps,
            "RIR": self.rir,
        }
        if self.duration_min is not None:
            data["duration_min"] = self.duration_min
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExerciseItem":
        return cls(
            exercise=data["exercise"],
            sets=int(data["sets"]),
            reps=str(data["reps"]),
            rir=int(data.get("RIR", data.get("rir", 2))),
            duration_min=data.get("duration_min"),
        )


@dataclass
class WorkoutBlock:
    name: str
    items: List[ExerciseItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "items": [i.to_dict() for i in self.items]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutBlock":
        return cls(name=data["name"], items=[ExerciseItem.from_dict(i) for i in data.get("items", [])])


@dataclass
class DayWorkout:
    focus: List[str]
    blocks: List[WorkoutBlock]
    notes: str = ""

    def iter_items(self) -> Iterator[Tuple[int, int, ExerciseItem]]:
        """Yield (block_index, item_index, item) for every exercise."""
        for bi, block in enumerate(self.blocks):
            for ii, item in enumerate(block.items):
                yield bi, ii, item

    def exercise_names(self) -> List[str]:
        return [item.exercise for _, _, item in self.iter_items()]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "focus": list(self.focus),
            "blocks": [b.to_dict() for b in self.blocks],
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DayWorkout":
        return cls(
            focus=list(data.get("focus", [])),
            blocks=[WorkoutBlock.from_dict(b) for b in data.get("blocks", [])],
            notes=data.get("notes", ""),
        )


# =============================================================================
# NUTRITION
# =============================================================================

@dataclass
class MealItem:
    food: str
    qty: str

    def to_dict(self) -> Dict[str, Any]:
        return {"food": self.food, "qty": self.qty}


@dataclass
class Meal:
    name: str
    items: List[MealItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "items": [i.to_dict() for i in self.items]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Meal":
        return cls(
            name=data["name"],
            items=[MealItem(food=i["food"], qty=i["qty"]) for i in data.get("items", [])],
        )


@dataclass
class DayNutrition:
    total_kcal: int
    protein_g: int
    meals: List[Meal]
    hydration_l: float
    carbs_g: Optional[int] = None
    fat_g: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "total_kcal": self.total_kcal,
            "protein_g": self.protein_g,
            "meals": [m.to_dict() for m in self.meals],
            "hydration_l": self.hydration_l,
        }
        if self.carbs_g is not None:
            data["carbs_g"] = self.carbs_g
        if self.fat_g is not None:
            data["fat_g"] = self.fat_g
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DayNutrition":
        return cls(
            total_kcal=int(data["total_kcal"]),
            protein_g=int(data["protein_g"]),
            meals=[Meal.from_dict(m) for m in data.get("meals", [])],
            hydration_l=float(data.get("hydration_l", 2.5)),
            carbs_g=data.get("carbs_g"),
            fat_g=data.get("fat_g"),
        )


@dataclass
class NutritionDelta:
    """Adjustment applied to base nutrition for one day."""
    kcal: int = 0
    protein_g: int = 0
    carbs_g: int = 0
    fat_g: int = 0
    hydration_l: float = 0.0
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kcal": self.kcal,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "hydration_l": self.hydration_l,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NutritionDelta":
        return cls(
            kcal=data.get("kcal", 0),
            protein_g=data.get("protein_g", 0),
            carbs_g=data.get("carbs_g", 0),
            fat_g=data.get("fat_g", 0),
            hydration_l=data.get("hydration_l", 0.0),
            reason=data.get("reason", ""),
        )


@dataclass
class BaseNutrition:
    total_kcal: int
    protein_g: int
    carbs_g: int
    fat_g: int
    hydration_l: float
    meal_templates: List[Meal] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_kcal": self.total_kcal,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "hydration_l": self.hydration_l,
            "meal_templates": [m.to_dict() for m in self.meal_templates],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseNutrition":
        return cls(
            total_kcal=int(data["total_kcal"]),
            protein_g=int(data["protein_g"]),
            carbs_g=int(data["carbs_g"]),
            fat_g=int(data["fat_g"]),
            hydration_l=float(data["hydration_l"]),
            meal_templates=[Meal.from_dict(m) for m in data.get("meal_templates", [])],
        )


# =============================================================================
# RECOVERY / SUPPLEMENTS
# =============================================================================

@dataclass
class SupplementCard:
    current: List[str] = field(default_factory=list)
    add_ons: List[str] = field(default_factory=list)
    optimize_notes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": list(self.current),
            "addOns": list(self.add_ons),
            "optimizeNotes": list(self.optimize_notes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupplementCard":
        return cls(
            current=list(data.get("current", [])),
            add_ons=list(data.get("addOns", [])),
            optimize_notes=list(data.get("optimizeNotes", [])),
        )


@dataclass
class DayRecovery:
    mobility: List[str]
    sleep: List[str]
    supplements: List[str]
    supplement_card: SupplementCard

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mobility": list(self.mobility),
            "sleep": list(self.sleep),
            "supplements": list(self.supplements),
            "supplementCard": self.supplement_card.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DayRecovery":
        return cls(
            mobility=list(data.get("mobility", [])),
            sleep=list(data.get("sleep", [])),
            supplements=list(data.get("supplements", [])),
            supplement_card=SupplementCard.from_dict(data.get("supplementCard", {})),
        )


@dataclass
class SupplementsPlan:
    days: Dict[str, DayRecovery]
    recommended_add_ons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days": {d: r.to_dict() for d, r in self.days.items()},
            "recommendedAddOns": list(self.recommended_add_ons),
        }


# =============================================================================
# SPLIT / REASONING
# =============================================================================

@dataclass
class DaySplit:
    is_rest_day: bool
    focus: List[str]
    intensity: Intensity
    primary_muscles: List[str] = field(default_factory=list)
    secondary_muscles: List[str] = field(default_factory=list)
    rationale: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_rest_day": self.is_rest_day,
            "focus": list(self.focus),
            "intensity": self.intensity.value,
            "primary_muscles": list(self.primary_muscles),
            "secondary_muscles": list(self.secondary_muscles),
            "rationale": self.rationale,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DaySplit":
        return cls(
            is_rest_day=bool(data["is_rest_day"]),
            focus=list(data.get("focus", [])),
            intensity=Intensity(data["intensity"]),
            primary_muscles=list(data.get("primary_muscles", [])),
            secondary_muscles=list(data.get("secondary_muscles", [])),
            rationale=data.get("rationale", ""),
        )


@dataclass
class WorkoutSplit:
    days: Dict[str, DaySplit]

    @property
    def training_day_count(self) -> int:
        return sum(1 for d in self.days.values() if not d.is_rest_day)

    def to_dict(self) -> Dict[str, Any]:
        return {"days": {d: self.days[d].to_dict() for d in DAYS if d in self.days}}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutSplit":
        return cls(days={d: DaySplit.from_dict(v) for d, v in data.get("days", {}).items()})


@dataclass
class Reasoning:
    reasons: Dict[str, str]

    def to_dict(self) -> Dict[str, Any]:
        return {"reasons": {d: self.reasons[d] for d in DAYS if d in self.reasons}}


# =============================================================================
# VERIFICATION
# =============================================================================

@dataclass
class Violation:
    field: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "reason": self.reason}


@dataclass
class VerificationResult:
    """Outcome of a domain verifier; never mutates the checked artifact."""
    violations: List[Violation] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.violations

    def add_violation(self, field_path: str, reason: str) -> None:
        self.violations.append(Violation(field=field_path, reason=reason))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "violations": [v.to_dict() for v in self.violations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerificationResult":
        return cls(violations=[Violation(**v) for v in data.get("violations", [])])


# =============================================================================
# DAY ARTIFACT
# =============================================================================

DayValue = Union[DayWorkout, DayNutrition, DayRecovery]

_DAY_VALUE_CLASSES = {
    ArtifactType.WORKOUT: DayWorkout,
    ArtifactType.NUTRITION: DayNutrition,
    ArtifactType.SUPPLEMENTS: DayRecovery,
}


@dataclass
class DayArtifact:
    """One per-day artifact owned by the orchestrator during a run."""
    day: str
    artifact_type: ArtifactType
    value: Optional[DayValue] = None
    status: ArtifactStatus = ArtifactStatus.PENDING
    repairs: List[Dict[str, Any]] = field(default_factory=list)
    attempts: int = 0
    violations: List[Dict[str, str]] = field(default_factory=list)
    delta: Optional[NutritionDelta] = None
    target_kcal: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day,
            "artifact_type": self.artifact_type.value,
            "value": self.value.to_dict() if self.value is not None else None,
            "status": self.status.value,
            "repairs": list(self.repairs),
            "attempts": self.attempts,
            "violations": list(self.violations),
            "delta": self.delta.to_dict() if self.delta else None,
            "target_kcal": self.target_kcal,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DayArtifact":
        artifact_type = ArtifactType(data["artifact_type"])
        raw_value = data.get("value")
        value = _DAY_VALUE_CLASSES[artifact_type].from_dict(raw_value) if raw_value else None
        return cls(
            day=data["day"],
            artifact_type=artifact_type,
            value=value,
            status=ArtifactStatus(data.get("status", "pending")),
            repairs=data.get("repairs", []),
            attempts=data.get("attempts", 0),
            violations=data.get("violations", []),
            delta=NutritionDelta.from_dict(data["delta"]) if data.get("delta") else None,
            target_kcal=data.get("target_kcal"),
        )


# =============================================================================
# WEEKLY PLAN
# =============================================================================

@dataclass
class DayPlan:
    workout: DayWorkout
    nutrition: DayNutrition
    recovery: DayRecovery
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workout": self.workout.to_dict(),
            "nutrition": self.nutrition.to_dict(),
            "recovery": self.recovery.to_dict(),
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DayPlan":
        return cls(
            workout=DayWorkout.from_dict(data["workout"]),
            nutrition=DayNutrition.from_dict(data["nutrition"]),
            recovery=DayRecovery.from_dict(data["recovery"]),
            reason=data.get("reason", ""),
        )


@dataclass
class WeeklyPlan:
    user_id: str
    days: Dict[str, DayPlan]
    split: WorkoutSplit
    base_nutrition: BaseNutrition
    recommended_add_ons: List[str] = field(default_factory=list)
    generation_summary: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "days": {d: self.days[d].to_dict() for d in DAYS if d in self.days},
            "split": self.split.to_dict(),
            "base_nutrition": self.base_nutrition.to_dict(),
            "recommended_add_ons": list(self.recommended_add_ons),
            "generation_summary": self.generation_summary,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeeklyPlan":
        return cls(
            user_id=data.get("user_id", ""),
            days={d: DayPlan.from_dict(v) for d, v in data.get("days", {}).items()},
            split=WorkoutSplit.from_dict(data.get("split", {})),
            base_nutrition=BaseNutrition.from_dict(data["base_nutrition"]),
            recommended_add_ons=data.get("recommended_add_ons", []),
            generation_summary=data.get("generation_summary", {}),
            created_at=data.get("created_at"),
        )


__all__ = [
    "Intensity",
    "ArtifactType",
    "ArtifactStatus",
    "ExerciseItem",
    "WorkoutBlock",
    "DayWorkout",
    "MealItem",
    "Meal",
    "DayNutrition",
    "NutritionDelta",
    "BaseNutrition",
    "SupplementCard",
    "DayRecovery",
    "SupplementsPlan",
    "DaySplit",
    "WorkoutSplit",
    "Reasoning",
    "Violation",
    "VerificationResult",
    "DayArtifact",
    "DayPlan",
    "WeeklyPlan",
]
