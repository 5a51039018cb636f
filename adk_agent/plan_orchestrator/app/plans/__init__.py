"""
Plans Package - Plan artifacts, contracts, and deterministic domain rules.

This package provides:
- profile: UserProfile input model
- models: Artifact variants (split, nutrition, workout, recovery, reasoning)
- schemas: Per-artifact validator/repairer
- verifiers: Domain constraint checks for per-day artifacts
- fallback: Deterministic artifact generator
- fixer: Programmatic cleanup of the assembled plan
- taxonomy / foods / targets / supplements / session_time: domain tables and math
"""

from app.plans.profile import (
    DAYS,
    DietaryPref,
    Equipment,
    Goal,
    TrainingLevel,
    UserProfile,
)

from app.plans.models import (
    ArtifactStatus,
    ArtifactType,
    BaseNutrition,
    DayArtifact,
    DayNutrition,
    DayPlan,
    DayRecovery,
    DaySplit,
    DayWorkout,
    Intensity,
    NutritionDelta,
    Reasoning,
    SupplementsPlan,
    VerificationResult,
    WeeklyPlan,
    WorkoutSplit,
)

from app.plans.schemas import (
    SchemaResult,
    validate,
    validate_weekly_plan,
)

from app.plans.verifiers import verify

from app.plans.fallback import fallback


__all__ = [
    # Profile
    "DAYS",
    "DietaryPref",
    "Equipment",
    "Goal",
    "TrainingLevel",
    "UserProfile",
    # Models
    "ArtifactStatus",
    "ArtifactType",
    "BaseNutrition",
    "DayArtifact",
    "DayNutrition",
    "DayPlan",
    "DayRecovery",
    "DaySplit",
    "DayWorkout",
    "Intensity",
    "NutritionDelta",
    "Reasoning",
    "SupplementsPlan",
    "VerificationResult",
    "WeeklyPlan",
    "WorkoutSplit",
    # Contracts
    "SchemaResult",
    "validate",
    "validate_weekly_plan",
    "verify",
    "fallback",
]
