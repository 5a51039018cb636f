"""
Builders Package - Stage builders for each plan artifact.

This package provides:
- prompts: Prompt composition per stage
- base: StageBuilder state machine and StageResult
- stages: Split, base nutrition, per-day workout/nutrition, supplements, reasoning
"""

from app.builders.base import (
    BuilderState,
    StageBuilder,
    StageOutcome,
    StageResult,
)

from app.builders.stages import (
    BaseNutritionBuilder,
    DayWorkoutBuilder,
    NutritionAdjustmentBuilder,
    ReasoningBuilder,
    SplitBuilder,
    SupplementsBuilder,
)


__all__ = [
    # Base
    "BuilderState",
    "StageBuilder",
    "StageOutcome",
    "StageResult",
    # Stages
    "BaseNutritionBuilder",
    "DayWorkoutBuilder",
    "NutritionAdjustmentBuilder",
    "ReasoningBuilder",
    "SplitBuilder",
    "SupplementsBuilder",
]
