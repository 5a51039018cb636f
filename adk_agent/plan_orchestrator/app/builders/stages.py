"""
Stage builders - one per artifact type.

Builders only know their own upstream inputs. Deterministic parts (the
nutrition targets and the per-day adjustment) are computed here, before the
prompt, so the model never decides a number the system can compute.
"""

from __future__ import annotations

from typing import Any, Dict, Sequence

from app.builders.base import StageBuilder
from app.builders.prompts import (
    build_base_nutrition_prompt,
    build_nutrition_prompt,
    build_reasoning_prompt,
    build_split_prompt,
    build_supplements_prompt,
    build_workout_prompt,
)
from app.config import PipelineConfig
from app.llm.completion import CompletionClient
from app.plans.models import ArtifactType, BaseNutrition, DaySplit, NutritionDelta, Violation, WorkoutSplit
from app.plans.profile import UserProfile
from app.plans.targets import NutritionTarget, apply_delta, nutrition_delta


class SplitBuilder(StageBuilder):
    artifact_type = ArtifactType.SPLIT

    def build_prompt(self, violations: Sequence[Violation] = ()) -> str:
        return build_split_prompt(self.profile)


class BaseNutritionBuilder(StageBuilder):
    """The model writes meal templates; totals always come from the target."""

    artifact_type = ArtifactType.BASE_NUTRITION

    def __init__(self, client: CompletionClient, config: PipelineConfig, profile: UserProfile,
                 target: NutritionTarget):
        super().__init__(client, config, profile)
        self.target = target

    def build_prompt(self, violations: Sequence[Violation] = ()) -> str:
        return build_base_nutrition_prompt(self.profile, self.target)

    def prepare(self, value: Any) -> Any:
        if isinstance(value, list):
            value = {"meal_templates": value}
        if not isinstance(value, dict):
            return value
        return {**value, **self.target.to_dict()}


class DayWorkoutBuilder(StageBuilder):
    artifact_type = ArtifactType.WORKOUT

    def __init__(self, client: CompletionClient, config: PipelineConfig, profile: UserProfile,
                 day: str, split_day: DaySplit):
        super().__init__(client, config, profile, day=day)
        self.split_day = split_day

    def build_prompt(self, violations: Sequence[Violation] = ()) -> str:
        return build_workout_prompt(self.profile, self.day, self.split_day, violations)


class NutritionAdjustmentBuilder(StageBuilder):
    """Applies the intensity policy to base nutrition, then asks for meals."""

    artifact_type = ArtifactType.NUTRITION

    def __init__(self, client: CompletionClient, config: PipelineConfig, profile: UserProfile,
                 day: str, split_day: DaySplit, base: BaseNutrition):
        super().__init__(client, config, profile, day=day)
        self.split_day = split_day
        self.base = base
        self.delta: NutritionDelta = nutrition_delta(base, split_day.intensity)
        self.target: NutritionTarget = apply_delta(base, self.delta)

    def build_prompt(self, violations: Sequence[Violation] = ()) -> str:
        return build_nutrition_prompt(self.profile, self.day, self.split_day, self.base,
                                      self.target, self.delta, violations)


class SupplementsBuilder(StageBuilder):
    """One call for the whole week: 7 recovery entries plus recommendedAddOns."""

    artifact_type = ArtifactType.SUPPLEMENTS

    def __init__(self, client: CompletionClient, config: PipelineConfig, profile: UserProfile,
                 split: WorkoutSplit):
        super().__init__(client, config, profile)
        self.split = split

    def build_prompt(self, violations: Sequence[Violation] = ()) -> str:
        return build_supplements_prompt(self.profile, self.split, violations)

    def validation_context(self) -> Dict[str, Any]:
        return {"split": self.split, "weekly": True}


class ReasoningBuilder(StageBuilder):
    artifact_type = ArtifactType.REASONING

    def __init__(self, client: CompletionClient, config: PipelineConfig, profile: UserProfile,
                 split: WorkoutSplit, deltas: Dict[str, NutritionDelta]):
        super().__init__(client, config, profile)
        self.split = split
        self.deltas = deltas

    def build_prompt(self, violations: Sequence[Violation] = ()) -> str:
        return build_reasoning_prompt(self.profile, self.split, self.deltas)


__all__ = [
    "SplitBuilder",
    "BaseNutritionBuilder",
    "DayWorkoutBuilder",
    "NutritionAdjustmentBuilder",
    "SupplementsBuilder",
    "ReasoningBuilder",
]
