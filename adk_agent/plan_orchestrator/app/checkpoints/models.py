"""
Checkpoint models - Run state persisted after every stage.

The ordinal only moves forward. Everything a later stage needs (split, base
nutrition, per-day artifacts with their status and repairs) lives in the
same document, so a resumed run never has to regenerate terminal artifacts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Optional

from app.plans.models import (
    ArtifactStatus,
    ArtifactType,
    BaseNutrition,
    DayArtifact,
    Reasoning,
    WorkoutSplit,
)
from app.plans.profile import DAYS


class Checkpoint(IntEnum):
    """Pipeline stage ordinals; strictly increasing."""
    NONE = 0
    SPLIT_COMPLETE = 1
    BASE_NUTRITION_COMPLETE = 2
    WORKOUTS_COMPLETE = 3
    NUTRITION_ADJUST_COMPLETE = 4
    SUPPLEMENTS_COMPLETE = 5
    VERIFIERS_COMPLETE = 6
    REASONS_COMPLETE = 7


# Per-day artifact group recorded by each stage-2 checkpoint
STAGE_GROUPS: Dict[Checkpoint, ArtifactType] = {
    Checkpoint.WORKOUTS_COMPLETE: ArtifactType.WORKOUT,
    Checkpoint.NUTRITION_ADJUST_COMPLETE: ArtifactType.NUTRITION,
    Checkpoint.SUPPLEMENTS_COMPLETE: ArtifactType.SUPPLEMENTS,
}


def _artifacts_to_dict(artifacts: Dict[str, DayArtifact]) -> Dict[str, Any]:
    return {day: a.to_dict() for day, a in artifacts.items()}


def _artifacts_from_dict(data: Optional[Dict[str, Any]]) -> Dict[str, DayArtifact]:
    return {day: DayArtifact.from_dict(a) for day, a in (data or {}).items()}


@dataclass
class CheckpointData:
    """Checkpoint document: plan_checkpoints/{run_id}."""
    run_id: str
    user_id: str
    checkpoint: Checkpoint = Checkpoint.NONE
    profile_fingerprint: Optional[str] = None

    split: Optional[WorkoutSplit] = None
    base_nutrition: Optional[BaseNutrition] = None
    workouts: Dict[str, DayArtifact] = field(default_factory=dict)
    nutrition: Dict[str, DayArtifact] = field(default_factory=dict)
    recovery: Dict[str, DayArtifact] = field(default_factory=dict)
    recommended_add_ons: List[str] = field(default_factory=list)
    reasoning: Optional[Reasoning] = None

    # Status and repairs of the single (non per-day) artifacts
    statuses: Dict[str, str] = field(default_factory=dict)
    repairs: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def day_artifacts(self, artifact_type: ArtifactType) -> Dict[str, DayArtifact]:
        if artifact_type == ArtifactType.WORKOUT:
            return self.workouts
        if artifact_type == ArtifactType.NUTRITION:
            return self.nutrition
        if artifact_type == ArtifactType.SUPPLEMENTS:
            return self.recovery
        raise ValueError(f"{artifact_type.value} is not a per-day artifact")

    def group_complete(self, artifact_type: ArtifactType) -> bool:
        """All 7 days of a per-day artifact group are terminal."""
        artifacts = self.day_artifacts(artifact_type)
        return all(
            day in artifacts and artifacts[day].status.terminal and artifacts[day].value is not None
            for day in DAYS
        )

    def set_status(self, artifact_type: ArtifactType, status: ArtifactStatus,
                   repairs: Optional[List[Dict[str, Any]]] = None) -> None:
        self.statuses[artifact_type.value] = status.value
        self.repairs[artifact_type.value] = list(repairs or [])

    def advance(self, checkpoint: Checkpoint) -> None:
        """Move the ordinal forward; never backwards."""
        if checkpoint < self.checkpoint:
            raise ValueError(f"Checkpoint cannot move from {self.checkpoint.name} back to {checkpoint.name}")
        self.checkpoint = checkpoint

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Firestore-compatible dict."""
        return {
            "run_id": self.run_id,
            "user_id": self.user_id,
            "checkpoint": int(self.checkpoint),
            "checkpoint_name": self.checkpoint.name,
            "profile_fingerprint": self.profile_fingerprint,
            "split": self.split.to_dict() if self.split else None,
            "base_nutrition": self.base_nutrition.to_dict() if self.base_nutrition else None,
            "workouts": _artifacts_to_dict(self.workouts),
            "nutrition": _artifacts_to_dict(self.nutrition),
            "recovery": _artifacts_to_dict(self.recovery),
            "recommended_add_ons": list(self.recommended_add_ons),
            "reasoning": self.reasoning.to_dict() if self.reasoning else None,
            "statuses": dict(self.statuses),
            "repairs": {k: list(v) for k, v in self.repairs.items()},
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckpointData":
        """Create from Firestore dict."""
        reasoning = data.get("reasoning")
        return cls(
            run_id=data.get("run_id", ""),
            user_id=data.get("user_id", ""),
            checkpoint=Checkpoint(int(data.get("checkpoint", 0))),
            profile_fingerprint=data.get("profile_fingerprint"),
            split=WorkoutSplit.from_dict(data["split"]) if data.get("split") else None,
            base_nutrition=BaseNutrition.from_dict(data["base_nutrition"]) if data.get("base_nutrition") else None,
            workouts=_artifacts_from_dict(data.get("workouts")),
            nutrition=_artifacts_from_dict(data.get("nutrition")),
            recovery=_artifacts_from_dict(data.get("recovery")),
            recommended_add_ons=list(data.get("recommended_add_ons", [])),
            reasoning=Reasoning(reasons=dict(reasoning.get("reasons", {}))) if reasoning else None,
            statuses=dict(data.get("statuses", {})),
            repairs={k: list(v) for k, v in (data.get("repairs") or {}).items()},
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


__all__ = [
    "Checkpoint",
    "STAGE_GROUPS",
    "CheckpointData",
]
