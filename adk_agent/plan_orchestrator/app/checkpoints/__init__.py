"""
Checkpoints Package - Resumable run state and plan persistence.

This package provides:
- models: Checkpoint ordinal and CheckpointData document
- store: Firestore and in-memory checkpoint/plan stores
"""

from app.checkpoints.models import (
    Checkpoint,
    CheckpointData,
    STAGE_GROUPS,
)

from app.checkpoints.store import (
    CheckpointStore,
    FirestoreCheckpointStore,
    FirestorePlanStore,
    InMemoryCheckpointStore,
    InMemoryPlanStore,
    PlanStore,
)


__all__ = [
    # Models
    "Checkpoint",
    "CheckpointData",
    "STAGE_GROUPS",
    # Stores
    "CheckpointStore",
    "FirestoreCheckpointStore",
    "FirestorePlanStore",
    "InMemoryCheckpointStore",
    "InMemoryPlanStore",
    "PlanStore",
]
