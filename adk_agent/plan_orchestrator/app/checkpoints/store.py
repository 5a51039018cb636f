"""
Checkpoint and plan stores.

Checkpoints are written as a full-document replace: Firestore document.set()
without merge, and a deep copy under a lock in memory. A reader therefore
never sees a half-written stage.

Collections:
- plan_checkpoints/{run_id}: CheckpointData
- weekly_plans/{user_id}: latest WeeklyPlan
"""

from __future__ import annotations

import copy
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.checkpoints.models import CheckpointData
from app.config import CHECKPOINTS_COLLECTION, PLANS_COLLECTION
from app.firestore_client import get_db
from app.plans.models import WeeklyPlan

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return timezone-aware UTC datetime for Firestore compatibility."""
    return datetime.now(timezone.utc)


# =============================================================================
# CHECKPOINTS
# =============================================================================

class CheckpointStore(ABC):
    """Persistence for in-flight run state."""

    @abstractmethod
    def load(self, run_id: str) -> Optional[CheckpointData]:
        pass

    @abstractmethod
    def save(self, data: CheckpointData) -> None:
        pass

    @abstractmethod
    def delete(self, run_id: str) -> None:
        pass


class FirestoreCheckpointStore(CheckpointStore):

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = get_db()
        return self._db

    def _ref(self, run_id: str):
        return self.db.collection(CHECKPOINTS_COLLECTION).document(run_id)

    def load(self, run_id: str) -> Optional[CheckpointData]:
        doc = self._ref(run_id).get()
        if not doc.exists:
            return None
        return CheckpointData.from_dict(doc.to_dict())

    def save(self, data: CheckpointData) -> None:
        now = _utcnow()
        if data.created_at is None:
            data.created_at = now
        data.updated_at = now
        self._ref(data.run_id).set(data.to_dict())
        logger.debug("Saved checkpoint %s at %s", data.run_id, data.checkpoint.name)

    def delete(self, run_id: str) -> None:
        self._ref(run_id).delete()
        logger.debug("Deleted checkpoint %s", run_id)


class InMemoryCheckpointStore(CheckpointStore):
    """Checkpoint store for tests and dry runs."""

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self.saved: List[tuple] = []
        self.deleted: List[str] = []

    def load(self, run_id: str) -> Optional[CheckpointData]:
        with self._lock:
            doc = self._docs.get(run_id)
            if doc is None:
                return None
            return CheckpointData.from_dict(copy.deepcopy(doc))

    def save(self, data: CheckpointData) -> None:
        now = _utcnow()
        if data.created_at is None:
            data.created_at = now
        data.updated_at = now
        snapshot = copy.deepcopy(data.to_dict())
        with self._lock:
            self._docs[data.run_id] = snapshot
            self.saved.append((data.run_id, data.checkpoint))

    def delete(self, run_id: str) -> None:
        with self._lock:
            self._docs.pop(run_id, None)
            self.deleted.append(run_id)

    def __contains__(self, run_id: str) -> bool:
        with self._lock:
            return run_id in self._docs


# =============================================================================
# PLANS
# =============================================================================

class PlanStore(ABC):
    """Persistence for finished weekly plans, one per user."""

    @abstractmethod
    def save_plan(self, plan: WeeklyPlan) -> None:
        pass

    @abstractmethod
    def get_plan(self, user_id: str) -> Optional[WeeklyPlan]:
        pass


class FirestorePlanStore(PlanStore):

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = get_db()
        return self._db

    def save_plan(self, plan: WeeklyPlan) -> None:
        if plan.created_at is None:
            plan.created_at = _utcnow()
        self.db.collection(PLANS_COLLECTION).document(plan.user_id).set(plan.to_dict())
        logger.info("Stored weekly plan for user %s", plan.user_id)

    def get_plan(self, user_id: str) -> Optional[WeeklyPlan]:
        doc = self.db.collection(PLANS_COLLECTION).document(user_id).get()
        if not doc.exists:
            return None
        return WeeklyPlan.from_dict(doc.to_dict())


class InMemoryPlanStore(PlanStore):

    def __init__(self):
        self._plans: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def save_plan(self, plan: WeeklyPlan) -> None:
        if plan.created_at is None:
            plan.created_at = _utcnow()
        with self._lock:
            self._plans[plan.user_id] = copy.deepcopy(plan.to_dict())

    def get_plan(self, user_id: str) -> Optional[WeeklyPlan]:
        with self._lock:
            data = self._plans.get(user_id)
            return WeeklyPlan.from_dict(copy.deepcopy(data)) if data else None


__all__ = [
    "CheckpointStore",
    "FirestoreCheckpointStore",
    "InMemoryCheckpointStore",
    "PlanStore",
    "FirestorePlanStore",
    "InMemoryPlanStore",
]
