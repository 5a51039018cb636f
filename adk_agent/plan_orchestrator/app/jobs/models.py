"""Plan job documents stored in plan_generation_jobs/{jobId}."""

from __future__ import annotations

import random
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from app.config import MAX_ATTEMPTS, RETRY_BACKOFF_BASE_SECS, RETRY_BACKOFF_MAX_SECS, RETRY_JITTER_SECS


class JobStatus(str, Enum):
    QUEUED = "queued"
    LEASED = "leased"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SUPERSEDED = "superseded"

    @property
    def finished(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.SUPERSEDED)


class JobOutcome(str, Enum):
    """What the worker did with a leased job."""
    SUCCEEDED = "succeeded"
    REQUEUED = "requeued"
    SUPERSEDED = "superseded"
    FAILED = "failed"


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Firestore returns aware datetimes; the queue compares naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


@dataclass
class PlanJobPayload:
    """Profile snapshot and run id for one weekly plan run."""
    user_id: str
    profile: Dict[str, Any] = field(default_factory=dict)
    run_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "profile": self.profile, "run_id": self.run_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanJobPayload":
        return cls(
            user_id=data.get("user_id", ""),
            profile=data.get("profile") or {},
            run_id=data.get("run_id"),
        )


@dataclass
class PlanJob:
    """
    One queued weekly plan run.

    attempts counts leases that ended in failure or are still live; a
    timeout yield hands the attempt back and bumps resumes instead, so a long
    run that resumes many times is never failed for running out of attempts.
    """
    id: str
    status: JobStatus = JobStatus.QUEUED
    payload: PlanJobPayload = field(default_factory=lambda: PlanJobPayload(user_id=""))

    lease_owner: Optional[str] = None
    lease_expires_at: Optional[datetime] = None
    last_lease_owner: Optional[str] = None

    attempts: int = 0
    max_attempts: int = MAX_ATTEMPTS
    run_after: Optional[datetime] = None

    resumes: int = 0
    checkpoint: Optional[str] = None
    superseded_by: Optional[str] = None

    error: Optional[Dict[str, Any]] = None
    result: Optional[Dict[str, Any]] = None

    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Firestore document; enums and the payload are flattened."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["status"] = JobStatus(self.status).value
        data["payload"] = self.payload.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanJob":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["status"] = JobStatus(values.get("status") or JobStatus.QUEUED)
        values["payload"] = PlanJobPayload.from_dict(values.get("payload") or {})
        return cls(**values)

    @property
    def retries_left(self) -> bool:
        return self.attempts < self.max_attempts

    def is_ready(self, now: Optional[datetime] = None) -> bool:
        """Queued and past its run_after, if any."""
        now = now or datetime.utcnow()
        if self.status != JobStatus.QUEUED:
            return False
        run_after = naive_utc(self.run_after)
        return run_after is None or run_after <= now

    def lease_live(self, now: datetime) -> bool:
        expires = naive_utc(self.lease_expires_at)
        return expires is not None and expires > now

    def compute_backoff_seconds(self) -> int:
        """Doubling delay from 30s per attempt, capped at 10 minutes, plus 0-15s jitter."""
        delay = min(RETRY_BACKOFF_BASE_SECS * (2 ** self.attempts), RETRY_BACKOFF_MAX_SECS)
        return delay + random.randint(0, RETRY_JITTER_SECS)

    def retry_at(self, now: datetime) -> datetime:
        return now + timedelta(seconds=self.compute_backoff_seconds())


__all__ = [
    "JobStatus",
    "JobOutcome",
    "PlanJobPayload",
    "PlanJob",
    "naive_utc",
]
