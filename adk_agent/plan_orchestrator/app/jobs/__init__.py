"""
Jobs Package - Firestore-backed plan generation queue.

This package provides:
- models: PlanJob, PlanJobPayload, JobStatus, JobOutcome
- queue: create/lease/complete/fail/requeue/supersede with transactions
"""

from app.jobs.models import (
    JobOutcome,
    JobStatus,
    PlanJob,
    PlanJobPayload,
)


__all__ = [
    "JobOutcome",
    "JobStatus",
    "PlanJob",
    "PlanJobPayload",
]
