"""
Job Queue - Firestore-backed plan generation queue.

Every state transition reads the job inside a Firestore transaction and
writes only if the transition is still legal. A user has at most one live
plan job: creating a new one supersedes earlier queued jobs, and a running
worker notices the newer job through is_superseded().

Collections:
- plan_generation_jobs/{jobId}: PlanJob documents
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from google.cloud import firestore

from app.config import JOBS_COLLECTION, LEASE_DURATION_SECS
from app.firestore_client import get_db
from app.jobs.models import JobStatus, PlanJob, PlanJobPayload
from app.plans.profile import UserProfile

logger = logging.getLogger(__name__)

# Returns the field updates for a transition, or None to leave the job alone
Transition = Callable[[PlanJob, datetime], Optional[Dict[str, Any]]]


class LockLostError(Exception):
    """The worker no longer owns the job it is running."""


def _jobs(db):
    return db.collection(JOBS_COLLECTION)


def _transition(db, job_id: str, decide: Transition) -> Optional[PlanJob]:
    """
    Apply one guarded transition to a job document.

    Returns the job as written, or None when the document is missing or
    decide() declined. Exceptions raised by decide() roll back and propagate.
    """
    doc_ref = _jobs(db).document(job_id)

    @firestore.transactional
    def run(transaction):
        snapshot = doc_ref.get(transaction=transaction)
        if not snapshot.exists:
            return None
        data = snapshot.to_dict()
        data["id"] = job_id
        now = datetime.utcnow()
        updates = decide(PlanJob.from_dict(data), now)
        if updates is None:
            return None
        updates["updated_at"] = now
        transaction.update(doc_ref, updates)
        data.update(updates)
        return PlanJob.from_dict(data)

    return run(db.transaction())


def _released(worker_id: str) -> Dict[str, Any]:
    return {"lease_owner": None, "lease_expires_at": None, "last_lease_owner": worker_id}


# =============================================================================
# CREATION
# =============================================================================

def create_plan_job(profile: UserProfile, run_id: Optional[str] = None, db=None) -> PlanJob:
    """
    Queue a weekly plan run for the profile's user.

    Earlier queued jobs for the user are superseded in the same batch write.
    Leased or running jobs are left to their worker's heartbeat.
    """
    db = db or get_db()
    now = datetime.utcnow()
    job = PlanJob(
        id=f"plan-job-{uuid.uuid4().hex[:12]}",
        payload=PlanJobPayload(user_id=profile.user_id, profile=profile.to_dict(), run_id=run_id),
        created_at=now,
        updated_at=now,
    )

    queued = (
        _jobs(db)
        .where("payload.user_id", "==", profile.user_id)
        .where("status", "==", JobStatus.QUEUED.value)
        .stream()
    )
    batch = db.batch()
    superseded = 0
    for doc in queued:
        batch.update(doc.reference, {
            "status": JobStatus.SUPERSEDED.value,
            "superseded_by": job.id,
            "updated_at": now,
        })
        superseded += 1
    batch.set(_jobs(db).document(job.id), job.to_dict())
    batch.commit()

    logger.info("Created plan job %s for %s (superseded %d)", job.id, profile.user_id, superseded)
    return job


def is_superseded(job: PlanJob, db=None) -> bool:
    """True when the job was marked superseded or a newer job exists for the user."""
    db = db or get_db()
    snapshot = _jobs(db).document(job.id).get()
    if snapshot.exists and snapshot.to_dict().get("status") == JobStatus.SUPERSEDED.value:
        return True

    newer = (
        _jobs(db)
        .where("payload.user_id", "==", job.payload.user_id)
        .where("created_at", ">", job.created_at)
        .limit(1)
        .stream()
    )
    return any(True for _ in newer)


# =============================================================================
# LEASING
# =============================================================================

def lease_next_job(worker_id: str, db=None) -> Optional[PlanJob]:
    """Lease the oldest ready job, or None when nothing is ready."""
    db = db or get_db()
    now = datetime.utcnow()
    candidates = (
        _jobs(db)
        .where("status", "==", JobStatus.QUEUED.value)
        .order_by("created_at")
        .limit(10)
        .stream()
    )
    for doc in candidates:
        data = doc.to_dict()
        data["id"] = doc.id
        if not PlanJob.from_dict(data).is_ready(now):
            continue
        job = lease_job(doc.id, worker_id, db=db)
        if job:
            return job
    return None


def lease_job(job_id: str, worker_id: str, db=None) -> Optional[PlanJob]:
    """Lease a queued, ready, unleased job; counts as one attempt."""
    def decide(job: PlanJob, now: datetime):
        if not job.is_ready(now) or job.lease_live(now):
            return None
        return {
            "status": JobStatus.LEASED.value,
            "lease_owner": worker_id,
            "lease_expires_at": now + timedelta(seconds=LEASE_DURATION_SECS),
            "attempts": job.attempts + 1,
        }

    try:
        job = _transition(db or get_db(), job_id, decide)
    except Exception as e:
        logger.warning("Failed to lease plan job %s: %s", job_id, e)
        return None
    if job:
        logger.info("Leased plan job %s to %s", job_id, worker_id)
    return job


def mark_job_running(job_id: str, worker_id: str, db=None) -> bool:
    """
    LEASED -> RUNNING for the lease owner.

    Raises:
        LockLostError: Job is missing, owned by another worker, or not leased
    """
    def decide(job: PlanJob, now: datetime):
        if job.lease_owner != worker_id:
            raise LockLostError(f"Job {job_id} owned by {job.lease_owner}, not {worker_id}")
        if job.status == JobStatus.RUNNING:
            return {}
        if job.status != JobStatus.LEASED:
            raise LockLostError(f"Job {job_id} is {job.status.value}, expected leased")
        return {"status": JobStatus.RUNNING.value, "started_at": now}

    try:
        job = _transition(db or get_db(), job_id, decide)
    except LockLostError:
        raise
    except Exception as e:
        raise LockLostError(f"Failed to mark job {job_id} running: {e}") from e
    if job is None:
        raise LockLostError(f"Job {job_id} not found")
    return True


def renew_lease(job_id: str, worker_id: str, db=None) -> bool:
    """Push the lease expiry out again; False once the lease is lost."""
    def decide(job: PlanJob, now: datetime):
        if job.lease_owner != worker_id:
            return None
        return {"lease_expires_at": now + timedelta(seconds=LEASE_DURATION_SECS)}

    try:
        return _transition(db or get_db(), job_id, decide) is not None
    except Exception as e:
        logger.warning("Failed to renew lease for %s: %s", job_id, e)
        return False


# =============================================================================
# OUTCOMES
# =============================================================================

def complete_job(job_id: str, worker_id: str, result: Optional[Dict[str, Any]] = None, db=None) -> bool:
    """Mark the job succeeded with its run summary."""
    def decide(job: PlanJob, now: datetime):
        if job.lease_owner != worker_id:
            logger.warning("Worker %s cannot complete job %s owned by %s", worker_id, job_id, job.lease_owner)
            return None
        return {"status": JobStatus.SUCCEEDED.value, "result": result, **_released(worker_id)}

    try:
        done = _transition(db or get_db(), job_id, decide) is not None
    except Exception as e:
        logger.error("Failed to complete plan job %s: %s", job_id, e)
        return False
    if done:
        logger.info("Completed plan job %s", job_id)
    return done


def fail_job(job_id: str, worker_id: str, error: Dict[str, Any], db=None) -> bool:
    """Record a failure; requeue with backoff while attempts remain."""
    def decide(job: PlanJob, now: datetime):
        updates = {"error": error, **_released(worker_id)}
        if job.retries_left:
            updates.update(status=JobStatus.QUEUED.value, run_after=job.retry_at(now))
        else:
            updates["status"] = JobStatus.FAILED.value
        return updates

    try:
        job = _transition(db or get_db(), job_id, decide)
    except Exception as e:
        logger.error("Failed to fail plan job %s: %s", job_id, e)
        return False
    if job:
        logger.info("Plan job %s failed (attempt %d/%d), now %s",
                    job_id, job.attempts, job.max_attempts, job.status.value)
    return job is not None


def requeue_job(job_id: str, worker_id: str, checkpoint: Optional[str] = None, db=None) -> bool:
    """
    Put a yielded run back on the queue to resume from its checkpoint.

    The lease's attempt is handed back; resumes counts the yield instead.
    """
    def decide(job: PlanJob, now: datetime):
        if job.lease_owner != worker_id:
            logger.warning("Worker %s cannot requeue job %s owned by %s", worker_id, job_id, job.lease_owner)
            return None
        return {
            "status": JobStatus.QUEUED.value,
            "attempts": max(0, job.attempts - 1),
            "resumes": job.resumes + 1,
            "checkpoint": checkpoint,
            "run_after": None,
            **_released(worker_id),
        }

    try:
        done = _transition(db or get_db(), job_id, decide) is not None
    except Exception as e:
        logger.error("Failed to requeue plan job %s: %s", job_id, e)
        return False
    if done:
        logger.info("Requeued plan job %s at %s", job_id, checkpoint)
    return done


def supersede_job(job_id: str, superseded_by: Optional[str] = None, db=None) -> None:
    """Mark a job superseded after its worker stopped the run."""
    db = db or get_db()
    _jobs(db).document(job_id).update({
        "status": JobStatus.SUPERSEDED.value,
        "superseded_by": superseded_by,
        "lease_owner": None,
        "lease_expires_at": None,
        "updated_at": datetime.utcnow(),
    })
    logger.info("Superseded plan job %s", job_id)


__all__ = [
    "LockLostError",
    "create_plan_job",
    "is_superseded",
    "lease_next_job",
    "lease_job",
    "mark_job_running",
    "renew_lease",
    "complete_job",
    "fail_job",
    "requeue_job",
    "supersede_job",
]
