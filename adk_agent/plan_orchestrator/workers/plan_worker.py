"""
Plan Worker - Drains the plan generation queue as a Cloud Run Job.

Each leased job runs the orchestrator inside whatever is left of the
worker's own time budget. A run that yields (PipelineTimeout) is requeued
without consuming an attempt and resumes from its checkpoint on the next
lease. A heartbeat keeps the lease alive and cancels the run as soon as the
user enqueues a newer plan.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import signal
import threading
import time
import uuid
from collections import Counter
from typing import Callable, Optional

from app.context import log_event
from app.jobs.models import JobOutcome, PlanJob

logger = logging.getLogger(__name__)

WORKER_ID = os.getenv("WORKER_ID", f"plan-worker-{uuid.uuid4().hex[:8]}")
MAX_JOBS_PER_RUN = int(os.getenv("MAX_JOBS_PER_RUN", "0"))  # 0 = unlimited
MAX_SECONDS_PER_RUN = int(os.getenv("MAX_SECONDS_PER_RUN", "0"))  # 0 = no deadline
SAFETY_MARGIN_SECS = int(os.getenv("SAFETY_MARGIN_SECS", "30"))
HEARTBEAT_INTERVAL_SECS = int(os.getenv("HEARTBEAT_INTERVAL_SECS", "15"))


class HeartbeatThread:
    """Renews the lease and calls on_superseded once if a newer job appears."""

    def __init__(self, job: PlanJob, worker_id: str, on_superseded: Callable[[], None]):
        self.job = job
        self.worker_id = worker_id
        self.on_superseded = on_superseded
        self.superseded = False
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "HeartbeatThread":
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=f"heartbeat-{self.job.id}", daemon=True)
        self._thread.start()
        return self

    def __exit__(self, *exc) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=5)

    def _loop(self) -> None:
        from app.jobs.queue import is_superseded, renew_lease

        while not self._stop.wait(HEARTBEAT_INTERVAL_SECS):
            try:
                if not renew_lease(self.job.id, self.worker_id):
                    log_event("lease_renewal_failed", job_id=self.job.id, worker_id=self.worker_id)
                if not self.superseded and is_superseded(self.job):
                    self.superseded = True
                    log_event("job_superseded", job_id=self.job.id, worker_id=self.worker_id)
                    self.on_superseded()
            except Exception as e:
                log_event("heartbeat_error", job_id=self.job.id, worker_id=self.worker_id, error=str(e))


class PlanWorker:
    """Leases plan jobs until the queue is empty or the time budget runs out."""

    def __init__(self, worker_id: Optional[str] = None):
        self.worker_id = worker_id or WORKER_ID
        self.running = False
        self.outcomes: Counter = Counter()
        self._deadline: Optional[float] = None
        self._orchestrator = None

    def start(self) -> None:
        started = time.time()
        if MAX_SECONDS_PER_RUN:
            self._deadline = started + MAX_SECONDS_PER_RUN - SAFETY_MARGIN_SECS
        log_event("worker_started", worker_id=self.worker_id, max_jobs=MAX_JOBS_PER_RUN,
                  max_seconds=MAX_SECONDS_PER_RUN or None)

        self.running = True
        signal.signal(signal.SIGTERM, self._handle_signal)
        signal.signal(signal.SIGINT, self._handle_signal)
        try:
            self._drain()
        finally:
            self.running = False
            log_event("worker_stopped", worker_id=self.worker_id,
                      duration_ms=int((time.time() - started) * 1000),
                      **{f"jobs_{k.value}": v for k, v in self.outcomes.items()})

    def stop(self) -> None:
        """Stop leasing; a run in flight finishes or yields on its own budget."""
        self.running = False

    def _handle_signal(self, signum, frame) -> None:
        log_event("signal_received", worker_id=self.worker_id, signal=signum)
        self.stop()

    def _remaining_secs(self) -> Optional[float]:
        return None if self._deadline is None else self._deadline - time.time()

    def _drain(self) -> None:
        from app.jobs.queue import lease_next_job

        leased = 0
        while self.running and (MAX_JOBS_PER_RUN == 0 or leased < MAX_JOBS_PER_RUN):
            remaining = self._remaining_secs()
            if remaining is not None and remaining <= 0:
                log_event("deadline_reached", worker_id=self.worker_id)
                return
            try:
                job = lease_next_job(self.worker_id)
            except Exception as e:
                log_event("poll_error", worker_id=self.worker_id, error=str(e), error_type=type(e).__name__)
                return
            if job is None:
                log_event("no_jobs_available", worker_id=self.worker_id)
                return
            self.outcomes[self._process_job(job)] += 1
            leased += 1

    def _config_for_job(self):
        """Env config with the run budget capped by the worker's remaining time."""
        from app.config import PipelineConfig

        config = PipelineConfig.from_env()
        remaining = self._remaining_secs()
        if remaining is not None and remaining < config.run_budget_secs:
            config = dataclasses.replace(config, run_budget_secs=max(0.0, remaining))
        return config

    def _cancel_current(self) -> None:
        if self._orchestrator is not None:
            self._orchestrator.cancel()

    def _process_job(self, job: PlanJob) -> JobOutcome:
        from app.checkpoints.store import FirestoreCheckpointStore, FirestorePlanStore
        from app.errors import PipelineCancelled, PipelineTimeout
        from app.jobs import queue
        from app.orchestrator import PlanOrchestrator
        from app.plans.profile import UserProfile

        started = time.time()
        fields = dict(job_id=job.id, user_id=job.payload.user_id, worker_id=self.worker_id)
        log_event("job_started", attempt=job.attempts, resumes=job.resumes, checkpoint=job.checkpoint, **fields)

        try:
            queue.mark_job_running(job.id, self.worker_id)
        except queue.LockLostError as e:
            log_event("job_lease_lost", error=str(e), **fields)
            return JobOutcome.FAILED

        if queue.is_superseded(job):
            queue.supersede_job(job.id)
            log_event("job_skipped", reason="superseded", **fields)
            return JobOutcome.SUPERSEDED

        self._orchestrator = PlanOrchestrator(
            UserProfile.from_dict(job.payload.profile),
            config=self._config_for_job(),
            checkpoint_store=FirestoreCheckpointStore(),
            plan_store=FirestorePlanStore(),
            run_id=job.payload.run_id,
            job_id=job.id,
        )
        heartbeat = HeartbeatThread(job, self.worker_id, on_superseded=self._cancel_current)
        try:
            with heartbeat:
                plan = self._orchestrator.run()
        except PipelineTimeout as e:
            queue.requeue_job(job.id, self.worker_id, checkpoint=e.checkpoint)
            outcome = JobOutcome.REQUEUED
            log_event("job_yielded", checkpoint=e.checkpoint, **fields)
        except PipelineCancelled:
            queue.supersede_job(job.id)
            outcome = JobOutcome.SUPERSEDED
            log_event("job_cancelled", superseded=heartbeat.superseded, **fields)
        except Exception as e:
            queue.fail_job(job.id, self.worker_id, {
                "code": "EXCEPTION",
                "message": str(e),
                "type": type(e).__name__,
            })
            outcome = JobOutcome.FAILED
            log_event("job_exception", error=str(e), error_type=type(e).__name__, **fields)
        else:
            summary = plan.generation_summary
            queue.complete_job(job.id, self.worker_id, result={
                "run_id": summary.get("run_id"),
                "fallback_count": summary.get("fallback_count"),
                "repair_count": summary.get("repair_count"),
            })
            outcome = JobOutcome.SUCCEEDED
        finally:
            self._orchestrator = None

        log_event("job_finished", outcome=outcome.value,
                  duration_ms=int((time.time() - started) * 1000), **fields)
        return outcome


def run_worker() -> None:
    """Entry point for the Cloud Run Job."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    PlanWorker().start()


if __name__ == "__main__":
    run_worker()
