"""
Tests for plan job models, job creation, and the worker's outcome handling.

Firestore is replaced by MagicMock for creation and by patched queue
functions for the worker, so no emulator is needed.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from app.checkpoints import store as store_module
from app.checkpoints.store import InMemoryCheckpointStore, InMemoryPlanStore
from app.errors import PipelineCancelled, PipelineTimeout
from app.jobs import queue
from app.jobs.models import JobOutcome, JobStatus, PlanJob, PlanJobPayload
from app.orchestrator import PlanOrchestrator
from workers import plan_worker
from workers.plan_worker import PlanWorker

from tests.fixtures import make_config, make_profile


def _job(**overrides):
    profile = make_profile()
    values = dict(
        id="plan-job-1",
        payload=PlanJobPayload(user_id=profile.user_id, profile=profile.to_dict(), run_id="run-1"),
        created_at=datetime(2024, 6, 3, 8, 0),
    )
    values.update(overrides)
    return PlanJob(**values)


class TestJobModels:

    def test_finished_states(self):
        assert {s for s in JobStatus if s.finished} == {
            JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.SUPERSEDED,
        }

    def test_round_trip(self):
        job = _job(status=JobStatus.LEASED, attempts=2, resumes=1, checkpoint="SPLIT_COMPLETE")
        data = job.to_dict()
        assert data["status"] == "leased"
        assert data["payload"]["run_id"] == "run-1"
        assert PlanJob.from_dict(data) == job

    def test_from_dict_defaults(self):
        job = PlanJob.from_dict({"id": "j"})
        assert job.status == JobStatus.QUEUED
        assert job.payload.user_id == ""
        assert job.payload.profile == {}

    def test_is_ready(self):
        now = datetime(2024, 6, 3, 9, 0)
        assert _job().is_ready(now)
        assert _job(run_after=now - timedelta(seconds=1)).is_ready(now)
        assert not _job(run_after=now + timedelta(seconds=1)).is_ready(now)
        assert not _job(status=JobStatus.LEASED).is_ready(now)

    def test_aware_timestamps_compare_as_utc(self):
        now = datetime(2024, 6, 3, 9, 0)
        later = datetime(2024, 6, 3, 9, 5, tzinfo=timezone.utc)
        assert not _job(run_after=later).is_ready(now)
        assert _job(lease_expires_at=later).lease_live(now)
        assert not _job().lease_live(now)

    def test_retries_left(self):
        assert _job(attempts=2).retries_left
        assert not _job(attempts=3).retries_left

    @pytest.mark.parametrize("attempts, low, high", [
        (0, 30, 45),
        (1, 60, 75),
        (10, 600, 615),
    ])
    def test_backoff(self, attempts, low, high):
        delay = _job(attempts=attempts).compute_backoff_seconds()
        assert low <= delay <= high


class TestCreatePlanJob:

    def test_supersedes_earlier_queued_jobs(self):
        db = MagicMock()
        earlier = MagicMock()
        db.collection.return_value.where.return_value.where.return_value.stream.return_value = [earlier]
        batch = db.batch.return_value

        job = queue.create_plan_job(make_profile(), run_id="run-9", db=db)

        assert job.status == JobStatus.QUEUED
        assert job.payload.run_id == "run-9"
        update_ref, update_fields = batch.update.call_args[0]
        assert update_ref is earlier.reference
        assert update_fields["status"] == "superseded"
        assert update_fields["superseded_by"] == job.id
        _, stored = batch.set.call_args[0]
        assert stored["id"] == job.id
        assert stored["payload"]["user_id"] == "user-1"
        batch.commit.assert_called_once()

    def test_nothing_to_supersede(self):
        db = MagicMock()
        db.collection.return_value.where.return_value.where.return_value.stream.return_value = []
        queue.create_plan_job(make_profile(), db=db)
        db.batch.return_value.update.assert_not_called()
        db.batch.return_value.set.assert_called_once()


class TestWorkerOutcome:

    @pytest.fixture
    def calls(self, monkeypatch):
        """Patch queue transitions and Firestore stores; returns the call log."""
        log = []
        monkeypatch.setattr(queue, "mark_job_running", lambda job_id, worker_id: True)
        monkeypatch.setattr(queue, "is_superseded", lambda job: False)
        monkeypatch.setattr(queue, "complete_job",
                            lambda job_id, worker_id, result=None: log.append(("complete", result)))
        monkeypatch.setattr(queue, "requeue_job",
                            lambda job_id, worker_id, checkpoint=None: log.append(("requeue", checkpoint)))
        monkeypatch.setattr(queue, "fail_job",
                            lambda job_id, worker_id, error: log.append(("fail", error)))
        monkeypatch.setattr(queue, "supersede_job",
                            lambda job_id, superseded_by=None: log.append(("supersede", job_id)))
        monkeypatch.setattr(store_module, "FirestoreCheckpointStore", InMemoryCheckpointStore)
        monkeypatch.setattr(store_module, "FirestorePlanStore", InMemoryPlanStore)
        monkeypatch.setattr(PlanWorker, "_config_for_job", lambda self: make_config(use_mock=True))
        monkeypatch.setattr(plan_worker, "HEARTBEAT_INTERVAL_SECS", 60)
        return log

    def test_success_completes_job(self, calls):
        outcome = PlanWorker("w-1")._process_job(_job())
        assert outcome == "succeeded"
        assert calls[0][0] == "complete"
        result = calls[0][1]
        assert result["run_id"] == "run-1"
        assert set(result) == {"run_id", "fallback_count", "repair_count"}

    def test_timeout_requeues_at_checkpoint(self, calls, monkeypatch):
        def timeout(self):
            raise PipelineTimeout("budget", checkpoint="BASE_COMPLETE")

        monkeypatch.setattr(PlanOrchestrator, "run", timeout)
        assert PlanWorker("w-1")._process_job(_job()) == "requeued"
        assert calls == [("requeue", "BASE_COMPLETE")]

    def test_cancelled_run_is_superseded(self, calls, monkeypatch):
        def cancelled(self):
            raise PipelineCancelled("newer job")

        monkeypatch.setattr(PlanOrchestrator, "run", cancelled)
        assert PlanWorker("w-1")._process_job(_job()) is JobOutcome.SUPERSEDED
        assert calls == [("supersede", "plan-job-1")]

    def test_exception_fails_job(self, calls, monkeypatch):
        def boom(self):
            raise RuntimeError("disk full")

        monkeypatch.setattr(PlanOrchestrator, "run", boom)
        assert PlanWorker("w-1")._process_job(_job()) == "failed"
        kind, error = calls[0]
        assert kind == "fail"
        assert error == {"code": "EXCEPTION", "message": "disk full", "type": "RuntimeError"}

    def test_superseded_before_start(self, calls, monkeypatch):
        monkeypatch.setattr(queue, "is_superseded", lambda job: True)
        assert PlanWorker("w-1")._process_job(_job()) == "superseded"
        assert calls == [("supersede", "plan-job-1")]

    def test_lost_lease(self, calls, monkeypatch):
        def lost(job_id, worker_id):
            raise queue.LockLostError("owned by w-2")

        monkeypatch.setattr(queue, "mark_job_running", lost)
        assert PlanWorker("w-1")._process_job(_job()) == "failed"
        assert calls == []
