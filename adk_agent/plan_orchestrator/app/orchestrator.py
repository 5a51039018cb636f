"""
Plan Orchestrator - Split-first, checkpointed weekly plan pipeline.

═══════════════════════════════════════════════════════════════════════════════
STAGES (checkpoint ordinal written after each)
═══════════════════════════════════════════════════════════════════════════════

  1 SPLIT_COMPLETE             split builder
  2 BASE_NUTRITION_COMPLETE    deterministic targets + meal templates
  3 WORKOUTS_COMPLETE          ┐
  4 NUTRITION_ADJUST_COMPLETE  ├ one parallel fan-out: 7 workouts, 7 nutrition
  5 SUPPLEMENTS_COMPLETE       ┘ adjustments, 1 weekly supplements call
  6 VERIFIERS_COMPLETE         re-check every per-day artifact
  7 REASONS_COMPLETE           cross-day reasoning
    -> assembly, fixer, final schema pass, plan stored, checkpoint deleted

═══════════════════════════════════════════════════════════════════════════════
FAILURE CONTAINMENT
═══════════════════════════════════════════════════════════════════════════════

  builder fails after retries      -> fallback for that artifact only
  repairs > max_repairs            -> fallback for that artifact only
  verifier violations              -> one targeted re-prompt, then fallback
  remaining budget < yield buffer  -> checkpoint persisted, PipelineTimeout
  cancel()                         -> futures abandoned, checkpoint deleted,
                                      PipelineCancelled

═══════════════════════════════════════════════════════════════════════════════
"""

from __future__ import annotations

import concurrent.futures
import contextvars
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from app.builders.base import StageBuilder, StageResult
from app.builders.stages import (
    BaseNutritionBuilder,
    DayWorkoutBuilder,
    NutritionAdjustmentBuilder,
    ReasoningBuilder,
    SplitBuilder,
    SupplementsBuilder,
)
from app.checkpoints.models import STAGE_GROUPS, Checkpoint, CheckpointData
from app.checkpoints.store import CheckpointStore, InMemoryCheckpointStore, InMemoryPlanStore, PlanStore
from app.config import PipelineConfig
from app.context import RunContext, clear_current_run_context, log_event, set_current_run_context
from app.errors import PipelineCancelled, PipelineError, PipelineTimeout
from app.llm.completion import CompletionClient, get_completion_client
from app.llm.providers import CompletionProvider
from app.plans.fallback import (
    fallback_base_nutrition,
    fallback_nutrition,
    fallback_reasoning,
    fallback_recovery,
    fallback_split,
    fallback_workout,
)
from app.plans.fixer import fix_plan
from app.plans.models import (
    ArtifactStatus,
    ArtifactType,
    DayArtifact,
    SupplementsPlan,
    Violation,
    WeeklyPlan,
)
from app.plans.profile import DAYS, UserProfile
from app.plans.schemas import validate_weekly_plan
from app.plans.supplements import filter_illegal_supplements, goal_add_ons
from app.plans.targets import apply_delta, compute_base_targets, nutrition_delta
from app.plans.verifiers import verify, verify_recovery

logger = logging.getLogger(__name__)

# How often the fan-out loop wakes up to check cancellation and the deadline
POLL_INTERVAL_SECS = 0.25

_BUILD = "build"
_VERIFY = "verify"


def default_run_id(profile: UserProfile) -> str:
    """Deterministic run id: same user and profile -> same checkpoint."""
    return f"plan-{profile.user_id}-{profile.fingerprint}"


class PlanOrchestrator:
    """
    Drives one weekly plan run for one profile.

    Args:
        profile: Immutable input for the run
        config: Pipeline configuration (PipelineConfig.from_env() when omitted)
        client: Completion client; built from providers or config when omitted
        providers: Explicit provider chain (tests, CLI)
        checkpoint_store: Where run state is persisted between stages
        plan_store: Where the finished plan is stored
        run_id: Override for the deterministic run id
        job_id: Plan job driving this run, for log correlation
        clock: Monotonic seconds source for the run budget
    """

    def __init__(
        self,
        profile: UserProfile,
        config: Optional[PipelineConfig] = None,
        client: Optional[CompletionClient] = None,
        providers: Optional[Sequence[CompletionProvider]] = None,
        checkpoint_store: Optional[CheckpointStore] = None,
        plan_store: Optional[PlanStore] = None,
        run_id: Optional[str] = None,
        job_id: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.profile = profile
        self.config = config or PipelineConfig.from_env()
        self.cancel_event = threading.Event()
        if client is not None:
            client.cancel_event = self.cancel_event
            self.client = client
        elif providers is not None:
            self.client = CompletionClient(providers, cancel_event=self.cancel_event)
        else:
            self.client = get_completion_client(self.config, cancel_event=self.cancel_event)
        self.checkpoint_store = checkpoint_store or InMemoryCheckpointStore()
        self.plan_store = plan_store or InMemoryPlanStore()
        self.run_id = run_id or default_run_id(profile)
        self.job_id = job_id
        self.clock = clock
        self._deadline = 0.0
        self._context = RunContext(run_id=self.run_id, user_id=profile.user_id, job_id=job_id)

    # =========================================================================
    # PUBLIC
    # =========================================================================

    def cancel(self) -> None:
        """Cancel the run; safe to call from any thread."""
        self.cancel_event.set()
        log_event("plan_run_cancel_requested", run_id=self.run_id)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def run(self) -> WeeklyPlan:
        """
        Run (or resume) the pipeline to a finished WeeklyPlan.

        Raises:
            PipelineTimeout: Budget nearly spent; checkpoint persisted for resume
            PipelineCancelled: cancel() was called; checkpoint deleted
            PipelineError: A stage produced nothing even through fallback
        """
        start = self.clock()
        self._deadline = start + self.config.run_budget_secs
        set_current_run_context(self._context)
        try:
            data = self._load_or_create()
            log_event("plan_run_started", resume_from=data.checkpoint.name)

            self._stage(data, Checkpoint.SPLIT_COMPLETE, self._run_split)
            self._stage(data, Checkpoint.BASE_NUTRITION_COMPLETE, self._run_base_nutrition)
            if data.checkpoint < Checkpoint.SUPPLEMENTS_COMPLETE:
                self._before_stage(data, "per_day")
                self._run_fan_out(data)
            self._stage(data, Checkpoint.VERIFIERS_COMPLETE, self._run_verifiers)
            self._stage(data, Checkpoint.REASONS_COMPLETE, self._run_reasoning)

            self._check_cancelled()
            plan = self._assemble(data, elapsed=self.clock() - start)
            self.plan_store.save_plan(plan)
            self.checkpoint_store.delete(self.run_id)
            log_event("plan_run_completed", summary=plan.generation_summary)
            return plan
        finally:
            clear_current_run_context()

    # =========================================================================
    # STAGE DRIVER
    # =========================================================================

    def _load_or_create(self) -> CheckpointData:
        fingerprint = self.profile.fingerprint
        data = self.checkpoint_store.load(self.run_id)
        if data is not None and data.profile_fingerprint not in (None, fingerprint):
            logger.info("Checkpoint %s was for a different profile; starting over", self.run_id)
            data = None
        if data is None:
            data = CheckpointData(run_id=self.run_id, user_id=self.profile.user_id,
                                  profile_fingerprint=fingerprint)
            self.checkpoint_store.save(data)
        return data

    def _stage(self, data: CheckpointData, target: Checkpoint,
               fn: Callable[[CheckpointData], None]) -> None:
        if data.checkpoint >= target:
            logger.debug("Skipping %s (checkpoint %s)", target.name, data.checkpoint.name)
            return
        self._before_stage(data, target.name)
        started = self.clock()
        fn(data)
        data.advance(target)
        self._save(data)
        log_event("plan_stage_complete", checkpoint=target.name,
                  duration_secs=round(self.clock() - started, 3))

    def _before_stage(self, data: CheckpointData, stage: str) -> None:
        self._check_cancelled()
        set_current_run_context(self._context.with_stage(stage))
        remaining = self._deadline - self.clock()
        if remaining < self.config.yield_buffer_secs:
            self._yield(data, f"remaining budget {remaining:.1f}s below yield buffer before {stage}")

    def _yield(self, data: CheckpointData, reason: str) -> None:
        self.checkpoint_store.save(data)
        log_event("plan_run_yielded", checkpoint=data.checkpoint.name, reason=reason)
        raise PipelineTimeout(reason, run_id=self.run_id, checkpoint=data.checkpoint.name)

    def _save(self, data: CheckpointData) -> None:
        self._check_cancelled()
        self.checkpoint_store.save(data)

    def _check_cancelled(self) -> None:
        if self.cancelled:
            self.checkpoint_store.delete(self.run_id)
            log_event("plan_run_cancelled")
            raise PipelineCancelled(f"Run {self.run_id} cancelled", run_id=self.run_id)

    def _accept(self, result: StageResult, make_fallback: Callable[[], Any]) -> Tuple[Any, ArtifactStatus, List]:
        """Single-artifact acceptance: builder value within the repair cap, else fallback."""
        if result.ok and len(result.repairs) <= self.config.max_repairs:
            status = ArtifactStatus.REPAIRED if result.repairs else ArtifactStatus.GENERATED
            return result.value, status, result.repairs
        if result.ok:
            log_event("repair_cap_exceeded", artifact=result.artifact_type.value,
                      repairs=len(result.repairs), max_repairs=self.config.max_repairs)
        return make_fallback(), ArtifactStatus.FALLBACK, []

    # =========================================================================
    # STAGE 1
    # =========================================================================

    def _run_split(self, data: CheckpointData) -> None:
        result = SplitBuilder(self.client, self.config, self.profile).run()
        value, status, repairs = self._accept(result, lambda: fallback_split(self.profile))
        data.split = value
        data.set_status(ArtifactType.SPLIT, status, repairs)

    def _run_base_nutrition(self, data: CheckpointData) -> None:
        target = compute_base_targets(self.profile)
        result = BaseNutritionBuilder(self.client, self.config, self.profile, target).run()
        value, status, repairs = self._accept(result, lambda: fallback_base_nutrition(self.profile))
        data.base_nutrition = value
        data.set_status(ArtifactType.BASE_NUTRITION, status, repairs)

    # =========================================================================
    # STAGE 2: FAN-OUT
    # =========================================================================

    def _submit(self, executor: concurrent.futures.Executor, fn: Callable, *args) -> concurrent.futures.Future:
        # Worker threads see this run's RunContext
        return executor.submit(contextvars.copy_context().run, fn, *args)

    def _day_builders(self, data: CheckpointData) -> List[StageBuilder]:
        builders: List[StageBuilder] = []
        for day in DAYS:
            split_day = data.split.days[day]
            if not self._is_terminal(data.workouts.get(day)):
                builders.append(DayWorkoutBuilder(self.client, self.config, self.profile, day, split_day))
            if not self._is_terminal(data.nutrition.get(day)):
                builders.append(NutritionAdjustmentBuilder(self.client, self.config, self.profile, day,
                                                           split_day, data.base_nutrition))
        if not data.group_complete(ArtifactType.SUPPLEMENTS):
            builders.append(SupplementsBuilder(self.client, self.config, self.profile, data.split))
        return builders

    @staticmethod
    def _is_terminal(artifact: Optional[DayArtifact]) -> bool:
        return artifact is not None and artifact.status.terminal and artifact.value is not None

    def _run_fan_out(self, data: CheckpointData) -> None:
        """
        Build and verify all per-day artifacts concurrently.

        Verification is submitted as each builder completes. Groups that
        finish are persisted at once; ordinals 3-5 advance in order.
        """
        builders = self._day_builders(data)
        log_event("plan_fan_out_started", builders=len(builders))
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="plan-builder")
        pending: Dict[concurrent.futures.Future, Tuple[str, StageBuilder]] = {}
        abandoned = False

        try:
            for builder in builders:
                pending[self._submit(executor, builder.run)] = (_BUILD, builder)

            while pending:
                if self.cancelled:
                    abandoned = True
                    self._check_cancelled()
                if self.clock() >= self._deadline:
                    abandoned = True
                    self._yield(data, "run budget exhausted during per-day stage")

                done, _ = concurrent.futures.wait(
                    list(pending), timeout=POLL_INTERVAL_SECS,
                    return_when=concurrent.futures.FIRST_COMPLETED,
                )
                for future in done:
                    phase, builder = pending.pop(future)
                    if phase == _BUILD:
                        pending[self._submit(executor, self._verify_phase, builder, future.result())] = (
                            _VERIFY, builder)
                    else:
                        self._record(data, builder, future.result())
        finally:
            executor.shutdown(wait=not abandoned, cancel_futures=abandoned)

        self._advance_groups(data)
        if data.checkpoint < Checkpoint.SUPPLEMENTS_COMPLETE:
            raise PipelineError(f"Per-day stage incomplete at {data.checkpoint.name}")

    def _record(self, data: CheckpointData, builder: StageBuilder, outcome: Any) -> None:
        """Store verified artifacts (main thread only) and persist finished groups."""
        if builder.artifact_type == ArtifactType.SUPPLEMENTS:
            artifacts, add_ons = outcome
            data.recovery.update(artifacts)
            data.recommended_add_ons = add_ons
        else:
            data.day_artifacts(builder.artifact_type)[builder.day] = outcome

        if data.group_complete(builder.artifact_type):
            log_event("plan_group_complete", artifact=builder.artifact_type.value)
            self._advance_groups(data)

    def _advance_groups(self, data: CheckpointData) -> None:
        """Advance through every finished group in order, persisting each ordinal."""
        advanced = False
        for checkpoint, artifact_type in STAGE_GROUPS.items():
            if data.checkpoint >= checkpoint:
                continue
            if data.checkpoint != checkpoint - 1 or not data.group_complete(artifact_type):
                break
            data.advance(checkpoint)
            log_event("plan_stage_complete", checkpoint=checkpoint.name)
            self._save(data)
            advanced = True
        if not advanced:
            self._save(data)

    # -------------------------------------------------------------------------
    # Verification phase (runs on a worker thread)
    # -------------------------------------------------------------------------

    def _verify_phase(self, builder: StageBuilder, result: StageResult):
        if builder.artifact_type == ArtifactType.SUPPLEMENTS:
            return self._verify_supplements(builder, result)
        return self._verify_day(builder, result)

    def _make_fallback(self, builder: StageBuilder):
        split_day = builder.split_day
        if builder.artifact_type == ArtifactType.WORKOUT:
            return fallback_workout(self.profile, split_day)
        return fallback_nutrition(self.profile, builder.base, split_day)

    def _verify_day(self, builder: StageBuilder, result: StageResult) -> DayArtifact:
        """Verify one workout/nutrition day; one targeted re-prompt, then fallback."""
        artifact = DayArtifact(day=builder.day, artifact_type=builder.artifact_type, attempts=result.attempts)
        target_kcal = None
        if builder.artifact_type == ArtifactType.NUTRITION:
            artifact.delta = builder.delta
            target_kcal = builder.target.total_kcal
            artifact.target_kcal = target_kcal

        candidate = self._within_repair_cap(result)
        if candidate is not None:
            verification = verify(builder.artifact_type, candidate.value, self.profile, target_kcal)
            if verification.passed:
                artifact.value = candidate.value
                artifact.repairs = candidate.repairs
                artifact.status = ArtifactStatus.REPAIRED if candidate.repairs else ArtifactStatus.VERIFIED
                return artifact

            artifact.violations = [v.to_dict() for v in verification.violations]
            log_event("verification_failed", artifact=builder.artifact_type.value, day=builder.day,
                      violations=artifact.violations)
            retry = self._reprompt(builder, result.attempts, verification.violations)
            if retry is not None:
                artifact.attempts += 1
                second = verify(builder.artifact_type, retry.value, self.profile, target_kcal)
                if second.passed:
                    artifact.value = retry.value
                    artifact.repairs = retry.repairs + [{"path": "$", "action": "verification_reprompt"}]
                    artifact.status = ArtifactStatus.REPAIRED
                    return artifact
                artifact.violations = [v.to_dict() for v in second.violations]

        artifact.value = self._make_fallback(builder)
        artifact.status = ArtifactStatus.FALLBACK
        artifact.repairs = []
        log_event("artifact_fallback", artifact=builder.artifact_type.value, day=builder.day)
        return artifact

    def _verify_supplements(self, builder: StageBuilder, result: StageResult):
        """Verify each recovery day; one weekly re-prompt, then per-day fallback."""
        plan: Optional[SupplementsPlan] = result.value if result.ok else None
        repairs: List[Dict[str, Any]] = result.repairs if result.ok else []

        failing = self._recovery_violations(plan) if plan else {}
        reprompted = False
        if plan and failing:
            violations = [Violation(field=f"days.{day}.{v.field}", reason=v.reason)
                          for day, vs in failing.items() for v in vs]
            log_event("verification_failed", artifact=ArtifactType.SUPPLEMENTS.value,
                      violations=[v.to_dict() for v in violations])
            retry = None
            if self.config.verification_retries >= 1 and not self.client.cancelled:
                retry = builder.attempt(result.attempts + 1, violations)
            if retry is not None and retry.ok:
                reprompted = True
                plan, repairs = retry.value, retry.repairs
                failing = self._recovery_violations(plan)

        artifacts: Dict[str, DayArtifact] = {}
        for day in DAYS:
            split_day = builder.split.days[day]
            artifact = DayArtifact(day=day, artifact_type=ArtifactType.SUPPLEMENTS,
                                   attempts=result.attempts + (1 if reprompted else 0))
            # The repair cap applies per day for the weekly call
            day_repairs = [r for r in repairs if str(r.get("path", "")).startswith(f"days.{day}")]
            if plan is not None and day not in failing and len(day_repairs) <= self.config.max_repairs:
                if reprompted:
                    day_repairs.append({"path": "$", "action": "verification_reprompt"})
                artifact.value = plan.days[day]
                artifact.repairs = day_repairs
                artifact.status = ArtifactStatus.REPAIRED if day_repairs else ArtifactStatus.VERIFIED
            else:
                if plan is not None and day in failing:
                    artifact.violations = [v.to_dict() for v in failing[day]]
                artifact.value = fallback_recovery(self.profile, split_day)
                artifact.status = ArtifactStatus.FALLBACK
            artifacts[day] = artifact

        if plan is not None:
            add_ons = filter_illegal_supplements(plan.recommended_add_ons)
        else:
            add_ons = goal_add_ons(self.profile.goal, self.profile.supplements)
        return artifacts, add_ons

    def _recovery_violations(self, plan: SupplementsPlan) -> Dict[str, List[Violation]]:
        failing = {}
        for day in DAYS:
            verification = verify_recovery(plan.days[day], self.profile)
            if not verification.passed:
                failing[day] = verification.violations
        return failing

    def _within_repair_cap(self, result: StageResult) -> Optional[StageResult]:
        if not result.ok:
            return None
        if len(result.repairs) > self.config.max_repairs:
            log_event("repair_cap_exceeded", artifact=result.artifact_type.value, day=result.day,
                      repairs=len(result.repairs), max_repairs=self.config.max_repairs)
            return None
        return result

    def _reprompt(self, builder: StageBuilder, attempts: int,
                  violations: Sequence[Violation]) -> Optional[StageResult]:
        """Exactly one targeted attempt with the violations appended."""
        if self.config.verification_retries < 1 or self.client.cancelled:
            return None
        retry = builder.attempt(attempts + 1, violations)
        return self._within_repair_cap(retry)

    # =========================================================================
    # STAGE 3: VERIFIERS
    # =========================================================================

    def _run_verifiers(self, data: CheckpointData) -> None:
        """Re-run the pure verifiers over every stored artifact; substitute failures."""
        substituted = 0
        for day in DAYS:
            split_day = data.split.days[day]

            workout = data.workouts.get(day)
            if not self._is_terminal(workout) or not verify(
                    ArtifactType.WORKOUT, workout.value, self.profile).passed:
                data.workouts[day] = DayArtifact(day=day, artifact_type=ArtifactType.WORKOUT,
                                                 value=fallback_workout(self.profile, split_day),
                                                 status=ArtifactStatus.FALLBACK)
                substituted += 1

            nutrition = data.nutrition.get(day)
            if not self._is_terminal(nutrition) or not verify(
                    ArtifactType.NUTRITION, nutrition.value, self.profile, nutrition.target_kcal).passed:
                delta = nutrition_delta(data.base_nutrition, split_day.intensity)
                data.nutrition[day] = DayArtifact(
                    day=day,
                    artifact_type=ArtifactType.NUTRITION,
                    value=fallback_nutrition(self.profile, data.base_nutrition, split_day),
                    status=ArtifactStatus.FALLBACK,
                    delta=delta,
                    target_kcal=apply_delta(data.base_nutrition, delta).total_kcal,
                )
                substituted += 1

            recovery = data.recovery.get(day)
            if not self._is_terminal(recovery) or not verify_recovery(recovery.value, self.profile).passed:
                data.recovery[day] = DayArtifact(day=day, artifact_type=ArtifactType.SUPPLEMENTS,
                                                 value=fallback_recovery(self.profile, split_day),
                                                 status=ArtifactStatus.FALLBACK)
                substituted += 1

        if substituted:
            log_event("verifiers_substituted_fallbacks", count=substituted)

    # =========================================================================
    # STAGE 4: REASONING
    # =========================================================================

    def _run_reasoning(self, data: CheckpointData) -> None:
        deltas = {day: a.delta for day, a in data.nutrition.items() if a.delta is not None}
        result = ReasoningBuilder(self.client, self.config, self.profile, data.split, deltas).run()
        value, status, repairs = self._accept(result, lambda: fallback_reasoning(self.profile, data.split))
        data.reasoning = value
        data.set_status(ArtifactType.REASONING, status, repairs)

    # =========================================================================
    # ASSEMBLY
    # =========================================================================

    def _assemble(self, data: CheckpointData, elapsed: float) -> WeeklyPlan:
        plan_dict = {
            "days": {
                day: {
                    "workout": data.workouts[day].value.to_dict(),
                    "nutrition": data.nutrition[day].value.to_dict(),
                    "recovery": data.recovery[day].value.to_dict(),
                    "reason": data.reasoning.reasons.get(day, "") if data.reasoning else "",
                }
                for day in DAYS
            }
        }
        targets = {day: a.target_kcal for day, a in data.nutrition.items() if a.target_kcal}
        plan_dict, fixes = fix_plan(plan_dict, self.profile, data.split, targets)

        schema = validate_weekly_plan(plan_dict, self.profile)
        if not schema.ok:
            logger.warning("Assembled plan failed validation: %s", schema.errors[:5])
            bad_days = {e["path"].split(".")[1] for e in schema.errors if e["path"].startswith("days.")}
            for day in bad_days:
                split_day = data.split.days[day]
                plan_dict["days"][day] = {
                    "workout": fallback_workout(self.profile, split_day).to_dict(),
                    "nutrition": fallback_nutrition(self.profile, data.base_nutrition, split_day).to_dict(),
                    "recovery": fallback_recovery(self.profile, split_day).to_dict(),
                    "reason": plan_dict["days"][day].get("reason") or "",
                }
            plan_dict, more_fixes = fix_plan(plan_dict, self.profile, data.split, targets)
            fixes.extend(more_fixes)
            schema = validate_weekly_plan(plan_dict, self.profile)
            if not schema.ok:
                raise PipelineError(f"Assembled plan invalid even with fallbacks: {schema.errors[:3]}")

        return WeeklyPlan(
            user_id=self.profile.user_id,
            days=schema.value,
            split=data.split,
            base_nutrition=data.base_nutrition,
            recommended_add_ons=list(data.recommended_add_ons),
            generation_summary=self._summary(data, fixes, schema.repairs, elapsed),
        )

    def _summary(self, data: CheckpointData, fixes: List[Dict[str, Any]],
                 final_repairs: List[Dict[str, Any]], elapsed: float) -> Dict[str, Any]:
        statuses: Dict[str, Any] = {k: v for k, v in data.statuses.items()}
        for artifact_type in (ArtifactType.WORKOUT, ArtifactType.NUTRITION, ArtifactType.SUPPLEMENTS):
            statuses[artifact_type.value] = {
                day: a.status.value for day, a in data.day_artifacts(artifact_type).items()
            }
        per_day = [a for t in (ArtifactType.WORKOUT, ArtifactType.NUTRITION, ArtifactType.SUPPLEMENTS)
                   for a in data.day_artifacts(t).values()]
        fallbacks = sum(1 for a in per_day if a.status == ArtifactStatus.FALLBACK)
        fallbacks += sum(1 for s in data.statuses.values() if s == ArtifactStatus.FALLBACK.value)
        return {
            "run_id": self.run_id,
            "statuses": statuses,
            "fallback_count": fallbacks,
            "repair_count": sum(len(a.repairs) for a in per_day) + sum(len(r) for r in data.repairs.values()),
            "fixes": fixes,
            "final_repairs": len(final_repairs),
            "deltas": {day: a.delta.to_dict() for day, a in data.nutrition.items() if a.delta},
            "duration_secs": round(elapsed, 3),
        }


__all__ = [
    "PlanOrchestrator",
    "default_run_id",
]
