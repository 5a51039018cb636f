"""
Public entry points.

generate_weekly_plan() runs (or resumes) the checkpointed pipeline.
generate_daily_adjustment() titrates one day of a weekly plan to a check-in.
Both accept plain dicts as produced by the app, or the dataclasses.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional, Sequence, Union

from app.checkpoints.store import CheckpointStore, FirestoreCheckpointStore, FirestorePlanStore, PlanStore
from app.config import PipelineConfig
from app.daily.adjustment import DailyPlan, adjust_day
from app.daily.memory import CheckIn
from app.llm.completion import CompletionClient, get_completion_client
from app.llm.providers import CompletionProvider
from app.orchestrator import PlanOrchestrator
from app.plans.models import WeeklyPlan
from app.plans.profile import UserProfile

logger = logging.getLogger(__name__)


def _profile(profile: Union[UserProfile, Dict[str, Any]]) -> UserProfile:
    return profile if isinstance(profile, UserProfile) else UserProfile.from_dict(profile)


def _checkin(checkin: Union[CheckIn, Dict[str, Any]]) -> CheckIn:
    return checkin if isinstance(checkin, CheckIn) else CheckIn.from_dict(checkin)


def generate_weekly_plan(
    profile: Union[UserProfile, Dict[str, Any]],
    run_id: Optional[str] = None,
    config: Optional[PipelineConfig] = None,
    providers: Optional[Sequence[CompletionProvider]] = None,
    checkpoint_store: Optional[CheckpointStore] = None,
    plan_store: Optional[PlanStore] = None,
    job_id: Optional[str] = None,
    clock: Callable[[], float] = time.monotonic,
) -> WeeklyPlan:
    """
    Generate a 7-day plan.

    Re-invoking with the same profile (or run_id) resumes from the stored
    checkpoint; terminal artifacts are never regenerated.

    Raises:
        PipelineTimeout: Budget nearly spent; call again to resume
        PipelineCancelled: Run was cancelled
    """
    orchestrator = PlanOrchestrator(
        _profile(profile),
        config=config,
        providers=providers,
        checkpoint_store=checkpoint_store or FirestoreCheckpointStore(),
        plan_store=plan_store or FirestorePlanStore(),
        run_id=run_id,
        job_id=job_id,
        clock=clock,
    )
    return orchestrator.run()


def generate_daily_adjustment(
    profile: Union[UserProfile, Dict[str, Any]],
    today_checkin: Union[CheckIn, Dict[str, Any]],
    recent_history: Sequence[Union[CheckIn, Dict[str, Any]]],
    base_plan: Union[WeeklyPlan, Dict[str, Any]],
    config: Optional[PipelineConfig] = None,
    providers: Optional[Sequence[CompletionProvider]] = None,
    use_ai: bool = True,
) -> DailyPlan:
    """
    Titrate today's base-plan day to the check-in.

    With use_ai the motivation and notes are rewritten by one completion
    call; any failure keeps the deterministic result.
    """
    config = config or PipelineConfig.from_env()
    client: Optional[CompletionClient] = None
    if use_ai:
        client = CompletionClient(providers) if providers is not None else get_completion_client(config)

    plan = base_plan if isinstance(base_plan, WeeklyPlan) else WeeklyPlan.from_dict(base_plan)
    return adjust_day(
        _profile(profile),
        _checkin(today_checkin),
        [_checkin(c) for c in recent_history],
        plan,
        client=client,
        config=config,
    )


__all__ = [
    "generate_weekly_plan",
    "generate_daily_adjustment",
]
