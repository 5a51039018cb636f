"""
StageBuilder - prompt -> completion -> extraction -> validation, with retries.

One builder invocation walks this state machine per attempt:

    pending -> awaiting_completion -> extracting -> validating -> done | retry

After builder_retries extra attempts a builder gives up with outcome
"fallback" for its own artifact only. Outcomes are values, never exceptions;
the orchestrator decides what a fallback or a high repair count means.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from app.config import PipelineConfig
from app.context import log_event
from app.llm.completion import CompletionClient
from app.llm.extractor import extract
from app.plans.models import ArtifactType, Violation
from app.plans.profile import UserProfile
from app.plans.schemas import validate

logger = logging.getLogger(__name__)


class BuilderState(str, Enum):
    PENDING = "pending"
    AWAITING_COMPLETION = "awaiting_completion"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    DONE = "done"
    RETRY = "retry"
    FALLBACK = "fallback"


class StageOutcome(str, Enum):
    OK = "ok"
    RETRY = "retry"
    FALLBACK = "fallback"


@dataclass
class AttemptRecord:
    """What happened on one attempt; kept in StageResult.history."""
    attempt: int
    state: BuilderState
    provider: Optional[str] = None
    strategy: Optional[str] = None
    error: Optional[str] = None
    repairs: int = 0
    duration_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt": self.attempt,
            "state": self.state.value,
            "provider": self.provider,
            "strategy": self.strategy,
            "error": self.error,
            "repairs": self.repairs,
            "duration_ms": self.duration_ms,
        }


@dataclass
class StageResult:
    artifact_type: ArtifactType
    outcome: StageOutcome
    value: Any = None
    repairs: List[Dict[str, Any]] = field(default_factory=list)
    attempts: int = 0
    history: List[AttemptRecord] = field(default_factory=list)
    day: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == StageOutcome.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "artifact_type": self.artifact_type.value,
            "outcome": self.outcome.value,
            "day": self.day,
            "repairs": self.repairs,
            "attempts": self.attempts,
            "history": [h.to_dict() for h in self.history],
            "error": self.error,
        }


class StageBuilder(ABC):
    """Base class for one artifact builder."""

    artifact_type: ArtifactType

    def __init__(self, client: CompletionClient, config: PipelineConfig, profile: UserProfile,
                 day: Optional[str] = None):
        self.client = client
        self.config = config
        self.profile = profile
        self.day = day
        self.state = BuilderState.PENDING

    @abstractmethod
    def build_prompt(self, violations: Sequence[Violation] = ()) -> str:
        """Compose the prompt from upstream artifacts and the profile."""
        pass

    def prepare(self, value: Any) -> Any:
        """Adjust the extracted JSON before validation (default: unchanged)."""
        return value

    def validation_context(self) -> Dict[str, Any]:
        return {"day": self.day} if self.day else {}

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def attempt(self, number: int, violations: Sequence[Violation] = ()) -> StageResult:
        """One pass through the state machine; outcome is ok or retry."""
        record = AttemptRecord(attempt=number, state=BuilderState.PENDING)
        start = time.time()

        def finish(state: BuilderState, error: Optional[str] = None, value: Any = None,
                   repairs: Optional[List[Dict[str, Any]]] = None) -> StageResult:
            self.state = state
            record.state = state
            record.error = error
            record.duration_ms = int((time.time() - start) * 1000)
            outcome = StageOutcome.OK if state == BuilderState.DONE else StageOutcome.RETRY
            return StageResult(
                artifact_type=self.artifact_type,
                outcome=outcome,
                value=value,
                repairs=repairs or [],
                attempts=number,
                history=[record],
                day=self.day,
                error=error,
            )

        self.state = BuilderState.AWAITING_COMPLETION
        completion = self.client.complete(
            self.build_prompt(violations),
            self.config.completion_max_tokens,
            self.config.completion_timeout_ms,
        )
        record.provider = completion.provider
        if not completion.ok:
            return finish(BuilderState.RETRY, error=completion.detail)

        self.state = BuilderState.EXTRACTING
        extraction = extract(completion.text)
        record.strategy = extraction.strategy
        if not extraction.ok:
            return finish(BuilderState.RETRY, error=f"extraction failed: {extraction.error}")

        self.state = BuilderState.VALIDATING
        schema = validate(self.prepare(extraction.value), self.artifact_type, self.profile,
                          self.validation_context())
        record.repairs = len(schema.repairs)
        if not schema.ok:
            reasons = "; ".join(f"{e['path']}: {e['reason']}" for e in schema.errors[:5])
            return finish(BuilderState.RETRY, error=f"schema errors: {reasons}")

        return finish(BuilderState.DONE, value=schema.value, repairs=schema.repairs)

    def run(self, violations: Sequence[Violation] = ()) -> StageResult:
        """
        Attempt up to 1 + builder_retries times.

        Returns:
            StageResult with outcome ok, or fallback with no value
        """
        history: List[AttemptRecord] = []
        max_attempts = 1 + max(0, self.config.builder_retries)
        last_error: Optional[str] = None

        for number in range(1, max_attempts + 1):
            if self.client.cancelled:
                last_error = "run cancelled"
                break
            result = self.attempt(number, violations)
            history.extend(result.history)
            if result.ok:
                result.history = history
                if number > 1:
                    log_event("stage_builder_recovered", artifact=self.artifact_type.value,
                              day=self.day, attempts=number)
                return result
            last_error = result.error
            logger.debug("%s%s attempt %d failed: %s", self.artifact_type.value,
                         f"[{self.day}]" if self.day else "", number, result.error)

        self.state = BuilderState.FALLBACK
        log_event("stage_builder_fallback", artifact=self.artifact_type.value, day=self.day,
                  attempts=len(history), error=last_error)
        return StageResult(
            artifact_type=self.artifact_type,
            outcome=StageOutcome.FALLBACK,
            attempts=len(history),
            history=history,
            day=self.day,
            error=last_error,
        )


__all__ = [
    "BuilderState",
    "StageOutcome",
    "AttemptRecord",
    "StageResult",
    "StageBuilder",
]
