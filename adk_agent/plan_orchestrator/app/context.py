"""
RunContext - Per-run context using contextvars.

Thread-safe storage for the identifiers of the plan generation run that is
currently executing. Structured log events pick these up automatically.

Worker threads do not inherit contextvars on their own; the orchestrator
submits work through contextvars.copy_context().run so builder threads see
the same run.
"""

from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# CONTEXT VARIABLES (Thread-safe, Async-safe)
# =============================================================================

_run_context_var: ContextVar[Optional["RunContext"]] = ContextVar(
    "plan_run_context",
    default=None
)


@dataclass(frozen=True)
class RunContext:
    """Identifiers for one plan generation run."""
    run_id: str
    user_id: str
    stage: Optional[str] = None
    job_id: Optional[str] = None

    def with_stage(self, stage: str) -> "RunContext":
        return replace(self, stage=stage)


def set_current_run_context(ctx: RunContext) -> None:
    """Set the context for the current run."""
    _run_context_var.set(ctx)


def get_current_run_context() -> Optional[RunContext]:
    """Get the context for the current run, or None outside a run."""
    return _run_context_var.get()


def clear_current_run_context() -> None:
    """Clear the context after run completion."""
    _run_context_var.set(None)


# =============================================================================
# STRUCTURED EVENTS
# =============================================================================

def log_event(event: str, **kwargs: Any) -> None:
    """
    Log a structured event.

    Uses JSON for Cloud Logging compatibility. Run identifiers from the
    active RunContext are attached when present.
    """
    record = {
        "event": event,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    ctx = _run_context_var.get()
    if ctx is not None:
        record["run_id"] = ctx.run_id
        record["user_id"] = ctx.user_id
        if ctx.stage:
            record["stage"] = ctx.stage
        if ctx.job_id:
            record["job_id"] = ctx.job_id

    record.update({k: v for k, v in kwargs.items() if v is not None})
    logger.info(json.dumps(record, default=str))


__all__ = [
    "RunContext",
    "set_current_run_context",
    "get_current_run_context",
    "clear_current_run_context",
    "log_event",
]
