"""
Error taxonomy for the plan pipeline.

Provider-level errors are recovered inside the completion chain by moving to
the next provider. Extraction and schema problems are reported as result
values by their modules; the classes here exist for the places that do raise
(provider adapters, assembly checks, and the orchestrator's yield points).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class PlanPipelineError(Exception):
    """Base class for all plan pipeline errors."""


# =============================================================================
# PROVIDER ERRORS
# =============================================================================

class ProviderFailure(PlanPipelineError):
    """Base for failures of a single completion provider."""

    kind = "PROVIDER_ERROR"

    def __init__(self, message: str, provider: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "kind": self.kind,
            "message": str(self),
            "status_code": self.status_code,
        }


class NetworkError(ProviderFailure):
    kind = "NETWORK_ERROR"


class ProviderTimeout(ProviderFailure):
    kind = "TIMEOUT"


class RateLimited(ProviderFailure):
    kind = "RATE_LIMITED"


class ProviderError(ProviderFailure):
    """Non-2xx status, malformed envelope, or empty completion."""
    kind = "PROVIDER_ERROR"


# =============================================================================
# ARTIFACT ERRORS
# =============================================================================

class ExtractionError(PlanPipelineError):
    """No strategy could recover JSON from model text."""


class SchemaError(PlanPipelineError):
    """Artifact is structurally invalid and cannot be repaired."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class VerificationViolation(PlanPipelineError):
    """Artifact breaks a domain rule (equipment, diet, macro tolerance...)."""

    def __init__(self, message: str, violations: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.violations = violations or []


# =============================================================================
# RUN ERRORS
# =============================================================================

class PipelineTimeout(PlanPipelineError):
    """Wall-clock budget exhausted; checkpoint persisted for resume."""

    def __init__(self, message: str, run_id: str = "", checkpoint: Optional[str] = None):
        super().__init__(message)
        self.run_id = run_id
        self.checkpoint = checkpoint


class PipelineCancelled(PlanPipelineError):
    """Run was cancelled; its checkpoint is no longer authoritative."""

    def __init__(self, message: str, run_id: str = ""):
        super().__init__(message)
        self.run_id = run_id


class PipelineError(PlanPipelineError):
    """A stage produced no artifact even through the fallback path."""


__all__ = [
    "PlanPipelineError",
    "ProviderFailure",
    "NetworkError",
    "ProviderTimeout",
    "RateLimited",
    "ProviderError",
    "ExtractionError",
    "SchemaError",
    "VerificationViolation",
    "PipelineTimeout",
    "PipelineCancelled",
    "PipelineError",
]
