"""
Completion Client - Provider-agnostic text completion with a fallback chain.

Providers are attempted once each in a fixed priority order. A provider-level
failure (non-2xx, timeout, malformed envelope) moves on to the next provider;
only exhausting the chain produces an error result. Retries of the whole
prompt belong to the stage builders, not to this layer.

Callers always receive a CompletionResult tagged "success" or "error".
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from app.config import PipelineConfig
from app.context import log_event
from app.errors import ProviderFailure
from app.llm.providers import CompletionProvider, MockProvider, build_providers

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class CompletionResult:
    """Normalized provider result: {kind: success, text} | {kind: error, detail}."""
    kind: str
    text: str = ""
    provider: Optional[str] = None
    detail: str = ""
    failures: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.kind == SUCCESS

    @classmethod
    def success(cls, text: str, provider: str) -> "CompletionResult":
        return cls(kind=SUCCESS, text=text, provider=provider)

    @classmethod
    def error(cls, detail: str, failures: Optional[List[Dict[str, Any]]] = None) -> "CompletionResult":
        return cls(kind=ERROR, detail=detail, failures=failures or [])

    @property
    def rate_limited(self) -> bool:
        return any(f.get("kind") == "RATE_LIMITED" for f in self.failures)

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"kind": self.kind, "text": self.text, "provider": self.provider}
        return {"kind": self.kind, "detail": self.detail, "failures": self.failures}


class CompletionClient:
    """Runs a prompt through the provider chain."""

    def __init__(
        self,
        providers: Sequence[CompletionProvider],
        cancel_event: Optional[threading.Event] = None,
    ):
        self.providers = list(providers)
        self.cancel_event = cancel_event

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def complete(self, prompt: str, max_tokens: int, timeout_ms: int) -> CompletionResult:
        """
        Send prompt to the first provider that answers.

        Args:
            prompt: Prompt text
            max_tokens: Output token cap passed to every provider
            timeout_ms: Per-provider timeout

        Returns:
            CompletionResult (success with text, or aggregated error)
        """
        if not self.providers:
            return CompletionResult.error("no completion providers configured")

        failures: List[Dict[str, Any]] = []
        for provider in self.providers:
            if self.cancelled:
                return CompletionResult.error("run cancelled", failures)

            start = time.time()
            try:
                text = provider.complete(prompt, max_tokens, timeout_ms)
            except ProviderFailure as e:
                if not e.provider:
                    e.provider = provider.name
                failures.append(e.to_dict())
                logger.warning("Provider %s failed (%s): %s", provider.name, e.kind, e)
                continue

            duration_ms = int((time.time() - start) * 1000)
            if not text or not text.strip():
                failures.append({
                    "provider": provider.name,
                    "kind": "PROVIDER_ERROR",
                    "message": "empty completion",
                    "status_code": None,
                })
                continue

            if failures:
                log_event("completion_provider_fallback", provider=provider.name,
                          failed=[f["provider"] for f in failures])
            logger.debug("Completion from %s (%s) in %dms (%d chars)",
                         provider.name, provider.get_model_name(), duration_ms, len(text))
            return CompletionResult.success(text, provider.name)

        detail = "; ".join(f"{f['provider']}: {f['kind']}" for f in failures)
        log_event("completion_chain_exhausted", failures=failures)
        return CompletionResult.error(f"all providers failed ({detail})", failures)


def get_completion_client(
    config: PipelineConfig,
    cancel_event: Optional[threading.Event] = None,
) -> CompletionClient:
    """
    Factory function to get the completion client for a config.

    Args:
        config: Pipeline configuration (provider order, mock flag)
        cancel_event: Run-level cancellation flag

    Returns:
        CompletionClient instance
    """
    if config.use_mock:
        logger.info("Using MockProvider")
        return CompletionClient([MockProvider()], cancel_event=cancel_event)

    providers = build_providers(config.ordered_providers())
    logger.info("Using providers: %s", [p.name for p in providers])
    return CompletionClient(providers, cancel_event=cancel_event)


__all__ = [
    "CompletionResult",
    "CompletionClient",
    "get_completion_client",
]
