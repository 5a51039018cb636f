"""Configuration for plan orchestrator service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# GCP Project
PROJECT_ID = os.getenv("GCP_PROJECT_ID", "myon-53d85")
REGION = os.getenv("GCP_REGION", "europe-west1")

# Firestore collections
CHECKPOINTS_COLLECTION = "plan_checkpoints"
PLANS_COLLECTION = "weekly_plans"
JOBS_COLLECTION = "plan_generation_jobs"

# Job queue settings
LEASE_DURATION_SECS = 300  # 5 minutes
MAX_ATTEMPTS = 3
RETRY_BACKOFF_BASE_SECS = 30
RETRY_BACKOFF_MAX_SECS = 600
RETRY_JITTER_SECS = 15

# Completion providers (tried in PLAN_PROVIDERS order)
DEEPSEEK_API_KEY = os.getenv("DEEPSEEK_API_KEY", "")
DEEPSEEK_BASE_URL = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com/v1")
DEEPSEEK_MODEL = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_USE_VERTEX = os.getenv("GEMINI_USE_VERTEX", "false").lower() == "true"
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

DEFAULT_PROVIDERS = "deepseek,gemini,openai"

# Pipeline budgets
COMPLETION_TIMEOUT_MS = 60_000
COMPLETION_MAX_TOKENS = 4096
RUN_BUDGET_SECS = 120
YIELD_BUFFER_SECS = 25
BUILDER_RETRIES = 2
MAX_REPAIRS = 3
MAX_WORKERS = 8


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class ProviderSettings:
    """Connection settings for one completion provider."""
    name: str
    model: str
    api_key: str = ""
    base_url: str = ""
    temperature: float = 0.4
    use_vertex: bool = False

    @property
    def configured(self) -> bool:
        return bool(self.api_key) or self.use_vertex


def default_provider_settings() -> Dict[str, ProviderSettings]:
    """Provider settings keyed by name, read from the environment."""
    return {
        "deepseek": ProviderSettings(
            name="deepseek",
            model=DEEPSEEK_MODEL,
            api_key=DEEPSEEK_API_KEY,
            base_url=DEEPSEEK_BASE_URL,
        ),
        "openai": ProviderSettings(
            name="openai",
            model=OPENAI_MODEL,
            api_key=OPENAI_API_KEY,
            base_url=OPENAI_BASE_URL,
        ),
        "gemini": ProviderSettings(
            name="gemini",
            model=GEMINI_MODEL,
            api_key=GEMINI_API_KEY,
            use_vertex=GEMINI_USE_VERTEX,
        ),
    }


@dataclass(frozen=True)
class PipelineConfig:
    """
    Explicit pipeline configuration injected into the orchestrator.

    Nothing inside the pipeline reads process environment; from_env() is the
    only place env vars are consulted.
    """
    provider_order: Tuple[str, ...] = ("deepseek", "gemini", "openai")
    completion_timeout_ms: int = COMPLETION_TIMEOUT_MS
    completion_max_tokens: int = COMPLETION_MAX_TOKENS
    builder_retries: int = BUILDER_RETRIES
    max_repairs: int = MAX_REPAIRS
    run_budget_secs: float = RUN_BUDGET_SECS
    yield_buffer_secs: float = YIELD_BUFFER_SECS
    max_workers: int = MAX_WORKERS
    verification_retries: int = 1
    use_mock: bool = False
    providers: Dict[str, ProviderSettings] = field(default_factory=dict)

    @classmethod
    def from_env(cls, overrides: Optional[Dict[str, Any]] = None) -> "PipelineConfig":
        """Build config from environment variables."""
        order = os.getenv("PLAN_PROVIDERS", DEFAULT_PROVIDERS)
        values: Dict[str, Any] = {
            "provider_order": tuple(p.strip().lower() for p in order.split(",") if p.strip()),
            "completion_timeout_ms": _env_int("COMPLETION_TIMEOUT_MS", COMPLETION_TIMEOUT_MS),
            "completion_max_tokens": _env_int("COMPLETION_MAX_TOKENS", COMPLETION_MAX_TOKENS),
            "builder_retries": _env_int("BUILDER_RETRIES", BUILDER_RETRIES),
            "max_repairs": _env_int("MAX_REPAIRS", MAX_REPAIRS),
            "run_budget_secs": _env_int("RUN_BUDGET_SECS", RUN_BUDGET_SECS),
            "yield_buffer_secs": _env_int("YIELD_BUFFER_SECS", YIELD_BUFFER_SECS),
            "max_workers": _env_int("PLAN_MAX_WORKERS", MAX_WORKERS),
            "use_mock": os.getenv("USE_MOCK_LLM", "").lower() == "true",
            "providers": default_provider_settings(),
        }
        if overrides:
            values.update(overrides)
        return cls(**values)

    def ordered_providers(self) -> List[ProviderSettings]:
        """Provider settings in priority order, skipping unknown names."""
        return [self.providers[name] for name in self.provider_order if name in self.providers]
