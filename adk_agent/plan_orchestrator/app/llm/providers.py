"""
Completion providers - One adapter per text-generation backend.

Every provider exposes complete(prompt, max_tokens, timeout_ms) -> str and
raises a ProviderFailure subclass on any problem. Vendor response shapes
never leave this module.

Implementations:
- OpenAICompatibleProvider: DeepSeek / OpenAI chat completions over requests
- GeminiProvider: google-genai SDK (API key or Vertex AI)
- MockProvider: Tests and dry-run stubs
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence, Union

from app.config import PROJECT_ID, REGION, ProviderSettings
from app.errors import NetworkError, ProviderError, ProviderTimeout
from app.llm.http import JsonTransport, status_failure

logger = logging.getLogger(__name__)


class CompletionProvider(ABC):
    """Abstract completion provider interface."""

    name: str = "provider"

    @abstractmethod
    def complete(self, prompt: str, max_tokens: int, timeout_ms: int) -> str:
        """
        Generate completion text for prompt.

        Args:
            prompt: Full prompt text
            max_tokens: Output token cap
            timeout_ms: Per-call timeout

        Returns:
            Raw completion text (never empty)

        Raises:
            ProviderFailure: On timeout, transport error, non-2xx, or bad envelope
        """
        pass

    def get_model_name(self) -> str:
        return "unknown"


class OpenAICompatibleProvider(CompletionProvider):
    """
    Chat-completions provider (DeepSeek, OpenAI, or any compatible gateway).

    Envelope: choices[0].message.content
    """

    def __init__(self, settings: ProviderSettings):
        self.name = settings.name
        self.settings = settings
        self._http = JsonTransport(provider=settings.name, base_url=settings.base_url, bearer_token=settings.api_key)

    def get_model_name(self) -> str:
        return self.settings.model

    def complete(self, prompt: str, max_tokens: int, timeout_ms: int) -> str:
        body = {
            "model": self.settings.model,
            "messages": [
                {"role": "system", "content": "You are a fitness and nutrition planner. Respond with JSON only."},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": self.settings.temperature,
        }
        data = self._http.post("chat/completions", body, timeout_ms)
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"{self.name} returned malformed envelope", provider=self.name) from e

        if not isinstance(text, str) or not text.strip():
            raise ProviderError(f"{self.name} returned empty completion", provider=self.name)
        return text.strip()


def _collect_text(response: Any) -> str:
    """Extract plain text from a GenAI response object (candidates[0].content.parts)."""
    parts: List[str] = []
    for candidate in (getattr(response, "candidates", None) or [])[:1]:
        content = getattr(candidate, "content", None)
        if not content:
            continue
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", None)
            if text:
                parts.append(text)
    return "\n".join(part.strip() for part in parts if part.strip())


class GeminiProvider(CompletionProvider):
    """
    Gemini provider using the google-genai SDK.

    Uses Vertex AI service-account auth when use_vertex is set, API key otherwise.
    """

    def __init__(self, settings: ProviderSettings):
        self.name = settings.name
        self.settings = settings
        self._client = None
        self._lock = threading.Lock()

    def get_model_name(self) -> str:
        return self.settings.model

    def _get_client(self):
        """Lazy initialization of the GenAI client."""
        with self._lock:
            if self._client is None:
                from google import genai

                if self.settings.use_vertex:
                    self._client = genai.Client(vertexai=True, project=PROJECT_ID, location=REGION)
                else:
                    self._client = genai.Client(api_key=self.settings.api_key)
                logger.info("GenAI client initialized: model=%s, vertex=%s",
                            self.settings.model, self.settings.use_vertex)
            return self._client

    def complete(self, prompt: str, max_tokens: int, timeout_ms: int) -> str:
        from google.genai import errors as genai_errors
        from google.genai.types import GenerateContentConfig, HttpOptions

        try:
            client = self._get_client()
        except Exception as e:
            raise ProviderError(f"{self.name} client init failed: {e}", provider=self.name) from e
        try:
            response = client.models.generate_content(
                model=self.settings.model,
                contents=prompt,
                config=GenerateContentConfig(
                    temperature=self.settings.temperature,
                    max_output_tokens=max_tokens,
                    response_mime_type="application/json",
                    http_options=HttpOptions(timeout=timeout_ms),
                ),
            )
        except genai_errors.APIError as e:
            raise status_failure(self.name, getattr(e, "code", None), str(e)) from e
        except Exception as e:
            if "timeout" in type(e).__name__.lower():
                raise ProviderTimeout(f"{self.name} timed out after {timeout_ms}ms", provider=self.name) from e
            raise NetworkError(f"{self.name} request failed: {e}", provider=self.name) from e

        text = _collect_text(response)
        if not text:
            raise ProviderError(f"{self.name} returned no text parts", provider=self.name)
        return text


MockResponder = Callable[[str], str]


class MockProvider(CompletionProvider):
    """
    Mock provider for tests and dry-run stubs.

    Responses come from a responder callable, a fixed list consumed in order,
    or a single default string. A responder may raise ProviderFailure to
    simulate an outage.
    """

    def __init__(
        self,
        responder: Optional[Union[MockResponder, Sequence[str]]] = None,
        default_response: str = "{}",
        name: str = "mock",
    ):
        self.name = name
        self.default_response = default_response
        self._responder = responder if callable(responder) else None
        self._queue: List[str] = list(responder) if responder is not None and not callable(responder) else []
        self._lock = threading.Lock()
        self.call_count = 0
        self.prompts: List[str] = []
        self.last_prompt: Optional[str] = None

    def get_model_name(self) -> str:
        return "mock-model"

    def complete(self, prompt: str, max_tokens: int, timeout_ms: int) -> str:
        with self._lock:
            self.call_count += 1
            self.prompts.append(prompt)
            self.last_prompt = prompt
            queued = self._queue.pop(0) if self._queue else None

        if self._responder is not None:
            return self._responder(prompt)
        if queued is not None:
            return queued
        return self.default_response


class FailingProvider(CompletionProvider):
    """Provider that always fails with the given error kind (outage drills, tests)."""

    def __init__(self, name: str = "down", error: type = NetworkError):
        self.name = name
        self._error = error
        self.call_count = 0

    def complete(self, prompt: str, max_tokens: int, timeout_ms: int) -> str:
        self.call_count += 1
        raise self._error(f"{self.name} unavailable", provider=self.name)


def build_providers(settings: Sequence[ProviderSettings]) -> List[CompletionProvider]:
    """Instantiate configured providers in priority order."""
    providers: List[CompletionProvider] = []
    for s in settings:
        if not s.configured:
            logger.info("Skipping provider %s: not configured", s.name)
            continue
        if s.name == "gemini":
            providers.append(GeminiProvider(s))
        else:
            providers.append(OpenAICompatibleProvider(s))
    return providers


__all__ = [
    "CompletionProvider",
    "OpenAICompatibleProvider",
    "GeminiProvider",
    "MockProvider",
    "FailingProvider",
    "build_providers",
]
