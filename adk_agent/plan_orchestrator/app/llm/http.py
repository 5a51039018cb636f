"""
JSON-over-HTTP transport for chat-completions style providers.

Transport problems are raised as the provider error taxonomy so adapters only
deal with envelopes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests

from app.errors import NetworkError, ProviderError, ProviderFailure, ProviderTimeout, RateLimited


def status_failure(provider: str, status: Optional[int], message: str) -> ProviderFailure:
    """Map an HTTP status to the provider error taxonomy."""
    if status == 429:
        return RateLimited(f"{provider} rate limited: {message}", provider=provider, status_code=status)
    return ProviderError(f"{provider} HTTP {status}: {message}", provider=provider, status_code=status)


def _error_message(data: Any, fallback: str) -> str:
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    if isinstance(err, str) and err:
        return err
    return fallback


@dataclass
class JsonTransport:
    """
    POSTs a JSON body to {base_url}/{path} and returns the decoded object.

    post_fn is requests.post unless a test injects something else.
    """
    provider: str
    base_url: str
    bearer_token: Optional[str] = None
    post_fn: Callable[..., requests.Response] = field(default=requests.post, repr=False)

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        return headers

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def post(self, path: str, body: Dict[str, Any], timeout_ms: int) -> Dict[str, Any]:
        try:
            resp = self.post_fn(self.url(path), json=body, headers=self._headers(), timeout=timeout_ms / 1000.0)
        except requests.Timeout as e:
            raise ProviderTimeout(f"{self.provider} timed out after {timeout_ms}ms", provider=self.provider) from e
        except requests.RequestException as e:
            raise NetworkError(f"{self.provider} request failed: {e}", provider=self.provider) from e

        text = resp.text or ""
        try:
            data = json.loads(text) if text.strip() else {}
        except ValueError:
            data = None

        if resp.status_code >= 400:
            raise status_failure(self.provider, resp.status_code,
                                 _error_message(data, text[:200] or f"HTTP {resp.status_code}"))
        if not isinstance(data, dict):
            raise ProviderError(f"{self.provider} returned a non-JSON body", provider=self.provider,
                                status_code=resp.status_code)
        return data


__all__ = [
    "JsonTransport",
    "status_failure",
]
