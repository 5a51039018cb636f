"""
Tests for the completion client's provider chain.

Providers are tried in order; the first non-empty answer wins and every
failure is recorded on the aggregated error.
"""

import json
import threading
from types import SimpleNamespace

import pytest
import requests

from app.config import ProviderSettings
from app.errors import NetworkError, ProviderError, ProviderTimeout, RateLimited
from app.llm.completion import CompletionClient, get_completion_client
from app.llm.providers import FailingProvider, GeminiProvider, MockProvider, OpenAICompatibleProvider

from tests.fixtures import make_config


def _complete(client: CompletionClient):
    return client.complete("Artifact: split", max_tokens=100, timeout_ms=1000)


class TestProviderChain:

    def test_first_provider_answers(self):
        primary = MockProvider(default_response='{"ok": true}', name="primary")
        secondary = MockProvider(name="secondary")
        result = _complete(CompletionClient([primary, secondary]))
        assert result.ok
        assert result.text == '{"ok": true}'
        assert result.provider == "primary"
        assert secondary.call_count == 0

    def test_falls_through_failed_providers(self):
        down = FailingProvider(name="down")
        slow = FailingProvider(name="slow", error=ProviderTimeout)
        backup = MockProvider(default_response="{}", name="backup")
        result = _complete(CompletionClient([down, slow, backup]))
        assert result.ok
        assert result.provider == "backup"
        assert down.call_count == 1
        assert slow.call_count == 1

    def test_empty_completion_counts_as_failure(self):
        blank = MockProvider(default_response="   ", name="blank")
        backup = MockProvider(default_response="{}", name="backup")
        result = _complete(CompletionClient([blank, backup]))
        assert result.ok
        assert result.provider == "backup"

    def test_all_providers_fail(self):
        client = CompletionClient([
            FailingProvider(name="a"),
            FailingProvider(name="b", error=RateLimited),
        ])
        result = _complete(client)
        assert not result.ok
        assert [f["provider"] for f in result.failures] == ["a", "b"]
        assert [f["kind"] for f in result.failures] == ["NETWORK_ERROR", "RATE_LIMITED"]
        assert result.rate_limited
        assert "a: NETWORK_ERROR" in result.detail

    def test_no_providers(self):
        result = _complete(CompletionClient([]))
        assert not result.ok

    def test_cancelled_client_makes_no_calls(self):
        event = threading.Event()
        event.set()
        provider = MockProvider(default_response="{}")
        result = _complete(CompletionClient([provider], cancel_event=event))
        assert not result.ok
        assert provider.call_count == 0


class TestMockProvider:

    def test_queued_responses_then_default(self):
        provider = MockProvider(["first", "second"], default_response="rest")
        client = CompletionClient([provider])
        assert _complete(client).text == "first"
        assert _complete(client).text == "second"
        assert _complete(client).text == "rest"
        assert provider.call_count == 3

    def test_responder_sees_prompt(self):
        provider = MockProvider(lambda prompt: prompt.upper())
        result = _complete(CompletionClient([provider]))
        assert result.text == "ARTIFACT: SPLIT"
        assert provider.prompts == ["Artifact: split"]

    def test_mock_config_builds_mock_client(self):
        client = get_completion_client(make_config(use_mock=True))
        assert len(client.providers) == 1
        assert isinstance(client.providers[0], MockProvider)


class TestChatCompletionsProvider:

    def _provider(self, status=200, body=None, raises=None):
        provider = OpenAICompatibleProvider(ProviderSettings(
            name="deepseek", model="deepseek-chat", api_key="k", base_url="https://api.example.com/v1/"))
        sent = {}

        def post(url, **kwargs):
            sent.update(url=url, body=kwargs["json"], headers=kwargs["headers"], timeout=kwargs["timeout"])
            if raises is not None:
                raise raises
            text = body if isinstance(body, str) else json.dumps(body)
            return SimpleNamespace(status_code=status, text=text)

        provider._http.post_fn = post
        return provider, sent

    def test_reads_message_content(self):
        provider, sent = self._provider(body={"choices": [{"message": {"content": ' {"a": 1} '}}]})
        assert provider.complete("hi", max_tokens=50, timeout_ms=2500) == '{"a": 1}'
        assert sent["url"] == "https://api.example.com/v1/chat/completions"
        assert sent["headers"]["Authorization"] == "Bearer k"
        assert sent["timeout"] == 2.5
        assert sent["body"]["messages"][-1] == {"role": "user", "content": "hi"}

    def test_rate_limit(self):
        provider, _ = self._provider(status=429, body={"error": {"message": "slow down"}})
        with pytest.raises(RateLimited) as e:
            provider.complete("hi", max_tokens=50, timeout_ms=1000)
        assert e.value.status_code == 429
        assert "slow down" in str(e.value)

    def test_server_error(self):
        provider, _ = self._provider(status=503, body="upstream down")
        with pytest.raises(ProviderError) as e:
            provider.complete("hi", max_tokens=50, timeout_ms=1000)
        assert e.value.status_code == 503

    def test_timeout_and_network(self):
        provider, _ = self._provider(raises=requests.Timeout("read timed out"))
        with pytest.raises(ProviderTimeout):
            provider.complete("hi", max_tokens=50, timeout_ms=1000)
        provider, _ = self._provider(raises=requests.ConnectionError("refused"))
        with pytest.raises(NetworkError):
            provider.complete("hi", max_tokens=50, timeout_ms=1000)

    @pytest.mark.parametrize("body", [
        {"choices": []},
        {"choices": [{"message": {"content": "   "}}]},
        "<html>gateway</html>",
    ])
    def test_bad_envelope(self, body):
        provider, _ = self._provider(body=body)
        with pytest.raises(ProviderError):
            provider.complete("hi", max_tokens=50, timeout_ms=1000)


class TestGeminiProvider:

    def test_client_init_failure_moves_to_next_provider(self, monkeypatch):
        gemini = GeminiProvider(ProviderSettings(name="gemini", model="gemini-2.5-flash", use_vertex=True))

        def no_credentials():
            raise ValueError("could not find default credentials")

        monkeypatch.setattr(gemini, "_get_client", no_credentials)
        with pytest.raises(ProviderError) as e:
            gemini.complete("hi", max_tokens=50, timeout_ms=1000)
        assert "default credentials" in str(e.value)

        backup = MockProvider(default_response="{}", name="backup")
        result = _complete(CompletionClient([gemini, backup]))
        assert result.ok
        assert result.provider == "backup"
