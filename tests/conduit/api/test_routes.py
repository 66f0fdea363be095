"""HTTP surface integration tests.

Covers provider and model listing, catalog refresh, and message streaming
over server-sent events. litellm and the OpenRouter catalog are replaced
with in-process fakes, so no test reaches the network.
"""

import asyncio
import json
from typing import Any, Dict, List
from unittest.mock import AsyncMock

import litellm
import pytest
from fastapi import status
from fastapi.testclient import TestClient

from conduit.api.routes import encode_sse, with_environment_defaults
from conduit.config import Settings, get_settings
from conduit.core.types import KoduSettings, ModelInfo, OpenAISettings, TextDeltaEvent
from conduit.main import app

API = "/api/v1"


# ═══════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════

class FakeOpenRouterCatalog:
    """In-memory replacement for `OpenRouterCatalog`."""

    def __init__(self, models: List[ModelInfo]) -> None:
        self.models = models
        self.invalidations = 0

    async def get_models(self) -> List[ModelInfo]:
        return list(self.models)

    async def invalidate(self) -> None:
        self.invalidations += 1


class FakeStream:
    def __init__(self, chunks: List[Dict[str, Any]]) -> None:
        self._chunks = list(chunks)

    def __aiter__(self):
        return self

    async def __anext__(self):
        await asyncio.sleep(0)
        if self._chunks:
            return self._chunks.pop(0)
        raise StopAsyncIteration


@pytest.fixture
def openrouter(client: TestClient) -> FakeOpenRouterCatalog:
    fake = FakeOpenRouterCatalog([
        ModelInfo(
            id="mistralai/mistral-large",
            context_window=128_000,
            max_tokens=4096,
            input_price=2.0,
            output_price=6.0,
            provider="openrouter",
        )
    ])
    app.state.openrouter = fake
    return fake


@pytest.fixture
def completion(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Patch litellm with a short text completion."""
    mock = AsyncMock(return_value=FakeStream([
        {"choices": [{"delta": {"content": "Hel"}}]},
        {"choices": [{"delta": {"content": "lo"}}]},
        {"choices": [], "usage": {"prompt_tokens": 1000, "completion_tokens": 500}},
    ]))
    monkeypatch.setattr(litellm, "acompletion", mock)
    return mock


def message_body(**overrides: Any) -> Dict[str, Any]:
    body = {
        "provider": {"provider_id": "anthropic"},
        "model_id": "claude-3-5-sonnet-20241022",
        "system_prompt": ["Be terse."],
        "history": [{"role": "user", "content": "Hello"}],
    }
    body.update(overrides)
    return body


def read_events(text: str) -> List[Dict[str, Any]]:
    return [
        json.loads(chunk[len("data: "):])
        for chunk in text.split("\n\n")
        if chunk.startswith("data: ")
    ]


# ═══════════════════════════════════════════════════════════════════════════
# PROVIDERS
# ═══════════════════════════════════════════════════════════════════════════

class TestProviders:
    """Catalog listing endpoints."""

    def test_list_providers(self, client: TestClient) -> None:
        response = client.get(f"{API}/providers")

        assert response.status_code == status.HTTP_200_OK
        providers = {item["id"]: item for item in response.json()}
        assert {"anthropic", "openai", "openrouter", "kodu", "openai-compatible"} <= set(providers)
        assert providers["anthropic"]["required_fields"] == ["api_key"]
        assert providers["aider"]["required_fields"] == ["api_key", "base_url"]
        assert providers["anthropic"]["model_count"] > 0

    def test_list_static_models(self, client: TestClient) -> None:
        response = client.get(f"{API}/providers/anthropic/models")

        assert response.status_code == status.HTTP_200_OK
        ids = [model["id"] for model in response.json()["models"]]
        assert "claude-3-5-sonnet-20241022" in ids

    def test_unknown_provider(self, client: TestClient) -> None:
        response = client.get(f"{API}/providers/acme/models")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "acme" in response.json()["detail"]

    def test_openrouter_models_come_from_remote_catalog(self, client: TestClient, openrouter) -> None:
        """Should serve fetched models and swap in a refreshed registry."""
        response = client.get(f"{API}/providers/openrouter/models")

        assert response.status_code == status.HTTP_200_OK
        assert [model["id"] for model in response.json()["models"]] == ["mistralai/mistral-large"]
        assert app.state.registry.lookup("openrouter", "mistralai/mistral-large").input_price == 2.0

    def test_empty_remote_catalog_keeps_static_models(self, client: TestClient, openrouter) -> None:
        openrouter.models = []
        response = client.get(f"{API}/providers/openrouter/models")
        assert response.status_code == status.HTTP_200_OK
        assert len(response.json()["models"]) > 0


class TestRefresh:
    """Catalog invalidation."""

    def test_refresh_openrouter(self, client: TestClient, openrouter) -> None:
        response = client.post(f"{API}/providers/openrouter/models/refresh")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"provider": "openrouter", "invalidated": True}
        assert openrouter.invalidations == 1

    def test_refresh_static_provider(self, client: TestClient) -> None:
        response = client.post(f"{API}/providers/anthropic/models/refresh")
        assert response.json() == {"provider": "anthropic", "invalidated": False}

    def test_refresh_unknown_provider(self, client: TestClient) -> None:
        assert client.post(f"{API}/providers/acme/models/refresh").status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# MESSAGES
# ═══════════════════════════════════════════════════════════════════════════

class TestMessages:
    """Server-sent event streaming."""

    def test_stream_events(self, client: TestClient, completion: AsyncMock) -> None:
        response = client.post(f"{API}/messages", json=message_body())

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/event-stream")
        events = read_events(response.text)
        assert [event["type"] for event in events] == ["started", "text-delta", "text-delta", "completed"]
        assert events[-1]["cost"] == pytest.approx(0.0105)

    def test_api_key_from_environment(self, client: TestClient, completion: AsyncMock) -> None:
        """Should use the configured key when the request carries none."""
        client.post(f"{API}/messages", json=message_body())
        assert completion.call_args.kwargs["api_key"] == "sk-ant-test"

    def test_request_key_wins(self, client: TestClient, completion: AsyncMock) -> None:
        body = message_body(provider={"provider_id": "anthropic", "api_key": "sk-ant-request"})
        client.post(f"{API}/messages", json=body)
        assert completion.call_args.kwargs["api_key"] == "sk-ant-request"

    def test_upstream_failure_is_an_event(self, client: TestClient, monkeypatch) -> None:
        """Should report upstream errors in-band with a 200 response."""
        error = litellm.RateLimitError(message="slow down", llm_provider="anthropic", model="claude")
        monkeypatch.setattr(litellm, "acompletion", AsyncMock(side_effect=error))

        response = client.post(f"{API}/messages", json=message_body())

        assert response.status_code == status.HTTP_200_OK
        assert read_events(response.text) == [
            {"type": "error", "code": 429, "message": "Your account has hit a rate limit."}
        ]

    def test_openai_compatible(self, client: TestClient, completion: AsyncMock) -> None:
        body = message_body(
            provider={
                "provider_id": "openai-compatible",
                "base_url": "http://localhost:11434/v1",
                "model_id": "qwen2.5-coder",
            },
            model_id="qwen2.5-coder",
        )
        response = client.post(f"{API}/messages", json=body)

        assert read_events(response.text)[-1]["type"] == "completed"
        kwargs = completion.call_args.kwargs
        assert kwargs["model"] == "openai/qwen2.5-coder"
        assert kwargs["api_base"] == "http://localhost:11434/v1"


class TestMessageValidation:
    """Failures reported before any stream is opened."""

    def test_missing_credentials(self, client: TestClient, mock_settings: Settings, completion) -> None:
        app.dependency_overrides[get_settings] = lambda: mock_settings.model_copy(update={"OPENAI_API_KEY": None})
        body = message_body(provider={"provider_id": "openai"}, model_id="gpt-4o")

        response = client.post(f"{API}/messages", json=body)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "api_key" in response.json()["detail"]
        completion.assert_not_called()

    def test_unknown_model(self, client: TestClient, completion) -> None:
        response = client.post(f"{API}/messages", json=message_body(model_id="claude-0"))
        assert response.status_code == status.HTTP_404_NOT_FOUND
        completion.assert_not_called()

    def test_unknown_provider(self, client: TestClient) -> None:
        body = message_body(provider={"provider_id": "acme"})
        assert client.post(f"{API}/messages", json=body).status_code == 422

    def test_empty_history(self, client: TestClient) -> None:
        assert client.post(f"{API}/messages", json=message_body(history=[])).status_code == 422

    def test_compatible_model_without_cache_prices(self, client: TestClient, completion) -> None:
        """Should reject an incomplete model description as a bad request body."""
        body = message_body(
            provider={
                "provider_id": "openai-compatible",
                "base_url": "http://localhost:11434/v1",
                "model_id": "m",
                "supports_prompt_cache": True,
                "input_price": 1.0,
            },
            model_id="m",
        )
        assert client.post(f"{API}/messages", json=body).status_code == 422
        completion.assert_not_called()

    def test_foreign_settings_field(self, client: TestClient) -> None:
        """Should reject fields that belong to another provider."""
        body = message_body(provider={"provider_id": "anthropic", "model_id": "x"})
        assert client.post(f"{API}/messages", json=body).status_code == 422


# ═══════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════

class TestHelpers:
    """Pure helpers behind the routes."""

    def test_encode_sse(self) -> None:
        assert encode_sse(TextDeltaEvent(text="hi")) == 'data: {"type":"text-delta","text":"hi"}\n\n'

    def test_kodu_base_url_default(self, mock_settings: Settings) -> None:
        provider = with_environment_defaults(KoduSettings(api_key="k"), mock_settings)
        assert provider.base_url == mock_settings.KODU_BASE_URL

    def test_explicit_values_are_kept(self, mock_settings: Settings) -> None:
        provider = OpenAISettings(api_key="sk-request", base_url="https://proxy.test/v1")
        assert with_environment_defaults(provider, mock_settings) is provider
