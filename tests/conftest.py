"""Test configuration and shared fixtures.

Provide isolated settings, catalog fixtures and HTTP client fixtures. No
fixture touches the network or the developer's environment files.
"""
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from conduit.config import Settings, get_settings
from conduit.core.types import ConversationTurn, ModelInfo
from conduit.main import app

# ==============================================================================
# CONFIGURATION FIXTURES
# ==============================================================================

PROVIDER_KEY_VARS = [name for name in Settings.model_fields if name.endswith("_API_KEY")]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide provider credentials exported in the developer's shell."""
    for name in PROVIDER_KEY_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session")
def cache_root(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Session-wide scratch directory for durable catalog records."""
    return tmp_path_factory.mktemp("conduit-cache")


@pytest.fixture(scope="session")
def mock_settings(cache_root: Path) -> Settings:
    """Provide isolated test configuration without external dependencies.

    Returns:
        Settings: Development configuration with a temporary cache directory
            and a test credential for Anthropic only.
    """
    return Settings(
        ENVIRONMENT="development",
        LOG_LEVEL="debug",
        CACHE_DIR=cache_root,
        ANTHROPIC_API_KEY="sk-ant-test",
        _env_file=None  # Bypass local environment file
    )


@pytest.fixture(scope="function")
def client(mock_settings: Settings) -> Generator[TestClient, None, None]:
    """Provide HTTP test client with isolated dependency injection.

    Preserve original dependency overrides and restore them after test completion
    to prevent test isolation issues.

    Args:
        mock_settings: Isolated test configuration.

    Yields:
        TestClient: FastAPI test client with mocked settings.
    """
    original_override = app.dependency_overrides.get(get_settings)
    app.dependency_overrides[get_settings] = lambda: mock_settings

    with TestClient(app) as test_client:
        yield test_client

    if original_override:
        app.dependency_overrides[get_settings] = original_override
    else:
        app.dependency_overrides.pop(get_settings, None)


# ==============================================================================
# DOMAIN FIXTURES
# ==============================================================================

@pytest.fixture
def sonnet() -> ModelInfo:
    """Claude 3.5 Sonnet priced at 3.0 / 15.0 per million tokens."""
    return ModelInfo(
        id="claude-3-5-sonnet-20241022",
        name="Claude 3.5 Sonnet",
        context_window=200_000,
        max_tokens=8192,
        supports_images=True,
        supports_prompt_cache=True,
        input_price=3.0,
        output_price=15.0,
        cache_writes_price=3.75,
        cache_reads_price=0.3,
        provider="anthropic",
    )


@pytest.fixture
def gpt4o() -> ModelInfo:
    return ModelInfo(
        id="gpt-4o",
        context_window=128_000,
        max_tokens=16_384,
        supports_images=True,
        supports_prompt_cache=False,
        input_price=2.5,
        output_price=10.0,
        provider="openai",
    )


@pytest.fixture
def short_history() -> list[ConversationTurn]:
    return [ConversationTurn(role="user", content="Hello")]
