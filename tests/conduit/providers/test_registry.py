"""Test suite for the read-only `ModelRegistry`."""

import pytest

from conduit.core.errors import ModelNotFoundError, ProviderNotFoundError
from conduit.core.types import ModelInfo, ProviderConfig
from conduit.providers import ModelRegistry


@pytest.fixture
def registry() -> ModelRegistry:
    return ModelRegistry.default()


@pytest.fixture
def remote_model() -> ModelInfo:
    return ModelInfo(
        id="mistralai/mistral-large",
        context_window=128_000,
        max_tokens=4096,
        input_price=2.0,
        output_price=6.0,
        provider="openrouter",
    )


class TestLookup:
    """Provider and model resolution."""

    def test_lookup_known_model(self, registry: ModelRegistry) -> None:
        """Should return the catalog entry with its prices."""
        model = registry.lookup("anthropic", "claude-3-5-sonnet-20241022")
        assert model.input_price == 3.0
        assert model.output_price == 15.0

    def test_unknown_provider(self, registry: ModelRegistry) -> None:
        """Should raise ProviderNotFoundError for unknown providers."""
        with pytest.raises(ProviderNotFoundError):
            registry.lookup("acme", "anything")

    def test_unknown_model(self, registry: ModelRegistry) -> None:
        """Should raise ModelNotFoundError for unknown model ids."""
        with pytest.raises(ModelNotFoundError) as exc_info:
            registry.lookup("anthropic", "claude-0")
        assert exc_info.value.model_id == "claude-0"

    def test_list_models_preserves_order(self, registry: ModelRegistry) -> None:
        """Should list models in declared order."""
        ids = [model.id for model in registry.list_models("anthropic")]
        assert ids[0] == "claude-3-7-sonnet-20250219"
        assert "claude-3-5-sonnet-20241022" in ids

    def test_list_models_unknown_provider(self, registry: ModelRegistry) -> None:
        with pytest.raises(ProviderNotFoundError):
            registry.list_models("acme")

    def test_contains(self, registry: ModelRegistry) -> None:
        assert "kodu" in registry
        assert "acme" not in registry

    def test_all_models_spans_providers(self, registry: ModelRegistry) -> None:
        """Should flatten every provider's catalog."""
        providers = {model.provider for model in registry.all_models()}
        assert {"anthropic", "openai", "aider", "kodu"} <= providers


class TestConstruction:
    """Construction from mappings and iterables."""

    def test_from_iterable(self) -> None:
        config = ProviderConfig(id="anthropic", name="Anthropic", base_url="")
        assert ModelRegistry([config]).provider_ids() == ["anthropic"]

    def test_rejects_mismatched_key(self) -> None:
        """Should reject a mapping key that differs from the provider id."""
        config = ProviderConfig(id="anthropic", name="Anthropic", base_url="")
        with pytest.raises(ValueError):
            ModelRegistry({"openai": config})


class TestRefresh:
    """Refreshing builds a new registry."""

    def test_with_models_returns_new_registry(self, registry: ModelRegistry, remote_model: ModelInfo) -> None:
        """Should replace one provider's catalog without touching the original."""
        before = registry.list_models("openrouter")

        refreshed = registry.with_models("openrouter", [remote_model])

        assert refreshed is not registry
        assert refreshed.list_models("openrouter") == (remote_model,)
        assert registry.list_models("openrouter") == before
        assert refreshed.list_models("anthropic") == registry.list_models("anthropic")

    def test_empty_refresh_keeps_catalog(self, registry: ModelRegistry) -> None:
        """Should never wipe a catalog with an empty refresh."""
        assert registry.with_models("openrouter", []) is registry

    def test_refresh_unknown_provider(self, registry: ModelRegistry, remote_model: ModelInfo) -> None:
        with pytest.raises(ProviderNotFoundError):
            registry.with_models("acme", [remote_model])
