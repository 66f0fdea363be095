"""Read-only provider → model metadata table.

A `ModelRegistry` never changes after construction; refreshing a
dynamically fetched catalog produces a new registry via `with_models`.
Immutable data needs no locking, so a registry can be shared freely between
concurrent streams.
"""

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

from conduit.core.errors import ModelNotFoundError, ProviderNotFoundError
from conduit.core.types import ModelInfo, ProviderConfig

from .catalog import build_static_catalog


class ModelRegistry:
    """Lookup table of provider configurations.

    Example:
        >>> registry = ModelRegistry.default()
        >>> registry.lookup("anthropic", "claude-3-5-sonnet-20241022").input_price
        3.0
    """

    def __init__(self, providers: Mapping[str, ProviderConfig] | Iterable[ProviderConfig]) -> None:
        if isinstance(providers, Mapping):
            table: Dict[str, ProviderConfig] = dict(providers)
        else:
            table = {config.id: config for config in providers}
        for key, config in table.items():
            if key != config.id:
                raise ValueError(f"Registry key {key!r} does not match provider id {config.id!r}")
        self._providers = MappingProxyType(table)

    @classmethod
    def default(cls) -> "ModelRegistry":
        """Build a registry from the static catalog."""
        return cls(build_static_catalog())

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_provider(self, provider: str) -> ProviderConfig:
        """Return a provider's configuration.

        Raises:
            ProviderNotFoundError: If the provider is not registered.
        """
        try:
            return self._providers[provider]
        except KeyError:
            raise ProviderNotFoundError(provider) from None

    def lookup(self, provider: str, model_id: str) -> ModelInfo:
        """Return the metadata of `model_id` served by `provider`.

        Raises:
            ProviderNotFoundError: If the provider is not registered.
            ModelNotFoundError: If the provider has no such model.
        """
        model = self.get_provider(provider).find_model(model_id)
        if model is None:
            raise ModelNotFoundError(provider, model_id)
        return model

    def list_models(self, provider: str) -> Tuple[ModelInfo, ...]:
        """Return a provider's models in declared order."""
        return self.get_provider(provider).models

    def provider_ids(self) -> List[str]:
        return list(self._providers)

    def providers(self) -> List[ProviderConfig]:
        return list(self._providers.values())

    def all_models(self) -> List[ModelInfo]:
        """Flat list of every model of every provider."""
        return [model for config in self._providers.values() for model in config.models]

    def __contains__(self, provider: object) -> bool:
        return provider in self._providers

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def with_models(self, provider: str, models: Iterable[ModelInfo]) -> "ModelRegistry":
        """Return a new registry with `provider`'s catalog replaced.

        An empty `models` leaves the current catalog in place, so a failed
        remote refresh never wipes the known models.
        """
        models = list(models)
        config = self.get_provider(provider)
        if not models:
            return self
        table = dict(self._providers)
        table[provider] = config.with_models(models)
        return ModelRegistry(table)
