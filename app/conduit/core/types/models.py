"""Defines model catalog types: per-model metadata and per-provider configuration.

`ModelInfo` entries are immutable once loaded and identified by
`(provider, id)`. A `ProviderConfig` groups the ordered catalog of one
backend together with the credential fields it needs before use.
"""

from typing import List, Optional, Tuple

from pydantic import Field, model_validator

from .base import CanonicalModel


# ═══════════════════════════════════════════════════════════════════════════
# MODEL METADATA
# ═══════════════════════════════════════════════════════════════════════════

class ModelInfo(CanonicalModel):
    """Pricing, limits and capability flags of a single upstream model.

    All prices are USD per million tokens.

    Invariant:
        When `supports_prompt_cache` is true and `input_price > 0`, both
        `cache_writes_price` and `cache_reads_price` are defined. Free models
        may omit cache pricing since it is necessarily zero.

    Attributes:
        id: Upstream model identifier.
        name: Display name (defaults to `id`).
        context_window: Maximum prompt + completion tokens.
        max_tokens: Maximum completion tokens.
        supports_images: Whether image content blocks are accepted.
        supports_prompt_cache: Whether the backend offers prompt caching.
        input_price: Price of uncached input tokens.
        output_price: Price of generated tokens.
        cache_writes_price: Price of tokens written to the prompt cache.
        cache_reads_price: Price of tokens read from the prompt cache.
        provider: Owning provider id.
        is_recommended: Highlighted in model pickers.
        is_thinking_model: Emits reasoning deltas.

    Example:
        >>> info = ModelInfo(
        ...     id="claude-3-5-sonnet-20241022",
        ...     context_window=200_000,
        ...     max_tokens=8192,
        ...     supports_prompt_cache=True,
        ...     input_price=3.0,
        ...     output_price=15.0,
        ...     cache_writes_price=3.75,
        ...     cache_reads_price=0.3,
        ...     provider="anthropic",
        ... )
        >>> info.key
        ('anthropic', 'claude-3-5-sonnet-20241022')
    """
    id: str = Field(min_length=1)
    name: Optional[str] = None
    context_window: int = Field(gt=0)
    max_tokens: int = Field(gt=0)
    supports_images: bool = False
    supports_prompt_cache: bool = False
    input_price: float = Field(ge=0)
    output_price: float = Field(ge=0)
    cache_writes_price: Optional[float] = Field(default=None, ge=0)
    cache_reads_price: Optional[float] = Field(default=None, ge=0)
    provider: str = Field(min_length=1)
    is_recommended: bool = False
    is_thinking_model: bool = False

    @model_validator(mode='after')
    def validate_cache_pricing(self) -> 'ModelInfo':
        """Ensure cached, paid models declare both cache prices."""
        if self.supports_prompt_cache and self.input_price > 0:
            missing = [
                field
                for field in ("cache_writes_price", "cache_reads_price")
                if getattr(self, field) is None
            ]
            if missing:
                raise ValueError(
                    f"Model {self.id!r} supports prompt caching but lacks: "
                    f"{', '.join(missing)}"
                )
        return self

    @property
    def key(self) -> Tuple[str, str]:
        """Identity of the model across providers."""
        return (self.provider, self.id)

    @property
    def display_name(self) -> str:
        return self.name or self.id


# ═══════════════════════════════════════════════════════════════════════════
# PROVIDER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

class ProviderConfig(CanonicalModel):
    """Static description of one backend and its model catalog.

    Built at process start from static definitions and replaced wholesale
    (see `with_models`) when a dynamically fetched catalog is refreshed.

    Attributes:
        id: Provider identifier.
        name: Display name.
        base_url: Default API base URL.
        models: Ordered catalog of models.
        required_fields: Settings fields that must be non-empty before use.
    """
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    base_url: str
    models: Tuple[ModelInfo, ...] = ()
    required_fields: Tuple[str, ...] = ()

    @model_validator(mode='after')
    def validate_catalog(self) -> 'ProviderConfig':
        """Ensure every model belongs to this provider and ids are unique."""
        seen: set[str] = set()
        for model in self.models:
            if model.provider != self.id:
                raise ValueError(
                    f"Model {model.id!r} declares provider {model.provider!r}, "
                    f"expected {self.id!r}"
                )
            if model.id in seen:
                raise ValueError(f"Duplicate model id {model.id!r} in provider {self.id!r}")
            seen.add(model.id)
        return self

    def with_models(self, models: List[ModelInfo]) -> 'ProviderConfig':
        """Return a copy of this config whose catalog is replaced by `models`."""
        return ProviderConfig(
            id=self.id,
            name=self.name,
            base_url=self.base_url,
            models=tuple(models),
            required_fields=self.required_fields,
        )

    def find_model(self, model_id: str) -> Optional[ModelInfo]:
        for model in self.models:
            if model.id == model_id:
                return model
        return None
