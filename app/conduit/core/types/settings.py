"""Defines per-provider connection settings as a closed sum type.

Each backend gets one explicit settings class with a literal `provider_id`
discriminator. `ProviderSettings` is the union of all of them and is
validated as a whole at construction, so a settings object can never carry
fields that belong to another provider.
"""

from typing import Annotated, List, Literal, Optional, Sequence, Union

from pydantic import Field, SecretStr, model_validator

from .base import CanonicalModel
from .models import ModelInfo


class _ProviderSettingsBase(CanonicalModel):
    """Fields shared by every provider.

    Attributes:
        api_key: Opaque credential passed through to the backend.
        base_url: Override of the provider's default API base URL.
    """
    api_key: Optional[SecretStr] = None
    base_url: Optional[str] = None

    def missing_fields(self, required: Sequence[str]) -> List[str]:
        """Return the names in `required` whose value is absent or blank."""
        missing = []
        for field in required:
            value = getattr(self, field, None)
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(field)
        return missing

    def secret(self) -> Optional[str]:
        """The API key in clear text, for handing to an HTTP client."""
        if self.api_key is None:
            return None
        return self.api_key.get_secret_value()


class AnthropicSettings(_ProviderSettingsBase):
    provider_id: Literal["anthropic"] = "anthropic"


class OpenAISettings(_ProviderSettingsBase):
    provider_id: Literal["openai"] = "openai"


class DeepSeekSettings(_ProviderSettingsBase):
    provider_id: Literal["deepseek"] = "deepseek"


class GoogleGenAISettings(_ProviderSettingsBase):
    provider_id: Literal["google-genai"] = "google-genai"


class MistralSettings(_ProviderSettingsBase):
    provider_id: Literal["mistral"] = "mistral"


class OpenRouterSettings(_ProviderSettingsBase):
    provider_id: Literal["openrouter"] = "openrouter"


class AiderSettings(_ProviderSettingsBase):
    """Aider proxy. Requires an explicit base URL (usually a local server)."""
    provider_id: Literal["aider"] = "aider"


class KoduSettings(_ProviderSettingsBase):
    """Kodu backend, served through its native streaming protocol."""
    provider_id: Literal["kodu"] = "kodu"


class OpenAICompatibleSettings(_ProviderSettingsBase):
    """Any OpenAI-compatible endpoint plus a description of the model it serves.

    The catalog of this provider is the single model built by
    `to_model_info()`.

    Example:
        >>> settings = OpenAICompatibleSettings(
        ...     base_url="http://localhost:11434/v1",
        ...     model_id="qwen2.5-coder",
        ... )
        >>> settings.to_model_info().provider
        'openai-compatible'
    """
    provider_id: Literal["openai-compatible"] = "openai-compatible"
    model_id: str = Field(min_length=1)
    context_window: int = Field(default=128_000, gt=0)
    max_tokens: int = Field(default=4096, gt=0)
    supports_images: bool = False
    supports_prompt_cache: bool = False
    input_price: float = Field(default=0.0, ge=0)
    output_price: float = Field(default=0.0, ge=0)
    cache_writes_price: Optional[float] = Field(default=None, ge=0)
    cache_reads_price: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode='after')
    def validate_cache_pricing(self) -> 'OpenAICompatibleSettings':
        """Reject the described model early, before any handler is built."""
        if self.supports_prompt_cache and self.input_price > 0:
            if self.cache_writes_price is None or self.cache_reads_price is None:
                raise ValueError(
                    f"Model {self.model_id!r} supports prompt caching but lacks "
                    "cache_writes_price or cache_reads_price"
                )
        return self

    def to_model_info(self) -> ModelInfo:
        return ModelInfo(
            id=self.model_id,
            context_window=self.context_window,
            max_tokens=self.max_tokens,
            supports_images=self.supports_images,
            supports_prompt_cache=self.supports_prompt_cache,
            input_price=self.input_price,
            output_price=self.output_price,
            cache_writes_price=self.cache_writes_price,
            cache_reads_price=self.cache_reads_price,
            provider=self.provider_id,
        )


ProviderSettings = Annotated[
    Union[
        AnthropicSettings,
        OpenAISettings,
        DeepSeekSettings,
        GoogleGenAISettings,
        MistralSettings,
        OpenRouterSettings,
        AiderSettings,
        KoduSettings,
        OpenAICompatibleSettings,
    ],
    Field(discriminator='provider_id')
]
