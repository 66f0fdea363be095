"""Request and response bodies of the HTTP surface."""

from typing import List, Tuple

from pydantic import Field

from conduit.core.types import CanonicalModel, ConversationTurn, ModelInfo, ProviderConfig, ProviderSettings
from conduit.llm.handlers import SamplingParams


class ProviderSummary(CanonicalModel):
    """Public description of one provider, without its model list."""
    id: str
    name: str
    base_url: str
    required_fields: Tuple[str, ...]
    model_count: int

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "ProviderSummary":
        return cls(
            id=config.id,
            name=config.name,
            base_url=config.base_url,
            required_fields=config.required_fields,
            model_count=len(config.models),
        )


class ModelList(CanonicalModel):
    provider: str
    models: List[ModelInfo]


class RefreshResult(CanonicalModel):
    provider: str
    invalidated: bool


class MessageRequest(CanonicalModel):
    """Body of `POST /messages`.

    Example:
        >>> MessageRequest(
        ...     provider={"provider_id": "anthropic", "api_key": "sk-..."},
        ...     model_id="claude-3-5-sonnet-20241022",
        ...     history=[{"role": "user", "content": "Hello"}],
        ... )
    """
    provider: ProviderSettings
    model_id: str = Field(min_length=1)
    system_prompt: List[str] = Field(default_factory=list)
    history: List[ConversationTurn] = Field(min_length=1)
    sampling: SamplingParams = Field(default_factory=SamplingParams)
