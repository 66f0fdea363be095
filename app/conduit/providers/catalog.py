"""Static model catalogs, one `ProviderConfig` per provider.

Prices are USD per million tokens. Anthropic-style caches bill writes at
1.25x and reads at 0.1x the input price; OpenAI-style automatic caches bill
writes at the input price and reads at a discount.
"""

from typing import Dict

from conduit.core.types import ModelInfo, ProviderConfig

from .constants import DEFAULT_BASE_URLS, PROVIDER_NAMES, REQUIRED_FIELDS, ProviderId


def _provider(provider_id: ProviderId, models: list[dict]) -> ProviderConfig:
    return ProviderConfig(
        id=provider_id.value,
        name=PROVIDER_NAMES[provider_id],
        base_url=DEFAULT_BASE_URLS[provider_id],
        models=tuple(ModelInfo(provider=provider_id.value, **entry) for entry in models),
        required_fields=REQUIRED_FIELDS[provider_id],
    )


# =============================================================================
# ANTHROPIC
# =============================================================================

_ANTHROPIC_MODELS = [
    {
        "id": "claude-3-7-sonnet-20250219",
        "name": "Claude 3.7 Sonnet",
        "context_window": 200_000,
        "max_tokens": 8192,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 3.0,
        "output_price": 15.0,
        "cache_writes_price": 3.75,
        "cache_reads_price": 0.3,
        "is_recommended": True,
    },
    {
        "id": "claude-3-5-sonnet-20241022",
        "name": "Claude 3.5 Sonnet",
        "context_window": 200_000,
        "max_tokens": 8192,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 3.0,
        "output_price": 15.0,
        "cache_writes_price": 3.75,
        "cache_reads_price": 0.3,
    },
    {
        "id": "claude-3-5-haiku-20241022",
        "name": "Claude 3.5 Haiku",
        "context_window": 200_000,
        "max_tokens": 8192,
        "supports_images": False,
        "supports_prompt_cache": True,
        "input_price": 0.8,
        "output_price": 4.0,
        "cache_writes_price": 1.0,
        "cache_reads_price": 0.08,
    },
    {
        "id": "claude-3-opus-20240229",
        "name": "Claude 3 Opus",
        "context_window": 200_000,
        "max_tokens": 4096,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 15.0,
        "output_price": 75.0,
        "cache_writes_price": 18.75,
        "cache_reads_price": 1.5,
    },
    {
        "id": "claude-3-haiku-20240307",
        "name": "Claude 3 Haiku",
        "context_window": 200_000,
        "max_tokens": 4096,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 0.25,
        "output_price": 1.25,
        "cache_writes_price": 0.3125,
        "cache_reads_price": 0.025,
    },
]

# =============================================================================
# OPENAI
# =============================================================================

_OPENAI_MODELS = [
    {
        "id": "gpt-4o",
        "name": "GPT-4o",
        "context_window": 128_000,
        "max_tokens": 16_384,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 2.5,
        "output_price": 10.0,
        "cache_writes_price": 2.5,
        "cache_reads_price": 1.25,
        "is_recommended": True,
    },
    {
        "id": "gpt-4o-mini",
        "name": "GPT-4o Mini",
        "context_window": 128_000,
        "max_tokens": 16_384,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 0.15,
        "output_price": 0.6,
        "cache_writes_price": 0.15,
        "cache_reads_price": 0.075,
    },
    {
        "id": "o1",
        "name": "o1",
        "context_window": 200_000,
        "max_tokens": 100_000,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 15.0,
        "output_price": 60.0,
        "cache_writes_price": 15.0,
        "cache_reads_price": 7.5,
        "is_thinking_model": True,
    },
    {
        "id": "o3-mini",
        "name": "o3-mini",
        "context_window": 200_000,
        "max_tokens": 100_000,
        "supports_images": False,
        "supports_prompt_cache": True,
        "input_price": 1.1,
        "output_price": 4.4,
        "cache_writes_price": 1.1,
        "cache_reads_price": 0.55,
        "is_thinking_model": True,
    },
]

# =============================================================================
# DEEPSEEK
# =============================================================================

_DEEPSEEK_MODELS = [
    {
        "id": "deepseek-chat",
        "name": "DeepSeek V3",
        "context_window": 64_000,
        "max_tokens": 8192,
        "supports_images": False,
        "supports_prompt_cache": True,
        "input_price": 0.27,
        "output_price": 1.1,
        "cache_writes_price": 0.27,
        "cache_reads_price": 0.07,
        "is_recommended": True,
    },
    {
        "id": "deepseek-reasoner",
        "name": "DeepSeek R1",
        "context_window": 64_000,
        "max_tokens": 8192,
        "supports_images": False,
        "supports_prompt_cache": True,
        "input_price": 0.55,
        "output_price": 2.19,
        "cache_writes_price": 0.55,
        "cache_reads_price": 0.14,
        "is_thinking_model": True,
    },
]

# =============================================================================
# GOOGLE GENAI
# =============================================================================

_GOOGLE_GENAI_MODELS = [
    {
        "id": "gemini-2.0-flash-001",
        "name": "Gemini 2.0 Flash",
        "context_window": 1_048_576,
        "max_tokens": 8192,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 0.1,
        "output_price": 0.4,
        "cache_writes_price": 0.1,
        "cache_reads_price": 0.025,
        "is_recommended": True,
    },
    {
        "id": "gemini-1.5-pro-002",
        "name": "Gemini 1.5 Pro",
        "context_window": 2_097_152,
        "max_tokens": 8192,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 1.25,
        "output_price": 5.0,
        "cache_writes_price": 1.25,
        "cache_reads_price": 0.3125,
    },
    {
        "id": "gemini-1.5-flash-002",
        "name": "Gemini 1.5 Flash",
        "context_window": 1_048_576,
        "max_tokens": 8192,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 0.075,
        "output_price": 0.3,
        "cache_writes_price": 0.075,
        "cache_reads_price": 0.01875,
    },
    {
        # Free experimental tier: cache pricing is necessarily zero and omitted.
        "id": "gemini-2.0-flash-thinking-exp-01-21",
        "name": "Gemini 2.0 Flash Thinking (Experimental)",
        "context_window": 1_048_576,
        "max_tokens": 65_536,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 0.0,
        "output_price": 0.0,
        "is_thinking_model": True,
    },
]

# =============================================================================
# MISTRAL
# =============================================================================

_MISTRAL_MODELS = [
    {
        "id": "mistral-large-latest",
        "name": "Mistral Large",
        "context_window": 128_000,
        "max_tokens": 8192,
        "input_price": 2.0,
        "output_price": 6.0,
        "is_recommended": True,
    },
    {
        "id": "codestral-latest",
        "name": "Codestral",
        "context_window": 256_000,
        "max_tokens": 8192,
        "input_price": 0.3,
        "output_price": 0.9,
    },
    {
        "id": "ministral-8b-latest",
        "name": "Ministral 8B",
        "context_window": 128_000,
        "max_tokens": 8192,
        "input_price": 0.1,
        "output_price": 0.1,
    },
]

# =============================================================================
# OPENROUTER (seed catalog; refreshed from the remote registry)
# =============================================================================

_OPENROUTER_MODELS = [
    {
        "id": "anthropic/claude-3.5-sonnet",
        "name": "Anthropic: Claude 3.5 Sonnet",
        "context_window": 200_000,
        "max_tokens": 8192,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 3.0,
        "output_price": 15.0,
        "cache_writes_price": 3.75,
        "cache_reads_price": 0.3,
        "is_recommended": True,
    },
    {
        "id": "deepseek/deepseek-chat",
        "name": "DeepSeek: DeepSeek V3",
        "context_window": 64_000,
        "max_tokens": 8192,
        "supports_images": False,
        "supports_prompt_cache": True,
        "input_price": 0.0,
        "output_price": 0.28,
        "cache_writes_price": 0.14,
        "cache_reads_price": 0.014,
    },
    {
        "id": "openai/gpt-4o",
        "name": "OpenAI: GPT-4o",
        "context_window": 128_000,
        "max_tokens": 16_384,
        "supports_images": True,
        "input_price": 2.5,
        "output_price": 10.0,
    },
]

# =============================================================================
# AIDER (OpenAI-compatible proxy in front of several vendors)
# =============================================================================

_AIDER_MODELS = [
    {"id": "gpt-4o", "name": "Aider GPT-4o", "context_window": 128_000, "max_tokens": 16_384,
     "supports_images": True, "supports_prompt_cache": True, "input_price": 2.5, "output_price": 10.0,
     "cache_writes_price": 3.125, "cache_reads_price": 0.25, "is_recommended": True},
    {"id": "gpt-4o-mini", "name": "Aider GPT-4o Mini", "context_window": 128_000, "max_tokens": 16_384,
     "supports_images": True, "supports_prompt_cache": True, "input_price": 0.15, "output_price": 0.6,
     "cache_writes_price": 0.1875, "cache_reads_price": 0.015},
    {"id": "gpt-4", "name": "Aider GPT-4", "context_window": 128_000, "max_tokens": 4096,
     "supports_images": True, "input_price": 30.0, "output_price": 60.0},
    {"id": "gpt-4-turbo", "name": "Aider GPT-4 Turbo", "context_window": 128_000, "max_tokens": 4096,
     "supports_images": True, "input_price": 10.0, "output_price": 30.0},
    {"id": "gpt-3.5-turbo", "name": "Aider GPT-3.5 Turbo", "context_window": 16_385, "max_tokens": 4096,
     "input_price": 0.5, "output_price": 1.5},
    {"id": "o1-preview", "name": "Aider O1 Preview", "context_window": 128_000, "max_tokens": 32_768,
     "supports_images": True, "input_price": 15.0, "output_price": 60.0, "is_thinking_model": True},
    {"id": "o1-mini", "name": "Aider O1 Mini", "context_window": 128_000, "max_tokens": 65_536,
     "supports_images": True, "input_price": 3.0, "output_price": 12.0, "is_thinking_model": True},
    {"id": "claude-3-5-sonnet-20241022", "name": "Aider Claude 3.5 Sonnet", "context_window": 200_000,
     "max_tokens": 8096, "supports_images": True, "supports_prompt_cache": True, "input_price": 3.0,
     "output_price": 15.0, "cache_writes_price": 3.75, "cache_reads_price": 0.3, "is_recommended": True},
    {"id": "claude-3-5-haiku-20241022", "name": "Aider Claude 3.5 Haiku", "context_window": 200_000,
     "max_tokens": 8096, "supports_prompt_cache": True, "input_price": 0.8, "output_price": 4.0,
     "cache_writes_price": 1.0, "cache_reads_price": 0.08},
    {"id": "claude-3-opus-20240229", "name": "Aider Claude 3 Opus", "context_window": 200_000,
     "max_tokens": 4096, "supports_images": True, "supports_prompt_cache": True, "input_price": 15.0,
     "output_price": 75.0, "cache_writes_price": 18.75, "cache_reads_price": 1.5},
    {"id": "claude-3-haiku-20240307", "name": "Aider Claude 3 Haiku", "context_window": 200_000,
     "max_tokens": 4096, "supports_images": True, "supports_prompt_cache": True, "input_price": 0.25,
     "output_price": 1.25, "cache_writes_price": 0.3125, "cache_reads_price": 0.025},
    {"id": "gemini-2.0-flash-exp", "name": "Aider Gemini 2.0 Flash Exp", "context_window": 1_000_000,
     "max_tokens": 8192, "supports_images": True, "supports_prompt_cache": True, "input_price": 0.0,
     "output_price": 0.0, "cache_writes_price": 0.0, "cache_reads_price": 0.0},
    {"id": "gemini-1.5-pro", "name": "Aider Gemini 1.5 Pro", "context_window": 2_000_000,
     "max_tokens": 8192, "supports_images": True, "supports_prompt_cache": True, "input_price": 1.25,
     "output_price": 5.0, "cache_writes_price": 1.5625, "cache_reads_price": 0.125},
    {"id": "gemini-1.5-flash", "name": "Aider Gemini 1.5 Flash", "context_window": 1_000_000,
     "max_tokens": 8192, "supports_images": True, "supports_prompt_cache": True, "input_price": 0.075,
     "output_price": 0.3, "cache_writes_price": 0.09375, "cache_reads_price": 0.0075},
    {"id": "deepseek-chat", "name": "Aider DeepSeek Chat", "context_window": 64_000, "max_tokens": 8192,
     "supports_prompt_cache": True, "input_price": 0.14, "output_price": 0.28,
     "cache_writes_price": 0.14, "cache_reads_price": 0.014},
    {"id": "deepseek-coder", "name": "Aider DeepSeek Coder", "context_window": 64_000, "max_tokens": 8192,
     "input_price": 0.14, "output_price": 0.28},
    {"id": "mistral-large-latest", "name": "Aider Mistral Large", "context_window": 128_000,
     "max_tokens": 8192, "input_price": 2.0, "output_price": 6.0},
    {"id": "mistral-medium-latest", "name": "Aider Mistral Medium", "context_window": 32_000,
     "max_tokens": 8192, "input_price": 2.7, "output_price": 8.1},
    {"id": "meta-llama/llama-3.1-70b-instruct", "name": "Aider Llama 3.1 70B", "context_window": 128_000,
     "max_tokens": 8192, "input_price": 0.35, "output_price": 0.4},
    {"id": "meta-llama/llama-3.1-405b-instruct", "name": "Aider Llama 3.1 405B", "context_window": 128_000,
     "max_tokens": 8192, "input_price": 2.7, "output_price": 2.7},
]

# =============================================================================
# KODU (native streaming protocol in front of Anthropic models)
# =============================================================================

_KODU_MODELS = [
    {
        "id": "claude-3-5-sonnet-20241022",
        "name": "Kodu Claude 3.5 Sonnet",
        "context_window": 200_000,
        "max_tokens": 8192,
        "supports_images": True,
        "supports_prompt_cache": True,
        "input_price": 3.0,
        "output_price": 15.0,
        "cache_writes_price": 3.75,
        "cache_reads_price": 0.3,
        "is_recommended": True,
    },
    {
        "id": "claude-3-5-haiku-20241022",
        "name": "Kodu Claude 3.5 Haiku",
        "context_window": 200_000,
        "max_tokens": 8192,
        "supports_images": False,
        "supports_prompt_cache": True,
        "input_price": 0.8,
        "output_price": 4.0,
        "cache_writes_price": 1.0,
        "cache_reads_price": 0.08,
    },
]


def build_static_catalog() -> Dict[str, ProviderConfig]:
    """Build the static provider table, keyed by provider id, in display order.

    The OpenAI-compatible provider starts with an empty catalog; its single
    model comes from the caller's settings.
    """
    configs = [
        _provider(ProviderId.ANTHROPIC, _ANTHROPIC_MODELS),
        _provider(ProviderId.OPENAI, _OPENAI_MODELS),
        _provider(ProviderId.DEEPSEEK, _DEEPSEEK_MODELS),
        _provider(ProviderId.GOOGLE_GENAI, _GOOGLE_GENAI_MODELS),
        _provider(ProviderId.MISTRAL, _MISTRAL_MODELS),
        _provider(ProviderId.OPENROUTER, _OPENROUTER_MODELS),
        _provider(ProviderId.AIDER, _AIDER_MODELS),
        _provider(ProviderId.OPENAI_COMPATIBLE, []),
        _provider(ProviderId.KODU, _KODU_MODELS),
    ]
    return {config.id: config for config in configs}
