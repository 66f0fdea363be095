"""Provider identifiers, display names, default endpoints and adapter routing prefixes."""

from enum import Enum


class ProviderId(str, Enum):
    """Canonical provider identifiers.

    Settings and catalog entries carry these as plain strings; the enum
    exists for routing tables.
    """
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    DEEPSEEK = "deepseek"
    GOOGLE_GENAI = "google-genai"
    MISTRAL = "mistral"
    OPENROUTER = "openrouter"
    AIDER = "aider"
    OPENAI_COMPATIBLE = "openai-compatible"
    KODU = "kodu"


PROVIDER_NAMES: dict[str, str] = {
    ProviderId.ANTHROPIC: "Anthropic",
    ProviderId.OPENAI: "OpenAI",
    ProviderId.DEEPSEEK: "DeepSeek",
    ProviderId.GOOGLE_GENAI: "Google GenAI",
    ProviderId.MISTRAL: "Mistral",
    ProviderId.OPENROUTER: "OpenRouter",
    ProviderId.AIDER: "Aider",
    ProviderId.OPENAI_COMPATIBLE: "OpenAI Compatible",
    ProviderId.KODU: "Kodu",
}

DEFAULT_BASE_URLS: dict[str, str] = {
    ProviderId.ANTHROPIC: "https://api.anthropic.com",
    ProviderId.OPENAI: "https://api.openai.com/v1",
    ProviderId.DEEPSEEK: "https://api.deepseek.com/v1",
    ProviderId.GOOGLE_GENAI: "https://generativelanguage.googleapis.com/v1beta",
    ProviderId.MISTRAL: "https://api.mistral.ai/v1",
    ProviderId.OPENROUTER: "https://openrouter.ai/api/v1",
    ProviderId.AIDER: "http://localhost:8080/v1",
    ProviderId.OPENAI_COMPATIBLE: "",
    ProviderId.KODU: "https://www.kodu.ai",
}

# litellm model-string prefix per provider ("<prefix>/<model id>"). Aider and
# generic compatible endpoints speak the OpenAI wire format.
LITELLM_PREFIXES: dict[str, str] = {
    ProviderId.ANTHROPIC: "anthropic",
    ProviderId.OPENAI: "openai",
    ProviderId.DEEPSEEK: "deepseek",
    ProviderId.GOOGLE_GENAI: "gemini",
    ProviderId.MISTRAL: "mistral",
    ProviderId.OPENROUTER: "openrouter",
    ProviderId.AIDER: "openai",
    ProviderId.OPENAI_COMPATIBLE: "openai",
}

# Providers whose adapter needs an explicit api_base even when the caller
# did not override it.
EXPLICIT_BASE_URL_PROVIDERS = frozenset({
    ProviderId.AIDER.value,
    ProviderId.OPENAI_COMPATIBLE.value,
})

# Settings fields that must be non-empty before a handler can be built.
REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    ProviderId.ANTHROPIC: ("api_key",),
    ProviderId.OPENAI: ("api_key",),
    ProviderId.DEEPSEEK: ("api_key",),
    ProviderId.GOOGLE_GENAI: ("api_key",),
    ProviderId.MISTRAL: ("api_key",),
    ProviderId.OPENROUTER: ("api_key",),
    ProviderId.AIDER: ("api_key", "base_url"),
    ProviderId.OPENAI_COMPATIBLE: ("base_url",),
    ProviderId.KODU: ("api_key",),
}
