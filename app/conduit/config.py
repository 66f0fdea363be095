"""Application configuration management via pydantic-settings.

Centralize all configuration parameters for the Conduit project. Load settings
from environment variables and/or a `.env` file. Provide type validation,
default values, and per-provider credential lookup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide configuration settings.

    Attributes:
        PROJECT_NAME: Display name for the application.
        VERSION: Semantic version string.
        ENVIRONMENT: Deployment environment identifier.
        LOG_LEVEL: Minimum logging verbosity level.
        API_V1_STR: Base path prefix for API v1 endpoints.
        CACHE_DIR: Directory holding durable model catalog cache records.
        MODEL_CATALOG_TTL_SECONDS: Maximum age of a cached remote catalog.
        OPENROUTER_MODELS_URL: Models-listing endpoint of the OpenRouter registry.
        KODU_BASE_URL: Base URL of the Kodu inference service.
        ANTHROPIC_API_KEY: API key for Anthropic services.
        OPENAI_API_KEY: API key for OpenAI services.
        DEEPSEEK_API_KEY: API key for DeepSeek services.
        GEMINI_API_KEY: API key for Google Gemini services.
        MISTRAL_API_KEY: API key for Mistral services.
        OPENROUTER_API_KEY: API key for OpenRouter services.
        KODU_API_KEY: API key for Kodu services.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # ==========================================================================
    # PROJECT METADATA
    # ==========================================================================
    PROJECT_NAME: str = "Conduit"
    VERSION: str = "0.1.0"

    # ==========================================================================
    # ENVIRONMENT & LOGGING
    # ==========================================================================
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    LOG_LEVEL: Literal["debug", "info", "warning", "error", "critical"] = "info"
    LOGGING_NOISY_MODULES: list[str] = [
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "httpcore",
        "asyncio",
        "LiteLLM",
    ]

    # ==========================================================================
    # HTTP SURFACE
    # ==========================================================================
    API_V1_STR: str = "/api/v1"

    # ==========================================================================
    # MODEL CATALOG CACHE
    # ==========================================================================
    CACHE_DIR: Path = Path(".conduit") / "cache"
    MODEL_CATALOG_TTL_SECONDS: float = 60 * 60
    OPENROUTER_MODELS_URL: str = "https://openrouter.ai/api/v1/models"

    # ==========================================================================
    # NATIVE PROTOCOL BACKEND
    # ==========================================================================
    KODU_BASE_URL: str = "https://www.kodu.ai"

    # ==========================================================================
    # LLM PROVIDER API KEYS
    # ==========================================================================
    ANTHROPIC_API_KEY: Optional[SecretStr] = None
    OPENAI_API_KEY: Optional[SecretStr] = None
    DEEPSEEK_API_KEY: Optional[SecretStr] = None
    GEMINI_API_KEY: Optional[SecretStr] = None
    MISTRAL_API_KEY: Optional[SecretStr] = None
    OPENROUTER_API_KEY: Optional[SecretStr] = None
    KODU_API_KEY: Optional[SecretStr] = None

    @field_validator("MODEL_CATALOG_TTL_SECONDS")
    @classmethod
    def validate_catalog_ttl(cls, v: float) -> float:
        """Reject non-positive cache lifetimes.

        Args:
            v: The TTL value in seconds.

        Returns:
            The validated TTL.

        Raises:
            ValueError: If the TTL is zero or negative.
        """
        if v <= 0:
            raise ValueError("MODEL_CATALOG_TTL_SECONDS must be greater than zero")
        return v

    def api_key_for(self, provider_id: str) -> Optional[SecretStr]:
        """Return the environment-provided credential for a provider, if any.

        Args:
            provider_id: Canonical provider identifier (e.g. "anthropic").

        Returns:
            The matching API key, or None when no key is configured.
        """
        keys = {
            "anthropic": self.ANTHROPIC_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "deepseek": self.DEEPSEEK_API_KEY,
            "google-genai": self.GEMINI_API_KEY,
            "mistral": self.MISTRAL_API_KEY,
            "openrouter": self.OPENROUTER_API_KEY,
            "kodu": self.KODU_API_KEY,
        }
        return keys.get(provider_id)


# ==============================================================================
# DEPENDENCY INJECTION
# ==============================================================================


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton instance of the application settings.

    Use as a FastAPI dependency to inject configuration into route handlers.

    Returns:
        The singleton Settings instance.

    Example:
        >>> def get_registry(settings: Settings = Depends(get_settings)):
        ...     pass
    """
    return Settings()
