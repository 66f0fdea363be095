"""Handler construction from provider settings.

Pure construction: validation happens here, network I/O only when a stream
is requested.
"""

from typing import Optional, Sequence

import httpx

from conduit.core.errors import ConfigurationError, MissingCredentialsError
from conduit.core.logging_config import get_logger
from conduit.core.types import ModelInfo, OpenAICompatibleSettings, ProviderSettings
from conduit.llm.prompt_cache import PromptCacheInjector
from conduit.providers.constants import REQUIRED_FIELDS, ProviderId

from .adapter import AdapterHandler
from .base import Handler
from .native import NativeHandler

logger = get_logger(__name__)


def build_handler(
    provider_settings: ProviderSettings,
    model_catalog: Sequence[ModelInfo],
    selected_model: Optional[ModelInfo] = None,
    *,
    injector: Optional[PromptCacheInjector] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Handler:
    """Build the handler for `provider_settings`.

    Kodu is served by `NativeHandler`; every other provider goes through
    `AdapterHandler`. For the OpenAI-compatible provider the selected model
    defaults to the one described by the settings.

    Raises:
        MissingCredentialsError: If a required settings field is blank.
        ConfigurationError: If no model is selected, or the selected model
            belongs to another provider.
    """
    provider = provider_settings.provider_id

    missing = provider_settings.missing_fields(REQUIRED_FIELDS.get(provider, ()))
    if missing:
        raise MissingCredentialsError(provider, missing)

    catalog = list(model_catalog)
    if isinstance(provider_settings, OpenAICompatibleSettings):
        own_model = provider_settings.to_model_info()
        if selected_model is None:
            selected_model = own_model
        if all(model.id != own_model.id for model in catalog):
            catalog.append(own_model)

    if selected_model is None:
        raise ConfigurationError(f"No model selected for provider {provider!r}")
    if selected_model.provider != provider:
        raise ConfigurationError(
            f"Model {selected_model.id!r} belongs to provider {selected_model.provider!r}, "
            f"not {provider!r}"
        )

    logger.debug("handler_built", provider=provider, model_id=selected_model.id)
    if provider == ProviderId.KODU:
        return NativeHandler(
            provider_settings, selected_model, catalog, injector, client=http_client
        )
    return AdapterHandler(provider_settings, selected_model, catalog, injector)
