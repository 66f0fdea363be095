"""Versioned API routes: provider catalogs and message streaming.

Configuration errors (`ConfigurationError` and subclasses) raised here are
turned into 400/404 responses by the exception handlers registered in
`conduit.main`, always before a response stream is opened.
"""

from typing import AsyncIterator, List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from conduit.config import Settings, get_settings
from conduit.core.errors import ModelNotFoundError
from conduit.core.logging_config import get_logger
from conduit.core.types import ModelInfo, OpenAICompatibleSettings, ProviderSettings, StreamEvent
from conduit.llm.handlers import AbortSignal, Handler, build_handler
from conduit.providers import ModelRegistry, OpenRouterCatalog, ProviderId

from .schemas import MessageRequest, ModelList, ProviderSummary, RefreshResult

logger = get_logger(__name__)

router = APIRouter()

SSE_MEDIA_TYPE = "text/event-stream"


# ==============================================================================
# DEPENDENCIES
# ==============================================================================


def get_registry(request: Request) -> ModelRegistry:
    return request.app.state.registry


def get_openrouter_catalog(request: Request) -> OpenRouterCatalog:
    return request.app.state.openrouter


async def current_models(request: Request, provider_id: str) -> List[ModelInfo]:
    """Return a provider's catalog, refreshing the remote one when it has one.

    A successful OpenRouter fetch replaces `app.state.registry` with a new
    registry; registries themselves are never modified.
    """
    registry = get_registry(request)
    if provider_id == ProviderId.OPENROUTER:
        fetched = await get_openrouter_catalog(request).get_models()
        if fetched:
            registry = registry.with_models(provider_id, fetched)
            request.app.state.registry = registry
    return list(registry.list_models(provider_id))


def with_environment_defaults(provider: ProviderSettings, settings: Settings) -> ProviderSettings:
    """Fill a blank API key (and Kodu's base URL) from the service configuration."""
    update = {}
    if provider.api_key is None:
        key = settings.api_key_for(provider.provider_id)
        if key is not None:
            update["api_key"] = key
    if provider.provider_id == ProviderId.KODU and not provider.base_url:
        update["base_url"] = settings.KODU_BASE_URL
    return provider.model_copy(update=update) if update else provider


def encode_sse(event: StreamEvent) -> str:
    return f"data: {event.model_dump_json()}\n\n"


# ==============================================================================
# PROVIDERS
# ==============================================================================


@router.get("/providers", response_model=List[ProviderSummary])
async def list_providers(registry: ModelRegistry = Depends(get_registry)) -> List[ProviderSummary]:
    return [ProviderSummary.from_config(config) for config in registry.providers()]


@router.get("/providers/{provider_id}/models", response_model=ModelList)
async def list_provider_models(provider_id: str, request: Request) -> ModelList:
    """Return a provider's model catalog.

    Raises:
        ProviderNotFoundError: Unknown provider (404).
    """
    get_registry(request).get_provider(provider_id)
    models = await current_models(request, provider_id)
    return ModelList(provider=provider_id, models=models)


@router.post("/providers/{provider_id}/models/refresh", response_model=RefreshResult)
async def refresh_provider_models(provider_id: str, request: Request) -> RefreshResult:
    """Invalidate a provider's remote catalog so the next read refetches it.

    Providers with a static catalog have nothing to invalidate.
    """
    get_registry(request).get_provider(provider_id)
    if provider_id != ProviderId.OPENROUTER:
        return RefreshResult(provider=provider_id, invalidated=False)
    await get_openrouter_catalog(request).invalidate()
    logger.info("catalog_invalidated", provider=provider_id)
    return RefreshResult(provider=provider_id, invalidated=True)


# ==============================================================================
# MESSAGES
# ==============================================================================


async def _event_stream(
    request: Request,
    handler: Handler,
    body: MessageRequest,
) -> AsyncIterator[str]:
    abort_signal = AbortSignal()
    try:
        async for event in handler.create_message_stream(
            system_prompt=body.system_prompt,
            history=body.history,
            abort_signal=abort_signal,
            model_id=body.model_id,
            sampling=body.sampling,
        ):
            if await request.is_disconnected():
                logger.info("client_disconnected", provider=handler.provider_id)
                abort_signal.abort()
                break
            yield encode_sse(event)
    finally:
        abort_signal.abort()


@router.post("/messages")
async def create_message(
    body: MessageRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """Stream a completion as server-sent events, one `StreamEvent` per event.

    Raises:
        ProviderNotFoundError: Unknown provider (404).
        ModelNotFoundError: Unknown model (404).
        ConfigurationError: Missing credentials or inconsistent settings (400).
    """
    provider = with_environment_defaults(body.provider, settings)
    provider_id = provider.provider_id

    if isinstance(provider, OpenAICompatibleSettings):
        catalog = [provider.to_model_info()]
    else:
        get_registry(request).get_provider(provider_id)
        catalog = await current_models(request, provider_id)

    selected = next((model for model in catalog if model.id == body.model_id), None)
    if selected is None:
        raise ModelNotFoundError(provider_id, body.model_id)
    handler = build_handler(provider, catalog, selected)

    logger.info("message_stream_requested", provider=provider_id, model_id=body.model_id)
    return StreamingResponse(
        _event_stream(request, handler, body),
        media_type=SSE_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache"},
    )
