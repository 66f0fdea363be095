"""FastAPI application entry point for the Conduit streaming service.

Define the FastAPI application instance, register middleware and routes,
and configure the application lifespan. All side effects (logging
configuration, the shared HTTP client, catalog caches) are confined to the
lifespan context manager so initialization order stays predictable.
"""

import logging.config
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import httpx
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from conduit.api.middleware import RequestCorrelationMiddleware
from conduit.api.routes import router
from conduit.config import Settings, get_settings
from conduit.core.errors import ConfigurationError, ModelNotFoundError, ProviderNotFoundError
from conduit.core.logging_config import (
    configure_structlog_wrapper,
    get_logger,
    get_logging_config,
)
from conduit.providers import ModelRegistry, OpenRouterCatalog

CATALOG_FETCH_TIMEOUT_SECONDS = 30.0


def _resolve_settings(app: FastAPI) -> Settings:
    """Honor dependency overrides so tests can swap the configuration."""
    return app.dependency_overrides.get(get_settings, get_settings)()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle events.

    Startup configures logging, then builds the model registry, the shared
    HTTP client and the OpenRouter catalog cache, and attaches them to
    `app.state`. Shutdown closes the HTTP client.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control returns to the application after startup completes.
    """
    # === STARTUP SEQUENCE ===

    settings = _resolve_settings(app)

    logging.config.dictConfig(get_logging_config(settings))
    configure_structlog_wrapper(settings)

    logger = get_logger("lifespan")
    logger.info("Conduit startup initiated", env=settings.ENVIRONMENT)

    http_client = httpx.AsyncClient(timeout=CATALOG_FETCH_TIMEOUT_SECONDS)
    try:
        app.state.registry = ModelRegistry.default()
        app.state.http_client = http_client
        app.state.openrouter = OpenRouterCatalog(
            http_client,
            settings.CACHE_DIR,
            ttl=settings.MODEL_CATALOG_TTL_SECONDS,
            url=settings.OPENROUTER_MODELS_URL,
        )
        app.state.is_ready = True
        logger.info("Resources initialized", providers=len(app.state.registry.provider_ids()))
    except Exception as e:
        logger.critical("Failed to initialize resources", error=str(e))
        app.state.is_ready = False
        await http_client.aclose()
        raise

    yield

    # === SHUTDOWN SEQUENCE ===

    logger.info("Conduit shutdown initiated")
    app.state.is_ready = False
    await http_client.aclose()
    logger.info("Resources released")


app = FastAPI(
    title=os.getenv("PROJECT_NAME", "Conduit"),
    version=os.getenv("VERSION", "0.1.0"),
    description="Provider-agnostic LLM streaming with prompt caching and cost accounting",
    lifespan=lifespan,
)

app.add_middleware(RequestCorrelationMiddleware)
app.include_router(router, prefix=get_settings().API_V1_STR)


# ==============================================================================
# EXCEPTION HANDLERS
# ==============================================================================


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """Map configuration errors to 404 (unknown provider/model) or 400."""
    if isinstance(exc, (ProviderNotFoundError, ModelNotFoundError)):
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    get_logger("exception_handler").info(
        "Configuration error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions and return a generic 500.

    Internal details never reach the client; the request id is echoed so a
    report can be matched to the logs.
    """
    logger = get_logger("exception_handler")
    logger.error(
        "Unhandled exception occurred",
        error=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal Server Error",
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


# ==============================================================================
# HEALTH
# ==============================================================================


@app.get("/health/live", status_code=status.HTTP_200_OK)
async def liveness_probe() -> dict[str, str]:
    """Return liveness status for container orchestration.

    Does not verify upstream backends or the catalog caches.
    """
    return {"status": "alive"}


@app.get("/health/ready", status_code=status.HTTP_200_OK)
async def readiness_probe(request: Request) -> dict[str, Any]:
    """Return readiness status for traffic routing decisions.

    Ready means the model registry and the OpenRouter catalog cache are
    attached to `app.state`; the body reports how many providers are served.

    Raises:
        HTTPException: 503 Service Unavailable until startup has completed.
    """
    state = request.app.state
    if not getattr(state, "is_ready", False) or getattr(state, "registry", None) is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="System is starting up or dependencies are unavailable"
        )
    return {"status": "ready", "providers": len(state.registry.provider_ids())}


@app.get("/health", include_in_schema=False)
async def legacy_health() -> dict[str, str]:
    """Return health status for backward compatibility.

    .. deprecated::
        Use ``/health/live`` or ``/health/ready`` instead.
    """
    return {"status": "ok", "note": "deprecated: use /health/live or /health/ready"}
