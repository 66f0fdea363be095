"""OpenRouter model catalog backed by `RemoteMetadataCache`.

The registry at `GET /api/v1/models` lists every routed model with per-token
prices; entries are converted to `ModelInfo` with per-million prices and
cache pricing derived from the upstream vendor's caching scheme.
"""

from pathlib import Path
from typing import Any, List, Optional

import httpx
from pydantic import TypeAdapter

from conduit.core.errors import CacheError
from conduit.core.logging_config import get_logger
from conduit.core.types import ModelInfo

from .constants import ProviderId
from .remote_cache import DEFAULT_TTL_SECONDS, JsonFileStore, RemoteMetadataCache

logger = get_logger(__name__)

OPENROUTER_MODELS_URL = "https://openrouter.ai/api/v1/models"
CACHE_FILENAME = "openrouter-models.json"

# Fallbacks for entries missing pricing or limits.
DEFAULT_INPUT_PRICE = 5.0
DEFAULT_OUTPUT_PRICE = 15.0
DEFAULT_CONTEXT_WINDOW = 8192
DEFAULT_MAX_TOKENS = 4096

DEEPSEEK_DEFAULT_CACHE_PRICE = 0.14

REQUEST_HEADERS = {
    "HTTP-Referer": "https://github.com/conduit-llm/conduit",
    "X-Title": "Conduit",
}

_MODEL_LIST = TypeAdapter(List[ModelInfo])


def _per_million(value: Any, default: float) -> float:
    try:
        price = float(value)
    except (TypeError, ValueError):
        return default
    return max(price, 0.0) * 1_000_000


def convert_model(entry: dict[str, Any]) -> ModelInfo:
    """Convert one registry entry into `ModelInfo`.

    Anthropic-routed models bill cache writes at 1.25x and reads at 0.1x the
    input price. DeepSeek models cache automatically; `deepseek/deepseek-chat`
    is listed with free input and fixed cache prices.
    """
    model_id = entry["id"]
    pricing = entry.get("pricing") or {}
    architecture = entry.get("architecture") or {}
    top_provider = entry.get("top_provider") or {}

    input_price = _per_million(pricing.get("prompt"), DEFAULT_INPUT_PRICE)
    output_price = _per_million(pricing.get("completion"), DEFAULT_OUTPUT_PRICE)

    info: dict[str, Any] = {
        "id": model_id,
        "name": entry.get("name") or model_id,
        "context_window": entry.get("context_length") or DEFAULT_CONTEXT_WINDOW,
        "max_tokens": top_provider.get("max_completion_tokens") or DEFAULT_MAX_TOKENS,
        "supports_images": "image" in (architecture.get("modality") or ""),
        "supports_prompt_cache": False,
        "input_price": input_price,
        "output_price": output_price,
        "provider": ProviderId.OPENROUTER.value,
    }

    if "anthropic" in model_id:
        info.update(
            supports_prompt_cache=True,
            cache_writes_price=input_price * 1.25,
            cache_reads_price=input_price * 0.1,
        )

    if "deepseek" in model_id:
        info["supports_prompt_cache"] = True
        if model_id == "deepseek/deepseek-chat":
            info.update(
                input_price=0.0,
                cache_writes_price=DEEPSEEK_DEFAULT_CACHE_PRICE,
                cache_reads_price=DEEPSEEK_DEFAULT_CACHE_PRICE / 10,
            )
        else:
            base = input_price or DEEPSEEK_DEFAULT_CACHE_PRICE
            info.update(cache_writes_price=base, cache_reads_price=base * 0.1)

    return ModelInfo(**info)


async def fetch_openrouter_models(
    client: httpx.AsyncClient,
    url: str = OPENROUTER_MODELS_URL,
) -> List[ModelInfo]:
    """GET the models listing and convert every usable entry.

    Raises:
        httpx.HTTPError: On transport failures or non-2xx responses.
        ValueError: If the body has no `data` list.
    """
    logger.info("catalog_fetch_started", provider=ProviderId.OPENROUTER.value, url=url)
    response = await client.get(url, headers=REQUEST_HEADERS)
    response.raise_for_status()

    entries = response.json().get("data")
    if not isinstance(entries, list):
        raise ValueError("OpenRouter models response has no 'data' list")

    models: List[ModelInfo] = []
    for entry in entries:
        try:
            models.append(convert_model(entry))
        except (KeyError, ValueError) as exc:
            logger.debug("catalog_entry_skipped", entry_id=entry.get("id"), error=str(exc))

    logger.info("catalog_fetched", provider=ProviderId.OPENROUTER.value, models=len(models))
    return models


class OpenRouterCatalog:
    """Cached access to the OpenRouter model catalog.

    Constructed explicitly and passed to whoever needs it; its lifetime
    follows the owning application.

    Args:
        client: Shared HTTP client used for registry requests.
        cache_dir: Directory of the durable cache record.
        ttl: Catalog lifetime in seconds.
        url: Models-listing endpoint.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache_dir: Path | str,
        *,
        ttl: float = DEFAULT_TTL_SECONDS,
        url: str = OPENROUTER_MODELS_URL,
        cache: Optional[RemoteMetadataCache[List[ModelInfo]]] = None,
    ) -> None:
        self._client = client
        self._url = url
        self._cache = cache or RemoteMetadataCache(
            JsonFileStore(Path(cache_dir) / CACHE_FILENAME),
            ttl=ttl,
            encode=lambda models: _MODEL_LIST.dump_python(models, mode="json"),
            decode=_MODEL_LIST.validate_python,
        )

    async def _fetch(self) -> Optional[List[ModelInfo]]:
        models = await fetch_openrouter_models(self._client, self._url)
        # An empty listing is treated as a failed fetch so it never replaces good data.
        return models or None

    async def get_models(self) -> List[ModelInfo]:
        """Return cached or freshly fetched models; `[]` when nothing is available."""
        try:
            return await self._cache.get(self._fetch)
        except CacheError:
            logger.warning("catalog_unavailable", provider=ProviderId.OPENROUTER.value)
            return []

    async def invalidate(self) -> None:
        await self._cache.invalidate()

    def is_valid(self) -> bool:
        return self._cache.is_valid()

    def age(self) -> float:
        return self._cache.age()
