"""Generic two-tier TTL cache for remotely fetched metadata (model catalogs).

Tiers:

    - Memory: the last obtained payload, returned as-is (same object) while
      younger than the TTL. Keeps file I/O off the hot path.
    - Durable: one JSON file per cache key holding
      ``{"timestamp": <epoch-ms>, "data": <payload>}``. Survives restarts.

Refreshes are single-flight: concurrent `get()` calls that find the cache
stale share one in-flight task instead of each calling the upstream.
Fetch failures fall back to the last known payload, even when stale.
"""

import asyncio
import json
import math
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from conduit.core.errors import CacheError
from conduit.core.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 60 * 60

Fetcher = Callable[[], Awaitable[Optional[T]]]


# =============================================================================
# DURABLE TIER
# =============================================================================


@dataclass(frozen=True)
class CacheRecord(Generic[T]):
    """A durable cache entry. `timestamp_ms` is the fetch time, not the access time."""

    timestamp_ms: int
    data: T

    def to_json(self, encode: Callable[[T], Any]) -> dict[str, Any]:
        return {"timestamp": self.timestamp_ms, "data": encode(self.data)}


class JsonFileStore:
    """Reads, writes and deletes one JSON document on disk.

    Reads never raise: a missing, unreadable or corrupt file reads as `None`,
    since a crash mid-write may leave a truncated record behind.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def read(self) -> Optional[Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("cache_record_unreadable", path=str(self.path), error=str(exc))
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("cache_record_corrupt", path=str(self.path))
            return None

    def write(self, document: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def delete(self) -> bool:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True


def _identity(value: Any) -> Any:
    return value


# =============================================================================
# CACHE
# =============================================================================


class RemoteMetadataCache(Generic[T]):
    """TTL cache with memory and durable tiers and single-flight refresh.

    Args:
        store: Durable tier (one record per cache key).
        ttl: Maximum age in seconds before data must be refreshed.
        use_memory_cache: Serve fresh data from memory without touching disk.
        encode: Converts a payload to JSON-compatible data for the durable tier.
        decode: Converts durable data back to a payload. Raising `ValueError`,
            `TypeError` or `KeyError` marks the record as unusable.
        clock: Returns the current time in epoch seconds.

    Example:
        >>> cache = RemoteMetadataCache(JsonFileStore("cache/models.json"), ttl=3600)
        >>> models = await cache.get(fetch_models)
    """

    def __init__(
        self,
        store: JsonFileStore,
        *,
        ttl: float = DEFAULT_TTL_SECONDS,
        use_memory_cache: bool = True,
        encode: Optional[Callable[[T], Any]] = None,
        decode: Optional[Callable[[Any], T]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be greater than zero")
        self._store = store
        self._ttl = ttl
        self._use_memory_cache = use_memory_cache
        self._encode = encode or _identity
        self._decode = decode or _identity
        self._clock = clock

        self._memory: Optional[T] = None
        self._last_fetched: Optional[float] = None
        self._legacy_served = False
        self._inflight: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def name(self) -> str:
        return self._store.path.name

    @property
    def ttl(self) -> float:
        return self._ttl

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def age(self) -> float:
        """Seconds since the current data was fetched; `math.inf` if never."""
        if self._last_fetched is None:
            return math.inf
        return max(0.0, self._clock() - self._last_fetched)

    def is_valid(self) -> bool:
        """True when data has been fetched and is younger than the TTL."""
        return self.age() < self._ttl

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get(self, fetch: Fetcher) -> T:
        """Return the freshest available payload.

        Args:
            fetch: Coroutine function retrieving the payload from upstream.
                Raising or returning None counts as a failed fetch.

        Returns:
            Fresh data from memory or disk, newly fetched data, or, when the
            fetch fails, the last known data even if stale.

        Raises:
            CacheError: If the fetch failed and no data was ever obtained.
        """
        if self._use_memory_cache and self._memory is not None and self.is_valid():
            return self._memory

        # No await between the check and the assignment: one refresh task per cache.
        task = self._inflight
        if task is None:
            task = asyncio.get_running_loop().create_task(self._refresh(fetch, self._generation))
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
        else:
            logger.debug("cache_refresh_joined", cache=self.name)

        # Shielded so a cancelled waiter does not cancel the shared refresh.
        return await asyncio.shield(task)

    async def invalidate(self) -> None:
        """Drop the memory copy and delete the durable record. Idempotent.

        A refresh already in flight is detached: its result still reaches
        the callers waiting on it but is neither kept in memory nor written
        to disk, and the next `get` starts a new fetch. A legacy record
        found after invalidation may be served once again.
        """
        self._generation += 1
        self._inflight = None
        self._memory = None
        self._last_fetched = None
        self._legacy_served = False
        existed = await asyncio.to_thread(self._store.delete)
        logger.info("cache_invalidated", cache=self.name, record_deleted=existed)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clear_inflight(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Marks the exception retrieved when every waiter went away.
            task.exception()

    def _adopt(self, data: T, fetched_at: Optional[float], generation: int) -> T:
        if generation == self._generation:
            self._memory = data
            self._last_fetched = fetched_at
        return data

    async def _refresh(self, fetch: Fetcher, generation: int) -> T:
        stale: Optional[T] = None

        document = await asyncio.to_thread(self._store.read)
        record = self._parse(document)
        if isinstance(record, CacheRecord):
            fetched_at = record.timestamp_ms / 1000
            if self._clock() - fetched_at < self._ttl:
                logger.debug("cache_hit_durable", cache=self.name)
                return self._adopt(record.data, fetched_at, generation)
            stale = record.data
        elif record is not None and not self._legacy_served:
            # Legacy record without a timestamp: served once without TTL
            # check, then ignored until a fetch rewrites it.
            self._legacy_served = True
            logger.info("cache_legacy_record_served", cache=self.name)
            return self._adopt(record, self._last_fetched, generation)

        try:
            fresh = await fetch()
        except Exception as exc:
            logger.warning("cache_fetch_failed", cache=self.name, error=str(exc), exc_info=True)
            fresh = None

        superseded = generation != self._generation
        if fresh is not None:
            if superseded:
                logger.info("cache_refresh_superseded", cache=self.name)
                return fresh
            now = self._clock()
            self._adopt(fresh, now, generation)
            await self._persist(CacheRecord(timestamp_ms=int(now * 1000), data=fresh))
            logger.info("cache_refreshed", cache=self.name)
            return fresh

        fallback = self._memory if self._memory is not None else stale
        if fallback is not None:
            logger.warning("cache_serving_stale", cache=self.name)
            if self._memory is None and not superseded:
                self._memory = fallback
            return fallback

        raise CacheError(f"No data available for cache {self.name!r}")

    def _parse(self, document: Any) -> "CacheRecord[T] | T | None":
        """Return a `CacheRecord`, a bare legacy payload, or None if unusable."""
        if document is None:
            return None
        try:
            if isinstance(document, dict) and "timestamp" in document:
                timestamp = document["timestamp"]
                if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
                    raise ValueError("timestamp must be a number")
                return CacheRecord(timestamp_ms=int(timestamp), data=self._decode(document["data"]))
            return self._decode(document)
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("cache_record_invalid", cache=self.name, error=str(exc))
            return None

    async def _persist(self, record: CacheRecord[T]) -> None:
        try:
            await asyncio.to_thread(self._store.write, record.to_json(self._encode))
        except OSError as exc:
            logger.error("cache_write_failed", cache=self.name, error=str(exc))
