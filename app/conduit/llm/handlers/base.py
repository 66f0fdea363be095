"""Handler abstraction shared by every backend strategy.

A handler turns one request (system prompt, history, model id) into a
finite async iterator of `StreamEvent`s. The request flow is the same for
every backend and lives here:

    1. Resolve the model and take its pricing snapshot.
    2. Invoke `on_last_message` with the last history turn.
    3. Place prompt-cache boundaries when the model uses markers.
    4. Await `rewrite_history`, which may return a modified history.
    5. Open the upstream stream and forward its normalized events.

Strategies only implement step 5 (`_stream`). Whatever they yield passes
through a `StreamGuard`, so a stream has at most one terminal event and
nothing after it. Upstream exceptions become a terminal `error` event.

Cancellation is cooperative: when the `AbortSignal` fires, the pending
upstream read is cancelled, the upstream stream is closed and the event
sequence ends without any further event.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import (
    AsyncIterator,
    Awaitable,
    Callable,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from pydantic import Field

from conduit.core.errors import ApiErrorCode, ModelNotFoundError
from conduit.core.logging_config import get_logger
from conduit.core.types import (
    CanonicalModel,
    ConversationTurn,
    ModelInfo,
    ProviderSettings,
    StartedEvent,
    StreamEvent,
    SystemBlock,
    system_blocks_from_prompt,
)
from conduit.llm.cost import CostAccountant
from conduit.llm.normalizer import StreamGuard, error_event, error_event_from_exception
from conduit.llm.prompt_cache import CacheInjection, PromptCacheInjector

logger = get_logger(__name__)

T = TypeVar("T")

OnLastMessage = Callable[[ConversationTurn], Union[None, Awaitable[None]]]
RewriteHistory = Callable[
    [List[ConversationTurn], List[SystemBlock]],
    Awaitable[Tuple[List[ConversationTurn], List[SystemBlock]]],
]


# =============================================================================
# REQUEST PARAMETERS
# =============================================================================


class SamplingParams(CanonicalModel):
    """Optional generation controls; unset values use the backend default."""
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)


class AbortSignal:
    """Cooperative cancellation flag for one stream.

    Safe to fire at any point: before the stream starts, while it is
    waiting on the network, or after it has already finished.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def abort(self) -> None:
        self._event.set()

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass(frozen=True)
class StreamRequest:
    """Everything a strategy needs to open one upstream stream."""

    model: ModelInfo
    history: List[ConversationTurn]
    system_blocks: List[SystemBlock]
    sampling: SamplingParams
    accountant: CostAccountant
    cache: Optional[CacheInjection] = None

    def started_event(self) -> StartedEvent:
        return StartedEvent(
            model_id=self.model.id,
            provider=self.model.provider,
            anticipated_cache_write_tokens=self.cache.cache_write_tokens if self.cache else 0,
            anticipated_cache_read_tokens=self.cache.cache_read_tokens if self.cache else 0,
        )


# =============================================================================
# CANCELLATION
# =============================================================================


async def abortable(source: AsyncIterator[T], signal: AbortSignal) -> AsyncIterator[T]:
    """Yield from `source` until it is exhausted or `signal` fires.

    Each read races against the signal. On abort the pending read is
    cancelled and `source` is closed before returning.
    """
    async def read_next() -> T:
        return await source.__anext__()

    abort_waiter = asyncio.ensure_future(signal.wait())
    try:
        while not signal.aborted:
            read = asyncio.ensure_future(read_next())
            done, _ = await asyncio.wait(
                {read, abort_waiter}, return_when=asyncio.FIRST_COMPLETED
            )
            # An item read in the same round as the abort is dropped.
            if signal.aborted or read not in done:
                read.cancel()
                await asyncio.gather(read, return_exceptions=True)
                return
            try:
                item = read.result()
            except StopAsyncIteration:
                return
            yield item
    finally:
        abort_waiter.cancel()
        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()


# =============================================================================
# HANDLER
# =============================================================================


class Handler(ABC):
    """Streams completions from one provider for a selected model.

    Args:
        settings: Validated provider settings.
        model: The model selected at construction.
        catalog: Other models `create_message_stream` may be asked for.
        injector: Prompt cache boundary placement.

    A handler keeps no mutable state between calls, so one instance can
    serve concurrent streams.
    """

    # Client-library exceptions that mean "no response was received".
    network_errors: Tuple[Type[BaseException], ...] = ()

    def __init__(
        self,
        settings: ProviderSettings,
        model: ModelInfo,
        catalog: Sequence[ModelInfo] = (),
        injector: Optional[PromptCacheInjector] = None,
    ) -> None:
        self._settings = settings
        self._model = model
        self._catalog = tuple(catalog)
        self._injector = injector or PromptCacheInjector()

    @property
    def model(self) -> ModelInfo:
        return self._model

    @property
    def settings(self) -> ProviderSettings:
        return self._settings

    @property
    def provider_id(self) -> str:
        return self._settings.provider_id

    def resolve_model(self, model_id: str) -> ModelInfo:
        """Return the metadata of `model_id` as known right now.

        Raises:
            ModelNotFoundError: If neither the selected model nor the
                catalog has this id.
        """
        if model_id == self._model.id:
            return self._model
        for candidate in self._catalog:
            if candidate.id == model_id:
                return candidate
        raise ModelNotFoundError(self.provider_id, model_id)

    async def create_message_stream(
        self,
        system_prompt: Sequence[str],
        history: Sequence[ConversationTurn],
        abort_signal: AbortSignal,
        model_id: str,
        sampling: Optional[SamplingParams] = None,
        on_last_message: Optional[OnLastMessage] = None,
        rewrite_history: Optional[RewriteHistory] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream one completion as normalized events.

        The sequence is finite and not restartable. It ends with exactly one
        `completed` or `error` event, or with no terminal event when
        `abort_signal` fires first.

        Raises:
            ModelNotFoundError: If `model_id` is unknown; raised before any
                network I/O.
        """
        model = self.resolve_model(model_id)
        log = logger.bind(provider=self.provider_id, model_id=model.id)

        turns = list(history)
        system_blocks = system_blocks_from_prompt(system_prompt)

        if on_last_message is not None and turns:
            result = on_last_message(turns[-1])
            if inspect.isawaitable(result):
                await result

        injection: Optional[CacheInjection] = None
        if self._injector.applies_to(model):
            injection = self._injector.inject(turns, system_blocks)
            turns, system_blocks = injection.history, injection.system_blocks
            log.debug(
                "cache_boundaries_placed",
                boundaries=list(injection.boundaries),
                system_marked=injection.system_marked,
            )

        if rewrite_history is not None:
            turns, system_blocks = await rewrite_history(turns, system_blocks)

        if abort_signal.aborted:
            log.info("stream_aborted", stage="before_request")
            return

        request = StreamRequest(
            model=model,
            history=list(turns),
            system_blocks=list(system_blocks),
            sampling=sampling or SamplingParams(),
            accountant=CostAccountant(model),
            cache=injection,
        )

        guard = StreamGuard()
        events = abortable(self._stream(request), abort_signal)
        log.info("stream_started", turns=len(request.history))
        try:
            async for event in events:
                if guard.admit(event):
                    yield event
                if guard.terminated:
                    break
        except Exception as exc:
            if guard.terminated:
                raise
            if abort_signal.aborted:
                log.info("stream_aborted", stage="closing", error_type=type(exc).__name__)
                return
            failure = error_event_from_exception(exc, self.network_errors)
            log.warning(
                "stream_failed",
                code=failure.code,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            yield failure
            return
        finally:
            await events.aclose()

        if abort_signal.aborted and not guard.terminated:
            log.info("stream_aborted", stage="streaming")
            return
        if not guard.terminated:
            log.warning("stream_incomplete")
            yield error_event(ApiErrorCode.API_ERROR)
            return
        log.info("stream_finished")

    @abstractmethod
    def _stream(self, request: StreamRequest) -> AsyncIterator[StreamEvent]:
        """Open the upstream stream and yield normalized events.

        Must yield `request.started_event()` once the upstream accepted the
        request, then content events, then one terminal event. May raise
        on upstream failures; the caller converts them to an error event.
        """
