"""Adapter-based strategy: one shared multi-backend client (litellm).

Every provider except Kodu is reached through `litellm.acompletion`, which
speaks each vendor's API and returns OpenAI-style streaming chunks. This
module maps those chunks onto the canonical event set:

    delta.content            -> text-delta
    delta.reasoning_content  -> reasoning-delta
    delta.tool_calls         -> content-block (ToolUseBlock, once complete)
    chunk.usage              -> completed (usage and cost)
"""

import json
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

import litellm

from conduit.core.logging_config import get_logger
from conduit.core.types import StreamEvent, ToolUseBlock, Usage
from conduit.llm.normalizer import content_block_event, reasoning_event, text_event
from conduit.llm.wire import to_openai_messages
from conduit.providers.constants import (
    DEFAULT_BASE_URLS,
    EXPLICIT_BASE_URL_PROVIDERS,
    LITELLM_PREFIXES,
)

from .base import Handler, StreamRequest

logger = get_logger(__name__)


def _get(obj: Any, name: str, default: Any = None) -> Any:
    """Read `name` from a litellm object or a plain dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


# =============================================================================
# CHUNK NORMALIZATION
# =============================================================================


def usage_from_chunk(raw: Any) -> Usage:
    """Convert an OpenAI-style usage object to `Usage`.

    Cache reads come from `cache_read_input_tokens` (Anthropic) or
    `prompt_tokens_details.cached_tokens` (OpenAI, DeepSeek). Both are
    included in `prompt_tokens` upstream, so they are subtracted from the
    plain input count.
    """
    prompt_tokens = _get(raw, "prompt_tokens") or 0
    output_tokens = _get(raw, "completion_tokens") or 0
    cache_write = _get(raw, "cache_creation_input_tokens") or 0
    cache_read = _get(raw, "cache_read_input_tokens") or 0
    if not cache_read:
        cache_read = _get(_get(raw, "prompt_tokens_details"), "cached_tokens") or 0
    return Usage(
        input_tokens=max(prompt_tokens - cache_read - cache_write, 0),
        output_tokens=output_tokens,
        cache_write_tokens=cache_write,
        cache_read_tokens=cache_read,
    )


@dataclass
class _PendingToolCall:
    id: Optional[str] = None
    name: str = ""
    arguments: List[str] = field(default_factory=list)


class ToolCallAccumulator:
    """Assembles streamed tool-call fragments, keyed by their `index`."""

    def __init__(self) -> None:
        self._calls: Dict[int, _PendingToolCall] = {}

    def add(self, fragment: Any) -> None:
        index = _get(fragment, "index") or 0
        call = self._calls.setdefault(index, _PendingToolCall())
        call_id = _get(fragment, "id")
        if call_id:
            call.id = call_id
        function = _get(fragment, "function")
        name = _get(function, "name")
        if name:
            call.name += name
        arguments = _get(function, "arguments")
        if arguments:
            call.arguments.append(arguments)

    def __bool__(self) -> bool:
        return bool(self._calls)

    def drain(self) -> List[ToolUseBlock]:
        """Return the completed tool uses in index order and reset."""
        blocks = []
        for index in sorted(self._calls):
            call = self._calls[index]
            raw = "".join(call.arguments)
            try:
                arguments = json.loads(raw) if raw else {}
            except json.JSONDecodeError:
                logger.warning("tool_arguments_unparseable", tool=call.name, index=index)
                arguments = {"raw_arguments": raw}
            if not isinstance(arguments, dict):
                arguments = {"value": arguments}
            blocks.append(ToolUseBlock(
                id=call.id or f"call_{index}",
                name=call.name or "unknown",
                input=arguments,
            ))
        self._calls.clear()
        return blocks


# =============================================================================
# HANDLER
# =============================================================================


class AdapterHandler(Handler):
    """Streams through `litellm.acompletion` for every adapter-routed provider."""

    network_errors = (litellm.APIConnectionError, litellm.Timeout)

    def litellm_model(self, model_id: str) -> str:
        """The `<prefix>/<model id>` string litellm routes on."""
        return f"{LITELLM_PREFIXES[self.provider_id]}/{model_id}"

    def api_base(self) -> Optional[str]:
        if self.settings.base_url:
            return self.settings.base_url
        if self.provider_id in EXPLICIT_BASE_URL_PROVIDERS:
            return DEFAULT_BASE_URLS[self.provider_id] or None
        return None

    def completion_kwargs(self, request: StreamRequest) -> Dict[str, Any]:
        sampling = request.sampling
        kwargs: Dict[str, Any] = {
            "model": self.litellm_model(request.model.id),
            "messages": to_openai_messages(request.history, request.system_blocks),
            "stream": True,
            "stream_options": {"include_usage": True},
            "max_tokens": sampling.max_tokens or request.model.max_tokens,
            "drop_params": True,
        }
        api_key = self.settings.secret()
        if api_key:
            kwargs["api_key"] = api_key
        api_base = self.api_base()
        if api_base:
            kwargs["api_base"] = api_base
        if sampling.temperature is not None:
            kwargs["temperature"] = sampling.temperature
        if sampling.top_p is not None:
            kwargs["top_p"] = sampling.top_p
        return kwargs

    async def _stream(self, request: StreamRequest) -> AsyncIterator[StreamEvent]:
        response = await litellm.acompletion(**self.completion_kwargs(request))
        yield request.started_event()

        tool_calls = ToolCallAccumulator()
        usage = Usage()
        try:
            async for chunk in response:
                raw_usage = _get(chunk, "usage")
                if raw_usage is not None:
                    usage = usage_from_chunk(raw_usage)

                choices = _get(chunk, "choices") or []
                if not choices:
                    continue
                delta = _get(choices[0], "delta")

                event = reasoning_event(_get(delta, "reasoning_content"))
                if event is not None:
                    yield event
                event = text_event(_get(delta, "content"))
                if event is not None:
                    yield event
                for fragment in _get(delta, "tool_calls") or ():
                    tool_calls.add(fragment)
        finally:
            aclose = getattr(response, "aclose", None)
            if aclose is not None:
                await aclose()

        for block in tool_calls.drain():
            yield content_block_event(block)

        yield request.accountant.completed_event(usage)
