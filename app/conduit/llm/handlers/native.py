"""Native-protocol strategy: Kodu's server-sent event stream over httpx.

The request goes to `POST {base_url}/api/inference-stream` with an
Anthropic-style body. Each response line is `data: <json>` where the JSON
object is `{"code": <int>, "body": {...}}`:

    0   stream start
    2   text delta              body: {"text": str}
    4   reasoning delta         body: {"text": str}
    3   complete content block  body: {"contentBlock": {...}}
    1   final                   body: {"anthropic": {...}, "internal": {...}}
    -1  error                   body: {"status": int, "msg": str}

The final message's `internal` object carries the request's token counts
and the account's remaining credit.
"""

import json
from typing import Any, AsyncIterator, Dict, Optional

import httpx
from pydantic import TypeAdapter

from conduit.core.errors import ApiError
from conduit.core.logging_config import get_logger
from conduit.core.types import ContentBlock, StreamEvent, Usage
from conduit.llm.normalizer import (
    code_for_status,
    content_block_event,
    error_event,
    reasoning_event,
    text_event,
)
from conduit.llm.wire import to_anthropic_messages
from conduit.providers.constants import DEFAULT_BASE_URLS, ProviderId

from .base import Handler, StreamRequest

logger = get_logger(__name__)

INFERENCE_PATH = "/api/inference-stream"

CODE_START = 0
CODE_FINAL = 1
CODE_TEXT = 2
CODE_CONTENT_BLOCK = 3
CODE_REASONING = 4
CODE_ERROR = -1

_CONTENT_BLOCK = TypeAdapter(ContentBlock)


def parse_sse_line(line: str) -> Optional[Dict[str, Any]]:
    """Decode one `data:` line; other lines and keep-alives yield None."""
    line = line.strip()
    if not line.startswith("data:"):
        return None
    payload = line[len("data:"):].strip()
    if not payload or payload == "[DONE]":
        return None
    message = json.loads(payload)
    if not isinstance(message, dict):
        return None
    return message


def usage_from_internal(internal: Dict[str, Any]) -> Usage:
    return Usage(
        input_tokens=internal.get("inputTokens") or 0,
        output_tokens=internal.get("outputTokens") or 0,
        cache_write_tokens=internal.get("cacheCreationInputTokens") or 0,
        cache_read_tokens=internal.get("cacheReadInputTokens") or 0,
    )


class NativeHandler(Handler):
    """Streams from the Kodu backend through its own event protocol.

    Args:
        client: Shared HTTP client. A short-lived client is created per
            stream when omitted.
    """

    network_errors = (httpx.TransportError,)

    def __init__(self, *args: Any, client: Optional[httpx.AsyncClient] = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._client = client

    @property
    def endpoint(self) -> str:
        base_url = self.settings.base_url or DEFAULT_BASE_URLS[ProviderId.KODU]
        return base_url.rstrip("/") + INFERENCE_PATH

    def request_body(self, request: StreamRequest) -> Dict[str, Any]:
        system, messages = to_anthropic_messages(request.history, request.system_blocks)
        body: Dict[str, Any] = {
            "model": request.model.id,
            "system": system,
            "messages": messages,
            "max_tokens": request.sampling.max_tokens or request.model.max_tokens,
        }
        if request.sampling.temperature is not None:
            body["temperature"] = request.sampling.temperature
        if request.sampling.top_p is not None:
            body["top_p"] = request.sampling.top_p
        return body

    def request_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        api_key = self.settings.secret()
        if api_key:
            headers["x-api-key"] = api_key
        return headers

    async def _stream(self, request: StreamRequest) -> AsyncIterator[StreamEvent]:
        if self._client is not None:
            async for event in self._stream_with(self._client, request):
                yield event
            return
        async with httpx.AsyncClient(timeout=None) as client:
            async for event in self._stream_with(client, request):
                yield event

    async def _stream_with(
        self,
        client: httpx.AsyncClient,
        request: StreamRequest,
    ) -> AsyncIterator[StreamEvent]:
        async with client.stream(
            "POST",
            self.endpoint,
            json=self.request_body(request),
            headers=self.request_headers(),
        ) as response:
            if response.status_code >= 400:
                raise ApiError(code_for_status(response.status_code))
            yield request.started_event()

            async for line in response.aiter_lines():
                message = parse_sse_line(line)
                if message is None:
                    continue
                code = message.get("code")
                body = message.get("body") or {}

                if code == CODE_TEXT:
                    event = text_event(body.get("text"))
                    if event is not None:
                        yield event
                elif code == CODE_REASONING:
                    event = reasoning_event(body.get("text"))
                    if event is not None:
                        yield event
                elif code == CODE_CONTENT_BLOCK:
                    yield content_block_event(_CONTENT_BLOCK.validate_python(body["contentBlock"]))
                elif code == CODE_FINAL:
                    internal = body.get("internal") or {}
                    yield request.accountant.completed_event(
                        usage_from_internal(internal),
                        user_credits=internal.get("userCredits"),
                    )
                    return
                elif code == CODE_ERROR:
                    yield error_event(code_for_status(body.get("status")), body.get("msg"))
                    return
                elif code != CODE_START:
                    logger.debug("native_message_ignored", code=code)
