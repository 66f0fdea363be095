"""Maps backend-native chunks and failures onto the canonical `StreamEvent` set.

Errors become terminal `ErrorEvent`s with a canonical code:

    400, 401, 402, 403, 404, 413, 429 -> same code
    503, 529                          -> 529 (overloaded)
    other 5xx                         -> 500 (api error)
    other 4xx                         -> 400 (invalid request)
    connection refused / timeouts     -> 1   (no response was received)
"""

import asyncio
from typing import Any, Optional, Tuple, Type

import httpx

from conduit.core.errors import ApiError, ApiErrorCode, message_for_code
from conduit.core.types import (
    ContentBlock,
    ContentBlockEvent,
    ErrorEvent,
    ReasoningDeltaEvent,
    TextDeltaEvent,
)

_PASSTHROUGH_CODES = frozenset({
    ApiErrorCode.INVALID_REQUEST,
    ApiErrorCode.AUTHENTICATION,
    ApiErrorCode.PAYMENT_REQUIRED,
    ApiErrorCode.PERMISSION,
    ApiErrorCode.NOT_FOUND,
    ApiErrorCode.REQUEST_TOO_LARGE,
    ApiErrorCode.RATE_LIMIT,
    ApiErrorCode.API_ERROR,
    ApiErrorCode.OVERLOADED,
})

_OVERLOADED_STATUSES = frozenset({503, 529})

_NETWORK_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
    httpx.TransportError,
)


# =============================================================================
# ERRORS
# =============================================================================


def code_for_status(status: Optional[int]) -> ApiErrorCode:
    """Map an HTTP status to its canonical error code."""
    if status is None:
        return ApiErrorCode.API_ERROR
    if status == ApiErrorCode.NETWORK_REFUSED:
        return ApiErrorCode.NETWORK_REFUSED
    if status in _OVERLOADED_STATUSES:
        return ApiErrorCode.OVERLOADED
    if status in _PASSTHROUGH_CODES:
        return ApiErrorCode(status)
    if 500 <= status < 600:
        return ApiErrorCode.API_ERROR
    if 400 <= status < 500:
        return ApiErrorCode.INVALID_REQUEST
    return ApiErrorCode.API_ERROR


def error_event(code: int, message: Optional[str] = None) -> ErrorEvent:
    """Build a terminal error event; `message` defaults to the code's fixed text."""
    return ErrorEvent(code=int(code), message=message or message_for_code(code))


def status_of(exc: BaseException) -> Optional[int]:
    """Extract an HTTP status from an exception, if it carries one."""
    if isinstance(exc, ApiError):
        return exc.code
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    return None


def is_network_error(
    exc: BaseException,
    extra: Tuple[Type[BaseException], ...] = (),
) -> bool:
    """True when no upstream response was ever received.

    `extra` adds client-library exception types that wrap connection
    failures, for libraries that give those a fake HTTP status.
    """
    return isinstance(exc, _NETWORK_EXCEPTIONS + extra)


def error_event_from_exception(
    exc: BaseException,
    network_errors: Tuple[Type[BaseException], ...] = (),
) -> ErrorEvent:
    """Classify an exception raised while talking to a backend."""
    if is_network_error(exc, network_errors):
        return error_event(ApiErrorCode.NETWORK_REFUSED)
    return error_event(code_for_status(status_of(exc)))


# =============================================================================
# CONTENT
# =============================================================================


def text_event(text: Optional[str]) -> Optional[TextDeltaEvent]:
    """Visible completion text; empty fragments produce no event."""
    if not text:
        return None
    return TextDeltaEvent(text=text)


def reasoning_event(text: Optional[str]) -> Optional[ReasoningDeltaEvent]:
    """Chain-of-thought text; empty fragments produce no event."""
    if not text:
        return None
    return ReasoningDeltaEvent(text=text)


def content_block_event(block: ContentBlock) -> ContentBlockEvent:
    return ContentBlockEvent(block=block)


# =============================================================================
# TERMINAL-EVENT GUARD
# =============================================================================


class StreamGuard:
    """Enforces that nothing follows the first terminal event of a stream.

    Example:
        >>> guard = StreamGuard()
        >>> guard.admit(error_event(429))
        True
        >>> guard.admit(text_event("late"))
        False
    """

    def __init__(self) -> None:
        self._terminated = False

    @property
    def terminated(self) -> bool:
        return self._terminated

    def admit(self, event: Any) -> bool:
        if self._terminated or event is None:
            return False
        if event.is_terminal:
            self._terminated = True
        return True
