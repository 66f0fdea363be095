"""Defines the normalized stream event set.

Every backend adapter maps its native chunks into exactly these cases and
nothing else, so consumers can match on `type` exhaustively. A request's
stream ends with exactly one terminal event (`completed` or `error`), or
with no terminal event at all when the caller aborts it.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from .base import CanonicalModel, Usage
from .conversation import ContentBlock


# ═══════════════════════════════════════════════════════════════════════════
# INTERNAL ENUMS (Not exported in __init__.py)
# ═══════════════════════════════════════════════════════════════════════════

class _EventType(str, Enum):
    """Internal enum for event routing.

    External APIs use string literals for stability.
    """
    STARTED = "started"
    TEXT_DELTA = "text-delta"
    REASONING_DELTA = "reasoning-delta"
    CONTENT_BLOCK = "content-block"
    COMPLETED = "completed"
    ERROR = "error"


_TERMINAL_TYPES = frozenset({_EventType.COMPLETED.value, _EventType.ERROR.value})


# ═══════════════════════════════════════════════════════════════════════════
# EVENT TYPES
# ═══════════════════════════════════════════════════════════════════════════

class _StreamEventBase(CanonicalModel):

    @property
    def is_terminal(self) -> bool:
        """Check if this event ends the stream.

        Example:
            >>> ErrorEvent(code=429, message="Your account has hit a rate limit.").is_terminal
            True
        """
        return getattr(self, "type") in _TERMINAL_TYPES


class StartedEvent(_StreamEventBase):
    """The upstream accepted the request.

    Attributes:
        model_id: Model serving the request.
        provider: Provider serving the request.
        anticipated_cache_write_tokens: Prompt tokens the injected cache
            boundaries are expected to write to the upstream cache.
        anticipated_cache_read_tokens: Prompt tokens expected to be served
            from the upstream cache.
    """
    type: Literal["started"] = "started"
    model_id: str
    provider: str
    anticipated_cache_write_tokens: int = Field(default=0, ge=0)
    anticipated_cache_read_tokens: int = Field(default=0, ge=0)


class TextDeltaEvent(_StreamEventBase):
    """A fragment of visible completion text."""
    type: Literal["text-delta"] = "text-delta"
    text: str


class ReasoningDeltaEvent(_StreamEventBase):
    """A fragment of internal chain-of-thought.

    Must never be persisted as conversation history.
    """
    type: Literal["reasoning-delta"] = "reasoning-delta"
    text: str


class ContentBlockEvent(_StreamEventBase):
    """A complete structured block (tool call, tool result or text block)."""
    type: Literal["content-block"] = "content-block"
    block: ContentBlock


class CompletedEvent(_StreamEventBase):
    """Terminal success event.

    Attributes:
        usage: Token counts of this request only.
        cost: USD cost computed from the pricing snapshot taken at request start.
        user_credits: Remaining account credit, for backends that report it.
    """
    type: Literal["completed"] = "completed"
    usage: Usage
    cost: float = Field(ge=0)
    user_credits: Optional[float] = None


class ErrorEvent(_StreamEventBase):
    """Terminal failure event carrying a canonical error code."""
    type: Literal["error"] = "error"
    code: int
    message: str


StreamEvent = Annotated[
    Union[
        StartedEvent,
        TextDeltaEvent,
        ReasoningDeltaEvent,
        ContentBlockEvent,
        CompletedEvent,
        ErrorEvent,
    ],
    Field(discriminator='type')
]
