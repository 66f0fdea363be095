"""Prompt cache boundary placement.

Upstream prompt caching only pays off when boundaries sit at stable prefix
points and stay under the backend's breakpoint cap (4 for Anthropic). The
injector strips any markers already present, marks the last system block,
then walks the history from the newest turn backwards and marks turns that
are large enough to be worth caching. The trailing user turn is never
marked: it is the part most likely to change on the next request.

Placement depends only on the history's content, so running the injector
twice on the same history yields the same boundaries.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from conduit.core.types import (
    ContentBlock,
    ConversationTurn,
    ImageBlock,
    ModelInfo,
    SystemBlock,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)

DEFAULT_MAX_BREAKPOINTS = 4
DEFAULT_MIN_CACHEABLE_TOKENS = 1024

CHARS_PER_TOKEN = 4
IMAGE_TOKEN_ESTIMATE = 1_000


# =============================================================================
# TOKEN ESTIMATION
# =============================================================================


def _estimate_text(text: str) -> int:
    return -(-len(text) // CHARS_PER_TOKEN)


def estimate_block_tokens(block: ContentBlock) -> int:
    """Rough token count of one content block (about 4 characters per token)."""
    if isinstance(block, TextBlock):
        return _estimate_text(block.text)
    if isinstance(block, ImageBlock):
        return IMAGE_TOKEN_ESTIMATE
    if isinstance(block, ToolUseBlock):
        return _estimate_text(block.name) + _estimate_text(repr(block.input))
    if isinstance(block, ToolResultBlock):
        if isinstance(block.content, str):
            return _estimate_text(block.content)
        return sum(estimate_block_tokens(part) for part in block.content)
    return 0


def estimate_turn_tokens(turn: ConversationTurn) -> int:
    return sum(estimate_block_tokens(block) for block in turn.content)


def estimate_system_tokens(block: SystemBlock) -> int:
    return _estimate_text(block.text)


def estimate_tokens(item: Union[str, ConversationTurn, SystemBlock, ContentBlock]) -> int:
    """Estimate the token count of a string, turn, system block or content block."""
    if isinstance(item, str):
        return _estimate_text(item)
    if isinstance(item, ConversationTurn):
        return estimate_turn_tokens(item)
    if isinstance(item, SystemBlock):
        return estimate_system_tokens(item)
    return estimate_block_tokens(item)


# =============================================================================
# INJECTION
# =============================================================================


@dataclass(frozen=True)
class CacheInjection:
    """Result of a boundary placement.

    Attributes:
        history: New turns with `cache_boundary` set on marked turns.
        system_blocks: New system blocks with the last one possibly marked.
        boundaries: Indices of marked history turns, ascending.
        cache_write_tokens: Anticipated tokens written to the upstream cache.
        cache_read_tokens: Anticipated tokens read from the upstream cache.
    """

    history: List[ConversationTurn]
    system_blocks: List[SystemBlock]
    boundaries: Tuple[int, ...] = ()
    cache_write_tokens: int = 0
    cache_read_tokens: int = 0
    system_marked: bool = False


def uses_cache_markers(model: ModelInfo) -> bool:
    """True when the backend needs explicit cache-control markers.

    Claude models use explicit markers whichever provider routes them
    (Anthropic, OpenRouter, Aider, Kodu). Other cached models cache
    automatically.
    """
    if not model.supports_prompt_cache:
        return False
    model_id = model.id.lower()
    return model.provider == "anthropic" or "anthropic" in model_id or "claude" in model_id


class PromptCacheInjector:
    """Places cache boundaries and estimates the resulting cache traffic.

    Args:
        max_breakpoints: Cap on boundaries, system block included.
        min_tokens: Minimum estimated tokens for a turn to be worth caching.
        token_estimator: Token estimator for history turns.
    """

    def __init__(
        self,
        max_breakpoints: int = DEFAULT_MAX_BREAKPOINTS,
        min_tokens: int = DEFAULT_MIN_CACHEABLE_TOKENS,
        token_estimator: Callable[[ConversationTurn], int] = estimate_tokens,
    ) -> None:
        if max_breakpoints < 1:
            raise ValueError("max_breakpoints must be at least 1")
        self.max_breakpoints = max_breakpoints
        self.min_tokens = min_tokens
        self._estimate_turn = token_estimator

    def applies_to(self, model: ModelInfo) -> bool:
        return uses_cache_markers(model)

    def inject(
        self,
        history: Sequence[ConversationTurn],
        system_blocks: Sequence[SystemBlock] = (),
    ) -> CacheInjection:
        """Return copies of `history` and `system_blocks` with boundaries placed.

        The inputs are never modified.
        """
        turns = [
            turn.model_copy(update={"cache_boundary": False}) if turn.cache_boundary else turn
            for turn in history
        ]
        blocks = [
            block.model_copy(update={"cache_boundary": False}) if block.cache_boundary else block
            for block in system_blocks
        ]

        system_tokens = sum(estimate_system_tokens(block) for block in blocks)
        remaining = self.max_breakpoints
        system_marked = False
        if blocks and system_tokens >= self.min_tokens:
            blocks[-1] = blocks[-1].model_copy(update={"cache_boundary": True})
            system_marked = True
            remaining -= 1

        turn_tokens = [self._estimate_turn(turn) for turn in turns]
        last_candidate = len(turns) - 1
        if turns and turns[-1].role == "user":
            last_candidate -= 1

        marked: List[int] = []
        for index in range(last_candidate, -1, -1):
            if remaining == 0:
                break
            if turn_tokens[index] >= self.min_tokens:
                marked.append(index)
                remaining -= 1
        marked.sort()

        for index in marked:
            turns[index] = turns[index].model_copy(update={"cache_boundary": True})

        write_tokens, read_tokens = self._anticipate(
            system_tokens if system_marked else None, turn_tokens, marked
        )
        return CacheInjection(
            history=turns,
            system_blocks=blocks,
            boundaries=tuple(marked),
            cache_write_tokens=write_tokens,
            cache_read_tokens=read_tokens,
            system_marked=system_marked,
        )

    @staticmethod
    def _anticipate(
        system_tokens: Optional[int],
        turn_tokens: List[int],
        marked: List[int],
    ) -> Tuple[int, int]:
        """Split the cached prefix into expected reads and writes.

        The prefix up to the second-newest boundary was cached by the previous
        request and is read; the segment after it up to the newest boundary is
        written.
        """
        # Cumulative prefix length at each boundary, system prompt first.
        prefix_ends: List[int] = []
        running = 0
        if system_tokens is not None:
            running = system_tokens
            prefix_ends.append(running)
        cursor = 0
        for index in marked:
            running += sum(turn_tokens[cursor:index + 1])
            cursor = index + 1
            prefix_ends.append(running)

        if not prefix_ends:
            return 0, 0
        newest = prefix_ends[-1]
        previous = prefix_ends[-2] if len(prefix_ends) > 1 else 0
        return newest - previous, previous
