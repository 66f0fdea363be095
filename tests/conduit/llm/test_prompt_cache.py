"""Test suite for prompt cache boundary placement."""

from typing import List

import pytest

from conduit.core.types import ConversationTurn, ModelInfo, SystemBlock, ToolUseBlock
from conduit.llm.prompt_cache import (
    PromptCacheInjector,
    estimate_tokens,
    uses_cache_markers,
)

MIN_TOKENS = 10


def _text(tokens: int) -> str:
    """Text estimated at exactly `tokens` tokens."""
    return "x" * (tokens * 4)


def _turn(role: str, tokens: int, cache_boundary: bool = False) -> ConversationTurn:
    return ConversationTurn(role=role, content=_text(tokens), cache_boundary=cache_boundary)


@pytest.fixture
def injector() -> PromptCacheInjector:
    return PromptCacheInjector(min_tokens=MIN_TOKENS)


@pytest.fixture
def long_history() -> List[ConversationTurn]:
    roles = ["user", "assistant"] * 4 + ["user"]
    return [_turn(role, MIN_TOKENS) for role in roles]


# ═══════════════════════════════════════════════════════════════════════════
# ESTIMATION
# ═══════════════════════════════════════════════════════════════════════════

class TestEstimateTokens:
    """Character-based token estimates."""

    def test_string_rounds_up(self) -> None:
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("") == 0

    def test_turn_sums_blocks(self) -> None:
        turn = ConversationTurn(role="assistant", content=[
            {"type": "text", "text": "abcd"},
            ToolUseBlock(id="t1", name="ls", input={}),
        ])
        assert estimate_tokens(turn) == 1 + 1 + 1

    def test_image_has_fixed_estimate(self) -> None:
        turn = ConversationTurn(role="user", content=[{"type": "image", "url": "https://img.test/a.png"}])
        assert estimate_tokens(turn) == 1000

    def test_system_block(self) -> None:
        assert estimate_tokens(SystemBlock(text=_text(7))) == 7


# ═══════════════════════════════════════════════════════════════════════════
# PLACEMENT
# ═══════════════════════════════════════════════════════════════════════════

class TestPlacement:
    """Which turns get a boundary."""

    def test_trailing_user_turn_is_not_marked(self, injector: PromptCacheInjector) -> None:
        history = [_turn("user", MIN_TOKENS), _turn("assistant", MIN_TOKENS), _turn("user", MIN_TOKENS)]
        result = injector.inject(history)
        assert result.boundaries == (0, 1)
        assert not result.history[-1].cache_boundary

    def test_trailing_assistant_turn_can_be_marked(self, injector: PromptCacheInjector) -> None:
        history = [_turn("user", MIN_TOKENS), _turn("assistant", MIN_TOKENS)]
        assert injector.inject(history).boundaries == (0, 1)

    def test_small_turns_are_skipped(self, injector: PromptCacheInjector) -> None:
        history = [_turn("user", MIN_TOKENS - 1), _turn("assistant", MIN_TOKENS), _turn("user", 1)]
        assert injector.inject(history).boundaries == (1,)

    def test_cap_keeps_newest_boundaries(self, injector: PromptCacheInjector, long_history) -> None:
        """Should never exceed four boundaries and prefer the newest turns."""
        result = injector.inject(long_history)
        assert result.boundaries == (4, 5, 6, 7)
        assert sum(turn.cache_boundary for turn in result.history) == 4

    def test_system_block_uses_one_breakpoint(self, injector: PromptCacheInjector, long_history) -> None:
        system = [SystemBlock(text="short rules"), SystemBlock(text=_text(MIN_TOKENS))]
        result = injector.inject(long_history, system)

        assert result.system_marked
        assert [block.cache_boundary for block in result.system_blocks] == [False, True]
        assert result.boundaries == (5, 6, 7)

    def test_small_system_prompt_not_marked(self, injector: PromptCacheInjector) -> None:
        result = injector.inject([_turn("user", 1)], [SystemBlock(text="be brief")])
        assert not result.system_marked
        assert not result.system_blocks[0].cache_boundary

    def test_custom_cap(self, long_history) -> None:
        result = PromptCacheInjector(max_breakpoints=2, min_tokens=MIN_TOKENS).inject(long_history)
        assert result.boundaries == (6, 7)

    def test_rejects_zero_cap(self) -> None:
        with pytest.raises(ValueError):
            PromptCacheInjector(max_breakpoints=0)

    def test_empty_history(self, injector: PromptCacheInjector) -> None:
        result = injector.inject([])
        assert result.history == []
        assert result.boundaries == ()
        assert (result.cache_write_tokens, result.cache_read_tokens) == (0, 0)


class TestIdempotence:
    """Re-running placement is stable and never edits the caller's turns."""

    def test_existing_markers_are_replaced(self, injector: PromptCacheInjector) -> None:
        """Should drop stale markers before placing new ones."""
        history = [_turn("user", 1, cache_boundary=True), _turn("assistant", MIN_TOKENS), _turn("user", 1)]
        result = injector.inject(history)
        assert [turn.cache_boundary for turn in result.history] == [False, True, False]

    def test_second_pass_is_identical(self, injector: PromptCacheInjector, long_history) -> None:
        system = [SystemBlock(text=_text(MIN_TOKENS))]
        first = injector.inject(long_history, system)
        second = injector.inject(first.history, first.system_blocks)

        assert second.history == first.history
        assert second.system_blocks == first.system_blocks
        assert second.boundaries == first.boundaries

    def test_inputs_are_not_modified(self, injector: PromptCacheInjector, long_history) -> None:
        original = list(long_history)
        result = injector.inject(long_history)

        assert long_history == original
        assert not any(turn.cache_boundary for turn in long_history)
        assert result.history is not long_history


# ═══════════════════════════════════════════════════════════════════════════
# ANTICIPATED TRAFFIC
# ═══════════════════════════════════════════════════════════════════════════

class TestAnticipatedTokens:
    """Read and write estimates derived from the marked prefixes."""

    def test_read_previous_prefix_write_newest_segment(self, injector: PromptCacheInjector) -> None:
        """Should read up to the second-newest boundary and write the rest."""
        history = [
            _turn("user", 10),
            _turn("assistant", 10),
            _turn("user", 5),
            _turn("assistant", 10),
            _turn("user", 3),
        ]
        result = injector.inject(history, [SystemBlock(text=_text(10))])

        assert result.boundaries == (0, 1, 3)
        assert result.cache_read_tokens == 30
        assert result.cache_write_tokens == 15

    def test_single_boundary_is_all_write(self, injector: PromptCacheInjector) -> None:
        result = injector.inject([_turn("user", 12), _turn("user", 1)])
        assert result.cache_write_tokens == 12
        assert result.cache_read_tokens == 0


class TestUsesCacheMarkers:
    """Only Claude models routed anywhere use explicit markers."""

    def test_anthropic_model(self, sonnet: ModelInfo) -> None:
        assert uses_cache_markers(sonnet)
        assert PromptCacheInjector().applies_to(sonnet)

    def test_uncached_model(self, gpt4o: ModelInfo) -> None:
        assert not uses_cache_markers(gpt4o)

    def test_claude_via_openrouter(self, sonnet: ModelInfo) -> None:
        routed = sonnet.model_copy(update={"id": "anthropic/claude-3.5-sonnet", "provider": "openrouter"})
        assert uses_cache_markers(routed)

    def test_auto_cached_model(self, gpt4o: ModelInfo) -> None:
        """Should not mark models that cache automatically."""
        deepseek = gpt4o.model_copy(update={"id": "deepseek-chat", "provider": "deepseek",
                                            "supports_prompt_cache": True})
        assert not uses_cache_markers(deepseek)
