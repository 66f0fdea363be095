"""Test suite for token usage to USD conversion."""

import pytest

from conduit.core.types import CompletedEvent, ModelInfo, Usage
from conduit.llm.cost import CostAccountant, calculate_cost


class TestCalculateCost:
    """Per-million pricing arithmetic."""

    def test_input_and_output(self, sonnet: ModelInfo) -> None:
        """Should price 1000 input and 500 output tokens at 3.0/15.0 as 0.0105."""
        usage = Usage(input_tokens=1000, output_tokens=500)
        assert calculate_cost(sonnet, usage) == pytest.approx(0.0105)

    def test_cache_tokens(self, sonnet: ModelInfo) -> None:
        """Should add cache writes and reads at their own prices."""
        usage = Usage(cache_write_tokens=1_000_000, cache_read_tokens=1_000_000)
        assert calculate_cost(sonnet, usage) == pytest.approx(3.75 + 0.3)

    def test_missing_cache_prices_count_as_zero(self, gpt4o: ModelInfo) -> None:
        """Should ignore cache tokens when the model has no cache prices."""
        usage = Usage(input_tokens=1_000_000, cache_read_tokens=500_000)
        assert calculate_cost(gpt4o, usage) == pytest.approx(2.5)

    def test_zero_usage(self, sonnet: ModelInfo) -> None:
        assert calculate_cost(sonnet, Usage()) == 0.0


class TestCostAccountant:
    """Pricing snapshot bound at request start."""

    def test_snapshot_survives_catalog_refresh(self, sonnet: ModelInfo) -> None:
        """Should keep pricing the request at the prices it started with."""
        accountant = CostAccountant(sonnet)
        repriced = sonnet.model_copy(update={"input_price": 30.0})

        usage = Usage(input_tokens=1000, output_tokens=500)
        assert accountant.model is sonnet
        assert accountant.cost(usage) == pytest.approx(0.0105)
        assert calculate_cost(repriced, usage) > accountant.cost(usage)

    def test_completed_event(self, sonnet: ModelInfo) -> None:
        """Should build a terminal event carrying usage, cost and credits."""
        usage = Usage(input_tokens=1000, output_tokens=500)
        event = CostAccountant(sonnet).completed_event(usage, user_credits=12.5)

        assert isinstance(event, CompletedEvent)
        assert event.usage == usage
        assert event.cost == pytest.approx(0.0105)
        assert event.user_credits == 12.5

    def test_anticipated_cost(self, sonnet: ModelInfo) -> None:
        """Should price anticipated cache traffic only."""
        cost = CostAccountant(sonnet).anticipated_cost(cache_write_tokens=2000, cache_read_tokens=10_000)
        assert cost == pytest.approx((2000 * 3.75 + 10_000 * 0.3) / 1_000_000)
