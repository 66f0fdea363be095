"""Token usage to USD conversion.

Prices are per million tokens. An accountant binds the `ModelInfo` in force
when a request starts; since `ModelInfo` is immutable, a catalog refresh
during the request cannot change the prices it is billed at.
"""

from typing import Optional

from conduit.core.types import CompletedEvent, ModelInfo, Usage

TOKENS_PER_PRICE_UNIT = 1_000_000


def calculate_cost(model: ModelInfo, usage: Usage) -> float:
    """Return the USD cost of `usage` at `model`'s prices.

    Missing cache prices count as zero.

    Example:
        >>> calculate_cost(model, Usage(input_tokens=1000, output_tokens=500))  # 3.0 / 15.0
        0.0105
    """
    total = (
        usage.input_tokens * model.input_price
        + usage.output_tokens * model.output_price
        + usage.cache_write_tokens * (model.cache_writes_price or 0.0)
        + usage.cache_read_tokens * (model.cache_reads_price or 0.0)
    )
    return total / TOKENS_PER_PRICE_UNIT


class CostAccountant:
    """Prices the usage of one request against a pricing snapshot."""

    def __init__(self, model: ModelInfo) -> None:
        self._model = model

    @property
    def model(self) -> ModelInfo:
        return self._model

    def cost(self, usage: Usage) -> float:
        return calculate_cost(self._model, usage)

    def completed_event(
        self,
        usage: Usage,
        user_credits: Optional[float] = None,
    ) -> CompletedEvent:
        """Terminal success event for `usage`, priced at the snapshot."""
        return CompletedEvent(usage=usage, cost=self.cost(usage), user_credits=user_credits)

    def anticipated_cost(self, cache_write_tokens: int, cache_read_tokens: int) -> float:
        """Prompt-side cost expected from the injected cache boundaries alone."""
        return self.cost(
            Usage(cache_write_tokens=cache_write_tokens, cache_read_tokens=cache_read_tokens)
        )
