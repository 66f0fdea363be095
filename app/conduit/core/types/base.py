"""Defines the canonical base configuration and token usage accounting.

This module provides the shared Pydantic base model used by every data
structure in the package, plus the per-request `Usage` record that the
cost accountant prices.
"""

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════════════════════════════════════════════════════════════════
# BASE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

class CanonicalModel(BaseModel):
    """A base model providing shared configuration for all canonical data structures.

    Configuration:
        frozen: Prevents modification after creation. Catalog entries, history
            turns and stream events are shared between callers and must never
            change underneath them.
        extra: Rejects unknown fields to prevent backend-specific data leaking
            into the canonical types.
        str_strip_whitespace: Disabled. Streamed text deltas carry meaningful
            leading and trailing whitespace.
    """
    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
    )


# ═══════════════════════════════════════════════════════════════════════════
# TOKEN USAGE TRACKING
# ═══════════════════════════════════════════════════════════════════════════

class Usage(CanonicalModel):
    """Token counts for a single request.

    Counts are accumulated per request and never summed across requests;
    cross-request aggregation belongs to the caller.

    Cache Semantics:
        - `input_tokens` counts only uncached input tokens.
        - `cache_write_tokens` were billed to populate the upstream prompt cache.
        - `cache_read_tokens` were served from the upstream prompt cache.
        - Backends without prompt caching report 0 for both cache fields.

    Attributes:
        input_tokens: Uncached prompt tokens.
        output_tokens: Generated tokens.
        cache_write_tokens: Prompt tokens written to the upstream cache.
        cache_read_tokens: Prompt tokens read from the upstream cache.

    Example:
        >>> usage = Usage(input_tokens=1000, output_tokens=500)
        >>> usage.total_tokens
        1500
    """
    input_tokens: int = Field(default=0, ge=0, description="Uncached prompt tokens.")
    output_tokens: int = Field(default=0, ge=0, description="Generated tokens.")
    cache_write_tokens: int = Field(
        default=0,
        ge=0,
        description="Prompt tokens used to populate the upstream cache."
    )
    cache_read_tokens: int = Field(
        default=0,
        ge=0,
        description="Prompt tokens served from the upstream cache."
    )

    @property
    def total_tokens(self) -> int:
        """Every token billed for the request, cached or not."""
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_write_tokens
            + self.cache_read_tokens
        )

    @property
    def cache_efficiency(self) -> float:
        """Fraction of prompt tokens served from cache (0.0 to 1.0).

        Example:
            >>> Usage(input_tokens=70, cache_read_tokens=30).cache_efficiency
            0.3
        """
        prompt_tokens = self.input_tokens + self.cache_write_tokens + self.cache_read_tokens
        if prompt_tokens == 0:
            return 0.0
        return self.cache_read_tokens / prompt_tokens
