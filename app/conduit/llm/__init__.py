"""Streaming layer: handlers, prompt caching, cost accounting and event normalization."""

from .cost import CostAccountant, calculate_cost
from .handlers import AbortSignal, Handler, SamplingParams, build_handler
from .prompt_cache import CacheInjection, PromptCacheInjector

__all__ = [
    "AbortSignal",
    "CacheInjection",
    "CostAccountant",
    "Handler",
    "PromptCacheInjector",
    "SamplingParams",
    "build_handler",
    "calculate_cost",
]
