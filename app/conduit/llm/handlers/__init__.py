"""Streaming handlers: the shared abstraction, its two strategies and the factory."""

from .adapter import AdapterHandler
from .base import AbortSignal, Handler, SamplingParams, StreamRequest, abortable
from .factory import build_handler
from .native import NativeHandler

__all__ = [
    "AbortSignal",
    "AdapterHandler",
    "Handler",
    "NativeHandler",
    "SamplingParams",
    "StreamRequest",
    "abortable",
    "build_handler",
]
