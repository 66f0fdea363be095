"""Conduit: provider-agnostic LLM streaming client and model catalog cache."""

__version__ = "0.1.0"
