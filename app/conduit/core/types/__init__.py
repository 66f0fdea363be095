# app/conduit/core/types/__init__.py
"""
Public API for Conduit's type system.

This module exposes only the concrete types that external consumers
(handlers, HTTP routes, callers building histories) should use. Internal
enums and helpers remain private to ensure API stability.
"""

# ═══════════════════════════════════════════════════════════════════════════
# 1. BASE MODELS
# ═══════════════════════════════════════════════════════════════════════════
from .base import (
    CanonicalModel,
    Usage,
)

# ═══════════════════════════════════════════════════════════════════════════
# 2. MODEL CATALOG
# ═══════════════════════════════════════════════════════════════════════════
from .models import (
    ModelInfo,
    ProviderConfig,
)

# ═══════════════════════════════════════════════════════════════════════════
# 3. CONVERSATION HISTORY
# ═══════════════════════════════════════════════════════════════════════════
from .conversation import (
    ContentBlock,
    ConversationTurn,
    ImageBlock,
    SystemBlock,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    system_blocks_from_prompt,
    without_image_data,
)

# ═══════════════════════════════════════════════════════════════════════════
# 4. STREAM EVENTS
# ═══════════════════════════════════════════════════════════════════════════
from .events import (
    CompletedEvent,
    ContentBlockEvent,
    ErrorEvent,
    ReasoningDeltaEvent,
    StartedEvent,
    StreamEvent,
    TextDeltaEvent,
)

# ═══════════════════════════════════════════════════════════════════════════
# 5. PROVIDER SETTINGS
# ═══════════════════════════════════════════════════════════════════════════
from .settings import (
    AiderSettings,
    AnthropicSettings,
    DeepSeekSettings,
    GoogleGenAISettings,
    KoduSettings,
    MistralSettings,
    OpenAICompatibleSettings,
    OpenAISettings,
    OpenRouterSettings,
    ProviderSettings,
)

# ═══════════════════════════════════════════════════════════════════════════
# PUBLIC API SURFACE
# ═══════════════════════════════════════════════════════════════════════════
__all__ = [
    # Base
    "CanonicalModel",
    "Usage",

    # Catalog
    "ModelInfo",
    "ProviderConfig",

    # Conversation
    "ContentBlock",
    "ConversationTurn",
    "ImageBlock",
    "SystemBlock",
    "TextBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "system_blocks_from_prompt",
    "without_image_data",

    # Events
    "CompletedEvent",
    "ContentBlockEvent",
    "ErrorEvent",
    "ReasoningDeltaEvent",
    "StartedEvent",
    "StreamEvent",
    "TextDeltaEvent",

    # Settings
    "AiderSettings",
    "AnthropicSettings",
    "DeepSeekSettings",
    "GoogleGenAISettings",
    "KoduSettings",
    "MistralSettings",
    "OpenAICompatibleSettings",
    "OpenAISettings",
    "OpenRouterSettings",
    "ProviderSettings",
]
