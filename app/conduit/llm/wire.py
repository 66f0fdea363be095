"""Conversion of conversation history to backend request payloads.

Two message shapes are produced:

    - OpenAI-style chat messages, consumed by litellm for every
      adapter-routed backend. Tool results become `role="tool"` messages and
      tool uses become assistant `tool_calls`.
    - Anthropic-style messages, spoken by the Kodu native protocol.

A turn or system block with `cache_boundary` set gets
`cache_control: {"type": "ephemeral"}` on its last content part. An
OpenAI-style assistant turn made only of tool uses carries the marker on its
last tool call instead.
"""

import json
from typing import Any, Dict, List, Sequence, Tuple

from conduit.core.types import (
    ContentBlock,
    ConversationTurn,
    ImageBlock,
    SystemBlock,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)

EPHEMERAL_CACHE_CONTROL: Dict[str, str] = {"type": "ephemeral"}

Message = Dict[str, Any]


def _cache_control() -> Dict[str, str]:
    return dict(EPHEMERAL_CACHE_CONTROL)


# =============================================================================
# OPENAI-STYLE (litellm)
# =============================================================================


def _openai_part(block: ContentBlock) -> Dict[str, Any]:
    if isinstance(block, ImageBlock):
        return {"type": "image_url", "image_url": {"url": block.source_url}}
    return {"type": "text", "text": block.text}


def _openai_system(system_blocks: Sequence[SystemBlock]) -> List[Message]:
    if not system_blocks:
        return []
    if not any(block.cache_boundary for block in system_blocks):
        return [{"role": "system", "content": "\n\n".join(block.text for block in system_blocks)}]
    parts = []
    for block in system_blocks:
        part: Dict[str, Any] = {"type": "text", "text": block.text}
        if block.cache_boundary:
            part["cache_control"] = _cache_control()
        parts.append(part)
    return [{"role": "system", "content": parts}]


def _openai_tool_result_content(block: ToolResultBlock) -> Any:
    """Plain text, or a part list when the result carries images."""
    if isinstance(block.content, str) or not any(isinstance(part, ImageBlock) for part in block.content):
        return block.text
    return [_openai_part(part) for part in block.content]


def _openai_user(turn: ConversationTurn) -> List[Message]:
    messages: List[Message] = []
    parts: List[Dict[str, Any]] = []
    for block in turn.content:
        if isinstance(block, ToolResultBlock):
            messages.append({
                "role": "tool",
                "tool_call_id": block.tool_use_id,
                "content": _openai_tool_result_content(block),
            })
        elif isinstance(block, (TextBlock, ImageBlock)):
            parts.append(_openai_part(block))
    if parts:
        messages.append({"role": "user", "content": parts})

    if turn.cache_boundary and messages:
        last = messages[-1]
        if isinstance(last["content"], str):
            last["content"] = [{"type": "text", "text": last["content"]}]
        last["content"][-1]["cache_control"] = _cache_control()
    return messages


def _openai_assistant(turn: ConversationTurn) -> List[Message]:
    texts = [block.text for block in turn.content if isinstance(block, TextBlock)]
    message: Message = {"role": "assistant"}
    if texts:
        text_part: Dict[str, Any] = {"type": "text", "text": "".join(texts)}
        if turn.cache_boundary:
            text_part["cache_control"] = _cache_control()
        message["content"] = [text_part]
    else:
        message["content"] = None

    tool_uses = turn.tool_uses
    if tool_uses:
        message["tool_calls"] = [
            {
                "id": block.id,
                "type": "function",
                "function": {"name": block.name, "arguments": json.dumps(block.input)},
            }
            for block in tool_uses
        ]
        if turn.cache_boundary and not texts:
            message["tool_calls"][-1]["cache_control"] = _cache_control()
    return [message]


def to_openai_messages(
    history: Sequence[ConversationTurn],
    system_blocks: Sequence[SystemBlock] = (),
) -> List[Message]:
    """Build an OpenAI-style chat message list, system prompt first.

    Example:
        >>> to_openai_messages([ConversationTurn(role="user", content="hi")])
        [{'role': 'user', 'content': [{'type': 'text', 'text': 'hi'}]}]
    """
    messages = _openai_system(system_blocks)
    for turn in history:
        if turn.role == "user":
            messages.extend(_openai_user(turn))
        else:
            messages.extend(_openai_assistant(turn))
    return messages


# =============================================================================
# ANTHROPIC-STYLE (Kodu)
# =============================================================================


def _anthropic_image(block: ImageBlock) -> Dict[str, Any]:
    if block.data:
        source = {"type": "base64", "media_type": block.media_type, "data": block.data}
    else:
        source = {"type": "url", "url": block.url}
    return {"type": "image", "source": source}


def _anthropic_block(block: ContentBlock) -> Dict[str, Any]:
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ImageBlock):
        return _anthropic_image(block)
    if isinstance(block, ToolUseBlock):
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": dict(block.input)}
    content: Any
    if isinstance(block.content, str):
        content = block.content
    else:
        content = [_anthropic_block(part) for part in block.content]
    return {
        "type": "tool_result",
        "tool_use_id": block.tool_use_id,
        "content": content,
        "is_error": block.is_error,
    }


def to_anthropic_messages(
    history: Sequence[ConversationTurn],
    system_blocks: Sequence[SystemBlock] = (),
) -> Tuple[List[Dict[str, Any]], List[Message]]:
    """Build `(system, messages)` in the Anthropic Messages API shape."""
    system = []
    for block in system_blocks:
        part: Dict[str, Any] = {"type": "text", "text": block.text}
        if block.cache_boundary:
            part["cache_control"] = _cache_control()
        system.append(part)

    messages: List[Message] = []
    for turn in history:
        content = [_anthropic_block(block) for block in turn.content]
        if turn.cache_boundary:
            content[-1]["cache_control"] = _cache_control()
        messages.append({"role": turn.role, "content": content})
    return system, messages
