"""Defines conversation history types: turns, content blocks and system blocks.

History is owned by the caller. Every type here is frozen, so code that
needs a different history (for example the prompt cache injector moving
cache boundaries) builds new turns with `model_copy(update=...)` and
returns a new sequence instead of editing the caller's objects.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Tuple, Union

from pydantic import Field, field_validator, model_validator

from .base import CanonicalModel


IMAGE_DATA_PLACEHOLDER = "..."


# ═══════════════════════════════════════════════════════════════════════════
# CONTENT BLOCKS
# ═══════════════════════════════════════════════════════════════════════════

class TextBlock(CanonicalModel):
    """A content block containing plain text.

    Example:
        >>> block = TextBlock(text="Hello, world!")
    """
    type: Literal["text"] = "text"
    text: str = Field(min_length=1, description="The text content")


class ImageBlock(CanonicalModel):
    """A content block representing an image.

    Must provide either base64-encoded data OR a URL, but not both.

    Attributes:
        type: Discriminator field (always "image").
        media_type: MIME type (e.g., "image/jpeg", "image/png").
        data: Base64-encoded image data (without data URI prefix).
        url: Public URL to the image.
    """
    type: Literal["image"] = "image"
    media_type: str = Field(default="image/jpeg", description="MIME type of the image")
    data: Optional[str] = Field(default=None, description="Base64-encoded image data")
    url: Optional[str] = Field(default=None, description="Public URL to the image")

    @model_validator(mode='after')
    def validate_source(self) -> 'ImageBlock':
        """Ensure that either 'data' or 'url' is provided, but not both."""
        has_data = bool(self.data and self.data.strip())
        has_url = bool(self.url and self.url.strip())

        if not has_data and not has_url:
            raise ValueError("ImageBlock must have either 'data' or 'url'")

        if has_data and has_url:
            raise ValueError("ImageBlock cannot have both 'data' and 'url'")

        return self

    @property
    def source_url(self) -> str:
        """The image as a URL (a data URI for inline images)."""
        if self.url:
            return self.url
        return f"data:{self.media_type};base64,{self.data}"


class ToolUseBlock(CanonicalModel):
    """A model's request to execute a tool.

    Example:
        >>> block = ToolUseBlock(
        ...     id="toolu_01",
        ...     name="read_file",
        ...     input={"path": "README.md"}
        ... )
    """
    type: Literal["tool_use"] = "tool_use"
    id: str = Field(min_length=1, description="Provider-generated tool call id")
    name: str = Field(min_length=1, description="Tool name")
    input: Dict[str, Any] = Field(default_factory=dict, description="Parsed tool arguments")


ToolResultPart = Annotated[
    Union[TextBlock, ImageBlock],
    Field(discriminator='type')
]


class ToolResultBlock(CanonicalModel):
    """The result of a tool execution, sent back to the model.

    Attributes:
        tool_use_id: Must match the id of the originating `ToolUseBlock`.
        content: Plain text, or a list of text/image parts.
        is_error: Whether the tool failed.
    """
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str = Field(min_length=1)
    content: Union[str, Tuple[ToolResultPart, ...]] = ""
    is_error: bool = False

    @property
    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "\n".join(part.text for part in self.content if isinstance(part, TextBlock))


ContentBlock = Annotated[
    Union[TextBlock, ImageBlock, ToolUseBlock, ToolResultBlock],
    Field(discriminator='type')
]


# ═══════════════════════════════════════════════════════════════════════════
# TURNS
# ═══════════════════════════════════════════════════════════════════════════

class ConversationTurn(CanonicalModel):
    """A single history item.

    Attributes:
        role: "user" or "assistant". Tool results travel in user turns.
        content: Ordered content blocks. A plain string is accepted and
            converted to a single `TextBlock`.
        cache_boundary: Marks the end of a prefix the backend should cache.

    Example:
        >>> turn = ConversationTurn(role="user", content="Summarize the diff.")
        >>> turn.content[0].text
        'Summarize the diff.'
    """
    role: Literal["user", "assistant"]
    content: Tuple[ContentBlock, ...] = Field(min_length=1)
    cache_boundary: bool = False

    @field_validator('content', mode='before')
    @classmethod
    def coerce_text_content(cls, v: Any) -> Any:
        if isinstance(v, str):
            return (TextBlock(text=v),)
        return v

    @property
    def has_tool_results(self) -> bool:
        return any(isinstance(block, ToolResultBlock) for block in self.content)

    @property
    def tool_uses(self) -> List[ToolUseBlock]:
        return [block for block in self.content if isinstance(block, ToolUseBlock)]


class SystemBlock(CanonicalModel):
    """One block of the system prompt."""
    type: Literal["text"] = "text"
    text: str = Field(min_length=1)
    cache_boundary: bool = False


def system_blocks_from_prompt(system_prompt: Sequence[str]) -> List[SystemBlock]:
    """Build system blocks from prompt strings, skipping blank entries."""
    return [SystemBlock(text=text) for text in system_prompt if text and text.strip()]


# ═══════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def without_image_data(blocks: Sequence[ContentBlock]) -> List[ContentBlock]:
    """Return copies of `blocks` with inline image payloads replaced by a placeholder.

    URL images and non-image blocks are returned unchanged. Images nested in
    tool results are redacted too. Intended for logs and diagnostics.
    """
    redacted: List[ContentBlock] = []
    for block in blocks:
        if isinstance(block, ImageBlock) and block.data:
            redacted.append(block.model_copy(update={"data": IMAGE_DATA_PLACEHOLDER}))
        elif isinstance(block, ToolResultBlock) and not isinstance(block.content, str):
            parts = tuple(
                part.model_copy(update={"data": IMAGE_DATA_PLACEHOLDER})
                if isinstance(part, ImageBlock) and part.data
                else part
                for part in block.content
            )
            redacted.append(block.model_copy(update={"content": parts}))
        else:
            redacted.append(block)
    return redacted
