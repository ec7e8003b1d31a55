"""
Provider‑neutral types for tool use.

They are intentionally minimal: everything provider‑specific lives in adapters.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, NotRequired, TypedDict, Union

__all__ = [
    "CommonToolCall",
    "CommonToolResult",
    "CommonMessage",
    "TextBlock",
    "ImageBlock",
    "ContentBlock",
    "DEFAULT_TOOL_ERROR",
]

DEFAULT_TOOL_ERROR = "Tool execution failed"


class TextBlock(TypedDict):
    type: Literal["text"]
    text: str


class ImageBlock(TypedDict):
    """MCP style image block: raw base64 payload plus an optional MIME type."""
    type: Literal["image"]
    data: str
    mimeType: NotRequired[str]


ContentBlock = Union[TextBlock, ImageBlock]


@dataclass(frozen=True, slots=True)
class CommonToolCall:
    """A model‑agnostic request emitted by the LLM to call a tool."""
    id: str                     # provider-issued, opaque
    name: str
    arguments: dict[str, Any]


@dataclass(frozen=True, slots=True)
class CommonToolResult:
    """Payload to send back to the LLM after the tool finished running."""
    id: str                     # must match the call id
    name: str
    content: Any                # JSON value, list[ContentBlock] or None
    is_error: bool = False
    error: str | None = None

    @property
    def error_text(self) -> str:
        """Display text for an erroring result; ``content`` is never used."""
        return f"Error: {self.error or DEFAULT_TOOL_ERROR}"


@dataclass(slots=True)
class CommonMessage:
    """A provider message reduced to its role and the tool results it carries."""
    role: str
    tool_results: list[CommonToolResult] = field(default_factory=list)
