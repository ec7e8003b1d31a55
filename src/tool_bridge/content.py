"""Recognize canonical (MCP style) multimodal content blocks."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, TypeGuard

from tool_bridge.types.tool import ImageBlock, TextBlock

__all__ = [
    "DEFAULT_IMAGE_MIME_TYPE",
    "is_image_block",
    "is_text_block",
    "has_image_content",
    "image_mime_type",
]

DEFAULT_IMAGE_MIME_TYPE = "image/png"


def is_image_block(item: Any) -> TypeGuard[ImageBlock]:
    """Return True for ``{"type": "image", "data": <str>}``; ``mimeType`` is optional."""
    if not isinstance(item, Mapping):
        return False
    if item.get("type") != "image":
        return False
    return isinstance(item.get("data"), str)


def is_text_block(item: Any) -> TypeGuard[TextBlock]:
    if not isinstance(item, Mapping):
        return False
    return item.get("type") == "text" and isinstance(item.get("text"), str)


def has_image_content(
    content: Any,
    is_image: Callable[[Any], bool] = is_image_block,
) -> bool:
    """
    Check whether ``content`` is a list holding at least one image block.

    Args:
        content: Tool result content of any shape.
        is_image: Predicate deciding what counts as an image. Adapters pass one
            that also accepts their provider's native image block.
    """
    if not isinstance(content, list):
        return False
    return any(is_image(item) for item in content)


def image_mime_type(block: Mapping[str, Any]) -> str:
    mime_type = block.get("mimeType")
    return mime_type if isinstance(mime_type, str) and mime_type else DEFAULT_IMAGE_MIME_TYPE
