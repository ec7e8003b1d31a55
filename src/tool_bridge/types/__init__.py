from .chat import ChatMessage, ChatParams, ResponseSchema
from .tool import (
    DEFAULT_TOOL_ERROR,
    CommonMessage,
    CommonToolCall,
    CommonToolResult,
    ContentBlock,
    ImageBlock,
    TextBlock,
)

__all__ = [
    "ChatMessage",
    "ChatParams",
    "ResponseSchema",
    "CommonMessage",
    "CommonToolCall",
    "CommonToolResult",
    "ContentBlock",
    "ImageBlock",
    "TextBlock",
    "DEFAULT_TOOL_ERROR",
]
