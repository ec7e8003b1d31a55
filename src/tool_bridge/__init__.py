"""
Tool Bridge - common tool protocol across LLM providers, with a dual LLM
quarantine for untrusted tool output.
"""

import logging

from .adapters import (
    AnthropicToolAdapter,
    GeminiToolAdapter,
    OpenAIToolAdapter,
    ToolAdapter,
    get_tool_adapter,
)
from .content import has_image_content, is_image_block
from .errors import ModelCallError
from .factory import create_llm
from .provider import Provider, get_api_key
from .providers import AnthropicLLM, BaseAsyncLLM, GeminiLLM, OpenAILLM
from .quarantine import (
    DualLlmConfig,
    DualLlmResult,
    DualLlmSubagent,
    LLMQuarantineClient,
    QuarantineClient,
    create_quarantine_client,
    quarantine_tool_result,
)
from .response import ChatResponse
from .serialization import safe_json_stringify
from .types import ChatMessage, ChatParams, CommonToolCall, CommonToolResult

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "CommonToolCall",
    "CommonToolResult",
    "ChatMessage",
    "ChatParams",
    "ToolAdapter",
    "OpenAIToolAdapter",
    "AnthropicToolAdapter",
    "GeminiToolAdapter",
    "get_tool_adapter",
    "is_image_block",
    "has_image_content",
    "safe_json_stringify",
    "BaseAsyncLLM",
    "OpenAILLM",
    "AnthropicLLM",
    "GeminiLLM",
    "create_llm",
    "ChatResponse",
    "ModelCallError",
    "Provider",
    "get_api_key",
    "DualLlmConfig",
    "DualLlmResult",
    "DualLlmSubagent",
    "QuarantineClient",
    "LLMQuarantineClient",
    "create_quarantine_client",
    "quarantine_tool_result",
]
