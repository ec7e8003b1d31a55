"""Async chat clients for the supported providers."""

from tool_bridge.provider import Provider, get_api_key

from .anthropic import AnthropicLLM, AnthropicRequestAdapter
from .base import BaseAsyncLLM, RequestAdapter
from .gemini import GeminiLLM
from .openai import OpenAILLM, OpenAIRequestAdapter

__all__ = [
    "BaseAsyncLLM",
    "RequestAdapter",
    "OpenAILLM",
    "OpenAIRequestAdapter",
    "AnthropicLLM",
    "AnthropicRequestAdapter",
    "GeminiLLM",
    "Provider",
    "get_api_key",
]
