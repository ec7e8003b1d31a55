"""Pure tool call / tool result adapters for the supported providers."""

from __future__ import annotations

from typing import Final

from tool_bridge.provider import Provider

from .anthropic import AnthropicToolAdapter
from .base import ProviderMessage, ToolAdapter
from .gemini import GeminiToolAdapter
from .openai import OpenAIToolAdapter

__all__ = [
    "ToolAdapter",
    "ProviderMessage",
    "OpenAIToolAdapter",
    "AnthropicToolAdapter",
    "GeminiToolAdapter",
    "get_tool_adapter",
]

# adapters are stateless, one shared instance per provider
_ADAPTER_REGISTRY: Final[dict[Provider, ToolAdapter]] = {
    Provider.OPENAI: OpenAIToolAdapter(),
    Provider.ANTHROPIC: AnthropicToolAdapter(),
    Provider.GEMINI: GeminiToolAdapter(),
}


def get_tool_adapter(provider: Provider | str) -> ToolAdapter:
    """Return the tool adapter for ``provider``; raises ValueError for unknown providers."""
    try:
        return _ADAPTER_REGISTRY[Provider(provider)]
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unsupported provider: {provider}") from exc
