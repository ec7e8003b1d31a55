from __future__ import annotations

import logging
from typing import Any, Type

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from tool_bridge.provider import Provider, get_api_key
from tool_bridge.providers.anthropic import AnthropicLLM
from tool_bridge.providers.base import BaseAsyncLLM
from tool_bridge.providers.gemini import GeminiLLM
from tool_bridge.providers.openai import OpenAILLM

__all__ = ["create_llm"]

# map Provider enum to its LLM implementation
_LLM_REGISTRY: dict[Provider, Type[BaseAsyncLLM]] = {
    Provider.OPENAI: OpenAILLM,
    Provider.ANTHROPIC: AnthropicLLM,
    Provider.GEMINI: GeminiLLM,
}


def create_llm(
    provider: Provider | str,
    model: str,
    *,
    api_key: str | None = None,
    client: AsyncOpenAI | AsyncAnthropic | None = None,
    logger: logging.Logger | None = None,
    **provider_kwargs: Any,
) -> BaseAsyncLLM:
    """
    Factory for creating any supported LLM.

    Args:
        provider: Which provider to use (OPENAI, ANTHROPIC, GEMINI).
        model: Model identifier (e.g. "gpt-4o-mini").
        api_key: Overrides automatic lookup; if omitted, pulled from env.
        client: Optional pre-configured client instance to use.
            - For Provider.OPENAI: an AsyncOpenAI instance
            - For Provider.ANTHROPIC: an AsyncAnthropic instance
            - For Provider.GEMINI: an AsyncOpenAI instance pointed at the
              OpenAI-compatible endpoint
        logger: Optional custom logger.
        **provider_kwargs: Any extra args to pass through (timeout, max_retries).
    """
    try:
        llm_cls = _LLM_REGISTRY[Provider(provider)]
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unsupported provider: {provider}") from exc

    if client is not None:  # use caller‑supplied client verbatim
        return llm_cls.from_client(model, client, logger=logger, **provider_kwargs)

    key = api_key or get_api_key(Provider(provider))
    return llm_cls(model, api_key=key, logger=logger, **provider_kwargs)
