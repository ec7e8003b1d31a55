"""Chat interface the quarantine session uses to reach a model."""

from __future__ import annotations

import json
import logging
from typing import Any, Final, Optional, Protocol, Sequence

from tool_bridge.factory import create_llm
from tool_bridge.provider import Provider
from tool_bridge.providers.base import BaseAsyncLLM
from tool_bridge.types.chat import ChatMessage, ChatParams, ResponseSchema

__all__ = [
    "QuarantineClient",
    "LLMQuarantineClient",
    "create_quarantine_client",
    "DEFAULT_QUARANTINE_MODELS",
]

_logger = logging.getLogger(__name__)

DEFAULT_QUARANTINE_MODELS: Final[dict[Provider, str]] = {
    Provider.OPENAI: "gpt-4o",
    Provider.ANTHROPIC: "claude-3-5-sonnet-latest",
    Provider.GEMINI: "gemini-2.5-flash",
}


class QuarantineClient(Protocol):
    """
    Provider-agnostic chat calls.

    Transport failures raise ``ModelCallError``; implementations do not retry.
    """

    async def chat(self, messages: Sequence[ChatMessage], temperature: float = 0.0) -> str:
        """Return the text of one completion."""
        ...

    async def chat_with_schema(
        self,
        messages: Sequence[ChatMessage],
        schema: ResponseSchema,
        temperature: float = 0.0,
    ) -> Any:
        """Return the parsed object of a schema-constrained completion, or None if unparseable."""
        ...


class LLMQuarantineClient:
    """QuarantineClient backed by one of the provider chat clients."""

    def __init__(self, llm: BaseAsyncLLM, *, max_tokens: Optional[int] = None) -> None:
        self.llm = llm
        self._max_tokens = max_tokens

    async def chat(self, messages: Sequence[ChatMessage], temperature: float = 0.0) -> str:
        response = await self.llm.chat(
            messages, params=ChatParams(temperature=temperature, max_tokens=self._max_tokens)
        )
        response.raise_for_error()
        return response.content

    async def chat_with_schema(
        self,
        messages: Sequence[ChatMessage],
        schema: ResponseSchema,
        temperature: float = 0.0,
    ) -> Any:
        response = await self.llm.chat(
            messages,
            params=ChatParams(
                temperature=temperature,
                max_tokens=self._max_tokens,
                response_schema=schema,
            ),
        )
        response.raise_for_error()

        # Anthropic answers through a forced tool call
        for call in response.tool_calls or []:
            if call.name == schema["name"]:
                return call.arguments

        try:
            return json.loads(response.content)
        except (ValueError, TypeError):
            _logger.warning("Structured response is not valid JSON: %r", response.content[:200])
            return None

    async def aclose(self) -> None:
        await self.llm.aclose()


def create_quarantine_client(
    provider: Provider | str,
    model: Optional[str] = None,
    *,
    api_key: Optional[str] = None,
    **provider_kwargs: Any,
) -> LLMQuarantineClient:
    """
    Build a quarantine client for ``provider``.

    Args:
        provider: Which provider to use.
        model: Model identifier; defaults to ``DEFAULT_QUARANTINE_MODELS[provider]``.
        api_key: Overrides the key read from the environment.
        **provider_kwargs: Passed to ``create_llm`` (timeout, max_retries, client, ...).
    """
    provider = Provider(provider)
    llm = create_llm(
        provider,
        model or DEFAULT_QUARANTINE_MODELS[provider],
        api_key=api_key,
        **provider_kwargs,
    )
    return LLMQuarantineClient(llm)
