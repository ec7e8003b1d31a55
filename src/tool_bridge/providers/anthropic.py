from __future__ import annotations

import logging
from typing import Any, Optional, Self, Sequence

from anthropic import AsyncAnthropic
from anthropic.types import Message

from tool_bridge.adapters.anthropic import AnthropicToolAdapter
from tool_bridge.providers.base import BaseAsyncLLM, RequestAdapter
from tool_bridge.response import ChatResponse
from tool_bridge.types.chat import ChatMessage, ChatParams

__all__ = ["AnthropicRequestAdapter", "AnthropicLLM"]

_DEFAULT_MAX_TOKENS = 4096

# OpenAI style tool_choice strings
_TOOL_CHOICE = {
    "auto": {"type": "auto"},
    "required": {"type": "any"},
    "none": {"type": "none"},
}


class AnthropicRequestAdapter:
    """Adapter for converting between generic format and Anthropic messages."""

    def __init__(self) -> None:
        self._tools = AnthropicToolAdapter()

    def to_provider(
        self, messages: Sequence[ChatMessage], params: ChatParams
    ) -> dict[str, Any]:
        """Convert generic messages and params to Anthropic request format."""
        anthropic_messages: list[dict[str, Any]] = []
        system_prompt: Any = ""

        for msg in messages:
            # Anthropic takes the system prompt as a top-level argument
            if msg["role"] == "system":
                content = msg.get("content", "")
                system_prompt = content if isinstance(content, (str, list)) else str(content)
                continue

            anthropic_msg: dict[str, Any] = {"role": msg["role"]}
            content = msg.get("content")
            if content is not None:
                anthropic_msg["content"] = content if isinstance(content, (str, list)) else str(content)

            # OpenAI style tool response message
            if msg.get("tool_call_id"):
                anthropic_msg = {
                    "role": "user",
                    "content": [
                        {
                            "type": "tool_result",
                            "tool_use_id": msg["tool_call_id"],
                            "content": msg.get("content", ""),
                        }
                    ],
                }

            anthropic_messages.append(anthropic_msg)

        args: dict[str, Any] = {"messages": anthropic_messages, **self.build_params(params)}
        if system_prompt:
            args["system"] = system_prompt
        return args

    def build_params(self, params: ChatParams) -> dict[str, Any]:
        base_params = params.as_dict(exclude_none=True)
        extras = base_params.pop("extra_params", {})

        # Anthropic requires max_tokens
        base_params.setdefault("max_tokens", _DEFAULT_MAX_TOKENS)

        if base_params.get("tools"):
            base_params["tools"] = [self._convert_tool(tool) for tool in base_params["tools"]]

        tool_choice = base_params.get("tool_choice")
        if isinstance(tool_choice, str):
            base_params["tool_choice"] = _TOOL_CHOICE.get(tool_choice, {"type": "auto"})

        # Structured output: force a single tool whose input is the answer
        schema = base_params.pop("response_schema", None)
        if schema is not None:
            base_params["tools"] = [
                *base_params.get("tools", []),
                {
                    "name": schema["name"],
                    "description": "Respond with an object matching this schema.",
                    "input_schema": schema["schema"],
                },
            ]
            base_params["tool_choice"] = {"type": "tool", "name": schema["name"]}

        for k, v in extras.items():
            base_params.setdefault(k, v)
        return base_params

    @staticmethod
    def _convert_tool(tool: dict[str, Any]) -> dict[str, Any]:
        if tool.get("type") != "function":
            return tool
        func = tool["function"]
        return {
            "name": func["name"],
            "description": func.get("description", ""),
            "input_schema": func.get("parameters", {}),
        }

    def from_provider(self, raw: Message) -> ChatResponse:
        """Convert Anthropic response to unified ChatResponse."""
        text_parts: list[str] = []
        tool_uses: list[Any] = []

        for block in raw.content or []:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_uses.append(block)

        tool_calls = self._tools.tool_calls_to_common(tool_uses) if tool_uses else None
        return ChatResponse(content="".join(text_parts), tool_calls=tool_calls, raw=raw)

    def assistant_message_from(self, raw: Message) -> ChatMessage:
        """Convert Anthropic response to assistant ChatMessage."""
        text_parts: list[str] = []
        tool_use_blocks: list[dict[str, Any]] = []

        for block in raw.content or []:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_use_blocks.append(
                    {
                        "type": "tool_use",
                        "id": block.id,
                        "name": block.name,
                        "input": dict(block.input) if hasattr(block.input, "items") else {},
                    }
                )

        if not tool_use_blocks:
            return {"role": "assistant", "content": "".join(text_parts)}

        content: list[dict[str, Any]] = []
        if text_parts:
            content.append({"type": "text", "text": "".join(text_parts)})
        content.extend(tool_use_blocks)
        return {"role": "assistant", "content": content}


class AnthropicLLM(BaseAsyncLLM):
    """
    Anthropic LLM implementation (async‑only).

    Use ``AnthropicLLM.from_client`` when you already have an ``AsyncAnthropic`` instance.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        timeout: float = 60.0,
        max_retries: int = 2,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(model=model, logger=logger, name=name)
        self._client = AsyncAnthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            base_url=base_url,
        )
        self._adapter = AnthropicRequestAdapter()

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncAnthropic,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Wrap an existing ``AsyncAnthropic`` client.
        """
        if not isinstance(client, AsyncAnthropic):
            raise TypeError(
                f"AnthropicLLM.from_client expects AsyncAnthropic; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(self, model=model, logger=logger, name=name)
        self._client = client
        self._adapter = AnthropicRequestAdapter()
        return self

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: ChatParams,
    ) -> Message:
        args = {
            "model": self.model,
            **self._adapter.to_provider(messages, params),
        }

        self._log(f"Sending request to model {self.model}", logging.DEBUG)
        return await self._client.messages.create(**args)
