from __future__ import annotations

import logging
from typing import Any, Optional, Self, Sequence

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from tool_bridge.adapters.openai import OpenAIToolAdapter
from tool_bridge.providers.base import BaseAsyncLLM, RequestAdapter
from tool_bridge.response import ChatResponse
from tool_bridge.types.chat import ChatMessage, ChatParams

__all__ = ["OpenAIRequestAdapter", "OpenAILLM"]


class OpenAIRequestAdapter:
    """Adapter for converting between generic format and OpenAI chat completions."""

    def __init__(self) -> None:
        self._tools = OpenAIToolAdapter()

    def to_provider(
        self, messages: Sequence[ChatMessage], params: ChatParams
    ) -> dict[str, Any]:
        """Convert generic messages and params to OpenAI request format."""
        return {"messages": self.build_messages(messages), **self.build_params(params)}

    def build_messages(self, messages: Sequence[ChatMessage]) -> list[dict[str, Any]]:
        openai_messages: list[dict[str, Any]] = []
        for msg in messages:
            openai_msg: dict[str, Any] = {"role": msg["role"]}

            if msg.get("content") is not None:
                openai_msg["content"] = msg["content"]

            # Handle tool calls (for assistant messages with function calls)
            if msg.get("tool_calls"):
                openai_msg["tool_calls"] = msg["tool_calls"]
                # OpenAI API: content should be null when tool_calls is present
                openai_msg.setdefault("content", None)

            # Handle tool call ID (for tool response messages)
            if msg.get("tool_call_id"):
                openai_msg["tool_call_id"] = msg["tool_call_id"]

            if msg.get("name"):
                openai_msg["name"] = msg["name"]

            if "content" not in openai_msg:
                openai_msg["content"] = ""

            openai_messages.append(openai_msg)
        return openai_messages

    def build_params(self, params: ChatParams) -> dict[str, Any]:
        base_params = params.as_dict(exclude_none=True)
        extras = base_params.pop("extra_params", {})

        schema = base_params.pop("response_schema", None)
        if schema is not None:
            base_params["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": schema["name"],
                    "schema": schema["schema"],
                    "strict": True,
                },
            }

        for k, v in extras.items():
            base_params.setdefault(k, v)
        return base_params

    def from_provider(self, raw: ChatCompletion) -> ChatResponse:
        """Convert OpenAI response to unified ChatResponse."""
        content = ""
        tool_calls = None

        if raw.choices and raw.choices[0].message:
            message = raw.choices[0].message
            content = message.content or ""
            if message.tool_calls:
                tool_calls = self._tools.tool_calls_to_common(message.tool_calls)

        return ChatResponse(content=content, tool_calls=tool_calls, raw=raw)

    def assistant_message_from(self, raw: ChatCompletion) -> ChatMessage:
        """Convert OpenAI response to assistant ChatMessage."""
        if not raw.choices or not raw.choices[0].message:
            return {"role": "assistant", "content": ""}

        message = raw.choices[0].message
        chat_message: ChatMessage = {"role": "assistant"}

        if message.content:
            chat_message["content"] = message.content

        if message.tool_calls:
            chat_message["tool_calls"] = [
                tc.model_dump(exclude_none=True) for tc in message.tool_calls
            ]
            # OpenAI API: content should be null when tool_calls is present
            chat_message.setdefault("content", None)

        return chat_message


class OpenAILLM(BaseAsyncLLM):
    """
    OpenAI LLM implementation (async‑only).

    Use ``OpenAILLM.from_client`` when you already have an ``AsyncOpenAI`` instance.
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
        self._client = AsyncOpenAI(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            base_url=base_url,
        )
        self._adapter = OpenAIRequestAdapter()

    # Alternate constructor
    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncOpenAI,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Build around an already‑configured ``AsyncOpenAI`` client.
        """
        if not isinstance(client, AsyncOpenAI):
            raise TypeError(
                f"{cls.__name__}.from_client expects AsyncOpenAI; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(self, model=model, logger=logger, name=name)
        self._client = client
        self._adapter = OpenAIRequestAdapter()
        return self

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: ChatParams,
    ) -> ChatCompletion:
        args = {
            "model": self.model,
            **self._adapter.to_provider(messages, params),
        }

        self._log(f"Sending request to model {self.model}", logging.DEBUG)
        return await self._client.chat.completions.create(**args)
