"""Tests for request adapters, chat clients, the factory and error wrapping."""

import httpx
import openai
import pytest
from anthropic import AsyncAnthropic
from anthropic.types import Message, TextBlock, ToolUseBlock
from openai import AsyncOpenAI
from openai.types.chat.chat_completion import ChatCompletion, Choice
from openai.types.chat.chat_completion_message import ChatCompletionMessage
from openai.types.chat.chat_completion_message_tool_call import (
    ChatCompletionMessageToolCall,
    Function as ToolCallFunction,
)

from tool_bridge.errors import ModelCallError, classify_error
from tool_bridge.factory import create_llm
from tool_bridge.provider import Provider, get_api_key
from tool_bridge.providers import (
    AnthropicLLM,
    AnthropicRequestAdapter,
    GeminiLLM,
    OpenAILLM,
    OpenAIRequestAdapter,
)
from tool_bridge.response import ChatResponse
from tool_bridge.types import ChatParams

SCHEMA = {"name": "multiple_choice_response", "schema": {"type": "object"}}


def _completion(message):
    return ChatCompletion(
        id="cmpl-1",
        choices=[Choice(finish_reason="stop", index=0, message=message)],
        created=0,
        model="gpt-4o",
        object="chat.completion",
    )


def _anthropic_message(*blocks):
    return Message.model_construct(
        id="msg_1",
        type="message",
        role="assistant",
        model="claude-3-5-sonnet-latest",
        content=list(blocks),
        stop_reason="end_turn",
    )


class TestOpenAIRequestAdapter:
    @pytest.fixture
    def adapter(self):
        return OpenAIRequestAdapter()

    def test_to_provider_basic(self, adapter):
        result = adapter.to_provider(
            [{"role": "user", "content": "Hello"}], ChatParams(temperature=0.7, max_tokens=100)
        )

        assert result["messages"] == [{"role": "user", "content": "Hello"}]
        assert result["temperature"] == 0.7
        assert result["max_tokens"] == 100
        assert "response_format" not in result

    def test_tool_call_messages(self, adapter):
        tool_calls = [{"id": "c1", "type": "function", "function": {"name": "f", "arguments": "{}"}}]
        result = adapter.to_provider(
            [
                {"role": "assistant", "tool_calls": tool_calls},
                {"role": "tool", "tool_call_id": "c1", "content": "42"},
            ],
            ChatParams(),
        )

        assert result["messages"][0] == {"role": "assistant", "tool_calls": tool_calls, "content": None}
        assert result["messages"][1]["tool_call_id"] == "c1"

    def test_response_schema(self, adapter):
        result = adapter.build_params(ChatParams(response_schema=SCHEMA, extra_params={"seed": 1}))

        assert result["response_format"] == {
            "type": "json_schema",
            "json_schema": {"name": "multiple_choice_response", "schema": {"type": "object"}, "strict": True},
        }
        assert result["seed"] == 1
        assert "response_schema" not in result

    def test_from_provider(self, adapter):
        tool_call = ChatCompletionMessageToolCall(
            id="id1", type="function", function=ToolCallFunction(name="test", arguments="{not valid json")
        )
        response = adapter.from_provider(
            _completion(ChatCompletionMessage(role="assistant", content="hi", tool_calls=[tool_call]))
        )

        assert response.content == "hi"
        assert response.tool_calls[0].name == "test"
        assert response.tool_calls[0].arguments == {}

    def test_assistant_message_from(self, adapter):
        tool_call = ChatCompletionMessageToolCall(
            id="id1", type="function", function=ToolCallFunction(name="f", arguments="{}")
        )
        message = adapter.assistant_message_from(
            _completion(ChatCompletionMessage(role="assistant", tool_calls=[tool_call]))
        )

        assert message["content"] is None
        assert message["tool_calls"][0]["id"] == "id1"


class TestAnthropicRequestAdapter:
    @pytest.fixture
    def adapter(self):
        return AnthropicRequestAdapter()

    def test_system_prompt_and_default_max_tokens(self, adapter):
        result = adapter.to_provider(
            [{"role": "system", "content": "Be brief"}, {"role": "user", "content": "Hi"}],
            ChatParams(temperature=0.0),
        )

        assert result["system"] == "Be brief"
        assert result["messages"] == [{"role": "user", "content": "Hi"}]
        assert result["max_tokens"] == 4096
        assert result["temperature"] == 0.0

    def test_openai_style_tool_message(self, adapter):
        result = adapter.to_provider([{"role": "tool", "tool_call_id": "t1", "content": "42"}], ChatParams())
        assert result["messages"] == [
            {"role": "user", "content": [{"type": "tool_result", "tool_use_id": "t1", "content": "42"}]}
        ]

    def test_tools_are_converted(self, adapter):
        result = adapter.build_params(
            ChatParams(
                tools=[{"type": "function", "function": {"name": "f", "parameters": {"type": "object"}}}],
                tool_choice="required",
            )
        )

        assert result["tools"] == [{"name": "f", "description": "", "input_schema": {"type": "object"}}]
        assert result["tool_choice"] == {"type": "any"}

    def test_response_schema_forces_a_tool(self, adapter):
        result = adapter.build_params(ChatParams(response_schema=SCHEMA))

        assert result["tools"][-1]["name"] == "multiple_choice_response"
        assert result["tools"][-1]["input_schema"] == {"type": "object"}
        assert result["tool_choice"] == {"type": "tool", "name": "multiple_choice_response"}

    def test_from_provider(self, adapter):
        response = adapter.from_provider(
            _anthropic_message(
                TextBlock.model_construct(type="text", text="Let me check."),
                ToolUseBlock.model_construct(type="tool_use", id="toolu_1", name="search", input={"q": "x"}),
            )
        )

        assert response.content == "Let me check."
        assert response.tool_calls[0].id == "toolu_1"
        assert response.tool_calls[0].arguments == {"q": "x"}

    def test_assistant_message_from(self, adapter):
        message = adapter.assistant_message_from(
            _anthropic_message(
                ToolUseBlock.model_construct(type="tool_use", id="toolu_1", name="search", input={"q": "x"})
            )
        )
        assert message == {
            "role": "assistant",
            "content": [{"type": "tool_use", "id": "toolu_1", "name": "search", "input": {"q": "x"}}],
        }


class TestClients:
    @pytest.mark.asyncio
    async def test_openai_chat(self, monkeypatch):
        client = AsyncOpenAI(api_key="test")
        llm = OpenAILLM.from_client("gpt-4o", client)
        sent = {}

        async def create(**kwargs):
            sent.update(kwargs)
            return _completion(ChatCompletionMessage(role="assistant", content="pong"))

        monkeypatch.setattr(client.chat.completions, "create", create)

        response = await llm.chat([{"role": "user", "content": "ping"}], params=ChatParams(temperature=0.0))

        assert response.content == "pong"
        assert response.is_error is False
        assert sent["model"] == "gpt-4o"
        assert sent["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_errors_are_wrapped(self, monkeypatch):
        client = AsyncAnthropic(api_key="test")
        llm = AnthropicLLM.from_client("claude-3-5-sonnet-latest", client)

        async def create(**kwargs):
            raise ConnectionError("network down")

        monkeypatch.setattr(client.messages, "create", create)

        response = await llm.chat([{"role": "user", "content": "ping"}])

        assert response.is_error
        assert response.error.startswith("Connection problem")
        with pytest.raises(ModelCallError) as excinfo:
            response.raise_for_error()
        assert isinstance(excinfo.value.original_exc, ConnectionError)

    def test_from_client_checks_type(self):
        with pytest.raises(TypeError):
            OpenAILLM.from_client("gpt-4o", AsyncAnthropic(api_key="test"))

    def test_gemini_uses_openai_compatible_endpoint(self):
        llm = GeminiLLM("gemini-2.5-flash", api_key="test")
        assert "generativelanguage.googleapis.com" in str(llm._client.base_url)


class TestFactory:
    def test_create_with_client(self):
        llm = create_llm(Provider.ANTHROPIC, "claude-3-5-sonnet-latest", client=AsyncAnthropic(api_key="test"))
        assert isinstance(llm, AnthropicLLM)

    def test_create_with_env_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert isinstance(create_llm("openai", "gpt-4o"), OpenAILLM)

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_llm("mistral", "large")

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(RuntimeError, match="GEMINI_API_KEY missing"):
            get_api_key(Provider.GEMINI)


class TestClassifyError:
    def test_rate_limit(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        exc = openai.RateLimitError("slow down", response=httpx.Response(429, request=request), body=None)

        error = classify_error(exc)

        assert str(error).startswith("Rate-limit exceeded")
        assert error.original_exc is exc
        assert error.__cause__ is exc

    def test_connection(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = classify_error(openai.APIConnectionError(request=request))
        assert str(error).startswith("Connection problem")

    def test_other_exception(self):
        error = classify_error(KeyError("x"))
        assert str(error).startswith("KeyError")

    def test_chat_response_without_exception(self):
        with pytest.raises(ModelCallError, match="boom"):
            ChatResponse(content="", error="boom").raise_for_error()
