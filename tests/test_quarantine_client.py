"""Tests for the LLM backed quarantine client."""

from unittest.mock import AsyncMock

import pytest
from anthropic import AsyncAnthropic

from tool_bridge.errors import ModelCallError
from tool_bridge.provider import Provider
from tool_bridge.providers import AnthropicLLM, OpenAILLM
from tool_bridge.quarantine.client import LLMQuarantineClient, create_quarantine_client
from tool_bridge.quarantine.protocol import ANSWER_SCHEMA
from tool_bridge.response import ChatResponse
from tool_bridge.types import CommonToolCall

MESSAGES = [{"role": "user", "content": "Pick one"}]


@pytest.fixture
def llm():
    mock = AsyncMock()
    mock.chat.return_value = ChatResponse(content="hello")
    return mock


@pytest.mark.asyncio
async def test_chat_returns_text(llm):
    client = LLMQuarantineClient(llm, max_tokens=256)

    assert await client.chat(MESSAGES) == "hello"

    params = llm.chat.call_args.kwargs["params"]
    assert params.temperature == 0.0
    assert params.max_tokens == 256
    assert params.response_schema is None


@pytest.mark.asyncio
async def test_chat_with_schema_parses_json_content(llm):
    llm.chat.return_value = ChatResponse(content='{"answer": 2}')

    parsed = await LLMQuarantineClient(llm).chat_with_schema(MESSAGES, ANSWER_SCHEMA)

    assert parsed == {"answer": 2}
    assert llm.chat.call_args.kwargs["params"].response_schema is ANSWER_SCHEMA


@pytest.mark.asyncio
async def test_chat_with_schema_reads_forced_tool_call(llm):
    llm.chat.return_value = ChatResponse(
        content="",
        tool_calls=[CommonToolCall(id="toolu_1", name="multiple_choice_response", arguments={"answer": 1})],
    )

    assert await LLMQuarantineClient(llm).chat_with_schema(MESSAGES, ANSWER_SCHEMA) == {"answer": 1}


@pytest.mark.asyncio
async def test_chat_with_schema_unparseable(llm):
    llm.chat.return_value = ChatResponse(content="I pick the first one")

    assert await LLMQuarantineClient(llm).chat_with_schema(MESSAGES, ANSWER_SCHEMA) is None


@pytest.mark.asyncio
async def test_chat_with_schema_oversized_integer(llm):
    llm.chat.return_value = ChatResponse(content='{"answer": ' + "9" * 5000 + "}")

    assert await LLMQuarantineClient(llm).chat_with_schema(MESSAGES, ANSWER_SCHEMA) is None


@pytest.mark.asyncio
async def test_errors_raise(llm):
    cause = ConnectionError("down")
    llm.chat.return_value = ChatResponse(
        content="", error="Connection problem", exception=ModelCallError("Connection problem", cause)
    )

    with pytest.raises(ModelCallError) as excinfo:
        await LLMQuarantineClient(llm).chat(MESSAGES)
    assert excinfo.value.original_exc is cause


@pytest.mark.asyncio
async def test_aclose(llm):
    await LLMQuarantineClient(llm).aclose()
    llm.aclose.assert_awaited_once()


class TestCreateQuarantineClient:
    def test_default_model(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        client = create_quarantine_client("openai")

        assert isinstance(client.llm, OpenAILLM)
        assert client.llm.model == "gpt-4o"

    def test_explicit_model_and_client(self):
        client = create_quarantine_client(
            Provider.ANTHROPIC, "claude-3-5-haiku-latest", client=AsyncAnthropic(api_key="test")
        )

        assert isinstance(client.llm, AnthropicLLM)
        assert client.llm.model == "claude-3-5-haiku-latest"
