from __future__ import annotations

import argparse
import asyncio
import logging

from tool_bridge import (
    ChatMessage,
    ChatParams,
    CommonToolCall,
    CommonToolResult,
    Provider,
    create_llm,
    get_tool_adapter,
)

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

# Anthropic‐style tool definition
ANTHROPIC_WEATHER_TOOL: dict[str, object] = {
    "name": "get_weather",
    "description": "Get the current weather in a given location",
    "input_schema": {
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "City and state, e.g. San Francisco, CA",
            },
        },
        "required": ["location"],
    },
}

# OpenAI/Gemini‐style function schema
OPENAI_WEATHER_TOOL: dict[str, object] = {
    "type": "function",
    "function": {
        "name": "get_weather",
        "description": "Get the current weather in a given location",
        "parameters": {
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": "City and state, e.g. San Francisco, CA",
                },
            },
            "required": ["location"],
            "additionalProperties": False,
        },
    },
}


def run_local_tool(call: CommonToolCall) -> CommonToolResult:
    """Stub implementation of get_weather."""
    location = call.arguments.get("location")
    if not location:
        return CommonToolResult(call.id, call.name, None, is_error=True, error="location is required")
    # imagine we call a real weather API here
    return CommonToolResult(call.id, call.name, {"location": location, "forecast": "15 °C, mostly cloudy"})


async def single_tool_roundtrip(provider: Provider, model: str, toon: bool) -> None:
    """
    Run a single tool‐calling roundtrip with the given provider + model.

    1) Send user prompt
    2) Let model emit a tool call
    3) Execute stub tool, convert the common results back to provider messages
    4) Ask model to finish using tool result
    """
    tools = [ANTHROPIC_WEATHER_TOOL] if provider == Provider.ANTHROPIC else [OPENAI_WEATHER_TOOL]
    params = ChatParams(tools=tools)

    # GeminiLLM talks to the OpenAI-compatible endpoint
    wire = Provider.OPENAI if provider == Provider.GEMINI else provider
    tool_adapter = get_tool_adapter(wire)

    async with create_llm(provider, model) as llm:
        messages: list[ChatMessage] = [
            {"role": "user", "content": "What's the weather in San Francisco?"}
        ]

        # Step 1 → get first response
        rsp1 = await llm.chat(messages, params=params)
        rsp1.raise_for_error()

        if not rsp1.tool_calls:
            logger.warning(f"Model answered directly: {rsp1.content}")
            return

        # Step 2 → inject the assistant's response (with tool calls)
        messages.append(llm.adapter.assistant_message_from(rsp1.raw))

        # Step 3 → run the tools and inject their results
        results = [run_local_tool(call) for call in rsp1.tool_calls]
        messages.extend(tool_adapter.tool_results_to_messages(results, convert_to_toon=toon))

        # Step 4 → final completion
        rsp2 = await llm.chat(messages, params=params)
        rsp2.raise_for_error()
        logger.info("%s says: %s", provider.value.capitalize(), rsp2.content)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--provider",
        choices=[p.value for p in Provider],
        default=Provider.ANTHROPIC.value,
    )
    parser.add_argument(
        "--model",
        default="claude-3-5-haiku-20241022",  # "gpt-4.1-nano-2025-04-14", "gemini-2.0-flash-lite"
    )
    parser.add_argument("--toon", action="store_true", help="TOON-encode results (Anthropic only)")
    args = parser.parse_args()

    asyncio.run(single_tool_roundtrip(Provider(args.provider), args.model, args.toon))
