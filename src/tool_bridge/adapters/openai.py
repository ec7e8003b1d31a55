"""OpenAI adapter for tool call / tool result transformations."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any, Sequence

from tool_bridge.adapters.base import (
    ProviderMessage,
    as_mapping,
    decode_tool_content,
    parse_arguments,
)
from tool_bridge.content import has_image_content, image_mime_type, is_image_block, is_text_block
from tool_bridge.serialization import safe_json_stringify
from tool_bridge.types.tool import CommonMessage, CommonToolCall, CommonToolResult

__all__ = ["OpenAIToolAdapter", "is_openai_image_block"]

_logger = logging.getLogger(__name__)


def is_openai_image_block(item: Any) -> bool:
    """``{"type": "image_url", "image_url": {"url": <str>}}``"""
    if not isinstance(item, Mapping) or item.get("type") != "image_url":
        return False
    image_url = item.get("image_url")
    return isinstance(image_url, Mapping) and isinstance(image_url.get("url"), str)


def _is_image(item: Any) -> bool:
    return is_image_block(item) or is_openai_image_block(item)


class OpenAIToolAdapter:
    """Adapter for converting between the common tool format and OpenAI chat completions."""

    def tool_calls_to_common(self, provider_calls: Sequence[Any]) -> list[CommonToolCall]:
        """
        Convert ``tool_calls`` entries of an assistant message.

        Entries are tagged ``function`` (JSON string in ``function.arguments``)
        or ``custom`` (JSON string in ``custom.input``). Any other tag becomes a
        call named ``"unknown"`` with no arguments.
        """
        calls: list[CommonToolCall] = []
        for raw in provider_calls:
            tc = as_mapping(raw)
            call_id = str(tc.get("id") or "")
            kind = tc.get("type")

            if kind == "function":
                function = as_mapping(tc.get("function"))
                name = function.get("name") or "unknown"
                arguments = parse_arguments(function.get("arguments"), tool_name=name)
            elif kind == "custom":
                custom = as_mapping(tc.get("custom"))
                name = custom.get("name") or "unknown"
                arguments = parse_arguments(custom.get("input"), tool_name=name)
            else:
                name, arguments = "unknown", {}

            calls.append(CommonToolCall(id=call_id, name=name, arguments=arguments))
        return calls

    def tool_results_to_messages(
        self, results: Sequence[CommonToolResult], **options: Any
    ) -> list[ProviderMessage]:
        """One ``{"role": "tool", ...}`` message per result."""
        messages: list[ProviderMessage] = []
        for result in results:
            content: str | list[dict[str, Any]]
            if result.is_error:
                content = result.error_text
            elif has_image_content(result.content, _is_image):
                content = self._convert_content(result.content)
                _logger.info(
                    "Tool result %s (%s) contains images, converting to image_url blocks",
                    result.id,
                    result.name,
                )
            else:
                content = safe_json_stringify(result.content).value

            messages.append(
                {
                    "role": "tool",
                    "tool_call_id": result.id,
                    "content": content,
                }
            )
        return messages

    def _convert_content(self, content: list[Any]) -> str | list[dict[str, Any]]:
        """Convert an MCP content list into OpenAI content parts."""
        parts: list[dict[str, Any]] = []
        for item in content:
            if is_image_block(item):
                url = f"data:{image_mime_type(item)};base64,{item['data']}"
                parts.append({"type": "image_url", "image_url": {"url": url}})
            elif is_openai_image_block(item):
                parts.append(copy.deepcopy(item))
            elif is_text_block(item):
                parts.append({"type": "text", "text": item["text"]})
            elif isinstance(item, Mapping) and item.get("type") == "text":
                parts.append({"type": "text", "text": safe_json_stringify(item).value})

        return parts if parts else safe_json_stringify(content).value

    def to_common_format(self, messages: Sequence[Mapping[str, Any]]) -> list[CommonMessage]:
        """
        Reduce chat history to common messages.

        ``tool`` messages are attributed to the most recent assistant
        ``tool_calls`` entry with the same id; results that cannot be attributed
        are dropped.
        """
        common: list[CommonMessage] = []
        for index, msg in enumerate(messages):
            common_msg = CommonMessage(role=str(msg.get("role", "")))

            if msg.get("role") == "tool" and msg.get("tool_call_id"):
                call_id = msg["tool_call_id"]
                name = _find_tool_name(messages[:index], call_id)
                if name:
                    common_msg.tool_results.append(
                        CommonToolResult(
                            id=call_id,
                            name=name,
                            content=decode_tool_content(msg.get("content")),
                        )
                    )
                else:
                    _logger.debug("No tool call found for tool message %s, dropping it", call_id)

            common.append(common_msg)
        return common

    def apply_updates(
        self, messages: Sequence[Mapping[str, Any]], updates: Mapping[str, Any]
    ) -> list[ProviderMessage]:
        if not updates:
            return [dict(msg) for msg in messages]

        updated: list[ProviderMessage] = []
        applied = 0
        for msg in messages:
            call_id = msg.get("tool_call_id")
            if msg.get("role") == "tool" and call_id in updates:
                updated.append({**msg, "content": updates[call_id]})
                applied += 1
            else:
                updated.append(dict(msg))

        _logger.debug("Applied %d of %d tool result updates", applied, len(updates))
        return updated


def _find_tool_name(history: Sequence[Mapping[str, Any]], call_id: str) -> str | None:
    for msg in reversed(history):
        if msg.get("role") != "assistant":
            continue
        for tc in msg.get("tool_calls") or []:
            tc = as_mapping(tc)
            if tc.get("id") != call_id:
                continue
            entry = as_mapping(tc.get("function") or tc.get("custom"))
            return entry.get("name") or None
    return None
