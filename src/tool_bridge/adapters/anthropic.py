"""Anthropic adapter for tool_use / tool_result transformations."""

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
from tool_bridge.serialization import safe_json_stringify, to_toon
from tool_bridge.types.tool import CommonMessage, CommonToolCall, CommonToolResult

__all__ = ["AnthropicToolAdapter", "is_anthropic_image_block"]

_logger = logging.getLogger(__name__)

# tool_result content: a plain string or a list of text / image blocks
AnthropicToolResultContent = str | list[dict[str, Any]]


def is_anthropic_image_block(item: Any) -> bool:
    """``{"type": "image", "source": {"type": "base64", "media_type": <str>, "data": <str>}}``"""
    if not isinstance(item, Mapping) or item.get("type") != "image":
        return False
    source = item.get("source")
    if not isinstance(source, Mapping):
        return False
    return (
        source.get("type") == "base64"
        and isinstance(source.get("media_type"), str)
        and isinstance(source.get("data"), str)
    )


def _is_image(item: Any) -> bool:
    return is_image_block(item) or is_anthropic_image_block(item)


class AnthropicToolAdapter:
    """Adapter for converting between the common tool format and Anthropic messages."""

    def tool_calls_to_common(self, provider_calls: Sequence[Any]) -> list[CommonToolCall]:
        """Convert ``tool_use`` blocks; their ``input`` is already structured."""
        calls: list[CommonToolCall] = []
        for raw in provider_calls:
            block = as_mapping(raw)
            name = block.get("name") or "unknown"
            calls.append(
                CommonToolCall(
                    id=str(block.get("id") or ""),
                    name=name,
                    arguments=parse_arguments(block.get("input"), tool_name=name),
                )
            )
        return calls

    def tool_results_to_messages(
        self,
        results: Sequence[CommonToolResult],
        convert_to_toon: bool = False,
        **options: Any,
    ) -> list[ProviderMessage]:
        """
        Wrap every result of the batch into a single user message.

        Args:
            results: Tool results to send back.
            convert_to_toon: Encode plain (non-error, image-free) bodies as TOON
                instead of JSON to save tokens.
        """
        if not results:
            return []

        blocks: list[dict[str, Any]] = []
        for result in results:
            content: AnthropicToolResultContent
            if result.is_error:
                content = result.error_text
            elif has_image_content(result.content, _is_image):
                content = self._convert_content(result.content)
                _logger.info(
                    "Tool result %s (%s) contains images, converting to Anthropic image blocks",
                    result.id,
                    result.name,
                )
            elif convert_to_toon:
                content = self._encode_toon(result)
            else:
                content = safe_json_stringify(result.content).value

            blocks.append(
                {
                    "type": "tool_result",
                    "tool_use_id": result.id,
                    "content": content,
                    "is_error": result.is_error,
                }
            )

        return [{"role": "user", "content": blocks}]

    def _convert_content(self, content: list[Any]) -> AnthropicToolResultContent:
        """Convert an MCP content list into Anthropic tool_result blocks."""
        converted: list[dict[str, Any]] = []
        for item in content:
            if not isinstance(item, Mapping):
                continue
            if is_image_block(item):
                converted.append(
                    {
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": image_mime_type(item),
                            "data": item["data"],
                        },
                    }
                )
            elif is_anthropic_image_block(item) or is_text_block(item):
                converted.append(copy.deepcopy(item))
            elif item.get("type") == "text" and "text" in item:
                converted.append({"type": "text", "text": safe_json_stringify(item).value})

        return converted if converted else safe_json_stringify(content).value

    def _encode_toon(self, result: CommonToolResult) -> str:
        before = safe_json_stringify(result.content).value
        try:
            after = to_toon(result.content)
        except (TypeError, ValueError) as exc:
            _logger.warning(
                "TOON conversion failed for %s (%s), sending JSON: %s",
                result.id,
                result.name,
                exc,
            )
            return before

        ratio = (1 - len(after) / len(before)) * 100 if before else 0.0
        _logger.info(
            "TOON conversion completed for %s (%s): %d -> %d chars (%.2f%% smaller)",
            result.id,
            result.name,
            len(before),
            len(after),
            ratio,
        )
        _logger.debug("TOON conversion before: %s\nafter: %s", before, after)
        return after

    def to_common_format(self, messages: Sequence[Mapping[str, Any]]) -> list[CommonMessage]:
        """
        Reduce Anthropic history to common messages.

        ``tool_result`` blocks only carry the ``tool_use_id``; the tool name is
        looked up in earlier assistant ``tool_use`` blocks. Results without a
        match are left out.
        """
        common: list[CommonMessage] = []
        for index, msg in enumerate(messages):
            common_msg = CommonMessage(role=str(msg.get("role", "")))
            content = msg.get("content")

            if msg.get("role") == "user" and isinstance(content, list):
                for block in content:
                    block = as_mapping(block)
                    if block.get("type") != "tool_result":
                        continue
                    tool_use_id = block.get("tool_use_id")
                    if not tool_use_id:
                        _logger.debug("tool_result without tool_use_id, dropping it")
                        continue
                    name = _find_tool_name(messages[:index], tool_use_id)
                    if not name:
                        _logger.debug("No tool_use found for %s, dropping result", tool_use_id)
                        continue

                    body = block.get("content")
                    is_error = bool(block.get("is_error"))
                    common_msg.tool_results.append(
                        CommonToolResult(
                            id=tool_use_id,
                            name=name,
                            content=decode_tool_content(body),
                            is_error=is_error,
                            error=body if is_error and isinstance(body, str) else None,
                        )
                    )

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
            content = msg.get("content")
            if msg.get("role") != "user" or not isinstance(content, list):
                updated.append(dict(msg))
                continue

            new_content: list[Any] = []
            for block in content:
                if (
                    isinstance(block, Mapping)
                    and block.get("type") == "tool_result"
                    and block.get("tool_use_id") in updates
                ):
                    new_content.append({**block, "content": updates[block["tool_use_id"]]})
                    applied += 1
                else:
                    new_content.append(block)
            updated.append({**msg, "content": new_content})

        _logger.debug("Applied %d of %d tool result updates", applied, len(updates))
        return updated


def _find_tool_name(history: Sequence[Mapping[str, Any]], tool_use_id: Any) -> str | None:
    """Most recent assistant ``tool_use`` block with this id wins."""
    for msg in reversed(history):
        content = msg.get("content")
        if msg.get("role") != "assistant" or not isinstance(content, list):
            continue
        for block in content:
            block = as_mapping(block)
            if block.get("type") == "tool_use" and block.get("id") == tool_use_id:
                return block.get("name")
    return None
