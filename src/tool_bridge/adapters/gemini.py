"""Gemini adapter for functionCall / functionResponse transformations.

Gemini function responses are JSON objects rather than strings, so result
bodies stay structured instead of being serialized.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any, Sequence

from tool_bridge.adapters.base import ProviderMessage, as_mapping, parse_arguments
from tool_bridge.content import has_image_content, image_mime_type, is_image_block, is_text_block
from tool_bridge.serialization import safe_json_stringify
from tool_bridge.types.tool import CommonMessage, CommonToolCall, CommonToolResult

__all__ = ["GeminiToolAdapter", "is_gemini_image_block"]

_logger = logging.getLogger(__name__)


def is_gemini_image_block(item: Any) -> bool:
    """``{"inlineData": {"mimeType": <str>, "data": <str>}}``"""
    if not isinstance(item, Mapping):
        return False
    inline = item.get("inlineData")
    return (
        isinstance(inline, Mapping)
        and isinstance(inline.get("mimeType"), str)
        and isinstance(inline.get("data"), str)
    )


def _is_image(item: Any) -> bool:
    return is_image_block(item) or is_gemini_image_block(item)


def _function_call(part: Mapping[str, Any]) -> Mapping[str, Any]:
    """Unwrap a ``functionCall`` part; bare calls are returned unchanged."""
    for key in ("functionCall", "function_call"):
        if key in part:
            return as_mapping(part[key])
    return part


class GeminiToolAdapter:
    """Adapter for converting between the common tool format and Gemini contents."""

    def tool_calls_to_common(self, provider_calls: Sequence[Any]) -> list[CommonToolCall]:
        """
        Convert ``functionCall`` parts (or bare ``{name, args}`` calls).

        Gemini does not always issue call ids; a missing id is replaced with
        ``"{name}_{index}"`` so results can still be matched within the turn.
        """
        calls: list[CommonToolCall] = []
        for index, raw in enumerate(provider_calls):
            call = _function_call(as_mapping(raw))
            name = call.get("name") or "unknown"
            calls.append(
                CommonToolCall(
                    id=str(call.get("id") or f"{name}_{index}"),
                    name=name,
                    arguments=parse_arguments(call.get("args"), tool_name=name),
                )
            )
        return calls

    def tool_results_to_messages(
        self,
        results: Sequence[CommonToolResult],
        tool_calls: Sequence[CommonToolCall] = (),
        **options: Any,
    ) -> list[ProviderMessage]:
        """
        One ``{"name", "response"}`` function response per result.

        Args:
            results: Tool results to send back.
            tool_calls: The calls of this turn; they supply the function name
                for each result id. Unmatched results are named ``"unknown"``.
        """
        names = {call.id: call.name for call in tool_calls}
        responses: list[ProviderMessage] = []

        for result in results:
            name = names.get(result.id, "unknown")
            if name == "unknown":
                _logger.debug("No tool call matches result %s", result.id)

            response: dict[str, Any]
            if result.is_error:
                response = {"error": result.error_text}
            elif has_image_content(result.content, _is_image):
                response = self._convert_content(result.content)
                _logger.info(
                    "Tool result %s (%s) contains images, converting to inlineData",
                    result.id,
                    result.name,
                )
            elif isinstance(result.content, Mapping):
                response = copy.deepcopy(dict(result.content))
            else:
                serialized = safe_json_stringify(result.content)
                value = copy.deepcopy(result.content) if serialized.ok else serialized.value
                response = {"result": value}

            responses.append({"name": name, "response": response})
        return responses

    def _convert_content(self, content: list[Any]) -> dict[str, Any]:
        texts: list[str] = []
        images: list[dict[str, Any]] = []
        for item in content:
            if is_image_block(item):
                images.append(
                    {"inlineData": {"mimeType": image_mime_type(item), "data": item["data"]}}
                )
            elif is_gemini_image_block(item):
                inline = item["inlineData"]
                images.append({"inlineData": {"mimeType": inline["mimeType"], "data": inline["data"]}})
            elif is_text_block(item):
                texts.append(item["text"])

        if not texts and not images:
            return {"result": safe_json_stringify(content).value}
        return {"text": "\n".join(texts), "images": images}

    def to_common_format(self, messages: Sequence[Mapping[str, Any]]) -> list[CommonMessage]:
        """
        Reduce Gemini ``contents`` to common messages.

        ``functionResponse`` parts carry their own name; a missing id is taken
        from the latest earlier ``functionCall`` of the same name.
        """
        common: list[CommonMessage] = []
        for index, msg in enumerate(messages):
            common_msg = CommonMessage(role=str(msg.get("role", "")))

            for part in msg.get("parts") or []:
                part = as_mapping(part)
                fr = as_mapping(part.get("functionResponse"))
                if not fr:
                    continue
                name = fr.get("name") or "unknown"
                call_id = fr.get("id") or _find_call_id(messages[:index], name) or name
                response = fr.get("response")
                is_error = isinstance(response, Mapping) and set(response) == {"error"}
                common_msg.tool_results.append(
                    CommonToolResult(
                        id=str(call_id),
                        name=name,
                        content=response,
                        is_error=is_error,
                        error=str(response["error"]) if is_error else None,
                    )
                )

            common.append(common_msg)
        return common

    def apply_updates(
        self, messages: Sequence[Mapping[str, Any]], updates: Mapping[str, Any]
    ) -> list[ProviderMessage]:
        """Replace ``functionResponse.response`` for parts whose ``id`` is in ``updates``."""
        if not updates:
            return [dict(msg) for msg in messages]

        updated: list[ProviderMessage] = []
        for msg in messages:
            parts = msg.get("parts")
            if not isinstance(parts, list):
                updated.append(dict(msg))
                continue

            new_parts: list[Any] = []
            for part in parts:
                fr = part.get("functionResponse") if isinstance(part, Mapping) else None
                if isinstance(fr, Mapping) and fr.get("id") in updates:
                    value = updates[fr["id"]]
                    response = dict(value) if isinstance(value, Mapping) else {"result": value}
                    new_parts.append({**part, "functionResponse": {**fr, "response": response}})
                else:
                    new_parts.append(part)
            updated.append({**msg, "parts": new_parts})
        return updated


def _find_call_id(history: Sequence[Mapping[str, Any]], name: str) -> str | None:
    for msg in reversed(history):
        if msg.get("role") != "model":
            continue
        for part in reversed(msg.get("parts") or []):
            call = as_mapping(as_mapping(part).get("functionCall"))
            if call.get("name") == name and call.get("id"):
                return call["id"]
    return None
