"""Shared protocol and helpers for the tool adapters."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol, Sequence

from tool_bridge.types.tool import CommonMessage, CommonToolCall, CommonToolResult

__all__ = ["ToolAdapter", "ProviderMessage", "parse_arguments", "as_mapping", "decode_tool_content"]

_logger = logging.getLogger(__name__)

# A message (or Gemini function response) in the provider's wire shape
ProviderMessage = dict[str, Any]


class ToolAdapter(Protocol):
    """Converts tool calls and results between a provider's wire format and the common one."""

    def tool_calls_to_common(self, provider_calls: Sequence[Any]) -> list[CommonToolCall]:
        """Convert provider tool calls, one-to-one and in order. Never raises."""
        ...

    def tool_results_to_messages(
        self, results: Sequence[CommonToolResult], **options: Any
    ) -> list[ProviderMessage]:
        """Convert common tool results into messages that continue the conversation."""
        ...

    def to_common_format(self, messages: Sequence[Mapping[str, Any]]) -> list[CommonMessage]:
        """Reduce a provider conversation history to common messages."""
        ...

    def apply_updates(
        self, messages: Sequence[Mapping[str, Any]], updates: Mapping[str, Any]
    ) -> list[ProviderMessage]:
        """Replace the content of the tool results whose id is in ``updates``."""
        ...


def as_mapping(obj: Any) -> Mapping[str, Any]:
    """Return ``obj`` as a mapping; SDK (pydantic) objects are dumped, anything else is empty."""
    if isinstance(obj, Mapping):
        return obj
    dump = getattr(obj, "model_dump", None)
    if callable(dump):
        dumped = dump()
        if isinstance(dumped, Mapping):
            return dumped
    return {}


def parse_arguments(raw: Any, *, tool_name: str = "") -> dict[str, Any]:
    """
    Turn a tool call's argument payload into a dict.

    Strings are decoded as JSON. Anything that does not end up as a JSON object
    yields ``{}`` so one malformed call cannot abort a whole batch.
    """
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning("Bad JSON in arguments of tool call %r: %s", tool_name, raw)
            return {}
        if isinstance(parsed, dict):
            return parsed
        _logger.warning("Arguments of tool call %r are not a JSON object", tool_name)
    return {}


def decode_tool_content(content: Any) -> Any:
    """JSON-decode string tool content when possible; other values are returned as-is."""
    if isinstance(content, str):
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            return content
    return content
