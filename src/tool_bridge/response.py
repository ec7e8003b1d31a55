from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from tool_bridge.errors import ModelCallError
from tool_bridge.types import CommonToolCall


@dataclass
class ChatResponse:
    """Unified response object for all LLM providers."""

    content: str
    tool_calls: list[CommonToolCall] | None = None
    raw: Any = None
    error: Optional[str] = None
    exception: Optional[ModelCallError] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def raise_for_error(self) -> None:
        if self.exception is not None:
            raise self.exception
        if self.is_error:
            raise ModelCallError(self.error)
