"""Base class for the async provider chat clients."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, Sequence

from tool_bridge.errors import classify_error
from tool_bridge.response import ChatResponse
from tool_bridge.types.chat import ChatMessage, ChatParams

__all__ = ["BaseAsyncLLM", "RequestAdapter"]


class RequestAdapter(Protocol):
    """Protocol for adapting between generic chat format and provider-specific format."""

    def to_provider(
        self, messages: Sequence[ChatMessage], params: ChatParams
    ) -> dict[str, Any]:
        """Convert generic messages and params to provider-specific request arguments."""
        ...

    def from_provider(self, raw: Any) -> ChatResponse:
        """Convert provider response to unified ChatResponse."""
        ...

    def assistant_message_from(self, raw: Any) -> ChatMessage:
        """Convert a provider response to a provider-specific assistant ChatMessage."""
        ...


class BaseAsyncLLM(ABC):
    """
    Abstract base class for async-first LLM wrappers.
    """

    def __init__(
        self,
        model: str,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        """
        Args:
            model: The identifier of the LLM model to be used.
            logger: Optional logger instance. If None, a logger named after
                    this module will be used.
            name: Optional name for this component, used in logging.
                  If None, defaults to the concrete class's name.
        """
        self.model = model
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__

    @abstractmethod
    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: ChatParams,
    ) -> Any:
        """
        Send one non-streaming request and return the raw provider response.
        """
        ...

    @property
    @abstractmethod
    def adapter(self) -> RequestAdapter:
        """Request adapter for this provider."""
        ...

    async def chat(
        self,
        messages: Sequence[ChatMessage],
        *,
        params: ChatParams | None = None,
    ) -> ChatResponse:
        """
        Send chat request and return a single response.

        Provider failures do not raise; they come back as a ChatResponse with
        ``error`` set. Call ``raise_for_error()`` to turn them into exceptions.
        """
        final_params = params or ChatParams()
        try:
            raw = await self._chat_impl(messages, final_params)
        except Exception as exc:
            return self._wrap_error(exc)
        return self.adapter.from_provider(raw)

    def _wrap_error(self, exc: Exception) -> ChatResponse:
        """Wrap exception into an error response."""
        error = classify_error(exc, self.logger)
        return ChatResponse(content="", error=str(error), exception=error)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close underlying async HTTP clients to avoid cleanup after the loop closes.
        Safe to call multiple times.
        """
        client = getattr(self, "_client", None)
        close = getattr(client, "close", None)
        if close:
            await close()

    async def __aenter__(self) -> "BaseAsyncLLM":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
