"""
Translate noisy provider tracebacks into a unified `ModelCallError`, while
preserving the original exception for full tracebacks.
"""

from __future__ import annotations

import logging
from typing import Final, Optional, Type

import anthropic
import openai

__all__: tuple[str, ...] = ("ModelCallError", "classify_error")


class ModelCallError(RuntimeError):
    """A model call failed in transport (network, quota, provider error).

    Attributes:
        original_exc: The underlying provider exception, if any.
    """

    original_exc: Optional[Exception]

    def __init__(self, message: str, original_exc: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        self.__cause__ = original_exc


API_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIError,
    anthropic.APIError,
)

CONN_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIConnectionError,
    anthropic.APIConnectionError,
    TimeoutError,
    ConnectionError,
)

RATE_LIMIT_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.RateLimitError,
    anthropic.RateLimitError,
)


def classify_error(
    exc: Exception,
    logger: Optional[logging.Logger] = None,
) -> ModelCallError:
    """Wrap an SDK exception in ModelCallError with a friendly, concise message."""
    log = logger or logging.getLogger("tool_bridge.errors")

    # order matters: rate-limit and connection errors subclass APIError
    if isinstance(exc, RATE_LIMIT_ERRORS):
        msg = "Rate-limit exceeded - please retry later"
    elif isinstance(exc, CONN_ERRORS):
        msg = "Connection problem - unable to reach the LLM provider"
    elif isinstance(exc, API_ERRORS):
        status = getattr(exc, "status_code", None)
        msg = f"Provider reported an error ({status})" if status else "Provider reported an error"
    else:
        msg = exc.__class__.__name__

    log.warning("Wrapping provider exception: %s", exc, extra={"exc": exc})
    return ModelCallError(f"{msg}: {exc}", exc)
