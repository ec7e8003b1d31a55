"""Chat request types shared by the provider clients."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Optional, TypedDict, Union

# Type alias for chat messages
ChatMessage = dict[str, Any]


class ResponseSchema(TypedDict):
    """A named JSON schema the model output must conform to."""
    name: str
    schema: dict[str, Any]


@dataclass
class ChatParams:
    """Parameters for a single (non-streaming) chat completion request."""

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    # Tool parameters
    tools: Optional[list[dict[str, Any]]] = None
    tool_choice: Optional[Union[str, dict[str, Any]]] = None

    # Structured output; each provider maps it onto its own mechanism
    response_schema: Optional[ResponseSchema] = None

    # Provider-specific parameters, forwarded as-is
    extra_params: Optional[dict[str, Any]] = None

    def as_dict(self, exclude_none: bool = True) -> dict[str, Any]:
        """
        Convert to dictionary, optionally excluding None values.

        Args:
            exclude_none: If True, exclude fields with None values

        Returns:
            Dictionary representation of the params
        """
        result = asdict(self)
        if exclude_none:
            return {k: v for k, v in result.items() if v is not None}
        return result
