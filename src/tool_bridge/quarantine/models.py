"""Values exchanged during a quarantine session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

__all__ = ["QaTranscriptEntry", "DualLlmResult", "ParsedQuestion", "QaProgress"]


class QaTranscriptEntry(BaseModel):
    """One turn of the main agent conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class DualLlmResult(BaseModel):
    """What gets persisted once a session completes."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    agent_id: str
    tool_call_id: str
    conversation: list[QaTranscriptEntry]
    result: str

    def to_wire(self) -> dict[str, Any]:
        """``{agentId, toolCallId, conversation, result}``"""
        return self.model_dump(by_alias=True)


@dataclass(frozen=True, slots=True)
class ParsedQuestion:
    question: str
    options: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class QaProgress:
    """Progress event emitted after each answered question."""
    question: str
    options: tuple[str, ...]
    answer: str                 # the chosen index, as a string
