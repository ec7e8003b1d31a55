"""
The question/answer protocol as pure functions.

A session moves through ``SessionPhase`` values; each transition takes a
``SessionState`` and returns a new one, so every round can be exercised
without a model.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Final, Optional

from tool_bridge.quarantine.models import ParsedQuestion, QaTranscriptEntry
from tool_bridge.types.chat import ChatMessage, ResponseSchema

__all__ = [
    "DONE_MARKER",
    "ANSWER_SCHEMA",
    "SessionPhase",
    "SessionState",
    "initial_state",
    "start_questioning",
    "record_reply",
    "record_answer",
    "begin_summary",
    "complete",
    "is_done_signal",
    "parse_question",
    "resolve_answer",
    "format_answer",
    "qa_text",
]

DONE_MARKER: Final = "DONE"

ANSWER_SCHEMA: Final[ResponseSchema] = {
    "name": "multiple_choice_response",
    "schema": {
        "type": "object",
        "properties": {
            "answer": {
                "type": "integer",
                "description": "The index of the selected option (0-based)",
            },
        },
        "required": ["answer"],
        "additionalProperties": False,
    },
}

_QUESTION = re.compile(r"QUESTION:\s*(.+?)(?=\nOPTIONS:)", re.DOTALL)
_OPTIONS = re.compile(r"OPTIONS:\s*(.+)", re.DOTALL)
_OPTION_INDEX = re.compile(r"^\d+:\s*")

_logger = logging.getLogger(__name__)


class SessionPhase(StrEnum):
    INIT = "init"
    QUESTIONING = "questioning"
    DONE = "done"
    ROUND_LIMIT_REACHED = "round_limit_reached"
    MALFORMED_QUESTION = "malformed_question"
    SUMMARIZING = "summarizing"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class SessionState:
    phase: SessionPhase
    round: int
    max_rounds: int
    transcript: tuple[QaTranscriptEntry, ...]
    summary: Optional[str] = None

    def messages(self) -> list[ChatMessage]:
        """The main agent conversation in chat message form."""
        return [entry.model_dump() for entry in self.transcript]


def initial_state(main_agent_prompt: str, max_rounds: int) -> SessionState:
    """INIT: the conversation holds only the rendered main agent prompt."""
    return SessionState(
        phase=SessionPhase.INIT,
        round=0,
        max_rounds=max_rounds,
        transcript=(QaTranscriptEntry(role="user", content=main_agent_prompt),),
    )


def start_questioning(state: SessionState) -> SessionState:
    _expect(state, SessionPhase.INIT)
    if state.max_rounds <= 0:
        return replace(state, phase=SessionPhase.ROUND_LIMIT_REACHED)
    return replace(state, phase=SessionPhase.QUESTIONING)


def record_reply(
    state: SessionState, reply: str, *, strict_done: bool = False
) -> tuple[SessionState, Optional[ParsedQuestion]]:
    """
    Append the main agent's reply and decide what it means.

    Returns the new state and, when the reply is a well-formed question, the
    parsed question. A DONE signal moves to DONE; a reply that cannot be parsed
    moves to MALFORMED_QUESTION. Both end the questioning.
    """
    _expect(state, SessionPhase.QUESTIONING)
    transcript = (*state.transcript, QaTranscriptEntry(role="assistant", content=reply))

    if is_done_signal(reply, strict=strict_done):
        return replace(state, transcript=transcript, phase=SessionPhase.DONE), None

    parsed = parse_question(reply)
    if parsed is None:
        return replace(state, transcript=transcript, phase=SessionPhase.MALFORMED_QUESTION), None

    return replace(state, transcript=transcript), parsed


def record_answer(state: SessionState, question: ParsedQuestion, index: int) -> SessionState:
    """Feed the chosen option back to the main agent and close the round."""
    _expect(state, SessionPhase.QUESTIONING)
    entry = QaTranscriptEntry(role="user", content=format_answer(index, question.options[index]))
    next_round = state.round + 1
    phase = (
        SessionPhase.ROUND_LIMIT_REACHED
        if next_round >= state.max_rounds
        else SessionPhase.QUESTIONING
    )
    return replace(state, transcript=(*state.transcript, entry), round=next_round, phase=phase)


def begin_summary(state: SessionState) -> SessionState:
    if state.phase not in (
        SessionPhase.DONE,
        SessionPhase.ROUND_LIMIT_REACHED,
        SessionPhase.MALFORMED_QUESTION,
    ):
        raise ValueError(f"Cannot summarize a session in phase {state.phase}")
    return replace(state, phase=SessionPhase.SUMMARIZING)


def complete(state: SessionState, summary: str) -> SessionState:
    _expect(state, SessionPhase.SUMMARIZING)
    return replace(state, phase=SessionPhase.COMPLETED, summary=summary)


def is_done_signal(reply: str, *, strict: bool = False) -> bool:
    """
    Whether the main agent is done asking.

    By default any occurrence of ``DONE`` counts. With ``strict`` the reply must
    contain a line that is exactly ``DONE``, so a question mentioning the word
    does not end the session.
    """
    if strict:
        return any(line.strip() == DONE_MARKER for line in reply.splitlines())
    return reply == DONE_MARKER or DONE_MARKER in reply


def parse_question(reply: str) -> Optional[ParsedQuestion]:
    """
    Extract ``QUESTION: ...`` and the ``OPTIONS:`` list from a reply.

    The question runs up to a ``\\nOPTIONS:`` marker; every remaining non-blank
    line is an option, with any leading ``N:`` index stripped. Returns None if
    either part is missing or no option remains.
    """
    question_match = _QUESTION.search(reply)
    options_match = _OPTIONS.search(reply)
    if not question_match or not options_match:
        return None

    options = tuple(
        option
        for option in (
            _OPTION_INDEX.sub("", line.strip()).strip()
            for line in options_match.group(1).strip().split("\n")
        )
        if option
    )
    if not options:
        return None
    return ParsedQuestion(question=question_match.group(1).strip(), options=options)


def resolve_answer(parsed: Any, option_count: int) -> int:
    """
    Validate the quarantined agent's structured reply.

    Two checks, each falling back to the last option: the reply must be an
    object with a finite numeric ``answer``, and its floor must be a valid
    option index. Nothing but this integer crosses back to the main agent.
    """
    fallback = option_count - 1
    answer = parsed.get("answer") if isinstance(parsed, Mapping) else None
    if (
        isinstance(answer, bool)
        or not isinstance(answer, (int, float))
        or (isinstance(answer, float) and not math.isfinite(answer))
    ):
        _logger.warning("Invalid response structure %r, defaulting to last option", parsed)
        return fallback

    # ints may exceed float range; only floats need flooring
    index = answer if isinstance(answer, int) else math.floor(answer)
    if index < 0 or index >= option_count:
        _logger.warning("Answer %d out of range 0..%d, defaulting to last option", index, fallback)
        return fallback
    return index


def format_answer(index: int, option: str) -> str:
    return f"Answer: {index} ({option})"


def qa_text(transcript: tuple[QaTranscriptEntry, ...]) -> str:
    """Non-empty turns joined by newlines, the input of the summary prompt."""
    return "\n".join(entry.content for entry in transcript if entry.content)


def _expect(state: SessionState, phase: SessionPhase) -> None:
    if state.phase is not phase:
        raise ValueError(f"Expected session phase {phase}, got {state.phase}")
