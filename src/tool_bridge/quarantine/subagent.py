"""
Dual LLM quarantine pattern for extracting information from untrusted data.

- Main agent (privileged): formulates questions, never sees the untrusted data.
- Quarantined agent: sees the data but can only answer multiple choice
  questions with a validated option index.
- Information flows through that structured Q&A, which keeps injected
  instructions in the data from reaching the main agent.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from tool_bridge.quarantine import protocol
from tool_bridge.quarantine.client import QuarantineClient
from tool_bridge.quarantine.config import DualLlmConfig
from tool_bridge.quarantine.models import DualLlmResult, QaProgress
from tool_bridge.quarantine.prompts import PrivilegedPrompts, QuarantinedPrompts
from tool_bridge.quarantine.protocol import SessionPhase, SessionState
from tool_bridge.quarantine.store import (
    DualLlmConfigStore,
    DualLlmResultStore,
    InMemoryResultStore,
)
from tool_bridge.types.tool import CommonToolResult

__all__ = ["DualLlmSubagent", "ProgressCallback", "quarantine_tool_result"]

ProgressCallback = Callable[[QaProgress], Union[Awaitable[None], None]]

_logger = logging.getLogger(__name__)

# Deterministic sampling for every model call of the protocol
_TEMPERATURE = 0.0


class DualLlmSubagent:
    """One quarantine session for the result of a single tool call."""

    def __init__(
        self,
        config: DualLlmConfig,
        agent_id: str,
        tool_call_id: str,
        client: QuarantineClient,
        original_user_request: str,
        tool_result: Any,
        *,
        result_store: Optional[DualLlmResultStore] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.agent_id = agent_id
        self.tool_call_id = tool_call_id
        self.client = client
        self.original_user_request = original_user_request
        self.result_store: DualLlmResultStore = result_store or InMemoryResultStore()
        self.logger = logger or _logger
        self.state: Optional[SessionState] = None

        self._privileged = PrivilegedPrompts(config)
        self._quarantined = QuarantinedPrompts(config, tool_result)

    @classmethod
    async def create(
        cls,
        *,
        agent_id: str,
        tool_call_id: str,
        user_request: str,
        tool_result: Any,
        client: QuarantineClient,
        config_store: DualLlmConfigStore,
        result_store: DualLlmResultStore,
        organization_id: Optional[str] = None,
    ) -> "DualLlmSubagent":
        """Load the active config once and build a session around it."""
        config = await config_store.get_config(organization_id)
        return cls(
            config,
            agent_id,
            tool_call_id,
            client,
            user_request,
            tool_result,
            result_store=result_store,
        )

    async def process_with_main_agent(
        self, on_progress: Optional[ProgressCallback] = None
    ) -> str:
        """
        Run the Q&A session and return a safe summary of what was learned.

        Args:
            on_progress: Called with a ``QaProgress`` after every answered
                question. May be a plain function or a coroutine function.

        Raises:
            ModelCallError: a model call failed in transport. Nothing about the
                tool data itself makes this method raise.
        """
        state = protocol.initial_state(
            self._privileged.main_agent(self.original_user_request),
            self.config.max_rounds,
        )
        state = protocol.start_questioning(state)
        self._log(f"Starting Q&A loop (max {self.config.max_rounds} rounds)")

        while state.phase is SessionPhase.QUESTIONING:
            self._log(f"Round {state.round + 1}/{state.max_rounds}", logging.DEBUG)
            self.state = state

            reply = await self.client.chat(state.messages(), temperature=_TEMPERATURE)
            state, question = protocol.record_reply(
                state, reply, strict_done=self.config.strict_done_marker
            )
            if question is None:
                break

            self._log(
                f"Question: {question.question} | options: {list(question.options)}",
                logging.DEBUG,
            )
            index = await self.answer_question(question.question, question.options)
            self._log(f"Answer: {index} ({question.options[index]})", logging.DEBUG)

            state = protocol.record_answer(state, question, index)
            if on_progress is not None:
                await _notify(
                    on_progress,
                    QaProgress(question=question.question, options=question.options, answer=str(index)),
                )

        self._log(f"Q&A loop finished: {state.phase} after {state.round} round(s)")
        self.logger.debug("Final conversation: %s", state.messages())

        state = protocol.begin_summary(state)
        self.state = state
        summary = await self.generate_summary(state)
        state = protocol.complete(state, summary)
        self.state = state

        await self.result_store.save(
            DualLlmResult(
                agent_id=self.agent_id,
                tool_call_id=self.tool_call_id,
                conversation=list(state.transcript),
                result=summary,
            )
        )
        return summary

    async def answer_question(self, question: str, options: Sequence[str]) -> int:
        """
        Let the quarantined agent pick an option.

        The only step with access to the tool data. Its reply is reduced to a
        validated index; malformed or out-of-range answers select the last option.
        """
        prompt = self._quarantined.answer_prompt(question, options)
        parsed = await self.client.chat_with_schema(
            [{"role": "user", "content": prompt}],
            protocol.ANSWER_SCHEMA,
            temperature=_TEMPERATURE,
        )

        return protocol.resolve_answer(parsed, len(options))

    async def generate_summary(self, state: SessionState) -> str:
        """Summarize the transcript; only validated answers and our own strings are in it."""
        prompt = self._privileged.summary(protocol.qa_text(state.transcript))
        return await self.client.chat(
            [{"role": "user", "content": prompt}], temperature=_TEMPERATURE
        )

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.agent_id}/{self.tool_call_id}] {message}")


async def _notify(callback: ProgressCallback, progress: QaProgress) -> None:
    result = callback(progress)
    if inspect.isawaitable(result):
        await result


async def quarantine_tool_result(
    result: CommonToolResult,
    *,
    agent_id: str,
    user_request: str,
    client: QuarantineClient,
    config: Optional[DualLlmConfig] = None,
    result_store: Optional[DualLlmResultStore] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> CommonToolResult:
    """
    Replace an untrusted tool result with its quarantine summary.

    The returned copy carries the summary as ``content`` (or as ``error`` for
    erroring results, whose error text is what providers get to see).
    """
    untrusted = result.error_text if result.is_error else result.content
    session = DualLlmSubagent(
        config or DualLlmConfig(),
        agent_id,
        result.id,
        client,
        user_request,
        untrusted,
        result_store=result_store,
    )
    summary = await session.process_with_main_agent(on_progress)
    if result.is_error:
        return replace(result, error=summary)
    return replace(result, content=summary)
