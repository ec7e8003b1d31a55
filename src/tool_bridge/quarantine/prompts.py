"""
Prompt construction for the two agents.

Untrusted tool data may only ever reach the quarantined agent. That boundary is
kept by type: ``PrivilegedPrompts`` builds everything the main agent sees and
has no way to receive tool data, while ``QuarantinedPrompts`` is the single
place the tool result is rendered into a prompt.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

from tool_bridge.quarantine.config import DualLlmConfig
from tool_bridge.serialization import safe_json_stringify

__all__ = ["render_template", "format_options", "PrivilegedPrompts", "QuarantinedPrompts"]

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def render_template(template: str, bindings: Mapping[str, str]) -> str:
    """
    Substitute ``{{name}}`` placeholders with ``bindings[name]``, verbatim.

    The template is scanned once, so placeholder syntax inside a substituted
    value is never expanded. Placeholders without a binding are left as-is.
    """

    def substitute(match: re.Match[str]) -> str:
        return bindings.get(match.group(1), match.group(0))

    return _PLACEHOLDER.sub(substitute, template)


def format_options(options: Sequence[str]) -> str:
    return "\n".join(f"{idx}: {opt}" for idx, opt in enumerate(options))


class PrivilegedPrompts:
    """Prompts for the main agent and the final summary."""

    def __init__(self, config: DualLlmConfig) -> None:
        self._config = config

    def main_agent(self, user_request: str) -> str:
        return render_template(
            self._config.main_agent_prompt, {"originalUserRequest": user_request}
        )

    def summary(self, qa_text: str) -> str:
        return render_template(self._config.summary_prompt, {"qaText": qa_text})


class QuarantinedPrompts:
    """Prompts for the quarantined agent; owns the untrusted tool result."""

    def __init__(self, config: DualLlmConfig, tool_result: Any) -> None:
        self._template = config.quarantined_agent_prompt
        self._tool_result_data = safe_json_stringify(tool_result, indent=2).value

    def answer_prompt(self, question: str, options: Sequence[str]) -> str:
        return render_template(
            self._template,
            {
                "toolResultData": self._tool_result_data,
                "question": question,
                "options": format_options(options),
                "maxIndex": str(len(options) - 1),
            },
        )
