"""Dual LLM quarantine for untrusted tool results."""

from .client import LLMQuarantineClient, QuarantineClient, create_quarantine_client
from .config import DualLlmConfig
from .models import DualLlmResult, ParsedQuestion, QaProgress, QaTranscriptEntry
from .protocol import SessionPhase, SessionState
from .store import DualLlmConfigStore, DualLlmResultStore, InMemoryResultStore, StaticConfigStore
from .subagent import DualLlmSubagent, ProgressCallback, quarantine_tool_result

__all__ = [
    "DualLlmConfig",
    "DualLlmSubagent",
    "DualLlmResult",
    "QaTranscriptEntry",
    "QaProgress",
    "ParsedQuestion",
    "ProgressCallback",
    "SessionPhase",
    "SessionState",
    "QuarantineClient",
    "LLMQuarantineClient",
    "create_quarantine_client",
    "DualLlmConfigStore",
    "DualLlmResultStore",
    "StaticConfigStore",
    "InMemoryResultStore",
    "quarantine_tool_result",
]
