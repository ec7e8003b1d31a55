"""Interfaces to configuration and result storage, with in-memory implementations."""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from tool_bridge.quarantine.config import DualLlmConfig
from tool_bridge.quarantine.models import DualLlmResult

__all__ = ["DualLlmConfigStore", "DualLlmResultStore", "StaticConfigStore", "InMemoryResultStore"]


class DualLlmConfigStore(Protocol):
    async def get_config(self, organization_id: Optional[str] = None) -> DualLlmConfig:
        """Return the active config for an organization (the default one if None)."""
        ...


class DualLlmResultStore(Protocol):
    async def save(self, result: DualLlmResult) -> None:
        """Durably record a completed session."""
        ...


class StaticConfigStore:
    """Serves fixed configs, optionally one per organization."""

    def __init__(
        self,
        default: Optional[DualLlmConfig] = None,
        per_organization: Optional[Mapping[str, DualLlmConfig]] = None,
    ) -> None:
        self._default = default or DualLlmConfig()
        self._per_organization = dict(per_organization or {})

    async def get_config(self, organization_id: Optional[str] = None) -> DualLlmConfig:
        if organization_id is None:
            return self._default
        return self._per_organization.get(organization_id, self._default)


class InMemoryResultStore:
    """Keeps results in a list; not shared across processes."""

    def __init__(self) -> None:
        self.results: list[DualLlmResult] = []

    async def save(self, result: DualLlmResult) -> None:
        self.results.append(result)

    def find(self, agent_id: str, tool_call_id: str) -> Optional[DualLlmResult]:
        for result in reversed(self.results):
            if result.agent_id == agent_id and result.tool_call_id == tool_call_id:
                return result
        return None
