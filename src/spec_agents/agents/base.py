"""Provider interface implemented by every agent backend."""

from __future__ import annotations

from typing import Protocol

from spec_agents.orchestrator.contracts import AgentName, AgentResult, AgentTask


class AgentProvider(Protocol):
    """Protocol implemented by agent backends."""

    name: AgentName

    def can_handle(self, task: AgentTask) -> bool:
        """Cheap local check whether the agent should be attempted at all."""

    def generate(self, task: AgentTask) -> AgentResult:
        """Produce implementation, test or refactored code."""

    def validate(self, task: AgentTask) -> AgentResult:
        """Produce a validation report of existing code against the spec."""
