"""Static fallback chain between agent providers."""

from __future__ import annotations

from types import MappingProxyType

from spec_agents.orchestrator.contracts import AgentName

TERMINAL_AGENT = AgentName.SIMPLE

FALLBACK_CHAIN: MappingProxyType[AgentName, AgentName] = MappingProxyType(
    {
        AgentName.CURSOR: AgentName.CLAUDE_CODE,
        AgentName.CLAUDE_CODE: AgentName.OPENAI_CODEX,
        AgentName.OPENAI_CODEX: AgentName.SIMPLE,
        AgentName.SIMPLE: AgentName.SIMPLE,
    },
)


def next_fallback(agent: AgentName) -> AgentName:
    """Return the designated successor of an agent."""

    return FALLBACK_CHAIN[agent]


def fallback_path(agent: AgentName) -> list[AgentName]:
    """Return the degradation order starting at `agent` and ending at the terminal agent."""

    path = [agent]
    current = agent
    while current != TERMINAL_AGENT:
        current = next_fallback(current)
        if current in path:
            raise ValueError(f"Fallback chain cycles at {current.value!r}")
        path.append(current)
    return path
