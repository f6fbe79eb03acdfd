"""Agent provider implementations."""

from __future__ import annotations

from spec_agents.agents.base import AgentProvider
from spec_agents.agents.claude_code import ClaudeCodeAgent
from spec_agents.agents.cursor import CursorAgent
from spec_agents.agents.openai_codex import OpenAICodexAgent
from spec_agents.agents.simple import SimpleAgent
from spec_agents.config import Settings
from spec_agents.orchestrator.contracts import AgentName


def build_default_providers(settings: Settings) -> dict[AgentName, AgentProvider]:
    """Instantiate every built-in agent keyed by its name."""

    providers: list[AgentProvider] = [
        SimpleAgent(),
        CursorAgent(settings),
        ClaudeCodeAgent(settings),
        OpenAICodexAgent(settings),
    ]
    return {provider.name: provider for provider in providers}


__all__ = [
    "AgentProvider",
    "ClaudeCodeAgent",
    "CursorAgent",
    "OpenAICodexAgent",
    "SimpleAgent",
    "build_default_providers",
]
