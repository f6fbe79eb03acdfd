"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from spec_agents.orchestrator.contracts import AgentName, AgentResult, AgentTask

_ISOLATED_ENV_VARS = (
    "SPEC_AGENTS_AGENT_MODE",
    "SPEC_AGENTS_CONFIG_PATH",
    "SPEC_AGENTS_CLAUDE_MODEL",
    "SPEC_AGENTS_OPENAI_MODEL",
    "SPEC_AGENTS_ANTHROPIC_BASE_URL",
    "SPEC_AGENTS_OPENAI_BASE_URL",
    "SPEC_AGENTS_REQUEST_TIMEOUT_SECONDS",
    "SPEC_AGENTS_MAX_TOKENS",
    "SPEC_AGENTS_CURSOR_TIMEOUT_SECONDS",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "CURSOR_COMPOSER_PORT",
    "CURSOR_API_ENABLED",
    "CURSOR_USER_DATA",
    "WINDSURF_SESSION",
    "VSCODE_CWD",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run every test without ambient agent configuration or project config file."""

    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class FakeAgent:
    """Scriptable agent that records every call it receives."""

    def __init__(
        self,
        name: AgentName,
        *,
        accepts: bool = True,
        outcome: str = "success",
    ) -> None:
        self.name = name
        self.accepts = accepts
        self.outcome = outcome
        self.calls: list[tuple[str, AgentTask]] = []
        self.capability_checks = 0

    def can_handle(self, task: AgentTask) -> bool:  # noqa: ARG002
        self.capability_checks += 1
        return self.accepts

    def generate(self, task: AgentTask) -> AgentResult:
        return self._respond("generate", task)

    def validate(self, task: AgentTask) -> AgentResult:
        return self._respond("validate", task)

    def _respond(self, method: str, task: AgentTask) -> AgentResult:
        self.calls.append((method, task))
        if self.outcome == "raise":
            raise RuntimeError(f"{self.name.value} exploded")
        if self.outcome == "fail":
            return AgentResult(success=False, errors=[f"{self.name.value} failed"])
        return AgentResult(
            success=True,
            code=f"// from {self.name.value}",
            metadata={"agentMode": self.name.value},
        )


@pytest.fixture()
def fake_agents() -> Callable[..., dict[AgentName, FakeAgent]]:
    """Build a registry of fake agents; keyword args map agent value -> (accepts, outcome)."""

    def _build(**behaviors: tuple[bool, str]) -> dict[AgentName, FakeAgent]:
        registry: dict[AgentName, FakeAgent] = {}
        for name in AgentName:
            accepts, outcome = behaviors.get(name.name.lower(), (True, "success"))
            registry[name] = FakeAgent(name, accepts=accepts, outcome=outcome)
        return registry

    return _build
