"""Agent selection and fallback routing for code-generation tasks."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Protocol

from spec_agents.agents import AgentProvider, build_default_providers
from spec_agents.config import Settings
from spec_agents.orchestrator.contracts import AgentName, AgentResult, AgentTask, TaskKind
from spec_agents.orchestrator.topology import TERMINAL_AGENT, next_fallback

logger = logging.getLogger(__name__)

_STATUS_CHECK_TASK = AgentTask(kind=TaskKind.GENERATE, spec_code="// status check")


class AgentModeConfig(Protocol):
    """Minimal configuration surface read by the orchestrator."""

    agent_mode: str | None


@dataclass(slots=True)
class ProviderStatus:
    """Availability of one registered agent."""

    name: str
    available: bool
    reason: str | None = None


class AgentOrchestrator:
    """Route tasks to the configured agent and degrade through the fallback chain.

    `execute_task` never raises. Each call makes at most two agent invocations:
    the primary, then either its designated fallback (after a logical failure)
    or the terminal agent (after an exception or capability mismatch).
    """

    def __init__(
        self,
        config: AgentModeConfig,
        providers: Mapping[AgentName, AgentProvider] | None = None,
    ) -> None:
        owns_providers = providers is None
        if providers is None:
            settings = config if isinstance(config, Settings) else Settings()
            providers = build_default_providers(settings)
        if TERMINAL_AGENT not in providers:
            raise ValueError(f"Terminal agent {TERMINAL_AGENT.value!r} must be registered.")
        self._config = config
        self._owns_providers = owns_providers
        self._providers: Mapping[AgentName, AgentProvider] = MappingProxyType(dict(providers))

    @property
    def providers(self) -> Mapping[AgentName, AgentProvider]:
        return self._providers

    def configured_agent(self) -> AgentName:
        """Return the agent selected by configuration, defaulting to the terminal agent."""

        return AgentName.parse(self._config.agent_mode) or TERMINAL_AGENT

    def execute_task(self, task: AgentTask) -> AgentResult:
        """Run a task through primary, explicit fallback and terminal agents."""

        primary_name = self.configured_agent()
        primary = self._providers.get(primary_name)
        if primary is None or not self._accepts(primary_name, primary, task):
            logger.debug(
                "Agent %s unavailable for %s task; using %s",
                primary_name.value,
                task.kind.value,
                TERMINAL_AGENT.value,
            )
            return self._run_terminal(task)
        if primary_name == TERMINAL_AGENT:
            return self._run_terminal(task)

        try:
            result = _dispatch(primary, task)
        except Exception:
            logger.warning(
                "Agent %s raised on %s task; using %s",
                primary_name.value,
                task.kind.value,
                TERMINAL_AGENT.value,
                exc_info=True,
            )
            return self._run_terminal(task)
        if result.success:
            return result

        fallback_name = next_fallback(primary_name)
        fallback = self._providers.get(fallback_name)
        if (
            fallback_name != primary_name
            and fallback is not None
            and self._accepts(fallback_name, fallback, task)
        ):
            logger.debug(
                "Agent %s failed %s task; falling back to %s",
                primary_name.value,
                task.kind.value,
                fallback_name.value,
            )
            try:
                return _dispatch(fallback, task)
            except Exception as error:
                logger.warning(
                    "Fallback agent %s raised on %s task",
                    fallback_name.value,
                    task.kind.value,
                    exc_info=True,
                )
                return AgentResult.failure(
                    f"Fallback agent {fallback_name.value!r} failed: {error}",
                    metadata={"agentMode": fallback_name.value},
                )
        return self._run_terminal(task)

    def generate(self, spec_code: str, target_path: str | None = None) -> AgentResult:
        """Generate an implementation for a spec."""

        return self.execute_task(
            AgentTask(kind=TaskKind.GENERATE, spec_code=spec_code, target_path=target_path),
        )

    def generate_tests(self, spec_code: str, implementation_code: str) -> AgentResult:
        """Generate tests for an implementation of a spec."""

        return self.execute_task(
            AgentTask(kind=TaskKind.TEST, spec_code=spec_code, existing_code=implementation_code),
        )

    def validate(self, spec_code: str, implementation_code: str) -> AgentResult:
        """Validate an implementation against its spec."""

        return self.execute_task(
            AgentTask(
                kind=TaskKind.VALIDATE,
                spec_code=spec_code,
                existing_code=implementation_code,
            ),
        )

    def refactor(self, spec_code: str, existing_code: str) -> AgentResult:
        """Refactor existing code while keeping it compliant with its spec."""

        return self.execute_task(
            AgentTask(kind=TaskKind.REFACTOR, spec_code=spec_code, existing_code=existing_code),
        )

    def provider_status(self) -> list[ProviderStatus]:
        """Report, for each registered agent, whether it would accept a task."""

        statuses: list[ProviderStatus] = []
        for name, provider in self._providers.items():
            try:
                available = provider.can_handle(_STATUS_CHECK_TASK)
            except Exception as error:  # noqa: BLE001
                statuses.append(
                    ProviderStatus(name=name.value, available=False, reason=str(error)),
                )
                continue
            statuses.append(
                ProviderStatus(
                    name=name.value,
                    available=available,
                    reason=None if available else "Not configured or not available",
                ),
            )
        return statuses

    def close(self) -> None:
        """Release resources held by agents built from settings."""

        if not self._owns_providers:
            return
        for provider in self._providers.values():
            close = getattr(provider, "close", None)
            if callable(close):
                close()

    def __enter__(self) -> AgentOrchestrator:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def _accepts(self, name: AgentName, provider: AgentProvider, task: AgentTask) -> bool:
        try:
            return bool(provider.can_handle(task))
        except Exception:
            logger.warning("Agent %s capability check raised", name.value, exc_info=True)
            return False

    def _run_terminal(self, task: AgentTask) -> AgentResult:
        terminal = self._providers[TERMINAL_AGENT]
        try:
            return _dispatch(terminal, task)
        except Exception as error:
            logger.exception("Terminal agent %s raised", TERMINAL_AGENT.value)
            return AgentResult.failure(
                f"Terminal agent {TERMINAL_AGENT.value!r} failed: {error}",
                metadata={"agentMode": TERMINAL_AGENT.value},
            )


def _dispatch(provider: AgentProvider, task: AgentTask) -> AgentResult:
    if task.kind is TaskKind.VALIDATE:
        return provider.validate(task)
    return provider.generate(task)
