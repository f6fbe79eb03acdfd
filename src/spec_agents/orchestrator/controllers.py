"""Controllers for agent CLI commands."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from spec_agents.config import Settings
from spec_agents.orchestrator.contracts import AgentResult, AgentTask, TaskKind
from spec_agents.orchestrator.router import AgentOrchestrator

OrchestratorFactory = Callable[[Settings], AgentOrchestrator]


@dataclass(slots=True)
class AgentTaskCommand:
    """CLI input for generate/tests/validate/refactor commands."""

    spec_file: Path
    implementation_path: Path | None = None
    output_path: Path | None = None
    agent_mode: str | None = None
    model: str | None = None
    config_path: Path | None = None


@dataclass(slots=True)
class AgentStatusCommand:
    """CLI input for agent availability listing."""

    agent_mode: str | None = None
    config_path: Path | None = None


@dataclass(slots=True)
class AgentCommandResult:
    """Rendered lines plus overall outcome of one command."""

    lines: list[str]
    success: bool


class AgentCliController:
    """Application controller for agent CLI commands."""

    def __init__(self, orchestrator_factory: OrchestratorFactory = AgentOrchestrator) -> None:
        self._orchestrator_factory = orchestrator_factory

    def generate(self, command: AgentTaskCommand) -> AgentCommandResult:
        return self._run(command, kind=TaskKind.GENERATE)

    def tests(self, command: AgentTaskCommand) -> AgentCommandResult:
        return self._run(command, kind=TaskKind.TEST)

    def validate(self, command: AgentTaskCommand) -> AgentCommandResult:
        return self._run(command, kind=TaskKind.VALIDATE)

    def refactor(self, command: AgentTaskCommand) -> AgentCommandResult:
        return self._run(command, kind=TaskKind.REFACTOR)

    def status(self, command: AgentStatusCommand) -> AgentCommandResult:
        try:
            settings = Settings.from_env(config_path=command.config_path).with_overrides(
                agent_mode=command.agent_mode,
            )
        except ValueError as error:
            return AgentCommandResult(lines=["Agent status:", str(error)], success=False)
        with self._orchestrator_factory(settings) as orchestrator:
            lines = [
                "Agent status:",
                f"agent_mode={settings.agent_mode}",
                f"resolved_agent={orchestrator.configured_agent().value}",
            ]
            for status in orchestrator.provider_status():
                line = f"  agent={status.name} available={'yes' if status.available else 'no'}"
                if status.reason:
                    line += f" reason={status.reason}"
                lines.append(line)
        return AgentCommandResult(lines=lines, success=True)

    def _run(self, command: AgentTaskCommand, *, kind: TaskKind) -> AgentCommandResult:
        header = f"Agent {kind.value}:"
        try:
            spec_code = _read_source(command.spec_file)
        except ValueError as error:
            return AgentCommandResult(lines=[header, str(error)], success=False)

        implementation_path = command.implementation_path
        if implementation_path is None and kind is TaskKind.VALIDATE:
            implementation_path = infer_implementation_path(command.spec_file)
        existing_code: str | None = None
        if kind is not TaskKind.GENERATE:
            if implementation_path is None or not implementation_path.exists():
                return AgentCommandResult(
                    lines=[
                        header,
                        "Implementation file not found.",
                        "Specify it with --implementation-path.",
                    ],
                    success=False,
                )
            try:
                existing_code = _read_source(implementation_path)
            except ValueError as error:
                return AgentCommandResult(lines=[header, str(error)], success=False)

        try:
            settings = Settings.from_env(config_path=command.config_path).with_overrides(
                agent_mode=command.agent_mode,
                model=command.model,
            )
        except ValueError as error:
            return AgentCommandResult(lines=[header, str(error)], success=False)
        task = AgentTask(
            kind=kind,
            spec_code=spec_code,
            existing_code=existing_code,
            target_path=str(command.output_path) if command.output_path else None,
        )
        with self._orchestrator_factory(settings) as orchestrator:
            result = orchestrator.execute_task(task)
            agent_mode = orchestrator.configured_agent().value

        lines = [
            header,
            f"spec_file={command.spec_file}",
            f"agent_mode={agent_mode}",
        ]
        if implementation_path is not None and existing_code is not None:
            lines.append(f"implementation={implementation_path}")
        answered_by = result.metadata.get("agentMode")
        if isinstance(answered_by, str):
            lines.append(f"answered_by={answered_by}")
        lines.append(f"Status: {'succeeded' if result.success else 'failed'}")
        lines.extend(_render_messages(result))

        if result.code:
            if command.output_path is not None and result.success and kind is not TaskKind.VALIDATE:
                command.output_path.parent.mkdir(parents=True, exist_ok=True)
                command.output_path.write_text(result.code, "utf-8")
                lines.append(f"Wrote {command.output_path}")
            else:
                lines.append("-" * 60)
                lines.extend(result.code.rstrip("\n").splitlines())
                lines.append("-" * 60)
        return AgentCommandResult(lines=lines, success=result.success)


def infer_implementation_path(spec_file: Path) -> Path | None:
    """Guess the implementation file that belongs to a spec file."""

    spec_dir = spec_file.parent
    base_name = spec_file.name.removesuffix(".ts")
    candidates = [
        spec_dir / (base_name.replace(".contracts", ".handler") + ".ts"),
        spec_dir / (base_name.replace(".presentation", "") + ".tsx"),
        spec_dir / (base_name + ".tsx"),
        spec_dir.parent / "handlers" / (base_name.replace(".contracts", ".handler") + ".ts"),
        spec_dir.parent / "components" / (base_name.replace(".presentation", "") + ".tsx"),
    ]
    for candidate in candidates:
        if candidate != spec_file and candidate.exists():
            return candidate
    return None


def _render_messages(result: AgentResult) -> list[str]:
    lines: list[str] = []
    for title, messages in (
        ("Errors", result.errors),
        ("Warnings", result.warnings),
        ("Suggestions", result.suggestions),
    ):
        if messages:
            lines.append(f"{title}:")
            lines.extend(f"  - {message}" for message in messages)
    return lines


def _read_source(path: Path) -> str:
    try:
        return path.read_text("utf-8")
    except UnicodeDecodeError as error:
        raise ValueError(f"Cannot read {path}: file is not valid UTF-8 ({error.reason})") from error
    except OSError as error:
        raise ValueError(f"Cannot read {path}: {error.strerror or error}") from error
