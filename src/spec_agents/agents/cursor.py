"""Cursor/Windsurf IDE agent driven through the editor CLI."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path
from tempfile import TemporaryDirectory

from spec_agents.agents.extraction import parse_validation_report
from spec_agents.agents.prompts import build_generation_prompt, build_validation_prompt
from spec_agents.agents.simple import SimpleAgent
from spec_agents.config import Settings
from spec_agents.orchestrator.contracts import AgentName, AgentResult, AgentTask, TaskKind

logger = logging.getLogger(__name__)

KNOWN_INSTALL_PATHS: tuple[Path, ...] = (
    Path("/usr/local/bin/cursor"),
    Path("/Applications/Cursor.app/Contents/MacOS/Cursor"),
    Path("/Applications/Windsurf.app/Contents/MacOS/Windsurf"),
    Path.home() / ".cursor" / "cursor",
    Path.home() / "AppData" / "Local" / "Programs" / "cursor" / "Cursor.exe",
    Path.home() / "AppData" / "Local" / "Programs" / "windsurf" / "Windsurf.exe",
)
_PATH_EXECUTABLES = ("cursor", "windsurf")
_GENERATION_OUTPUT = "output.ts"
_VALIDATION_OUTPUT = "VALIDATION_REPORT.md"


class CursorCliError(RuntimeError):
    """Cursor CLI run produced no usable output."""


class CursorAgent:
    """Hand tasks to a local Cursor/Windsurf installation."""

    name = AgentName.CURSOR

    def __init__(
        self,
        settings: Settings,
        *,
        environ: Mapping[str, str] | None = None,
        install_paths: tuple[Path, ...] = KNOWN_INSTALL_PATHS,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        env = os.environ if environ is None else environ
        self._timeout_seconds = settings.cursor.timeout_seconds
        self._is_ide_session = _detect_ide_session(env)
        self._has_composer_api = bool(
            env.get("CURSOR_COMPOSER_PORT") or env.get("CURSOR_API_ENABLED"),
        )
        self._executable = _locate_executable(install_paths=install_paths, which=which)

    def can_handle(self, task: AgentTask) -> bool:  # noqa: ARG002
        return self._is_ide_session or self._executable is not None or self._has_composer_api

    def generate(self, task: AgentTask) -> AgentResult:
        return self._execute(task)

    def validate(self, task: AgentTask) -> AgentResult:
        return self._execute(task)

    def _execute(self, task: AgentTask) -> AgentResult:
        try:
            with TemporaryDirectory(prefix="cursor-agent-") as temp_dir:
                workdir = Path(temp_dir)
                _prepare_workspace(task=task, workdir=workdir)
                if self._executable is not None:
                    try:
                        return self._run_cli(task=task, workdir=workdir)
                    except CursorCliError as error:
                        logger.info("Cursor CLI attempt failed: %s", error)
                        return _unavailable(task, reason=str(error))
                return _unavailable(task, reason="Cursor executable not found")
        except OSError as error:
            return AgentResult.failure(
                f"Cursor workspace preparation failed: {error}",
                metadata={"agentMode": self.name.value},
            )

    def _run_cli(self, *, task: AgentTask, workdir: Path) -> AgentResult:
        try:
            completed = subprocess.run(  # noqa: S603
                [self._executable or "cursor", "--wait", "--new-window", str(workdir)],
                cwd=workdir,
                check=False,
                capture_output=True,
                text=True,
                timeout=self._timeout_seconds,
            )
        except subprocess.TimeoutExpired as error:
            raise CursorCliError(
                f"Cursor CLI timed out after {self._timeout_seconds}s",
            ) from error
        except OSError as error:
            raise CursorCliError(f"Cursor CLI failed to start: {error}") from error

        output_name = _VALIDATION_OUTPUT if task.kind is TaskKind.VALIDATE else _GENERATION_OUTPUT
        output_path = workdir / output_name
        if not output_path.exists():
            raise CursorCliError(
                f"Cursor CLI exited with code {completed.returncode}. No output generated.",
            )
        text = output_path.read_text("utf-8")
        metadata = {"agentMode": self.name.value, "method": "cli", "exitCode": completed.returncode}
        if task.kind is TaskKind.VALIDATE:
            report = parse_validation_report(text)
            return AgentResult(
                success=report.passed,
                code=report.report,
                errors=report.errors,
                warnings=report.warnings,
                suggestions=report.suggestions,
                metadata=metadata,
            )
        return AgentResult(success=True, code=text, metadata=metadata)


def _detect_ide_session(env: Mapping[str, str]) -> bool:
    vscode_cwd = env.get("VSCODE_CWD", "")
    return bool(
        env.get("WINDSURF_SESSION")
        or env.get("CURSOR_USER_DATA")
        or "Cursor" in vscode_cwd
        or "Windsurf" in vscode_cwd,
    )


def _locate_executable(
    *,
    install_paths: tuple[Path, ...],
    which: Callable[[str], str | None],
) -> str | None:
    for path in install_paths:
        if path.exists():
            return str(path)
    for name in _PATH_EXECUTABLES:
        resolved = which(name)
        if resolved is not None:
            return resolved
    return None


def _prepare_workspace(*, task: AgentTask, workdir: Path) -> None:
    (workdir / "spec.ts").write_text(task.spec_code, "utf-8")
    if task.existing_code:
        (workdir / "existing.ts").write_text(task.existing_code, "utf-8")
    if task.kind is TaskKind.VALIDATE:
        instructions = build_validation_prompt(task)
        output_name = _VALIDATION_OUTPUT
    else:
        instructions = build_generation_prompt(task)
        output_name = _GENERATION_OUTPUT
    (workdir / "INSTRUCTIONS.md").write_text(
        f"{instructions}\n\nSave the result as {output_name} in this folder.\n",
        "utf-8",
    )


def _unavailable(task: AgentTask, *, reason: str) -> AgentResult:
    template = SimpleAgent().generate(task).code if task.kind is not TaskKind.VALIDATE else None
    return AgentResult(
        success=False,
        code=template,
        errors=["All Cursor integration methods failed", reason],
        warnings=[
            "Cursor agent could not connect to the IDE.",
            "Ensure Cursor/Windsurf is installed and its CLI is on PATH.",
        ],
        metadata={
            "agentMode": AgentName.CURSOR.value,
            "status": "unavailable",
            "method": "file-based",
            "suggestion": "Use --agent-mode claude-code or --agent-mode simple",
        },
    )
