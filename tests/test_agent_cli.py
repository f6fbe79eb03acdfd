from __future__ import annotations

from pathlib import Path

import allure
from click.testing import CliRunner

from spec_agents.main import spec_agents
from spec_agents.orchestrator.contracts import AgentName
from spec_agents.orchestrator.controllers import (
    AgentCliController,
    AgentStatusCommand,
    AgentTaskCommand,
    infer_implementation_path,
)
from spec_agents.orchestrator.router import AgentOrchestrator

pytestmark = [
    allure.epic("CLI"),
    allure.feature("Agent Commands"),
]

SPEC = """\
export const CreateUserSpec = defineCommand({
  meta: { key: 'user.create', version: '1.0.0' },
});
"""

IMPLEMENTATION = """\
import { CreateUserSpec } from './user.contracts';

export async function createUserHandler(input: unknown) {
  return { key: CreateUserSpec.meta.key };
}
"""


def _write_spec(tmp_path: Path) -> Path:
    spec_file = tmp_path / "user.contracts.ts"
    spec_file.write_text(SPEC, "utf-8")
    return spec_file


def test_generate_prints_template_with_simple_agent(tmp_path: Path) -> None:
    spec_file = _write_spec(tmp_path)

    result = CliRunner().invoke(spec_agents, ["generate", str(spec_file)])

    assert result.exit_code == 0, result.output
    assert "agent_mode=simple" in result.output
    assert "answered_by=simple" in result.output
    assert "Status: succeeded" in result.output
    assert "export async function createUserHandler" in result.output


def test_generate_writes_output_file(tmp_path: Path) -> None:
    spec_file = _write_spec(tmp_path)
    output = tmp_path / "generated" / "user.handler.ts"

    result = CliRunner().invoke(spec_agents, ["generate", str(spec_file), "-o", str(output)])

    assert result.exit_code == 0, result.output
    assert f"Wrote {output}" in result.output
    assert "createUserHandler" in output.read_text("utf-8")


def test_unknown_agent_mode_falls_back_to_simple(tmp_path: Path) -> None:
    spec_file = _write_spec(tmp_path)

    result = CliRunner().invoke(
        spec_agents,
        ["generate", str(spec_file), "--agent-mode", "ghost"],
    )

    assert result.exit_code == 0, result.output
    assert "answered_by=simple" in result.output


def test_validate_infers_implementation_path(tmp_path: Path) -> None:
    spec_file = _write_spec(tmp_path)
    (tmp_path / "user.handler.ts").write_text(IMPLEMENTATION, "utf-8")

    result = CliRunner().invoke(spec_agents, ["validate", str(spec_file)])

    assert result.exit_code == 0, result.output
    assert f"implementation={tmp_path / 'user.handler.ts'}" in result.output
    assert "**Status**: PASS" in result.output


def test_validate_reports_failure_exit_code(tmp_path: Path) -> None:
    spec_file = _write_spec(tmp_path)
    stub = tmp_path / "stub.ts"
    stub.write_text("  \n", "utf-8")

    result = CliRunner().invoke(
        spec_agents,
        ["validate", str(spec_file), "--implementation-path", str(stub)],
    )

    assert result.exit_code == 1
    assert "Status: failed" in result.output
    assert "Errors:" in result.output
    assert "Agent task failed." in result.output


def test_validate_without_implementation_fails(tmp_path: Path) -> None:
    spec_file = _write_spec(tmp_path)

    result = CliRunner().invoke(spec_agents, ["validate", str(spec_file)])

    assert result.exit_code == 1
    assert "Implementation file not found." in result.output


def test_tests_command_generates_vitest_file(tmp_path: Path) -> None:
    spec_file = _write_spec(tmp_path)
    implementation = tmp_path / "user.handler.ts"
    implementation.write_text(IMPLEMENTATION, "utf-8")

    result = CliRunner().invoke(
        spec_agents,
        ["tests", str(spec_file), "--implementation-path", str(implementation)],
    )

    assert result.exit_code == 0, result.output
    assert "from 'vitest'" in result.output


def test_invalid_config_is_reported(tmp_path: Path) -> None:
    spec_file = _write_spec(tmp_path)
    (tmp_path / ".contractsrc.json").write_text("[]", "utf-8")

    result = CliRunner().invoke(spec_agents, ["generate", str(spec_file)])

    assert result.exit_code == 1
    assert "Expected JSON object" in result.output


def test_status_lists_every_agent(monkeypatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")

    result = CliRunner().invoke(spec_agents, ["status", "--agent-mode", "claude-code"])

    assert result.exit_code == 0, result.output
    assert "resolved_agent=claude-code" in result.output
    assert "agent=simple available=yes" in result.output
    assert "agent=claude-code available=yes" in result.output
    assert "agent=openai-codex available=no reason=Not configured or not available" in (
        result.output
    )


def test_controller_reports_agent_that_answered(tmp_path: Path, fake_agents) -> None:
    spec_file = _write_spec(tmp_path)
    registry = fake_agents(cursor=(True, "fail"))
    controller = AgentCliController(
        orchestrator_factory=lambda settings: AgentOrchestrator(settings, providers=registry),
    )

    outcome = controller.generate(AgentTaskCommand(spec_file=spec_file, agent_mode="cursor"))

    assert outcome.success is True
    assert "answered_by=claude-code" in outcome.lines
    assert "// from claude-code" in outcome.lines
    assert len(registry[AgentName.CURSOR].calls) == 1


def test_infer_implementation_path_checks_sibling_folders(tmp_path: Path) -> None:
    contracts_dir = tmp_path / "contracts"
    contracts_dir.mkdir()
    spec_file = contracts_dir / "card.presentation.ts"
    spec_file.write_text("", "utf-8")
    components_dir = tmp_path / "components"
    components_dir.mkdir()
    (components_dir / "card.tsx").write_text("", "utf-8")

    assert infer_implementation_path(spec_file) == components_dir / "card.tsx"
    assert infer_implementation_path(tmp_path / "missing.contracts.ts") is None


def test_non_utf8_spec_is_reported(tmp_path: Path) -> None:
    spec_file = tmp_path / "broken.contracts.ts"
    spec_file.write_bytes(b"export const Spec = '\xff\xfe';\n")

    result = CliRunner().invoke(spec_agents, ["generate", str(spec_file)])

    assert result.exit_code == 1
    assert not isinstance(result.exception, UnicodeDecodeError)
    assert f"Cannot read {spec_file}: file is not valid UTF-8" in result.output
    assert "Agent task failed." in result.output


def test_non_utf8_implementation_is_reported(tmp_path: Path) -> None:
    spec_file = _write_spec(tmp_path)
    implementation = tmp_path / "user.handler.ts"
    implementation.write_bytes(b"\xff\xfe\x00broken")

    outcome = AgentCliController().validate(
        AgentTaskCommand(spec_file=spec_file, implementation_path=implementation),
    )

    assert outcome.success is False
    assert outcome.lines[0] == "Agent validate:"
    assert outcome.lines[1].startswith(f"Cannot read {implementation}")


def test_controller_closes_orchestrator_after_command(tmp_path: Path, fake_agents) -> None:
    spec_file = _write_spec(tmp_path)
    closed: list[str] = []

    class _TrackingOrchestrator(AgentOrchestrator):
        def close(self) -> None:
            closed.append("closed")

    controller = AgentCliController(
        orchestrator_factory=lambda settings: _TrackingOrchestrator(
            settings,
            providers=fake_agents(),
        ),
    )

    controller.generate(AgentTaskCommand(spec_file=spec_file))
    controller.status(AgentStatusCommand())

    assert closed == ["closed", "closed"]
