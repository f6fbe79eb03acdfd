"""CLI entrypoint for spec-agents."""

import logging
from pathlib import Path

import rich_click as click

from spec_agents import __version__
from spec_agents.orchestrator.contracts import AgentName
from spec_agents.orchestrator.controllers import (
    AgentCliController,
    AgentCommandResult,
    AgentStatusCommand,
    AgentTaskCommand,
)

click.rich_click.USE_MARKDOWN = True
AGENT_CONTROLLER = AgentCliController()
AGENT_MODES = tuple(member.value for member in AgentName)

_spec_file_argument = click.argument(
    "spec_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
_agent_mode_option = click.option(
    "--agent-mode",
    default=None,
    help=f"Agent mode: {', '.join(AGENT_MODES)}. Unknown modes fall back to simple.",
)
_model_option = click.option("--model", default=None, help="Model override for hosted agents.")
_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Project config file (default: .contractsrc.json).",
)
_output_option = click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write generated code to this file instead of printing it.",
)


def _implementation_option(*, help_text: str):
    return click.option(
        "--implementation-path",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help=help_text,
    )


@click.group()
@click.version_option(version=__version__, prog_name="spec-agents")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging.")
def spec_agents(verbose: bool) -> None:
    """Generate and validate spec implementations with AI agents."""

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@spec_agents.command("generate")
@_spec_file_argument
@_output_option
@_agent_mode_option
@_model_option
@_config_option
def generate(  # noqa: PLR0913
    spec_file: Path,
    output_path: Path | None,
    agent_mode: str | None,
    model: str | None,
    config_path: Path | None,
) -> None:
    """Generate implementation code from a spec file."""

    _finish(
        AGENT_CONTROLLER.generate(
            AgentTaskCommand(
                spec_file=spec_file,
                output_path=output_path,
                agent_mode=agent_mode,
                model=model,
                config_path=config_path,
            ),
        ),
    )


@spec_agents.command("tests")
@_spec_file_argument
@_implementation_option(help_text="Implementation file to generate tests for.")
@_output_option
@_agent_mode_option
@_model_option
@_config_option
def tests(  # noqa: PLR0913
    spec_file: Path,
    implementation_path: Path | None,
    output_path: Path | None,
    agent_mode: str | None,
    model: str | None,
    config_path: Path | None,
) -> None:
    """Generate tests for an implementation of a spec."""

    _finish(
        AGENT_CONTROLLER.tests(
            AgentTaskCommand(
                spec_file=spec_file,
                implementation_path=implementation_path,
                output_path=output_path,
                agent_mode=agent_mode,
                model=model,
                config_path=config_path,
            ),
        ),
    )


@spec_agents.command("validate")
@_spec_file_argument
@_implementation_option(help_text="Implementation file (auto-detected if not specified).")
@_agent_mode_option
@_model_option
@_config_option
def validate(
    spec_file: Path,
    implementation_path: Path | None,
    agent_mode: str | None,
    model: str | None,
    config_path: Path | None,
) -> None:
    """Validate an implementation against its spec."""

    _finish(
        AGENT_CONTROLLER.validate(
            AgentTaskCommand(
                spec_file=spec_file,
                implementation_path=implementation_path,
                agent_mode=agent_mode,
                model=model,
                config_path=config_path,
            ),
        ),
    )


@spec_agents.command("refactor")
@_spec_file_argument
@_implementation_option(help_text="Code to refactor.")
@_output_option
@_agent_mode_option
@_model_option
@_config_option
def refactor(  # noqa: PLR0913
    spec_file: Path,
    implementation_path: Path | None,
    output_path: Path | None,
    agent_mode: str | None,
    model: str | None,
    config_path: Path | None,
) -> None:
    """Refactor existing code while keeping it compliant with its spec."""

    _finish(
        AGENT_CONTROLLER.refactor(
            AgentTaskCommand(
                spec_file=spec_file,
                implementation_path=implementation_path,
                output_path=output_path,
                agent_mode=agent_mode,
                model=model,
                config_path=config_path,
            ),
        ),
    )


@spec_agents.command("status")
@_agent_mode_option
@_config_option
def status(agent_mode: str | None, config_path: Path | None) -> None:
    """Show which agents are available in this environment."""

    _finish(
        AGENT_CONTROLLER.status(
            AgentStatusCommand(agent_mode=agent_mode, config_path=config_path),
        ),
    )


def _finish(result: AgentCommandResult) -> None:
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Agent task failed.")


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    spec_agents()
