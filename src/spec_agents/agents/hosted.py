"""Shared execution flow for agents backed by hosted LLM APIs."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from spec_agents.agents.extraction import (
    EXTRACTION_PARSER_VERSION,
    extract_code,
    parse_validation_report,
)
from spec_agents.agents.failure_classifier import FailureClass, classify_backend_failure
from spec_agents.agents.prompts import (
    SYSTEM_PROMPT,
    VALIDATION_SYSTEM_PROMPT,
    build_generation_prompt,
    build_validation_prompt,
)
from spec_agents.orchestrator.contracts import AgentName, AgentResult, AgentTask

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Completion:
    """Text completion returned by a hosted model."""

    text: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    stop_reason: str | None = None


class CompletionError(RuntimeError):
    """Hosted model call failed; carries the HTTP status when there was one."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        output_invalid: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.output_invalid = output_invalid


CompleteFn = Callable[[str, str], Completion]


def run_generation(*, agent: AgentName, task: AgentTask, complete: CompleteFn) -> AgentResult:
    """Run a generate/test/refactor task through a hosted model."""

    started = time.monotonic()
    try:
        completion = complete(SYSTEM_PROMPT, build_generation_prompt(task))
    except CompletionError as error:
        return _failed(agent=agent, error=error)

    code = extract_code(completion.text)
    metadata = _metadata(agent=agent, completion=completion, started=started)
    if not code:
        return AgentResult.failure(
            f"{agent.value} returned an empty response",
            metadata={**metadata, "failure": _output_invalid(agent)},
        )
    warnings: list[str] = []
    if completion.stop_reason in {"max_tokens", "length"}:
        warnings.append("Response was truncated at the token limit; output may be incomplete.")
    logger.info(
        "Agent %s completed %s task in %.1fs",
        agent.value,
        task.kind.value,
        metadata["elapsed_seconds"],
    )
    return AgentResult(success=True, code=code, warnings=warnings, metadata=metadata)


def run_validation(*, agent: AgentName, task: AgentTask, complete: CompleteFn) -> AgentResult:
    """Run a validate task through a hosted model and normalize its verdict."""

    if not task.existing_code:
        return AgentResult.failure(
            "No implementation provided for validation",
            metadata={"agentMode": agent.value},
        )
    started = time.monotonic()
    try:
        completion = complete(VALIDATION_SYSTEM_PROMPT, build_validation_prompt(task))
    except CompletionError as error:
        return _failed(agent=agent, error=error)

    report = parse_validation_report(completion.text)
    metadata = _metadata(agent=agent, completion=completion, started=started)
    metadata["report_parser"] = report.parser
    return AgentResult(
        success=report.passed,
        code=report.report,
        errors=report.errors,
        warnings=report.warnings,
        suggestions=report.suggestions,
        metadata=metadata,
    )


def _failed(*, agent: AgentName, error: CompletionError) -> AgentResult:
    message = str(error)
    if error.output_invalid:
        failure = _output_invalid(agent)
    else:
        failure = classify_backend_failure(
            agent=agent.value,
            message=message,
            status_code=error.status_code,
        ).to_metadata()
    logger.warning("Agent %s call failed: %s", agent.value, message)
    return AgentResult.failure(
        f"{agent.value} request failed: {message}",
        metadata={"agentMode": agent.value, "failure": failure},
    )


def _output_invalid(agent: AgentName) -> dict[str, Any]:
    return {
        "failure_class": FailureClass.OUTPUT_INVALID.value,
        "reason_code": f"{agent.value}_output_invalid",
    }


def _metadata(*, agent: AgentName, completion: Completion, started: float) -> dict[str, Any]:
    return {
        "agentMode": agent.value,
        "model": completion.model,
        "usage": dict(completion.usage),
        "stop_reason": completion.stop_reason,
        "parser_version": EXTRACTION_PARSER_VERSION,
        "elapsed_seconds": round(time.monotonic() - started, 3),
    }
