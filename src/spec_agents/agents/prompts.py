"""Prompt templates for hosted LLM agents."""

from __future__ import annotations

from spec_agents.orchestrator.contracts import AgentTask, TaskKind

SYSTEM_PROMPT = """\
You are an expert TypeScript developer working with ContractSpec, a spec-first \
development framework.

Your code follows these principles:
- Type-safe with comprehensive TypeScript types (no `any`)
- Well-documented with JSDoc comments
- Production-ready with proper error handling
- Modular and testable

When implementing specs:
1. Validate input against the schema before processing
2. Handle all error cases defined in the spec
3. Emit events as specified in sideEffects
4. Respect policy constraints (auth, rate limits, PII handling)
5. Follow the acceptance scenarios as your implementation guide"""

VALIDATION_SYSTEM_PROMPT = """\
You are a meticulous code reviewer. You compare an implementation against its \
ContractSpec specification and answer only with the requested JSON object."""

VALIDATION_OUTPUT_CONTRACT = """\
{
  "status": "pass" | "fail",
  "errors": ["<specification violations>"],
  "warnings": ["<quality concerns that do not break the spec>"],
  "suggestions": ["<concrete improvements>"],
  "report": "<markdown report>"
}"""

_TASK_INSTRUCTIONS: dict[TaskKind, str] = {
    TaskKind.GENERATE: (
        "Generate a complete implementation of the specification.\n"
        "- Parse and validate all inputs according to the specification\n"
        "- Handle all edge cases and error scenarios\n"
        "- Include all necessary imports and type definitions\n"
        "Return only the code in a single ```typescript fenced block."
    ),
    TaskKind.TEST: (
        "Generate a Vitest test file for the implementation below.\n"
        "- Cover all code paths, edge cases and error handling\n"
        "- Organize tests with describe/it blocks and mock external dependencies\n"
        "Return only the test file in a single ```typescript fenced block."
    ),
    TaskKind.REFACTOR: (
        "Refactor the code below while preserving all existing functionality.\n"
        "- Improve organization, naming and type definitions\n"
        "- Eliminate duplication and strengthen error handling\n"
        "Return only the refactored code in a single ```typescript fenced block."
    ),
}


def build_generation_prompt(task: AgentTask) -> str:
    """Build the user prompt for generate, test and refactor tasks."""

    instructions = _TASK_INSTRUCTIONS.get(task.kind, _TASK_INSTRUCTIONS[TaskKind.GENERATE])
    parts = [
        f"# Task: {task.kind.value}",
        "",
        "## Specification",
        "",
        _fenced(task.spec_code),
    ]
    if task.existing_code:
        label = "Implementation to test" if task.kind is TaskKind.TEST else "Existing code"
        parts.extend(["", f"## {label}", "", _fenced(task.existing_code)])
    if task.target_path:
        parts.extend(["", f"Target file: {task.target_path}"])
    parts.extend(["", "## Instructions", "", instructions])
    return "\n".join(parts)


def build_validation_prompt(task: AgentTask) -> str:
    """Build the user prompt for validate tasks."""

    return "\n".join(
        [
            "# Task: validate",
            "",
            "## Specification",
            "",
            _fenced(task.spec_code),
            "",
            "## Implementation",
            "",
            _fenced(task.existing_code or "// No implementation provided"),
            "",
            "## Validation criteria",
            "",
            "1. Specification compliance: all required features and I/O types",
            "2. Error handling for every error case in the spec",
            "3. Code quality and production readiness",
            "",
            "Answer with a JSON object matching exactly:",
            VALIDATION_OUTPUT_CONTRACT,
        ],
    )


def _fenced(code: str) -> str:
    return f"```typescript\n{code.rstrip()}\n```"
