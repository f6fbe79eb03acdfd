"""Deterministic template agent with no external dependencies.

This is the terminal agent of every fallback chain, so nothing here may
touch the network, spawn processes or raise for well-formed input.
"""

from __future__ import annotations

import re

from spec_agents.orchestrator.contracts import AgentName, AgentResult, AgentTask, TaskKind

_EXPORT = re.compile(
    r"^\s*export\s+(?:default\s+)?(?:async\s+)?(?:const|let|function|class|interface|type|enum)\s+"
    r"([A-Za-z_$][\w$]*)",
    re.MULTILINE,
)
_SPEC_KEY = re.compile(r"""\b(?:key|name)\s*:\s*['"]([\w.\-/]+)['"]""")
_STUB_MARKERS = ("throw new Error('Not implemented')", 'throw new Error("Not implemented")')
_TODO = re.compile(r"\b(?:TODO|FIXME)\b")
_SPEC_SUFFIXES = ("Spec", "Contract", "Operation", "Presentation", "Form", "Workflow")


class SimpleAgent:
    """Render code from templates and validate with static checks."""

    name = AgentName.SIMPLE

    def can_handle(self, task: AgentTask) -> bool:  # noqa: ARG002
        return True

    def generate(self, task: AgentTask) -> AgentResult:
        if task.kind is TaskKind.TEST:
            return self._generate_tests(task)
        if task.kind is TaskKind.REFACTOR:
            return self._refactor(task)
        exports = spec_exports(task.spec_code)
        handler = _handler_name(task.spec_code, exports)
        lines = [
            f"// Auto-generated implementation template for {spec_key(task.spec_code) or handler}",
            "// Specification:",
            *_commented(task.spec_code),
            "",
        ]
        if exports:
            lines.append(f"import {{ {', '.join(exports)} }} from './spec';")
            lines.append("")
        lines.extend(
            [
                f"export async function {handler}(input: unknown): Promise<unknown> {{",
                "  // Implement according to the specification above.",
                "  throw new Error('Not implemented');",
                "}",
                "",
            ],
        )
        return AgentResult(
            success=True,
            code="\n".join(lines),
            suggestions=[
                "Template output only; configure an AI agent mode for a full implementation.",
            ],
            metadata={"agentMode": self.name.value, "template": "implementation"},
        )

    def validate(self, task: AgentTask) -> AgentResult:
        implementation = task.existing_code or ""
        errors: list[str] = []
        warnings: list[str] = []
        suggestions: list[str] = []

        if not implementation.strip():
            errors.append("No implementation provided for validation")
        else:
            if any(marker in implementation for marker in _STUB_MARKERS):
                warnings.append("Implementation still contains 'Not implemented' stubs")
                suggestions.append("Replace the template stubs with the specified behavior.")
            if _TODO.search(implementation):
                warnings.append("Implementation contains TODO/FIXME markers")
            exports = spec_exports(task.spec_code)
            if exports and not any(name in implementation for name in exports):
                warnings.append(
                    "Implementation does not reference any spec export: " + ", ".join(exports),
                )
                suggestions.append("Import the spec and type handler input/output from it.")
            if not spec_exports(implementation):
                warnings.append("Implementation exports nothing")

        success = not errors
        return AgentResult(
            success=success,
            code=_validation_report(success=success, errors=errors, warnings=warnings),
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
            metadata={"agentMode": self.name.value, "checks": "static"},
        )

    def _generate_tests(self, task: AgentTask) -> AgentResult:
        subject = task.existing_code or task.spec_code
        exports = spec_exports(subject) or [_handler_name(task.spec_code, spec_exports(task.spec_code))]
        lines = [
            "import { describe, expect, it } from 'vitest';",
            f"import {{ {', '.join(exports)} }} from './implementation';",
            "",
            f"describe('{spec_key(task.spec_code) or exports[0]}', () => {{",
        ]
        for name in exports:
            lines.extend(
                [
                    f"  it('{name} is defined', () => {{",
                    f"    expect({name}).toBeDefined();",
                    "  });",
                    "",
                ],
            )
        lines.extend(["  it.todo('covers acceptance scenarios from the spec');", "});", ""])
        return AgentResult(
            success=True,
            code="\n".join(lines),
            metadata={"agentMode": self.name.value, "template": "tests"},
        )

    def _refactor(self, task: AgentTask) -> AgentResult:
        if not task.existing_code:
            return AgentResult.failure(
                "No existing code provided for refactor",
                metadata={"agentMode": self.name.value},
            )
        exports = spec_exports(task.spec_code)
        key = spec_key(task.spec_code) or _handler_name(task.spec_code, exports)
        header = [
            f"// Refactored against {key}",
            "// No automated changes applied; review the suggestions below.",
            "",
        ]
        suggestions = ["Run an AI agent mode for a structural refactor."]
        missing = [name for name in exports if name not in task.existing_code]
        if missing:
            suggestions.append("Reference the spec exports: " + ", ".join(missing))
        if _TODO.search(task.existing_code):
            suggestions.append("Resolve the remaining TODO/FIXME markers.")
        return AgentResult(
            success=True,
            code="\n".join(header) + task.existing_code,
            suggestions=suggestions,
            metadata={"agentMode": self.name.value, "template": "refactor"},
        )


def spec_exports(code: str) -> list[str]:
    """Return exported symbol names in declaration order, without duplicates."""

    seen: dict[str, None] = {}
    for match in _EXPORT.finditer(code):
        seen.setdefault(match.group(1), None)
    return list(seen)


def spec_key(code: str) -> str | None:
    """Return the first `key:`/`name:` string literal of a spec, if any."""

    match = _SPEC_KEY.search(code)
    return match.group(1) if match else None


def _handler_name(spec_code: str, exports: list[str]) -> str:
    base = exports[0] if exports else (spec_key(spec_code) or "spec")
    for suffix in _SPEC_SUFFIXES:
        if base.endswith(suffix) and base != suffix:
            base = base[: -len(suffix)]
            break
    words = [word for word in re.split(r"[^A-Za-z0-9]+", base) if word]
    if not words:
        return "handler"
    camel = words[0][:1].lower() + words[0][1:] + "".join(w[:1].upper() + w[1:] for w in words[1:])
    return f"{camel}Handler"


def _commented(code: str) -> list[str]:
    return [f"// {line}".rstrip() for line in code.splitlines()]


def _validation_report(*, success: bool, errors: list[str], warnings: list[str]) -> str:
    lines = ["# Implementation Validation Report", "", f"**Status**: {'PASS' if success else 'FAIL'}"]
    if errors:
        lines.extend(["", "## Issues Found", *(f"- {error}" for error in errors)])
    if warnings:
        lines.extend(["", "## Warnings", *(f"- {warning}" for warning in warnings)])
    return "\n".join(lines) + "\n"
