"""Task and result envelopes exchanged between the orchestrator and agents."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TaskKind(str, Enum):
    """Unit of work requested from an agent."""

    GENERATE = "generate"
    TEST = "test"
    VALIDATE = "validate"
    REFACTOR = "refactor"


class AgentName(str, Enum):
    """Stable provider identifiers used by the registry and fallback chain."""

    SIMPLE = "simple"
    CURSOR = "cursor"
    CLAUDE_CODE = "claude-code"
    OPENAI_CODEX = "openai-codex"

    @classmethod
    def parse(cls, value: str | None) -> AgentName | None:
        """Return the matching member or None for unknown names."""

        if value is None:
            return None
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return None


@dataclass(frozen=True, slots=True)
class AgentTask:
    """Immutable description of one code-generation or validation request."""

    kind: TaskKind
    spec_code: str
    existing_code: str | None = None
    target_path: str | None = None


@dataclass(slots=True)
class AgentResult:
    """Uniform outcome returned by every agent and by the orchestrator."""

    success: bool
    code: str | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(
        cls,
        message: str,
        *,
        warnings: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AgentResult:
        """Build a failed result carrying one explanatory error."""

        return cls(
            success=False,
            errors=[message],
            warnings=list(warnings or []),
            metadata=dict(metadata or {}),
        )
