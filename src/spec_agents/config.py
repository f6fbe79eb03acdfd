"""Runtime configuration for agent routing and provider backends."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path(".contractsrc.json")
_CLAUDE_PROVIDERS = frozenset({"claude", "anthropic"})
_OPENAI_PROVIDERS = frozenset({"openai"})


@dataclass(slots=True)
class ClaudeSettings:
    """Anthropic Messages API settings for the claude-code agent."""

    api_key: str | None = None
    model: str = "claude-sonnet-4-5"
    base_url: str = "https://api.anthropic.com"
    api_version: str = "2023-06-01"


@dataclass(slots=True)
class OpenAISettings:
    """OpenAI Chat Completions settings for the openai-codex agent."""

    api_key: str | None = None
    model: str = "gpt-4o"
    base_url: str = "https://api.openai.com/v1"


@dataclass(slots=True)
class CursorSettings:
    """Cursor/Windsurf IDE integration settings."""

    timeout_seconds: int = 60


@dataclass(slots=True)
class Settings:
    """Application settings grouped by agent backend."""

    agent_mode: str = "simple"
    request_timeout_seconds: float = 120.0
    max_tokens: int = 8_192
    claude: ClaudeSettings = field(default_factory=ClaudeSettings)
    openai: OpenAISettings = field(default_factory=OpenAISettings)
    cursor: CursorSettings = field(default_factory=CursorSettings)

    @classmethod
    def from_env(cls, config_path: Path | None = None) -> Settings:
        """Load settings from environment, layered over the optional project config file."""

        file_config = _load_config_file(
            config_path or Path(os.getenv("SPEC_AGENTS_CONFIG_PATH", str(DEFAULT_CONFIG_PATH))),
        )
        ai_model = _optional_str(file_config.get("aiModel"))
        claude_model, openai_model = _route_ai_model(
            ai_model,
            _optional_str(file_config.get("aiProvider")),
        )
        return cls(
            agent_mode=os.getenv(
                "SPEC_AGENTS_AGENT_MODE",
                _optional_str(file_config.get("agentMode")) or "simple",
            ),
            request_timeout_seconds=_env_float("SPEC_AGENTS_REQUEST_TIMEOUT_SECONDS", 120.0),
            max_tokens=_env_int("SPEC_AGENTS_MAX_TOKENS", 8_192),
            claude=ClaudeSettings(
                api_key=os.getenv("ANTHROPIC_API_KEY") or None,
                model=os.getenv("SPEC_AGENTS_CLAUDE_MODEL") or claude_model or "claude-sonnet-4-5",
                base_url=os.getenv("SPEC_AGENTS_ANTHROPIC_BASE_URL", "https://api.anthropic.com"),
            ),
            openai=OpenAISettings(
                api_key=os.getenv("OPENAI_API_KEY") or None,
                model=os.getenv("SPEC_AGENTS_OPENAI_MODEL") or openai_model or "gpt-4o",
                base_url=os.getenv("SPEC_AGENTS_OPENAI_BASE_URL", "https://api.openai.com/v1"),
            ),
            cursor=CursorSettings(
                timeout_seconds=_env_int("SPEC_AGENTS_CURSOR_TIMEOUT_SECONDS", 60),
            ),
        )

    def with_overrides(self, *, agent_mode: str | None = None, model: str | None = None) -> Settings:
        """Return a copy with CLI overrides applied."""

        updated = self
        if agent_mode is not None:
            updated = replace(updated, agent_mode=agent_mode)
        if model is not None:
            updated = replace(
                updated,
                claude=replace(updated.claude, model=model),
                openai=replace(updated.openai, model=model),
            )
        return updated


def _load_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text("utf-8"))
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid JSON in config file {path}: {error}") from error
    if not isinstance(payload, dict):
        raise ValueError(f"Expected JSON object in config file {path}")
    return payload


def _route_ai_model(
    ai_model: str | None,
    ai_provider: str | None,
) -> tuple[str | None, str | None]:
    """Return the (claude, openai) model override implied by `aiModel` and `aiProvider`."""

    if ai_model is None:
        return None, None
    if ai_provider is None:
        return ai_model, ai_model
    provider = ai_provider.lower()
    if provider in _CLAUDE_PROVIDERS:
        return ai_model, None
    if provider in _OPENAI_PROVIDERS:
        return None, ai_model
    # ollama/custom models belong to neither hosted backend
    return None, None


def _optional_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error
    if value <= 0:
        raise ValueError(f"{name} must be > 0.")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as error:
        raise ValueError(f"Invalid numeric value for {name}: {raw!r}") from error
    if value <= 0:
        raise ValueError(f"{name} must be > 0.")
    return value
