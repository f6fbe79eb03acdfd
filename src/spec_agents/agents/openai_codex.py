"""Codex-style agent backed by the OpenAI Chat Completions API."""

from __future__ import annotations

from spec_agents.agents.hosted import Completion, CompletionError, run_generation, run_validation
from spec_agents.agents.http import JsonHttpClient
from spec_agents.config import Settings
from spec_agents.orchestrator.contracts import AgentName, AgentResult, AgentTask


class OpenAICodexAgent:
    """Generate and validate code with an OpenAI model."""

    name = AgentName.OPENAI_CODEX

    def __init__(self, settings: Settings, *, http_client: JsonHttpClient | None = None) -> None:
        self._settings = settings.openai
        self._max_tokens = settings.max_tokens
        self._timeout_seconds = settings.request_timeout_seconds
        self._http_client = http_client
        self._owns_client = http_client is None

    def can_handle(self, task: AgentTask) -> bool:  # noqa: ARG002
        return bool(self._settings.api_key)

    def generate(self, task: AgentTask) -> AgentResult:
        return run_generation(agent=self.name, task=task, complete=self._complete)

    def validate(self, task: AgentTask) -> AgentResult:
        return run_validation(agent=self.name, task=task, complete=self._complete)

    def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def _client(self) -> JsonHttpClient:
        if self._http_client is None:
            self._http_client = JsonHttpClient(
                timeout_seconds=self._timeout_seconds,
                headers={"Authorization": f"Bearer {self._settings.api_key or ''}"},
            )
        return self._http_client

    def _complete(self, system_prompt: str, prompt: str) -> Completion:
        if not self._settings.api_key:
            raise CompletionError("OPENAI_API_KEY is not configured", status_code=401)
        result = self._client().post_json(
            f"{self._settings.base_url.rstrip('/')}/chat/completions",
            {
                "model": self._settings.model,
                "max_tokens": self._max_tokens,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
            },
        )
        if not result.is_success or result.payload is None:
            raise CompletionError(result.error or "request failed", status_code=result.status_code)

        payload = result.payload
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise CompletionError("Response has no choices", output_invalid=True)
        message = choices[0].get("message")
        text = message.get("content") if isinstance(message, dict) else None
        if not isinstance(text, str):
            raise CompletionError("Response choice has no text content", output_invalid=True)
        usage_raw = payload.get("usage")
        usage: dict[str, int] = {}
        if isinstance(usage_raw, dict):
            for key in ("prompt_tokens", "completion_tokens", "total_tokens"):
                value = usage_raw.get(key)
                if isinstance(value, int):
                    usage[key] = value
        model = payload.get("model")
        finish_reason = choices[0].get("finish_reason")
        return Completion(
            text=text,
            model=model if isinstance(model, str) else self._settings.model,
            usage=usage,
            stop_reason=finish_reason if isinstance(finish_reason, str) else None,
        )
