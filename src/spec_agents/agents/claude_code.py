"""Claude agent backed by the Anthropic Messages API."""

from __future__ import annotations

from spec_agents.agents.hosted import Completion, CompletionError, run_generation, run_validation
from spec_agents.agents.http import JsonHttpClient
from spec_agents.config import Settings
from spec_agents.orchestrator.contracts import AgentName, AgentResult, AgentTask


class ClaudeCodeAgent:
    """Generate and validate code with a Claude model."""

    name = AgentName.CLAUDE_CODE

    def __init__(self, settings: Settings, *, http_client: JsonHttpClient | None = None) -> None:
        self._settings = settings.claude
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
                headers={
                    "x-api-key": self._settings.api_key or "",
                    "anthropic-version": self._settings.api_version,
                },
            )
        return self._http_client

    def _complete(self, system_prompt: str, prompt: str) -> Completion:
        if not self._settings.api_key:
            raise CompletionError("ANTHROPIC_API_KEY is not configured", status_code=401)
        result = self._client().post_json(
            f"{self._settings.base_url.rstrip('/')}/v1/messages",
            {
                "model": self._settings.model,
                "max_tokens": self._max_tokens,
                "system": system_prompt,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        if not result.is_success or result.payload is None:
            raise CompletionError(result.error or "request failed", status_code=result.status_code)

        payload = result.payload
        content = payload.get("content")
        if not isinstance(content, list):
            raise CompletionError("Response has no content blocks", output_invalid=True)
        text = "".join(
            block["text"]
            for block in content
            if isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
        )
        usage_raw = payload.get("usage")
        usage: dict[str, int] = {}
        if isinstance(usage_raw, dict):
            prompt_tokens = usage_raw.get("input_tokens")
            completion_tokens = usage_raw.get("output_tokens")
            if isinstance(prompt_tokens, int):
                usage["prompt_tokens"] = prompt_tokens
            if isinstance(completion_tokens, int):
                usage["completion_tokens"] = completion_tokens
            if isinstance(prompt_tokens, int) and isinstance(completion_tokens, int):
                usage["total_tokens"] = prompt_tokens + completion_tokens
        model = payload.get("model")
        stop_reason = payload.get("stop_reason")
        return Completion(
            text=text,
            model=model if isinstance(model, str) else self._settings.model,
            usage=usage,
            stop_reason=stop_reason if isinstance(stop_reason, str) else None,
        )
