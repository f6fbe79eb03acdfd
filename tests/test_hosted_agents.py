from __future__ import annotations

import json

import allure
import httpx

from spec_agents.agents.claude_code import ClaudeCodeAgent
from spec_agents.agents.http import JsonHttpClient
from spec_agents.agents.openai_codex import OpenAICodexAgent
from spec_agents.config import ClaudeSettings, OpenAISettings, Settings
from spec_agents.orchestrator.contracts import AgentTask, TaskKind

pytestmark = [
    allure.epic("Agents"),
    allure.feature("Hosted LLM Agents"),
]

_GENERATE = AgentTask(kind=TaskKind.GENERATE, spec_code="export const PingSpec = {};")
_VALIDATE = AgentTask(
    kind=TaskKind.VALIDATE,
    spec_code="export const PingSpec = {};",
    existing_code="export const ping = () => 'pong';",
)


def _settings() -> Settings:
    return Settings(
        claude=ClaudeSettings(api_key="sk-ant-test", model="claude-test"),
        openai=OpenAISettings(api_key="sk-openai-test", model="gpt-test"),
    )


def _client(handler, requests: list[httpx.Request] | None = None) -> JsonHttpClient:
    def _recording(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    return JsonHttpClient(transport=httpx.MockTransport(_recording))


def _claude_response(text: str, *, stop_reason: str = "end_turn") -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "model": "claude-test-2025",
            "content": [{"type": "text", "text": text}],
            "usage": {"input_tokens": 12, "output_tokens": 30},
            "stop_reason": stop_reason,
        },
    )


def test_claude_agent_requires_api_key() -> None:
    assert ClaudeCodeAgent(Settings()).can_handle(_GENERATE) is False
    assert ClaudeCodeAgent(_settings()).can_handle(_GENERATE) is True


def test_claude_generate_extracts_fenced_code_and_usage() -> None:
    requests: list[httpx.Request] = []
    client = _client(
        lambda request: _claude_response("Here you go:\n```ts\nexport const ping = 1;\n```\n"),
        requests,
    )
    agent = ClaudeCodeAgent(_settings(), http_client=client)

    result = agent.generate(_GENERATE)

    assert result.success is True
    assert result.code == "export const ping = 1;"
    assert result.metadata["agentMode"] == "claude-code"
    assert result.metadata["model"] == "claude-test-2025"
    assert result.metadata["usage"] == {
        "prompt_tokens": 12,
        "completion_tokens": 30,
        "total_tokens": 42,
    }
    body = json.loads(requests[0].content)
    assert str(requests[0].url) == "https://api.anthropic.com/v1/messages"
    assert body["model"] == "claude-test"
    assert body["messages"][0]["role"] == "user"
    assert "PingSpec" in body["messages"][0]["content"]


def test_claude_generate_warns_on_truncation() -> None:
    client = _client(lambda request: _claude_response("```\ncode\n```", stop_reason="max_tokens"))
    result = ClaudeCodeAgent(_settings(), http_client=client).generate(_GENERATE)

    assert result.success is True
    assert result.warnings


def test_claude_http_error_becomes_classified_failure() -> None:
    client = _client(
        lambda request: httpx.Response(
            401,
            json={"type": "error", "error": {"type": "authentication_error", "message": "invalid x-api-key"}},
        ),
    )
    result = ClaudeCodeAgent(_settings(), http_client=client).generate(_GENERATE)

    assert result.success is False
    assert "invalid x-api-key" in result.errors[0]
    assert result.metadata["failure"]["failure_class"] == "access_or_auth"


def test_claude_network_error_becomes_failure() -> None:
    def _raise(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = ClaudeCodeAgent(_settings(), http_client=_client(_raise)).generate(_GENERATE)

    assert result.success is False
    assert result.metadata["failure"]["failure_class"] == "backend_transient"


def test_claude_malformed_payload_is_output_invalid() -> None:
    client = _client(lambda request: httpx.Response(200, json={"unexpected": True}))
    result = ClaudeCodeAgent(_settings(), http_client=client).generate(_GENERATE)

    assert result.success is False
    assert result.metadata["failure"]["failure_class"] == "output_invalid"


def test_claude_validate_parses_json_verdict() -> None:
    verdict = {
        "status": "fail",
        "errors": ["Missing error case NOT_FOUND"],
        "warnings": [],
        "suggestions": ["Add input validation"],
        "report": "## Report\nMissing error case.",
    }
    client = _client(lambda request: _claude_response(json.dumps(verdict)))
    result = ClaudeCodeAgent(_settings(), http_client=client).validate(_VALIDATE)

    assert result.success is False
    assert result.errors == ["Missing error case NOT_FOUND"]
    assert result.suggestions == ["Add input validation"]
    assert result.code == "## Report\nMissing error case."
    assert result.metadata["report_parser"] == "json_payload"


def test_validate_without_implementation_does_not_call_backend() -> None:
    requests: list[httpx.Request] = []
    client = _client(lambda request: _claude_response("{}"), requests)

    result = ClaudeCodeAgent(_settings(), http_client=client).validate(
        AgentTask(kind=TaskKind.VALIDATE, spec_code="spec"),
    )

    assert result.success is False
    assert requests == []


def test_openai_generate_reads_first_choice() -> None:
    requests: list[httpx.Request] = []
    client = _client(
        lambda request: httpx.Response(
            200,
            json={
                "model": "gpt-test-0613",
                "choices": [
                    {
                        "message": {"role": "assistant", "content": "```typescript\nconst a = 1;\n```"},
                        "finish_reason": "stop",
                    },
                ],
                "usage": {"prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12},
            },
        ),
        requests,
    )
    agent = OpenAICodexAgent(_settings(), http_client=client)

    result = agent.generate(_GENERATE)

    assert result.success is True
    assert result.code == "const a = 1;"
    assert result.metadata["agentMode"] == "openai-codex"
    assert result.metadata["usage"]["total_tokens"] == 12
    body = json.loads(requests[0].content)
    assert str(requests[0].url) == "https://api.openai.com/v1/chat/completions"
    assert [message["role"] for message in body["messages"]] == ["system", "user"]


def test_openai_rate_limit_is_transient() -> None:
    client = _client(
        lambda request: httpx.Response(429, json={"error": {"message": "Rate limit reached"}}),
    )
    result = OpenAICodexAgent(_settings(), http_client=client).generate(_GENERATE)

    assert result.success is False
    assert result.metadata["failure"]["matched_rule"] == "rate_limit_transient"


def test_openai_validate_pass_verdict() -> None:
    client = _client(
        lambda request: httpx.Response(
            200,
            json={
                "choices": [
                    {
                        "message": {
                            "content": '```json\n{"status": "pass", "report": "All good"}\n```',
                        },
                    },
                ],
            },
        ),
    )
    result = OpenAICodexAgent(_settings(), http_client=client).validate(_VALIDATE)

    assert result.success is True
    assert result.code == "All good"
    assert result.metadata["model"] == "gpt-test"


def test_openai_agent_requires_api_key() -> None:
    assert OpenAICodexAgent(Settings()).can_handle(_GENERATE) is False


def test_claude_null_text_block_is_output_invalid() -> None:
    client = _client(
        lambda request: httpx.Response(200, json={"content": [{"type": "text", "text": None}]}),
    )

    result = ClaudeCodeAgent(_settings(), http_client=client).generate(_GENERATE)

    assert result.success is False
    assert result.errors == ["claude-code returned an empty response"]
    assert result.metadata["failure"]["failure_class"] == "output_invalid"


def test_claude_skips_null_blocks_and_keeps_text() -> None:
    client = _client(
        lambda request: httpx.Response(
            200,
            json={
                "content": [
                    {"type": "text", "text": None},
                    {"type": "text", "text": "export const ping = 1;"},
                ],
            },
        ),
    )

    result = ClaudeCodeAgent(_settings(), http_client=client).generate(_GENERATE)

    assert result.success is True
    assert result.code == "export const ping = 1;"


def test_agent_closes_only_the_client_it_created(monkeypatch) -> None:
    closed: list[str] = []
    monkeypatch.setattr(JsonHttpClient, "close", lambda self: closed.append("closed"))

    injected = ClaudeCodeAgent(
        _settings(),
        http_client=_client(lambda request: _claude_response("x")),
    )
    injected.close()
    assert closed == []

    owned = OpenAICodexAgent(
        _settings(),
        http_client=None,
    )
    owned.close()
    assert closed == []
    owned._client()
    owned.close()
    assert closed == ["closed"]


def test_json_http_client_closes_on_context_exit() -> None:
    with _client(lambda request: httpx.Response(200, json={})) as client:
        assert client.post_json("https://example.test", {}).is_success is True
    assert client._client.is_closed is True
