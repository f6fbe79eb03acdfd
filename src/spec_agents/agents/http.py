"""JSON-over-HTTP client used by hosted LLM agents."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from spec_agents import __version__

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_USER_AGENT = f"spec-agents/{__version__}"


@dataclass(slots=True)
class HttpCallResult:
    """Result of one JSON POST call."""

    url: str
    status_code: int
    payload: dict[str, Any] | None
    is_success: bool
    error: str | None = None


class JsonHttpClient:
    """httpx wrapper that reports failures as data instead of raising."""

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        base_headers = {"User-Agent": DEFAULT_USER_AGENT, "Content-Type": "application/json"}
        if headers:
            base_headers.update(headers)
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers=base_headers,
            transport=transport,
        )

    def post_json(self, url: str, body: dict[str, Any]) -> HttpCallResult:
        """POST a JSON body and decode the JSON response."""

        try:
            response = self._client.post(url, json=body)
        except httpx.TimeoutException:
            logger.warning("Timeout calling %s", url)
            return HttpCallResult(
                url=url,
                status_code=0,
                payload=None,
                is_success=False,
                error="timeout",
            )
        except httpx.HTTPError as exc:
            logger.warning("HTTP error calling %s: %s", url, exc)
            return HttpCallResult(
                url=url,
                status_code=0,
                payload=None,
                is_success=False,
                error=str(exc) or exc.__class__.__name__,
            )

        payload = _decode_object(response)
        if not response.is_success:
            return HttpCallResult(
                url=url,
                status_code=response.status_code,
                payload=payload,
                is_success=False,
                error=f"HTTP {response.status_code}: {_error_message(payload, response.text)}",
            )
        if payload is None:
            return HttpCallResult(
                url=url,
                status_code=response.status_code,
                payload=None,
                is_success=False,
                error="Response body is not a JSON object",
            )
        return HttpCallResult(
            url=url,
            status_code=response.status_code,
            payload=payload,
            is_success=True,
        )

    def close(self) -> None:
        """Release pooled connections."""

        self._client.close()

    def __enter__(self) -> JsonHttpClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _decode_object(response: httpx.Response) -> dict[str, Any] | None:
    try:
        parsed = response.json()
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def _error_message(payload: dict[str, Any] | None, fallback: str) -> str:
    if payload is not None:
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
    return fallback.strip()[:240] or "no response body"
