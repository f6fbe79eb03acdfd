"""Best-effort recovery of code and validation reports from LLM text output."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

EXTRACTION_PARSER_VERSION = "v1"

_FENCED_BLOCK = re.compile(
    r"```(?:[\w+-]*[ \t]*\n(?P<block>.*?)|(?P<inline>[^\n`][^\n]*?))```",
    re.DOTALL,
)
_INLINE_LANGUAGE = re.compile(
    r"^(?:ts|tsx|typescript|js|jsx|javascript|json)[ \t]+",
    re.IGNORECASE,
)
_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.*\S)\s*$")
_FAIL_MARKERS = ("status: fail", "**status**: fail", "verdict: fail", "does not match")


@dataclass(slots=True)
class ValidationReport:
    """Normalized validation verdict recovered from model output."""

    passed: bool
    report: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    parser: str = "json_payload"


def extract_code(text: str) -> str:
    """Return the most relevant code from a model response.

    Prefers the largest fenced block; plain responses are returned trimmed.
    """

    blocks = [_fenced_body(match) for match in _FENCED_BLOCK.finditer(text)]
    blocks = [block for block in blocks if block.strip()]
    if blocks:
        return max(blocks, key=len)
    return text.strip()


def _fenced_body(match: re.Match[str]) -> str:
    block = match.group("block")
    if block is not None:
        return block.strip("\n")
    return _INLINE_LANGUAGE.sub("", match.group("inline").strip(), count=1)


def parse_validation_report(text: str) -> ValidationReport:
    """Recover a validation verdict from JSON output, falling back to a text heuristic."""

    stripped = text.strip()
    payload = _parse_json_payload(stripped)
    if payload is not None:
        normalized = _normalize_payload(payload, raw_text=stripped)
        if normalized is not None:
            return normalized

    lowered = stripped.lower()
    passed = bool(stripped) and not any(marker in lowered for marker in _FAIL_MARKERS)
    errors: list[str] = []
    suggestions: list[str] = []
    section = ""
    for line in stripped.splitlines():
        heading = line.strip().lower().lstrip("#* ").rstrip(":*")
        if heading.startswith(("issues", "errors", "problems")):
            section = "errors"
            continue
        if heading.startswith(("recommendations", "suggestions", "improvements")):
            section = "suggestions"
            continue
        bullet = _BULLET.match(line)
        if bullet is None:
            continue
        if section == "errors":
            errors.append(bullet.group(1))
        elif section == "suggestions":
            suggestions.append(bullet.group(1))
    if not stripped:
        errors.append("Empty validation response")
    elif not passed and not errors:
        errors.append("Implementation does not satisfy the specification")
    return ValidationReport(
        passed=passed,
        report=stripped,
        errors=errors,
        suggestions=suggestions,
        parser="plain_text_heuristic",
    )


def _parse_json_payload(text: str) -> dict[str, object] | None:
    direct = _try_load_dict(text)
    if direct is not None:
        return direct

    fenced = _FENCED_JSON.search(text)
    if fenced is not None:
        payload = _try_load_dict(fenced.group(1))
        if payload is not None:
            return payload

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return _try_load_dict(text[start : end + 1])


def _try_load_dict(raw: str) -> dict[str, object] | None:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def _normalize_payload(payload: dict[str, object], *, raw_text: str) -> ValidationReport | None:
    status = payload.get("status")
    if not isinstance(status, str):
        return None
    normalized_status = status.strip().lower()
    if normalized_status not in {"pass", "passed", "fail", "failed"}:
        return None
    report = payload.get("report")
    errors = _string_list(payload.get("errors"))
    passed = normalized_status.startswith("pass") and not errors
    if not passed and not errors:
        errors = ["Implementation does not satisfy the specification"]
    return ValidationReport(
        passed=passed,
        report=report.strip() if isinstance(report, str) and report.strip() else raw_text,
        errors=errors,
        warnings=_string_list(payload.get("warnings")),
        suggestions=_string_list(payload.get("suggestions")),
    )


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]
