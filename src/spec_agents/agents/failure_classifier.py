"""Deterministic classification of LLM backend failures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

FAILURE_CLASSIFIER_VERSION = 1


class FailureClass(str, Enum):
    """Normalized failure classes reported in result metadata."""

    BACKEND_TRANSIENT = "backend_transient"
    BACKEND_NON_RETRYABLE = "backend_non_retryable"
    BILLING_OR_QUOTA = "billing_or_quota"
    ACCESS_OR_AUTH = "access_or_auth"
    MODEL_NOT_AVAILABLE = "model_not_available"
    OUTPUT_INVALID = "output_invalid"


_BILLING_OR_QUOTA_PATTERNS: tuple[str, ...] = (
    "quota",
    "insufficient",
    "billing",
    "payment",
    "credit balance",
    "usage limit",
)
_ACCESS_OR_AUTH_PATTERNS: tuple[str, ...] = (
    "unauthorized",
    "forbidden",
    "permission denied",
    "invalid api key",
    "invalid x-api-key",
    "incorrect api key",
    "authentication",
)
_MODEL_NOT_AVAILABLE_PATTERNS: tuple[str, ...] = (
    "model not found",
    "model_not_found",
    "unknown model",
    "invalid model",
    "does not exist",
    "not_found_error",
)
_RATE_LIMIT_TRANSIENT_PATTERNS: tuple[str, ...] = (
    "too many requests",
    "rate limit",
    "rate_limit",
    "overloaded",
    "try again later",
)
_GENERIC_TRANSIENT_PATTERNS: tuple[str, ...] = (
    "timeout",
    "timed out",
    "temporarily unavailable",
    "connection reset",
    "connection refused",
    "network error",
)
_AUTH_STATUS_CODES = frozenset({401, 403})
_TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504, 529})


@dataclass(slots=True)
class BackendFailureClassification:
    """Normalized failure classification result."""

    failure_class: FailureClass
    reason_code: str
    matched_rule: str
    matched_pattern: str | None

    def to_metadata(self) -> dict[str, object]:
        """Serialize classifier diagnostics for result metadata."""

        return {
            "classifier_version": FAILURE_CLASSIFIER_VERSION,
            "failure_class": self.failure_class.value,
            "reason_code": self.reason_code,
            "matched_rule": self.matched_rule,
            "matched_pattern": self.matched_pattern,
        }


def classify_backend_failure(
    *,
    agent: str,
    message: str,
    status_code: int | None = None,
) -> BackendFailureClassification:
    """Classify a failed backend call from its error text and HTTP status."""

    haystack = message.lower()

    pattern = _first_match(haystack, _BILLING_OR_QUOTA_PATTERNS)
    if pattern is not None:
        return _classified(agent, FailureClass.BILLING_OR_QUOTA, "billing_or_quota", pattern)

    pattern = _first_match(haystack, _ACCESS_OR_AUTH_PATTERNS)
    if pattern is not None or status_code in _AUTH_STATUS_CODES:
        return _classified(agent, FailureClass.ACCESS_OR_AUTH, "access_or_auth", pattern)

    pattern = _first_match(haystack, _MODEL_NOT_AVAILABLE_PATTERNS)
    if pattern is not None:
        return _classified(
            agent,
            FailureClass.MODEL_NOT_AVAILABLE,
            "model_not_available",
            pattern,
        )

    pattern = _first_match(haystack, _RATE_LIMIT_TRANSIENT_PATTERNS)
    if pattern is not None or status_code == 429:  # noqa: PLR2004
        return _classified(
            agent,
            FailureClass.BACKEND_TRANSIENT,
            "rate_limit_transient",
            pattern,
        )

    pattern = _first_match(haystack, _GENERIC_TRANSIENT_PATTERNS)
    if pattern is not None or status_code in _TRANSIENT_STATUS_CODES:
        return BackendFailureClassification(
            failure_class=FailureClass.BACKEND_TRANSIENT,
            reason_code=f"{agent}_backend_transient",
            matched_rule=(
                "transient_status_code"
                if status_code in _TRANSIENT_STATUS_CODES and pattern is None
                else "generic_transient"
            ),
            matched_pattern=pattern,
        )

    return BackendFailureClassification(
        failure_class=FailureClass.BACKEND_NON_RETRYABLE,
        reason_code=f"{agent}_backend_non_retryable",
        matched_rule="fallback_non_retryable",
        matched_pattern=None,
    )


def _classified(
    agent: str,
    failure_class: FailureClass,
    rule: str,
    pattern: str | None,
) -> BackendFailureClassification:
    return BackendFailureClassification(
        failure_class=failure_class,
        reason_code=f"{agent}_{rule}",
        matched_rule=rule,
        matched_pattern=pattern,
    )


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None
