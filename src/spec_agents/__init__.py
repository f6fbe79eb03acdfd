"""Spec-driven code generation agents with deterministic fallback routing."""

__version__ = "0.1.0"
