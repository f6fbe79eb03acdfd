"""Agent task routing with deterministic fallback.

A task is offered to the configured agent first. A logical failure
(``success=False``) gets exactly one more attempt on the agent's designated
successor from ``topology.FALLBACK_CHAIN``; a raised exception or a declined
capability check goes straight to the terminal ``simple`` agent, which has no
external dependencies.
"""
