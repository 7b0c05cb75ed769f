from __future__ import annotations

"""
Infrastructure layer (no application semantics).

Technical building blocks around the external Mem0 service: the REST client,
deployment tooling, configuration and logging helpers.
"""

__all__ = [
    "config",
    "deploy",
    "integrations",
    "memory",
    "utils",
]
