"""Explicit session context handed to workflow operations.

Whoever is acting (a UI session, an API key, a test) is passed in rather than
looked up from a flag stored on a user record.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionContext:
    subject: str
    scheme: str = "local"
    role: str | None = None


SYSTEM_CONTEXT = SessionContext(subject="system", scheme="internal")


def actor_name(context: SessionContext | None) -> str | None:
    return context.subject if context is not None else None


__all__ = ["SYSTEM_CONTEXT", "SessionContext", "actor_name"]
