"""Explicit per-command session context."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionContext:
    """Identity of the user issuing a command.

    Passed as the first argument to every manager call; managers never read
    the current user from global state.
    """

    user_id: str
    display_name: str | None = None
