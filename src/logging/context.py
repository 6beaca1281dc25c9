# src/logging/context.py — v2
"""Contextual logging support: attach household, actor and operation.

Set once per gateway request; formatters read it back on every record.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_household_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "household_id", default=None
)
_actor: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "actor", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    household_id: str | None = None
    actor: str | None = None
    operation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        household_id=_household_id.get(),
        actor=_actor.get(),
        operation=_operation.get(),
    )


def set_request_context(
    operation: str, household_id: str | None = None, actor: str | None = None,
) -> None:
    """Set request-level context (called once per gateway operation)."""
    _operation.set(operation)
    _household_id.set(household_id)
    _actor.set(actor)


def clear_context() -> None:
    """Reset all context variables."""
    _household_id.set(None)
    _actor.set(None)
    _operation.set(None)
