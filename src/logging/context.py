# src/logging/context.py - v1
"""Contextual logging support: attach operation and consumer to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set per cache operation (get, refresh, cleanup) and per calling consumer.
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_consumer: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "consumer", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    operation: str | None = None
    consumer: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(operation=_operation.get(), consumer=_consumer.get())


def set_operation_context(operation: str) -> contextvars.Token:
    """Set the cache operation being performed. Returns a reset token."""
    return _operation.set(operation)


def reset_operation_context(token: contextvars.Token) -> None:
    _operation.reset(token)


def set_consumer_context(consumer: str) -> None:
    """Name the consumer (editor instance, CLI) issuing cache calls."""
    _consumer.set(consumer)


def clear_context() -> None:
    """Reset all context variables."""
    _operation.set(None)
    _consumer.set(None)
