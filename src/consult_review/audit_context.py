"""Audit context: correlation_id and actor for traceability (CLI run or API request)."""

from __future__ import annotations

from contextvars import ContextVar

_correlation_id: ContextVar[str | None] = ContextVar("audit_correlation_id", default=None)
_actor: ContextVar[str | None] = ContextVar("audit_actor", default=None)


def set_audit_context(correlation_id: str | None, actor: str | None = None) -> None:
    """Set correlation_id and actor for the current context (e.g. CLI run or API request)."""
    _correlation_id.set(correlation_id)
    _actor.set(actor)


def set_actor(actor: str) -> None:
    """Set only the actor (e.g. after API key auth). Leaves correlation_id unchanged."""
    _actor.set(actor)


def current_correlation_id() -> str | None:
    """Correlation id of the current context, or None outside a request/run."""
    return _correlation_id.get()


def get_actor() -> str:
    """Return current actor, default 'system' if not set."""
    return _actor.get() or "system"
