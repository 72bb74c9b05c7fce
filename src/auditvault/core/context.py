"""Request context for async-safe actor and correlation tracking.

This module provides request context propagation using Python's contextvars
so that the acting user and correlation ids reach audit records and logs
without being threaded through every call.

Usage:
    from auditvault.core.context import create_context, request_context

    ctx = create_context(actor="Maria")

    with request_context(ctx):
        current = get_current_context()
        await manager.delete_eligible(actor=current.actor)
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_utils.compat import uuid7

from auditvault.core.exceptions import ContextNotSetError

SYSTEM_ACTOR = "System"


class ActorType(str, Enum):
    """Type of actor performing the operation."""

    HUMAN = "human"  # Operator via UI or API
    SYSTEM = "system"  # Scheduled job or internal call


class RequestContext(BaseModel):
    """Context for a single request/operation."""

    request_id: UUID = Field(default_factory=uuid7)
    correlation_id: UUID = Field(default_factory=uuid7)
    actor: str = SYSTEM_ACTOR
    actor_type: ActorType = ActorType.SYSTEM
    initiated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True}

    def to_audit_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for audit event details."""
        return {
            "request_id": str(self.request_id),
            "correlation_id": str(self.correlation_id),
            "actor": self.actor,
            "actor_type": self.actor_type.value,
            "initiated_at": self.initiated_at.isoformat(),
        }


# =============================================================================
# Context Variable Management
# =============================================================================

_request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


def get_current_context() -> RequestContext:
    """Get the current request context.

    Raises:
        ContextNotSetError: If no context is set in the current execution context
    """
    ctx = _request_context.get()
    if ctx is None:
        raise ContextNotSetError(
            "No request context is set. Use request_context() context manager."
        )
    return ctx


def get_current_context_or_none() -> RequestContext | None:
    """Get the current request context, or None if not set."""
    return _request_context.get()


def get_current_actor() -> str:
    """Name of the acting user, falling back to the system actor."""
    ctx = _request_context.get()
    return ctx.actor if ctx is not None else SYSTEM_ACTOR


def set_context(ctx: RequestContext) -> Token[RequestContext | None]:
    """Set the request context and return a token for restoration.

    This is a low-level API. Prefer using the request_context() context manager.
    """
    return _request_context.set(ctx)


def reset_context(token: Token[RequestContext | None]) -> None:
    """Reset the context to its previous value using a token."""
    _request_context.reset(token)


@contextmanager
def request_context(ctx: RequestContext):
    """Context manager for setting request context.

    Works for both sync and async code because contextvars are
    automatically propagated to async tasks.
    """
    token = set_context(ctx)
    try:
        yield ctx
    finally:
        reset_context(token)


def create_context(
    *,
    actor: str | None = None,
    actor_type: ActorType | None = None,
    correlation_id: UUID | None = None,
) -> RequestContext:
    """Factory function to create a RequestContext with defaults.

    A missing or blank actor is recorded as the system actor.
    """
    name = (actor or "").strip()
    if not name:
        return RequestContext(
            actor=SYSTEM_ACTOR,
            actor_type=actor_type or ActorType.SYSTEM,
            correlation_id=correlation_id or uuid7(),
        )
    return RequestContext(
        actor=name,
        actor_type=actor_type or ActorType.HUMAN,
        correlation_id=correlation_id or uuid7(),
    )
