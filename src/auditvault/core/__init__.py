"""Core services and utilities for auditvault.

The audit logger is imported from ``auditvault.core.audit`` directly.
"""

from .context import (
    SYSTEM_ACTOR,
    ActorType,
    RequestContext,
    create_context,
    get_current_actor,
    get_current_context,
    get_current_context_or_none,
    request_context,
    reset_context,
    set_context,
)
from .exceptions import (
    ContextNotSetError,
    IntegrityVerificationError,
    InvalidTransitionError,
    NoEligibleEventsError,
    PartialDeletionError,
    RecordNotFoundError,
    StoreUnavailableError,
)

__all__ = [
    # Context
    "SYSTEM_ACTOR",
    "ActorType",
    "RequestContext",
    "create_context",
    "get_current_actor",
    "get_current_context",
    "get_current_context_or_none",
    "request_context",
    "reset_context",
    "set_context",
    # Exceptions
    "ContextNotSetError",
    "IntegrityVerificationError",
    "InvalidTransitionError",
    "NoEligibleEventsError",
    "PartialDeletionError",
    "RecordNotFoundError",
    "StoreUnavailableError",
]
