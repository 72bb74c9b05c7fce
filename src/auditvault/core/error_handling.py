"""Store error translation for the retention services.

Persistence failures surface to callers as ``StoreUnavailableError`` with
the original SQLAlchemy error chained. The session is rolled back first so
that it stays usable for the caller's next attempt.

Usage:
    from auditvault.core.error_handling import store_errors, store_operation

    class ExportGate:
        @store_errors("record_export")
        async def record_export(self, event_ids):
            ...

    async with store_operation(db, "load_config"):
        config = await repo.get_current()
"""

import functools
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auditvault.core.exceptions import StoreUnavailableError
from auditvault.core.logging import get_logger

logger = get_logger("auditvault.errors")

P = ParamSpec("P")
T = TypeVar("T")


async def _rollback_quietly(db: AsyncSession | None, operation: str) -> None:
    """Roll back after a failed store call, keeping the original error primary."""
    if db is None:
        return
    try:
        await db.rollback()
    except SQLAlchemyError as exc:
        logger.warning("rollback_failed", operation=operation, error=str(exc))


@asynccontextmanager
async def store_operation(db: AsyncSession | None, operation: str) -> AsyncIterator[None]:
    """Translate SQLAlchemy failures inside the block into StoreUnavailableError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("store_unavailable", operation=operation, error=str(exc))
        await _rollback_quietly(db, operation)
        raise StoreUnavailableError(operation) from exc


def store_errors(
    operation: str | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator form of ``store_operation`` for service methods.

    The decorated method's instance must expose its session as ``self.db``.

    Args:
        operation: Operation name reported in the error (default: function name)
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        name = operation or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            db: Any = getattr(args[0], "db", None) if args else None
            async with store_operation(db, name):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
