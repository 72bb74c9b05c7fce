"""Error handling middleware for mapping exceptions to HTTP responses."""

from datetime import UTC, datetime
from typing import Any, Callable
from uuid import UUID

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from auditvault.api.schemas.errors import APIError, ErrorCode
from auditvault.config.settings import get_settings
from auditvault.core.exceptions import (
    ContextNotSetError,
    IntegrityVerificationError,
    InvalidTransitionError,
    NoEligibleEventsError,
    PartialDeletionError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from auditvault.core.logging import get_logger

logger = get_logger("auditvault.api.errors")


# Exception to HTTP status/error code mapping
# Format: Exception -> (status_code, error_code); subclasses listed first
EXCEPTION_MAP: dict[type[Exception], tuple[int, str]] = {
    NoEligibleEventsError: (409, ErrorCode.NO_ELIGIBLE_EVENTS.value),
    InvalidTransitionError: (409, ErrorCode.INVALID_TRANSITION.value),
    IntegrityVerificationError: (409, ErrorCode.INTEGRITY_VERIFICATION_FAILED.value),
    RecordNotFoundError: (404, ErrorCode.NOT_FOUND.value),
    PartialDeletionError: (503, ErrorCode.PARTIAL_DELETION.value),
    StoreUnavailableError: (503, ErrorCode.SERVICE_UNAVAILABLE.value),
    ValidationError: (422, ErrorCode.VALIDATION_ERROR.value),
    ContextNotSetError: (500, ErrorCode.INTERNAL_ERROR.value),
}


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware that catches exceptions and returns standardized error responses.

    Maps domain exceptions to appropriate HTTP status codes and formats
    all errors using the APIError schema.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and handle any exceptions."""
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc)

    def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        """Convert exception to JSON error response."""
        request_id = self._get_request_id(request)
        status_code, error_code, message, details = self._map_exception(exc)

        if status_code >= 500:
            logger.error(
                "request_failed",
                error_code=error_code,
                error_type=type(exc).__name__,
                error=str(exc),
                path=request.url.path,
            )

        error = APIError(
            error_code=error_code,
            message=message,
            details=details,
            request_id=request_id,
            timestamp=datetime.now(UTC),
        )

        return JSONResponse(
            status_code=status_code,
            content=error.model_dump(mode="json"),
            headers={"X-Request-ID": request_id},
        )

    def _get_request_id(self, request: Request) -> str:
        """Extract request ID from state or generate placeholder."""
        if hasattr(request.state, "request_id"):
            rid = request.state.request_id
            return str(rid) if isinstance(rid, UUID) else rid
        return "unknown"

    def _map_exception(self, exc: Exception) -> tuple[int, str, str, dict[str, Any] | None]:
        """Map exception to (status_code, error_code, message, details)."""
        for exc_type, (status_code, error_code) in EXCEPTION_MAP.items():
            if isinstance(exc, exc_type):
                return status_code, error_code, self._message(exc), self._details(exc)

        # Generic exceptions
        return (
            500,
            ErrorCode.INTERNAL_ERROR.value,
            "Internal server error",
            {"type": type(exc).__name__} if get_settings().DEBUG else None,
        )

    def _message(self, exc: Exception) -> str:
        if isinstance(exc, ValidationError):
            return "Request validation failed"
        if isinstance(exc, ContextNotSetError):
            return "Internal server error: context not initialized"
        return exc.args[0] if exc.args else str(exc)

    def _details(self, exc: Exception) -> dict[str, Any] | None:
        if isinstance(exc, PartialDeletionError):
            return {
                "deleted_count": exc.deleted_count,
                "failed_batch": exc.failed_batch,
                "receipt_id": str(exc.receipt.receipt_id) if exc.receipt else None,
            }
        if isinstance(exc, StoreUnavailableError | NoEligibleEventsError):
            return {"operation": exc.operation}
        if isinstance(exc, InvalidTransitionError):
            return {"entity": exc.entity, "current": exc.current, "target": exc.target}
        if isinstance(exc, RecordNotFoundError):
            return {"entity": exc.entity, "record_id": str(exc.record_id)}
        if isinstance(exc, IntegrityVerificationError):
            return {"receipt_id": str(exc.receipt_id)}
        if isinstance(exc, ValidationError):
            return {"errors": exc.errors(include_url=False, include_context=False)}
        return None
