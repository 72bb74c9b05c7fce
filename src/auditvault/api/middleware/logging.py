"""Request logging middleware."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("auditvault.api.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs every HTTP request with its outcome and duration.

    Note: This middleware uses Python logging rather than AuditLogger so the
    middleware layer never writes to the database.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log request/response."""
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000
        self._log_request(request, response, duration_ms)
        return response

    def _get_client_ip(self, request: Request) -> str | None:
        """Extract client IP from request, considering proxy headers."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        if request.client:
            return request.client.host
        return None

    def _log_request(self, request: Request, response: Response, duration_ms: float) -> None:
        """Log the completed request."""
        status_code = response.status_code
        if status_code >= 500:
            log_level = logging.ERROR
        elif status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        log_data = {
            "request_id": str(getattr(request.state, "request_id", "unknown")),
            "actor": getattr(request.state, "actor", None),
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "client_ip": self._get_client_ip(request),
        }

        logger.log(
            log_level,
            f"{request.method} {request.url.path} -> {status_code} ({duration_ms:.2f}ms)",
            extra=log_data,
        )
