"""
Request Logging Middleware for MindWell.

Logs one line per request with method, path, status and duration.
"""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("mindwell.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request after the response is produced."""

    def __init__(self, app, skip_paths: tuple[str, ...] = ("/health",)):
        super().__init__(app)
        self.skip_paths = skip_paths

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path in self.skip_paths:
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %s (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={"session_id": request.headers.get("X-Session-Id", "anonymous")},
        )
        return response
