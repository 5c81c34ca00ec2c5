"""
NoteBoard Backend - Request Logging Middleware
==============================================

What:  One access log line per HTTP request, with status and duration.
How:   Measures from middleware entry to response return and picks the log
       level from the status code (5xx ERROR, 4xx WARNING, else INFO).
When:  After RequestIDMiddleware (uses its request ID for correlation).

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, IP, request ID
    ❌ Don't log: request body (note text, images), Authorization header
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from noteboard.middleware.request_id import request_id_var

logger = logging.getLogger("noteboard.access")

# Paths polled by probes and <img> tags; logging them only adds noise
QUIET_PATH_PREFIXES = ("/health", "/api/board/preview/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of each request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path.startswith(QUIET_PATH_PREFIXES):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
