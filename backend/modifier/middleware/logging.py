"""
Modifier — Request Logging Middleware
=======================================

What:  One access log line per HTTP request: method, path, status,
       duration and request id.
How:   Wraps the rest of the chain, timing from entry to response.
       Log level follows the status: 5xx ERROR, 4xx WARNING, else INFO.
When:  Inside RequestIDMiddleware (uses its request id), outside
       ModifierMiddleware (so it logs the status the client receives).

What we DON'T log:
    Request or response bodies and header values. Templates routinely
    handle credentials (Authorization rewrites) and payload PII.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from modifier.middleware.request_id import request_id_var

logger = logging.getLogger("modifier.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs structured information about each HTTP request and response."""

    # Probed every few seconds; logging them drowns real traffic
    EXCLUDED_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        if path in self.EXCLUDED_PATHS:
            return await call_next(request)

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
