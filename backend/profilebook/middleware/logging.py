"""
Profilebook Backend — Access Log Middleware
============================================

What:  One log line per request on the `profilebook.access` logger.
How:   Measures wall time around the downstream app and logs method, path,
       status, duration, request id and client address.

Level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO.

    In the default "legacy" error mode failures are answered with HTTP 200,
    so the exception handlers log them separately at WARNING/ERROR.

Not logged: request bodies (passwords, e-mail addresses) and query strings
of the news search.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from profilebook.middleware.request_id import request_id_var

logger = logging.getLogger("profilebook.access")

# Polled by container health checks every few seconds
QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            request_id_var.get(""),
            client_ip,
        )
        return response
