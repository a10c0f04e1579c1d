"""
StackIt Backend — Request Logging Middleware
=============================================

What:  One access-log line per request: method, path, status, duration,
       request id, client IP, and the acting user id when one was sent.
Why:   uvicorn's own access log has no request id and no timing.
How:   Log level follows the status class:
           5xx → ERROR, 4xx → WARNING, everything else → INFO

Request bodies are never logged; question and answer text is user content.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings
from app.middleware.request_id import request_id_var

logger = logging.getLogger("stackit.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP request/response pair, except health probes."""

    QUIET_PATHS = {"/api/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        user_id = request.headers.get(settings.user_id_header, "-")
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
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
