"""
StackIt Backend — Request ID Middleware
========================================

What:  Assigns a correlation id to each request and echoes it in the response.
Why:   Error bodies carry `request_id`, so a client report can be matched to
       the server log lines of that request.
How:   Reuses an incoming `X-Request-ID` header (the frontend may set one),
       otherwise generates a short id; stores it in a ContextVar for the
       exception handlers and in `request.state` for route code.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 characters are enough to correlate log lines
        rid = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
