"""
Discory Backend — Request ID Middleware
========================================

What:  Attaches a correlation id to every request.
How:   Reuses the client's X-Request-ID when sent, otherwise a short random
       id. Stored in a ContextVar (read by the error handlers and the access
       log) and on request.state, and echoed in the response header.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
# Longer client-supplied ids are cut to this length before logging
MAX_REQUEST_ID_LENGTH = 64

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = (request.headers.get(REQUEST_ID_HEADER) or new_request_id())[:MAX_REQUEST_ID_LENGTH]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
