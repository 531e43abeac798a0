"""
Discory Backend — Rate Limiting Middleware
===========================================

What:  Per-IP sliding-window limit on API requests.
How:   Each client IP keeps a deque of request timestamps. Timestamps older
       than the window are dropped on every hit; when the deque is full the
       request is answered 429 with Retry-After set to the time until the
       oldest timestamp leaves the window.

State is in-process: every worker enforces its own window.
"""

import logging
import time
from collections import deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from discory.config import settings
from discory.exceptions import RateLimitExceededError
from discory.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Idle IPs are swept every this many tracked requests
SWEEP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    EXCLUDED_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})

    def __init__(
        self, app, max_requests: Optional[int] = None, window_seconds: Optional[int] = None
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._hits: Dict[str, Deque[float]] = {}
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        window_start = now - self.window_seconds

        hits = self._hits.setdefault(client_ip, deque())
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.max_requests:
            retry_after = int(hits[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                client_ip,
                len(hits),
                self.window_seconds,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": exc.message, "request_id": request_id_var.get("") or None},
                headers={"Retry-After": str(retry_after)},
            )

        hits.append(now)
        self._seen += 1
        if self._seen % SWEEP_EVERY == 0:
            self._sweep(window_start)

        return await call_next(request)

    def _sweep(self, window_start: float) -> None:
        idle = [ip for ip, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for ip in idle:
            del self._hits[ip]
        if idle:
            logger.debug("Dropped rate-limit state for %d idle clients", len(idle))
