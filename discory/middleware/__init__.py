"""
Discory Backend — Middleware Package
=====================================

Request path through the stack:

    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → route

Rate limiting runs first so rejected requests cost nothing further. The
request id is set before the access log line is written, so every log line
of a request carries the same id, and it is echoed back as X-Request-ID.
"""
