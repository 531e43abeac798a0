"""
Discory Backend — Application Factory
======================================

What:  Builds the FastAPI app, wraps it with the Socket.IO server, and wires
       middleware, exception handlers and routers.
Who:   uvicorn loads `discory.main:app` (the Socket.IO ASGI wrapper).
       Tests drive `fastapi_app` directly.

    ┌──────────────────────────────────────────────────────────────┐
    │ socketio.ASGIApp                                             │
    │   /socket.io/*  → realtime rooms (user_<id>)                 │
    │   everything else ↓                                          │
    │ ┌──────────────────────────────────────────────────────────┐ │
    │ │ FastAPI                                                  │ │
    │ │  RateLimit → RequestID → AccessLog → GZip → CORS          │ │
    │ │  /api/auth /api/vinyls /api/followers /api/interactions   │ │
    │ │  /api/notifications /api/users /api/scan /api/music       │ │
    │ │  /api/analytics /health                                  │ │
    │ └──────────────────────────────────────────────────────────┘ │
    └──────────────────────────────────────────────────────────────┘

Every error leaves as {"error": <message>, "request_id": <id>}.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import socketio
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from discory import __version__
from discory.config import settings
from discory.database import dispose_engine
from discory.exceptions import (
    DatabaseError,
    DiscoryError,
    ExternalServiceError,
    RateLimitExceededError,
    ValidationError,
)
from discory.middleware.logging import RequestLoggingMiddleware
from discory.middleware.rate_limit import RateLimitMiddleware
from discory.middleware.request_id import RequestIDMiddleware, request_id_var
from discory.realtime import sio
from discory.routes import (
    analytics,
    auth,
    followers,
    health,
    interactions,
    music,
    notifications,
    scan,
    users,
    vinyls,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "engineio", "socketio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Discory backend %s starting", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving; /health still reports and requests still get answers
        logger.error("Configuration error: %s", e)

    if not settings.push_enabled:
        logger.warning("VAPID keys not set: web push delivery is disabled")

    logger.info("Listening on http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Discory backend shutting down")
    await dispose_engine()


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "request_id": request_id_var.get("") or None},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the JSON error body.

        ValidationError / RequestValidationError → 400
        AuthenticationError                      → 401
        ForbiddenError                           → 403
        NotFoundError                            → 404
        ConflictError                            → 409
        RateLimitExceededError                   → 429 + Retry-After
        ExternalServiceError / DatabaseError     → 500, generic message
        SQLAlchemyError / anything else          → 500, stack trace logged

    Internal details (SQL, provider errors, stack traces) stay in the log.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        logger.info("[%s] Request validation failed: %s", request_id_var.get(""), errors)
        return _error(400, f"{location}: {message}" if location else message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error(exc.status_code, exc.message, headers={"Retry-After": str(exc.retry_after)})

    @app.exception_handler(ExternalServiceError)
    async def handle_external_error(request: Request, exc: ExternalServiceError):
        logger.error(
            "[%s] External service error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error(exc.status_code, exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return _error(exc.status_code, "An internal error occurred. Please try again later.")

    @app.exception_handler(DiscoryError)
    async def handle_discory_error(request: Request, exc: DiscoryError):
        if exc.status_code >= 500:
            logger.error("[%s] %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Unhandled database error: %s", request_id_var.get(""), exc, exc_info=True)
        return _error(500, "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True)
        return _error(500, "An unexpected error occurred. Please try again later.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════


def create_app() -> FastAPI:
    app = FastAPI(
        title="Discory API",
        description=(
            "Social catalogue for vinyl records and CDs: collections, follows, "
            "likes, comments, notifications and release lookup."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RateLimit → RequestID → AccessLog → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    for module in (
        auth,
        vinyls,
        followers,
        interactions,
        notifications,
        users,
        scan,
        music,
        analytics,
        health,
    ):
        app.include_router(module.router)

    return app


fastapi_app = create_app()

# Socket.IO handles /socket.io/* and hands every other request to FastAPI
app = socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
