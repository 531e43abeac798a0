"""
Discory Backend — Health Check Route
=====================================

What:  Liveness/readiness probe for Docker and load balancers.
How:   Runs SELECT 1 against the database and reports whether Web Push is
       configured.

Status levels:
    - healthy:   database reachable, push configured (HTTP 200)
    - degraded:  database reachable, push disabled (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from discory import __version__
from discory.database import get_db_session
from discory.schemas.common import HealthResponse
from discory.services.push_service import push_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e)
        await db.rollback()

    push_status = "configured" if push_service.enabled else "disabled"
    if push_status == "disabled" and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        push=push_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
