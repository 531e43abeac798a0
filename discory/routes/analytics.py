"""
Discory Backend — Analytics Routes
===================================

What:  /api/analytics: one collection's breakdown, the caller's personal
       summary, and the overlap of two collections.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from discory.database import get_db_session
from discory.dependencies import get_current_account_id
from discory.schemas.analytics import CollectionAnalytics, CompareResult, PersonalStats
from discory.schemas.common import ErrorResponse
from discory.services.analytics_service import analytics_service

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])

_VISIBILITY_ERRORS = {
    403: {"description": "Private profile", "model": ErrorResponse},
    404: {"description": "User not found", "model": ErrorResponse},
}


@router.get(
    "/collection/{user_id}",
    response_model=CollectionAnalytics,
    responses=_VISIBILITY_ERRORS,
)
async def collection_analytics(
    user_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> CollectionAnalytics:
    return await analytics_service.collection_analytics(db, account_id, user_id)


@router.get("/personal", response_model=PersonalStats)
async def personal_stats(
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> PersonalStats:
    return await analytics_service.personal_stats(db, account_id)


@router.get(
    "/compare",
    response_model=CompareResult,
    responses={400: {"description": "Missing user ids", "model": ErrorResponse}, **_VISIBILITY_ERRORS},
)
async def compare(
    user_id_1: Optional[uuid.UUID] = Query(default=None, alias="userId1"),
    user_id_2: Optional[uuid.UUID] = Query(default=None, alias="userId2"),
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> CompareResult:
    return await analytics_service.compare(db, account_id, user_id_1, user_id_2)
