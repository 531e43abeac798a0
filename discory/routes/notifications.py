"""
Discory Backend — Notification Routes
======================================

What:  /api/notifications: the caller's inbox (latest 50), unread badge
       count, mark-read operations and Web Push subscription.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from discory.database import get_db_session
from discory.dependencies import get_current_account_id
from discory.schemas.common import ErrorResponse, MessageResponse, SuccessResponse
from discory.schemas.notification import (
    NotificationResponse,
    PushSubscriptionCreate,
    UnreadCount,
)
from discory.services.notification_service import notification_service

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse], summary="Latest notifications")
async def list_notifications(
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[NotificationResponse]:
    return await notification_service.list_notifications(db, account_id)


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> UnreadCount:
    return await notification_service.unread_count(db, account_id)


@router.put("/read-all", response_model=SuccessResponse)
async def mark_all_read(
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await notification_service.mark_all_read(db, account_id)
    return SuccessResponse()


@router.put("/{notification_id}/read", response_model=SuccessResponse)
async def mark_read(
    notification_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await notification_service.mark_read(db, account_id, notification_id)
    return SuccessResponse()


@router.post(
    "/subscribe",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Missing endpoint or keys", "model": ErrorResponse}},
    summary="Register a Web Push subscription",
)
async def subscribe(
    body: PushSubscriptionCreate,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await notification_service.subscribe(db, account_id, body)
    return MessageResponse(message="Subscription saved")
