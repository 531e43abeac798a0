"""
Discory Backend — Interaction Routes
=====================================

What:  /api/interactions: like toggles on items and comments, and comment
       threads. Toggles answer {liked: bool} with the state after the call.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from discory.database import get_db_session
from discory.dependencies import get_current_account_id
from discory.schemas.common import ErrorResponse, MessageResponse
from discory.schemas.interaction import CommentCreate, CommentResponse, LikeToggleResponse
from discory.services.interaction_service import interaction_service

router = APIRouter(prefix="/api/interactions", tags=["Interactions"])


@router.post(
    "/likes/{vinyl_id}",
    response_model=LikeToggleResponse,
    responses={
        404: {"description": "Item not found", "model": ErrorResponse},
        409: {"description": "Concurrent toggle", "model": ErrorResponse},
    },
    summary="Like or unlike an item",
)
async def toggle_like(
    vinyl_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> LikeToggleResponse:
    return await interaction_service.toggle_like(db, account_id, vinyl_id)


@router.get("/comments/{vinyl_id}", response_model=List[CommentResponse])
async def list_comments(
    vinyl_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[CommentResponse]:
    return await interaction_service.list_comments(db, account_id, vinyl_id)


@router.post(
    "/comments/{vinyl_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Empty content", "model": ErrorResponse},
        404: {"description": "Item not found", "model": ErrorResponse},
    },
)
async def add_comment(
    vinyl_id: uuid.UUID,
    body: CommentCreate,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return await interaction_service.add_comment(
        db, account_id, vinyl_id, body.content, body.parent_id
    )


@router.delete(
    "/comments/{comment_id}",
    response_model=MessageResponse,
    responses={
        403: {"description": "Not the author", "model": ErrorResponse},
        404: {"description": "Comment not found", "model": ErrorResponse},
    },
)
async def delete_comment(
    comment_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await interaction_service.delete_comment(db, account_id, comment_id)
    return MessageResponse(message="Comment deleted")


@router.post("/comments/{comment_id}/like", response_model=LikeToggleResponse)
async def toggle_comment_like(
    comment_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> LikeToggleResponse:
    return await interaction_service.toggle_comment_like(db, account_id, comment_id)
