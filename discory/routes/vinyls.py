"""
Discory Backend — Catalogue Routes
===================================

What:  /api/vinyls: the caller's collection, other collections, stats, and
       CRUD on single items.

Pagination:
    Collections take `limit` (1-100, default 20) and `offset`, and answer
    {data, hasMore, total}. The total is also sent as X-Total-Count.

Route order matters: the literal paths (/my-collection, /stats, /add,
/user/{id}) are declared before /{vinyl_id}.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from discory.database import get_db_session
from discory.dependencies import get_current_account_id
from discory.schemas.common import ErrorResponse, MessageResponse, Page
from discory.schemas.vinyl import (
    CollectionStats,
    VinylCreate,
    VinylDetail,
    VinylResponse,
    VinylUpdate,
)
from discory.services.vinyl_service import vinyl_service

router = APIRouter(prefix="/api/vinyls", tags=["Catalogue"])


@router.get(
    "/my-collection",
    response_model=Page[VinylResponse],
    summary="Items owned by or shared with the caller",
)
async def my_collection(
    response: Response,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> Page[VinylResponse]:
    page = await vinyl_service.my_collection(db, account_id, limit, offset)
    response.headers["X-Total-Count"] = str(page.total)
    return page


@router.get(
    "/user/{user_id}",
    response_model=Page[VinylResponse],
    responses={
        403: {"description": "Private profile", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Another account's collection",
)
async def user_collection(
    user_id: uuid.UUID,
    response: Response,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> Page[VinylResponse]:
    page = await vinyl_service.user_collection(db, account_id, user_id, limit, offset)
    response.headers["X-Total-Count"] = str(page.total)
    return page


@router.get("/stats", response_model=CollectionStats, summary="Genre and artist breakdown")
async def collection_stats(
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> CollectionStats:
    return await vinyl_service.collection_stats(db, account_id)


@router.post(
    "/add",
    response_model=VinylResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid item", "model": ErrorResponse}},
    summary="Add an item to the caller's collection",
)
async def add_vinyl(
    body: VinylCreate,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> VinylResponse:
    return await vinyl_service.add_vinyl(db, account_id, body)


@router.get(
    "/{vinyl_id}",
    response_model=VinylDetail,
    responses={
        403: {"description": "Private profile", "model": ErrorResponse},
        404: {"description": "Item not found", "model": ErrorResponse},
    },
    summary="One item with owner and engagement",
)
async def get_vinyl(
    vinyl_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> VinylDetail:
    return await vinyl_service.get_vinyl(db, account_id, vinyl_id)


@router.put(
    "/{vinyl_id}",
    response_model=VinylResponse,
    responses={404: {"description": "Item not found or not owned", "model": ErrorResponse}},
    summary="Edit an owned item",
)
async def update_vinyl(
    vinyl_id: uuid.UUID,
    body: VinylUpdate,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> VinylResponse:
    return await vinyl_service.update_vinyl(db, account_id, vinyl_id, body)


@router.delete(
    "/{vinyl_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Item not found or not owned", "model": ErrorResponse}},
    summary="Delete an owned item",
)
async def delete_vinyl(
    vinyl_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await vinyl_service.delete_vinyl(db, account_id, vinyl_id)
    return MessageResponse(message="Vinyl deleted")
