"""
Discory Backend — Profile Routes
=================================

What:  /api/users: the caller's account, profile edits, public profile by
       username and the stats panel by account id.

Route order: /profile/me and /profile/update are declared before
/{username} so they are not captured as usernames.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from discory.database import get_db_session
from discory.dependencies import get_current_account_id
from discory.schemas.account import (
    AccountProfile,
    AccountStatsResponse,
    ProfileResponse,
    ProfileUpdateRequest,
)
from discory.schemas.common import ErrorResponse
from discory.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Profiles"])


@router.get("/profile/me", response_model=AccountProfile, summary="The caller's account")
async def get_me(
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> AccountProfile:
    return await user_service.get_me(db, account_id)


@router.put(
    "/profile/update",
    response_model=AccountProfile,
    responses={409: {"description": "Username taken", "model": ErrorResponse}},
)
async def update_profile(
    body: ProfileUpdateRequest,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> AccountProfile:
    return await user_service.update_profile(db, account_id, body)


@router.get(
    "/{user_id}/stats",
    response_model=AccountStatsResponse,
    responses={
        403: {"description": "Private profile", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
)
async def profile_stats(
    user_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> AccountStatsResponse:
    return await user_service.profile_stats(db, account_id, user_id)


@router.get(
    "/{username}",
    response_model=ProfileResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Profile by username",
)
async def get_profile(
    username: str,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await user_service.get_profile(db, account_id, username)
