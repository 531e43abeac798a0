"""
Discory Backend — Follow Graph Routes
======================================

What:  /api/followers: follow / accept / reject / unfollow, relationship
       status, follower and following lists, request queues, account search
       and the recent feed of followed accounts.

Path parameter naming follows the caller's point of view: in
/accept/{user_id} and /reject/{user_id}, `user_id` is the requester.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from discory.database import get_db_session
from discory.dependencies import get_current_account_id
from discory.schemas.account import (
    AccountSummary,
    FollowCounts,
    FollowingSummary,
    FollowRequestSummary,
)
from discory.schemas.common import ErrorResponse, MessageResponse, Page
from discory.schemas.follow import FollowResult, FollowState
from discory.schemas.vinyl import FeedItem
from discory.services.feed_service import feed_service
from discory.services.follow_service import follow_service

router = APIRouter(prefix="/api/followers", tags=["Follow graph"])


@router.post(
    "/follow/{user_id}",
    response_model=FollowResult,
    responses={
        400: {"description": "Self-follow", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        409: {"description": "Edge already exists", "model": ErrorResponse},
    },
    summary="Follow an account (or request to)",
)
async def follow(
    user_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> FollowResult:
    """
    Follow an account, or ask to.

    What:    Public targets are followed at once (status "accepted"); private
             targets get a pending request (status "pending").
    Who:     The Follow button on profile and search pages.
    """
    return await follow_service.request_follow(db, account_id, user_id)


@router.post("/accept/{user_id}", response_model=MessageResponse, summary="Accept a request")
async def accept(
    user_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """
    Accept the pending request from `user_id` to the caller.

    Accepting a request that does not exist (or was already accepted)
    still answers 200; the requester is notified only once.
    """
    await follow_service.accept_follow(db, account_id, user_id)
    return MessageResponse(message="Follow request accepted")


@router.post("/reject/{user_id}", response_model=MessageResponse, summary="Reject a request")
async def reject(
    user_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """Delete the edge from `user_id` to the caller, pending or accepted."""
    await follow_service.reject_follow(db, account_id, user_id)
    return MessageResponse(message="Follow request rejected")


@router.delete("/unfollow/{user_id}", response_model=MessageResponse, summary="Unfollow")
async def unfollow(
    user_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await follow_service.unfollow(db, account_id, user_id)
    return MessageResponse(message="Unfollowed")


@router.get("/is-following/{user_id}", response_model=FollowState)
async def is_following(
    user_id: uuid.UUID,
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> FollowState:
    """Edge status from the caller to `user_id`, plus whether it follows back."""
    return await follow_service.is_following(db, account_id, user_id)


@router.get("/followers/{user_id}", response_model=List[AccountSummary])
async def followers(
    user_id: uuid.UUID,
    _: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[AccountSummary]:
    return await follow_service.list_followers(db, user_id)


@router.get("/following/{user_id}", response_model=List[FollowingSummary])
async def following(
    user_id: uuid.UUID,
    _: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[FollowingSummary]:
    return await follow_service.list_following(db, user_id)


@router.get("/count/{user_id}", response_model=FollowCounts)
async def counts(
    user_id: uuid.UUID,
    _: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> FollowCounts:
    return await follow_service.follow_counts(db, user_id)


@router.get("/requests/pending", response_model=List[FollowRequestSummary])
async def pending_requests(
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[FollowRequestSummary]:
    """Requests waiting for the caller's decision, newest first."""
    return await follow_service.pending_requests(db, account_id)


@router.get("/requests/sent", response_model=List[FollowRequestSummary])
async def sent_requests(
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[FollowRequestSummary]:
    return await follow_service.sent_requests(db, account_id)


@router.get("/search/{query}", response_model=List[AccountSummary], summary="Find accounts")
async def search(
    query: str,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[AccountSummary]:
    """
    Case-insensitive match on username or bio, excluding the caller.

    `%` and `_` in the query match literally.
    """
    return await follow_service.search_accounts(db, account_id, query, limit, offset)


@router.get(
    "/feed/recent",
    response_model=Page[FeedItem],
    summary="Recent items from followed accounts",
)
async def recent_feed(
    response: Response,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    account_id: uuid.UUID = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> Page[FeedItem]:
    """
    Newest items from accounts the caller follows (accepted edges only).

    What:    Each item carries the owner's username and picture, like and
             comment counts, and whether the caller has liked it.
    Who:     The home feed.

    Ordering:
        date_added DESC, then id DESC, so pages stay disjoint when several
        items share a timestamp.
    """
    page = await feed_service.recent_feed(db, account_id, limit, offset)
    response.headers["X-Total-Count"] = str(page.total)
    return page
