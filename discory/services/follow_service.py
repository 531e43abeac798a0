"""
Discory Backend — Follow Graph Service
=======================================

What:  Directed follow edges between accounts, with public/private gating,
       and the visibility rule every catalogue read goes through.

Edge state machine (one row per ordered pair follower → following):

    (none) ──request, target public──▶ accepted
    (none) ──request, target private─▶ pending ──accept──▶ accepted
    pending/accepted ──reject/unfollow──▶ (none)

Visibility:
    An account's catalogue and stats are visible to a requester iff the
    account is public, the requester is the owner, or an accepted
    requester → owner edge exists.
"""

import logging
import uuid
from typing import List

from sqlalchemy import and_, delete, exists, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from discory.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from discory.models.account import Account
from discory.models.follow import FollowEdge, FollowStatus
from discory.models.notification import NotificationType
from discory.models.vinyl import Vinyl
from discory.schemas.account import (
    AccountSummary,
    FollowCounts,
    FollowingSummary,
    FollowRequestSummary,
)
from discory.schemas.follow import FollowResult, FollowState
from discory.services.notification_service import notification_service

logger = logging.getLogger(__name__)

SEARCH_MAX_LIMIT = 100


class FollowService:
    """
    Business logic for the follow graph.

    Responsibilities:
        - can_view() / ensure_can_view(): the visibility rule for catalogue reads
        - request_follow(), accept_follow(), reject_follow(), unfollow(): edge
          transitions, each emitting its notification after the write
        - listings, counts, request queues and account search

    Error Handling Strategy:
        Rule violations raise ValidationError, NotFoundError or ConflictError
        before anything is written. A unique-constraint race on the edge is
        translated to ConflictError rather than surfacing as a 500.
    """

    # ══════════════════════════════════════════════════════════════════════
    # Visibility
    # ══════════════════════════════════════════════════════════════════════

    async def can_view(
        self, db: AsyncSession, requester_id: uuid.UUID, owner: Account
    ) -> bool:
        if owner.is_public or owner.id == requester_id:
            return True
        accepted = await db.scalar(
            select(
                exists().where(
                    FollowEdge.follower_id == requester_id,
                    FollowEdge.following_id == owner.id,
                    FollowEdge.status == FollowStatus.ACCEPTED.value,
                )
            )
        )
        return bool(accepted)

    async def ensure_can_view(
        self, db: AsyncSession, requester_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Account:
        """
        Load the owner account and enforce visibility.

        Raises:
            NotFoundError: owner does not exist
            ForbiddenError: owner is private and the requester is not an
                accepted follower
        """
        owner = await db.get(Account, owner_id)
        if owner is None:
            raise NotFoundError(resource="user", resource_id=str(owner_id))
        if not await self.can_view(db, requester_id, owner):
            raise ForbiddenError("This profile is private")
        return owner

    # ══════════════════════════════════════════════════════════════════════
    # Edge transitions
    # ══════════════════════════════════════════════════════════════════════

    async def request_follow(
        self, db: AsyncSession, actor_id: uuid.UUID, target_id: uuid.UUID
    ) -> FollowResult:
        """
        Create an edge actor → target.

        Public target: edge is `accepted`, NEW_FOLLOWER is emitted.
        Private target: edge is `pending`, FOLLOW_REQUEST is emitted.

        Raises:
            ValidationError: actor == target
            NotFoundError: target does not exist
            ConflictError: an edge already exists for the pair
        """
        if actor_id == target_id:
            raise ValidationError("You cannot follow yourself")

        target = await db.get(Account, target_id)
        if target is None:
            raise NotFoundError(resource="user", resource_id=str(target_id))

        existing = await db.scalar(
            select(FollowEdge.status).where(
                FollowEdge.follower_id == actor_id, FollowEdge.following_id == target_id
            )
        )
        if existing is not None:
            raise ConflictError(
                "Follow request already pending"
                if existing == FollowStatus.PENDING.value
                else "Already following this user"
            )

        status = FollowStatus.ACCEPTED if target.is_public else FollowStatus.PENDING
        db.add(FollowEdge(follower_id=actor_id, following_id=target_id, status=status.value))
        try:
            await db.flush()
        except IntegrityError as e:
            raise ConflictError("Already following this user") from e

        logger.info("Follow %s → %s created as %s", actor_id, target_id, status.value)

        await notification_service.emit(
            db,
            recipient_id=target_id,
            sender_id=actor_id,
            ntype=(
                NotificationType.NEW_FOLLOWER
                if status == FollowStatus.ACCEPTED
                else NotificationType.FOLLOW_REQUEST
            ),
            reference_id=actor_id,
        )

        if status == FollowStatus.ACCEPTED:
            return FollowResult(message="Now following", status=status.value)
        return FollowResult(message="Follow request sent", status=status.value)

    async def accept_follow(
        self, db: AsyncSession, target_id: uuid.UUID, requester_id: uuid.UUID
    ) -> bool:
        """
        Move a pending requester → target edge to accepted.

        A missing or already-accepted edge is a silent no-op. FOLLOW_ACCEPTED
        is emitted only when a row actually changed, so accepting twice
        notifies once.

        Returns:
            True when an edge transitioned.
        """
        result = await db.execute(
            update(FollowEdge)
            .where(
                FollowEdge.follower_id == requester_id,
                FollowEdge.following_id == target_id,
                FollowEdge.status == FollowStatus.PENDING.value,
            )
            .values(status=FollowStatus.ACCEPTED.value)
        )
        if not result.rowcount:
            return False

        logger.info("Follow request %s → %s accepted", requester_id, target_id)
        await notification_service.emit(
            db,
            recipient_id=requester_id,
            sender_id=target_id,
            ntype=NotificationType.FOLLOW_ACCEPTED,
            reference_id=target_id,
        )
        return True

    async def reject_follow(
        self, db: AsyncSession, target_id: uuid.UUID, requester_id: uuid.UUID
    ) -> None:
        """Drop the requester → target edge, pending or accepted. No edge is a no-op."""
        await db.execute(
            delete(FollowEdge).where(
                FollowEdge.follower_id == requester_id, FollowEdge.following_id == target_id
            )
        )

    async def unfollow(
        self, db: AsyncSession, actor_id: uuid.UUID, target_id: uuid.UUID
    ) -> None:
        """Drop the actor → target edge. No notification is sent."""
        await db.execute(
            delete(FollowEdge).where(
                FollowEdge.follower_id == actor_id, FollowEdge.following_id == target_id
            )
        )

    # ══════════════════════════════════════════════════════════════════════
    # Queries
    # ══════════════════════════════════════════════════════════════════════

    async def is_following(
        self, db: AsyncSession, actor_id: uuid.UUID, other_id: uuid.UUID
    ) -> FollowState:
        status = await db.scalar(
            select(FollowEdge.status).where(
                FollowEdge.follower_id == actor_id, FollowEdge.following_id == other_id
            )
        )
        followed_by = await db.scalar(
            select(
                exists().where(
                    FollowEdge.follower_id == other_id,
                    FollowEdge.following_id == actor_id,
                    FollowEdge.status == FollowStatus.ACCEPTED.value,
                )
            )
        )
        return FollowState(
            is_following=status == FollowStatus.ACCEPTED.value,
            status=status or "none",
            is_followed_by=bool(followed_by),
        )

    async def list_followers(
        self, db: AsyncSession, account_id: uuid.UUID
    ) -> List[AccountSummary]:
        query = (
            select(Account)
            .join(FollowEdge, FollowEdge.follower_id == Account.id)
            .where(
                FollowEdge.following_id == account_id,
                FollowEdge.status == FollowStatus.ACCEPTED.value,
            )
            .order_by(Account.username)
        )
        accounts = (await db.execute(query)).scalars().all()
        return [AccountSummary.model_validate(a) for a in accounts]

    async def list_following(
        self, db: AsyncSession, account_id: uuid.UUID
    ) -> List[FollowingSummary]:
        vinyl_count = (
            select(func.count(Vinyl.id))
            .where(Vinyl.user_id == Account.id)
            .correlate(Account)
            .scalar_subquery()
        )
        query = (
            select(Account, vinyl_count)
            .join(FollowEdge, FollowEdge.following_id == Account.id)
            .where(
                FollowEdge.follower_id == account_id,
                FollowEdge.status == FollowStatus.ACCEPTED.value,
            )
            .order_by(Account.username)
        )
        rows = (await db.execute(query)).all()
        return [
            FollowingSummary(
                id=a.id,
                username=a.username,
                profile_picture=a.profile_picture,
                bio=a.bio,
                is_public=a.is_public,
                vinyl_count=count or 0,
            )
            for a, count in rows
        ]

    async def follow_counts(self, db: AsyncSession, account_id: uuid.UUID) -> FollowCounts:
        accepted = FollowEdge.status == FollowStatus.ACCEPTED.value
        followers = await db.scalar(
            select(func.count(FollowEdge.id)).where(FollowEdge.following_id == account_id, accepted)
        )
        following = await db.scalar(
            select(func.count(FollowEdge.id)).where(FollowEdge.follower_id == account_id, accepted)
        )
        return FollowCounts(followers=followers or 0, following=following or 0)

    async def pending_requests(
        self, db: AsyncSession, account_id: uuid.UUID
    ) -> List[FollowRequestSummary]:
        """Incoming requests awaiting the caller's decision, newest first."""
        return await self._pending(
            db,
            join_on=FollowEdge.follower_id == Account.id,
            where=FollowEdge.following_id == account_id,
        )

    async def sent_requests(
        self, db: AsyncSession, account_id: uuid.UUID
    ) -> List[FollowRequestSummary]:
        return await self._pending(
            db,
            join_on=FollowEdge.following_id == Account.id,
            where=FollowEdge.follower_id == account_id,
        )

    async def _pending(self, db: AsyncSession, join_on, where) -> List[FollowRequestSummary]:
        query = (
            select(Account, FollowEdge.created_at)
            .join(FollowEdge, join_on)
            .where(where, FollowEdge.status == FollowStatus.PENDING.value)
            .order_by(FollowEdge.created_at.desc())
        )
        rows = (await db.execute(query)).all()
        return [
            FollowRequestSummary(
                id=a.id,
                username=a.username,
                profile_picture=a.profile_picture,
                bio=a.bio,
                is_public=a.is_public,
                requested_at=requested_at,
            )
            for a, requested_at in rows
        ]

    async def search_accounts(
        self,
        db: AsyncSession,
        actor_id: uuid.UUID,
        query_text: str,
        limit: int = 20,
        offset: int = 0,
    ) -> List[AccountSummary]:
        """Case-insensitive substring match on username or bio, excluding the caller."""
        needle = (query_text or "").strip().lower()
        if not needle:
            return []
        limit = max(1, min(limit, SEARCH_MAX_LIMIT))
        offset = max(0, offset)

        query = (
            select(Account)
            .where(
                Account.id != actor_id,
                or_(
                    func.lower(Account.username).contains(needle, autoescape=True),
                    and_(
                        Account.bio.is_not(None),
                        func.lower(Account.bio).contains(needle, autoescape=True),
                    ),
                ),
            )
            .order_by(Account.username)
            .limit(limit)
            .offset(offset)
        )
        accounts = (await db.execute(query)).scalars().all()
        return [AccountSummary.model_validate(a) for a in accounts]

    def followed_ids(self, actor_id: uuid.UUID):
        """SELECT of account ids the actor follows with an accepted edge."""
        return select(FollowEdge.following_id).where(
            FollowEdge.follower_id == actor_id,
            FollowEdge.status == FollowStatus.ACCEPTED.value,
        )


# Module-level singleton
follow_service = FollowService()
