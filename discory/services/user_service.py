"""
Discory Backend — Profile Service
==================================

What:  Profile pages, the caller's own account, profile edits and the
       per-account stats panel.
Who:   Called by /api/users routes.

A private profile that the requester may not see still resolves: the
account card is returned with `can_view=False`, an empty item list and no
stats, so the client can render a "follow to see" screen.
"""

import logging
import uuid
from collections import Counter

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from discory.exceptions import ConflictError, NotFoundError, ValidationError
from discory.models.account import Account
from discory.models.vinyl import Vinyl
from discory.schemas.account import (
    AccountProfile,
    AccountStatsResponse,
    ArtistCount,
    GenreCount,
    ProfileResponse,
    ProfileStats,
    ProfileUpdateRequest,
)
from discory.services.follow_service import follow_service
from discory.services.vinyl_service import normalize_artist, vinyl_service

logger = logging.getLogger(__name__)

TOP_ARTISTS_LIMIT = 10


class UserService:
    async def get_profile(
        self, db: AsyncSession, requester_id: uuid.UUID, username: str
    ) -> ProfileResponse:
        account = await db.scalar(select(Account).where(Account.username == username))
        if account is None:
            raise NotFoundError(resource="user", resource_id=username)

        card = AccountProfile.model_validate(account)
        if account.id != requester_id:
            card.email = None

        if not await follow_service.can_view(db, requester_id, account):
            return ProfileResponse(user=card, vinyls=[], stats=None, can_view=False)

        vinyls = await vinyl_service.owned_items(db, account.id)
        stats = ProfileStats(
            total=len(vinyls),
            genre_count=len({v.genre for v in vinyls if v.genre}),
            artist_count=len({v.artist for v in vinyls}),
        )
        return ProfileResponse(user=card, vinyls=vinyls, stats=stats, can_view=True)

    async def get_me(self, db: AsyncSession, account_id: uuid.UUID) -> AccountProfile:
        account = await db.get(Account, account_id)
        if account is None:
            raise NotFoundError(resource="user", resource_id=str(account_id))
        return AccountProfile.model_validate(account)

    async def update_profile(
        self, db: AsyncSession, account_id: uuid.UUID, body: ProfileUpdateRequest
    ) -> AccountProfile:
        """
        Apply the keys present in the body.

        Raises:
            ValidationError: blank username
            ConflictError: username taken by another account
        """
        account = await db.get(Account, account_id)
        if account is None:
            raise NotFoundError(resource="user", resource_id=str(account_id))

        fields = body.model_dump(exclude_unset=True)
        if "username" in fields:
            username = (fields["username"] or "").strip()
            if not username:
                raise ValidationError("Username cannot be empty", field="username")
            if username != account.username:
                taken = await db.scalar(
                    select(Account.id).where(Account.username == username, Account.id != account_id)
                )
                if taken is not None:
                    raise ConflictError("Username already taken")
            fields["username"] = username
        if fields.get("is_public") is None:
            fields.pop("is_public", None)

        for key, value in fields.items():
            setattr(account, key, value)
        await db.flush()
        await db.refresh(account)
        logger.info("Profile updated for %s: %s", account_id, sorted(fields))
        return AccountProfile.model_validate(account)

    async def profile_stats(
        self, db: AsyncSession, requester_id: uuid.UUID, account_id: uuid.UUID
    ) -> AccountStatsResponse:
        await follow_service.ensure_can_view(db, requester_id, account_id)

        total = await db.scalar(
            select(func.count(Vinyl.id)).where(Vinyl.user_id == account_id)
        ) or 0

        count = func.count(Vinyl.id).label("count")
        genre_rows = (
            await db.execute(
                select(Vinyl.genre, count)
                .where(Vinyl.user_id == account_id)
                .group_by(Vinyl.genre)
                .order_by(count.desc(), Vinyl.genre)
            )
        ).all()

        artists: Counter = Counter()
        for (artist,) in (
            await db.execute(select(Vinyl.artist).where(Vinyl.user_id == account_id))
        ).all():
            artists[normalize_artist(artist)] += 1

        return AccountStatsResponse(
            total=total,
            by_genre=[GenreCount(genre=genre, count=n) for genre, n in genre_rows],
            top_artists=[
                ArtistCount(artist=name, count=n)
                for name, n in artists.most_common(TOP_ARTISTS_LIMIT)
            ],
        )


# Module-level singleton
user_service = UserService()
