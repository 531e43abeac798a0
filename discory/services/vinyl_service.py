"""
Discory Backend — Catalogue Service
====================================

What:  CRUD over catalogue items (records and CDs) plus the paginated
       collection views and per-collection stats.
Who:   Called by /api/vinyls routes; `engagement_columns` and
       `vinyl_fields` are shared with the feed and profile services.

Collection query (owned by OR shared with the account):

    SELECT v.*, owner.username, gifter.username, sharer.username
    FROM vinyls v
    JOIN users owner       ON owner.id  = v.user_id
    LEFT JOIN users gifter ON gifter.id = v.gifted_by_user_id
    LEFT JOIN users sharer ON sharer.id = v.shared_with_user_id
    WHERE v.user_id = :id OR v.shared_with_user_id = :id
    ORDER BY v.date_added DESC, v.id DESC
    LIMIT :limit OFFSET :offset

    `id DESC` breaks ties between items added in the same instant so
    that consecutive pages never overlap or skip.
"""

import logging
import re
import uuid
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from discory.exceptions import ForbiddenError, NotFoundError, ValidationError
from discory.models.account import Account
from discory.models.interaction import Comment, Like
from discory.models.vinyl import FORMATS, Vinyl
from discory.schemas.common import Page
from discory.schemas.vinyl import (
    CollectionStats,
    NamedCount,
    VinylCreate,
    VinylDetail,
    VinylResponse,
    VinylUpdate,
)
from discory.services.follow_service import follow_service

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
TOP_ARTISTS_LIMIT = 10

Owner = aliased(Account, name="owner")
Gifter = aliased(Account, name="gifter")
Sharer = aliased(Account, name="sharer")

# "Prince (2)" → "Prince"; Discogs disambiguates homonymous artists this way
_ARTIST_SUFFIX = re.compile(r"\s*\([^)]*\)\s*$")


# ══════════════════════════════════════════════════════════════════════════
# Shared helpers
# ══════════════════════════════════════════════════════════════════════════


def clamp_page(limit: Optional[int], offset: Optional[int]) -> Tuple[int, int]:
    limit = DEFAULT_PAGE_SIZE if limit is None else max(1, min(limit, MAX_PAGE_SIZE))
    offset = 0 if offset is None else max(0, offset)
    return limit, offset


def vinyl_fields(vinyl: Vinyl) -> Dict[str, Any]:
    """Column values of an item, keyed by column name."""
    return {column.key: getattr(vinyl, column.key) for column in Vinyl.__table__.columns}


def engagement_columns(viewer_id: uuid.UUID):
    """
    Correlated per-item columns: likes_count, comments_count and whether
    `viewer_id` has liked the item.
    """
    likes_count = (
        select(func.count(Like.id))
        .where(Like.vinyl_id == Vinyl.id)
        .correlate(Vinyl)
        .scalar_subquery()
        .label("likes_count")
    )
    comments_count = (
        select(func.count(Comment.id))
        .where(Comment.vinyl_id == Vinyl.id)
        .correlate(Vinyl)
        .scalar_subquery()
        .label("comments_count")
    )
    has_liked = (
        exists()
        .where(Like.vinyl_id == Vinyl.id, Like.user_id == viewer_id)
        .correlate(Vinyl)
        .label("has_liked")
    )
    return likes_count, comments_count, has_liked


def normalize_artist(artist: str) -> str:
    return _ARTIST_SUFFIX.sub("", artist or "").strip()


def split_genres(genre: Optional[str]) -> List[str]:
    parts = [g.strip() for g in (genre or "").split(",")]
    parts = [g for g in parts if g]
    return parts or ["Unknown"]


def ranked(counter: Counter, limit: Optional[int] = None) -> List[NamedCount]:
    # Counter.most_common keeps first-seen order among equal counts
    return [NamedCount(name=name, count=count) for name, count in counter.most_common(limit)]


class VinylService:
    """
    Catalogue reads and writes.

    Reads of another account's items go through follow_service.ensure_can_view();
    writes are limited to the owner and answer 404 for anyone else.
    """

    # ══════════════════════════════════════════════════════════════════════
    # Collections
    # ══════════════════════════════════════════════════════════════════════

    async def my_collection(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Page[VinylResponse]:
        return await self._collection_page(db, account_id, limit, offset)

    async def user_collection(
        self,
        db: AsyncSession,
        requester_id: uuid.UUID,
        account_id: uuid.UUID,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Page[VinylResponse]:
        """
        Another account's collection.

        Raises:
            NotFoundError: account does not exist
            ForbiddenError: account is private and not followed
        """
        await follow_service.ensure_can_view(db, requester_id, account_id)
        return await self._collection_page(db, account_id, limit, offset)

    async def _collection_page(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        limit: Optional[int],
        offset: Optional[int],
    ) -> Page[VinylResponse]:
        limit, offset = clamp_page(limit, offset)
        in_collection = or_(Vinyl.user_id == account_id, Vinyl.shared_with_user_id == account_id)

        total = await db.scalar(select(func.count(Vinyl.id)).where(in_collection)) or 0
        query = (
            select(Vinyl, Owner.username, Gifter.username, Sharer.username)
            .join(Owner, Owner.id == Vinyl.user_id)
            .outerjoin(Gifter, Gifter.id == Vinyl.gifted_by_user_id)
            .outerjoin(Sharer, Sharer.id == Vinyl.shared_with_user_id)
            .where(in_collection)
            .order_by(Vinyl.date_added.desc(), Vinyl.id.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await db.execute(query)).all()
        data = [
            VinylResponse(
                **vinyl_fields(vinyl),
                owner_username=owner_name,
                gifted_by_username=gifter_name,
                shared_with_username=sharer_name,
            )
            for vinyl, owner_name, gifter_name, sharer_name in rows
        ]
        return Page[VinylResponse](
            data=data, has_more=offset + len(data) < total, total=total
        )

    async def owned_items(self, db: AsyncSession, account_id: uuid.UUID) -> List[VinylResponse]:
        """Every item the account owns, newest first (profile page)."""
        result = await db.execute(
            select(Vinyl)
            .where(Vinyl.user_id == account_id)
            .order_by(Vinyl.date_added.desc(), Vinyl.id.desc())
        )
        return [VinylResponse(**vinyl_fields(v)) for v in result.scalars().all()]

    # ══════════════════════════════════════════════════════════════════════
    # Single item
    # ══════════════════════════════════════════════════════════════════════

    async def get_vinyl(
        self, db: AsyncSession, requester_id: uuid.UUID, vinyl_id: uuid.UUID
    ) -> VinylDetail:
        likes_count, comments_count, has_liked = engagement_columns(requester_id)
        query = (
            select(
                Vinyl,
                Owner,
                Gifter.username,
                Sharer.username,
                likes_count,
                comments_count,
                has_liked,
            )
            .join(Owner, Owner.id == Vinyl.user_id)
            .outerjoin(Gifter, Gifter.id == Vinyl.gifted_by_user_id)
            .outerjoin(Sharer, Sharer.id == Vinyl.shared_with_user_id)
            .where(Vinyl.id == vinyl_id)
        )
        row = (await db.execute(query)).first()
        if row is None:
            raise NotFoundError(resource="vinyl", resource_id=str(vinyl_id))

        vinyl, owner, gifter_name, sharer_name, likes, comments, liked = row
        if vinyl.shared_with_user_id != requester_id and not await follow_service.can_view(
            db, requester_id, owner
        ):
            raise ForbiddenError("This profile is private")

        return VinylDetail(
            **vinyl_fields(vinyl),
            owner_username=owner.username,
            gifted_by_username=gifter_name,
            shared_with_username=sharer_name,
            owner_id=owner.id,
            owner_profile_picture=owner.profile_picture,
            likes_count=likes or 0,
            comments_count=comments or 0,
            has_liked=bool(liked),
        )

    async def add_vinyl(
        self, db: AsyncSession, account_id: uuid.UUID, body: VinylCreate
    ) -> VinylResponse:
        fields = body.model_dump(exclude_unset=True)
        fields.setdefault("disc_count", 1)
        fields.setdefault("format", "vinyl")
        fields = {k: v for k, v in fields.items() if v is not None}
        await self._validate(db, fields, creating=True)

        vinyl = Vinyl(user_id=account_id, **fields)
        db.add(vinyl)
        await db.flush()
        logger.info("Vinyl %s added by %s: %s - %s", vinyl.id, account_id, vinyl.artist, vinyl.title)
        return VinylResponse(**vinyl_fields(vinyl))

    async def update_vinyl(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        vinyl_id: uuid.UUID,
        body: VinylUpdate,
    ) -> VinylResponse:
        vinyl = await self._get_owned(db, account_id, vinyl_id)
        fields = body.model_dump(exclude_unset=True)
        await self._validate(db, fields, creating=False)

        for key, value in fields.items():
            setattr(vinyl, key, value)
        await db.flush()
        await db.refresh(vinyl)
        return VinylResponse(**vinyl_fields(vinyl))

    async def delete_vinyl(
        self, db: AsyncSession, account_id: uuid.UUID, vinyl_id: uuid.UUID
    ) -> None:
        vinyl = await self._get_owned(db, account_id, vinyl_id)
        await db.delete(vinyl)
        await db.flush()
        logger.info("Vinyl %s deleted by %s", vinyl_id, account_id)

    async def _get_owned(
        self, db: AsyncSession, account_id: uuid.UUID, vinyl_id: uuid.UUID
    ) -> Vinyl:
        vinyl = await db.scalar(
            select(Vinyl).where(Vinyl.id == vinyl_id, Vinyl.user_id == account_id)
        )
        if vinyl is None:
            raise NotFoundError(resource="vinyl", resource_id=str(vinyl_id))
        return vinyl

    async def _validate(self, db: AsyncSession, fields: Dict[str, Any], creating: bool) -> None:
        for required in ("title", "artist"):
            if (creating or required in fields) and not (fields.get(required) or "").strip():
                raise ValidationError("Title and artist are required", field=required)

        rating = fields.get("rating")
        if rating is not None and not 0 <= rating <= 5:
            raise ValidationError("Rating must be between 0 and 5", field="rating")

        if "format" in fields and fields["format"] not in FORMATS:
            raise ValidationError("Format must be 'vinyl' or 'cd'", field="format")

        disc_count = fields.get("disc_count")
        if "disc_count" in fields and (disc_count is None or disc_count < 1):
            raise ValidationError("Disc count must be at least 1", field="disc_count")

        for key in ("gifted_by_user_id", "shared_with_user_id"):
            if fields.get(key) is not None and await db.get(Account, fields[key]) is None:
                raise ValidationError("Referenced user does not exist", field=key)

    # ══════════════════════════════════════════════════════════════════════
    # Stats
    # ══════════════════════════════════════════════════════════════════════

    async def collection_stats(self, db: AsyncSession, account_id: uuid.UUID) -> CollectionStats:
        result = await db.execute(
            select(Vinyl.genre, Vinyl.artist)
            .where(Vinyl.user_id == account_id)
            .order_by(Vinyl.date_added.desc(), Vinyl.id.desc())
        )
        rows = result.all()
        return self.summarize(rows)

    @staticmethod
    def summarize(rows: Iterable[Tuple[Optional[str], str]]) -> CollectionStats:
        genres: Counter = Counter()
        artists: Counter = Counter()
        total = 0
        for genre, artist in rows:
            total += 1
            genres.update(split_genres(genre))
            name = normalize_artist(artist)
            if name:
                artists[name] += 1
        return CollectionStats(
            total=total,
            genres=ranked(genres),
            top_artists=ranked(artists, TOP_ARTISTS_LIMIT),
            total_artists=len(artists),
        )


# Module-level singleton
vinyl_service = VinylService()
